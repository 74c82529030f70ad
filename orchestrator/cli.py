"""
Orchestrator - CLI.

============================================================
RESPONSIBILITY
============================================================
Command-line interface for the country risk pipeline.

- Provides argparse-based CLI
- One command per aggregation view
- Loads configuration from the environment
- Prints JSON or a plain table

============================================================
USAGE
============================================================
python -m orchestrator.cli --command combined
python -m orchestrator.cli --command country --iso2 NG --output table
python -m orchestrator.cli --command regions --log-level DEBUG

============================================================
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, List, Optional

from core.exceptions import PipelineError

from .core import build_pipeline, setup_logging


COMMANDS = ("combined", "country", "regions", "distribution", "countries")


# ============================================================
# CLI ARGUMENT PARSER
# ============================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="country-risk",
        description="Country risk aggregation and scoring pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  combined      - Full combined report (profiles, summary, regions)
  country       - One country's scored profile (requires --iso2)
  regions       - Regional summary ordered by average risk
  distribution  - Number of countries per risk level
  countries     - The monitored roster

Examples:
  %(prog)s --command combined                      # Full JSON report
  %(prog)s --command country --iso2 NG -o table    # One country
  %(prog)s --command distribution --log-level DEBUG
        """
    )

    parser.add_argument(
        "--command", "-c",
        type=str,
        choices=COMMANDS,
        default="combined",
        help="View to produce (default: combined)",
    )

    parser.add_argument(
        "--iso2",
        type=str,
        metavar="CODE",
        help="Two-letter country code (for --command country)",
    )

    parser.add_argument(
        "--output", "-o",
        type=str,
        choices=["json", "table"],
        default="json",
        help="Output format (default: json)",
    )

    # --------------------------------------------------------
    # Logging Options
    # --------------------------------------------------------
    logging_group = parser.add_argument_group("Logging Options")

    logging_group.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="WARNING",
        help="Logging level (default: WARNING)",
    )

    logging_group.add_argument(
        "--log-format",
        type=str,
        choices=["json", "text"],
        default="text",
        help="Logging format (default: text)",
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version="%(prog)s 1.0.0",
    )

    return parser


# ============================================================
# CLI VALIDATION
# ============================================================

def validate_args(args: argparse.Namespace) -> List[str]:
    """Return a list of argument errors."""
    errors = []

    if args.command == "country":
        if not args.iso2:
            errors.append("--iso2 is required for --command country")
        elif len(args.iso2.strip()) != 2 or not args.iso2.strip().isalpha():
            errors.append(f"--iso2 must be a two-letter code, got {args.iso2!r}")

    return errors


# ============================================================
# OUTPUT
# ============================================================

def render_table(command: str, payload: Any) -> str:
    """Plain-text rendering of a command's payload."""
    lines: List[str] = []

    if command == "combined":
        summary = payload["summary"]
        lines.append(
            f"Total: {summary['total']}  Critical: {summary['critical']}  "
            f"High: {summary['high']}  Avg score: {summary['avgScore']}"
        )
        lines.append("-" * 60)
        for p in payload["profiles"]:
            lines.append(
                f"{p['iso2']:<4} {p['country']:<20} {p['risk']['score']:>3}  "
                f"{p['risk']['level']:<9} {p['dataSource']}"
            )
    elif command == "country":
        lines.append(f"{payload['country']} ({payload['iso2']}) - {payload['region']}")
        lines.append(f"Score: {payload['risk']['score']}  Level: {payload['risk']['level']}")
        for factor in payload["risk"]["factors"]:
            lines.append(f"  +{factor['contribution']:<3} {factor['name']}: {factor['value']}")
    elif command == "regions":
        for region in payload:
            lines.append(f"{region['region']:<20} avg {region['avgRisk']:>3}  ({region['count']} countries)")
    elif command == "distribution":
        for level, count in payload.items():
            lines.append(f"{level:<9} {count}")
    else:
        for entity in payload:
            lines.append(f"{entity['iso2']:<4} {entity['name']:<20} {entity['region']}")

    return "\n".join(lines)


# ============================================================
# MAIN ENTRY POINT
# ============================================================

async def run_command(service: Any, args: argparse.Namespace) -> Optional[Any]:
    """Run one command against the aggregation service; None if not found."""
    if args.command == "combined":
        return (await service.get_combined_data()).to_dict()
    if args.command == "country":
        profile = await service.get_country_profile(args.iso2)
        return profile.to_dict() if profile is not None else None
    if args.command == "regions":
        return [r.to_dict() for r in await service.get_regional_summary()]
    if args.command == "distribution":
        return await service.get_risk_distribution()
    return service.get_monitored_countries()


async def async_main(args: argparse.Namespace) -> int:
    """
    Async main entry point.

    Args:
        args: Parsed arguments

    Returns:
        Exit code
    """
    try:
        pipeline = build_pipeline()
    except PipelineError as e:
        logging.error(f"Startup failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 2

    try:
        payload = await run_command(pipeline.service, args)
        if payload is None:
            code = args.iso2.strip().upper()
            if pipeline.service.is_monitored(code):
                print(f"Error: no data available for {code}", file=sys.stderr)
            else:
                print(f"Error: {code} is not a monitored country", file=sys.stderr)
            return 1

        if args.output == "table":
            print(render_table(args.command, payload))
        else:
            print(json.dumps(payload, indent=2, ensure_ascii=False))
        return 0

    except KeyboardInterrupt:
        logging.info("Interrupted by user")
        return 130
    except Exception as e:
        logging.error(f"Fatal error: {e}", exc_info=True)
        return 1
    finally:
        await pipeline.close()


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Command line arguments (default: sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    errors = validate_args(args)
    if errors:
        for error in errors:
            print(f"Error: {error}", file=sys.stderr)
        return 1

    setup_logging(level=args.log_level, log_format=args.log_format)

    if args.output == "table":
        print_banner(args)

    return asyncio.run(async_main(args))


def print_banner(args: argparse.Namespace) -> None:
    """Print startup banner."""
    print()
    print("=" * 60)
    print("  COUNTRY RISK PIPELINE")
    print("=" * 60)
    print(f"  Command:    {args.command}")
    if args.iso2:
        print(f"  Country:    {args.iso2.upper()}")
    print(f"  Log Level:  {args.log_level}")
    print("=" * 60)
    print()


# ============================================================
# MODULE EXECUTION
# ============================================================

if __name__ == "__main__":
    sys.exit(main())
