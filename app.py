#!/usr/bin/env python3
"""
Country Risk Pipeline - Main Application Entry Point.

============================================================
SINGLE ENTRYPOINT
============================================================
Runs one aggregation pass and prints the requested view.

============================================================
USAGE
============================================================
Direct execution:
    python app.py --command combined
    python app.py --command country --iso2 NG --output table

Environment-based configuration:
    RISK_ENABLED_SOURCES=worldbank_demographic,ucdp python app.py

============================================================
"""

import sys

from orchestrator.cli import main


if __name__ == "__main__":
    sys.exit(main())
