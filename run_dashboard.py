#!/usr/bin/env python
"""
Country Risk API Server Runner.

Serves dashboard.api (combined report, per-country profiles,
distribution, regions, refresh) under uvicorn.

Usage:
    python run_dashboard.py

Environment:
    DASHBOARD_HOST, DASHBOARD_PORT (or PORT), LOG_LEVEL,
    ENVIRONMENT=development for auto-reload
"""

import os
import sys
import logging
import uvicorn

# Setup logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s | %(levelname)s | %(name)s | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)

logger = logging.getLogger(__name__)


def main():
    """Run the country risk API server."""
    host = os.getenv("DASHBOARD_HOST", "0.0.0.0")
    port = int(os.getenv("DASHBOARD_PORT", os.getenv("PORT", "8000")))
    reload = os.getenv("ENVIRONMENT", "production") == "development"

    logger.info(f"Starting Country Risk API on {host}:{port} (reload={reload})")

    try:
        uvicorn.run(
            "dashboard.api:app",
            host=host,
            port=port,
            reload=reload,
            log_level=os.getenv("LOG_LEVEL", "INFO").lower(),
            access_log=True,
        )
    except Exception as e:
        logger.error(f"Failed to start Country Risk API: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
