"""
Taskboard - Main entry point.

Runs the API server:

    python -m taskboard.main --port 8000 --reload
"""

from __future__ import annotations

import logging

import uvicorn

from taskboard.config import get_settings


# =============================================================================
# CLI Entry Point
# =============================================================================


def main():
    """Run the API server from command line."""
    import argparse

    settings = get_settings()

    parser = argparse.ArgumentParser(
        description="Run the Taskboard API server"
    )
    parser.add_argument(
        "--host",
        default=settings.api_host,
        help=f"Bind address (default: {settings.api_host})"
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=settings.api_port,
        help=f"Port to listen on (default: {settings.api_port})"
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Reload on code changes (development only)"
    )
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        help="Logging level (default: from LOG_LEVEL)"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    uvicorn.run(
        "taskboard.api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level.lower(),
    )


if __name__ == "__main__":
    main()
