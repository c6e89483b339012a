"""
Backend Server

Runs the backend relay: receives chunk uploads and stores them in the
Google Drive folder named by FOLDER_ID.

Usage:
    python backend_server.py            # Drive storage, port from PORT
    python backend_server.py --mock     # in-memory storage, no credentials
"""

import argparse
import logging
import sys

from backend import StorageFactory, create_app
from config.settings import BACKEND_PORT, DRIVE_FOLDER_ID, LOG_BACKEND_FILE
from core.logging_setup import setup_logging


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Chunk upload relay to Google Drive")
    parser.add_argument(
        "--host",
        default="0.0.0.0",
        help="Interface to bind (default: 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=BACKEND_PORT,
        help=f"Port to listen on (default: {BACKEND_PORT})",
    )
    parser.add_argument(
        "--mock",
        action="store_true",
        help="Store uploads in memory instead of Google Drive",
    )
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    setup_logging(LOG_BACKEND_FILE)

    logger = logging.getLogger(__name__)

    if not DRIVE_FOLDER_ID:
        logger.warning("FOLDER_ID is not set; uploads will be rejected")

    try:
        storage = StorageFactory.create_storage(mode="mock" if args.mock else "drive")
        app = create_app(storage=storage)
    except Exception as e:
        logger.critical(f"Cannot start backend: {e}", exc_info=True)
        sys.exit(1)

    logger.info(f"Server running on port {args.port}")
    app.run(host=args.host, port=args.port)


if __name__ == "__main__":
    main()
