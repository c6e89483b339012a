#!/usr/bin/env python3
"""
Resend Failed Chunks - Maintenance Script

Replays chunks saved to the failed-chunks directory (chunks that ran out of
retries or hit a configuration fault) through a fresh upload queue.

Usage:
    python scripts/resend_failed_chunks.py              # Dry run - show what would be sent
    python scripts/resend_failed_chunks.py --upload     # Actually send them
    python scripts/resend_failed_chunks.py --upload --keep  # Keep files after success

Safety:
    - Dry run by default (requires --upload to actually send)
    - Chunks are sent in name order, which is capture order within a session
    - Files are deleted only after the backend acknowledged them
"""

import argparse
import logging
import re
import sys
from pathlib import Path
from typing import List, Optional

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from config.settings import FAILED_CHUNKS_DIR, UPLOAD_API_URL  # noqa: E402
from core.constants import ChunkStatus  # noqa: E402
from core.models.chunk_artifact import ChunkArtifact  # noqa: E402
from upload import TransportFactory, UploadQueue  # noqa: E402

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

CHUNK_NAME_PATTERN = re.compile(r"^chunk_(\d+)_.+\.webm$")


def parse_sequence(filename: str) -> Optional[int]:
    """
    Extract the chunk sequence number from a chunk file name.

    Example:
        parse_sequence("chunk_007_2025-01-15T14-30-22-123Z.webm") -> 7
    """
    match = CHUNK_NAME_PATTERN.match(filename)
    if not match:
        return None
    sequence = int(match.group(1))
    return sequence if sequence >= 1 else None


def get_failed_chunks(failed_dir: Path) -> List[Path]:
    """All chunk files in the failed directory, in name order"""
    if not failed_dir.exists():
        logger.error(f"Failed directory does not exist: {failed_dir}")
        return []

    return sorted(
        path
        for path in failed_dir.glob("*.webm")
        if parse_sequence(path.name) is not None
    )


def load_artifact(path: Path) -> Optional[ChunkArtifact]:
    """Rebuild a chunk artifact from a saved payload"""
    payload = path.read_bytes()
    if not payload:
        logger.warning(f"  ✗ {path.name} is empty (skipped)")
        return None

    return ChunkArtifact(
        sequence=parse_sequence(path.name),
        payload=payload,
        name=path.name,
    )


def main(argv=None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Resend chunks saved in the failed-chunks directory",
        epilog="""
Examples:
  %(prog)s                    # Dry run - show what would be sent
  %(prog)s --upload           # Send all chunks, delete them on success
  %(prog)s --upload --keep    # Send all chunks, keep the files
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--upload",
        action="store_true",
        help="Actually send chunks (default is dry run)",
    )
    parser.add_argument(
        "--keep",
        action="store_true",
        help="Keep chunk files after a successful upload",
    )
    parser.add_argument(
        "--failed-dir",
        default=FAILED_CHUNKS_DIR,
        help=f"Failed chunks directory (default: {FAILED_CHUNKS_DIR})",
    )
    parser.add_argument(
        "--endpoint",
        default=UPLOAD_API_URL,
        help=f"Backend base URL (default: {UPLOAD_API_URL})",
    )
    args = parser.parse_args(argv)

    failed_dir = Path(args.failed_dir)

    logger.info("=" * 70)
    logger.info("Resend Failed Chunks - Maintenance Script")
    logger.info("=" * 70)
    logger.info(f"Mode: {'UPLOAD' if args.upload else 'DRY RUN'}")
    logger.info(f"Failed directory: {failed_dir}")
    logger.info(f"Endpoint: {args.endpoint}")
    logger.info("=" * 70)

    chunk_files = get_failed_chunks(failed_dir)
    if not chunk_files:
        logger.info("✓ No chunks found in failed directory")
        return 0

    logger.info(f"Found {len(chunk_files)} chunk file(s)")
    for path in chunk_files:
        logger.info(f"  • {path.name} ({path.stat().st_size / 1024:.0f} KB)")

    if not args.upload:
        logger.info("=" * 70)
        logger.info("DRY RUN MODE - Nothing sent")
        logger.info("Run with --upload to actually send these chunks")
        logger.info("=" * 70)
        return 0

    transport = TransportFactory.create_transport(mode="http", base_url=args.endpoint)
    if not transport.test_connection():
        logger.warning("Backend did not answer its liveness probe, trying anyway")

    # Synchronous queue: no worker thread, no dead-letter copy (files are
    # already on disk)
    upload_queue = UploadQueue(transport, autostart=False, high_water_mark=0)

    sources = {}
    for path in chunk_files:
        artifact = load_artifact(path)
        if artifact is not None:
            sources[artifact.id] = path
            upload_queue.enqueue(artifact)

    upload_queue.process_pending()

    results = {"success": 0, "failed": 0}
    for artifact in upload_queue.get_chunks():
        if artifact.status == ChunkStatus.COMPLETED:
            results["success"] += 1
            logger.info(f"  ✅ {artifact.name} → {artifact.remote_id}")
            if not args.keep:
                sources[artifact.id].unlink()
        else:
            results["failed"] += 1
            logger.error(f"  ❌ {artifact.name}: {artifact.last_error}")

    logger.info("=" * 70)
    logger.info(f"✅ Sent: {results['success']}")
    logger.info(f"❌ Failed: {results['failed']}")
    logger.info("=" * 70)

    return 0 if results["failed"] == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
