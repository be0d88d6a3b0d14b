"""Log trimming - keeps the alert log small across long-running schedules."""

import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

LOG_FILE_NAME = "usagealert.log"
MAX_LOG_BYTES = 10 * 1024 * 1024
KEEP_BYTES = 1 * 1024 * 1024


def rotate_logs(log_dir: Path, log_files: Optional[list] = None) -> None:
    """
    Trim log files larger than MAX_LOG_BYTES down to their most recent part.

    Args:
        log_dir: Directory containing log files
        log_files: List of log file names to rotate
    """
    if log_files is None:
        log_files = [LOG_FILE_NAME]

    for log_file in log_files:
        log_path = log_dir / log_file

        if not log_path.exists():
            continue

        try:
            size = log_path.stat().st_size
            if size > MAX_LOG_BYTES:
                _rotate_file(log_path)
                logger.info(f"Rotated {log_file} (size: {size / 1024 / 1024:.1f}MB)")
        except OSError as e:
            logger.error(f"Error rotating {log_file}: {e}")


def _rotate_file(log_path: Path) -> None:
    """Keep the last KEEP_BYTES of a file, starting at a line boundary."""
    size = log_path.stat().st_size
    if size <= KEEP_BYTES:
        return

    with open(log_path, "rb") as f:
        f.seek(-KEEP_BYTES, 2)
        # Skip the partial line
        f.readline()
        content = f.read()

    with open(log_path, "wb") as f:
        f.write(content)

