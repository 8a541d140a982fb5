"""CopyObjects Lambda: creates the destination bucket if needed, then copies a path tree."""

from s3tree.common.actions import run_transfer
from s3tree.common.transfer import Operation


def handler(event: dict, context) -> dict:
    """Copy ``source_path`` (object, pseudo-directory or glob) to ``destination_path``.

    Returns:
        {
            "status": "SUCCESS",
            "operation": "copy",
            "source_path": "...",
            "destination_path": "...",
            "total_objects": 3,
            "total_size_bytes": 12345,
            "objects": [{"source": "...", "destination": "..."}, ...],
        }
    """
    return run_transfer(Operation.COPY, event, context)
