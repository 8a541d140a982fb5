"""DeleteObjects Lambda: removes objects and pseudo-directories, wildcards allowed."""

import logging

from s3tree.common.config import TransferConfig
from s3tree.common.exceptions import InvalidPathError
from s3tree.common.logger import (
    get_logger,
    log_with_context,
    reset_request_id,
    set_request_id,
)
from s3tree.common.paths import PathSpec
from s3tree.common.s3_client import S3Store
from s3tree.common.transfer import StorageClient

logger = get_logger(__name__)


def _parse_paths(raw) -> list:
    if isinstance(raw, str):
        raw = raw.split(",")
    return [PathSpec.from_uri(p.strip()) for p in raw if p.strip()]


def handler(event: dict, context) -> dict:
    """Delete every path in ``paths``.

    Input event:
        {
            "paths": "s3://bucket/tmp/, s3://bucket/staging/run-*"
        }

    ``paths`` may also be a list; it defaults to ``DELETE_PATHS``.

    Returns:
        {
            "status": "SUCCESS",
            "paths": [...],
            "deleted_count": 42,
        }
    """
    request_id = getattr(context, "aws_request_id", "local")
    token = set_request_id(request_id)
    try:
        config = TransferConfig.from_env()
        paths = _parse_paths(event.get("paths", config.delete_paths))
        if not paths:
            raise InvalidPathError("No paths given to delete.")

        log_with_context(
            logger,
            logging.INFO,
            "DeleteObjects started",
            request_id=request_id,
            paths=[p.uri for p in paths],
        )

        client = StorageClient(S3Store.from_config(config))
        deleted_count = client.delete(paths)
    except Exception as e:
        log_with_context(
            logger,
            logging.ERROR,
            "DeleteObjects failed",
            request_id=request_id,
            error=str(e),
            details=getattr(e, "details", {}),
        )
        raise
    else:
        log_with_context(
            logger,
            logging.INFO,
            "DeleteObjects complete",
            request_id=request_id,
            deleted_count=deleted_count,
        )
        return {
            "status": "SUCCESS",
            "paths": [p.uri for p in paths],
            "deleted_count": deleted_count,
        }
    finally:
        reset_request_id(token)
