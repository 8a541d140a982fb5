"""Shared body of the copy and move Lambda actions."""

import logging

from s3tree.common.config import TransferConfig
from s3tree.common.logger import (
    get_logger,
    log_with_context,
    reset_request_id,
    set_request_id,
)
from s3tree.common.paths import PathSpec
from s3tree.common.s3_client import S3Store
from s3tree.common.transfer import Operation, StorageClient

logger = get_logger(__name__)


def _event_flag(event: dict, name: str, default: bool) -> bool:
    value = event.get(name, default)
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


def run_transfer(operation: Operation, event: dict, context) -> dict:
    """Copy or move ``source_path`` to ``destination_path``.

    Event keys override the matching environment configuration:
        {
            "source_path": "s3://bucket/dir/*.csv",
            "destination_path": "s3://other-bucket/archive/",
            "recursive": true,
            "overwrite": false,
            "location": "eu-west-1",
            "kms_key_id": "..."
        }

    The destination bucket is created first when missing.
    """
    request_id = getattr(context, "aws_request_id", "local")
    token = set_request_id(request_id)
    try:
        config = TransferConfig.from_env()
        source = PathSpec.from_uri(event.get("source_path", config.source_path))
        dest = PathSpec.from_uri(
            event.get("destination_path", config.destination_path)
        )
        recursive = _event_flag(event, "recursive", config.recursive)
        overwrite = _event_flag(event, "overwrite", config.overwrite)
        location = event.get("location", config.bucket_location) or None
        kms_key_id = event.get("kms_key_id", config.kms_key_id) or None

        log_with_context(
            logger,
            logging.INFO,
            f"{operation.value} started",
            request_id=request_id,
            source=source.uri,
            destination=dest.uri,
            recursive=recursive,
            overwrite=overwrite,
        )

        client = StorageClient(S3Store.from_config(config))
        client.create_bucket_if_absent(dest, location=location, kms_key_id=kms_key_id)

        if operation is Operation.MOVE:
            transferred = client.move(source, dest, recursive, overwrite)
        else:
            transferred = client.copy(source, dest, recursive, overwrite)
    except Exception as e:
        log_with_context(
            logger,
            logging.ERROR,
            f"{operation.value} failed",
            request_id=request_id,
            error=str(e),
            details=getattr(e, "details", {}),
        )
        raise
    else:
        log_with_context(
            logger,
            logging.INFO,
            f"{operation.value} complete",
            request_id=request_id,
            total_objects=len(transferred),
        )
        return {
            "status": "SUCCESS",
            "operation": operation.value,
            "source_path": source.uri,
            "destination_path": dest.uri,
            "total_objects": len(transferred),
            "total_size_bytes": sum(p.source.size for p in transferred),
            "objects": [
                {"source": p.source.uri, "destination": p.destination_uri}
                for p in transferred
            ],
        }
    finally:
        reset_request_id(token)
