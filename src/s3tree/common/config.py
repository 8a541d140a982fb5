"""Configuration loaded from environment variables."""

import os
from dataclasses import dataclass, field
from typing import Tuple

_TRUE_VALUES = ("true", "1", "yes")


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in _TRUE_VALUES


def _env_paths(name: str) -> Tuple[str, ...]:
    raw = os.environ.get(name, "")
    return tuple(p.strip() for p in raw.split(",") if p.strip())


@dataclass(frozen=True)
class TransferConfig:
    """Copy/move/delete action configuration from Lambda environment variables."""

    # Paths
    source_path: str = ""
    destination_path: str = ""
    delete_paths: Tuple[str, ...] = field(default_factory=tuple)

    # Behaviour
    recursive: bool = False
    overwrite: bool = False

    # Destination bucket creation
    bucket_location: str = ""
    kms_key_id: str = ""

    # Client construction
    region: str = ""
    role_arn: str = ""
    external_id: str = ""
    endpoint_url: str = ""
    read_timeout: int = 0  # seconds, 0 = botocore default

    # Large-object copy
    multipart_threshold_bytes: int = 5 * 1024 * 1024 * 1024  # 5 GB
    multipart_chunk_size_bytes: int = 100 * 1024 * 1024  # 100 MB

    # Credential retries
    max_retry_attempts: int = 5
    retry_base_delay: float = 1.0
    retry_max_delay: float = 60.0

    @classmethod
    def from_env(cls) -> "TransferConfig":
        """Load configuration from environment variables."""
        return cls(
            source_path=os.environ.get("SOURCE_PATH", ""),
            destination_path=os.environ.get("DESTINATION_PATH", ""),
            delete_paths=_env_paths("DELETE_PATHS"),
            recursive=_env_bool("RECURSIVE"),
            overwrite=_env_bool("OVERWRITE"),
            bucket_location=os.environ.get("BUCKET_LOCATION", ""),
            kms_key_id=os.environ.get("KMS_KEY_ID", ""),
            region=os.environ.get("AWS_REGION", ""),
            role_arn=os.environ.get("ROLE_ARN", ""),
            external_id=os.environ.get("EXTERNAL_ID", ""),
            endpoint_url=os.environ.get("S3_ENDPOINT_URL", ""),
            read_timeout=int(os.environ.get("READ_TIMEOUT", "0")),
            multipart_threshold_bytes=int(
                os.environ.get(
                    "MULTIPART_THRESHOLD_BYTES",
                    str(5 * 1024 * 1024 * 1024),
                )
            ),
            multipart_chunk_size_bytes=int(
                os.environ.get("MULTIPART_CHUNK_SIZE_BYTES", str(100 * 1024 * 1024))
            ),
            max_retry_attempts=int(os.environ.get("MAX_RETRY_ATTEMPTS", "5")),
            retry_base_delay=float(os.environ.get("RETRY_BASE_DELAY", "1.0")),
            retry_max_delay=float(os.environ.get("RETRY_MAX_DELAY", "60.0")),
        )
