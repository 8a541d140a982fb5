"""Client construction: optional STS role assumption with credential caching."""

import time
from typing import Any, Dict, Optional

import boto3
from botocore.config import Config

from s3tree.common.exceptions import AccessDeniedError, RetryableError
from s3tree.common.logger import get_logger

logger = get_logger(__name__)

# Module-level credential cache: {role_arn: {"credentials": ..., "expiry": ...}}
_credential_cache: Dict[str, Dict[str, Any]] = {}

# Refresh credentials 5 minutes before expiry
_CREDENTIAL_BUFFER_SECONDS = 300


def _is_cached_credential_valid(role_arn: str) -> bool:
    if role_arn not in _credential_cache:
        return False
    expiry = _credential_cache[role_arn].get("expiry", 0)
    return time.time() < (expiry - _CREDENTIAL_BUFFER_SECONDS)


def assume_role(
    role_arn: str,
    session_name: str = "S3TreeSession",
    external_id: str = "",
    duration_seconds: int = 3600,
) -> Dict[str, str]:
    """Assume an IAM role and return temporary credentials.

    Returns cached credentials if still valid. Throttling and other transient
    STS failures raise ``RetryableError``; callers decide whether to retry
    (``S3Store.from_config`` applies the configured backoff).
    """
    if _is_cached_credential_valid(role_arn):
        logger.debug("Using cached credentials for role %s", role_arn)
        return _credential_cache[role_arn]["credentials"]

    logger.info("Assuming role %s with session %s", role_arn, session_name)
    sts_client = boto3.client("sts")

    kwargs = {
        "RoleArn": role_arn,
        "RoleSessionName": session_name,
        "DurationSeconds": duration_seconds,
    }
    if external_id:
        kwargs["ExternalId"] = external_id

    try:
        response = sts_client.assume_role(**kwargs)
    except sts_client.exceptions.ClientError as e:
        error_code = e.response["Error"]["Code"]
        if error_code in ("AccessDenied", "AccessDeniedException"):
            raise AccessDeniedError(
                f"Access denied assuming role {role_arn}: {e}",
                details={"role_arn": role_arn, "error_code": error_code},
            ) from e
        raise RetryableError(
            f"STS error assuming role {role_arn}: {e}",
            details={"role_arn": role_arn, "error_code": error_code},
        ) from e

    raw_creds = response["Credentials"]
    credentials = {
        "aws_access_key_id": raw_creds["AccessKeyId"],
        "aws_secret_access_key": raw_creds["SecretAccessKey"],
        "aws_session_token": raw_creds["SessionToken"],
    }
    _credential_cache[role_arn] = {
        "credentials": credentials,
        "expiry": raw_creds["Expiration"].timestamp(),
    }
    return credentials


def get_boto3_client(
    service: str,
    credentials: Optional[Dict[str, str]] = None,
    region: str = "",
    read_timeout: int = 0,
    endpoint_url: str = "",
):
    """Create a boto3 client.

    Without ``credentials`` the default credential chain is used.
    ``read_timeout`` is in seconds.
    """
    kwargs: Dict[str, Any] = {"service_name": service}
    if credentials:
        kwargs["aws_access_key_id"] = credentials["aws_access_key_id"]
        kwargs["aws_secret_access_key"] = credentials["aws_secret_access_key"]
        kwargs["aws_session_token"] = credentials["aws_session_token"]
    if region:
        kwargs["region_name"] = region
    if endpoint_url:
        kwargs["endpoint_url"] = endpoint_url
    if read_timeout:
        kwargs["config"] = Config(read_timeout=read_timeout)
    return boto3.client(**kwargs)


def clear_credential_cache() -> None:
    """Clear the credential cache (useful for testing)."""
    _credential_cache.clear()
