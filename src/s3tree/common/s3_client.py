"""S3 store adapter: paginated listing, lookups, copy, delete and metadata.

``S3Store`` is the capability set the traversal and transfer modules consume.
It wraps an explicitly passed boto3 client and turns botocore errors into
``ListingError`` / ``TransferError`` with bucket and key context. Nothing here
retries; that is left to the caller.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

from botocore.exceptions import ClientError

from s3tree.common.config import TransferConfig
from s3tree.common.exceptions import (
    ListingError,
    ObjectTooLargeError,
    StoreError,
    TransferError,
)
from s3tree.common.logger import get_logger
from s3tree.common.paths import ObjectRef, to_uri
from s3tree.common.retry import with_configured_retry
from s3tree.common.sts_client import assume_role, get_boto3_client

logger = get_logger(__name__)

# Max object size for S3 (5 TB)
MAX_OBJECT_SIZE = 5 * 1024 * 1024 * 1024 * 1024

# Threshold for server-side copy vs multipart copy (5 GB)
DEFAULT_MULTIPART_THRESHOLD = 5 * 1024 * 1024 * 1024

# Default part size for multipart copy (100 MB)
DEFAULT_PART_SIZE = 100 * 1024 * 1024

_NOT_FOUND_CODES = ("404", "NoSuchKey", "NoSuchBucket", "NotFound")
_RETRYABLE_CODES = ("SlowDown", "503", "RequestTimeout", "InternalError", "500")


@dataclass(frozen=True)
class BucketMeta:
    name: str
    region: str = ""


def _error_code(e: ClientError) -> str:
    return e.response.get("Error", {}).get("Code", "")


def _http_status(e: ClientError) -> int:
    return e.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)


def _is_not_found(e: ClientError) -> bool:
    return _error_code(e) in _NOT_FOUND_CODES or _http_status(e) == 404


def _classify_s3_error(e: ClientError, operation: str, error_cls=StoreError, **context):
    """Wrap a botocore ClientError into our exception hierarchy."""
    error_code = _error_code(e)
    location = to_uri(context.get("bucket", ""), context.get("key", ""))
    message = f"S3 {operation} failed for {location}: {e}"
    details = {
        "error_code": error_code,
        "http_status": _http_status(e),
        "operation": operation,
    }
    details.update(context)
    return error_cls(
        message, details=details, retryable=error_code in _RETRYABLE_CODES
    )


class S3Store:
    """Object store capability set over a boto3 S3 client."""

    def __init__(
        self,
        s3_client,
        kms_key_id: str = "",
        multipart_threshold: int = DEFAULT_MULTIPART_THRESHOLD,
        part_size: int = DEFAULT_PART_SIZE,
    ):
        self.s3_client = s3_client
        self.kms_key_id = kms_key_id
        self.multipart_threshold = multipart_threshold
        self.part_size = part_size

    @classmethod
    def from_config(cls, config: TransferConfig) -> "S3Store":
        """Build the store from configuration, assuming ``role_arn`` if set."""
        credentials = None
        if config.role_arn:
            credentials = with_configured_retry(assume_role, config)(
                role_arn=config.role_arn,
                session_name="S3TreeSession",
                external_id=config.external_id,
            )
        client = get_boto3_client(
            "s3",
            credentials,
            region=config.region,
            read_timeout=config.read_timeout,
            endpoint_url=config.endpoint_url,
        )
        return cls(
            client,
            kms_key_id=config.kms_key_id,
            multipart_threshold=config.multipart_threshold_bytes,
            part_size=config.multipart_chunk_size_bytes,
        )

    # Listing and lookups

    def list_objects(
        self, bucket: str, prefix: str = "", delimiter: Optional[str] = None
    ) -> Iterator[ObjectRef]:
        """List objects under ``prefix``, following every page.

        With a delimiter, each common prefix is yielded as an ``ObjectRef``
        with ``is_prefix`` set, after the objects of the same page.
        """
        logger.debug("Listing objects in %s", to_uri(bucket, prefix))
        paginator = self.s3_client.get_paginator("list_objects_v2")
        page_kwargs: Dict[str, Any] = {"Bucket": bucket}
        if prefix:
            page_kwargs["Prefix"] = prefix
        if delimiter:
            page_kwargs["Delimiter"] = delimiter

        try:
            for page in paginator.paginate(**page_kwargs):
                for obj in page.get("Contents", []):
                    yield ObjectRef(
                        bucket=bucket,
                        key=obj["Key"],
                        size=obj["Size"],
                        etag=obj.get("ETag", ""),
                    )
                for common in page.get("CommonPrefixes", []):
                    yield ObjectRef(bucket=bucket, key=common["Prefix"], is_prefix=True)
        except ClientError as e:
            raise _classify_s3_error(
                e, "list_objects_v2", ListingError, bucket=bucket, key=prefix
            ) from e

    def get_object(self, bucket: str, key: str) -> Optional[ObjectRef]:
        """Return the object at ``key`` with its metadata, or None if absent."""
        try:
            response = self.s3_client.head_object(Bucket=bucket, Key=key)
        except ClientError as e:
            if _is_not_found(e):
                return None
            raise _classify_s3_error(
                e, "head_object", ListingError, bucket=bucket, key=key
            ) from e
        return ObjectRef(
            bucket=bucket,
            key=key,
            size=response["ContentLength"],
            etag=response.get("ETag", ""),
            metadata=response.get("Metadata", {}),
        )

    def get_bucket(self, bucket: str) -> Optional[BucketMeta]:
        try:
            response = self.s3_client.head_bucket(Bucket=bucket)
        except ClientError as e:
            if _is_not_found(e):
                return None
            raise _classify_s3_error(e, "head_bucket", ListingError, bucket=bucket) from e
        headers = response.get("ResponseMetadata", {}).get("HTTPHeaders", {})
        return BucketMeta(name=bucket, region=headers.get("x-amz-bucket-region", ""))

    # Mutations

    def create_bucket(
        self,
        bucket: str,
        location: Optional[str] = None,
        kms_key_id: Optional[str] = None,
    ) -> BucketMeta:
        """Create ``bucket``.

        Raises ``StoreError`` with ``details["http_status"] == 409`` when the
        bucket already exists.
        """
        kwargs: Dict[str, Any] = {"Bucket": bucket}
        if location and location != "us-east-1":
            kwargs["CreateBucketConfiguration"] = {"LocationConstraint": location}
        try:
            self.s3_client.create_bucket(**kwargs)
            if kms_key_id:
                self.s3_client.put_bucket_encryption(
                    Bucket=bucket,
                    ServerSideEncryptionConfiguration={
                        "Rules": [
                            {
                                "ApplyServerSideEncryptionByDefault": {
                                    "SSEAlgorithm": "aws:kms",
                                    "KMSMasterKeyID": kms_key_id,
                                }
                            }
                        ]
                    },
                )
        except ClientError as e:
            raise _classify_s3_error(e, "create_bucket", StoreError, bucket=bucket) from e
        return BucketMeta(name=bucket, region=location or "")

    def copy_object(self, source: ObjectRef, dest_bucket: str, dest_key: str) -> ObjectRef:
        """Server-side copy of data and metadata; multipart above the threshold."""
        if source.size >= self.multipart_threshold:
            etag = self._multipart_copy(source, dest_bucket, dest_key)
        else:
            kwargs: Dict[str, Any] = {
                "CopySource": {"Bucket": source.bucket, "Key": source.key},
                "Bucket": dest_bucket,
                "Key": dest_key,
            }
            self._add_encryption(kwargs)
            try:
                response = self.s3_client.copy_object(**kwargs)
            except ClientError as e:
                raise _classify_s3_error(
                    e,
                    "copy_object",
                    TransferError,
                    bucket=dest_bucket,
                    key=dest_key,
                    source=source.uri,
                ) from e
            etag = response.get("CopyObjectResult", {}).get("ETag", "")
        return ObjectRef(bucket=dest_bucket, key=dest_key, size=source.size, etag=etag)

    def delete_object(self, ref: ObjectRef) -> None:
        try:
            self.s3_client.delete_object(Bucket=ref.bucket, Key=ref.key)
        except ClientError as e:
            raise _classify_s3_error(
                e, "delete_object", TransferError, bucket=ref.bucket, key=ref.key
            ) from e

    def update_metadata(self, ref: ObjectRef, metadata: Dict[str, str]) -> None:
        """Replace the user metadata of ``ref`` in place, keeping its content type."""
        try:
            head = self.s3_client.head_object(Bucket=ref.bucket, Key=ref.key)
            kwargs: Dict[str, Any] = {
                "CopySource": {"Bucket": ref.bucket, "Key": ref.key},
                "Bucket": ref.bucket,
                "Key": ref.key,
                "Metadata": dict(metadata),
                "MetadataDirective": "REPLACE",
            }
            if head.get("ContentType"):
                kwargs["ContentType"] = head["ContentType"]
            self._add_encryption(kwargs)
            self.s3_client.copy_object(**kwargs)
        except ClientError as e:
            raise _classify_s3_error(
                e, "update_metadata", TransferError, bucket=ref.bucket, key=ref.key
            ) from e

    # Internals

    def _add_encryption(self, kwargs: Dict[str, Any]) -> None:
        if self.kms_key_id:
            kwargs["ServerSideEncryption"] = "aws:kms"
            kwargs["SSEKMSKeyId"] = self.kms_key_id

    def _multipart_copy(self, source: ObjectRef, dest_bucket: str, dest_key: str) -> str:
        """Server-side multipart copy for large objects; returns the ETag."""
        object_size = source.size
        if object_size > MAX_OBJECT_SIZE:
            raise ObjectTooLargeError(
                f"Object {source.uri} size {object_size} exceeds max {MAX_OBJECT_SIZE}",
                details={"bucket": source.bucket, "key": source.key, "size": object_size},
            )

        logger.info(
            "Multipart copy %s (%d bytes) -> %s",
            source.uri,
            object_size,
            to_uri(dest_bucket, dest_key),
        )

        upload_id = None
        try:
            head = self.s3_client.head_object(Bucket=source.bucket, Key=source.key)
            create_kwargs: Dict[str, Any] = {
                "Bucket": dest_bucket,
                "Key": dest_key,
                "Metadata": head.get("Metadata", {}),
            }
            if head.get("ContentType"):
                create_kwargs["ContentType"] = head["ContentType"]
            self._add_encryption(create_kwargs)

            response = self.s3_client.create_multipart_upload(**create_kwargs)
            upload_id = response["UploadId"]

            num_parts = math.ceil(object_size / self.part_size)
            parts: List[Dict[str, Any]] = []
            copy_source = {"Bucket": source.bucket, "Key": source.key}

            for part_num in range(1, num_parts + 1):
                start = (part_num - 1) * self.part_size
                end = min(part_num * self.part_size - 1, object_size - 1)
                part_response = self.s3_client.upload_part_copy(
                    Bucket=dest_bucket,
                    Key=dest_key,
                    UploadId=upload_id,
                    PartNumber=part_num,
                    CopySource=copy_source,
                    CopySourceRange=f"bytes={start}-{end}",
                )
                parts.append(
                    {
                        "PartNumber": part_num,
                        "ETag": part_response["CopyPartResult"]["ETag"],
                    }
                )
                logger.debug("Part %d/%d complete for %s", part_num, num_parts, dest_key)

            result = self.s3_client.complete_multipart_upload(
                Bucket=dest_bucket,
                Key=dest_key,
                UploadId=upload_id,
                MultipartUpload={"Parts": parts},
            )
            return result.get("ETag", "")

        except ClientError as e:
            self._abort_upload(dest_bucket, dest_key, upload_id)
            raise _classify_s3_error(
                e,
                "multipart_copy",
                TransferError,
                bucket=dest_bucket,
                key=dest_key,
                source=source.uri,
            ) from e

    def _abort_upload(self, bucket: str, key: str, upload_id: Optional[str]) -> None:
        if not upload_id:
            return
        logger.warning("Aborting multipart upload %s for %s", upload_id, key)
        try:
            self.s3_client.abort_multipart_upload(
                Bucket=bucket, Key=key, UploadId=upload_id
            )
        except ClientError:
            logger.error("Failed to abort multipart upload %s", upload_id, exc_info=True)
