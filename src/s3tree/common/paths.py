"""Path model: ``scheme://bucket/key`` locations and key composition."""

import re
from dataclasses import dataclass, field
from typing import Dict, Optional

from s3tree.common.exceptions import InvalidPathError

SEPARATOR = "/"

_URI_RE = re.compile(r"^(?P<scheme>[A-Za-z][A-Za-z0-9+.-]*)://(?P<rest>.*)$", re.DOTALL)
_BUCKET_RE = re.compile(r"^[^\s/]+$")


@dataclass(frozen=True)
class ObjectRef:
    """A stored object or pseudo-directory marker as returned by the store."""

    bucket: str
    key: str
    size: int = field(default=0, compare=False)
    etag: str = field(default="", compare=False)
    is_prefix: bool = field(default=False, compare=False)
    metadata: Optional[Dict[str, str]] = field(default=None, compare=False, hash=False)

    @property
    def is_placeholder(self) -> bool:
        return self.key.endswith(SEPARATOR)

    @property
    def uri(self) -> str:
        return to_uri(self.bucket, self.key)


@dataclass(frozen=True)
class PathSpec:
    """A parsed user-supplied location.

    ``key`` is everything after the bucket and its separator; it is empty
    exactly when the path names the bucket root.
    """

    bucket: str
    key: str = ""
    scheme: str = "s3"

    @classmethod
    def from_uri(cls, path: str) -> "PathSpec":
        if path is None:
            raise InvalidPathError("Path must not be empty.")
        match = _URI_RE.match(path.strip())
        if not match:
            raise InvalidPathError(
                f"Invalid path '{path}': expected scheme://bucket[/key].",
                details={"path": path},
            )
        rest = match.group("rest")
        bucket, _, key = rest.partition(SEPARATOR)
        if not bucket or not _BUCKET_RE.match(bucket):
            raise InvalidPathError(
                f"Invalid bucket in path '{path}'.", details={"path": path}
            )
        return cls(bucket=bucket, key=key, scheme=match.group("scheme").lower())

    @property
    def is_bucket_root(self) -> bool:
        return self.key == ""

    @property
    def ends_with_slash(self) -> bool:
        return self.key.endswith(SEPARATOR)

    @property
    def uri(self) -> str:
        return to_uri(self.bucket, self.key, self.scheme)

    def with_key(self, key: str) -> "PathSpec":
        return PathSpec(bucket=self.bucket, key=key, scheme=self.scheme)

    def __str__(self) -> str:
        return self.uri


def to_uri(bucket: str, key: str, scheme: str = "s3") -> str:
    return f"{scheme}://{bucket}/{key}"


def append(base: str, part: str) -> str:
    """Join two key fragments with exactly one ``/`` between them.

    Assumes ``base`` does not end with, and ``part`` does not start with,
    more than one separator.
    """
    base_ends = base.endswith(SEPARATOR)
    part_starts = part.startswith(SEPARATOR)
    if base_ends and part_starts:
        return base[:-1] + part
    if not base_ends and base and not part_starts and part:
        return base + SEPARATOR + part
    return base + part


def flip_trailing_slash(key: str) -> str:
    """``dir`` <-> ``dir/``."""
    return key[:-1] if key.endswith(SEPARATOR) else key + SEPARATOR
