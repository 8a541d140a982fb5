"""Destination key inference for copy/move, following ``cp -r`` / ``mv``."""

from s3tree.common.paths import SEPARATOR, ObjectRef, PathSpec, append


def resolve(
    base_key: str, source_key: str, dest: PathSpec, destination_base_exists: bool
) -> ObjectRef:
    """Resolve where ``source_key`` lands when ``base_key`` is copied to ``dest``.

    Suppose s3://bucket0/dir1/dir2 is recursively copied to s3://bucket1/subdir
    and s3://bucket0/dir1/dir2/a/b/c exists. Then ``base_key`` is ``dir1/dir2``
    and ``source_key`` is ``dir1/dir2/a/b/c``.

    If subdir already exists (or the destination ends in ``/``), dir2 is
    placed inside it: s3://bucket1/subdir/dir2/a/b/c. Otherwise dir2 becomes
    subdir: s3://bucket1/subdir/a/b/c. A bucket-root destination keeps the
    full source key.
    """
    relative = source_key[len(base_key):]

    if dest.is_bucket_root:
        return ObjectRef(bucket=dest.bucket, key=source_key)

    if destination_base_exists or dest.ends_with_slash:
        last_sep = base_key.rfind(SEPARATOR)
        last_part = base_key[last_sep:] if last_sep > 0 else base_key
        return ObjectRef(
            bucket=dest.bucket, key=append(append(dest.key, last_part), relative)
        )

    return ObjectRef(bucket=dest.bucket, key=append(dest.key, relative))
