"""Enumerate the real objects of a pseudo-directory tree.

Each level is listed with ``/`` as delimiter, which splits the immediate
children into objects and common prefixes. Objects go to the visitor; common
prefixes are pushed onto a worklist when traversing recursively. Placeholder
markers (keys ending in ``/``) are never visited.
"""

from collections import deque
from typing import Callable

from s3tree.common.logger import get_logger
from s3tree.common.paths import SEPARATOR, ObjectRef

logger = get_logger(__name__)


def _within_root(key: str, root: str) -> bool:
    """``dir2x.txt`` shares the string prefix ``dir2`` but is not under it."""
    if not root or root.endswith(SEPARATOR):
        return True
    return key == root or key.startswith(root + SEPARATOR)


def traverse(
    store,
    bucket: str,
    prefix: str,
    recursive: bool,
    visitor: Callable[[ObjectRef], None],
) -> int:
    """Call ``visitor`` for every object reachable under ``prefix``.

    ``prefix`` may name a single object, a pseudo-directory with or without
    its trailing ``/``, or be empty for the whole bucket. A prefix matching
    nothing visits nothing. Returns the number of visited objects.
    """
    visited = 0
    pending = deque([prefix])
    while pending:
        current = pending.popleft()
        for ref in store.list_objects(bucket, current, delimiter=SEPARATOR):
            if not _within_root(ref.key, prefix):
                continue
            if ref.is_prefix:
                if recursive:
                    pending.append(ref.key)
                else:
                    logger.debug("Skipping %s (not recursive)", ref.uri)
                continue
            if ref.is_placeholder:
                continue
            visitor(ref)
            visited += 1
    logger.debug("Traversed %d objects under %s/%s", visited, bucket, prefix)
    return visited
