"""Wildcard expansion over a flat key space.

A wildcard source such as ``s3://bucket/logs/2024-*/part-?.csv`` is resolved
by listing everything under its literal prefix (``logs/2024-``) and keeping
the keys the full pattern matches. Glob semantics follow path components:

* ``*`` matches any run of characters inside one component
* ``**`` matches across components
* ``?`` matches one character other than ``/``
* ``[abc]`` / ``[!abc]`` are character classes
* ``{a,b}`` is alternation
"""

import re
from typing import Iterable, Optional, Pattern, Set

from s3tree.common.logger import get_logger
from s3tree.common.paths import SEPARATOR, PathSpec

logger = get_logger(__name__)

WILDCARD_REGEX = re.compile(r"[*?\[{]")


def has_wildcard(key: str) -> bool:
    return WILDCARD_REGEX.search(key) is not None


def wildcard_prefix(key: str) -> str:
    """Literal text before the first wildcard; may be empty."""
    return WILDCARD_REGEX.split(key, maxsplit=1)[0]


def glob_to_regex(pattern: str) -> str:
    """Translate a key glob into a regular expression, for use with ``fullmatch``."""
    out = []
    i, n = 0, len(pattern)
    in_group = 0
    while i < n:
        c = pattern[i]
        if c == "*":
            if i + 1 < n and pattern[i + 1] == "*":
                out.append(".*")
                i += 2
                continue
            out.append("[^/]*")
        elif c == "?":
            out.append("[^/]")
        elif c == "[":
            end = pattern.find("]", i + 2 if pattern[i + 1 : i + 2] in ("!", "]") else i + 1)
            if end == -1:
                out.append(re.escape(c))
            else:
                body = pattern[i + 1 : end]
                negate = body.startswith("!")
                if negate:
                    body = body[1:]
                body = body.replace("\\", "\\\\")
                out.append(f"[{'^' if negate else ''}{body}]")
                i = end
        elif c == "{":
            in_group += 1
            out.append("(?:")
        elif c == "}" and in_group:
            in_group -= 1
            out.append(")")
        elif c == "," and in_group:
            out.append("|")
        else:
            out.append(re.escape(c))
        i += 1
    if in_group:
        # unbalanced braces match literally
        return re.escape(pattern)
    return "".join(out)


def compile_glob(pattern: str) -> Pattern:
    return re.compile(glob_to_regex(pattern), re.DOTALL)


def matches(compiled: Pattern, key: str) -> bool:
    """Match a listed key; one trailing ``/`` is ignored."""
    candidate = key[:-1] if key.endswith(SEPARATOR) and len(key) > 1 else key
    return compiled.fullmatch(candidate) is not None


def filter_matched_paths(
    source: PathSpec, keys: Iterable[str], recursive: bool
) -> Set[PathSpec]:
    """Keep the keys matching ``source.key`` as a set of paths."""
    compiled = compile_glob(source.key)
    matched: Set[PathSpec] = set()
    for key in keys:
        if matches(compiled, key):
            logger.debug("Key %s matches the glob pattern %s", key, source.key)
            matched.add(source.with_key(key))
    if not recursive:
        matched = {path for path in matched if not path.ends_with_slash}
    return matched


def shallowest_match(compiled: Pattern, key: str) -> Optional[str]:
    """Return the shortest ancestor of ``key`` (or ``key``) the glob matches.

    ``a/*`` applied to ``a/b/c/d`` returns ``a/b``.
    """
    parts = key.split(SEPARATOR)
    for depth in range(1, len(parts) + 1):
        candidate = SEPARATOR.join(parts[:depth])
        if candidate and compiled.fullmatch(candidate):
            return candidate
    return None


def expand(store, source: PathSpec, recursive: bool) -> Set[PathSpec]:
    """List under the literal prefix of ``source.key`` and filter by the glob.

    Raises ``ListingError`` when the listing fails.
    """
    prefix = wildcard_prefix(source.key)
    keys = [ref.key for ref in store.list_objects(source.bucket, prefix)]
    matched = filter_matched_paths(source, keys, recursive)
    logger.info(
        "Pattern %s matched %d of %d keys under prefix '%s'",
        source.uri,
        len(matched),
        len(keys),
        prefix,
    )
    return matched
