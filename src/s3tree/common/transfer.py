"""Recursive copy/move of pseudo-directories on a flat object store.

``StorageClient`` wraps an ``S3Store`` and layers directory semantics on top
of it. Every copy or move runs in two phases:

1. Planning (read only): buckets are checked, the destination is probed, the
   source is traversed and every object resolved to a destination key. With
   ``overwrite=False`` any collision aborts here, before anything is written.
2. Execution: pairs are copied in plan order; a move deletes each source
   right after its copy succeeds. A failure stops the remaining pairs and
   nothing already done is undone.
"""

import enum
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Set

from s3tree.common.exceptions import (
    BucketCreationError,
    BucketNotFoundError,
    InvalidPathError,
    OverwriteNotAllowedError,
    PartialMoveError,
    StoreError,
    TransferCancelledError,
    TransferError,
)
from s3tree.common.globbing import (
    compile_glob,
    expand,
    has_wildcard,
    shallowest_match,
    wildcard_prefix,
)
from s3tree.common.logger import get_logger
from s3tree.common.paths import (
    SEPARATOR,
    ObjectRef,
    PathSpec,
    flip_trailing_slash,
    to_uri,
)
from s3tree.common.resolver import resolve
from s3tree.common.traversal import traverse

logger = get_logger(__name__)


class Operation(enum.Enum):
    COPY = "copy"
    MOVE = "move"


@dataclass(frozen=True)
class TransferPair:
    source: ObjectRef
    destination_key: str
    destination_bucket: str

    @property
    def destination_uri(self) -> str:
        return to_uri(self.destination_bucket, self.destination_key)


class StorageClient:
    """Directory-aware copy, move and delete over an object store."""

    def __init__(self, store, scheme: str = "s3"):
        self.store = store
        self.scheme = scheme

    # Public operations

    def copy(
        self,
        source: PathSpec,
        dest: PathSpec,
        recursive: bool = False,
        overwrite: bool = False,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[TransferPair]:
        """Copy ``source`` to ``dest``.

        A single object is copied to the destination; a pseudo-directory has
        its objects copied (all subdirectories too when ``recursive``).
        Raises ``OverwriteNotAllowedError`` before any write when
        ``overwrite`` is false and a destination object already exists.
        """
        return self._transfer(
            Operation.COPY, source, dest, recursive, overwrite, cancel_event
        )

    def move(
        self,
        source: PathSpec,
        dest: PathSpec,
        recursive: bool = False,
        overwrite: bool = False,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[TransferPair]:
        """Move ``source`` to ``dest``: copy each object, then delete it."""
        return self._transfer(
            Operation.MOVE, source, dest, recursive, overwrite, cancel_event
        )

    def list_matching_paths(self, source: PathSpec, recursive: bool) -> Set[PathSpec]:
        """Expand a wildcard source path into the concrete paths it matches."""
        self._check_scheme(source)
        return expand(self.store, source, recursive)

    def expand_sources(self, source: PathSpec, recursive: bool) -> List[PathSpec]:
        """The paths to traverse for ``source``: its glob matches, or itself."""
        if has_wildcard(source.key):
            return sorted(
                self.list_matching_paths(source, recursive), key=lambda p: p.key
            )
        return [source]

    def create_bucket_if_absent(
        self,
        path: PathSpec,
        location: Optional[str] = None,
        kms_key_id: Optional[str] = None,
    ) -> None:
        """Create the bucket of ``path``; an existing bucket is not an error."""
        self._check_scheme(path)
        try:
            self.store.create_bucket(path.bucket, location=location, kms_key_id=kms_key_id)
            logger.info("Bucket %s has been created successfully", path.bucket)
        except StoreError as e:
            if e.details.get("http_status") == 409:
                logger.warning(
                    "Got 409 Conflict: bucket at destination path %s may already exist.",
                    path.uri,
                )
                return
            raise BucketCreationError(
                f"Unable to create bucket {path.bucket}. Ensure the bucket name is "
                f"correct and that you have permission to create it.",
                details={"bucket": path.bucket, "operation": "create_bucket", **e.details},
            ) from e

    def pick_object(self, path: PathSpec) -> Optional[ObjectRef]:
        """First object under ``path.key`` that is not a placeholder marker."""
        self._check_scheme(path)
        for ref in self.store.list_objects(path.bucket, path.key):
            if not ref.is_placeholder:
                return ref
        return None

    def set_metadata(self, ref: Optional[ObjectRef], metadata: Optional[Dict[str, str]]) -> None:
        if ref is None or not metadata:
            return
        self.store.update_metadata(ref, metadata)

    def map_metadata(self, path: PathSpec, function: Callable[[Dict[str, str]], None]) -> int:
        """Apply ``function`` to the metadata of each object under ``path.key``.

        Objects without user metadata are skipped. Returns the number of calls.
        """
        self._check_scheme(path)
        calls = 0
        for ref in self.store.list_objects(path.bucket, path.key):
            obj = self.store.get_object(ref.bucket, ref.key)
            if obj is None or not obj.metadata:
                continue
            function(obj.metadata)
            calls += 1
        return calls

    def delete(self, paths: Iterable[PathSpec]) -> int:
        """Delete exact or wildcard paths, including everything beneath them.

        An exact path removes the object at the key and every object under
        ``key/``. In a wildcard path ``*`` matches within one component and
        each matching key is removed together with its matching ancestor.
        Returns the number of deleted objects.
        """
        paths = list(paths)
        self._check_scheme(*paths)
        for path in paths:
            self._require_bucket(path.bucket, "Bucket", "delete")

        roots: List[PathSpec] = []
        for path in paths:
            if has_wildcard(path.key):
                roots.extend(self._wildcard_delete_roots(path))
            else:
                roots.append(path)

        deleted = 0
        seen: Set[ObjectRef] = set()
        for root in roots:
            for ref in self._objects_to_delete(root):
                if ref in seen:
                    continue
                seen.add(ref)
                logger.debug("Deleting %s", ref.uri)
                self.store.delete_object(ref)
                deleted += 1
        logger.info("Deleted %d objects for %d paths", deleted, len(paths))
        return deleted

    # Planning

    def plan(
        self,
        source: PathSpec,
        dest: PathSpec,
        recursive: bool,
        overwrite: bool,
        operation: Operation = Operation.COPY,
    ) -> List[TransferPair]:
        """Build the full transfer plan without writing anything.

        Overlapping glob matches (``a/b/`` and ``a/b/c.txt`` for ``a/**``) reach
        the same object more than once; it is planned only for the first match.
        """
        self._check_scheme(source, dest)
        self._require_bucket(source.bucket, "Source bucket", operation.value)
        self._require_bucket(
            dest.bucket,
            "Destination bucket",
            operation.value,
            hint=" Please create it first.",
        )
        destination_base_exists = self._destination_exists(dest)

        pairs: List[TransferPair] = []
        planned: Set[ObjectRef] = set()
        planned_sources: Set[ObjectRef] = set()

        def visit(source_ref: ObjectRef) -> None:
            if source_ref in planned_sources:
                return
            planned_sources.add(source_ref)
            target = resolve(
                base.key, source_ref.key, dest, destination_base_exists
            )
            if not overwrite:
                if target in planned:
                    raise OverwriteNotAllowedError(
                        f"{target.uri} would be written more than once.",
                        details={"bucket": target.bucket, "key": target.key},
                    )
                self._check_overwrite(target)
            planned.add(target)
            pairs.append(
                TransferPair(
                    source=source_ref,
                    destination_key=target.key,
                    destination_bucket=target.bucket,
                )
            )

        for base in self.expand_sources(source, recursive):
            traverse(self.store, base.bucket, base.key, recursive, visit)

        logger.debug("Found %d objects to transfer from %s", len(pairs), source.uri)
        return pairs

    def _require_bucket(
        self, bucket: str, label: str, operation: str, hint: str = ""
    ) -> None:
        if self.store.get_bucket(bucket) is None:
            raise BucketNotFoundError(
                f"{label} '{bucket}' does not exist.{hint}",
                details={"bucket": bucket, "operation": operation},
            )

    def _check_scheme(self, *paths: PathSpec) -> None:
        for path in paths:
            if path.scheme != self.scheme:
                raise InvalidPathError(
                    f"Unsupported scheme in '{path.uri}': this client only handles "
                    f"{self.scheme}:// paths.",
                    details={"path": path.uri, "scheme": path.scheme},
                )

    def _destination_exists(self, dest: PathSpec) -> bool:
        # "cp dir0 subdir" and "cp dir0 subdir/" behave the same when subdir
        # exists in either form.
        if dest.is_bucket_root:
            return True
        if self.store.get_object(dest.bucket, dest.key) is not None:
            return True
        flipped = flip_trailing_slash(dest.key)
        return bool(flipped) and self.store.get_object(dest.bucket, flipped) is not None

    def _check_overwrite(self, target: ObjectRef) -> None:
        existing = self.store.get_object(target.bucket, target.key)
        # Zero-size placeholders created by consoles for "directories" do not
        # count as collisions.
        if existing is None or existing.is_placeholder or existing.size == 0:
            return
        raise OverwriteNotAllowedError(
            f"{target.uri} already exists.",
            details={"bucket": target.bucket, "key": target.key},
        )

    # Execution

    def execute(
        self,
        pairs: List[TransferPair],
        operation: Operation,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        for done, pair in enumerate(pairs):
            if cancel_event is not None and cancel_event.is_set():
                raise TransferCancelledError(
                    f"{operation.value} cancelled after {done} of {len(pairs)} objects.",
                    completed=done,
                    remaining=len(pairs) - done,
                )
            self._copy_pair(pair)
            if operation is Operation.MOVE:
                self._delete_moved_source(pair)

    def _copy_pair(self, pair: TransferPair) -> ObjectRef:
        logger.debug("Copying %s to %s.", pair.source.uri, pair.destination_uri)
        copied = self.store.copy_object(
            pair.source, pair.destination_bucket, pair.destination_key
        )
        logger.debug("Successfully copied %s to %s.", pair.source.uri, pair.destination_uri)
        return copied

    def _delete_moved_source(self, pair: TransferPair) -> None:
        logger.debug("Deleting %s.", pair.source.uri)
        try:
            self.store.delete_object(pair.source)
        except TransferError as e:
            raise PartialMoveError(
                f"Copied {pair.source.uri} to {pair.destination_uri} but failed to "
                f"delete the source; re-run the move to finish it.",
                source=pair.source.uri,
                destination=pair.destination_uri,
                details=e.details,
            ) from e
        logger.debug("Successfully deleted %s.", pair.source.uri)

    def _transfer(
        self,
        operation: Operation,
        source: PathSpec,
        dest: PathSpec,
        recursive: bool,
        overwrite: bool,
        cancel_event: Optional[threading.Event],
    ) -> List[TransferPair]:
        pairs = self.plan(source, dest, recursive, overwrite, operation)
        logger.info(
            "Starting %s of %d objects from %s to %s",
            operation.value,
            len(pairs),
            source.uri,
            dest.uri,
        )
        self.execute(pairs, operation, cancel_event)
        logger.info("Completed %s of %d objects", operation.value, len(pairs))
        return pairs

    # Deletion helpers

    def _wildcard_delete_roots(self, path: PathSpec) -> List[PathSpec]:
        compiled = compile_glob(path.key)
        roots: Dict[str, PathSpec] = {}
        for ref in self.store.list_objects(path.bucket, wildcard_prefix(path.key)):
            root = shallowest_match(compiled, ref.key.rstrip(SEPARATOR))
            if root is not None and root not in roots:
                roots[root] = path.with_key(root)
        return list(roots.values())

    def _objects_to_delete(self, root: PathSpec) -> List[ObjectRef]:
        refs: List[ObjectRef] = []
        if root.is_bucket_root:
            return list(self.store.list_objects(root.bucket))
        key = root.key.rstrip(SEPARATOR)
        exact = self.store.get_object(root.bucket, key) if key else None
        if exact is not None:
            refs.append(exact)
        refs.extend(self.store.list_objects(root.bucket, key + SEPARATOR))
        return refs
