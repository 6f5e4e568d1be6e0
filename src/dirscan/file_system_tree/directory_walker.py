"""Recursive directory traversal building an annotated FileNode tree.

The walker lists each directory in the order the filesystem returns its entries,
asks the exclusion policy for a verdict on every entry, and descends only into
directories that were not excluded. Excluded directories are recorded without
children and their contents are never stat'ed or listed.
"""

import logging
import os
import stat
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import FrozenSet, Iterator, List, Optional, Tuple, Union

from dirscan.exceptions import InvalidRootError
from dirscan.exclusion_rules.policy import ExclusionPolicy, ExclusionVerdict
from dirscan.file_system_tree.file_identifier import FileIdentifier
from dirscan.file_system_tree.file_node import FileNode
from dirscan.file_system_tree.permission_action import PermissionAction
from dirscan.file_system_tree.tree_views import ScanCounts, count_nodes, iterate_included_files
from dirscan.types import FileType, PathType

logger = logging.getLogger(__name__)

REASON_SYMLINK_LOOP = "symbolic link loop"


@dataclass(frozen=True)
class ScanResult:
    """The outcome of one walk.

    Attributes:
        root_path (str): Absolute path of the scanned root.
        nodes (Tuple[FileNode, ...]): Top-level entries of the root, in listing order.
        cancelled (bool): True if cancellation was observed. The tree is then
            partial: every node in it is complete, but entries listed after the
            point of cancellation are missing.
    """

    root_path: str
    nodes: Tuple[FileNode, ...]
    cancelled: bool = False

    def iterate_included_files(self) -> Iterator[FileNode]:
        """Pre-order sequence of included files, as consumed by document generation."""
        return iterate_included_files(self.nodes)

    def counts(self) -> ScanCounts:
        return count_nodes(self.nodes)


class _WalkState:
    """Per-walk state shared by every branch: cancellation and worker slots."""

    def __init__(
        self,
        cancel_event: Optional[threading.Event],
        executor: Optional[ThreadPoolExecutor],
        max_workers: int,
    ) -> None:
        self.cancel_event = cancel_event
        self.cancel_observed = threading.Event()
        self.executor = executor
        # Never more submitted branches than workers, so a branch waiting on its
        # children cannot starve the pool
        self._slots = threading.BoundedSemaphore(max_workers) if executor is not None else None

    def should_stop(self) -> bool:
        if self.cancel_event is not None and self.cancel_event.is_set():
            self.cancel_observed.set()
            return True
        return False

    def try_acquire_worker(self) -> bool:
        return self._slots is not None and self._slots.acquire(blocking=False)

    def release_worker(self) -> None:
        if self._slots is not None:
            self._slots.release()


class DirectoryWalker:
    """Walk a directory and build the annotated FileNode tree beneath it.

    Symbolic Link Behavior:
        By default links are followed: a link to a directory is descended like a
        directory and a link to a file reports the target's size. A directory whose
        identity (device, inode) is already an ancestor on the current branch is
        recorded as excluded with reason "symbolic link loop" and is not descended,
        which guarantees termination. Dangling links are recorded from lstat as
        files. With follow_symlinks=False every link is recorded as a file and never
        descended.

    Permission Handling:
        An entry that cannot be stat'ed is omitted; a directory that cannot be
        listed is kept with no children. With PermissionAction.RAISE a
        PermissionError is raised instead. Entries that vanish during the scan are
        always omitted.

    Concurrency:
        With max_workers > 1, sibling subdirectories are walked on a thread pool
        whenever a worker is free, and inline otherwise. Children are always
        assembled in listing order, so the result equals the sequential walk.

    Attributes:
        policy (ExclusionPolicy): Source of exclusion verdicts.
        follow_symlinks (bool): Whether to follow symbolic links.
        permission_action (PermissionAction): How to handle unreadable entries.
        max_workers (int): Upper bound on concurrently walked branches.

    Example:
        >>> from dirscan.config import ExclusionRules
        >>> from dirscan.exclusion_rules.pattern_rules import RuleSet
        >>> policy = ExclusionPolicy(ExclusionRules(), RuleSet.defaults())
        >>> result = DirectoryWalker(policy).walk("src")  # doctest: +SKIP
        >>> [node.name for node in result.nodes]  # doctest: +SKIP
        ['main.py', 'utils']
    """

    def __init__(
        self,
        policy: ExclusionPolicy,
        *,
        follow_symlinks: bool = True,
        permission_action: PermissionAction = PermissionAction.IGNORE,
        max_workers: int = 1,
    ) -> None:
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.policy = policy
        self.classifier = policy.classifier
        self.follow_symlinks = follow_symlinks
        self.permission_action = permission_action
        self.max_workers = max_workers

    def walk(self, root_path: PathType, cancel_event: Optional[threading.Event] = None) -> ScanResult:
        """Walk root_path and return its annotated top-level entries.

        Args:
            root_path: Directory to scan. Can be any path-like object.
            cancel_event: Optional event; once set, the walk stops before the next
                directory expansion and returns a partial tree.

        Returns:
            The ScanResult.

        Raises:
            FileNotFoundError: If the root path doesn't exist.
            InvalidRootError: If the root path isn't a directory.
            PermissionError: If access is denied and permission_action is RAISE.
        """
        root = Path(root_path).absolute()
        if not root.exists():
            raise FileNotFoundError(f"Root path does not exist: {root}")
        if not root.is_dir():
            raise InvalidRootError(str(root))

        root_id = FileIdentifier.from_stat(os.stat(root))
        executor = (
            ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="dirscan")
            if self.max_workers > 1
            else None
        )
        state = _WalkState(cancel_event, executor, self.max_workers)

        try:
            if state.should_stop():
                nodes: Tuple[FileNode, ...] = ()
            else:
                nodes = self._walk_directory(state, str(root), "", frozenset({root_id}))
        finally:
            if executor is not None:
                executor.shutdown(wait=True)

        cancelled = state.cancel_observed.is_set()
        if cancelled:
            logger.info("Scan of %s cancelled, returning partial tree", root)
        return ScanResult(str(root), nodes, cancelled)

    def _walk_directory(
        self,
        state: _WalkState,
        dir_path: str,
        relative_dir: str,
        ancestors: FrozenSet[FileIdentifier],
    ) -> Tuple[FileNode, ...]:
        """Build the nodes for the entries of one directory."""
        try:
            names = os.listdir(dir_path)
        except OSError as e:
            self._handle_unreadable(dir_path, e)
            return ()

        entries: List[Union[FileNode, "Future[FileNode]"]] = []
        for name in names:
            full_path = os.path.join(dir_path, name)
            relative_path = f"{relative_dir}/{name}" if relative_dir else name

            stat_result = self._stat_entry(full_path)
            if stat_result is None:
                continue

            if not stat.S_ISDIR(stat_result.st_mode):
                entries.append(self._build_file_node(full_path, relative_path, name, stat_result))
                continue

            verdict = self.policy.decide(relative_path, True, full_path)
            identity = FileIdentifier.from_stat(stat_result)
            if not verdict.excluded and identity in ancestors:
                logger.warning("Not descending into %s: symbolic link loop", full_path)
                verdict = ExclusionVerdict(True, REASON_SYMLINK_LOOP)

            if verdict.excluded:
                entries.append(self._build_directory_node(full_path, relative_path, name, stat_result, verdict, None))
                continue

            if state.should_stop():
                break

            branch = ancestors | {identity}
            if state.executor is not None and state.try_acquire_worker():
                entries.append(
                    state.executor.submit(
                        self._expand_in_worker, state, full_path, relative_path, name, stat_result, verdict, branch
                    )
                )
            else:
                entries.append(self._expand(state, full_path, relative_path, name, stat_result, verdict, branch))

        return tuple(entry.result() if isinstance(entry, Future) else entry for entry in entries)

    def _expand(
        self,
        state: _WalkState,
        full_path: str,
        relative_path: str,
        name: str,
        stat_result: os.stat_result,
        verdict: ExclusionVerdict,
        branch: FrozenSet[FileIdentifier],
    ) -> FileNode:
        children = self._walk_directory(state, full_path, relative_path, branch)
        return self._build_directory_node(full_path, relative_path, name, stat_result, verdict, children)

    def _expand_in_worker(
        self,
        state: _WalkState,
        full_path: str,
        relative_path: str,
        name: str,
        stat_result: os.stat_result,
        verdict: ExclusionVerdict,
        branch: FrozenSet[FileIdentifier],
    ) -> FileNode:
        try:
            return self._expand(state, full_path, relative_path, name, stat_result, verdict, branch)
        finally:
            state.release_worker()

    def _stat_entry(self, full_path: str) -> Optional[os.stat_result]:
        """Stat an entry, returning None if it should be omitted."""
        try:
            if self.follow_symlinks:
                return os.stat(full_path)
            return os.lstat(full_path)
        except OSError as e:
            if self.follow_symlinks and os.path.islink(full_path):
                # Dangling link or link cycle: record the link itself
                try:
                    return os.lstat(full_path)
                except OSError:
                    pass
            if isinstance(e, FileNotFoundError):
                logger.warning("Entry disappeared during scan: %s", full_path)
                return None
            self._handle_unreadable(full_path, e)
            return None

    def _handle_unreadable(self, path: str, error: OSError) -> None:
        if isinstance(error, PermissionError) and self.permission_action == PermissionAction.RAISE:
            raise PermissionError(f"Access denied to {path}: {error}")
        logger.warning("Skipping unreadable entry %s: %s", path, error)

    def _build_file_node(
        self, full_path: str, relative_path: str, name: str, stat_result: os.stat_result
    ) -> FileNode:
        extension = os.path.splitext(name)[1]
        verdict = self.policy.decide(relative_path, False, full_path, size=stat_result.st_size)
        return FileNode(
            path=full_path,
            relative_path=relative_path,
            name=name,
            kind=FileType.FILE,
            size=stat_result.st_size,
            modified_at=_modified_at(stat_result),
            excluded=verdict.excluded,
            exclusion_reason=verdict.reason,
            extension=extension,
            is_supported_language=self.classifier.is_supported_language(extension),
            is_binary=self.classifier.is_binary(full_path, extension),
        )

    @staticmethod
    def _build_directory_node(
        full_path: str,
        relative_path: str,
        name: str,
        stat_result: os.stat_result,
        verdict: ExclusionVerdict,
        children: Optional[Tuple[FileNode, ...]],
    ) -> FileNode:
        return FileNode(
            path=full_path,
            relative_path=relative_path,
            name=name,
            kind=FileType.DIRECTORY,
            size=0,
            modified_at=_modified_at(stat_result),
            excluded=verdict.excluded,
            exclusion_reason=verdict.reason,
            children=children,
        )


def _modified_at(stat_result: os.stat_result) -> datetime:
    return datetime.fromtimestamp(stat_result.st_mtime, tz=timezone.utc)
