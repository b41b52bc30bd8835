from __future__ import annotations

from collections import deque
from concurrent.futures import ThreadPoolExecutor
import logging
from pathlib import Path
import threading
from typing import Callable, Iterable

from dirmirror.config import DEFAULT_PARALLELISM
from dirmirror.confirmation import ConfirmationGate, Frontend
from dirmirror.errors import MirrorError, QuitRequested
from dirmirror.filesystem import copy_file, create_dir, delete_dir, delete_file, files_differ, read_snapshot
from dirmirror.ignore_engine import IgnoreEngine, build_ignore_engine
from dirmirror.models import Axis, DirectoryPair, MirrorStats, ReconcilePlan, SyncPolicy


log = logging.getLogger(__name__)


class WorkQueue:
    """FIFO of directory pairs waiting to be reconciled."""

    def __init__(self, lock: threading.Lock) -> None:
        self._lock = lock
        self._items: deque[DirectoryPair] = deque()

    def push_all(self, pairs: Iterable[DirectoryPair]) -> None:
        with self._lock:
            self._items.extend(pairs)

    def pop(self) -> DirectoryPair | None:
        with self._lock:
            if not self._items:
                return None
            return self._items.popleft()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


def reconcile(
    pair: DirectoryPair,
    gate: ConfirmationGate,
    stats: MirrorStats,
    ignore: IgnoreEngine | None = None,
) -> ReconcilePlan:
    """Compare one source/destination directory pair and decide what to do.

    Missing destination directories are created here, before the child pairs
    are handed back. Deletions and copies are only planned; the caller runs
    them.
    """
    ignore = ignore or build_ignore_engine()
    source = read_snapshot(pair.source)
    destination = read_snapshot(pair.destination)
    plan = ReconcilePlan()

    source_dirs = ignore.filter_names(pair.relative, source.dirs, is_dir=True)
    source_files = ignore.filter_names(pair.relative, source.files)
    destination_dirs = ignore.filter_names(pair.relative, destination.dirs, is_dir=True)
    destination_files = ignore.filter_names(pair.relative, destination.files)

    for name in source_dirs:
        destination_dir = pair.destination / name
        if name not in destination.dirs and gate.allow(Axis.CREATE_DIR, "Create dir", destination_dir):
            gate.frontend.progress(f"Creating dir {destination_dir}")
            create_dir(destination_dir, source.dirs[name].mode)
            log.debug("Created dir %s", destination_dir)
            stats.increment("dirs_created")
        # descend even when creation was refused; the child's read then fails
        plan.child_pairs.append(pair.child(name))

    for name in destination_dirs:
        if name in source.dirs:
            continue
        if gate.allow(Axis.DELETE_DIR, "Delete dir", pair.destination / name):
            plan.dirs_to_delete.append(name)

    for name in destination_files:
        if name in source.files:
            continue
        if gate.allow(Axis.DELETE_FILE, "Delete file", pair.destination / name):
            plan.files_to_delete.append(name)

    for name in source_files:
        source_file = pair.source / name
        destination_file = pair.destination / name
        if name not in destination.files:
            if gate.allow(Axis.CREATE_FILE, "Create file", destination_file):
                plan.files_to_copy.append(name)
        elif files_differ(source_file, destination_file):
            if gate.allow(Axis.OVERWRITE_FILE, "Overwrite file", destination_file):
                plan.files_to_copy.append(name)
        else:
            stats.increment("files_identical")

    return plan


class MirrorEngine:
    """Makes ``destination`` a copy of ``source``, one directory pair at a time.

    Pairs are reconciled on the calling thread in FIFO order. Deletions run on
    their own pool outside the throttle; copies share the throttle with
    reconciliation, so at most ``parallelism`` scans and copies are active.
    The first error stops further dispatch and is reported through
    ``frontend.fatal`` once in-flight work has finished.
    """

    def __init__(
        self,
        source: Path,
        destination: Path,
        policy: SyncPolicy,
        frontend: Frontend,
        parallelism: int = DEFAULT_PARALLELISM,
        excludes: Iterable[str] = (),
    ) -> None:
        self.source = source
        self.destination = destination
        self.policy = policy
        self.frontend = frontend
        self.parallelism = max(1, int(parallelism))
        self.stats = MirrorStats()

        self._gate = ConfirmationGate(policy, frontend)
        self._ignore = build_ignore_engine(excludes)
        self._queue = WorkQueue(policy.lock)
        self._throttle = threading.BoundedSemaphore(self.parallelism)
        self._abort = threading.Event()
        self._failure_lock = threading.Lock()
        self._failure: Exception | None = None

    def run(self) -> MirrorStats:
        log.info("Mirroring %s -> %s (parallel=%s)", self.source, self.destination, self.parallelism)
        self._queue.push_all([DirectoryPair(self.source, self.destination, self.policy)])

        with ThreadPoolExecutor(
            max_workers=self.parallelism, thread_name_prefix="dirmirror-copy"
        ) as copy_pool, ThreadPoolExecutor(thread_name_prefix="dirmirror-delete") as delete_pool:
            try:
                while not self._abort.is_set():
                    pair = self._queue.pop()
                    if pair is None:
                        break
                    try:
                        self._process(pair, copy_pool, delete_pool)
                    except Exception as exc:
                        self._fail(exc)
            except BaseException:
                # interrupted (Ctrl-C); queued tasks become no-ops
                self._abort.set()
                raise
            # leaving the block waits for every dispatched delete and copy

        failure = self._failure
        if failure is not None:
            if isinstance(failure, MirrorError):
                log.error("Mirror aborted: %s", failure)
                self.frontend.fatal(str(failure))
            elif isinstance(failure, QuitRequested):
                log.info("Mirror stopped by user")
            raise failure

        log.info("Mirror complete: %s", self.stats.summary_line())
        return self.stats

    def _process(
        self,
        pair: DirectoryPair,
        copy_pool: ThreadPoolExecutor,
        delete_pool: ThreadPoolExecutor,
    ) -> None:
        with self._throttle:
            self.frontend.progress(f"Mirroring {pair.source} to {pair.destination}")
            plan = reconcile(pair, self._gate, self.stats, self._ignore)
            self._queue.push_all(plan.child_pairs)

        for name in plan.dirs_to_delete:
            delete_pool.submit(self._guarded, self._delete_dir, pair.destination / name)
        for name in plan.files_to_delete:
            delete_pool.submit(self._guarded, self._delete_file, pair.destination / name)
        for name in plan.files_to_copy:
            copy_pool.submit(self._guarded, self._copy_file, pair.source / name, pair.destination / name)

    def _guarded(self, task: Callable[..., None], *args: Path) -> None:
        if self._abort.is_set():
            return
        try:
            task(*args)
        except Exception as exc:
            self._fail(exc)

    def _fail(self, exc: Exception) -> None:
        with self._failure_lock:
            if self._failure is None:
                self._failure = exc
            else:
                log.debug("Additional failure after abort: %s", exc)
        self._abort.set()

    def _delete_dir(self, path: Path) -> None:
        delete_dir(path)
        log.debug("Deleted dir %s", path)
        self.stats.increment("dirs_deleted")

    def _delete_file(self, path: Path) -> None:
        delete_file(path)
        log.debug("Deleted file %s", path)
        self.stats.increment("files_deleted")

    def _copy_file(self, source_file: Path, destination_file: Path) -> None:
        with self._throttle:
            if self._abort.is_set():
                return
            self.frontend.progress(f"Copy {source_file} to {destination_file}")
            copy_file(source_file, destination_file)
        log.debug("Copied %s -> %s", source_file, destination_file)
        self.stats.increment("files_copied")


def mirror(
    source: Path,
    destination: Path,
    policy: SyncPolicy,
    frontend: Frontend,
    parallelism: int = DEFAULT_PARALLELISM,
    excludes: Iterable[str] = (),
) -> MirrorStats:
    return MirrorEngine(source, destination, policy, frontend, parallelism, excludes).run()
