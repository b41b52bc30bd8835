from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
import threading
from typing import Mapping


class Axis(str, Enum):
    CREATE_DIR = "createDir"
    DELETE_DIR = "deleteDir"
    CREATE_FILE = "createFile"
    OVERWRITE_FILE = "overwriteFile"
    DELETE_FILE = "deleteFile"


class Decision(str, Enum):
    UNDECIDED = "ask"
    ALWAYS_ALLOW = "all"
    NEVER_ALLOW = "none"


class SyncPolicy:
    """Per-axis confirmation decisions shared by every pair of one run.

    ``lock`` guards the decisions and is also the work queue's mutex.
    """

    def __init__(self, decisions: Mapping[Axis, Decision] | None = None) -> None:
        self.lock = threading.Lock()
        self._decisions = {axis: Decision.UNDECIDED for axis in Axis}
        if decisions:
            self._decisions.update(decisions)

    @classmethod
    def forced(cls) -> "SyncPolicy":
        return cls({axis: Decision.ALWAYS_ALLOW for axis in Axis})

    def get(self, axis: Axis) -> Decision:
        return self._decisions[axis]

    def set(self, axis: Axis, decision: Decision) -> None:
        self._decisions[axis] = decision

    def as_dict(self) -> dict[Axis, Decision]:
        return dict(self._decisions)


@dataclass(slots=True)
class DirectoryPair:
    source: Path
    destination: Path
    policy: SyncPolicy
    relative: Path = Path(".")

    def child(self, name: str) -> "DirectoryPair":
        return DirectoryPair(
            source=self.source / name,
            destination=self.destination / name,
            policy=self.policy,
            relative=self.relative / name,
        )


@dataclass(slots=True, frozen=True)
class EntryInfo:
    name: str
    is_dir: bool
    size: int
    mtime: float
    mode: int


@dataclass(slots=True)
class Snapshot:
    dirs: dict[str, EntryInfo] = field(default_factory=dict)
    files: dict[str, EntryInfo] = field(default_factory=dict)


@dataclass(slots=True)
class ReconcilePlan:
    child_pairs: list[DirectoryPair] = field(default_factory=list)
    dirs_to_delete: list[str] = field(default_factory=list)
    files_to_delete: list[str] = field(default_factory=list)
    files_to_copy: list[str] = field(default_factory=list)


@dataclass(slots=True)
class MirrorStats:
    dirs_created: int = 0
    dirs_deleted: int = 0
    files_copied: int = 0
    files_deleted: int = 0
    files_identical: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False, compare=False)

    def increment(self, counter: str) -> None:
        with self._lock:
            setattr(self, counter, getattr(self, counter) + 1)

    def summary_line(self) -> str:
        return (
            f"{self.dirs_created}/{self.dirs_deleted} dirs created/deleted, "
            f"{self.files_copied}/{self.files_deleted} files copied/deleted, "
            f"{self.files_identical} files identical"
        )
