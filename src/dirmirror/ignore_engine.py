from __future__ import annotations

from pathlib import Path
from typing import Iterable

import pathspec


class IgnoreEngine:
    def __init__(self, patterns: Iterable[str]) -> None:
        cleaned = [pattern for pattern in patterns if pattern.strip()]
        self._spec = pathspec.GitIgnoreSpec.from_lines(cleaned)
        self._empty = not cleaned

    def is_ignored(self, relative_path: Path, is_dir: bool = False) -> bool:
        if self._empty:
            return False
        unix_path = relative_path.as_posix()
        candidate = f"{unix_path}/" if is_dir and not unix_path.endswith("/") else unix_path
        return self._spec.match_file(candidate)

    def filter_names(self, parent: Path, names: Iterable[str], is_dir: bool = False) -> list[str]:
        return sorted(name for name in names if not self.is_ignored(parent / name, is_dir=is_dir))


def build_ignore_engine(patterns: Iterable[str] | None = None) -> IgnoreEngine:
    return IgnoreEngine(list(patterns or []))
