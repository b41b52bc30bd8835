from __future__ import annotations

import threading

import pytest


class ScriptedFrontend:
    """Answers prompts from a fixed script and records everything it is told."""

    def __init__(self, answers: str = "", fatal_exits: bool = True) -> None:
        self.answers = list(answers)
        self.fatal_exits = fatal_exits
        self.prompts: list[str] = []
        self.progress_messages: list[str] = []
        self.fatal_messages: list[str] = []
        self._lock = threading.Lock()

    def progress(self, message: str) -> None:
        with self._lock:
            self.progress_messages.append(message)

    def fatal(self, message: str) -> None:
        self.fatal_messages.append(message)
        if self.fatal_exits:
            raise SystemExit(1)

    def choice(self, message: str, allowed: str) -> str:
        self.prompts.append(message)
        if not self.answers:
            raise AssertionError(f"Unexpected prompt: {message}")
        answer = self.answers.pop(0)
        assert answer in allowed
        return answer


@pytest.fixture
def frontend_factory():
    return ScriptedFrontend
