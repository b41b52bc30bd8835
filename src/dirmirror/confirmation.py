from __future__ import annotations

import logging
from pathlib import Path
from typing import NoReturn, Protocol

from dirmirror.errors import QuitRequested
from dirmirror.models import Axis, Decision, SyncPolicy


CHOICES = "ynaxq"
CHOICE_HINT = "(y=yes,n=no,a=all,x=none,q=quit)"

log = logging.getLogger(__name__)


class Frontend(Protocol):
    def progress(self, message: str) -> None: ...

    def fatal(self, message: str) -> NoReturn: ...

    def choice(self, message: str, allowed: str) -> str: ...


class ConfirmationGate:
    """Asks before each mutation unless the axis already has a sticky answer."""

    def __init__(self, policy: SyncPolicy, frontend: Frontend) -> None:
        self.policy = policy
        self.frontend = frontend

    def allow(self, axis: Axis, message: str, path: Path | str) -> bool:
        # one prompt at a time; the answer may change the axis for everyone
        with self.policy.lock:
            decision = self.policy.get(axis)
            if decision is Decision.ALWAYS_ALLOW:
                return True
            if decision is Decision.NEVER_ALLOW:
                return False

            answer = self.frontend.choice(f"{message} '{path}' {CHOICE_HINT}", CHOICES)
            if answer == "y":
                return True
            if answer == "n":
                return False
            if answer == "a":
                log.info("%s: allowing all from now on", axis.value)
                self.policy.set(axis, Decision.ALWAYS_ALLOW)
                return True
            if answer == "x":
                log.info("%s: denying all from now on", axis.value)
                self.policy.set(axis, Decision.NEVER_ALLOW)
                return False
            if answer == "q":
                raise QuitRequested(f"Quit at prompt: {message} '{path}'")
            raise ValueError(f"Unexpected answer {answer!r}, expected one of {CHOICES}")
