from __future__ import annotations

from contextlib import contextmanager
import sys
import threading
import time
from typing import Iterator, NoReturn, TextIO


PROGRESS_INTERVAL_SECONDS = 1.0


class Console:
    """Terminal frontend: rate-limited progress, fatal exit and one-key prompts."""

    def __init__(
        self,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
        clock=time.monotonic,
    ) -> None:
        self._stdin = stdin if stdin is not None else sys.stdin
        self._stdout = stdout if stdout is not None else sys.stdout
        self._clock = clock
        self._wait_for_input = threading.Lock()
        self._next_progress = clock()

    def progress(self, message: str) -> None:
        if self._clock() < self._next_progress:
            return
        # a prompt is waiting for the user
        if not self._wait_for_input.acquire(blocking=False):
            return
        try:
            self._next_progress = self._clock() + PROGRESS_INTERVAL_SECONDS
            print(f"...( {message} )", file=self._stdout, flush=True)
        finally:
            self._wait_for_input.release()

    def fatal(self, message: str) -> NoReturn:
        print(f"\n{message}", file=self._stdout, flush=True)
        raise SystemExit(1)

    def choice(self, message: str, allowed: str) -> str:
        with self._wait_for_input:
            while True:
                print(f"{message}: ", end="", file=self._stdout, flush=True)
                answer = self._stdin.read(1)
                if not answer:
                    # input closed, nobody left to answer
                    print(file=self._stdout, flush=True)
                    return "q"
                if answer in allowed:
                    print(file=self._stdout, flush=True)
                    return answer
                print("Invalid answer", file=self._stdout, flush=True)


@contextmanager
def raw_terminal(stream: TextIO | None = None) -> Iterator[None]:
    """Read single keystrokes from ``stream`` for the duration of the block.

    Terminal settings are restored on every exit, SystemExit included. Non-TTY
    streams and platforms without termios are left alone.
    """
    stream = stream if stream is not None else sys.stdin
    try:
        is_tty = stream.isatty()
    except (AttributeError, ValueError):
        is_tty = False
    if not is_tty:
        yield
        return

    try:
        import termios
        import tty
    except ImportError:
        yield
        return

    fd = stream.fileno()
    saved = termios.tcgetattr(fd)
    tty.setcbreak(fd)
    try:
        yield
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, saved)
