"""Test doubles and helpers shared by the test modules."""

import shlex
import sys
import threading
from typing import List, Optional

from convenient_cf.ffexec.errors import ChildStreamError
from convenient_cf.ffexec.spawn import ChildProcess


def py_command(code: str) -> str:
    """Shell command string running a Python snippet with this interpreter."""
    return f"{shlex.quote(sys.executable)} -c {shlex.quote(code)}"


class FakeChild(ChildProcess):
    """
    Scripted stand-in for a launched child.

    Each read_available() call returns the next chunk; once the chunks are
    used up the child "exits" with exit_code, unless hold is set, in which
    case it keeps running until hold is released or kill() is called.
    """

    def __init__(
        self,
        chunks: Optional[List[bytes]] = None,
        exit_code: int = 0,
        remaining: bytes = b"",
        hold: Optional[threading.Event] = None,
        fail_read: bool = False,
        fail_write: bool = False,
    ):
        self.command = "fake"
        self.chunks = list(chunks or [])
        self.exit_code = exit_code
        self.remaining = remaining
        self.hold = hold
        self.fail_read = fail_read
        self.fail_write = fail_write
        self.writes = []
        self.input_closed = False
        self.killed = False
        self.closed = False
        self._lock = threading.Lock()

    @property
    def pid(self) -> int:
        return 4242

    @property
    def is_alive(self) -> bool:
        return self.poll() is None

    def read_available(self) -> bytes:
        if self.fail_read:
            raise ChildStreamError("pipe broke")
        with self._lock:
            if self.chunks:
                return self.chunks.pop(0)
        return b""

    def read_remaining(self) -> bytes:
        data, self.remaining = self.remaining, b""
        return data

    def write(self, data: bytes) -> None:
        if self.fail_write:
            raise ChildStreamError("input closed")
        self.writes.append(data)

    def close_input(self) -> None:
        self.input_closed = True

    def poll(self) -> Optional[int]:
        if self.killed:
            return -9
        if self.fail_read:
            return None
        with self._lock:
            if self.chunks:
                return None
        if self.hold is not None and not self.hold.is_set():
            return None
        return self.exit_code

    def wait(self, timeout: Optional[float] = None) -> Optional[int]:
        return self.poll()

    def kill(self) -> None:
        self.killed = True

    def close(self) -> None:
        if self.is_alive:
            self.kill()
        self.closed = True


class RecordingSpawner:
    """Spawner returning a prepared FakeChild and counting launches."""

    def __init__(self, child: FakeChild):
        self.child = child
        self.commands = []

    def __call__(self, command: str) -> FakeChild:
        self.commands.append(command)
        return self.child

