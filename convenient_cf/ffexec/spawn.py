"""
Child process creation for ffexec.

A command string is handed to the system shell with its stdout and stderr
merged into one pipe and its stdin connected to a second pipe. The running
child is wrapped in a ChildProcess, which is the only thing the executor
talks to. Two implementations exist because the platforms differ in how a
pipe can be read without blocking:

- PipeChildProcess puts the read end into non-blocking mode (POSIX).
- ThreadedChildProcess moves the blocking reads to a daemon thread and
  hands chunks over through a queue (Windows, or anywhere the first one
  cannot be used).
"""

import logging
import os
import queue
import signal
import subprocess
import threading
from abc import ABC, abstractmethod
from typing import Callable, Optional

from convenient_cf.ffexec.errors import ChildStreamError, LaunchError

logger = logging.getLogger(__name__)

IS_WINDOWS = os.name == "nt"
READ_CHUNK_SIZE = 4096
# Upper bound for one read_available() call so a chatty child cannot starve exit polling
MAX_READ_PER_POLL = 64 * READ_CHUNK_SIZE
REAP_TIMEOUT = 5.0


class ChildProcess(ABC):
    """
    A launched child with a capture pipe and a feed pipe.

    Attributes:
        process (subprocess.Popen): The underlying process handle
        command (str): The command string the child was started with
    """

    def __init__(self, process: subprocess.Popen, command: str):
        self.process = process
        self.command = command
        self._closed = False

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def is_alive(self) -> bool:
        return self.process.poll() is None

    @abstractmethod
    def read_available(self) -> bytes:
        """
        Return whatever output is available right now without blocking.

        Returns:
            The bytes read, or b"" when nothing is waiting or the stream ended

        Raises:
            ChildStreamError: If the capture pipe cannot be read
        """

    @abstractmethod
    def read_remaining(self) -> bytes:
        """Collect the output still buffered after the child has exited."""

    def write(self, data: bytes) -> None:
        """Write to the child's stdin.

        Raises:
            ChildStreamError: If the feed pipe is closed or the write fails
        """
        stdin = self.process.stdin
        if stdin is None or stdin.closed:
            raise ChildStreamError("Child input pipe is closed")
        try:
            stdin.write(data)
            stdin.flush()
        except (OSError, ValueError) as e:
            raise ChildStreamError(f"Failed to write to child input: {e}") from e

    def close_input(self) -> None:
        """Close the child's stdin; a child reading from it sees end of input.

        Raises:
            ChildStreamError: If the feed pipe cannot be closed
        """
        stdin = self.process.stdin
        if stdin is None or stdin.closed:
            return
        try:
            stdin.close()
        except OSError as e:
            raise ChildStreamError(f"Failed to close child input: {e}") from e

    def poll(self) -> Optional[int]:
        """Return the exit code if the child has terminated, otherwise None."""
        return self.process.poll()

    def wait(self, timeout: Optional[float] = None) -> Optional[int]:
        """Wait for the child and return its exit code, or None on timeout."""
        try:
            return self.process.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            return None

    def kill(self) -> None:
        """Forcefully terminate the child and everything it started."""
        if not self.is_alive:
            return
        try:
            if IS_WINDOWS:
                self.process.kill()
            else:
                # The child leads its own session, see spawn()
                os.killpg(self.process.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
        except OSError as e:
            logger.warning(f"Failed to kill child process {self.pid}: {e}")

    def close(self) -> None:
        """Release the pipes and reap the child, killing it if still running."""
        if self._closed:
            return
        self._closed = True

        if self.is_alive:
            logger.debug(f"Child process {self.pid} still running at close, killing it")
            self.kill()
        if self.wait(timeout=REAP_TIMEOUT) is None:
            logger.warning(f"Child process {self.pid} did not exit after kill")

        for stream in (self.process.stdin, self.process.stdout):
            if stream is None:
                continue
            try:
                stream.close()
            except OSError as e:
                logger.debug(f"Error closing pipe of child {self.pid}: {e}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class PipeChildProcess(ChildProcess):
    """ChildProcess reading its capture pipe in non-blocking mode."""

    def __init__(self, process: subprocess.Popen, command: str):
        super().__init__(process, command)
        self._fd = process.stdout.fileno()
        self._eof = False
        os.set_blocking(self._fd, False)

    def read_available(self) -> bytes:
        if self._eof:
            return b""

        chunks = []
        total = 0
        while total < MAX_READ_PER_POLL:
            try:
                chunk = os.read(self._fd, READ_CHUNK_SIZE)
            except BlockingIOError:
                break
            except OSError as e:
                raise ChildStreamError(f"Failed to read child output: {e}") from e

            if not chunk:
                self._eof = True
                break
            chunks.append(chunk)
            total += len(chunk)
        return b"".join(chunks)

    def read_remaining(self) -> bytes:
        chunks = []
        while True:
            try:
                chunk = self.read_available()
            except ChildStreamError as e:
                logger.debug(f"Final read from child {self.pid} stopped: {e}")
                break
            if not chunk:
                break
            chunks.append(chunk)
        return b"".join(chunks)


class ThreadedChildProcess(ChildProcess):
    """ChildProcess whose capture pipe is drained by a reader thread."""

    JOIN_TIMEOUT = 1.0

    def __init__(self, process: subprocess.Popen, command: str):
        super().__init__(process, command)
        self._chunks = queue.Queue()
        self._reader = threading.Thread(
            target=self._pump,
            name=f"ffexec-reader-{process.pid}",
            daemon=True,
        )
        self._reader.start()

    def _pump(self):
        """Copy the capture pipe into the queue until it ends."""
        stream = self.process.stdout
        try:
            while True:
                chunk = stream.read(READ_CHUNK_SIZE)
                if not chunk:
                    break
                self._chunks.put(chunk)
        except (OSError, ValueError) as e:
            self._chunks.put(e)

    def read_available(self) -> bytes:
        chunks = []
        while True:
            try:
                item = self._chunks.get_nowait()
            except queue.Empty:
                break
            if isinstance(item, Exception):
                raise ChildStreamError(f"Failed to read child output: {item}") from item
            chunks.append(item)
        return b"".join(chunks)

    def read_remaining(self) -> bytes:
        self._reader.join(timeout=self.JOIN_TIMEOUT)
        try:
            return self.read_available()
        except ChildStreamError as e:
            logger.debug(f"Final read from child {self.pid} stopped: {e}")
            return b""


def spawn(command: str, threaded: Optional[bool] = None) -> ChildProcess:
    """
    Start a command through the system shell with redirected pipes.

    Args:
        command: Command string, passed to the shell verbatim
        threaded: Force the reader-thread implementation on or off; by
            default it is used only on Windows

    Returns:
        The running child

    Raises:
        LaunchError: If the pipes or the process could not be created
    """
    if threaded is None:
        threaded = IS_WINDOWS

    kwargs = {}
    if IS_WINDOWS:
        kwargs["creationflags"] = subprocess.CREATE_NEW_PROCESS_GROUP
    else:
        kwargs["start_new_session"] = True

    try:
        process = subprocess.Popen(
            command,
            shell=True,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            bufsize=0,
            **kwargs,
        )
    except (OSError, ValueError) as e:
        raise LaunchError(f"Failed to start command: {e}") from e

    child_class = ThreadedChildProcess if threaded else PipeChildProcess
    try:
        child = child_class(process, command)
    except (OSError, RuntimeError) as e:
        process.kill()
        process.wait()
        for stream in (process.stdin, process.stdout):
            if stream is not None:
                stream.close()
        raise LaunchError(f"Failed to set up output capture: {e}") from e

    logger.debug(f"Started child process {child.pid} ({child_class.__name__})")
    return child


# Signature of anything that can stand in for spawn(), e.g. in tests
Spawner = Callable[[str], ChildProcess]
