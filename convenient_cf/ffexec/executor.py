"""
Supervised execution of ffmpeg commands.

FFmpegExecutor runs one command at a time on a worker thread. The worker
owns everything that changes during the run (the child, the line assembler
and the ExecutionResult) and hands the finished result to the waiting caller
through a single-slot queue.
"""

import io
import logging
import queue
import threading
import time
from typing import Optional

from convenient_cf.ffexec.classifier import (
    LineAssembler,
    is_error_line,
    is_overwrite_prompt,
    is_success_line,
)
from convenient_cf.ffexec.errors import (
    ChildStreamError,
    ConcurrentExecutionError,
    LaunchError,
)
from convenient_cf.ffexec.models import EXIT_CODE_UNKNOWN, ExecutionResult
from convenient_cf.ffexec.spawn import REAP_TIMEOUT, ChildProcess, Spawner, spawn

logger = logging.getLogger(__name__)


class _Run:
    """Worker-owned state of a single execute() call."""

    def __init__(self, child: ChildProcess, encoding: str):
        self.child = child
        self.result = ExecutionResult()
        self.assembler = LineAssembler(encoding)
        self.transcript = io.StringIO()
        # Set once the current prompt has been handled, so it is handled only once
        self.prompt_answered = False


class FFmpegExecutor:
    """
    Run ffmpeg commands and watch their output.

    The command's combined stdout/stderr is split into lines as it arrives.
    Each line is appended to the transcript and tested for an overwrite
    prompt, an error and the end-of-encode summary. When auto-overwrite is
    on, a detected prompt is answered by writing "y" to the child's stdin;
    when it is off, stdin is closed so the prompt reads end of input.

    Only one command may run per executor; a second execute() call made
    while one is active is rejected. There is no built-in timeout: call
    stop() from another thread to cancel.

    Attributes:
        encoding (str): Encoding of the child's console output
    """

    CONFIRM_TOKEN = b"y\n"
    POLL_INTERVAL = 0.01  # seconds between polls when the child is quiet

    def __init__(
        self,
        auto_overwrite: bool = True,
        encoding: str = "utf-8",
        spawner: Optional[Spawner] = None,
    ):
        """
        Initialize a new FFmpegExecutor.

        Args:
            auto_overwrite: Answer ffmpeg's overwrite prompt with "y"
            encoding: Encoding used to decode the child's output
            spawner: Replacement for spawn(), returning a ChildProcess
        """
        self.encoding = encoding
        self._auto_overwrite = auto_overwrite
        self._spawner = spawner or spawn
        # Set by stop() while an execution holds _execute_lock; cleared before the lock is released
        self._stop_requested = threading.Event()
        self._execute_lock = threading.Lock()
        self._child_lock = threading.Lock()
        self._child: Optional[ChildProcess] = None
        self._last_error = ""
        # Evaluated in order for every completed line; all matching effects apply
        self._rules = (
            (is_overwrite_prompt, self._on_overwrite_prompt),
            (is_error_line, self._on_error_line),
            (is_success_line, self._on_success_line),
        )

    def set_auto_overwrite(self, auto_overwrite: bool) -> None:
        """Enable or disable answering the overwrite prompt automatically."""
        self._auto_overwrite = auto_overwrite

    @property
    def auto_overwrite(self) -> bool:
        return self._auto_overwrite

    def is_running(self) -> bool:
        """
        Whether an execution is currently in progress.

        Stays True after stop() until the stopped child has been reaped and
        execute() has returned, so a new execute() is accepted whenever this
        reports False.
        """
        return self._execute_lock.locked()

    def get_last_error(self) -> str:
        """Return the most recent error line seen, or the last launch failure."""
        return self._last_error

    def execute(self, command: str) -> ExecutionResult:
        """
        Run a command and block until it finishes or is stopped.

        Args:
            command: Command string, handed to the system shell verbatim

        Returns:
            The result of the run, including everything printed before a stop()

        Raises:
            ConcurrentExecutionError: If another execution is in progress
            LaunchError: If the child process could not be started
        """
        if not self._execute_lock.acquire(blocking=False):
            raise ConcurrentExecutionError()

        try:
            handoff = queue.Queue(maxsize=1)
            worker = threading.Thread(
                target=self._worker,
                args=(command, handoff),
                name="ffexec-worker",
                daemon=True,
            )
            worker.start()
            try:
                outcome = handoff.get()
            except BaseException:
                # Interrupted while waiting: cancel so the worker can finish
                self.stop()
                worker.join()
                raise
            worker.join()
        finally:
            with self._child_lock:
                self._stop_requested.clear()
                self._execute_lock.release()

        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def stop(self) -> None:
        """
        Cancel the running execution, if any.

        The read loop exits on its next poll and the child is killed. The
        in-flight execute() call still returns what was collected so far.
        Calling stop() with nothing running does nothing; a stop() that
        arrives while the child is still being launched kills it as soon as
        it starts.
        """
        with self._child_lock:
            if not self._execute_lock.locked():
                return
            self._stop_requested.set()
            child = self._child
        if child is not None and child.is_alive:
            logger.info(f"Stopping child process {child.pid}")
            child.kill()

    def _worker(self, command: str, handoff: queue.Queue) -> None:
        """Thread target: run the command and hand over the result or the error."""
        try:
            outcome = self._execute_internal(command)
        except Exception as e:
            outcome = e
        handoff.put(outcome)

    def _execute_internal(self, command: str) -> ExecutionResult:
        logger.info(f"Running command: {command}")
        try:
            child = self._spawner(command)
        except LaunchError as e:
            logger.error(f"Could not launch command: {e}")
            self._last_error = str(e)
            raise

        with self._child_lock:
            self._child = child
            cancelled = self._stop_requested.is_set()

        run = _Run(child, self.encoding)
        try:
            if cancelled:
                logger.info("Execution was stopped before the child started, killing it")
                child.kill()
            self._read_loop(run)
            self._finish(run)
        finally:
            with self._child_lock:
                self._child = None
            child.close()

        result = run.result
        logger.info(
            f"Command finished: exit_code={result.exit_code}, success={result.success}"
        )
        return result

    def _read_loop(self, run: _Run) -> None:
        """Pull output and poll for exit until the child ends or stop() is called."""
        child = run.child
        while not self._stop_requested.is_set():
            try:
                chunk = child.read_available()
            except ChildStreamError as e:
                logger.warning(f"Stopped reading output of child {child.pid}: {e}")
                return

            if chunk:
                self._consume(run, chunk)

            exit_code = child.poll()
            if exit_code is not None:
                run.result.exit_code = exit_code
                return

            if not chunk:
                time.sleep(self.POLL_INTERVAL)

        logger.info(f"Execution of child {child.pid} cancelled")

    def _finish(self, run: _Run) -> None:
        """Collect the exit code and trailing output, then settle success."""
        child = run.child
        result = run.result

        if result.exit_code == EXIT_CODE_UNKNOWN:
            if not self._stop_requested.is_set():
                # The read loop failed while the child may still be running
                exit_code = child.poll()
            else:
                exit_code = child.wait(timeout=REAP_TIMEOUT)
            if exit_code is not None:
                result.exit_code = exit_code

        remaining = child.read_remaining()
        if remaining:
            self._consume(run, remaining)

        tail = run.assembler.flush()
        if tail:
            self._handle_line(run, tail)

        if (
            result.exit_code == 0
            and not result.success
            and not result.last_error_line
        ):
            result.success = True

        result.transcript = run.transcript.getvalue()

    def _consume(self, run: _Run, chunk: bytes) -> None:
        """Feed a chunk through the assembler and classify the completed lines."""
        for line in run.assembler.feed(chunk):
            self._handle_line(run, line)
            run.prompt_answered = False

        # ffmpeg leaves its prompt unterminated while it waits for an answer
        pending = run.assembler.pending
        if pending and not run.prompt_answered and is_overwrite_prompt(pending):
            self._on_overwrite_prompt(run, pending)

    def _handle_line(self, run: _Run, line: str) -> None:
        run.transcript.write(line + "\n")
        for predicate, effect in self._rules:
            if predicate(line):
                effect(run, line)

    def _on_overwrite_prompt(self, run: _Run, line: str) -> None:
        result = run.result
        result.overwrite_prompted = True
        if not self._auto_overwrite:
            if not run.prompt_answered:
                run.prompt_answered = True
                logger.info(f"Declining overwrite prompt: {line}")
                self._decline(run.child)
            return

        result.overwrite_confirmed = True
        if run.prompt_answered:
            return
        run.prompt_answered = True
        logger.debug(f"Answering overwrite prompt: {line}")
        self._respond(run.child, self.CONFIRM_TOKEN)

    def _on_error_line(self, run: _Run, line: str) -> None:
        logger.debug(f"Error line: {line}")
        run.result.last_error_line = line
        self._last_error = line

    def _on_success_line(self, run: _Run, line: str) -> None:
        logger.debug(f"Success line: {line}")
        run.result.success = True

    def _respond(self, child: ChildProcess, token: bytes) -> None:
        """Write a reply to the child; failures are ignored."""
        try:
            child.write(token)
        except ChildStreamError as e:
            logger.debug(f"Could not answer child {child.pid}: {e}")

    def _decline(self, child: ChildProcess) -> None:
        """Close the child's stdin so a prompt waiting for an answer reads end of input."""
        try:
            child.close_input()
        except ChildStreamError as e:
            logger.debug(f"Could not close input of child {child.pid}: {e}")
