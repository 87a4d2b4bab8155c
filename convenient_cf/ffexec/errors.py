"""Exceptions raised by the ffexec engine."""


class FFExecError(RuntimeError):
    """Base class for every error the engine surfaces."""


class LaunchError(FFExecError):
    """The pipes or the child process could not be created."""


class ConcurrentExecutionError(FFExecError):
    """execute() was called while another execution was still running."""

    def __init__(self, message: str = "An ffmpeg command is already running"):
        super().__init__(message)


class ChildStreamError(FFExecError):
    """Reading from or writing to the child's pipes failed after launch.

    Only used inside the engine. The read loop catches it and stops; it is
    never raised out of FFmpegExecutor.execute().
    """
