"""
ffexec - supervised execution of ffmpeg commands

Launches a command through the system shell, reads its merged output as it
is produced, answers ffmpeg's "overwrite?" prompt when allowed to, and
reports the outcome as an ExecutionResult.
"""

from convenient_cf.ffexec.errors import (
    FFExecError,
    LaunchError,
    ConcurrentExecutionError,
    ChildStreamError,
)
from convenient_cf.ffexec.models import ExecutionResult, EXIT_CODE_UNKNOWN
from convenient_cf.ffexec.executor import FFmpegExecutor

__all__ = [
    "FFExecError",
    "LaunchError",
    "ConcurrentExecutionError",
    "ChildStreamError",
    "ExecutionResult",
    "EXIT_CODE_UNKNOWN",
    "FFmpegExecutor",
]
