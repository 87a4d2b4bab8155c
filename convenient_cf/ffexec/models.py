"""Result model for ffexec."""

from dataclasses import dataclass

# Exit code reported until the child has been seen to terminate
EXIT_CODE_UNKNOWN = -1


@dataclass
class ExecutionResult:
    """Outcome of one FFmpegExecutor.execute() call."""

    success: bool = False
    exit_code: int = EXIT_CODE_UNKNOWN
    transcript: str = ""  # Every line the child printed, newline-terminated
    last_error_line: str = ""  # Most recent line matched as an error
    overwrite_prompted: bool = False
    overwrite_confirmed: bool = False  # Only ever True together with overwrite_prompted

    @property
    def exited(self) -> bool:
        """Whether the child's exit code was retrieved."""
        return self.exit_code != EXIT_CODE_UNKNOWN

    @property
    def lines(self):
        """The transcript split back into lines."""
        return self.transcript.splitlines()
