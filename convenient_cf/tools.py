"""
ffmpeg tools: version check and video format conversion.

Every command goes through an FFmpegExecutor, so overwrite prompts are
answered and errors are picked out of ffmpeg's output the same way for each
tool.
"""

import logging
from typing import Callable

from convenient_cf import __version__
from convenient_cf.config import Settings
from convenient_cf.ffexec import ExecutionResult, FFExecError, FFmpegExecutor
from convenient_cf.file_chooser import single_file_chooser
from convenient_cf.media_types import FileType, classify, classify_name

logger = logging.getLogger(__name__)

InputFunc = Callable[[str], str]


def dividing_line(length: int = 0) -> str:
    """Return a horizontal rule; 66 characters unless a length is given."""
    return "-" * (length if length > 0 else 66)


def build_command(*args) -> str:
    """Join arguments with single spaces. Nothing is quoted or escaped."""
    return " ".join(str(arg) for arg in args)


def about_this() -> None:
    print(f"Convenient_CF ffmpeg tools v{__version__}")
    print(
        "This tool provides various ffmpeg functionalities such as format "
        "conversion, audio extraction, and video merging."
    )


def report_result(result: ExecutionResult, full_output: bool = False) -> None:
    """Print the outcome of an execution."""
    if full_output:
        print(dividing_line(100))
        print(result.transcript, end="")
        print(dividing_line(100))

    if result.overwrite_confirmed:
        print("[!] Existing output file was overwritten")
    elif result.overwrite_prompted:
        print("[!] ffmpeg asked to overwrite the output file; the prompt was not answered")

    if result.success:
        print("[✓] Command completed successfully")
    else:
        print(f"[✗] Command failed (exit code {result.exit_code})")
        if result.last_error_line:
            print(f"    {result.last_error_line}")


def run_command(executor: FFmpegExecutor, command: str, full_output: bool = False) -> int:
    """Execute a command and print its outcome; returns a process exit status."""
    try:
        result = executor.execute(command)
    except FFExecError as e:
        print(f"[✗] {e}")
        return 1

    report_result(result, full_output=full_output)
    return 0 if result.success else 1


def check_ffmpeg_version(
    executor: FFmpegExecutor,
    ffmpeg_path: str = "ffmpeg",
    full_output: bool = False,
) -> int:
    """
    Check that ffmpeg can be run and print its version.

    Args:
        executor: Executor used to run "ffmpeg -version"
        ffmpeg_path: ffmpeg executable
        full_output: Print the complete version output instead of the first line

    Returns:
        0 if ffmpeg ran successfully, 1 otherwise
    """
    print("Checking ffmpeg version...")
    try:
        result = executor.execute(build_command(ffmpeg_path, "-version"))
    except FFExecError as e:
        print(f"[✗] Failed to execute command: {e}")
        return 1

    if result.exit_code != 0:
        print(f"[✗] Command execution failed with exit status: {result.exit_code}")
        return 1

    if full_output:
        print("Full output of ffmpeg version command:")
        print(dividing_line(100))
        print(result.transcript, end="")
        print(dividing_line(100))
    elif result.lines:
        print(result.lines[0])
    return 0


def convert_video_format(
    executor: FFmpegExecutor,
    settings: Settings,
    input_func: InputFunc = input,
) -> int:
    """
    Interactively convert one video file into another container/format.

    The input must be an existing video file and the output name must carry
    a video extension; ffmpeg picks the codecs from the output extension.

    Returns:
        0 on success, 1 on invalid input or a failed conversion
    """
    print("single file conversion(1) or multiple file conversion(2)?")
    try:
        choice = input_func("> ").strip()
    except EOFError:
        return 1

    if choice == "2":
        print("[!] Multiple file conversion is not available yet.")
        return 1

    input_path = single_file_chooser(
        "Please enter the video file path to convert:", input_func=input_func
    )
    output_path = single_file_chooser(
        "Please enter the output video file path:", input_func=input_func
    )
    return convert_file(executor, settings, input_path, output_path)


def convert_file(
    executor: FFmpegExecutor,
    settings: Settings,
    input_path: str,
    output_path: str,
) -> int:
    """Validate the paths and run "ffmpeg -i <input> <output>"."""
    if classify(input_path) != FileType.VIDEO:
        print("[✗] Error: The input file is not a valid video file.")
        return 1
    if classify_name(output_path) != FileType.VIDEO:
        print("[✗] Error: The output file path is not a valid video file path.")
        return 1

    ffmpeg_path = settings.get_string("ffmpeg_path", "ffmpeg")
    if executor.auto_overwrite:
        command = build_command(ffmpeg_path, "-i", input_path, output_path)
    else:
        # -n makes ffmpeg refuse to overwrite instead of asking
        command = build_command(ffmpeg_path, "-n", "-i", input_path, output_path)
    logger.debug(f"Conversion command: {command}")
    return run_command(executor, command, full_output=settings.get_bool("full_output"))
