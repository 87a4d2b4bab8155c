"""Main Convenient_CF application: text menu and command-line interface."""

import argparse
import logging
import signal
import threading
from contextlib import contextmanager
from typing import Callable, List, Optional

from convenient_cf import __version__
from convenient_cf.config import Settings, load_settings
from convenient_cf.ffexec import FFmpegExecutor
from convenient_cf.tools import (
    about_this,
    check_ffmpeg_version,
    convert_file,
    convert_video_format,
    dividing_line,
    run_command,
)

logger = logging.getLogger(__name__)

InputFunc = Callable[[str], str]


def create_executor(settings: Settings) -> FFmpegExecutor:
    """Build an executor configured from the settings store."""
    return FFmpegExecutor(
        auto_overwrite=settings.get_bool("auto_overwrite", True),
        encoding=settings.get_string("console_encoding", "utf-8"),
    )


@contextmanager
def stop_on_interrupt(executor: FFmpegExecutor):
    """Turn Ctrl+C into executor.stop() for the duration of the block."""
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def handler(signum, frame):
        logger.info("Interrupted, stopping ffmpeg")
        executor.stop()

    previous = signal.signal(signal.SIGINT, handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def _read_choice(input_func: InputFunc) -> Optional[str]:
    try:
        return input_func("Please enter your choice (1-5): ").strip()
    except EOFError:
        return None


def ffmpeg_tools_menu(
    executor: FFmpegExecutor,
    settings: Settings,
    input_func: InputFunc = input,
) -> int:
    """The "ffmpeg tools" submenu."""
    ffmpeg_path = settings.get_string("ffmpeg_path", "ffmpeg")
    if check_ffmpeg_version(executor, ffmpeg_path) != 0:
        print("[✗] Error: ffmpeg is not installed or not accessible.")
        return 1

    print("1.ffmpeg version")
    print("2.convert video format")
    print("3.extract audio from video")
    print("4.merge videos")
    print("5.return to main menu")
    choice = _read_choice(input_func)
    print(dividing_line())

    if choice == "1":
        return check_ffmpeg_version(executor, ffmpeg_path, full_output=True)
    if choice == "2":
        print("Converting video format...")
        return convert_video_format(executor, settings, input_func=input_func)
    if choice in ("3", "4"):
        print("[!] This tool is not available yet.")
        return 0
    if choice == "5":
        print("Returning to main menu...")
        return 0

    print("Invalid choice. Please try again.")
    return 0


def main_menu(
    executor: FFmpegExecutor,
    settings: Settings,
    input_func: InputFunc = input,
) -> int:
    """Interactive main menu; loops until the user exits."""
    while True:
        print(f"Convenient_CF v{__version__}")
        print("1.ffmpeg tools")
        print("2.MinGW tools")
        print("3.Other tools")
        print("4.about")
        print("5.exit")
        choice = _read_choice(input_func)
        print(dividing_line())

        if choice is None or choice == "5":
            print("Exiting the program. Goodbye!")
            return 0
        if choice == "1":
            if ffmpeg_tools_menu(executor, settings, input_func=input_func) != 0:
                print("ffmpeg tools encountered an error.")
        elif choice in ("2", "3"):
            print("[!] These tools are not available yet.")
        elif choice == "4":
            about_this()
        else:
            print("Invalid choice. Please select a valid option.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Convenient_CF - ffmpeg console tools")
    parser.add_argument("--config", help="Path to the INI settings file")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("menu", help="Start the interactive menu (default)")

    version_parser = subparsers.add_parser("version", help="Show the ffmpeg version")
    version_parser.add_argument("--full", action="store_true", help="Print the complete version output")

    convert_parser = subparsers.add_parser("convert", help="Convert a video file")
    convert_parser.add_argument("input", help="Path to input video file")
    convert_parser.add_argument("output", help="Path to output video file")
    convert_parser.add_argument("--no-overwrite", action="store_true", help="Do not answer ffmpeg's overwrite prompt")

    run_parser = subparsers.add_parser("run", help="Run an arbitrary command under supervision")
    run_parser.add_argument("cmdline", metavar="COMMAND", help="Command string passed to the shell")

    return parser


def main(argv: Optional[List[str]] = None, settings: Optional[Settings] = None) -> int:
    """Command-line interface entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if settings is None:
        settings = load_settings(args.config)
    executor = create_executor(settings)
    full_output = settings.get_bool("full_output")

    with stop_on_interrupt(executor):
        if args.command == "version":
            return check_ffmpeg_version(
                executor, settings.get_string("ffmpeg_path", "ffmpeg"), full_output=args.full
            )
        if args.command == "convert":
            if args.no_overwrite:
                executor.set_auto_overwrite(False)
            return convert_file(executor, settings, args.input, args.output)
        if args.command == "run":
            return run_command(executor, args.cmdline, full_output=full_output)
        return main_menu(executor, settings)
