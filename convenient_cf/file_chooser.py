"""Console prompts for file paths."""

from typing import Callable, List

InputFunc = Callable[[str], str]
OutputFunc = Callable[[str], None]


def _clean(text: str) -> str:
    return text.strip(" \t")


def single_file_chooser(
    prompt: str = "Please enter the file path:",
    max_attempts: int = 3,
    input_func: InputFunc = input,
    output_func: OutputFunc = print,
) -> str:
    """
    Ask for one file path.

    Args:
        prompt: Message shown before the first attempt
        max_attempts: Number of empty answers tolerated before giving up
        input_func: Function used to read a line (defaults to input)
        output_func: Function used to print messages (defaults to print)

    Returns:
        The trimmed path, or "" on end of input or after too many empty answers
    """
    output_func(prompt)
    attempts = 0

    while attempts < max_attempts:
        try:
            answer = _clean(input_func("> "))
        except EOFError:
            output_func("\nInput terminated (EOF). Returning empty string.")
            return ""

        if answer:
            output_func(f"File path accepted: {answer}")
            return answer

        attempts += 1
        if attempts < max_attempts:
            output_func(
                f"Input cannot be empty. Please try again. "
                f"({max_attempts - attempts} attempts remaining)"
            )
        else:
            output_func("Maximum attempts reached. Process terminated.")

    return ""


def multi_file_chooser(
    prompt: str = "Please enter file paths:",
    input_func: InputFunc = input,
    output_func: OutputFunc = print,
) -> List[str]:
    """Ask for file paths, one per line, until an empty line or end of input."""
    output_func(prompt)
    output_func("Enter file paths (one per line). Press Enter on an empty line to finish:")
    paths = []

    while True:
        try:
            answer = _clean(input_func(f"File {len(paths) + 1}: "))
        except EOFError:
            output_func("\nInput terminated (EOF).")
            break

        if not answer:
            if paths:
                output_func(f"Finished entering {len(paths)} file(s).")
            else:
                output_func("No files entered. Process terminated.")
            break
        paths.append(answer)

    return paths


def file_chooser(
    allow_multiple: bool = False,
    prompt: str = "Please enter the file path:",
    input_func: InputFunc = input,
    output_func: OutputFunc = print,
) -> List[str]:
    """Ask for one or several paths; always returns a list."""
    if allow_multiple:
        return multi_file_chooser(prompt, input_func=input_func, output_func=output_func)

    path = single_file_chooser(prompt, input_func=input_func, output_func=output_func)
    return [path] if path else []
