"""Tests for the console file prompts."""

from convenient_cf.file_chooser import file_chooser, multi_file_chooser, single_file_chooser


def scripted_input(*answers):
    """input() replacement returning answers in order, then raising EOFError."""
    remaining = list(answers)

    def fake_input(prompt=""):
        if not remaining:
            raise EOFError
        return remaining.pop(0)

    return fake_input


class Output:
    def __init__(self):
        self.lines = []

    def __call__(self, text=""):
        self.lines.append(text)


class TestSingleFileChooser:

    def test_path_is_trimmed(self):
        out = Output()
        path = single_file_chooser(input_func=scripted_input("  \tin.mp4 \t"), output_func=out)
        assert path == "in.mp4"
        assert out.lines[-1] == "File path accepted: in.mp4"

    def test_empty_answers_are_retried(self):
        out = Output()
        path = single_file_chooser(input_func=scripted_input("", "   ", "movie.mkv"), output_func=out)
        assert path == "movie.mkv"
        assert any("1 attempts remaining" in line for line in out.lines)

    def test_gives_up_after_max_attempts(self):
        out = Output()
        path = single_file_chooser(
            max_attempts=2, input_func=scripted_input("", "", "late.mp4"), output_func=out
        )
        assert path == ""
        assert out.lines[-1] == "Maximum attempts reached. Process terminated."

    def test_eof_returns_empty_string(self):
        assert single_file_chooser(input_func=scripted_input(), output_func=Output()) == ""


class TestMultiFileChooser:

    def test_reads_until_empty_line(self):
        paths = multi_file_chooser(
            input_func=scripted_input("a.mp4", " b.mp4 ", "", "ignored.mp4"),
            output_func=Output(),
        )
        assert paths == ["a.mp4", "b.mp4"]

    def test_reads_until_eof(self):
        paths = multi_file_chooser(input_func=scripted_input("a.mp4"), output_func=Output())
        assert paths == ["a.mp4"]

    def test_no_paths(self):
        out = Output()
        assert multi_file_chooser(input_func=scripted_input(""), output_func=out) == []
        assert out.lines[-1] == "No files entered. Process terminated."


def test_file_chooser_dispatch():
    assert file_chooser(input_func=scripted_input("x.mp4"), output_func=Output()) == ["x.mp4"]
    assert file_chooser(input_func=scripted_input(), output_func=Output()) == []
    assert file_chooser(
        allow_multiple=True, input_func=scripted_input("x.mp4", "y.mp4", ""), output_func=Output()
    ) == ["x.mp4", "y.mp4"]
