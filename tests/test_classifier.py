"""Tests for line reassembly and the output heuristics (no child process)."""

import random

import pytest

from convenient_cf.ffexec.classifier import (
    LineAssembler,
    is_error_line,
    is_overwrite_prompt,
    is_success_line,
)


# =============================================================================
# FIXTURES - literal ffmpeg output lines
# =============================================================================

PROMPT_LINE = "File 'out.mp4' already exists. Overwrite? [y/N]"
ERROR_LINE = "Error: Invalid argument"
SUMMARY_LINE = (
    "video:1024kB audio:256kB subtitle:0kB other streams:0kB "
    "global headers:0kB muxing overhead: 0.512345%"
)
NON_MONOTONOUS_LINE = (
    "[mp4 @ 0x55d5c] Non-monotonous DTS in output stream 0:1; previous: 1024, "
    "current: 1000; changing to 1025. Error correction may result in incorrect timestamps"
)

SAMPLE_OUTPUT = (
    "ffmpeg version 6.0 Copyright (c) 2000-2023 the FFmpeg developers\n"
    "Input #0, mov,mp4,m4a,3gp,3g2,mj2, from 'in.mp4':\r\n"
    f"{PROMPT_LINE} y\n"
    "文件已存在，是否覆盖？\n"
    "\n"
    "frame=  120 fps= 60 q=28.0 size=     256kB time=00:00:04.00 bitrate= 524.3kbits/s\r\n"
    f"{SUMMARY_LINE}\n"
).encode("utf-8")


def expected_lines(data: bytes):
    lines = []
    for raw in data.split(b"\n")[:-1]:
        if raw.endswith(b"\r"):
            raw = raw[:-1]
        lines.append(raw.decode("utf-8"))
    return lines


class TestOverwritePrompt:

    @pytest.mark.parametrize("line", [
        PROMPT_LINE,
        "FILE 'A.MKV' ALREADY EXISTS. OVERWRITE? [Y/N]",
        "Overwrite? [y/N]",
        "Do you want to overwrite (y/n) ",
        "output.mp4 already exists, overwrite it",
        "文件已存在，是否覆盖？(y/n)",
    ])
    def test_prompt_lines_match(self, line):
        assert is_overwrite_prompt(line)

    @pytest.mark.parametrize("line", [
        "",
        "Stream #0:0: Video: h264 (High), yuv420p, 1920x1080",
        "Output file already exists",
        "Overwriting output file",
        "文件已存在",
    ])
    def test_other_lines_do_not_match(self, line):
        assert not is_overwrite_prompt(line)


class TestErrorLine:

    @pytest.mark.parametrize("line", [
        ERROR_LINE,
        "in.mp4: No such file or directory (Unknown encoder)",
        "Conversion failed!",
        "Unable to find a suitable output format for 'out.xyz'",
        "sh: 1: ffmpeg: not found",
        "out.mp4: Permission denied",
        "Access denied",
        "Cannot allocate memory",
    ])
    def test_error_keywords_match(self, line):
        assert is_error_line(line)

    def test_non_monotonous_warning_is_excluded(self):
        assert not is_error_line(NON_MONOTONOUS_LINE)

    @pytest.mark.parametrize("line", [
        "",
        "frame=  120 fps= 60 q=28.0 size=256kB time=00:00:04.00",
        SUMMARY_LINE,
    ])
    def test_progress_lines_do_not_match(self, line):
        assert not is_error_line(line)


class TestSuccessLine:

    def test_stream_summary_matches(self):
        assert is_success_line("video:10kB audio:5kB subtitle:0kB other streams:0kB")

    def test_muxing_overhead_matches(self):
        assert is_success_line("muxing overhead: unknown")
        assert is_success_line(SUMMARY_LINE)

    def test_partial_summary_does_not_match(self):
        assert not is_success_line("video:10kB audio:5kB other streams:0kB")
        assert not is_success_line("Stream #0:1: Audio: aac")

    def test_predicates_are_independent(self):
        line = f"{ERROR_LINE} {SUMMARY_LINE}"
        assert is_error_line(line)
        assert is_success_line(line)


class TestLineAssembler:

    def test_single_chunk(self):
        assembler = LineAssembler()
        assert assembler.feed(SAMPLE_OUTPUT) == expected_lines(SAMPLE_OUTPUT)
        assert assembler.pending is None

    def test_carriage_return_is_stripped(self):
        assembler = LineAssembler()
        assert assembler.feed(b"one\r\ntwo\r\n") == ["one", "two"]

    def test_only_one_trailing_carriage_return_is_stripped(self):
        assembler = LineAssembler()
        assert assembler.feed(b"a\r\r\n") == ["a\r"]

    def test_partial_line_is_carried_over(self):
        assembler = LineAssembler()
        assert assembler.feed(b"frame=1") == []
        assert assembler.pending == "frame=1"
        assert assembler.feed(b"0\nnext") == ["frame=10"]
        assert assembler.pending == "next"

    def test_every_two_way_split_gives_same_lines(self):
        expected = expected_lines(SAMPLE_OUTPUT)
        for i in range(len(SAMPLE_OUTPUT) + 1):
            assembler = LineAssembler()
            lines = assembler.feed(SAMPLE_OUTPUT[:i]) + assembler.feed(SAMPLE_OUTPUT[i:])
            assert lines == expected, f"split at {i}"

    def test_byte_by_byte_gives_same_lines(self):
        assembler = LineAssembler()
        lines = []
        for i in range(len(SAMPLE_OUTPUT)):
            lines.extend(assembler.feed(SAMPLE_OUTPUT[i:i + 1]))
        assert lines == expected_lines(SAMPLE_OUTPUT)

    def test_random_splits_give_same_lines(self):
        rng = random.Random(1234)
        expected = expected_lines(SAMPLE_OUTPUT)
        for _ in range(200):
            cuts = sorted(rng.sample(range(1, len(SAMPLE_OUTPUT)), rng.randint(1, 12)))
            assembler = LineAssembler()
            lines = []
            start = 0
            for cut in cuts + [len(SAMPLE_OUTPUT)]:
                lines.extend(assembler.feed(SAMPLE_OUTPUT[start:cut]))
                start = cut
            assert lines == expected

    def test_multibyte_character_split_across_chunks(self):
        data = "已存在\n".encode("utf-8")
        assembler = LineAssembler()
        assert assembler.feed(data[:2]) == []
        assert assembler.feed(data[2:]) == ["已存在"]

    def test_undecodable_bytes_are_replaced(self):
        assembler = LineAssembler()
        assert assembler.feed(b"bad \xff byte\n") == ["bad \ufffd byte"]

    def test_other_encoding(self):
        assembler = LineAssembler(encoding="gbk")
        assert assembler.feed("覆盖\n".encode("gbk")) == ["覆盖"]

    def test_flush_returns_unterminated_tail(self):
        assembler = LineAssembler()
        assembler.feed(b"done\nlast words\r")
        assert assembler.flush() == "last words"
        assert assembler.pending is None
        assert assembler.flush() is None
