"""
Line reassembly and heuristic classification of ffmpeg output.

ffmpeg has no machine-readable status channel on its console, so the engine
recognises prompts, errors and completion by looking for well-known
substrings in each line it prints.
"""

from typing import List, Optional

# Overwrite prompt, e.g. "File 'out.mp4' already exists. Overwrite? [y/N]"
_PROMPT_EXISTS = "already exists"
_PROMPT_OVERWRITE = "overwrite"
_PROMPT_TOKENS = ("overwrite?", "overwrite (y/n)")
# Chinese UI: "文件已存在，是否覆盖？"
_PROMPT_EXISTS_ZH = "已存在"
_PROMPT_OVERWRITE_ZH = "覆盖"

ERROR_KEYWORDS = (
    "error",
    "failed",
    "invalid",
    "unable",
    "cannot",
    "unknown",
    "not found",
    "permission denied",
    "access denied",
)
# "Non-monotonous DTS in output stream" is a harmless muxer warning
BENIGN_ERROR_MARKERS = ("non-monotonous",)

# Final statistics line, e.g.
# "video:1024kB audio:256kB subtitle:0kB other streams:0kB global headers:0kB muxing overhead: 0.5%"
_SUCCESS_SECTIONS = ("video:", "audio:", "subtitle:")
_SUCCESS_OVERHEAD = "muxing overhead"


def is_overwrite_prompt(line: str) -> bool:
    """Check whether a line asks if an existing output file may be replaced."""
    lowered = line.lower()

    if _PROMPT_EXISTS in lowered and _PROMPT_OVERWRITE in lowered:
        return True

    if any(token in lowered for token in _PROMPT_TOKENS):
        return True

    return _PROMPT_EXISTS_ZH in line and _PROMPT_OVERWRITE_ZH in line


def is_error_line(line: str) -> bool:
    """Check whether a line reports an error.

    Lines carrying a known benign diagnostic are never treated as errors,
    even when they also contain an error keyword.
    """
    lowered = line.lower()

    if any(marker in lowered for marker in BENIGN_ERROR_MARKERS):
        return False

    return any(keyword in lowered for keyword in ERROR_KEYWORDS)


def is_success_line(line: str) -> bool:
    """Check whether a line is ffmpeg's end-of-encode summary."""
    lowered = line.lower()

    if all(section in lowered for section in _SUCCESS_SECTIONS):
        return True

    return _SUCCESS_OVERHEAD in lowered


class LineAssembler:
    """
    Turn arbitrarily split byte chunks into complete lines.

    Bytes after the last newline are carried over to the next feed() call.
    Lines are split on raw bytes before decoding, so a multi-byte character
    split across two chunks is decoded intact.

    Attributes:
        encoding (str): Encoding used to decode each completed line
    """

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding
        self._pending = b""

    def _decode(self, raw: bytes) -> str:
        try:
            return raw.decode(self.encoding, errors="replace")
        except LookupError:
            return raw.decode("latin-1", errors="replace")

    def feed(self, chunk: bytes) -> List[str]:
        """
        Append a chunk and return every line it completed.

        Args:
            chunk: Raw bytes read from the child

        Returns:
            The completed lines in arrival order, without the newline and
            without a trailing carriage return
        """
        data = self._pending + chunk
        *complete, self._pending = data.split(b"\n")

        lines = []
        for raw in complete:
            if raw.endswith(b"\r"):
                raw = raw[:-1]
            lines.append(self._decode(raw))
        return lines

    @property
    def pending(self) -> Optional[str]:
        """The decoded carry-over text, or None when nothing is pending."""
        if not self._pending:
            return None
        return self._decode(self._pending)

    def flush(self) -> Optional[str]:
        """Return the unterminated remainder once the stream has ended."""
        remainder = self.pending
        self._pending = b""
        if remainder is not None and remainder.endswith("\r"):
            remainder = remainder[:-1]
        return remainder
