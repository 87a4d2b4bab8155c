"""Classification of paths into video, audio, directory or other."""

import os
from enum import Enum
from pathlib import Path


class FileType(Enum):
    VIDEO = "video"
    AUDIO = "audio"
    DIRECTORY = "directory"
    OTHER = "other"


VIDEO_EXTENSIONS = frozenset({
    ".mp4", ".avi", ".mkv", ".mov", ".wmv", ".flv", ".webm", ".m4v",
    ".mpg", ".mpeg", ".3gp", ".mts", ".m2ts", ".vob", ".ogv", ".qt",
    ".rm", ".rmvb", ".asf", ".swf", ".f4v", ".m4s",
})

AUDIO_EXTENSIONS = frozenset({
    ".mp3", ".wav", ".flac", ".aac", ".ogg", ".wma", ".m4a", ".opus",
    ".aiff", ".alac", ".amr", ".ape", ".au", ".mid", ".midi", ".ra",
    ".ram", ".voc", ".weba",
})

_DESCRIPTIONS = {
    FileType.VIDEO: "video file",
    FileType.AUDIO: "audio file",
    FileType.DIRECTORY: "directory",
    FileType.OTHER: "other file",
}


def classify_name(path: str) -> FileType:
    """Classify by extension only; the path does not need to exist."""
    ext = Path(path).suffix.lower()
    if ext in VIDEO_EXTENSIONS:
        return FileType.VIDEO
    if ext in AUDIO_EXTENSIONS:
        return FileType.AUDIO
    return FileType.OTHER


def classify(path: str) -> FileType:
    """
    Classify an existing path.

    Directories are DIRECTORY, regular files are classified by extension,
    and anything that does not exist or cannot be inspected is OTHER.
    """
    if not path:
        return FileType.OTHER
    try:
        if os.path.isdir(path):
            return FileType.DIRECTORY
        if os.path.isfile(path):
            return classify_name(path)
    except (OSError, ValueError):
        pass
    return FileType.OTHER


def describe(file_type: FileType) -> str:
    return _DESCRIPTIONS.get(file_type, "unknown type")
