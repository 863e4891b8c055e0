"""File name classification by suffix.

Matching is a case-sensitive ``endswith(".<ext>")`` test against fixed
allow-lists. Existing directories count as audio (a directory of tracks is
handed to the audio player as a playlist).
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Dict, Tuple

from .errors import UnknownFileTypeError
from .log import get_logger

logger = get_logger(__name__)


class FileCategory(str, Enum):
    AUDIO = "audio"
    VIDEO = "video"
    TAR = "tar"
    TARGZ = "targz"
    TARBZ2 = "tarbz2"
    ZIP = "zip"
    RAR = "rar"
    UNKNOWN = "unknown"

    @property
    def is_archive(self) -> bool:
        return self in ARCHIVE_CATEGORIES

    @property
    def is_media(self) -> bool:
        return self in (FileCategory.AUDIO, FileCategory.VIDEO)


ARCHIVE_CATEGORIES = frozenset(
    {FileCategory.TAR, FileCategory.TARGZ, FileCategory.TARBZ2, FileCategory.ZIP, FileCategory.RAR}
)

EXTENSIONS: Dict[FileCategory, Tuple[str, ...]] = {
    FileCategory.AUDIO: ("mp3", "ogg", "wav", "flac"),
    FileCategory.VIDEO: ("mpg", "mp4", "mkv", "avi"),
    FileCategory.TAR: ("tar",),
    FileCategory.TARGZ: ("tar.gz", "tgz"),
    FileCategory.TARBZ2: ("tar.bz2", "tbz", "tbz2", "tb2"),
    FileCategory.ZIP: ("zip",),
    FileCategory.RAR: ("rar",),
}


def has_ext(filename: str, *extensions: str) -> bool:
    return any(filename.endswith(f".{ext}") for ext in extensions)


def detect(filename: str) -> FileCategory:
    """Return the category for filename, FileCategory.UNKNOWN when nothing matches."""
    if Path(filename).is_dir():
        return FileCategory.AUDIO
    for category, extensions in EXTENSIONS.items():
        if has_ext(filename, *extensions):
            return category
    return FileCategory.UNKNOWN


def classify(filename: str, *, kind: str = "media") -> FileCategory:
    category = detect(filename)
    logger.debug("filetype.classified", filename=filename, category=category.value)
    if category is FileCategory.UNKNOWN:
        raise UnknownFileTypeError(filename, kind)
    return category


__all__ = [
    "ARCHIVE_CATEGORIES",
    "EXTENSIONS",
    "FileCategory",
    "classify",
    "detect",
    "has_ext",
]
