"""kmd error hierarchy.

All project exceptions inherit from KmdError, enabling:
- ``except KmdError`` at the top-level boundary (``kmd.cli.main``)
- Fine-grained catches deeper in the stack (``except NonZeroExitError``)

Hierarchy:
    KmdError
    ├── ConfigError
    ├── IOFailure
    ├── NonZeroExitError
    ├── ProcessTimeoutError
    └── UnknownFileTypeError
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence


class KmdError(Exception):
    """Base class for all kmd errors."""


class ConfigError(KmdError):
    """Configuration file could not be read or validated."""


class IOFailure(KmdError):
    """A filesystem or process-launch operation failed."""

    def __init__(self, path: str | Path, cause: BaseException) -> None:
        self.path = str(path)
        self.cause = cause
        super().__init__(f"{self.path}: {cause}")


class NonZeroExitError(KmdError):
    """A blocking invocation finished with a non-zero exit code."""

    def __init__(self, exit_code: int, output: Sequence[str] = ()) -> None:
        self.exit_code = exit_code
        self.output = tuple(output)
        super().__init__(f"Exit value: {exit_code}")


class ProcessTimeoutError(KmdError):
    """A blocking invocation exceeded its deadline and was killed."""

    def __init__(self, argv: Sequence[str], timeout: float, output: Sequence[str] = ()) -> None:
        self.argv = tuple(argv)
        self.timeout = timeout
        self.output = tuple(output)
        super().__init__(f"{self.argv[0] if self.argv else '?'}: timed out after {timeout:g}s")


class UnknownFileTypeError(KmdError):
    """No known category matches the file name."""

    _LABELS = {
        "media": "Unknown media file format",
        "archive": "Unknown archive type",
    }

    def __init__(self, filename: str, kind: str = "media") -> None:
        self.filename = filename
        self.kind = kind
        super().__init__(f"{self._LABELS.get(kind, 'Unknown file type')}: {filename}")


__all__ = [
    "ConfigError",
    "IOFailure",
    "KmdError",
    "NonZeroExitError",
    "ProcessTimeoutError",
    "UnknownFileTypeError",
]
