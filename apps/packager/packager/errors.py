"""Authoring-time packaging errors.

None of these are retried internally; they propagate to the caller and
no partial artifact is produced.
"""

import zipfile
import zlib
from typing import Optional


class PackagerError(Exception):
    """Base class for authoring-time packaging failures."""


class ResourceLoadError(PackagerError):
    """Raised when at least one bootstrap resource could not be fetched."""

    def __init__(self, message: str, failed: Optional[list[str]] = None):
        self.failed = failed or []
        super().__init__(message)


class FetchError(PackagerError):
    """Raised when a remote project or asset cannot be retrieved."""

    def __init__(self, url: str, message: str, status_code: Optional[int] = None):
        self.url = url
        self.status_code = status_code
        super().__init__(f"{message}: {url}")


class RuntimeLoadError(PackagerError):
    """Raised when project bytes cannot be parsed or loaded by the runtime."""


class ArchiveError(PackagerError):
    """Raised when the serialized project is not a readable archive."""


# What zipfile can raise while opening or reading a damaged container:
# a bad directory, a corrupt deflate stream, an encrypted entry, an
# unsupported compression method or a truncated member.
ARCHIVE_READ_ERRORS = (
    zipfile.BadZipFile,
    zlib.error,
    RuntimeError,
    NotImplementedError,
    EOFError,
)
