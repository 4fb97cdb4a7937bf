"""File location and buffer services for delete-file descriptors.

The builder never performs I/O. It consumes locations and lengths that
storage layers have already resolved, through the narrow protocols below.
They match the shape of PyIceberg's ``pyiceberg.io`` abstractions
(``InputFile.location``, ``len(input_file)``, ``OutputFile.to_input_file()``)
and of ``pyarrow.fs.FileInfo`` (``path``, ``size``), so objects from either
library can be passed directly.

Protocols:
    FileStatusLike: Resolved file-system entry (path + size)
    InputFile: Readable file handle (location + length)
    OutputFile: Writable file handle convertible to an InputFile
    EncryptionKeyMetadata: Wrapped encryption key
    EncryptedOutputFile: OutputFile paired with its key metadata

Example:
    >>> status = FileStatus(path="s3://bucket/deletes/a.parquet", size=512)
    >>> resolve_location(StatusInputFile(status))
    ('s3://bucket/deletes/a.parquet', 512)
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

BytesLike = bytes | bytearray | memoryview


# =============================================================================
# Protocols
# =============================================================================


@runtime_checkable
class FileStatusLike(Protocol):
    """A resolved file-system entry."""

    @property
    def path(self) -> str: ...

    @property
    def size(self) -> int: ...


@runtime_checkable
class InputFile(Protocol):
    """A readable file handle."""

    @property
    def location(self) -> str: ...

    def __len__(self) -> int: ...


class OutputFile(Protocol):
    """A writable file handle."""

    @property
    def location(self) -> str: ...

    def to_input_file(self) -> InputFile: ...


@runtime_checkable
class EncryptionKeyMetadata(Protocol):
    """Wrapped encryption key stored alongside a file."""

    def buffer(self) -> bytes: ...


class EncryptedOutputFile(Protocol):
    """An output file paired with the key metadata used to encrypt it."""

    def encrypting_output_file(self) -> OutputFile: ...

    def key_metadata(self) -> EncryptionKeyMetadata | None: ...


# =============================================================================
# Concrete Types
# =============================================================================


class FileStatus(BaseModel):
    """Immutable file-system entry.

    Attributes:
        path: Canonical path or URI of the file.
        size: File length in bytes.

    Example:
        >>> FileStatus(path="/tmp/deletes.avro", size=10).size
        10
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str = Field(..., min_length=1, description="Path or URI of the file")
    size: int = Field(..., ge=0, description="File length in bytes")

    @classmethod
    def from_file_info(cls, info: FileStatusLike) -> FileStatus:
        """Build from any status object, such as ``pyarrow.fs.FileInfo``."""
        return cls(path=str(info.path), size=info.size)


class StatusInputFile:
    """Input file backed by an already-resolved file status.

    Location and length come from the status, so a builder given this
    handle derives exactly what it would derive from the status itself.
    """

    def __init__(self, status: FileStatusLike) -> None:
        self._status = status

    @property
    def status(self) -> FileStatusLike:
        return self._status

    @property
    def location(self) -> str:
        return str(self._status.path)

    def __len__(self) -> int:
        return self._status.size

    def __repr__(self) -> str:
        return f"StatusInputFile({self.location!r}, size={len(self)})"


# =============================================================================
# Services
# =============================================================================


def status_location(status: FileStatusLike) -> tuple[str, int]:
    """Location and length of a file status."""
    return str(status.path), status.size


def resolve_location(handle: FileStatusLike | InputFile) -> tuple[str, int]:
    """Resolve the canonical location and byte length of a file handle.

    Handles wrapping a file status are resolved through the status; any
    other input file through its own ``location`` and ``len()``.

    Args:
        handle: File status or input file.

    Returns:
        Tuple of (location, length in bytes).
    """
    if isinstance(handle, StatusInputFile):
        return status_location(handle.status)
    if isinstance(handle, InputFile):
        return handle.location, len(handle)
    return status_location(handle)


def copy_buffer(buffer: BytesLike | None) -> bytes | None:
    """Independent immutable copy of a byte buffer."""
    if buffer is None:
        return None
    return bytes(buffer)


__all__ = [
    "BytesLike",
    "EncryptedOutputFile",
    "EncryptionKeyMetadata",
    "FileStatus",
    "FileStatusLike",
    "InputFile",
    "OutputFile",
    "StatusInputFile",
    "copy_buffer",
    "resolve_location",
    "status_location",
]
