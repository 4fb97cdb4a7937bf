"""Exception types for floe-deletes package.

This module defines the exception hierarchy raised while assembling
delete-file descriptors. All exceptions inherit from DeleteFileError to
enable catch-all error handling.

Exception Hierarchy:
    DeleteFileError (base)
    ├── ValidationError - Caller-supplied value or field combination rejected
    └── InvalidStateError - Internal invariant broken (not recoverable)

Example:
    >>> from floe_deletes.errors import DeleteFileError, ValidationError
    >>> try:
    ...     builder.build()
    ... except ValidationError as e:
    ...     print(f"Rejected field {e.field}: {e}")
    ... except DeleteFileError as e:
    ...     print(f"Delete file assembly failed: {e}")
"""

from __future__ import annotations

from typing import Any


class DeleteFileError(Exception):
    """Base exception for all floe-deletes errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional error context.

    Example:
        >>> try:
        ...     builder.build()
        ... except DeleteFileError as e:
        ...     logger.error("delete_file_failed", error=str(e), details=e.details)
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize DeleteFileError.

        Args:
            message: Human-readable error description.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ValidationError(DeleteFileError):
    """A caller-supplied value violates a precondition.

    Raised for missing required fields, disallowed field combinations,
    unknown format names, and partition data that does not fit the spec.
    Always recoverable: fix the input and rebuild.

    Attributes:
        field: Name of the field that failed validation (if applicable).
        value: The invalid value (if applicable and safe to include).

    Example:
        >>> raise ValidationError(
        ...     "Content offset can only be set for DV",
        ...     field="content_offset",
        ...     value=4,
        ... )
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize ValidationError.

        Args:
            message: Human-readable error description.
            field: Name of the field that failed validation.
            value: The invalid value.
            details: Additional error context.
        """
        _details = details or {}
        if field:
            _details["field"] = field
        if value is not None:
            _details["value"] = str(value)
        super().__init__(message, _details)
        self.field = field
        self.value = value


class InvalidStateError(DeleteFileError):
    """An internally unreachable condition was reached.

    Signals a broken invariant upstream, such as an unknown content
    variant at build time or importing a descriptor written for a
    different partition spec. Not meant to be handled as a normal error.

    Example:
        >>> raise InvalidStateError(
        ...     "Cannot copy a DeleteFile with a different spec",
        ...     details={"expected_spec_id": 0, "actual_spec_id": 3},
        ... )
    """


# Export all exception types
__all__ = [
    "DeleteFileError",
    "ValidationError",
    "InvalidStateError",
]
