"""Unit tests for floe-deletes error types.

Tests the exception hierarchy and error message formatting for all
exception types defined in floe_deletes.errors.
"""

from __future__ import annotations

import pytest

from floe_deletes.errors import DeleteFileError, InvalidStateError, ValidationError

# =============================================================================
# Base Exception Tests
# =============================================================================


class TestDeleteFileError:
    """Tests for base DeleteFileError exception."""

    def test_basic_construction(self) -> None:
        """Test DeleteFileError can be constructed with message only."""
        error = DeleteFileError("Something went wrong")
        assert str(error) == "Something went wrong"
        assert error.message == "Something went wrong"
        assert error.details == {}

    def test_construction_with_details(self) -> None:
        """Test DeleteFileError includes details in string representation."""
        error = DeleteFileError(
            "Build failed",
            details={"spec_id": 3, "location": "s3://b/d.parquet"},
        )
        assert "Build failed" in str(error)
        assert "spec_id=3" in str(error)
        assert "location=s3://b/d.parquet" in str(error)

    def test_empty_details_not_shown_in_str(self) -> None:
        """Test string representation doesn't include empty details."""
        error = DeleteFileError("Simple error")
        assert "(" not in str(error)

    def test_can_be_caught_as_exception(self) -> None:
        """Test DeleteFileError can be caught as Exception."""
        with pytest.raises(Exception):  # noqa: B017 - intentional: testing inheritance
            raise DeleteFileError("Test error")


# =============================================================================
# Validation Error Tests
# =============================================================================


class TestValidationError:
    """Tests for ValidationError exception."""

    def test_basic_construction(self) -> None:
        """Test ValidationError with message only."""
        error = ValidationError("File path is required")
        assert str(error) == "File path is required"
        assert error.field is None
        assert error.value is None

    def test_construction_with_field_and_value(self) -> None:
        """Test ValidationError records field and value."""
        error = ValidationError("File size is required", field="file_size_in_bytes", value=-1)
        assert error.field == "file_size_in_bytes"
        assert error.value == -1
        assert "field=file_size_in_bytes" in str(error)
        assert "value=-1" in str(error)

    def test_details_merged_with_field(self) -> None:
        """Test extra details are kept alongside the field."""
        error = ValidationError(
            "Unknown file format: csv",
            field="format",
            details={"allowed": ["avro"]},
        )
        assert error.details["allowed"] == ["avro"]
        assert error.details["field"] == "format"

    def test_can_be_caught_as_delete_file_error(self) -> None:
        """Test ValidationError can be caught as DeleteFileError."""
        with pytest.raises(DeleteFileError):
            raise ValidationError("Invalid input")


# =============================================================================
# Invalid State Error Tests
# =============================================================================


class TestInvalidStateError:
    """Tests for InvalidStateError exception."""

    def test_is_delete_file_error(self) -> None:
        """Test InvalidStateError inherits from DeleteFileError."""
        error = InvalidStateError("Unknown content type 'data'")
        assert isinstance(error, DeleteFileError)
        assert not isinstance(error, ValidationError)

    def test_details_in_str(self) -> None:
        """Test InvalidStateError renders details."""
        error = InvalidStateError(
            "Cannot copy a DeleteFile with a different spec",
            details={"expected_spec_id": 0, "actual_spec_id": 3},
        )
        assert "expected_spec_id=0" in str(error)
        assert "actual_spec_id=3" in str(error)
