"""Unit tests for floe_deletes.files module.

Tests file location resolution and buffer copying.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from pydantic import ValidationError as PydanticValidationError

from floe_deletes.files import (
    FileStatus,
    StatusInputFile,
    copy_buffer,
    resolve_location,
    status_location,
)

if TYPE_CHECKING:
    from conftest import FakeInputFile


class TestFileStatus:
    """Tests for the FileStatus model."""

    def test_construction(self) -> None:
        """Test path and size are stored."""
        status = FileStatus(path="s3://b/d.parquet", size=10)
        assert status_location(status) == ("s3://b/d.parquet", 10)

    def test_negative_size_rejected(self) -> None:
        """Test sizes are non-negative."""
        with pytest.raises(PydanticValidationError):
            FileStatus(path="s3://b/d.parquet", size=-1)

    def test_from_file_info(self) -> None:
        """Test any object with path and size converts, as pyarrow FileInfo does."""

        class Info:
            path = "/data/deletes.orc"
            size = 77

        assert FileStatus.from_file_info(Info()) == FileStatus(path="/data/deletes.orc", size=77)


class TestResolveLocation:
    """Tests for resolve_location."""

    def test_input_file(self, input_file: FakeInputFile) -> None:
        """Test plain input files use their location and length."""
        assert resolve_location(input_file) == ("s3://bucket/deletes/in.parquet", 321)

    def test_status_input_file_uses_status(self) -> None:
        """Test status-backed input files resolve through the status."""
        status = FileStatus(path="hdfs://nn/deletes/a.avro", size=55)
        handle = StatusInputFile(status)
        assert handle.status is status
        assert resolve_location(handle) == resolve_location(status) == (
            "hdfs://nn/deletes/a.avro",
            55,
        )

    def test_status_input_file_behaves_as_input_file(self) -> None:
        """Test StatusInputFile exposes location and length."""
        handle = StatusInputFile(FileStatus(path="/tmp/x.avro", size=3))
        assert handle.location == "/tmp/x.avro"
        assert len(handle) == 3


class TestCopyBuffer:
    """Tests for copy_buffer."""

    def test_none(self) -> None:
        """Test None passes through."""
        assert copy_buffer(None) is None

    def test_copy_is_independent(self) -> None:
        """Test copies are immutable bytes unaffected by source changes."""
        source = bytearray(b"key")
        copied = copy_buffer(source)
        source[0] = ord("x")
        assert copied == b"key"
        assert isinstance(copied, bytes)

    def test_memoryview(self) -> None:
        """Test memoryviews are copied."""
        assert copy_buffer(memoryview(b"abc")[1:]) == b"bc"
