"""Shared test fixtures for floe-deletes package.

Provides partition specs, builders, and in-memory stand-ins for the file
handles the builder consumes (input files, output files, key metadata).

Note:
    No __init__.py files in test directories - pytest uses importlib mode
    which causes namespace collisions with __init__.py files.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from floe_deletes.builder import DeleteFileBuilder, delete_file_builder
from floe_deletes.models import (
    FieldType,
    PartitionField,
    PartitionSpec,
    PartitionTransform,
)
from floe_deletes.telemetry import reset_tracer

if TYPE_CHECKING:
    from collections.abc import Generator


# =============================================================================
# Partition Specs
# =============================================================================


@pytest.fixture
def unpartitioned_spec() -> PartitionSpec:
    """Unpartitioned spec with spec ID 0."""
    return PartitionSpec.unpartitioned(spec_id=0)


@pytest.fixture
def identity_spec() -> PartitionSpec:
    """Spec with a single identity-partitioned int field named ``a``."""
    return PartitionSpec(
        spec_id=1,
        fields=[
            PartitionField(
                source_field_id=1,
                partition_field_id=1000,
                name="a",
                transform=PartitionTransform.IDENTITY,
                source_type=FieldType.INT,
            ),
        ],
    )


@pytest.fixture
def region_day_spec() -> PartitionSpec:
    """Spec partitioned by region (identity string) and event day."""
    return PartitionSpec(
        spec_id=2,
        fields=[
            PartitionField(
                source_field_id=2,
                partition_field_id=1000,
                name="region",
                transform=PartitionTransform.IDENTITY,
                source_type=FieldType.STRING,
            ),
            PartitionField(
                source_field_id=3,
                partition_field_id=1001,
                name="event_day",
                transform=PartitionTransform.DAY,
                source_type=FieldType.TIMESTAMP,
            ),
        ],
    )


# =============================================================================
# Builders
# =============================================================================


@pytest.fixture
def builder(unpartitioned_spec: PartitionSpec) -> DeleteFileBuilder:
    """Fresh builder bound to the unpartitioned spec."""
    return delete_file_builder(unpartitioned_spec)


@pytest.fixture
def partitioned_builder(region_day_spec: PartitionSpec) -> DeleteFileBuilder:
    """Fresh builder bound to the region/day spec."""
    return delete_file_builder(region_day_spec)


# =============================================================================
# File Handles
# =============================================================================


class FakeInputFile:
    """In-memory input file exposing a location and a length."""

    def __init__(self, location: str, length: int) -> None:
        self.location = location
        self._length = length

    def __len__(self) -> int:
        return self._length


class FakeOutputFile:
    """Output file whose input view reports a fixed length."""

    def __init__(self, location: str, length: int) -> None:
        self.location = location
        self._length = length

    def to_input_file(self) -> FakeInputFile:
        return FakeInputFile(self.location, self._length)


class FakeKeyMetadata:
    """Key metadata wrapping a raw buffer."""

    def __init__(self, raw: bytes) -> None:
        self._raw = raw

    def buffer(self) -> bytes:
        return self._raw


class FakeEncryptedOutputFile:
    """Encrypted output file pairing an output file with key metadata."""

    def __init__(self, output: FakeOutputFile, key_metadata: FakeKeyMetadata | None) -> None:
        self._output = output
        self._key_metadata = key_metadata

    def encrypting_output_file(self) -> FakeOutputFile:
        return self._output

    def key_metadata(self) -> FakeKeyMetadata | None:
        return self._key_metadata


@pytest.fixture
def input_file() -> FakeInputFile:
    return FakeInputFile("s3://bucket/deletes/in.parquet", 321)


@pytest.fixture
def encrypted_output_file() -> FakeEncryptedOutputFile:
    return FakeEncryptedOutputFile(
        FakeOutputFile("s3://bucket/deletes/enc.avro", 4096),
        FakeKeyMetadata(b"wrapped-key"),
    )


@pytest.fixture
def key_metadata() -> FakeKeyMetadata:
    return FakeKeyMetadata(b"wrapped-key")


# =============================================================================
# Telemetry Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def reset_otel() -> Generator[None, None, None]:
    """Clear cached tracers between tests."""
    reset_tracer()
    yield
    reset_tracer()
