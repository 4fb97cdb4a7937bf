"""Immutable delete-file descriptor.

A DeleteFile tells a table reader which rows of a data file are logically
removed. Descriptors are produced by DeleteFileBuilder.build(), which is
where all cross-field validation happens; this module only holds the
result.

Every owned buffer is immutable: key metadata is ``bytes``, sequences are
tuples, per-column maps are read-only mappings and the partition value is a
frozen PartitionRecord. Nothing returned by a descriptor can be used to
change it.

Example:
    >>> delete_file = (
    ...     delete_file_builder(spec)
    ...     .set_content_position_deletes()
    ...     .set_location("s3://bucket/deletes/00001.parquet")
    ...     .set_file_size_in_bytes(100)
    ...     .set_metrics(Metrics(record_count=5))
    ...     .build()
    ... )
    >>> delete_file.format
    <FileFormat.PARQUET: 'parquet'>
"""

from __future__ import annotations

from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field

from floe_deletes.models import FileContent, FileFormat, Metrics
from floe_deletes.partitions import PartitionRecord


class DeleteFile(BaseModel):
    """Metadata record of a file of row-level deletes.

    Attributes:
        spec_id: Partition spec ID used to interpret ``partition``.
        content: Position or equality deletes.
        location: Path or URI of the delete file.
        format: Physical file format.
        partition: Partition value, None for unpartitioned specs.
        file_size_in_bytes: Size of the delete file.
        metrics: Record count and per-column statistics.
        equality_field_ids: Column IDs compared by equality deletes.
        sort_order_id: Sort order the delete rows follow.
        split_offsets: Byte offsets for split planning.
        key_metadata: Encryption key metadata.
        referenced_data_file: Data file a deletion vector applies to.
        content_offset: Offset of a deletion vector blob in the Puffin file.
        content_size_in_bytes: Length of a deletion vector blob.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    spec_id: int = Field(..., ge=0, description="Partition spec ID")
    content: FileContent = Field(..., description="Delete content kind")
    location: str = Field(..., min_length=1, description="Delete file location")
    format: FileFormat = Field(..., description="Delete file format")
    partition: PartitionRecord | None = Field(
        default=None,
        description="Partition value (None when unpartitioned)",
    )
    file_size_in_bytes: int = Field(..., ge=0, description="Delete file size")
    metrics: Metrics = Field(..., description="Record count and column statistics")
    equality_field_ids: tuple[int, ...] | None = Field(default=None)
    sort_order_id: int | None = Field(default=None)
    split_offsets: tuple[int, ...] | None = Field(default=None)
    key_metadata: bytes | None = Field(default=None)
    # Deletion vector reference into a Puffin file
    referenced_data_file: str | None = Field(default=None)
    content_offset: int | None = Field(default=None)
    content_size_in_bytes: int | None = Field(default=None)

    @property
    def record_count(self) -> int:
        """Number of deleted rows recorded in the file."""
        return self.metrics.record_count  # type: ignore[return-value]

    @property
    def column_sizes(self) -> Mapping[int, int] | None:
        return self.metrics.column_sizes

    @property
    def value_counts(self) -> Mapping[int, int] | None:
        return self.metrics.value_counts

    @property
    def null_value_counts(self) -> Mapping[int, int] | None:
        return self.metrics.null_value_counts

    @property
    def nan_value_counts(self) -> Mapping[int, int] | None:
        return self.metrics.nan_value_counts

    @property
    def lower_bounds(self) -> Mapping[int, bytes] | None:
        return self.metrics.lower_bounds

    @property
    def upper_bounds(self) -> Mapping[int, bytes] | None:
        return self.metrics.upper_bounds

    @property
    def is_deletion_vector(self) -> bool:
        """Whether this descriptor references a deletion vector blob."""
        return self.format == FileFormat.PUFFIN


__all__ = ["DeleteFile"]
