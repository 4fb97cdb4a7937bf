"""Staged builder for delete-file descriptors.

DeleteFileBuilder accumulates the fields of a delete file through chained
setters, optionally pre-populated from an existing descriptor, and
validates the cross-field rules that separate the three delete-file
variants when build() is called:

- Position deletes: no sort order
- Equality deletes: sort order defaults to unsorted
- Deletion vectors: position deletes stored in a Puffin file, which must
  reference a data file and a blob byte range; no other format may carry
  those fields

A builder is bound to one partition spec for its lifetime. It is not safe
for concurrent use; confine each builder to one thread.

Example:
    >>> builder = delete_file_builder(spec)
    >>> delete_file = (
    ...     builder.set_content_equality_deletes([1, 2])
    ...     .set_location("s3://bucket/deletes/00001.avro")
    ...     .set_file_size_in_bytes(2048)
    ...     .set_record_count(12)
    ...     .set_partition_path("region=eu")
    ...     .build()
    ... )
    >>> delete_file.sort_order_id
    0
    >>> builder.clear()  # reuse for the next file in the same partition loop
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Protocol

import structlog
from pydantic import ValidationError as PydanticValidationError

from floe_deletes.descriptor import DeleteFile
from floe_deletes.errors import InvalidStateError, ValidationError
from floe_deletes.files import (
    BytesLike,
    EncryptedOutputFile,
    EncryptionKeyMetadata,
    FileStatusLike,
    InputFile,
    copy_buffer,
    resolve_location,
    status_location,
)
from floe_deletes.models import (
    UNSORTED_SORT_ORDER_ID,
    DeleteFileBuilderConfig,
    FileContent,
    FileFormat,
    Metrics,
    PartitionSpec,
)
from floe_deletes.partitions import (
    PartitionData,
    PartitionRecord,
    copy_partition_data,
    fill_from_path,
    freeze_partition,
    new_partition_data,
)
from floe_deletes.telemetry import traced


class SortOrderLike(Protocol):
    """Anything exposing a sort order identifier."""

    @property
    def order_id(self) -> int: ...


def _builder_attributes(builder: DeleteFileBuilder, *args: Any, **kwargs: Any) -> dict[str, Any]:
    return {
        "delete_file.spec_id": builder.spec_id,
        "delete_file.partitioned": builder.is_partitioned,
    }


class DeleteFileBuilder:
    """Mutable staging state for a DeleteFile.

    Setters may be called in any order and any number of times; the last
    call for a field wins. Every setter returns the builder.

    Attributes:
        spec: Partition spec the builder is bound to.
        spec_id: ID of the bound spec.
        is_partitioned: Whether the bound spec has partition fields.
        config: Builder configuration.
    """

    def __init__(
        self,
        spec: PartitionSpec,
        config: DeleteFileBuilderConfig | None = None,
    ) -> None:
        """Initialize DeleteFileBuilder.

        Args:
            spec: Partition spec used to interpret partition values.
            config: Optional builder configuration. Defaults apply no
                table-version or format fallbacks.
        """
        self._spec = spec
        self._spec_id = spec.spec_id
        self._is_partitioned = spec.is_partitioned
        self._config = config or DeleteFileBuilderConfig()
        self._log = structlog.get_logger(__name__)

        self._partition_data: PartitionData | None = (
            new_partition_data(spec) if self._is_partitioned else None
        )
        self._content: FileContent | None = None
        self._equality_field_ids: tuple[int, ...] | None = None
        self._location: str | None = None
        self._format: FileFormat | None = None
        self._record_count: int | None = None
        self._file_size_in_bytes: int | None = None

        # Optional fields
        self._column_sizes: Mapping[int, int] | None = None
        self._value_counts: Mapping[int, int] | None = None
        self._null_value_counts: Mapping[int, int] | None = None
        self._nan_value_counts: Mapping[int, int] | None = None
        self._lower_bounds: Mapping[int, bytes] | None = None
        self._upper_bounds: Mapping[int, bytes] | None = None
        self._key_metadata: bytes | None = None
        self._sort_order_id: int | None = None
        self._split_offsets: tuple[int, ...] | None = None
        self._referenced_data_file: str | None = None
        self._content_offset: int | None = None
        self._content_size_in_bytes: int | None = None

    @property
    def spec(self) -> PartitionSpec:
        return self._spec

    @property
    def spec_id(self) -> int:
        return self._spec_id

    @property
    def is_partitioned(self) -> bool:
        return self._is_partitioned

    @property
    def config(self) -> DeleteFileBuilderConfig:
        return self._config

    # =========================================================================
    # Reset and Import
    # =========================================================================

    def clear(self) -> None:
        """Reset staged state so the builder can describe another file.

        Content, location, format, counts, metrics and sort order are
        reset, and the staged partition is emptied. Split offsets,
        encryption key metadata, the referenced data file and the
        deletion vector byte range are kept.
        """
        if self._partition_data is not None:
            self._partition_data.clear()
        self._content = None
        self._equality_field_ids = None
        self._location = None
        self._format = None
        self._record_count = None
        self._file_size_in_bytes = None
        self._column_sizes = None
        self._value_counts = None
        self._null_value_counts = None
        self._nan_value_counts = None
        self._lower_bounds = None
        self._upper_bounds = None
        self._sort_order_id = None

    @traced(operation_name="floe.deletes.import_from", attributes_fn=_builder_attributes)
    def import_from(self, delete_file: DeleteFile) -> DeleteFileBuilder:
        """Pre-populate every field from an existing descriptor.

        The partition value and key metadata are copied so the builder
        never shares state with ``delete_file``.

        Args:
            delete_file: Descriptor written for the same partition spec.

        Returns:
            This builder.

        Raises:
            InvalidStateError: If the descriptor's spec ID differs from the
                builder's.
        """
        if delete_file.spec_id != self._spec_id:
            self._log.error(
                "delete_file_spec_mismatch",
                expected_spec_id=self._spec_id,
                actual_spec_id=delete_file.spec_id,
                location=delete_file.location,
            )
            msg = "Cannot copy a DeleteFile with a different spec"
            raise InvalidStateError(
                msg,
                details={
                    "expected_spec_id": self._spec_id,
                    "actual_spec_id": delete_file.spec_id,
                },
            )

        if self._partition_data is not None:
            if delete_file.partition is None:
                self._partition_data.clear()
            else:
                self._partition_data = copy_partition_data(
                    self._spec, delete_file.partition, self._partition_data
                )

        self._content = delete_file.content
        self._equality_field_ids = delete_file.equality_field_ids
        self._location = delete_file.location
        self._format = delete_file.format
        self._record_count = delete_file.record_count
        self._file_size_in_bytes = delete_file.file_size_in_bytes
        self._column_sizes = delete_file.column_sizes
        self._value_counts = delete_file.value_counts
        self._null_value_counts = delete_file.null_value_counts
        self._nan_value_counts = delete_file.nan_value_counts
        self._lower_bounds = delete_file.lower_bounds
        self._upper_bounds = delete_file.upper_bounds
        self._key_metadata = copy_buffer(delete_file.key_metadata)
        self._sort_order_id = delete_file.sort_order_id
        self._split_offsets = delete_file.split_offsets
        self._referenced_data_file = delete_file.referenced_data_file
        self._content_offset = delete_file.content_offset
        self._content_size_in_bytes = delete_file.content_size_in_bytes

        self._log.debug(
            "delete_file_imported",
            spec_id=self._spec_id,
            location=delete_file.location,
        )
        return self

    # =========================================================================
    # Content
    # =========================================================================

    def set_content_position_deletes(self) -> DeleteFileBuilder:
        """Describe a position delete file; drops any equality field IDs."""
        self._content = FileContent.POSITION_DELETES
        self._equality_field_ids = None
        return self

    def set_content_equality_deletes(self, field_ids: Iterable[int]) -> DeleteFileBuilder:
        """Describe an equality delete file comparing ``field_ids``.

        Raises:
            ValidationError: If no field IDs are given.
        """
        ids = tuple(field_ids)
        if not ids:
            raise self._invalid("Equality field IDs are required", field="equality_field_ids")
        self._content = FileContent.EQUALITY_DELETES
        self._equality_field_ids = ids
        return self

    # =========================================================================
    # Location, Format and Size
    # =========================================================================

    def set_location_from_file_status(self, status: FileStatusLike) -> DeleteFileBuilder:
        """Take location and file size from a resolved file status."""
        self._location, self._file_size_in_bytes = status_location(status)
        return self

    def set_location_from_input_handle(self, handle: InputFile) -> DeleteFileBuilder:
        """Take location and file size from an input file."""
        self._location, self._file_size_in_bytes = resolve_location(handle)
        return self

    def set_location_from_encrypted_output(
        self, encrypted_file: EncryptedOutputFile
    ) -> DeleteFileBuilder:
        """Take location, size and key metadata from an encrypted output file."""
        self.set_location_from_input_handle(
            encrypted_file.encrypting_output_file().to_input_file()
        )
        return self.set_encryption_key_metadata(encrypted_file.key_metadata())

    def set_location(self, location: str) -> DeleteFileBuilder:
        self._location = location
        return self

    def set_format(self, file_format: FileFormat | str) -> DeleteFileBuilder:
        """Set the file format from a FileFormat or a format name.

        Raises:
            ValidationError: If a name does not match a known format.
        """
        if isinstance(file_format, FileFormat):
            self._format = file_format
        else:
            self._format = FileFormat.from_string(file_format)
        return self

    def set_file_size_in_bytes(self, file_size_in_bytes: int) -> DeleteFileBuilder:
        self._file_size_in_bytes = file_size_in_bytes
        return self

    def set_record_count(self, record_count: int) -> DeleteFileBuilder:
        self._record_count = record_count
        return self

    # =========================================================================
    # Partition
    # =========================================================================

    def set_partition(
        self,
        partition: PartitionData | PartitionRecord | Mapping[str, Any] | Sequence[Any],
    ) -> DeleteFileBuilder:
        """Copy a partition value into the builder.

        Ignored for unpartitioned specs.

        Raises:
            ValidationError: If the value does not fit the spec.
        """
        if self._is_partitioned:
            self._partition_data = copy_partition_data(
                self._spec, partition, self._partition_data
            )
        return self

    def set_partition_path(self, partition_path: str) -> DeleteFileBuilder:
        """Parse partition values from a ``name=value/...`` path.

        An empty path leaves the staged partition untouched.

        Raises:
            ValidationError: If the spec is unpartitioned and the path is
                not empty, or the path does not match the spec.
        """
        if not self._is_partitioned and partition_path:
            raise self._invalid(
                "Cannot add partition data for an unpartitioned table",
                field="partition_path",
                value=partition_path,
            )
        if partition_path:
            self._partition_data = fill_from_path(
                self._spec, partition_path, self._partition_data
            )
        return self

    # =========================================================================
    # Metrics and Optional Fields
    # =========================================================================

    def set_metrics(self, metrics: Metrics) -> DeleteFileBuilder:
        """Take the record count and per-column maps from ``metrics``.

        A missing record count is kept as unknown and rejected by build().
        """
        self._record_count = metrics.record_count
        self._column_sizes = metrics.column_sizes
        self._value_counts = metrics.value_counts
        self._null_value_counts = metrics.null_value_counts
        self._nan_value_counts = metrics.nan_value_counts
        self._lower_bounds = metrics.lower_bounds
        self._upper_bounds = metrics.upper_bounds
        return self

    def set_split_offsets(self, offsets: Iterable[int] | None) -> DeleteFileBuilder:
        """Store a copy of ``offsets``, or clear them when None."""
        self._split_offsets = tuple(offsets) if offsets is not None else None
        return self

    def set_encryption_key_metadata(
        self, key_metadata: BytesLike | EncryptionKeyMetadata | None
    ) -> DeleteFileBuilder:
        """Store a copy of raw key metadata, unwrapping key metadata objects."""
        if isinstance(key_metadata, EncryptionKeyMetadata):
            key_metadata = key_metadata.buffer()
        self._key_metadata = copy_buffer(key_metadata)
        return self

    def set_sort_order(self, sort_order: SortOrderLike | None) -> DeleteFileBuilder:
        """Record the sort order's ID. None leaves the current value."""
        if sort_order is not None:
            self._sort_order_id = sort_order.order_id
        return self

    def set_referenced_data_file(self, referenced_data_file: str | None) -> DeleteFileBuilder:
        """Set the data file a deletion vector applies to, or clear it."""
        self._referenced_data_file = (
            str(referenced_data_file) if referenced_data_file is not None else None
        )
        return self

    def set_content_offset(self, content_offset: int) -> DeleteFileBuilder:
        self._content_offset = content_offset
        return self

    def set_content_size_in_bytes(self, content_size_in_bytes: int) -> DeleteFileBuilder:
        self._content_size_in_bytes = content_size_in_bytes
        return self

    # =========================================================================
    # Build
    # =========================================================================

    @traced(operation_name="floe.deletes.build", attributes_fn=_builder_attributes)
    def build(self) -> DeleteFile:
        """Validate staged state and produce an immutable DeleteFile.

        The builder itself is never modified, so a rejected build leaves
        every staged field as it was.

        Returns:
            The validated DeleteFile.

        Raises:
            ValidationError: If a required field is missing or fields are
                combined in a way the content and format do not allow.
            InvalidStateError: If the staged content is not a known kind.
        """
        location = self._location
        if not location:
            raise self._invalid("File path is required", field="location")

        file_format = self._format
        if file_format is None:
            file_format = FileFormat.from_file_name(location) or self._config.default_format

        if self._content is None:
            raise self._invalid("Delete type is required", field="content")
        if file_format is None:
            raise self._invalid("File format is required", field="format", value=location)
        if not _is_count(self._file_size_in_bytes):
            raise self._invalid(
                "File size is required",
                field="file_size_in_bytes",
                value=self._file_size_in_bytes,
            )
        if not _is_count(self._record_count):
            raise self._invalid(
                "Record count is required",
                field="record_count",
                value=self._record_count,
            )

        self._check_format_version(file_format)
        self._check_deletion_vector(file_format)
        sort_order_id = self._content_sort_order_id()

        try:
            delete_file = DeleteFile(
                spec_id=self._spec_id,
                content=self._content,
                location=location,
                format=file_format,
                partition=freeze_partition(self._spec, self._partition_data),
                file_size_in_bytes=self._file_size_in_bytes,
                metrics=Metrics(
                    record_count=self._record_count,
                    column_sizes=self._column_sizes,
                    value_counts=self._value_counts,
                    null_value_counts=self._null_value_counts,
                    nan_value_counts=self._nan_value_counts,
                    lower_bounds=self._lower_bounds,
                    upper_bounds=self._upper_bounds,
                ),
                equality_field_ids=self._equality_field_ids,
                sort_order_id=sort_order_id,
                split_offsets=self._split_offsets,
                key_metadata=copy_buffer(self._key_metadata),
                referenced_data_file=self._referenced_data_file,
                content_offset=self._content_offset,
                content_size_in_bytes=self._content_size_in_bytes,
            )
        except PydanticValidationError as e:
            # Staged values of the wrong type; report the first offending field
            errors = e.errors()
            first_error = errors[0] if errors else {}
            field_path = ".".join(str(loc) for loc in first_error.get("loc", ()))
            error_msg = str(first_error.get("msg", "Invalid value"))
            raise self._invalid(
                f"Invalid delete file field {field_path or '<unknown>'}: {error_msg}",
                field=field_path or "delete_file",
                value=first_error.get("input"),
            ) from e

        self._log.debug(
            "delete_file_built",
            spec_id=self._spec_id,
            content=delete_file.content.value,
            format=delete_file.format.value,
            location=location,
            record_count=self._record_count,
        )
        return delete_file

    def _check_format_version(self, file_format: FileFormat) -> None:
        format_version = self._config.format_version
        if format_version is None:
            return
        if format_version < 2:
            raise self._invalid(
                f"Delete files are not supported in format version {format_version}",
                field="format_version",
                value=format_version,
            )
        if file_format == FileFormat.PUFFIN and format_version < 3:
            raise self._invalid(
                f"Deletion vectors are not supported in format version {format_version}",
                field="format_version",
                value=format_version,
            )

    def _check_deletion_vector(self, file_format: FileFormat) -> None:
        dv_fields = (
            ("Content offset", "content_offset", self._content_offset),
            ("Content size", "content_size_in_bytes", self._content_size_in_bytes),
            ("Referenced data file", "referenced_data_file", self._referenced_data_file),
        )
        is_dv = file_format == FileFormat.PUFFIN
        for label, field, value in dv_fields:
            if is_dv and value is None:
                raise self._invalid(f"{label} is required for a deletion vector", field=field)
            if not is_dv and value is not None:
                raise self._invalid(
                    f"{label} can only be set for a deletion vector",
                    field=field,
                    value=value,
                    format=file_format.value,
                )

    def _content_sort_order_id(self) -> int | None:
        if self._content == FileContent.POSITION_DELETES:
            if self._sort_order_id is not None:
                raise self._invalid(
                    "Position delete file should not have sort order",
                    field="sort_order_id",
                    value=self._sort_order_id,
                )
            return None
        if self._content == FileContent.EQUALITY_DELETES:
            if self._sort_order_id is None:
                return UNSORTED_SORT_ORDER_ID
            return self._sort_order_id

        self._log.error(
            "delete_file_unknown_content",
            spec_id=self._spec_id,
            content=repr(self._content),
        )
        msg = f"Unknown content type {self._content!r}"
        raise InvalidStateError(msg)

    def _invalid(
        self,
        message: str,
        field: str,
        value: Any = None,
        **details: Any,
    ) -> ValidationError:
        self._log.warning(
            "delete_file_rejected",
            reason=message,
            field=field,
            spec_id=self._spec_id,
            location=self._location,
        )
        return ValidationError(message, field=field, value=value, details=details or None)


def _is_count(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def delete_file_builder(
    spec: PartitionSpec,
    config: DeleteFileBuilderConfig | None = None,
) -> DeleteFileBuilder:
    """Create a DeleteFileBuilder bound to ``spec``.

    Args:
        spec: Partition spec used to interpret partition values.
        config: Optional builder configuration.

    Returns:
        A new, empty DeleteFileBuilder.
    """
    return DeleteFileBuilder(spec, config)


__all__ = [
    "DeleteFileBuilder",
    "SortOrderLike",
    "delete_file_builder",
]
