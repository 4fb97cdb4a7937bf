"""Pydantic models and enumerations for floe-deletes package.

This module defines the enumerations and configuration models used while
assembling delete-file descriptors. All models use Pydantic v2 syntax with
strict validation.

Models are designed for immutability (frozen=True) and strict validation
(extra="forbid") so that a partition spec or metrics record can be shared
between many builders without defensive copies.

Module Constants:
    UNSORTED_SORT_ORDER_ID: Identifier of the well-known unsorted order
    FORMAT_VERSION_PROPERTY: Table property holding the format version
    DELETE_DEFAULT_FILE_FORMAT_PROPERTY: Table property for delete file format

Enumerations:
    FileContent: Delete file content kinds
    FileFormat: Physical file formats (PUFFIN marks deletion vectors)
    FieldType: Iceberg primitive data types
    PartitionTransform: Partition transform functions

Models:
    PartitionField, PartitionSpec: Partitioning
    SortOrder: Sort order reference
    Metrics: Record count and per-column statistics
    DeleteFileBuilderConfig: Builder configuration

Example:
    >>> from floe_deletes.models import FileFormat, PartitionSpec
    >>> FileFormat.from_file_name("s3://bucket/deletes/00001.parquet")
    <FileFormat.PARQUET: 'parquet'>
    >>> PartitionSpec(spec_id=0).is_partitioned
    False
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from floe_deletes.errors import ValidationError

if TYPE_CHECKING:
    from pyiceberg.partitioning import PartitionSpec as PyPartitionSpec
    from pyiceberg.schema import Schema
    from pyiceberg.transforms import Transform

# =============================================================================
# Module Constants
# =============================================================================

UNSORTED_SORT_ORDER_ID = 0
"""Identifier of the unsorted sort order, reserved by the table format."""

FORMAT_VERSION_PROPERTY = "format-version"
"""Table property holding the table format version."""

DELETE_DEFAULT_FILE_FORMAT_PROPERTY = "write.delete.format.default"
"""Table property naming the default file format for delete files."""


# =============================================================================
# Delete File Enumerations
# =============================================================================


class FileContent(str, Enum):
    """Content kinds a delete file can hold.

    Deletion vectors are not a separate member: a deletion vector is
    POSITION_DELETES content stored in FileFormat.PUFFIN.

    Attributes:
        POSITION_DELETES: Rows identified by (data file, row position)
        EQUALITY_DELETES: Rows identified by matching column values

    Example:
        >>> FileContent.EQUALITY_DELETES.value
        'equality_deletes'
    """

    POSITION_DELETES = "position_deletes"
    EQUALITY_DELETES = "equality_deletes"


class FileFormat(str, Enum):
    """Physical file formats a delete file may be stored in.

    Attributes:
        AVRO: Apache Avro
        PARQUET: Apache Parquet
        ORC: Apache ORC
        PUFFIN: Puffin blob container, used for deletion vectors
        METADATA: Table metadata JSON

    Example:
        >>> FileFormat.from_string("Parquet")
        <FileFormat.PARQUET: 'parquet'>
        >>> FileFormat.PUFFIN.extension
        'puffin'
    """

    AVRO = "avro"
    PARQUET = "parquet"
    ORC = "orc"
    PUFFIN = "puffin"
    METADATA = "metadata"

    @property
    def extension(self) -> str:
        """File name extension for this format, without the leading dot."""
        return _FORMAT_EXTENSIONS[self]

    @classmethod
    def from_string(cls, name: str) -> FileFormat:
        """Resolve a format from its name, ignoring case.

        Args:
            name: Format name such as "parquet" or "PUFFIN".

        Returns:
            The matching FileFormat.

        Raises:
            ValidationError: If the name is not a known format.
        """
        if isinstance(name, str):
            for fmt in cls:
                if fmt.value == name.lower():
                    return fmt
        msg = f"Unknown file format: {name}"
        raise ValidationError(
            msg,
            field="format",
            value=name,
            details={"allowed": [fmt.value for fmt in cls]},
        )

    @classmethod
    def from_file_name(cls, file_name: str) -> FileFormat | None:
        """Infer a format from a file name's extension.

        Matching is case-sensitive, so "data.PARQUET" is not recognized.

        Args:
            file_name: File name, path, or URI.

        Returns:
            The matching FileFormat, or None if no extension matches.
        """
        for fmt in cls:
            if file_name.endswith(f".{fmt.extension}"):
                return fmt
        return None


_FORMAT_EXTENSIONS: dict[FileFormat, str] = {
    FileFormat.AVRO: "avro",
    FileFormat.PARQUET: "parquet",
    FileFormat.ORC: "orc",
    FileFormat.PUFFIN: "puffin",
    FileFormat.METADATA: "metadata.json",
}


# =============================================================================
# Iceberg Type Enumerations
# =============================================================================


class FieldType(str, Enum):
    """Iceberg primitive data types.

    Used as the source and result types of partition fields.

    Example:
        >>> FieldType.LONG.value
        'long'
    """

    BOOLEAN = "boolean"
    INT = "int"
    LONG = "long"
    FLOAT = "float"
    DOUBLE = "double"
    DECIMAL = "decimal"
    DATE = "date"
    TIME = "time"
    TIMESTAMP = "timestamp"
    TIMESTAMPTZ = "timestamptz"
    STRING = "string"
    UUID = "uuid"
    FIXED = "fixed"
    BINARY = "binary"


class PartitionTransform(str, Enum):
    """Iceberg partition transform functions.

    Attributes:
        IDENTITY: No transformation (exact value)
        YEAR: Years since epoch
        MONTH: Months since epoch
        DAY: Date of the source value
        HOUR: Hours since epoch
        BUCKET: Hash into N buckets (requires num_buckets)
        TRUNCATE: Truncate to width (requires width)
    """

    IDENTITY = "identity"
    YEAR = "year"
    MONTH = "month"
    DAY = "day"
    HOUR = "hour"
    BUCKET = "bucket"
    TRUNCATE = "truncate"


# =============================================================================
# Partition Models
# =============================================================================


class PartitionField(BaseModel):
    """Definition of a partition field.

    Specifies how a source column is transformed into a partition value
    and which type the partition value has.

    Attributes:
        source_field_id: Source field ID to partition by.
        partition_field_id: Partition field ID (convention: >= 1000).
        name: Partition field name, as it appears in partition paths.
        transform: Transform to apply.
        source_type: Type of the source column.
        num_buckets: Number of buckets (for BUCKET transform).
        width: Truncation width (for TRUNCATE transform).

    Example:
        >>> field = PartitionField(
        ...     source_field_id=2,
        ...     partition_field_id=1000,
        ...     name="event_day",
        ...     transform=PartitionTransform.DAY,
        ...     source_type=FieldType.TIMESTAMP,
        ... )
        >>> field.result_type
        <FieldType.DATE: 'date'>
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    source_field_id: int = Field(
        ...,
        ge=1,
        description="Source field ID to partition by",
    )
    partition_field_id: int = Field(
        ...,
        ge=1000,
        description="Partition field ID (convention: start at 1000)",
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Partition field name",
    )
    transform: PartitionTransform = Field(
        ...,
        description="Transform to apply",
    )
    source_type: FieldType = Field(
        ...,
        description="Type of the source column",
    )
    # For bucket/truncate transforms
    num_buckets: int | None = Field(
        default=None,
        ge=1,
        description="Number of buckets (for bucket transform)",
    )
    width: int | None = Field(
        default=None,
        ge=1,
        description="Truncation width (for truncate transform)",
    )

    @property
    def result_type(self) -> FieldType:
        """Type of the partition value produced by the transform."""
        if self.transform in (PartitionTransform.IDENTITY, PartitionTransform.TRUNCATE):
            return self.source_type
        if self.transform == PartitionTransform.DAY:
            return FieldType.DATE
        return FieldType.INT


class PartitionSpec(BaseModel):
    """Partition specification identified by a spec ID.

    A spec with no fields describes an unpartitioned table.

    Attributes:
        spec_id: Identifier of this spec within the table.
        fields: Ordered partition fields (empty for unpartitioned).

    Example:
        >>> spec = PartitionSpec(spec_id=1, fields=[
        ...     PartitionField(
        ...         source_field_id=1,
        ...         partition_field_id=1000,
        ...         name="region",
        ...         transform=PartitionTransform.IDENTITY,
        ...         source_type=FieldType.STRING,
        ...     ),
        ... ])
        >>> spec.is_partitioned
        True
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    spec_id: int = Field(
        default=0,
        ge=0,
        description="Partition spec ID",
    )
    fields: list[PartitionField] = Field(
        default_factory=list,
        description="List of partition fields",
    )

    @model_validator(mode="after")
    def validate_unique_fields(self) -> PartitionSpec:
        """Reject duplicate partition field names and IDs.

        Returns:
            Self if validation passes.

        Raises:
            ValueError: If two fields share a name or partition field ID.
        """
        names: set[str] = set()
        field_ids: set[int] = set()
        for part_field in self.fields:
            if part_field.name in names:
                msg = f"Duplicate partition field name: '{part_field.name}'"
                raise ValueError(msg)
            if part_field.partition_field_id in field_ids:
                msg = f"Duplicate partition field ID: {part_field.partition_field_id}"
                raise ValueError(msg)
            names.add(part_field.name)
            field_ids.add(part_field.partition_field_id)
        return self

    @property
    def is_partitioned(self) -> bool:
        """Whether the spec has at least one partition field."""
        return len(self.fields) > 0

    @classmethod
    def unpartitioned(cls, spec_id: int = 0) -> PartitionSpec:
        """Create an unpartitioned spec."""
        return cls(spec_id=spec_id)

    def to_pyiceberg_spec(self) -> PyPartitionSpec:
        """Convert to PyIceberg PartitionSpec.

        Returns:
            PyIceberg PartitionSpec instance with the same spec ID.

        Raises:
            ImportError: If pyiceberg is not installed.
        """
        from pyiceberg.partitioning import PartitionField as PyPartitionField
        from pyiceberg.partitioning import PartitionSpec as PyPartitionSpec

        py_fields = [
            PyPartitionField(
                source_id=field.source_field_id,
                field_id=field.partition_field_id,
                transform=_to_pyiceberg_transform(field),
                name=field.name,
            )
            for field in self.fields
        ]
        return PyPartitionSpec(*py_fields, spec_id=self.spec_id)

    @classmethod
    def from_pyiceberg_spec(
        cls,
        spec: PyPartitionSpec,
        schema: Schema,
    ) -> PartitionSpec:
        """Build a spec from a PyIceberg PartitionSpec.

        Args:
            spec: PyIceberg partition spec.
            schema: PyIceberg schema used to resolve source column types.

        Returns:
            Equivalent PartitionSpec.

        Raises:
            ValidationError: If a transform or source type is not supported.
        """
        fields: list[PartitionField] = []
        for py_field in spec.fields:
            source = schema.find_field(py_field.source_id)
            transform, num_buckets, width = _from_pyiceberg_transform(py_field.transform)
            fields.append(
                PartitionField(
                    source_field_id=py_field.source_id,
                    partition_field_id=py_field.field_id,
                    name=py_field.name,
                    transform=transform,
                    source_type=_from_pyiceberg_type(source.field_type),
                    num_buckets=num_buckets,
                    width=width,
                )
            )
        return cls(spec_id=spec.spec_id, fields=fields)


def _to_pyiceberg_transform(field: PartitionField) -> Transform[Any, Any]:
    """Get PyIceberg transform for field."""
    from pyiceberg.transforms import (
        BucketTransform,
        DayTransform,
        HourTransform,
        IdentityTransform,
        MonthTransform,
        TruncateTransform,
        YearTransform,
    )

    transform_mapping: dict[PartitionTransform, type] = {
        PartitionTransform.IDENTITY: IdentityTransform,
        PartitionTransform.YEAR: YearTransform,
        PartitionTransform.MONTH: MonthTransform,
        PartitionTransform.DAY: DayTransform,
        PartitionTransform.HOUR: HourTransform,
    }

    if field.transform == PartitionTransform.BUCKET:
        return BucketTransform(field.num_buckets or 16)
    if field.transform == PartitionTransform.TRUNCATE:
        return TruncateTransform(field.width or 10)
    return transform_mapping[field.transform]()


def _from_pyiceberg_transform(
    transform: Any,
) -> tuple[PartitionTransform, int | None, int | None]:
    """Map a PyIceberg transform to (transform, num_buckets, width)."""
    from pyiceberg.transforms import (
        BucketTransform,
        DayTransform,
        HourTransform,
        IdentityTransform,
        MonthTransform,
        TruncateTransform,
        YearTransform,
    )

    if isinstance(transform, BucketTransform):
        return PartitionTransform.BUCKET, transform.num_buckets, None
    if isinstance(transform, TruncateTransform):
        return PartitionTransform.TRUNCATE, None, transform.width

    simple: list[tuple[type, PartitionTransform]] = [
        (IdentityTransform, PartitionTransform.IDENTITY),
        (YearTransform, PartitionTransform.YEAR),
        (MonthTransform, PartitionTransform.MONTH),
        (DayTransform, PartitionTransform.DAY),
        (HourTransform, PartitionTransform.HOUR),
    ]
    for transform_class, partition_transform in simple:
        if isinstance(transform, transform_class):
            return partition_transform, None, None

    msg = f"Unsupported partition transform: {transform}"
    raise ValidationError(msg, field="transform", value=transform)


def _from_pyiceberg_type(iceberg_type: Any) -> FieldType:
    """Map a PyIceberg primitive type to FieldType."""
    from pyiceberg import types

    type_mapping: list[tuple[type, FieldType]] = [
        (types.BooleanType, FieldType.BOOLEAN),
        (types.IntegerType, FieldType.INT),
        (types.LongType, FieldType.LONG),
        (types.FloatType, FieldType.FLOAT),
        (types.DoubleType, FieldType.DOUBLE),
        (types.DecimalType, FieldType.DECIMAL),
        (types.DateType, FieldType.DATE),
        (types.TimeType, FieldType.TIME),
        (types.TimestampType, FieldType.TIMESTAMP),
        (types.TimestamptzType, FieldType.TIMESTAMPTZ),
        (types.StringType, FieldType.STRING),
        (types.UUIDType, FieldType.UUID),
        (types.FixedType, FieldType.FIXED),
        (types.BinaryType, FieldType.BINARY),
    ]
    for type_class, field_type in type_mapping:
        if isinstance(iceberg_type, type_class):
            return field_type

    msg = f"Unsupported partition source type: {iceberg_type}"
    raise ValidationError(msg, field="source_type", value=iceberg_type)


# =============================================================================
# Sort Order and Metrics
# =============================================================================


class SortOrder(BaseModel):
    """Reference to a table sort order.

    Only the identifier matters to delete files. The builder accepts any
    object exposing ``order_id``, including PyIceberg's SortOrder.

    Attributes:
        order_id: Sort order identifier (0 is unsorted).

    Example:
        >>> SortOrder.unsorted().order_id
        0
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    order_id: int = Field(
        default=UNSORTED_SORT_ORDER_ID,
        ge=0,
        description="Sort order identifier",
    )

    @classmethod
    def unsorted(cls) -> SortOrder:
        """Return the well-known unsorted order."""
        return cls(order_id=UNSORTED_SORT_ORDER_ID)

    @property
    def is_unsorted(self) -> bool:
        """Whether this is the unsorted order."""
        return self.order_id == UNSORTED_SORT_ORDER_ID


_METRIC_MAPS = (
    "column_sizes",
    "value_counts",
    "null_value_counts",
    "nan_value_counts",
    "lower_bounds",
    "upper_bounds",
)


class Metrics(BaseModel):
    """Record count and per-column statistics of a file.

    Per-column maps are keyed by column ID and exposed as read-only
    mappings. A record count of None means the count is unknown.

    Attributes:
        record_count: Number of records, or None if unknown.
        column_sizes: Bytes used per column.
        value_counts: Value count per column (including nulls).
        null_value_counts: Null count per column.
        nan_value_counts: NaN count per column.
        lower_bounds: Serialized lower bound per column.
        upper_bounds: Serialized upper bound per column.

    Example:
        >>> metrics = Metrics(record_count=5, null_value_counts={1: 0})
        >>> metrics.null_value_counts[1]
        0
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    record_count: int | None = Field(
        default=None,
        description="Number of records (None if unknown)",
    )
    column_sizes: Mapping[int, int] | None = Field(default=None)
    value_counts: Mapping[int, int] | None = Field(default=None)
    null_value_counts: Mapping[int, int] | None = Field(default=None)
    nan_value_counts: Mapping[int, int] | None = Field(default=None)
    lower_bounds: Mapping[int, bytes] | None = Field(default=None)
    upper_bounds: Mapping[int, bytes] | None = Field(default=None)

    @field_validator(*_METRIC_MAPS)
    @classmethod
    def freeze_map(cls, value: Mapping[int, Any] | None) -> Mapping[int, Any] | None:
        """Store per-column maps as read-only views over private copies."""
        if value is None:
            return None
        return MappingProxyType(dict(value))


# =============================================================================
# Configuration
# =============================================================================


class DeleteFileBuilderConfig(BaseModel):
    """Configuration for DeleteFileBuilder.

    All fields default to no additional restrictions, so a default config
    builds every descriptor the builder's own rules accept.

    Attributes:
        format_version: Table format version to validate against (1-3).
            Version 1 tables cannot hold delete files and deletion vectors
            need version 3. None disables the check.
        default_format: Format used when none is set and the location has
            no recognizable extension.

    Example:
        >>> config = DeleteFileBuilderConfig.from_table_properties(
        ...     {"format-version": "2", "write.delete.format.default": "avro"}
        ... )
        >>> config.default_format
        <FileFormat.AVRO: 'avro'>
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    format_version: int | None = Field(
        default=None,
        ge=1,
        le=3,
        description="Table format version (None disables version checks)",
    )
    default_format: FileFormat | None = Field(
        default=None,
        description="Fallback format when it cannot be inferred from the location",
    )

    @classmethod
    def from_table_properties(cls, properties: Mapping[str, str]) -> DeleteFileBuilderConfig:
        """Build a config from table properties.

        Reads ``format-version`` and ``write.delete.format.default``;
        missing properties keep their defaults.

        Args:
            properties: Table properties.

        Returns:
            DeleteFileBuilderConfig for the table.

        Raises:
            ValidationError: If the format version is not an integer or the
                default format name is unknown.
        """
        raw_version = properties.get(FORMAT_VERSION_PROPERTY)
        format_version: int | None = None
        if raw_version is not None:
            try:
                format_version = int(raw_version)
            except ValueError:
                msg = f"Invalid table format version: {raw_version}"
                raise ValidationError(
                    msg, field=FORMAT_VERSION_PROPERTY, value=raw_version
                ) from None

        raw_format = properties.get(DELETE_DEFAULT_FILE_FORMAT_PROPERTY)
        default_format = FileFormat.from_string(raw_format) if raw_format else None

        return cls(format_version=format_version, default_format=default_format)


__all__ = [
    "DELETE_DEFAULT_FILE_FORMAT_PROPERTY",
    "FORMAT_VERSION_PROPERTY",
    "UNSORTED_SORT_ORDER_ID",
    "DeleteFileBuilderConfig",
    "FieldType",
    "FileContent",
    "FileFormat",
    "Metrics",
    "PartitionField",
    "PartitionSpec",
    "PartitionTransform",
    "SortOrder",
]
