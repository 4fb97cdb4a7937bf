"""Partition values for delete-file descriptors.

This module is the partition-spec service used by DeleteFileBuilder:

- PartitionData: mutable staging struct owned by a single builder
- PartitionRecord: frozen partition value held by a built DeleteFile
- new_partition_data(): empty staging struct for a spec
- copy_partition_data(): independent copy of a raw or typed partition value
- fill_from_path(): parse a ``name=value/...`` partition path
- freeze_partition(): snapshot staging data into a PartitionRecord

Values are positional and follow the order of the spec's fields. Byte
values are always copied into ``bytes`` so no two structs share a buffer.

Example:
    >>> data = fill_from_path(spec, "region=eu/event_day=2024-01-02")
    >>> data["region"]
    'eu'
    >>> freeze_partition(spec, data).to_dict()
    {'region': 'eu', 'event_day': 19724}
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Iterator, Mapping, Sequence
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from urllib.parse import unquote_plus

from pydantic import BaseModel, ConfigDict, Field, model_validator

from floe_deletes.errors import ValidationError
from floe_deletes.models import FieldType

if TYPE_CHECKING:
    from floe_deletes.models import PartitionField, PartitionSpec

NULL_PARTITION_VALUE = "null"
"""Partition path literal that stands for a null partition value."""

_EPOCH = date(1970, 1, 1)


# =============================================================================
# Partition Values
# =============================================================================


class PartitionData:
    """Mutable partition value bound to a spec's fields.

    Owned exclusively by one DeleteFileBuilder while it stages a
    descriptor. Values are addressed by position or by field name.

    Example:
        >>> data = new_partition_data(spec)
        >>> data.set(0, "eu")
        >>> data.to_dict()
        {'region': 'eu'}
    """

    __slots__ = ("_fields", "_values")

    def __init__(self, fields: Sequence[PartitionField]) -> None:
        self._fields = tuple(fields)
        self._values: list[Any] = [None] * len(self._fields)

    @property
    def fields(self) -> tuple[PartitionField, ...]:
        """Partition fields, in spec order."""
        return self._fields

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[Any]:
        return iter(tuple(self._values))

    def __getitem__(self, key: int | str) -> Any:
        if isinstance(key, str):
            return self._values[self.index_of(key)]
        return self._values[key]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PartitionData):
            return NotImplemented
        return self.names == other.names and self._values == other._values

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        values = ", ".join(f"{name}={value!r}" for name, value in self.to_dict().items())
        return f"PartitionData({values})"

    @property
    def names(self) -> tuple[str, ...]:
        """Partition field names, in spec order."""
        return tuple(field.name for field in self._fields)

    def index_of(self, name: str) -> int:
        """Position of the named field.

        Raises:
            KeyError: If no field has this name.
        """
        for pos, field in enumerate(self._fields):
            if field.name == name:
                return pos
        raise KeyError(name)

    def get(self, pos: int) -> Any:
        """Value at position ``pos``."""
        return self._values[pos]

    def set(self, pos: int, value: Any) -> None:
        """Set the value at position ``pos``."""
        self._values[pos] = _copy_value(value)

    def clear(self) -> None:
        """Reset every value to None."""
        self._values = [None] * len(self._fields)

    def copy(self) -> PartitionData:
        """Independent copy of this partition value."""
        data = PartitionData(self._fields)
        data._values = [_copy_value(value) for value in self._values]
        return data

    def to_dict(self) -> dict[str, Any]:
        """Values keyed by field name."""
        return dict(zip(self.names, self._values))


class PartitionRecord(BaseModel):
    """Frozen partition value held by a DeleteFile.

    Attributes:
        field_names: Partition field names, in spec order.
        field_values: Partition values, aligned with field_names.

    Example:
        >>> record = PartitionRecord(field_names=("region",), field_values=("eu",))
        >>> record["region"], record[0]
        ('eu', 'eu')
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    field_names: tuple[str, ...] = Field(..., description="Partition field names")
    field_values: tuple[Any, ...] = Field(..., description="Partition values")

    @model_validator(mode="after")
    def validate_aligned(self) -> PartitionRecord:
        """Ensure every field name has exactly one value.

        Raises:
            ValueError: If names and values differ in length.
        """
        if len(self.field_names) != len(self.field_values):
            msg = (
                f"Partition record has {len(self.field_names)} names "
                f"but {len(self.field_values)} values"
            )
            raise ValueError(msg)
        return self

    def __len__(self) -> int:
        return len(self.field_values)

    def __getitem__(self, key: int | str) -> Any:
        if isinstance(key, str):
            try:
                return self.field_values[self.field_names.index(key)]
            except ValueError:
                raise KeyError(key) from None
        return self.field_values[key]

    def to_dict(self) -> dict[str, Any]:
        """Values keyed by field name."""
        return dict(zip(self.field_names, self.field_values))


# =============================================================================
# Partition Service
# =============================================================================


def new_partition_data(spec: PartitionSpec) -> PartitionData:
    """Create an empty staging struct for ``spec``."""
    return PartitionData(spec.fields)


def copy_partition_data(
    spec: PartitionSpec,
    source: PartitionData | PartitionRecord | Mapping[str, Any] | Sequence[Any],
    reuse: PartitionData | None = None,
) -> PartitionData:
    """Copy a partition value into an independent staging struct.

    Args:
        spec: Partition spec the value belongs to.
        source: Typed partition value, a mapping keyed by field name, or a
            sequence of values in spec order.
        reuse: Staging struct to overwrite instead of allocating one.

    Returns:
        PartitionData holding copies of the source values.

    Raises:
        ValidationError: If the source does not fit the spec's fields or a
            value does not have the field's result type.
    """
    values = _source_values(spec, source)
    for field, value in zip(spec.fields, values):
        _check_partition_value(field, value)
    data = _reusable(spec, reuse)
    for pos, value in enumerate(values):
        data.set(pos, value)
    return data


def fill_from_path(
    spec: PartitionSpec,
    partition_path: str,
    reuse: PartitionData | None = None,
) -> PartitionData:
    """Parse a partition path such as ``region=eu/event_day=2024-01-02``.

    The path must name every partition field exactly once, in spec order.
    Values are URL-decoded and converted to the field's result type; the
    literal ``null`` yields None.

    Args:
        spec: Partition spec describing the path.
        partition_path: Partition path to parse.
        reuse: Staging struct to overwrite instead of allocating one.

    Returns:
        PartitionData with the parsed values.

    Raises:
        ValidationError: If the path does not match the spec or a value
            cannot be converted. ``reuse`` is left untouched on failure.
    """
    parts = partition_path.split("/")
    expected = len(spec.fields)
    if len(parts) > expected:
        msg = f"Invalid partition data, too many fields (expecting {expected}): {partition_path}"
        raise ValidationError(msg, field="partition_path", value=partition_path)
    if len(parts) < expected:
        msg = f"Invalid partition data, not enough fields (expecting {expected}): {partition_path}"
        raise ValidationError(msg, field="partition_path", value=partition_path)

    values: list[Any] = []
    for part, field in zip(parts, spec.fields):
        name, sep, raw_value = part.partition("=")
        if not sep or name != field.name:
            msg = f"Invalid partition: {part}"
            raise ValidationError(
                msg,
                field="partition_path",
                value=partition_path,
                details={"expected_field": field.name},
            )
        values.append(from_partition_string(field.result_type, unquote_plus(raw_value)))

    data = _reusable(spec, reuse)
    for pos, value in enumerate(values):
        data.set(pos, value)
    return data


def freeze_partition(spec: PartitionSpec, data: PartitionData | None) -> PartitionRecord | None:
    """Snapshot staging data into a frozen record.

    Returns None for unpartitioned specs.
    """
    if not spec.is_partitioned or data is None:
        return None
    return PartitionRecord(
        field_names=tuple(field.name for field in spec.fields),
        field_values=tuple(_copy_value(value) for value in data),
    )


def from_partition_string(field_type: FieldType, value: str) -> Any:
    """Convert a decoded partition path value to a partition value.

    Dates become days since the epoch, matching how the table format
    stores them.

    Raises:
        ValidationError: If the type is not supported in partition paths or
            the value cannot be parsed.
    """
    if value == NULL_PARTITION_VALUE:
        return None

    parser = _PARTITION_STRING_PARSERS.get(field_type)
    if parser is None:
        msg = f"Unsupported type for partition path values: {field_type.value}"
        raise ValidationError(msg, field="partition_path", value=value)

    try:
        return parser(value)
    except (ValueError, ArithmeticError):
        msg = f"Cannot parse {field_type.value} partition value: {value}"
        raise ValidationError(msg, field="partition_path", value=value) from None


# =============================================================================
# Helpers
# =============================================================================


def _parse_bool(value: str) -> bool:
    return value.lower() == "true"


def _parse_date(value: str) -> int:
    return (date.fromisoformat(value) - _EPOCH).days


def _parse_bytes(value: str) -> bytes:
    return value.encode("utf-8")


_PARTITION_STRING_PARSERS: dict[FieldType, Callable[[str], Any]] = {
    FieldType.BOOLEAN: _parse_bool,
    FieldType.INT: int,
    FieldType.LONG: int,
    FieldType.FLOAT: float,
    FieldType.DOUBLE: float,
    FieldType.DECIMAL: Decimal,
    FieldType.DATE: _parse_date,
    FieldType.STRING: str,
    FieldType.UUID: uuid.UUID,
    FieldType.FIXED: _parse_bytes,
    FieldType.BINARY: _parse_bytes,
}


_BYTES_TYPES: tuple[type, ...] = (bytes, bytearray, memoryview)

# Accepted Python types per partition result type; dates and times are
# stored as epoch-relative ints
_PARTITION_VALUE_TYPES: dict[FieldType, tuple[type, ...]] = {
    FieldType.BOOLEAN: (bool,),
    FieldType.INT: (int,),
    FieldType.LONG: (int,),
    FieldType.FLOAT: (float, int),
    FieldType.DOUBLE: (float, int),
    FieldType.DECIMAL: (Decimal, int),
    FieldType.DATE: (int,),
    FieldType.TIME: (int,),
    FieldType.TIMESTAMP: (int,),
    FieldType.TIMESTAMPTZ: (int,),
    FieldType.STRING: (str,),
    FieldType.UUID: (uuid.UUID,),
    FieldType.FIXED: _BYTES_TYPES,
    FieldType.BINARY: _BYTES_TYPES,
}


def _check_partition_value(field: PartitionField, value: Any) -> None:
    if value is None:
        return
    result_type = field.result_type
    accepted = _PARTITION_VALUE_TYPES[result_type]
    is_bool_mismatch = isinstance(value, bool) and result_type != FieldType.BOOLEAN
    if is_bool_mismatch or not isinstance(value, accepted):
        msg = f"Invalid {result_type.value} value for partition field {field.name}: {value!r}"
        raise ValidationError(
            msg,
            field="partition",
            value=value,
            details={"partition_field": field.name},
        )


def _copy_value(value: Any) -> Any:
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    return value


def _reusable(spec: PartitionSpec, reuse: PartitionData | None) -> PartitionData:
    if reuse is None or reuse.fields != tuple(spec.fields):
        return new_partition_data(spec)
    return reuse


def _source_values(
    spec: PartitionSpec,
    source: PartitionData | PartitionRecord | Mapping[str, Any] | Sequence[Any],
) -> list[Any]:
    names = [field.name for field in spec.fields]

    if isinstance(source, PartitionRecord):
        values = list(source.field_values)
    elif isinstance(source, PartitionData):
        values = list(source)
    elif isinstance(source, Mapping):
        unknown = set(source) - set(names)
        if unknown:
            msg = f"Unknown partition fields: {sorted(unknown)}"
            raise ValidationError(msg, field="partition", details={"allowed": names})
        values = [source.get(name) for name in names]
    elif isinstance(source, Sequence) and not isinstance(source, (str, bytes)):
        values = list(source)
    else:
        msg = f"Cannot use {type(source).__name__} as a partition value"
        raise ValidationError(msg, field="partition")

    if len(values) != len(names):
        msg = f"Partition value has {len(values)} fields, spec expects {len(names)}"
        raise ValidationError(msg, field="partition", details={"spec_id": spec.spec_id})
    return values


__all__ = [
    "NULL_PARTITION_VALUE",
    "PartitionData",
    "PartitionRecord",
    "copy_partition_data",
    "fill_from_path",
    "freeze_partition",
    "from_partition_string",
    "new_partition_data",
]
