"""floe-deletes: builder and descriptor types for table delete files.

This package assembles and validates delete-file descriptors: immutable
metadata records telling a table reader which rows of a data file have
been logically removed. It covers position deletes, equality deletes and
deletion vectors stored in Puffin files.

The package performs no I/O. File locations, partition specs and
encryption keys are supplied by the caller through narrow protocols
compatible with PyIceberg.

Example:
    >>> from floe_deletes import Metrics, PartitionSpec, delete_file_builder
    >>>
    >>> delete_file = (
    ...     delete_file_builder(PartitionSpec.unpartitioned())
    ...     .set_content_position_deletes()
    ...     .set_location("s3://bucket/deletes/00001.parquet")
    ...     .set_file_size_in_bytes(100)
    ...     .set_metrics(Metrics(record_count=5))
    ...     .build()
    ... )

Modules:
    builder: DeleteFileBuilder and delete_file_builder()
    descriptor: DeleteFile immutable descriptor
    models: Pydantic models and enumerations
    partitions: Partition value staging and parsing
    files: File location and buffer services
    errors: Custom exception types
    telemetry: OpenTelemetry instrumentation
    logging: structlog configuration
"""

from __future__ import annotations

__version__ = "0.1.0"
__all__ = [
    "DeleteFile",
    "DeleteFileBuilder",
    "DeleteFileBuilderConfig",
    "FileContent",
    "FileFormat",
    "Metrics",
    "PartitionSpec",
    "delete_file_builder",
]

_LAZY_ATTRIBUTES = {
    "DeleteFile": "floe_deletes.descriptor",
    "DeleteFileBuilder": "floe_deletes.builder",
    "delete_file_builder": "floe_deletes.builder",
    "DeleteFileBuilderConfig": "floe_deletes.models",
    "FileContent": "floe_deletes.models",
    "FileFormat": "floe_deletes.models",
    "Metrics": "floe_deletes.models",
    "PartitionSpec": "floe_deletes.models",
}


# Lazy imports to avoid circular dependencies and improve startup time
def __getattr__(name: str) -> object:
    """Lazy import of package components."""
    module_name = _LAZY_ATTRIBUTES.get(name)
    if module_name is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)

    from importlib import import_module

    return getattr(import_module(module_name), name)
