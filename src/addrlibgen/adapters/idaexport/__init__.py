"""Public interface for the IDA export adapter."""

from __future__ import annotations

from .parser import (
    BASE_FILE,
    FUNCTION_FILE,
    GLOBAL_FILE,
    NAME_FILE,
    STRING_FILE,
    VTABLE_FILE,
    parse_base_address,
    parse_function_records,
    parse_global_records,
    parse_name_hints,
    parse_string_records,
    parse_vtable_records,
)
from .schema import BaseAddressRecordModel, EntityRecordModel
from .translator import (
    EXPORT_DIRECTORY_PATTERN,
    build_version_node,
    discover_export_directories,
    load_export_directory,
    name_hash,
)

__all__ = [
    "BASE_FILE",
    "EXPORT_DIRECTORY_PATTERN",
    "FUNCTION_FILE",
    "GLOBAL_FILE",
    "NAME_FILE",
    "STRING_FILE",
    "VTABLE_FILE",
    "BaseAddressRecordModel",
    "EntityRecordModel",
    "build_version_node",
    "discover_export_directories",
    "load_export_directory",
    "name_hash",
    "parse_base_address",
    "parse_function_records",
    "parse_global_records",
    "parse_name_hints",
    "parse_string_records",
    "parse_vtable_records",
]
