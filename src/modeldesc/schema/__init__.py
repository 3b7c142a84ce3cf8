# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Checker algebra, field-schema registry and versioned envelope protocol."""

from modeldesc.schema.checkers import (
    OMIT,
    AnyValue,
    Bool,
    Checker,
    FieldMap,
    ForceUint,
    Int,
    List,
    Map,
    String,
    StringMap,
    Time,
)
from modeldesc.schema.registry import FieldSchema, SchemaRegistry, VersionRegistry, all_registries

__all__ = [
    # Checkers
    "OMIT",
    "Checker",
    "String",
    "Int",
    "ForceUint",
    "Bool",
    "Time",
    "AnyValue",
    "List",
    "Map",
    "StringMap",
    "FieldMap",
    # Registry
    "FieldSchema",
    "SchemaRegistry",
    "VersionRegistry",
    "all_registries",
]
