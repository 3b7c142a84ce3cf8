# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Field-schema registry: per entity kind, a table from version number to schema.

The schema of version N is written as the schema of version N-1 plus a small
delta (add a field, remove a field, change a default). :class:`FieldSchema` is
immutable, so every delta returns a new schema and earlier versions can never be
changed by accident through aliasing.

Registries are built once at import time and are read-only afterwards.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Generic, TypeVar

from modeldesc.errors import NotValidError
from modeldesc.schema.checkers import OMIT, Checker, FieldMap

# ###############
# Public Interface
# ###############

T = TypeVar("T")


class _Required:
    def __repr__(self) -> str:
        return "REQUIRED"


REQUIRED: Any = _Required()


@dataclass(frozen=True)
class FieldSchema:
    """The required fields and the optional-field defaults of one schema version.

    Attributes:
        fields: Field name to checker, in declaration order.
        defaults: Field name to default value or :data:`OMIT` for optional fields.
    """

    fields: Mapping[str, Checker]
    defaults: Mapping[str, Any]

    @classmethod
    def of(cls, fields: Mapping[str, Checker], defaults: Mapping[str, Any] | None = None) -> FieldSchema:
        """Build a schema from plain dictionaries, copying them."""
        unknown = set(defaults or {}) - set(fields)
        if unknown:
            raise ValueError(f"defaults for undeclared fields: {', '.join(sorted(unknown))}")
        return cls(MappingProxyType(dict(fields)), MappingProxyType(dict(defaults or {})))

    def add(self, name: str, checker: Checker, default: Any = REQUIRED) -> FieldSchema:
        """Return a schema with ``name`` added (or its checker replaced).

        Without ``default`` the field is required; pass :data:`OMIT` to make it optional.
        """
        fields = dict(self.fields)
        fields[name] = checker
        defaults = dict(self.defaults)
        if default is REQUIRED:
            defaults.pop(name, None)
        else:
            defaults[name] = default
        return FieldSchema.of(fields, defaults)

    def remove(self, name: str) -> FieldSchema:
        """Return a schema without ``name``."""
        if name not in self.fields:
            raise KeyError(name)
        fields = {key: value for key, value in self.fields.items() if key != name}
        defaults = {key: value for key, value in self.defaults.items() if key != name}
        return FieldSchema.of(fields, defaults)

    def with_default(self, name: str, default: Any) -> FieldSchema:
        """Return a schema where ``name`` is optional with ``default`` (REQUIRED makes it required)."""
        return self.add(name, self.fields[name], default)

    def merge(self, other: FieldSchema) -> FieldSchema:
        """Return a schema with every field of ``other`` added."""
        fields = {**self.fields, **other.fields}
        defaults = {key: value for key, value in self.defaults.items() if key not in other.fields}
        defaults.update(other.defaults)
        return FieldSchema.of(fields, defaults)

    def checker(self) -> FieldMap:
        """Return the :class:`FieldMap` checker for this schema."""
        return FieldMap(self.fields, self.defaults)

    def is_optional(self, name: str) -> bool:
        return name in self.defaults

    def omits(self, name: str) -> bool:
        return self.defaults.get(name, None) is OMIT


class VersionRegistry(Generic[T]):
    """A read-only table from version number to a per-version entry.

    The current version is always the largest key. A well formed registry holds
    every version from 1 to the current one.
    """

    def __init__(self, kind: str, entries: Mapping[int, T]) -> None:
        if not entries:
            raise ValueError(f"{kind} registry must declare at least one version")
        self.kind = kind
        self._entries: Mapping[int, T] = MappingProxyType(dict(sorted(entries.items())))
        _ALL_REGISTRIES.append(self)

    @classmethod
    def from_functions(cls, kind: str, functions: Mapping[int, Callable[[], T]]) -> VersionRegistry[T]:
        """Build a registry by calling each per-version function once."""
        return cls(kind, {version: function() for version, function in functions.items()})

    @property
    def current(self) -> int:
        return max(self._entries)

    @property
    def versions(self) -> tuple[int, ...]:
        return tuple(self._entries)

    def missing_versions(self) -> list[int]:
        """Return the versions between 1 and the current version that have no entry."""
        return [version for version in range(1, self.current + 1) if version not in self._entries]

    def lookup(self, version: int) -> T:
        """Return the entry for ``version``.

        Raises:
            NotValidError: If the version is not registered.
        """
        try:
            return self._entries[version]
        except KeyError:
            raise NotValidError(f"version {version} not valid") from None

    def __contains__(self, version: object) -> bool:
        return version in self._entries

    def __iter__(self) -> Iterator[int]:
        return iter(self._entries)

    def __repr__(self) -> str:
        return f"VersionRegistry({self.kind!r}, versions={list(self._entries)})"


SchemaRegistry = VersionRegistry[FieldSchema]


def all_registries() -> list[VersionRegistry[Any]]:
    """Return every registry created so far, in creation order."""
    return list(_ALL_REGISTRIES)


# ################
# Implementation
# ################

_ALL_REGISTRIES: list[VersionRegistry[Any]] = []
