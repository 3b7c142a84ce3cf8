# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Composable checkers that coerce decoded YAML values into canonical Python values.

A decoded document is a tree of ``None``, ``bool``, ``int``, ``float``, ``str``,
``bytes``, ``datetime``, ``list`` and ``dict`` values. A checker either returns
the canonically typed value or raises :class:`~modeldesc.errors.SchemaError`
naming the offending path together with the expected and actual type.

Coercion is total and deterministic: fields of a :class:`FieldMap` are visited
in declaration order, so the same input always yields the same result or the
same error.
"""

from __future__ import annotations

import datetime as _dt
import re
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from modeldesc.errors import SchemaError

# ###############
# Public Interface
# ###############

Path = tuple[str, ...]


class _Omit:
    """Marker type for a field that may be absent and stays unset when it is."""

    _instance: _Omit | None = None

    def __new__(cls) -> _Omit:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "OMIT"


OMIT = _Omit()


class Checker(ABC):
    """Base class of all checkers."""

    @abstractmethod
    def coerce(self, value: Any, path: Path = ()) -> Any:
        """Coerce ``value`` or raise :class:`SchemaError` mentioning ``path``."""


class String(Checker):
    def coerce(self, value: Any, path: Path = ()) -> str:
        if isinstance(value, str):
            return value
        raise _mismatch("string", value, path)


class Int(Checker):
    """Accept integers and decimal strings, never booleans or floats."""

    def coerce(self, value: Any, path: Path = ()) -> int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str) and _DECIMAL_INT.match(value):
            return int(value)
        raise _mismatch("int", value, path)


class ForceUint(Checker):
    """Accept any non-negative numeric representation and return an ``int``."""

    def coerce(self, value: Any, path: Path = ()) -> int:
        result: int | None = None
        if isinstance(value, int) and not isinstance(value, bool):
            result = value
        elif isinstance(value, float) and value.is_integer():
            result = int(value)
        elif isinstance(value, str):
            result = _parse_uint(value)
        if result is None or result < 0:
            raise _mismatch("uint", value, path)
        return result


_TRUE_STRINGS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_STRINGS = frozenset({"0", "f", "F", "FALSE", "false", "False"})


class Bool(Checker):
    def coerce(self, value: Any, path: Path = ()) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            if value in _TRUE_STRINGS:
                return True
            if value in _FALSE_STRINGS:
                return False
        raise _mismatch("bool", value, path)


class Time(Checker):
    """Accept a ``datetime`` or an ISO 8601 timestamp string."""

    def coerce(self, value: Any, path: Path = ()) -> _dt.datetime:
        if isinstance(value, _dt.datetime):
            return value
        if isinstance(value, str):
            text = value.strip()
            if text.endswith("Z"):
                text = text[:-1] + "+00:00"
            try:
                return _dt.datetime.fromisoformat(text)
            except ValueError:
                pass
        raise _mismatch("time", value, path)


class AnyValue(Checker):
    """Pass any value through untouched, including ``None``."""

    def coerce(self, value: Any, path: Path = ()) -> Any:
        return value


class List(Checker):
    def __init__(self, elem: Checker) -> None:
        self.elem = elem

    def coerce(self, value: Any, path: Path = ()) -> list[Any]:
        if not isinstance(value, (list, tuple)):
            raise _mismatch("list", value, path)
        return [self.elem.coerce(item, (*path, f"[{index}]")) for index, item in enumerate(value)]


class Map(Checker):
    def __init__(self, key: Checker, value: Checker) -> None:
        self.key = key
        self.value = value

    def coerce(self, value: Any, path: Path = ()) -> dict[Any, Any]:
        if not isinstance(value, Mapping):
            raise _mismatch("map", value, path)
        result: dict[Any, Any] = {}
        for raw_key, raw_value in value.items():
            key = self.key.coerce(raw_key, path)
            result[key] = self.value.coerce(raw_value, (*path, _key_segment(key)))
        return result


class StringMap(Map):
    """A map whose keys must be strings."""

    def __init__(self, value: Checker) -> None:
        super().__init__(String(), value)


class FieldMap(Checker):
    """Coerce a mapping against a fixed set of named fields.

    Every field is required unless it has an entry in ``defaults``: an absent
    required field is coerced as ``None``, which only :class:`AnyValue` accepts.
    A default of :data:`OMIT` lets the field be absent and leaves it out of the
    result; any other default is coerced through the field's checker as if it
    had been present. Keys that are not declared fields are ignored.
    """

    def __init__(self, fields: Mapping[str, Checker], defaults: Mapping[str, Any] | None = None) -> None:
        self.fields = dict(fields)
        self.defaults = dict(defaults or {})

    def coerce(self, value: Any, path: Path = ()) -> dict[str, Any]:
        if not isinstance(value, Mapping):
            raise _mismatch("map", value, path)
        result: dict[str, Any] = {}
        for name, checker in self.fields.items():
            field_path = (*path, f".{name}")
            if name in value:
                raw = value[name]
            elif name in self.defaults:
                default = self.defaults[name]
                if default is OMIT:
                    continue
                raw = default
            else:
                raw = None
            result[name] = checker.coerce(raw, field_path)
        return result


def path_string(path: Path) -> str:
    """Render a checker path such as ``('.machines', '[0]', '.id')`` as ``machines[0].id``."""
    return "".join(path).lstrip(".")


# ################
# Implementation
# ################


_DECIMAL_INT = re.compile(r"^[+-]?[0-9]+\Z")
_DECIMAL_FLOAT = re.compile(r"^[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?\Z")


def _describe(value: Any) -> str:
    """Describe the dynamic type and value of a decoded value for error messages."""
    if value is None:
        return "nothing"
    return f"{type(value).__name__}({value!r})"


def _mismatch(expected: str, value: Any, path: Path) -> SchemaError:
    """Build the error raised when ``value`` is not of the ``expected`` type."""
    where = path_string(path)
    prefix = f"{where}: " if where else ""
    return SchemaError(f"{prefix}expected {expected}, got {_describe(value)}")


def _key_segment(key: Any) -> str:
    """Path segment for a map key."""
    if isinstance(key, str):
        return f".{key}"
    return f"[{key!r}]"


def _parse_uint(text: str) -> int | None:
    """Parse a decimal or integral floating point string, or return None."""
    if _DECIMAL_INT.match(text):
        return int(text)
    if not _DECIMAL_FLOAT.match(text):
        return None
    number = float(text)
    if not number.is_integer():
        return None
    return int(number)
