# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""The versioned envelope protocol shared by every importer and exporter.

Three envelope shapes exist on the wire:

* a collection ``{version: N, <key>: [entity, ...]}``,
* an embedded document ``{version: N, <key>: {...}}``,
* a self-versioned document ``{version: N, field: ..., ...}``.

Importing always happens in two phases. A version-only checker reads the
``version`` integer while letting the payload through untouched, the version is
looked up in the registry of the entity kind (an unknown version is fatal), and
only then is the payload coerced with the schema of that version and handed to a
builder that upgrades it to the current in-memory shape.

Exporting always writes the current version of the registry.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any, TypeVar

from modeldesc.errors import DescriptionError, SchemaError
from modeldesc.schema.checkers import AnyValue, FieldMap, Int, List, StringMap
from modeldesc.schema.registry import FieldSchema, SchemaRegistry

# ###############
# Public Interface
# ###############

T = TypeVar("T")

Builder = Callable[[dict[str, Any], int], T]


def versioned_checker(key: str) -> FieldMap:
    """Checker reading the version of a collection envelope, passing the list through."""
    return FieldMap({"version": Int(), key: List(AnyValue())})


def versioned_map_checker(key: str) -> FieldMap:
    """Checker reading the version of an embedded document, passing the mapping through."""
    return FieldMap({"version": Int(), key: StringMap(AnyValue())})


def get_version(source: Any) -> int:
    """Read the ``version`` key of a self-versioned document."""
    return FieldMap({"version": Int()}).coerce(source)["version"]


def import_collection(
    source: Any,
    *,
    key: str,
    kind: str,
    registry: SchemaRegistry,
    build: Builder[T],
) -> list[T]:
    """Import a collection envelope ``{version, <key>: [...]}``.

    Args:
        source: The decoded envelope.
        key: The payload key holding the entity list.
        kind: Entity kind used in error annotations.
        registry: The schema registry of the entity kind.
        build: Turns a coerced mapping and its version into an entity.

    Returns:
        The entities in document order.

    Raises:
        SchemaError: If the envelope or one of its entities is malformed.
        NotValidError: If the declared version is not registered.
    """
    try:
        valid = versioned_checker(key).coerce(source)
    except DescriptionError as exc:
        raise exc.annotated(f"{key} version schema check failed") from exc
    version = valid["version"]
    schema = registry.lookup(version)
    return import_list(valid[key], kind=kind, version=version, schema=schema, build=build)


def import_list(
    items: Iterable[Any],
    *,
    kind: str,
    version: int,
    schema: FieldSchema,
    build: Builder[T],
) -> list[T]:
    """Import each mapping of ``items`` with the same version and schema."""
    result: list[T] = []
    for index, item in enumerate(items):
        if not isinstance(item, Mapping):
            raise SchemaError(f"unexpected value for {kind} {index}, {type(item).__name__}")
        try:
            result.append(import_item(item, kind=kind, version=version, schema=schema, build=build))
        except DescriptionError as exc:
            raise exc.annotated(f"{kind} {index}") from exc
    return result


def import_item(
    source: Any,
    *,
    kind: str,
    version: int,
    schema: FieldSchema,
    build: Builder[T],
) -> T:
    """Coerce one mapping with ``schema`` and build the entity."""
    try:
        valid = schema.checker().coerce(source)
    except DescriptionError as exc:
        raise exc.annotated(f"{kind} v{version} schema check failed") from exc
    return build(valid, version)


def import_embedded(
    source: Any,
    *,
    key: str,
    kind: str,
    registry: SchemaRegistry,
    build: Builder[T],
) -> T:
    """Import an embedded document ``{version, <key>: {...}}``."""
    try:
        valid = versioned_map_checker(key).coerce(source)
    except DescriptionError as exc:
        raise exc.annotated(f"{kind} version schema check failed") from exc
    version = valid["version"]
    schema = registry.lookup(version)
    return import_item(valid[key], kind=kind, version=version, schema=schema, build=build)


def import_self_versioned(
    source: Any,
    *,
    kind: str,
    registry: SchemaRegistry,
    build: Builder[T],
) -> T:
    """Import a document carrying its own ``version`` key next to its fields."""
    try:
        version = get_version(source)
    except DescriptionError as exc:
        raise exc.annotated(f"{kind} version schema check failed") from exc
    schema = registry.lookup(version)
    return import_item(source, kind=kind, version=version, schema=schema, build=build)


def collection_to_dict(
    key: str,
    registry: SchemaRegistry,
    items: Iterable[T],
    to_dict: Callable[[T], dict[str, Any]],
) -> dict[str, Any]:
    """Export entities as a collection envelope at the current version."""
    return {"version": registry.current, key: [to_dict(item) for item in items]}


def embedded_to_dict(key: str, registry: SchemaRegistry, payload: dict[str, Any]) -> dict[str, Any]:
    """Export a payload as an embedded document at the current version."""
    return {"version": registry.current, key: payload}


def self_versioned_to_dict(registry: SchemaRegistry, payload: dict[str, Any]) -> dict[str, Any]:
    """Export a payload with the current version folded into it."""
    return {"version": registry.current, **payload}


def string_list(value: Any) -> list[str]:
    """Return a coerced list of strings, or an empty list for an omitted field."""
    if value is None:
        return []
    return [str(item) for item in value]
