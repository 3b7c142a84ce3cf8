# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Relations between applications and their endpoints."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel
from pydantic import Field as _Field

from modeldesc.errors import DescriptionError
from modeldesc.model.status import Status, import_status, status_to_dict
from modeldesc.schema.checkers import OMIT, AnyValue, Bool, Int, String, StringMap
from modeldesc.schema.envelope import collection_to_dict, import_collection, import_list, versioned_checker
from modeldesc.schema.registry import FieldSchema, SchemaRegistry

# ###############
# Public Interface
# ###############


class Endpoint(BaseModel):
    """One side of a relation.

    Attributes:
        unit_settings: Unit name to the relation settings of that unit.
    """

    application_name: str
    name: str
    role: str
    interface: str
    optional: bool = False
    limit: int = 0
    scope: str = ""
    unit_settings: dict[str, dict[str, Any]] = _Field(default_factory=dict)
    application_settings: dict[str, Any] = _Field(default_factory=dict)

    def set_unit_settings(self, unit_name: str, settings: dict[str, Any]) -> None:
        self.unit_settings[unit_name] = settings


class Relation(BaseModel):
    id: int
    key: str
    suspended: bool = False
    suspended_reason: str = ""
    status: Status | None = None
    endpoints: list[Endpoint] = _Field(default_factory=list)

    def add_endpoint(self, **kwargs: Any) -> Endpoint:
        endpoint = Endpoint(**kwargs)
        self.endpoints.append(endpoint)
        return endpoint


def import_relations(source: Any) -> list[Relation]:
    """Import the ``relations`` collection.

    A relation status written as an explicit null means the relation has no
    status; the key is dropped before the relation is coerced.
    """
    try:
        valid = versioned_checker("relations").coerce(source)
    except DescriptionError as exc:
        raise exc.annotated("relations version schema check failed") from exc
    version = valid["version"]
    schema = _RELATION_SCHEMAS.lookup(version)
    items = [_drop_null_status(item) for item in valid["relations"]]
    return import_list(items, kind="relation", version=version, schema=schema, build=_relation_from_valid)


def relations_to_dict(relations: list[Relation]) -> dict[str, Any]:
    return collection_to_dict("relations", _RELATION_SCHEMAS, relations, _relation_to_dict)


# ################
# Implementation
# ################


def _drop_null_status(item: Any) -> Any:
    if isinstance(item, Mapping) and "status" in item and item["status"] is None:
        return {key: value for key, value in item.items() if key != "status"}
    return item


def _relation_v1_fields() -> FieldSchema:
    return FieldSchema.of({"id": Int(), "key": String(), "endpoints": StringMap(AnyValue())})


def _relation_v2_fields() -> FieldSchema:
    return _relation_v1_fields().add("status", StringMap(AnyValue()), OMIT)


def _relation_v3_fields() -> FieldSchema:
    return _relation_v2_fields().add("suspended", Bool(), False).add("suspended-reason", String(), "")


_RELATION_SCHEMAS = SchemaRegistry.from_functions(
    "relation",
    {1: _relation_v1_fields, 2: _relation_v2_fields, 3: _relation_v3_fields},
)


def _relation_from_valid(valid: dict[str, Any], version: int) -> Relation:
    relation = Relation(id=valid["id"], key=valid["key"])
    if version >= 3:
        relation.suspended = valid["suspended"]
        relation.suspended_reason = valid["suspended-reason"]
    if version >= 2 and "status" in valid:
        relation.status = import_status(valid["status"])
    relation.endpoints = import_collection(
        valid["endpoints"],
        key="endpoints",
        kind="endpoint",
        registry=_ENDPOINT_SCHEMAS,
        build=_endpoint_from_valid,
    )
    return relation


def _relation_to_dict(relation: Relation) -> dict[str, Any]:
    d: dict[str, Any] = {
        "id": relation.id,
        "key": relation.key,
        "endpoints": collection_to_dict("endpoints", _ENDPOINT_SCHEMAS, relation.endpoints, _endpoint_to_dict),
        "suspended": relation.suspended,
        "suspended-reason": relation.suspended_reason,
    }
    if relation.status is not None:
        d["status"] = status_to_dict(relation.status)
    return d


def _endpoint_v1_fields() -> FieldSchema:
    return FieldSchema.of(
        {
            "application-name": String(),
            "name": String(),
            "role": String(),
            "interface": String(),
            "optional": Bool(),
            "limit": Int(),
            "scope": String(),
            "unit-settings": StringMap(StringMap(AnyValue())),
        }
    )


def _endpoint_v2_fields() -> FieldSchema:
    return _endpoint_v1_fields().add("application-settings", StringMap(AnyValue()))


_ENDPOINT_SCHEMAS = SchemaRegistry.from_functions("endpoint", {1: _endpoint_v1_fields, 2: _endpoint_v2_fields})


def _endpoint_from_valid(valid: dict[str, Any], version: int) -> Endpoint:
    endpoint = Endpoint(
        application_name=valid["application-name"],
        name=valid["name"],
        role=valid["role"],
        interface=valid["interface"],
        optional=valid["optional"],
        limit=valid["limit"],
        scope=valid["scope"],
        unit_settings=valid["unit-settings"],
    )
    if version >= 2:
        endpoint.application_settings = valid["application-settings"]
    return endpoint


def _endpoint_to_dict(endpoint: Endpoint) -> dict[str, Any]:
    return {
        "application-name": endpoint.application_name,
        "name": endpoint.name,
        "role": endpoint.role,
        "interface": endpoint.interface,
        "optional": endpoint.optional,
        "limit": endpoint.limit,
        "scope": endpoint.scope,
        "unit-settings": endpoint.unit_settings,
        "application-settings": endpoint.application_settings,
    }
