# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Application resources, the resource revisions units use, and unit payloads.

The schema of a resource revision is not versioned on its own: it follows the
version of the enclosing ``resources`` collection. Version 1 revisions used
``fingerprint`` and ``username`` where version 2 uses ``sha384`` and
``retrieved-by``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel
from pydantic import Field as _Field

from modeldesc.errors import DescriptionError, NotValidError
from modeldesc.schema.checkers import OMIT, AnyValue, Int, List, String, StringMap, Time
from modeldesc.schema.envelope import collection_to_dict, import_collection, import_item, string_list
from modeldesc.schema.registry import FieldSchema, SchemaRegistry

# ###############
# Public Interface
# ###############


class ResourceRevision(BaseModel):
    """One revision of a resource blob."""

    revision: int
    type: str
    origin: str
    sha384: str = ""
    size: int = 0
    timestamp: datetime | None = None
    retrieved_by: str = ""


class Resource(BaseModel):
    """A named resource of an application with its application and store revisions."""

    name: str
    application_revision: ResourceRevision | None = None
    charmstore_revision: ResourceRevision | None = None

    def check_invariants(self) -> None:
        if self.application_revision is None:
            raise NotValidError("no application revision set")


class UnitResource(BaseModel):
    """The revision of a resource a unit is using."""

    name: str
    revision: ResourceRevision


class Payload(BaseModel):
    """A workload payload tracked for a unit."""

    name: str
    type: str
    raw_id: str
    state: str
    labels: list[str] = _Field(default_factory=list)


def import_resources(source: Any) -> list[Resource]:
    return import_collection(
        source,
        key="resources",
        kind="resource",
        registry=_RESOURCE_SCHEMAS,
        build=_resource_from_valid,
    )


def resources_to_dict(resources: list[Resource]) -> dict[str, Any]:
    return collection_to_dict("resources", _RESOURCE_SCHEMAS, resources, _resource_to_dict)


def import_unit_resources(source: Any) -> list[UnitResource]:
    return import_collection(
        source,
        key="resources",
        kind="unit resource",
        registry=_UNIT_RESOURCE_SCHEMAS,
        build=_unit_resource_from_valid,
    )


def unit_resources_to_dict(resources: list[UnitResource]) -> dict[str, Any]:
    return collection_to_dict("resources", _UNIT_RESOURCE_SCHEMAS, resources, _unit_resource_to_dict)


def import_payloads(source: Any) -> list[Payload]:
    return import_collection(
        source,
        key="payloads",
        kind="payload",
        registry=_PAYLOAD_SCHEMAS,
        build=_payload_from_valid,
    )


def payloads_to_dict(payloads: list[Payload]) -> dict[str, Any]:
    return collection_to_dict("payloads", _PAYLOAD_SCHEMAS, payloads, _payload_to_dict)


# ################
# Implementation
# ################


def _revision_v1_fields() -> FieldSchema:
    return FieldSchema.of(
        {
            "revision": Int(),
            "type": String(),
            "path": String(),
            "description": String(),
            "origin": String(),
            "fingerprint": String(),
            "size": Int(),
            "timestamp": Time(),
            "username": String(),
        },
        {"timestamp": OMIT, "username": ""},
    )


def _revision_v2_fields() -> FieldSchema:
    return (
        _revision_v1_fields()
        .remove("path")
        .remove("description")
        .remove("fingerprint")
        .remove("username")
        .add("sha384", String())
        .add("retrieved-by", String(), "")
    )


_REVISION_SCHEMAS = SchemaRegistry.from_functions(
    "resource revision",
    {1: _revision_v1_fields, 2: _revision_v2_fields},
)


def _import_revision(source: Any, version: int) -> ResourceRevision:
    return import_item(
        source,
        kind="resource revision",
        version=version,
        schema=_REVISION_SCHEMAS.lookup(version),
        build=_revision_from_valid,
    )


def _revision_from_valid(valid: dict[str, Any], version: int) -> ResourceRevision:
    if version >= 2:
        sha384, retrieved_by = valid["sha384"], valid["retrieved-by"]
    else:
        sha384, retrieved_by = valid["fingerprint"], valid["username"]
    return ResourceRevision(
        revision=valid["revision"],
        type=valid["type"],
        origin=valid["origin"],
        sha384=sha384,
        size=valid["size"],
        timestamp=valid.get("timestamp"),
        retrieved_by=retrieved_by,
    )


def _revision_to_dict(revision: ResourceRevision) -> dict[str, Any]:
    d: dict[str, Any] = {
        "revision": revision.revision,
        "type": revision.type,
        "origin": revision.origin,
        "sha384": revision.sha384,
        "size": revision.size,
    }
    if revision.timestamp is not None:
        d["timestamp"] = revision.timestamp
    if revision.retrieved_by:
        d["retrieved-by"] = revision.retrieved_by
    return d


def _resource_fields() -> FieldSchema:
    return FieldSchema.of(
        {
            "name": String(),
            "application-revision": StringMap(AnyValue()),
            "charmstore-revision": StringMap(AnyValue()),
        },
        {"charmstore-revision": OMIT},
    )


_RESOURCE_SCHEMAS = SchemaRegistry.from_functions("resource", {1: _resource_fields, 2: _resource_fields})


def _resource_from_valid(valid: dict[str, Any], version: int) -> Resource:
    resource = Resource(name=valid["name"])
    try:
        resource.application_revision = _import_revision(valid["application-revision"], version)
    except DescriptionError as exc:
        raise exc.annotated(f"resource {resource.name}: application revision") from exc
    if "charmstore-revision" in valid:
        try:
            resource.charmstore_revision = _import_revision(valid["charmstore-revision"], version)
        except DescriptionError as exc:
            raise exc.annotated(f"resource {resource.name}: charmstore revision") from exc
    return resource


def _resource_to_dict(resource: Resource) -> dict[str, Any]:
    d: dict[str, Any] = {"name": resource.name}
    if resource.application_revision is not None:
        d["application-revision"] = _revision_to_dict(resource.application_revision)
    if resource.charmstore_revision is not None:
        d["charmstore-revision"] = _revision_to_dict(resource.charmstore_revision)
    return d


def _unit_resource_fields() -> FieldSchema:
    return FieldSchema.of({"name": String(), "revision": StringMap(AnyValue())})


_UNIT_RESOURCE_SCHEMAS = SchemaRegistry.from_functions(
    "unit resource",
    {1: _unit_resource_fields, 2: _unit_resource_fields},
)


def _unit_resource_from_valid(valid: dict[str, Any], version: int) -> UnitResource:
    name = valid["name"]
    try:
        revision = _import_revision(valid["revision"], version)
    except DescriptionError as exc:
        raise exc.annotated(f"unit resource {name}") from exc
    return UnitResource(name=name, revision=revision)


def _unit_resource_to_dict(resource: UnitResource) -> dict[str, Any]:
    return {"name": resource.name, "revision": _revision_to_dict(resource.revision)}


def _payload_v1_fields() -> FieldSchema:
    return FieldSchema.of(
        {
            "name": String(),
            "type": String(),
            "raw-id": String(),
            "state": String(),
            "labels": List(String()),
        },
        {"labels": OMIT},
    )


_PAYLOAD_SCHEMAS = SchemaRegistry.from_functions("payload", {1: _payload_v1_fields})


def _payload_from_valid(valid: dict[str, Any], version: int) -> Payload:
    return Payload(
        name=valid["name"],
        type=valid["type"],
        raw_id=valid["raw-id"],
        state=valid["state"],
        labels=string_list(valid.get("labels")),
    )


def _payload_to_dict(payload: Payload) -> dict[str, Any]:
    d: dict[str, Any] = {
        "name": payload.name,
        "type": payload.type,
        "raw-id": payload.raw_id,
        "state": payload.state,
    }
    if payload.labels:
        d["labels"] = list(payload.labels)
    return d
