# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Units of an application.

A unit's type is not written to the document: it is inherited from the type of
the owning application when the application is imported.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel
from pydantic import Field as _Field

from modeldesc.errors import DescriptionError, NotValidError
from modeldesc.model.cloud import CloudContainer, cloud_container_to_dict, import_cloud_container
from modeldesc.model.common import ANNOTATIONS_SCHEMA, import_annotations, put_annotations
from modeldesc.model.constraints import (
    CONSTRAINTS_SCHEMA,
    Constraints,
    import_owner_constraints,
    put_constraints,
)
from modeldesc.model.resources import (
    Payload,
    UnitResource,
    import_payloads,
    import_unit_resources,
    payloads_to_dict,
    unit_resources_to_dict,
)
from modeldesc.model.status import (
    Status,
    StatusHistory,
    import_status,
    import_status_history,
    status_history_to_dict,
    status_to_dict,
)
from modeldesc.model.tools import AgentTools, agent_tools_to_dict, import_agent_tools
from modeldesc.schema.checkers import OMIT, AnyValue, Int, List, Map, String, StringMap
from modeldesc.schema.envelope import collection_to_dict, import_collection, string_list
from modeldesc.schema.registry import FieldSchema, SchemaRegistry

# ###############
# Public Interface
# ###############

IAAS = "iaas"
CAAS = "caas"


class Unit(BaseModel):
    """A unit of an application, placed on a machine for machine-based models."""

    name: str
    machine: str = ""
    type: str = IAAS
    agent_status: Status | None = None
    agent_status_history: StatusHistory = _Field(default_factory=StatusHistory)
    workload_status: Status | None = None
    workload_status_history: StatusHistory = _Field(default_factory=StatusHistory)
    workload_version: str = ""
    workload_version_history: StatusHistory = _Field(default_factory=StatusHistory)
    principal: str = ""
    subordinates: list[str] = _Field(default_factory=list)
    password_hash: str = ""
    tools: AgentTools | None = None
    meter_status_code: str = ""
    meter_status_info: str = ""
    annotations: dict[str, str] = _Field(default_factory=dict)
    constraints: Constraints | None = None
    resources: list[UnitResource] = _Field(default_factory=list)
    payloads: list[Payload] = _Field(default_factory=list)
    cloud_container: CloudContainer | None = None
    charm_state: dict[str, str] = _Field(default_factory=dict)
    relation_state: dict[int, str] = _Field(default_factory=dict)
    uniter_state: str = ""
    storage_state: str = ""
    meter_status_state: str = ""

    def add_resource(self, resource: UnitResource) -> UnitResource:
        self.resources.append(resource)
        return resource

    def add_payload(self, **kwargs: Any) -> Payload:
        payload = Payload(**kwargs)
        self.payloads.append(payload)
        return payload

    def set_agent_status_history(self, points: list[Status]) -> None:
        self.agent_status_history.set_points(points)

    def set_workload_status_history(self, points: list[Status]) -> None:
        self.workload_status_history.set_points(points)

    def set_workload_version_history(self, points: list[Status]) -> None:
        self.workload_version_history.set_points(points)

    def check_invariants(self) -> None:
        if not self.name:
            raise NotValidError("missing name")
        if self.agent_status is None:
            raise NotValidError(f'unit "{self.name}" missing agent status')
        if self.workload_status is None:
            raise NotValidError(f'unit "{self.name}" missing workload status')
        if self.tools is None and self.type != CAAS:
            raise NotValidError(f'unit "{self.name}" missing tools')


def import_units(source: Any) -> list[Unit]:
    return import_collection(source, key="units", kind="unit", registry=_UNIT_SCHEMAS, build=_unit_from_valid)


def units_to_dict(units: list[Unit]) -> dict[str, Any]:
    return collection_to_dict("units", _UNIT_SCHEMAS, units, _unit_to_dict)


# ################
# Implementation
# ################


def _unit_v1_fields() -> FieldSchema:
    fields = FieldSchema.of(
        {
            "name": String(),
            "machine": String(),
            "agent-status": StringMap(AnyValue()),
            "agent-status-history": StringMap(AnyValue()),
            "workload-status": StringMap(AnyValue()),
            "workload-status-history": StringMap(AnyValue()),
            "workload-version": String(),
            "workload-version-history": StringMap(AnyValue()),
            "principal": String(),
            "subordinates": List(String()),
            "password-hash": String(),
            "tools": StringMap(AnyValue()),
            "meter-status-code": String(),
            "meter-status-info": String(),
            "resources": StringMap(AnyValue()),
            "payloads": StringMap(AnyValue()),
        },
        {
            "principal": "",
            "subordinates": OMIT,
            "workload-version": "",
            "meter-status-code": "",
            "meter-status-info": "",
        },
    )
    return fields.merge(ANNOTATIONS_SCHEMA).merge(CONSTRAINTS_SCHEMA)


def _unit_v2_fields() -> FieldSchema:
    return _unit_v1_fields().add("cloud-container", StringMap(AnyValue()), OMIT).with_default("tools", OMIT)


def _unit_v3_fields() -> FieldSchema:
    return (
        _unit_v2_fields()
        .add("charm-state", StringMap(String()), OMIT)
        .add("relation-state", Map(Int(), String()), OMIT)
        .add("uniter-state", String(), OMIT)
        .add("storage-state", String(), OMIT)
        .add("meter-status-state", String(), OMIT)
    )


_UNIT_SCHEMAS = SchemaRegistry.from_functions("unit", {1: _unit_v1_fields, 2: _unit_v2_fields, 3: _unit_v3_fields})


def _unit_from_valid(valid: dict[str, Any], version: int) -> Unit:
    unit = Unit(
        name=valid["name"],
        machine=valid["machine"],
        principal=valid["principal"],
        password_hash=valid["password-hash"],
        workload_version=valid["workload-version"],
        meter_status_code=valid["meter-status-code"],
        meter_status_info=valid["meter-status-info"],
        annotations=import_annotations(valid),
        constraints=import_owner_constraints(valid),
        subordinates=string_list(valid.get("subordinates")),
        workload_status_history=import_status_history(valid["workload-status-history"]),
        workload_version_history=import_status_history(valid["workload-version-history"]),
        agent_status_history=import_status_history(valid["agent-status-history"]),
    )
    if "cloud-container" in valid:
        unit.cloud_container = import_cloud_container(valid["cloud-container"])
    # Tools are optional for container-based units; the application checks the rest.
    if "tools" in valid:
        unit.tools = import_agent_tools(valid["tools"])
    unit.agent_status = import_status(valid["agent-status"])
    unit.workload_status = import_status(valid["workload-status"])

    try:
        unit.resources = import_unit_resources(valid["resources"])
    except DescriptionError as exc:
        raise exc.annotated("resources") from exc
    try:
        unit.payloads = import_payloads(valid["payloads"])
    except DescriptionError as exc:
        raise exc.annotated("payloads") from exc

    if "charm-state" in valid:
        unit.charm_state = dict(valid["charm-state"])
    if "relation-state" in valid:
        unit.relation_state = dict(valid["relation-state"])
    unit.uniter_state = valid.get("uniter-state", "")
    unit.storage_state = valid.get("storage-state", "")
    unit.meter_status_state = valid.get("meter-status-state", "")
    return unit


def _unit_to_dict(unit: Unit) -> dict[str, Any]:
    d: dict[str, Any] = {"name": unit.name, "machine": unit.machine}
    if unit.agent_status is not None:
        d["agent-status"] = status_to_dict(unit.agent_status)
    d["agent-status-history"] = status_history_to_dict(unit.agent_status_history)
    if unit.workload_status is not None:
        d["workload-status"] = status_to_dict(unit.workload_status)
    d["workload-status-history"] = status_history_to_dict(unit.workload_status_history)
    if unit.workload_version:
        d["workload-version"] = unit.workload_version
    d["workload-version-history"] = status_history_to_dict(unit.workload_version_history)
    if unit.principal:
        d["principal"] = unit.principal
    if unit.subordinates:
        d["subordinates"] = list(unit.subordinates)
    d["password-hash"] = unit.password_hash
    if unit.tools is not None:
        d["tools"] = agent_tools_to_dict(unit.tools)
    if unit.meter_status_code:
        d["meter-status-code"] = unit.meter_status_code
    if unit.meter_status_info:
        d["meter-status-info"] = unit.meter_status_info
    put_annotations(d, unit.annotations)
    put_constraints(d, unit.constraints)
    d["resources"] = unit_resources_to_dict(unit.resources)
    d["payloads"] = payloads_to_dict(unit.payloads)
    if unit.cloud_container is not None:
        d["cloud-container"] = cloud_container_to_dict(unit.cloud_container)
    if unit.charm_state:
        d["charm-state"] = dict(unit.charm_state)
    if unit.relation_state:
        d["relation-state"] = dict(unit.relation_state)
    if unit.uniter_state:
        d["uniter-state"] = unit.uniter_state
    if unit.storage_state:
        d["storage-state"] = unit.storage_state
    if unit.meter_status_state:
        d["meter-status-state"] = unit.meter_status_state
    return d
