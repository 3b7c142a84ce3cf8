# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""The cloud instance backing a machine."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel
from pydantic import Field as _Field

from modeldesc.errors import NotValidError
from modeldesc.model.status import (
    STATUS_HISTORY_SCHEMA,
    Status,
    StatusHistory,
    import_modification_status,
    import_owner_status_history,
    import_status,
    status_history_to_dict,
    status_to_dict,
)
from modeldesc.schema.checkers import OMIT, AnyValue, ForceUint, List, String, StringMap
from modeldesc.schema.envelope import import_self_versioned, self_versioned_to_dict
from modeldesc.schema.registry import FieldSchema, SchemaRegistry

# ###############
# Public Interface
# ###############

# Version 1 documents stored the instance status as a plain string that was
# never exported correctly; importing them always yields this value.
UNKNOWN_INSTANCE_STATUS = "unknown"
_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)


class CloudInstance(BaseModel):
    """Provider-level information about the instance a machine runs on."""

    instance_id: str
    status: Status | None = None
    status_history: StatusHistory = _Field(default_factory=StatusHistory)
    modification_status: Status | None = None
    architecture: str = ""
    memory: int = 0
    root_disk: int = 0
    root_disk_source: str = ""
    cpu_cores: int = 0
    cpu_power: int = 0
    tags: list[str] = _Field(default_factory=list)
    availability_zone: str = ""
    charm_profiles: list[str] = _Field(default_factory=list)

    def check_invariants(self) -> None:
        """Check the invariants of the instance.

        Raises:
            NotValidError: If the id or the status is missing.
        """
        if not self.instance_id:
            raise NotValidError("instance missing id")
        if self.status is None:
            raise NotValidError(f'instance "{self.instance_id}" missing status')


def import_cloud_instance(source: Any) -> CloudInstance:
    return import_self_versioned(
        source,
        kind="cloud instance",
        registry=_CLOUD_INSTANCE_SCHEMAS,
        build=_instance_from_valid,
    )


def cloud_instance_to_dict(instance: CloudInstance) -> dict[str, Any]:
    d: dict[str, Any] = {"instance-id": instance.instance_id}
    if instance.status is not None:
        d["status"] = status_to_dict(instance.status)
    d["status-history"] = status_history_to_dict(instance.status_history)
    if instance.modification_status is not None:
        d["modification-status"] = status_to_dict(instance.modification_status)
    if instance.architecture:
        d["architecture"] = instance.architecture
    if instance.memory:
        d["memory"] = instance.memory
    if instance.root_disk:
        d["root-disk"] = instance.root_disk
    if instance.root_disk_source:
        d["root-disk-source"] = instance.root_disk_source
    if instance.cpu_cores:
        d["cores"] = instance.cpu_cores
    if instance.cpu_power:
        d["cpu-power"] = instance.cpu_power
    if instance.tags:
        d["tags"] = list(instance.tags)
    if instance.availability_zone:
        d["availability-zone"] = instance.availability_zone
    if instance.charm_profiles:
        d["charm-profiles"] = list(instance.charm_profiles)
    return self_versioned_to_dict(_CLOUD_INSTANCE_SCHEMAS, d)


# ################
# Implementation
# ################


def _cloud_instance_v1_fields() -> FieldSchema:
    return FieldSchema.of(
        {
            "instance-id": String(),
            "status": String(),
            "architecture": String(),
            "memory": ForceUint(),
            "root-disk": ForceUint(),
            "root-disk-source": String(),
            "cores": ForceUint(),
            "cpu-power": ForceUint(),
            "tags": List(String()),
            "availability-zone": String(),
        },
        {
            "architecture": "",
            "memory": 0,
            "root-disk": 0,
            "root-disk-source": "",
            "cores": 0,
            "cpu-power": 0,
            "tags": OMIT,
            "availability-zone": "",
        },
    )


def _cloud_instance_v2_fields() -> FieldSchema:
    return _cloud_instance_v1_fields().add("status", StringMap(AnyValue())).merge(STATUS_HISTORY_SCHEMA)


def _cloud_instance_v3_fields() -> FieldSchema:
    return _cloud_instance_v2_fields().add("charm-profiles", List(String()), OMIT)


def _cloud_instance_v4_fields() -> FieldSchema:
    return _cloud_instance_v3_fields().add("modification-status", StringMap(AnyValue()), OMIT)


_CLOUD_INSTANCE_SCHEMAS = SchemaRegistry.from_functions(
    "cloud instance",
    {
        1: _cloud_instance_v1_fields,
        2: _cloud_instance_v2_fields,
        3: _cloud_instance_v3_fields,
        4: _cloud_instance_v4_fields,
    },
)


def _instance_from_valid(valid: dict[str, Any], version: int) -> CloudInstance:
    instance = CloudInstance(
        instance_id=valid["instance-id"],
        architecture=valid["architecture"],
        memory=valid["memory"],
        root_disk=valid["root-disk"],
        root_disk_source=valid["root-disk-source"],
        cpu_cores=valid["cores"],
        cpu_power=valid["cpu-power"],
        tags=valid.get("tags", []),
        availability_zone=valid["availability-zone"],
    )
    if version >= 2:
        instance.status = import_status(valid["status"])
        instance.status_history = import_owner_status_history(valid)
    else:
        instance.status = Status(value=UNKNOWN_INSTANCE_STATUS, updated=_ZERO_TIME)
    if version >= 3:
        instance.charm_profiles = valid.get("charm-profiles", [])
    if version >= 4:
        instance.modification_status = import_modification_status(valid.get("modification-status"))
    return instance
