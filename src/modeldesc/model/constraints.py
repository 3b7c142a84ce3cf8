# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Placement constraints attached to the model, machines, applications and units.

Constraints are a self-versioned document. An all-empty value means "no
constraints" and is represented by ``None`` rather than by a zero-valued
:class:`Constraints`, both when building and after import.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from modeldesc.errors import NotValidError
from modeldesc.schema.checkers import OMIT, AnyValue, Bool, ForceUint, List, String, StringMap
from modeldesc.schema.envelope import import_self_versioned, self_versioned_to_dict
from modeldesc.schema.registry import FieldSchema, SchemaRegistry

# ###############
# Public Interface
# ###############


class Constraints(BaseModel):
    """Hardware and placement constraints.

    Zero numbers and empty strings mean "not constrained". List attributes are
    ``None`` when not constrained, so that an explicitly empty list survives.
    """

    allocate_public_ip: bool = False
    architecture: str = ""
    container: str = ""
    cpu_cores: int = 0
    cpu_power: int = 0
    image_id: str = ""
    instance_type: str = ""
    memory: int = 0
    root_disk: int = 0
    root_disk_source: str = ""
    spaces: list[str] | None = None
    tags: list[str] | None = None
    virt_type: str = ""
    zones: list[str] | None = None

    def is_empty(self) -> bool:
        """Return True when nothing is constrained."""
        return self == Constraints()


CONSTRAINTS_SCHEMA = FieldSchema.of({"constraints": StringMap(AnyValue())}, {"constraints": OMIT})


def new_constraints(**kwargs: Any) -> Constraints | None:
    """Build constraints from keyword arguments, returning None when all are empty."""
    constraints = Constraints(**kwargs)
    if constraints.is_empty():
        return None
    return constraints


def import_constraints(source: Any) -> Constraints | None:
    """Import a constraints document, collapsing an empty one to None."""
    constraints = import_self_versioned(
        source,
        kind="constraints",
        registry=_CONSTRAINTS_SCHEMAS,
        build=_constraints_from_valid,
    )
    if constraints.is_empty():
        return None
    return constraints


def import_owner_constraints(valid: dict[str, Any]) -> Constraints | None:
    """Import the optional ``constraints`` field of an owner."""
    if "constraints" not in valid:
        return None
    return import_constraints(valid["constraints"])


def put_constraints(d: dict[str, Any], constraints: Constraints | None) -> None:
    """Add the ``constraints`` field to an owner's export when there are constraints."""
    if constraints is not None and not constraints.is_empty():
        d["constraints"] = constraints_to_dict(constraints)


def constraints_to_dict(constraints: Constraints) -> dict[str, Any]:
    """Export constraints at the current version, leaving out unconstrained values."""
    d: dict[str, Any] = {}
    if constraints.allocate_public_ip:
        d["allocate-public-ip"] = True
    if constraints.architecture:
        d["architecture"] = constraints.architecture
    if constraints.container:
        d["container"] = constraints.container
    if constraints.cpu_cores:
        d["cores"] = constraints.cpu_cores
    if constraints.cpu_power:
        d["cpu-power"] = constraints.cpu_power
    if constraints.image_id:
        d["image-id"] = constraints.image_id
    if constraints.instance_type:
        d["instance-type"] = constraints.instance_type
    if constraints.memory:
        d["memory"] = constraints.memory
    if constraints.root_disk:
        d["root-disk"] = constraints.root_disk
    if constraints.root_disk_source:
        d["root-disk-source"] = constraints.root_disk_source
    if constraints.spaces is not None:
        d["spaces"] = list(constraints.spaces)
    if constraints.tags is not None:
        d["tags"] = list(constraints.tags)
    if constraints.virt_type:
        d["virt-type"] = constraints.virt_type
    if constraints.zones is not None:
        d["zones"] = list(constraints.zones)
    return self_versioned_to_dict(_CONSTRAINTS_SCHEMAS, d)


# ################
# Implementation
# ################


def _constraints_v1_fields() -> FieldSchema:
    return FieldSchema.of(
        {
            "architecture": String(),
            "container": String(),
            # The legacy key and its replacement are both accepted, never together.
            "cpu-cores": ForceUint(),
            "cores": ForceUint(),
            "cpu-power": ForceUint(),
            "instance-type": String(),
            "memory": ForceUint(),
            "root-disk": ForceUint(),
            "spaces": List(String()),
            "tags": List(String()),
            "virt-type": String(),
        },
        {
            "architecture": "",
            "container": "",
            "cpu-cores": OMIT,
            "cores": OMIT,
            "cpu-power": 0,
            "instance-type": "",
            "memory": 0,
            "root-disk": 0,
            "spaces": OMIT,
            "tags": OMIT,
            "virt-type": "",
        },
    )


def _constraints_v2_fields() -> FieldSchema:
    return _constraints_v1_fields().add("zones", List(String()), OMIT)


def _constraints_v3_fields() -> FieldSchema:
    return _constraints_v2_fields().add("root-disk-source", String(), "")


def _constraints_v4_fields() -> FieldSchema:
    return _constraints_v3_fields().add("allocate-public-ip", Bool(), OMIT)


def _constraints_v5_fields() -> FieldSchema:
    return _constraints_v4_fields().add("image-id", String(), "")


_CONSTRAINTS_SCHEMAS = SchemaRegistry.from_functions(
    "constraints",
    {
        1: _constraints_v1_fields,
        2: _constraints_v2_fields,
        3: _constraints_v3_fields,
        4: _constraints_v4_fields,
        5: _constraints_v5_fields,
    },
)


def _constraints_from_valid(valid: dict[str, Any], version: int) -> Constraints:
    if "cpu-cores" in valid and "cores" in valid:
        raise NotValidError("can not specify both cores and cores constraints")
    cores = valid.get("cores", valid.get("cpu-cores", 0))

    constraints = Constraints(
        architecture=valid["architecture"],
        container=valid["container"],
        cpu_cores=cores,
        cpu_power=valid["cpu-power"],
        instance_type=valid["instance-type"],
        memory=valid["memory"],
        root_disk=valid["root-disk"],
        spaces=valid.get("spaces"),
        tags=valid.get("tags"),
        virt_type=valid["virt-type"],
    )
    if version >= 2:
        constraints.zones = valid.get("zones")
    if version >= 3:
        constraints.root_disk_source = valid["root-disk-source"]
    if version >= 4:
        constraints.allocate_public_ip = valid.get("allocate-public-ip", False)
    if version >= 5:
        constraints.image_id = valid["image-id"]
    return constraints
