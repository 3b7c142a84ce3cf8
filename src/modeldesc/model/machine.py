# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Machines and their containers.

Machines nest: every machine owns a list of container machines, to any depth.
Containers are always written with the same schema version as their parent,
and each level is validated independently.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel
from pydantic import Field as _Field

from modeldesc.errors import DescriptionError, NotValidError
from modeldesc.model.address import Address, address_to_dict, import_address, import_addresses
from modeldesc.model.blockdevice import BlockDevice, block_devices_to_dict, import_block_devices
from modeldesc.model.cloudinstance import CloudInstance, cloud_instance_to_dict, import_cloud_instance
from modeldesc.model.common import ANNOTATIONS_SCHEMA, import_annotations, put_annotations
from modeldesc.model.constraints import (
    CONSTRAINTS_SCHEMA,
    Constraints,
    import_owner_constraints,
    put_constraints,
)
from modeldesc.model.portranges import (
    PortRange,
    UnitPortRanges,
    add_port_range,
    import_legacy_opened_ports,
    import_port_ranges,
    port_ranges_to_dict,
)
from modeldesc.model.series import base_from_series
from modeldesc.model.status import (
    STATUS_HISTORY_SCHEMA,
    Status,
    StatusHistory,
    import_owner_status_history,
    import_status,
    status_history_to_dict,
    status_to_dict,
)
from modeldesc.model.tools import AgentTools, agent_tools_to_dict, import_agent_tools
from modeldesc.schema.checkers import OMIT, AnyValue, List, String, StringMap
from modeldesc.schema.envelope import collection_to_dict, import_collection, import_list, string_list
from modeldesc.schema.registry import FieldSchema, SchemaRegistry

# ###############
# Public Interface
# ###############


class Machine(BaseModel):
    """A machine, possibly hosting container machines.

    Attributes:
        base: Operating system base ``<os>@<version>``, e.g. ``ubuntu@22.04``.
        supported_containers: ``None`` when the supported container types are
            unknown, which differs from an empty list meaning "none supported".
        opened_port_ranges: Unit name to endpoint name to opened port ranges.
    """

    id: str
    nonce: str = ""
    password_hash: str = ""
    placement: str = ""
    base: str = ""
    container_type: str = ""
    jobs: list[str] = _Field(default_factory=list)
    hostname: str = ""
    supported_containers: list[str] | None = None
    instance: CloudInstance | None = None
    tools: AgentTools | None = None
    status: Status | None = None
    status_history: StatusHistory = _Field(default_factory=StatusHistory)
    containers: list[Machine] = _Field(default_factory=list)
    opened_port_ranges: UnitPortRanges = _Field(default_factory=dict)
    provider_addresses: list[Address] = _Field(default_factory=list)
    machine_addresses: list[Address] = _Field(default_factory=list)
    preferred_public_address: Address | None = None
    preferred_private_address: Address | None = None
    block_devices: list[BlockDevice] = _Field(default_factory=list)
    annotations: dict[str, str] = _Field(default_factory=dict)
    constraints: Constraints | None = None

    def add_container(self, **kwargs: Any) -> Machine:
        """Create a container machine hosted on this machine and return it."""
        container = Machine(**kwargs)
        self.containers.append(container)
        return container

    def add_block_device(self, **kwargs: Any) -> BlockDevice:
        device = BlockDevice(**kwargs)
        self.block_devices.append(device)
        return device

    def add_opened_port_range(
        self,
        unit_name: str,
        endpoint_name: str,
        from_port: int,
        to_port: int,
        protocol: str,
    ) -> None:
        port_range = PortRange(from_port=from_port, to_port=to_port, protocol=protocol)
        add_port_range(self.opened_port_ranges, unit_name, endpoint_name, port_range)

    def set_addresses(self, machine_addresses: list[Address], provider_addresses: list[Address]) -> None:
        """Replace both address lists, skipping addresses without a value."""
        self.machine_addresses = [address for address in machine_addresses if address.value]
        self.provider_addresses = [address for address in provider_addresses if address.value]

    def set_preferred_addresses(self, public: Address, private: Address) -> None:
        self.preferred_public_address = public
        self.preferred_private_address = private

    def set_constraints(self, constraints: Constraints | None) -> None:
        self.constraints = None if constraints is None or constraints.is_empty() else constraints

    def set_status_history(self, points: list[Status]) -> None:
        self.status_history.set_points(points)

    def status_history_points(self) -> list[Status]:
        return list(self.status_history.points)

    def all_machines(self) -> list[Machine]:
        """Return this machine followed by all nested containers, depth first."""
        result = [self]
        for container in self.containers:
            result.extend(container.all_machines())
        return result

    def check_invariants(self) -> None:
        """Check the invariants of this machine and, recursively, of its containers.

        Raises:
            NotValidError: On the first violated invariant.
        """
        if not self.id:
            raise NotValidError("machine missing id")
        if self.base:
            parts = self.base.split("@")
            if len(parts) != 2 or not parts[0] or not parts[1]:
                raise NotValidError(f'machine "{self.id}" base "{self.base}" not valid')
        if self.status is None:
            raise NotValidError(f'machine "{self.id}" missing status')
        if self.tools is None:
            raise NotValidError(f'machine "{self.id}" missing tools')
        if self.instance is None:
            raise NotValidError(f'machine "{self.id}" missing instance')
        try:
            self.instance.check_invariants()
        except DescriptionError as exc:
            raise exc.annotated(f'machine "{self.id}" instance') from exc
        for container in self.containers:
            container.check_invariants()


def import_machines(source: Any) -> list[Machine]:
    """Import the ``machines`` collection."""
    return import_collection(
        source,
        key="machines",
        kind="machine",
        registry=_MACHINE_SCHEMAS,
        build=_machine_from_valid,
    )


def machines_to_dict(machines: list[Machine]) -> dict[str, Any]:
    return collection_to_dict("machines", _MACHINE_SCHEMAS, machines, _machine_to_dict)


# ################
# Implementation
# ################


def _machine_v1_fields() -> FieldSchema:
    fields = FieldSchema.of(
        {
            "id": String(),
            "nonce": String(),
            "password-hash": String(),
            "placement": String(),
            "instance": StringMap(AnyValue()),
            "series": String(),
            "container-type": String(),
            "jobs": List(String()),
            "status": StringMap(AnyValue()),
            "supported-containers": List(String()),
            "tools": StringMap(AnyValue()),
            "containers": List(StringMap(AnyValue())),
            "opened-ports": StringMap(AnyValue()),
            "provider-addresses": List(StringMap(AnyValue())),
            "machine-addresses": List(StringMap(AnyValue())),
            "preferred-public-address": StringMap(AnyValue()),
            "preferred-private-address": StringMap(AnyValue()),
            "block-devices": StringMap(AnyValue()),
        },
        {
            "placement": "",
            "container-type": "",
            "instance": OMIT,
            "supported-containers": OMIT,
            "opened-ports": OMIT,
            "block-devices": OMIT,
            "provider-addresses": OMIT,
            "machine-addresses": OMIT,
            "preferred-public-address": OMIT,
            "preferred-private-address": OMIT,
        },
    )
    return fields.merge(ANNOTATIONS_SCHEMA).merge(CONSTRAINTS_SCHEMA).merge(STATUS_HISTORY_SCHEMA)


def _machine_v2_fields() -> FieldSchema:
    return _machine_v1_fields().add("opened-port-ranges", StringMap(AnyValue()), OMIT)


def _machine_v3_fields() -> FieldSchema:
    return _machine_v2_fields().add("base", String()).remove("series")


def _machine_v4_fields() -> FieldSchema:
    return _machine_v3_fields().add("hostname", String())


_MACHINE_SCHEMAS = SchemaRegistry.from_functions(
    "machine",
    {
        1: _machine_v1_fields,
        2: _machine_v2_fields,
        3: _machine_v3_fields,
        4: _machine_v4_fields,
    },
)


def _machine_from_valid(valid: dict[str, Any], version: int) -> Machine:
    machine = Machine(
        id=valid["id"],
        nonce=valid["nonce"],
        password_hash=valid["password-hash"],
        placement=valid["placement"],
        container_type=valid["container-type"],
        jobs=valid["jobs"],
        annotations=import_annotations(valid),
        constraints=import_owner_constraints(valid),
        status_history=import_owner_status_history(valid),
    )
    if version >= 3:
        machine.base = valid["base"]
    else:
        machine.base = base_from_series(valid["series"])

    if "supported-containers" in valid:
        machine.supported_containers = string_list(valid["supported-containers"])
    if "instance" in valid:
        machine.instance = import_cloud_instance(valid["instance"])
    if "block-devices" in valid:
        machine.block_devices = import_block_devices(valid["block-devices"])

    machine.tools = import_agent_tools(valid["tools"])
    machine.status = import_status(valid["status"])

    if "provider-addresses" in valid:
        machine.provider_addresses = import_addresses(valid["provider-addresses"])
    if "machine-addresses" in valid:
        machine.machine_addresses = import_addresses(valid["machine-addresses"])
    if "preferred-public-address" in valid:
        machine.preferred_public_address = import_address(valid["preferred-public-address"])
    if "preferred-private-address" in valid:
        machine.preferred_private_address = import_address(valid["preferred-private-address"])

    try:
        machine.containers = import_list(
            valid["containers"],
            kind="machine",
            version=version,
            schema=_MACHINE_SCHEMAS.lookup(version),
            build=_machine_from_valid,
        )
    except DescriptionError as exc:
        raise exc.annotated("containers") from exc

    if "opened-ports" in valid:
        machine.opened_port_ranges = import_legacy_opened_ports(valid["opened-ports"])
    if version >= 2 and "opened-port-ranges" in valid:
        machine.opened_port_ranges = import_port_ranges(valid["opened-port-ranges"], "machine-port-ranges")
    if version >= 4:
        machine.hostname = valid["hostname"]
    return machine


def _machine_to_dict(machine: Machine) -> dict[str, Any]:
    d: dict[str, Any] = {
        "id": machine.id,
        "nonce": machine.nonce,
        "password-hash": machine.password_hash,
    }
    if machine.placement:
        d["placement"] = machine.placement
    if machine.instance is not None:
        d["instance"] = cloud_instance_to_dict(machine.instance)
    d["base"] = machine.base
    if machine.container_type:
        d["container-type"] = machine.container_type
    if machine.status is not None:
        d["status"] = status_to_dict(machine.status)
    d["status-history"] = status_history_to_dict(machine.status_history)
    if machine.provider_addresses:
        d["provider-addresses"] = [address_to_dict(a) for a in machine.provider_addresses]
    if machine.machine_addresses:
        d["machine-addresses"] = [address_to_dict(a) for a in machine.machine_addresses]
    if machine.preferred_public_address is not None:
        d["preferred-public-address"] = address_to_dict(machine.preferred_public_address)
    if machine.preferred_private_address is not None:
        d["preferred-private-address"] = address_to_dict(machine.preferred_private_address)
    if machine.tools is not None:
        d["tools"] = agent_tools_to_dict(machine.tools)
    d["jobs"] = list(machine.jobs)
    if machine.supported_containers is not None:
        d["supported-containers"] = list(machine.supported_containers)
    d["containers"] = [_machine_to_dict(container) for container in machine.containers]
    if machine.opened_port_ranges:
        d["opened-port-ranges"] = port_ranges_to_dict(machine.opened_port_ranges, "machine-port-ranges")
    put_annotations(d, machine.annotations)
    put_constraints(d, machine.constraints)
    d["block-devices"] = block_devices_to_dict(machine.block_devices)
    d["hostname"] = machine.hostname
    return d
