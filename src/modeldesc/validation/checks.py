# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Cross-entity consistency checks for imported or programmatically built models.

Importing a document only checks its shape. These checks operate on the whole
graph afterwards and verify that the name-based references between entities
resolve: units on opened ports, relation endpoints, subnet spaces, link-layer
device parents, IP address devices, storage owners and secret subjects.
"""

from __future__ import annotations

import ipaddress
import re
from dataclasses import dataclass, field

from modeldesc.errors import DescriptionError, NotValidError
from modeldesc.model.document import Model
from modeldesc.model.networking import LinkLayerDevice
from modeldesc.model.tags import APPLICATION, UNIT, parse_tag

# ###############
# Public Interface
# ###############


def validate(model: Model) -> None:
    """Check the invariants of every entity and the references between them.

    Checks performed, in order:

    1. The model has an owner and a status.
    2. Every machine, recursively, and every application with its units and
       resources satisfies its own invariants.
    3. **Opened ports**: every unit named in the opened port ranges of a
       machine or an application is a unit of some application.
    4. **Relations**: every endpoint names a local or remote application;
       endpoints of local applications carry settings for exactly the units of
       the application. Container scoped endpoints and relations with a remote
       side may lack settings for some units.
    5. **Subnets**: every subnet space id other than ``""`` and the default
       space ``"0"`` names an existing space.
    6. **Link-layer devices**: the machine exists, the MAC address parses and
       the parent device exists. A parent given as a global key
       (``m#<machine>#d#<device>``) must be a bridge on the host machine of a
       container.
    7. **IP addresses**: machine and device exist, the value and the gateway
       parse as IP addresses and the subnet CIDR parses as a network.
    8. **Storage**: storage owners are known applications or units, attachments
       are known units, volumes and filesystems reference known storage
       instances, volumes and hosts.
    9. **Secrets**: owners, consumers and access subjects that are
       applications or units exist in the model; remote secret consumers too.
    10. **Virtual host keys**: every key has an id and a non-empty, base64
        encoded host key.

    Args:
        model: The model to check.

    Raises:
        NotValidError: On the first violated check.
    """
    if not model.owner:
        raise NotValidError("missing model owner")
    if model.status is None:
        raise NotValidError("missing status")

    context = _Context()
    for machine in model.machines:
        machine.check_invariants()
    for machine in model.all_machines():
        context.machines.add(machine.id)
        context.units_with_open_ports.update(machine.opened_port_ranges)
    for application in model.applications:
        application.check_invariants()
        context.units_with_open_ports.update(application.opened_port_ranges)
        context.applications.add(application.name)
        context.units.update(unit.name for unit in application.units)

    unknown = context.units_with_open_ports - context.units
    if unknown:
        raise NotValidError(f"unknown unit names in open ports: {', '.join(sorted(unknown))}")

    _check_relations(model)
    _check_subnets(model)
    _check_link_layer_devices(model)
    _check_ip_addresses(model)
    _check_storage(model, context)
    _check_secrets(model, context)
    _check_virtual_host_keys(model)


# ################
# Implementation
# ################

_DEFAULT_SPACE_ID = "0"

_MAC_SEPARATED = re.compile(r"^[0-9a-fA-F]{2}(?:([:-])[0-9a-fA-F]{2})(?:\1[0-9a-fA-F]{2})*$")
_MAC_DOTTED = re.compile(r"^[0-9a-fA-F]{4}(?:\.[0-9a-fA-F]{4})+$")


@dataclass
class _Context:
    """Names collected from machines and applications for the later reference checks."""

    machines: set[str] = field(default_factory=set)
    applications: set[str] = field(default_factory=set)
    units: set[str] = field(default_factory=set)
    units_with_open_ports: set[str] = field(default_factory=set)

    @property
    def applications_and_units(self) -> set[str]:
        return self.applications | self.units


def _check_relations(model: Model) -> None:
    for relation in model.relations:
        is_remote = any(model.remote_application(ep.application_name) is not None for ep in relation.endpoints)
        for endpoint in relation.endpoints:
            application = model.application(endpoint.application_name)
            if application is None:
                if model.remote_application(endpoint.application_name) is not None:
                    # The units of a remote application live in the other model.
                    continue
                raise NotValidError(
                    f'unknown application "{endpoint.application_name}" for relation id {relation.id}'
                )
            application_units = {unit.name for unit in application.units}
            endpoint_units = set(endpoint.unit_settings)
            # A subordinate related to several principals only has settings
            # for the units related to each principal.
            if endpoint.scope != "container" and not is_remote:
                missing = application_units - endpoint_units
                if missing:
                    raise NotValidError(
                        f"missing relation settings for units {_names(missing)} in relation {relation.id}"
                    )
            extra = endpoint_units - application_units
            if extra:
                raise NotValidError(f"settings for unknown units {_names(extra)} in relation {relation.id}")


def _check_subnets(model: Model) -> None:
    space_ids = {space.id for space in model.spaces}
    for subnet in model.subnets:
        if subnet.space_id in ("", _DEFAULT_SPACE_ID):
            continue
        if subnet.space_id not in space_ids:
            raise NotValidError(f'subnet "{subnet.cidr}" references non-existent space "{subnet.space_id}"')


def _check_link_layer_devices(model: Model) -> None:
    machine_ids = {machine.id for machine in model.all_machines()}
    devices = _devices_by_machine(model)
    for device in model.link_layer_devices:
        if device.machine_id not in machine_ids:
            raise NotValidError(
                f'device "{device.name}" references non-existent machine "{device.machine_id}"'
            )
        if not device.name:
            raise NotValidError(f'device on machine "{device.machine_id}" has empty name')
        if device.mac_address and not _is_mac_address(device.mac_address):
            raise NotValidError(f'device "{device.name}" has invalid MACAddress "{device.mac_address}"')
        if not device.parent_name:
            continue

        global_key = _parse_device_global_key(device.parent_name)
        if global_key is None:
            host_machine_id, parent_name = device.machine_id, device.parent_name
        else:
            host_machine_id, parent_name = global_key
        parent = devices.get(host_machine_id, {}).get(parent_name)
        if parent is None:
            raise NotValidError(f'device "{device.name}" has non-existent parent "{parent_name}"')
        if global_key is None:
            if device.name == parent_name:
                raise NotValidError(f'device "{device.name}" is its own parent')
            continue

        # The parent lives on the host of the container.
        if parent.type != "bridge":
            raise NotValidError(f'device "{device.name}" on a container but not a bridge')
        host_id = _host_machine_id(device.machine_id)
        if not host_id:
            raise NotValidError(
                f'ParentName "{device.parent_name}" for non-container machine "{device.machine_id}"'
            )
        if parent.machine_id != host_id:
            raise NotValidError(f'parent machine of device "{device.name}" not host machine "{host_id}"')


def _check_ip_addresses(model: Model) -> None:
    machine_ids = {machine.id for machine in model.all_machines()}
    devices = _devices_by_machine(model)
    for address in model.ip_addresses:
        if address.machine_id not in machine_ids:
            raise NotValidError(
                f'ip address "{address.value}" references non-existent machine "{address.machine_id}"'
            )
        if address.device_name not in devices.get(address.machine_id, {}):
            raise NotValidError(
                f'ip address "{address.value}" references non-existent device "{address.device_name}"'
            )
        if not _is_ip_address(address.value):
            raise NotValidError(f'ip address has invalid value "{address.value}"')
        if not address.subnet_cidr:
            raise NotValidError(f'ip address "{address.value}" has empty subnet CIDR')
        if not _is_cidr(address.subnet_cidr):
            raise NotValidError(f'ip address "{address.value}" has invalid subnet CIDR "{address.subnet_cidr}"')
        if address.gateway_address and not _is_ip_address(address.gateway_address):
            raise NotValidError(
                f'ip address "{address.value}" has invalid gateway address "{address.gateway_address}"'
            )


def _check_storage(model: Model, context: _Context) -> None:
    storage_ids: set[str] = set()
    for i, storage in enumerate(model.storages):
        try:
            storage.check_invariants()
        except DescriptionError as exc:
            raise exc.annotated(f"storage {i}") from exc
        storage_ids.add(storage.id)
        if storage.unit_owner and storage.unit_owner not in context.applications_and_units:
            raise NotValidError(f"storage {i} owner ({storage.unit_owner}) not valid")
        for unit_name in storage.attachments:
            if unit_name not in context.units:
                raise NotValidError(f'storage {i} attachment referencing unknown unit "{unit_name}" not valid')

    hosts = context.machines | context.units
    volume_ids: set[str] = set()
    for i, volume in enumerate(model.volumes):
        try:
            volume.check_invariants()
        except DescriptionError as exc:
            raise exc.annotated(f"volume {i}") from exc
        volume_ids.add(volume.id)
        if volume.storage_id and volume.storage_id not in storage_ids:
            raise NotValidError(f'volume {i} referencing unknown storage "{volume.storage_id}" not valid')
        for j, attachment in enumerate(volume.attachments):
            if attachment.host_id not in hosts:
                raise NotValidError(
                    f'volume {i} attachment {j} referencing unknown machine or unit "{attachment.host_id}" not valid'
                )

    for i, filesystem in enumerate(model.filesystems):
        try:
            filesystem.check_invariants()
        except DescriptionError as exc:
            raise exc.annotated(f"filesystem {i}") from exc
        if filesystem.storage_id and filesystem.storage_id not in storage_ids:
            raise NotValidError(f'filesystem {i} referencing unknown storage "{filesystem.storage_id}" not valid')
        if filesystem.volume_id and filesystem.volume_id not in volume_ids:
            raise NotValidError(f'filesystem {i} referencing unknown volume "{filesystem.volume_id}" not valid')
        for j, attachment in enumerate(filesystem.attachments):
            if attachment.host_id not in hosts:
                raise NotValidError(
                    f"filesystem {i} attachment {j} referencing unknown machine or unit "
                    f'"{attachment.host_id}" not valid'
                )


def _check_secrets(model: Model, context: _Context) -> None:
    known = context.applications_and_units

    def check_subject(label: str, text: str) -> None:
        # Tags were parsed by the entity checks already.
        if not text:
            return
        tag = parse_tag(text)
        if tag.kind in (APPLICATION, UNIT) and tag.id not in known:
            raise NotValidError(f"{label} ({tag.id}) not valid")

    for i, secret in enumerate(model.secrets):
        try:
            secret.check_invariants()
        except DescriptionError as exc:
            raise exc.annotated(f"secret {i}") from exc
        check_subject(f"secret {i} owner", secret.owner)
        for consumer in secret.consumers:
            check_subject(f"secret {i} consumer", consumer.consumer)
        for subject in secret.acl:
            check_subject(f"secret {i} accessor", subject)

    for i, remote in enumerate(model.remote_secrets):
        try:
            remote.check_invariants()
        except DescriptionError as exc:
            raise exc.annotated(f"remote secret {i}") from exc
        check_subject(f"remote secret {i} consumer", remote.consumer)


def _check_virtual_host_keys(model: Model) -> None:
    for i, key in enumerate(model.virtual_host_keys):
        try:
            key.check_invariants()
        except DescriptionError as exc:
            raise exc.annotated(f"virtual host key {i}") from exc


def _devices_by_machine(model: Model) -> dict[str, dict[str, LinkLayerDevice]]:
    """Return machine id to device name to device."""
    result: dict[str, dict[str, LinkLayerDevice]] = {}
    for device in model.link_layer_devices:
        result.setdefault(device.machine_id, {})[device.name] = device
    return result


def _parse_device_global_key(key: str) -> tuple[str, str] | None:
    """Split a ``m#<machine>#d#<device>`` key; return None when ``key`` is a plain device name.

    A key holding ``#`` in any other layout yields empty names, which never
    resolve to a device.
    """
    if "#" not in key:
        return None
    parts = key.split("#")
    if len(parts) != 4 or parts[0] != "m" or parts[2] != "d":
        return "", ""
    return parts[1], parts[3]


def _host_machine_id(machine_id: str) -> str:
    """Return the host of a container id such as ``0/lxd/1``, or ``""`` for a top level machine."""
    parts = machine_id.split("/")
    if len(parts) < 3:
        return ""
    return "/".join(parts[:-2])


def _is_ip_address(value: str) -> bool:
    try:
        ipaddress.ip_address(value)
    except ValueError:
        return False
    return True


def _is_cidr(value: str) -> bool:
    if "/" not in value:
        return False
    try:
        ipaddress.ip_network(value, strict=False)
    except ValueError:
        return False
    return True


def _is_mac_address(value: str) -> bool:
    if _MAC_SEPARATED.match(value):
        octets = len(re.split(r"[:-]", value))
    elif _MAC_DOTTED.match(value):
        octets = 2 * len(value.split("."))
    else:
        return False
    return octets in (6, 8, 20)


def _names(names: set[str]) -> str:
    return ", ".join(sorted(names))
