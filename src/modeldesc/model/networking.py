# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Network topology: spaces, subnets, link-layer devices, IP addresses and host keys.

Subnets carry the richest version history of the model. Every transition is
gated on the imported version:

====  =====================================================================
v2    adds ``provider-network-id``
v3    ``availability-zone`` becomes the list ``availability-zones``, adds
      ``provider-space-id``
v4    adds the fan networking fields
v5    ``space-name`` becomes ``space-id``, adds ``is-public``
v6    adds ``subnet-id``
v7    adds ``uuid`` and ``space-uuid``
====  =====================================================================
"""

from __future__ import annotations

import base64
import binascii
from typing import Any

from pydantic import BaseModel
from pydantic import Field as _Field

from modeldesc.errors import NotValidError
from modeldesc.schema.checkers import Bool, Int, List, String
from modeldesc.schema.envelope import collection_to_dict, import_collection, string_list
from modeldesc.schema.registry import FieldSchema, SchemaRegistry

# ###############
# Public Interface
# ###############


class Space(BaseModel):
    """A network space.

    Attributes:
        id: The space id of version 2 documents. Current documents identify
            a space by uuid and do not write it.
    """

    name: str
    public: bool = False
    provider_id: str = ""
    id: str = ""
    uuid: str = ""


class Subnet(BaseModel):
    """A subnet, attached to a space by id.

    Attributes:
        space_name: The space of documents older than version 5; not written.
    """

    cidr: str
    id: str = ""
    uuid: str = ""
    provider_id: str = ""
    provider_network_id: str = ""
    provider_space_id: str = ""
    vlan_tag: int = 0
    availability_zones: list[str] = _Field(default_factory=list)
    is_public: bool = False
    space_id: str = ""
    space_uuid: str = ""
    space_name: str = ""
    fan_local_underlay: str = ""
    fan_overlay: str = ""


class LinkLayerDevice(BaseModel):
    """A network device of a machine, possibly the child of a bridge."""

    name: str
    mtu: int = 0
    provider_id: str = ""
    machine_id: str = ""
    type: str = ""
    mac_address: str = ""
    is_autostart: bool = False
    is_up: bool = False
    parent_name: str = ""
    virtual_port_type: str = ""


class IPAddress(BaseModel):
    """An address assigned to a link-layer device of a machine."""

    value: str
    device_name: str = ""
    machine_id: str = ""
    subnet_cidr: str = ""
    config_method: str = ""
    provider_id: str = ""
    dns_servers: list[str] = _Field(default_factory=list)
    dns_search_domains: list[str] = _Field(default_factory=list)
    gateway_address: str = ""
    is_default_gateway: bool = False
    provider_network_id: str = ""
    provider_subnet_id: str = ""
    origin: str = ""


class SSHHostKey(BaseModel):
    machine_id: str
    keys: list[str] = _Field(default_factory=list)


class VirtualHostKey(BaseModel):
    """A host key served for a virtual host such as a unit or a machine.

    Attributes:
        host_key: The key, base64 encoded as it appears on the wire.
    """

    id: str
    host_key: str = ""

    @classmethod
    def from_key(cls, key_id: str, key: bytes) -> VirtualHostKey:
        return cls(id=key_id, host_key=base64.b64encode(key).decode("ascii"))

    def key_bytes(self) -> bytes:
        return base64.b64decode(self.host_key, validate=True)

    def check_invariants(self) -> None:
        if not self.id:
            raise NotValidError("virtual host key missing id")
        if not self.host_key:
            raise NotValidError(f'virtual host key "{self.id}" has a zero length key')
        try:
            self.key_bytes()
        except (binascii.Error, ValueError) as exc:
            raise NotValidError(f'virtual host key "{self.id}" not valid: {exc}') from exc


def import_spaces(source: Any) -> list[Space]:
    return import_collection(source, key="spaces", kind="space", registry=_SPACE_SCHEMAS, build=_space_from_valid)


def spaces_to_dict(spaces: list[Space]) -> dict[str, Any]:
    return collection_to_dict("spaces", _SPACE_SCHEMAS, spaces, _space_to_dict)


def import_subnets(source: Any) -> list[Subnet]:
    return import_collection(source, key="subnets", kind="subnet", registry=_SUBNET_SCHEMAS, build=_subnet_from_valid)


def subnets_to_dict(subnets: list[Subnet]) -> dict[str, Any]:
    return collection_to_dict("subnets", _SUBNET_SCHEMAS, subnets, _subnet_to_dict)


def import_link_layer_devices(source: Any) -> list[LinkLayerDevice]:
    return import_collection(
        source,
        key="link-layer-devices",
        kind="link-layer device",
        registry=_DEVICE_SCHEMAS,
        build=_device_from_valid,
    )


def link_layer_devices_to_dict(devices: list[LinkLayerDevice]) -> dict[str, Any]:
    return collection_to_dict("link-layer-devices", _DEVICE_SCHEMAS, devices, _device_to_dict)


def import_ip_addresses(source: Any) -> list[IPAddress]:
    return import_collection(
        source,
        key="ip-addresses",
        kind="ip address",
        registry=_IP_ADDRESS_SCHEMAS,
        build=_ip_address_from_valid,
    )


def ip_addresses_to_dict(addresses: list[IPAddress]) -> dict[str, Any]:
    return collection_to_dict("ip-addresses", _IP_ADDRESS_SCHEMAS, addresses, _ip_address_to_dict)


def import_ssh_host_keys(source: Any) -> list[SSHHostKey]:
    return import_collection(
        source,
        key="ssh-host-keys",
        kind="ssh host key",
        registry=_SSH_HOST_KEY_SCHEMAS,
        build=lambda valid, version: SSHHostKey(machine_id=valid["machine-id"], keys=string_list(valid["keys"])),
    )


def ssh_host_keys_to_dict(keys: list[SSHHostKey]) -> dict[str, Any]:
    return collection_to_dict(
        "ssh-host-keys",
        _SSH_HOST_KEY_SCHEMAS,
        keys,
        lambda key: {"machine-id": key.machine_id, "keys": list(key.keys)},
    )


def import_virtual_host_keys(source: Any) -> list[VirtualHostKey]:
    return import_collection(
        source,
        key="virtual-host-keys",
        kind="virtual host key",
        registry=_VIRTUAL_HOST_KEY_SCHEMAS,
        build=lambda valid, version: VirtualHostKey(id=valid["id"], host_key=valid["host-key"]),
    )


def virtual_host_keys_to_dict(keys: list[VirtualHostKey]) -> dict[str, Any]:
    return collection_to_dict(
        "virtual-host-keys",
        _VIRTUAL_HOST_KEY_SCHEMAS,
        keys,
        lambda key: {"id": key.id, "host-key": key.host_key},
    )


# ################
# Implementation
# ################


def _space_v1_fields() -> FieldSchema:
    return FieldSchema.of({"name": String(), "public": Bool(), "provider-id": String()}, {"provider-id": ""})


def _space_v2_fields() -> FieldSchema:
    return _space_v1_fields().add("id", String())


def _space_v3_fields() -> FieldSchema:
    return _space_v2_fields().add("uuid", String()).remove("id")


_SPACE_SCHEMAS = SchemaRegistry.from_functions(
    "space",
    {1: _space_v1_fields, 2: _space_v2_fields, 3: _space_v3_fields},
)


def _space_from_valid(valid: dict[str, Any], version: int) -> Space:
    space = Space(name=valid["name"], public=valid["public"], provider_id=valid["provider-id"])
    if version == 2:
        space.id = valid["id"]
    if version >= 3:
        space.uuid = valid["uuid"]
    return space


def _space_to_dict(space: Space) -> dict[str, Any]:
    d: dict[str, Any] = {"uuid": space.uuid, "name": space.name, "public": space.public}
    if space.provider_id:
        d["provider-id"] = space.provider_id
    return d


def _subnet_v1_fields() -> FieldSchema:
    return FieldSchema.of(
        {
            "cidr": String(),
            "provider-id": String(),
            "vlan-tag": Int(),
            "space-name": String(),
            "availability-zone": String(),
            "allocatable-ip-high": String(),
            "allocatable-ip-low": String(),
        },
        {"provider-id": "", "allocatable-ip-high": "", "allocatable-ip-low": ""},
    )


def _subnet_v2_fields() -> FieldSchema:
    return _subnet_v1_fields().add("provider-network-id", String(), "")


def _subnet_v3_fields() -> FieldSchema:
    return (
        _subnet_v2_fields()
        .add("provider-space-id", String(), "")
        .add("availability-zones", List(String()))
        .remove("availability-zone")
    )


def _subnet_v4_fields() -> FieldSchema:
    return _subnet_v3_fields().add("fan-local-underlay", String(), "").add("fan-overlay", String(), "")


def _subnet_v5_fields() -> FieldSchema:
    return _subnet_v4_fields().add("space-id", String()).add("is-public", Bool()).remove("space-name")


def _subnet_v6_fields() -> FieldSchema:
    return _subnet_v5_fields().add("subnet-id", String())


def _subnet_v7_fields() -> FieldSchema:
    return _subnet_v6_fields().add("uuid", String()).add("space-uuid", String())


_SUBNET_SCHEMAS = SchemaRegistry.from_functions(
    "subnet",
    {
        1: _subnet_v1_fields,
        2: _subnet_v2_fields,
        3: _subnet_v3_fields,
        4: _subnet_v4_fields,
        5: _subnet_v5_fields,
        6: _subnet_v6_fields,
        7: _subnet_v7_fields,
    },
)


def _subnet_from_valid(valid: dict[str, Any], version: int) -> Subnet:
    # The allocatable IP range is still read by every version and then dropped.
    subnet = Subnet(cidr=valid["cidr"], provider_id=valid["provider-id"], vlan_tag=valid["vlan-tag"])
    if version >= 2:
        subnet.provider_network_id = valid["provider-network-id"]
    if version >= 3:
        subnet.provider_space_id = valid["provider-space-id"]
        subnet.availability_zones = string_list(valid["availability-zones"])
    else:
        subnet.availability_zones = [valid["availability-zone"]]
    if version >= 4:
        subnet.fan_local_underlay = valid["fan-local-underlay"]
        subnet.fan_overlay = valid["fan-overlay"]
    if version >= 5:
        subnet.space_id = valid["space-id"]
        subnet.is_public = valid["is-public"]
    else:
        subnet.space_name = valid["space-name"]
    if version >= 6:
        subnet.id = valid["subnet-id"]
    if version >= 7:
        subnet.uuid = valid["uuid"]
        subnet.space_uuid = valid["space-uuid"]
    return subnet


def _subnet_to_dict(subnet: Subnet) -> dict[str, Any]:
    d: dict[str, Any] = {"subnet-id": subnet.id, "uuid": subnet.uuid}
    if subnet.provider_id:
        d["provider-id"] = subnet.provider_id
    if subnet.provider_network_id:
        d["provider-network-id"] = subnet.provider_network_id
    if subnet.provider_space_id:
        d["provider-space-id"] = subnet.provider_space_id
    d["cidr"] = subnet.cidr
    d["vlan-tag"] = subnet.vlan_tag
    d["availability-zones"] = list(subnet.availability_zones)
    d["is-public"] = subnet.is_public
    d["space-id"] = subnet.space_id
    d["space-uuid"] = subnet.space_uuid
    if subnet.fan_local_underlay:
        d["fan-local-underlay"] = subnet.fan_local_underlay
    if subnet.fan_overlay:
        d["fan-overlay"] = subnet.fan_overlay
    return d


def _device_v1_fields() -> FieldSchema:
    return FieldSchema.of(
        {
            "name": String(),
            "mtu": Int(),
            "provider-id": String(),
            "machine-id": String(),
            "type": String(),
            "mac-address": String(),
            "is-autostart": Bool(),
            "is-up": Bool(),
            "parent-name": String(),
        },
        {"provider-id": ""},
    )


def _device_v2_fields() -> FieldSchema:
    return _device_v1_fields().add("virtual-port-type", String(), "")


_DEVICE_SCHEMAS = SchemaRegistry.from_functions("link-layer device", {1: _device_v1_fields, 2: _device_v2_fields})


def _device_from_valid(valid: dict[str, Any], version: int) -> LinkLayerDevice:
    device = LinkLayerDevice(
        name=valid["name"],
        mtu=valid["mtu"],
        provider_id=valid["provider-id"],
        machine_id=valid["machine-id"],
        type=valid["type"],
        mac_address=valid["mac-address"],
        is_autostart=valid["is-autostart"],
        is_up=valid["is-up"],
        parent_name=valid["parent-name"],
    )
    if version >= 2:
        device.virtual_port_type = valid["virtual-port-type"]
    return device


def _device_to_dict(device: LinkLayerDevice) -> dict[str, Any]:
    d: dict[str, Any] = {"name": device.name, "mtu": device.mtu}
    if device.provider_id:
        d["provider-id"] = device.provider_id
    d["machine-id"] = device.machine_id
    d["type"] = device.type
    d["mac-address"] = device.mac_address
    d["is-autostart"] = device.is_autostart
    d["is-up"] = device.is_up
    d["parent-name"] = device.parent_name
    if device.virtual_port_type:
        d["virtual-port-type"] = device.virtual_port_type
    return d


def _ip_address_v1_fields() -> FieldSchema:
    return FieldSchema.of(
        {
            "provider-id": String(),
            "device-name": String(),
            "machine-id": String(),
            "subnet-cidr": String(),
            "config-method": String(),
            "value": String(),
            "dns-servers": List(String()),
            "dns-search-domains": List(String()),
            "gateway-address": String(),
        },
        {"provider-id": ""},
    )


def _ip_address_v2_fields() -> FieldSchema:
    return _ip_address_v1_fields().add("is-default-gateway", Bool(), False)


def _ip_address_v3_fields() -> FieldSchema:
    return (
        _ip_address_v2_fields()
        .add("provider-network-id", String(), "")
        .add("provider-subnet-id", String(), "")
        .add("origin", String(), "")
    )


_IP_ADDRESS_SCHEMAS = SchemaRegistry.from_functions(
    "ip address",
    {1: _ip_address_v1_fields, 2: _ip_address_v2_fields, 3: _ip_address_v3_fields},
)


def _ip_address_from_valid(valid: dict[str, Any], version: int) -> IPAddress:
    address = IPAddress(
        provider_id=valid["provider-id"],
        device_name=valid["device-name"],
        machine_id=valid["machine-id"],
        subnet_cidr=valid["subnet-cidr"],
        config_method=valid["config-method"],
        value=valid["value"],
        dns_servers=string_list(valid["dns-servers"]),
        dns_search_domains=string_list(valid["dns-search-domains"]),
        gateway_address=valid["gateway-address"],
    )
    if version >= 2:
        address.is_default_gateway = valid["is-default-gateway"]
    if version >= 3:
        address.provider_network_id = valid["provider-network-id"]
        address.provider_subnet_id = valid["provider-subnet-id"]
        address.origin = valid["origin"]
    return address


def _ip_address_to_dict(address: IPAddress) -> dict[str, Any]:
    d: dict[str, Any] = {}
    if address.provider_id:
        d["provider-id"] = address.provider_id
    d["device-name"] = address.device_name
    d["machine-id"] = address.machine_id
    d["subnet-cidr"] = address.subnet_cidr
    d["config-method"] = address.config_method
    d["value"] = address.value
    d["dns-servers"] = list(address.dns_servers)
    d["dns-search-domains"] = list(address.dns_search_domains)
    d["gateway-address"] = address.gateway_address
    d["is-default-gateway"] = address.is_default_gateway
    if address.provider_network_id:
        d["provider-network-id"] = address.provider_network_id
    if address.provider_subnet_id:
        d["provider-subnet-id"] = address.provider_subnet_id
    d["origin"] = address.origin
    return d


def _ssh_host_key_v1_fields() -> FieldSchema:
    return FieldSchema.of({"machine-id": String(), "keys": List(String())})


_SSH_HOST_KEY_SCHEMAS = SchemaRegistry.from_functions("ssh host key", {1: _ssh_host_key_v1_fields})


def _virtual_host_key_v1_fields() -> FieldSchema:
    return FieldSchema.of({"id": String(), "host-key": String()})


_VIRTUAL_HOST_KEY_SCHEMAS = SchemaRegistry.from_functions("virtual host key", {1: _virtual_host_key_v1_fields})
