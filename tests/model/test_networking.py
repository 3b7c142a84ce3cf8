# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for spaces, subnets, link-layer devices, IP addresses, host keys and addresses."""

from typing import Any

import pytest

from modeldesc.errors import NotValidError, SchemaError
from modeldesc.model.address import Address, address_to_dict, import_address, import_addresses
from modeldesc.model.networking import (
    IPAddress,
    LinkLayerDevice,
    Space,
    SSHHostKey,
    Subnet,
    VirtualHostKey,
    import_ip_addresses,
    import_link_layer_devices,
    import_spaces,
    import_ssh_host_keys,
    import_subnets,
    import_virtual_host_keys,
    ip_addresses_to_dict,
    link_layer_devices_to_dict,
    spaces_to_dict,
    ssh_host_keys_to_dict,
    subnets_to_dict,
    virtual_host_keys_to_dict,
)

# ###############
# Subnets
# ###############


def _v1_subnet(**overrides: Any) -> dict[str, Any]:
    subnet = {"cidr": "10.0.0.0/24", "vlan-tag": 0, "space-name": "db", "availability-zone": "bar"}
    subnet.update(overrides)
    return subnet


class TestSubnet:
    def test_v1_zone_becomes_zone_list(self) -> None:
        (subnet,) = import_subnets({"version": 1, "subnets": [_v1_subnet()]})
        assert subnet.availability_zones == ["bar"]
        assert subnet.space_name == "db"
        assert subnet.space_id == ""

    def test_v1_allocatable_range_is_dropped(self) -> None:
        source = _v1_subnet(**{"allocatable-ip-low": "10.0.0.10", "allocatable-ip-high": "10.0.0.20"})
        (subnet,) = import_subnets({"version": 1, "subnets": [source]})
        assert subnet.cidr == "10.0.0.0/24"

    def test_v1_missing_zone(self) -> None:
        source = _v1_subnet()
        del source["availability-zone"]
        with pytest.raises(SchemaError, match="availability-zone: expected string, got nothing"):
            import_subnets({"version": 1, "subnets": [source]})

    def test_v5_reads_space_id(self) -> None:
        source = {
            "cidr": "10.0.0.0/24",
            "vlan-tag": 2,
            "availability-zones": ["a", "b"],
            "space-id": "1",
            "is-public": True,
        }
        (subnet,) = import_subnets({"version": 5, "subnets": [source]})
        assert subnet.space_id == "1"
        assert subnet.is_public
        assert subnet.space_name == ""
        assert subnet.availability_zones == ["a", "b"]

    def test_round_trip(self) -> None:
        subnet = Subnet(
            cidr="10.0.0.0/24",
            id="3",
            uuid="u-3",
            provider_id="p",
            provider_network_id="net",
            provider_space_id="ps",
            vlan_tag=42,
            availability_zones=["az1"],
            is_public=True,
            space_id="1",
            space_uuid="su",
            fan_local_underlay="172.16.0.0/16",
            fan_overlay="252.0.0.0/8",
        )
        assert import_subnets(subnets_to_dict([subnet])) == [subnet]

    def test_export_uses_version_7(self) -> None:
        assert subnets_to_dict([])["version"] == 7


# ###############
# Spaces
# ###############


class TestSpace:
    def test_v2_reads_id(self) -> None:
        source = {"version": 2, "spaces": [{"name": "db", "public": False, "id": "1"}]}
        (space,) = import_spaces(source)
        assert space.id == "1"
        assert space.uuid == ""

    def test_v3_does_not_read_id(self) -> None:
        source = {"version": 3, "spaces": [{"name": "db", "public": True, "id": "1", "uuid": "u"}]}
        (space,) = import_spaces(source)
        assert space == Space(name="db", public=True, uuid="u")

    def test_round_trip(self) -> None:
        space = Space(name="db", public=True, provider_id="p", uuid="u")
        assert import_spaces(spaces_to_dict([space])) == [space]


# ###############
# Devices and addresses
# ###############


def test_link_layer_device_round_trip() -> None:
    device = LinkLayerDevice(
        name="eth0",
        mtu=1500,
        provider_id="p",
        machine_id="0",
        type="ethernet",
        mac_address="aa:bb:cc:dd:ee:ff",
        is_autostart=True,
        is_up=True,
        parent_name="br-eth0",
        virtual_port_type="openvswitch",
    )
    assert import_link_layer_devices(link_layer_devices_to_dict([device])) == [device]


def test_link_layer_device_v1_has_no_virtual_port_type() -> None:
    source = {
        "name": "eth0",
        "mtu": 1500,
        "machine-id": "0",
        "type": "ethernet",
        "mac-address": "",
        "is-autostart": False,
        "is-up": True,
        "parent-name": "",
        "virtual-port-type": "openvswitch",
    }
    (device,) = import_link_layer_devices({"version": 1, "link-layer-devices": [source]})
    assert device.virtual_port_type == ""


def test_ip_address_round_trip() -> None:
    address = IPAddress(
        value="10.0.0.5",
        device_name="eth0",
        machine_id="0",
        subnet_cidr="10.0.0.0/24",
        config_method="static",
        provider_id="p",
        dns_servers=["10.0.0.1"],
        dns_search_domains=["example.com"],
        gateway_address="10.0.0.1",
        is_default_gateway=True,
        provider_network_id="net",
        provider_subnet_id="sub",
        origin="provider",
    )
    assert import_ip_addresses(ip_addresses_to_dict([address])) == [address]


def test_ssh_host_keys_round_trip() -> None:
    keys = [SSHHostKey(machine_id="0", keys=["ssh-rsa AAA", "ssh-ed25519 BBB"])]
    assert import_ssh_host_keys(ssh_host_keys_to_dict(keys)) == keys


class TestVirtualHostKey:
    def test_round_trip_keeps_the_encoded_key(self) -> None:
        keys = [VirtualHostKey.from_key("unit-mysql-0-hostkey", b"ssh-ed25519 AAAA")]
        exported = virtual_host_keys_to_dict(keys)
        assert exported == {
            "version": 1,
            "virtual-host-keys": [{"id": "unit-mysql-0-hostkey", "host-key": "c3NoLWVkMjU1MTkgQUFBQQ=="}],
        }
        assert import_virtual_host_keys(exported) == keys
        assert keys[0].key_bytes() == b"ssh-ed25519 AAAA"

    def test_host_key_is_required(self) -> None:
        source = {"version": 1, "virtual-host-keys": [{"id": "machine-0-hostkey"}]}
        expected = "^virtual host key 0: virtual host key v1 schema check failed: host-key:"
        with pytest.raises(SchemaError, match=expected):
            import_virtual_host_keys(source)

    def test_valid(self) -> None:
        VirtualHostKey.from_key("machine-0-hostkey", b"key").check_invariants()

    @pytest.mark.parametrize(
        ("key", "message"),
        [
            (VirtualHostKey(id="", host_key="a2V5"), "^virtual host key missing id$"),
            (VirtualHostKey(id="vhk"), '^virtual host key "vhk" has a zero length key$'),
            (VirtualHostKey(id="vhk", host_key="not base64!"), '^virtual host key "vhk" not valid'),
        ],
    )
    def test_invalid(self, key: VirtualHostKey, message: str) -> None:
        with pytest.raises(NotValidError, match=message):
            key.check_invariants()


class TestAddress:
    def test_v1_has_no_space(self) -> None:
        address = import_address({"version": 1, "value": "10.0.0.1", "type": "ipv4", "spaceid": "2"})
        assert address == Address(value="10.0.0.1", type="ipv4")

    def test_each_address_carries_its_own_version(self) -> None:
        addresses = import_addresses(
            [
                {"version": 1, "value": "10.0.0.1", "type": "ipv4"},
                {"version": 2, "value": "::1", "type": "ipv6", "scope": "local-machine", "spaceid": "0"},
            ]
        )
        assert [a.space_id for a in addresses] == ["", "0"]

    def test_error_is_annotated_with_index(self) -> None:
        with pytest.raises(SchemaError, match="^address 1: address v1 schema check failed: value:"):
            import_addresses([{"version": 1, "value": "a", "type": "ipv4"}, {"version": 1, "type": "ipv4"}])

    def test_round_trip(self) -> None:
        address = Address(value="10.0.0.1", type="ipv4", scope="public", origin="provider", space_id="2")
        assert import_address(address_to_dict(address)) == address
