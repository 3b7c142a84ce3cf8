# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Block devices attached to a machine."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel
from pydantic import Field as _Field

from modeldesc.schema.checkers import OMIT, Bool, ForceUint, List, String
from modeldesc.schema.envelope import collection_to_dict, import_collection, import_item
from modeldesc.schema.registry import FieldSchema, SchemaRegistry

# ###############
# Public Interface
# ###############


class BlockDevice(BaseModel):
    name: str
    links: list[str] = _Field(default_factory=list)
    label: str = ""
    uuid: str = ""
    hardware_id: str = ""
    wwn: str = ""
    bus_address: str = ""
    serial_id: str = ""
    size: int = 0
    filesystem_type: str = ""
    in_use: bool = False
    mount_point: str = ""


def import_block_devices(source: Any) -> list[BlockDevice]:
    """Import a ``{version, block-devices: [...]}`` collection."""
    return import_collection(
        source,
        key="block-devices",
        kind="block device",
        registry=_BLOCK_DEVICE_SCHEMAS,
        build=_block_device_from_valid,
    )


def import_block_device(source: Any) -> BlockDevice:
    """Import a single unversioned block device, as embedded in volume attachment plans."""
    return import_item(
        source,
        kind="block device",
        version=_BLOCK_DEVICE_SCHEMAS.current,
        schema=_BLOCK_DEVICE_SCHEMAS.lookup(_BLOCK_DEVICE_SCHEMAS.current),
        build=_block_device_from_valid,
    )


def block_devices_to_dict(devices: list[BlockDevice]) -> dict[str, Any]:
    return collection_to_dict("block-devices", _BLOCK_DEVICE_SCHEMAS, devices, block_device_to_dict)


def block_device_to_dict(device: BlockDevice) -> dict[str, Any]:
    d: dict[str, Any] = {"name": device.name}
    if device.links:
        d["links"] = list(device.links)
    if device.label:
        d["label"] = device.label
    if device.uuid:
        d["uuid"] = device.uuid
    if device.hardware_id:
        d["hardware-id"] = device.hardware_id
    if device.wwn:
        d["wwn"] = device.wwn
    if device.bus_address:
        d["bus-address"] = device.bus_address
    if device.serial_id:
        d["serial-id"] = device.serial_id
    d["size"] = device.size
    if device.filesystem_type:
        d["fs-type"] = device.filesystem_type
    d["in-use"] = device.in_use
    if device.mount_point:
        d["mount-point"] = device.mount_point
    return d


# ################
# Implementation
# ################


def _block_device_v1_fields() -> FieldSchema:
    return FieldSchema.of(
        {
            "name": String(),
            "links": List(String()),
            "label": String(),
            "uuid": String(),
            "hardware-id": String(),
            "wwn": String(),
            "bus-address": String(),
            "size": ForceUint(),
            "fs-type": String(),
            "in-use": Bool(),
            "mount-point": String(),
        },
        {
            "links": OMIT,
            "label": "",
            "uuid": "",
            "hardware-id": "",
            "wwn": "",
            "bus-address": "",
            "fs-type": "",
            "mount-point": "",
        },
    )


def _block_device_v2_fields() -> FieldSchema:
    return _block_device_v1_fields().add("serial-id", String(), "")


_BLOCK_DEVICE_SCHEMAS = SchemaRegistry.from_functions(
    "block device",
    {1: _block_device_v1_fields, 2: _block_device_v2_fields},
)


def _block_device_from_valid(valid: dict[str, Any], version: int) -> BlockDevice:
    device = BlockDevice(
        name=valid["name"],
        links=valid.get("links", []),
        label=valid["label"],
        uuid=valid["uuid"],
        hardware_id=valid["hardware-id"],
        wwn=valid["wwn"],
        bus_address=valid["bus-address"],
        size=valid["size"],
        filesystem_type=valid["fs-type"],
        in_use=valid["in-use"],
        mount_point=valid["mount-point"],
    )
    if version >= 2:
        device.serial_id = valid["serial-id"]
    return device
