# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Storage instances, the volumes and filesystems backing them, and storage pools.

Before version 3 a storage instance recorded its owner as an entity tag such as
``unit-mysql-0`` or ``application-mysql``. Version 3 stores the bare name in
``unit-owner``; older documents are converted while importing so the in-memory
shape is always the current one.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel
from pydantic import Field as _Field

from modeldesc.errors import DescriptionError, NotValidError
from modeldesc.model.blockdevice import BlockDevice, block_device_to_dict, import_block_device
from modeldesc.model.status import (
    STATUS_HISTORY_SCHEMA,
    Status,
    StatusHistory,
    import_owner_status_history,
    import_status,
    status_history_to_dict,
    status_to_dict,
)
from modeldesc.model.tags import is_valid_unit_name, parse_tag, unit_name_from_tag
from modeldesc.schema.checkers import OMIT, AnyValue, Bool, FieldMap, ForceUint, List, String, StringMap
from modeldesc.schema.envelope import collection_to_dict, import_collection, string_list
from modeldesc.schema.registry import FieldSchema, SchemaRegistry

# ###############
# Public Interface
# ###############


class Storage(BaseModel):
    """A storage instance.

    Attributes:
        unit_owner: Name of the owning unit or application, e.g. ``mysql/0``; empty
            when unowned.
        attachments: Names of the units the storage is attached to.
    """

    id: str
    kind: str = ""
    name: str = ""
    unit_owner: str = ""
    attachments: list[str] = _Field(default_factory=list)

    def check_invariants(self) -> None:
        if not self.id:
            raise NotValidError("storage missing id")


class VolumePlanInfo(BaseModel):
    device_type: str = ""
    device_attributes: dict[str, str] = _Field(default_factory=dict)


class VolumeAttachment(BaseModel):
    """Attachment of a volume to a machine or a unit, identified by ``host_id``."""

    host_id: str
    provisioned: bool = False
    read_only: bool = False
    device_name: str = ""
    device_link: str = ""
    bus_address: str = ""
    plan_info: VolumePlanInfo | None = None


class VolumeAttachmentPlan(BaseModel):
    machine_id: str
    block_device: BlockDevice | None = None
    plan_info: VolumePlanInfo | None = None


class Volume(BaseModel):
    id: str
    storage_id: str = ""
    provisioned: bool = False
    size: int = 0
    pool: str = ""
    hardware_id: str = ""
    wwn: str = ""
    volume_id: str = ""
    persistent: bool = False
    status: Status | None = None
    status_history: StatusHistory = _Field(default_factory=StatusHistory)
    attachments: list[VolumeAttachment] = _Field(default_factory=list)
    attachment_plans: list[VolumeAttachmentPlan] = _Field(default_factory=list)

    def add_attachment(self, **kwargs: Any) -> VolumeAttachment:
        attachment = VolumeAttachment(**kwargs)
        self.attachments.append(attachment)
        return attachment

    def add_attachment_plan(self, **kwargs: Any) -> VolumeAttachmentPlan:
        plan = VolumeAttachmentPlan(**kwargs)
        self.attachment_plans.append(plan)
        return plan

    def set_status_history(self, points: list[Status]) -> None:
        self.status_history.set_points(points)

    def status_history_points(self) -> list[Status]:
        return list(self.status_history.points)

    def check_invariants(self) -> None:
        _check_storage_entity("volume", self.id, self.size, self.status)


class FilesystemAttachment(BaseModel):
    """Attachment of a filesystem; exactly one of ``host_machine_id`` and ``host_unit_id`` is normally set."""

    host_machine_id: str = ""
    host_unit_id: str = ""
    provisioned: bool = False
    read_only: bool = False
    mount_point: str = ""

    @property
    def host_id(self) -> str:
        return self.host_unit_id or self.host_machine_id


class Filesystem(BaseModel):
    id: str
    storage_id: str = ""
    volume_id: str = ""
    provisioned: bool = False
    size: int = 0
    pool: str = ""
    filesystem_id: str = ""
    status: Status | None = None
    status_history: StatusHistory = _Field(default_factory=StatusHistory)
    attachments: list[FilesystemAttachment] = _Field(default_factory=list)

    def add_attachment(self, **kwargs: Any) -> FilesystemAttachment:
        attachment = FilesystemAttachment(**kwargs)
        self.attachments.append(attachment)
        return attachment

    def set_status_history(self, points: list[Status]) -> None:
        self.status_history.set_points(points)

    def status_history_points(self) -> list[Status]:
        return list(self.status_history.points)

    def check_invariants(self) -> None:
        _check_storage_entity("filesystem", self.id, self.size, self.status)


class StoragePool(BaseModel):
    """A named storage pool and the settings handed to its provider."""

    name: str
    provider: str
    attributes: dict[str, Any] = _Field(default_factory=dict)


def import_storages(source: Any) -> list[Storage]:
    return import_collection(
        source,
        key="storages",
        kind="storage",
        registry=_STORAGE_SCHEMAS,
        build=_storage_from_valid,
    )


def storages_to_dict(storages: list[Storage]) -> dict[str, Any]:
    return collection_to_dict("storages", _STORAGE_SCHEMAS, storages, _storage_to_dict)


def import_volumes(source: Any) -> list[Volume]:
    return import_collection(
        source,
        key="volumes",
        kind="volume",
        registry=_VOLUME_SCHEMAS,
        build=_volume_from_valid,
    )


def volumes_to_dict(volumes: list[Volume]) -> dict[str, Any]:
    return collection_to_dict("volumes", _VOLUME_SCHEMAS, volumes, _volume_to_dict)


def import_filesystems(source: Any) -> list[Filesystem]:
    return import_collection(
        source,
        key="filesystems",
        kind="filesystem",
        registry=_FILESYSTEM_SCHEMAS,
        build=_filesystem_from_valid,
    )


def filesystems_to_dict(filesystems: list[Filesystem]) -> dict[str, Any]:
    return collection_to_dict("filesystems", _FILESYSTEM_SCHEMAS, filesystems, _filesystem_to_dict)


def import_storage_pools(source: Any) -> list[StoragePool]:
    return import_collection(
        source,
        key="pools",
        kind="storage pool",
        registry=_POOL_SCHEMAS,
        build=_pool_from_valid,
    )


def storage_pools_to_dict(pools: list[StoragePool]) -> dict[str, Any]:
    return collection_to_dict("pools", _POOL_SCHEMAS, pools, _pool_to_dict)


# ################
# Implementation
# ################


def _check_storage_entity(kind: str, entity_id: str, size: int, status: Status | None) -> None:
    if not entity_id:
        raise NotValidError(f"{kind} missing id")
    if size == 0:
        raise NotValidError(f'{kind} "{entity_id}" missing size')
    if status is None:
        raise NotValidError(f'{kind} "{entity_id}" missing status')


def _storage_v1_fields() -> FieldSchema:
    return FieldSchema.of(
        {
            "id": String(),
            "kind": String(),
            "owner": String(),
            "name": String(),
            "attachments": List(String()),
        }
    )


def _storage_v2_fields() -> FieldSchema:
    return _storage_v1_fields().with_default("owner", OMIT).with_default("attachments", OMIT)


def _storage_v3_fields() -> FieldSchema:
    return _storage_v2_fields().remove("owner").add("unit-owner", String(), OMIT)


_STORAGE_SCHEMAS = SchemaRegistry.from_functions(
    "storage",
    {1: _storage_v1_fields, 2: _storage_v2_fields, 3: _storage_v3_fields},
)


def _storage_from_valid(valid: dict[str, Any], version: int) -> Storage:
    storage = Storage(id=valid["id"], kind=valid["kind"], name=valid["name"])
    if version >= 3:
        storage.unit_owner = valid.get("unit-owner", "")
        storage.attachments = string_list(valid.get("attachments"))
        return storage
    try:
        if valid.get("owner"):
            storage.unit_owner = parse_tag(valid["owner"]).id
        storage.attachments = [_legacy_unit_name(name) for name in string_list(valid.get("attachments"))]
    except DescriptionError as exc:
        raise exc.annotated(f'storage "{storage.id}" owner') from exc
    return storage


def _legacy_unit_name(name: str) -> str:
    if name.startswith("unit-"):
        return unit_name_from_tag(name)
    return name


def _storage_to_dict(storage: Storage) -> dict[str, Any]:
    d: dict[str, Any] = {"id": storage.id, "kind": storage.kind, "name": storage.name}
    if storage.unit_owner:
        d["unit-owner"] = storage.unit_owner
    if storage.attachments:
        d["attachments"] = list(storage.attachments)
    return d


_PLAN_INFO_CHECKER = FieldMap(
    {"device-type": String(), "device-attributes": StringMap(String())},
    {"device-attributes": OMIT},
)


def _import_plan_info(source: Any) -> VolumePlanInfo:
    try:
        valid = _PLAN_INFO_CHECKER.coerce(source)
    except DescriptionError as exc:
        raise exc.annotated("volume plan info schema check failed") from exc
    return VolumePlanInfo(device_type=valid["device-type"], device_attributes=valid.get("device-attributes", {}))


def _plan_info_to_dict(info: VolumePlanInfo) -> dict[str, Any]:
    d: dict[str, Any] = {"device-type": info.device_type}
    if info.device_attributes:
        d["device-attributes"] = dict(info.device_attributes)
    return d


def _volume_v1_fields() -> FieldSchema:
    fields = FieldSchema.of(
        {
            "id": String(),
            "storage-id": String(),
            "provisioned": Bool(),
            "size": ForceUint(),
            "pool": String(),
            "hardware-id": String(),
            "wwn": String(),
            "volume-id": String(),
            "persistent": Bool(),
            "status": StringMap(AnyValue()),
            "attachments": StringMap(AnyValue()),
            "attachmentplans": StringMap(AnyValue()),
        },
        {
            "storage-id": "",
            "pool": "",
            "hardware-id": "",
            "wwn": "",
            "volume-id": "",
            "attachments": OMIT,
            "attachmentplans": OMIT,
        },
    )
    return fields.merge(STATUS_HISTORY_SCHEMA)


_VOLUME_SCHEMAS = SchemaRegistry.from_functions("volume", {1: _volume_v1_fields})


def _volume_from_valid(valid: dict[str, Any], version: int) -> Volume:
    volume = Volume(
        id=valid["id"],
        storage_id=valid["storage-id"],
        provisioned=valid["provisioned"],
        size=valid["size"],
        pool=valid["pool"],
        hardware_id=valid["hardware-id"],
        wwn=valid["wwn"],
        volume_id=valid["volume-id"],
        persistent=valid["persistent"],
        status_history=import_owner_status_history(valid),
    )
    volume.status = import_status(valid["status"])
    if "attachments" in valid:
        volume.attachments = import_collection(
            valid["attachments"],
            key="attachments",
            kind="volume attachment",
            registry=_VOLUME_ATTACHMENT_SCHEMAS,
            build=_volume_attachment_from_valid,
        )
    if "attachmentplans" in valid:
        volume.attachment_plans = import_collection(
            valid["attachmentplans"],
            key="attachmentplans",
            kind="volume attachment plan",
            registry=_VOLUME_ATTACHMENT_PLAN_SCHEMAS,
            build=_volume_attachment_plan_from_valid,
        )
    return volume


def _volume_to_dict(volume: Volume) -> dict[str, Any]:
    d: dict[str, Any] = {
        "id": volume.id,
        "provisioned": volume.provisioned,
        "size": volume.size,
        "persistent": volume.persistent,
    }
    if volume.storage_id:
        d["storage-id"] = volume.storage_id
    if volume.pool:
        d["pool"] = volume.pool
    if volume.hardware_id:
        d["hardware-id"] = volume.hardware_id
    if volume.wwn:
        d["wwn"] = volume.wwn
    if volume.volume_id:
        d["volume-id"] = volume.volume_id
    if volume.status is not None:
        d["status"] = status_to_dict(volume.status)
    d["status-history"] = status_history_to_dict(volume.status_history)
    d["attachments"] = collection_to_dict(
        "attachments", _VOLUME_ATTACHMENT_SCHEMAS, volume.attachments, _volume_attachment_to_dict
    )
    d["attachmentplans"] = collection_to_dict(
        "attachmentplans", _VOLUME_ATTACHMENT_PLAN_SCHEMAS, volume.attachment_plans, _volume_attachment_plan_to_dict
    )
    return d


def _volume_attachment_v1_fields() -> FieldSchema:
    return FieldSchema.of(
        {
            "machine-id": String(),
            "provisioned": Bool(),
            "read-only": Bool(),
            "device-name": String(),
            "device-link": String(),
            "bus-address": String(),
            "plan-info": StringMap(AnyValue()),
        },
        {"plan-info": OMIT},
    )


def _volume_attachment_v2_fields() -> FieldSchema:
    return _volume_attachment_v1_fields().remove("machine-id").add("host-id", String())


_VOLUME_ATTACHMENT_SCHEMAS = SchemaRegistry.from_functions(
    "volume attachment",
    {1: _volume_attachment_v1_fields, 2: _volume_attachment_v2_fields},
)


def _volume_attachment_from_valid(valid: dict[str, Any], version: int) -> VolumeAttachment:
    attachment = VolumeAttachment(
        host_id=valid["host-id"] if version >= 2 else valid["machine-id"],
        provisioned=valid["provisioned"],
        read_only=valid["read-only"],
        device_name=valid["device-name"],
        device_link=valid["device-link"],
        bus_address=valid["bus-address"],
    )
    if "plan-info" in valid:
        attachment.plan_info = _import_plan_info(valid["plan-info"])
    return attachment


def _volume_attachment_to_dict(attachment: VolumeAttachment) -> dict[str, Any]:
    d: dict[str, Any] = {
        "host-id": attachment.host_id,
        "provisioned": attachment.provisioned,
        "read-only": attachment.read_only,
        "device-name": attachment.device_name,
        "device-link": attachment.device_link,
        "bus-address": attachment.bus_address,
    }
    if attachment.plan_info is not None:
        d["plan-info"] = _plan_info_to_dict(attachment.plan_info)
    return d


def _volume_attachment_plan_v1_fields() -> FieldSchema:
    return FieldSchema.of(
        {
            "machine-id": String(),
            "block-device": StringMap(AnyValue()),
            "plan-info": StringMap(AnyValue()),
        },
        {"block-device": OMIT, "plan-info": OMIT},
    )


_VOLUME_ATTACHMENT_PLAN_SCHEMAS = SchemaRegistry.from_functions(
    "volume attachment plan",
    {1: _volume_attachment_plan_v1_fields},
)


def _volume_attachment_plan_from_valid(valid: dict[str, Any], version: int) -> VolumeAttachmentPlan:
    plan = VolumeAttachmentPlan(machine_id=valid["machine-id"])
    if "plan-info" in valid:
        plan.plan_info = _import_plan_info(valid["plan-info"])
    if "block-device" in valid:
        plan.block_device = import_block_device(valid["block-device"])
    return plan


def _volume_attachment_plan_to_dict(plan: VolumeAttachmentPlan) -> dict[str, Any]:
    d: dict[str, Any] = {"machine-id": plan.machine_id}
    if plan.block_device is not None:
        d["block-device"] = block_device_to_dict(plan.block_device)
    if plan.plan_info is not None:
        d["plan-info"] = _plan_info_to_dict(plan.plan_info)
    return d


def _filesystem_v1_fields() -> FieldSchema:
    fields = FieldSchema.of(
        {
            "id": String(),
            "storage-id": String(),
            "volume-id": String(),
            "provisioned": Bool(),
            "size": ForceUint(),
            "pool": String(),
            "filesystem-id": String(),
            "status": StringMap(AnyValue()),
            "attachments": StringMap(AnyValue()),
        },
        {
            "storage-id": "",
            "volume-id": "",
            "pool": "",
            "filesystem-id": "",
            "attachments": OMIT,
        },
    )
    return fields.merge(STATUS_HISTORY_SCHEMA)


_FILESYSTEM_SCHEMAS = SchemaRegistry.from_functions("filesystem", {1: _filesystem_v1_fields})


def _filesystem_from_valid(valid: dict[str, Any], version: int) -> Filesystem:
    filesystem = Filesystem(
        id=valid["id"],
        storage_id=valid["storage-id"],
        volume_id=valid["volume-id"],
        provisioned=valid["provisioned"],
        size=valid["size"],
        pool=valid["pool"],
        filesystem_id=valid["filesystem-id"],
        status_history=import_owner_status_history(valid),
    )
    filesystem.status = import_status(valid["status"])
    if "attachments" in valid:
        filesystem.attachments = import_collection(
            valid["attachments"],
            key="attachments",
            kind="filesystem attachment",
            registry=_FILESYSTEM_ATTACHMENT_SCHEMAS,
            build=_filesystem_attachment_from_valid,
        )
    return filesystem


def _filesystem_to_dict(filesystem: Filesystem) -> dict[str, Any]:
    d: dict[str, Any] = {
        "id": filesystem.id,
        "provisioned": filesystem.provisioned,
        "size": filesystem.size,
    }
    if filesystem.storage_id:
        d["storage-id"] = filesystem.storage_id
    if filesystem.volume_id:
        d["volume-id"] = filesystem.volume_id
    if filesystem.pool:
        d["pool"] = filesystem.pool
    if filesystem.filesystem_id:
        d["filesystem-id"] = filesystem.filesystem_id
    if filesystem.status is not None:
        d["status"] = status_to_dict(filesystem.status)
    d["status-history"] = status_history_to_dict(filesystem.status_history)
    d["attachments"] = collection_to_dict(
        "attachments", _FILESYSTEM_ATTACHMENT_SCHEMAS, filesystem.attachments, _filesystem_attachment_to_dict
    )
    return d


def _filesystem_attachment_v1_fields() -> FieldSchema:
    return FieldSchema.of(
        {
            "machine-id": String(),
            "provisioned": Bool(),
            "read-only": Bool(),
            "mount-point": String(),
        },
        {"mount-point": ""},
    )


def _filesystem_attachment_v2_fields() -> FieldSchema:
    return _filesystem_attachment_v1_fields().remove("machine-id").add("host-id", String())


def _filesystem_attachment_v3_fields() -> FieldSchema:
    return (
        _filesystem_attachment_v2_fields()
        .remove("host-id")
        .add("host-unit-id", String(), OMIT)
        .add("host-machine-id", String(), OMIT)
    )


_FILESYSTEM_ATTACHMENT_SCHEMAS = SchemaRegistry.from_functions(
    "filesystem attachment",
    {
        1: _filesystem_attachment_v1_fields,
        2: _filesystem_attachment_v2_fields,
        3: _filesystem_attachment_v3_fields,
    },
)


def _filesystem_attachment_from_valid(valid: dict[str, Any], version: int) -> FilesystemAttachment:
    attachment = FilesystemAttachment(
        provisioned=valid["provisioned"],
        read_only=valid["read-only"],
        mount_point=valid["mount-point"],
    )
    if version == 1:
        attachment.host_machine_id = valid["machine-id"]
    elif version == 2:
        # A single host id names either a unit or a machine.
        host = valid["host-id"]
        if is_valid_unit_name(host):
            attachment.host_unit_id = host
        else:
            attachment.host_machine_id = host
    else:
        attachment.host_machine_id = valid.get("host-machine-id", "")
        attachment.host_unit_id = valid.get("host-unit-id", "")
    return attachment


def _filesystem_attachment_to_dict(attachment: FilesystemAttachment) -> dict[str, Any]:
    d: dict[str, Any] = {
        "provisioned": attachment.provisioned,
        "read-only": attachment.read_only,
        "mount-point": attachment.mount_point,
    }
    if attachment.host_machine_id:
        d["host-machine-id"] = attachment.host_machine_id
    if attachment.host_unit_id:
        d["host-unit-id"] = attachment.host_unit_id
    return d


def _pool_v1_fields() -> FieldSchema:
    return FieldSchema.of(
        {"name": String(), "provider": String(), "attributes": StringMap(AnyValue())},
        {"attributes": OMIT},
    )


_POOL_SCHEMAS = SchemaRegistry.from_functions("storage pool", {1: _pool_v1_fields})


def _pool_from_valid(valid: dict[str, Any], version: int) -> StoragePool:
    return StoragePool(name=valid["name"], provider=valid["provider"], attributes=valid.get("attributes", {}))


def _pool_to_dict(pool: StoragePool) -> dict[str, Any]:
    d: dict[str, Any] = {"name": pool.name, "provider": pool.provider}
    if pool.attributes:
        d["attributes"] = dict(pool.attributes)
    return d
