# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Cloud-side documents: services, containers, credentials and image metadata."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel
from pydantic import Field as _Field

from modeldesc.errors import NotValidError
from modeldesc.schema.checkers import OMIT, ForceUint, Int, List, String, StringMap, Time
from modeldesc.schema.envelope import (
    collection_to_dict,
    import_collection,
    import_self_versioned,
    self_versioned_to_dict,
    string_list,
)
from modeldesc.schema.registry import FieldSchema, SchemaRegistry

# ###############
# Public Interface
# ###############


class CloudService(BaseModel):
    """The cloud service fronting a container-based application."""

    provider_id: str = ""
    addresses: list[str] = _Field(default_factory=list)


class CloudContainer(BaseModel):
    """The cloud container backing a unit of a container-based application."""

    provider_id: str = ""
    address: str = ""
    ports: list[str] = _Field(default_factory=list)


class CloudCredential(BaseModel):
    owner: str
    cloud: str
    name: str
    auth_type: str
    attributes: dict[str, str] = _Field(default_factory=dict)


class CloudImageMetadata(BaseModel):
    """Metadata of one cloud image.

    Attributes:
        version: The operating system version of the image, e.g. ``22.04``.
        date_created: Creation time as Unix nanoseconds.
    """

    stream: str
    region: str
    version: str
    arch: str
    virt_type: str
    root_storage_type: str
    root_storage_size: int | None = None
    date_created: int = 0
    source: str
    priority: int = 0
    image_id: str
    expire_at: datetime | None = None


def import_cloud_service(source: Any) -> CloudService:
    return import_self_versioned(source, kind="cloud service", registry=_SERVICE_SCHEMAS, build=_service_from_valid)


def cloud_service_to_dict(service: CloudService) -> dict[str, Any]:
    d: dict[str, Any] = {}
    if service.provider_id:
        d["provider-id"] = service.provider_id
    if service.addresses:
        d["addresses"] = list(service.addresses)
    return self_versioned_to_dict(_SERVICE_SCHEMAS, d)


def import_cloud_container(source: Any) -> CloudContainer:
    return import_self_versioned(
        source,
        kind="cloud container",
        registry=_CONTAINER_SCHEMAS,
        build=_container_from_valid,
    )


def cloud_container_to_dict(container: CloudContainer) -> dict[str, Any]:
    d: dict[str, Any] = {}
    if container.provider_id:
        d["provider-id"] = container.provider_id
    if container.address:
        d["address"] = container.address
    if container.ports:
        d["ports"] = list(container.ports)
    return self_versioned_to_dict(_CONTAINER_SCHEMAS, d)


def import_cloud_credential(source: Any) -> CloudCredential:
    """Import the model's cloud credential.

    Version 1 documents may carry the retired ``oauth2withcert`` and
    Kubernetes ``certificate`` auth types, which are migrated on import.
    """
    return import_self_versioned(
        source,
        kind="cloud credential",
        registry=_CREDENTIAL_SCHEMAS,
        build=_credential_from_valid,
    )


def cloud_credential_to_dict(credential: CloudCredential) -> dict[str, Any]:
    d: dict[str, Any] = {
        "owner": credential.owner,
        "cloud": credential.cloud,
        "name": credential.name,
        "auth-type": credential.auth_type,
    }
    if credential.attributes:
        d["attributes"] = dict(credential.attributes)
    return self_versioned_to_dict(_CREDENTIAL_SCHEMAS, d)


def import_cloud_image_metadata(source: Any) -> list[CloudImageMetadata]:
    return import_collection(
        source,
        key="cloudimagemetadata",
        kind="cloud image metadata",
        registry=_IMAGE_METADATA_SCHEMAS,
        build=_image_metadata_from_valid,
    )


def cloud_image_metadata_to_dict(metadata: list[CloudImageMetadata]) -> dict[str, Any]:
    return collection_to_dict("cloudimagemetadata", _IMAGE_METADATA_SCHEMAS, metadata, _image_metadata_to_dict)


# ################
# Implementation
# ################


def _service_v1_fields() -> FieldSchema:
    return FieldSchema.of(
        {"provider-id": String(), "addresses": List(String())},
        {"provider-id": "", "addresses": OMIT},
    )


_SERVICE_SCHEMAS = SchemaRegistry.from_functions("cloud service", {1: _service_v1_fields})


def _service_from_valid(valid: dict[str, Any], version: int) -> CloudService:
    return CloudService(provider_id=valid["provider-id"], addresses=string_list(valid.get("addresses")))


def _container_v1_fields() -> FieldSchema:
    return FieldSchema.of(
        {"provider-id": String(), "address": String(), "ports": List(String())},
        {"provider-id": "", "address": "", "ports": OMIT},
    )


_CONTAINER_SCHEMAS = SchemaRegistry.from_functions("cloud container", {1: _container_v1_fields})


def _container_from_valid(valid: dict[str, Any], version: int) -> CloudContainer:
    return CloudContainer(
        provider_id=valid["provider-id"],
        address=valid["address"],
        ports=string_list(valid.get("ports")),
    )


def _credential_v1_fields() -> FieldSchema:
    return FieldSchema.of(
        {
            "owner": String(),
            "cloud": String(),
            "name": String(),
            "auth-type": String(),
            "attributes": StringMap(String()),
        },
        {"attributes": OMIT},
    )


def _credential_v2_fields() -> FieldSchema:
    return _credential_v1_fields()


_CREDENTIAL_SCHEMAS = SchemaRegistry.from_functions(
    "cloud credential",
    {1: _credential_v1_fields, 2: _credential_v2_fields},
)


def _credential_from_valid(valid: dict[str, Any], version: int) -> CloudCredential:
    credential = CloudCredential(
        owner=valid["owner"],
        cloud=valid["cloud"],
        name=valid["name"],
        auth_type=valid["auth-type"],
        attributes=valid.get("attributes", {}),
    )
    if version < 2:
        _migrate_auth_type(credential)
    return credential


def _migrate_auth_type(credential: CloudCredential) -> None:
    attributes = credential.attributes
    if credential.auth_type == "oauth2withcert":
        if "ClientCertificateData" in attributes and "ClientKeyData" in attributes:
            credential.auth_type = "clientcertificate"
            credential.attributes = {
                "ClientCertificateData": attributes["ClientCertificateData"],
                "ClientKeyData": attributes["ClientKeyData"],
            }
        elif "Token" in attributes:
            credential.auth_type = "oauth2"
            credential.attributes = {"Token": attributes["Token"]}
        else:
            raise NotValidError(
                "migrating oauth2withcert must have either ClientCertificateData & ClientKeyData or Token attribute"
            )
    elif credential.auth_type == "certificate" and "Token" in attributes:
        credential.auth_type = "oauth2"
        credential.attributes = {"Token": attributes["Token"]}


def _image_metadata_v1_fields() -> FieldSchema:
    return FieldSchema.of(
        {
            "stream": String(),
            "region": String(),
            "series": String(),
            "version": String(),
            "arch": String(),
            "virt-type": String(),
            "root-storage-type": String(),
            "root-storage-size": ForceUint(),
            "date-created": Int(),
            "source": String(),
            "priority": Int(),
            "image-id": String(),
            "expire-at": Time(),
        },
        {"root-storage-size": OMIT, "expire-at": OMIT},
    )


def _image_metadata_v2_fields() -> FieldSchema:
    return _image_metadata_v1_fields().remove("series")


_IMAGE_METADATA_SCHEMAS = SchemaRegistry.from_functions(
    "cloud image metadata",
    {1: _image_metadata_v1_fields, 2: _image_metadata_v2_fields},
)


def _image_metadata_from_valid(valid: dict[str, Any], version: int) -> CloudImageMetadata:
    return CloudImageMetadata(
        stream=valid["stream"],
        region=valid["region"],
        version=valid["version"],
        arch=valid["arch"],
        virt_type=valid["virt-type"],
        root_storage_type=valid["root-storage-type"],
        root_storage_size=valid.get("root-storage-size"),
        date_created=valid["date-created"],
        source=valid["source"],
        priority=valid["priority"],
        image_id=valid["image-id"],
        expire_at=valid.get("expire-at"),
    )


def _image_metadata_to_dict(metadata: CloudImageMetadata) -> dict[str, Any]:
    d: dict[str, Any] = {
        "stream": metadata.stream,
        "region": metadata.region,
        "version": metadata.version,
        "arch": metadata.arch,
        "virt-type": metadata.virt_type,
        "root-storage-type": metadata.root_storage_type,
    }
    if metadata.root_storage_size is not None:
        d["root-storage-size"] = metadata.root_storage_size
    d["date-created"] = metadata.date_created
    d["source"] = metadata.source
    d["priority"] = metadata.priority
    d["image-id"] = metadata.image_id
    if metadata.expire_at is not None:
        d["expire-at"] = metadata.expire_at
    return d
