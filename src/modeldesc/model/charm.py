# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Charm documents carried by an application.

Each document is self-versioned: the ``version`` key sits next to the payload
fields. The nested parts of a document (relations, storage, bases, actions,
config options) are not versioned on their own and are checked with a fixed
field map.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel
from pydantic import Field as _Field

from modeldesc.errors import DescriptionError, NotValidError
from modeldesc.model.series import series_os, series_version
from modeldesc.schema.checkers import OMIT, AnyValue, Bool, FieldMap, Int, List, String, StringMap
from modeldesc.schema.envelope import import_self_versioned, self_versioned_to_dict, string_list
from modeldesc.schema.registry import FieldSchema, SchemaRegistry

# ###############
# Public Interface
# ###############


class CharmOrigin(BaseModel):
    """Where a charm came from.

    Attributes:
        platform: ``<arch>/<os>/<version>[/<risk>]``, e.g. ``amd64/ubuntu/22.04/stable``.
    """

    source: str = "unknown"
    id: str = ""
    hash: str = ""
    revision: int = 0
    channel: str = ""
    platform: str = ""


class CharmRelation(BaseModel):
    name: str
    role: str
    interface: str
    optional: bool = False
    limit: int = 0
    scope: str = ""


class CharmStorage(BaseModel):
    name: str
    type: str
    description: str = ""
    shared: bool = False
    readonly: bool = False
    count_min: int = 0
    count_max: int = 0
    minimum_size: int = 0
    location: str = ""
    properties: list[str] = _Field(default_factory=list)


class CharmDevice(BaseModel):
    name: str
    type: str
    description: str = ""
    count_min: int = 0
    count_max: int = 0


class CharmPayload(BaseModel):
    name: str
    type: str


class CharmResource(BaseModel):
    name: str
    type: str
    path: str
    description: str = ""


class CharmMount(BaseModel):
    storage: str
    location: str


class CharmContainer(BaseModel):
    resource: str
    mounts: list[CharmMount] = _Field(default_factory=list)
    uid: int | None = None
    gid: int | None = None


class CharmMetadata(BaseModel):
    """The metadata of the charm deployed for an application."""

    name: str
    summary: str = ""
    description: str = ""
    subordinate: bool = False
    min_juju_version: str = ""
    run_as: str = ""
    assumes: str = ""
    relations: dict[str, CharmRelation] = _Field(default_factory=dict)
    extra_bindings: dict[str, str] = _Field(default_factory=dict)
    categories: list[str] = _Field(default_factory=list)
    tags: list[str] = _Field(default_factory=list)
    storage: dict[str, CharmStorage] = _Field(default_factory=dict)
    devices: dict[str, CharmDevice] = _Field(default_factory=dict)
    payloads: dict[str, CharmPayload] = _Field(default_factory=dict)
    resources: dict[str, CharmResource] = _Field(default_factory=dict)
    terms: list[str] = _Field(default_factory=list)
    containers: dict[str, CharmContainer] = _Field(default_factory=dict)


class CharmBase(BaseModel):
    name: str = ""
    channel: str = ""
    architectures: list[str] = _Field(default_factory=list)


class CharmManifest(BaseModel):
    bases: list[CharmBase] = _Field(default_factory=list)


class CharmAction(BaseModel):
    description: str = ""
    parallel: bool = False
    execution_group: str = ""
    parameters: dict[str, Any] = _Field(default_factory=dict)


class CharmActions(BaseModel):
    actions: dict[str, CharmAction] = _Field(default_factory=dict)


class CharmConfig(BaseModel):
    type: str = ""
    default: Any = None
    description: str = ""


class CharmConfigs(BaseModel):
    configs: dict[str, CharmConfig] = _Field(default_factory=dict)


def platform_from_series(series: str) -> str:
    """Return the platform ``unknown/<os>/<version>`` of a legacy series name.

    Raises:
        NotValidError: If the series is empty or unknown.
    """
    if not series:
        raise NotValidError("cannot convert empty series to a platform")
    try:
        return f"unknown/{series_os(series).lower()}/{series_version(series)}"
    except DescriptionError as exc:
        raise exc.annotated(f'extracting platform from series "{series}"') from exc


def import_charm_origin(source: Any) -> CharmOrigin:
    return import_self_versioned(source, kind="charm origin", registry=_ORIGIN_SCHEMAS, build=_origin_from_valid)


def charm_origin_to_dict(origin: CharmOrigin) -> dict[str, Any]:
    return self_versioned_to_dict(
        _ORIGIN_SCHEMAS,
        {
            "source": origin.source,
            "id": origin.id,
            "hash": origin.hash,
            "revision": origin.revision,
            "channel": origin.channel,
            "platform": origin.platform,
        },
    )


def import_charm_metadata(source: Any) -> CharmMetadata:
    return import_self_versioned(
        source,
        kind="charm metadata",
        registry=_METADATA_SCHEMAS,
        build=_metadata_from_valid,
    )


def charm_metadata_to_dict(metadata: CharmMetadata) -> dict[str, Any]:
    d: dict[str, Any] = {"name": metadata.name}
    for key, value in (
        ("summary", metadata.summary),
        ("description", metadata.description),
        ("subordinate", metadata.subordinate),
        ("min-juju-version", metadata.min_juju_version),
        ("run-as", metadata.run_as),
        ("assumes", metadata.assumes),
    ):
        if value:
            d[key] = value
    if metadata.relations:
        d["relations"] = {name: _relation_to_dict(r) for name, r in metadata.relations.items()}
    if metadata.extra_bindings:
        d["extra-bindings"] = dict(metadata.extra_bindings)
    if metadata.categories:
        d["categories"] = list(metadata.categories)
    if metadata.tags:
        d["tags"] = list(metadata.tags)
    if metadata.storage:
        d["storage"] = {name: _storage_to_dict(s) for name, s in metadata.storage.items()}
    if metadata.devices:
        d["devices"] = {name: _device_to_dict(dev) for name, dev in metadata.devices.items()}
    if metadata.payloads:
        d["payloads"] = {name: {"name": p.name, "type": p.type} for name, p in metadata.payloads.items()}
    if metadata.resources:
        d["resources"] = {name: _resource_to_dict(r) for name, r in metadata.resources.items()}
    if metadata.terms:
        d["terms"] = list(metadata.terms)
    if metadata.containers:
        d["containers"] = {name: _container_to_dict(c) for name, c in metadata.containers.items()}
    return self_versioned_to_dict(_METADATA_SCHEMAS, d)


def import_charm_manifest(source: Any) -> CharmManifest:
    return import_self_versioned(
        source,
        kind="charm manifest",
        registry=_MANIFEST_SCHEMAS,
        build=_manifest_from_valid,
    )


def charm_manifest_to_dict(manifest: CharmManifest) -> dict[str, Any]:
    bases = [
        {"name": base.name, "channel": base.channel, "architectures": list(base.architectures)}
        for base in manifest.bases
    ]
    return self_versioned_to_dict(_MANIFEST_SCHEMAS, {"bases": bases})


def import_charm_actions(source: Any) -> CharmActions:
    return import_self_versioned(source, kind="charm actions", registry=_ACTIONS_SCHEMAS, build=_actions_from_valid)


def charm_actions_to_dict(actions: CharmActions) -> dict[str, Any]:
    payload = {name: _action_to_dict(action) for name, action in actions.actions.items()}
    return self_versioned_to_dict(_ACTIONS_SCHEMAS, {"actions": payload})


def import_charm_configs(source: Any) -> CharmConfigs:
    return import_self_versioned(source, kind="charm configs", registry=_CONFIGS_SCHEMAS, build=_configs_from_valid)


def charm_configs_to_dict(configs: CharmConfigs) -> dict[str, Any]:
    payload = {name: _config_to_dict(config) for name, config in configs.configs.items()}
    return self_versioned_to_dict(_CONFIGS_SCHEMAS, {"configs": payload})


# ################
# Implementation
# ################


def _origin_v1_fields() -> FieldSchema:
    return FieldSchema.of(
        {
            "source": String(),
            "id": String(),
            "hash": String(),
            "revision": Int(),
            "channel": String(),
            "platform": String(),
        },
        {"source": "unknown", "id": "", "hash": "", "revision": 0, "channel": ""},
    )


def _origin_v2_fields() -> FieldSchema:
    return _origin_v1_fields()


_ORIGIN_SCHEMAS = SchemaRegistry.from_functions("charm origin", {1: _origin_v1_fields, 2: _origin_v2_fields})


def _origin_from_valid(valid: dict[str, Any], version: int) -> CharmOrigin:
    platform = valid["platform"]
    if version < 2:
        platform = _upgrade_platform(platform)
    return CharmOrigin(
        source=valid["source"],
        id=valid["id"],
        hash=valid["hash"],
        revision=valid["revision"],
        channel=valid["channel"],
        platform=platform,
    )


def _upgrade_platform(platform: str) -> str:
    """Turn ``arch/os/series`` into ``arch/os/version/stable``."""
    parts = platform.split("/")
    if len(parts) < 3:
        raise NotValidError(f'platform "{platform}" not valid')
    try:
        parts[2] = series_version(parts[2])
    except DescriptionError:
        raise NotValidError(f'platform series "{parts[2]}" not valid') from None
    parts.append("stable")
    return "/".join(parts)


def _metadata_v1_fields() -> FieldSchema:
    return FieldSchema.of(
        {
            "name": String(),
            "summary": String(),
            "description": String(),
            "subordinate": Bool(),
            "min-juju-version": String(),
            "run-as": String(),
            "assumes": String(),
            "relations": StringMap(AnyValue()),
            "extra-bindings": StringMap(String()),
            "categories": List(String()),
            "tags": List(String()),
            "storage": StringMap(AnyValue()),
            "devices": StringMap(AnyValue()),
            "payloads": StringMap(AnyValue()),
            "resources": StringMap(AnyValue()),
            "terms": List(String()),
            "containers": StringMap(AnyValue()),
        },
        {
            "summary": "",
            "description": "",
            "subordinate": False,
            "min-juju-version": "",
            "run-as": "",
            "assumes": "",
            "relations": OMIT,
            "extra-bindings": OMIT,
            "categories": OMIT,
            "tags": OMIT,
            "storage": OMIT,
            "devices": OMIT,
            "payloads": OMIT,
            "resources": OMIT,
            "terms": OMIT,
            "containers": OMIT,
        },
    )


_METADATA_SCHEMAS = SchemaRegistry.from_functions("charm metadata", {1: _metadata_v1_fields})

_RELATION_CHECKER = FieldMap(
    {
        "name": String(),
        "role": String(),
        "interface": String(),
        "optional": Bool(),
        "limit": Int(),
        "scope": String(),
    },
    {"optional": False, "limit": 0, "scope": ""},
)

_STORAGE_CHECKER = FieldMap(
    {
        "name": String(),
        "description": String(),
        "type": String(),
        "shared": Bool(),
        "readonly": Bool(),
        "count-min": Int(),
        "count-max": Int(),
        "minimum-size": Int(),
        "location": String(),
        "properties": List(String()),
    },
    {
        "description": "",
        "shared": False,
        "readonly": False,
        "count-min": 0,
        "count-max": 0,
        "minimum-size": 0,
        "location": "",
        "properties": [],
    },
)

_DEVICE_CHECKER = FieldMap(
    {
        "name": String(),
        "description": String(),
        "type": String(),
        "count-min": Int(),
        "count-max": Int(),
    },
    {"description": "", "count-min": 0, "count-max": 0},
)

_PAYLOAD_CHECKER = FieldMap({"name": String(), "type": String()})

_RESOURCE_CHECKER = FieldMap(
    {"name": String(), "type": String(), "path": String(), "description": String()},
    {"description": ""},
)

_CONTAINER_CHECKER = FieldMap(
    {"resource": String(), "mounts": List(AnyValue()), "uid": Int(), "gid": Int()},
    {"uid": OMIT, "gid": OMIT},
)

_MOUNT_CHECKER = FieldMap({"storage": String(), "location": String()})


def _import_named(
    source: dict[str, Any],
    what: str,
    checker: FieldMap,
    build: Any,
) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for name, raw in source.items():
        try:
            result[name] = build(checker.coerce(raw))
        except DescriptionError as exc:
            raise exc.annotated(f'{what} "{name}"') from exc
    return result


def _metadata_from_valid(valid: dict[str, Any], version: int) -> CharmMetadata:
    return CharmMetadata(
        name=valid["name"],
        summary=valid["summary"],
        description=valid["description"],
        subordinate=valid["subordinate"],
        min_juju_version=valid["min-juju-version"],
        run_as=valid["run-as"],
        assumes=valid["assumes"],
        relations=_import_named(valid.get("relations", {}), "relation", _RELATION_CHECKER, _relation_from_valid),
        extra_bindings=dict(valid.get("extra-bindings", {})),
        categories=string_list(valid.get("categories")),
        tags=string_list(valid.get("tags")),
        storage=_import_named(valid.get("storage", {}), "storage", _STORAGE_CHECKER, _storage_from_valid),
        devices=_import_named(valid.get("devices", {}), "device", _DEVICE_CHECKER, _device_from_valid),
        payloads=_import_named(
            valid.get("payloads", {}),
            "payload",
            _PAYLOAD_CHECKER,
            lambda v: CharmPayload(name=v["name"], type=v["type"]),
        ),
        resources=_import_named(valid.get("resources", {}), "resource", _RESOURCE_CHECKER, _resource_from_valid),
        terms=string_list(valid.get("terms")),
        containers=_import_named(
            valid.get("containers", {}),
            "container",
            _CONTAINER_CHECKER,
            _container_from_valid,
        ),
    )


def _relation_from_valid(valid: dict[str, Any]) -> CharmRelation:
    return CharmRelation(
        name=valid["name"],
        role=valid["role"],
        interface=valid["interface"],
        optional=valid["optional"],
        limit=valid["limit"],
        scope=valid["scope"],
    )


def _relation_to_dict(relation: CharmRelation) -> dict[str, Any]:
    d: dict[str, Any] = {"name": relation.name, "role": relation.role, "interface": relation.interface}
    if relation.optional:
        d["optional"] = True
    if relation.limit:
        d["limit"] = relation.limit
    if relation.scope:
        d["scope"] = relation.scope
    return d


def _storage_from_valid(valid: dict[str, Any]) -> CharmStorage:
    return CharmStorage(
        name=valid["name"],
        type=valid["type"],
        description=valid["description"],
        shared=valid["shared"],
        readonly=valid["readonly"],
        count_min=valid["count-min"],
        count_max=valid["count-max"],
        minimum_size=valid["minimum-size"],
        location=valid["location"],
        properties=valid["properties"],
    )


def _storage_to_dict(storage: CharmStorage) -> dict[str, Any]:
    d: dict[str, Any] = {"name": storage.name, "type": storage.type}
    for key, value in (
        ("description", storage.description),
        ("shared", storage.shared),
        ("readonly", storage.readonly),
        ("count-min", storage.count_min),
        ("count-max", storage.count_max),
        ("minimum-size", storage.minimum_size),
        ("location", storage.location),
    ):
        if value:
            d[key] = value
    if storage.properties:
        d["properties"] = list(storage.properties)
    return d


def _device_from_valid(valid: dict[str, Any]) -> CharmDevice:
    return CharmDevice(
        name=valid["name"],
        type=valid["type"],
        description=valid["description"],
        count_min=valid["count-min"],
        count_max=valid["count-max"],
    )


def _device_to_dict(device: CharmDevice) -> dict[str, Any]:
    d: dict[str, Any] = {"name": device.name, "type": device.type}
    if device.description:
        d["description"] = device.description
    if device.count_min:
        d["count-min"] = device.count_min
    if device.count_max:
        d["count-max"] = device.count_max
    return d


def _resource_from_valid(valid: dict[str, Any]) -> CharmResource:
    return CharmResource(
        name=valid["name"],
        type=valid["type"],
        path=valid["path"],
        description=valid["description"],
    )


def _resource_to_dict(resource: CharmResource) -> dict[str, Any]:
    d: dict[str, Any] = {"name": resource.name, "type": resource.type, "path": resource.path}
    if resource.description:
        d["description"] = resource.description
    return d


def _container_from_valid(valid: dict[str, Any]) -> CharmContainer:
    mounts = []
    for raw in valid["mounts"]:
        try:
            mount = _MOUNT_CHECKER.coerce(raw)
        except DescriptionError as exc:
            raise exc.annotated("mount") from exc
        mounts.append(CharmMount(storage=mount["storage"], location=mount["location"]))
    return CharmContainer(
        resource=valid["resource"],
        mounts=mounts,
        uid=valid.get("uid"),
        gid=valid.get("gid"),
    )


def _container_to_dict(container: CharmContainer) -> dict[str, Any]:
    d: dict[str, Any] = {
        "resource": container.resource,
        "mounts": [{"storage": m.storage, "location": m.location} for m in container.mounts],
    }
    if container.uid is not None:
        d["uid"] = container.uid
    if container.gid is not None:
        d["gid"] = container.gid
    return d


def _manifest_v1_fields() -> FieldSchema:
    return FieldSchema.of({"bases": List(AnyValue())}, {"bases": OMIT})


_MANIFEST_SCHEMAS = SchemaRegistry.from_functions("charm manifest", {1: _manifest_v1_fields})

_BASE_CHECKER = FieldMap(
    {"name": String(), "channel": String(), "architectures": List(String())},
    {"name": "", "channel": "", "architectures": []},
)


def _manifest_from_valid(valid: dict[str, Any], version: int) -> CharmManifest:
    bases = []
    for raw in valid.get("bases", []):
        try:
            base = _BASE_CHECKER.coerce(raw)
        except DescriptionError as exc:
            raise exc.annotated("charm manifest bases schema check failed") from exc
        bases.append(CharmBase(name=base["name"], channel=base["channel"], architectures=base["architectures"]))
    return CharmManifest(bases=bases)


def _actions_v1_fields() -> FieldSchema:
    return FieldSchema.of({"actions": StringMap(AnyValue())}, {"actions": OMIT})


_ACTIONS_SCHEMAS = SchemaRegistry.from_functions("charm actions", {1: _actions_v1_fields})

_ACTION_CHECKER = FieldMap(
    {
        "description": String(),
        "parallel": Bool(),
        "execution-group": String(),
        "parameters": StringMap(AnyValue()),
    },
    {"description": "", "parallel": False, "execution-group": "", "parameters": {}},
)


def _actions_from_valid(valid: dict[str, Any], version: int) -> CharmActions:
    actions = {}
    for name, raw in valid.get("actions", {}).items():
        try:
            action = _ACTION_CHECKER.coerce(raw)
        except DescriptionError as exc:
            raise exc.annotated(f'charm action "{name}" schema check failed') from exc
        actions[name] = CharmAction(
            description=action["description"],
            parallel=action["parallel"],
            execution_group=action["execution-group"],
            parameters=action["parameters"],
        )
    return CharmActions(actions=actions)


def _action_to_dict(action: CharmAction) -> dict[str, Any]:
    d: dict[str, Any] = {"description": action.description, "parallel": action.parallel}
    if action.execution_group:
        d["execution-group"] = action.execution_group
    if action.parameters:
        d["parameters"] = action.parameters
    return d


def _configs_v1_fields() -> FieldSchema:
    return FieldSchema.of({"configs": StringMap(AnyValue())}, {"configs": OMIT})


_CONFIGS_SCHEMAS = SchemaRegistry.from_functions("charm configs", {1: _configs_v1_fields})

_CONFIG_CHECKER = FieldMap(
    {"type": String(), "default": AnyValue(), "description": String()},
    {"type": "", "default": OMIT, "description": ""},
)


def _configs_from_valid(valid: dict[str, Any], version: int) -> CharmConfigs:
    configs = {}
    for name, raw in valid.get("configs", {}).items():
        try:
            config = _CONFIG_CHECKER.coerce(raw)
        except DescriptionError as exc:
            raise exc.annotated(f'charm config "{name}" schema check failed') from exc
        configs[name] = CharmConfig(
            type=config["type"],
            default=config.get("default"),
            description=config["description"],
        )
    return CharmConfigs(configs=configs)


def _config_to_dict(config: CharmConfig) -> dict[str, Any]:
    d: dict[str, Any] = {"type": config.type}
    if config.default is not None:
        d["default"] = config.default
    if config.description:
        d["description"] = config.description
    return d
