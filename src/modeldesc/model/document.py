# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""The model document: the root aggregate owning every entity collection.

The document is self-versioned. Its root mapping carries a ``version`` integer
next to one key per root field and one key per collection, and each collection
carries its own version in turn. Importing any historical document version
produces the current in-memory shape; exporting always writes the current
version everywhere.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel
from pydantic import Field as _Field

from modeldesc.errors import DescriptionError
from modeldesc.model.actions import (
    Action,
    Operation,
    actions_to_dict,
    import_actions,
    import_operations,
    operations_to_dict,
)
from modeldesc.model.application import Application, applications_to_dict, import_applications
from modeldesc.model.cloud import (
    CloudCredential,
    CloudImageMetadata,
    cloud_credential_to_dict,
    cloud_image_metadata_to_dict,
    import_cloud_credential,
    import_cloud_image_metadata,
)
from modeldesc.model.common import ANNOTATIONS_SCHEMA, import_annotations, put_annotations
from modeldesc.model.constraints import CONSTRAINTS_SCHEMA, Constraints, import_owner_constraints, put_constraints
from modeldesc.model.leases import Lease, import_leases, leases_to_dict
from modeldesc.model.machine import Machine, import_machines, machines_to_dict
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
from modeldesc.model.relation import Relation, import_relations, relations_to_dict
from modeldesc.model.remote import (
    ExternalController,
    FirewallRule,
    OfferConnection,
    RelationNetwork,
    RemoteApplication,
    RemoteEntity,
    external_controllers_to_dict,
    firewall_rules_to_dict,
    import_external_controllers,
    import_firewall_rules,
    import_offer_connections,
    import_relation_networks,
    import_remote_applications,
    import_remote_entities,
    offer_connections_to_dict,
    relation_networks_to_dict,
    remote_applications_to_dict,
    remote_entities_to_dict,
)
from modeldesc.model.secrets import (
    RemoteSecret,
    Secret,
    import_remote_secrets,
    import_secrets,
    remote_secrets_to_dict,
    secrets_to_dict,
)
from modeldesc.model.status import (
    STATUS_HISTORY_SCHEMA,
    Status,
    StatusHistory,
    import_owner_status_history,
    import_status,
    status_history_to_dict,
    status_to_dict,
)
from modeldesc.model.storage import (
    Filesystem,
    Storage,
    StoragePool,
    Volume,
    filesystems_to_dict,
    import_filesystems,
    import_storage_pools,
    import_storages,
    import_volumes,
    storage_pools_to_dict,
    storages_to_dict,
    volumes_to_dict,
)
from modeldesc.model.unit import IAAS
from modeldesc.model.users import (
    User,
    UserAuthorizedKeys,
    authorized_keys_to_dict,
    import_authorized_keys,
    import_users,
    users_to_dict,
)
from modeldesc.schema.checkers import OMIT, AnyValue, FieldMap, Int, List, String, StringMap
from modeldesc.schema.envelope import import_self_versioned, self_versioned_to_dict
from modeldesc.schema.registry import FieldSchema, SchemaRegistry

# ###############
# Public Interface
# ###############


class SLA(BaseModel):
    """The service level agreement of the model."""

    level: str = ""
    owner: str = ""
    credentials: str = ""


class MeterStatus(BaseModel):
    code: str = ""
    info: str = ""


class Model(BaseModel):
    """A snapshot of a model with every entity it owns.

    Attributes:
        owner: Name of the user owning the model.
        config: Model configuration, free-form.
        latest_tools: The newest agent version known to the model, empty when unknown.
        environ_version: Version of the cloud environment, zero before document version 3.
        sequences: Named counters the model hands out ids from.
    """

    owner: str
    type: str = IAAS
    config: dict[str, Any] = _Field(default_factory=dict)
    blocks: dict[str, str] = _Field(default_factory=dict)
    latest_tools: str = ""
    environ_version: int = 0
    cloud: str = ""
    cloud_region: str = ""
    cloud_credential: CloudCredential | None = None
    password_hash: str = ""
    status: Status | None = None
    status_history: StatusHistory = _Field(default_factory=StatusHistory)
    sla: SLA = _Field(default_factory=SLA)
    meter_status: MeterStatus = _Field(default_factory=MeterStatus)
    sequences: dict[str, int] = _Field(default_factory=dict)
    annotations: dict[str, str] = _Field(default_factory=dict)
    constraints: Constraints | None = None
    users: list[User] = _Field(default_factory=list)
    machines: list[Machine] = _Field(default_factory=list)
    applications: list[Application] = _Field(default_factory=list)
    relations: list[Relation] = _Field(default_factory=list)
    remote_entities: list[RemoteEntity] = _Field(default_factory=list)
    relation_networks: list[RelationNetwork] = _Field(default_factory=list)
    offer_connections: list[OfferConnection] = _Field(default_factory=list)
    external_controllers: list[ExternalController] = _Field(default_factory=list)
    spaces: list[Space] = _Field(default_factory=list)
    link_layer_devices: list[LinkLayerDevice] = _Field(default_factory=list)
    ip_addresses: list[IPAddress] = _Field(default_factory=list)
    subnets: list[Subnet] = _Field(default_factory=list)
    cloud_image_metadata: list[CloudImageMetadata] = _Field(default_factory=list)
    actions: list[Action] = _Field(default_factory=list)
    operations: list[Operation] = _Field(default_factory=list)
    ssh_host_keys: list[SSHHostKey] = _Field(default_factory=list)
    volumes: list[Volume] = _Field(default_factory=list)
    filesystems: list[Filesystem] = _Field(default_factory=list)
    storages: list[Storage] = _Field(default_factory=list)
    storage_pools: list[StoragePool] = _Field(default_factory=list)
    firewall_rules: list[FirewallRule] = _Field(default_factory=list)
    remote_applications: list[RemoteApplication] = _Field(default_factory=list)
    secrets: list[Secret] = _Field(default_factory=list)
    remote_secrets: list[RemoteSecret] = _Field(default_factory=list)
    virtual_host_keys: list[VirtualHostKey] = _Field(default_factory=list)
    authorized_keys: list[UserAuthorizedKeys] = _Field(default_factory=list)
    leases: list[Lease] = _Field(default_factory=list)

    # Builders

    def add_user(self, **kwargs: Any) -> User:
        return _append(self.users, User(**kwargs))

    def add_machine(self, **kwargs: Any) -> Machine:
        """Create a top level machine; containers are added on the machine itself."""
        return _append(self.machines, Machine(**kwargs))

    def add_application(self, **kwargs: Any) -> Application:
        return _append(self.applications, Application(**kwargs))

    def add_relation(self, **kwargs: Any) -> Relation:
        return _append(self.relations, Relation(**kwargs))

    def add_remote_entity(self, **kwargs: Any) -> RemoteEntity:
        return _append(self.remote_entities, RemoteEntity(**kwargs))

    def add_relation_network(self, **kwargs: Any) -> RelationNetwork:
        return _append(self.relation_networks, RelationNetwork(**kwargs))

    def add_offer_connection(self, **kwargs: Any) -> OfferConnection:
        return _append(self.offer_connections, OfferConnection(**kwargs))

    def add_external_controller(self, **kwargs: Any) -> ExternalController:
        return _append(self.external_controllers, ExternalController(**kwargs))

    def add_space(self, **kwargs: Any) -> Space:
        return _append(self.spaces, Space(**kwargs))

    def add_link_layer_device(self, **kwargs: Any) -> LinkLayerDevice:
        return _append(self.link_layer_devices, LinkLayerDevice(**kwargs))

    def add_ip_address(self, **kwargs: Any) -> IPAddress:
        return _append(self.ip_addresses, IPAddress(**kwargs))

    def add_subnet(self, **kwargs: Any) -> Subnet:
        return _append(self.subnets, Subnet(**kwargs))

    def add_cloud_image_metadata(self, **kwargs: Any) -> CloudImageMetadata:
        return _append(self.cloud_image_metadata, CloudImageMetadata(**kwargs))

    def add_action(self, **kwargs: Any) -> Action:
        return _append(self.actions, Action(**kwargs))

    def add_operation(self, **kwargs: Any) -> Operation:
        return _append(self.operations, Operation(**kwargs))

    def add_ssh_host_key(self, **kwargs: Any) -> SSHHostKey:
        return _append(self.ssh_host_keys, SSHHostKey(**kwargs))

    def add_volume(self, **kwargs: Any) -> Volume:
        return _append(self.volumes, Volume(**kwargs))

    def add_filesystem(self, **kwargs: Any) -> Filesystem:
        return _append(self.filesystems, Filesystem(**kwargs))

    def add_storage(self, **kwargs: Any) -> Storage:
        return _append(self.storages, Storage(**kwargs))

    def add_storage_pool(self, **kwargs: Any) -> StoragePool:
        return _append(self.storage_pools, StoragePool(**kwargs))

    def add_firewall_rule(self, **kwargs: Any) -> FirewallRule:
        return _append(self.firewall_rules, FirewallRule(**kwargs))

    def add_remote_application(self, **kwargs: Any) -> RemoteApplication:
        return _append(self.remote_applications, RemoteApplication(**kwargs))

    def add_secret(self, **kwargs: Any) -> Secret:
        return _append(self.secrets, Secret(**kwargs))

    def add_remote_secret(self, **kwargs: Any) -> RemoteSecret:
        return _append(self.remote_secrets, RemoteSecret(**kwargs))

    def add_virtual_host_key(self, **kwargs: Any) -> VirtualHostKey:
        return _append(self.virtual_host_keys, VirtualHostKey(**kwargs))

    def add_authorized_keys(self, **kwargs: Any) -> UserAuthorizedKeys:
        return _append(self.authorized_keys, UserAuthorizedKeys(**kwargs))

    def add_lease(self, **kwargs: Any) -> Lease:
        return _append(self.leases, Lease(**kwargs))

    # Root fields

    def set_status(self, status: Status) -> None:
        self.status = status

    def set_status_history(self, points: list[Status]) -> None:
        self.status_history.set_points(points)

    def status_history_points(self) -> list[Status]:
        return list(self.status_history.points)

    def set_sla(self, level: str, owner: str, credentials: str) -> SLA:
        self.sla = SLA(level=level, owner=owner, credentials=credentials)
        return self.sla

    def set_meter_status(self, code: str, info: str) -> MeterStatus:
        self.meter_status = MeterStatus(code=code, info=info)
        return self.meter_status

    def set_sequence(self, name: str, value: int) -> None:
        self.sequences[name] = value

    def set_constraints(self, constraints: Constraints | None) -> None:
        self.constraints = None if constraints is None or constraints.is_empty() else constraints

    # Lookups

    def application(self, name: str) -> Application | None:
        return next((app for app in self.applications if app.name == name), None)

    def remote_application(self, name: str) -> RemoteApplication | None:
        return next((app for app in self.remote_applications if app.name == name), None)

    def all_machines(self) -> list[Machine]:
        """Return every machine of the model, containers included, depth first."""
        result: list[Machine] = []
        for machine in self.machines:
            result.extend(machine.all_machines())
        return result


def import_model(source: Any) -> Model:
    """Import a model document of any known version.

    Args:
        source: The decoded root mapping.

    Returns:
        The model in its current in-memory shape. The model is not validated;
        call :func:`modeldesc.validation.validate` for the cross-entity checks.

    Raises:
        SchemaError: If the document or any nested document is malformed.
        NotValidError: If a declared version is not registered.
    """
    return import_self_versioned(source, kind="model", registry=_MODEL_SCHEMAS, build=_model_from_valid)


def model_to_dict(model: Model) -> dict[str, Any]:
    """Export the model at the current version of every document it contains."""
    d: dict[str, Any] = {
        "type": model.type,
        "owner": model.owner,
        "config": dict(model.config),
    }
    if model.blocks:
        d["blocks"] = dict(model.blocks)
    if model.latest_tools:
        d["latest-tools"] = model.latest_tools
    d["environ-version"] = model.environ_version
    d["users"] = users_to_dict(model.users)
    d["machines"] = machines_to_dict(model.machines)
    d["applications"] = applications_to_dict(model.applications)
    d["relations"] = relations_to_dict(model.relations)
    d["remote-entities"] = remote_entities_to_dict(model.remote_entities)
    d["relation-networks"] = relation_networks_to_dict(model.relation_networks)
    d["offer-connections"] = offer_connections_to_dict(model.offer_connections)
    d["external-controllers"] = external_controllers_to_dict(model.external_controllers)
    d["spaces"] = spaces_to_dict(model.spaces)
    d["link-layer-devices"] = link_layer_devices_to_dict(model.link_layer_devices)
    d["ip-addresses"] = ip_addresses_to_dict(model.ip_addresses)
    d["subnets"] = subnets_to_dict(model.subnets)
    d["cloud-image-metadata"] = cloud_image_metadata_to_dict(model.cloud_image_metadata)
    if model.status is not None:
        d["status"] = status_to_dict(model.status)
    d["status-history"] = status_history_to_dict(model.status_history)
    d["actions"] = actions_to_dict(model.actions)
    d["operations"] = operations_to_dict(model.operations)
    d["ssh-host-keys"] = ssh_host_keys_to_dict(model.ssh_host_keys)
    d["sequences"] = dict(model.sequences)
    put_annotations(d, model.annotations)
    put_constraints(d, model.constraints)
    d["cloud"] = model.cloud
    if model.cloud_region:
        d["cloud-region"] = model.cloud_region
    if model.cloud_credential is not None:
        d["cloud-credential"] = cloud_credential_to_dict(model.cloud_credential)
    d["volumes"] = volumes_to_dict(model.volumes)
    d["filesystems"] = filesystems_to_dict(model.filesystems)
    d["storages"] = storages_to_dict(model.storages)
    d["storage-pools"] = storage_pools_to_dict(model.storage_pools)
    d["firewall-rules"] = firewall_rules_to_dict(model.firewall_rules)
    d["remote-applications"] = remote_applications_to_dict(model.remote_applications)
    d["secrets"] = secrets_to_dict(model.secrets)
    d["remote-secrets"] = remote_secrets_to_dict(model.remote_secrets)
    d["virtual-host-keys"] = virtual_host_keys_to_dict(model.virtual_host_keys)
    d["users-authorized-keys"] = authorized_keys_to_dict(model.authorized_keys)
    d["leases"] = leases_to_dict(model.leases)
    d["sla"] = {"level": model.sla.level, "owner": model.sla.owner, "credentials": model.sla.credentials}
    d["meter-status"] = {"code": model.meter_status.code, "info": model.meter_status.info}
    if model.password_hash:
        d["password-hash"] = model.password_hash
    return self_versioned_to_dict(_MODEL_SCHEMAS, d)


# ################
# Implementation
# ################

_COLLECTION = StringMap(AnyValue())


def _append(items: list[Any], item: Any) -> Any:
    items.append(item)
    return item


def _model_v1_fields() -> FieldSchema:
    fields = FieldSchema.of(
        {
            "owner": String(),
            "cloud": String(),
            "cloud-region": String(),
            "cloud-credential": StringMap(AnyValue()),
            "config": StringMap(AnyValue()),
            "latest-tools": String(),
            "blocks": StringMap(String()),
            "users": _COLLECTION,
            "machines": _COLLECTION,
            "applications": _COLLECTION,
            "relations": _COLLECTION,
            "ssh-host-keys": _COLLECTION,
            "cloud-image-metadata": _COLLECTION,
            "actions": _COLLECTION,
            "ip-addresses": _COLLECTION,
            "spaces": _COLLECTION,
            "subnets": _COLLECTION,
            "link-layer-devices": _COLLECTION,
            "volumes": _COLLECTION,
            "filesystems": _COLLECTION,
            "storages": _COLLECTION,
            "storage-pools": _COLLECTION,
            "sequences": StringMap(Int()),
        },
        {
            "latest-tools": OMIT,
            "blocks": OMIT,
            "cloud-region": "",
            "cloud-credential": OMIT,
        },
    )
    return fields.merge(ANNOTATIONS_SCHEMA).merge(CONSTRAINTS_SCHEMA)


def _model_v2_fields() -> FieldSchema:
    # The status is optional so that a model exported before its status
    # was set can be read back.
    return (
        _model_v1_fields()
        .add("remote-applications", _COLLECTION)
        .add("sla", FieldMap({"level": String(), "owner": String(), "credentials": String()}))
        .add("meter-status", FieldMap({"code": String(), "info": String()}))
        .add("status", StringMap(AnyValue()), OMIT)
        .merge(STATUS_HISTORY_SCHEMA)
    )


def _model_v3_fields() -> FieldSchema:
    return _model_v2_fields().add("environ-version", Int())


def _model_v4_fields() -> FieldSchema:
    return _model_v3_fields().add("type", String())


def _model_v5_fields() -> FieldSchema:
    return _model_v4_fields().add("remote-entities", _COLLECTION).add("relation-networks", _COLLECTION)


def _model_v6_fields() -> FieldSchema:
    return (
        _model_v5_fields()
        .add("firewall-rules", _COLLECTION)
        .add("offer-connections", _COLLECTION)
        .add("external-controllers", _COLLECTION)
    )


def _model_v7_fields() -> FieldSchema:
    return _model_v6_fields().add("operations", _COLLECTION)


def _model_v8_fields() -> FieldSchema:
    return _model_v7_fields().add("password-hash", String(), "")


def _model_v9_fields() -> FieldSchema:
    return _model_v8_fields().add("secrets", _COLLECTION)


def _model_v10_fields() -> FieldSchema:
    return _model_v9_fields().add("remote-secrets", _COLLECTION)


def _model_v11_fields() -> FieldSchema:
    return (
        _model_v10_fields()
        .add("virtual-host-keys", _COLLECTION)
        .add("users-authorized-keys", _COLLECTION)
        .add("leases", List(AnyValue()))
    )


_MODEL_SCHEMAS = SchemaRegistry.from_functions(
    "model",
    {
        1: _model_v1_fields,
        2: _model_v2_fields,
        3: _model_v3_fields,
        4: _model_v4_fields,
        5: _model_v5_fields,
        6: _model_v6_fields,
        7: _model_v7_fields,
        8: _model_v8_fields,
        9: _model_v9_fields,
        10: _model_v10_fields,
        11: _model_v11_fields,
    },
)

CURRENT_MODEL_VERSION = _MODEL_SCHEMAS.current

# Collection key, importer and attribute of the collections present in every version.
_BASE_COLLECTIONS = (
    ("users", import_users, "users"),
    ("machines", import_machines, "machines"),
    ("applications", import_applications, "applications"),
    ("relations", import_relations, "relations"),
    ("spaces", import_spaces, "spaces"),
    ("link-layer-devices", import_link_layer_devices, "link_layer_devices"),
    ("subnets", import_subnets, "subnets"),
    ("ip-addresses", import_ip_addresses, "ip_addresses"),
    ("ssh-host-keys", import_ssh_host_keys, "ssh_host_keys"),
    ("cloud-image-metadata", import_cloud_image_metadata, "cloud_image_metadata"),
    ("actions", import_actions, "actions"),
    ("volumes", import_volumes, "volumes"),
    ("filesystems", import_filesystems, "filesystems"),
    ("storages", import_storages, "storages"),
    ("storage-pools", import_storage_pools, "storage_pools"),
)

# Collections added by later versions, keyed by the version introducing them.
_LATER_COLLECTIONS = (
    (2, "remote-applications", import_remote_applications, "remote_applications"),
    (5, "remote-entities", import_remote_entities, "remote_entities"),
    (5, "relation-networks", import_relation_networks, "relation_networks"),
    (6, "firewall-rules", import_firewall_rules, "firewall_rules"),
    (6, "offer-connections", import_offer_connections, "offer_connections"),
    (6, "external-controllers", import_external_controllers, "external_controllers"),
    (7, "operations", import_operations, "operations"),
    (9, "secrets", import_secrets, "secrets"),
    (10, "remote-secrets", import_remote_secrets, "remote_secrets"),
    (11, "virtual-host-keys", import_virtual_host_keys, "virtual_host_keys"),
    (11, "users-authorized-keys", import_authorized_keys, "authorized_keys"),
    (11, "leases", import_leases, "leases"),
)


def _model_from_valid(valid: dict[str, Any], version: int) -> Model:
    model = Model(
        owner=valid["owner"],
        config=valid["config"],
        blocks=valid.get("blocks", {}),
        latest_tools=valid.get("latest-tools", ""),
        cloud=valid["cloud"],
        cloud_region=valid["cloud-region"],
        annotations=import_annotations(valid),
        constraints=import_owner_constraints(valid),
    )
    if version >= 4:
        model.type = valid["type"]
    if "cloud-credential" in valid:
        try:
            model.cloud_credential = import_cloud_credential(valid["cloud-credential"])
        except DescriptionError as exc:
            raise exc.annotated("cloud-credential") from exc
    for name, value in valid["sequences"].items():
        model.set_sequence(name, value)

    for key, importer, attribute in _BASE_COLLECTIONS:
        setattr(model, attribute, _import_collection(valid, key, importer))
    for since, key, importer, attribute in _LATER_COLLECTIONS:
        if version >= since:
            setattr(model, attribute, _import_collection(valid, key, importer))

    if version >= 3:
        model.environ_version = valid["environ-version"]
    if version >= 2:
        model.sla = SLA(**valid["sla"])
        model.meter_status = MeterStatus(**valid["meter-status"])
        if valid.get("status") is not None:
            try:
                model.status = import_status(valid["status"])
            except DescriptionError as exc:
                raise exc.annotated("status") from exc
        try:
            model.status_history = import_owner_status_history(valid)
        except DescriptionError as exc:
            raise exc.annotated("status-history") from exc
    else:
        # A model needs a status to be valid.
        model.status = Status(value="available", updated=datetime.now(timezone.utc))
    if version >= 8:
        model.password_hash = valid["password-hash"]
    return model


def _import_collection(valid: dict[str, Any], key: str, importer: Any) -> list[Any]:
    try:
        return importer(valid[key])
    except DescriptionError as exc:
        raise exc.annotated(key) from exc
