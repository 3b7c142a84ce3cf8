# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Cross-model entities: remote applications, offer connections, firewall rules.

Everything in this module is a version 1 collection. Remote applications nest
their endpoints and spaces, and remote spaces nest their subnets, each as an
independently versioned collection.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel
from pydantic import Field as _Field

from modeldesc.schema.checkers import OMIT, AnyValue, Bool, Int, List, String, StringMap
from modeldesc.schema.envelope import collection_to_dict, import_collection, string_list
from modeldesc.schema.registry import FieldSchema, SchemaRegistry

# ###############
# Public Interface
# ###############


class RemoteEndpoint(BaseModel):
    name: str
    role: str
    interface: str
    limit: int = 0
    scope: str = ""


class RemoteSubnet(BaseModel):
    cidr: str
    provider_id: str = ""
    vlan_tag: int = 0
    availability_zones: list[str] = _Field(default_factory=list)
    provider_space_id: str = ""
    provider_network_id: str = ""


class RemoteSpace(BaseModel):
    cloud_type: str
    name: str
    provider_id: str = ""
    provider_attributes: dict[str, Any] = _Field(default_factory=dict)
    subnets: list[RemoteSubnet] = _Field(default_factory=list)

    def add_subnet(self, **kwargs: Any) -> RemoteSubnet:
        subnet = RemoteSubnet(**kwargs)
        self.subnets.append(subnet)
        return subnet


class RemoteApplication(BaseModel):
    """An application offered by another model and consumed by this one.

    Attributes:
        is_consumer_proxy: True when this side stands in for the consuming model.
    """

    name: str
    offer_name: str = ""
    url: str = ""
    source_model_uuid: str = ""
    is_consumer_proxy: bool = False
    endpoints: list[RemoteEndpoint] = _Field(default_factory=list)
    spaces: list[RemoteSpace] = _Field(default_factory=list)

    def add_endpoint(self, **kwargs: Any) -> RemoteEndpoint:
        endpoint = RemoteEndpoint(**kwargs)
        self.endpoints.append(endpoint)
        return endpoint

    def add_space(self, **kwargs: Any) -> RemoteSpace:
        space = RemoteSpace(**kwargs)
        self.spaces.append(space)
        return space


class RemoteEntity(BaseModel):
    """The token and macaroon identifying a local entity to another model."""

    token: str
    macaroon: str = ""


class RelationNetwork(BaseModel):
    id: str
    relation_key: str
    cidrs: list[str] = _Field(default_factory=list)


class OfferConnection(BaseModel):
    offer_uuid: str
    relation_id: int
    relation_key: str
    user_name: str
    source_model_uuid: str


class ExternalController(BaseModel):
    """A controller hosting offers this model consumes."""

    id: str
    alias: str = ""
    addrs: list[str] = _Field(default_factory=list)
    ca_cert: str = ""


class FirewallRule(BaseModel):
    id: str
    well_known_service: str
    whitelist_cidrs: list[str] = _Field(default_factory=list)


def import_remote_applications(source: Any) -> list[RemoteApplication]:
    return import_collection(
        source,
        key="remote-applications",
        kind="remote application",
        registry=_REMOTE_APPLICATION_SCHEMAS,
        build=_remote_application_from_valid,
    )


def remote_applications_to_dict(applications: list[RemoteApplication]) -> dict[str, Any]:
    return collection_to_dict(
        "remote-applications", _REMOTE_APPLICATION_SCHEMAS, applications, _remote_application_to_dict
    )


def import_remote_entities(source: Any) -> list[RemoteEntity]:
    return import_collection(
        source,
        key="remote-entities",
        kind="remote entity",
        registry=_REMOTE_ENTITY_SCHEMAS,
        build=_remote_entity_from_valid,
    )


def remote_entities_to_dict(entities: list[RemoteEntity]) -> dict[str, Any]:
    return collection_to_dict("remote-entities", _REMOTE_ENTITY_SCHEMAS, entities, _remote_entity_to_dict)


def import_relation_networks(source: Any) -> list[RelationNetwork]:
    return import_collection(
        source,
        key="relation-networks",
        kind="relation network",
        registry=_RELATION_NETWORK_SCHEMAS,
        build=_relation_network_from_valid,
    )


def relation_networks_to_dict(networks: list[RelationNetwork]) -> dict[str, Any]:
    return collection_to_dict("relation-networks", _RELATION_NETWORK_SCHEMAS, networks, _relation_network_to_dict)


def import_offer_connections(source: Any) -> list[OfferConnection]:
    return import_collection(
        source,
        key="offer-connections",
        kind="offer connection",
        registry=_OFFER_CONNECTION_SCHEMAS,
        build=_offer_connection_from_valid,
    )


def offer_connections_to_dict(connections: list[OfferConnection]) -> dict[str, Any]:
    return collection_to_dict(
        "offer-connections", _OFFER_CONNECTION_SCHEMAS, connections, _offer_connection_to_dict
    )


def import_external_controllers(source: Any) -> list[ExternalController]:
    return import_collection(
        source,
        key="external-controllers",
        kind="external controller",
        registry=_EXTERNAL_CONTROLLER_SCHEMAS,
        build=_external_controller_from_valid,
    )


def external_controllers_to_dict(controllers: list[ExternalController]) -> dict[str, Any]:
    return collection_to_dict(
        "external-controllers", _EXTERNAL_CONTROLLER_SCHEMAS, controllers, _external_controller_to_dict
    )


def import_firewall_rules(source: Any) -> list[FirewallRule]:
    return import_collection(
        source,
        key="firewall-rules",
        kind="firewall rule",
        registry=_FIREWALL_RULE_SCHEMAS,
        build=_firewall_rule_from_valid,
    )


def firewall_rules_to_dict(rules: list[FirewallRule]) -> dict[str, Any]:
    return collection_to_dict("firewall-rules", _FIREWALL_RULE_SCHEMAS, rules, _firewall_rule_to_dict)


# ################
# Implementation
# ################


def _remote_application_v1_fields() -> FieldSchema:
    return FieldSchema.of(
        {
            "name": String(),
            "offer-name": String(),
            "url": String(),
            "source-model-uuid": String(),
            "endpoints": StringMap(AnyValue()),
            "spaces": StringMap(AnyValue()),
            "is-consumer-proxy": Bool(),
        },
        {
            "endpoints": OMIT,
            "spaces": OMIT,
            "is-consumer-proxy": False,
        },
    )


_REMOTE_APPLICATION_SCHEMAS = SchemaRegistry.from_functions(
    "remote application",
    {1: _remote_application_v1_fields},
)


def _remote_application_from_valid(valid: dict[str, Any], version: int) -> RemoteApplication:
    application = RemoteApplication(
        name=valid["name"],
        offer_name=valid["offer-name"],
        url=valid["url"],
        source_model_uuid=valid["source-model-uuid"],
        is_consumer_proxy=valid["is-consumer-proxy"],
    )
    if "endpoints" in valid:
        application.endpoints = import_collection(
            valid["endpoints"],
            key="endpoints",
            kind="remote endpoint",
            registry=_REMOTE_ENDPOINT_SCHEMAS,
            build=_remote_endpoint_from_valid,
        )
    if "spaces" in valid:
        application.spaces = import_collection(
            valid["spaces"],
            key="spaces",
            kind="remote space",
            registry=_REMOTE_SPACE_SCHEMAS,
            build=_remote_space_from_valid,
        )
    return application


def _remote_application_to_dict(application: RemoteApplication) -> dict[str, Any]:
    d: dict[str, Any] = {
        "name": application.name,
        "offer-name": application.offer_name,
        "url": application.url,
        "source-model-uuid": application.source_model_uuid,
    }
    if application.is_consumer_proxy:
        d["is-consumer-proxy"] = True
    if application.endpoints:
        d["endpoints"] = collection_to_dict(
            "endpoints", _REMOTE_ENDPOINT_SCHEMAS, application.endpoints, _remote_endpoint_to_dict
        )
    if application.spaces:
        d["spaces"] = collection_to_dict("spaces", _REMOTE_SPACE_SCHEMAS, application.spaces, _remote_space_to_dict)
    return d


def _remote_endpoint_v1_fields() -> FieldSchema:
    return FieldSchema.of(
        {
            "name": String(),
            "role": String(),
            "interface": String(),
            "limit": Int(),
            "scope": String(),
        }
    )


_REMOTE_ENDPOINT_SCHEMAS = SchemaRegistry.from_functions("remote endpoint", {1: _remote_endpoint_v1_fields})


def _remote_endpoint_from_valid(valid: dict[str, Any], version: int) -> RemoteEndpoint:
    return RemoteEndpoint(
        name=valid["name"],
        role=valid["role"],
        interface=valid["interface"],
        limit=valid["limit"],
        scope=valid["scope"],
    )


def _remote_endpoint_to_dict(endpoint: RemoteEndpoint) -> dict[str, Any]:
    return {
        "name": endpoint.name,
        "role": endpoint.role,
        "interface": endpoint.interface,
        "limit": endpoint.limit,
        "scope": endpoint.scope,
    }


def _remote_space_v1_fields() -> FieldSchema:
    return FieldSchema.of(
        {
            "cloud-type": String(),
            "name": String(),
            "provider-id": String(),
            "provider-attributes": StringMap(AnyValue()),
            "subnets": StringMap(AnyValue()),
        },
        {"subnets": OMIT},
    )


_REMOTE_SPACE_SCHEMAS = SchemaRegistry.from_functions("remote space", {1: _remote_space_v1_fields})


def _remote_space_from_valid(valid: dict[str, Any], version: int) -> RemoteSpace:
    space = RemoteSpace(
        cloud_type=valid["cloud-type"],
        name=valid["name"],
        provider_id=valid["provider-id"],
        provider_attributes=valid["provider-attributes"],
    )
    if "subnets" in valid:
        space.subnets = import_collection(
            valid["subnets"],
            key="subnets",
            kind="remote subnet",
            registry=_REMOTE_SUBNET_SCHEMAS,
            build=_remote_subnet_from_valid,
        )
    return space


def _remote_space_to_dict(space: RemoteSpace) -> dict[str, Any]:
    d: dict[str, Any] = {
        "cloud-type": space.cloud_type,
        "name": space.name,
        "provider-id": space.provider_id,
        "provider-attributes": dict(space.provider_attributes),
    }
    if space.subnets:
        d["subnets"] = collection_to_dict("subnets", _REMOTE_SUBNET_SCHEMAS, space.subnets, _remote_subnet_to_dict)
    return d


def _remote_subnet_v1_fields() -> FieldSchema:
    return FieldSchema.of(
        {
            "cidr": String(),
            "provider-id": String(),
            "vlan-tag": Int(),
            "availability-zones": List(String()),
            "provider-space-id": String(),
            "provider-network-id": String(),
        },
        {"vlan-tag": 0, "availability-zones": OMIT},
    )


_REMOTE_SUBNET_SCHEMAS = SchemaRegistry.from_functions("remote subnet", {1: _remote_subnet_v1_fields})


def _remote_subnet_from_valid(valid: dict[str, Any], version: int) -> RemoteSubnet:
    return RemoteSubnet(
        cidr=valid["cidr"],
        provider_id=valid["provider-id"],
        vlan_tag=valid["vlan-tag"],
        availability_zones=string_list(valid.get("availability-zones")),
        provider_space_id=valid["provider-space-id"],
        provider_network_id=valid["provider-network-id"],
    )


def _remote_subnet_to_dict(subnet: RemoteSubnet) -> dict[str, Any]:
    d: dict[str, Any] = {
        "cidr": subnet.cidr,
        "provider-id": subnet.provider_id,
        "provider-space-id": subnet.provider_space_id,
        "provider-network-id": subnet.provider_network_id,
    }
    if subnet.vlan_tag:
        d["vlan-tag"] = subnet.vlan_tag
    if subnet.availability_zones:
        d["availability-zones"] = list(subnet.availability_zones)
    return d


def _remote_entity_v1_fields() -> FieldSchema:
    return FieldSchema.of({"token": String(), "macaroon": String()}, {"macaroon": OMIT})


_REMOTE_ENTITY_SCHEMAS = SchemaRegistry.from_functions("remote entity", {1: _remote_entity_v1_fields})


def _remote_entity_from_valid(valid: dict[str, Any], version: int) -> RemoteEntity:
    return RemoteEntity(token=valid["token"], macaroon=valid.get("macaroon", ""))


def _remote_entity_to_dict(entity: RemoteEntity) -> dict[str, Any]:
    d: dict[str, Any] = {"token": entity.token}
    if entity.macaroon:
        d["macaroon"] = entity.macaroon
    return d


def _relation_network_v1_fields() -> FieldSchema:
    return FieldSchema.of({"id": String(), "relation-key": String(), "cidrs": List(String())})


_RELATION_NETWORK_SCHEMAS = SchemaRegistry.from_functions("relation network", {1: _relation_network_v1_fields})


def _relation_network_from_valid(valid: dict[str, Any], version: int) -> RelationNetwork:
    return RelationNetwork(id=valid["id"], relation_key=valid["relation-key"], cidrs=string_list(valid["cidrs"]))


def _relation_network_to_dict(network: RelationNetwork) -> dict[str, Any]:
    return {"id": network.id, "relation-key": network.relation_key, "cidrs": list(network.cidrs)}


def _offer_connection_v1_fields() -> FieldSchema:
    return FieldSchema.of(
        {
            "offer-uuid": String(),
            "relation-id": Int(),
            "relation-key": String(),
            "user-name": String(),
            "source-model-uuid": String(),
        }
    )


_OFFER_CONNECTION_SCHEMAS = SchemaRegistry.from_functions("offer connection", {1: _offer_connection_v1_fields})


def _offer_connection_from_valid(valid: dict[str, Any], version: int) -> OfferConnection:
    return OfferConnection(
        offer_uuid=valid["offer-uuid"],
        relation_id=valid["relation-id"],
        relation_key=valid["relation-key"],
        user_name=valid["user-name"],
        source_model_uuid=valid["source-model-uuid"],
    )


def _offer_connection_to_dict(connection: OfferConnection) -> dict[str, Any]:
    return {
        "offer-uuid": connection.offer_uuid,
        "relation-id": connection.relation_id,
        "relation-key": connection.relation_key,
        "user-name": connection.user_name,
        "source-model-uuid": connection.source_model_uuid,
    }


def _external_controller_v1_fields() -> FieldSchema:
    return FieldSchema.of(
        {
            "id": String(),
            "alias": String(),
            "addrs": List(String()),
            "cacert": String(),
        },
        {"alias": OMIT},
    )


_EXTERNAL_CONTROLLER_SCHEMAS = SchemaRegistry.from_functions(
    "external controller",
    {1: _external_controller_v1_fields},
)


def _external_controller_from_valid(valid: dict[str, Any], version: int) -> ExternalController:
    return ExternalController(
        id=valid["id"],
        alias=valid.get("alias", ""),
        addrs=string_list(valid["addrs"]),
        ca_cert=valid["cacert"],
    )


def _external_controller_to_dict(controller: ExternalController) -> dict[str, Any]:
    d: dict[str, Any] = {"id": controller.id}
    if controller.alias:
        d["alias"] = controller.alias
    d["addrs"] = list(controller.addrs)
    d["cacert"] = controller.ca_cert
    return d


def _firewall_rule_v1_fields() -> FieldSchema:
    return FieldSchema.of(
        {
            "id": String(),
            "well-known-service": String(),
            "whitelist-cidrs": List(String()),
        }
    )


_FIREWALL_RULE_SCHEMAS = SchemaRegistry.from_functions("firewall rule", {1: _firewall_rule_v1_fields})


def _firewall_rule_from_valid(valid: dict[str, Any], version: int) -> FirewallRule:
    return FirewallRule(
        id=valid["id"],
        well_known_service=valid["well-known-service"],
        whitelist_cidrs=string_list(valid["whitelist-cidrs"]),
    )


def _firewall_rule_to_dict(rule: FirewallRule) -> dict[str, Any]:
    return {
        "id": rule.id,
        "well-known-service": rule.well_known_service,
        "whitelist-cidrs": list(rule.whitelist_cidrs),
    }
