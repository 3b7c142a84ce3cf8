# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Applications and the documents they own.

The application collection has the longest version history of the model,
thirteen versions. Each version is a small delta on the previous one; the
builder below reads the fields of a version only when the imported version is
recent enough to carry them.
"""

from __future__ import annotations

import base64
import binascii
from typing import Any

from pydantic import BaseModel
from pydantic import Field as _Field

from modeldesc.errors import DescriptionError, NotValidError, SchemaError
from modeldesc.model.charm import (
    CharmActions,
    CharmConfigs,
    CharmManifest,
    CharmMetadata,
    CharmOrigin,
    charm_actions_to_dict,
    charm_configs_to_dict,
    charm_manifest_to_dict,
    charm_metadata_to_dict,
    charm_origin_to_dict,
    import_charm_actions,
    import_charm_configs,
    import_charm_manifest,
    import_charm_metadata,
    import_charm_origin,
    platform_from_series,
)
from modeldesc.model.cloud import CloudService, cloud_service_to_dict, import_cloud_service
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
    import_port_ranges,
    port_ranges_to_dict,
)
from modeldesc.model.resources import Resource, import_resources, resources_to_dict
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
from modeldesc.model.unit import IAAS, Unit, import_units, units_to_dict
from modeldesc.schema.checkers import OMIT, AnyValue, Bool, ForceUint, Int, List, String, StringMap
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


class ExposedEndpoint(BaseModel):
    """The spaces and CIDRs an exposed endpoint is reachable from."""

    expose_to_space_ids: list[str] = _Field(default_factory=list)
    expose_to_cidrs: list[str] = _Field(default_factory=list)


class StorageDirective(BaseModel):
    """How to provision a named store of an application."""

    pool: str
    size: int
    count: int


class ProvisioningState(BaseModel):
    scaling: bool = False
    scale_target: int = 0


class ApplicationOffer(BaseModel):
    offer_name: str
    endpoints: list[str] = _Field(default_factory=list)


class Application(BaseModel):
    """A deployed application with its units and charm documents.

    Attributes:
        charm_config: The charm settings, written as ``settings``.
        metrics_credentials: Base64 encoded metrics credentials.
    """

    name: str
    type: str = IAAS
    subordinate: bool = False
    charm_url: str = ""
    channel: str = ""
    charm_modified_version: int = 0
    force_charm: bool = False
    exposed: bool = False
    exposed_endpoints: dict[str, ExposedEndpoint] = _Field(default_factory=dict)
    min_units: int = 0
    status: Status | None = None
    status_history: StatusHistory = _Field(default_factory=StatusHistory)
    endpoint_bindings: dict[str, str] = _Field(default_factory=dict)
    charm_config: dict[str, Any] = _Field(default_factory=dict)
    application_config: dict[str, Any] = _Field(default_factory=dict)
    leader: str = ""
    leadership_settings: dict[str, Any] = _Field(default_factory=dict)
    metrics_credentials: str = ""
    units: list[Unit] = _Field(default_factory=list)
    resources: list[Resource] = _Field(default_factory=list)
    annotations: dict[str, str] = _Field(default_factory=dict)
    constraints: Constraints | None = None
    storage_directives: dict[str, StorageDirective] = _Field(default_factory=dict)
    password_hash: str = ""
    pod_spec: str = ""
    placement: str = ""
    has_resources: bool = False
    desired_scale: int = 0
    cloud_service: CloudService | None = None
    tools: AgentTools | None = None
    operator_status: Status | None = None
    provisioning_state: ProvisioningState | None = None
    opened_port_ranges: UnitPortRanges = _Field(default_factory=dict)
    offers: list[ApplicationOffer] = _Field(default_factory=list)
    charm_origin: CharmOrigin | None = None
    charm_metadata: CharmMetadata | None = None
    charm_manifest: CharmManifest | None = None
    charm_actions: CharmActions | None = None
    charm_configs: CharmConfigs | None = None

    def add_unit(self, **kwargs: Any) -> Unit:
        """Create a unit of this application; the unit takes the application type."""
        unit = Unit(type=self.type, **kwargs)
        self.units.append(unit)
        return unit

    def add_resource(self, resource: Resource) -> Resource:
        self.resources.append(resource)
        return resource

    def add_offer(self, offer_name: str, endpoints: list[str]) -> ApplicationOffer:
        offer = ApplicationOffer(offer_name=offer_name, endpoints=list(endpoints))
        self.offers.append(offer)
        return offer

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

    def set_status_history(self, points: list[Status]) -> None:
        self.status_history.set_points(points)

    def status_history_points(self) -> list[Status]:
        return list(self.status_history.points)

    def unit(self, name: str) -> Unit | None:
        return next((unit for unit in self.units if unit.name == name), None)

    def check_invariants(self) -> None:
        """Check this application, its resources and its units.

        Raises:
            NotValidError: On the first violated invariant.
        """
        if not self.name:
            raise NotValidError("application missing name")
        if self.status is None:
            raise NotValidError(f'application "{self.name}" missing status')
        for resource in self.resources:
            try:
                resource.check_invariants()
            except DescriptionError as exc:
                raise exc.annotated(f"resource {resource.name}") from exc
        leader_found = False
        for unit in self.units:
            unit.check_invariants()
            if unit.name == self.leader:
                leader_found = True
        if self.leader and not leader_found:
            raise NotValidError(f'missing unit for leader "{self.leader}"')


def import_applications(source: Any) -> list[Application]:
    """Import the ``applications`` collection."""
    return import_collection(
        source,
        key="applications",
        kind="application",
        registry=_APPLICATION_SCHEMAS,
        build=_application_from_valid,
    )


def applications_to_dict(applications: list[Application]) -> dict[str, Any]:
    return collection_to_dict("applications", _APPLICATION_SCHEMAS, applications, _application_to_dict)


# ################
# Implementation
# ################


def _application_v1_fields() -> FieldSchema:
    fields = FieldSchema.of(
        {
            "name": String(),
            "series": String(),
            "subordinate": Bool(),
            "charm-url": String(),
            "cs-channel": String(),
            "charm-mod-version": Int(),
            "force-charm": Bool(),
            "exposed": Bool(),
            "min-units": Int(),
            "status": StringMap(AnyValue()),
            "endpoint-bindings": StringMap(String()),
            "settings": StringMap(AnyValue()),
            "leader": String(),
            "leadership-settings": StringMap(AnyValue()),
            "storage-constraints": StringMap(StringMap(AnyValue())),
            "metrics-creds": String(),
            "resources": StringMap(AnyValue()),
            "units": StringMap(AnyValue()),
        },
        {
            "subordinate": False,
            "force-charm": False,
            "exposed": False,
            "min-units": 0,
            "leader": "",
            "metrics-creds": "",
            "storage-constraints": OMIT,
            "endpoint-bindings": OMIT,
        },
    )
    return fields.merge(ANNOTATIONS_SCHEMA).merge(CONSTRAINTS_SCHEMA).merge(STATUS_HISTORY_SCHEMA)


def _application_v2_fields() -> FieldSchema:
    return _application_v1_fields().add("type", String())


def _application_v3_fields() -> FieldSchema:
    # An empty application config is not written, so it may be absent on read.
    return (
        _application_v2_fields()
        .add("application-config", StringMap(AnyValue()), OMIT)
        .add("password-hash", String(), "")
        .add("pod-spec", String(), "")
        .add("cloud-service", StringMap(AnyValue()), OMIT)
        .add("tools", StringMap(AnyValue()), OMIT)
    )


def _application_v4_fields() -> FieldSchema:
    return (
        _application_v3_fields()
        .add("placement", String(), "")
        .add("desired-scale", Int(), 0)
        .add("operator-status", StringMap(AnyValue()), OMIT)
    )


def _application_v5_fields() -> FieldSchema:
    return _application_v4_fields().add("offers", StringMap(AnyValue()), OMIT)


def _application_v6_fields() -> FieldSchema:
    return _application_v5_fields().add("has-resources", Bool(), False)


def _application_v7_fields() -> FieldSchema:
    return _application_v6_fields().add("charm-origin", StringMap(AnyValue()), OMIT)


def _application_v8_fields() -> FieldSchema:
    return _application_v7_fields().add("exposed-endpoints", StringMap(StringMap(AnyValue())), OMIT)


def _application_v9_fields() -> FieldSchema:
    return _application_v8_fields().remove("series")


def _application_v10_fields() -> FieldSchema:
    return _application_v9_fields().add("opened-port-ranges", StringMap(AnyValue()), OMIT)


def _application_v11_fields() -> FieldSchema:
    return _application_v10_fields().add("provisioning-state", StringMap(AnyValue()), OMIT)


def _application_v12_fields() -> FieldSchema:
    return (
        _application_v11_fields()
        .remove("storage-constraints")
        .add("storage-directives", StringMap(StringMap(AnyValue())), OMIT)
    )


def _application_v13_fields() -> FieldSchema:
    return (
        _application_v12_fields()
        .add("charm-metadata", StringMap(AnyValue()), OMIT)
        .add("charm-manifest", StringMap(AnyValue()), OMIT)
        .add("charm-actions", StringMap(AnyValue()), OMIT)
        .add("charm-configs", StringMap(AnyValue()), OMIT)
    )


_APPLICATION_SCHEMAS = SchemaRegistry.from_functions(
    "application",
    {
        1: _application_v1_fields,
        2: _application_v2_fields,
        3: _application_v3_fields,
        4: _application_v4_fields,
        5: _application_v5_fields,
        6: _application_v6_fields,
        7: _application_v7_fields,
        8: _application_v8_fields,
        9: _application_v9_fields,
        10: _application_v10_fields,
        11: _application_v11_fields,
        12: _application_v12_fields,
        13: _application_v13_fields,
    },
)


def _application_from_valid(valid: dict[str, Any], version: int) -> Application:
    application = Application(
        name=valid["name"],
        subordinate=valid["subordinate"],
        charm_url=valid["charm-url"],
        channel=valid["cs-channel"],
        charm_modified_version=valid["charm-mod-version"],
        force_charm=valid["force-charm"],
        exposed=valid["exposed"],
        min_units=valid["min-units"],
        endpoint_bindings=dict(valid.get("endpoint-bindings", {})),
        charm_config=valid["settings"],
        leader=valid["leader"],
        leadership_settings=valid["leadership-settings"],
        annotations=import_annotations(valid),
        constraints=import_owner_constraints(valid),
        status_history=import_owner_status_history(valid),
    )

    if version >= 2:
        application.type = valid["type"]
    if version >= 3:
        application.password_hash = valid["password-hash"]
        application.pod_spec = valid["pod-spec"]
    if version >= 4:
        application.placement = valid["placement"]
        application.desired_scale = valid["desired-scale"]
        if "operator-status" in valid:
            application.operator_status = import_status(valid["operator-status"])
    if version >= 5 and "offers" in valid:
        application.offers = _import_offers(valid["offers"])
    if version >= 6:
        application.has_resources = valid["has-resources"]
    if version >= 7 and "charm-origin" in valid:
        application.charm_origin = import_charm_origin(valid["charm-origin"])
    if version >= 8 and "exposed-endpoints" in valid:
        application.exposed_endpoints = _import_named(
            valid["exposed-endpoints"],
            "exposed endpoint",
            _import_exposed_endpoint,
        )
    if version >= 11 and "provisioning-state" in valid:
        application.provisioning_state = _import_provisioning_state(valid["provisioning-state"])

    series = valid.get("series")
    if 7 <= version <= 9 and series:
        origin = application.charm_origin
        if origin is not None and not origin.platform:
            origin.platform = platform_from_series(series)

    if version >= 10 and "opened-port-ranges" in valid:
        application.opened_port_ranges = import_port_ranges(valid["opened-port-ranges"], "machine-port-ranges")

    if version >= 13:
        if "charm-metadata" in valid:
            application.charm_metadata = import_charm_metadata(valid["charm-metadata"])
        if "charm-manifest" in valid:
            application.charm_manifest = import_charm_manifest(valid["charm-manifest"])
        if "charm-actions" in valid:
            application.charm_actions = import_charm_actions(valid["charm-actions"])
        if "charm-configs" in valid:
            application.charm_configs = import_charm_configs(valid["charm-configs"])

    if "application-config" in valid:
        application.application_config = valid["application-config"]

    storage_key = "storage-directives" if version >= 12 else "storage-constraints"
    if storage_key in valid:
        application.storage_directives = _import_named(
            valid[storage_key],
            "storage directive",
            _import_storage_directive,
        )

    if "cloud-service" in valid:
        application.cloud_service = import_cloud_service(valid["cloud-service"])
    if "tools" in valid:
        application.tools = import_agent_tools(valid["tools"])

    credentials = valid["metrics-creds"]
    try:
        base64.b64decode(credentials, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise NotValidError(f"metrics credentials not valid: {exc}") from exc
    application.metrics_credentials = credentials

    application.status = import_status(valid["status"])
    application.resources = import_resources(valid["resources"])

    application.units = import_units(valid["units"])
    # Units inherit the model type of their application.
    for unit in application.units:
        unit.type = application.type
        unit.check_invariants()
    return application


def _application_to_dict(application: Application) -> dict[str, Any]:
    d: dict[str, Any] = {"name": application.name, "type": application.type}
    if application.subordinate:
        d["subordinate"] = True
    d["charm-url"] = application.charm_url
    d["cs-channel"] = application.channel
    d["charm-mod-version"] = application.charm_modified_version
    if application.force_charm:
        d["force-charm"] = True
    if application.min_units:
        d["min-units"] = application.min_units
    if application.exposed:
        d["exposed"] = True
    if application.exposed_endpoints:
        d["exposed-endpoints"] = {
            name: _exposed_endpoint_to_dict(endpoint) for name, endpoint in application.exposed_endpoints.items()
        }
    if application.status is not None:
        d["status"] = status_to_dict(application.status)
    d["status-history"] = status_history_to_dict(application.status_history)
    if application.endpoint_bindings:
        d["endpoint-bindings"] = dict(application.endpoint_bindings)
    d["settings"] = application.charm_config
    if application.application_config:
        d["application-config"] = application.application_config
    if application.leader:
        d["leader"] = application.leader
    d["leadership-settings"] = application.leadership_settings
    if application.metrics_credentials:
        d["metrics-creds"] = application.metrics_credentials
    d["units"] = units_to_dict(application.units)
    d["resources"] = resources_to_dict(application.resources)
    put_annotations(d, application.annotations)
    put_constraints(d, application.constraints)
    if application.storage_directives:
        d["storage-directives"] = {
            name: _storage_directive_to_dict(directive) for name, directive in application.storage_directives.items()
        }
    if application.password_hash:
        d["password-hash"] = application.password_hash
    if application.pod_spec:
        d["pod-spec"] = application.pod_spec
    if application.placement:
        d["placement"] = application.placement
    if application.has_resources:
        d["has-resources"] = True
    if application.desired_scale:
        d["desired-scale"] = application.desired_scale
    if application.cloud_service is not None:
        d["cloud-service"] = cloud_service_to_dict(application.cloud_service)
    if application.tools is not None:
        d["tools"] = agent_tools_to_dict(application.tools)
    if application.operator_status is not None:
        d["operator-status"] = status_to_dict(application.operator_status)
    if application.provisioning_state is not None:
        d["provisioning-state"] = _provisioning_state_to_dict(application.provisioning_state)
    if application.opened_port_ranges:
        d["opened-port-ranges"] = port_ranges_to_dict(application.opened_port_ranges, "machine-port-ranges")
    if application.offers:
        d["offers"] = collection_to_dict("offers", _OFFER_SCHEMAS, application.offers, _offer_to_dict)
    if application.charm_origin is not None:
        d["charm-origin"] = charm_origin_to_dict(application.charm_origin)
    if application.charm_metadata is not None:
        d["charm-metadata"] = charm_metadata_to_dict(application.charm_metadata)
    if application.charm_manifest is not None:
        d["charm-manifest"] = charm_manifest_to_dict(application.charm_manifest)
    if application.charm_actions is not None:
        d["charm-actions"] = charm_actions_to_dict(application.charm_actions)
    if application.charm_configs is not None:
        d["charm-configs"] = charm_configs_to_dict(application.charm_configs)
    return d


def _import_named(source: dict[str, Any], what: str, build: Any) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for name, value in source.items():
        if not isinstance(value, dict):
            raise SchemaError(f'unexpected value for {what} "{name}", {type(value).__name__}')
        result[name] = build(value)
    return result


def _exposed_endpoint_v1_fields() -> FieldSchema:
    return FieldSchema.of(
        {"expose-to-spaces": List(String()), "expose-to-cidrs": List(String())},
        {"expose-to-spaces": OMIT, "expose-to-cidrs": OMIT},
    )


_EXPOSED_ENDPOINT_SCHEMAS = SchemaRegistry.from_functions("exposed endpoint", {1: _exposed_endpoint_v1_fields})


def _import_exposed_endpoint(source: Any) -> ExposedEndpoint:
    return import_self_versioned(
        source,
        kind="exposed endpoint",
        registry=_EXPOSED_ENDPOINT_SCHEMAS,
        build=lambda valid, version: ExposedEndpoint(
            expose_to_space_ids=string_list(valid.get("expose-to-spaces")),
            expose_to_cidrs=string_list(valid.get("expose-to-cidrs")),
        ),
    )


def _exposed_endpoint_to_dict(endpoint: ExposedEndpoint) -> dict[str, Any]:
    d: dict[str, Any] = {}
    if endpoint.expose_to_space_ids:
        d["expose-to-spaces"] = list(endpoint.expose_to_space_ids)
    if endpoint.expose_to_cidrs:
        d["expose-to-cidrs"] = list(endpoint.expose_to_cidrs)
    return self_versioned_to_dict(_EXPOSED_ENDPOINT_SCHEMAS, d)


def _storage_directive_v1_fields() -> FieldSchema:
    return FieldSchema.of({"pool": String(), "size": ForceUint(), "count": ForceUint()})


_STORAGE_DIRECTIVE_SCHEMAS = SchemaRegistry.from_functions("storage directive", {1: _storage_directive_v1_fields})


def _import_storage_directive(source: Any) -> StorageDirective:
    return import_self_versioned(
        source,
        kind="storage directive",
        registry=_STORAGE_DIRECTIVE_SCHEMAS,
        build=lambda valid, version: StorageDirective(pool=valid["pool"], size=valid["size"], count=valid["count"]),
    )


def _storage_directive_to_dict(directive: StorageDirective) -> dict[str, Any]:
    return self_versioned_to_dict(
        _STORAGE_DIRECTIVE_SCHEMAS,
        {"pool": directive.pool, "size": directive.size, "count": directive.count},
    )


def _provisioning_state_v1_fields() -> FieldSchema:
    return FieldSchema.of({"scaling": Bool(), "scale-target": Int()}, {"scaling": False, "scale-target": 0})


_PROVISIONING_STATE_SCHEMAS = SchemaRegistry.from_functions(
    "provisioning state",
    {1: _provisioning_state_v1_fields},
)


def _import_provisioning_state(source: Any) -> ProvisioningState:
    return import_self_versioned(
        source,
        kind="provisioning state",
        registry=_PROVISIONING_STATE_SCHEMAS,
        build=lambda valid, version: ProvisioningState(scaling=valid["scaling"], scale_target=valid["scale-target"]),
    )


def _provisioning_state_to_dict(state: ProvisioningState) -> dict[str, Any]:
    return self_versioned_to_dict(
        _PROVISIONING_STATE_SCHEMAS,
        {"scaling": state.scaling, "scale-target": state.scale_target},
    )


def _offer_v1_fields() -> FieldSchema:
    return FieldSchema.of({"offer-name": String(), "endpoints": List(String())}, {"endpoints": OMIT})


_OFFER_SCHEMAS = SchemaRegistry.from_functions("application offer", {1: _offer_v1_fields})


def _import_offers(source: Any) -> list[ApplicationOffer]:
    return import_collection(
        source,
        key="offers",
        kind="application offer",
        registry=_OFFER_SCHEMAS,
        build=lambda valid, version: ApplicationOffer(
            offer_name=valid["offer-name"],
            endpoints=string_list(valid.get("endpoints")),
        ),
    )


def _offer_to_dict(offer: ApplicationOffer) -> dict[str, Any]:
    return {"offer-name": offer.offer_name, "endpoints": list(offer.endpoints)}
