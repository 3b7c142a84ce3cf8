# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for applications, their units and their resources."""

from datetime import datetime, timezone
from typing import Any

import pytest

from modeldesc.errors import NotValidError, SchemaError
from modeldesc.model.application import (
    Application,
    ExposedEndpoint,
    ProvisioningState,
    StorageDirective,
    applications_to_dict,
    import_applications,
)
from modeldesc.model.charm import CharmOrigin
from modeldesc.model.resources import Resource, ResourceRevision, UnitResource, resources_to_dict
from modeldesc.model.status import Status, StatusHistory, status_history_to_dict, status_to_dict
from modeldesc.model.tools import AgentTools, agent_tools_to_dict
from modeldesc.model.unit import CAAS, Unit, import_units, units_to_dict

# ###############
# Helpers
# ###############

_UPDATED = datetime(2024, 3, 1, 10, 30, tzinfo=timezone.utc)


def _status(value: str = "active") -> Status:
    return Status(value=value, updated=_UPDATED)


def _revision(revision: int = 1) -> ResourceRevision:
    return ResourceRevision(revision=revision, type="file", origin="upload", sha384="abc", size=10, timestamp=_UPDATED)


def _application() -> Application:
    application = Application(
        name="wordpress",
        charm_url="ch:wordpress-5",
        channel="stable",
        charm_modified_version=2,
        exposed=True,
        exposed_endpoints={"website": ExposedEndpoint(expose_to_cidrs=["0.0.0.0/0"])},
        min_units=1,
        status=_status(),
        endpoint_bindings={"db": "alpha"},
        charm_config={"blog-title": "hello"},
        application_config={"trust": True},
        leader="wordpress/0",
        leadership_settings={"leader-key": "v"},
        metrics_credentials="c2VjcmV0",
        annotations={"gui-x": "10"},
        storage_directives={"uploads": StorageDirective(pool="rootfs", size=1024, count=1)},
        placement="zone=a",
        has_resources=True,
        desired_scale=3,
        provisioning_state=ProvisioningState(scaling=True, scale_target=3),
        charm_origin=CharmOrigin(source="charm-hub", revision=5, channel="stable", platform="amd64/ubuntu/22.04"),
        tools=AgentTools(version="3.1.0-ubuntu-amd64"),
        operator_status=_status("idle"),
    )
    application.set_status_history([_status("waiting"), _status()])
    application.add_resource(Resource(name="theme", application_revision=_revision(), charmstore_revision=_revision(2)))
    application.add_offer("blog", ["website"])
    application.add_opened_port_range("wordpress/0", "website", 80, 80, "tcp")
    unit = application.add_unit(
        name="wordpress/0",
        machine="0",
        agent_status=_status("idle"),
        workload_status=_status(),
        tools=AgentTools(version="3.1.0-ubuntu-amd64"),
        subordinates=["logging/0"],
        relation_state={3: "joined"},
        charm_state={"k": "v"},
    )
    unit.add_resource(UnitResource(name="theme", revision=_revision()))
    unit.add_payload(name="db", type="docker", raw_id="abc", state="running", labels=["a"])
    return application


def _v1_application(**overrides: Any) -> dict[str, Any]:
    """Return a version 1 application document with no units."""
    application = {
        "name": "mysql",
        "series": "trusty",
        "charm-url": "cs:trusty/mysql-1",
        "cs-channel": "stable",
        "charm-mod-version": 1,
        "status": status_to_dict(_status()),
        "status-history": status_history_to_dict(StatusHistory()),
        "settings": {},
        "leadership-settings": {},
        "resources": resources_to_dict([]),
        "units": units_to_dict([]),
    }
    application.update(overrides)
    return application


# ###############
# Import
# ###############


class TestApplicationImport:
    def test_v1_defaults(self) -> None:
        (application,) = import_applications({"version": 1, "applications": [_v1_application()]})
        assert application.type == "iaas"
        assert application.subordinate is False
        assert application.charm_origin is None
        assert application.storage_directives == {}

    def test_v1_storage_constraints_become_directives(self) -> None:
        source = _v1_application(
            **{"storage-constraints": {"data": {"version": 1, "pool": "ebs", "size": 2048, "count": 1}}}
        )
        (application,) = import_applications({"version": 1, "applications": [source]})
        assert application.storage_directives == {"data": StorageDirective(pool="ebs", size=2048, count=1)}

    def test_series_fills_empty_origin_platform(self) -> None:
        source = _v1_application(
            type="iaas",
            **{"charm-origin": {"version": 2, "source": "charm-hub", "platform": ""}},
        )
        (application,) = import_applications({"version": 7, "applications": [source]})
        assert application.charm_origin is not None
        assert application.charm_origin.platform == "unknown/ubuntu/14.04"

    def test_v1_origin_platform_is_upgraded(self) -> None:
        source = _v1_application(type="iaas", **{"charm-origin": {"version": 1, "platform": "amd64/ubuntu/focal"}})
        (application,) = import_applications({"version": 7, "applications": [source]})
        assert application.charm_origin is not None
        assert application.charm_origin.platform == "amd64/ubuntu/20.04/stable"

    def test_invalid_metrics_credentials(self) -> None:
        source = _v1_application(**{"metrics-creds": "not base64!"})
        with pytest.raises(NotValidError, match="metrics credentials not valid"):
            import_applications({"version": 1, "applications": [source]})

    def test_type_is_required_from_version_2(self) -> None:
        with pytest.raises(SchemaError, match="type: expected string, got nothing"):
            import_applications({"version": 2, "applications": [_v1_application()]})

    def test_v3_application_config_may_be_omitted(self) -> None:
        (application,) = import_applications({"version": 3, "applications": [_v1_application(type="iaas")]})
        assert application.application_config == {}

    def test_v3_reads_application_config(self) -> None:
        source = _v1_application(type="iaas", **{"application-config": {"trust": True}})
        (application,) = import_applications({"version": 3, "applications": [source]})
        assert application.application_config == {"trust": True}

    def test_v3_application_config_must_be_a_map(self) -> None:
        source = _v1_application(type="iaas", **{"application-config": "trust"})
        with pytest.raises(SchemaError, match="application-config: expected map"):
            import_applications({"version": 3, "applications": [source]})

    def test_units_inherit_application_type(self) -> None:
        unit = Unit(name="gitlab/0", agent_status=_status(), workload_status=_status())
        source = _v1_application(name="gitlab", type=CAAS, units=units_to_dict([unit]))
        (application,) = import_applications({"version": 2, "applications": [source]})
        assert application.units[0].type == CAAS
        assert application.units[0].tools is None

    def test_iaas_unit_without_tools_is_rejected(self) -> None:
        unit = Unit(name="mysql/0", agent_status=_status(), workload_status=_status())
        source = _v1_application(type="iaas", units=units_to_dict([unit]))
        with pytest.raises(NotValidError, match='unit "mysql/0" missing tools'):
            import_applications({"version": 2, "applications": [source]})


# ###############
# Round trip
# ###############


class TestApplicationRoundTrip:
    def test_full_application(self) -> None:
        application = _application()
        assert import_applications(applications_to_dict([application])) == [application]

    def test_export_uses_current_version(self) -> None:
        assert applications_to_dict([])["version"] == 13

    def test_export_omits_unset_values(self) -> None:
        (exported,) = applications_to_dict([Application(name="a", status=_status())])["applications"]
        assert "exposed" not in exported
        assert "leader" not in exported
        assert "charm-origin" not in exported
        assert exported["settings"] == {}


# ###############
# Invariants
# ###############


class TestApplicationInvariants:
    def test_valid(self) -> None:
        _application().check_invariants()

    def test_missing_status(self) -> None:
        application = _application()
        application.status = None
        with pytest.raises(NotValidError, match='^application "wordpress" missing status$'):
            application.check_invariants()

    def test_leader_must_be_a_unit(self) -> None:
        application = _application()
        application.leader = "wordpress/7"
        with pytest.raises(NotValidError, match='^missing unit for leader "wordpress/7"$'):
            application.check_invariants()

    def test_resource_without_application_revision(self) -> None:
        application = _application()
        application.add_resource(Resource(name="extra"))
        with pytest.raises(NotValidError, match="^resource extra: no application revision set$"):
            application.check_invariants()

    def test_unit_lookup(self) -> None:
        application = _application()
        assert application.unit("wordpress/0") is application.units[0]
        assert application.unit("wordpress/9") is None


# ###############
# Units
# ###############


def test_unit_v1_requires_tools() -> None:
    unit = Unit(name="mysql/0", agent_status=_status(), workload_status=_status())
    exported = units_to_dict([unit])
    exported["version"] = 1
    with pytest.raises(SchemaError, match="tools: expected map, got nothing"):
        import_units(exported)


def test_unit_v1_ignores_later_fields() -> None:
    unit = Unit(
        name="mysql/0",
        agent_status=_status(),
        workload_status=_status(),
        tools=AgentTools(version="3.1.0-ubuntu-amd64"),
        uniter_state="state",
    )
    exported = units_to_dict([unit])
    exported["version"] = 1
    (imported,) = import_units(exported)
    assert imported.uniter_state == ""


def test_unit_resource_v1_uses_fingerprint() -> None:
    revision = {
        "revision": 1,
        "type": "file",
        "path": "theme.zip",
        "description": "",
        "origin": "upload",
        "fingerprint": "ff",
        "size": 3,
        "username": "admin",
    }
    unit = Unit(name="mysql/0", agent_status=_status(), workload_status=_status())
    exported = units_to_dict([unit])
    exported["units"][0]["resources"] = {"version": 1, "resources": [{"name": "theme", "revision": revision}]}
    (imported,) = import_units(exported)
    assert imported.resources[0].revision.sha384 == "ff"
    assert imported.resources[0].revision.retrieved_by == "admin"


def test_agent_tools_v1_converts_series() -> None:
    tools = agent_tools_to_dict(AgentTools(version="2.9.0-focal-arm64"))
    tools["version"] = 1
    unit = Unit(name="mysql/0", agent_status=_status(), workload_status=_status())
    exported = units_to_dict([unit])
    exported["units"][0]["tools"] = tools
    (imported,) = import_units(exported)
    assert imported.tools == AgentTools(version="2.9.0-ubuntu-arm64")
