# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for machines, their containers and their cloud instances."""

from datetime import datetime, timezone
from typing import Any

import pytest

from modeldesc.errors import NotValidError, SchemaError
from modeldesc.model.cloudinstance import CloudInstance, cloud_instance_to_dict, import_cloud_instance
from modeldesc.model.constraints import Constraints
from modeldesc.model.machine import Machine, import_machines, machines_to_dict
from modeldesc.model.portranges import PortRange
from modeldesc.model.status import Status
from modeldesc.model.tools import AgentTools

# ###############
# Helpers
# ###############

_UPDATED = datetime(2024, 3, 1, 10, 30, tzinfo=timezone.utc)

_STATUS = {"version": 2, "status": {"value": "started", "updated": "2024-03-01T10:30:00Z"}}
_HISTORY = {"version": 2, "history": []}


def _v1_machine(**overrides: Any) -> dict[str, Any]:
    """Return a minimal version 1 machine document."""
    machine = {
        "id": "0",
        "nonce": "abc",
        "password-hash": "hash",
        "series": "trusty",
        "jobs": ["host-units"],
        "status": _STATUS,
        "status-history": _HISTORY,
        "tools": {"version": 1, "tools-version": "2.9.0-trusty-amd64", "url": "", "sha256": "", "size": 0},
        "containers": [],
    }
    machine.update(overrides)
    return machine


def _import_v1(*machines: dict[str, Any]) -> list[Machine]:
    return import_machines({"version": 1, "machines": list(machines)})


def _status(value: str = "started") -> Status:
    return Status(value=value, updated=_UPDATED)


def _full_machine() -> Machine:
    machine = Machine(
        id="0",
        nonce="n",
        base="ubuntu@22.04",
        jobs=["host-units"],
        hostname="inst-0",
        status=_status(),
        tools=AgentTools(version="3.1.0-ubuntu-amd64", url="https://x", sha256="ff", size=12),
        instance=CloudInstance(instance_id="i-1", status=_status("running"), memory=2048),
        supported_containers=["lxd"],
        annotations={"owner": "ops"},
        constraints=Constraints(memory=1024),
    )
    machine.set_status_history([_status("pending"), _status("started")])
    machine.add_block_device(name="sda", size=100)
    machine.add_opened_port_range("mysql/0", "db", 3306, 3306, "tcp")
    container = machine.add_container(
        id="0/lxd/0",
        base="ubuntu@22.04",
        container_type="lxd",
        status=_status(),
        tools=AgentTools(version="3.1.0-ubuntu-amd64"),
        instance=CloudInstance(instance_id="c-1", status=_status("running")),
    )
    container.add_opened_port_range("wordpress/0", "", 80, 80, "tcp")
    return machine


# ###############
# Import of old versions
# ###############


class TestMachineV1:
    def test_series_becomes_base(self) -> None:
        (machine,) = _import_v1(_v1_machine())
        assert machine.base == "ubuntu@14.04"

    def test_tools_series_becomes_os(self) -> None:
        (machine,) = _import_v1(_v1_machine())
        assert machine.tools is not None
        assert machine.tools.version == "2.9.0-ubuntu-amd64"

    def test_unknown_series(self) -> None:
        with pytest.raises(NotValidError, match='base series "nosuch" not valid'):
            _import_v1(_v1_machine(series="nosuch"))

    def test_optional_fields_take_defaults(self) -> None:
        (machine,) = _import_v1(_v1_machine())
        assert machine.placement == ""
        assert machine.container_type == ""
        assert machine.supported_containers is None
        assert machine.instance is None
        assert machine.hostname == ""
        assert machine.constraints is None

    def test_explicitly_empty_supported_containers_survive(self) -> None:
        (machine,) = _import_v1(_v1_machine(**{"supported-containers": []}))
        assert machine.supported_containers == []

    def test_containers_use_parent_version(self) -> None:
        container = _v1_machine(id="0/lxd/0", series="xenial")
        (machine,) = _import_v1(_v1_machine(containers=[container]))
        assert machine.containers[0].id == "0/lxd/0"
        assert machine.containers[0].base == "ubuntu@16.04"

    def test_container_error_is_annotated(self) -> None:
        container = _v1_machine(id=5)
        with pytest.raises(SchemaError) as exc_info:
            _import_v1(_v1_machine(containers=[container]))
        assert str(exc_info.value).startswith("machine 0: containers: machine 0: machine v1 schema check failed: id:")

    def test_missing_tools(self) -> None:
        source = _v1_machine()
        del source["tools"]
        with pytest.raises(SchemaError, match="tools: expected map, got nothing"):
            _import_v1(source)

    def test_legacy_opened_ports_become_port_ranges(self) -> None:
        opened = {
            "version": 1,
            "opened-ports": [
                {
                    "subnet-id": "",
                    "opened-ports": {
                        "version": 1,
                        "port-ranges": [
                            {"unit-name": "mysql/0", "from-port": 3306, "to-port": 3306, "protocol": "tcp"}
                        ],
                    },
                }
            ],
        }
        (machine,) = _import_v1(_v1_machine(**{"opened-ports": opened}))
        expected = PortRange(from_port=3306, to_port=3306, protocol="tcp")
        assert machine.opened_port_ranges == {"mysql/0": {"": [expected]}}


class TestMachineV3:
    def test_base_is_read_directly(self) -> None:
        source = _v1_machine(base="ubuntu@20.04")
        del source["series"]
        (machine,) = import_machines({"version": 3, "machines": [source]})
        assert machine.base == "ubuntu@20.04"

    def test_series_is_not_accepted(self) -> None:
        with pytest.raises(SchemaError, match="base: expected string, got nothing"):
            import_machines({"version": 3, "machines": [_v1_machine()]})


def test_hostname_is_required_at_version_4() -> None:
    source = _v1_machine(base="ubuntu@20.04")
    del source["series"]
    with pytest.raises(SchemaError, match="hostname: expected string, got nothing"):
        import_machines({"version": 4, "machines": [source]})


# ###############
# Round trip
# ###############


class TestMachineRoundTrip:
    def test_export_uses_current_version(self) -> None:
        assert machines_to_dict([])["version"] == 4

    def test_full_machine(self) -> None:
        machine = _full_machine()
        assert import_machines(machines_to_dict([machine])) == [machine]

    def test_export_is_stable(self) -> None:
        exported = machines_to_dict([_full_machine()])
        assert machines_to_dict(import_machines(exported)) == exported

    def test_status_history_points(self) -> None:
        (machine,) = import_machines(machines_to_dict([_full_machine()]))
        assert [point.value for point in machine.status_history_points()] == ["pending", "started"]


# ###############
# Invariants
# ###############


class TestMachineInvariants:
    def test_valid_machine(self) -> None:
        _full_machine().check_invariants()

    def test_missing_id(self) -> None:
        machine = _full_machine()
        machine.id = ""
        with pytest.raises(NotValidError, match="^machine missing id$"):
            machine.check_invariants()

    @pytest.mark.parametrize("base", ["ubuntu", "ubuntu@", "@22.04", "a@b@c"])
    def test_invalid_base(self, base: str) -> None:
        machine = _full_machine()
        machine.base = base
        with pytest.raises(NotValidError, match="not valid"):
            machine.check_invariants()

    def test_missing_instance_status_is_annotated(self) -> None:
        machine = _full_machine()
        assert machine.instance is not None
        machine.instance.status = None
        with pytest.raises(NotValidError, match='^machine "0" instance: instance "i-1" missing status$'):
            machine.check_invariants()

    def test_containers_are_checked(self) -> None:
        machine = _full_machine()
        machine.containers[0].tools = None
        with pytest.raises(NotValidError, match='machine "0/lxd/0" missing tools'):
            machine.check_invariants()

    def test_all_machines_is_depth_first(self) -> None:
        assert [m.id for m in _full_machine().all_machines()] == ["0", "0/lxd/0"]

    def test_empty_constraints_are_dropped(self) -> None:
        machine = _full_machine()
        machine.set_constraints(Constraints())
        assert machine.constraints is None


# ###############
# Cloud instances
# ###############


class TestCloudInstance:
    def test_v1_status_string_is_replaced_by_unknown(self) -> None:
        instance = import_cloud_instance({"version": 1, "instance-id": "i-1", "status": "running"})
        assert instance.status is not None
        assert instance.status.value == "unknown"

    def test_v1_numbers_are_forced_to_uint(self) -> None:
        instance = import_cloud_instance(
            {"version": 1, "instance-id": "i-1", "status": "", "memory": "2048", "cores": 4.0}
        )
        assert instance.memory == 2048
        assert instance.cpu_cores == 4

    def test_v4_modification_status_may_be_omitted(self) -> None:
        source = {"version": 4, "instance-id": "i-1", "status": _STATUS, "status-history": _HISTORY}
        assert import_cloud_instance(source).modification_status is None

    @pytest.mark.parametrize("value", ["broken", "", 3, ["applied"]])
    def test_v4_modification_status_must_be_a_map(self, value: object) -> None:
        source = {
            "version": 4,
            "instance-id": "i-1",
            "status": _STATUS,
            "status-history": _HISTORY,
            "modification-status": value,
        }
        expected = "^cloud instance v4 schema check failed: modification-status: expected map"
        with pytest.raises(SchemaError, match=expected):
            import_cloud_instance(source)

    def test_round_trip(self) -> None:
        instance = CloudInstance(
            instance_id="i-1",
            status=_status("running"),
            modification_status=_status("applied"),
            architecture="amd64",
            tags=["a", "b"],
            charm_profiles=["default"],
            root_disk_source="ssd",
        )
        assert import_cloud_instance(cloud_instance_to_dict(instance)) == instance
