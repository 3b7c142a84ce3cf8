# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for constraints documents."""

import pytest

from modeldesc.errors import NotValidError, SchemaError
from modeldesc.model.constraints import (
    Constraints,
    constraints_to_dict,
    import_constraints,
    import_owner_constraints,
    new_constraints,
    put_constraints,
)


def test_legacy_cpu_cores_key_is_accepted() -> None:
    constraints = import_constraints({"version": 1, "cpu-cores": 4})
    assert constraints is not None
    assert constraints.cpu_cores == 4


def test_cores_key_is_accepted() -> None:
    constraints = import_constraints({"version": 1, "cores": "2"})
    assert constraints is not None
    assert constraints.cpu_cores == 2


def test_both_core_keys_are_rejected() -> None:
    with pytest.raises(NotValidError, match="^can not specify both cores and cores constraints$"):
        import_constraints({"version": 1, "cores": 4, "cpu-cores": 4})


def test_float_memory_is_forced_to_uint() -> None:
    constraints = import_constraints({"version": 1, "memory": 2048.0})
    assert constraints is not None
    assert constraints.memory == 2048


def test_negative_memory_is_rejected() -> None:
    with pytest.raises(SchemaError, match="memory: expected uint"):
        import_constraints({"version": 1, "memory": -1})


def test_empty_document_collapses_to_none() -> None:
    assert import_constraints({"version": 5}) is None


def test_fields_of_later_versions_are_ignored_by_earlier_ones() -> None:
    constraints = import_constraints({"version": 1, "memory": 1, "zones": ["a"], "image-id": "img"})
    assert constraints == Constraints(memory=1)


def test_unknown_version() -> None:
    with pytest.raises(NotValidError, match="^version 6 not valid$"):
        import_constraints({"version": 6})


class TestExport:
    def test_only_constrained_values_are_written(self) -> None:
        result = constraints_to_dict(Constraints(cpu_cores=2, zones=[]))
        assert result == {"version": 5, "cores": 2, "zones": []}

    def test_round_trip(self) -> None:
        constraints = Constraints(
            allocate_public_ip=True,
            architecture="arm64",
            container="lxd",
            cpu_cores=8,
            cpu_power=100,
            image_id="ami-1",
            instance_type="m5.large",
            memory=4096,
            root_disk=10240,
            root_disk_source="ssd",
            spaces=["db", "^public"],
            tags=["fast"],
            virt_type="kvm",
            zones=["az1"],
        )
        assert import_constraints(constraints_to_dict(constraints)) == constraints

    def test_explicitly_empty_list_survives(self) -> None:
        constraints = Constraints(memory=1, spaces=[])
        result = import_constraints(constraints_to_dict(constraints))
        assert result is not None
        assert result.spaces == []


class TestOwnerConstraints:
    def test_new_constraints_returns_none_when_empty(self) -> None:
        assert new_constraints() is None
        assert new_constraints(memory=512) == Constraints(memory=512)

    def test_put_skips_missing_constraints(self) -> None:
        d: dict[str, object] = {}
        put_constraints(d, None)
        put_constraints(d, Constraints())
        assert d == {}

    def test_put_and_import(self) -> None:
        d: dict[str, object] = {}
        put_constraints(d, Constraints(virt_type="kvm"))
        assert import_owner_constraints(d) == Constraints(virt_type="kvm")

    def test_absent_owner_constraints(self) -> None:
        assert import_owner_constraints({}) is None
