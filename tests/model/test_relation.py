# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for relations and their endpoints."""

from datetime import datetime, timezone

import pytest

from modeldesc.errors import SchemaError
from modeldesc.model.relation import Relation, import_relations, relations_to_dict
from modeldesc.model.status import Status


def _relation() -> Relation:
    relation = Relation(
        id=1,
        key="wordpress:db mysql:server",
        suspended=True,
        suspended_reason="maintenance",
        status=Status(value="suspended", updated=datetime(2024, 1, 1, tzinfo=timezone.utc)),
    )
    provider = relation.add_endpoint(
        application_name="mysql",
        name="server",
        role="provider",
        interface="mysql",
        limit=1,
        scope="global",
        application_settings={"leader": "mysql/0"},
    )
    provider.set_unit_settings("mysql/0", {"host": "10.0.0.3", "port": 3306})
    relation.add_endpoint(application_name="wordpress", name="db", role="requirer", interface="mysql", optional=True)
    return relation


def test_round_trip() -> None:
    relation = _relation()
    assert import_relations(relations_to_dict([relation])) == [relation]


def test_null_status_means_no_status() -> None:
    exported = relations_to_dict([_relation()])
    exported["relations"][0]["status"] = None
    (relation,) = import_relations(exported)
    assert relation.status is None


def test_v1_ignores_status_and_suspension() -> None:
    exported = relations_to_dict([_relation()])
    exported["version"] = 1
    (relation,) = import_relations(exported)
    assert relation.status is None
    assert relation.suspended is False
    assert relation.suspended_reason == ""


def test_v1_endpoints_have_no_application_settings() -> None:
    exported = relations_to_dict([_relation()])
    exported["relations"][0]["endpoints"]["version"] = 1
    (relation,) = import_relations(exported)
    assert [endpoint.application_settings for endpoint in relation.endpoints] == [{}, {}]


def test_endpoint_error_is_annotated() -> None:
    exported = relations_to_dict([_relation()])
    del exported["relations"][0]["endpoints"]["endpoints"][1]["role"]
    with pytest.raises(SchemaError, match="^relation 0: endpoint 1: endpoint v2 schema check failed: role:"):
        import_relations(exported)


def test_missing_version() -> None:
    with pytest.raises(SchemaError, match="^relations version schema check failed: version:"):
        import_relations({"relations": []})
