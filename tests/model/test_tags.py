# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for entity tags and legacy series names."""

import pytest

from modeldesc.errors import NotValidError
from modeldesc.model.series import base_from_series, series_os, series_version
from modeldesc.model.tags import (
    Tag,
    is_valid_application_name,
    is_valid_unit_name,
    parse_tag,
    unit_name_from_tag,
)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("unit-mysql-0", Tag("unit", "mysql/0")),
        ("unit-my-app-12", Tag("unit", "my-app/12")),
        ("application-wordpress", Tag("application", "wordpress")),
        ("machine-0-lxd-1", Tag("machine", "0/lxd/1")),
        ("model-deadbeef-0000", Tag("model", "deadbeef-0000")),
        ("user-admin", Tag("user", "admin")),
    ],
)
def test_parse_tag(text: str, expected: Tag) -> None:
    assert parse_tag(text) == expected


@pytest.mark.parametrize("tag", ["unit-mysql-0", "machine-0-lxd-1", "application-wordpress"])
def test_tag_string_round_trip(tag: str) -> None:
    assert str(parse_tag(tag)) == tag


@pytest.mark.parametrize("text", ["", "mysql", "unit-", "unit-mysql", "application-0db", "machine-x", "cloud-aws"])
def test_invalid_tags(text: str) -> None:
    with pytest.raises(NotValidError, match="is not a valid tag"):
        parse_tag(text)


def test_unit_name_from_tag() -> None:
    assert unit_name_from_tag("unit-postgresql-3") == "postgresql/3"


def test_unit_name_from_non_unit_tag() -> None:
    with pytest.raises(NotValidError, match='^"application-mysql" is not a valid unit tag$'):
        unit_name_from_tag("application-mysql")


@pytest.mark.parametrize(("name", "valid"), [("mysql/0", True), ("my-app/10", True), ("mysql/01", False), ("0", False)])
def test_is_valid_unit_name(name: str, valid: bool) -> None:
    assert is_valid_unit_name(name) is valid


def test_is_valid_application_name() -> None:
    assert is_valid_application_name("wordpress")
    assert not is_valid_application_name("Wordpress")


class TestSeries:
    def test_lookup(self) -> None:
        assert series_os("jammy") == "ubuntu"
        assert series_version("jammy") == "22.04"

    def test_base_from_series(self) -> None:
        assert base_from_series("centos7") == "centos@7"

    def test_unknown_series(self) -> None:
        with pytest.raises(NotValidError, match='^base series "hardy" not valid$'):
            base_from_series("hardy")
