# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the checker algebra."""

from datetime import datetime, timedelta, timezone

import pytest

from modeldesc.errors import SchemaError
from modeldesc.schema.checkers import (
    OMIT,
    AnyValue,
    Bool,
    FieldMap,
    ForceUint,
    Int,
    List,
    Map,
    String,
    StringMap,
    Time,
    path_string,
)

# ###############
# Scalars
# ###############


class TestString:
    def test_accepts_string(self) -> None:
        assert String().coerce("mysql") == "mysql"

    def test_rejects_int_with_type_in_message(self) -> None:
        with pytest.raises(SchemaError, match=r"expected string, got int\(5\)"):
            String().coerce(5)

    def test_missing_value_reads_as_nothing(self) -> None:
        with pytest.raises(SchemaError, match="expected string, got nothing"):
            String().coerce(None)


class TestInt:
    @pytest.mark.parametrize(("value", "expected"), [(3, 3), ("42", 42), (-1, -1), ("-7", -7), ("+5", 5)])
    def test_accepts(self, value: object, expected: int) -> None:
        assert Int().coerce(value) == expected

    @pytest.mark.parametrize("value", [True, 1.5, "x", None, "1_000", " 42", "42\n", "0x10", ""])
    def test_rejects(self, value: object) -> None:
        with pytest.raises(SchemaError, match="expected int"):
            Int().coerce(value)


class TestForceUint:
    @pytest.mark.parametrize(("value", "expected"), [(7, 7), (7.0, 7), ("8", 8), ("9.0", 9)])
    def test_accepts_numeric_representations(self, value: object, expected: int) -> None:
        assert ForceUint().coerce(value) == expected

    @pytest.mark.parametrize("value", [-1, 1.5, "1.5", "abc", False, "1_000", " 8", "nan", "inf"])
    def test_rejects(self, value: object) -> None:
        with pytest.raises(SchemaError, match="expected uint"):
            ForceUint().coerce(value)


class TestBool:
    @pytest.mark.parametrize(("value", "expected"), [(True, True), ("true", True), ("0", False), ("F", False)])
    def test_accepts(self, value: object, expected: bool) -> None:
        assert Bool().coerce(value) is expected

    def test_rejects_int(self) -> None:
        with pytest.raises(SchemaError, match="expected bool"):
            Bool().coerce(1)


class TestTime:
    def test_passes_datetime_through(self) -> None:
        now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        assert Time().coerce(now) is now

    def test_parses_zulu_suffix(self) -> None:
        assert Time().coerce("2024-05-01T12:00:00Z") == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def test_parses_offset(self) -> None:
        result = Time().coerce("2024-05-01T14:00:00+02:00")
        assert result.utcoffset() == timedelta(hours=2)

    def test_rejects_garbage(self) -> None:
        with pytest.raises(SchemaError, match="expected time"):
            Time().coerce("yesterday")


def test_any_value_passes_none() -> None:
    assert AnyValue().coerce(None) is None


# ###############
# Composites
# ###############


class TestList:
    def test_coerces_each_element(self) -> None:
        assert List(Int()).coerce(["1", 2]) == [1, 2]

    def test_error_names_element_index(self) -> None:
        with pytest.raises(SchemaError, match=r"\[1\]: expected int, got str\('x'\)"):
            List(Int()).coerce([1, "x"])

    def test_rejects_mapping(self) -> None:
        with pytest.raises(SchemaError, match="expected list"):
            List(Int()).coerce({"a": 1})


class TestMap:
    def test_int_keys_are_allowed(self) -> None:
        assert Map(Int(), String()).coerce({1: "a"}) == {1: "a"}

    def test_string_map_rejects_non_string_key(self) -> None:
        with pytest.raises(SchemaError, match="expected string"):
            StringMap(String()).coerce({1: "a"})

    def test_error_names_key(self) -> None:
        with pytest.raises(SchemaError, match=r"^ports\.http: expected int"):
            StringMap(StringMap(Int())).coerce({"ports": {"http": "x"}})


class TestFieldMap:
    def test_required_field_missing(self) -> None:
        checker = FieldMap({"name": String()})
        with pytest.raises(SchemaError, match="^name: expected string, got nothing$"):
            checker.coerce({})

    def test_default_is_coerced(self) -> None:
        checker = FieldMap({"count": Int()}, {"count": "3"})
        assert checker.coerce({}) == {"count": 3}

    def test_omit_leaves_field_out(self) -> None:
        checker = FieldMap({"name": String(), "alias": String()}, {"alias": OMIT})
        assert checker.coerce({"name": "a"}) == {"name": "a"}

    def test_present_omittable_field_is_checked(self) -> None:
        checker = FieldMap({"alias": String()}, {"alias": OMIT})
        with pytest.raises(SchemaError, match="alias: expected string"):
            checker.coerce({"alias": 1})

    def test_unknown_keys_are_ignored(self) -> None:
        assert FieldMap({"a": Int()}).coerce({"a": 1, "b": 2}) == {"a": 1}

    def test_nested_path(self) -> None:
        checker = FieldMap({"tools": FieldMap({"version": String()})})
        with pytest.raises(SchemaError, match=r"^tools\.version: expected string, got int\(5\)$"):
            checker.coerce({"tools": {"version": 5}})

    def test_first_error_in_declaration_order(self) -> None:
        checker = FieldMap({"b": String(), "a": String()})
        with pytest.raises(SchemaError, match="^b:"):
            checker.coerce({})


def test_path_string() -> None:
    assert path_string((".machines", "[0]", ".id")) == "machines[0].id"


def test_omit_is_a_singleton() -> None:
    assert type(OMIT)() is OMIT
