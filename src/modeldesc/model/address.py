# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Network addresses of machines, as self-versioned documents."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from modeldesc.errors import DescriptionError, SchemaError
from modeldesc.schema.checkers import String
from modeldesc.schema.envelope import import_self_versioned, self_versioned_to_dict
from modeldesc.schema.registry import FieldSchema, SchemaRegistry

# ###############
# Public Interface
# ###############


class Address(BaseModel):
    """An IP address with its type, scope, origin and space."""

    value: str
    type: str
    scope: str = ""
    origin: str = ""
    space_id: str = ""


def import_address(source: Any) -> Address:
    return import_self_versioned(source, kind="address", registry=_ADDRESS_SCHEMAS, build=_address_from_valid)


def import_addresses(source: list[Any]) -> list[Address]:
    """Import a list of self-versioned addresses, each with its own version."""
    result: list[Address] = []
    for index, item in enumerate(source):
        if not isinstance(item, dict):
            raise SchemaError(f"unexpected value for address {index}, {type(item).__name__}")
        try:
            result.append(import_address(item))
        except DescriptionError as exc:
            raise exc.annotated(f"address {index}") from exc
    return result


def address_to_dict(address: Address) -> dict[str, Any]:
    d: dict[str, Any] = {"value": address.value, "type": address.type}
    if address.scope:
        d["scope"] = address.scope
    if address.origin:
        d["origin"] = address.origin
    if address.space_id:
        d["spaceid"] = address.space_id
    return self_versioned_to_dict(_ADDRESS_SCHEMAS, d)


# ################
# Implementation
# ################


def _address_v1_fields() -> FieldSchema:
    return FieldSchema.of(
        {"value": String(), "type": String(), "scope": String(), "origin": String()},
        {"scope": "", "origin": ""},
    )


def _address_v2_fields() -> FieldSchema:
    # Producers that predate spaces write v2 addresses without a space id.
    return _address_v1_fields().add("spaceid", String(), "")


_ADDRESS_SCHEMAS = SchemaRegistry.from_functions("address", {1: _address_v1_fields, 2: _address_v2_fields})


def _address_from_valid(valid: dict[str, Any], version: int) -> Address:
    address = Address(value=valid["value"], type=valid["type"], scope=valid["scope"], origin=valid["origin"])
    if version >= 2:
        address.space_id = valid["spaceid"]
    return address
