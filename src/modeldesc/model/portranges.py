# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Opened port ranges, grouped by unit and endpoint.

Machines and applications record their opened ports as
``{version: 1, <key>: {<unit>: {unit-port-ranges: {<endpoint>: [range, ...]}}}}``.
Version 1 machines used a legacy per-subnet layout that importers convert into
ranges opened on the empty endpoint name, i.e. on all endpoints.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from modeldesc.errors import DescriptionError
from modeldesc.schema.checkers import AnyValue, FieldMap, Int, List, String, StringMap
from modeldesc.schema.envelope import import_collection, import_list, versioned_checker, versioned_map_checker
from modeldesc.schema.registry import FieldSchema, SchemaRegistry

# ###############
# Public Interface
# ###############


class PortRange(BaseModel):
    """An inclusive range of ports for one protocol."""

    from_port: int
    to_port: int
    protocol: str


# Unit name -> endpoint name -> opened ranges.
UnitPortRanges = dict[str, dict[str, list[PortRange]]]


def add_port_range(ranges: UnitPortRanges, unit_name: str, endpoint_name: str, port_range: PortRange) -> None:
    """Append ``port_range`` to the ranges of a unit endpoint."""
    ranges.setdefault(unit_name, {}).setdefault(endpoint_name, []).append(port_range)


def import_port_ranges(source: Any, key: str) -> UnitPortRanges:
    """Import a port range document whose payload lives under ``key``."""
    try:
        valid = versioned_map_checker(key).coerce(source)
    except DescriptionError as exc:
        raise exc.annotated(f"{key} version schema check failed") from exc
    version = valid["version"]
    checker = _PORT_RANGE_SCHEMAS.lookup(version).checker()

    result: UnitPortRanges = {}
    for unit_name, unit_source in valid[key].items():
        try:
            unit_valid = checker.coerce(unit_source)
        except DescriptionError as exc:
            raise exc.annotated(f"{key} v{version} schema check failed") from exc
        endpoints: dict[str, list[PortRange]] = {}
        for endpoint_name, range_sources in unit_valid["unit-port-ranges"].items():
            try:
                endpoints[endpoint_name] = [_import_range(item) for item in range_sources]
            except DescriptionError as exc:
                raise exc.annotated(f"unit {unit_name} port range") from exc
        result[unit_name] = endpoints
    return result


def port_ranges_to_dict(ranges: UnitPortRanges, key: str) -> dict[str, Any]:
    return {
        "version": _PORT_RANGE_SCHEMAS.current,
        key: {
            unit_name: {
                "unit-port-ranges": {
                    endpoint_name: [_range_to_dict(item) for item in items]
                    for endpoint_name, items in endpoints.items()
                }
            }
            for unit_name, endpoints in ranges.items()
        },
    }


def import_legacy_opened_ports(source: Any) -> UnitPortRanges:
    """Convert a legacy per-subnet ``opened-ports`` document into port ranges on all endpoints."""
    result: UnitPortRanges = {}
    subnets = import_collection(
        source,
        key="opened-ports",
        kind="opened ports",
        registry=_OPENED_PORTS_SCHEMAS,
        build=_legacy_subnet_ports_from_valid,
    )
    for ports in subnets:
        for unit_name, port_range in ports:
            add_port_range(result, unit_name, "", port_range)
    return result


# ################
# Implementation
# ################

_RANGE_CHECKER = FieldMap({"from-port": Int(), "to-port": Int(), "protocol": String()})


def _port_ranges_v1_fields() -> FieldSchema:
    return FieldSchema.of({"unit-port-ranges": StringMap(List(StringMap(AnyValue())))})


_PORT_RANGE_SCHEMAS = SchemaRegistry.from_functions("port ranges", {1: _port_ranges_v1_fields})


def _import_range(source: Any) -> PortRange:
    valid = _RANGE_CHECKER.coerce(source)
    return PortRange(from_port=valid["from-port"], to_port=valid["to-port"], protocol=valid["protocol"])


def _range_to_dict(port_range: PortRange) -> dict[str, Any]:
    return {"from-port": port_range.from_port, "to-port": port_range.to_port, "protocol": port_range.protocol}


def _opened_ports_v1_fields() -> FieldSchema:
    return FieldSchema.of({"subnet-id": String(), "opened-ports": StringMap(AnyValue())})


def _legacy_port_range_v1_fields() -> FieldSchema:
    return FieldSchema.of(
        {"unit-name": String(), "from-port": Int(), "to-port": Int(), "protocol": String()},
    )


_OPENED_PORTS_SCHEMAS = SchemaRegistry.from_functions("opened ports", {1: _opened_ports_v1_fields})
_LEGACY_PORT_RANGE_SCHEMAS = SchemaRegistry.from_functions("legacy port range", {1: _legacy_port_range_v1_fields})


def _legacy_subnet_ports_from_valid(valid: dict[str, Any], version: int) -> list[tuple[str, PortRange]]:
    ranges_source = valid["opened-ports"]
    try:
        envelope = versioned_checker("port-ranges").coerce(ranges_source)
    except DescriptionError as exc:
        raise exc.annotated("port ranges version schema check failed") from exc
    range_version = envelope["version"]
    return import_list(
        envelope["port-ranges"],
        kind="port range",
        version=range_version,
        schema=_LEGACY_PORT_RANGE_SCHEMAS.lookup(range_version),
        build=_legacy_range_from_valid,
    )


def _legacy_range_from_valid(valid: dict[str, Any], version: int) -> tuple[str, PortRange]:
    port_range = PortRange(from_port=valid["from-port"], to_port=valid["to-port"], protocol=valid["protocol"])
    return valid["unit-name"], port_range
