# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Leases held on named resources, such as application leadership.

Each lease is a self-versioned document. The model keeps them in a plain list
under ``leases`` rather than in a collection envelope, so every lease may be
read at its own version.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel

from modeldesc.errors import DescriptionError
from modeldesc.schema.checkers import AnyValue, Bool, List, String, Time
from modeldesc.schema.envelope import import_self_versioned, self_versioned_to_dict
from modeldesc.schema.registry import FieldSchema, SchemaRegistry

# ###############
# Public Interface
# ###############


class Lease(BaseModel):
    """A lease on ``name`` held by ``holder`` between ``start`` and ``expiry``.

    Attributes:
        start: Start of the lease, always in UTC.
        expiry: End of the lease, always in UTC.
        pinned: Pinned leases do not expire while pinned.
    """

    name: str
    holder: str
    start: datetime
    expiry: datetime
    pinned: bool = False


def import_lease(source: Any) -> Lease:
    """Import a self-versioned lease document."""
    return import_self_versioned(source, kind="lease", registry=_LEASE_SCHEMAS, build=_lease_from_valid)


def lease_to_dict(lease: Lease) -> dict[str, Any]:
    return self_versioned_to_dict(
        _LEASE_SCHEMAS,
        {
            "name": lease.name,
            "holder": lease.holder,
            "start": lease.start,
            "expiry": lease.expiry,
            "pinned": lease.pinned,
        },
    )


def import_leases(source: Any) -> list[Lease]:
    """Import a list of lease documents, annotating errors with the lease index."""
    result: list[Lease] = []
    for index, item in enumerate(List(AnyValue()).coerce(source)):
        try:
            result.append(import_lease(item))
        except DescriptionError as exc:
            raise exc.annotated(f"lease {index}") from exc
    return result


def leases_to_dict(leases: list[Lease]) -> list[dict[str, Any]]:
    return [lease_to_dict(lease) for lease in leases]


# ################
# Implementation
# ################


def _lease_v1_fields() -> FieldSchema:
    return FieldSchema.of(
        {
            "name": String(),
            "holder": String(),
            "start": Time(),
            "expiry": Time(),
            "pinned": Bool(),
        },
        {"pinned": False},
    )


_LEASE_SCHEMAS = SchemaRegistry.from_functions("lease", {1: _lease_v1_fields})


def _lease_from_valid(valid: dict[str, Any], version: int) -> Lease:
    return Lease(
        name=valid["name"],
        holder=valid["holder"],
        start=_utc(valid["start"]),
        expiry=_utc(valid["expiry"]),
        pinned=valid["pinned"],
    )


def _utc(value: datetime) -> datetime:
    # Times without an offset are taken to be UTC already.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
