# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Status points and the status history shared by many entity kinds.

A status travels as an embedded document ``{version: 2, status: {...}}``; a
history as ``{version: 2, history: [point, ...]}``. Owners carry the history by
composition: they hold a :class:`StatusHistory` attribute and merge
:data:`STATUS_HISTORY_SCHEMA` into their own field schema.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel
from pydantic import Field as _Field

from modeldesc.schema.checkers import OMIT, AnyValue, Bool, String, StringMap, Time
from modeldesc.schema.envelope import collection_to_dict, embedded_to_dict, import_collection, import_embedded
from modeldesc.schema.registry import FieldSchema, SchemaRegistry

# ###############
# Public Interface
# ###############


class Status(BaseModel):
    """A status value with its message, free-form data and update time.

    Attributes:
        never_set: True when the owner never received a status update; a status
            that was set to an empty value is a different state.
    """

    value: str
    message: str = ""
    data: dict[str, Any] = _Field(default_factory=dict)
    updated: datetime
    never_set: bool = False


class StatusHistory(BaseModel):
    """Ordered historical status points, oldest first as recorded by the producer."""

    points: list[Status] = _Field(default_factory=list)

    def set_points(self, points: list[Status]) -> None:
        """Replace the recorded points."""
        self.points = list(points)

    def __len__(self) -> int:
        return len(self.points)


STATUS_HISTORY_SCHEMA = FieldSchema.of({"status-history": StringMap(AnyValue())})


def import_status(source: Any) -> Status:
    """Import an embedded status document."""
    return import_embedded(source, key="status", kind="status", registry=_STATUS_SCHEMAS, build=_status_from_valid)


def import_status_history(source: Any) -> StatusHistory:
    """Import a status history envelope."""
    points = import_collection(
        source,
        key="history",
        kind="status history",
        registry=_STATUS_HISTORY_SCHEMAS,
        build=_status_from_valid,
    )
    return StatusHistory(points=points)


def import_owner_status_history(valid: dict[str, Any]) -> StatusHistory:
    """Import the ``status-history`` field of an owner coerced with :data:`STATUS_HISTORY_SCHEMA`."""
    return import_status_history(valid["status-history"])


def import_modification_status(source: Any) -> Status | None:
    """Import an optional status where anything but a mapping means no status."""
    if not isinstance(source, dict):
        return None
    return import_status(source)


def status_to_dict(status: Status) -> dict[str, Any]:
    """Export a status as an embedded document at the current version."""
    return embedded_to_dict("status", _STATUS_SCHEMAS, _point_to_dict(status))


def status_history_to_dict(history: StatusHistory) -> dict[str, Any]:
    """Export a status history envelope at the current version."""
    return collection_to_dict("history", _STATUS_HISTORY_SCHEMAS, history.points, _point_to_dict)


# ################
# Implementation
# ################


def _status_point_v1_fields() -> FieldSchema:
    return FieldSchema.of(
        {
            "value": String(),
            "message": String(),
            "data": StringMap(AnyValue()),
            "updated": Time(),
        },
        {
            "message": "",
            "data": OMIT,
        },
    )


def _status_point_v2_fields() -> FieldSchema:
    return _status_point_v1_fields().add("neverset", Bool(), False)


_STATUS_FIELDS = {1: _status_point_v1_fields, 2: _status_point_v2_fields}

_STATUS_SCHEMAS = SchemaRegistry.from_functions("status", _STATUS_FIELDS)
_STATUS_HISTORY_SCHEMAS = SchemaRegistry.from_functions("status history", _STATUS_FIELDS)


def _status_from_valid(valid: dict[str, Any], version: int) -> Status:
    status = Status(
        value=valid["value"],
        message=valid["message"],
        data=valid.get("data", {}),
        updated=valid["updated"],
    )
    if version >= 2:
        status.never_set = valid["neverset"]
    return status


def _point_to_dict(status: Status) -> dict[str, Any]:
    d: dict[str, Any] = {"value": status.value}
    if status.message:
        d["message"] = status.message
    if status.data:
        d["data"] = status.data
    d["updated"] = status.updated
    d["neverset"] = status.never_set
    return d
