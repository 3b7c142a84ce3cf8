# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Actions queued against units and the operations that group them."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel
from pydantic import Field as _Field

from modeldesc.schema.checkers import OMIT, AnyValue, Int, String, StringMap, Time
from modeldesc.schema.envelope import collection_to_dict, import_collection
from modeldesc.schema.registry import FieldSchema, SchemaRegistry

# ###############
# Public Interface
# ###############


class ActionMessage(BaseModel):
    """One log line recorded while an action ran."""

    timestamp: datetime
    message: str


class Action(BaseModel):
    """An action run on a receiver (usually a unit).

    Attributes:
        operation: Id of the operation the action belongs to; empty before version 3.
        started: Unset while the action is still pending.
    """

    id: str
    receiver: str
    name: str
    operation: str = ""
    parameters: dict[str, Any] = _Field(default_factory=dict)
    enqueued: datetime
    started: datetime | None = None
    completed: datetime | None = None
    status: str = ""
    message: str = ""
    results: dict[str, Any] = _Field(default_factory=dict)
    logs: list[ActionMessage] = _Field(default_factory=list)

    def add_log(self, timestamp: datetime, message: str) -> ActionMessage:
        entry = ActionMessage(timestamp=timestamp, message=message)
        self.logs.append(entry)
        return entry


class Operation(BaseModel):
    id: str
    summary: str
    enqueued: datetime
    started: datetime | None = None
    completed: datetime | None = None
    status: str = ""
    complete_task_count: int = 0


def import_actions(source: Any) -> list[Action]:
    return import_collection(
        source,
        key="actions",
        kind="action",
        registry=_ACTION_SCHEMAS,
        build=_action_from_valid,
    )


def actions_to_dict(actions: list[Action]) -> dict[str, Any]:
    return collection_to_dict("actions", _ACTION_SCHEMAS, actions, _action_to_dict)


def import_operations(source: Any) -> list[Operation]:
    return import_collection(
        source,
        key="operations",
        kind="operation",
        registry=_OPERATION_SCHEMAS,
        build=_operation_from_valid,
    )


def operations_to_dict(operations: list[Operation]) -> dict[str, Any]:
    return collection_to_dict("operations", _OPERATION_SCHEMAS, operations, _operation_to_dict)


# ################
# Implementation
# ################


def _action_v1_fields() -> FieldSchema:
    return FieldSchema.of(
        {
            "receiver": String(),
            "name": String(),
            "parameters": StringMap(AnyValue()),
            "enqueued": Time(),
            "started": Time(),
            "completed": Time(),
            "status": String(),
            "message": String(),
            "results": StringMap(AnyValue()),
            "id": String(),
        },
        {"started": OMIT, "completed": OMIT},
    )


def _action_v2_fields() -> FieldSchema:
    return _action_v1_fields().add("logs", StringMap(AnyValue()), OMIT)


def _action_v3_fields() -> FieldSchema:
    return _action_v2_fields().add("operation", String())


_ACTION_SCHEMAS = SchemaRegistry.from_functions(
    "action",
    {1: _action_v1_fields, 2: _action_v2_fields, 3: _action_v3_fields},
)


def _action_from_valid(valid: dict[str, Any], version: int) -> Action:
    action = Action(
        id=valid["id"],
        receiver=valid["receiver"],
        name=valid["name"],
        parameters=valid["parameters"],
        enqueued=valid["enqueued"],
        started=valid.get("started"),
        completed=valid.get("completed"),
        status=valid["status"],
        message=valid["message"],
        results=valid["results"],
    )
    if version >= 2 and "logs" in valid:
        action.logs = import_collection(
            valid["logs"],
            key="messages",
            kind="action message",
            registry=_ACTION_MESSAGE_SCHEMAS,
            build=_action_message_from_valid,
        )
    if version >= 3:
        action.operation = valid["operation"]
    return action


def _action_to_dict(action: Action) -> dict[str, Any]:
    d: dict[str, Any] = {
        "id": action.id,
        "receiver": action.receiver,
        "name": action.name,
        "operation": action.operation,
        "parameters": dict(action.parameters),
        "enqueued": action.enqueued,
        "status": action.status,
        "message": action.message,
        "results": dict(action.results),
    }
    if action.started is not None:
        d["started"] = action.started
    if action.completed is not None:
        d["completed"] = action.completed
    if action.logs:
        d["logs"] = collection_to_dict("messages", _ACTION_MESSAGE_SCHEMAS, action.logs, _action_message_to_dict)
    return d


def _action_message_v1_fields() -> FieldSchema:
    return FieldSchema.of({"timestamp": Time(), "message": String()})


_ACTION_MESSAGE_SCHEMAS = SchemaRegistry.from_functions("action message", {1: _action_message_v1_fields})


def _action_message_from_valid(valid: dict[str, Any], version: int) -> ActionMessage:
    return ActionMessage(timestamp=valid["timestamp"], message=valid["message"])


def _action_message_to_dict(entry: ActionMessage) -> dict[str, Any]:
    return {"timestamp": entry.timestamp, "message": entry.message}


def _operation_v1_fields() -> FieldSchema:
    return FieldSchema.of(
        {
            "id": String(),
            "summary": String(),
            "enqueued": Time(),
            "started": Time(),
            "completed": Time(),
            "status": String(),
            "complete-task-count": Int(),
        },
        {"started": OMIT, "completed": OMIT},
    )


_OPERATION_SCHEMAS = SchemaRegistry.from_functions("operation", {1: _operation_v1_fields})


def _operation_from_valid(valid: dict[str, Any], version: int) -> Operation:
    return Operation(
        id=valid["id"],
        summary=valid["summary"],
        enqueued=valid["enqueued"],
        started=valid.get("started"),
        completed=valid.get("completed"),
        status=valid["status"],
        complete_task_count=valid["complete-task-count"],
    )


def _operation_to_dict(operation: Operation) -> dict[str, Any]:
    d: dict[str, Any] = {
        "id": operation.id,
        "summary": operation.summary,
        "enqueued": operation.enqueued,
        "status": operation.status,
        "complete-task-count": operation.complete_task_count,
    }
    if operation.started is not None:
        d["started"] = operation.started
    if operation.completed is not None:
        d["completed"] = operation.completed
    return d
