# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for actions and operations."""

from datetime import datetime, timezone

import pytest

from modeldesc.errors import SchemaError
from modeldesc.model.actions import (
    Action,
    Operation,
    actions_to_dict,
    import_actions,
    import_operations,
    operations_to_dict,
)

_ENQUEUED = datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)
_STARTED = datetime(2024, 5, 1, 8, 1, tzinfo=timezone.utc)
_COMPLETED = datetime(2024, 5, 1, 8, 2, tzinfo=timezone.utc)


def _action() -> Action:
    action = Action(
        id="7",
        receiver="mysql/0",
        name="backup",
        operation="3",
        parameters={"target": "/srv/backup", "compress": True},
        enqueued=_ENQUEUED,
        started=_STARTED,
        completed=_COMPLETED,
        status="completed",
        message="done",
        results={"size": 1024},
    )
    action.add_log(_STARTED, "starting")
    action.add_log(_COMPLETED, "finished")
    return action


class TestAction:
    def test_round_trip(self) -> None:
        action = _action()
        assert import_actions(actions_to_dict([action])) == [action]

    def test_pending_action_has_no_times(self) -> None:
        action = Action(id="1", receiver="mysql/0", name="backup", enqueued=_ENQUEUED, status="pending")
        (exported,) = actions_to_dict([action])["actions"]
        assert "started" not in exported
        assert "completed" not in exported
        assert import_actions(actions_to_dict([action])) == [action]

    def test_v1_has_no_logs_or_operation(self) -> None:
        exported = actions_to_dict([_action()])
        exported["version"] = 1
        (action,) = import_actions(exported)
        assert action.logs == []
        assert action.operation == ""

    def test_v3_requires_operation(self) -> None:
        exported = actions_to_dict([_action()])
        del exported["actions"][0]["operation"]
        with pytest.raises(SchemaError, match="^action 0: action v3 schema check failed: operation: expected string"):
            import_actions(exported)

    def test_times_keep_their_offset(self) -> None:
        exported = actions_to_dict([_action()])
        exported["actions"][0]["enqueued"] = "2024-05-01T10:00:00+02:00"
        (action,) = import_actions(exported)
        assert action.enqueued == _ENQUEUED
        assert action.enqueued.utcoffset() is not None
        assert action.enqueued.utcoffset().total_seconds() == 7200


def test_operation_round_trip() -> None:
    operations = [
        Operation(
            id="3",
            summary="backup run",
            enqueued=_ENQUEUED,
            started=_STARTED,
            completed=_COMPLETED,
            status="completed",
            complete_task_count=2,
        ),
        Operation(id="4", summary="pending", enqueued=_ENQUEUED, status="pending"),
    ]
    assert import_operations(operations_to_dict(operations)) == operations
