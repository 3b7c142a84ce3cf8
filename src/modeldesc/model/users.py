# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Users with access to the model and the SSH keys they may log in with."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel
from pydantic import Field as _Field

from modeldesc.schema.checkers import OMIT, AnyValue, Bool, List, String, Time
from modeldesc.schema.envelope import collection_to_dict, import_collection, import_list, string_list
from modeldesc.schema.registry import FieldSchema, SchemaRegistry

# ###############
# Public Interface
# ###############


class UserRemovedLogEntry(BaseModel):
    """Records that a user was removed from the model and later re-added."""

    removed_by: str
    date_created: datetime
    date_removed: datetime


class User(BaseModel):
    name: str
    display_name: str = ""
    created_by: str = ""
    date_created: datetime
    access: str = ""
    last_connection: datetime | None = None
    removal_log: list[UserRemovedLogEntry] = _Field(default_factory=list)


class UserAuthorizedKeys(BaseModel):
    """The public SSH keys authorized for one user."""

    user_name: str
    authorized_keys: list[str] = _Field(default_factory=list)


def import_users(source: Any) -> list[User]:
    return import_collection(
        source,
        key="users",
        kind="user",
        registry=_USER_SCHEMAS,
        build=_user_from_valid,
    )


def users_to_dict(users: list[User]) -> dict[str, Any]:
    return collection_to_dict("users", _USER_SCHEMAS, users, _user_to_dict)


def import_authorized_keys(source: Any) -> list[UserAuthorizedKeys]:
    return import_collection(
        source,
        key="users-authorized-keys",
        kind="user authorized keys",
        registry=_AUTHORIZED_KEYS_SCHEMAS,
        build=lambda valid, version: UserAuthorizedKeys(
            user_name=valid["user-name"],
            authorized_keys=string_list(valid["authorized-keys"]),
        ),
    )


def authorized_keys_to_dict(keys: list[UserAuthorizedKeys]) -> dict[str, Any]:
    return collection_to_dict(
        "users-authorized-keys",
        _AUTHORIZED_KEYS_SCHEMAS,
        keys,
        lambda entry: {"user-name": entry.user_name, "authorized-keys": list(entry.authorized_keys)},
    )


# ################
# Implementation
# ################


def _user_v1_fields() -> FieldSchema:
    # read-only is accepted for old documents but no longer used.
    return FieldSchema.of(
        {
            "name": String(),
            "display-name": String(),
            "created-by": String(),
            "read-only": Bool(),
            "date-created": Time(),
            "last-connection": Time(),
            "access": String(),
        },
        {
            "display-name": "",
            "last-connection": OMIT,
            "read-only": False,
        },
    )


def _user_v2_fields() -> FieldSchema:
    return _user_v1_fields().add("user-removed-log", List(AnyValue()), OMIT)


_USER_SCHEMAS = SchemaRegistry.from_functions("user", {1: _user_v1_fields, 2: _user_v2_fields})

_REMOVED_LOG_ENTRY_SCHEMA = FieldSchema.of(
    {
        "removed-by": String(),
        "date-created": Time(),
        "date-removed": Time(),
    }
)


def _user_from_valid(valid: dict[str, Any], version: int) -> User:
    user = User(
        name=valid["name"],
        display_name=valid["display-name"],
        created_by=valid["created-by"],
        date_created=valid["date-created"],
        access=valid["access"],
        last_connection=valid.get("last-connection"),
    )
    if version >= 2 and "user-removed-log" in valid:
        user.removal_log = import_list(
            valid["user-removed-log"],
            kind="user removed log entry",
            version=version,
            schema=_REMOVED_LOG_ENTRY_SCHEMA,
            build=_removed_log_entry_from_valid,
        )
    return user


def _removed_log_entry_from_valid(valid: dict[str, Any], version: int) -> UserRemovedLogEntry:
    return UserRemovedLogEntry(
        removed_by=valid["removed-by"],
        date_created=valid["date-created"],
        date_removed=valid["date-removed"],
    )


def _user_to_dict(user: User) -> dict[str, Any]:
    d: dict[str, Any] = {
        "name": user.name,
        "created-by": user.created_by,
        "date-created": user.date_created,
        "access": user.access,
    }
    if user.display_name:
        d["display-name"] = user.display_name
    if user.last_connection is not None:
        d["last-connection"] = user.last_connection
    if user.removal_log:
        d["user-removed-log"] = [
            {
                "removed-by": entry.removed_by,
                "date-created": entry.date_created,
                "date-removed": entry.date_removed,
            }
            for entry in user.removal_log
        ]
    return d


def _authorized_keys_v1_fields() -> FieldSchema:
    return FieldSchema.of({"user-name": String(), "authorized-keys": List(String())})


_AUTHORIZED_KEYS_SCHEMAS = SchemaRegistry.from_functions("user authorized keys", {1: _authorized_keys_v1_fields})
