# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for model users."""

from datetime import datetime, timezone

import pytest

from modeldesc.errors import NotValidError, SchemaError
from modeldesc.model.users import (
    User,
    UserAuthorizedKeys,
    UserRemovedLogEntry,
    authorized_keys_to_dict,
    import_authorized_keys,
    import_users,
    users_to_dict,
)

_CREATED = datetime(2023, 11, 1, tzinfo=timezone.utc)


def _user() -> User:
    return User(
        name="admin",
        display_name="Administrator",
        created_by="admin",
        date_created=_CREATED,
        access="admin",
        last_connection=datetime(2024, 1, 2, tzinfo=timezone.utc),
        removal_log=[
            UserRemovedLogEntry(
                removed_by="root",
                date_created=datetime(2023, 1, 1, tzinfo=timezone.utc),
                date_removed=datetime(2023, 6, 1, tzinfo=timezone.utc),
            )
        ],
    )


def test_round_trip() -> None:
    user = _user()
    assert import_users(users_to_dict([user])) == [user]


def test_v1_accepts_read_only_and_ignores_removal_log() -> None:
    exported = users_to_dict([_user()])
    exported["version"] = 1
    exported["users"][0]["read-only"] = True
    (user,) = import_users(exported)
    assert user.removal_log == []
    assert user.access == "admin"


def test_minimal_user() -> None:
    source = {"name": "bob", "created-by": "admin", "date-created": "2023-11-01T00:00:00Z", "access": "read"}
    (user,) = import_users({"version": 2, "users": [source]})
    assert user == User(name="bob", created_by="admin", date_created=_CREATED, access="read")


def test_removal_log_entry_is_checked() -> None:
    exported = users_to_dict([_user()])
    del exported["users"][0]["user-removed-log"][0]["removed-by"]
    with pytest.raises(SchemaError, match="user removed log entry 0: user removed log entry v2 schema check failed"):
        import_users(exported)


# -------- authorized keys tests --------


def test_authorized_keys_round_trip() -> None:
    keys = [
        UserAuthorizedKeys(user_name="admin", authorized_keys=["ssh-ed25519 AAAA admin@laptop", "ssh-rsa BBBB ci"]),
        UserAuthorizedKeys(user_name="bob"),
    ]
    exported = authorized_keys_to_dict(keys)
    assert exported["version"] == 1
    assert exported["users-authorized-keys"][1] == {"user-name": "bob", "authorized-keys": []}
    assert import_authorized_keys(exported) == keys


def test_authorized_keys_are_required() -> None:
    source = {"version": 1, "users-authorized-keys": [{"user-name": "admin"}]}
    with pytest.raises(SchemaError, match="authorized-keys: expected list, got nothing"):
        import_authorized_keys(source)


def test_authorized_keys_must_be_strings() -> None:
    source = {"version": 1, "users-authorized-keys": [{"user-name": "admin", "authorized-keys": [5]}]}
    with pytest.raises(SchemaError, match=r"^user authorized keys 0: .*authorized-keys\[0\]: expected string"):
        import_authorized_keys(source)


def test_authorized_keys_unknown_version() -> None:
    with pytest.raises(NotValidError, match="^version 2 not valid$"):
        import_authorized_keys({"version": 2, "users-authorized-keys": []})
