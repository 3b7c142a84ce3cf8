# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for secrets and remote secrets."""

from datetime import datetime, timezone

import pytest

from modeldesc.errors import NotValidError, SchemaError
from modeldesc.model.secrets import (
    RemoteSecret,
    Secret,
    SecretAccess,
    SecretConsumer,
    SecretRemoteConsumer,
    SecretRevision,
    SecretValueRef,
    import_remote_secrets,
    import_secrets,
    is_valid_secret_id,
    remote_secrets_to_dict,
    secrets_to_dict,
)
from modeldesc.model.tags import Tag

_SECRET_ID = "9m4e2mr0ui3e8a215n4g"
_CREATED = datetime(2024, 1, 1, tzinfo=timezone.utc)
_UPDATED = datetime(2024, 2, 1, tzinfo=timezone.utc)


def _secret() -> Secret:
    return Secret(
        id=_SECRET_ID,
        version=1,
        description="database password",
        label="db-pass",
        rotate_policy="monthly",
        auto_prune=True,
        owner="application-mysql",
        created=_CREATED,
        updated=_UPDATED,
        next_rotate_time=_UPDATED,
        latest_revision_checksum="7a38",
        revisions=[
            SecretRevision(number=1, created=_CREATED, updated=_CREATED, obsolete=True, content={"pw": "czNjcjN0"}),
            SecretRevision(
                number=2,
                created=_UPDATED,
                updated=_UPDATED,
                expire_time=_UPDATED,
                value_ref=SecretValueRef(backend_id="vault", revision_id="rev-2"),
            ),
        ],
        acl={"application-wordpress": SecretAccess(scope="relation-wordpress.db#mysql.server", role="view")},
        consumers=[SecretConsumer(consumer="unit-wordpress-0", label="mine", current_revision=2)],
        remote_consumers=[SecretRemoteConsumer(id="rc-1", consumer="unit-app-0", current_revision=1)],
    )


class TestSecret:
    def test_round_trip(self) -> None:
        secret = _secret()
        assert import_secrets(secrets_to_dict([secret])) == [secret]

    def test_export_uses_version_2(self) -> None:
        assert secrets_to_dict([])["version"] == 2

    def test_v1_ignores_checksum(self) -> None:
        exported = secrets_to_dict([_secret()])
        exported["version"] = 1
        (secret,) = import_secrets(exported)
        assert secret.latest_revision_checksum == ""

    def test_computed_values(self) -> None:
        secret = _secret()
        assert secret.latest_revision == 2
        assert secret.latest_expire_time == _UPDATED
        assert secret.owner_tag() == Tag("application", "mysql")

    def test_computed_values_without_revisions(self) -> None:
        secret = _secret().model_copy(update={"revisions": []})
        assert secret.latest_revision == 0
        assert secret.latest_expire_time is None

    def test_incomplete_value_ref(self) -> None:
        exported = secrets_to_dict([_secret()])
        exported["secrets"][0]["revisions"][1]["value-ref"] = {"backend-id": "vault"}
        with pytest.raises(NotValidError, match="incomplete secret value ref for revision 2"):
            import_secrets(exported)

    def test_access_must_be_a_map(self) -> None:
        exported = secrets_to_dict([_secret()])
        exported["secrets"][0]["acl"] = {"application-wordpress": "view"}
        with pytest.raises(SchemaError, match="unexpected value for subject application-wordpress, str"):
            import_secrets(exported)

    def test_revision_error_is_annotated(self) -> None:
        exported = secrets_to_dict([_secret()])
        del exported["secrets"][0]["revisions"][0]["number"]
        with pytest.raises(SchemaError, match="^secret 0: revision 0: revision v2 schema check failed: number:"):
            import_secrets(exported)


class TestSecretInvariants:
    def test_valid(self) -> None:
        _secret().check_invariants()

    def test_missing_id(self) -> None:
        with pytest.raises(NotValidError, match="^secret missing id$"):
            _secret().model_copy(update={"id": ""}).check_invariants()

    def test_malformed_id(self) -> None:
        with pytest.raises(NotValidError, match='^secret ID "xyz" not valid$'):
            _secret().model_copy(update={"id": "xyz"}).check_invariants()

    def test_invalid_owner(self) -> None:
        secret = _secret().model_copy(update={"owner": "bogus"})
        with pytest.raises(NotValidError, match=f'^secret "{_SECRET_ID}" invalid owner: "bogus" is not a valid tag$'):
            secret.check_invariants()

    def test_invalid_consumer(self) -> None:
        secret = _secret().model_copy(update={"consumers": [SecretConsumer(consumer="unit-x")]})
        with pytest.raises(NotValidError, match="invalid consumer"):
            secret.check_invariants()


@pytest.mark.parametrize(("secret_id", "valid"), [(_SECRET_ID, True), ("9M4E2MR0UI3E8A215N4G", False), ("abc", False)])
def test_is_valid_secret_id(secret_id: str, valid: bool) -> None:
    assert is_valid_secret_id(secret_id) is valid


class TestRemoteSecret:
    def test_round_trip(self) -> None:
        secrets = [
            RemoteSecret(
                id=_SECRET_ID,
                source_uuid="deadbeef",
                consumer="unit-wordpress-0",
                label="theirs",
                current_revision=1,
                latest_revision=3,
            )
        ]
        assert import_remote_secrets(remote_secrets_to_dict(secrets)) == secrets

    def test_missing_source_uuid(self) -> None:
        source = {"id": _SECRET_ID, "consumer": "unit-a-0", "current-revision": 1, "latest-revision": 1}
        with pytest.raises(SchemaError, match="source-uuid: expected string, got nothing"):
            import_remote_secrets({"version": 1, "remote-secrets": [source]})

    def test_invalid_consumer(self) -> None:
        secret = RemoteSecret(id=_SECRET_ID, source_uuid="u", consumer="nothing")
        with pytest.raises(NotValidError, match=f'^remote secret "{_SECRET_ID}" invalid consumer'):
            secret.check_invariants()
