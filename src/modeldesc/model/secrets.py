# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Secrets owned by the model, and remote secrets consumed from other models.

The revisions, access entries and consumers of a secret are not enveloped: they
are read with the schema of the same version as the secret that holds them.
Owners, accessors and consumers are recorded as entity tags.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any

from pydantic import BaseModel
from pydantic import Field as _Field

from modeldesc.errors import DescriptionError, NotValidError, SchemaError
from modeldesc.model.tags import Tag, parse_tag
from modeldesc.schema.checkers import OMIT, AnyValue, Bool, Int, List, Map, String, StringMap, Time
from modeldesc.schema.envelope import collection_to_dict, import_collection, import_item, import_list
from modeldesc.schema.registry import FieldSchema, SchemaRegistry

# ###############
# Public Interface
# ###############


class SecretValueRef(BaseModel):
    """Where the content of a revision lives when it is stored in an external backend."""

    backend_id: str
    revision_id: str


class SecretRevision(BaseModel):
    number: int
    created: datetime
    updated: datetime
    obsolete: bool = False
    pending_delete: bool = False
    expire_time: datetime | None = None
    value_ref: SecretValueRef | None = None
    content: dict[str, str] = _Field(default_factory=dict)


class SecretAccess(BaseModel):
    scope: str
    role: str


class SecretConsumer(BaseModel):
    consumer: str
    label: str = ""
    current_revision: int = 0


class SecretRemoteConsumer(BaseModel):
    id: str
    consumer: str
    current_revision: int = 0


class Secret(BaseModel):
    """A secret with its revision history and the entities allowed to read it.

    Attributes:
        owner: Tag of the owning entity, e.g. ``application-mysql``.
        acl: Subject tag to the access granted to it.
    """

    id: str
    version: int = 1
    description: str = ""
    label: str = ""
    rotate_policy: str = ""
    auto_prune: bool = False
    owner: str = ""
    created: datetime
    updated: datetime
    next_rotate_time: datetime | None = None
    latest_revision_checksum: str = ""
    revisions: list[SecretRevision] = _Field(default_factory=list)
    acl: dict[str, SecretAccess] = _Field(default_factory=dict)
    consumers: list[SecretConsumer] = _Field(default_factory=list)
    remote_consumers: list[SecretRemoteConsumer] = _Field(default_factory=list)

    @property
    def latest_revision(self) -> int:
        return max((revision.number for revision in self.revisions), default=0)

    @property
    def latest_expire_time(self) -> datetime | None:
        if not self.revisions:
            return None
        return self.revisions[-1].expire_time

    def owner_tag(self) -> Tag | None:
        return parse_tag(self.owner) if self.owner else None

    def check_invariants(self) -> None:
        if not self.id:
            raise NotValidError("secret missing id")
        if not is_valid_secret_id(self.id):
            raise NotValidError(f'secret ID "{self.id}" not valid')
        _check_tag(self.owner, f'secret "{self.id}" invalid owner')
        for subject in self.acl:
            _check_tag(subject, f'secret "{self.id}" invalid access entity')
        for consumer in self.consumers:
            _check_tag(consumer.consumer, f'secret "{self.id}" invalid consumer')
        for remote in self.remote_consumers:
            _check_tag(remote.consumer, f'secret "{self.id}" invalid remote consumer')


class RemoteSecret(BaseModel):
    """A secret owned by another model and read by a consumer in this one."""

    id: str
    source_uuid: str
    consumer: str
    label: str = ""
    current_revision: int = 0
    latest_revision: int = 0

    def check_invariants(self) -> None:
        if not self.id:
            raise NotValidError("remote secret missing id")
        if not is_valid_secret_id(self.id):
            raise NotValidError(f'remote secret ID "{self.id}" not valid')
        _check_tag(self.consumer, f'remote secret "{self.id}" invalid consumer')


def is_valid_secret_id(secret_id: str) -> bool:
    """Return True for a 20 character base32hex globally unique id."""
    return _SECRET_ID.match(secret_id) is not None


def import_secrets(source: Any) -> list[Secret]:
    return import_collection(
        source,
        key="secrets",
        kind="secret",
        registry=_SECRET_SCHEMAS,
        build=_secret_from_valid,
    )


def secrets_to_dict(secrets: list[Secret]) -> dict[str, Any]:
    return collection_to_dict("secrets", _SECRET_SCHEMAS, secrets, _secret_to_dict)


def import_remote_secrets(source: Any) -> list[RemoteSecret]:
    return import_collection(
        source,
        key="remote-secrets",
        kind="remote secret",
        registry=_REMOTE_SECRET_SCHEMAS,
        build=_remote_secret_from_valid,
    )


def remote_secrets_to_dict(secrets: list[RemoteSecret]) -> dict[str, Any]:
    return collection_to_dict("remote-secrets", _REMOTE_SECRET_SCHEMAS, secrets, _remote_secret_to_dict)


# ################
# Implementation
# ################

_SECRET_ID = re.compile(r"^[0-9a-v]{20}$")


def _check_tag(text: str, context: str) -> None:
    if not text:
        return
    try:
        parse_tag(text)
    except DescriptionError as exc:
        raise exc.annotated(context) from exc


def _secret_v1_fields() -> FieldSchema:
    return FieldSchema.of(
        {
            "id": String(),
            "secret-version": Int(),
            "description": String(),
            "label": String(),
            "rotate-policy": String(),
            "auto-prune": Bool(),
            "owner": String(),
            "create-time": Time(),
            "update-time": Time(),
            "next-rotate-time": Time(),
            "revisions": List(AnyValue()),
            "acl": Map(String(), AnyValue()),
            "consumers": List(AnyValue()),
            "remote-consumers": List(AnyValue()),
        },
        {
            "rotate-policy": OMIT,
            "auto-prune": OMIT,
            "next-rotate-time": OMIT,
            "acl": OMIT,
            "consumers": OMIT,
            "remote-consumers": OMIT,
        },
    )


def _secret_v2_fields() -> FieldSchema:
    return _secret_v1_fields().add("latest-revision-checksum", String(), OMIT)


_SECRET_SCHEMAS = SchemaRegistry.from_functions("secret", {1: _secret_v1_fields, 2: _secret_v2_fields})


def _secret_from_valid(valid: dict[str, Any], version: int) -> Secret:
    secret = Secret(
        id=valid["id"],
        version=valid["secret-version"],
        description=valid["description"],
        label=valid["label"],
        rotate_policy=valid.get("rotate-policy", ""),
        auto_prune=valid.get("auto-prune", False),
        owner=valid["owner"],
        created=valid["create-time"],
        updated=valid["update-time"],
        next_rotate_time=valid.get("next-rotate-time"),
    )
    if version >= 2:
        secret.latest_revision_checksum = valid.get("latest-revision-checksum", "")

    for subject, access in valid.get("acl", {}).items():
        if not isinstance(access, dict):
            raise SchemaError(f"unexpected value for subject {subject}, {type(access).__name__}")
        try:
            secret.acl[subject] = import_item(
                access,
                kind="secret access",
                version=version,
                schema=_ACCESS_SCHEMAS.lookup(version),
                build=_access_from_valid,
            )
        except DescriptionError as exc:
            raise exc.annotated(f"access for {subject}") from exc

    secret.revisions = import_list(
        valid["revisions"],
        kind="revision",
        version=version,
        schema=_REVISION_SCHEMAS.lookup(version),
        build=_revision_from_valid,
    )
    secret.consumers = import_list(
        valid.get("consumers", []),
        kind="consumer",
        version=version,
        schema=_CONSUMER_SCHEMAS.lookup(version),
        build=_consumer_from_valid,
    )
    secret.remote_consumers = import_list(
        valid.get("remote-consumers", []),
        kind="remote consumer",
        version=version,
        schema=_REMOTE_CONSUMER_SCHEMAS.lookup(version),
        build=_remote_consumer_from_valid,
    )
    return secret


def _secret_to_dict(secret: Secret) -> dict[str, Any]:
    d: dict[str, Any] = {
        "id": secret.id,
        "secret-version": secret.version,
        "description": secret.description,
        "label": secret.label,
        "owner": secret.owner,
        "create-time": secret.created,
        "update-time": secret.updated,
        "revisions": [_revision_to_dict(revision) for revision in secret.revisions],
    }
    if secret.rotate_policy:
        d["rotate-policy"] = secret.rotate_policy
    if secret.auto_prune:
        d["auto-prune"] = True
    if secret.next_rotate_time is not None:
        d["next-rotate-time"] = secret.next_rotate_time
    if secret.latest_revision_checksum:
        d["latest-revision-checksum"] = secret.latest_revision_checksum
    if secret.acl:
        d["acl"] = {subject: {"scope": a.scope, "role": a.role} for subject, a in secret.acl.items()}
    if secret.consumers:
        d["consumers"] = [_consumer_to_dict(consumer) for consumer in secret.consumers]
    if secret.remote_consumers:
        d["remote-consumers"] = [
            {"id": remote.id, "consumer": remote.consumer, "current-revision": remote.current_revision}
            for remote in secret.remote_consumers
        ]
    return d


def _access_v1_fields() -> FieldSchema:
    return FieldSchema.of({"scope": String(), "role": String()})


_ACCESS_SCHEMAS = SchemaRegistry.from_functions("secret access", {1: _access_v1_fields, 2: _access_v1_fields})


def _access_from_valid(valid: dict[str, Any], version: int) -> SecretAccess:
    return SecretAccess(scope=valid["scope"], role=valid["role"])


def _revision_v1_fields() -> FieldSchema:
    return FieldSchema.of(
        {
            "number": Int(),
            "create-time": Time(),
            "update-time": Time(),
            "obsolete": Bool(),
            "pending-delete": Bool(),
            "expire-time": Time(),
            "value-ref": StringMap(String()),
            "content": StringMap(String()),
        },
        {
            "value-ref": OMIT,
            "content": OMIT,
            "expire-time": OMIT,
            "obsolete": False,
            "pending-delete": False,
        },
    )


_REVISION_SCHEMAS = SchemaRegistry.from_functions(
    "secret revision",
    {1: _revision_v1_fields, 2: _revision_v1_fields},
)


def _revision_from_valid(valid: dict[str, Any], version: int) -> SecretRevision:
    revision = SecretRevision(
        number=valid["number"],
        created=valid["create-time"],
        updated=valid["update-time"],
        obsolete=valid["obsolete"],
        pending_delete=valid["pending-delete"],
        expire_time=valid.get("expire-time"),
        content=valid.get("content", {}),
    )
    if "value-ref" in valid:
        ref = valid["value-ref"]
        if not ref.get("backend-id") or not ref.get("revision-id"):
            raise NotValidError(f"incomplete secret value ref for revision {revision.number}")
        revision.value_ref = SecretValueRef(backend_id=ref["backend-id"], revision_id=ref["revision-id"])
    return revision


def _revision_to_dict(revision: SecretRevision) -> dict[str, Any]:
    d: dict[str, Any] = {
        "number": revision.number,
        "create-time": revision.created,
        "update-time": revision.updated,
    }
    if revision.obsolete:
        d["obsolete"] = True
    if revision.pending_delete:
        d["pending-delete"] = True
    if revision.content:
        d["content"] = dict(revision.content)
    if revision.value_ref is not None:
        d["value-ref"] = {"backend-id": revision.value_ref.backend_id, "revision-id": revision.value_ref.revision_id}
    if revision.expire_time is not None:
        d["expire-time"] = revision.expire_time
    return d


def _consumer_v1_fields() -> FieldSchema:
    return FieldSchema.of(
        {"consumer": String(), "label": String(), "current-revision": Int()},
        {"label": OMIT},
    )


_CONSUMER_SCHEMAS = SchemaRegistry.from_functions(
    "secret consumer",
    {1: _consumer_v1_fields, 2: _consumer_v1_fields},
)


def _consumer_from_valid(valid: dict[str, Any], version: int) -> SecretConsumer:
    return SecretConsumer(
        consumer=valid["consumer"],
        label=valid.get("label", ""),
        current_revision=valid["current-revision"],
    )


def _consumer_to_dict(consumer: SecretConsumer) -> dict[str, Any]:
    d: dict[str, Any] = {"consumer": consumer.consumer, "current-revision": consumer.current_revision}
    if consumer.label:
        d["label"] = consumer.label
    return d


def _remote_consumer_v1_fields() -> FieldSchema:
    return FieldSchema.of({"id": String(), "consumer": String(), "current-revision": Int()})


_REMOTE_CONSUMER_SCHEMAS = SchemaRegistry.from_functions(
    "secret remote consumer",
    {1: _remote_consumer_v1_fields, 2: _remote_consumer_v1_fields},
)


def _remote_consumer_from_valid(valid: dict[str, Any], version: int) -> SecretRemoteConsumer:
    return SecretRemoteConsumer(
        id=valid["id"],
        consumer=valid["consumer"],
        current_revision=valid["current-revision"],
    )


def _remote_secret_v1_fields() -> FieldSchema:
    return FieldSchema.of(
        {
            "id": String(),
            "source-uuid": String(),
            "consumer": String(),
            "label": String(),
            "current-revision": Int(),
            "latest-revision": Int(),
        },
        {"label": OMIT},
    )


_REMOTE_SECRET_SCHEMAS = SchemaRegistry.from_functions("remote secret", {1: _remote_secret_v1_fields})


def _remote_secret_from_valid(valid: dict[str, Any], version: int) -> RemoteSecret:
    return RemoteSecret(
        id=valid["id"],
        source_uuid=valid["source-uuid"],
        consumer=valid["consumer"],
        label=valid.get("label", ""),
        current_revision=valid["current-revision"],
        latest_revision=valid["latest-revision"],
    )


def _remote_secret_to_dict(secret: RemoteSecret) -> dict[str, Any]:
    d: dict[str, Any] = {
        "id": secret.id,
        "source-uuid": secret.source_uuid,
        "consumer": secret.consumer,
        "current-revision": secret.current_revision,
        "latest-revision": secret.latest_revision,
    }
    if secret.label:
        d["label"] = secret.label
    return d
