# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Entity tags: ``<kind>-<id>`` strings naming an entity of the model.

Older documents refer to owners and consumers by tag (``unit-mysql-0``,
``application-mysql``, ``model-<uuid>``). Only the kinds that appear in model
documents are understood.
"""

from __future__ import annotations

import re
from typing import NamedTuple

from modeldesc.errors import NotValidError

# ###############
# Public Interface
# ###############

APPLICATION = "application"
MACHINE = "machine"
MODEL = "model"
UNIT = "unit"
USER = "user"


class Tag(NamedTuple):
    """A parsed tag; ``id`` is the entity name, e.g. ``mysql/0`` for a unit."""

    kind: str
    id: str

    def __str__(self) -> str:
        if self.kind == UNIT:
            return f"unit-{self.id.replace('/', '-')}"
        if self.kind == MACHINE:
            return f"machine-{self.id.replace('/', '-')}"
        return f"{self.kind}-{self.id}"


def is_valid_unit_name(name: str) -> bool:
    """Return True for unit names such as ``mysql/0`` or ``my-app/12``."""
    return _VALID_UNIT.match(name) is not None


def is_valid_application_name(name: str) -> bool:
    return _VALID_APPLICATION.match(name) is not None


def parse_tag(text: str) -> Tag:
    """Parse ``text`` into a :class:`Tag`.

    Raises:
        NotValidError: If the kind is unknown or the id is malformed for the kind.
    """
    kind, sep, rest = text.partition("-")
    if sep and rest:
        if kind == UNIT:
            application, _, number = rest.rpartition("-")
            name = f"{application}/{number}"
            if is_valid_unit_name(name):
                return Tag(UNIT, name)
        elif kind == APPLICATION:
            if is_valid_application_name(rest):
                return Tag(APPLICATION, rest)
        elif kind == MACHINE:
            machine_id = rest.replace("-", "/")
            if _VALID_MACHINE.match(machine_id):
                return Tag(MACHINE, machine_id)
        elif kind in (MODEL, USER):
            return Tag(kind, rest)
    raise NotValidError(f'"{text}" is not a valid tag')


def unit_name_from_tag(text: str) -> str:
    """Convert a unit tag ``unit-my-app-0`` to the unit name ``my-app/0``.

    Raises:
        NotValidError: If ``text`` is not the tag of a unit.
    """
    if not text.startswith("unit-"):
        raise NotValidError(f'"{text}" is not a valid unit tag')
    return parse_tag(text).id


# ################
# Implementation
# ################

_APPLICATION_SNIPPET = r"[a-z][a-z0-9]*(?:-[a-z0-9]*[a-z][a-z0-9]*)*"
_NUMBER_SNIPPET = r"(?:0|[1-9][0-9]*)"

_VALID_APPLICATION = re.compile(rf"^{_APPLICATION_SNIPPET}$")
_VALID_UNIT = re.compile(rf"^{_APPLICATION_SNIPPET}/{_NUMBER_SNIPPET}$")
_VALID_MACHINE = re.compile(rf"^{_NUMBER_SNIPPET}(?:/[a-z]+/{_NUMBER_SNIPPET})*$")
