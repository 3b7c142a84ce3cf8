# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Agent binary metadata carried by machines, units and applications."""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel

from modeldesc.errors import NotValidError
from modeldesc.model.series import series_os
from modeldesc.schema.checkers import Int, String
from modeldesc.schema.envelope import import_self_versioned, self_versioned_to_dict
from modeldesc.schema.registry import FieldSchema, SchemaRegistry

# ###############
# Public Interface
# ###############


class AgentTools(BaseModel):
    """The agent binary an entity runs.

    Attributes:
        version: Binary version ``<number>-<os>-<arch>``, e.g. ``3.1.0-ubuntu-amd64``.
    """

    version: str
    url: str = ""
    sha256: str = ""
    size: int = 0


def import_agent_tools(source: Any) -> AgentTools:
    """Import a self-versioned agent tools document."""
    return import_self_versioned(source, kind="agent tools", registry=_AGENT_TOOLS_SCHEMAS, build=_tools_from_valid)


def agent_tools_to_dict(tools: AgentTools) -> dict[str, Any]:
    return self_versioned_to_dict(
        _AGENT_TOOLS_SCHEMAS,
        {
            "tools-version": tools.version,
            "url": tools.url,
            "sha256": tools.sha256,
            "size": tools.size,
        },
    )


def parse_binary_version(text: str) -> tuple[str, str, str]:
    """Split a binary version into its number, operating system (or series) and architecture.

    Raises:
        NotValidError: If ``text`` is not of the form ``<number>-<os>-<arch>``.
    """
    match = _BINARY_VERSION.match(text)
    if match is None:
        raise NotValidError(f'binary version "{text}" not valid')
    return match.group("number"), match.group("os"), match.group("arch")


# ################
# Implementation
# ################

_BINARY_VERSION = re.compile(r"^(?P<number>\d\S*)-(?P<os>[^-]+)-(?P<arch>[^-]+)$")


def _agent_tools_v1_fields() -> FieldSchema:
    return FieldSchema.of(
        {
            "tools-version": String(),
            "url": String(),
            "sha256": String(),
            "size": Int(),
        }
    )


def _agent_tools_v2_fields() -> FieldSchema:
    # Same fields; the binary version names the os instead of the series.
    return _agent_tools_v1_fields()


_AGENT_TOOLS_SCHEMAS = SchemaRegistry.from_functions(
    "agent tools",
    {1: _agent_tools_v1_fields, 2: _agent_tools_v2_fields},
)


def _tools_from_valid(valid: dict[str, Any], version: int) -> AgentTools:
    text = valid["tools-version"]
    try:
        number, os_or_series, arch = parse_binary_version(text)
        if version < 2:
            text = f"{number}-{series_os(os_or_series)}-{arch}"
    except NotValidError as exc:
        raise exc.annotated("agent tools tools-version") from exc
    return AgentTools(version=text, url=valid["url"], sha256=valid["sha256"], size=valid["size"])
