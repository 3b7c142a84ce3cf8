# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""YAML encoding and decoding of model documents.

Serialization always writes the current version of every document. Any
historical version is accepted on deserialization and upgraded in memory.
"""

from __future__ import annotations

from pathlib import Path

import yaml

from modeldesc.errors import DescriptionError
from modeldesc.model.document import Model, import_model, model_to_dict

# ###############
# Public Interface
# ###############


def serialize(model: Model) -> str:
    """Serialize a model to YAML, keeping the key order of the export."""
    return yaml.safe_dump(model_to_dict(model), sort_keys=False, default_flow_style=False)


def deserialize(data: str, source_label: str = "<string>") -> Model:
    """Deserialize a model from YAML text.

    Args:
        data: YAML text of a model document of any known version.
        source_label: Human-readable label used in error messages (e.g. the file path).

    Returns:
        The imported model, upgraded to the current shape. It is not validated.

    Raises:
        DescriptionError: If the text is not YAML, is not a mapping, or does not
            hold a well formed model document.
    """
    try:
        source = yaml.safe_load(data)
    except yaml.YAMLError as exc:
        raise DescriptionError(f"Invalid YAML in {source_label}: {exc}") from exc
    if not isinstance(source, dict):
        raise DescriptionError(f"{source_label}: model document must be a YAML mapping")
    return import_model(source)


def write_model(model: Model, path: Path) -> None:
    """Write a model to *path*, creating parent directories as needed."""
    text = serialize(model)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise DescriptionError(f"Cannot write model file: {exc}") from exc


def read_model(path: Path) -> Model:
    """Read and deserialize a model from *path*."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise DescriptionError(f"Model file not found: {path}") from None
    except OSError as exc:
        raise DescriptionError(f"Cannot read model file: {exc}") from exc
    return deserialize(text, source_label=str(path))
