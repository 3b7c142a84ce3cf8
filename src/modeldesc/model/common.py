# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Schema fragments shared by several entity kinds."""

from __future__ import annotations

from typing import Any

from modeldesc.schema.checkers import OMIT, String, StringMap
from modeldesc.schema.registry import FieldSchema

ANNOTATIONS_SCHEMA = FieldSchema.of({"annotations": StringMap(String())}, {"annotations": OMIT})


def import_annotations(valid: dict[str, Any]) -> dict[str, str]:
    return dict(valid.get("annotations", {}))


def put_annotations(d: dict[str, Any], annotations: dict[str, str]) -> None:
    if annotations:
        d["annotations"] = dict(annotations)
