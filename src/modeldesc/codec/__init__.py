# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Serialization of model documents to and from YAML."""

from modeldesc.codec.yaml_codec import deserialize, read_model, serialize, write_model

__all__ = [
    "serialize",
    "deserialize",
    "write_model",
    "read_model",
]
