# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Cross-entity consistency checks for model documents (dangling refs, missing settings, etc.)."""

from modeldesc.validation.checks import validate

__all__ = [
    "validate",
]
