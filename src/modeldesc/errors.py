# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Error taxonomy shared by the whole model description package.

Errors never get swallowed. Each recursive call boundary adds context with
:meth:`DescriptionError.annotated`, so that a failure deep inside a document
reads like ``machine 0: containers: machine 1: machine v1 schema check failed:
tools: expected map, got nothing``.
"""

from __future__ import annotations

import copy

# ###############
# Public Interface
# ###############


class DescriptionError(Exception):
    """Base class for every error raised while importing, exporting or validating a model."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def annotated(self, context: str) -> DescriptionError:
        """Return a copy of this error with ``context`` prepended to its message."""
        result = copy.copy(self)
        result.message = f"{context}: {self.message}"
        result.args = (result.message,)
        return result

    def __str__(self) -> str:
        return self.message


class SchemaError(DescriptionError):
    """Raised when a decoded value does not have the shape a checker expects."""


class NotValidError(DescriptionError):
    """Raised for an unknown version or when an invariant of the model does not hold."""
