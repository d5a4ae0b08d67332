"""Errors raised while decoding a task body.

A failed decode never yields a partial record: every error propagates to
the caller of decode().
"""

from __future__ import annotations

from typing import Any


class TaskDecodeError(Exception):
    """Base class for task decode failures."""


class MalformedIdentityError(TaskDecodeError):
    """Name token under which the task appeared is not "<node_id>:<id>"."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"malformed task identity {name!r}")


class ParentIdentityMalformedError(TaskDecodeError):
    """parent_task_id value is not a combined "<node_id>:<id>" string."""

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(f"malformed parent_task_id {value!r}")


class FieldTypeMismatchError(TaskDecodeError):
    """A known field carries a value of the wrong JSON type."""

    def __init__(
        self, field_name: str, expected: str, actual: str, value: Any = None
    ) -> None:
        self.field_name = field_name
        self.expected = expected
        self.actual = actual
        self.value = value
        super().__init__(
            f"field [{field_name}] expected {expected}, found {actual}"
        )


class UnknownFieldError(TaskDecodeError):
    """Field outside the decode table (strict mode only)."""

    def __init__(self, field_name: str) -> None:
        self.field_name = field_name
        super().__init__(f"unknown field [{field_name}]")
