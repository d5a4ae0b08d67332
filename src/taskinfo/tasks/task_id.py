"""Aggregate task identity: owning node id + node-local numeric id.

Wire form is "<node_id>:<id>". The literal "unset" (or an empty string)
stands for a task id that was never assigned.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import ClassVar

UNSET_TEXT = "unset"

_SEPARATOR = ":"
_LOCAL_ID_PATTERN = re.compile(r"[+-]?[0-9]+")
_LONG_MIN = -(2**63)
_LONG_MAX = 2**63 - 1


class MalformedTaskIdError(ValueError):
    """Raised when a string does not parse as "<node_id>:<id>"."""

    def __init__(self, text: str) -> None:
        self.text = text
        super().__init__(f"malformed task id {text}")


@dataclass(frozen=True)
class TaskId:
    """Identity of a task within the cluster.

    Attributes:
        node_id: Id of the node that owns the task ("" when unset).
        id: Task id local to that node (-1 when unset).
    """

    node_id: str
    id: int

    UNSET: ClassVar[TaskId]

    @classmethod
    def parse(cls, text: str) -> TaskId:
        """Parse the combined "<node_id>:<id>" form.

        Splits on the first separator only, so "a:b:c" is rejected because
        "b:c" is not a number.

        Raises:
            MalformedTaskIdError: If text has no separator or the local id is
                not a 64-bit integer.
        """
        if not text or text == UNSET_TEXT:
            return cls.UNSET

        node_id, sep, local = text.partition(_SEPARATOR)
        if not sep or not _LOCAL_ID_PATTERN.fullmatch(local):
            raise MalformedTaskIdError(text)

        local_id = int(local)
        if not _LONG_MIN <= local_id <= _LONG_MAX:
            raise MalformedTaskIdError(text)

        return cls(node_id, local_id)

    @property
    def is_set(self) -> bool:
        # only the "unset" sentinel; "n:-1" is a real id
        return self != TaskId.UNSET

    def __str__(self) -> str:
        if not self.is_set:
            return UNSET_TEXT
        return f"{self.node_id}{_SEPARATOR}{self.id}"


TaskId.UNSET = TaskId("", -1)
