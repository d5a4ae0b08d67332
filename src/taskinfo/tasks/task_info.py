"""Client-side view of a task reported by the task management API.

A TaskInfo is built once per decode and is read-only afterwards. Its
identity comes from the key the task was listed under, so it is the only
field without a default.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from types import MappingProxyType
from typing import Any

from .task_id import TaskId


@dataclass(frozen=True, eq=False, repr=False)
class TaskInfo:
    """Snapshot of one running task.

    Attributes:
        task_id: Aggregate id (node id + local id) of the task.
        type: Transport type the task runs on (e.g. "transport", "direct").
        action: Action name (e.g. "indices:data/read/search").
        description: Human readable description, if the task provides one.
        start_time: Start time in epoch milliseconds.
        running_time_nanos: Time the task has been running, in nanoseconds.
        cancellable: Whether the task can be cancelled.
        parent_task_id: Id of the parent task, if any.
        headers: Request headers the task was started with (read-only).
    """

    task_id: TaskId
    type: str | None = None
    action: str | None = None
    description: str | None = None
    start_time: int = 0
    running_time_nanos: int = 0
    cancellable: bool = False
    parent_task_id: TaskId | None = None
    headers: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Private copy so callers can't mutate the record through their dict
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    @property
    def node_id(self) -> str:
        return self.task_id.node_id

    @property
    def started_at(self) -> datetime:
        """Start time as a timezone-aware UTC datetime."""
        return datetime.fromtimestamp(0, timezone.utc) + timedelta(
            milliseconds=self.start_time
        )

    @property
    def running_time(self) -> timedelta:
        """Running time truncated to microsecond resolution."""
        return timedelta(microseconds=self.running_time_nanos // 1000)

    def _key(self) -> tuple[Any, ...]:
        return (
            self.task_id,
            self.type,
            self.action,
            self.description,
            self.start_time,
            self.running_time_nanos,
            self.cancellable,
            self.parent_task_id,
            frozenset(self.headers.items()),
        )

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, TaskInfo):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __repr__(self) -> str:
        return (
            "TaskInfo("
            f"task_id={self.task_id}, "
            f"type={self.type!r}, "
            f"action={self.action!r}, "
            f"description={self.description!r}, "
            f"start_time={self.start_time}, "
            f"running_time_nanos={self.running_time_nanos}, "
            f"cancellable={self.cancellable}, "
            f"parent_task_id={self.parent_task_id}, "
            f"headers={dict(self.headers)!r})"
        )

    __str__ = __repr__

    def to_dict(self) -> dict[str, Any]:
        """Render the task body as the API reports it.

        The result decodes back to an equal TaskInfo when listed under
        str(self.task_id).
        """
        body: dict[str, Any] = {
            "node": self.task_id.node_id,
            "id": self.task_id.id,
        }
        if self.type is not None:
            body["type"] = self.type
        if self.action is not None:
            body["action"] = self.action
        body["start_time_in_millis"] = self.start_time
        body["running_time_in_nanos"] = self.running_time_nanos
        body["cancellable"] = self.cancellable
        body["headers"] = dict(self.headers)
        if self.description is not None:
            body["description"] = self.description
        if self.parent_task_id is not None:
            body["parent_task_id"] = str(self.parent_task_id)
        return body
