"""Decode task bodies listed under their "<node_id>:<id>" key.

Task listings are objects keyed by task id:

    {"nodeA:42": {"node": "nodeA", "id": 42, "type": "transport", ...}}

The key is the task's identity, so decode() takes it as a separate name
argument. "node" and "id" inside the body repeat it and are type-checked,
then dropped.

Unknown-field policy, selectable via TASKS_DECODE_STRICT env var:
- lenient (default): fields outside the decode table are ignored
- strict: fields outside the decode table raise UnknownFieldError
"""

from __future__ import annotations

import json
import os
from collections.abc import Callable, Iterable, Mapping
from typing import Any, NamedTuple

from taskinfo.observability.logging import decode_scope, get_logger
from taskinfo.observability.redaction import safe_log_context

from .errors import (
    FieldTypeMismatchError,
    MalformedIdentityError,
    ParentIdentityMalformedError,
    TaskDecodeError,
    UnknownFieldError,
)
from .task_id import MalformedTaskIdError, TaskId
from .task_info import TaskInfo

logger = get_logger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_LONG_MIN = -(2**63)
_LONG_MAX = 2**63 - 1


def _strict_from_env() -> bool:
    return os.environ.get("TASKS_DECODE_STRICT", "false").strip().lower() in _TRUE_VALUES


class _ObjectPairs(list):
    """JSON object as (key, value) pairs, in document order, duplicates kept."""


def _json_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (Mapping, _ObjectPairs)):
        return "object"
    if isinstance(value, (list, tuple)):
        return "array"
    return type(value).__name__


def _object_fields(value: Any) -> Iterable[tuple[str, Any]]:
    if isinstance(value, Mapping):
        return value.items()
    return value


class _TaskBuilder:
    """Field values collected during a single decode pass."""

    def __init__(self, task_id: TaskId) -> None:
        self.task_id = task_id
        self.type: str | None = None
        self.action: str | None = None
        self.description: str | None = None
        self.start_time = 0
        self.running_time_nanos = 0
        self.cancellable = False
        self.parent_task_id: TaskId | None = None
        self.headers: dict[str, str] = {}

    def build(self) -> TaskInfo:
        return TaskInfo(
            task_id=self.task_id,
            type=self.type,
            action=self.action,
            description=self.description,
            start_time=self.start_time,
            running_time_nanos=self.running_time_nanos,
            cancellable=self.cancellable,
            parent_task_id=self.parent_task_id,
            headers=self.headers,
        )


def _ignore(builder: _TaskBuilder, value: Any) -> None:
    pass


def _set_parent_task_id(builder: _TaskBuilder, value: str) -> None:
    try:
        parent = TaskId.parse(value)
    except MalformedTaskIdError as e:
        raise ParentIdentityMalformedError(value) from e
    builder.parent_task_id = parent if parent.is_set else None


def _merge_headers(builder: _TaskBuilder, value: Any) -> None:
    for key, header_value in _object_fields(value):
        if not isinstance(header_value, str):
            raise FieldTypeMismatchError(
                f"headers.{key}", "string", _json_type(header_value), header_value
            )
        builder.headers[key] = header_value


def _setter(attr: str) -> Callable[[_TaskBuilder, Any], None]:
    def assign(builder: _TaskBuilder, value: Any) -> None:
        setattr(builder, attr, value)

    return assign


class _Field(NamedTuple):
    kind: str  # "string", "long", "boolean" or "object"
    assign: Callable[[_TaskBuilder, Any], None]
    nullable: bool = False


DECODE_TABLE: dict[str, _Field] = {
    # already provided by the name token
    "node": _Field("string", _ignore),
    "id": _Field("long", _ignore),
    "type": _Field("string", _setter("type")),
    "action": _Field("string", _setter("action")),
    "description": _Field("string", _setter("description"), nullable=True),
    "start_time_in_millis": _Field("long", _setter("start_time")),
    "running_time_in_nanos": _Field("long", _setter("running_time_nanos")),
    "cancellable": _Field("boolean", _setter("cancellable")),
    "parent_task_id": _Field("string", _set_parent_task_id, nullable=True),
    "headers": _Field("object", _merge_headers),
}


def _conforms(kind: str, value: Any) -> bool:
    if kind == "string":
        return isinstance(value, str)
    if kind == "long":
        # bool is an int subclass, but JSON true is not a number
        return (
            isinstance(value, int)
            and not isinstance(value, bool)
            and _LONG_MIN <= value <= _LONG_MAX
        )
    if kind == "boolean":
        return isinstance(value, bool)
    if kind == "object":
        return isinstance(value, (Mapping, _ObjectPairs))
    raise ValueError(f"Unknown field kind: {kind}")


def _body_fields(body: Any) -> Iterable[tuple[str, Any]]:
    """Fields of a task body in document order.

    Accepts a mapping or a sequence of (key, value) tuples; the latter may
    repeat a key.
    """
    if isinstance(body, (Mapping, _ObjectPairs)):
        return _object_fields(body)
    # JSON arrays decode to plain lists; only non-empty tuple pairs qualify
    if isinstance(body, (list, tuple)) and body and all(
        isinstance(pair, tuple) and len(pair) == 2 for pair in body
    ):
        return body
    raise TaskDecodeError(f"task body must be an object, found {_json_type(body)}")


class TaskInfoDecoder:
    """Decoder for named task bodies.

    Stateless apart from the unknown-field policy, so one instance can be
    shared between threads.
    """

    def __init__(self, strict: bool | None = None) -> None:
        """Initialize decoder.

        Args:
            strict: Reject unknown fields. Defaults to TASKS_DECODE_STRICT.
        """
        self._strict = _strict_from_env() if strict is None else strict

    @property
    def strict(self) -> bool:
        return self._strict

    def decode(self, name: str, body: Any) -> TaskInfo:
        """Decode one task body listed under `name`.

        Args:
            name: Key the body appeared under, "<node_id>:<id>".
            body: Mapping, or (key, value) pairs in document order.

        Returns:
            Fully populated TaskInfo.

        Raises:
            MalformedIdentityError: If name is not a task id. Raised before
                any body field is read.
            ParentIdentityMalformedError: If parent_task_id is malformed.
            FieldTypeMismatchError: If a known field has the wrong type.
            UnknownFieldError: If strict and a field is not in the table.
            TaskDecodeError: If body is not an object.
        """
        try:
            task = self._decode(name, body)
        except TaskDecodeError as e:
            logger.warning(
                "task decode failed",
                extra={
                    "extra_fields": safe_log_context(
                        task_name=name,
                        error_type=type(e).__name__,
                        field_name=getattr(e, "field_name", None),
                        value=getattr(e, "value", None),
                    ),
                },
            )
            raise

        logger.debug(
            "task decoded",
            extra={
                "extra_fields": safe_log_context(
                    task_id=str(task.task_id),
                    action=task.action,
                    description=task.description,
                    headers=dict(task.headers),
                ),
            },
        )
        return task

    def _decode(self, name: str, body: Any) -> TaskInfo:
        if not isinstance(name, str):
            raise MalformedIdentityError(str(name))
        try:
            task_id = TaskId.parse(name)
        except MalformedTaskIdError as e:
            raise MalformedIdentityError(name) from e
        if not task_id.is_set:
            raise MalformedIdentityError(name)

        builder = _TaskBuilder(task_id)
        for field_name, value in _body_fields(body):
            spec = DECODE_TABLE.get(field_name)
            if spec is None:
                if self._strict:
                    raise UnknownFieldError(field_name)
                logger.debug(
                    "ignoring unknown task field",
                    extra={
                        "extra_fields": safe_log_context(
                            task_id=name, field_name=field_name
                        ),
                    },
                )
                continue

            if value is None and spec.nullable:
                continue
            if not _conforms(spec.kind, value):
                raise FieldTypeMismatchError(
                    field_name, spec.kind, _json_type(value), value
                )
            spec.assign(builder, value)

        return builder.build()


def _load_json(text: str | bytes) -> Any:
    try:
        return json.loads(text, object_pairs_hook=_ObjectPairs)
    except json.JSONDecodeError as e:
        raise TaskDecodeError(f"invalid JSON: {e.msg}") from e


def decode(name: str, body: Any, *, strict: bool | None = None) -> TaskInfo:
    """Decode one named task body. See TaskInfoDecoder.decode."""
    return TaskInfoDecoder(strict).decode(name, body)


def decode_json(name: str, text: str | bytes, *, strict: bool | None = None) -> TaskInfo:
    """Decode a task body given as raw JSON text.

    Document order and repeated keys are preserved, so a body with two
    "headers" objects gets the union of both.
    """
    return TaskInfoDecoder(strict).decode(name, _load_json(text))


def decode_named_tasks(
    tasks: Any,
    *,
    strict: bool | None = None,
    scope: str | None = None,
) -> list[TaskInfo]:
    """Decode every entry of a "<node_id>:<id>" -> body collection.

    Args:
        tasks: Mapping, (key, value) pairs, or raw JSON text of an object.
        strict: Reject unknown fields. Defaults to TASKS_DECODE_STRICT.
        scope: Optional label (e.g. the owning node id) added to log records.

    Returns:
        Decoded tasks in document order.

    Raises:
        TaskDecodeError: On the first entry that fails; no partial list.
    """
    if isinstance(tasks, (str, bytes)):
        tasks = _load_json(tasks)

    decoder = TaskInfoDecoder(strict)
    with decode_scope(scope or ""):
        decoded = [decoder.decode(name, body) for name, body in _body_fields(tasks)]
        logger.debug(
            "tasks decoded",
            extra={"extra_fields": safe_log_context(count=len(decoded))},
        )
    return decoded
