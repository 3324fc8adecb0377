"""
Lifecycle events emitted by the convergence engine.

The set is closed: the reporter handles exactly these messages, in the
order the engine emits them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Union

from runreport.core.errors import EventFormatError
from runreport.resources import ConvergedResource, DeclaredResource, Node


@dataclass(frozen=True)
class SessionBegin:
    node: Node


@dataclass(frozen=True)
class CurrentStateLoaded:
    resource: ConvergedResource
    action: str
    current_state: ConvergedResource


@dataclass(frozen=True)
class UpToDate:
    resource: ConvergedResource
    action: str


@dataclass(frozen=True)
class Skipped:
    resource: ConvergedResource
    action: str
    reason: str | None = None


@dataclass(frozen=True)
class Updated:
    resource: ConvergedResource
    action: str


@dataclass(frozen=True)
class Failed:
    resource: ConvergedResource
    action: str
    exception: BaseException


@dataclass(frozen=True)
class SessionEnd:
    node: Node
    exception: BaseException | None = None


ResourceEvent = Union[CurrentStateLoaded, UpToDate, Skipped, Updated, Failed]
RunEvent = Union[SessionBegin, ResourceEvent, SessionEnd]


class RecordedFailure(Exception):
    """Exception rebuilt from a recorded event log."""

    def __init__(self, message: str, kind: str = "RecordedFailure") -> None:
        super().__init__(message)
        self.kind = kind

    def __repr__(self) -> str:
        return f"{self.kind}({str(self)!r})"


def _resource(data: Mapping[str, Any], key: str = "resource") -> DeclaredResource:
    raw = data.get(key)
    if not isinstance(raw, Mapping) or "type" not in raw or "name" not in raw:
        raise EventFormatError(f"Event is missing a valid '{key}'", {"event": data.get("event")})
    return DeclaredResource.from_dict(raw)


def _failure(raw: Any) -> RecordedFailure:
    if isinstance(raw, Mapping):
        return RecordedFailure(str(raw.get("message", "")), str(raw.get("class", "RecordedFailure")))
    return RecordedFailure(str(raw))


def event_from_dict(data: Mapping[str, Any], node: Node) -> RunEvent:
    """
    Decode one recorded event.

    Recorded events look like::

        {"event": "updated", "action": "create",
         "resource": {"type": "file", "name": "/etc/motd", "elapsed_time": 0.15}}

    ``current_state_loaded`` events carry the loaded state under
    ``current_state``; ``failed`` events carry ``exception`` as a string or
    a ``{"class", "message"}`` mapping.
    """
    kind = data.get("event")
    action = str(data.get("action", "nothing"))

    if kind == "session_begin":
        return SessionBegin(node)
    if kind == "session_end":
        raw = data.get("exception")
        return SessionEnd(node, _failure(raw) if raw else None)
    if kind == "current_state_loaded":
        resource = _resource(data)
        current_state = DeclaredResource.from_dict(
            {**data["resource"], "state": data.get("current_state") or {}}
        )
        return CurrentStateLoaded(resource, action, current_state)
    if kind == "up_to_date":
        return UpToDate(_resource(data), action)
    if kind == "skipped":
        return Skipped(_resource(data), action, data.get("reason"))
    if kind == "updated":
        return Updated(_resource(data), action)
    if kind == "failed":
        return Failed(_resource(data), action, _failure(data.get("exception", "resource failed")))

    raise EventFormatError(f"Unknown event kind: {kind!r}")
