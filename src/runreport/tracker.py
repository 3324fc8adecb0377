"""
Pending-update tracking for resource lifecycle events.

At most one resource is "pending" at a time: the one whose current state
was loaded most recently and that has not yet been reported as up to
date, updated or failed. Events for any *other* resource that arrive
while a resource is pending come from the provider's internal
sub-resources; they are counted but never reported on their own.

The transitions are pure functions over :class:`TrackerState` so they can
be exercised without a listener. :class:`PendingUpdateTracker` wraps them
for the reporter.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping

from runreport.core.errors import RecordStateError
from runreport.events import (
    CurrentStateLoaded,
    Failed,
    ResourceEvent,
    Skipped,
    Updated,
    UpToDate,
)
from runreport.resources import ConvergedResource, ResourceIdentity


@dataclass
class ResourceChangeRecord:
    """What happened to one top-level resource during the run."""

    resource: ConvergedResource
    action: str
    current_resource: ConvergedResource | None = None
    exception: BaseException | None = None
    elapsed_ms: int | None = None

    @classmethod
    def with_current_state(
        cls, resource: ConvergedResource, action: str, current_resource: ConvergedResource
    ) -> "ResourceChangeRecord":
        return cls(resource=resource, action=action, current_resource=current_resource)

    @classmethod
    def for_exception(cls, resource: ConvergedResource, action: str) -> "ResourceChangeRecord":
        return cls(resource=resource, action=action)

    @property
    def identity(self) -> ResourceIdentity:
        return self.resource.resource_identity()

    @property
    def before(self) -> Mapping[str, Any] | None:
        if self.current_resource is None:
            return None
        return self.current_resource.state()

    @property
    def after(self) -> Mapping[str, Any]:
        return self.resource.state()

    @property
    def finished(self) -> bool:
        return self.elapsed_ms is not None

    @property
    def success(self) -> bool:
        return self.exception is None

    def finish(self) -> None:
        """Capture the resource's elapsed time, in whole milliseconds."""
        if self.finished:
            raise RecordStateError("Change record already finished", {"resource": str(self.identity)})
        self.elapsed_ms = int(self.resource.elapsed_time * 1000)


@dataclass(frozen=True)
class TrackerState:
    pending: ResourceChangeRecord | None = None
    total: int = 0


@dataclass(frozen=True)
class Transition:
    state: TrackerState
    completed: ResourceChangeRecord | None = None


def is_nested(state: TrackerState, resource: ConvergedResource) -> bool:
    """True when another resource is pending, so ``resource`` is provider-internal."""
    return state.pending is not None and state.pending.identity != resource.resource_identity()


def _complete(
    state: TrackerState,
    record: ResourceChangeRecord,
    resource: ConvergedResource,
    exception: BaseException | None = None,
) -> Transition:
    # Finalize a copy so the input state keeps its unfinished record. The
    # engine's latest view of the resource carries the elapsed time.
    record = replace(record, resource=resource, exception=exception)
    record.finish()
    return Transition(TrackerState(pending=None, total=state.total + 1), record)


def apply_event(state: TrackerState, event: ResourceEvent) -> Transition:
    """Return the state after ``event`` and the record it finalized, if any."""
    if isinstance(event, CurrentStateLoaded):
        if is_nested(state, event.resource):
            return Transition(state)
        record = ResourceChangeRecord.with_current_state(event.resource, event.action, event.current_state)
        return Transition(replace(state, pending=record))

    if isinstance(event, Skipped):
        return Transition(replace(state, total=state.total + 1))

    if isinstance(event, UpToDate):
        if is_nested(state, event.resource):
            return Transition(replace(state, total=state.total + 1))
        return Transition(TrackerState(pending=None, total=state.total + 1))

    if isinstance(event, Updated):
        if is_nested(state, event.resource) or state.pending is None:
            return Transition(replace(state, total=state.total + 1))
        return _complete(state, state.pending, event.resource)

    if isinstance(event, Failed):
        if is_nested(state, event.resource):
            return Transition(replace(state, total=state.total + 1))
        record = state.pending or ResourceChangeRecord.for_exception(event.resource, event.action)
        return _complete(state, record, event.resource, event.exception)

    raise TypeError(f"Not a resource event: {event!r}")


class PendingUpdateTracker:
    """Holds the single pending record and the running resource count."""

    def __init__(self) -> None:
        self._state = TrackerState()

    @property
    def pending(self) -> ResourceChangeRecord | None:
        return self._state.pending

    @property
    def total_resource_count(self) -> int:
        return self._state.total

    def is_nested(self, resource: ConvergedResource) -> bool:
        return is_nested(self._state, resource)

    def apply(self, event: ResourceEvent) -> ResourceChangeRecord | None:
        transition = apply_event(self._state, event)
        self._state = transition.state
        return transition.completed
