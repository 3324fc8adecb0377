"""
Resource reporter: the event listener that turns engine lifecycle events
into a run report.

The engine drives :meth:`ResourceReporter.handle` (or the named callbacks,
which wrap it) synchronously and in emission order. Resource events go
through the pending-update tracker; records it finalizes are appended to
the aggregator in completion order. Session events begin and end the run
history entry.
"""

from __future__ import annotations

from typing import Any

import structlog

from runreport.aggregator import ReportAggregator
from runreport.config.settings import Settings
from runreport.events import (
    CurrentStateLoaded,
    Failed,
    RunEvent,
    SessionBegin,
    SessionEnd,
    Skipped,
    Updated,
    UpToDate,
)
from runreport.logging import bind_context
from runreport.resources import ConvergedResource, Node
from runreport.schema import RunReport
from runreport.session import RunHistory, RunSession
from runreport.tracker import PendingUpdateTracker, ResourceChangeRecord

logger = structlog.get_logger()


class ResourceReporter:
    """Listens to one convergence run and reports what changed."""

    def __init__(self, client: RunHistory, *, enabled: bool = True) -> None:
        self._aggregator = ReportAggregator()
        self._tracker = PendingUpdateTracker()
        self._session = RunSession(client, self._aggregator, enabled=enabled)
        self._last_report: RunReport | None = None

    @classmethod
    def from_settings(cls, client: RunHistory, settings: Settings) -> "ResourceReporter":
        return cls(client, enabled=settings.reporting_enabled)

    @property
    def session(self) -> RunSession:
        return self._session

    @property
    def run_id(self) -> str | None:
        return self._session.run_id

    @property
    def status(self) -> str:
        return self._session.status

    @property
    def exception(self) -> BaseException | None:
        return self._session.exception

    @property
    def reporting_enabled(self) -> bool:
        return self._session.reporting_enabled

    @property
    def updated_resources(self) -> list[ResourceChangeRecord]:
        return self._aggregator.updated_resources

    @property
    def total_resource_count(self) -> int:
        return self._tracker.total_resource_count

    @property
    def pending_update(self) -> ResourceChangeRecord | None:
        return self._tracker.pending

    @property
    def last_report(self) -> RunReport | None:
        """The report submitted at session end, if any."""
        return self._last_report

    def handle(self, event: RunEvent) -> None:
        """Apply one lifecycle event."""
        if isinstance(event, SessionBegin):
            self._session.begin(event.node)
            return

        if isinstance(event, SessionEnd):
            self._end(event)
            return

        if isinstance(event, (CurrentStateLoaded, UpToDate, Skipped, Updated, Failed)):
            self._resource_event(event)
            return

        raise TypeError(f"Unsupported run event: {event!r}")

    def _resource_event(self, event: CurrentStateLoaded | UpToDate | Skipped | Updated | Failed) -> None:
        log = bind_context(
            run_id=self.run_id,
            event_type=type(event).__name__,
            resource=str(event.resource.resource_identity()),
            action=event.action,
        )
        nested = not isinstance(event, Skipped) and self._tracker.is_nested(event.resource)
        if isinstance(event, Updated) and not nested and self._tracker.pending is None:
            log.warning("resource_updated_without_current_state")

        completed = self._tracker.apply(event)
        if completed is not None:
            self._aggregator.append(completed)
            log.debug(
                "resource_change_recorded",
                duration_ms=completed.elapsed_ms,
                success=completed.success,
            )
        elif nested:
            log.debug("nested_resource_event")

    def _end(self, event: SessionEnd) -> None:
        pending = self._tracker.pending
        if pending is not None:
            logger.debug("pending_update_dropped", resource=str(pending.identity), run_id=self.run_id)
        self._last_report = self._session.end(
            event.node,
            self._tracker.total_resource_count,
            exception=event.exception,
        )

    def report(self, node: Node | None = None) -> RunReport:
        """Synthesize the report for the run so far without submitting it."""
        target = node or self._session.node
        if target is None:
            raise ValueError("No node given and the session has not begun")
        return self._aggregator.build_report(target, self._tracker.total_resource_count)

    # Named callbacks for engines that dispatch by method name.

    def node_load_completed(self, node: Node, *args: Any) -> None:
        self.handle(SessionBegin(node))

    def resource_current_state_loaded(
        self, resource: ConvergedResource, action: str, current_resource: ConvergedResource
    ) -> None:
        self.handle(CurrentStateLoaded(resource, action, current_resource))

    def resource_up_to_date(self, resource: ConvergedResource, action: str) -> None:
        self.handle(UpToDate(resource, action))

    def resource_skipped(self, resource: ConvergedResource, action: str, reason: str | None = None) -> None:
        self.handle(Skipped(resource, action, reason))

    def resource_updated(self, resource: ConvergedResource, action: str) -> None:
        self.handle(Updated(resource, action))

    def resource_failed(self, resource: ConvergedResource, action: str, exception: BaseException) -> None:
        self.handle(Failed(resource, action, exception))

    def run_failed(self, exception: BaseException) -> None:
        self._session.record_run_failure(exception)

    def run_completed(self, node: Node, exception: BaseException | None = None) -> None:
        self.handle(SessionEnd(node, exception))
