"""Run-scoped reporting session: run identity, the reporting switch, submission."""

from __future__ import annotations

from typing import Any, Protocol

import structlog

from runreport.aggregator import ReportAggregator
from runreport.clients.run_history import BeginRunOutcome, RunHistoryUnsupported
from runreport.core.errors import ReportingStateError
from runreport.resources import Node
from runreport.schema import RunReport

logger = structlog.get_logger()


class RunHistory(Protocol):
    """The two calls a session makes against the run history service."""

    def begin_run(self, node_name: str) -> BeginRunOutcome:
        ...

    def submit_run(self, node_name: str, run_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        ...


class RunSession:
    """
    State for a single convergence run.

    Reporting starts enabled and can be switched off exactly once, either
    by the operator (``enabled=False``) or when the service answers the
    begin request with "not found". It is never switched back on.
    """

    def __init__(
        self,
        client: RunHistory,
        aggregator: ReportAggregator | None = None,
        *,
        enabled: bool = True,
    ) -> None:
        self._client = client
        self._aggregator = aggregator or ReportAggregator()
        self._reporting_enabled = enabled
        self._run_id: str | None = None
        self._node: Node | None = None
        self._started = False
        self._submitted = False

    @property
    def reporting_enabled(self) -> bool:
        return self._reporting_enabled

    @property
    def run_id(self) -> str | None:
        return self._run_id

    @property
    def node(self) -> Node | None:
        return self._node

    @property
    def aggregator(self) -> ReportAggregator:
        return self._aggregator

    @property
    def status(self) -> str:
        return self._aggregator.status

    @property
    def exception(self) -> BaseException | None:
        return self._aggregator.exception

    @property
    def started(self) -> bool:
        return self._started

    def _disable(self, reason: str, **context: Any) -> None:
        self._reporting_enabled = False
        logger.debug("run_reporting_disabled", reason=reason, **context)

    def begin(self, node: Node) -> None:
        """Acquire a run id from the service; any error but "not found" propagates."""
        if self._started:
            raise ReportingStateError("Run session already started", {"node": node.name})
        self._started = True
        self._node = node

        if not self._reporting_enabled:
            logger.debug("run_reporting_disabled", reason="disabled_by_configuration", node=node.name)
            return

        outcome = self._client.begin_run(node.name)
        if isinstance(outcome, RunHistoryUnsupported):
            # Service has no run history; keep converging without reporting.
            self._disable("run_history_not_supported", path=outcome.path, status=outcome.status_code)
            return

        self._run_id = outcome.run_id
        logger.debug("run_history_started", node=node.name, run_id=self._run_id, uri=outcome.uri)

    def record_run_failure(self, exc: BaseException) -> None:
        """Mark the run failed; the exception is embedded in the final report."""
        self._aggregator.record_failure(exc)

    def end(
        self,
        node: Node,
        total_resource_count: int,
        exception: BaseException | None = None,
    ) -> RunReport | None:
        """
        Build the run report and submit it.

        Returns the submitted report, or None when reporting is disabled.
        Submission errors propagate; there is no retry at this level.
        """
        if exception is not None:
            self.record_run_failure(exception)
        if not self._reporting_enabled:
            logger.debug("run_report_skipped", reason="run_history_not_supported", node=node.name)
            return None
        if self._run_id is None:
            raise ReportingStateError("Run session ended before it began", {"node": node.name})
        if self._submitted:
            raise ReportingStateError("Run report already submitted", {"run_id": self._run_id})

        report = self._aggregator.build_report(node, total_resource_count)
        report.action = "end"
        payload = report.to_payload()
        logger.info("sending_run_report", run_id=self._run_id, resources=len(report.resources))
        logger.debug("run_report_payload", run_id=self._run_id, payload=payload)
        self._client.submit_run(node.name, self._run_id, payload)
        self._submitted = True
        return report
