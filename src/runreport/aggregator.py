"""Aggregates finalized change records and run-level status into a report."""

from __future__ import annotations

import traceback
from typing import Any

import structlog

from runreport.core.errors import RecordStateError
from runreport.resources import Node
from runreport.schema import ResourceEntry, RunException, RunReport
from runreport.tracker import ResourceChangeRecord

logger = structlog.get_logger()

STATUS_SUCCESS = "success"
STATUS_FAILED = "failed"


def entry_for(record: ResourceChangeRecord) -> ResourceEntry:
    """Render one finalized record in wire form."""
    identity = record.identity
    before = record.before
    return ResourceEntry(
        type=identity.resource_type,
        name=identity.name,
        id=identity.identity,
        after=dict(record.after),
        before=dict(before) if before is not None else None,
        duration=str(record.elapsed_ms),
        delta="",
        result=str(record.action),
        cookbook_name=identity.cookbook_name,
        cookbook_version=identity.cookbook_version,
    )


def exception_for(exc: BaseException) -> RunException:
    """Describe a run-level exception; ``backtrace`` is empty if it was never raised."""
    backtrace = [line.rstrip("\n") for line in traceback.format_tb(exc.__traceback__)]
    return RunException(
        class_=repr(exc),
        message=str(exc),
        backtrace=backtrace,
        description=f"{type(exc).__name__}: {exc}",
    )


class ReportAggregator:
    """Ordered, append-only collection of finalized change records."""

    def __init__(self) -> None:
        self._records: list[ResourceChangeRecord] = []
        self.status = STATUS_SUCCESS
        self.exception: BaseException | None = None
        self.data: dict[str, Any] = {}

    @property
    def updated_resources(self) -> list[ResourceChangeRecord]:
        return list(self._records)

    def append(self, record: ResourceChangeRecord) -> None:
        if not record.finished:
            raise RecordStateError("Cannot aggregate an unfinished record", {"resource": str(record.identity)})
        self._records.append(record)

    def record_failure(self, exc: BaseException) -> None:
        if self.exception is not None:
            logger.debug("run_failure_replaced", previous=repr(self.exception), current=repr(exc))
        self.exception = exc
        self.status = STATUS_FAILED

    def build_report(self, node: Node, total_resource_count: int) -> RunReport:
        return RunReport(
            resources=[entry_for(record) for record in self._records],
            status=self.status,
            run_list=node.run_list_json(),
            total_res_count=str(total_resource_count),
            exception=exception_for(self.exception) if self.exception is not None else None,
            data=dict(self.data),
        )
