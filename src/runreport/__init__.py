"""
Convergence run reporting.

Listens to the lifecycle events of a configuration-management run,
records which top-level resources changed or failed, and submits the
run report to a run history service.
"""

from runreport.aggregator import ReportAggregator
from runreport.clients.run_history import (
    RunCreated,
    RunHistoryClient,
    RunHistoryUnsupported,
    run_id_from_uri,
)
from runreport.dispatch import EventDispatcher
from runreport.events import (
    CurrentStateLoaded,
    Failed,
    RunEvent,
    SessionBegin,
    SessionEnd,
    Skipped,
    Updated,
    UpToDate,
    event_from_dict,
)
from runreport.reporter import ResourceReporter
from runreport.resources import ConvergedResource, DeclaredResource, Node, ResourceIdentity
from runreport.schema import ResourceEntry, RunException, RunReport
from runreport.session import RunSession
from runreport.tracker import (
    PendingUpdateTracker,
    ResourceChangeRecord,
    TrackerState,
    apply_event,
)

__version__ = "0.1.0"

__all__ = [
    "ConvergedResource",
    "CurrentStateLoaded",
    "DeclaredResource",
    "EventDispatcher",
    "Failed",
    "Node",
    "PendingUpdateTracker",
    "ReportAggregator",
    "ResourceChangeRecord",
    "ResourceEntry",
    "ResourceIdentity",
    "ResourceReporter",
    "RunCreated",
    "RunEvent",
    "RunException",
    "RunHistoryClient",
    "RunHistoryUnsupported",
    "RunReport",
    "RunSession",
    "SessionBegin",
    "SessionEnd",
    "Skipped",
    "TrackerState",
    "UpToDate",
    "Updated",
    "apply_event",
    "event_from_dict",
    "run_id_from_uri",
]
