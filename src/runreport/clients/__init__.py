from runreport.clients.run_history import (
    BeginRunOutcome,
    RunCreated,
    RunHistoryClient,
    RunHistoryUnsupported,
    run_id_from_uri,
)

__all__ = [
    "BeginRunOutcome",
    "RunCreated",
    "RunHistoryClient",
    "RunHistoryUnsupported",
    "run_id_from_uri",
]
