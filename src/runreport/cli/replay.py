"""
CLI command for replaying a recorded event log through the reporter.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterator, Sequence

from runreport.cli.ux import console, error, header, print_key_value, print_table, success, warning
from runreport.clients.run_history import RunHistoryClient
from runreport.config import load_settings
from runreport.core.errors import EventFormatError, ExitCode, main_with_error_handling
from runreport.events import RunEvent, SessionBegin, SessionEnd, event_from_dict
from runreport.logging import configure_logging
from runreport.reporter import ResourceReporter
from runreport.resources import Node
from runreport.schema import RunReport


def read_events(path: Path, node: Node) -> Iterator[RunEvent]:
    """Decode a JSON-lines event log; blank lines and ``#`` comments are skipped."""
    try:
        lines = path.read_text().splitlines()
    except OSError as e:
        raise EventFormatError("Cannot read event log", {"path": str(path), "error": str(e)}) from e

    for lineno, line in enumerate(lines, start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        try:
            data = json.loads(line)
        except json.JSONDecodeError as e:
            raise EventFormatError("Invalid JSON in event log", {"path": str(path), "line": lineno}) from e
        if not isinstance(data, dict):
            raise EventFormatError("Event must be a JSON object", {"path": str(path), "line": lineno})
        yield event_from_dict(data, node)


def framed(events: Sequence[RunEvent], node: Node) -> list[RunEvent]:
    """Make sure the run is opened and closed exactly once."""
    body = [e for e in events if not isinstance(e, (SessionBegin, SessionEnd))]
    ends = [e for e in events if isinstance(e, SessionEnd)]
    return [SessionBegin(node), *body, ends[-1] if ends else SessionEnd(node)]


def print_report_summary(report: RunReport, run_id: str | None) -> None:
    header(f"Run report: {run_id or 'not submitted'}")
    print_key_value(
        {
            "status": report.status,
            "run_list": report.run_list,
            "total resources": report.total_res_count,
            "changed resources": str(len(report.resources)),
        }
    )
    if report.resources:
        console.print()
        print_table(
            "Changed resources",
            ["Resource", "Action", "Duration (ms)", "Cookbook"],
            [
                [f"{r.type}[{r.name}]", r.result, r.duration, r.cookbook_name or "-"]
                for r in report.resources
            ],
        )
    if report.exception is not None:
        console.print()
        console.print(f"[error]{report.exception.description}[/error]")


@main_with_error_handling(on_error=error)
def replay_command(
    events_file: str,
    node_name: str,
    run_list: Sequence[str] | None = None,
    dry_run: bool = False,
    output_format: str = "text",
    config_path: str | None = None,
    verbose: bool = False,
) -> int:
    """
    Replay a recorded event log and report the run.

    Returns:
        0 when the report was submitted (or printed, with ``dry_run``),
        1 when the service does not keep run history.
    """
    settings = load_settings(config_path)
    configure_logging("DEBUG" if verbose else settings.log_level, json_output=output_format == "json")

    node = Node(node_name, list(run_list or []))
    events = framed(list(read_events(Path(events_file), node)), node)

    with RunHistoryClient.from_settings(settings) as client:
        reporter = ResourceReporter(client, enabled=settings.reporting_enabled and not dry_run)
        for event in events:
            reporter.handle(event)

    report = reporter.last_report or reporter.report(node)
    if output_format == "json":
        print(json.dumps(report.to_payload(), indent=2))
    else:
        print_report_summary(report, reporter.run_id)

    if dry_run:
        return ExitCode.SUCCESS
    if reporter.last_report is None:
        warning("Run history is not available; report was not submitted")
        return ExitCode.WARNING

    if output_format != "json":
        success(f"Submitted run report {reporter.run_id}")
    return ExitCode.SUCCESS
