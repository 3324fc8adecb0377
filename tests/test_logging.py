import logging

import structlog
from runreport import logging as runreport_logging


def test_configure_logging_bridges_to_stdlib(monkeypatch):
    calls = {}
    monkeypatch.setattr(structlog, "configure", lambda **kwargs: calls.setdefault("structlog", kwargs))
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.setdefault("logging", kwargs))

    runreport_logging.configure_logging("debug")

    assert calls["logging"]["level"] == "DEBUG"
    assert calls["structlog"]["logger_factory"].__class__ is structlog.stdlib.LoggerFactory
    assert isinstance(calls["structlog"]["processors"][-1], structlog.processors.JSONRenderer)


def test_console_rendering(monkeypatch):
    calls = {}
    monkeypatch.setattr(structlog, "configure", lambda **kwargs: calls.setdefault("structlog", kwargs))
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: None)

    runreport_logging.configure_logging(logging.INFO, json_output=False)

    assert isinstance(calls["structlog"]["processors"][-1], structlog.dev.ConsoleRenderer)


def test_bind_context_carries_fields():
    log = runreport_logging.bind_context(run_id="abc123")
    assert log._context["run_id"] == "abc123"
