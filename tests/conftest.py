"""Root test configuration."""

import logging

import pytest
import structlog
from runreport.clients.run_history import RunCreated, RunHistoryUnsupported
from runreport.resources import DeclaredResource, Node


def pytest_configure(config):
    """Configure structlog for tests to suppress debug/info output."""
    logging.basicConfig(level=logging.WARNING, force=True)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


class FakeRunHistory:
    """In-memory run history service recording every call."""

    def __init__(self, *, supported: bool = True, uri: str = "https://history.example.com/nodes/web01/runs/abc123"):
        self.supported = supported
        self.uri = uri
        self.begin_calls: list[str] = []
        self.submissions: list[tuple[str, str, dict]] = []

    @property
    def call_count(self) -> int:
        return len(self.begin_calls) + len(self.submissions)

    def begin_run(self, node_name):
        self.begin_calls.append(node_name)
        if not self.supported:
            return RunHistoryUnsupported(status_code=404, path=f"nodes/{node_name}/runs")
        return RunCreated(uri=self.uri, run_id=self.uri.rsplit("/", 1)[-1])

    def submit_run(self, node_name, run_id, payload):
        self.submissions.append((node_name, run_id, payload))
        return {}


@pytest.fixture
def history():
    return FakeRunHistory()


@pytest.fixture
def node():
    return Node("web01", ["recipe[base]", "role[web]"])


@pytest.fixture
def make_resource():
    def _make(name, resource_type="file", elapsed_time=0.0, **attributes):
        return DeclaredResource(
            resource_type=resource_type,
            name=name,
            attributes=attributes,
            cookbook_name="base",
            cookbook_version="1.2.0",
            elapsed_time=elapsed_time,
        )

    return _make
