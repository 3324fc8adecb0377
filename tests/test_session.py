"""Tests for run session identity, the reporting switch, and submission."""

import pytest
from runreport.core.errors import ReportingStateError, RunHistoryError
from runreport.session import RunSession


class TestBegin:
    def test_sets_run_id(self, history, node):
        session = RunSession(history)
        session.begin(node)

        assert session.run_id == "abc123"
        assert session.reporting_enabled
        assert history.begin_calls == ["web01"]

    def test_not_found_disables_reporting(self, history, node):
        history.supported = False
        session = RunSession(history)

        session.begin(node)

        assert not session.reporting_enabled
        assert session.run_id is None

    def test_transport_error_propagates(self, node):
        class BrokenHistory:
            def begin_run(self, node_name):
                raise RunHistoryError("HTTP 500", status_code=500)

        session = RunSession(BrokenHistory())

        with pytest.raises(RunHistoryError):
            session.begin(node)
        assert session.reporting_enabled

    def test_begin_twice_is_an_error(self, history, node):
        session = RunSession(history)
        session.begin(node)

        with pytest.raises(ReportingStateError):
            session.begin(node)

    def test_disabled_by_configuration_makes_no_calls(self, history, node):
        session = RunSession(history, enabled=False)

        session.begin(node)
        assert session.end(node, 3) is None

        assert history.call_count == 0


class TestEnd:
    def test_submits_report_with_end_action(self, history, node):
        session = RunSession(history)
        session.begin(node)

        report = session.end(node, 4)

        assert report.action == "end"
        assert len(history.submissions) == 1
        node_name, run_id, payload = history.submissions[0]
        assert (node_name, run_id) == ("web01", "abc123")
        assert payload["action"] == "end"
        assert payload["total_res_count"] == "4"

    def test_unsupported_service_gets_no_submission(self, history, node):
        history.supported = False
        session = RunSession(history)
        session.begin(node)

        assert session.end(node, 2) is None
        assert history.submissions == []
        assert not session.reporting_enabled

    def test_end_before_begin_is_an_error(self, history, node):
        with pytest.raises(ReportingStateError):
            RunSession(history).end(node, 0)

    def test_end_twice_is_an_error(self, history, node):
        session = RunSession(history)
        session.begin(node)
        session.end(node, 0)

        with pytest.raises(ReportingStateError):
            session.end(node, 0)

    def test_failure_passed_to_end_is_reported(self, history, node):
        session = RunSession(history)
        session.begin(node)

        session.end(node, 1, exception=RuntimeError("converge failed"))

        payload = history.submissions[0][2]
        assert payload["status"] == "failed"
        assert payload["exception"]["message"] == "converge failed"

    def test_record_run_failure_before_end(self, history, node):
        session = RunSession(history)
        session.begin(node)
        error = RuntimeError("converge failed")

        session.record_run_failure(error)

        assert session.status == "failed"
        assert session.exception is error
        session.end(node, 0)
        assert history.submissions[0][2]["status"] == "failed"

    def test_submission_error_propagates(self, node):
        class RejectingHistory:
            def begin_run(self, node_name):
                from runreport.clients.run_history import RunCreated

                return RunCreated(uri="/runs/r1", run_id="r1")

            def submit_run(self, node_name, run_id, payload):
                raise RunHistoryError("HTTP 400", status_code=400)

        session = RunSession(RejectingHistory())
        session.begin(node)

        with pytest.raises(RunHistoryError):
            session.end(node, 0)
