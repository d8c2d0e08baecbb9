"""
Logger facade tests: severity routing, arity contract, reclassification,
debug filtering and failure containment.
"""

from __future__ import annotations

import pytest
from structlog.testing import capture_logs

from relaylog import create_logger, is_debug_allowed
from relaylog.config import Environment, LoggerConfig
from relaylog.sinks import ConsoleSink, SlackSink
from relaylog.types import Severity

FLUSH_TIMEOUT = 5.0


def dispatched(logger, sink):
    assert logger.flush(FLUSH_TIMEOUT)
    return sink.entries


# ================================
# Factory
# ================================


class TestCreateLogger:
    def test_console_only_by_default(self):
        logger = create_logger()
        assert [sink.name for sink in logger.get_transports()] == ["console"]
        assert logger.environment is Environment.DEVELOPMENT

    def test_slack_added_with_webhook(self):
        logger = create_logger(app_name="api", slack={"webhook_url": "https://hooks/x"})
        sinks = logger.get_transports()
        assert isinstance(sinks[0], ConsoleSink)
        assert isinstance(sinks[1], SlackSink)
        assert sinks[1].app_name == "api"

    def test_accepts_camel_case_mapping(self, recording_sink):
        logger = create_logger(
            {
                "appName": "api",
                "environment": "production",
                "errorsToTreatAsWarnings": ["Gone"],
                "slack": {"webhookUrl": "https://hooks/x", "skipInDevelopment": False},
                "transports": [recording_sink],
            }
        )
        assert logger.config.app_name == "api"
        assert logger.environment is Environment.PRODUCTION
        assert [sink.name for sink in logger.get_transports()] == ["console", "slack", "recording"]
        assert logger.get_transports()[1].skip_in_development is False

    def test_accepts_config_object_with_overrides(self):
        logger = create_logger(LoggerConfig(app_name="api"), environment="staging")
        assert logger.environment is Environment.STAGING
        assert logger.config.app_name == "api"

    def test_environment_from_process(self, monkeypatch):
        monkeypatch.setenv("RELAYLOG_ENV", "production")
        assert create_logger().environment is Environment.PRODUCTION

    def test_default_warning_patterns(self):
        assert "User not found" in create_logger().config.errors_to_treat_as_warnings

    def test_get_transports_is_a_copy(self):
        logger = create_logger()
        logger.get_transports().clear()
        assert len(logger.get_transports()) == 1


# ================================
# log / info / warn
# ================================


class TestConsoleLevels:
    def test_log_and_info(self, recording_sink):
        logger = create_logger(transports=[recording_sink])
        logger.log("plain", 1, 2)
        logger.info("started", {"port": 8080})

        entries = dispatched(logger, recording_sink)
        assert [entry.severity for entry in entries] == [Severity.LOG, Severity.INFO]
        assert entries[0].message == "plain"
        assert entries[0].args == (1, 2)
        assert entries[1].fields == {}
        assert entries[1].error is None

    def test_console_output(self, capsys):
        logger = create_logger(app_name="shop")
        logger.info("hello", 42)
        logger.warn("careful")
        logger.flush(FLUSH_TIMEOUT)

        captured = capsys.readouterr()
        assert "hello 42" in captured.out
        assert "careful" in captured.err

    def test_warn_with_error_and_options(self, recording_sink):
        logger = create_logger(transports=[recording_sink])
        error = ValueError("quota low")
        logger.warn("approaching limit", error, {"customChannel": "quota", "fields": {"tenant": "t1"}})

        entry = dispatched(logger, recording_sink)[0]
        assert entry.severity is Severity.WARN
        assert entry.error is error
        assert entry.custom_destination == "quota"
        assert entry.fields == {"tenant": "t1", "errorMessage": "quota low"}
        assert entry.args == (error,)

    def test_warn_keyword_options(self, recording_sink):
        logger = create_logger(transports=[recording_sink])
        logger.warn("slow", custom_destination="perf", fields={"ms": 900})

        entry = dispatched(logger, recording_sink)[0]
        assert entry.custom_destination == "perf"
        assert entry.fields == {"ms": 900}

    def test_warn_ignores_non_exception_second_argument(self, recording_sink):
        logger = create_logger(transports=[recording_sink])
        logger.warn("odd", "not an error")

        entry = dispatched(logger, recording_sink)[0]
        assert entry.error is None
        assert entry.fields == {}


# ================================
# error / error_background
# ================================


class TestErrorLevels:
    def test_message_only(self, recording_sink):
        logger = create_logger(transports=[recording_sink])
        logger.error("failed")

        entry = dispatched(logger, recording_sink)[0]
        assert entry.severity is Severity.ERROR
        assert entry.fields == {}
        assert entry.args == ()

    def test_error_fields_are_normalized(self, recording_sink):
        logger = create_logger(transports=[recording_sink])
        logger.error("failed", {"message": "db down", "reason": 503})

        entry = dispatched(logger, recording_sink)[0]
        assert entry.fields == {"errorMessage": "db down", "errorReason": "503"}

    def test_known_benign_error_is_downgraded(self, recording_sink):
        logger = create_logger(transports=[recording_sink])
        logger.error("lookup failed", LookupError("User not found"))

        entry = dispatched(logger, recording_sink)[0]
        assert entry.severity is Severity.WARN
        assert entry.message == "lookup failed [error treated as warn]"

    def test_background_downgrade_suffix(self, recording_sink):
        logger = create_logger(transports=[recording_sink])
        logger.error_background("sync failed", TimeoutError("Timeout after 30s"))

        entry = dispatched(logger, recording_sink)[0]
        assert entry.severity is Severity.WARN
        assert entry.message == "sync failed [background error treated as warn]"

    def test_custom_patterns(self, recording_sink):
        logger = create_logger(transports=[recording_sink], errors_to_treat_as_warnings=[])
        logger.error("lookup failed", LookupError("User not found"))

        assert dispatched(logger, recording_sink)[0].severity is Severity.ERROR

    def test_background_is_tagged(self, recording_sink):
        logger = create_logger(transports=[recording_sink])
        logger.error_background("job crashed", RuntimeError("segfault"))

        entry = dispatched(logger, recording_sink)[0]
        assert entry.severity is Severity.ERROR_BACKGROUND
        assert entry.fields["isBackground"] is True
        assert entry.fields["errorMessage"] == "segfault"

    def test_arity_violation_dropped_in_development(self, recording_sink):
        logger = create_logger(transports=[recording_sink])
        with capture_logs() as logs:
            logger.error("a", ValueError("b"), "extra")
            logger.error()

        assert dispatched(logger, recording_sink) == []
        violations = [log for log in logs if log["event"] == "error_arity_violation"]
        assert [log["received"] for log in violations] == [3, 0]
        assert all(log["stack_info"] for log in violations)

    def test_arity_violation_still_dispatched_in_production(self, recording_sink):
        logger = create_logger(environment="production", transports=[recording_sink])
        with capture_logs() as logs:
            logger.error("a", ValueError("b"), "extra")

        entries = dispatched(logger, recording_sink)
        assert len(entries) == 1
        assert entries[0].message == "a"
        assert any(log["event"] == "error_arity_violation" for log in logs)


# ================================
# Slack routing through the facade
# ================================


class TestSlackRouting:
    def make_logger(self, slack_client, **slack):
        logger = create_logger(
            app_name="api",
            environment="production",
            slack={"webhook_url": "https://hooks/default", **slack},
        )
        logger.get_transports()[1].client = slack_client
        return logger

    def test_background_errors_land_in_separate_channel(self, slack_client):
        logger = self.make_logger(slack_client, channels={"error": "errors", "error-bg": "errors-bg"})
        logger.error("charge failed", RuntimeError("card declined"))
        logger.error_background("charge failed", RuntimeError("card declined"))
        assert logger.flush(FLUSH_TIMEOUT)

        channels = sorted(call.args[1]["channel"] for call in slack_client.post.await_args_list)
        assert channels == ["#errors", "#errors-bg"]

    def test_message_only_error_has_no_error_fields(self, slack_client):
        logger = self.make_logger(slack_client)
        logger.error("failed")
        assert logger.flush(FLUSH_TIMEOUT)

        payload = slack_client.post.await_args.args[1]
        assert payload["fields"] == {"appName": "api"}

    def test_info_never_reaches_slack(self, slack_client):
        logger = self.make_logger(slack_client)
        logger.info("hello")
        logger.log("hello")
        assert logger.flush(FLUSH_TIMEOUT)
        slack_client.post.assert_not_awaited()

    def test_not_sent_in_development(self, slack_client):
        logger = create_logger(slack={"webhook_url": "https://hooks/default"})
        logger.get_transports()[1].client = slack_client
        logger.error("failed")
        assert logger.flush(FLUSH_TIMEOUT)
        slack_client.post.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_send_to_slack_routes_custom_level(self, slack_client):
        logger = self.make_logger(slack_client, channels={"billing": "billing"})
        await logger.send_to_slack("invoice paid", fields={"amount": 30}, level="billing")

        payload = slack_client.post.await_args.args[1]
        assert payload["channel"] == "#billing"
        assert payload["fields"] == {"appName": "api", "amount": 30}

    @pytest.mark.asyncio
    async def test_send_to_slack_custom_destination(self, slack_client):
        logger = self.make_logger(slack_client)
        await logger.send_to_slack("deploy done", custom_destination="deploys")
        assert slack_client.post.await_args.args[1]["channel"] == "#deploys"

    @pytest.mark.asyncio
    async def test_send_to_slack_without_slack_sink(self):
        await create_logger().send_to_slack("nobody listens")


# ================================
# debug
# ================================


class TestDebug:
    def test_disabled_never_dispatches(self, recording_sink):
        logger = create_logger(transports=[recording_sink])
        logger.debug("API", "payload")
        assert dispatched(logger, recording_sink) == []
        assert not logger.is_debug_mode_on("API")

    def test_enabled_without_filter(self, recording_sink):
        logger = create_logger(debug={"enabled": True}, transports=[recording_sink])
        logger.debug("anything", 1)

        entry = dispatched(logger, recording_sink)[0]
        assert entry.severity is Severity.DEBUG
        assert entry.message == "anything"
        assert entry.args == (1,)

    def test_filter_matches_case_insensitively(self, recording_sink):
        logger = create_logger(debug={"enabled": True, "filter": "^api"}, transports=[recording_sink])
        logger.debug("API request", 1)
        logger.debug("db query", 2)

        assert [entry.message for entry in dispatched(logger, recording_sink)] == ["API request"]

    def test_filter_list(self):
        logger = create_logger(debug={"enabled": True, "filter": ["cache", "queue"]})
        assert logger.is_debug_mode_on("QUEUE drained")
        assert not logger.is_debug_mode_on("db query")


class TestIsDebugAllowed:
    def test_disabled(self):
        assert not is_debug_allowed(False, None, "x")

    def test_no_filter_text(self):
        assert is_debug_allowed(True, "api", None)

    def test_invalid_regex_falls_back_to_substring(self):
        assert is_debug_allowed(True, "[api", "call [api]")
        assert not is_debug_allowed(True, "[api", "call api")

    def test_empty_entries_in_list_are_ignored(self):
        assert not is_debug_allowed(True, ["", "cache"], "db")

    def test_empty_list_allows_nothing(self):
        assert not is_debug_allowed(True, [], "anything")

    def test_empty_string_filter_allows_everything(self):
        assert is_debug_allowed(True, "", "anything")


# ================================
# Transports and containment
# ================================


class TestTransports:
    def test_added_transport_receives_later_calls(self, recording_sink, make_sink):
        logger = create_logger(transports=[recording_sink])
        late = make_sink("late")
        logger.info("before")
        logger.flush(FLUSH_TIMEOUT)
        logger.add_transport(late)
        logger.info("after")

        assert [entry.message for entry in dispatched(logger, late)] == ["after"]
        assert [entry.message for entry in recording_sink.entries] == ["before", "after"]

    def test_sinks_only_receive_handled_levels(self, make_sink):
        errors_only = make_sink("errors", handles={"error"})
        logger = create_logger(transports=[errors_only])
        logger.info("ignored")
        logger.error("kept")

        assert [entry.message for entry in dispatched(logger, errors_only)] == ["kept"]

    def test_failing_sink_does_not_affect_others(self, recording_sink):
        class ExplodingSink(ConsoleSink):
            name = "exploding"

            async def send(self, entry):
                raise ConnectionError("sink offline")

        logger = create_logger(transports=[ExplodingSink(), recording_sink])
        with capture_logs() as logs:
            logger.error("still delivered")
            assert logger.flush(FLUSH_TIMEOUT)

        assert [entry.message for entry in recording_sink.entries] == ["still delivered"]
        failure = next(log for log in logs if log["event"] == "transport_error")
        assert failure["sink"] == "exploding"
        assert failure["error_type"] == "ConnectionError"

    def test_failing_should_handle_is_contained(self, recording_sink):
        class BrokenGate(ConsoleSink):
            name = "broken"

            def should_handle(self, severity):
                raise RuntimeError("gate broke")

        logger = create_logger(transports=[BrokenGate(), recording_sink])
        with capture_logs() as logs:
            logger.warn("careful")

        assert [entry.message for entry in dispatched(logger, recording_sink)] == ["careful"]
        assert any(log["event"] == "transport_error" for log in logs)

    def test_synchronous_send_is_supported(self):
        received = []

        class SyncSink(ConsoleSink):
            name = "sync"

            def send(self, entry):
                received.append(entry.message)

        logger = create_logger(transports=[SyncSink()])
        logger.info("plain function")
        assert logger.flush(FLUSH_TIMEOUT)
        assert received == ["plain function"]
