# ============================================================================
# PING ORCHESTRATOR TESTS
# ============================================================================
# EPOCH: 1 - DEPENDENCY PING
# STATUS: Tests - Probe orchestration and response
# PURPOSE: Verify overall status, logging, debug gating and the deadline
# CREATED: 16 OCT 2026
# ============================================================================
"""
Ping Orchestrator Tests

Runs App against a private ProbeRegistry of fake probes, so no real
dependency is touched.

Covers:
1. Debug code priority chain
2. Debug parameter matching
3. 200/500 decision and the log lines for slow/warning/error
4. Output threading between probes and fault isolation
5. Debug tables in HTTP (authorised only) and CLI mode
6. Overall deadline

Run with:
    pytest tests/test_app.py -v
"""

import dataclasses
import hashlib
from unittest.mock import MagicMock, call, patch

import pytest

from core.config.defaults import LogSink, PingDefaults
from core.models.settings import HostSettings
from health.app import App, PingResponse, get_debug_code, is_debug
from health.core import Outcome, Probe
from health.registry import ProbeRegistry


# ============================================================================
# FIXTURES
# ============================================================================

class FakeProbe(Probe):
    """Probe returning a preset outcome, optionally via a callable."""

    def __init__(self, name, priority, outcome=None, fn=None):
        self.name = name
        self.priority = priority
        self.outcome = outcome or Outcome.success()
        self.fn = fn
        self.calls = 0

    def run(self, context):
        self.calls += 1
        if self.fn is not None:
            return self.fn(context)
        return self.outcome


class BoomProbe(Probe):
    name = "boom"
    priority = 50

    def run(self, context):
        raise RuntimeError("unexpected")


def _bootstrap(**settings):
    return FakeProbe(
        "bootstrap", 10,
        outcome=Outcome.success(output=HostSettings(**settings)),
    )


def _registry(*probes):
    registry = ProbeRegistry()
    for probe in probes:
        registry.register(probe)
    return registry


@pytest.fixture
def defaults(tmp_path):
    return PingDefaults(app_root=str(tmp_path), log_sink=LogSink.STDERR)


@pytest.fixture
def ping_logger():
    return MagicMock()


@pytest.fixture
def make_app(defaults, ping_logger):
    def _make(*probes, cli=False, **overrides):
        app_defaults = defaults
        if overrides:
            app_defaults = dataclasses.replace(defaults, **overrides)
        return App(
            defaults=app_defaults,
            registry=_registry(*probes),
            ping_logger=ping_logger,
            environ={},
            cli=cli,
        )
    return _make


# ============================================================================
# DEBUG CODE
# ============================================================================

class TestDebugCode:

    def test_ping_debug_wins_over_everything(self):
        env = {"SILTA_CLUSTER": "1", "PROJECT_NAME": "a", "ENVIRONMENT_NAME": "b", "DB_NAME": "x"}
        settings = HostSettings(ping_debug="letmein", hash_salt="qwertyuiop")
        assert get_debug_code(settings, env) == "letmein"

    def test_silta_cluster(self):
        env = {"SILTA_CLUSTER": "1", "PROJECT_NAME": "a", "ENVIRONMENT_NAME": "b", "DB_NAME": "x"}
        assert get_debug_code(HostSettings(), env) == "8ca2ed590cf2ea2404f2e67641bcdf50"

    def test_database_environment(self):
        env = {
            "DB_HOST": "host",
            "DB_NAME": "name",
            "DB_PASS": "pass",
            "DB_PORT": "port",
            "DB_USER": "user",
        }
        settings = HostSettings(hash_salt="qwertyuiop")
        assert get_debug_code(settings, env) == "9ea396789d54a514eb63e12126c5ae4a"

    def test_hash_salt(self):
        settings = HostSettings(hash_salt="qwertyuiop")
        assert get_debug_code(settings, {}) == "6eea9b7ef19179a06954edd0f6c05ceb"

    def test_hostname(self):
        with patch("health.app.socket.gethostname", return_value="web1"):
            code = get_debug_code(HostSettings(), {})
        assert code == "e694aa37abf20c91a442da4841aeccdf"
        assert code == hashlib.md5(b"web1").hexdigest()

    def test_empty_values_skipped(self):
        env = {"SILTA_CLUSTER": "", "DB_NAME": ""}
        settings = HostSettings(ping_debug="", hash_salt="qwertyuiop")
        assert get_debug_code(settings, env) == "6eea9b7ef19179a06954edd0f6c05ceb"


class TestIsDebug:

    def test_match(self):
        assert is_debug("abc", "abc")

    def test_mismatch(self):
        assert not is_debug("abd", "abc")

    @pytest.mark.parametrize("param", [None, ""])
    def test_empty_never_matches(self, param):
        assert not is_debug(param, "abc")
        assert not is_debug(param, "")


# ============================================================================
# OVERALL RESULT
# ============================================================================

class TestAppResult:

    def test_preset_to_503(self, make_app):
        app = make_app()
        assert app.response == PingResponse(503, "Service Unavailable", "")

    def test_all_success(self, make_app, ping_logger):
        result = make_app(_bootstrap(), FakeProbe("db", 20)).run()

        assert result.status_code == 200
        assert result.reason == "OK"
        assert result.body == "CONGRATULATIONS 200\n"
        assert result.ok
        ping_logger.log.assert_not_called()

    def test_disabled_is_not_failure(self, make_app):
        result = make_app(FakeProbe("redis", 40, Outcome.disabled())).run()
        assert result.status_code == 200

    def test_warning_logged_but_200(self, make_app, ping_logger):
        warning = Outcome.warning("Connection warnings.", warnings=[])
        result = make_app(FakeProbe("memcache", 30, warning)).run()

        assert result.status_code == 200
        ping_logger.log.assert_called_once_with(
            "warning", "memcache", '{"message":"Connection warnings.","warnings":[]}',
        )

    def test_error_means_500(self, make_app, ping_logger):
        error = Outcome.error("Database not configured.")
        result = make_app(_bootstrap(), FakeProbe("db", 20, error)).run()

        assert result.status_code == 500
        assert result.reason == "Internal Server Error"
        assert result.body == "INTERNAL ERROR 500\n"
        ping_logger.log.assert_called_once_with(
            "error", "db", '{"message":"Database not configured."}',
        )

    def test_log_order_slow_warning_error(self, make_app, ping_logger):
        app = make_app(
            FakeProbe("memcache", 30, Outcome.warning("W.")),
            FakeProbe("db", 20, Outcome.error("E.")),
            slow_threshold_ms=0,
        )
        app.run()

        categories = [c.args[0] for c in ping_logger.log.call_args_list]
        assert categories == ["slow", "slow", "warning", "error"]

    def test_slow_message(self, make_app, ping_logger):
        make_app(FakeProbe("db", 20), slow_threshold_ms=0).run()

        category, name, message = ping_logger.log.call_args.args
        assert (category, name) == ("slow", "db")
        assert message.startswith("duration=")
        assert message.endswith(" ms")

    def test_new_relic_ignored(self, make_app):
        with patch("health.app.disable_newrelic") as mock_disable:
            make_app(FakeProbe("db", 20)).run()
        mock_disable.assert_called_once()


# ============================================================================
# PROBE SEQUENCE
# ============================================================================

class TestProbeSequence:

    def test_probes_run_in_priority_order(self, make_app):
        order = []

        def recorder(name):
            return lambda context: order.append(name) or Outcome.success()

        make_app(
            FakeProbe("c", 30, fn=recorder("c")),
            FakeProbe("a", 10, fn=recorder("a")),
            FakeProbe("b", 20, fn=recorder("b")),
        ).run()

        assert order == ["a", "b", "c"]

    def test_output_threaded_to_later_probe(self, make_app):
        seen = []
        create = FakeProbe("fs-scheme-create", 60, Outcome.success(output="/files/marker"))
        delete = FakeProbe(
            "fs-scheme-delete", 70,
            fn=lambda context: seen.append(context.output("fs-scheme-create")) or Outcome.success(),
        )

        make_app(create, delete).run()

        assert seen == ["/files/marker"]

    def test_failed_bootstrap_still_runs_everything(self, make_app):
        later = FakeProbe("db", 20, fn=lambda context: Outcome.success(
            has_settings=context.settings == HostSettings(),
        ))
        app = make_app(
            FakeProbe("bootstrap", 10, Outcome.error("Settings file not found.")),
            later,
        )

        result = app.run()

        assert result.status_code == 500
        assert later.calls == 1
        assert app.status.get()["db"].payload == {"has_settings": True}

    def test_fault_isolated(self, make_app):
        after = FakeProbe("fs-scheme-create", 60)
        app = make_app(BoomProbe(), after)

        result = app.run()

        assert result.status_code == 500
        assert after.calls == 1
        assert app.status.get()["boom"].payload == {
            "message": "Internal error.",
            "function": "BoomProbe::run",
            "exception": "unexpected",
        }

    def test_every_probe_timed(self, make_app):
        app = make_app(_bootstrap(), FakeProbe("db", 20))
        app.run()
        assert set(app.profile.get()) == {"bootstrap", "db"}


# ============================================================================
# DEBUG OUTPUT
# ============================================================================

class TestDebugOutput:

    def test_hidden_without_code(self, make_app):
        result = make_app(_bootstrap(ping_debug="letmein"), FakeProbe("db", 20)).run()
        assert result.body == "CONGRATULATIONS 200\n"

    def test_hidden_with_wrong_code(self, make_app):
        result = make_app(_bootstrap(ping_debug="letmein")).run(debug="guess")
        assert result.body == "CONGRATULATIONS 200\n"

    def test_tables_with_matching_code(self, make_app):
        error = Outcome.error("Connection errors.", errors=[])
        app = make_app(_bootstrap(ping_debug="letmein"), FakeProbe("memcache", 30, error))

        result = app.run(debug="letmein")
        lines = result.body.split("\n")

        assert lines[0] == "INTERNAL ERROR 500"
        assert lines[1] == ""
        assert lines[2] == f"{'bootstrap':<20} {'success':<10} "
        assert lines[3] == (
            f"{'memcache':<20} {'error':<10} "
            '{"message":"Connection errors.","errors":[]}'
        )
        assert lines[4] == ""
        # Profile table: 2 probes, blank line, preboot, total
        assert lines[5].endswith(" ms - bootstrap") or lines[5].endswith(" ms - memcache")
        assert lines[7] == ""
        assert lines[8].endswith(" ms - preboot")
        assert lines[9].endswith(" ms - total")
        assert "Debug code" not in result.body

    def test_cli_always_shows_tables_and_code(self, make_app):
        result = make_app(_bootstrap(ping_debug="letmein"), cli=True).run()

        assert result.body.startswith("CONGRATULATIONS 200\n\nDebug code: letmein\n")
        assert f"{'bootstrap':<20} {'success':<10}" in result.body
        assert " ms - total" in result.body


# ============================================================================
# DEADLINE
# ============================================================================

class TestDeadline:

    def test_no_deadline_by_default(self, defaults):
        assert defaults.deadline_seconds is None

    def test_exceeded_deadline_skips_remaining(self, make_app, ping_logger):
        db = FakeProbe("db", 20)
        app = make_app(db, deadline_seconds=0)

        result = app.run()

        assert result.status_code == 500
        assert db.calls == 0
        assert app.status.get()["db"].payload == {
            "message": "Skipped: overall deadline exceeded.",
            "deadline_seconds": 0,
        }
        assert app.profile.get() == {}
        assert call("error", "db", '{"message":"Skipped: overall deadline exceeded.","deadline_seconds":0}') in (
            ping_logger.log.call_args_list
        )

    def test_generous_deadline_runs_everything(self, make_app):
        db = FakeProbe("db", 20)
        result = make_app(db, deadline_seconds=60).run()

        assert result.status_code == 200
        assert db.calls == 1


# ============================================================================
# END-TO-END SCENARIOS
# ============================================================================

SCENARIO_SETTINGS = """
database:
  host: db
  name: app
memcache_servers:
  "mc1:11211": default
  "mc2:11211": default
file_directory_path: files
hash_salt: qwertyuiop
"""


class TestScenarios:
    """Real probes with their network clients mocked."""

    @pytest.fixture
    def site(self, tmp_path):
        (tmp_path / "settings.yaml").write_text(SCENARIO_SETTINGS)
        (tmp_path / "files").mkdir()
        return tmp_path

    @pytest.fixture
    def run_site(self, site, ping_logger):
        from health.checks import (
            BootstrapCheck,
            CustomPingCheck,
            DbCheck,
            ElasticsearchCheck,
            FsSchemeCleanupCheck,
            FsSchemeCreateCheck,
            FsSchemeDeleteCheck,
            MemcacheCheck,
            RedisCheck,
        )

        def _run(rows, memcache_errors):
            registry = _registry(
                BootstrapCheck(), DbCheck(), MemcacheCheck(), RedisCheck(),
                ElasticsearchCheck(), FsSchemeCreateCheck(), FsSchemeDeleteCheck(),
                FsSchemeCleanupCheck(), CustomPingCheck(),
            )
            app = App(
                defaults=PingDefaults(app_root=str(site), log_sink=LogSink.STDERR),
                registry=registry,
                ping_logger=ping_logger,
                environ={},
            )
            with patch("health.checks.database.psycopg.connect") as mock_connect, \
                    patch.object(MemcacheCheck, "probe_server", side_effect=memcache_errors):
                conn = mock_connect.return_value.__enter__.return_value
                conn.execute.return_value.fetchall.return_value = rows
                result = app.run()
            return app, result

        return _run

    def test_all_healthy(self, run_site, ping_logger, site):
        app, result = run_site(rows=[(1,)], memcache_errors=[None, None])

        assert result.status_code == 200
        assert result.body == "CONGRATULATIONS 200\n"
        severities = {name: o.severity.value for name, o in app.status.get().items()}
        assert severities == {
            "bootstrap": "success",
            "db": "success",
            "memcache": "success",
            "redis": "disabled",
            "elasticsearch": "disabled",
            "fs-scheme-create": "success",
            "fs-scheme-delete": "success",
            "fs-scheme-cleanup": "success",
            "custom-ping": "disabled",
        }
        ping_logger.log.assert_not_called()
        assert list((site / "files").iterdir()) == []

    def test_database_returns_no_rows(self, run_site, ping_logger):
        app, result = run_site(rows=[], memcache_errors=[None, None])

        assert result.status_code == 500
        assert result.body == "INTERNAL ERROR 500\n"
        assert app.status.get()["db"].payload == {
            "message": "Master database returned invalid results.",
            "actual_count": 0,
            "expected_count": 1,
        }
        error_lines = [c for c in ping_logger.log.call_args_list if c.args[0] == "error"]
        assert len(error_lines) == 1
        assert error_lines[0].args[1] == "db"

    def test_one_memcache_server_down(self, run_site, ping_logger):
        app, result = run_site(rows=[(1,)], memcache_errors=[None, "Connection refused"])

        assert result.status_code == 200
        memcache = app.status.get()["memcache"]
        assert memcache.payload["message"] == "Connection warnings."
        assert len(memcache.payload["warnings"]) == 1
        ping_logger.log.assert_called_once()
        assert ping_logger.log.call_args.args[:2] == ("warning", "memcache")
