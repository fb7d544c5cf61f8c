# ============================================================================
# BOOTSTRAP AND DATABASE PROBE TESTS
# ============================================================================
# EPOCH: 1 - DEPENDENCY PING
# STATUS: Tests - Settings loading and the sentinel query
# PURPOSE: Verify settings bootstrap and the main database check
# CREATED: 14 OCT 2026
# ============================================================================
"""
Bootstrap and Database Probe Tests

Covers:
1. Loading and validating the settings file
2. Bootstrap outcomes for missing/invalid settings
3. DatabaseSettings connection strings
4. Sentinel query row count, connection failures, not configured

Run with:
    pytest tests/test_bootstrap.py -v
"""

from unittest.mock import MagicMock, patch

import psycopg
import pytest

from core.config.defaults import PingDefaults
from core.models.settings import DatabaseSettings, HostSettings
from health.checks.bootstrap import BootstrapCheck, load_settings
from health.checks.database import DbCheck
from health.core import PingContext, Severity


SETTINGS_YAML = """
database:
  host: db
  port: 5432
  name: app
  user: app
  password: secret
memcache_servers:
  "memcached:11211": default
redis:
  host: redis
  port: 6379
ping_elasticsearch_connections:
  - {proto: https, host: search, port: 9243, severity: error}
hash_salt: qwertyuiop
site_name: Example
"""


def _context(tmp_path, settings_text=None):
    if settings_text is not None:
        (tmp_path / "settings.yaml").write_text(settings_text)
    return PingContext(defaults=PingDefaults(app_root=str(tmp_path)))


# ============================================================================
# BOOTSTRAP
# ============================================================================

class TestLoadSettings:

    def test_loads_all_sections(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text(SETTINGS_YAML)

        settings = load_settings(str(path))

        assert settings.database.name == "app"
        assert settings.memcache_servers == {"memcached:11211": "default"}
        assert settings.redis.port == 6379
        assert settings.ping_elasticsearch_connections[0].health_url == (
            "https://search:9243/_cluster/health"
        )
        assert settings.hash_salt == "qwertyuiop"

    def test_unknown_keys_kept(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text(SETTINGS_YAML)
        assert load_settings(str(path)).model_extra["site_name"] == "Example"

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("")
        assert load_settings(str(path)) == HostSettings()

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="mapping"):
            load_settings(str(path))


class TestBootstrapCheck:

    def test_success_exposes_settings(self, tmp_path):
        outcome = BootstrapCheck().run(_context(tmp_path, SETTINGS_YAML))

        assert outcome.severity == Severity.SUCCESS
        assert outcome.payload == {}
        assert isinstance(outcome.output, HostSettings)
        assert outcome.output.redis.host == "redis"

    def test_missing_settings_file(self, tmp_path):
        outcome = BootstrapCheck().run(_context(tmp_path))

        assert outcome.severity == Severity.ERROR
        assert outcome.payload["message"] == "Settings file not found."
        assert outcome.payload["path"].endswith("settings.yaml")
        assert outcome.output is None

    def test_invalid_yaml(self, tmp_path):
        outcome = BootstrapCheck().run(_context(tmp_path, "database: [unclosed\n"))

        assert outcome.severity == Severity.ERROR
        assert outcome.payload["message"] == "Invalid settings file."
        assert outcome.payload["error"]

    def test_invalid_values(self, tmp_path):
        outcome = BootstrapCheck().run(_context(tmp_path, "redis: {port: not-a-port}\n"))

        assert outcome.severity == Severity.ERROR
        assert outcome.payload["message"] == "Invalid settings file."

    def test_missing_app_root(self, tmp_path):
        context = PingContext(defaults=PingDefaults(app_root=str(tmp_path / "nope")))
        outcome = BootstrapCheck().run(context)

        assert outcome.severity == Severity.ERROR
        assert outcome.payload["message"] == "Application root not found."


# ============================================================================
# DATABASE
# ============================================================================

class TestDatabaseSettings:

    def test_dsn_wins(self):
        db = DatabaseSettings(dsn="postgresql://u@h/d", host="other", name="x")
        assert db.conninfo() == "postgresql://u@h/d"

    def test_discrete_fields(self):
        db = DatabaseSettings(host="db", port=5432, name="app", user="u", password="p")
        assert db.conninfo() == "host=db dbname=app port=5432 user=u password=p"

    def test_not_configured(self):
        assert DatabaseSettings().conninfo() is None
        assert DatabaseSettings(host="db").conninfo() is None


class TestDbCheck:

    @pytest.fixture
    def database(self):
        return DatabaseSettings(host="db", name="app")

    def _mock_connect(self, mock_connect, rows):
        conn = MagicMock()
        conn.execute.return_value.fetchall.return_value = rows
        mock_connect.return_value.__enter__.return_value = conn
        return conn

    def test_expected_row_count(self, database):
        with patch("health.checks.database.psycopg.connect") as mock_connect:
            conn = self._mock_connect(mock_connect, [(1,)])
            outcome = DbCheck().check_database(database, connect_timeout=3)

        assert outcome.severity == Severity.SUCCESS
        mock_connect.assert_called_once_with("host=db dbname=app", connect_timeout=3)
        conn.execute.assert_called_once_with("SELECT 1")

    def test_unexpected_row_count(self, database):
        with patch("health.checks.database.psycopg.connect") as mock_connect:
            self._mock_connect(mock_connect, [])
            outcome = DbCheck().check_database(database)

        assert outcome.severity == Severity.ERROR
        assert outcome.payload == {
            "message": "Master database returned invalid results.",
            "actual_count": 0,
            "expected_count": 1,
        }

    def test_custom_sentinel_query(self):
        database = DatabaseSettings(
            dsn="dbname=app",
            sentinel_query="SELECT uid FROM users WHERE uid = 1",
            expected_count=1,
        )
        with patch("health.checks.database.psycopg.connect") as mock_connect:
            conn = self._mock_connect(mock_connect, [(1,)])
            outcome = DbCheck().check_database(database)

        assert outcome.severity == Severity.SUCCESS
        conn.execute.assert_called_once_with("SELECT uid FROM users WHERE uid = 1")

    def test_connection_failure(self, database):
        with patch(
            "health.checks.database.psycopg.connect",
            side_effect=psycopg.OperationalError("connection refused"),
        ):
            outcome = DbCheck().check_database(database)

        assert outcome.severity == Severity.ERROR
        assert outcome.payload["message"] == "Unable to query the master database."
        assert outcome.payload["host"] == "db"
        assert "connection refused" in outcome.payload["error"]

    def test_not_configured(self):
        outcome = DbCheck().check_database(DatabaseSettings())
        assert outcome.severity == Severity.ERROR
        assert outcome.payload == {"message": "Database not configured."}

    def test_run_reads_bootstrap_settings(self, tmp_path):
        context = PingContext(defaults=PingDefaults(app_root=str(tmp_path)))
        context.outputs["bootstrap"] = HostSettings(
            database=DatabaseSettings(dsn="dbname=app"),
        )
        with patch("health.checks.database.psycopg.connect") as mock_connect:
            self._mock_connect(mock_connect, [(1,)])
            outcome = DbCheck().run(context)

        assert outcome.severity == Severity.SUCCESS
        mock_connect.assert_called_once_with("dbname=app", connect_timeout=2)
