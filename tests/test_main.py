"""Tests for logging, settings and application wiring."""

from __future__ import annotations

import pytest
import structlog
from pydantic import ValidationError

from formdesk.config import FormDeskSettings, QuotaSettings
from formdesk.logging import bind_request_context, clear_request_context, configure_logging
from formdesk.main import create_app


def test_configure_logging_outputs_json(capsys):
    configure_logging()
    logger = structlog.get_logger()
    logger.info("unit-test", foo="bar")
    out = capsys.readouterr().out
    assert "unit-test" in out
    assert "foo" in out


def test_request_context_is_merged_into_events(capsys):
    configure_logging()
    request_id = bind_request_context("POST", "/v1/forms/acct-1/submissions", "  req-9  ")
    try:
        structlog.get_logger().info("submission_admitted")
    finally:
        clear_request_context()

    out = capsys.readouterr().out
    assert request_id == "req-9"
    assert '"request_id": "req-9"' in out
    assert '"path": "/v1/forms/acct-1/submissions"' in out


def test_settings_read_nested_environment(monkeypatch):
    monkeypatch.setenv("FORMDESK_QUOTA__TIMEZONE", "Europe/Berlin")
    monkeypatch.setenv("FORMDESK_DATABASE__DSN", "sqlite+aiosqlite:///./formdesk.db")

    settings = FormDeskSettings()

    assert settings.quota.timezone == "Europe/Berlin"
    assert settings.database.dsn == "sqlite+aiosqlite:///./formdesk.db"


def test_settings_reject_unknown_timezone():
    with pytest.raises(ValidationError):
        QuotaSettings(timezone="Mars/Olympus_Mons")


def test_create_app_wires_state(settings, database):
    app = create_app(settings, database=database)

    assert app.state.settings is settings
    assert app.state.database is database
    paths = set(app.openapi()["paths"])
    assert "/healthz" in paths
    assert "/v1/forms/{account_id}/submissions" in paths
    assert "/v1/submissions/{submission_id}" in paths


def test_engine_options_skip_pool_sizing_for_sqlite():
    from formdesk.config import DatabaseSettings
    from formdesk.db.session import engine_options

    mysql = engine_options(DatabaseSettings())
    assert mysql["pool_size"] == 5
    assert mysql["pool_pre_ping"] is True

    sqlite = engine_options(DatabaseSettings(dsn="sqlite+aiosqlite:///:memory:"))
    assert sqlite == {"echo": False}
