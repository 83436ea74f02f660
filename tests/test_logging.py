"""Tests for structured logging helpers."""

from structlog.contextvars import clear_contextvars, get_contextvars

from naisd.utils.logging import _redact_sensitive, bind_deployment_context


def test_sensitive_keys_are_redacted():
    event = _redact_sensitive(None, None, {"event": "x", "password": "hemmelig", "Authorization": "Basic abc", "alias": "db"})

    assert event["password"] == "[REDACTED]"
    assert event["Authorization"] == "[REDACTED]"
    assert event["alias"] == "db"


def test_bind_deployment_context_skips_empty_values():
    clear_contextvars()
    try:
        bind_deployment_context("appname", "", "namespace")

        assert get_contextvars() == {"application": "appname", "namespace": "namespace"}
    finally:
        clear_contextvars()
