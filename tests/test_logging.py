"""Tests for the structured logging system (asset_kernel/logging_config.py)."""

import json
import logging
from datetime import datetime, timezone
from io import StringIO
from uuid import uuid4

import pytest

from asset_kernel.domain.values import MovementKind
from asset_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_all_logs(stream: StringIO) -> list[dict]:
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


def _parse_log(stream: StringIO) -> dict:
    return _parse_all_logs(stream)[0]


# ---------------------------------------------------------------------------
# StructuredFormatter tests
# ---------------------------------------------------------------------------


class TestStructuredFormatter:

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("hello")

        record = _parse_log(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "asset_kernel.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("movement_recorded", extra={"seq": 42, "base": "Alpha"})

        record = _parse_log(stream)
        assert record["seq"] == 42
        assert record["base"] == "Alpha"

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        LogContext.set(actor_id="cmd-1", role="commander")
        get_logger("test").info("test_msg")

        record = _parse_log(stream)
        assert record["actor_id"] == "cmd-1"
        assert record["role"] == "commander"

    def test_no_context_fields_when_empty(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("bare_message")

        record = _parse_log(stream)
        assert "correlation_id" not in record
        assert "transfer_id" not in record

    def test_ledger_exception_fields_extracted(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        from asset_kernel.exceptions import AuthorizationError

        try:
            raise AuthorizationError("SameBaseTransfer", role="admin", action="transfer")
        except AuthorizationError:
            get_logger("test").error("denied", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_type"] == "AuthorizationError"
        assert record["exc_code"] == "AUTHORIZATION_DENIED"
        assert record["exc_reason"] == "SameBaseTransfer"
        assert record["exc_role"] == "admin"
        assert "traceback" in record

    def test_values_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        uid = uuid4()
        when = datetime(2024, 1, 1, tzinfo=timezone.utc)
        get_logger("test").info(
            "typed",
            extra={"record_uuid": uid, "when": when, "kind": MovementKind.PURCHASE, "bases": {"B", "A"}},
        )

        record = _parse_log(stream)
        assert record["record_uuid"] == str(uid)
        assert record["when"] == when.isoformat()
        assert record["kind"] == "purchase"
        assert record["bases"] == ["A", "B"]

    def test_level_filtering(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second", extra={"k": "v"})
        logger.debug("third")

        logs = _parse_all_logs(stream)
        assert [r["message"] for r in logs] == ["first", "second"]


# ---------------------------------------------------------------------------
# LogContext tests
# ---------------------------------------------------------------------------


class TestLogContext:

    def test_set_and_get(self):
        LogContext.set(correlation_id="x", transfer_id="y")
        assert LogContext.get_all() == {"correlation_id": "x", "transfer_id": "y"}

    def test_unknown_field_rejected(self):
        with pytest.raises(KeyError):
            LogContext.set(event_id="nope")

    def test_clear(self):
        LogContext.set(correlation_id="x")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_restores_previous_value(self):
        LogContext.set(record_id="outer")
        with LogContext.bind(record_id="inner"):
            assert LogContext.get_all()["record_id"] == "inner"
        assert LogContext.get_all()["record_id"] == "outer"

    def test_bind_restores_absence(self):
        with LogContext.bind(transfer_id="temp"):
            assert LogContext.get_all()["transfer_id"] == "temp"
        assert "transfer_id" not in LogContext.get_all()


# ---------------------------------------------------------------------------
# configure_logging tests
# ---------------------------------------------------------------------------


class TestConfigureLogging:

    def test_idempotent(self):
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        h2, _ = _make_handler()
        configure_logging(handler=h2)
        assert len(logging.getLogger("asset_kernel").handlers) == 1

    def test_level_by_name(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler, level="debug")
        get_logger("test").debug("visible")
        assert _parse_log(stream)["message"] == "visible"

    def test_get_logger_returns_child(self):
        assert get_logger("services.ledger_store").name == "asset_kernel.services.ledger_store"
