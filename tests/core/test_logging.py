"""Tests for typedsql.core.logging."""

from __future__ import annotations

import io
import json
import subprocess
import sys

import structlog

from typedsql.core.logging import (
    LogContext,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)


_IMPORT_AND_LOG = (
    "import typedsql\n"
    "from typedsql.core.logging import get_logger\n"
    "get_logger('typedsql.check').info('imported')\n"
)


class TestContext:
    def setup_method(self) -> None:
        clear_context()

    def teardown_method(self) -> None:
        clear_context()

    def test_bind_and_unbind(self) -> None:
        bind_context(transaction_id="t-1", table="film")
        assert structlog.contextvars.get_contextvars() == {"transaction_id": "t-1", "table": "film"}
        unbind_context("table")
        assert structlog.contextvars.get_contextvars() == {"transaction_id": "t-1"}

    def test_log_context_is_scoped(self) -> None:
        with LogContext(transaction_id="t-2"):
            assert structlog.contextvars.get_contextvars()["transaction_id"] == "t-2"
        assert "transaction_id" not in structlog.contextvars.get_contextvars()

    def test_get_logger(self) -> None:
        assert get_logger(__name__) is not None


class TestGetLogger:
    def test_package_imports_with_unconfigured_structlog(self) -> None:
        result = subprocess.run(
            [sys.executable, "-c", _IMPORT_AND_LOG],
            capture_output=True,
            text=True,
        )
        assert result.returncode == 0, result.stderr

    def test_module_logger_renders_to_configured_stream(self) -> None:
        buffer = io.StringIO()
        configure_logging(level="INFO", json_format=True, stream=buffer, cache=False)
        get_logger("typedsql.tests").info("schema_loaded", tables=6)
        event = json.loads(buffer.getvalue().strip().splitlines()[-1])
        assert event["event"] == "schema_loaded"
        assert event["tables"] == 6
        assert event["service.name"] == "typedsql"

    def test_unnamed_logger(self) -> None:
        buffer = io.StringIO()
        configure_logging(level="WARNING", json_format=True, stream=buffer, cache=False)
        log = get_logger()
        log.info("hidden")
        log.warning("shown")
        assert "hidden" not in buffer.getvalue()
        assert "shown" in buffer.getvalue()
