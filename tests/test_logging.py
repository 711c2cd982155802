"""Tests for logging setup and correlation IDs"""

import logging

import pytest
import structlog

from registry_auth.core.config import Settings
from registry_auth.infrastructure.logging import setup_logging
from registry_auth.infrastructure.middleware.correlation import resolve_correlation_id


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    structlog.reset_defaults()
    for name in ("", "httpx", "httpcore", "uvicorn", "uvicorn.access", "uvicorn.error"):
        logger = logging.getLogger(name)
        logger.handlers.clear()
        logger.setLevel(logging.NOTSET)
        logger.propagate = True


class TestSetupLogging:
    """Test levels applied to application and foreign loggers"""

    def test_upstream_request_lines_are_quiet_at_info(self):
        setup_logging(Settings(log_level="INFO"))

        assert logging.getLogger().level == logging.INFO
        assert logging.getLogger("uvicorn.access").level == logging.INFO
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_upstream_request_lines_are_kept_when_debugging(self):
        setup_logging(Settings(log_level="DEBUG"))

        assert logging.getLogger("httpx").level == logging.DEBUG
        assert logging.getLogger("httpcore").level == logging.DEBUG

    def test_foreign_loggers_share_the_root_handler(self):
        setup_logging(Settings(log_level="ERROR"))

        root_handler = logging.getLogger().handlers[0]
        assert logging.getLogger("uvicorn").handlers == [root_handler]
        assert logging.getLogger("httpx").handlers == [root_handler]
        assert logging.getLogger("httpx").level == logging.ERROR
        assert logging.getLogger("httpx").propagate is False


class TestResolveCorrelationID:
    """Test reuse and generation of correlation IDs"""

    @pytest.mark.parametrize("header", ["req-1", "6f1c2a9e.trace:42", "A" * 128])
    def test_well_formed_header_is_reused(self, header):
        assert resolve_correlation_id(header) == header

    @pytest.mark.parametrize("header", [None, "", "has space", "line\nbreak", "A" * 129])
    def test_missing_or_malformed_header_gets_a_new_id(self, header):
        correlation_id = resolve_correlation_id(header)

        assert correlation_id != header
        assert len(correlation_id) == 32
        assert resolve_correlation_id(header) != correlation_id
