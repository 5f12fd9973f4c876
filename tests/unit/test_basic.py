"""
Basic tests for vPLC Collector

Author: uldyssian-sh
License: MIT
"""

import json
import logging

import pytest

from vplc_collector.exceptions import (
    CollectionFault,
    ConfigurationError,
    PayloadParseError,
    VPLCAuthenticationError,
    VPLCCollectorError,
    VPLCConnectionError,
)
from vplc_collector.logging_config import ConsoleFormatter, StructuredFormatter
from vplc_collector.session import VPLCSession


class TestExceptions:
    """Test custom exceptions"""

    def test_base_exception(self):
        error = VPLCCollectorError("Test error")
        assert str(error) == "Test error"
        assert isinstance(error, Exception)

    @pytest.mark.parametrize("error_class", [
        ConfigurationError, VPLCAuthenticationError, VPLCConnectionError, PayloadParseError
    ])
    def test_taxonomy(self, error_class):
        error = error_class("failed")
        assert str(error) == "failed"
        assert isinstance(error, VPLCCollectorError)

    def test_collection_fault(self):
        cause = KeyError("performanceMetrics")
        fault = CollectionFault("line-1", cause)
        assert fault.instance == "line-1"
        assert fault.cause is cause
        assert "line-1" in str(fault)
        assert isinstance(fault, VPLCCollectorError)


class TestSession:
    """Test VPLCSession"""

    def test_initial_state(self):
        session = VPLCSession(instance="line-1")
        assert session.is_valid == False
        assert session.token is None

    def test_establish_and_invalidate(self):
        session = VPLCSession(instance="line-1")
        session.establish("abc")
        assert session.is_valid == True
        assert session.established_at is not None

        session.invalidate("API request failed with status: 401")
        assert session.is_valid == False
        assert session.token is None
        assert session.invalidated_reason == "API request failed with status: 401"

    def test_token_not_in_repr(self):
        session = VPLCSession(instance="line-1")
        session.establish("very-secret-token")
        assert "very-secret-token" not in repr(session)


class TestFormatters:
    """Test log formatters"""

    def _record(self):
        record = logging.LogRecord("vplc_collector.collector", logging.WARNING, __file__, 10,
                                   "Authentication failed", (), None)
        record.instance = "line-1"
        record.error = "status: 401"
        return record

    def test_structured_formatter(self):
        entry = json.loads(StructuredFormatter().format(self._record()))
        assert entry["message"] == "Authentication failed"
        assert entry["level"] == "WARNING"
        assert entry["logger"] == "vplc_collector.collector"
        assert entry["instance"] == "line-1"
        assert entry["error"] == "status: 401"

    def test_console_formatter(self):
        line = ConsoleFormatter().format(self._record())
        assert "Authentication failed" in line
        assert "instance=line-1" in line


class TestModuleImports:
    """Test module imports"""

    def test_main_module_import(self):
        import vplc_collector
        assert vplc_collector.__version__ == "1.0.0"
        assert vplc_collector.get_info()["name"] == "vPLC Collector"

    def test_supervisor_import(self):
        from vplc_collector.supervisor import CollectorSupervisor
        assert CollectorSupervisor is not None
