"""Tests for error handling."""

import logging

import pytest

from transcripts2fasta.error_handler import (
    ConfigurationError, ErrorHandler, ErrorSeverity, ErrorType, ExportError,
    OutputError, QueryError, SequenceFetchError, StoreConnectionError,
    UnstrandedTranscriptError
)


class TestErrorHandler:
    """Test cases for error handler."""

    @pytest.fixture
    def handler(self):
        return ErrorHandler()

    def test_error_classification(self, handler):
        """Test error type classification."""
        assert handler._classify_error(ConfigurationError("no host")) == ErrorType.CONFIGURATION
        assert handler._classify_error(StoreConnectionError("refused")) == ErrorType.CONNECTION
        assert handler._classify_error(QueryError("bad table")) == ErrorType.QUERY
        assert handler._classify_error(SequenceFetchError("no dna")) == ErrorType.SEQUENCE_FETCH
        assert handler._classify_error(OutputError("read-only")) == ErrorType.OUTPUT

        # Unknown strand is a query-stage failure
        assert handler._classify_error(UnstrandedTranscriptError("T0")) == ErrorType.QUERY

        # Plain exceptions
        assert handler._classify_error(PermissionError("denied")) == ErrorType.OUTPUT
        assert handler._classify_error(TimeoutError("Connection timed out")) == ErrorType.CONNECTION
        assert handler._classify_error(Exception("Something went wrong")) == ErrorType.UNKNOWN

    @pytest.mark.parametrize("error,code", [
        (ConfigurationError("x"), 2),
        (StoreConnectionError("x"), 3),
        (QueryError("x"), 4),
        (SequenceFetchError("x"), 4),
        (OutputError("x"), 5),
        (ExportError("x"), 1),
    ])
    def test_exit_codes(self, error, code):
        assert error.exit_code == code

    def test_severity_determination(self, handler):
        assert handler._determine_severity(ErrorType.CONFIGURATION) == ErrorSeverity.ERROR
        assert handler._determine_severity(ErrorType.CONNECTION) == ErrorSeverity.ERROR
        assert handler._determine_severity(ErrorType.UNKNOWN) == ErrorSeverity.CRITICAL

    def test_handle_error(self, handler):
        """Test error handling."""
        error = StoreConnectionError("Cannot connect to ro@dbhost:3306/core")

        context = handler.handle_error(error, operation="export", item_id="ENST01")

        assert context.error_type == ErrorType.CONNECTION
        assert context.exit_code == 3
        assert context.operation == "export"
        assert context.item_id == "ENST01"
        assert context.suggestion is not None
        assert context.traceback is None
        assert handler.error_history == [context]

    def test_unknown_error_keeps_traceback(self, handler):
        try:
            raise RuntimeError("boom")
        except RuntimeError as e:
            context = handler.handle_error(e, operation="export")

        assert context.severity == ErrorSeverity.CRITICAL
        assert context.exit_code == 1
        assert "RuntimeError: boom" in context.traceback

    def test_error_is_logged(self, handler, caplog):
        with caplog.at_level(logging.INFO):
            handler.handle_error(SequenceFetchError("Unknown seq region 'chrZ'"), operation="export")

        assert "export - sequence_fetch: Unknown seq region 'chrZ'" in caplog.text
        assert "Suggestion:" in caplog.text
