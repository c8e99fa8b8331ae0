"""Error taxonomy and error handling for the export run."""

import logging
import time
import traceback
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorType(Enum):
    """Types of errors that can occur."""
    CONFIGURATION = "configuration"
    CONNECTION = "connection"
    QUERY = "query"
    SEQUENCE_FETCH = "sequence_fetch"
    OUTPUT = "output"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Severity levels for errors."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


EXIT_CODES = {
    ErrorType.CONFIGURATION: 2,
    ErrorType.CONNECTION: 3,
    ErrorType.QUERY: 4,
    ErrorType.SEQUENCE_FETCH: 4,
    ErrorType.OUTPUT: 5,
    ErrorType.UNKNOWN: 1,
}


class ExportError(Exception):
    """Base class for errors raised while exporting transcripts."""
    error_type = ErrorType.UNKNOWN

    @property
    def exit_code(self) -> int:
        return EXIT_CODES[self.error_type]


class ConfigurationError(ExportError):
    """Missing or invalid configuration, detected before any store access."""
    error_type = ErrorType.CONFIGURATION


class StoreConnectionError(ExportError):
    """A store could not be reached or refused the credentials."""
    error_type = ErrorType.CONNECTION


class QueryError(ExportError):
    """A query against the annotation store failed."""
    error_type = ErrorType.QUERY


class UnstrandedTranscriptError(QueryError):
    """A transcript with unknown strand was met under the 'error' policy."""


class SequenceFetchError(ExportError):
    """A sequence range lookup failed."""
    error_type = ErrorType.SEQUENCE_FETCH


class OutputError(ExportError):
    """The output sink could not be opened or written."""
    error_type = ErrorType.OUTPUT


@dataclass
class ErrorContext:
    """Context information for an error."""
    error_type: ErrorType
    severity: ErrorSeverity
    message: str
    timestamp: float
    operation: str
    item_id: Optional[str] = None
    exit_code: int = 1
    details: Optional[Dict[str, Any]] = None
    exception: Optional[Exception] = None
    traceback: Optional[str] = None
    suggestion: Optional[str] = None


class ErrorHandler:
    """Classifies, logs and records errors raised during an export."""

    SUGGESTIONS = {
        ErrorType.CONFIGURATION: "Check the database options (--dbhost, --dbuser, --dbname) or the config file.",
        ErrorType.CONNECTION: "Check that the database server is reachable and the credentials are correct.",
        ErrorType.QUERY: "Check that the database is an Ensembl core database and the biotype is valid.",
        ErrorType.SEQUENCE_FETCH: "Check that DNA is loaded, or attach a DNA database with --dnahost/--dnadbname.",
        ErrorType.OUTPUT: "Check that the output path is writable.",
        ErrorType.UNKNOWN: None,
    }

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.error_history: List[ErrorContext] = []

    def handle_error(self,
                     error: Exception,
                     operation: str,
                     item_id: Optional[str] = None,
                     **kwargs) -> ErrorContext:
        """
        Classify and log an error.

        Args:
            error: The exception that occurred
            operation: The operation being performed
            item_id: Optional item identifier (e.g. a transcript stable ID)
            **kwargs: Additional context data

        Returns:
            ErrorContext with error details and suggestion
        """
        error_type = self._classify_error(error)
        severity = self._determine_severity(error_type)

        context = ErrorContext(
            error_type=error_type,
            severity=severity,
            message=str(error),
            timestamp=time.time(),
            operation=operation,
            item_id=item_id,
            exit_code=EXIT_CODES[error_type],
            details=kwargs,
            exception=error,
            traceback=(
                "".join(traceback.format_exception(type(error), error, error.__traceback__))
                if severity == ErrorSeverity.CRITICAL else None
            ),
            suggestion=self.SUGGESTIONS.get(error_type),
        )

        self._log_error(context)
        self.error_history.append(context)
        return context

    def _classify_error(self, error: Exception) -> ErrorType:
        """Classify the error type based on exception."""
        if isinstance(error, ExportError):
            return error.error_type

        if isinstance(error, (FileNotFoundError, PermissionError, IsADirectoryError)):
            return ErrorType.OUTPUT

        error_str = str(error).lower()
        if any(term in error_str for term in ['timed out', 'timeout', 'connection refused', "can't connect"]):
            return ErrorType.CONNECTION

        return ErrorType.UNKNOWN

    def _determine_severity(self, error_type: ErrorType) -> ErrorSeverity:
        """Configuration problems are user errors; the rest abort a running export."""
        if error_type == ErrorType.CONFIGURATION:
            return ErrorSeverity.ERROR
        if error_type == ErrorType.UNKNOWN:
            return ErrorSeverity.CRITICAL
        return ErrorSeverity.ERROR

    def _log_error(self, context: ErrorContext):
        """Log error with appropriate level and details."""
        log_message = f"{context.operation} - {context.error_type.value}: {context.message}"

        if context.item_id:
            log_message += f" (item: {context.item_id})"

        if context.severity == ErrorSeverity.CRITICAL:
            self.logger.critical(log_message)
            if context.traceback:
                self.logger.critical(f"Traceback:\n{context.traceback}")
        elif context.severity == ErrorSeverity.WARNING:
            self.logger.warning(log_message)
        else:
            self.logger.error(log_message)

        if context.suggestion:
            self.logger.info(f"Suggestion: {context.suggestion}")
