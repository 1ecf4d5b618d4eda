"""Error classification utilities for task store failures."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel


class ErrorCategory(Enum):
    """Categories of errors that can occur while reading or writing the store."""

    DATABASE_LOCKED = "database_locked"
    SCHEMA_MISSING = "schema_missing"
    DATABASE_ERROR = "database_error"
    RECORD_NOT_FOUND = "record_not_found"
    INVALID_DATE = "invalid_date"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCode:
    """Error codes for specific error conditions."""

    # Store errors
    ERR_DATABASE_LOCKED = "ERR_DATABASE_LOCKED"
    ERR_SCHEMA_MISSING = "ERR_SCHEMA_MISSING"
    ERR_DATABASE_ERROR = "ERR_DATABASE_ERROR"

    # Data errors
    ERR_RECORD_NOT_FOUND = "ERR_RECORD_NOT_FOUND"
    ERR_INVALID_DATE = "ERR_INVALID_DATE"

    # Generic errors
    ERR_UNKNOWN = "ERR_UNKNOWN"


class ErrorResponse(BaseModel):
    """Structured error response with user-friendly messaging."""

    code: str
    message: str
    suggestion: str
    severity: ErrorSeverity

    @property
    def category(self) -> ErrorCategory:
        return _CODE_CATEGORIES.get(self.code, ErrorCategory.UNKNOWN)


_CODE_CATEGORIES = {
    ErrorCode.ERR_DATABASE_LOCKED: ErrorCategory.DATABASE_LOCKED,
    ErrorCode.ERR_SCHEMA_MISSING: ErrorCategory.SCHEMA_MISSING,
    ErrorCode.ERR_DATABASE_ERROR: ErrorCategory.DATABASE_ERROR,
    ErrorCode.ERR_RECORD_NOT_FOUND: ErrorCategory.RECORD_NOT_FOUND,
    ErrorCode.ERR_INVALID_DATE: ErrorCategory.INVALID_DATE,
}


_ERROR_PATTERNS: dict[
    Literal["locked", "schema", "database", "date"],
    dict[str, list[str] | set[str]],
] = {
    "locked": {
        "phrases": ["database is locked", "database table is locked", "busy"],
        "exception_types": set(),
    },
    "schema": {
        "phrases": ["no such table", "does not exist", "call init_db"],
        "exception_types": set(),
    },
    "database": {
        "phrases": ["failed to create", "failed to list", "failed to get", "failed to upsert", "sqlite"],
        "exception_types": {"OperationalError", "DatabaseError", "IntegrityError"},
    },
    "date": {
        "phrases": ["invalid isoformat", "date", "month must be", "day is out of range"],
        "exception_types": set(),
    },
}


def _match_error_pattern(
    *,
    error_str: str,
    exception_type: str,
    pattern_type: Literal["locked", "schema", "database", "date"],
) -> bool:
    """Return True if the error matches the configured pattern type."""
    patterns = _ERROR_PATTERNS[pattern_type]
    return any(phrase in error_str for phrase in patterns["phrases"]) or exception_type in patterns["exception_types"]


def classify_error_with_response(exception: Exception) -> ErrorResponse:
    """Classify a store error and return a structured response with recovery suggestions.

    db_client wraps driver failures in RuntimeError, so classification looks at
    the message first and the exception type second.

    Args:
        exception: The exception raised while talking to the store

    Returns:
        ErrorResponse with code, message, suggestion, and severity
    """
    error_str = str(exception).lower()
    exception_type = type(exception).__name__

    if _match_error_pattern(error_str=error_str, exception_type=exception_type, pattern_type="locked"):
        return ErrorResponse(
            code=ErrorCode.ERR_DATABASE_LOCKED,
            message="The database is busy with another update.",
            suggestion="Please try again in a moment.",
            severity=ErrorSeverity.MEDIUM,
        )

    if _match_error_pattern(error_str=error_str, exception_type=exception_type, pattern_type="schema"):
        return ErrorResponse(
            code=ErrorCode.ERR_SCHEMA_MISSING,
            message="The database has not been initialized.",
            suggestion="Run the schema setup before reading dashboard data.",
            severity=ErrorSeverity.CRITICAL,
        )

    if exception_type == "KeyError" or "not found" in error_str:
        return ErrorResponse(
            code=ErrorCode.ERR_RECORD_NOT_FOUND,
            message="The requested record was not found.",
            suggestion="Check that the location still exists.",
            severity=ErrorSeverity.LOW,
        )

    if exception_type == "ValueError" and _match_error_pattern(
        error_str=error_str, exception_type=exception_type, pattern_type="date"
    ):
        return ErrorResponse(
            code=ErrorCode.ERR_INVALID_DATE,
            message="A stored date could not be read.",
            suggestion="Dates must use the YYYY-MM-DD format.",
            severity=ErrorSeverity.LOW,
        )

    if _match_error_pattern(error_str=error_str, exception_type=exception_type, pattern_type="database"):
        return ErrorResponse(
            code=ErrorCode.ERR_DATABASE_ERROR,
            message="The database could not complete the request.",
            suggestion="Please try again later. If the problem persists, check the database file.",
            severity=ErrorSeverity.HIGH,
        )

    return ErrorResponse(
        code=ErrorCode.ERR_UNKNOWN,
        message="An unexpected error occurred.",
        suggestion="Please try again later. If the problem persists, contact support.",
        severity=ErrorSeverity.MEDIUM,
    )
