"""
Formsheets Error Handling

Specific error types with user-facing messages and debugging context.
"""
from typing import Optional, Dict, Any
from enum import Enum


class ErrorCode(str, Enum):
    """Standardized error codes for client handling."""
    # Startup errors
    INVALID_CONFIG = "INVALID_CONFIG"

    # Token exchange errors
    AUTH_FAILED = "AUTH_FAILED"

    # External service errors
    SHEETS_ERROR = "SHEETS_ERROR"

    # Audit store errors (never surfaced to callers)
    SYNC_LOG_FAILED = "SYNC_LOG_FAILED"


class FormSheetsError(Exception):
    """Base exception with structured error info."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        detail: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.detail = detail
        self.context = context or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to API response format."""
        result: Dict[str, Any] = {
            "success": False,
            "error": self.message,
        }
        if self.detail:
            result["details"] = self.detail
        return result


class ConfigurationError(FormSheetsError):
    """Missing or malformed credential/spreadsheet configuration."""

    def __init__(self, detail: str, field: Optional[str] = None):
        super().__init__(
            code=ErrorCode.INVALID_CONFIG,
            message="Google Sheets integration not configured",
            detail=detail,
            context={"field": field} if field else None
        )


class AuthError(FormSheetsError):
    """Token exchange rejected or failed in transit."""

    def __init__(self, detail: str, status_code: Optional[int] = None):
        super().__init__(
            code=ErrorCode.AUTH_FAILED,
            message=f"Failed to get access token: {detail}",
            detail=detail,
            context={"status_code": status_code} if status_code else None
        )
        self.status_code = status_code


class RemoteError(FormSheetsError):
    """Non-2xx or failed call to the Sheets API."""

    def __init__(
        self,
        operation: str,
        message: str,
        status_code: Optional[int] = None,
        detail: Optional[str] = None
    ):
        context: Dict[str, Any] = {"operation": operation}
        if status_code:
            context["status_code"] = status_code
        super().__init__(
            code=ErrorCode.SHEETS_ERROR,
            message=f"Google Sheets API error: {message}",
            detail=detail,
            context=context
        )
        self.operation = operation
        self.status_code = status_code


class LoggingError(FormSheetsError):
    """Failure to persist an audit record."""

    def __init__(self, detail: str):
        super().__init__(
            code=ErrorCode.SYNC_LOG_FAILED,
            message="Failed to log sheet sync",
            detail=detail
        )


# Every error that reaches a caller is reported as a server failure.
STATUS_MAP = {
    ErrorCode.INVALID_CONFIG: 500,
    ErrorCode.AUTH_FAILED: 500,
    ErrorCode.SHEETS_ERROR: 500,
    ErrorCode.SYNC_LOG_FAILED: 500,
}


def status_code_for(error: FormSheetsError) -> int:
    """HTTP status code for an error."""
    return STATUS_MAP.get(error.code, 500)
