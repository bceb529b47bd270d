"""
Error taxonomy for Elasticsearch operations.

Every failure that reaches a tool caller is described by an `ErrorDetails`:
a stable code, a human message, optional raw details, a remediation
suggestion and whether retrying can help.
"""

import functools
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from elasticsearch import (
    ApiError,
    ConnectionError as ESConnectionError,
    ConnectionTimeout,
    SerializationError,
    TransportError,
)


logger = logging.getLogger(__name__)


class ErrorType(str, Enum):
    """Error categories."""
    CONNECTION = "Connection"
    AUTHENTICATION = "Authentication"
    NETWORK = "Network"
    VALIDATION = "Validation"
    NOT_FOUND = "NotFound"
    SERVER_ERROR = "ServerError"
    TIMEOUT = "Timeout"
    RATE_LIMITED = "RateLimited"
    CONFLICT = "Conflict"
    FORBIDDEN = "Forbidden"
    UNKNOWN = "UnknownError"


RECOVERABLE_TYPES = {
    ErrorType.CONNECTION,
    ErrorType.NETWORK,
    ErrorType.TIMEOUT,
    ErrorType.RATE_LIMITED,
    ErrorType.SERVER_ERROR,
}


@dataclass
class ErrorDetails:
    """Structured description of a failed operation."""
    error_type: ErrorType
    code: str
    message: str
    details: Optional[str] = None
    suggestion: Optional[str] = None
    recoverable: bool = False

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": self.error_type.value,
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "suggestion": self.suggestion,
            "recoverable": self.recoverable,
        }

    @classmethod
    def build(
        cls,
        error_type: ErrorType,
        code: str,
        message: str,
        details: Optional[str] = None,
        suggestion: Optional[str] = None,
    ) -> "ErrorDetails":
        return cls(
            error_type=error_type,
            code=code,
            message=message,
            details=details,
            suggestion=suggestion,
            recoverable=error_type in RECOVERABLE_TYPES,
        )

    @classmethod
    def connection_failed(cls, url: str, details: Optional[str] = None) -> "ErrorDetails":
        return cls.build(
            ErrorType.CONNECTION,
            "CONNECTION_FAILED",
            f"Cannot connect to Elasticsearch at {url}".rstrip(),
            details,
            "Check the server address and network, and make sure Elasticsearch is running",
        )

    @classmethod
    def authentication_failed(cls, username: Optional[str] = None, details: Optional[str] = None) -> "ErrorDetails":
        who = f"user '{username}'" if username else "the configured credentials"
        return cls.build(
            ErrorType.AUTHENTICATION,
            "AUTH_FAILED",
            f"Authentication failed for {who}",
            details,
            "Check the username and password",
        )

    @classmethod
    def index_not_found(cls, index: str) -> "ErrorDetails":
        return cls.build(
            ErrorType.NOT_FOUND,
            "INDEX_NOT_FOUND",
            f"Index '{index}' does not exist",
            None,
            "Check the index name, or create the index first",
        )

    @classmethod
    def query_syntax_error(cls, details: str) -> "ErrorDetails":
        return cls.build(
            ErrorType.VALIDATION,
            "QUERY_SYNTAX_ERROR",
            "Query syntax error",
            details,
            "Check the query DSL against the Elasticsearch reference",
        )

    @classmethod
    def timeout_error(cls, operation: str, timeout_ms: int) -> "ErrorDetails":
        return cls.build(
            ErrorType.TIMEOUT,
            "OPERATION_TIMEOUT",
            f"{operation} timed out",
            f"No response within {timeout_ms}ms",
            "Increase the timeout or simplify the request",
        )

    @classmethod
    def network_error(cls, details: str) -> "ErrorDetails":
        return cls.build(
            ErrorType.NETWORK,
            "NETWORK_ERROR",
            "Network error",
            details,
            "Check network connectivity and firewall settings",
        )

    @classmethod
    def validation_error(cls, field: str, message: str) -> "ErrorDetails":
        return cls.build(
            ErrorType.VALIDATION,
            "VALIDATION_ERROR",
            f"Field '{field}' is invalid: {message}",
            None,
            "Check the format and content of the input",
        )

    @classmethod
    def connection_not_found(cls, connection_id: str) -> "ErrorDetails":
        return cls.build(
            ErrorType.VALIDATION,
            "CONNECTION_NOT_FOUND",
            f"Connection '{connection_id}' does not exist",
            None,
            "List saved connections and use one of their ids",
        )

    @classmethod
    def server_error(cls, status: int, body: str) -> "ErrorDetails":
        if status == 400:
            error_type, code, message, suggestion = (
                ErrorType.VALIDATION, "BAD_REQUEST", "Bad request",
                "Check the request parameters",
            )
        elif status == 401:
            error_type, code, message, suggestion = (
                ErrorType.AUTHENTICATION, "UNAUTHORIZED", "Unauthorized",
                "Check the credentials of this connection",
            )
        elif status == 403:
            error_type, code, message, suggestion = (
                ErrorType.FORBIDDEN, "FORBIDDEN", "Permission denied",
                "The user lacks the privileges for this operation",
            )
        elif status == 404:
            error_type, code, message, suggestion = (
                ErrorType.NOT_FOUND, "NOT_FOUND", "Resource not found",
                "Check the resource path and name",
            )
        elif status == 409:
            error_type, code, message, suggestion = (
                ErrorType.CONFLICT, "CONFLICT", "Resource conflict",
                "The resource already exists or was modified concurrently",
            )
        elif status == 429:
            error_type, code, message, suggestion = (
                ErrorType.RATE_LIMITED, "RATE_LIMITED", "Too many requests",
                "Retry later or reduce the request rate",
            )
        elif 500 <= status <= 599:
            error_type, code, message, suggestion = (
                ErrorType.SERVER_ERROR, "SERVER_ERROR", "Elasticsearch server error",
                "Retry later; contact the cluster administrator if it persists",
            )
        else:
            error_type, code, message, suggestion = (
                ErrorType.UNKNOWN, "HTTP_ERROR", f"HTTP error {status}",
                "Check the request or retry later",
            )

        return cls.build(error_type, code, message, body or None, suggestion)


class ElasticOperationError(Exception):
    """An operation failed; `details` describes how."""

    def __init__(self, details: ErrorDetails):
        super().__init__(str(details))
        self.details = details

    @property
    def recoverable(self) -> bool:
        return self.details.recoverable


def _extract_index_from_error(reason: str) -> Optional[str]:
    start = reason.find("index [")
    if start == -1:
        return None
    start += len("index [")
    end = reason.find("]", start)
    if end == -1:
        return None
    return reason[start:end]


def parse_http_error(status: int, body: Any) -> ErrorDetails:
    """
    Classify a non-2xx response from its Elasticsearch error envelope.

    Args:
        status: HTTP status code
        body: Response body, as parsed JSON or raw text

    Returns:
        ErrorDetails for the failure
    """
    if isinstance(body, (str, bytes)):
        raw = body.decode("utf-8", "replace") if isinstance(body, bytes) else body
        try:
            parsed = json.loads(raw)
        except ValueError:
            parsed = None
    else:
        parsed = body
        raw = json.dumps(body, ensure_ascii=False) if body is not None else ""

    error_obj = parsed.get("error") if isinstance(parsed, dict) else None
    if isinstance(error_obj, dict):
        error_type = error_obj.get("type") or "unknown"
        reason = error_obj.get("reason") or "Unknown error"

        if error_type == "index_not_found_exception":
            index = error_obj.get("index") or _extract_index_from_error(reason) or "unknown"
            return ErrorDetails.index_not_found(index)
        if error_type in ("parsing_exception", "query_parsing_exception"):
            return ErrorDetails.query_syntax_error(reason)
        if error_type == "security_exception":
            return ErrorDetails.authentication_failed(details=reason)
        return ErrorDetails.server_error(status, reason)

    return ErrorDetails.server_error(status, raw)


def from_transport_exception(
    exc: Exception,
    url: str = "",
    timeout_ms: int = 30000,
    operation: str = "Request",
) -> ErrorDetails:
    """
    Translate an `elasticsearch` client exception.

    Args:
        exc: Exception raised by the client
        url: Base URL of the cluster, for the message
        timeout_ms: Configured timeout, for the message
        operation: Name of the operation, for the message

    Returns:
        ErrorDetails for the failure
    """
    if isinstance(exc, ApiError):
        return parse_http_error(exc.meta.status, exc.body)
    if isinstance(exc, ConnectionTimeout):
        return ErrorDetails.timeout_error(operation, timeout_ms)
    if isinstance(exc, ESConnectionError):
        return ErrorDetails.connection_failed(url, str(exc))
    if isinstance(exc, (TransportError, SerializationError)):
        return ErrorDetails.network_error(str(exc))
    return ErrorDetails.build(
        ErrorType.UNKNOWN,
        "UNKNOWN_ERROR",
        "Operation failed",
        f"{type(exc).__name__}: {exc}",
        "See the error details",
    )


def error_response(details: ErrorDetails) -> Dict[str, Any]:
    """Tool payload for a failed operation."""
    return {"success": False, "error": details.to_dict()}


def tool_errors(func: Callable) -> Callable:
    """
    Turn expected failures of a tool into a structured error payload.

    ElasticOperationError keeps its details; input, file and credential
    errors become Validation errors. Anything else propagates.
    """
    # Deferred: utils.connection imports this module.
    from utils.codec import CodecError
    from utils.connection import ConnectionStoreError
    from utils.crypto import CredentialError

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ElasticOperationError as e:
            logger.warning("%s failed: %s", func.__name__, e.details.code)
            return error_response(e.details)
        except (CodecError, CredentialError, ConnectionStoreError) as e:
            logger.warning("%s failed: %s", func.__name__, e)
            return error_response(ErrorDetails.build(
                ErrorType.VALIDATION,
                "INVALID_INPUT",
                str(e),
                None,
                "Check the file or stored data and try again",
            ))
        except ValueError as e:
            logger.warning("%s rejected input: %s", func.__name__, e)
            return error_response(ErrorDetails.validation_error("input", str(e)))

    return wrapper
