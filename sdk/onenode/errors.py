"""
Error types for OneNode SDK.

This module defines all exception types raised by the SDK:
- OneNodeError: Base exception
- ValidationError: Field content or option validation failures
- UnsupportedTypeError: Document leaf with no wire encoding
- TooDeepError: Document nesting exceeds the depth ceiling
- ConfigurationError: Missing or inconsistent client settings
- APIClientError: Error response from the service
  (AuthenticationError, ClientRequestError, ServerError)

Invariants:
    - All errors inherit from OneNodeError
    - Local errors are raised before any request is sent
    - Errors include context for debugging
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class OneNodeError(Exception):
    """Base exception for all OneNode SDK errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "ONENODE_ERROR"
        self.details = details or {}


class ValidationError(OneNodeError):
    """Local validation failed.

    Raised when:
    - Text content is empty or whitespace only
    - Image payload is malformed base64 or of an unsupported type
    - MIME type or model name is not supported
    - A wire object lacks a required field
    """

    def __init__(
        self,
        message: str,
        field_name: Optional[str] = None,
        errors: Optional[List[str]] = None,
    ) -> None:
        super().__init__(
            message,
            code="VALIDATION_ERROR",
            details={"field": field_name, "errors": errors or []},
        )
        self.field_name = field_name
        self.errors = errors or []


class UnsupportedTypeError(OneNodeError):
    """A document leaf has no wire encoding.

    Attributes:
        type_name: Name of the offending runtime type
    """

    def __init__(self, type_name: str) -> None:
        super().__init__(
            f"Unsupported BSON type: {type_name}",
            code="UNSUPPORTED_TYPE",
            details={"type_name": type_name},
        )
        self.type_name = type_name


class TooDeepError(OneNodeError):
    """Document nesting exceeded the depth ceiling.

    Usually a circular structure. Not retryable.
    """

    def __init__(self, max_depth: int, operation: str = "serialize") -> None:
        super().__init__(
            f"Too much nesting or circular structure in {operation}() "
            f"(max depth {max_depth})",
            code="TOO_DEEP",
            details={"max_depth": max_depth, "operation": operation},
        )
        self.max_depth = max_depth
        self.operation = operation


class ConfigurationError(OneNodeError):
    """Client settings are missing or inconsistent."""

    def __init__(self, message: str, setting: Optional[str] = None) -> None:
        super().__init__(
            message,
            code="CONFIGURATION_ERROR",
            details={"setting": setting},
        )
        self.setting = setting


class APIClientError(OneNodeError):
    """The service returned an error response.

    Attributes:
        status_code: HTTP status (or service error code)
    """

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(
            message,
            code="API_ERROR",
            details={"status_code": status_code},
        )
        self.status_code = status_code

    def __str__(self) -> str:
        return f"[{self.status_code}] {self.message}"


class AuthenticationError(APIClientError):
    """API key was rejected (401)."""


class ClientRequestError(APIClientError):
    """The request was malformed or refused (4xx)."""


class ServerError(APIClientError):
    """The service failed to handle the request (5xx)."""
