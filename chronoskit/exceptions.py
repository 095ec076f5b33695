# chronoskit/exceptions.py
from typing import Any, Dict, Optional


class GatewayError(Exception):
    """Base exception for gateway errors.

    Attributes:
        message: Error message.
        operation: Name of the failing gateway operation, if known.
        parameters: Parameters of the failing call with password values masked.
    """

    def __init__(self, message: str, operation: Optional[str] = None,
                 parameters: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.parameters = dict(parameters or {})

    def __str__(self) -> str:
        if not self.operation:
            return self.message
        params = ", ".join(f"{k}={v!r}" for k, v in self.parameters.items())
        return f"{self.message} (operation: {self.operation}({params}))"


class ConnectionError(GatewayError):
    """Raised when the backend cannot be reached or rejects the database login."""

    def __init__(self, message: str, provider: Optional[str] = None, operation: Optional[str] = None,
                 parameters: Optional[Dict[str, Any]] = None):
        super().__init__(message, operation=operation, parameters=parameters)
        self.provider = provider


class BackendError(GatewayError):
    """Raised when the backend rejects a call (constraint, permission or logic failure)."""

    def __init__(self, diagnostic: str, operation: Optional[str] = None,
                 parameters: Optional[Dict[str, Any]] = None, sqlstate: Optional[str] = None):
        super().__init__(diagnostic, operation=operation, parameters=parameters)
        self.diagnostic = diagnostic
        self.sqlstate = sqlstate


class EmptyResultError(GatewayError):
    """Raised when a scalar is extracted from a row-set without rows."""
    pass


class DecodeError(GatewayError):
    """Raised when a result value cannot be converted to the expected type."""

    def __init__(self, value: Any, expected: str, operation: Optional[str] = None,
                 parameters: Optional[Dict[str, Any]] = None):
        super().__init__(f"Cannot decode {value!r} as {expected}", operation=operation, parameters=parameters)
        self.value = value
        self.expected = expected
