"""
Error taxonomy for the copilot backend.

Errors that must reach the caller are raised as CopilotError subclasses and
converted to HTTP responses by the application exception handler. Provider
and tool failures are not exceptions: they are returned as typed results
(see agents.providers.base.ProviderOutcome and agents.subagents.tool_router).
"""

from typing import Any, Dict, Optional


class CopilotError(Exception):
    """Base exception for user-visible copilot errors"""
    status_code = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(CopilotError):
    """Unknown resource, or a resource the caller does not own"""
    status_code = 404

    def __init__(self, message: str = "Not found", details: Optional[Dict[str, Any]] = None):
        super().__init__("NOT_FOUND", message, details)


class InputValidationError(CopilotError):
    """Request passed schema validation but is semantically invalid"""
    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class ConflictError(CopilotError):
    """Resource already exists"""
    status_code = 409

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFLICT", message, details)


class AuthenticationError(CopilotError):
    """Missing, invalid or rejected credentials"""
    status_code = 401

    def __init__(self, message: str = "Unauthorized", details: Optional[Dict[str, Any]] = None):
        super().__init__("UNAUTHORIZED", message, details)


class PersistenceError(CopilotError):
    """Write or read failure on the durable backend"""
    status_code = 503

    def __init__(self, message: str = "Conversation storage is unavailable", details: Optional[Dict[str, Any]] = None):
        super().__init__("PERSISTENCE_ERROR", message, details)


class StreamError(CopilotError):
    """A streaming provider failed after part of the reply was delivered"""
    status_code = 502

    def __init__(self, message: str = "stream failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("STREAM_ERROR", message, details)


def error_payload(error: CopilotError) -> Dict[str, Any]:
    """Client-facing body for a CopilotError; never includes details"""
    return {"error": error.message, "code": error.code}
