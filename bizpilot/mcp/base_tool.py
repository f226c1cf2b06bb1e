"""
MCP Base Tool Interface

Provides base functionality for all MCP tools: user id validation, audit
logging and the standard response envelope.
"""

from typing import Any, Dict, Optional
from abc import ABC, abstractmethod
import logging

logger = logging.getLogger(__name__)


class MCPToolError(Exception):
    """Base exception for MCP tool errors"""
    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class BaseMCPTool(ABC):
    """
    Base class for all MCP tools

    Subclasses implement execute(); run() wraps it so that a tool never
    raises into the caller and always answers with an envelope.
    """

    name = "tool"

    def validate_user_id(self, user_id: str) -> None:
        """
        Validate that user_id is provided and non-empty

        Raises:
            MCPToolError: If user_id is invalid
        """
        if not user_id or not isinstance(user_id, str):
            logger.error("MCP tool called without valid user_id")
            raise MCPToolError(
                code="UNAUTHORIZED",
                message="Invalid or missing user_id",
                details={"field": "user_id"}
            )

    def log_tool_invocation(self, user_id: str, params: Dict[str, Any]) -> None:
        """
        Log MCP tool invocation for audit trail

        Args:
            user_id: User making the request
            params: Tool parameters (sensitive data should be redacted)
        """
        safe_params = {k: v for k, v in params.items() if k not in ['password', 'token', 'secret', 'api_key']}

        logger.info(
            f"MCP Tool Invocation: {self.name} | User: {user_id} | Params: {safe_params}"
        )

    @abstractmethod
    async def execute(self, **kwargs) -> Dict[str, Any]:
        """
        Execute the tool logic

        Args:
            **kwargs: Tool-specific parameters (must include user_id)

        Returns:
            Tool execution result
        """
        pass

    async def run(self, **kwargs) -> Dict[str, Any]:
        try:
            return await self.execute(**kwargs)
        except MCPToolError as e:
            logger.warning(f"Tool {self.name} returned error {e.code}: {e.message}")
            return create_error_response(e)


def create_error_response(error: MCPToolError) -> Dict[str, Any]:
    """
    Create a standardized error response

    Args:
        error: The MCPToolError to convert

    Returns:
        Standardized error response dictionary
    """
    return {
        "success": False,
        "error": {
            "code": error.code,
            "message": error.message,
            "details": error.details
        }
    }


def create_success_response(data: Any, message: Optional[str] = None) -> Dict[str, Any]:
    """
    Create a standardized success response

    Args:
        data: The response data
        message: Optional success message

    Returns:
        Standardized success response dictionary
    """
    response = {
        "success": True,
        "data": data
    }

    if message:
        response["message"] = message

    return response
