"""
Create Task MCP Tool

Creates a task for the calling user. Only available when the durable
storage backend is active.
"""

from typing import Any, Dict, Optional
import logging

from bizpilot.errors import PersistenceError
from bizpilot.mcp.base_tool import BaseMCPTool, MCPToolError, create_success_response
from bizpilot.services.task_service import TaskService

logger = logging.getLogger(__name__)

NO_DATABASE_MESSAGE = "Task creation unavailable (no database connection)."


class CreateTaskTool(BaseMCPTool):
    """MCP Tool for adding tasks"""

    name = "create_task"

    def __init__(self, task_service: Optional[TaskService]):
        self.task_service = task_service

    async def execute(self, user_id: str, title: str = "", description: Optional[str] = None, **kwargs) -> Dict[str, Any]:
        self.log_tool_invocation(user_id, {"title": title})
        self.validate_user_id(user_id)

        if self.task_service is None:
            raise MCPToolError(code="UNAVAILABLE", message=NO_DATABASE_MESSAGE)

        if not title or not isinstance(title, str) or not title.strip():
            raise MCPToolError(
                code="VALIDATION_ERROR",
                message="Task title cannot be empty",
                details={"field": "title"}
            )

        description = description.strip() if isinstance(description, str) else None
        try:
            task = self.task_service.create_task(user_id, title.strip(), description or None)
        except PersistenceError as e:
            raise MCPToolError(code="PERSISTENCE_ERROR", message=f"Failed to create task: {e.message}") from e

        return create_success_response(
            data={"id": task.id, "title": task.title, "description": task.description, "status": task.status},
            message=f"Task created: {task.title}"
        )


def register_create_task_tool(mcp_server, task_service: Optional[TaskService]):
    """Register create_task tool with MCP server"""
    from bizpilot.mcp.server import MCPTool

    tool = CreateTaskTool(task_service)
    mcp_server.register_tool(MCPTool(
        name="create_task",
        description="Create a task with a title and optional description for the current user",
        parameters={
            "type": "object",
            "properties": {
                "user_id": {"type": "string", "description": "User ID"},
                "title": {"type": "string", "description": "Task title"},
                "description": {"type": "string", "description": "Task description (optional)"}
            },
            "required": ["user_id", "title"]
        },
        handler=lambda **kwargs: tool.run(**kwargs)
    ))
