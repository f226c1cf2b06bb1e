"""
MCP Server Implementation

In-process tool server shared by the heuristic ToolRouter and the agentic
provider. Both reach tools only through this registry, so every tool call is
logged, carries the caller's user_id, and returns the same response envelope.
"""

from typing import Any, Callable, Dict, List
from dataclasses import dataclass
import logging

logger = logging.getLogger(__name__)

# Injected by the server on every call; never exposed to a model
INJECTED_PARAMS = ("user_id",)


@dataclass
class MCPTool:
    """MCP Tool definition"""
    name: str
    description: str
    parameters: Dict[str, Any]
    handler: Callable


class MCPServer:
    """
    MCP Server for copilot tools

    Provides tools that agents can invoke on behalf of a user.
    """

    def __init__(self, name: str = "bizpilot-mcp-server"):
        self.tools: Dict[str, MCPTool] = {}
        self.name = name
        logger.info(f"Initializing MCP Server: {self.name}")

    def register_tool(self, tool: MCPTool):
        """Register a tool with the MCP server"""
        if tool.name in self.tools:
            logger.warning(f"Tool {tool.name} already registered, overwriting")

        self.tools[tool.name] = tool
        logger.info(f"Registered MCP tool: {tool.name}")

    def get_tool(self, name: str) -> MCPTool:
        """Get a registered tool by name"""
        if name not in self.tools:
            raise ValueError(f"Tool {name} not found. Available tools: {list(self.tools.keys())}")
        return self.tools[name]

    def has_tool(self, name: str) -> bool:
        return name in self.tools

    def list_tools(self) -> List[str]:
        """List all registered tool names"""
        return list(self.tools.keys())

    async def invoke_tool(self, tool_name: str, **kwargs) -> Dict[str, Any]:
        """
        Invoke a tool with parameters

        Args:
            tool_name: Name of the tool to invoke
            **kwargs: Tool parameters (must include user_id)

        Returns:
            Tool response envelope (see base_tool.create_success_response)

        Raises:
            ValueError: If tool not found or user_id missing
        """
        tool = self.get_tool(tool_name)

        if 'user_id' not in kwargs:
            raise ValueError("user_id is required for all MCP tool calls")

        logger.info(f"Invoking MCP tool: {tool_name} for user: {kwargs['user_id']}")

        try:
            result = await tool.handler(**kwargs)
            logger.info(f"Tool {tool_name} executed successfully")
            return result
        except Exception as e:
            logger.error(f"Tool {tool_name} failed: {str(e)}")
            raise

    def get_tool_schemas(self) -> Dict[str, Dict[str, Any]]:
        """Get JSON schemas for all registered tools"""
        return {
            name: {
                "name": tool.name,
                "description": tool.description,
                "parameters": tool.parameters
            }
            for name, tool in self.tools.items()
        }

    def get_function_definitions(self) -> List[Dict[str, Any]]:
        """Tool schemas in chat-completions function-calling format, minus injected params"""
        definitions = []
        for tool in self.tools.values():
            parameters = dict(tool.parameters)
            parameters["properties"] = {
                k: v for k, v in tool.parameters.get("properties", {}).items()
                if k not in INJECTED_PARAMS
            }
            parameters["required"] = [
                r for r in tool.parameters.get("required", []) if r not in INJECTED_PARAMS
            ]
            definitions.append({
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": parameters
                }
            })
        return definitions
