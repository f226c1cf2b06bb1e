"""
Web Search MCP Tool

Queries the Tavily search API and returns the results plus a compact digest
that can be folded into a model's context.
"""

from typing import Any, Dict, List, Optional
import logging

import httpx

from bizpilot.mcp.base_tool import BaseMCPTool, MCPToolError, create_success_response

logger = logging.getLogger(__name__)

TAVILY_SEARCH_URL = "https://api.tavily.com/search"
MAX_QUERY_CHARS = 300
SNIPPET_CHARS = 300
DEFAULT_MAX_RESULTS = 5


def format_digest(results: List[Dict[str, Any]]) -> str:
    """One block per result: '- title — url' followed by a truncated snippet."""
    blocks = []
    for result in results:
        snippet = (result.get("content") or "")[:SNIPPET_CHARS]
        blocks.append(f"- {result.get('title', '')} — {result.get('url', '')}\n{snippet}")
    return "\n\n".join(blocks)


class WebSearchTool(BaseMCPTool):
    """MCP Tool for web research via Tavily"""

    name = "web_search"

    def __init__(self, api_key: Optional[str], http_client: Optional[httpx.AsyncClient] = None):
        self.api_key = api_key
        self.http_client = http_client

    async def _post(self, payload: Dict[str, Any]) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self.api_key}"}
        if self.http_client is not None:
            return await self.http_client.post(TAVILY_SEARCH_URL, json=payload, headers=headers)
        async with httpx.AsyncClient(timeout=30.0) as client:
            return await client.post(TAVILY_SEARCH_URL, json=payload, headers=headers)

    async def execute(self, user_id: str, query: str, max_results: int = DEFAULT_MAX_RESULTS, **kwargs) -> Dict[str, Any]:
        """
        Search the web.

        Args:
            user_id: Caller, for audit only
            query: Search text; truncated to 300 characters
            max_results: Upper bound on results requested

        Returns:
            Envelope with data {"results": [...], "digest": str}
        """
        self.log_tool_invocation(user_id, {"query": query[:50]})
        self.validate_user_id(user_id)

        if not self.api_key:
            raise MCPToolError(code="UNAVAILABLE", message="Web search is not configured")
        if not query or not query.strip():
            raise MCPToolError(
                code="VALIDATION_ERROR",
                message="Search query cannot be empty",
                details={"field": "query"}
            )

        payload = {"query": query[:MAX_QUERY_CHARS], "max_results": max_results}
        try:
            response = await self._post(payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as e:
            raise MCPToolError(code="UPSTREAM_ERROR", message=f"Search request failed: {e.__class__.__name__}") from e
        except ValueError as e:
            raise MCPToolError(code="UPSTREAM_ERROR", message="Search returned malformed JSON") from e

        results = body.get("results") if isinstance(body, dict) else None
        if not isinstance(results, list):
            raise MCPToolError(code="UPSTREAM_ERROR", message="Search response has no results list")

        results = [
            {"title": r.get("title", ""), "url": r.get("url", ""), "content": r.get("content") or ""}
            for r in results if isinstance(r, dict)
        ][:max_results]
        logger.info(f"Web search returned {len(results)} results")
        return create_success_response(
            data={"results": results, "digest": format_digest(results)},
            message=f"Found {len(results)} results"
        )


def register_web_search_tool(mcp_server, api_key: Optional[str], http_client: Optional[httpx.AsyncClient] = None):
    """Register web_search tool with MCP server"""
    from bizpilot.mcp.server import MCPTool

    tool = WebSearchTool(api_key, http_client)
    mcp_server.register_tool(MCPTool(
        name="web_search",
        description="Search the web for current information such as news, market trends, statistics and sources. Returns results with URLs.",
        parameters={
            "type": "object",
            "properties": {
                "user_id": {"type": "string", "description": "User ID"},
                "query": {"type": "string", "description": "The search query"}
            },
            "required": ["user_id", "query"]
        },
        handler=lambda **kwargs: tool.run(**kwargs)
    ))
