"""
Tool Router Subagent

Heuristic pre-fetch: decides from the latest user message whether web search
would help, runs it through the MCP server and returns an observation that
the orchestrator folds into the provider context. Every failure (missing
credentials, network, malformed response) comes back as ToolUnavailable so
the turn carries on without the tool.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Union
import logging
import re

from bizpilot.agents.skills.fallback_responder import last_user_message
from bizpilot.mcp.server import MCPServer
from bizpilot.schemas.chat import ConversationEntry, MessageRole, ToolObservation

logger = logging.getLogger(__name__)

SEARCH_TRIGGER = re.compile(r"(latest|news|trends|research|market|compare|vs\b|source|cite|statistics)", re.IGNORECASE)
SEARCH_TOOL = "web_search"
SEARCH_OBSERVATION_NAME = "tavily_search"
MAX_QUERY_CHARS = 300
MAX_RESULTS = 5


@dataclass
class ToolDecision:
    should_invoke: bool
    tool: Optional[str] = None
    query: str = ""


@dataclass
class ToolUnavailable:
    tool: str
    reason: str


ToolOutcome = Union[ToolObservation, ToolUnavailable]


def needs_search(text: str) -> bool:
    return bool(text) and SEARCH_TRIGGER.search(text) is not None


class ToolRouter:
    """Subagent deciding and running the heuristic pre-fetch tool"""

    def __init__(self, mcp_server: MCPServer):
        self.mcp_server = mcp_server

    def decide(self, history: Sequence[ConversationEntry]) -> ToolDecision:
        """Deterministic: identical history text gives an identical decision."""
        last_user = last_user_message(history)
        if needs_search(last_user):
            return ToolDecision(True, SEARCH_TOOL, last_user[:MAX_QUERY_CHARS])
        return ToolDecision(False)

    async def invoke(self, tool: str, query: str, user_id: str) -> ToolOutcome:
        if not self.mcp_server.has_tool(tool):
            return ToolUnavailable(tool, "tool not registered")

        try:
            result = await self.mcp_server.invoke_tool(
                tool, user_id=user_id, query=query, max_results=MAX_RESULTS
            )
        except Exception as e:
            # The turn proceeds without the tool
            logger.warning(f"Tool {tool} raised {e.__class__.__name__}, continuing without it")
            return ToolUnavailable(tool, e.__class__.__name__)

        if not result.get("success"):
            reason = (result.get("error") or {}).get("message", "unknown error")
            logger.info(f"Tool {tool} unavailable: {reason}")
            return ToolUnavailable(tool, reason)

        digest = (result.get("data") or {}).get("digest") or ""
        if not digest:
            return ToolUnavailable(tool, "no results")
        return ToolObservation(tool_name=SEARCH_OBSERVATION_NAME, content=digest)

    async def run(self, history: Sequence[ConversationEntry], user_id: str) -> Optional[ToolObservation]:
        """decide() then invoke(); None when no tool ran successfully."""
        decision = self.decide(history)
        if not decision.should_invoke:
            return None
        outcome = await self.invoke(decision.tool, decision.query, user_id)
        return outcome if isinstance(outcome, ToolObservation) else None

    @staticmethod
    def fold(observation: ToolObservation) -> ConversationEntry:
        """Synthetic system entry carrying the observation into provider context."""
        if observation.tool_name == SEARCH_OBSERVATION_NAME:
            content = f"Web search results (via Tavily):\n\n{observation.content}"
        else:
            content = f"Tool context: {observation.tool_name}\n{observation.content}"
        return ConversationEntry(role=MessageRole.SYSTEM, content=content)
