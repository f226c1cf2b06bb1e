"""
Agentic OpenAI provider.

Runs a tool-calling loop: the model may call any tool registered on the MCP
server, results are appended to the conversation and fed back until the model
answers without tool calls or the round limit is reached. URLs found in tool
results (else in the answer) are returned as citations alongside the text.
"""

from typing import Any, Dict, List, Optional
import json
import logging

from openai import AsyncOpenAI

from bizpilot.agents.providers.base import ChatMessages, Provider, ProviderOutcome
from bizpilot.agents.skills.citation_extraction import extract_citations, merge_citations
from bizpilot.mcp.server import MCPServer
from bizpilot.schemas.chat import ToolObservation

logger = logging.getLogger(__name__)

AGENT_TEMPERATURE = 0.2
MAX_TOOL_ROUNDS = 5
AGENT_INSTRUCTIONS = " Use tools when helpful. Include short citations (links) when you rely on web research."

# Observation names as they appear in toolResults
OBSERVATION_NAMES = {"web_search": "tavily_search"}


def _strings(value: Any) -> List[str]:
    """All string leaves of a tool result, depth first."""
    if isinstance(value, str):
        return [value]
    if isinstance(value, dict):
        return [s for v in value.values() for s in _strings(v)]
    if isinstance(value, (list, tuple)):
        return [s for v in value for s in _strings(v)]
    return []


class AgenticProvider(Provider):
    name = "openai_agent"

    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        mcp_server: MCPServer,
        client: Optional[AsyncOpenAI] = None,
        max_rounds: int = MAX_TOOL_ROUNDS,
        max_citations: int = 5
    ):
        self.api_key = api_key
        self.model = model
        self.mcp_server = mcp_server
        self.max_rounds = max_rounds
        self.max_citations = max_citations
        self._client = client

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    async def _call_tool(self, name: str, arguments: str, user_id: str) -> Dict[str, Any]:
        try:
            args = json.loads(arguments or "{}")
        except json.JSONDecodeError:
            return {"success": False, "error": {"message": "Arguments were not valid JSON"}}
        if not isinstance(args, dict):
            return {"success": False, "error": {"message": "Arguments must be an object"}}

        args.pop("user_id", None)
        try:
            return await self.mcp_server.invoke_tool(name, user_id=user_id, **args)
        except (ValueError, TypeError) as e:
            return {"success": False, "error": {"message": str(e)}}

    def _with_instructions(self, messages: ChatMessages) -> List[Dict[str, Any]]:
        conversation: List[Dict[str, Any]] = [dict(m) for m in messages]
        if conversation and conversation[0]["role"] == "system":
            conversation[0]["content"] += AGENT_INSTRUCTIONS
        return conversation

    async def _complete(self, messages: ChatMessages, user_id: Optional[str]) -> ProviderOutcome:
        conversation = self._with_instructions(messages)
        tools = self.mcp_server.get_function_definitions() if user_id else []
        observations: List[ToolObservation] = []
        text = ""

        logger.info(f"Agent executing with model {self.model}, tools: {[t['function']['name'] for t in tools]}")
        for round_number in range(self.max_rounds + 1):
            request: Dict[str, Any] = {
                "model": self.model,
                "messages": conversation,
                "temperature": AGENT_TEMPERATURE,
            }
            # Final round must answer in text
            if tools and round_number < self.max_rounds:
                request["tools"] = tools

            completion = await self.client.chat.completions.create(**request)
            if not completion.choices:
                return ProviderOutcome.failure("no choices")
            message = completion.choices[0].message
            tool_calls = message.tool_calls or []
            if not tool_calls:
                text = message.content or ""
                break

            conversation.append({
                "role": "assistant",
                "content": message.content or "",
                "tool_calls": [
                    {
                        "id": call.id,
                        "type": "function",
                        "function": {"name": call.function.name, "arguments": call.function.arguments},
                    }
                    for call in tool_calls
                ],
            })
            for call in tool_calls:
                result = await self._call_tool(call.function.name, call.function.arguments, user_id)
                serialized = json.dumps(result, default=str)
                urls = extract_citations("\n".join(_strings(result)), max_items=50)
                if urls:
                    observations.append(ToolObservation(
                        tool_name=OBSERVATION_NAMES.get(call.function.name, call.function.name),
                        content="\n".join(urls)
                    ))
                conversation.append({"role": "tool", "tool_call_id": call.id, "content": serialized})

        if not observations:
            urls = extract_citations(text, self.max_citations)
            if urls:
                observations.append(ToolObservation(tool_name="assistant_links", content="\n".join(urls)))

        citations = merge_citations([o.content for o in observations], self.max_citations)
        return ProviderOutcome(text=text, citations=citations, observations=observations)
