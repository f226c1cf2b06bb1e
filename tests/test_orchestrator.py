"""Tests for the conversation orchestrator (buffered and streaming turns)."""

import asyncio

import httpx
import pytest

from bizpilot.agents.main_agent import DEFAULT_ANALYSIS_PROMPT, ConversationOrchestrator
from bizpilot.agents.provider_chain import ProviderChain
from bizpilot.agents.subagents.tool_router import ToolRouter
from bizpilot.errors import InputValidationError, PersistenceError
from bizpilot.mcp.server import MCPServer
from bizpilot.mcp.tools.web_search import register_web_search_tool
from bizpilot.schemas.chat import MessageRole
from bizpilot.services.conversation_store import MemoryConversationStore
from tests.fakes import StubProvider, mock_http_client, tavily_results

OWNER = "owner-1"


def build(providers=(), search_handler=None, store=None):
    server = MCPServer()
    client = mock_http_client(search_handler) if search_handler else None
    register_web_search_tool(server, "tvly-test" if search_handler else None, client)
    store = store or MemoryConversationStore()
    orchestrator = ConversationOrchestrator(store, ToolRouter(server), ProviderChain(list(providers)))
    return orchestrator, store


async def collect(events):
    return [event async for event in events]


class TestHandleTurn:
    @pytest.mark.asyncio
    async def test_new_conversation_ends_with_user_and_assistant(self):
        orchestrator, store = build()
        result = await orchestrator.handle_turn(OWNER, None, "Plan my week")

        assert [m.role for m in result.messages] == [MessageRole.USER, MessageRole.ASSISTANT]
        assert result.messages[0].content == "Plan my week"
        assert len(await store.list_conversations(OWNER)) == 1
        stored = await store.get(OWNER, result.conversation_id)
        assert stored.messages == result.messages
        assert stored.title == "Plan my week"

    @pytest.mark.asyncio
    async def test_title_seed_truncated(self):
        orchestrator, store = build()
        result = await orchestrator.handle_turn(OWNER, None, "a" * 100)
        assert (await store.get(OWNER, result.conversation_id)).title == "a" * 60

    @pytest.mark.asyncio
    async def test_remembers_name_across_turns_offline(self):
        orchestrator, _ = build()
        first = await orchestrator.handle_turn(OWNER, None, "My name is David.")
        second = await orchestrator.handle_turn(OWNER, first.conversation_id, "What is my name?")

        assert second.conversation_id == first.conversation_id
        assert "david" in second.messages[-1].content.lower()
        assert len(second.messages) == 4

    @pytest.mark.asyncio
    async def test_unknown_conversation_id_starts_new(self):
        orchestrator, store = build()
        result = await orchestrator.handle_turn(OWNER, "nope", "hello")
        assert result.conversation_id != "nope"
        assert len(result.messages) == 2

    @pytest.mark.asyncio
    async def test_empty_message_rejected(self):
        orchestrator, store = build()
        with pytest.raises(InputValidationError):
            await orchestrator.handle_turn(OWNER, None, "   ")
        assert await store.list_conversations(OWNER) == []

    @pytest.mark.asyncio
    async def test_search_observation_reaches_provider_but_is_not_persisted(self):
        provider = StubProvider("openai", text="Trends are up")
        orchestrator, store = build(
            [provider], search_handler=lambda r: httpx.Response(200, json=tavily_results(2))
        )
        result = await orchestrator.handle_turn(OWNER, None, "latest bakery trends")

        sent = provider.calls[0]
        assert sent[-1]["role"] == "system"
        assert sent[-1]["content"].startswith("Web search results (via Tavily):\n\n- Result 1")
        assert [o.tool_name for o in result.tool_results] == ["tavily_search"]
        assert result.citations == ["https://example.com/1", "https://example.com/2"]

        stored = await store.get(OWNER, result.conversation_id)
        assert [m.role for m in stored.messages] == [MessageRole.USER, MessageRole.ASSISTANT]

    @pytest.mark.asyncio
    async def test_search_failure_does_not_fail_turn(self):
        orchestrator, _ = build(search_handler=lambda r: httpx.Response(500))
        result = await orchestrator.handle_turn(OWNER, None, "market news")
        assert result.tool_results == []
        assert result.messages[-1].role == MessageRole.ASSISTANT

    @pytest.mark.asyncio
    async def test_fallback_cites_search_sources(self):
        orchestrator, _ = build(search_handler=lambda r: httpx.Response(200, json=tavily_results(1)))
        result = await orchestrator.handle_turn(OWNER, None, "latest news")
        assert result.messages[-1].content.endswith("Sources (tool):\n- https://example.com/1")

    @pytest.mark.asyncio
    async def test_provider_citations_preferred(self):
        provider = StubProvider("openai_agent", text="Answer", citations=["https://agent.example.com"])
        orchestrator, _ = build([provider])
        result = await orchestrator.handle_turn(OWNER, None, "hello")
        assert result.citations == ["https://agent.example.com"]

    @pytest.mark.asyncio
    async def test_persistence_failure_surfaces(self):
        class BrokenStore(MemoryConversationStore):
            async def append(self, conversation, entry):
                raise PersistenceError()

        orchestrator, _ = build(store=BrokenStore())
        with pytest.raises(PersistenceError):
            await orchestrator.handle_turn(OWNER, None, "hello")


class TestHandleTurnStream:
    @pytest.mark.asyncio
    async def test_deltas_then_done_and_persisted(self):
        provider = StubProvider("openai", text="Hello world", chunks=["Hello", " world"])
        orchestrator, store = build([provider])

        events = await collect(orchestrator.handle_turn_stream(OWNER, None, "hi"))

        assert events[:-1] == [{"type": "delta", "chunk": "Hello"}, {"type": "delta", "chunk": " world"}]
        done = events[-1]
        assert done["type"] == "done"
        stored = await store.get(OWNER, done["conversationId"])
        assert [m.content for m in stored.messages] == ["hi", "Hello world"]

    @pytest.mark.asyncio
    async def test_stream_and_buffered_persist_same_state(self):
        buffered, buffered_store = build([StubProvider("openai", text="Same text", chunks=["Same", " text"])])
        streamed, streamed_store = build([StubProvider("openai", text="Same text", chunks=["Same", " text"])])

        result = await buffered.handle_turn(OWNER, None, "question")
        events = await collect(streamed.handle_turn_stream(OWNER, None, "question"))

        buffered_state = await buffered_store.get(OWNER, result.conversation_id)
        streamed_state = await streamed_store.get(OWNER, events[-1]["conversationId"])
        assert [(m.role, m.content) for m in buffered_state.messages] == \
            [(m.role, m.content) for m in streamed_state.messages]

    @pytest.mark.asyncio
    async def test_offline_stream_recalls_name(self):
        orchestrator, _ = build()
        first = await orchestrator.handle_turn(OWNER, None, "My name is David.")
        events = await collect(orchestrator.handle_turn_stream(OWNER, first.conversation_id, "What is my name?"))
        text = "".join(e["chunk"] for e in events if e["type"] == "delta")
        assert text == "You told me your name is David."
        assert events[-1] == {"type": "done", "conversationId": first.conversation_id}

    @pytest.mark.asyncio
    async def test_mid_stream_failure_emits_single_error_and_skips_reply(self):
        provider = StubProvider("openai", chunks=["partial", " more"], stream_error_after=1)
        orchestrator, store = build([provider])

        events = await collect(orchestrator.handle_turn_stream(OWNER, None, "hi"))

        assert events[0] == {"type": "delta", "chunk": "partial"}
        assert events[-1] == {"type": "error", "error": "stream failed"}
        assert [e["type"] for e in events].count("error") == 1
        assert not any(e["type"] == "done" for e in events)

        (summary,) = await store.list_conversations(OWNER)
        stored = await store.get(OWNER, summary.id)
        assert [m.role for m in stored.messages] == [MessageRole.USER]

    @pytest.mark.asyncio
    async def test_validation_error_is_terminal_event(self):
        orchestrator, _ = build()
        events = await collect(orchestrator.handle_turn_stream(OWNER, None, " "))
        assert events == [{"type": "error", "error": "Message cannot be empty"}]

    @pytest.mark.asyncio
    async def test_consumer_cancellation_does_not_persist_reply(self):
        release = asyncio.Event()

        class SlowProvider(StubProvider):
            async def stream(self, messages):
                yield "first"
                await release.wait()
                yield "second"

        orchestrator, store = build([SlowProvider("openai", text="unused", chunks=[])])
        events = orchestrator.handle_turn_stream(OWNER, None, "hi")
        assert (await events.__anext__())["chunk"] == "first"
        await events.aclose()

        (summary,) = await store.list_conversations(OWNER)
        stored = await store.get(OWNER, summary.id)
        assert [m.role for m in stored.messages] == [MessageRole.USER]


class TestAttachDocument:
    @pytest.mark.asyncio
    async def test_store_without_analysis(self):
        provider = StubProvider("openai", text="summary")
        orchestrator, store = build([provider])

        conversation_id, result = await orchestrator.attach_document(
            OWNER, None, "plan.pdf", "Quarterly plan text", analyze=False
        )

        assert result is None
        assert provider.calls == []
        stored = await store.get(OWNER, conversation_id)
        assert stored.title == "plan.pdf"
        (tool_entry,) = stored.messages
        assert tool_entry.role == MessageRole.TOOL
        assert tool_entry.tool_name == "file_upload"
        assert tool_entry.content == "Document: plan.pdf\n\nQuarterly plan text"

    @pytest.mark.asyncio
    async def test_analysis_uses_default_prompt_and_sees_document(self):
        provider = StubProvider("openai", text="Key points: ...")
        orchestrator, _ = build([provider])

        conversation_id, result = await orchestrator.attach_document(OWNER, None, "plan.docx", "Body")

        assert result.conversation_id == conversation_id
        assert [m.role for m in result.messages] == [MessageRole.TOOL, MessageRole.USER, MessageRole.ASSISTANT]
        assert result.messages[1].content == DEFAULT_ANALYSIS_PROMPT
        sent = provider.calls[0]
        assert {"role": "system", "content": "Tool context: file_upload\nDocument: plan.docx\n\nBody"} in sent

    @pytest.mark.asyncio
    async def test_existing_conversation_keeps_title_and_custom_prompt(self):
        orchestrator, store = build()
        first = await orchestrator.handle_turn(OWNER, None, "Original topic")

        conversation_id, result = await orchestrator.attach_document(
            OWNER, first.conversation_id, "notes.pdf", "x", prompt="List the risks"
        )

        assert conversation_id == first.conversation_id
        assert result.messages[-2].content == "List the risks"
        assert (await store.get(OWNER, conversation_id)).title == "Original topic"


@pytest.mark.asyncio
async def test_consumer_disconnect_closes_provider_stream():
    closed = asyncio.Event()

    class TrackedProvider(StubProvider):
        async def stream(self, messages):
            try:
                yield "first"
                yield "second"
            finally:
                closed.set()

    orchestrator, _ = build([TrackedProvider("openai", text="unused", chunks=[])])
    events = orchestrator.handle_turn_stream(OWNER, None, "hi")
    assert (await events.__anext__())["chunk"] == "first"
    await events.aclose()

    assert closed.is_set()
