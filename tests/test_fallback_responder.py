"""Tests for the local fallback responder."""

from bizpilot.agents.skills.fallback_responder import captured_name, fallback_reply, last_user_message
from bizpilot.schemas.chat import ConversationEntry, MessageRole, ToolObservation


def user(text):
    return ConversationEntry(role=MessageRole.USER, content=text)


def assistant(text):
    return ConversationEntry(role=MessageRole.ASSISTANT, content=text)


def test_recalls_introduced_name():
    history = [user("My name is David."), assistant("Hi"), user("What is my name?")]
    assert fallback_reply(history) == "You told me your name is David."


def test_latest_introduction_wins():
    history = [user("my name is Ann"), user("Actually my name is Bea"), user("what is my name")]
    assert captured_name(history) == "Bea"
    assert "Bea" in fallback_reply(history)


def test_assistant_entries_ignored_for_name_capture():
    history = [assistant("my name is BizPilot"), user("What is my name?")]
    assert captured_name(history) is None
    assert fallback_reply(history).startswith("I couldn't reach the LLM right now.")


def test_generic_acknowledgment_echoes_last_user_message():
    history = [user("first"), assistant("ok"), user("Draft a pricing email")]
    assert fallback_reply(history) == (
        "I couldn't reach the LLM right now. Here's a quick acknowledgment of your request: "
        "\"Draft a pricing email\". Please try again shortly."
    )


def test_name_without_question_gives_acknowledgment():
    history = [user("My name is David. Help me plan a launch")]
    assert "You told me" not in fallback_reply(history)


def test_sources_section_lists_tool_urls():
    observation = ToolObservation(
        tool_name="tavily_search",
        content="- A — https://a.example.com\nbody\n\n- B — https://b.example.com\nbody"
    )
    reply = fallback_reply([user("latest news")], [observation])
    assert reply.endswith("\n\nSources (tool):\n- https://a.example.com\n- https://b.example.com")


def test_sources_capped_per_tool():
    content = "\n".join(f"https://s{i}.example.com" for i in range(8))
    reply = fallback_reply([user("market trends")], [ToolObservation(tool_name="tavily_search", content=content)])
    assert reply.count("\n- https://") == 5


def test_no_user_message():
    assert last_user_message([assistant("hello")]) == ""
