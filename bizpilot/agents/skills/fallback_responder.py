"""
Fallback Responder Skill

Deterministic, network-free reply used when no chat-completion provider is
configured or every provider failed. It still honours conversation context:
a name introduced earlier ("my name is ...") can be recalled later.
"""

from typing import List, Optional, Sequence
import re

from bizpilot.schemas.chat import ConversationEntry, MessageRole, ToolObservation

NAME_PATTERN = re.compile(r"my name is\s+([A-Za-z][A-Za-z\s'-]{1,40})", re.IGNORECASE)
NAME_QUESTION_PATTERN = re.compile(r"what\s+is\s+my\s+name", re.IGNORECASE)
SOURCE_URL_PATTERN = re.compile(r"https?://[^\s)]+")
MAX_SOURCES_PER_TOOL = 5


def last_user_message(history: Sequence[ConversationEntry]) -> str:
    for entry in reversed(history):
        if entry.role == MessageRole.USER:
            return entry.content
    return ""


def captured_name(history: Sequence[ConversationEntry]) -> Optional[str]:
    """The most recent self-introduced name across all user entries."""
    name = None
    for entry in history:
        if entry.role != MessageRole.USER:
            continue
        match = NAME_PATTERN.search(entry.content)
        if match and match.group(1):
            name = match.group(1).strip()
    return name


def _sources_section(observations: Sequence[ToolObservation]) -> str:
    lines: List[str] = []
    for observation in observations:
        urls = SOURCE_URL_PATTERN.findall(observation.content)
        lines.extend(f"- {url}" for url in urls[:MAX_SOURCES_PER_TOOL])
    if not lines:
        return ""
    return "\n\nSources (tool):\n" + "\n".join(lines)


def fallback_reply(
    history: Sequence[ConversationEntry],
    observations: Sequence[ToolObservation] = ()
) -> str:
    """Build the local reply for history, citing any tool observations."""
    last_user = last_user_message(history)
    name = captured_name(history)

    if name and NAME_QUESTION_PATTERN.search(last_user):
        response = f"You told me your name is {name}."
    else:
        response = (
            "I couldn't reach the LLM right now. Here's a quick acknowledgment of "
            f"your request: \"{last_user}\". Please try again shortly."
        )
    return response + _sources_section(observations)
