"""
Chat API Router

Conversational endpoints: buffered and streamed turns, conversation
management and document upload. All routes are scoped to the authenticated
user; a conversation owned by someone else answers 404.
"""

from typing import Optional
import json
import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import StreamingResponse
from starlette.concurrency import run_in_threadpool

from bizpilot.agents.main_agent import ConversationOrchestrator, TurnResult
from bizpilot.dependencies import get_conversation_store, get_orchestrator
from bizpilot.errors import InputValidationError
from bizpilot.middleware.auth import CurrentUser, get_current_user
from bizpilot.schemas.chat import (
    ChatRequest,
    ChatResponse,
    ConversationDetailResponse,
    ConversationListResponse,
    OkResponse,
    RenameRequest,
    UploadResponse,
)
from bizpilot.services.conversation_store import ConversationStore
from bizpilot.services.document_text import MAX_UPLOAD_BYTES, extract_text

logger = logging.getLogger(__name__)

router = APIRouter(tags=["chat"])  # No prefix since main.py adds /api prefix

ANALYZE_OFF_VALUES = ("0", "false", "no")


def to_chat_response(result: TurnResult) -> ChatResponse:
    return ChatResponse(
        conversation_id=result.conversation_id,
        messages=result.messages,
        tool_results=result.tool_results,
        citations=result.citations
    )


def sse_event(data: dict) -> str:
    """Format data as a Server-Sent Event."""
    return f"data: {json.dumps(data)}\n\n"


@router.post("/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    current_user: CurrentUser = Depends(get_current_user),
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator)
):
    """
    Run one chat turn and return the whole conversation.

    Flow:
    1. Load or create the conversation for this user
    2. Append and persist the user message
    3. Run web search when the message calls for it
    4. Generate the reply through the provider chain
    5. Persist the assistant reply
    """
    logger.info(f"Chat request from user {current_user.user_id}: {request.message[:50]}...")
    result = await orchestrator.handle_turn(current_user.user_id, request.conversation_id, request.message)
    return to_chat_response(result)


@router.post("/chat/stream")
async def chat_stream(
    request: ChatRequest,
    current_user: CurrentUser = Depends(get_current_user),
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator)
) -> StreamingResponse:
    """Same turn as /chat, delivered as delta events and one terminal event."""
    async def generate():
        async for event in orchestrator.handle_turn_stream(
            current_user.user_id, request.conversation_id, request.message
        ):
            yield sse_event(event)

    return StreamingResponse(
        generate(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        },
    )


@router.get("/chats", response_model=ConversationListResponse)
async def list_chats(
    current_user: CurrentUser = Depends(get_current_user),
    store: ConversationStore = Depends(get_conversation_store)
):
    return ConversationListResponse(chats=await store.list_conversations(current_user.user_id))


@router.get("/chats/{conversation_id}", response_model=ConversationDetailResponse)
async def get_chat(
    conversation_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    store: ConversationStore = Depends(get_conversation_store)
):
    return ConversationDetailResponse(chat=await store.get(current_user.user_id, conversation_id))


@router.patch("/chats/{conversation_id}", response_model=OkResponse)
async def rename_chat(
    conversation_id: str,
    body: RenameRequest,
    current_user: CurrentUser = Depends(get_current_user),
    store: ConversationStore = Depends(get_conversation_store)
):
    await store.rename(current_user.user_id, conversation_id, body.title)
    return OkResponse()


@router.delete("/chats/{conversation_id}", response_model=OkResponse)
async def delete_chat(
    conversation_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    store: ConversationStore = Depends(get_conversation_store)
):
    await store.delete(current_user.user_id, conversation_id)
    return OkResponse()


@router.post("/upload")
async def upload(
    file: Optional[UploadFile] = File(None),
    conversation_id: Optional[str] = Form(None, alias="conversationId"),
    message: Optional[str] = Form(None),
    analyze: str = Form("1"),
    current_user: CurrentUser = Depends(get_current_user),
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator)
):
    """
    Attach a PDF or DOCX to a conversation.

    The extracted text is stored as a file_upload tool entry. Unless analyze
    is 0/false/no, a turn is run right away with the supplied message or a
    default summarization prompt.
    """
    if file is None or not file.filename:
        raise InputValidationError("No file uploaded")

    data = await file.read()
    if len(data) > MAX_UPLOAD_BYTES:
        raise InputValidationError("File too large (max 10 MB)")

    text = await run_in_threadpool(extract_text, data, file.filename, file.content_type or "")
    should_analyze = analyze.strip().lower() not in ANALYZE_OFF_VALUES
    logger.info(f"Upload from user {current_user.user_id}: {file.filename} ({len(data)} bytes, analyze={should_analyze})")

    resolved_id, result = await orchestrator.attach_document(
        current_user.user_id,
        conversation_id or None,
        file.filename,
        text,
        analyze=should_analyze,
        prompt=message
    )
    if result is None:
        return UploadResponse(conversation_id=resolved_id, filename=file.filename, bytes=len(data), chars=len(text))
    return to_chat_response(result)
