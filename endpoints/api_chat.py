# endpoints/api_chat.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sse_starlette.sse import EventSourceResponse

from dtos import (
    MAX_ID,
    ChatSummaryDTO,
    MarkReadResponse,
    MessageDTO,
    MessagesResponse,
    SendMessageDTO,
    SendMessageResponse,
    StartChatResponse,
)
from services.chat_service import ChatService
from .utils import get_chat_service, get_session_claims, read_chat_id

router = APIRouter(prefix="/api/chat")


@router.post("/start", response_model=StartChatResponse)
async def start_chat(
    request: Request,
    chat_service: ChatService = Depends(get_chat_service),
):
    chat = await chat_service.start_or_resume_chat(get_session_claims(request))
    return StartChatResponse(chat_id=chat.id)


@router.get("/messages", response_model=MessagesResponse)
async def get_messages(
    request: Request,
    chat_id: Optional[int] = Query(None, alias="chatId", ge=1, le=MAX_ID),
    chat_service: ChatService = Depends(get_chat_service),
):
    chat, messages = await chat_service.list_messages(chat_id, get_session_claims(request))
    return MessagesResponse(
        messages=[MessageDTO.model_validate(m) for m in messages],
        chat=ChatSummaryDTO.model_validate(chat),
    )


@router.post("/messages", response_model=SendMessageResponse)
async def send_message(
    request: Request,
    payload: SendMessageDTO,
    chat_service: ChatService = Depends(get_chat_service),
):
    message = await chat_service.send_message(
        payload.chat_id, payload.content, get_session_claims(request)
    )
    return SendMessageResponse(message=MessageDTO.model_validate(message))


@router.post("/read", response_model=MarkReadResponse)
async def mark_read(
    request: Request,
    chat_service: ChatService = Depends(get_chat_service),
):
    # Тело разбирается только после проверки роли: 401 идёт раньше 400
    claims = chat_service.require_counselor(get_session_claims(request))
    chat_id = await read_chat_id(request)
    updated = await chat_service.mark_chat_read(chat_id, claims)
    return MarkReadResponse(success=True, messages_updated=updated)


@router.get("/events")
async def chat_events(
    request: Request,
    chat_id: Optional[int] = Query(None, alias="chatId", ge=1, le=MAX_ID),
    chat_service: ChatService = Depends(get_chat_service),
):
    """SSE-поток новых сообщений чата. Опрос /messages остаётся основным способом."""
    chat, queue = await chat_service.subscribe(chat_id, get_session_claims(request))
    return EventSourceResponse(chat_service.broadcaster.listen(chat.id, queue))
