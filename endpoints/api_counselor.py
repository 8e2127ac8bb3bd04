# endpoints/api_counselor.py
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Request

from dtos import CloseChatResponse, InboxChatDTO, InboxResponse, InboxView
from services.chat_service import ChatService
from .utils import get_chat_service, get_session_claims, read_chat_id

router = APIRouter(prefix="/api/counselor")


@router.get("/chats", response_model=InboxResponse)
async def counselor_chats(
    request: Request,
    search: Optional[str] = None,
    view: InboxView = InboxView.ALL,
    chat_service: ChatService = Depends(get_chat_service),
):
    chats = await chat_service.list_counselor_chats(
        get_session_claims(request), search=search, view=view, now=datetime.utcnow()
    )
    return InboxResponse(chats=[InboxChatDTO.model_validate(c) for c in chats])


@router.post("/chats/close", response_model=CloseChatResponse)
async def close_chat(
    request: Request,
    chat_service: ChatService = Depends(get_chat_service),
):
    claims = chat_service.require_counselor(get_session_claims(request))
    chat_id = await read_chat_id(request)
    chat = await chat_service.close_chat(chat_id, claims)
    return CloseChatResponse(chat=InboxChatDTO.model_validate(chat))
