from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import List, Optional
from datetime import datetime
from enum import Enum
from models import ChatStatus, UserRole

# JSON наружу отдаётся в camelCase (chatId, isRead, ...)
_camel = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

# Наибольший INTEGER в SQLite; id больше этого не существует
MAX_ID = 2**63 - 1


class InboxView(str, Enum):
    ALL = "all"
    UNREAD = "unread"
    RECENT = "recent"

# ======================
# Input DTOs
# ======================

# Поля опциональны: отсутствие проверяет сервис и отвечает 400
class SendMessageDTO(BaseModel):
    model_config = _camel

    chat_id: Optional[int] = Field(None, ge=1, le=MAX_ID)
    content: Optional[str] = None

class ChatIdDTO(BaseModel):
    model_config = _camel

    chat_id: Optional[int] = Field(None, ge=1, le=MAX_ID)

# ======================
# Output DTOs
# ======================

class SenderDTO(BaseModel):
    model_config = _camel

    id: int
    name: Optional[str] = None
    email: str

class MessageDTO(BaseModel):
    model_config = _camel

    id: int
    content: str
    created_at: datetime
    is_read: bool
    sender_id: Optional[int] = None

class ChatSummaryDTO(BaseModel):
    model_config = _camel

    id: int
    is_anonymous: bool
    sender: Optional[SenderDTO] = None

class InboxChatDTO(BaseModel):
    model_config = _camel

    id: int
    is_anonymous: bool
    status: ChatStatus
    created_at: datetime
    updated_at: datetime
    sender: Optional[SenderDTO] = None
    messages: List[MessageDTO] = []

class StartChatResponse(BaseModel):
    model_config = _camel

    chat_id: int

class MessagesResponse(BaseModel):
    model_config = _camel

    messages: List[MessageDTO]
    chat: ChatSummaryDTO

class SendMessageResponse(BaseModel):
    model_config = _camel

    message: MessageDTO

class MarkReadResponse(BaseModel):
    model_config = _camel

    success: bool
    messages_updated: int

class InboxResponse(BaseModel):
    model_config = _camel

    chats: List[InboxChatDTO]

class CloseChatResponse(BaseModel):
    model_config = _camel

    chat: InboxChatDTO

class SessionUserDTO(BaseModel):
    model_config = _camel

    id: int
    name: Optional[str] = None
    email: str
    role: UserRole

class SessionResponse(BaseModel):
    model_config = _camel

    user: Optional[SessionUserDTO] = None

# ======================
# Session
# ======================

class SessionClaims(BaseModel):
    """Кто делает запрос: содержимое cookie-сессии. Аноним = None."""
    model_config = ConfigDict(frozen=True)

    user_id: int
    role: UserRole

    @property
    def is_counselor(self) -> bool:
        return self.role is UserRole.COUNSELOR
