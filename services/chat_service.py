# services/chat_service.py
import asyncio
import logging
from collections import defaultdict
from datetime import datetime, timedelta
from typing import AsyncIterator, Iterable, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from dtos import MAX_ID, InboxView, MessageDTO, SessionClaims
from errors import Forbidden, Internal, InvalidArgument, NotFound, Unauthorized
from models import Chat, ChatStatus, Message
from repositories.chat_repo import ChatRepository
from repositories.message_repo import MessageRepository
from repositories.user_repo import UserRepository

logger = logging.getLogger(__name__)

ANONYMOUS_NAME = "Anonymous User"
RECENT_WINDOW = timedelta(hours=24)


class Broadcaster:
    """
    Управляет подписчиками SSE и рассылает новые сообщения чата.
    """

    def __init__(self):
        self._listeners: dict[int, set[asyncio.Queue[dict]]] = defaultdict(set)

    async def subscribe(self, chat_id: int) -> asyncio.Queue[dict]:
        """Подписывает клиента на обновления чата и возвращает очередь."""
        queue = asyncio.Queue()
        self._listeners[chat_id].add(queue)
        return queue

    def unsubscribe(self, chat_id: int, queue: asyncio.Queue[dict]):
        """Отписывает клиента от обновлений."""
        listeners = self._listeners.get(chat_id)
        if not listeners:
            return
        listeners.discard(queue)
        if not listeners:
            del self._listeners[chat_id]

    def subscriber_count(self, chat_id: int) -> int:
        return len(self._listeners.get(chat_id, ()))

    async def listen(self, chat_id: int, queue: asyncio.Queue[dict]) -> AsyncIterator[dict]:
        """Отдаёт события из очереди; при отключении клиента отписывает её."""
        try:
            while True:
                yield await queue.get()
        finally:
            self.unsubscribe(chat_id, queue)

    async def publish_message(self, chat_id: int, message_json: str):
        """Публикует полное новое сообщение."""
        event_data = {
            "event": "new_message",
            "data": message_json
        }
        for queue in self._listeners.get(chat_id, set()):
            await queue.put(event_data)


def display_name(chat: Chat) -> str:
    if chat.is_anonymous or chat.sender is None:
        return ANONYMOUS_NAME
    return chat.sender.name or chat.sender.email or ""


def filter_chats(
    chats: Iterable[Chat],
    search: Optional[str] = None,
    view: InboxView = InboxView.ALL,
    now: Optional[datetime] = None,
) -> List[Chat]:
    """
    Фильтры панели консультанта: поиск по имени/email/тексту сообщений
    и вкладки "unread" (есть непрочитанные) и "recent" (последнее сообщение
    моложе 24 часов).
    """
    needle = (search or "").strip().lower()
    since = (now or datetime.utcnow()) - RECENT_WINDOW
    result = []
    for chat in chats:
        messages = chat.messages
        if needle:
            haystack = [display_name(chat).lower()] + [m.content.lower() for m in messages]
            if not any(needle in text for text in haystack):
                continue
        if view is InboxView.UNREAD and not any(not m.is_read for m in messages):
            continue
        if view is InboxView.RECENT and (not messages or messages[-1].created_at <= since):
            continue
        result.append(chat)
    return result


class ChatService:
    def __init__(
        self,
        user_repo: UserRepository,
        chat_repo: ChatRepository,
        message_repo: MessageRepository,
        broadcaster: Broadcaster,
    ):
        self.user_repo = user_repo
        self.chat_repo = chat_repo
        self.message_repo = message_repo
        self.broadcaster = broadcaster

    # --- Проверка доступа ---

    @staticmethod
    def _authorize(chat: Optional[Chat], claims: Optional[SessionClaims]) -> Chat:
        if chat is None:
            raise NotFound("Chat not found")
        if claims is not None:
            is_participant = (
                claims.user_id == chat.sender_id
                or claims.user_id == chat.receiver_id
                or claims.is_counselor
            )
            if not is_participant:
                raise Forbidden("Unauthorized")
        elif not chat.is_anonymous:
            # Аноним не видит чаты зарегистрированных пользователей
            raise Forbidden("Unauthorized")
        return chat

    @staticmethod
    def require_counselor(claims: Optional[SessionClaims]) -> SessionClaims:
        if claims is None or not claims.is_counselor:
            raise Unauthorized("Unauthorized")
        return claims

    async def _get_authorized_chat(self, chat_id: Optional[int], claims: Optional[SessionClaims]) -> Chat:
        if chat_id is None:
            raise InvalidArgument("ChatId is required")
        if not 1 <= chat_id <= MAX_ID:
            raise NotFound("Chat not found")
        chat = await self.chat_repo.get_chat(chat_id)
        return self._authorize(chat, claims)

    # --- Операции ---

    async def start_or_resume_chat(self, claims: Optional[SessionClaims]) -> Chat:
        """
        Возвращает открытый чат зарегистрированного пользователя или создаёт новый.
        Поиск и создание не атомарны: два параллельных вызова могут создать два чата.
        """
        if claims is not None:
            existing = await self.chat_repo.find_open_chat_for_sender(claims.user_id)
            if existing:
                return existing

        counselor = await self.user_repo.first_counselor()
        if counselor is None:
            logger.warning("No counselor available; chat will be created without a receiver")

        chat = await self.chat_repo.create_chat(
            sender_id=claims.user_id if claims else None,
            receiver_id=counselor.id if counselor else None,
            is_anonymous=claims is None,
        )
        logger.info("Created chat %s (anonymous=%s)", chat.id, chat.is_anonymous)
        return chat

    async def list_messages(
        self, chat_id: Optional[int], claims: Optional[SessionClaims]
    ) -> Tuple[Chat, List[Message]]:
        chat = await self._get_authorized_chat(chat_id, claims)
        messages = await self.message_repo.get_messages_for_chat(chat.id)
        return chat, messages

    async def send_message(
        self, chat_id: Optional[int], content: Optional[str], claims: Optional[SessionClaims]
    ) -> Message:
        if chat_id is None or not content or not content.strip():
            raise InvalidArgument("ChatId and content are required")
        chat = await self._get_authorized_chat(chat_id, claims)

        message = await self.message_repo.add_message(
            chat_id=chat.id,
            content=content,
            sender_id=claims.user_id if claims else None,
            # Сообщения консультанта сразу считаются прочитанными
            is_read=claims is not None and claims.is_counselor,
        )
        await self.chat_repo.touch(chat)

        await self.broadcaster.publish_message(
            chat.id,
            MessageDTO.model_validate(message).model_dump_json(by_alias=True),
        )
        return message

    async def mark_chat_read(self, chat_id: Optional[int], claims: Optional[SessionClaims]) -> int:
        self.require_counselor(claims)
        if chat_id is None:
            raise InvalidArgument("ChatId is required")
        if not 1 <= chat_id <= MAX_ID:
            # Такого чата быть не может: помечать нечего
            return 0
        try:
            updated = await self.message_repo.mark_unread_from_sender_party(chat_id)
        except SQLAlchemyError:
            logger.exception("Error marking messages as read in chat %s", chat_id)
            await self.message_repo.rollback()
            raise Internal("Internal server error")
        logger.info("Marked %s messages as read in chat %s", updated, chat_id)
        return updated

    async def list_counselor_chats(
        self,
        claims: Optional[SessionClaims],
        search: Optional[str] = None,
        view: InboxView = InboxView.ALL,
        now: Optional[datetime] = None,
    ) -> List[Chat]:
        claims = self.require_counselor(claims)
        chats = await self.chat_repo.list_open_chats_for_receiver(claims.user_id)
        if not search and view is InboxView.ALL:
            return chats
        return filter_chats(chats, search=search, view=view, now=now)

    async def close_chat(self, chat_id: Optional[int], claims: Optional[SessionClaims]) -> Chat:
        self.require_counselor(claims)
        if chat_id is None:
            raise InvalidArgument("ChatId is required")
        chat = await self.chat_repo.get_chat(chat_id) if 1 <= chat_id <= MAX_ID else None
        if chat is None:
            raise NotFound("Chat not found")
        if chat.status is not ChatStatus.CLOSED:
            chat = await self.chat_repo.set_status(chat, ChatStatus.CLOSED)
            logger.info("Chat %s closed by counselor %s", chat.id, claims.user_id)
        return chat

    async def subscribe(
        self, chat_id: Optional[int], claims: Optional[SessionClaims]
    ) -> Tuple[Chat, asyncio.Queue]:
        chat = await self._get_authorized_chat(chat_id, claims)
        queue = await self.broadcaster.subscribe(chat.id)
        return chat, queue
