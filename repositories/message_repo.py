from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import update
from models import Message
from typing import List
from typing import Optional


class MessageRepository:
    """
    Репозиторий для управления сообщениями в базе данных.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add_message(
            self,
            chat_id: int,
            content: str,
            sender_id: Optional[int] = None,
            is_read: bool = False,
    ) -> Message:
        """Сохраняет новое сообщение в базу данных."""
        message = Message(
            chat_id=chat_id,
            content=content,
            sender_id=sender_id,
            is_read=is_read,
        )
        self.session.add(message)
        await self.session.commit()
        await self.session.refresh(message)
        return message

    async def get_messages_for_chat(self, chat_id: int) -> List[Message]:
        """
        Получает все сообщения чата по возрастанию времени; id разрешает равные метки.
        """
        q = await self.session.execute(
            select(Message)
            .where(Message.chat_id == chat_id)
            .order_by(Message.created_at, Message.id)
        )
        return list(q.scalars().all())

    async def mark_unread_from_sender_party(self, chat_id: int) -> int:
        """
        Помечает прочитанными сообщения без sender_id (сторона собеседника).
        Возвращает число обновлённых строк.
        """
        result = await self.session.execute(
            update(Message)
            .where(
                Message.chat_id == chat_id,
                Message.is_read.is_(False),
                Message.sender_id.is_(None),
            )
            .values(is_read=True)
        )
        await self.session.commit()
        return result.rowcount or 0

    async def rollback(self) -> None:
        await self.session.rollback()
