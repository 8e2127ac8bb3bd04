# repositories/chat_repo.py
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from models import Chat, ChatStatus
from typing import List, Optional

class ChatRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_chat(
        self,
        sender_id: Optional[int],
        receiver_id: Optional[int],
        is_anonymous: bool,
    ) -> Chat:
        chat = Chat(sender_id=sender_id, receiver_id=receiver_id, is_anonymous=is_anonymous)
        self.session.add(chat)
        await self.session.commit()
        await self.session.refresh(chat)
        return chat

    async def get_chat(self, chat_id: int) -> Optional[Chat]:
        q = await self.session.execute(select(Chat).where(Chat.id == chat_id))
        return q.scalars().first()

    async def find_open_chat_for_sender(self, sender_id: int) -> Optional[Chat]:
        q = await self.session.execute(
            select(Chat)
            .where(Chat.sender_id == sender_id, Chat.status == ChatStatus.OPEN)
            .order_by(Chat.created_at, Chat.id)
        )
        return q.scalars().first()

    async def list_open_chats_for_receiver(self, receiver_id: int) -> List[Chat]:
        # populate_existing: коллекция messages могла устареть в identity map
        q = await self.session.execute(
            select(Chat)
            .where(Chat.receiver_id == receiver_id, Chat.status == ChatStatus.OPEN)
            .order_by(Chat.updated_at.desc(), Chat.id.desc())
            .execution_options(populate_existing=True)
        )
        return list(q.scalars().all())

    async def touch(self, chat: Chat) -> Chat:
        chat.updated_at = datetime.utcnow()
        await self.session.commit()
        return chat

    async def set_status(self, chat: Chat, status: ChatStatus) -> Chat:
        chat.status = status
        await self.session.commit()
        await self.session.refresh(chat)
        return chat
