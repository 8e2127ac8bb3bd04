# seed.py
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from models import Chat, Message, UserRole
from repositories.user_repo import UserRepository

logger = logging.getLogger(__name__)

COUNSELOR_EMAIL = "counselor@peertalk.com"
USER_EMAIL = "john@example.com"


async def seed_demo_data(session: AsyncSession) -> bool:
    """
    Демо-данные: консультант, пользователь, анонимный и обычный чат.
    Повторный запуск ничего не делает. Возвращает True, если данные добавлены.
    """
    ur = UserRepository(session)
    if await ur.get_by_email(COUNSELOR_EMAIL):
        return False

    counselor = await ur.create_user(
        email=COUNSELOR_EMAIL, password="counselor123", name="Counselor One", role=UserRole.COUNSELOR
    )
    user = await ur.create_user(email=USER_EMAIL, password="user123", name="John Doe")

    anon_chat = Chat(is_anonymous=True, receiver_id=counselor.id)
    anon_chat.messages = [Message(content="Hi, I need help anonymously.", is_read=False)]

    user_chat = Chat(sender_id=user.id, receiver_id=counselor.id, is_anonymous=False)
    user_chat.messages = [
        Message(content="Hi, I'm John.", sender_id=user.id, is_read=False),
        Message(content="Hello John, how can I assist?", sender_id=counselor.id, is_read=True),
    ]

    session.add_all([anon_chat, user_chat])
    await session.commit()
    logger.info("Seeded demo data (counselor=%s, user=%s)", counselor.id, user.id)
    return True
