# endpoints/utils.py
import logging
from typing import Callable, Optional

from fastapi import Depends, Request
from pydantic import ValidationError
from dependency_injector.wiring import inject, Provide
from sqlalchemy.ext.asyncio import AsyncSession

from containers import Container
from db import get_session
from dtos import ChatIdDTO, SessionClaims
from errors import InvalidArgument
from models import User
from repositories.user_repo import UserRepository
from services.chat_service import ChatService

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "user_id"
SESSION_ROLE_KEY = "role"


def get_session_claims(request: Request) -> Optional[SessionClaims]:
    """
    Извлекает {user_id, role} из cookie-сессии. Нет сессии или мусор в ней = аноним.
    """
    user_id = request.session.get(SESSION_USER_KEY)
    role = request.session.get(SESSION_ROLE_KEY)
    if user_id is None or role is None:
        return None
    try:
        return SessionClaims(user_id=user_id, role=role)
    except ValueError:
        logger.warning("Discarding malformed session payload")
        request.session.clear()
        return None


def login_session(request: Request, user: User) -> None:
    request.session[SESSION_USER_KEY] = user.id
    request.session[SESSION_ROLE_KEY] = user.role.value


def logout_session(request: Request) -> None:
    request.session.clear()


@inject
async def get_chat_service(
    session: AsyncSession = Depends(get_session),
    factory: Callable[..., ChatService] = Depends(Provide[Container.chat_service.provider]),
) -> ChatService:
    # Все репозитории запроса работают в одной сессии
    return factory(
        user_repo__session=session,
        chat_repo__session=session,
        message_repo__session=session,
    )


@inject
async def get_user_repo(
    session: AsyncSession = Depends(get_session),
    factory: Callable[..., UserRepository] = Depends(Provide[Container.user_repo.provider]),
) -> UserRepository:
    return factory(session=session)


async def read_chat_id(request: Request) -> Optional[int]:
    """
    Разбирает {"chatId": ...} из тела вручную. Вызывается после проверки роли,
    чтобы кривое тело от постороннего давало 401, а не 400.
    """
    raw = await request.body()
    if not raw.strip():
        return None
    try:
        return ChatIdDTO.model_validate_json(raw).chat_id
    except ValidationError:
        raise InvalidArgument("ChatId is required")
