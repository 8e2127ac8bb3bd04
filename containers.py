# containers.py
from dependency_injector import containers, providers
from sqlalchemy.ext.asyncio import AsyncSession
from repositories.user_repo import UserRepository
from repositories.chat_repo import ChatRepository
from repositories.message_repo import MessageRepository
from services.chat_service import ChatService, Broadcaster


class Container(containers.DeclarativeContainer):
    """
    Контейнер зависимостей приложения.
    """

    # --- Провайдеры ---

    # 1. База данных
    # Сессия своя на каждый запрос: её отдаёт FastAPI-зависимость get_session,
    # а сюда она попадает аргументом при вызове фабрики (см. endpoints/utils.py).
    db_session = providers.Dependency(instance_of=AsyncSession)

    # 2. Репозитории
    user_repo: providers.Factory[UserRepository] = providers.Factory(
        UserRepository,
        session=db_session,
    )

    chat_repo: providers.Factory[ChatRepository] = providers.Factory(
        ChatRepository,
        session=db_session,
    )

    message_repo: providers.Factory[MessageRepository] = providers.Factory(
        MessageRepository,
        session=db_session,
    )

    # 3. Сервисы
    broadcaster = providers.Singleton(Broadcaster)

    chat_service: providers.Factory[ChatService] = providers.Factory(
        ChatService,
        user_repo=user_repo,
        chat_repo=chat_repo,
        message_repo=message_repo,
        broadcaster=broadcaster,
    )

# Создаем единственный экземпляр контейнера для всего приложения
container = Container()
