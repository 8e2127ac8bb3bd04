import pytest
from httpx import ASGITransport, AsyncClient

from db import build_engine, build_sessionmaker, get_session, init_db
from main import app
from models import UserRole
from repositories.chat_repo import ChatRepository
from repositories.message_repo import MessageRepository
from repositories.user_repo import UserRepository
from services.chat_service import Broadcaster, ChatService

COUNSELOR_PASSWORD = "counselor-pass"
USER_PASSWORD = "user-pass"


@pytest.fixture
async def engine():
    engine = build_engine("sqlite+aiosqlite://")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_sessionmaker(engine)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def people(session_factory):
    """Консультант, два обычных пользователя и второй консультант."""
    async with session_factory() as session:
        ur = UserRepository(session)
        counselor = await ur.create_user(
            "counselor@example.com", COUNSELOR_PASSWORD, name="Counselor One", role=UserRole.COUNSELOR
        )
        alice = await ur.create_user("alice@example.com", USER_PASSWORD, name="Alice")
        bob = await ur.create_user("bob@example.com", USER_PASSWORD, name="Bob")
        other_counselor = await ur.create_user(
            "second@example.com", COUNSELOR_PASSWORD, name="Counselor Two", role=UserRole.COUNSELOR
        )
    return {
        "counselor": counselor,
        "alice": alice,
        "bob": bob,
        "other_counselor": other_counselor,
    }


@pytest.fixture
def broadcaster():
    return Broadcaster()


@pytest.fixture
def chat_service(db_session, broadcaster):
    return ChatService(
        user_repo=UserRepository(db_session),
        chat_repo=ChatRepository(db_session),
        message_repo=MessageRepository(db_session),
        broadcaster=broadcaster,
    )


@pytest.fixture
async def client(session_factory):
    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c
    app.dependency_overrides.clear()


async def _login(client: AsyncClient, email: str, password: str):
    resp = await client.post("/login", data={"email": email, "password": password})
    assert resp.status_code == 302, resp.text
    return resp


@pytest.fixture
def login():
    """Вход через форму /login; cookie сессии остаётся в клиенте."""
    return _login
