# repositories/user_repo.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from models import User, UserRole
from security import hash_password, verify_password
from typing import Optional

class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_user(
        self,
        email: str,
        password: str,
        name: Optional[str] = None,
        role: UserRole = UserRole.USER,
    ) -> User:
        user = User(email=email, name=name, password=hash_password(password), role=role)
        self.session.add(user)
        await self.session.commit()
        await self.session.refresh(user)
        return user

    async def get_by_email(self, email: str) -> Optional[User]:
        q = await self.session.execute(select(User).where(User.email == email))
        return q.scalars().first()

    async def get_by_id(self, user_id: int) -> Optional[User]:
        q = await self.session.execute(select(User).where(User.id == user_id))
        return q.scalars().first()

    async def first_counselor(self) -> Optional[User]:
        # Без балансировки: берём первого консультанта
        q = await self.session.execute(
            select(User).where(User.role == UserRole.COUNSELOR).order_by(User.id).limit(1)
        )
        return q.scalars().first()

    async def authenticate(self, email: str, password: str) -> Optional[User]:
        user = await self.get_by_email(email)
        if not user or not verify_password(password, user.password):
            return None
        return user
