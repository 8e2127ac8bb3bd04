# models.py
import enum
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, Text, Boolean
from sqlalchemy.orm import relationship, declarative_base

Base = declarative_base()

class UserRole(enum.Enum):
    USER = "USER"
    COUNSELOR = "COUNSELOR"

class ChatStatus(enum.Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"

class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(150), nullable=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password = Column(String(256), nullable=False)  # только хэш
    role = Column(Enum(UserRole), nullable=False, default=UserRole.USER)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

class Chat(Base):
    __tablename__ = "chats"
    id = Column(Integer, primary_key=True, index=True)
    # NULL у sender_id означает анонимного собеседника
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    receiver_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    is_anonymous = Column(Boolean, nullable=False, default=False)
    status = Column(Enum(ChatStatus), nullable=False, default=ChatStatus.OPEN, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    sender = relationship("User", foreign_keys=[sender_id], lazy="joined")
    receiver = relationship("User", foreign_keys=[receiver_id], lazy="joined")
    messages = relationship(
        "Message",
        back_populates="chat",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by=lambda: (Message.created_at, Message.id),
    )

class Message(Base):
    __tablename__ = "messages"
    id = Column(Integer, primary_key=True, index=True)
    chat_id = Column(Integer, ForeignKey("chats.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    content = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    chat = relationship("Chat", back_populates="messages")
