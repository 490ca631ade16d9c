from sqlalchemy import Column, BigInteger, String, TIMESTAMP, text
from sqlalchemy.orm import relationship
from tasksync_api.models.base import Base


class User(Base):
    __tablename__ = "users"
    __table_args__ = {"schema": "auth"}

    user_id = Column(BigInteger, primary_key=True, autoincrement=True)
    google_id = Column(String(255), nullable=False, unique=True)
    email = Column(String(255), nullable=False, unique=True)
    name = Column(String(200))
    avatar_url = Column(String(1000))
    last_login = Column(TIMESTAMP)
    created_at = Column(TIMESTAMP, nullable=False, server_default=text("NOW()"))
    updated_at = Column(TIMESTAMP, nullable=False, server_default=text("NOW()"))

    refresh_tokens = relationship("RefreshToken", back_populates="user", cascade="all, delete-orphan")
    tasks = relationship("Task", back_populates="user", cascade="all, delete-orphan")
