import uuid
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Index, Uuid
from sqlalchemy.orm import relationship
from .base import Base, now_utc


USER_ROLES = ("admin", "manager", "viewer")


class User(Base):
    __tablename__ = 'users'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    username = Column(String(100), nullable=False, unique=True, index=True)
    email = Column(String(320), nullable=True)
    name = Column(String(200), nullable=False)
    password_hash = Column(Text, nullable=False)
    # admin|manager|viewer
    role = Column(String(20), nullable=False, default='manager')
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    sessions = relationship("AuthSession", back_populates="user", cascade="all, delete-orphan")

    @property
    def is_admin(self) -> bool:
        return self.role == 'admin'

    @property
    def is_viewer(self) -> bool:
        return self.role == 'viewer'


class AuthSession(Base):
    __tablename__ = 'auth_sessions'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)

    # Token identity and secret digest (never store raw secret)
    token_id = Column(String(64), nullable=False, unique=True)
    token_hash = Column(Text, nullable=False)

    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(500), nullable=True)

    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    last_used_at = Column(DateTime(timezone=True), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    revoked_at = Column(DateTime(timezone=True), nullable=True)

    user = relationship("User", back_populates="sessions")

    __table_args__ = (
        Index('idx_auth_sessions_user_created', 'user_id', 'created_at'),
    )
