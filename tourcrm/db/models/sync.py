import uuid
from sqlalchemy import Column, String, Text, DateTime, Index, Uuid
from .base import Base, now_utc
from ..types import JSONDocument


class SyncLog(Base):
    __tablename__ = 'sync_logs'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    operation = Column(String(30), nullable=False)
    entity_type = Column(String(30), nullable=False)
    entity_id = Column(String(100), nullable=True)
    external_id = Column(String(100), nullable=True)
    # success|error
    status = Column(String(20), nullable=False)
    details = Column(JSONDocument, nullable=True)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    __table_args__ = (
        Index('idx_sync_logs_created_at', 'created_at'),
        Index('idx_sync_logs_status', 'status'),
    )
