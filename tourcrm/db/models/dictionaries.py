import uuid
from sqlalchemy import Column, String, Text, DateTime, Boolean, Integer, Index, UniqueConstraint, Uuid
from .base import Base, now_utc


class SystemDictionary(Base):
    __tablename__ = 'system_dictionaries'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    type = Column(String(50), nullable=False)
    value = Column(String(100), nullable=False)
    label = Column(String(255), nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    # Optional dependency on an item of another dictionary (e.g. city -> country)
    parent_type = Column(String(50), nullable=True)
    parent_value = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    __table_args__ = (
        UniqueConstraint('type', 'value', name='uq_system_dictionaries_type_value'),
        Index('idx_system_dictionaries_type_sort', 'type', 'sort_order'),
    )


class DictionaryTypeConfig(Base):
    __tablename__ = 'dictionary_type_configs'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    type = Column(String(50), nullable=False, unique=True)
    display_name = Column(String(255), nullable=False)
    # Whether forms may select several values of this dictionary at once
    is_multiple = Column(Boolean, nullable=False, default=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)
