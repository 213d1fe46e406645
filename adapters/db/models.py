"""
SQLAlchemy 데이터베이스 모델

키/값 저장소 테이블을 정의합니다.
값은 JSON으로 저장하며, (scope, key)가 기본 키입니다.
"""

from sqlalchemy import JSON, Column, DateTime, Index, String
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class StorageEntryModel(Base):
    """저장소 항목 테이블 모델"""

    __tablename__ = "storage_entries"

    scope = Column(String(16), primary_key=True)  # local / sync
    key = Column(String(255), primary_key=True)
    value = Column(JSON, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("idx_storage_scope", "scope"),
    )
