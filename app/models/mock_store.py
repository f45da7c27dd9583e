"""
mock_store.py

centers / children / messages 용 key-value mock 저장소 모델.

- key     : 엔티티 종류 이름 (예: "messages")
- payload : 해당 종류의 전체 목록 (JSON 배열)

아직 정식 테이블로 옮기지 않은 엔티티를 위한 임시 저장소이며,
마지막 쓰기가 이기는(last-write-wins) 것 외에 일관성 보장은 없다.
"""

from datetime import datetime

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.models.user import utcnow


class MockEntity(Base):
    __tablename__ = "mock_entities"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    payload: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )
