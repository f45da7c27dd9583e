"""
repositories/mock_store.py

Local Mock Store: 엔티티 종류 이름 -> JSON 배열 매핑.

- get(key)        : 저장된 목록 반환 (없으면 None)
- set(key, items) : 목록 전체를 덮어씀 (last-write-wins)

centers / children / messages 가 정식 테이블로 옮겨지기 전까지 사용한다.
"""

from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import StoreUnavailable
from app.models.mock_store import MockEntity


class MockStore:
    def __init__(self, db: Session):
        self.db = db

    def get(self, key: str) -> list[dict[str, Any]] | None:
        try:
            entity = self.db.get(MockEntity, key)
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Database error: {type(e).__name__}") from e
        if entity is None:
            return None
        return [dict(item) for item in entity.payload]

    def set(self, key: str, items: list[dict[str, Any]]) -> None:
        try:
            entity = self.db.get(MockEntity, key)
            if entity is None:
                self.db.add(MockEntity(key=key, payload=list(items)))
            else:
                # JSON 컬럼은 새 리스트를 할당해야 변경으로 감지됨
                entity.payload = list(items)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreUnavailable(f"Database error: {type(e).__name__}") from e
