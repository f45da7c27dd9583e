"""
repositories/user_directory.py

User Directory Store: authenticated_users 테이블 접근 계층.

승인 엔진과 라우터는 SQLAlchemy 쿼리를 직접 작성하지 않고
이 클래스를 통해 레코드를 조회/변경한다.

주요 기능:
- id로 단건 조회 (없으면 NotFound)
- 역할 플래그 / 승인 상태 조건 목록 조회 (created_at 오름차순)
- 부분 필드 업데이트, 신규 등록, 삭제

설계 원칙:
- 모든 쓰기는 단일 트랜잭션(commit 1회)으로 처리
- 실패 시 rollback 후 StoreUnavailable 발생 (부분 반영 없음)
- 재시도는 하지 않음 (호출 측 판단)

관련 파일:
- app.models.user          : UserRecord / Role / ApprovalState
- app.services.approval    : 승인 엔진

"""

import uuid
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import NotFound, StoreUnavailable, ValidationError
from app.models.user import ROLE_COLUMNS, ApprovalState, Role, UserRecord


def _store_error(e: Exception) -> StoreUnavailable:
    return StoreUnavailable(f"Database error: {type(e).__name__}")


"""
목록 조회 조건

- flags    : {Role.SPONSOR: True} 처럼 역할 플래그별 동등 비교
- approval : 승인 상태 (PENDING이면 approved IS NULL)

"""

@dataclass
class UserFilter:
    flags: dict[Role, bool] = field(default_factory=dict)
    approval: ApprovalState | None = None

    @classmethod
    def holding(cls, role: Role | None, approval: ApprovalState | None = None) -> "UserFilter":
        flags = {role: True} if role is not None else {}
        return cls(flags=flags, approval=approval)

    def clauses(self) -> list:
        clauses = []
        for role, value in self.flags.items():
            clauses.append(getattr(UserRecord, ROLE_COLUMNS[role]).is_(value))
        if self.approval is ApprovalState.PENDING:
            clauses.append(UserRecord.approved.is_(None))
        elif self.approval is ApprovalState.APPROVED:
            clauses.append(UserRecord.approved.is_(True))
        elif self.approval is ApprovalState.REJECTED:
            clauses.append(UserRecord.approved.is_(False))
        return clauses


class UserDirectory:
    def __init__(self, db: Session):
        self.db = db

    def find_user(self, user_id: uuid.UUID) -> UserRecord | None:
        try:
            return self.db.get(UserRecord, user_id)
        except SQLAlchemyError as e:
            raise _store_error(e) from e

    def find_user_by_email(self, email: str) -> UserRecord | None:
        try:
            return self.db.scalar(select(UserRecord).where(UserRecord.email == email))
        except SQLAlchemyError as e:
            raise _store_error(e) from e

    def get_user_by_id(self, user_id: uuid.UUID) -> UserRecord:
        record = self.find_user(user_id)
        if record is None:
            raise NotFound()
        return record

    def list_users(self, user_filter: UserFilter | None = None) -> list[UserRecord]:
        stmt = select(UserRecord)
        if user_filter is not None:
            stmt = stmt.where(*user_filter.clauses())
        # 먼저 가입한 사용자가 먼저 (FIFO)
        stmt = stmt.order_by(UserRecord.created_at.asc())
        try:
            return list(self.db.scalars(stmt).all())
        except SQLAlchemyError as e:
            raise _store_error(e) from e

    def count_users(self, user_filter: UserFilter | None = None) -> int:
        stmt = select(func.count()).select_from(UserRecord)
        if user_filter is not None:
            stmt = stmt.where(*user_filter.clauses())
        try:
            return self.db.scalar(stmt) or 0
        except SQLAlchemyError as e:
            raise _store_error(e) from e

    """
    부분 필드 업데이트

    - fields의 키는 UserRecord 속성명
    - 같은 세션에 추가된 감사 로그(admin_action_logs)와 함께 commit
    - 검증 실패 / DB 실패 시 rollback하여 메모리 상태도 마지막 정상 상태로 복구

    """
    def update_user(self, user_id: uuid.UUID, fields: dict[str, Any]) -> UserRecord:
        try:
            record = self.get_user_by_id(user_id)
            for key, value in fields.items():
                setattr(record, key, value)
            self.db.commit()
            self.db.refresh(record)
        except (NotFound, ValidationError):
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            raise _store_error(e) from e
        return record

    def insert_user(self, record: UserRecord) -> UserRecord:
        try:
            self.db.add(record)
            self.db.commit()
            self.db.refresh(record)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise _store_error(e) from e
        return record

    def delete_user(self, user_id: uuid.UUID) -> None:
        try:
            record = self.get_user_by_id(user_id)
            self.db.delete(record)
            self.db.commit()
        except NotFound:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            raise _store_error(e) from e
