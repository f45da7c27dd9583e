"""
user.py

Identity(로그인 계정) / UserRecord(승인 디렉터리) 및 역할(Role) 모델 정의 파일.

- Identity   : Identity Provider가 발급/관리하는 계정 (이메일, 비밀번호 해시, 토큰 버전)
- UserRecord : authenticated_users 테이블. Identity id를 그대로 PK로 사용하며
               역할 플래그, 승인 상태, 역할별 식별자를 보관한다.

모든 인증, 승인, 접근 제어, 메시지 기능의 기준이 되는 핵심 모델이다.

"""

import uuid
from datetime import datetime, timezone
from enum import Enum, Flag, auto

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, validates

from app.core.identifiers import validate_identifier
from app.db.base import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


"""
사용자 역할(Role) 정의

- 서로 독립적인 플래그 집합 (여러 역할 동시 보유 가능, 0개도 가능)
- ADMINISTRATOR : 다른 사용자 승인/거절 및 역할 해제 권한
- MISSIONARY    : 현장 사역자 (center_id 보유)
- SPONSOR       : 후원자 (sponsor_id / child_id 보유)
- CENTER        : Bridge of Hope 센터 (center_id 보유)

"""

class Role(Flag):
    NONE = 0
    ADMINISTRATOR = auto()
    MISSIONARY = auto()
    SPONSOR = auto()
    CENTER = auto()

    @classmethod
    def parse(cls, name: str) -> "Role":
        try:
            role = cls[name.upper()]
        except KeyError:
            raise ValueError(f"unknown role: {name}")
        if role is cls.NONE:
            raise ValueError(f"unknown role: {name}")
        return role

    @property
    def labels(self) -> list[str]:
        return [r.name.lower() for r in SINGLE_ROLES if r in self]


SINGLE_ROLES = (Role.ADMINISTRATOR, Role.MISSIONARY, Role.SPONSOR, Role.CENTER)

ROLE_COLUMNS = {
    Role.ADMINISTRATOR: "is_administrator",
    Role.MISSIONARY: "is_missionary",
    Role.SPONSOR: "is_sponsor",
    Role.CENTER: "is_center",
}


"""
승인 상태(approved 컬럼의 tri-state)

- PENDING  : approved = NULL (가입 직후)
- APPROVED : approved = TRUE
- REJECTED : approved = FALSE

"""

class ApprovalState(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"

    @classmethod
    def from_column(cls, approved: bool | None) -> "ApprovalState":
        if approved is None:
            return cls.PENDING
        return cls.APPROVED if approved else cls.REJECTED


class Identity(Base):
    __tablename__ = "identities"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    refresh_token_version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


"""
UserRecord 모델 (authenticated_users)

- id는 Identity Provider가 발급한 id (재할당 없음)
- approved가 NULL이면 approved_by / approved_at도 반드시 NULL (DB 제약조건)
- sponsor_id / child_id / center_id 는 할당 시점에 형식 검증

"""

class UserRecord(Base):
    __tablename__ = "authenticated_users"
    __table_args__ = (
        CheckConstraint(
            "(approved IS NULL AND approved_by IS NULL AND approved_at IS NULL)"
            " OR (approved IS NOT NULL AND approved_by IS NOT NULL AND approved_at IS NOT NULL)",
            name="ck_authenticated_users_approval_decision",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("identities.id", ondelete="CASCADE"), primary_key=True
    )
    email: Mapped[str] = mapped_column(String(255), index=True, nullable=False)

    is_administrator: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    is_missionary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_sponsor: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_center: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    approved: Mapped[bool | None] = mapped_column(Boolean, nullable=True, index=True)
    approved_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    sponsor_id: Mapped[str | None] = mapped_column(String(8), nullable=True)
    child_id: Mapped[str | None] = mapped_column(String(10), nullable=True)
    center_id: Mapped[str | None] = mapped_column(String(8), nullable=True)
    center_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    @validates("sponsor_id", "child_id", "center_id")
    def _validate_identifier(self, key, value):
        return validate_identifier(key, value)

    @property
    def roles(self) -> Role:
        roles = Role.NONE
        for role, column in ROLE_COLUMNS.items():
            if getattr(self, column):
                roles |= role
        return roles

    @property
    def approval_state(self) -> ApprovalState:
        return ApprovalState.from_column(self.approved)

    def has_role(self, role: Role) -> bool:
        return role in self.roles

    @property
    def is_approved_administrator(self) -> bool:
        return self.approved is True and self.is_administrator
