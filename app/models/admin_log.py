"""

admin_log.py

관리자(Admin) 행위 기록(Audit Log) 모델 정의 파일.

관리자에 의해 수행된 승인, 거절, 역할 해제, 삭제, 식별자 수정과
최초 관리자 bootstrap을 DB에 기록한다.

- 로그 데이터는 수정/삭제하지 않는 것을 전제로 설계
- actor(행위자)와 target(대상 사용자)을 구분
- 대상 레코드가 삭제돼도 로그는 남도록 FK를 걸지 않음

"""

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Enum as SAEnum, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.models.user import utcnow


class AdminAction(str, Enum):
    APPROVE_USER = "APPROVE_USER"
    REJECT_USER = "REJECT_USER"
    REVOKE_ROLE = "REVOKE_ROLE"
    BOOTSTRAP_ADMIN = "BOOTSTRAP_ADMIN"
    REMOVE_USER = "REMOVE_USER"
    EDIT_ATTRIBUTES = "EDIT_ATTRIBUTES"


"""
관리자 행위 로그 모델

- actor_id       : 행위를 수행한 관리자 ID
- target_user_id : 행위 대상 사용자 ID
- action         : 수행된 관리자 행위 유형
- before_state   : 변경 전 상태 (승인 상태 또는 역할 목록)
- after_state    : 변경 후 상태
- created_at     : 행위 발생 시각 (UTC)

"""

class AdminActionLog(Base):
    __tablename__ = "admin_action_logs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    actor_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    target_user_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)

    action: Mapped[AdminAction] = mapped_column(SAEnum(AdminAction, name="admin_action"), nullable=False)

    before_state: Mapped[str | None] = mapped_column(String(100), nullable=True)
    after_state: Mapped[str | None] = mapped_column(String(100), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
