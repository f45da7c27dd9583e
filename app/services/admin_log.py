"""
services/admin_log.py

관리자 행위 로그 기록 서비스.

승인 엔진 / 관리자 라우터에서 호출되며,
로그는 변경 대상 레코드와 같은 세션에 추가되어
UserDirectory의 commit과 함께 저장된다.
(변경이 실패해 rollback되면 로그도 함께 취소됨)

"""

from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from app.models.admin_log import AdminActionLog, AdminAction


"""
관리자 행위 로그 기록 함수

- actor_id       : 행위를 수행한 관리자 ID
- action         : 수행된 관리자 행위 유형
- target_user_id : 행위 대상 사용자 ID (선택)
- before_state   : 변경 전 상태 (선택)
- after_state    : 변경 후 상태 (선택)

NOTE:
- db.commit()은 호출 측(UserDirectory)에서 수행

"""
def write_admin_log(
    db: Session,
    *,
    actor_id,
    action: AdminAction,
    target_user_id=None,
    before_state=None,
    after_state=None,
) -> AdminActionLog:
    log = AdminActionLog(
        actor_id=actor_id,
        action=action,
        target_user_id=target_user_id,
        before_state=before_state,
        after_state=after_state,
    )
    db.add(log)
    return log


def recent_admin_logs(db: Session, *, limit: int) -> list[AdminActionLog]:
    return list(
        db.scalars(
            select(AdminActionLog).order_by(desc(AdminActionLog.created_at)).limit(limit)
        ).all()
    )
