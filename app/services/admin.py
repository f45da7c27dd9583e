"""
services/admin.py

승인 흐름 밖의 관리자 기능(Service) 모음.

- 역할별 식별자(sponsor_id / child_id / center_id / center_name) 수정
- 디렉터리에서 사용자 레코드 삭제

두 기능 모두 승인 상태는 건드리지 않으며,
승인된 관리자만 수행 가능하다.

설계 원칙:
- HTTP / FastAPI 의존성 없음
- 검증 / 권한 검사는 저장소 쓰기 전에 수행
- 변경과 감사 로그는 UserDirectory의 commit 한 번으로 저장

관련 파일:
- app.services.approval   : 관리자 판정
- app.routers.admin       : 관리자 API

"""

import structlog

from app.core.errors import PermissionDenied
from app.core.guard import AuthContext
from app.models.admin_log import AdminAction
from app.models.user import UserRecord
from app.repositories.user_directory import UserDirectory
from app.services.admin_log import write_admin_log
from app.services.approval import require_approved_administrator
from app.services.registration import check_role_attributes

logger = structlog.get_logger(__name__)


def edit_attributes(
    directory: UserDirectory,
    record: UserRecord,
    attributes: dict[str, str | None],
    actor: AuthContext | None,
) -> UserRecord:
    require_approved_administrator(actor)
    cleaned = check_role_attributes(record.roles, attributes)
    if not cleaned:
        return record

    before = ",".join(f"{k}={getattr(record, k) or ''}" for k in cleaned)
    after = ",".join(f"{k}={v or ''}" for k, v in cleaned.items())
    write_admin_log(
        directory.db,
        actor_id=actor.user_id,
        action=AdminAction.EDIT_ATTRIBUTES,
        target_user_id=record.id,
        before_state=before[:100],
        after_state=after[:100],
    )
    updated = directory.update_user(record.id, cleaned)
    logger.info("attributes edited", user_id=str(record.id), actor_id=str(actor.user_id), fields=list(cleaned))
    return updated


"""
사용자 레코드 삭제

- 본인 삭제 금지
- Identity(로그인 계정)는 남고 디렉터리 레코드만 삭제됨
  (이후 로그인은 가능하지만 보호된 화면은 모두 DENY)

"""

def remove_user(directory: UserDirectory, record: UserRecord, actor: AuthContext | None) -> None:
    require_approved_administrator(actor)
    if record.id == actor.user_id:
        raise PermissionDenied("You can't remove yourself")

    write_admin_log(
        directory.db,
        actor_id=actor.user_id,
        action=AdminAction.REMOVE_USER,
        target_user_id=record.id,
        before_state=record.approval_state.value,
        after_state=None,
    )
    directory.delete_user(record.id)
    logger.info("user removed", user_id=str(record.id), actor_id=str(actor.user_id))
