"""
services/approval.py

Role & Approval Engine: 사용자 승인 상태 전이와 역할 해제 규칙.

승인 상태(approved) 상태 머신:
- PENDING  --approve-->  APPROVED
- PENDING  --reject--->  REJECTED
- APPROVED <-----------> REJECTED   (재결정, 같은 연산 사용)
- APPROVED / REJECTED 에서 PENDING 으로 돌아가는 전이는 없음

주요 기능:
- approve / reject        : 승인된 관리자만 수행 (최초 관리자 bootstrap 예외)
- revoke_role             : 역할 플래그 해제 (본인 관리자 권한 해제 금지)
- bootstrap_self_as_administrator : 승인된 관리자가 한 명도 없을 때 본인을 관리자로 지정
- list_pending / partition_users  : created_at 오름차순(FIFO) 목록
- is_administrator        : 조회 실패 시 "관리자 아님"으로 처리하는 화면용 판정

설계 원칙:
- 권한 검사는 저장소 쓰기 전에 수행 (실패 시 아무것도 바뀌지 않음)
- 모든 쓰기는 단일 레코드 업데이트 + 감사 로그 1건, commit 1회
- 저장소 실패는 StoreUnavailable로 한 번만 전달, 재시도 없음
- 이미 같은 결정이 내려진 레코드에 대한 approve/reject는 쓰기 없이 성공

관련 파일:
- app.repositories.user_directory : 레코드 조회/변경
- app.services.admin_log          : 감사 로그
- app.core.guard                  : AuthContext (행위자)

"""

import uuid
from dataclasses import dataclass, field

import structlog

from app.core.config import settings
from app.core.errors import PermissionDenied, SelfRevocationDenied, StoreUnavailable
from app.core.guard import AuthContext
from app.core.identity import IdentitySession
from app.models.admin_log import AdminAction
from app.models.user import (
    ROLE_COLUMNS,
    SINGLE_ROLES,
    ApprovalState,
    Role,
    UserRecord,
    utcnow,
)
from app.repositories.user_directory import UserDirectory, UserFilter
from app.services.admin_log import write_admin_log

logger = structlog.get_logger(__name__)

CENTER_ROLES = Role.MISSIONARY | Role.CENTER


@dataclass
class UserPartition:
    pending: list[UserRecord] = field(default_factory=list)
    approved: list[UserRecord] = field(default_factory=list)
    rejected: list[UserRecord] = field(default_factory=list)


def approved_administrators_exist(directory: UserDirectory) -> bool:
    return directory.count_users(UserFilter.holding(Role.ADMINISTRATOR, ApprovalState.APPROVED)) > 0


def require_approved_administrator(actor: AuthContext | None) -> None:
    if actor is None or actor.record is None or not actor.record.is_approved_administrator:
        raise PermissionDenied("Approved administrator required")


"""
최초 관리자 예외 판정

- 행위자 본인 레코드에 대한 승인이고
- 세션 id / email이 레코드와 일치하며
- 레코드가 관리자 플래그를 가진 PENDING 상태이고
- 승인된 관리자가 아직 한 명도 없을 때

"""

def _is_bootstrap_approval(directory: UserDirectory, record: UserRecord, actor: AuthContext | None) -> bool:
    if actor is None or actor.record is None:
        return False
    if actor.user_id != record.id or actor.session.email != record.email:
        return False
    if not record.is_administrator or record.approved is not None:
        return False
    return not approved_administrators_exist(directory)


def _decide(directory: UserDirectory, record: UserRecord, actor: AuthContext | None, decision: bool) -> UserRecord:
    target = ApprovalState.from_column(decision)

    try:
        require_approved_administrator(actor)
    except PermissionDenied:
        if not (decision and _is_bootstrap_approval(directory, record, actor)):
            raise
        logger.info("bootstrap self-approval", user_id=str(record.id))

    # 자기 자신 거절 금지
    if not decision and record.id == actor.user_id:
        raise SelfRevocationDenied("Cannot reject yourself")

    if record.approved is decision:
        return record

    before = record.approval_state
    write_admin_log(
        directory.db,
        actor_id=actor.user_id,
        action=AdminAction.APPROVE_USER if decision else AdminAction.REJECT_USER,
        target_user_id=record.id,
        before_state=before.value,
        after_state=target.value,
    )
    updated = directory.update_user(
        record.id,
        {"approved": decision, "approved_by": actor.user_id, "approved_at": utcnow()},
    )
    logger.info(
        "approval decided",
        user_id=str(record.id),
        actor_id=str(actor.user_id),
        before=before.value,
        after=target.value,
    )
    return updated


def approve(directory: UserDirectory, record: UserRecord, actor: AuthContext | None) -> UserRecord:
    return _decide(directory, record, actor, True)


def reject(directory: UserDirectory, record: UserRecord, actor: AuthContext | None) -> UserRecord:
    return _decide(directory, record, actor, False)


"""
역할 해제

- 본인의 관리자 역할은 해제 불가 (SelfRevocationDenied)
- 승인된 관리자만 수행 가능
- 해당 역할이 없으면 쓰기 없이 그대로 반환
- 역할이 사라지면 그 역할 전용 식별자도 함께 비움
  (sponsor -> sponsor_id/child_id, missionary+center 모두 없음 -> center_id/center_name)

"""

def revoke_role(directory: UserDirectory, record: UserRecord, role: Role, actor: AuthContext | None) -> UserRecord:
    if role not in SINGLE_ROLES:
        raise ValueError(f"revoke_role expects a single role, got {role}")

    if role is Role.ADMINISTRATOR and actor is not None and record.id == actor.user_id:
        raise SelfRevocationDenied()

    require_approved_administrator(actor)

    if not record.has_role(role):
        return record

    before = record.roles
    remaining = before & ~role
    fields = {ROLE_COLUMNS[role]: False}
    if role is Role.SPONSOR:
        fields.update(sponsor_id=None, child_id=None)
    if role in CENTER_ROLES and not (remaining & CENTER_ROLES):
        fields.update(center_id=None, center_name=None)

    write_admin_log(
        directory.db,
        actor_id=actor.user_id,
        action=AdminAction.REVOKE_ROLE,
        target_user_id=record.id,
        before_state=",".join(before.labels),
        after_state=",".join(remaining.labels),
    )
    updated = directory.update_user(record.id, fields)
    logger.info("role revoked", user_id=str(record.id), actor_id=str(actor.user_id), role=role.name)
    return updated


"""
최초 관리자 bootstrap

- 승인된 관리자가 한 명도 없을 때만 가능
- 본인 레코드(세션 id, email 일치)에 대해서만 가능
- auto_approve=True  : 바로 APPROVED (approved_by = 본인)
- auto_approve=False : PENDING 유지, 이후 본인이 approve로 승인 (bootstrap 예외)
                       이미 승인 / 거절된 레코드는 거부

"""

def bootstrap_self_as_administrator(
    directory: UserDirectory,
    record: UserRecord,
    session: IdentitySession | None,
    *,
    auto_approve: bool | None = None,
) -> UserRecord:
    if auto_approve is None:
        auto_approve = settings.BOOTSTRAP_AUTO_APPROVE

    if session is None or session.user_id != record.id or session.email != record.email:
        raise PermissionDenied("Bootstrap is only available for your own account")

    if approved_administrators_exist(directory):
        raise PermissionDenied("An administrator already exists")

    # 자동 승인이 꺼져 있으면 이후 본인 승인은 PENDING에서만 가능
    if not auto_approve and record.approved is not None:
        raise PermissionDenied("Bootstrap requires a pending account")

    before = record.approval_state
    fields: dict = {"is_administrator": True}
    if auto_approve:
        fields.update(approved=True, approved_by=record.id, approved_at=utcnow())

    write_admin_log(
        directory.db,
        actor_id=record.id,
        action=AdminAction.BOOTSTRAP_ADMIN,
        target_user_id=record.id,
        before_state=before.value,
        after_state=ApprovalState.APPROVED.value if auto_approve else before.value,
    )
    updated = directory.update_user(record.id, fields)
    logger.info("administrator bootstrapped", user_id=str(record.id), auto_approved=auto_approve)
    return updated


def list_pending(directory: UserDirectory, role: Role | None = None) -> list[UserRecord]:
    return directory.list_users(UserFilter.holding(role, ApprovalState.PENDING))


def partition_users(directory: UserDirectory, role: Role | None = None) -> UserPartition:
    partition = UserPartition()
    # 한 번의 조회 결과(created_at 오름차순)를 순서대로 분배
    for record in directory.list_users(UserFilter.holding(role)):
        state = record.approval_state
        if state is ApprovalState.PENDING:
            partition.pending.append(record)
        elif state is ApprovalState.APPROVED:
            partition.approved.append(record)
        else:
            partition.rejected.append(record)
    return partition


"""
화면용 관리자 판정

- 조회 실패 시 화면을 막지 않고 "관리자 아님"으로 처리
- 접근 제어(Access Guard)에는 사용하지 않음

"""

def is_administrator(directory: UserDirectory, user_id: uuid.UUID) -> bool:
    try:
        record = directory.find_user(user_id)
    except StoreUnavailable as e:
        logger.warning("administrator check failed, treating as non-administrator", user_id=str(user_id), error=e.message)
        return False
    return record is not None and record.is_approved_administrator
