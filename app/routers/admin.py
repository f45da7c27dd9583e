"""
admin.py

관리자 전용 API 모음.

주요 기능:
- 승인 대기 목록 (가입순 FIFO)
- 승인 상태별(pending / approved / rejected) 사용자 목록
- 역할별 승인된 사용자 목록 (administrators / sponsors / missionaries / centers)
- 승인 / 거절 / 역할 해제
- 역할 전용 식별자 수정
- 디렉터리 레코드 삭제
- 관리자 활동 로그 조회

설계 원칙:
- 승인/거절/역할 해제 규칙은 승인 엔진(app.services.approval)에 위임
- 권한 검사는 대상 레코드 조회 전에 수행

관련 파일:
- app.services.approval    : 승인 엔진
- app.services.admin       : 식별자 수정 / 삭제
- app.services.admin_log   : 감사 로그

"""

import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.deps import get_current_admin, get_db, get_directory, get_signed_in
from app.core.errors import SelfRevocationDenied
from app.core.guard import AuthContext
from app.models.user import ApprovalState, Role
from app.repositories.user_directory import UserDirectory, UserFilter
from app.schemas.user import AttributesUpdate, UserPartitionResponse, UserRecordResponse
from app.services import approval
from app.services.admin import edit_attributes, remove_user
from app.services.admin_log import recent_admin_logs

router = APIRouter(prefix="/admin", tags=["admin"])


def _parse_role(role: str | None) -> Role | None:
    if role is None:
        return None
    try:
        return Role.parse(role)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown role: {role}")


def _dump(record) -> dict:
    return UserRecordResponse.model_validate(record).model_dump(mode="json")


# 승인 대기 중인 사용자 목록 (먼저 가입한 순)
@router.get("/pending")
def list_pending_users(
    role: str | None = None,
    directory: UserDirectory = Depends(get_directory),
    _: AuthContext = Depends(get_current_admin),
):
    pending = approval.list_pending(directory, _parse_role(role))
    return {"data": [_dump(u) for u in pending]}


# 승인 상태별 사용자 목록
@router.get("/users")
def list_users(
    role: str | None = None,
    directory: UserDirectory = Depends(get_directory),
    _: AuthContext = Depends(get_current_admin),
):
    partition = approval.partition_users(directory, _parse_role(role))
    body = UserPartitionResponse(
        pending=[UserRecordResponse.model_validate(u) for u in partition.pending],
        approved=[UserRecordResponse.model_validate(u) for u in partition.approved],
        rejected=[UserRecordResponse.model_validate(u) for u in partition.rejected],
    )
    return {"data": body.model_dump(mode="json")}


# 역할별 승인된 사용자 목록 (Administrators / Sponsors / Missionaries / Centers 화면)
@router.get("/roles/{role}")
def list_role_holders(
    role: str,
    directory: UserDirectory = Depends(get_directory),
    _: AuthContext = Depends(get_current_admin),
):
    holders = directory.list_users(UserFilter.holding(_parse_role(role), ApprovalState.APPROVED))
    return {"data": [_dump(u) for u in holders]}


@router.get("/users/{user_id}")
def get_user_details(
    user_id: uuid.UUID,
    directory: UserDirectory = Depends(get_directory),
    _: AuthContext = Depends(get_current_admin),
):
    return {"data": _dump(directory.get_user_by_id(user_id))}


"""
승인 / 거절 API

- 승인된 관리자만 가능
- 예외: 승인된 관리자가 없을 때 관리자 플래그를 가진 본인의 승인 (bootstrap)
- 이미 같은 상태면 변경 없이 200

"""

@router.post("/users/{user_id}/approve")
def approve_user(
    user_id: uuid.UUID,
    directory: UserDirectory = Depends(get_directory),
    actor: AuthContext = Depends(get_signed_in),
):
    if actor.user_id != user_id:
        approval.require_approved_administrator(actor)
    record = directory.get_user_by_id(user_id)
    before = record.approval_state
    record = approval.approve(directory, record, actor)
    return {
        "message": "User approved",
        "data": {**_dump(record), "before_state": before.value, "after_state": record.approval_state.value},
    }


@router.post("/users/{user_id}/reject")
def reject_user(
    user_id: uuid.UUID,
    directory: UserDirectory = Depends(get_directory),
    actor: AuthContext = Depends(get_signed_in),
):
    approval.require_approved_administrator(actor)
    record = directory.get_user_by_id(user_id)
    before = record.approval_state
    record = approval.reject(directory, record, actor)
    return {
        "message": "User rejected",
        "data": {**_dump(record), "before_state": before.value, "after_state": record.approval_state.value},
    }


@router.post("/users/{user_id}/revoke/{role}")
def revoke_role(
    user_id: uuid.UUID,
    role: str,
    directory: UserDirectory = Depends(get_directory),
    actor: AuthContext = Depends(get_signed_in),
):
    parsed = _parse_role(role)
    if parsed is Role.ADMINISTRATOR and actor.user_id == user_id:
        raise SelfRevocationDenied()
    approval.require_approved_administrator(actor)
    record = directory.get_user_by_id(user_id)
    record = approval.revoke_role(directory, record, parsed, actor)
    return {"message": "Role revoked", "data": _dump(record)}


# 역할 전용 식별자 수정 (보낸 필드만 반영)
@router.patch("/users/{user_id}/attributes")
def update_attributes(
    user_id: uuid.UUID,
    data: AttributesUpdate,
    directory: UserDirectory = Depends(get_directory),
    actor: AuthContext = Depends(get_current_admin),
):
    changes = data.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No changes provided")
    record = directory.get_user_by_id(user_id)
    record = edit_attributes(directory, record, changes, actor)
    return {"message": "Updated successfully", "data": _dump(record)}


# 디렉터리 레코드 삭제 (본인 삭제 금지)
@router.delete("/users/{user_id}")
def delete_user(
    user_id: uuid.UUID,
    directory: UserDirectory = Depends(get_directory),
    actor: AuthContext = Depends(get_current_admin),
):
    record = directory.get_user_by_id(user_id)
    snapshot = _dump(record)
    remove_user(directory, record, actor)
    return {"message": "User removed", "data": snapshot}


# 관리자 활동 로그 조회 (최신순)
@router.get("/logs")
def list_admin_logs(
    limit: int = 50,
    db: Session = Depends(get_db),
    _: AuthContext = Depends(get_current_admin),
):
    limit = max(1, min(limit, 200))
    logs = recent_admin_logs(db, limit=limit)
    return {
        "data": [
            {
                "id": str(log.id),
                "created_at": log.created_at.isoformat(),
                "action": log.action.value,
                "actor_id": str(log.actor_id),
                "target_user_id": str(log.target_user_id) if log.target_user_id else None,
                "before_state": log.before_state,
                "after_state": log.after_state,
            }
            for log in logs
        ],
        "meta": {
            "limit": limit,
            "count": len(logs),
        },
    }
