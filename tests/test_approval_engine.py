"""
승인 엔진(app.services.approval) 단위 테스트.

- 승인 상태 전이 / 재결정 / 같은 결정 반복 시 쓰기 없음
- 권한 없는 행위자, 본인 관리자 권한 해제 금지
- 역할 해제 시 역할 전용 식별자 정리
- 승인 대기 목록 FIFO, 상태별 분할
- 저장소 실패 시 레코드가 바뀌지 않음
- 최초 관리자 bootstrap (자동 승인 / 본인 승인)

"""

import uuid
from datetime import timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, OperationalError

from app.core.errors import PermissionDenied, SelfRevocationDenied, StoreUnavailable
from app.core.identity import IdentitySession
from app.models.admin_log import AdminAction, AdminActionLog
from app.models.user import ApprovalState, Role, utcnow
from app.repositories.user_directory import UserDirectory
from app.services import approval

from tests.helpers import context_for, create_record_in_db


def _log_count(db) -> int:
    return db.scalar(select(func.count()).select_from(AdminActionLog))


@pytest.fixture()
def directory(db):
    return UserDirectory(db)


@pytest.fixture()
def admin(db):
    return create_record_in_db(db, roles=Role.ADMINISTRATOR, approved=True)


def test_approve_pending_user_records_decision(db, directory, admin):
    user = create_record_in_db(db, roles=Role.SPONSOR, sponsor_id="12345678")

    updated = approval.approve(directory, user, context_for(admin))

    assert updated.approval_state is ApprovalState.APPROVED
    assert updated.approved_by == admin.id
    assert updated.approved_at is not None
    assert updated.is_sponsor is True
    assert updated.sponsor_id == "12345678"

    log = db.scalar(select(AdminActionLog))
    assert log.action is AdminAction.APPROVE_USER
    assert log.before_state == "PENDING"
    assert log.after_state == "APPROVED"


def test_reject_then_approve_again(db, directory, admin):
    user = create_record_in_db(db)

    rejected = approval.reject(directory, user, context_for(admin))
    assert rejected.approval_state is ApprovalState.REJECTED

    approved = approval.approve(directory, rejected, context_for(admin))
    assert approved.approval_state is ApprovalState.APPROVED
    assert _log_count(db) == 2


def test_repeated_decision_writes_nothing(db, directory, admin):
    user = create_record_in_db(db)

    first = approval.approve(directory, user, context_for(admin))
    approved_at = first.approved_at
    second = approval.approve(directory, first, context_for(admin))

    assert second.approval_state is ApprovalState.APPROVED
    assert second.approved_at == approved_at
    assert _log_count(db) == 1


@pytest.mark.parametrize(
    "roles, approved",
    [
        (Role.SPONSOR, True),
        (Role.ADMINISTRATOR, None),
        (Role.ADMINISTRATOR, False),
    ],
)
def test_only_approved_administrators_decide(db, directory, admin, roles, approved):
    actor = create_record_in_db(db, roles=roles, approved=approved)
    user = create_record_in_db(db)

    with pytest.raises(PermissionDenied):
        approval.approve(directory, user, context_for(actor))
    with pytest.raises(PermissionDenied):
        approval.reject(directory, user, context_for(actor))

    db.expire_all()
    assert directory.get_user_by_id(user.id).approval_state is ApprovalState.PENDING
    assert _log_count(db) == 0


def test_missing_actor_is_denied(db, directory):
    user = create_record_in_db(db)

    with pytest.raises(PermissionDenied):
        approval.approve(directory, user, None)


def test_administrator_cannot_reject_self(db, directory, admin):
    with pytest.raises(SelfRevocationDenied):
        approval.reject(directory, admin, context_for(admin))

    db.expire_all()
    assert directory.get_user_by_id(admin.id).approved is True


def test_cannot_revoke_own_administrator_role(db, directory, admin):
    with pytest.raises(SelfRevocationDenied):
        approval.revoke_role(directory, admin, Role.ADMINISTRATOR, context_for(admin))

    db.expire_all()
    assert directory.get_user_by_id(admin.id).is_administrator is True


def test_revoke_other_administrator(db, directory, admin):
    other = create_record_in_db(db, roles=Role.ADMINISTRATOR, approved=True)

    updated = approval.revoke_role(directory, other, Role.ADMINISTRATOR, context_for(admin))

    assert updated.is_administrator is False
    assert updated.approved is True
    log = db.scalar(select(AdminActionLog))
    assert log.action is AdminAction.REVOKE_ROLE
    assert log.before_state == "administrator"
    assert log.after_state == ""


def test_revoke_sponsor_clears_sponsor_identifiers(db, directory, admin):
    user = create_record_in_db(
        db, roles=Role.SPONSOR | Role.MISSIONARY, approved=True,
        sponsor_id="12345678", child_id="1234567891", center_id="57890123",
    )

    updated = approval.revoke_role(directory, user, Role.SPONSOR, context_for(admin))

    assert updated.roles == Role.MISSIONARY
    assert updated.sponsor_id is None
    assert updated.child_id is None
    assert updated.center_id == "57890123"


def test_revoke_missionary_keeps_center_id_while_center_role_remains(db, directory, admin):
    user = create_record_in_db(
        db, roles=Role.MISSIONARY | Role.CENTER, approved=True, center_id="57890123",
    )

    updated = approval.revoke_role(directory, user, Role.MISSIONARY, context_for(admin))
    assert updated.roles == Role.CENTER
    assert updated.center_id == "57890123"

    updated = approval.revoke_role(directory, updated, Role.CENTER, context_for(admin))
    assert updated.roles == Role.NONE
    assert updated.center_id is None


def test_revoke_role_not_held_is_noop(db, directory, admin):
    user = create_record_in_db(db, roles=Role.SPONSOR, approved=True)

    updated = approval.revoke_role(directory, user, Role.CENTER, context_for(admin))

    assert updated.roles == Role.SPONSOR
    assert _log_count(db) == 0


def test_revoke_requires_approved_administrator(db, directory):
    actor = create_record_in_db(db, roles=Role.SPONSOR, approved=True)
    user = create_record_in_db(db, roles=Role.SPONSOR, approved=True)

    with pytest.raises(PermissionDenied):
        approval.revoke_role(directory, user, Role.SPONSOR, context_for(actor))


def test_pending_list_is_oldest_first(db, directory):
    now = utcnow()
    newest = create_record_in_db(db, email="c@test.com", created_at=now)
    oldest = create_record_in_db(db, email="a@test.com", created_at=now - timedelta(hours=2))
    middle = create_record_in_db(db, email="b@test.com", created_at=now - timedelta(hours=1))
    create_record_in_db(db, approved=True, created_at=now - timedelta(hours=3))
    create_record_in_db(db, approved=False, created_at=now - timedelta(hours=3))

    pending = approval.list_pending(directory)

    assert [r.id for r in pending] == [oldest.id, middle.id, newest.id]


def test_pending_list_role_filter(db, directory):
    sponsor = create_record_in_db(db, roles=Role.SPONSOR)
    create_record_in_db(db, roles=Role.MISSIONARY)

    assert [r.id for r in approval.list_pending(directory, Role.SPONSOR)] == [sponsor.id]


def test_partition_places_every_record_exactly_once(db, directory, admin):
    pending = create_record_in_db(db)
    rejected = create_record_in_db(db, approved=False)

    partition = approval.partition_users(directory)

    assert [r.id for r in partition.pending] == [pending.id]
    assert [r.id for r in partition.approved] == [admin.id]
    assert [r.id for r in partition.rejected] == [rejected.id]
    total = len(partition.pending) + len(partition.approved) + len(partition.rejected)
    assert total == len(directory.list_users())


def test_store_failure_leaves_record_unchanged(db, directory, admin, monkeypatch):
    user = create_record_in_db(db)

    def failing_commit():
        raise OperationalError("COMMIT", {}, Exception("connection lost"))

    monkeypatch.setattr(db, "commit", failing_commit)

    with pytest.raises(StoreUnavailable):
        approval.approve(directory, user, context_for(admin))

    monkeypatch.undo()
    db.expire_all()
    assert directory.get_user_by_id(user.id).approval_state is ApprovalState.PENDING
    assert _log_count(db) == 0


def test_is_administrator_treats_lookup_failure_as_false(db, directory, admin, monkeypatch):
    assert approval.is_administrator(directory, admin.id) is True

    def failing_find(user_id):
        raise StoreUnavailable("Database error: OperationalError")

    monkeypatch.setattr(directory, "find_user", failing_find)
    assert approval.is_administrator(directory, admin.id) is False


def test_bootstrap_auto_approves_first_administrator(db, directory):
    user = create_record_in_db(db, roles=Role.SPONSOR)
    session = IdentitySession(user_id=user.id, email=user.email)

    updated = approval.bootstrap_self_as_administrator(directory, user, session, auto_approve=True)

    assert updated.is_administrator is True
    assert updated.is_sponsor is True
    assert updated.approval_state is ApprovalState.APPROVED
    assert updated.approved_by == user.id
    assert approval.approved_administrators_exist(directory) is True


def test_bootstrap_rejected_once_administrator_exists(db, directory, admin):
    user = create_record_in_db(db)
    session = IdentitySession(user_id=user.id, email=user.email)

    with pytest.raises(PermissionDenied):
        approval.bootstrap_self_as_administrator(directory, user, session, auto_approve=True)


def test_bootstrap_only_for_own_record(db, directory):
    user = create_record_in_db(db)
    other = IdentitySession(user_id=uuid.uuid4(), email=user.email)

    with pytest.raises(PermissionDenied):
        approval.bootstrap_self_as_administrator(directory, user, other, auto_approve=True)


def test_bootstrap_without_auto_approve_then_self_approve(db, directory):
    user = create_record_in_db(db)
    session = IdentitySession(user_id=user.id, email=user.email)

    flagged = approval.bootstrap_self_as_administrator(directory, user, session, auto_approve=False)
    assert flagged.is_administrator is True
    assert flagged.approval_state is ApprovalState.PENDING

    approved = approval.approve(directory, flagged, context_for(flagged))
    assert approved.approval_state is ApprovalState.APPROVED
    assert approved.approved_by == user.id


def test_pending_administrator_cannot_self_approve_once_administrator_exists(db, directory, admin):
    pending_admin = create_record_in_db(db, roles=Role.ADMINISTRATOR)

    with pytest.raises(PermissionDenied):
        approval.approve(directory, pending_admin, context_for(pending_admin))


def test_decision_fields_follow_approval_state(db, directory, admin):
    user = create_record_in_db(db)
    other = create_record_in_db(db)

    assert user.approved is None
    assert user.approved_by is None
    assert user.approved_at is None

    approved = approval.approve(directory, user, context_for(admin))
    assert approved.approved_by == admin.id
    assert approved.approved_at is not None

    rejected = approval.reject(directory, other, context_for(admin))
    assert rejected.approved is False
    assert rejected.approved_by == admin.id
    assert rejected.approved_at is not None


def test_pending_record_cannot_carry_decision_fields(db):
    user = create_record_in_db(db)

    user.approved_by = user.id
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()

    user.approved_at = utcnow()
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_bootstrap_without_auto_approve_requires_pending_record(db, directory):
    user = create_record_in_db(db, approved=False)
    session = IdentitySession(user_id=user.id, email=user.email)

    with pytest.raises(PermissionDenied):
        approval.bootstrap_self_as_administrator(directory, user, session, auto_approve=False)

    db.expire_all()
    record = directory.get_user_by_id(user.id)
    assert record.is_administrator is False
    assert record.approval_state is ApprovalState.REJECTED
    assert _log_count(db) == 0
