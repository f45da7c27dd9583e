"""
services/dashboard.py

역할별 대시보드 구성.

- 관리자 메뉴 노출 여부는 is_administrator(조회 실패 시 관리자 아님)로 판정
- 승인된 후원자: 메시지 메뉴 + 읽지 않은 메시지 수
- 승인된 사역자 / 센터: 사역자 대시보드 메뉴
- 승인 전(PENDING / REJECTED) 사용자는 프로필만 노출

"""

from typing import Any

from app.core.guard import AuthContext
from app.models.user import Role
from app.repositories.mock_store import MockStore
from app.repositories.user_directory import UserDirectory
from app.services.approval import is_administrator
from app.services.messages import get_unread_count

ADMIN_SECTIONS = [
    "pending",
    "authenticated_users",
    "administrators",
    "sponsors",
    "missionaries",
    "centers",
    "logs",
]


def build_dashboard(directory: UserDirectory, store: MockStore, context: AuthContext) -> dict[str, Any]:
    record = context.record
    sections = ["profile"]
    unread = None

    if is_administrator(directory, context.user_id):
        sections.extend(ADMIN_SECTIONS)

    if record is not None and record.approved is True:
        if record.is_sponsor:
            sections.append("messages")
            if record.sponsor_id:
                unread = get_unread_count(store, record.sponsor_id)
        if record.roles & (Role.MISSIONARY | Role.CENTER):
            sections.append("missionary_dashboard")

    return {
        "email": context.session.email,
        "approval_state": context.approval_state.value if context.approval_state else None,
        "roles": context.roles.labels,
        "sections": sections,
        "unread_messages": unread,
    }
