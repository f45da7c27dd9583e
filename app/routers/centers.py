"""
centers.py

Bridge of Hope 센터 / 사역자 대시보드 API.

주요 기능:
- 센터 목록 조회 (승인된 사용자)
- 사역자 / 센터 대시보드: 본인 center_id의 센터, 소속 아동, 최근 메시지

관련 파일:
- app.services.centers     : 센터 / 아동 조회
- app.services.messages    : 센터별 최근 메시지
"""

from fastapi import APIRouter, Depends

from app.core.config import settings
from app.core.deps import get_approved_user, get_mock_store, require_role
from app.core.errors import NotFound
from app.core.guard import AuthContext
from app.models.user import Role
from app.repositories.mock_store import MockStore
from app.schemas.message import CenterResponse, ChildResponse, MessageResponse, MissionaryDashboardResponse
from app.services.centers import get_center, get_children_by_center, list_centers
from app.services.messages import get_recent_messages_by_center

router = APIRouter(prefix="/centers", tags=["centers"])


@router.get("")
def centers(
    store: MockStore = Depends(get_mock_store),
    _: AuthContext = Depends(get_approved_user),
):
    return {"data": [CenterResponse(**c).model_dump() for c in list_centers(store)]}


"""
사역자 대시보드 API

- 승인된 사역자 / 센터 역할만 접근
- 본인 레코드의 center_id 기준 (없으면 404)
- 최근 메시지는 RECENT_MESSAGE_DAYS(기본 60일) 이내, 최신순

"""
@router.get("/mine")
def my_center(
    store: MockStore = Depends(get_mock_store),
    context: AuthContext = Depends(require_role(Role.MISSIONARY, Role.CENTER)),
):
    center_id = context.record.center_id
    if not center_id:
        raise NotFound("Bridge of Hope ID not found")

    center = get_center(store, center_id)
    body = MissionaryDashboardResponse(
        center=CenterResponse(**center) if center else None,
        children=[ChildResponse(**c) for c in get_children_by_center(store, center_id)],
        recent_messages=[MessageResponse(**m) for m in get_recent_messages_by_center(store, center_id)],
    )
    return {
        "data": body.model_dump(),
        "meta": {"days": settings.RECENT_MESSAGE_DAYS},
    }
