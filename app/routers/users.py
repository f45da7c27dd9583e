"""
users.py

로그인한 사용자 본인 정보 API 모음.

관리자용 사용자 관리 기능(admin.py)과 분리하여,
본인 레코드와 역할별 대시보드만 노출한다.

주요 기능:
- 본인 디렉터리 레코드 조회 (승인 상태 포함)
- 역할별 대시보드 구성 조회

설계 원칙:
- 로그인만 되어 있으면 접근 가능 (승인 대기 / 거절 상태도 본인 상태 확인은 가능)
- 관리자 메뉴 노출 판정은 조회 실패 시 관리자 아님으로 처리

관련 파일:
- app.services.dashboard   : 대시보드 구성
- app.core.deps            : 로그인 확인(get_signed_in)
"""

from fastapi import APIRouter, Depends

from app.core.deps import get_directory, get_mock_store, get_signed_in
from app.core.errors import NotFound
from app.core.guard import AuthContext
from app.repositories.mock_store import MockStore
from app.repositories.user_directory import UserDirectory
from app.schemas.user import DashboardResponse, UserRecordResponse
from app.services.dashboard import build_dashboard

router = APIRouter(prefix="/users", tags=["users"])

"""
본인 프로필 조회 API

- 디렉터리 레코드(역할 플래그, 승인 상태, 식별자) 반환
- 레코드 조회 실패 시 실패 원인 그대로 반환

"""
@router.get("/profile")
def profile(context: AuthContext = Depends(get_signed_in)):
    if context.record is None:
        raise context.load_error or NotFound("User record not found")
    return {
        "data": {
            **UserRecordResponse.model_validate(context.record).model_dump(mode="json"),
            "approval_state": context.approval_state.value,
        }
    }


@router.get("/dashboard")
def dashboard(
    directory: UserDirectory = Depends(get_directory),
    store: MockStore = Depends(get_mock_store),
    context: AuthContext = Depends(get_signed_in),
):
    body = DashboardResponse(**build_dashboard(directory, store, context))
    return {"data": body.model_dump()}
