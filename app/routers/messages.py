"""
messages.py

후원자 <-> 아동 메시지 API 모음.

주요 기능:
- 후원자 본인 메시지 조회 / 작성 (to_child)
- 사역자 / 센터의 후원자별 메시지 조회 / 답장 (to_sponsor)
- 메시지 읽음 처리

설계 원칙:
- 승인된 사용자만 접근 가능 (Access Guard: requireApproved)
- 후원자는 본인 sponsor_id 스레드만 접근
- 본문 검증(1~200자)은 서비스 계층에서 수행

관련 파일:
- app.services.messages    : 메시지 로직
- app.services.centers     : 후원 아동 조회
"""

from fastapi import APIRouter, Depends

from app.core.deps import get_mock_store, require_role
from app.core.errors import NotFound
from app.core.guard import AuthContext
from app.core.identifiers import validate_identifier
from app.models.user import Role
from app.repositories.mock_store import MockStore
from app.schemas.message import MessageResponse, SendMessageRequest, ThreadResponse
from app.services.centers import get_child_by_sponsor
from app.services import messages as message_service
from app.services.messages import MessageDirection

router = APIRouter(prefix="/messages", tags=["messages"])

get_sponsor = require_role(Role.SPONSOR)
get_center_staff = require_role(Role.MISSIONARY, Role.CENTER, allow_admin=True)


def _own_sponsor_id(context: AuthContext) -> str:
    sponsor_id = context.record.sponsor_id
    if not sponsor_id:
        raise NotFound("Sponsor ID not found")
    return sponsor_id


def _thread(store: MockStore, sponsor_id: str) -> dict:
    child = get_child_by_sponsor(store, sponsor_id)
    body = ThreadResponse(
        sponsor_id=sponsor_id,
        child_name=child["name"] if child else None,
        messages=[MessageResponse(**m) for m in message_service.get_messages_by_sponsor(store, sponsor_id)],
    )
    return body.model_dump()


"""
후원자 본인 메시지 조회 API

- 본인 sponsor_id 기준 메시지 (최신순)
- 조회 시 아동이 보낸(to_sponsor) 메시지를 읽음 처리

"""
@router.get("/me")
def my_messages(
    store: MockStore = Depends(get_mock_store),
    context: AuthContext = Depends(get_sponsor),
):
    sponsor_id = _own_sponsor_id(context)
    message_service.mark_all_read(store, sponsor_id, MessageDirection.TO_SPONSOR)
    return {"data": _thread(store, sponsor_id)}


@router.post("/me")
def send_my_message(
    data: SendMessageRequest,
    store: MockStore = Depends(get_mock_store),
    context: AuthContext = Depends(get_sponsor),
):
    message = message_service.add_message(
        store,
        sponsor_id=_own_sponsor_id(context),
        text=data.message_text,
        direction=MessageDirection.TO_CHILD,
    )
    return {"message": "Message sent", "data": MessageResponse(**message).model_dump()}


"""
후원자별 메시지 조회 API (사역자 / 센터 / 관리자)

- sponsor_id 형식이 틀리면 422
- 조회 시 후원자가 보낸(to_child) 메시지를 읽음 처리

"""
@router.get("/sponsors/{sponsor_id}")
def sponsor_messages(
    sponsor_id: str,
    store: MockStore = Depends(get_mock_store),
    _: AuthContext = Depends(get_center_staff),
):
    validate_identifier("sponsor_id", sponsor_id)
    message_service.mark_all_read(store, sponsor_id, MessageDirection.TO_CHILD)
    return {"data": _thread(store, sponsor_id)}


@router.post("/sponsors/{sponsor_id}")
def reply_to_sponsor(
    sponsor_id: str,
    data: SendMessageRequest,
    store: MockStore = Depends(get_mock_store),
    _: AuthContext = Depends(require_role(Role.MISSIONARY, Role.CENTER)),
):
    message = message_service.add_message(
        store,
        sponsor_id=sponsor_id,
        text=data.message_text,
        direction=MessageDirection.TO_SPONSOR,
    )
    return {"message": "Message sent", "data": MessageResponse(**message).model_dump()}


"""
메시지 단건 읽음 처리 API

- 사역자 / 센터 / 관리자: 모든 메시지
- 후원자: 본인 스레드의 메시지만 (다른 스레드는 404)

"""
@router.post("/{message_id}/read")
def read_message(
    message_id: str,
    store: MockStore = Depends(get_mock_store),
    context: AuthContext = Depends(require_role(Role.SPONSOR, Role.MISSIONARY, Role.CENTER, allow_admin=True)),
):
    staff = context.roles & (Role.ADMINISTRATOR | Role.MISSIONARY | Role.CENTER)
    sponsor_id = None if staff else _own_sponsor_id(context)
    message = message_service.mark_read(store, message_id, sponsor_id=sponsor_id)
    return {"data": MessageResponse(**message).model_dump()}
