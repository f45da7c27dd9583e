from pydantic import BaseModel


class MessageResponse(BaseModel):
    id: str
    sponsor_id: str
    created_at: str
    message_text: str
    message_has_been_read: bool
    message_direction: str
    image01_url: str | None = None
    image02_url: str | None = None


class SendMessageRequest(BaseModel):
    # 길이 제한은 서비스 계층(MESSAGE_MAX_LENGTH)에서 검사
    message_text: str


class ThreadResponse(BaseModel):
    sponsor_id: str
    child_name: str | None = None
    messages: list[MessageResponse]


class ChildResponse(BaseModel):
    id: str
    child_id: str
    name: str
    date_of_birth: str
    bridge_of_hope_center_id: str
    sponsor_id: str | None = None
    created_at: str


class CenterResponse(BaseModel):
    id: str
    center_id: str
    name: str
    created_at: str


class MissionaryDashboardResponse(BaseModel):
    center: CenterResponse | None
    children: list[ChildResponse]
    recent_messages: list[MessageResponse]
