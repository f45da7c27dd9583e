from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


# 🔹 디렉터리 레코드 응답용
class UserRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)  # SQLAlchemy → Pydantic 변환

    id: UUID
    email: str
    is_administrator: bool
    is_missionary: bool
    is_sponsor: bool
    is_center: bool
    approved: bool | None
    approved_by: UUID | None
    approved_at: datetime | None
    sponsor_id: str | None
    child_id: str | None
    center_id: str | None
    center_name: str | None
    created_at: datetime


# 🔹 승인 상태별로 나눈 목록
class UserPartitionResponse(BaseModel):
    pending: list[UserRecordResponse]
    approved: list[UserRecordResponse]
    rejected: list[UserRecordResponse]


# 🔹 관리자 식별자 수정 요청용 (보낸 필드만 수정)
class AttributesUpdate(BaseModel):
    sponsor_id: str | None = Field(default=None, max_length=32)
    child_id: str | None = Field(default=None, max_length=32)
    center_id: str | None = Field(default=None, max_length=32)
    center_name: str | None = Field(default=None, max_length=255)


class DashboardResponse(BaseModel):
    email: str
    approval_state: str | None
    roles: list[str]
    sections: list[str]
    unread_messages: int | None = None
