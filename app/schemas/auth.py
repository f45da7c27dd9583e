import uuid
from pydantic import BaseModel, EmailStr, Field

from app.models.user import Role


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=64)

    # 가입 폼에서 선택한 역할 (0개 이상)
    is_administrator: bool = False
    is_missionary: bool = False
    is_sponsor: bool = False
    is_center: bool = False

    # 역할 전용 식별자 (형식 검증은 서비스 계층에서 수행)
    sponsor_id: str | None = Field(default=None, max_length=32)
    child_id: str | None = Field(default=None, max_length=32)
    center_id: str | None = Field(default=None, max_length=32)
    center_name: str | None = Field(default=None, max_length=255)

    @property
    def roles(self) -> Role:
        roles = Role.NONE
        if self.is_administrator:
            roles |= Role.ADMINISTRATOR
        if self.is_missionary:
            roles |= Role.MISSIONARY
        if self.is_sponsor:
            roles |= Role.SPONSOR
        if self.is_center:
            roles |= Role.CENTER
        return roles

    @property
    def attributes(self) -> dict[str, str | None]:
        return {
            "sponsor_id": self.sponsor_id,
            "child_id": self.child_id,
            "center_id": self.center_id,
            "center_name": self.center_name,
        }

class RegisterResponse(BaseModel):
    id: uuid.UUID
    email: EmailStr
    approval_state: str
    bootstrap_available: bool

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"

class SessionResponse(BaseModel):
    user_id: uuid.UUID
    email: EmailStr
    approval_state: str | None
    roles: list[str]
