# tests/helpers.py
import uuid
from datetime import datetime

from sqlalchemy.orm import Session

from app.core.guard import AuthContext
from app.core.identity import IdentitySession
from app.models.user import Identity, Role, UserRecord, utcnow

PASSWORD = "Passw0rd!123"


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def unique_email(prefix: str = "user") -> str:
    return f"{prefix}_{uuid.uuid4().hex[:6]}@test.com"


def create_record_in_db(
    db: Session,
    *,
    email: str | None = None,
    roles: Role = Role.NONE,
    approved: bool | None = None,
    created_at: datetime | None = None,
    **attributes,
) -> UserRecord:
    """
    로그인 없이 엔진 단위 테스트에서 쓰는 레코드 생성
    (비밀번호 해시는 사용하지 않으므로 더미 값)
    """
    identity = Identity(email=email or unique_email(), password_hash="not-used")
    db.add(identity)
    db.flush()

    record = UserRecord(
        id=identity.id,
        email=identity.email,
        is_administrator=Role.ADMINISTRATOR in roles,
        is_missionary=Role.MISSIONARY in roles,
        is_sponsor=Role.SPONSOR in roles,
        is_center=Role.CENTER in roles,
        approved=approved,
        approved_by=identity.id if approved is not None else None,
        approved_at=utcnow() if approved is not None else None,
        created_at=created_at or utcnow(),
        **attributes,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def context_for(record: UserRecord) -> AuthContext:
    return AuthContext(session=IdentitySession(user_id=record.id, email=record.email), record=record)


def register(client, *, email: str, password: str = PASSWORD, **fields) -> dict:
    r = client.post("/auth/register", json={"email": email, "password": password, **fields})
    assert r.status_code == 200, r.text
    return r.json()["data"]


def login(client, *, email: str, password: str = PASSWORD) -> str:
    r = client.post("/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    return r.json()["data"]["access_token"]


def setup_admin(client) -> dict:
    """
    첫 가입자를 bootstrap으로 승인된 관리자로 만들고 토큰 반환
    """
    email = unique_email("admin")
    data = register(client, email=email)
    assert data["bootstrap_available"] is True

    token = login(client, email=email)
    r = client.post("/auth/bootstrap", headers=auth_header(token))
    assert r.status_code == 200, r.text
    assert r.json()["data"]["approved"] is True

    return {"id": data["id"], "email": email, "token": token}


def register_approved(client, admin_token: str, **fields) -> dict:
    """
    가입 -> 관리자 승인 -> 로그인까지 마친 사용자
    """
    email = unique_email()
    data = register(client, email=email, **fields)

    r = client.post(f"/admin/users/{data['id']}/approve", headers=auth_header(admin_token))
    assert r.status_code == 200, r.text

    return {"id": data["id"], "email": email, "token": login(client, email=email)}
