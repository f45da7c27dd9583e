"""
가입 / 로그인 / 세션 통합 테스트.

- 가입 직후 PENDING, 로그인은 가능하지만 보호된 API는 403
- 중복 이메일, 잘못된 식별자 가입 거부 (아무것도 저장하지 않음)
- 토큰 없이 접근 시 401

"""

from tests.helpers import PASSWORD, auth_header, login, register, unique_email


def test_register_starts_pending_and_login_is_allowed(client):
    email = unique_email("sponsor")
    data = register(client, email=email, is_sponsor=True, sponsor_id="12345678", child_id="1234567891")
    assert data["approval_state"] == "PENDING"

    token = login(client, email=email)

    session = client.get("/auth/session", headers=auth_header(token))
    assert session.status_code == 200, session.text
    body = session.json()["data"]
    assert body["user_id"] == data["id"]
    assert body["approval_state"] == "PENDING"
    assert body["roles"] == ["sponsor"]

    profile = client.get("/users/profile", headers=auth_header(token))
    assert profile.status_code == 200, profile.text
    assert profile.json()["data"]["sponsor_id"] == "12345678"
    assert profile.json()["data"]["approved"] is None
    assert profile.json()["data"]["approved_by"] is None
    assert profile.json()["data"]["approved_at"] is None

    # 승인 전에는 보호된 API 접근 불가
    r = client.get("/messages/me", headers=auth_header(token))
    assert r.status_code == 403
    assert r.json()["detail"] == "Pending approval"


def test_protected_routes_require_session(client):
    for path in ("/auth/session", "/users/dashboard", "/centers", "/admin/pending"):
        r = client.get(path)
        assert r.status_code == 401, path
        assert r.json()["detail"] == "Not authenticated"

    r = client.get("/users/dashboard", headers=auth_header("garbage-token"))
    assert r.status_code == 401


def test_duplicate_email_is_rejected(client):
    email = unique_email()
    register(client, email=email)

    r = client.post("/auth/register", json={"email": email, "password": PASSWORD})
    assert r.status_code == 400
    assert r.json()["detail"] == "Email already registered"


def test_invalid_identifier_rejects_registration(client):
    email = unique_email("sponsor")
    r = client.post(
        "/auth/register",
        json={"email": email, "password": PASSWORD, "is_sponsor": True, "sponsor_id": "123456789"},
    )
    assert r.status_code == 422
    assert r.json()["detail"] == "Sponsor ID must be 8 digits or less"

    # 계정도 생성되지 않음
    r = client.post("/auth/login", json={"email": email, "password": PASSWORD})
    assert r.status_code == 401


def test_identifier_without_matching_role_is_rejected(client):
    r = client.post(
        "/auth/register",
        json={"email": unique_email(), "password": PASSWORD, "is_missionary": True, "sponsor_id": "12345678"},
    )
    assert r.status_code == 422
    assert r.json()["detail"] == "sponsor_id requires the sponsor role"


def test_wrong_password(client):
    email = unique_email()
    register(client, email=email)

    r = client.post("/auth/login", json={"email": email, "password": "WrongPassw0rd!"})
    assert r.status_code == 401
    assert r.json()["detail"] == "Invalid credentials"
