"""
메시지 / 센터 API 통합 테스트.

- 후원자 본인 스레드 조회 (최신순, 후원 아동 이름 포함) 및 작성
- 메시지 본문 검증 (빈 값, 200자 초과)
- 사역자 대시보드: 센터, 소속 아동, 최근 메시지
- 역할이 없는 승인 사용자의 접근 차단

"""

from datetime import timedelta

from app.models.user import utcnow
from app.repositories.mock_store import MockStore
from app.services.messages import get_recent_messages_by_center, get_unread_count

from tests.helpers import auth_header, register_approved, setup_admin


def test_sponsor_thread_and_send(client):
    admin = setup_admin(client)
    sponsor = register_approved(client, admin["token"], is_sponsor=True, sponsor_id="23456789")
    headers = auth_header(sponsor["token"])

    r = client.get("/messages/me", headers=headers)
    assert r.status_code == 200, r.text
    thread = r.json()["data"]
    assert thread["sponsor_id"] == "23456789"
    assert [m["id"] for m in thread["messages"]] == ["4", "3"]
    # 본인 스레드 조회 시 받은 메시지는 읽음 처리
    assert all(m["message_has_been_read"] for m in thread["messages"])

    r = client.post("/messages/me", json={"message_text": "   "}, headers=headers)
    assert r.status_code == 422
    assert r.json()["detail"] == "Please enter a message"

    r = client.post("/messages/me", json={"message_text": "x" * 201}, headers=headers)
    assert r.status_code == 422
    assert r.json()["detail"] == "Message cannot exceed 200 characters"

    r = client.post("/messages/me", json={"message_text": "x" * 200}, headers=headers)
    assert r.status_code == 200, r.text
    sent = r.json()["data"]
    assert sent["message_direction"] == "to_child"
    assert sent["message_has_been_read"] is False

    thread = client.get("/messages/me", headers=headers).json()["data"]
    assert thread["messages"][0]["id"] == sent["id"]


def test_sponsor_thread_includes_child_name(client):
    admin = setup_admin(client)
    sponsor = register_approved(client, admin["token"], is_sponsor=True, sponsor_id="12345678")

    thread = client.get("/messages/me", headers=auth_header(sponsor["token"])).json()["data"]

    assert thread["child_name"] == "John Smith"
    assert [m["id"] for m in thread["messages"]] == ["2", "1"]


def test_missionary_dashboard_and_reply(client):
    admin = setup_admin(client)
    missionary = register_approved(client, admin["token"], is_missionary=True, center_id="57890123")
    headers = auth_header(missionary["token"])

    r = client.get("/centers/mine", headers=headers)
    assert r.status_code == 200, r.text
    body = r.json()["data"]
    assert body["center"]["name"] == "Bridge of Hope Center 02"
    assert [c["child_id"] for c in body["children"]] == ["1234567891"]
    assert [m["id"] for m in body["recent_messages"]] == ["2", "1"]

    r = client.post("/messages/sponsors/12345678", json={"message_text": "Thank you!"}, headers=headers)
    assert r.status_code == 200, r.text
    assert r.json()["data"]["message_direction"] == "to_sponsor"

    r = client.get("/messages/sponsors/123456789", headers=headers)
    assert r.status_code == 422


def test_sponsor_unread_count_after_reply(client):
    admin = setup_admin(client)
    missionary = register_approved(client, admin["token"], is_missionary=True, center_id="57890123")
    sponsor = register_approved(client, admin["token"], is_sponsor=True, sponsor_id="12345678")

    client.post(
        "/messages/sponsors/12345678",
        json={"message_text": "Hello from the center"},
        headers=auth_header(missionary["token"]),
    )

    dashboard = client.get("/users/dashboard", headers=auth_header(sponsor["token"])).json()["data"]
    assert "messages" in dashboard["sections"]
    assert dashboard["unread_messages"] == 1


def test_role_gates(client):
    admin = setup_admin(client)
    plain = register_approved(client, admin["token"])
    sponsor = register_approved(client, admin["token"], is_sponsor=True, sponsor_id="12345678")

    r = client.get("/messages/me", headers=auth_header(plain["token"]))
    assert r.status_code == 403
    assert r.json()["detail"] == "Requires role: sponsor"

    r = client.get("/centers/mine", headers=auth_header(sponsor["token"]))
    assert r.status_code == 403

    r = client.get("/messages/sponsors/12345678", headers=auth_header(sponsor["token"]))
    assert r.status_code == 403

    # 관리자는 후원자 스레드 조회 가능
    r = client.get("/messages/sponsors/12345678", headers=auth_header(admin["token"]))
    assert r.status_code == 200

    r = client.get("/centers", headers=auth_header(plain["token"]))
    assert r.status_code == 200
    assert [c["center_id"] for c in r.json()["data"]] == ["57890123"]


def test_recent_messages_window(db):
    store = MockStore(db)

    assert len(get_recent_messages_by_center(store, "57890123")) == 2
    assert get_recent_messages_by_center(store, "57890123", now=utcnow() + timedelta(days=61)) == []
    assert get_recent_messages_by_center(store, "99999999") == []
    assert get_unread_count(store, "23456789") == 1


def test_mark_single_message_read(client):
    admin = setup_admin(client)
    sponsor = register_approved(client, admin["token"], is_sponsor=True, sponsor_id="12345678")
    headers = auth_header(sponsor["token"])

    # 다른 후원자의 메시지는 보이지 않음
    r = client.post("/messages/4/read", headers=headers)
    assert r.status_code == 404
    assert r.json()["detail"] == "Message not found"

    r = client.post("/messages/4/read", headers=auth_header(admin["token"]))
    assert r.status_code == 200, r.text
    assert r.json()["data"]["message_has_been_read"] is True

    r = client.post("/messages/1/read", headers=headers)
    assert r.status_code == 200, r.text
