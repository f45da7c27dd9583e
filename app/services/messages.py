"""
services/messages.py

후원자(sponsor) <-> 아동(child) 메시지 로직.

메시지는 Local Mock Store("messages")에 저장된다.
- to_child   : 후원자가 아동에게 보낸 메시지
- to_sponsor : 아동(사역자가 대신 작성)이 후원자에게 보낸 메시지

주요 기능:
- 후원자별 메시지 목록 (최신순)
- 센터별 최근 N일 메시지 (센터 소속 아동의 후원자 기준, 최신순)
- 후원자 기준 읽지 않은 수신 메시지 수
- 메시지 작성 (1~MESSAGE_MAX_LENGTH자)
- 읽음 처리

관련 파일:
- app.services.centers    : 센터 소속 아동 조회, mock 초기화
- app.routers.messages    : 메시지 API

"""

import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

import structlog

from app.core.config import settings
from app.core.errors import NotFound, ValidationError
from app.core.identifiers import validate_identifier
from app.models.user import utcnow
from app.repositories.mock_store import MockStore
from app.services.centers import get_children_by_center, load_or_seed

logger = structlog.get_logger(__name__)

MESSAGES_KEY = "messages"


class MessageDirection(str, Enum):
    TO_CHILD = "to_child"
    TO_SPONSOR = "to_sponsor"


def _sample_messages() -> list[dict[str, Any]]:
    now = utcnow()
    three_days_ago = (now - timedelta(days=3)).isoformat()
    two_days_ago = (now - timedelta(days=2)).isoformat()
    yesterday = (now - timedelta(days=1)).isoformat()
    return [
        {
            "id": "1",
            "sponsor_id": "12345678",
            "created_at": three_days_ago,
            "message_text": "Dear child, I hope this message finds you well. I am writing to let you know that I pray for you every day.",
            "message_has_been_read": True,
            "message_direction": MessageDirection.TO_CHILD.value,
            "image01_url": "https://images.unsplash.com/photo-1464822759023-fed622ff2c3b",
        },
        {
            "id": "2",
            "sponsor_id": "12345678",
            "created_at": two_days_ago,
            "message_text": "Thank you for your kind message. I am doing well in my studies and I especially enjoy learning mathematics.",
            "message_has_been_read": True,
            "message_direction": MessageDirection.TO_SPONSOR.value,
            "image01_url": "https://images.unsplash.com/photo-1577896851231-70ef18881754",
        },
        {
            "id": "3",
            "sponsor_id": "23456789",
            "created_at": three_days_ago,
            "message_text": "Hello! I am so happy to be your sponsor. I pray for you and your family every day.",
            "message_has_been_read": True,
            "message_direction": MessageDirection.TO_CHILD.value,
            "image01_url": "https://images.unsplash.com/photo-1585320806297-9794b3e4eeae",
            "image02_url": "https://images.unsplash.com/photo-1557429287-b2e26467fc2b",
        },
        {
            "id": "4",
            "sponsor_id": "23456789",
            "created_at": yesterday,
            "message_text": "Dear sponsor, thank you for your message and beautiful garden pictures!",
            "message_has_been_read": False,
            "message_direction": MessageDirection.TO_SPONSOR.value,
            "image01_url": "https://images.unsplash.com/photo-1596495578065-6e0763fa1178",
        },
    ]


def _created_at(message: dict[str, Any]) -> datetime:
    created = datetime.fromisoformat(message["created_at"])
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return created


def _newest_first(messages: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return sorted(messages, key=_created_at, reverse=True)


def list_messages(store: MockStore) -> list[dict[str, Any]]:
    return load_or_seed(store, MESSAGES_KEY, _sample_messages)


def get_messages_by_sponsor(store: MockStore, sponsor_id: str) -> list[dict[str, Any]]:
    return _newest_first([m for m in list_messages(store) if m["sponsor_id"] == sponsor_id])


def get_recent_messages_by_center(
    store: MockStore,
    center_id: str,
    *,
    days: int | None = None,
    now: datetime | None = None,
) -> list[dict[str, Any]]:
    days = settings.RECENT_MESSAGE_DAYS if days is None else days
    since = (now or utcnow()) - timedelta(days=days)
    sponsor_ids = {c["sponsor_id"] for c in get_children_by_center(store, center_id) if c.get("sponsor_id")}
    return _newest_first(
        [m for m in list_messages(store) if m["sponsor_id"] in sponsor_ids and _created_at(m) >= since]
    )


def get_unread_count(store: MockStore, sponsor_id: str) -> int:
    return sum(
        1
        for m in list_messages(store)
        if m["sponsor_id"] == sponsor_id
        and m["message_direction"] == MessageDirection.TO_SPONSOR.value
        and not m["message_has_been_read"]
    )


"""
메시지 작성

- sponsor_id 형식 검증 (숫자 8자리 이하)
- 본문은 공백 제외 1자 이상, MESSAGE_MAX_LENGTH자 이하
- 새 메시지는 읽지 않음 상태로 저장

"""

def add_message(store: MockStore, *, sponsor_id: str, text: str, direction: MessageDirection) -> dict[str, Any]:
    if validate_identifier("sponsor_id", sponsor_id) is None:
        raise ValidationError("Sponsor ID not found")
    if not text or not text.strip():
        raise ValidationError("Please enter a message")
    if len(text) > settings.MESSAGE_MAX_LENGTH:
        raise ValidationError(f"Message cannot exceed {settings.MESSAGE_MAX_LENGTH} characters")

    message = {
        "id": uuid.uuid4().hex[:12],
        "sponsor_id": sponsor_id,
        "created_at": utcnow().isoformat(),
        "message_text": text,
        "message_has_been_read": False,
        "message_direction": direction.value,
    }
    messages = list_messages(store)
    messages.append(message)
    store.set(MESSAGES_KEY, messages)
    logger.info("message sent", sponsor_id=sponsor_id, direction=direction.value)
    return message


# sponsor_id를 주면 해당 후원자 스레드의 메시지만 대상
def mark_read(store: MockStore, message_id: str, *, sponsor_id: str | None = None) -> dict[str, Any]:
    messages = list_messages(store)
    for message in messages:
        if message["id"] == message_id and sponsor_id in (None, message["sponsor_id"]):
            message["message_has_been_read"] = True
            store.set(MESSAGES_KEY, messages)
            return message
    raise NotFound("Message not found")


def mark_all_read(store: MockStore, sponsor_id: str, direction: MessageDirection) -> int:
    messages = list_messages(store)
    changed = 0
    for message in messages:
        if (
            message["sponsor_id"] == sponsor_id
            and message["message_direction"] == direction.value
            and not message["message_has_been_read"]
        ):
            message["message_has_been_read"] = True
            changed += 1
    if changed:
        store.set(MESSAGES_KEY, messages)
    return changed
