"""
services/centers.py

Bridge of Hope 센터 / 아동(children) 조회 로직.

Local Mock Store("bridge_of_hope_centers", "children")에 저장되며,
저장된 목록이 없으면 최초 조회 시 샘플 데이터로 초기화한다.
(SEED_MOCK_DATA=False면 빈 목록으로 초기화)

관련 파일:
- app.repositories.mock_store  : key -> JSON 배열 저장소
- app.routers.centers          : 센터 / 사역자 대시보드 API
- app.services.messages        : 센터별 최근 메시지

"""

from typing import Any, Callable

from app.core.config import settings
from app.models.user import utcnow
from app.repositories.mock_store import MockStore

CENTERS_KEY = "bridge_of_hope_centers"
CHILDREN_KEY = "children"


def _sample_centers() -> list[dict[str, Any]]:
    return [
        {
            "id": "1",
            "center_id": "57890123",
            "name": "Bridge of Hope Center 02",
            "created_at": utcnow().isoformat(),
        }
    ]


def _sample_children() -> list[dict[str, Any]]:
    return [
        {
            "id": "1",
            "child_id": "1234567891",
            "name": "John Smith",
            "date_of_birth": "2015-06-15",
            "bridge_of_hope_center_id": "57890123",
            "sponsor_id": "12345678",
            "created_at": utcnow().isoformat(),
        }
    ]


def load_or_seed(store: MockStore, key: str, sample: Callable[[], list[dict[str, Any]]]) -> list[dict[str, Any]]:
    items = store.get(key)
    if items is None:
        items = sample() if settings.SEED_MOCK_DATA else []
        store.set(key, items)
    return items


def list_centers(store: MockStore) -> list[dict[str, Any]]:
    return load_or_seed(store, CENTERS_KEY, _sample_centers)


def get_center(store: MockStore, center_id: str) -> dict[str, Any] | None:
    return next((c for c in list_centers(store) if c["center_id"] == center_id), None)


def list_children(store: MockStore) -> list[dict[str, Any]]:
    return load_or_seed(store, CHILDREN_KEY, _sample_children)


def get_child_by_sponsor(store: MockStore, sponsor_id: str) -> dict[str, Any] | None:
    return next((c for c in list_children(store) if c.get("sponsor_id") == sponsor_id), None)


def get_children_by_center(store: MockStore, center_id: str) -> list[dict[str, Any]]:
    return [c for c in list_children(store) if c.get("bridge_of_hope_center_id") == center_id]
