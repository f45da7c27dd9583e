"""
services/registration.py

회원 가입 로직.

- Identity Provider에 계정 생성 후 같은 id로 UserRecord(authenticated_users) 등록
- 두 작업은 하나의 트랜잭션으로 commit (레코드만 남는 경우 없음)
- 역할 플래그는 가입 폼의 선택 그대로, 승인 상태는 항상 PENDING
- 역할별 식별자는 쓰기 전에 검증

관련 파일:
- app.core.identity               : 계정 생성
- app.core.identifiers            : 식별자 형식 검증
- app.repositories.user_directory : 레코드 등록
- app.routers.auth                : 가입 API

"""

from sqlalchemy.orm import Session

import structlog

from app.core.errors import ValidationError
from app.core.identifiers import validate_identifier
from app.core.identity import IdentityProvider
from app.models.user import Role, UserRecord
from app.repositories.user_directory import UserDirectory

logger = structlog.get_logger(__name__)

# 역할 전용 식별자 -> 그 식별자를 가질 수 있는 역할
ATTRIBUTE_ROLES = {
    "sponsor_id": Role.SPONSOR,
    "child_id": Role.SPONSOR,
    "center_id": Role.MISSIONARY | Role.CENTER,
    "center_name": Role.MISSIONARY | Role.CENTER,
}


"""
역할 / 식별자 조합 검증

- 숫자 식별자는 형식 검증 (숫자만, 자리수 제한)
- 해당 역할이 없는 사용자에게 역할 전용 값을 지정하면 ValidationError
- 빈 문자열은 None으로 정규화된 dict 반환

"""

def check_role_attributes(roles: Role, attributes: dict[str, str | None]) -> dict[str, str | None]:
    cleaned: dict[str, str | None] = {}
    for key, value in attributes.items():
        if key not in ATTRIBUTE_ROLES:
            raise ValueError(f"unknown attribute: {key}")
        if key == "center_name":
            value = value.strip() if value else None
            value = value or None
        else:
            value = validate_identifier(key, value)
        if value is not None and not (roles & ATTRIBUTE_ROLES[key]):
            raise ValidationError(f"{key} requires the {' or '.join(ATTRIBUTE_ROLES[key].labels)} role")
        cleaned[key] = value
    return cleaned


def register_user(
    db: Session,
    provider: IdentityProvider,
    *,
    email: str,
    password: str,
    roles: Role,
    attributes: dict[str, str | None],
) -> UserRecord:
    cleaned = check_role_attributes(roles, attributes)

    identity = provider.sign_up(db, email=email, password=password)
    record = UserRecord(
        id=identity.id,
        email=identity.email,
        is_administrator=Role.ADMINISTRATOR in roles,
        is_missionary=Role.MISSIONARY in roles,
        is_sponsor=Role.SPONSOR in roles,
        is_center=Role.CENTER in roles,
        approved=None,
        approved_by=None,
        approved_at=None,
        **cleaned,
    )
    record = UserDirectory(db).insert_user(record)
    logger.info("user registered", user_id=str(record.id), roles=roles.labels)
    return record
