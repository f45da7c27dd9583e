"""
guard.py

Access Guard: 보호된 화면(API) 접근 허용 여부 판정.

요청마다 한 번 AuthContext(세션 + 디렉터리 레코드)를 만들고,
이를 명시적으로 넘겨서 판정한다. 전역 상태에 세션/역할을 두지 않는다.

판정 결과(Verdict):
- ALLOW               : 접근 허용
- REDIRECT_TO_SIGN_IN : 세션 없음 (로그인 필요)
- DENY                : 세션은 있으나 요구 조건 미충족

요구 조건(Capability):
- NONE                  : 로그인만 되어 있으면 허용
- REQUIRE_APPROVED      : approved = TRUE
- REQUIRE_ADMINISTRATOR : approved = TRUE 이고 is_administrator = TRUE

레코드 조회가 실패하면 DENY (fail closed). 실패 원인은 AuthContext.load_error로
호출 측에 전달되어 화면에 표시할 수 있다.

관련 파일:
- app.core.deps          : FastAPI 의존성(require)으로 HTTP 응답에 매핑
- app.core.identity      : IdentitySession
- app.repositories.user_directory : 레코드 조회

"""

import uuid
from dataclasses import dataclass
from enum import Enum

import structlog

from app.core.errors import AppError, StoreUnavailable
from app.core.identity import IdentitySession
from app.models.user import ApprovalState, Role, UserRecord
from app.repositories.user_directory import UserDirectory

logger = structlog.get_logger(__name__)


class Capability(str, Enum):
    NONE = "none"
    REQUIRE_APPROVED = "requireApproved"
    REQUIRE_ADMINISTRATOR = "requireAdministrator"


class Verdict(str, Enum):
    ALLOW = "Allow"
    REDIRECT_TO_SIGN_IN = "RedirectToSignIn"
    DENY = "Deny"


@dataclass(frozen=True)
class AuthContext:
    session: IdentitySession
    record: UserRecord | None = None
    load_error: AppError | None = None

    @property
    def user_id(self) -> uuid.UUID:
        return self.session.user_id

    @property
    def roles(self) -> Role:
        return self.record.roles if self.record is not None else Role.NONE

    @property
    def approval_state(self) -> ApprovalState | None:
        return self.record.approval_state if self.record is not None else None


def load_context(directory: UserDirectory, session: IdentitySession | None) -> AuthContext | None:
    if session is None:
        return None
    try:
        record = directory.find_user(session.user_id)
    except StoreUnavailable as e:
        logger.warning("authorization record fetch failed", user_id=str(session.user_id), error=e.message)
        return AuthContext(session=session, load_error=e)
    return AuthContext(session=session, record=record)


def evaluate(context: AuthContext | None, capability: Capability) -> Verdict:
    if context is None:
        return Verdict.REDIRECT_TO_SIGN_IN

    if capability is Capability.NONE:
        return Verdict.ALLOW

    record = context.record
    if context.load_error is not None or record is None:
        return Verdict.DENY

    if record.approved is not True:
        return Verdict.DENY

    if capability is Capability.REQUIRE_ADMINISTRATOR and not record.is_administrator:
        return Verdict.DENY

    return Verdict.ALLOW
