from typing import Generator

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.core.guard import AuthContext, Capability, Verdict, evaluate, load_context
from app.core.identity import IdentityProvider, IdentitySession
from app.db.session import SessionLocal
from app.models.user import Role
from app.repositories.mock_store import MockStore
from app.repositories.user_directory import UserDirectory

# Swagger Authorize에서 "Bearer 토큰" 입력받는 스키마
bearer_scheme = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_identity_provider(request: Request) -> IdentityProvider:
    return request.app.state.identity_provider


def get_directory(db: Session = Depends(get_db)) -> UserDirectory:
    return UserDirectory(db)


def get_mock_store(db: Session = Depends(get_db)) -> MockStore:
    return MockStore(db)


def get_current_session(
    cred: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> IdentitySession | None:
    token = cred.credentials if cred is not None else None
    return provider.get_current_session(db, token)


# 요청당 한 번 만들어지는 권한 컨텍스트 (세션 + 디렉터리 레코드)
def get_auth_context(
    session: IdentitySession | None = Depends(get_current_session),
    directory: UserDirectory = Depends(get_directory),
) -> AuthContext | None:
    return load_context(directory, session)


def _enforce(context: AuthContext | None, capability: Capability) -> AuthContext:
    verdict = evaluate(context, capability)

    if verdict is Verdict.REDIRECT_TO_SIGN_IN:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if verdict is Verdict.DENY:
        # 레코드 조회 실패는 원인을 그대로 보여줌 (fail closed)
        if context.load_error is not None:
            detail = context.load_error.message
        elif context.record is None:
            detail = "User record not found"
        elif context.record.approved is not True:
            detail = "Pending approval" if context.record.approved is None else "Account rejected"
        else:
            detail = "Administrator access required"
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)

    return context


def require(capability: Capability):
    def _checker(context: AuthContext | None = Depends(get_auth_context)) -> AuthContext:
        return _enforce(context, capability)
    return _checker


"""
승인된 사용자 중 특정 역할 보유자만 허용

- roles 중 하나라도 보유하면 통과
- allow_admin=True면 관리자도 통과

"""
def require_role(*roles: Role, allow_admin: bool = False):
    def _checker(context: AuthContext | None = Depends(get_auth_context)) -> AuthContext:
        context = _enforce(context, Capability.REQUIRE_APPROVED)
        held = context.roles
        if allow_admin and Role.ADMINISTRATOR in held:
            return context
        if not any(role in held for role in roles):
            names = ", ".join(r.name.lower() for r in roles)
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=f"Requires role: {names}")
        return context
    return _checker


get_signed_in = require(Capability.NONE)
get_approved_user = require(Capability.REQUIRE_APPROVED)
get_current_admin = require(Capability.REQUIRE_ADMINISTRATOR)
