"""
auth.py

인증(Authentication) 및 가입 API 모음.

회원 가입, 로그인, 토큰 재발급, 로그아웃, 현재 세션 조회와
최초 관리자 bootstrap을 담당한다.
토큰 발급/검증은 Identity Provider(app.core.identity)에 위임한다.

주요 기능:
- 회원 가입 (역할 선택, 승인 대기 상태로 등록)
- 로그인 및 토큰 발급 (승인 여부와 무관하게 로그인 가능)
- Refresh Token 기반 Access Token 재발급
- 로그아웃 (Refresh Token 무효화)
- 최초 관리자 bootstrap

설계 원칙:
- Access Token은 Authorization Header로 전달
- Refresh Token은 HttpOnly Cookie로 관리
- 승인 여부에 따른 접근 제어는 Access Guard(app.core.deps)에서 수행

관련 파일:
- app.core.identity        : Identity Provider
- app.services.registration: 가입 로직
- app.services.approval    : bootstrap

"""

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.deps import get_db, get_directory, get_identity_provider, get_signed_in
from app.core.errors import AuthenticationFailed, NotFound
from app.core.guard import AuthContext
from app.core.identity import IdentityProvider, TokenPair
from app.repositories.user_directory import UserDirectory
from app.schemas.auth import LoginRequest, RegisterRequest, RegisterResponse, SessionResponse, TokenResponse
from app.schemas.user import UserRecordResponse
from app.services.approval import approved_administrators_exist, bootstrap_self_as_administrator
from app.services.registration import register_user

router = APIRouter(prefix="/auth", tags=["auth"])

REFRESH_COOKIE_NAME = "refresh_token"


def _set_refresh_cookie(response: Response, pair: TokenPair) -> None:
    response.set_cookie(
        key=REFRESH_COOKIE_NAME,
        value=pair.refresh_token,
        httponly=True,
        secure=settings.COOKIE_SECURE,        # 로컬 False / HTTPS 운영 True
        samesite=settings.COOKIE_SAMESITE,    # "lax" 추천
        domain=settings.COOKIE_DOMAIN,        # 보통 None
        path="/",
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
    )


def _token_body(pair: TokenPair) -> dict:
    return {"data": TokenResponse(access_token=pair.access_token).model_dump()}


"""
회원 가입 API

- 이메일 기준으로 신규 계정 생성 (중복이면 400)
- 선택한 역할 플래그로 authenticated_users 등록, 승인 상태는 PENDING
- 역할 전용 식별자 형식이 틀리면 422 (아무것도 저장하지 않음)
- 승인된 관리자가 아직 없으면 bootstrap_available=True

"""

@router.post("/register")
def register(
    data: RegisterRequest,
    db: Session = Depends(get_db),
    provider: IdentityProvider = Depends(get_identity_provider),
):
    record = register_user(
        db,
        provider,
        email=data.email,
        password=data.password,
        roles=data.roles,
        attributes=data.attributes,
    )
    body = RegisterResponse(
        id=record.id,
        email=record.email,
        approval_state=record.approval_state.value,
        bootstrap_available=not approved_administrators_exist(UserDirectory(db)),
    )
    return {"data": body.model_dump(mode="json")}


"""
로그인 API

- 이메일 / 비밀번호 인증
- Access Token은 응답 바디로 반환
- Refresh Token은 HttpOnly Cookie로 설정

"""

@router.post("/login")
def login(
    data: LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
    provider: IdentityProvider = Depends(get_identity_provider),
):
    pair = provider.sign_in(db, email=data.email, password=data.password)
    _set_refresh_cookie(response, pair)
    return _token_body(pair)


"""
Access Token 재발급 API

- Refresh Token 쿠키를 사용해 새로운 Access Token 발급
- 실패 시 Refresh Token 쿠키 삭제 후 401

"""

@router.post("/refresh")
def refresh(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    provider: IdentityProvider = Depends(get_identity_provider),
):
    try:
        pair = provider.refresh(db, request.cookies.get(REFRESH_COOKIE_NAME))
    except AuthenticationFailed as e:
        failed = JSONResponse(
            status_code=e.status_code,
            content={"detail": e.message, "code": e.__class__.__name__},
        )
        failed.delete_cookie(key=REFRESH_COOKIE_NAME, path="/", domain=settings.COOKIE_DOMAIN)
        return failed

    _set_refresh_cookie(response, pair)
    return _token_body(pair)


@router.post("/logout")
def logout(
    db: Session = Depends(get_db),
    provider: IdentityProvider = Depends(get_identity_provider),
    context: AuthContext = Depends(get_signed_in),
):
    provider.sign_out(db, context.session)

    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(
        key=REFRESH_COOKIE_NAME,
        path="/",
        domain=settings.COOKIE_DOMAIN,
    )
    return response


@router.get("/session")
def current_session(context: AuthContext = Depends(get_signed_in)):
    body = SessionResponse(
        user_id=context.session.user_id,
        email=context.session.email,
        approval_state=context.approval_state.value if context.approval_state else None,
        roles=context.roles.labels,
    )
    return {"data": body.model_dump(mode="json")}


"""
최초 관리자 bootstrap API

- 승인된 관리자가 한 명도 없을 때, 로그인한 본인을 관리자로 지정
- BOOTSTRAP_AUTO_APPROVE=True면 바로 승인, False면 승인 대기

"""

@router.post("/bootstrap")
def bootstrap(
    directory: UserDirectory = Depends(get_directory),
    context: AuthContext = Depends(get_signed_in),
):
    if context.record is None:
        raise context.load_error or NotFound("User record not found")

    record = bootstrap_self_as_administrator(directory, context.record, context.session)
    return {
        "message": "Administrator bootstrapped",
        "data": UserRecordResponse.model_validate(record).model_dump(mode="json"),
    }
