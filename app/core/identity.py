"""
identity.py

Identity Provider: 계정 가입, 로그인, 세션 검증, 토큰 갱신, 로그아웃.

승인/권한 로직과는 분리된 "누가 로그인했는가"만 담당한다.
세션은 Access Token(JWT)에서 복원되며,
Refresh Token Version(rtv)을 올려 기존 토큰을 무효화한다.

세션 변경 알림:
- on_session_change(callback)로 리스너 등록, 반환된 함수로 해제
- 로그인(SIGNED_IN) / 갱신(TOKEN_REFRESHED) / 로그아웃(SIGNED_OUT) 마다
  리스너당 정확히 한 번, 발생 순서대로 호출
- 해제된 리스너는 이미 진행 중인 알림이라도 더 이상 호출되지 않음

관련 파일:
- app.core.security      : 비밀번호 해시 / JWT 생성·검증
- app.models.user        : Identity 모델
- app.routers.auth       : 인증 API

"""

import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Callable

import structlog
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import AuthenticationFailed, Conflict, StoreUnavailable
from app.core.security import (
    create_access_token,
    create_refresh_token,
    decode_access_token,
    decode_refresh_token,
    get_password_hash,
    verify_password,
)
from app.models.user import Identity

logger = structlog.get_logger(__name__)


class SessionEvent(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    SIGNED_OUT = "SIGNED_OUT"


@dataclass(frozen=True)
class IdentitySession:
    user_id: uuid.UUID
    email: str


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    session: IdentitySession


@dataclass(frozen=True)
class SessionChange:
    event: SessionEvent
    user_id: uuid.UUID
    # 변경 후 세션 (로그아웃이면 None)
    session: IdentitySession | None


SessionListener = Callable[[SessionChange], None]


class _Subscription:
    def __init__(self, callback: SessionListener):
        self.callback = callback
        self.active = True


class IdentityProvider:
    def __init__(self) -> None:
        self._subscriptions: list[_Subscription] = []

    # ---- 세션 변경 알림 ----

    def on_session_change(self, callback: SessionListener) -> Callable[[], None]:
        subscription = _Subscription(callback)
        self._subscriptions.append(subscription)

        def unsubscribe() -> None:
            subscription.active = False
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

        return unsubscribe

    def _emit(self, change: SessionChange) -> None:
        for subscription in list(self._subscriptions):
            # 알림 도중 해제된 리스너에는 전달하지 않음
            if not subscription.active:
                continue
            try:
                subscription.callback(change)
            except Exception:
                logger.exception("session listener failed", session_event=change.event.value)

    # ---- 계정 ----

    """
    계정 생성

    - 이메일 중복이면 Conflict
    - commit은 호출 측(가입 서비스)에서 UserRecord와 함께 수행

    """
    def sign_up(self, db: Session, *, email: str, password: str) -> Identity:
        try:
            exists = db.scalar(select(Identity).where(Identity.email == email))
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Database error: {type(e).__name__}") from e
        if exists:
            raise Conflict("Email already registered")

        identity = Identity(email=email, password_hash=get_password_hash(password))
        db.add(identity)
        try:
            db.flush()
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreUnavailable(f"Database error: {type(e).__name__}") from e
        return identity

    def _issue(self, identity: Identity) -> TokenPair:
        session = IdentitySession(user_id=identity.id, email=identity.email)
        return TokenPair(
            access_token=create_access_token(subject=str(identity.id), email=identity.email),
            refresh_token=create_refresh_token(
                subject=str(identity.id),
                refresh_token_version=identity.refresh_token_version,
            ),
            session=session,
        )

    def sign_in(self, db: Session, *, email: str, password: str) -> TokenPair:
        try:
            identity = db.scalar(select(Identity).where(Identity.email == email))
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Database error: {type(e).__name__}") from e

        if not identity or not verify_password(password, identity.password_hash):
            raise AuthenticationFailed("Invalid credentials")

        pair = self._issue(identity)
        logger.info("signed in", user_id=str(identity.id))
        self._emit(SessionChange(SessionEvent.SIGNED_IN, identity.id, pair.session))
        return pair

    """
    현재 세션 조회

    - 토큰이 없거나, 위조/만료되었거나, 계정이 없으면 None
    - 토큰의 email이 현재 계정 email과 다르면 None

    """
    def get_current_session(self, db: Session, token: str | None) -> IdentitySession | None:
        if not token:
            return None
        try:
            sub, email = decode_access_token(token)
            user_id = uuid.UUID(sub)
        except (JWTError, ValueError):
            return None

        try:
            identity = db.get(Identity, user_id)
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Database error: {type(e).__name__}") from e

        if identity is None or identity.email != email:
            return None
        return IdentitySession(user_id=identity.id, email=identity.email)

    """
    Access Token 재발급

    - Refresh Token Version이 일치하지 않으면 재발급 거부
    - 재발급 시 Refresh Token을 회전(rotation)

    """
    def refresh(self, db: Session, refresh_token: str | None) -> TokenPair:
        if not refresh_token:
            raise AuthenticationFailed("Missing refresh token")
        try:
            sub, token_rtv = decode_refresh_token(refresh_token)
            user_id = uuid.UUID(sub)
        except (JWTError, KeyError, ValueError):
            raise AuthenticationFailed("Invalid refresh token")

        try:
            identity = db.get(Identity, user_id)
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Database error: {type(e).__name__}") from e
        if identity is None:
            raise AuthenticationFailed("User not found")
        if token_rtv != identity.refresh_token_version:
            raise AuthenticationFailed("Refresh token revoked")

        try:
            identity.refresh_token_version += 1
            db.commit()
            db.refresh(identity)
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreUnavailable(f"Database error: {type(e).__name__}") from e

        pair = self._issue(identity)
        self._emit(SessionChange(SessionEvent.TOKEN_REFRESHED, identity.id, pair.session))
        return pair

    """
    로그아웃

    - Refresh Token Version 증가로 기존 Refresh Token 전부 무효화

    """
    def sign_out(self, db: Session, session: IdentitySession) -> None:
        try:
            identity = db.get(Identity, session.user_id)
            if identity is None:
                raise AuthenticationFailed("User not found")
            identity.refresh_token_version += 1
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreUnavailable(f"Database error: {type(e).__name__}") from e

        logger.info("signed out", user_id=str(session.user_id))
        self._emit(SessionChange(SessionEvent.SIGNED_OUT, session.user_id, None))
