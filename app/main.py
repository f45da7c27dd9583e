"""
main.py

FastAPI 애플리케이션 진입점(Entry Point).

이 파일은 서버 실행 시 가장 먼저 로드되며,
애플리케이션 전반의 설정과 라우터 등록을 담당한다.

주요 역할:
- 로깅 설정 (structlog)
- FastAPI 앱 인스턴스 생성
- CORS 미들웨어 설정
- Identity Provider 생성 및 세션 변경 리스너 등록
- 도메인 예외(AppError) -> HTTP 응답 변환 핸들러 등록
- 각 도메인별 라우터(auth, users, admin, messages, centers) 등록
- 헬스 체크 및 DB 연결 상태 확인용 엔드포인트 제공

설계 원칙:
- 비즈니스 로직은 포함하지 않고 설정/조립 역할만 수행
- 실제 기능은 routers / services 계층에 위임
- 운영 환경에서도 안전하게 상태 확인 가능하도록 health/db-ping 제공

관련 파일:
- app.core.config        : 환경 변수 및 설정 로드
- app.core.logging       : structlog 설정
- app.core.errors        : 도메인 예외 / 핸들러
- app.core.identity      : Identity Provider
- app.routers.*          : 기능별 API 라우터

"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Depends
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session
from sqlalchemy import text

from app.core.config import settings
from app.core.deps import get_db
from app.core.errors import AppError, app_error_handler
from app.core.identity import IdentityProvider, SessionChange
from app.core.logging import configure_logging
from app.db.base import Base
from app.db.session import engine
from app.models import admin_log, mock_store, user  # noqa: F401  (테이블 등록)
from app.routers import auth, users, admin, messages, centers

configure_logging()
logger = structlog.get_logger(__name__)


def _log_session_change(change: SessionChange) -> None:
    logger.debug("session changed", session_event=change.event.value, user_id=str(change.user_id))


@asynccontextmanager
async def lifespan(app: FastAPI):
    # 개발용 SQLite는 시작 시 테이블 생성, 운영 DB는 alembic으로 관리
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)
    logger.info("application started", environment=settings.ENVIRONMENT)
    yield
    logger.info("application stopped")


app = FastAPI(title="Bridge of Hope Backend", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.identity_provider = IdentityProvider()
app.state.identity_provider.on_session_change(_log_session_change)

app.add_exception_handler(AppError, app_error_handler)

app.include_router(auth.router)
app.include_router(users.router)
app.include_router(admin.router)
app.include_router(messages.router)
app.include_router(centers.router)

"""
서버 헬스 체크 엔드포인트

- 애플리케이션 프로세스가 정상 동작 중인지 확인
- 로드밸런서 / 배포 환경에서 서버 상태 확인 용도

"""
@app.get("/health")
def health():
    return {"status": "ok"}

"""
데이터베이스 연결 상태 확인 엔드포인트

- 간단한 SELECT 1 쿼리를 통해 DB 연결 여부 확인
- 서버는 살아 있으나 DB가 죽은 상황을 분리해서 감지 가능

"""
@app.get("/db-ping")
def db_ping(db: Session = Depends(get_db)):
    value = db.execute(text("SELECT 1")).scalar_one()
    return {"db": "ok", "value": value}
