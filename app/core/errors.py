"""
errors.py

도메인 예외(Exception) 정의 및 FastAPI 예외 핸들러.

승인/권한 엔진, 사용자 디렉터리, 메시지 서비스는 HTTP를 모르는
순수 로직이므로 HTTPException 대신 아래 예외를 발생시킨다.
main.py에 등록된 핸들러가 이를 HTTPException과 같은
{"detail": ...} 형태의 응답으로 변환한다.

예외 분류:
- PermissionDenied      : 역할/승인 상태가 부족한 행위자 (403)
- SelfRevocationDenied  : 본인 관리자 권한 해제 시도 (400)
- StoreUnavailable      : 저장소(DB) I/O 실패 (503)
- NotFound              : 존재하지 않는 레코드 (404)
- ValidationError       : 잘못된 역할 식별자 / 메시지 (422)
- Conflict              : 중복 가입 등 (400)
- AuthenticationFailed  : 로그인 / 토큰 검증 실패 (401)

"""

from fastapi import Request, status
from fastapi.responses import JSONResponse


class AppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Application error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class PermissionDenied(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Permission denied"


class SelfRevocationDenied(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Cannot revoke your own administrator role"


class StoreUnavailable(AppError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "User directory unavailable"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "User not found"


class ValidationError(AppError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "Invalid value"


class Conflict(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Already exists"


class AuthenticationFailed(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Could not validate credentials"


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.__class__.__name__},
    )
