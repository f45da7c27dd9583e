"""
logging.py

structlog 기반 로깅 설정.

- production 환경: JSON 로그 (수집기 연동용)
- 그 외 환경: 사람이 읽기 쉬운 콘솔 로그
- 표준 logging(uvicorn, sqlalchemy 등) 로그도 같은 포맷으로 출력

관련 파일:
- app.core.config        : ENVIRONMENT / LOG_LEVEL
- app.main               : 앱 시작 시 configure_logging() 호출

"""

import logging
import sys
from typing import Any

import structlog

from app.core.config import settings


def configure_logging() -> None:
    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.ENVIRONMENT == "production":
        renderer = structlog.processors.JSONRenderer()
        processors = shared_processors + [structlog.processors.format_exc_info]
    else:
        renderer = structlog.dev.ConsoleRenderer()
        processors = list(shared_processors)

    structlog.configure(
        processors=processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    # 테스트 등에서 여러 번 호출돼도 핸들러가 중복되지 않도록 교체
    root_logger.handlers = [handler]
    root_logger.setLevel(settings.LOG_LEVEL.upper())
