"""
base.py

SQLAlchemy ORM Base 정의 파일.

모든 모델(Identity, UserRecord, AdminActionLog, MockEntity)은
이 Base를 기준으로 테이블 메타데이터가 관리되며,
Alembic 마이그레이션 또한 이 Base를 기준으로 동작한다.

관련 파일:
- app.models.*            : 모든 ORM 모델
- alembic/versions/*      : 마이그레이션

"""

from sqlalchemy.orm import declarative_base

# 모든 ORM 모델이 상속받는 Base 클래스
Base = declarative_base()
