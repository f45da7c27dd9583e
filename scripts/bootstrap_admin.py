"""

최초 관리자(Administrator) 계정 생성 스크립트.

- 서버 최초 세팅 시 단 한 번 실행하는 용도
- .env에 정의된 BOOTSTRAP_ADMIN_* 환경 변수를 읽어
  관리자 계정을 생성하고 바로 승인한다.
- 이미 승인된 관리자가 존재하면 생성하지 않고 종료한다.
- 같은 이메일의 계정이 이미 있으면 그 계정을 관리자로 지정한다.

사용 목적:
- 관리자 승인/역할 관리 API에 접근할 수 있는
  첫 관리자 계정을 웹 가입 없이 초기화하기 위함

사용 방법
- 가상환경 접속
- (.venv) ~\backend~$ python -m scripts.bootstrap_admin

"""

import os
from dotenv import load_dotenv
load_dotenv()

from app.core.identity import IdentityProvider, IdentitySession
from app.db.session import SessionLocal
from app.models.user import Role
from app.repositories.user_directory import UserDirectory
from app.services.approval import approved_administrators_exist, bootstrap_self_as_administrator
from app.services.registration import register_user


def main():
    db = SessionLocal()
    try:
        directory = UserDirectory(db)
        if approved_administrators_exist(directory):
            print("✅ Administrator already exists. Skip creation.")
            return

        email = os.environ["BOOTSTRAP_ADMIN_EMAIL"]
        password = os.environ["BOOTSTRAP_ADMIN_PASSWORD"]

        record = directory.find_user_by_email(email)
        if record is None:
            record = register_user(
                db,
                IdentityProvider(),
                email=email,
                password=password,
                roles=Role.ADMINISTRATOR,
                attributes={},
            )

        session = IdentitySession(user_id=record.id, email=record.email)
        bootstrap_self_as_administrator(directory, record, session, auto_approve=True)

        print(f"🚀 Administrator created: {email}")

    finally:
        db.close()


if __name__ == "__main__":
    main()
