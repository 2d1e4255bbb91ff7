from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from scanlation_authz.repositories.interfaces import IUnitOfWork
from scanlation_authz.repositories.sqlalchemy.base import translate_integrity_error


class SqlalchemyUnitOfWork(IUnitOfWork):
    """세션의 현재 트랜잭션을 블록 단위로 커밋하거나 롤백하는 Context Manager"""
    def __init__(self, db_session: Session):
        self.db = db_session

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            self.db.rollback()
            return False
        try:
            self.db.commit()
        except IntegrityError as e:
            # 커밋 시점의 제약 조건 위반도 도메인 충돌로 변환
            self.db.rollback()
            raise translate_integrity_error(e) from e
        return False
