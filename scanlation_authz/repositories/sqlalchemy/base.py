# scanlation_authz/repositories/sqlalchemy/base.py
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from scanlation_authz.repositories.exceptions import UniqueViolationError

# PostgreSQL의 unique_violation SQLSTATE
UNIQUE_VIOLATION_CODE = "23505"


def is_unique_violation(error: IntegrityError) -> bool:
    orig = error.orig
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code:
        return code == UNIQUE_VIOLATION_CODE
    return "unique" in str(orig).lower()


def translate_integrity_error(error: IntegrityError) -> Exception:
    """유일성 위반이면 UniqueViolationError로 바꾸고, 그 외에는 원래 예외를 그대로 돌려줍니다."""
    if is_unique_violation(error):
        return UniqueViolationError(f"Unique constraint violated: {error.orig}", constraint=str(error.orig))
    return error


def add_in_savepoint(db: Session, *instances):
    """
    SAVEPOINT 안에서 객체를 추가하고 flush 합니다.
    유일성 위반이 발생하면 SAVEPOINT만 롤백되므로, 바깥 트랜잭션은 계속 사용할 수 있습니다.
    """
    try:
        with db.begin_nested():
            db.add_all(instances)
    except IntegrityError as e:
        raise translate_integrity_error(e) from e


def flush(db: Session):
    try:
        db.flush()
    except IntegrityError as e:
        raise translate_integrity_error(e) from e
