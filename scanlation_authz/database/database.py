from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base

from scanlation_authz.config import settings


def build_engine(database_url: str, echo: bool = False):
    """
    SQLAlchemy 엔진을 생성합니다.

    SQLite의 경우 pysqlite 드라이버가 트랜잭션을 직접 관리하지 않도록 하고,
    BEGIN을 명시적으로 보내도록 설정합니다. (SAVEPOINT 기반의 중첩 트랜잭션이 정상 동작하도록)
    """
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, echo=echo, pool_pre_ping=True)

    engine = create_engine(database_url, echo=echo, connect_args={"check_same_thread": False})

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


# SQLAlchemy 엔진 생성 (연결 문자열은 설정에서 읽어옵니다)
engine = build_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO)

# autocommit=False, autoflush=False로 설정하여, 명시적으로 commit을 호출해야 DB에 반영됩니다.
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# 모든 모델 클래스가 상속받을 Base 클래스
Base = declarative_base()
