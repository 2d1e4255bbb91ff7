import logging

from .database import engine, SessionLocal, Base
from .models import *
from scanlation_authz.services.permission_catalog import Permission as PermissionName, DEFAULT_ROLES

logger = logging.getLogger(__name__)


def seed_catalog(db):
    """
    권한 카탈로그와 기본 시스템 역할을 시드합니다.
    이미 존재하는 행은 건너뛰므로 여러 번 실행해도 안전합니다.
    """
    existing = {p.name: p for p in db.query(Permission).all()}
    for name in PermissionName:
        if name.value not in existing:
            permission = Permission(name=name.value, category=name.category, description=name.description)
            db.add(permission)
            existing[name.value] = permission
    db.flush()

    for role_name, definition in DEFAULT_ROLES.items():
        role = db.query(Role).filter(Role.name == role_name).first()
        if role:
            continue
        role = Role(name=role_name, description=definition["description"], is_system=True)
        db.add(role)
        db.flush()
        for name in definition["permissions"]:
            db.add(RolePermission(role_id=role.id, permission_id=existing[name.value].id))
        logger.info("Seeded system role '%s' (%d permissions).", role_name, len(definition["permissions"]))


def initialize_db(bind=None, session_factory=None):
    """
    DB와 테이블을 생성하고, 권한 카탈로그와 기본 역할을 삽입합니다.
    """
    logger.info("Initializing database...")

    # 모든 테이블을 생성합니다. (이미 존재하면 생성하지 않음)
    Base.metadata.create_all(bind=bind or engine)

    db = (session_factory or SessionLocal)()
    try:
        seed_catalog(db)
        db.commit()
        logger.info("Database initialized.")
    except Exception:
        logger.exception("Database initialization failed.")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    initialize_db()
