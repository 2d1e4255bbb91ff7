from typing import List, Optional
from sqlalchemy.orm import Session
from scanlation_authz.database import models
from scanlation_authz.repositories.interfaces import IRoleRepository
from scanlation_authz.repositories.sqlalchemy.base import add_in_savepoint, flush

class SqlalchemyRoleRepository(IRoleRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def find_by_id(self, role_id: int) -> Optional[models.Role]:
        return self.db.query(models.Role).filter(models.Role.id == role_id).first()

    def find_by_name(self, name: str) -> Optional[models.Role]:
        return self.db.query(models.Role).filter(models.Role.name == name).first()

    def find_by_user_id(self, user_id: int) -> Optional[models.Role]:
        return self.db.query(models.Role).join(models.User, models.User.role_id == models.Role.id).filter(models.User.id == user_id).first()

    def list_all(self) -> List[models.Role]:
        return self.db.query(models.Role).order_by(models.Role.name.asc()).all()

    def create(self, role_model: models.Role) -> models.Role:
        add_in_savepoint(self.db, role_model)
        return role_model

    def update(self, role: models.Role) -> models.Role:
        flush(self.db)
        return role

    def delete(self, role: models.Role) -> bool:
        if role:
            self.db.delete(role)
            self.db.flush()
            return True
        return False

    def list_permission_names_for_user(self, user_id: int) -> List[str]:
        rows = (
            self.db.query(models.Permission.name)
            .join(models.RolePermission, models.RolePermission.permission_id == models.Permission.id)
            .join(models.User, models.User.role_id == models.RolePermission.role_id)
            .filter(models.User.id == user_id)
            .all()
        )
        return [row[0] for row in rows]

    def list_permission_names(self, role_id: int) -> List[str]:
        rows = (
            self.db.query(models.Permission.name)
            .join(models.RolePermission, models.RolePermission.permission_id == models.Permission.id)
            .filter(models.RolePermission.role_id == role_id)
            .order_by(models.Permission.name.asc())
            .all()
        )
        return [row[0] for row in rows]

    def replace_permissions(self, role: models.Role, permissions: List[models.Permission]):
        self.db.query(models.RolePermission).filter(models.RolePermission.role_id == role.id).delete()
        for permission in permissions:
            self.db.add(models.RolePermission(role_id=role.id, permission_id=permission.id))
        flush(self.db)
