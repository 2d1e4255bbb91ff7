from typing import Optional
from sqlalchemy.orm import Session
from scanlation_authz.database import models
from scanlation_authz.repositories.interfaces import IUserRepository
from scanlation_authz.repositories.sqlalchemy.base import flush

class SqlalchemyUserRepository(IUserRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def find_by_id(self, user_id: int) -> Optional[models.User]:
        return self.db.query(models.User).filter(models.User.id == user_id).first()

    def find_by_email(self, email: str) -> Optional[models.User]:
        return self.db.query(models.User).filter(models.User.email == email).first()

    def set_role(self, user: models.User, role: Optional[models.Role]) -> models.User:
        user.role_id = role.id if role else None
        flush(self.db)
        return user
