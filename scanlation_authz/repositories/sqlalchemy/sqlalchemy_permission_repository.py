from typing import List
from sqlalchemy.orm import Session
from scanlation_authz.database import models
from scanlation_authz.repositories.interfaces import IPermissionRepository

class SqlalchemyPermissionRepository(IPermissionRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def list_all(self) -> List[models.Permission]:
        return self.db.query(models.Permission).order_by(models.Permission.name.asc()).all()

    def find_by_names(self, names: List[str]) -> List[models.Permission]:
        if not names:
            return []
        return self.db.query(models.Permission).filter(models.Permission.name.in_(names)).all()
