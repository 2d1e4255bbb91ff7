from typing import List
from sqlalchemy.orm import Session
from scanlation_authz.database import models
from scanlation_authz.repositories.interfaces import IActivityLogRepository

class SqlalchemyActivityLogRepository(IActivityLogRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def add(self, log: models.ActivityLog) -> models.ActivityLog:
        self.db.add(log)
        self.db.flush()
        return log

    def list_by_entity(self, entity_type: str, entity_id: int) -> List[models.ActivityLog]:
        return self.db.query(models.ActivityLog).filter(
            models.ActivityLog.entity_type == entity_type,
            models.ActivityLog.entity_id == entity_id
        ).order_by(models.ActivityLog.id.asc()).all()

    def list_by_user(self, user_id: int) -> List[models.ActivityLog]:
        return self.db.query(models.ActivityLog).filter(models.ActivityLog.performed_by == user_id).order_by(models.ActivityLog.id.desc()).all()
