from typing import List, Optional
from sqlalchemy.orm import Session
from scanlation_authz.database import models
from scanlation_authz.repositories.interfaces import IWorkRepository
from scanlation_authz.repositories.sqlalchemy.base import add_in_savepoint, flush

class SqlalchemyWorkRepository(IWorkRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def create(self, work_model: models.Work) -> models.Work:
        add_in_savepoint(self.db, work_model)
        return work_model

    def find_by_id(self, work_id: int) -> Optional[models.Work]:
        return self.db.query(models.Work).filter(models.Work.id == work_id).first()

    def slug_exists(self, slug: str) -> bool:
        return self.db.query(models.Work.id).filter(models.Work.slug == slug).first() is not None

    def update(self, work: models.Work) -> models.Work:
        flush(self.db)
        return work

    def delete(self, work: models.Work) -> bool:
        if work:
            self.db.delete(work)
            self.db.flush()
            return True
        return False

    def list_claim_group_ids(self, work_id: int) -> List[int]:
        rows = (
            self.db.query(models.WorkGroupClaim.group_id)
            .filter(models.WorkGroupClaim.work_id == work_id)
            .order_by(models.WorkGroupClaim.id.asc())
            .all()
        )
        return [row[0] for row in rows]

    def create_claim(self, work_id: int, group_id: int) -> models.WorkGroupClaim:
        claim = models.WorkGroupClaim(work_id=work_id, group_id=group_id)
        add_in_savepoint(self.db, claim)
        return claim
