from typing import List, Optional
from sqlalchemy.orm import Session
from scanlation_authz.database import models
from scanlation_authz.repositories.interfaces import IChapterRepository
from scanlation_authz.repositories.sqlalchemy.base import add_in_savepoint, flush

class SqlalchemyChapterRepository(IChapterRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def create_many(self, chapters: List[models.Chapter]) -> List[models.Chapter]:
        add_in_savepoint(self.db, *chapters)
        return chapters

    def find_by_id(self, chapter_id: int) -> Optional[models.Chapter]:
        return self.db.query(models.Chapter).filter(models.Chapter.id == chapter_id).first()

    def find_existing(self, work_id: int, number: int, group_ids: List[int]) -> List[models.Chapter]:
        return self.db.query(models.Chapter).filter(
            models.Chapter.work_id == work_id,
            models.Chapter.number == number,
            models.Chapter.scanlation_group_id.in_(group_ids)
        ).all()

    def list_by_work(self, work_id: int) -> List[models.Chapter]:
        return self.db.query(models.Chapter).filter(models.Chapter.work_id == work_id).order_by(
            models.Chapter.number.asc(), models.Chapter.scanlation_group_id.asc()
        ).all()

    def update(self, chapter: models.Chapter) -> models.Chapter:
        flush(self.db)
        return chapter

    def delete(self, chapter: models.Chapter) -> bool:
        if chapter:
            self.db.delete(chapter)
            self.db.flush()
            return True
        return False
