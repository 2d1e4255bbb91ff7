from typing import Optional
from sqlalchemy.orm import Session
from scanlation_authz.database import models
from scanlation_authz.repositories.interfaces import IAuthorRepository
from scanlation_authz.repositories.sqlalchemy.base import add_in_savepoint

class SqlalchemyAuthorRepository(IAuthorRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def create(self, author_model: models.Author) -> models.Author:
        add_in_savepoint(self.db, author_model)
        return author_model

    def find_by_user_id(self, user_id: int) -> Optional[models.Author]:
        return self.db.query(models.Author).filter(models.Author.user_id == user_id).first()

    def slug_exists(self, slug: str) -> bool:
        return self.db.query(models.Author.id).filter(models.Author.slug == slug).first() is not None
