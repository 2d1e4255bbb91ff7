from typing import List, Optional
from sqlalchemy.orm import Session
from scanlation_authz.database import models
from scanlation_authz.repositories.interfaces import (
    IGroupRepository, IGroupMemberRepository, IGroupInviteRepository
)
from scanlation_authz.repositories.sqlalchemy.base import add_in_savepoint, flush

class SqlalchemyGroupRepository(IGroupRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def create(self, group_model: models.ScanlationGroup) -> models.ScanlationGroup:
        add_in_savepoint(self.db, group_model)
        return group_model

    def find_by_id(self, group_id: int) -> Optional[models.ScanlationGroup]:
        return self.db.query(models.ScanlationGroup).filter(models.ScanlationGroup.id == group_id).first()

    def count_existing(self, group_ids: List[int]) -> int:
        if not group_ids:
            return 0
        return self.db.query(models.ScanlationGroup).filter(models.ScanlationGroup.id.in_(group_ids)).count()

    def slug_exists(self, slug: str) -> bool:
        return self.db.query(models.ScanlationGroup.id).filter(models.ScanlationGroup.slug == slug).first() is not None

    def update(self, group: models.ScanlationGroup) -> models.ScanlationGroup:
        flush(self.db)
        return group

    def delete(self, group: models.ScanlationGroup) -> bool:
        if group:
            self.db.delete(group)
            self.db.flush()
            return True
        return False


class SqlalchemyGroupMemberRepository(IGroupMemberRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def find(self, user_id: int, group_id: int) -> Optional[models.GroupMember]:
        return self.db.query(models.GroupMember).filter(
            models.GroupMember.user_id == user_id,
            models.GroupMember.group_id == group_id
        ).first()

    def count_by_user(self, user_id: int) -> int:
        return self.db.query(models.GroupMember).filter(models.GroupMember.user_id == user_id).count()

    def list_group_ids_by_user(self, user_id: int) -> List[int]:
        rows = (
            self.db.query(models.GroupMember.group_id)
            .filter(models.GroupMember.user_id == user_id)
            .order_by(models.GroupMember.joined_at.asc(), models.GroupMember.group_id.asc())
            .all()
        )
        return [row[0] for row in rows]

    def list_by_group(self, group_id: int) -> List[models.GroupMember]:
        return self.db.query(models.GroupMember).filter(models.GroupMember.group_id == group_id).order_by(models.GroupMember.joined_at.asc()).all()

    def count_leaders(self, group_id: int) -> int:
        return self.db.query(models.GroupMember).filter(
            models.GroupMember.group_id == group_id,
            models.GroupMember.role == models.GroupRole.LEADER
        ).count()

    def add(self, member: models.GroupMember) -> models.GroupMember:
        add_in_savepoint(self.db, member)
        return member

    def save(self, member: models.GroupMember) -> models.GroupMember:
        merged = self.db.merge(member) # INSERT OR UPDATE와 유사한 동작
        flush(self.db)
        return merged

    def delete(self, member: models.GroupMember) -> bool:
        if member:
            self.db.delete(member)
            self.db.flush()
            return True
        return False


class SqlalchemyGroupInviteRepository(IGroupInviteRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def create(self, invite: models.GroupInvite) -> models.GroupInvite:
        add_in_savepoint(self.db, invite)
        return invite

    def find_by_token(self, token: str) -> Optional[models.GroupInvite]:
        return self.db.query(models.GroupInvite).filter(models.GroupInvite.token == token).first()

    def list_by_group(self, group_id: int) -> List[models.GroupInvite]:
        return self.db.query(models.GroupInvite).filter(models.GroupInvite.group_id == group_id).order_by(models.GroupInvite.expires_at.desc()).all()

    def update(self, invite: models.GroupInvite) -> models.GroupInvite:
        flush(self.db)
        return invite
