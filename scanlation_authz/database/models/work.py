import enum

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, UniqueConstraint, func
from sqlalchemy.orm import relationship
from ..database import Base


class WorkKind(str, enum.Enum):
    WEBTOON = "webtoon"
    NOVEL = "novel"


class Work(Base):
    """
    연재 작품(웹툰 또는 노벨)을 나타냅니다.
    두 종류가 하나의 테이블을 공유하므로 slug는 종류와 관계없이 전역적으로 유일합니다.
    """
    __tablename__ = "works"
    id = Column(Integer, primary_key=True, index=True)
    kind = Column(Enum(WorkKind, name="work_kind"), nullable=False)
    title = Column(String, nullable=False)
    slug = Column(String, unique=True, nullable=False, index=True)
    description = Column(String)
    status = Column(String, nullable=False, default="ongoing")
    created_at = Column(DateTime, server_default=func.now())

    claims = relationship("WorkGroupClaim", back_populates="work", cascade="all, delete-orphan")
    chapters = relationship("Chapter", back_populates="work", cascade="all, delete-orphan")


class WorkGroupClaim(Base):
    """
    작품(Work)을 클레임한 그룹과의 다대다 관계입니다.
    클레임은 배타적이지 않고 누적되며, (work_id, group_id) 쌍은 유일합니다.
    """
    __tablename__ = "work_group_claims"
    __table_args__ = (UniqueConstraint("work_id", "group_id", name="uq_work_group_claims_work_group"),)
    id = Column(Integer, primary_key=True, index=True)
    work_id = Column(Integer, ForeignKey("works.id", ondelete="CASCADE"), nullable=False, index=True)
    group_id = Column(Integer, ForeignKey("scanlation_groups.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    work = relationship("Work", back_populates="claims")
    group = relationship("ScanlationGroup", back_populates="claims")
