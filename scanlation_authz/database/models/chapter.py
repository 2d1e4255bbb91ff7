from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, UniqueConstraint, func
from sqlalchemy.orm import relationship
from ..database import Base

class Chapter(Base):
    """
    한 그룹이 제작한 작품의 번호가 붙은 회차입니다.
    같은 회차 번호라도 그룹이 다르면 공존할 수 있으며(공동 릴리스),
    (work_id, number, scanlation_group_id) 조합은 스토리지 레벨에서 유일합니다.
    """
    __tablename__ = "chapters"
    __table_args__ = (
        UniqueConstraint("work_id", "number", "scanlation_group_id", name="uq_chapters_work_number_group"),
    )
    id = Column(Integer, primary_key=True, index=True)
    work_id = Column(Integer, ForeignKey("works.id", ondelete="CASCADE"), nullable=False, index=True)
    number = Column(Integer, nullable=False)
    title = Column(String, nullable=False)
    content = Column(JSON, nullable=False, default=list)
    scanlation_group_id = Column(Integer, ForeignKey("scanlation_groups.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    work = relationship("Work", back_populates="chapters")
    scanlation_group = relationship("ScanlationGroup")
