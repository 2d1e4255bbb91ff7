from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, func
from ..database import Base

class ActivityLog(Base):
    """
    모든 변경 작업의 감사 기록입니다.
    추가만 가능하며(append-only), 생성된 뒤에는 수정되거나 삭제되지 않습니다.
    """
    __tablename__ = "activity_logs"
    id = Column(Integer, primary_key=True, index=True)
    performed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    action = Column(String, nullable=False)
    entity_type = Column(String, nullable=False, index=True)
    entity_id = Column(Integer, nullable=False, index=True)
    details = Column(String)
    created_at = Column(DateTime, server_default=func.now())
