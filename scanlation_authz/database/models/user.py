from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship
from ..database import Base

class User(Base):
    """
    세션 서비스가 인증한 사용자(principal)를 나타냅니다.
    사용자는 최대 하나의 전역 역할(Role)을 가지며, 역할이 없으면 상승된 권한이 없습니다.
    """
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    name = Column(String)
    role_id = Column(Integer, ForeignKey("roles.id", ondelete="SET NULL"), nullable=True)

    role = relationship("Role", back_populates="users")
    group_memberships = relationship("GroupMember", back_populates="user", cascade="all, delete-orphan")
