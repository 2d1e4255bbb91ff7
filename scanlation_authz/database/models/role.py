from sqlalchemy import Column, Integer, String, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from ..database import Base

class Role(Base):
    """
    이름이 붙은 권한(Permission)의 묶음입니다. (예: 'admin', 'moderator')
    시스템 역할(is_system)은 이름을 바꾸거나 삭제할 수 없습니다.
    """
    __tablename__ = "roles"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    description = Column(String)
    is_system = Column(Boolean, nullable=False, default=False)

    users = relationship("User", back_populates="role")
    role_permissions = relationship("RolePermission", back_populates="role", cascade="all, delete-orphan")


class Permission(Base):
    """
    점(.)으로 구분된 카테고리를 가진 원자적 권한입니다. (예: 'webtoons.edit')
    카탈로그는 Permission 열거형에서 시드되며 변경되지 않습니다.
    """
    __tablename__ = "permissions"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    category = Column(String, nullable=False, index=True)
    description = Column(String)

    role_permissions = relationship("RolePermission", back_populates="permission", cascade="all, delete-orphan")


class RolePermission(Base):
    """역할(Role)과 권한(Permission)을 연결하는 연관 테이블입니다. (role_id, permission_id) 쌍은 유일합니다."""
    __tablename__ = "role_permissions"
    role_id = Column(Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True)
    permission_id = Column(Integer, ForeignKey("permissions.id", ondelete="CASCADE"), primary_key=True)

    role = relationship("Role", back_populates="role_permissions")
    permission = relationship("Permission", back_populates="role_permissions")
