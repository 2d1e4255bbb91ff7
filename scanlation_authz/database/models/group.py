import enum

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, UniqueConstraint, func
from sqlalchemy.orm import relationship
from ..database import Base


class GroupRole(str, enum.Enum):
    LEADER = "LEADER"
    MEMBER = "MEMBER"
    UPLOADER = "UPLOADER"


class ScanlationGroup(Base):
    """
    번역/제작 팀(스캔레이션 그룹)을 나타냅니다.
    그룹은 작품(Work)을 클레임할 수 있으며, 챕터는 정확히 하나의 그룹에 속합니다.
    """
    __tablename__ = "scanlation_groups"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    slug = Column(String, unique=True, nullable=False, index=True)
    description = Column(String)
    created_at = Column(DateTime, server_default=func.now())

    members = relationship("GroupMember", back_populates="group", cascade="all, delete-orphan")
    claims = relationship("WorkGroupClaim", back_populates="group", cascade="all, delete-orphan")
    invites = relationship("GroupInvite", back_populates="group", cascade="all, delete-orphan")


class GroupMember(Base):
    """
    사용자(User)가 그룹 안에서 가지는 멤버십과 역할(LEADER/MEMBER/UPLOADER)입니다.
    (user_id, group_id) 쌍은 유일합니다.
    """
    __tablename__ = "group_members"
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    group_id = Column(Integer, ForeignKey("scanlation_groups.id", ondelete="CASCADE"), primary_key=True)
    role = Column(Enum(GroupRole, name="group_role"), nullable=False, default=GroupRole.MEMBER)
    joined_at = Column(DateTime, server_default=func.now())

    user = relationship("User", back_populates="group_memberships")
    group = relationship("ScanlationGroup", back_populates="members")


class GroupInvite(Base):
    """그룹 리더가 발급한 초대장입니다. 수락하면 GroupMember가 생성되며, 한 번만 사용할 수 있습니다."""
    __tablename__ = "group_invites"
    __table_args__ = (UniqueConstraint("token", name="uq_group_invites_token"),)
    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(Integer, ForeignKey("scanlation_groups.id", ondelete="CASCADE"), nullable=False)
    email = Column(String, nullable=False)
    token = Column(String, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    expires_at = Column(DateTime, nullable=False)
    accepted_at = Column(DateTime)

    group = relationship("ScanlationGroup", back_populates="invites")
