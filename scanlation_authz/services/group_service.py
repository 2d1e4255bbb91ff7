import logging
import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from scanlation_authz.config import settings
from scanlation_authz.database import models
from scanlation_authz.repositories.exceptions import UniqueViolationError
from scanlation_authz.repositories.interfaces import (
    IGroupRepository, IGroupMemberRepository, IGroupInviteRepository, IUserRepository, IUnitOfWork
)
from scanlation_authz.services.activity_service import ActivityService
from scanlation_authz.services.membership_service import MembershipService
from scanlation_authz.services.permission_catalog import Permission
from scanlation_authz.services.permission_service import PermissionService
from scanlation_authz.services.slug_service import SlugService, SlugScope
from scanlation_authz.services.exceptions import (
    ForbiddenError, GroupNotFoundError, GroupAlreadyExistsError, UserNotFoundError,
    MemberNotFoundError, InviteNotFoundError, InviteExpiredError, InvalidInputError, LastLeaderError
)

logger = logging.getLogger(__name__)

# LEADER가 아닌 사용자가 그룹 관리를 하려면 필요한 RBAC 권한
GROUP_ADMIN_OVERRIDE = Permission.ROLES_VIEW
GROUP_DELETE_OVERRIDE = Permission.ROLES_DELETE


class GroupService:
    """스캔레이션 그룹의 생성, 프로필 수정, 멤버 관리, 초대를 담당합니다."""

    def __init__(self, group_repo: IGroupRepository, member_repo: IGroupMemberRepository,
                 invite_repo: IGroupInviteRepository, user_repo: IUserRepository,
                 membership_service: MembershipService, permission_service: PermissionService,
                 slug_service: SlugService, activity_service: ActivityService, uow: IUnitOfWork):
        self.group_repo = group_repo
        self.member_repo = member_repo
        self.invite_repo = invite_repo
        self.user_repo = user_repo
        self.membership_service = membership_service
        self.permission_service = permission_service
        self.slug_service = slug_service
        self.activity_service = activity_service
        self.uow = uow

    def create_group(self, user_id: int, name: str, slug: Optional[str] = None,
                     description: Optional[str] = None) -> Dict[str, Any]:
        """
        새로운 그룹을 생성하고, 생성자를 LEADER로 등록합니다.

        slug가 주어지면 정규화만 하고 그대로 사용하며, 없으면 이름에서 유일한 slug를 할당합니다.

        Raises:
            InvalidInputError: 이름이 비어 있을 때.
            GroupAlreadyExistsError: 같은 slug의 그룹이 이미 존재할 때.
        """
        if not name or not name.strip():
            raise InvalidInputError("Group name is required.")

        if slug and slug.strip():
            group_slug = self.slug_service.slugify(slug, SlugScope.GROUP)
        else:
            group_slug = self.slug_service.allocate_unique_slug(name, SlugScope.GROUP)

        group = models.ScanlationGroup(name=name.strip(), slug=group_slug, description=description)
        try:
            with self.uow:
                self.group_repo.create(group)
                self.member_repo.add(models.GroupMember(user_id=user_id, group_id=group.id, role=models.GroupRole.LEADER))
                self.activity_service.record(user_id, "created", "group", group.id, f"Group: '{group.name}'")
        except UniqueViolationError as e:
            logger.warning("Group slug '%s' conflicted at insert.", group_slug)
            raise GroupAlreadyExistsError(f"Group with slug '{group_slug}' already exists.") from e

        return self._to_dict(group)

    def get_group(self, group_id: int) -> Dict[str, Any]:
        group = self.group_repo.find_by_id(group_id)
        if not group:
            raise GroupNotFoundError(f"Group with id '{group_id}' not found.")
        return self._to_dict(group)

    def update_group(self, user_id: int, group_id: int, name: Optional[str] = None,
                     description: Optional[str] = None, slug: Optional[str] = None) -> Dict[str, Any]:
        """
        그룹 프로필을 수정합니다. LEADER 또는 관리자만 가능합니다.

        Raises:
            ForbiddenError: LEADER가 아니고 관리자 권한도 없을 때.
            GroupNotFoundError: 그룹을 찾을 수 없을 때.
            GroupAlreadyExistsError: 바꾼 slug가 다른 그룹과 충돌할 때.
        """
        group = self._load_administered_group(user_id, group_id, GROUP_ADMIN_OVERRIDE)

        try:
            with self.uow:
                if name:
                    group.name = name.strip()
                if description is not None:
                    group.description = description
                if slug:
                    group.slug = self.slug_service.slugify(slug, SlugScope.GROUP)
                self.group_repo.update(group)
                self.activity_service.record(user_id, "updated", "group", group.id, f"Updated group: '{group.name}'")
        except UniqueViolationError as e:
            raise GroupAlreadyExistsError(f"Group with slug '{group.slug}' already exists.") from e

        return self._to_dict(group)

    def delete_group(self, user_id: int, group_id: int) -> bool:
        """
        그룹을 삭제합니다. 멤버십, 클레임, 초대장도 함께 삭제됩니다.

        Raises:
            ForbiddenError: LEADER가 아니고 삭제 권한도 없을 때.
            GroupNotFoundError: 그룹을 찾을 수 없을 때.
        """
        group = self._load_administered_group(user_id, group_id, GROUP_DELETE_OVERRIDE)
        with self.uow:
            self.group_repo.delete(group)
            self.activity_service.record(user_id, "deleted", "group", group_id, f"Deleted group: '{group.name}'")
        return True

    def list_members(self, user_id: int, group_id: int) -> List[Dict[str, Any]]:
        self._load_administered_group(user_id, group_id, GROUP_ADMIN_OVERRIDE)
        return [
            {"user_id": m.user_id, "group_id": m.group_id, "role": models.GroupRole(m.role).value}
            for m in self.member_repo.list_by_group(group_id)
        ]

    def set_member(self, user_id: int, group_id: int, member_user_id: int,
                   role: models.GroupRole = models.GroupRole.MEMBER) -> Dict[str, Any]:
        """
        멤버를 추가하거나, 이미 멤버라면 역할을 변경합니다.

        Raises:
            ForbiddenError: LEADER가 아니고 관리자 권한도 없을 때.
            UserNotFoundError: 추가할 사용자를 찾을 수 없을 때.
            InvalidInputError: 역할 값이 올바르지 않을 때.
            LastLeaderError: 마지막 LEADER를 강등하려고 할 때.
        """
        self._load_administered_group(user_id, group_id, GROUP_ADMIN_OVERRIDE)
        try:
            role = models.GroupRole(role)
        except ValueError as e:
            raise InvalidInputError(f"Invalid group role '{role}'.") from e

        if not self.user_repo.find_by_id(member_user_id):
            raise UserNotFoundError(f"User with id '{member_user_id}' not found.")

        try:
            member = self._save_member(user_id, group_id, member_user_id, role)
        except UniqueViolationError:
            # 조회와 저장 사이에 같은 멤버가 추가되었다면, 저장된 행의 역할을 갱신합니다.
            logger.info("User %s was added to group %s concurrently; updating role.", member_user_id, group_id)
            member = self._save_member(user_id, group_id, member_user_id, role)
        return {"user_id": member.user_id, "group_id": member.group_id, "role": role.value}

    def _save_member(self, user_id: int, group_id: int, member_user_id: int,
                     role: models.GroupRole) -> models.GroupMember:
        existing = self.member_repo.find(member_user_id, group_id)
        if existing and existing.role == models.GroupRole.LEADER and role != models.GroupRole.LEADER:
            self._ensure_other_leader(group_id)

        with self.uow:
            member = self.member_repo.save(models.GroupMember(user_id=member_user_id, group_id=group_id, role=role))
            self.activity_service.record(
                user_id, "member_set", "group", group_id, f"User {member_user_id} set as {role.value}"
            )
        return member

    def remove_member(self, user_id: int, group_id: int, member_user_id: int) -> bool:
        """
        멤버를 그룹에서 제거합니다.

        Raises:
            ForbiddenError: LEADER가 아니고 관리자 권한도 없을 때.
            MemberNotFoundError: 대상 사용자가 그룹의 멤버가 아닐 때.
            LastLeaderError: 마지막 LEADER를 제거하려고 할 때.
        """
        self._load_administered_group(user_id, group_id, GROUP_ADMIN_OVERRIDE)
        member = self.member_repo.find(member_user_id, group_id)
        if not member:
            raise MemberNotFoundError(f"User '{member_user_id}' is not a member of group '{group_id}'.")
        if member.role == models.GroupRole.LEADER:
            self._ensure_other_leader(group_id)

        with self.uow:
            self.member_repo.delete(member)
            self.activity_service.record(user_id, "member_removed", "group", group_id, f"User {member_user_id} removed")
        return True

    def create_invite(self, user_id: int, group_id: int, email: str) -> Dict[str, Any]:
        """
        그룹 초대장을 발급합니다. 이메일 발송은 외부 서비스의 책임입니다.

        Raises:
            ForbiddenError: LEADER가 아니고 관리자 권한도 없을 때.
            InvalidInputError: 이메일이 비어 있을 때.
        """
        self._load_administered_group(user_id, group_id, GROUP_ADMIN_OVERRIDE)
        if not email or "@" not in email:
            raise InvalidInputError("A valid email is required.")

        invite = models.GroupInvite(
            group_id=group_id,
            email=email.strip().lower(),
            token=str(uuid.uuid4()),
            created_by=user_id,
            expires_at=datetime.now() + timedelta(days=settings.INVITE_TTL_DAYS),
        )
        with self.uow:
            self.invite_repo.create(invite)
            self.activity_service.record(user_id, "invited", "group", group_id, f"Invited {invite.email}")
        return self._invite_to_dict(invite)

    def list_invites(self, user_id: int, group_id: int) -> List[Dict[str, Any]]:
        self._load_administered_group(user_id, group_id, GROUP_ADMIN_OVERRIDE)
        return [self._invite_to_dict(i) for i in self.invite_repo.list_by_group(group_id)]

    def accept_invite(self, user_id: int, token: str) -> Dict[str, Any]:
        """
        초대장을 수락하여 그룹의 MEMBER가 됩니다. 초대장은 한 번만 사용할 수 있습니다.

        Raises:
            UserNotFoundError: 사용자를 찾을 수 없을 때.
            InviteNotFoundError: 토큰에 해당하는 초대장이 없거나, 다른 이메일로 발급되었을 때.
            InviteExpiredError: 초대장이 만료되었거나 이미 사용되었을 때.
        """
        user = self.user_repo.find_by_id(user_id)
        if not user:
            raise UserNotFoundError(f"User with id '{user_id}' not found.")

        invite = self.invite_repo.find_by_token(token)
        if not invite or invite.email != (user.email or "").lower():
            raise InviteNotFoundError("Invite not found.")
        if invite.accepted_at is not None or invite.expires_at < datetime.now():
            raise InviteExpiredError("Invite has expired or was already used.")

        role = models.GroupRole.MEMBER
        with self.uow:
            try:
                self.member_repo.add(models.GroupMember(user_id=user_id, group_id=invite.group_id, role=role))
            except UniqueViolationError:
                logger.info("User %s already belongs to group %s; consuming invite.", user_id, invite.group_id)
                existing = self.member_repo.find(user_id, invite.group_id)
                if existing:
                    role = models.GroupRole(existing.role)
            invite.accepted_at = datetime.now()
            self.invite_repo.update(invite)
            self.activity_service.record(user_id, "joined", "group", invite.group_id, f"Accepted invite for {invite.email}")

        return {"group_id": invite.group_id, "user_id": user_id, "role": role.value}

    def _load_administered_group(self, user_id: int, group_id: int, override: Permission) -> models.ScanlationGroup:
        # 인가를 먼저 확인하여, 권한 없는 사용자에게 그룹 존재 여부를 드러내지 않습니다.
        if not (self.membership_service.is_group_leader(user_id, group_id)
                or self.permission_service.has_permission(user_id, override)):
            logger.info("Denied group administration on group %s for user %s.", group_id, user_id)
            raise ForbiddenError("Forbidden: must be a leader of the group")
        group = self.group_repo.find_by_id(group_id)
        if not group:
            raise GroupNotFoundError(f"Group with id '{group_id}' not found.")
        return group

    def _ensure_other_leader(self, group_id: int):
        if self.member_repo.count_leaders(group_id) <= 1:
            raise LastLeaderError("A group must keep at least one leader.")

    def _to_dict(self, group: models.ScanlationGroup) -> Dict[str, Any]:
        return {"id": group.id, "name": group.name, "slug": group.slug, "description": group.description}

    def _invite_to_dict(self, invite: models.GroupInvite) -> Dict[str, Any]:
        return {
            "id": invite.id,
            "group_id": invite.group_id,
            "email": invite.email,
            "token": invite.token,
            "expires_at": invite.expires_at.isoformat(),
            "accepted": invite.accepted_at is not None,
        }
