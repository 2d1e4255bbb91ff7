# tests/services/test_group_service.py
import pytest
from datetime import datetime, timedelta
from unittest.mock import MagicMock, ANY

from scanlation_authz.services.group_service import GroupService, GROUP_ADMIN_OVERRIDE, GROUP_DELETE_OVERRIDE
from scanlation_authz.services.slug_service import SlugService, SlugScope
from scanlation_authz.services.exceptions import *
from scanlation_authz.repositories.exceptions import UniqueViolationError
from scanlation_authz.repositories.interfaces import (
    IGroupRepository, IGroupMemberRepository, IGroupInviteRepository, IUserRepository
)
from scanlation_authz.database import models

# ===================================================================
#  Fixture 설정
# ===================================================================

@pytest.fixture
def mock_group_repo() -> MagicMock:
    repo = MagicMock(spec=IGroupRepository)
    repo.slug_exists.return_value = False
    repo.find_by_id.return_value = models.ScanlationGroup(id=3, name="Moonlight", slug="moonlight")

    def create(group):
        group.id = 3
        return group

    repo.create.side_effect = create
    return repo

@pytest.fixture
def mock_member_repo() -> MagicMock:
    repo = MagicMock(spec=IGroupMemberRepository)
    repo.save.side_effect = lambda member: member
    return repo

@pytest.fixture
def mock_invite_repo() -> MagicMock:
    return MagicMock(spec=IGroupInviteRepository)

@pytest.fixture
def mock_user_repo() -> MagicMock:
    repo = MagicMock(spec=IUserRepository)
    repo.find_by_id.return_value = models.User(id=8, email="new@scan.example", name="Newbie")
    return repo

@pytest.fixture
def group_service(mock_group_repo, mock_member_repo, mock_invite_repo, mock_user_repo, mock_membership_service,
                  mock_permission_service, mock_activity_service, mock_uow) -> GroupService:
    slug_service = SlugService({SlugScope.GROUP: mock_group_repo}, max_attempts=4)
    return GroupService(mock_group_repo, mock_member_repo, mock_invite_repo, mock_user_repo,
                        mock_membership_service, mock_permission_service, slug_service,
                        mock_activity_service, mock_uow)

@pytest.fixture
def as_leader(mock_membership_service) -> MagicMock:
    """요청한 사용자가 그룹의 LEADER인 상황"""
    mock_membership_service.is_group_leader.return_value = True
    return mock_membership_service

# ===================================================================
#  그룹 생성/수정/삭제 테스트
# ===================================================================
class TestGroupLifecycle:
    def test_create_group_makes_creator_leader(self, group_service, mock_group_repo, mock_member_repo,
                                               mock_activity_service):
        """그룹 생성자는 LEADER로 등록됩니다."""
        # === Act ===
        group = group_service.create_group(1, "Moonlight Scans")

        # === Assert ===
        assert group["slug"] == "moonlight-scans"
        member = mock_member_repo.add.call_args.args[0]
        assert (member.user_id, member.group_id, member.role) == (1, 3, models.GroupRole.LEADER)
        mock_activity_service.record.assert_called_once_with(1, "created", "group", 3, ANY)

    def test_create_group_with_explicit_slug(self, group_service, mock_group_repo):
        # === Act ===
        group = group_service.create_group(1, "Moonlight", slug="Moon Light")

        # === Assert ===
        assert group["slug"] == "moon-light"
        mock_group_repo.slug_exists.assert_not_called()

    def test_create_group_slug_conflict(self, group_service, mock_group_repo, mock_member_repo):
        """삽입 시점의 slug 충돌은 거부됩니다."""
        # === Arrange ===
        mock_group_repo.create.side_effect = UniqueViolationError("scanlation_groups.slug")

        # === Act & Assert ===
        with pytest.raises(GroupAlreadyExistsError):
            group_service.create_group(1, "Moonlight")
        mock_member_repo.add.assert_not_called()

    def test_create_group_requires_name(self, group_service):
        with pytest.raises(InvalidInputError):
            group_service.create_group(1, "   ")

    def test_update_group_as_leader(self, group_service, as_leader, mock_group_repo):
        # === Act ===
        group = group_service.update_group(1, 3, name="Moonlight v2", description="new")

        # === Assert ===
        assert group["name"] == "Moonlight v2"
        assert group["description"] == "new"
        mock_group_repo.update.assert_called_once()

    def test_update_group_as_admin(self, group_service, mock_permission_service, mock_group_repo):
        """LEADER가 아니어도 관리자 권한이 있으면 수정할 수 있습니다."""
        # === Arrange ===
        mock_permission_service.has_permission.side_effect = lambda user_id, p: p == GROUP_ADMIN_OVERRIDE

        # === Act ===
        group_service.update_group(9, 3, description="moderated")

        # === Assert ===
        mock_group_repo.update.assert_called_once()

    def test_update_group_forbidden_before_lookup(self, group_service, mock_group_repo):
        """권한 없는 사용자에게는 그룹 존재 여부를 드러내지 않습니다."""
        # === Act & Assert ===
        with pytest.raises(ForbiddenError):
            group_service.update_group(2, 3, name="hijack")
        mock_group_repo.find_by_id.assert_not_called()

    def test_delete_group_requires_delete_override(self, group_service, mock_permission_service, mock_group_repo):
        # === Arrange ===
        mock_permission_service.has_permission.side_effect = lambda user_id, p: p == GROUP_DELETE_OVERRIDE

        # === Act ===
        assert group_service.delete_group(9, 3) is True

        # === Assert ===
        mock_permission_service.has_permission.assert_called_once_with(9, GROUP_DELETE_OVERRIDE)
        mock_group_repo.delete.assert_called_once()

    def test_get_unknown_group(self, group_service, mock_group_repo):
        # === Arrange ===
        mock_group_repo.find_by_id.return_value = None

        # === Act & Assert ===
        with pytest.raises(GroupNotFoundError):
            group_service.get_group(404)

# ===================================================================
#  멤버 관리 테스트
# ===================================================================
class TestMembers:
    def test_set_member_adds_uploader(self, group_service, as_leader, mock_member_repo):
        # === Arrange ===
        mock_member_repo.find.return_value = None

        # === Act ===
        member = group_service.set_member(1, 3, 8, models.GroupRole.UPLOADER)

        # === Assert ===
        assert member == {"user_id": 8, "group_id": 3, "role": "UPLOADER"}
        mock_member_repo.save.assert_called_once()

    def test_set_member_recovers_from_concurrent_insert(self, group_service, as_leader, mock_member_repo,
                                                        mock_activity_service):
        """조회 후 다른 요청이 같은 멤버를 먼저 추가해도, 충돌 대신 역할을 갱신합니다."""
        # === Arrange ===
        mock_member_repo.find.side_effect = [
            None, models.GroupMember(user_id=8, group_id=3, role=models.GroupRole.MEMBER)
        ]
        mock_member_repo.save.side_effect = [
            UniqueViolationError("group_members pkey"),
            models.GroupMember(user_id=8, group_id=3, role=models.GroupRole.UPLOADER),
        ]

        # === Act ===
        member = group_service.set_member(1, 3, 8, models.GroupRole.UPLOADER)

        # === Assert ===
        assert member == {"user_id": 8, "group_id": 3, "role": "UPLOADER"}
        assert mock_member_repo.save.call_count == 2
        mock_activity_service.record.assert_called_once()

    def test_set_member_accepts_role_string(self, group_service, as_leader, mock_member_repo):
        mock_member_repo.find.return_value = None
        assert group_service.set_member(1, 3, 8, "MEMBER")["role"] == "MEMBER"

    def test_set_member_invalid_role(self, group_service, as_leader):
        with pytest.raises(InvalidInputError):
            group_service.set_member(1, 3, 8, "OWNER")

    def test_set_member_unknown_user(self, group_service, as_leader, mock_user_repo):
        # === Arrange ===
        mock_user_repo.find_by_id.return_value = None

        # === Act & Assert ===
        with pytest.raises(UserNotFoundError):
            group_service.set_member(1, 3, 404)

    def test_cannot_demote_last_leader(self, group_service, as_leader, mock_member_repo):
        """마지막 LEADER를 강등할 수 없습니다."""
        # === Arrange ===
        mock_member_repo.find.return_value = models.GroupMember(user_id=1, group_id=3, role=models.GroupRole.LEADER)
        mock_member_repo.count_leaders.return_value = 1

        # === Act & Assert ===
        with pytest.raises(LastLeaderError):
            group_service.set_member(1, 3, 1, models.GroupRole.MEMBER)
        mock_member_repo.save.assert_not_called()

    def test_remove_member(self, group_service, as_leader, mock_member_repo):
        # === Arrange ===
        member = models.GroupMember(user_id=8, group_id=3, role=models.GroupRole.MEMBER)
        mock_member_repo.find.return_value = member

        # === Act ===
        assert group_service.remove_member(1, 3, 8) is True

        # === Assert ===
        mock_member_repo.delete.assert_called_once_with(member)

    def test_remove_last_leader_refused(self, group_service, as_leader, mock_member_repo):
        # === Arrange ===
        mock_member_repo.find.return_value = models.GroupMember(user_id=1, group_id=3, role=models.GroupRole.LEADER)
        mock_member_repo.count_leaders.return_value = 1

        # === Act & Assert ===
        with pytest.raises(LastLeaderError):
            group_service.remove_member(1, 3, 1)
        mock_member_repo.delete.assert_not_called()

    def test_remove_non_member(self, group_service, as_leader, mock_member_repo):
        mock_member_repo.find.return_value = None
        with pytest.raises(MemberNotFoundError):
            group_service.remove_member(1, 3, 8)

    def test_member_cannot_manage_members(self, group_service, mock_member_repo):
        """LEADER가 아닌 멤버는 멤버를 관리할 수 없습니다."""
        with pytest.raises(ForbiddenError):
            group_service.set_member(2, 3, 8)
        with pytest.raises(ForbiddenError):
            group_service.list_members(2, 3)
        mock_member_repo.save.assert_not_called()

# ===================================================================
#  초대장 테스트
# ===================================================================
class TestInvites:
    def _invite(self, **overrides):
        values = dict(
            id=1, group_id=3, email="new@scan.example", token="tok", created_by=1,
            expires_at=datetime.now() + timedelta(days=1), accepted_at=None,
        )
        values.update(overrides)
        return models.GroupInvite(**values)

    def test_create_invite(self, group_service, as_leader, mock_invite_repo):
        # === Act ===
        invite = group_service.create_invite(1, 3, "New@Scan.Example")

        # === Assert ===
        assert invite["email"] == "new@scan.example"
        assert invite["token"]
        assert invite["accepted"] is False
        created = mock_invite_repo.create.call_args.args[0]
        assert created.expires_at > datetime.now() + timedelta(days=6)

    def test_create_invite_invalid_email(self, group_service, as_leader):
        with pytest.raises(InvalidInputError):
            group_service.create_invite(1, 3, "not-an-email")

    def test_accept_invite(self, group_service, mock_invite_repo, mock_member_repo):
        """초대장을 수락하면 MEMBER가 되고, 초대장은 사용 처리됩니다."""
        # === Arrange ===
        invite = self._invite()
        mock_invite_repo.find_by_token.return_value = invite

        # === Act ===
        result = group_service.accept_invite(8, "tok")

        # === Assert ===
        assert result == {"group_id": 3, "user_id": 8, "role": "MEMBER"}
        member = mock_member_repo.add.call_args.args[0]
        assert member.role == models.GroupRole.MEMBER
        assert invite.accepted_at is not None
        mock_invite_repo.update.assert_called_once_with(invite)

    def test_accept_invite_when_already_member(self, group_service, mock_invite_repo, mock_member_repo):
        # === Arrange ===
        invite = self._invite()
        mock_invite_repo.find_by_token.return_value = invite
        mock_member_repo.add.side_effect = UniqueViolationError("group_members pkey")
        mock_member_repo.find.return_value = models.GroupMember(user_id=8, group_id=3, role=models.GroupRole.MEMBER)

        # === Act ===
        result = group_service.accept_invite(8, "tok")

        # === Assert ===
        assert result["role"] == "MEMBER"
        assert invite.accepted_at is not None

    def test_accept_invite_keeps_existing_role(self, group_service, mock_invite_repo, mock_member_repo):
        """이미 LEADER인 사용자가 초대장을 수락하면 저장된 역할이 그대로 보고됩니다."""
        # === Arrange ===
        mock_invite_repo.find_by_token.return_value = self._invite()
        mock_member_repo.add.side_effect = UniqueViolationError("group_members pkey")
        mock_member_repo.find.return_value = models.GroupMember(user_id=8, group_id=3, role=models.GroupRole.LEADER)

        # === Act ===
        result = group_service.accept_invite(8, "tok")

        # === Assert ===
        assert result == {"group_id": 3, "user_id": 8, "role": "LEADER"}
        mock_member_repo.find.assert_called_once_with(8, 3)

    def test_accept_used_invite(self, group_service, mock_invite_repo, mock_member_repo):
        """초대장은 한 번만 사용할 수 있습니다."""
        # === Arrange ===
        mock_invite_repo.find_by_token.return_value = self._invite(accepted_at=datetime.now())

        # === Act & Assert ===
        with pytest.raises(InviteExpiredError):
            group_service.accept_invite(8, "tok")
        mock_member_repo.add.assert_not_called()

    def test_accept_expired_invite(self, group_service, mock_invite_repo):
        mock_invite_repo.find_by_token.return_value = self._invite(expires_at=datetime.now() - timedelta(seconds=1))
        with pytest.raises(InviteExpiredError):
            group_service.accept_invite(8, "tok")

    def test_accept_invite_for_other_email(self, group_service, mock_invite_repo):
        mock_invite_repo.find_by_token.return_value = self._invite(email="someone@else.example")
        with pytest.raises(InviteNotFoundError):
            group_service.accept_invite(8, "tok")
