from typing import List, Optional

from scanlation_authz.database import models
from scanlation_authz.repositories.interfaces import IGroupMemberRepository


class MembershipService:
    """그룹 멤버십과 그룹 내 역할(LEADER/MEMBER/UPLOADER)에 대한 질의를 제공합니다."""

    def __init__(self, member_repo: IGroupMemberRepository):
        self.member_repo = member_repo

    def is_user_member_of_group(self, user_id: int, group_id: int) -> bool:
        return self.member_repo.find(user_id, group_id) is not None

    def is_user_in_any_group(self, user_id: int) -> bool:
        """사용자가 하나 이상의 그룹에 속해 있는지 확인합니다. (작가/크리에이터 셀프서비스 기능 판단용)"""
        return self.member_repo.count_by_user(user_id) > 0

    def get_member_role(self, user_id: int, group_id: int) -> Optional[models.GroupRole]:
        """
        그룹 내에서 사용자의 역할을 조회합니다.

        Returns:
            GroupRole 값. 멤버가 아니면 None.
        """
        member = self.member_repo.find(user_id, group_id)
        if not member:
            return None
        return models.GroupRole(member.role)

    def is_group_leader(self, user_id: int, group_id: int) -> bool:
        return self.get_member_role(user_id, group_id) == models.GroupRole.LEADER

    def list_user_group_ids(self, user_id: int) -> List[int]:
        """사용자가 속한 그룹 ID 목록 (가입 순서)"""
        return self.member_repo.list_group_ids_by_user(user_id)
