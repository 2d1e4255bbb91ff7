from abc import ABC, abstractmethod
from typing import List, Optional
from scanlation_authz.database import models

class IGroupRepository(ABC):
    @abstractmethod
    def create(self, group_model: models.ScanlationGroup) -> models.ScanlationGroup:
        """
        새로운 그룹을 생성합니다. (커밋은 Unit of Work가 담당합니다)

        Raises:
            UniqueViolationError: 동일한 slug의 그룹이 이미 존재할 때.
        """
        pass

    @abstractmethod
    def find_by_id(self, group_id: int) -> Optional[models.ScanlationGroup]:
        """고유 ID로 특정 그룹을 조회합니다."""
        pass

    @abstractmethod
    def count_existing(self, group_ids: List[int]) -> int:
        """주어진 ID 중 실제로 존재하는 그룹의 개수를 조회합니다."""
        pass

    @abstractmethod
    def slug_exists(self, slug: str) -> bool:
        """해당 slug를 사용하는 그룹이 있는지 확인합니다."""
        pass

    @abstractmethod
    def update(self, group: models.ScanlationGroup) -> models.ScanlationGroup:
        """
        변경된 그룹 정보를 반영합니다.

        Raises:
            UniqueViolationError: 변경한 slug가 다른 그룹과 충돌할 때.
        """
        pass

    @abstractmethod
    def delete(self, group: models.ScanlationGroup) -> bool:
        """특정 그룹을 삭제합니다. 멤버십, 클레임, 초대장도 함께 삭제됩니다."""
        pass


class IGroupMemberRepository(ABC):
    @abstractmethod
    def find(self, user_id: int, group_id: int) -> Optional[models.GroupMember]:
        """특정 그룹에서 사용자의 멤버십을 조회합니다."""
        pass

    @abstractmethod
    def count_by_user(self, user_id: int) -> int:
        """사용자가 속한 그룹의 개수를 조회합니다."""
        pass

    @abstractmethod
    def list_group_ids_by_user(self, user_id: int) -> List[int]:
        """사용자가 속한 그룹 ID 목록을 가입 순서대로 조회합니다."""
        pass

    @abstractmethod
    def list_by_group(self, group_id: int) -> List[models.GroupMember]:
        """특정 그룹의 모든 멤버를 조회합니다."""
        pass

    @abstractmethod
    def count_leaders(self, group_id: int) -> int:
        """특정 그룹의 LEADER 수를 조회합니다."""
        pass

    @abstractmethod
    def add(self, member: models.GroupMember) -> models.GroupMember:
        """
        새로운 멤버십을 추가합니다.

        Raises:
            UniqueViolationError: 사용자가 이미 그룹의 멤버일 때.
        """
        pass

    @abstractmethod
    def save(self, member: models.GroupMember) -> models.GroupMember:
        """멤버십을 추가하거나, 이미 있으면 역할을 갱신합니다."""
        pass

    @abstractmethod
    def delete(self, member: models.GroupMember) -> bool:
        """멤버십을 삭제합니다."""
        pass


class IGroupInviteRepository(ABC):
    @abstractmethod
    def create(self, invite: models.GroupInvite) -> models.GroupInvite:
        """새로운 초대장을 생성합니다."""
        pass

    @abstractmethod
    def find_by_token(self, token: str) -> Optional[models.GroupInvite]:
        """토큰으로 초대장을 조회합니다."""
        pass

    @abstractmethod
    def list_by_group(self, group_id: int) -> List[models.GroupInvite]:
        """특정 그룹의 초대장 목록을 최신순으로 조회합니다."""
        pass

    @abstractmethod
    def update(self, invite: models.GroupInvite) -> models.GroupInvite:
        """변경된 초대장 정보를 반영합니다."""
        pass
