from abc import ABC, abstractmethod
from typing import List, Optional
from scanlation_authz.database import models

class IWorkRepository(ABC):
    @abstractmethod
    def create(self, work_model: models.Work) -> models.Work:
        """
        새로운 작품을 생성합니다.

        Raises:
            UniqueViolationError: 동일한 slug의 작품(웹툰/노벨 무관)이 이미 존재할 때.
        """
        pass

    @abstractmethod
    def find_by_id(self, work_id: int) -> Optional[models.Work]:
        """고유 ID로 특정 작품을 조회합니다."""
        pass

    @abstractmethod
    def slug_exists(self, slug: str) -> bool:
        """해당 slug를 사용하는 작품이 있는지 확인합니다."""
        pass

    @abstractmethod
    def update(self, work: models.Work) -> models.Work:
        """변경된 작품 정보를 반영합니다."""
        pass

    @abstractmethod
    def delete(self, work: models.Work) -> bool:
        """특정 작품을 삭제합니다. 클레임과 챕터도 함께 삭제됩니다."""
        pass

    @abstractmethod
    def list_claim_group_ids(self, work_id: int) -> List[int]:
        """작품을 클레임한 그룹 ID 목록을 조회합니다."""
        pass

    @abstractmethod
    def create_claim(self, work_id: int, group_id: int) -> models.WorkGroupClaim:
        """
        작품에 대한 그룹의 클레임을 생성합니다.
        충돌 시 바깥 트랜잭션은 그대로 유지됩니다. (SAVEPOINT)

        Raises:
            UniqueViolationError: 해당 그룹이 이미 작품을 클레임했을 때.
        """
        pass
