from abc import ABC, abstractmethod
from typing import List, Optional
from scanlation_authz.database import models

class IChapterRepository(ABC):
    @abstractmethod
    def create_many(self, chapters: List[models.Chapter]) -> List[models.Chapter]:
        """
        여러 챕터를 한 번에 생성합니다. 하나라도 실패하면 아무것도 생성되지 않습니다.

        Raises:
            UniqueViolationError: (work_id, number, scanlation_group_id)가 이미 존재할 때.
        """
        pass

    @abstractmethod
    def find_by_id(self, chapter_id: int) -> Optional[models.Chapter]:
        """고유 ID로 특정 챕터를 조회합니다."""
        pass

    @abstractmethod
    def find_existing(self, work_id: int, number: int, group_ids: List[int]) -> List[models.Chapter]:
        """주어진 그룹들 중 해당 작품/번호의 챕터를 이미 가진 것을 조회합니다."""
        pass

    @abstractmethod
    def list_by_work(self, work_id: int) -> List[models.Chapter]:
        """작품의 챕터 목록을 번호 순으로 조회합니다."""
        pass

    @abstractmethod
    def update(self, chapter: models.Chapter) -> models.Chapter:
        """
        변경된 챕터 정보를 반영합니다.

        Raises:
            UniqueViolationError: 변경한 번호가 같은 그룹의 다른 챕터와 충돌할 때.
        """
        pass

    @abstractmethod
    def delete(self, chapter: models.Chapter) -> bool:
        """특정 챕터를 삭제합니다."""
        pass
