from abc import ABC, abstractmethod
from typing import Optional
from scanlation_authz.database import models

class IAuthorRepository(ABC):
    @abstractmethod
    def create(self, author_model: models.Author) -> models.Author:
        """
        새로운 작가 프로필을 생성합니다.

        Raises:
            UniqueViolationError: slug 또는 user_id가 이미 사용 중일 때.
        """
        pass

    @abstractmethod
    def find_by_user_id(self, user_id: int) -> Optional[models.Author]:
        """사용자에 연결된 셀프서비스 작가 프로필을 조회합니다."""
        pass

    @abstractmethod
    def slug_exists(self, slug: str) -> bool:
        """해당 slug를 사용하는 작가가 있는지 확인합니다."""
        pass
