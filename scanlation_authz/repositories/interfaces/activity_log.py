from abc import ABC, abstractmethod
from typing import List
from scanlation_authz.database import models

class IActivityLogRepository(ABC):
    """감사 기록 저장소. 추가와 조회만 제공하며, 수정/삭제 메서드는 존재하지 않습니다."""

    @abstractmethod
    def add(self, log: models.ActivityLog) -> models.ActivityLog:
        """현재 트랜잭션에 감사 기록을 추가합니다."""
        pass

    @abstractmethod
    def list_by_entity(self, entity_type: str, entity_id: int) -> List[models.ActivityLog]:
        """특정 엔티티에 대한 감사 기록을 시간순으로 조회합니다."""
        pass

    @abstractmethod
    def list_by_user(self, user_id: int) -> List[models.ActivityLog]:
        """특정 사용자가 수행한 감사 기록을 최신순으로 조회합니다."""
        pass
