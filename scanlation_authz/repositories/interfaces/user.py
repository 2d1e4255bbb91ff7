from abc import ABC, abstractmethod
from typing import Optional
from scanlation_authz.database import models

class IUserRepository(ABC):
    @abstractmethod
    def find_by_id(self, user_id: int) -> Optional[models.User]:
        """고유 ID로 특정 사용자를 조회합니다."""
        pass

    @abstractmethod
    def find_by_email(self, email: str) -> Optional[models.User]:
        """이메일로 특정 사용자를 조회합니다."""
        pass

    @abstractmethod
    def set_role(self, user: models.User, role: Optional[models.Role]) -> models.User:
        """사용자의 전역 역할을 변경합니다. None이면 역할을 해제합니다."""
        pass
