from abc import ABC, abstractmethod
from typing import List, Optional
from scanlation_authz.database import models

class IRoleRepository(ABC):
    @abstractmethod
    def find_by_id(self, role_id: int) -> Optional[models.Role]:
        """고유 ID로 특정 역할을 조회합니다."""
        pass

    @abstractmethod
    def find_by_name(self, name: str) -> Optional[models.Role]:
        """이름으로 특정 역할을 조회합니다."""
        pass

    @abstractmethod
    def find_by_user_id(self, user_id: int) -> Optional[models.Role]:
        """사용자에게 할당된 역할을 조회합니다. 역할이 없으면 None."""
        pass

    @abstractmethod
    def list_all(self) -> List[models.Role]:
        """모든 역할의 목록을 조회합니다."""
        pass

    @abstractmethod
    def create(self, role_model: models.Role) -> models.Role:
        """
        새로운 역할을 생성합니다.

        Raises:
            UniqueViolationError: 동일한 이름의 역할이 이미 존재할 때.
        """
        pass

    @abstractmethod
    def update(self, role: models.Role) -> models.Role:
        """변경된 역할 정보를 반영합니다."""
        pass

    @abstractmethod
    def delete(self, role: models.Role) -> bool:
        """특정 역할을 삭제합니다."""
        pass

    @abstractmethod
    def list_permission_names_for_user(self, user_id: int) -> List[str]:
        """
        사용자의 역할을 통해 부여된 모든 권한 이름을 조회합니다.

        Returns:
            권한 이름의 리스트. 사용자가 없거나 역할이 없으면 빈 리스트.
        """
        pass

    @abstractmethod
    def list_permission_names(self, role_id: int) -> List[str]:
        """특정 역할에 부여된 권한 이름 목록을 조회합니다."""
        pass

    @abstractmethod
    def replace_permissions(self, role: models.Role, permissions: List[models.Permission]):
        """역할의 권한 목록을 주어진 권한들로 교체합니다."""
        pass
