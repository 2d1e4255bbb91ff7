from abc import ABC, abstractmethod
from typing import List
from scanlation_authz.database import models

class IPermissionRepository(ABC):
    @abstractmethod
    def list_all(self) -> List[models.Permission]:
        """시드된 모든 권한 카탈로그를 조회합니다."""
        pass

    @abstractmethod
    def find_by_names(self, names: List[str]) -> List[models.Permission]:
        """이름 목록에 해당하는 권한들을 조회합니다."""
        pass
