import logging
from typing import Iterable, Optional, Set

from scanlation_authz.repositories.interfaces import IRoleRepository, IPermissionRepository
from scanlation_authz.services.exceptions import ForbiddenError, PermissionCatalogError
from scanlation_authz.services.permission_catalog import Permission

logger = logging.getLogger(__name__)


class PermissionService:
    """
    전역 RBAC 권한을 판정합니다.

    여기서의 판정은 역할 전역적이며 특정 콘텐츠를 알지 못합니다.
    관리자/모더레이터가 그룹 단위 검사를 우회할 수 있도록 하는 용도이며,
    그룹 범위 작업의 유일한 관문으로 사용해서는 안 됩니다.
    """

    def __init__(self, role_repo: IRoleRepository, permission_repo: Optional[IPermissionRepository] = None):
        self.role_repo = role_repo
        self.permission_repo = permission_repo

    def get_user_permissions(self, user_id: Optional[int]) -> Set[Permission]:
        """
        사용자의 역할을 통해 부여된 권한 집합을 조회합니다.

        역할이 없거나 사용자가 없으면 빈 집합을 반환합니다.
        카탈로그에 없는 이름은 무시합니다. (부팅 시 validate_catalog가 검출)
        """
        if user_id is None:
            return set()
        known = {p.value for p in Permission}
        return {Permission(name) for name in self.role_repo.list_permission_names_for_user(user_id) if name in known}

    def has_permission(self, user_id: Optional[int], permission: Permission) -> bool:
        """
        사용자가 특정 권한을 가지고 있는지 확인합니다.

        Raises:
            ValueError: permission이 카탈로그에 없는 이름일 때.
        """
        return Permission(permission) in self.get_user_permissions(user_id)

    def has_any_permission(self, user_id: Optional[int], permissions: Iterable[Permission]) -> bool:
        """사용자가 주어진 권한 중 하나라도 가지고 있는지 확인합니다."""
        required = [Permission(p) for p in permissions]
        granted = self.get_user_permissions(user_id)
        return any(p in granted for p in required)

    def has_all_permissions(self, user_id: Optional[int], permissions: Iterable[Permission]) -> bool:
        """사용자가 주어진 권한을 모두 가지고 있는지 확인합니다."""
        required = [Permission(p) for p in permissions]
        granted = self.get_user_permissions(user_id)
        return all(p in granted for p in required)

    def require_permission(self, user_id: Optional[int], permission: Permission):
        """
        권한이 없으면 ForbiddenError를 발생시킵니다.

        Raises:
            ForbiddenError: 사용자에게 해당 권한이 없을 때.
        """
        permission = Permission(permission)
        if not self.has_permission(user_id, permission):
            logger.info("User %s lacks permission '%s'.", user_id, permission.value)
            raise ForbiddenError(f"Forbidden: missing permission '{permission.value}'")

    def has_role(self, user_id: Optional[int], role_name: str) -> bool:
        if user_id is None:
            return False
        role = self.role_repo.find_by_user_id(user_id)
        return role is not None and role.name == role_name

    def validate_catalog(self):
        """
        DB에 시드된 권한 카탈로그가 Permission 열거형과 정확히 일치하는지 검증합니다.
        애플리케이션 부팅 시 한 번 호출합니다.

        Raises:
            PermissionCatalogError: 누락되었거나 알 수 없는 권한 이름이 있을 때.
        """
        if self.permission_repo is None:
            raise PermissionCatalogError("Permission repository is required to validate the catalog.")

        seeded = {p.name for p in self.permission_repo.list_all()}
        expected = {p.value for p in Permission}

        missing = expected - seeded
        unknown = seeded - expected
        if missing or unknown:
            raise PermissionCatalogError(
                f"Permission catalog mismatch. missing={sorted(missing)}, unknown={sorted(unknown)}"
            )
        logger.info("Permission catalog validated (%d permissions).", len(seeded))
