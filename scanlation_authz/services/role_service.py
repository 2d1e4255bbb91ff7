import logging
from typing import Any, Dict, Iterable, List, Optional

from scanlation_authz.database import models
from scanlation_authz.repositories.exceptions import UniqueViolationError
from scanlation_authz.repositories.interfaces import (
    IRoleRepository, IPermissionRepository, IUserRepository, IUnitOfWork
)
from scanlation_authz.services.activity_service import ActivityService
from scanlation_authz.services.permission_catalog import Permission, parse_permissions
from scanlation_authz.services.permission_service import PermissionService
from scanlation_authz.services.exceptions import (
    InvalidInputError, RoleNotFoundError, RoleAlreadyExistsError, SystemRoleError,
    UserNotFoundError, PermissionCatalogError
)

logger = logging.getLogger(__name__)


class RoleService:
    """전역 역할(Role)과 역할별 권한, 사용자 역할 할당을 관리합니다."""

    def __init__(self, role_repo: IRoleRepository, permission_repo: IPermissionRepository,
                 user_repo: IUserRepository, permission_service: PermissionService,
                 activity_service: ActivityService, uow: IUnitOfWork):
        self.role_repo = role_repo
        self.permission_repo = permission_repo
        self.user_repo = user_repo
        self.permission_service = permission_service
        self.activity_service = activity_service
        self.uow = uow

    def list_roles(self, user_id: int) -> List[Dict[str, Any]]:
        self.permission_service.require_permission(user_id, Permission.ROLES_VIEW)
        return [self._to_dict(role) for role in self.role_repo.list_all()]

    def create_role(self, user_id: int, name: str, description: Optional[str] = None,
                    permissions: Optional[Iterable[str]] = None) -> Dict[str, Any]:
        """
        새로운 (시스템이 아닌) 역할을 생성합니다.

        Raises:
            ForbiddenError: roles.create 권한이 없을 때.
            InvalidInputError: 이름이 비었거나 알 수 없는 권한 이름이 있을 때.
            RoleAlreadyExistsError: 같은 이름의 역할이 이미 존재할 때.
        """
        self.permission_service.require_permission(user_id, Permission.ROLES_CREATE)
        if not name or not name.strip():
            raise InvalidInputError("Role name is required.")
        granted = self._parse(permissions or [])

        role = models.Role(name=name.strip(), description=description, is_system=False)
        try:
            with self.uow:
                self.role_repo.create(role)
                self.role_repo.replace_permissions(role, self._load_permissions(granted))
                self.activity_service.record(user_id, "created", "role", role.id, f"Role: '{role.name}'")
        except UniqueViolationError as e:
            raise RoleAlreadyExistsError(f"Role with name '{role.name}' already exists.") from e

        return self._to_dict(role)

    def update_role(self, user_id: int, role_id: int, name: Optional[str] = None,
                    description: Optional[str] = None) -> Dict[str, Any]:
        """
        역할의 이름이나 설명을 수정합니다. 시스템 역할은 이름을 바꿀 수 없습니다.

        Raises:
            ForbiddenError: roles.edit 권한이 없을 때.
            RoleNotFoundError: 역할을 찾을 수 없을 때.
            SystemRoleError: 시스템 역할의 이름을 바꾸려고 할 때.
            RoleAlreadyExistsError: 바꾼 이름이 다른 역할과 충돌할 때.
        """
        self.permission_service.require_permission(user_id, Permission.ROLES_EDIT)
        role = self._get(role_id)
        if name and name.strip() != role.name and role.is_system:
            raise SystemRoleError(f"System role '{role.name}' cannot be renamed.")

        try:
            with self.uow:
                if name:
                    role.name = name.strip()
                if description is not None:
                    role.description = description
                self.role_repo.update(role)
                self.activity_service.record(user_id, "updated", "role", role.id, f"Role: '{role.name}'")
        except UniqueViolationError as e:
            raise RoleAlreadyExistsError(f"Role with name '{role.name}' already exists.") from e

        return self._to_dict(role)

    def delete_role(self, user_id: int, role_id: int) -> bool:
        """
        역할을 삭제합니다. 이 역할을 가진 사용자는 역할이 없는 상태가 됩니다.

        Raises:
            ForbiddenError: roles.delete 권한이 없을 때.
            RoleNotFoundError: 역할을 찾을 수 없을 때.
            SystemRoleError: 시스템 역할을 삭제하려고 할 때.
        """
        self.permission_service.require_permission(user_id, Permission.ROLES_DELETE)
        role = self._get(role_id)
        if role.is_system:
            raise SystemRoleError(f"System role '{role.name}' cannot be deleted.")

        with self.uow:
            self.role_repo.delete(role)
            self.activity_service.record(user_id, "deleted", "role", role_id, f"Role: '{role.name}'")
        return True

    def get_role_permissions(self, user_id: int, role_id: int) -> List[str]:
        self.permission_service.require_permission(user_id, Permission.ROLES_VIEW)
        self._get(role_id)
        return self.role_repo.list_permission_names(role_id)

    def set_role_permissions(self, user_id: int, role_id: int, permissions: Iterable[str]) -> List[str]:
        """
        역할의 권한 목록을 통째로 교체합니다.

        Raises:
            ForbiddenError: permissions.manage 권한이 없을 때.
            RoleNotFoundError: 역할을 찾을 수 없을 때.
            InvalidInputError: 알 수 없는 권한 이름이 있을 때.
        """
        self.permission_service.require_permission(user_id, Permission.PERMISSIONS_MANAGE)
        role = self._get(role_id)
        granted = self._parse(permissions)

        with self.uow:
            self.role_repo.replace_permissions(role, self._load_permissions(granted))
            self.activity_service.record(
                user_id, "permissions_set", "role", role.id, ", ".join(sorted(p.value for p in granted))
            )
        return sorted(p.value for p in granted)

    def assign_user_role(self, user_id: int, target_user_id: int, role_id: Optional[int]) -> Dict[str, Any]:
        """
        사용자에게 전역 역할을 할당합니다. role_id가 None이면 역할을 해제합니다.

        Raises:
            ForbiddenError: users.manage_roles 권한이 없을 때.
            UserNotFoundError: 대상 사용자를 찾을 수 없을 때.
            RoleNotFoundError: 역할을 찾을 수 없을 때.
        """
        self.permission_service.require_permission(user_id, Permission.USERS_MANAGE_ROLES)
        target = self.user_repo.find_by_id(target_user_id)
        if not target:
            raise UserNotFoundError(f"User with id '{target_user_id}' not found.")
        role = self._get(role_id) if role_id is not None else None

        with self.uow:
            self.user_repo.set_role(target, role)
            self.activity_service.record(
                user_id, "role_assigned", "user", target_user_id, f"Role: '{role.name}'" if role else "Role cleared"
            )
        return {"user_id": target_user_id, "role": role.name if role else None}

    def _get(self, role_id: int) -> models.Role:
        role = self.role_repo.find_by_id(role_id)
        if not role:
            raise RoleNotFoundError(f"Role with id '{role_id}' not found.")
        return role

    def _parse(self, names: Iterable[str]) -> List[Permission]:
        try:
            return list(dict.fromkeys(parse_permissions(names)))
        except ValueError as e:
            raise InvalidInputError(f"Unknown permission: {e}") from e

    def _load_permissions(self, granted: List[Permission]) -> List[models.Permission]:
        rows = self.permission_repo.find_by_names([p.value for p in granted])
        if len(rows) != len(granted):
            # 열거형에는 있지만 DB에 시드되지 않은 권한
            logger.error("Permission catalog is not fully seeded.")
            raise PermissionCatalogError("Permission catalog is not fully seeded.")
        return rows

    def _to_dict(self, role: models.Role) -> Dict[str, Any]:
        return {"id": role.id, "name": role.name, "description": role.description, "is_system": role.is_system}
