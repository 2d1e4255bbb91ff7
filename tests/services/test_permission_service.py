# tests/services/test_permission_service.py
import pytest
from unittest.mock import MagicMock

from scanlation_authz.services.permission_service import PermissionService
from scanlation_authz.services.permission_catalog import Permission, DEFAULT_ROLES, parse_permissions
from scanlation_authz.services.exceptions import *
from scanlation_authz.repositories.interfaces import IRoleRepository, IPermissionRepository
from scanlation_authz.database import models

# ===================================================================
#  Fixture 설정
# ===================================================================

@pytest.fixture
def mock_role_repo() -> MagicMock:
    """IRoleRepository에 대한 모의 객체를 생성합니다."""
    repo = MagicMock(spec=IRoleRepository)
    repo.list_permission_names_for_user.return_value = []
    return repo

@pytest.fixture
def mock_permission_repo() -> MagicMock:
    """IPermissionRepository에 대한 모의 객체를 생성합니다."""
    return MagicMock(spec=IPermissionRepository)

@pytest.fixture
def permission_service(mock_role_repo: MagicMock, mock_permission_repo: MagicMock) -> PermissionService:
    return PermissionService(mock_role_repo, mock_permission_repo)

# ===================================================================
#  권한 판정 테스트
# ===================================================================
class TestPermissionChecks:
    def test_has_permission_granted_via_role(self, permission_service: PermissionService, mock_role_repo: MagicMock):
        """역할을 통해 부여된 권한은 True를 반환합니다."""
        # === Arrange ===
        mock_role_repo.list_permission_names_for_user.return_value = ["webtoons.edit", "groups.assign"]

        # === Act & Assert ===
        assert permission_service.has_permission(1, Permission.GROUPS_ASSIGN) is True
        assert permission_service.has_permission(1, "webtoons.edit") is True
        mock_role_repo.list_permission_names_for_user.assert_called_with(1)

    def test_user_without_role_has_no_permissions(self, permission_service: PermissionService):
        """역할이 없는 사용자는 예외 없이 False를 받습니다."""
        # === Act & Assert ===
        assert permission_service.has_permission(7, Permission.WEBTOONS_VIEW) is False
        assert permission_service.get_user_permissions(7) == set()

    def test_anonymous_user_has_no_permissions(self, permission_service: PermissionService, mock_role_repo: MagicMock):
        """인증되지 않은 사용자(None)는 저장소를 조회하지 않고 빈 집합을 받습니다."""
        # === Act & Assert ===
        assert permission_service.get_user_permissions(None) == set()
        assert permission_service.has_any_permission(None, [Permission.GROUPS_ASSIGN]) is False
        mock_role_repo.list_permission_names_for_user.assert_not_called()

    def test_unknown_permission_name_is_rejected(self, permission_service: PermissionService):
        """카탈로그에 없는 권한 이름은 런타임에 False가 아니라 ValueError로 거부됩니다."""
        # === Act & Assert ===
        with pytest.raises(ValueError):
            permission_service.has_permission(1, "webtoons.fly")

    def test_unknown_names_in_store_are_ignored(self, permission_service: PermissionService, mock_role_repo: MagicMock):
        """저장소에 있는 알 수 없는 권한 이름은 권한 집합에 포함되지 않습니다."""
        # === Arrange ===
        mock_role_repo.list_permission_names_for_user.return_value = ["legacy.thing", "authors.view"]

        # === Act ===
        granted = permission_service.get_user_permissions(1)

        # === Assert ===
        assert granted == {Permission.AUTHORS_VIEW}

    def test_has_any_and_all_permissions(self, permission_service: PermissionService, mock_role_repo: MagicMock):
        """has_any_permission은 하나라도, has_all_permissions는 전부 있어야 True입니다."""
        # === Arrange ===
        mock_role_repo.list_permission_names_for_user.return_value = ["webtoons.manage"]
        wanted = [Permission.GROUPS_ASSIGN, Permission.WEBTOONS_MANAGE]

        # === Act & Assert ===
        assert permission_service.has_any_permission(1, wanted) is True
        assert permission_service.has_all_permissions(1, wanted) is False
        assert permission_service.has_any_permission(1, []) is False

    def test_require_permission_raises_forbidden(self, permission_service: PermissionService):
        """권한이 없으면 require_permission은 ForbiddenError를 발생시킵니다."""
        # === Act & Assert ===
        with pytest.raises(ForbiddenError, match="roles.create"):
            permission_service.require_permission(1, Permission.ROLES_CREATE)

    def test_has_role(self, permission_service: PermissionService, mock_role_repo: MagicMock):
        """사용자에게 할당된 역할의 이름으로 판정합니다."""
        # === Arrange ===
        mock_role_repo.find_by_user_id.return_value = models.Role(id=2, name="moderator")

        # === Act & Assert ===
        assert permission_service.has_role(1, "moderator") is True
        assert permission_service.has_role(1, "admin") is False
        assert permission_service.has_role(None, "moderator") is False

# ===================================================================
#  카탈로그 검증 테스트
# ===================================================================
class TestCatalog:
    def _rows(self, names):
        return [models.Permission(name=name, category=name.split(".")[0]) for name in names]

    def test_validate_catalog_success(self, permission_service: PermissionService, mock_permission_repo: MagicMock):
        """시드된 카탈로그가 열거형과 정확히 일치하면 통과합니다."""
        # === Arrange ===
        mock_permission_repo.list_all.return_value = self._rows(p.value for p in Permission)

        # === Act & Assert ===
        permission_service.validate_catalog()

    def test_validate_catalog_detects_missing_and_unknown(self, permission_service: PermissionService, mock_permission_repo: MagicMock):
        """누락된 권한이나 알 수 없는 권한이 있으면 PermissionCatalogError가 발생합니다."""
        # === Arrange ===
        names = [p.value for p in Permission if p != Permission.GROUPS_UPLOAD] + ["groups.teleport"]
        mock_permission_repo.list_all.return_value = self._rows(names)

        # === Act & Assert ===
        with pytest.raises(PermissionCatalogError) as exc_info:
            permission_service.validate_catalog()
        assert "groups.upload" in str(exc_info.value)
        assert "groups.teleport" in str(exc_info.value)

    def test_default_roles(self):
        """기본 역할의 권한 구성을 확인합니다."""
        # === Assert ===
        assert set(DEFAULT_ROLES["admin"]["permissions"]) == set(Permission)
        assert Permission.GROUPS_ASSIGN in DEFAULT_ROLES["moderator"]["permissions"]
        assert Permission.GROUPS_ASSIGN not in DEFAULT_ROLES["author"]["permissions"]
        assert DEFAULT_ROLES["reader"]["permissions"] == [
            Permission.WEBTOONS_VIEW, Permission.AUTHORS_VIEW, Permission.GENRES_VIEW
        ]

    def test_permission_category(self):
        assert Permission.USERS_MANAGE_ROLES.category == "users"
        assert Permission.USERS_MANAGE_ROLES.value == "users.manage_roles"

    def test_parse_permissions_rejects_unknown(self):
        assert parse_permissions(["roles.view"]) == [Permission.ROLES_VIEW]
        with pytest.raises(ValueError):
            parse_permissions(["roles.view", "roles.explode"])
