# tests/conftest.py
import pytest
from unittest.mock import MagicMock

from scanlation_authz.repositories.interfaces import IUnitOfWork
from scanlation_authz.services.activity_service import ActivityService
from scanlation_authz.services.membership_service import MembershipService
from scanlation_authz.services.permission_service import PermissionService

# ===================================================================
#  서비스 테스트 공용 Fixture
# ===================================================================

@pytest.fixture
def mock_uow() -> MagicMock:
    """IUnitOfWork에 대한 모의 객체. 블록 안의 예외를 삼키지 않습니다."""
    uow = MagicMock(spec=IUnitOfWork)
    uow.__enter__.return_value = uow
    uow.__exit__.return_value = False
    return uow

@pytest.fixture
def mock_permission_service() -> MagicMock:
    """기본적으로 아무 권한도 없는 사용자를 시뮬레이션합니다."""
    service = MagicMock(spec=PermissionService)
    service.has_permission.return_value = False
    service.has_any_permission.return_value = False
    return service

@pytest.fixture
def mock_membership_service() -> MagicMock:
    """기본적으로 어떤 그룹에도 속하지 않은 사용자를 시뮬레이션합니다."""
    service = MagicMock(spec=MembershipService)
    service.list_user_group_ids.return_value = []
    service.is_user_member_of_group.return_value = False
    service.is_user_in_any_group.return_value = False
    service.is_group_leader.return_value = False
    return service

@pytest.fixture
def mock_activity_service() -> MagicMock:
    return MagicMock(spec=ActivityService)
