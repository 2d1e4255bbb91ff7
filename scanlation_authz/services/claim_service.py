import enum
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from scanlation_authz.database import models
from scanlation_authz.repositories.exceptions import UniqueViolationError
from scanlation_authz.repositories.interfaces import IWorkRepository, IGroupRepository, IUnitOfWork
from scanlation_authz.services.activity_service import ActivityService
from scanlation_authz.services.membership_service import MembershipService
from scanlation_authz.services.permission_catalog import Permission
from scanlation_authz.services.permission_service import PermissionService
from scanlation_authz.services.exceptions import (
    ForbiddenError, InvalidInputError, WorkNotFoundError, GroupNotFoundError
)

logger = logging.getLogger(__name__)


class ClaimAction(str, enum.Enum):
    EDIT = "edit"
    DELETE = "delete"
    UPLOAD = "upload"
    CLAIM = "claim"


# 그룹 범위 검사를 통째로 우회하는 RBAC 권한 (액션별)
OVERRIDE_PERMISSIONS = {
    ClaimAction.EDIT: (Permission.GROUPS_ASSIGN, Permission.WEBTOONS_MANAGE),
    ClaimAction.DELETE: (Permission.GROUPS_ASSIGN, Permission.WEBTOONS_MANAGE),
    ClaimAction.UPLOAD: (Permission.GROUPS_UPLOAD, Permission.GROUPS_ASSIGN, Permission.WEBTOONS_MANAGE),
    ClaimAction.CLAIM: (Permission.GROUPS_ASSIGN, Permission.WEBTOONS_MANAGE),
}

NOT_MANAGING_GROUP = "not a member of any group managing this content"
NO_GROUP = "must belong to a scanlation group to manage this content"
NOT_IN_SELECTED_GROUPS = "must be a member of at least one of the selected groups"
NOT_GROUP_LEADER = "must be a leader of the group to claim content on its behalf"


@dataclass(frozen=True)
class AuthorizationDecision:
    """
    인가 판정 결과입니다. 예외가 아닌 값으로 반환됩니다.

    Attributes:
        allowed: 허용 여부.
        reason: 거부 사유. (다른 그룹의 접근 여부는 드러내지 않습니다)
        acting_group_id: 작업을 귀속시킬 사용자의 그룹.
        claim_group_id: 클레임이 없는 작품에 생성 작업 시, 소유자로 붙일 그룹.
        via_override: RBAC 우회 권한으로 허용되었는지 여부.
    """
    allowed: bool
    reason: Optional[str] = None
    acting_group_id: Optional[int] = None
    claim_group_id: Optional[int] = None
    via_override: bool = False

    @classmethod
    def allow(cls, acting_group_id=None, claim_group_id=None, via_override=False):
        return cls(True, None, acting_group_id, claim_group_id, via_override)

    @classmethod
    def deny(cls, reason: str):
        return cls(False, reason)

    def __bool__(self):
        return self.allowed


class ClaimService:
    """
    작품(Work)과 챕터에 대한 모든 변경 작업의 인가를 결정하는 단일 관문입니다.

    판정 순서 (먼저 참이 되는 것이 적용됨):
      1. 액션별 RBAC 우회 권한이 있으면 클레임과 무관하게 허용.
      2. CLAIM은 대상 그룹의 LEADER만 허용.
      3. 작품을 클레임한 그룹이 없으면, 하나 이상의 그룹에 속한 사용자를 허용.
         클레임한 그룹이 있으면, 그 중 하나의 멤버여야 허용.
    """

    def __init__(self, work_repo: IWorkRepository, group_repo: IGroupRepository,
                 membership_service: MembershipService, permission_service: PermissionService,
                 activity_service: ActivityService, uow: IUnitOfWork):
        self.work_repo = work_repo
        self.group_repo = group_repo
        self.membership_service = membership_service
        self.permission_service = permission_service
        self.activity_service = activity_service
        self.uow = uow

    def resolve_claim_authorization(self, user_id: Optional[int], work_id: int, action: ClaimAction,
                                    group_ids: Optional[Iterable[int]] = None) -> AuthorizationDecision:
        """
        사용자가 작품에 대해 주어진 액션을 수행할 수 있는지 판정합니다.

        Args:
            user_id: 인증된 사용자 ID. None이면 항상 거부됩니다.
            work_id: 대상 작품의 ID.
            action: 수행하려는 액션.
            group_ids: 작업을 귀속시키려는 그룹 목록. 주어지면 사용자는 그 중 하나의
                멤버여야 합니다. CLAIM에서는 클레임할 그룹 하나가 필요합니다.

        Returns:
            AuthorizationDecision.

        Raises:
            InvalidInputError: 우회 권한이 없는 CLAIM 액션에 대상 그룹이 하나가 아닐 때.
        """
        action = ClaimAction(action)
        candidates = list(dict.fromkeys(group_ids or []))

        if user_id is None:
            return AuthorizationDecision.deny("authentication required")

        override = self._override_decision(user_id, action, candidates)
        if override:
            return override

        if action == ClaimAction.CLAIM:
            if len(candidates) != 1:
                raise InvalidInputError("Claiming requires exactly one target group.")
            target = candidates[0]
            if self.membership_service.is_group_leader(user_id, target):
                return AuthorizationDecision.allow(acting_group_id=target)
            return self._deny(user_id, work_id, action, NOT_GROUP_LEADER)

        user_groups = self.membership_service.list_user_group_ids(user_id)
        eligible = [g for g in candidates if g in user_groups] if candidates else user_groups
        claims = self.work_repo.list_claim_group_ids(work_id)

        if not claims:
            if not user_groups:
                return self._deny(user_id, work_id, action, NO_GROUP)
            if not eligible:
                return self._deny(user_id, work_id, action, NOT_IN_SELECTED_GROUPS)
            # 클레임이 없는 작품에 대한 생성 작업은 사용자의 그룹을 사실상의 소유자로 붙입니다.
            acting = eligible[0]
            claim_group = acting if action == ClaimAction.UPLOAD else None
            return AuthorizationDecision.allow(acting_group_id=acting, claim_group_id=claim_group)

        managing = [g for g in claims if g in user_groups]
        if not managing:
            return self._deny(user_id, work_id, action, NOT_MANAGING_GROUP)
        if candidates and not eligible:
            return self._deny(user_id, work_id, action, NOT_IN_SELECTED_GROUPS)

        acting = eligible[0] if candidates else managing[0]
        return AuthorizationDecision.allow(acting_group_id=acting)

    def authorize_chapter_mutation(self, user_id: Optional[int], chapter: models.Chapter,
                                   action: ClaimAction = ClaimAction.EDIT) -> AuthorizationDecision:
        """
        단일 챕터의 수정/삭제를 판정합니다.

        우회 권한이 있으면 허용하고, 아니면 챕터를 제작한 그룹의 멤버를 허용합니다.
        둘 다 아니면 작품 단위 판정(클레임한 그룹의 멤버 여부)을 따릅니다.
        """
        action = ClaimAction(action)
        if user_id is None:
            return AuthorizationDecision.deny("authentication required")

        override = self._override_decision(user_id, action, [chapter.scanlation_group_id])
        if override:
            return override

        if self.membership_service.is_user_member_of_group(user_id, chapter.scanlation_group_id):
            return AuthorizationDecision.allow(acting_group_id=chapter.scanlation_group_id)

        return self.resolve_claim_authorization(user_id, chapter.work_id, action)

    def require(self, decision: AuthorizationDecision) -> AuthorizationDecision:
        """거부 판정을 ForbiddenError로 바꿉니다. (서비스 경계에서 사용)"""
        if not decision:
            raise ForbiddenError(f"Forbidden: {decision.reason}")
        return decision

    def claim_work(self, user_id: int, work_id: int, group_id: int) -> Dict[str, Any]:
        """
        그룹을 대신해 작품을 클레임합니다.

        같은 그룹의 중복 클레임은 오류가 아니라 '이미 클레임됨'으로 성공 처리됩니다.
        (순차/동시 요청 모두 클레임 행은 정확히 하나만 남습니다)

        Returns:
            {"work_id", "group_id", "created"} 딕셔너리. created는 새 행이 만들어졌는지 여부.

        Raises:
            WorkNotFoundError: 작품을 찾을 수 없을 때.
            GroupNotFoundError: 그룹을 찾을 수 없을 때.
            ForbiddenError: 그룹의 LEADER가 아니고 우회 권한도 없을 때.
        """
        work = self.work_repo.find_by_id(work_id)
        if not work:
            raise WorkNotFoundError(f"Work with id '{work_id}' not found.")
        group = self.group_repo.find_by_id(group_id)
        if not group:
            raise GroupNotFoundError(f"Group with id '{group_id}' not found.")

        self.require(self.resolve_claim_authorization(user_id, work_id, ClaimAction.CLAIM, [group_id]))

        created = True
        with self.uow:
            try:
                self.work_repo.create_claim(work_id, group_id)
            except UniqueViolationError:
                created = False
            else:
                self.activity_service.record(
                    user_id, "claimed", models.WorkKind(work.kind).value, work_id,
                    f"Group '{group.name}' claimed '{work.title}'"
                )

        if not created:
            logger.info("Work %s already claimed by group %s.", work_id, group_id)
        return {"work_id": work_id, "group_id": group_id, "created": created}

    def list_claims(self, work_id: int) -> List[int]:
        """작품을 클레임한 그룹 ID 목록"""
        if not self.work_repo.find_by_id(work_id):
            raise WorkNotFoundError(f"Work with id '{work_id}' not found.")
        return self.work_repo.list_claim_group_ids(work_id)

    def _override_decision(self, user_id: int, action: ClaimAction,
                           candidates: List[int]) -> Optional[AuthorizationDecision]:
        """액션별 우회 권한이 있으면 허용 판정을, 없으면 None을 반환합니다."""
        if not self.permission_service.has_any_permission(user_id, OVERRIDE_PERMISSIONS[action]):
            return None
        user_groups = self.membership_service.list_user_group_ids(user_id)
        preferred = [g for g in candidates if g in user_groups] or user_groups
        return AuthorizationDecision.allow(
            acting_group_id=preferred[0] if preferred else None, via_override=True
        )

    def _deny(self, user_id, work_id, action, reason) -> AuthorizationDecision:
        logger.info("Denied %s on work %s for user %s: %s", action.value, work_id, user_id, reason)
        return AuthorizationDecision.deny(reason)
