import logging
from typing import Any, Dict, Optional

from scanlation_authz.database import models
from scanlation_authz.repositories.exceptions import UniqueViolationError
from scanlation_authz.repositories.interfaces import IWorkRepository, IGroupRepository, IUnitOfWork
from scanlation_authz.services.activity_service import ActivityService
from scanlation_authz.services.claim_service import ClaimService, ClaimAction, NO_GROUP, NOT_IN_SELECTED_GROUPS
from scanlation_authz.services.membership_service import MembershipService
from scanlation_authz.services.permission_catalog import Permission
from scanlation_authz.services.permission_service import PermissionService
from scanlation_authz.services.slug_service import SlugService, SlugScope
from scanlation_authz.services.exceptions import (
    ForbiddenError, InvalidInputError, WorkNotFoundError, WorkAlreadyExistsError, GroupNotFoundError
)

logger = logging.getLogger(__name__)

WORK_STATUSES = ("ongoing", "completed", "hiatus", "cancelled")


class WorkService:
    """
    작품(웹툰/노벨)의 생성, 수정, 삭제를 관리합니다.
    생성 시 작품은 항상 그룹에 귀속되며, 수정과 삭제는 ClaimService의 판정을 따릅니다.
    """

    def __init__(self, work_repo: IWorkRepository, group_repo: IGroupRepository, claim_service: ClaimService,
                 membership_service: MembershipService, permission_service: PermissionService,
                 slug_service: SlugService, activity_service: ActivityService, uow: IUnitOfWork):
        self.work_repo = work_repo
        self.group_repo = group_repo
        self.claim_service = claim_service
        self.membership_service = membership_service
        self.permission_service = permission_service
        self.slug_service = slug_service
        self.activity_service = activity_service
        self.uow = uow

    def create_work(self, user_id: int, kind: models.WorkKind, title: str, group_id: Optional[int] = None,
                    slug: Optional[str] = None, description: Optional[str] = None,
                    status: str = "ongoing") -> Dict[str, Any]:
        """
        새로운 작품을 생성하고, 소유 그룹의 클레임을 같은 트랜잭션에서 만듭니다.

        group_id가 없으면 사용자가 가장 먼저 가입한 그룹이 소유 그룹이 됩니다.
        그룹 검사 우회 권한(groups.assign)이 있으면 그룹 없이도 생성할 수 있으며, 이때는 클레임이 만들어지지 않습니다.

        Args:
            user_id: 요청한 사용자의 ID.
            kind: 작품 종류 (webtoon 또는 novel).
            title: 작품 제목.
            group_id: 작품을 소유할 그룹의 ID.
            slug: 원하는 slug. 생략하면 제목에서 유일한 slug를 할당합니다.
            description: 작품 설명.
            status: 연재 상태.

        Returns:
            생성된 작품 정보와 클레임한 그룹 ID가 담긴 딕셔너리.

        Raises:
            InvalidInputError: 제목, 종류, 상태가 올바르지 않을 때.
            ForbiddenError: webtoons.create 권한이 없거나, 그룹에 속하지 않았을 때.
            GroupNotFoundError: 지정한 그룹을 찾을 수 없을 때.
            WorkAlreadyExistsError: 같은 slug의 작품이 이미 존재할 때.
        """
        if not title or not title.strip():
            raise InvalidInputError("Title is required.")
        try:
            kind = models.WorkKind(kind)
        except ValueError as e:
            raise InvalidInputError(f"Invalid work kind '{kind}'.") from e
        if status not in WORK_STATUSES:
            raise InvalidInputError(f"Invalid status '{status}'.")

        self.permission_service.require_permission(user_id, Permission.WEBTOONS_CREATE)
        owner_group_id = self._resolve_owner_group(user_id, group_id)
        if owner_group_id is not None and not self.group_repo.find_by_id(owner_group_id):
            raise GroupNotFoundError(f"Group with id '{owner_group_id}' not found.")

        if slug and slug.strip():
            work_slug = self.slug_service.slugify(slug, SlugScope.WORK)
        else:
            work_slug = self.slug_service.allocate_unique_slug(title, SlugScope.WORK)

        work = models.Work(
            kind=kind, title=title.strip(), slug=work_slug, description=description, status=status
        )
        try:
            with self.uow:
                self.work_repo.create(work)
                if owner_group_id is not None:
                    self.work_repo.create_claim(work.id, owner_group_id)
                self.activity_service.record(user_id, "created", kind.value, work.id, f"Created {kind.value}: '{work.title}'")
        except UniqueViolationError as e:
            logger.warning("Work slug '%s' conflicted at insert.", work_slug)
            raise WorkAlreadyExistsError(f"Work with slug '{work_slug}' already exists.") from e

        result = self._to_dict(work)
        result["group_ids"] = [owner_group_id] if owner_group_id is not None else []
        return result

    def get_work(self, work_id: int) -> Dict[str, Any]:
        work = self.work_repo.find_by_id(work_id)
        if not work:
            raise WorkNotFoundError(f"Work with id '{work_id}' not found.")
        result = self._to_dict(work)
        result["group_ids"] = self.work_repo.list_claim_group_ids(work_id)
        return result

    def update_work(self, user_id: int, work_id: int, title: Optional[str] = None,
                    description: Optional[str] = None, status: Optional[str] = None) -> Dict[str, Any]:
        """
        작품 정보를 수정합니다. slug는 바뀌지 않습니다.

        Raises:
            WorkNotFoundError: 작품을 찾을 수 없을 때.
            ForbiddenError: 작품을 관리하는 그룹의 멤버가 아니고 우회 권한도 없을 때.
            InvalidInputError: 상태 값이 올바르지 않을 때.
        """
        work = self.work_repo.find_by_id(work_id)
        if not work:
            raise WorkNotFoundError(f"Work with id '{work_id}' not found.")
        self.claim_service.require(self.claim_service.resolve_claim_authorization(user_id, work_id, ClaimAction.EDIT))

        if status is not None and status not in WORK_STATUSES:
            raise InvalidInputError(f"Invalid status '{status}'.")

        with self.uow:
            if title:
                work.title = title.strip()
            if description is not None:
                work.description = description
            if status is not None:
                work.status = status
            self.work_repo.update(work)
            self.activity_service.record(
                user_id, "updated", models.WorkKind(work.kind).value, work.id, f"Updated: '{work.title}'"
            )
        return self._to_dict(work)

    def delete_work(self, user_id: int, work_id: int) -> bool:
        """
        작품과 그 챕터, 클레임을 삭제합니다.

        Raises:
            WorkNotFoundError: 작품을 찾을 수 없을 때.
            ForbiddenError: 작품을 관리하는 그룹의 멤버가 아니고 우회 권한도 없을 때.
        """
        work = self.work_repo.find_by_id(work_id)
        if not work:
            raise WorkNotFoundError(f"Work with id '{work_id}' not found.")
        self.claim_service.require(self.claim_service.resolve_claim_authorization(user_id, work_id, ClaimAction.DELETE))

        kind = models.WorkKind(work.kind).value
        with self.uow:
            self.work_repo.delete(work)
            self.activity_service.record(user_id, "deleted", kind, work_id, f"Deleted: '{work.title}'")
        return True

    def _resolve_owner_group(self, user_id: int, group_id: Optional[int]) -> Optional[int]:
        # groups.assign 보유자는 임의의 그룹을 지정하거나 그룹 없이 생성할 수 있습니다.
        if self.permission_service.has_permission(user_id, Permission.GROUPS_ASSIGN):
            return group_id

        if group_id is not None:
            if not self.membership_service.is_user_member_of_group(user_id, group_id):
                logger.info("User %s tried to create a work for group %s without membership.", user_id, group_id)
                raise ForbiddenError(f"Forbidden: {NOT_IN_SELECTED_GROUPS}")
            return group_id

        user_groups = self.membership_service.list_user_group_ids(user_id)
        if not user_groups:
            logger.info("User %s tried to create a work without a group.", user_id)
            raise ForbiddenError(f"Forbidden: {NO_GROUP}")
        return user_groups[0]

    def _to_dict(self, work: models.Work) -> Dict[str, Any]:
        return {
            "id": work.id,
            "kind": models.WorkKind(work.kind).value,
            "title": work.title,
            "slug": work.slug,
            "description": work.description,
            "status": work.status,
        }
