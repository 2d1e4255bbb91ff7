import logging
from typing import Any, Dict, Optional

from scanlation_authz.database import models
from scanlation_authz.repositories.exceptions import UniqueViolationError
from scanlation_authz.repositories.interfaces import IAuthorRepository, IUserRepository, IUnitOfWork
from scanlation_authz.services.activity_service import ActivityService
from scanlation_authz.services.membership_service import MembershipService
from scanlation_authz.services.permission_catalog import Permission
from scanlation_authz.services.permission_service import PermissionService
from scanlation_authz.services.slug_service import SlugService, SlugScope
from scanlation_authz.services.exceptions import (
    ForbiddenError, InvalidInputError, UserNotFoundError, SlugAllocationError
)
from scanlation_authz.utils.slug import random_suffix, with_suffix

logger = logging.getLogger(__name__)


class AuthorService:
    """
    작품에 크레딧되는 작가 프로필을 관리합니다.

    작가 slug가 삽입 시점에 충돌하면 거부하지 않고 새 slug로 다시 시도합니다.
    """

    # 삽입 시점의 slug 충돌을 다시 시도하는 횟수
    INSERT_ATTEMPTS = 3

    def __init__(self, author_repo: IAuthorRepository, user_repo: IUserRepository,
                 membership_service: MembershipService, permission_service: PermissionService,
                 slug_service: SlugService, activity_service: ActivityService, uow: IUnitOfWork):
        self.author_repo = author_repo
        self.user_repo = user_repo
        self.membership_service = membership_service
        self.permission_service = permission_service
        self.slug_service = slug_service
        self.activity_service = activity_service
        self.uow = uow

    def create_author(self, user_id: int, name: str, bio: Optional[str] = None) -> Dict[str, Any]:
        """
        이름이 붙은 작가 프로필을 생성합니다. (사용자 계정과 연결되지 않음)

        Raises:
            InvalidInputError: 이름이 비어 있을 때.
            ForbiddenError: 그룹에 속하지 않았고 authors.create 권한도 없을 때.
            SlugAllocationError: 다시 시도해도 slug가 계속 충돌할 때.
        """
        if not name or not name.strip():
            raise InvalidInputError("Author name is required.")
        if not (self.membership_service.is_user_in_any_group(user_id)
                or self.permission_service.has_permission(user_id, Permission.AUTHORS_CREATE)):
            logger.info("User %s tried to create an author without a group.", user_id)
            raise ForbiddenError("Forbidden: must belong to a scanlation group to create authors")

        author = self._insert(user_id, models.Author(name=name.strip(), bio=bio))
        return self._to_dict(author)

    def ensure_self_author(self, user_id: int, bio: Optional[str] = None) -> Dict[str, Any]:
        """
        요청한 사용자 자신의 작가 프로필을 조회하거나, 없으면 생성합니다.

        그룹 소속이 필요 없는 유일한 생성 경로입니다. 동시에 두 요청이 들어와도
        사용자당 프로필은 하나만 만들어지며, 늦은 요청은 이미 만들어진 프로필을 돌려받습니다.

        Returns:
            작가 정보와 새로 생성되었는지 여부(created)가 담긴 딕셔너리.

        Raises:
            UserNotFoundError: 사용자를 찾을 수 없을 때.
        """
        existing = self.author_repo.find_by_user_id(user_id)
        if existing:
            return {**self._to_dict(existing), "created": False}

        user = self.user_repo.find_by_id(user_id)
        if not user:
            raise UserNotFoundError(f"User with id '{user_id}' not found.")

        name = user.name or user.email.split("@", 1)[0]
        try:
            author = self._insert(user_id, models.Author(name=name, bio=bio, user_id=user_id))
        except SlugAllocationError:
            existing = self.author_repo.find_by_user_id(user_id)
            if existing:
                logger.info("Self author profile for user %s was created concurrently.", user_id)
                return {**self._to_dict(existing), "created": False}
            raise
        return {**self._to_dict(author), "created": True}

    def _insert(self, user_id: int, author: models.Author) -> models.Author:
        base = self.slug_service.allocate_unique_slug(author.name, SlugScope.AUTHOR)
        slug = base
        for attempt in range(self.INSERT_ATTEMPTS):
            author.slug = slug
            try:
                with self.uow:
                    self.author_repo.create(author)
                    self.activity_service.record(user_id, "created", "author", author.id, f"Author: '{author.name}'")
                return author
            except UniqueViolationError:
                if author.user_id is not None and self.author_repo.find_by_user_id(author.user_id):
                    break
                logger.warning("Author slug '%s' conflicted at insert (attempt %d).", slug, attempt + 1)
                slug = with_suffix(base, random_suffix(5), SlugScope.AUTHOR.max_length)

        raise SlugAllocationError(f"Failed to insert author with a unique slug for '{base}'.")

    def _to_dict(self, author: models.Author) -> Dict[str, Any]:
        return {
            "id": author.id,
            "name": author.name,
            "slug": author.slug,
            "bio": author.bio,
            "user_id": author.user_id,
        }
