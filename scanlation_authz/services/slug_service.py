import enum
import logging
from typing import Dict, Optional

from scanlation_authz.config import settings
from scanlation_authz.utils.slug import slugify, random_suffix, with_suffix
from scanlation_authz.services.exceptions import SlugAllocationError

logger = logging.getLogger(__name__)


class SlugScope(enum.Enum):
    """
    slug의 유일성 범위입니다. (max_length, fallback)
    WORK는 웹툰과 노벨을 모두 포함하는 하나의 범위입니다.
    """
    WORK = (191, "work")
    GROUP = (100, "group")
    AUTHOR = (100, "author")

    @property
    def max_length(self) -> int:
        return self.value[0]

    @property
    def fallback(self) -> str:
        return self.value[1]


class SlugService:
    """범위(scope)별로 유일한 slug를 할당합니다."""

    # 순번 접미사(-1, -2, -3)를 시도한 뒤 무작위 접미사로 넘어갑니다.
    NUMBERED_ATTEMPTS = 3
    FALLBACK_ATTEMPTS = 10

    def __init__(self, lookups: Dict[SlugScope, object], max_attempts: Optional[int] = None):
        """
        SlugService를 초기화합니다.

        Args:
            lookups: 범위별로 slug_exists(slug) 메서드를 가진 리포지토리.
                (예: {SlugScope.WORK: work_repo, SlugScope.GROUP: group_repo})
            max_attempts: 기본 시도 횟수. 생략하면 설정 값(SLUG_MAX_ATTEMPTS)을 사용합니다.
        """
        self.lookups = lookups
        self.max_attempts = max_attempts or settings.SLUG_MAX_ATTEMPTS

    def slugify(self, name: str, scope: SlugScope) -> str:
        return slugify(name, max_length=scope.max_length, fallback=scope.fallback)

    def allocate_unique_slug(self, candidate: str, scope: SlugScope) -> str:
        """
        후보 이름으로부터 해당 범위에서 아직 사용되지 않은 slug를 찾습니다.

        이 메서드는 원자성을 보장하지 않습니다. 호출자는 삽입 시 스토리지의
        유일성 위반(UniqueViolationError)을 처리해야 합니다.

        Args:
            candidate: 원본 이름 또는 slug 후보.
            scope: slug의 유일성 범위.

        Returns:
            사용 가능한 slug.

        Raises:
            SlugAllocationError: 모든 시도가 충돌했을 때.
        """
        lookup = self.lookups[scope]
        base = self.slugify(candidate, scope)

        for attempt in range(self.max_attempts):
            if attempt == 0:
                slug = base
            elif attempt <= self.NUMBERED_ATTEMPTS:
                slug = with_suffix(base, str(attempt), scope.max_length)
            else:
                slug = with_suffix(base, random_suffix(5), scope.max_length)

            if not lookup.slug_exists(slug):
                return slug

        for _ in range(self.FALLBACK_ATTEMPTS):
            slug = with_suffix(base, random_suffix(8), scope.max_length)
            if not lookup.slug_exists(slug):
                return slug

        logger.error("Failed to allocate a unique %s slug for '%s'.", scope.name.lower(), base)
        raise SlugAllocationError(f"Failed to generate a unique slug for '{base}'.")
