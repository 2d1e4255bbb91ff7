import logging
from typing import Any, Dict, Iterable, List, Optional

from scanlation_authz.database import models
from scanlation_authz.repositories.exceptions import UniqueViolationError
from scanlation_authz.repositories.interfaces import (
    IChapterRepository, IWorkRepository, IGroupRepository, IUnitOfWork
)
from scanlation_authz.services.activity_service import ActivityService
from scanlation_authz.services.claim_service import ClaimService, ClaimAction
from scanlation_authz.services.exceptions import (
    WorkNotFoundError, ChapterNotFoundError, ChapterAlreadyExistsError, InvalidInputError
)

logger = logging.getLogger(__name__)


class ChapterService:
    """
    챕터 번호 규칙과 그룹별 챕터 생성(공동 릴리스)을 관리합니다.

    챕터의 유일성 규칙은 (work_id, number, scanlation_group_id)이며,
    사전 조회와 별개로 스토리지의 유일성 제약이 최종 판단 기준입니다.
    """

    def __init__(self, chapter_repo: IChapterRepository, work_repo: IWorkRepository,
                 group_repo: IGroupRepository, claim_service: ClaimService,
                 activity_service: ActivityService, uow: IUnitOfWork):
        self.chapter_repo = chapter_repo
        self.work_repo = work_repo
        self.group_repo = group_repo
        self.claim_service = claim_service
        self.activity_service = activity_service
        self.uow = uow

    def create_chapter_batch(self, user_id: int, work_id: int, number: int, group_ids: Iterable[int],
                             title: Optional[str] = None, content: Optional[list] = None) -> List[Dict[str, Any]]:
        """
        같은 번호의 챕터를 그룹마다 하나씩, 하나의 트랜잭션 안에서 생성합니다.

        모든 행이 생성되거나 아무것도 생성되지 않습니다. 클레임이 없는 작품이라면
        사용자의 그룹이 같은 트랜잭션에서 작품의 소유 그룹으로 클레임됩니다.

        Args:
            user_id: 요청한 사용자의 ID.
            work_id: 챕터를 추가할 작품의 ID.
            number: 챕터 번호 (1 이상).
            group_ids: 챕터를 제작한 그룹 ID 목록. 사용자는 이 중 하나의 멤버여야 합니다.
            title: 챕터 제목. 생략하면 'Chapter {number}'.
            content: 챕터 내용 (이미지 URL 목록 또는 본문 블록).

        Returns:
            생성된 챕터 정보가 담긴 딕셔너리의 리스트.

        Raises:
            InvalidInputError: 번호나 그룹 목록이 올바르지 않거나, 존재하지 않는 그룹이 있을 때.
            WorkNotFoundError: 작품을 찾을 수 없을 때.
            ForbiddenError: 인가에 실패했을 때.
            ChapterAlreadyExistsError: 같은 그룹의 같은 번호 챕터가 이미 있을 때.
        """
        group_ids = list(dict.fromkeys(group_ids or []))
        if not isinstance(number, int) or isinstance(number, bool) or number < 1:
            raise InvalidInputError("Chapter number must be a positive integer.")
        if not group_ids:
            raise InvalidInputError("At least one group is required.")

        work = self.work_repo.find_by_id(work_id)
        if not work:
            raise WorkNotFoundError(f"Work with id '{work_id}' not found.")

        decision = self.claim_service.require(
            self.claim_service.resolve_claim_authorization(user_id, work_id, ClaimAction.UPLOAD, group_ids)
        )

        if self.group_repo.count_existing(group_ids) != len(group_ids):
            raise InvalidInputError("Invalid groups.")

        if self.chapter_repo.find_existing(work_id, number, group_ids):
            raise ChapterAlreadyExistsError(f"Chapter number {number} already exists.")

        title = title or f"Chapter {number}"
        chapters = [
            models.Chapter(work_id=work_id, number=number, title=title, content=content or [], scanlation_group_id=group_id)
            for group_id in group_ids
        ]

        try:
            with self.uow:
                self.chapter_repo.create_many(chapters)
                if decision.claim_group_id is not None:
                    self._attach_owner(work_id, decision.claim_group_id)
                for chapter in chapters:
                    self.activity_service.record(
                        user_id, "created", "chapter", chapter.id, f"Added chapter {number}: '{title}'"
                    )
        except UniqueViolationError as e:
            # 사전 조회와 삽입 사이에 다른 요청이 같은 챕터를 만든 경우
            logger.warning("Chapter %s of work %s conflicted at insert: %s", number, work_id, e)
            raise ChapterAlreadyExistsError(f"Chapter number {number} already exists.") from e

        return [self._to_dict(chapter) for chapter in chapters]

    def update_chapter(self, user_id: int, chapter_id: int, title: Optional[str] = None,
                       content: Optional[list] = None, number: Optional[int] = None) -> Dict[str, Any]:
        """
        챕터의 제목, 내용, 번호를 수정합니다.

        Raises:
            ChapterNotFoundError: 챕터를 찾을 수 없을 때.
            ForbiddenError: 인가에 실패했을 때.
            ChapterAlreadyExistsError: 바꾼 번호가 같은 그룹의 다른 챕터와 충돌할 때.
        """
        chapter = self.chapter_repo.find_by_id(chapter_id)
        if not chapter:
            raise ChapterNotFoundError(f"Chapter with id '{chapter_id}' not found.")
        self.claim_service.require(self.claim_service.authorize_chapter_mutation(user_id, chapter, ClaimAction.EDIT))

        if number is not None and (not isinstance(number, int) or number < 1):
            raise InvalidInputError("Chapter number must be a positive integer.")

        try:
            with self.uow:
                if title is not None:
                    chapter.title = title
                if content is not None:
                    chapter.content = content
                if number is not None:
                    chapter.number = number
                self.chapter_repo.update(chapter)
                self.activity_service.record(user_id, "updated", "chapter", chapter.id, f"Updated chapter: '{chapter.title}'")
        except UniqueViolationError as e:
            raise ChapterAlreadyExistsError(f"Chapter number {number} already exists.") from e

        return self._to_dict(chapter)

    def delete_chapter(self, user_id: int, chapter_id: int) -> bool:
        """
        챕터를 삭제합니다. 수정과 같은 인가 규칙을 따릅니다.

        Raises:
            ChapterNotFoundError: 챕터를 찾을 수 없을 때.
            ForbiddenError: 인가에 실패했을 때.
        """
        chapter = self.chapter_repo.find_by_id(chapter_id)
        if not chapter:
            raise ChapterNotFoundError(f"Chapter with id '{chapter_id}' not found.")
        self.claim_service.require(self.claim_service.authorize_chapter_mutation(user_id, chapter, ClaimAction.DELETE))

        with self.uow:
            self.chapter_repo.delete(chapter)
            self.activity_service.record(user_id, "deleted", "chapter", chapter_id, f"Deleted chapter: '{chapter.title}'")
        return True

    def list_chapters(self, work_id: int) -> List[Dict[str, Any]]:
        """작품의 챕터 목록을 번호 순으로 조회합니다."""
        if not self.work_repo.find_by_id(work_id):
            raise WorkNotFoundError(f"Work with id '{work_id}' not found.")
        return [self._to_dict(c) for c in self.chapter_repo.list_by_work(work_id)]

    def _attach_owner(self, work_id: int, group_id: int):
        try:
            self.work_repo.create_claim(work_id, group_id)
        except UniqueViolationError:
            logger.info("Work %s was claimed by group %s concurrently.", work_id, group_id)

    def _to_dict(self, chapter: models.Chapter) -> Dict[str, Any]:
        return {
            "id": chapter.id,
            "work_id": chapter.work_id,
            "number": chapter.number,
            "title": chapter.title,
            "content": chapter.content,
            "scanlation_group_id": chapter.scanlation_group_id,
        }
