# tests/services/test_chapter_service.py
import pytest
from unittest.mock import MagicMock

from scanlation_authz.services.chapter_service import ChapterService
from scanlation_authz.services.claim_service import ClaimService, ClaimAction, AuthorizationDecision
from scanlation_authz.services.exceptions import *
from scanlation_authz.repositories.exceptions import UniqueViolationError
from scanlation_authz.repositories.interfaces import IChapterRepository, IWorkRepository, IGroupRepository
from scanlation_authz.database import models

# ===================================================================
#  Fixture 설정
# ===================================================================

@pytest.fixture
def mock_chapter_repo() -> MagicMock:
    """IChapterRepository에 대한 모의 객체. 기본적으로 기존 챕터가 없습니다."""
    repo = MagicMock(spec=IChapterRepository)
    repo.find_existing.return_value = []
    return repo

@pytest.fixture
def mock_work_repo() -> MagicMock:
    repo = MagicMock(spec=IWorkRepository)
    repo.find_by_id.return_value = models.Work(id=10, kind=models.WorkKind.WEBTOON, title="W", slug="w")
    repo.list_claim_group_ids.return_value = []
    return repo

@pytest.fixture
def mock_group_repo() -> MagicMock:
    repo = MagicMock(spec=IGroupRepository)
    repo.count_existing.side_effect = lambda ids: len(ids)
    return repo

@pytest.fixture
def mock_claim_service() -> MagicMock:
    """기본적으로 허용하는 ClaimService 모의 객체. require는 실제 동작을 따릅니다."""
    service = MagicMock(spec=ClaimService)
    service.resolve_claim_authorization.return_value = AuthorizationDecision.allow(acting_group_id=1)
    service.authorize_chapter_mutation.return_value = AuthorizationDecision.allow(acting_group_id=1)
    service.require.side_effect = lambda decision: ClaimService.require(None, decision)
    return service

@pytest.fixture
def chapter_service(mock_chapter_repo, mock_work_repo, mock_group_repo, mock_claim_service,
                    mock_activity_service, mock_uow) -> ChapterService:
    return ChapterService(mock_chapter_repo, mock_work_repo, mock_group_repo, mock_claim_service,
                          mock_activity_service, mock_uow)

# ===================================================================
#  챕터 일괄 생성 테스트
# ===================================================================
class TestCreateChapterBatch:
    def test_creates_one_chapter_per_group(self, chapter_service, mock_chapter_repo, mock_activity_service,
                                           mock_claim_service, mock_uow):
        """그룹마다 하나씩, 같은 번호의 챕터가 하나의 트랜잭션에서 생성됩니다."""
        # === Act ===
        chapters = chapter_service.create_chapter_batch(5, 10, 5, [1, 2], content=["p1.png"])

        # === Assert ===
        assert [c["scanlation_group_id"] for c in chapters] == [1, 2]
        assert all(c["number"] == 5 and c["title"] == "Chapter 5" for c in chapters)
        created = mock_chapter_repo.create_many.call_args.args[0]
        assert len(created) == 2
        assert mock_activity_service.record.call_count == 2
        mock_uow.__enter__.assert_called_once()
        mock_claim_service.resolve_claim_authorization.assert_called_once_with(5, 10, ClaimAction.UPLOAD, [1, 2])

    def test_duplicate_group_ids_are_collapsed(self, chapter_service, mock_chapter_repo):
        # === Act ===
        chapters = chapter_service.create_chapter_batch(5, 10, 1, [2, 2, 1])

        # === Assert ===
        assert [c["scanlation_group_id"] for c in chapters] == [2, 1]

    @pytest.mark.parametrize("number", [0, -1, "3", True, 1.5])
    def test_invalid_number(self, chapter_service, mock_chapter_repo, number):
        with pytest.raises(InvalidInputError):
            chapter_service.create_chapter_batch(5, 10, number, [1])
        mock_chapter_repo.create_many.assert_not_called()

    def test_empty_groups(self, chapter_service):
        with pytest.raises(InvalidInputError):
            chapter_service.create_chapter_batch(5, 10, 1, [])

    def test_unknown_work(self, chapter_service, mock_work_repo, mock_claim_service):
        # === Arrange ===
        mock_work_repo.find_by_id.return_value = None

        # === Act & Assert ===
        with pytest.raises(WorkNotFoundError):
            chapter_service.create_chapter_batch(5, 99, 1, [1])
        mock_claim_service.resolve_claim_authorization.assert_not_called()

    def test_forbidden_when_resolver_denies(self, chapter_service, mock_claim_service, mock_chapter_repo):
        # === Arrange ===
        mock_claim_service.resolve_claim_authorization.return_value = AuthorizationDecision.deny("no")

        # === Act & Assert ===
        with pytest.raises(ForbiddenError):
            chapter_service.create_chapter_batch(5, 10, 1, [1])
        mock_chapter_repo.create_many.assert_not_called()

    def test_invalid_groups(self, chapter_service, mock_group_repo, mock_chapter_repo):
        """존재하지 않는 그룹이 섞여 있으면 아무것도 생성하지 않습니다."""
        # === Arrange ===
        mock_group_repo.count_existing.side_effect = None
        mock_group_repo.count_existing.return_value = 1

        # === Act & Assert ===
        with pytest.raises(InvalidInputError, match="Invalid groups"):
            chapter_service.create_chapter_batch(5, 10, 1, [1, 404])
        mock_chapter_repo.create_many.assert_not_called()

    def test_existing_chapter_number_conflicts(self, chapter_service, mock_chapter_repo):
        # === Arrange ===
        mock_chapter_repo.find_existing.return_value = [
            models.Chapter(id=1, work_id=10, number=1, title="Chapter 1", scanlation_group_id=1)
        ]

        # === Act & Assert ===
        with pytest.raises(ChapterAlreadyExistsError):
            chapter_service.create_chapter_batch(5, 10, 1, [1, 2])
        mock_chapter_repo.create_many.assert_not_called()

    def test_insert_conflict_writes_nothing(self, chapter_service, mock_chapter_repo, mock_activity_service,
                                            mock_work_repo, mock_uow):
        """사전 조회 이후 동시 요청이 같은 챕터를 만든 경우, 충돌로 변환되고 감사 기록은 남지 않습니다."""
        # === Arrange ===
        mock_chapter_repo.create_many.side_effect = UniqueViolationError("uq_chapters_work_number_group")

        # === Act & Assert ===
        with pytest.raises(ChapterAlreadyExistsError):
            chapter_service.create_chapter_batch(5, 10, 5, [1, 2])
        mock_activity_service.record.assert_not_called()
        mock_work_repo.create_claim.assert_not_called()
        # 검증: 예외가 Unit of Work에 전달되어 롤백됨
        assert mock_uow.__exit__.call_args.args[0] is UniqueViolationError

    def test_attaches_owner_on_unclaimed_work(self, chapter_service, mock_claim_service, mock_work_repo):
        # === Arrange ===
        mock_claim_service.resolve_claim_authorization.return_value = AuthorizationDecision.allow(
            acting_group_id=2, claim_group_id=2
        )

        # === Act ===
        chapter_service.create_chapter_batch(5, 10, 1, [2])

        # === Assert ===
        mock_work_repo.create_claim.assert_called_once_with(10, 2)

    def test_concurrent_owner_claim_is_tolerated(self, chapter_service, mock_claim_service, mock_work_repo,
                                                 mock_activity_service):
        """동시에 같은 그룹의 클레임이 생긴 경우에도 챕터 생성은 성공합니다."""
        # === Arrange ===
        mock_claim_service.resolve_claim_authorization.return_value = AuthorizationDecision.allow(
            acting_group_id=2, claim_group_id=2
        )
        mock_work_repo.create_claim.side_effect = UniqueViolationError("uq_work_group_claims_work_group")

        # === Act ===
        chapters = chapter_service.create_chapter_batch(5, 10, 1, [2])

        # === Assert ===
        assert len(chapters) == 1
        mock_activity_service.record.assert_called_once()

# ===================================================================
#  챕터 수정/삭제 테스트
# ===================================================================
class TestChapterMutations:
    def _chapter(self):
        return models.Chapter(id=100, work_id=10, number=1, title="Chapter 1", content=[], scanlation_group_id=1)

    def test_update_chapter(self, chapter_service, mock_chapter_repo, mock_claim_service, mock_activity_service):
        # === Arrange ===
        chapter = self._chapter()
        mock_chapter_repo.find_by_id.return_value = chapter

        # === Act ===
        result = chapter_service.update_chapter(5, 100, title="Prologue")

        # === Assert ===
        assert result["title"] == "Prologue"
        mock_claim_service.authorize_chapter_mutation.assert_called_once_with(5, chapter, ClaimAction.EDIT)
        mock_chapter_repo.update.assert_called_once_with(chapter)
        mock_activity_service.record.assert_called_once()

    def test_update_chapter_forbidden(self, chapter_service, mock_chapter_repo, mock_claim_service):
        # === Arrange ===
        mock_chapter_repo.find_by_id.return_value = self._chapter()
        mock_claim_service.authorize_chapter_mutation.return_value = AuthorizationDecision.deny("no")

        # === Act & Assert ===
        with pytest.raises(ForbiddenError):
            chapter_service.update_chapter(5, 100, title="x")
        mock_chapter_repo.update.assert_not_called()

    def test_update_chapter_number_conflict(self, chapter_service, mock_chapter_repo):
        # === Arrange ===
        mock_chapter_repo.find_by_id.return_value = self._chapter()
        mock_chapter_repo.update.side_effect = UniqueViolationError("uq_chapters_work_number_group")

        # === Act & Assert ===
        with pytest.raises(ChapterAlreadyExistsError):
            chapter_service.update_chapter(5, 100, number=2)

    def test_delete_chapter(self, chapter_service, mock_chapter_repo, mock_claim_service):
        # === Arrange ===
        chapter = self._chapter()
        mock_chapter_repo.find_by_id.return_value = chapter

        # === Act ===
        assert chapter_service.delete_chapter(5, 100) is True

        # === Assert ===
        mock_claim_service.authorize_chapter_mutation.assert_called_once_with(5, chapter, ClaimAction.DELETE)
        mock_chapter_repo.delete.assert_called_once_with(chapter)

    def test_delete_unknown_chapter(self, chapter_service, mock_chapter_repo):
        # === Arrange ===
        mock_chapter_repo.find_by_id.return_value = None

        # === Act & Assert ===
        with pytest.raises(ChapterNotFoundError):
            chapter_service.delete_chapter(5, 404)

    def test_list_chapters(self, chapter_service, mock_chapter_repo):
        # === Arrange ===
        mock_chapter_repo.list_by_work.return_value = [self._chapter()]

        # === Act ===
        chapters = chapter_service.list_chapters(10)

        # === Assert ===
        assert chapters[0]["id"] == 100
