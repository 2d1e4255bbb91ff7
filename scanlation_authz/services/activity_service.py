from typing import Any, Dict, List, Optional

from scanlation_authz.database import models
from scanlation_authz.repositories.interfaces import IActivityLogRepository


class ActivityService:
    """
    변경 작업의 감사 기록(Activity Ledger)을 관리합니다.

    record()는 호출자의 트랜잭션(Unit of Work) 안에서 호출되어야 하며,
    변경 작업이 롤백되면 감사 기록도 함께 사라집니다.
    """

    def __init__(self, activity_repo: IActivityLogRepository):
        self.activity_repo = activity_repo

    def record(self, performed_by: Optional[int], action: str, entity_type: str, entity_id: int,
               details: Optional[str] = None) -> models.ActivityLog:
        log = models.ActivityLog(
            performed_by=performed_by,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            details=details,
        )
        return self.activity_repo.add(log)

    def list_entity_activity(self, entity_type: str, entity_id: int) -> List[Dict[str, Any]]:
        """특정 엔티티의 감사 기록을 시간순으로 조회합니다."""
        return [self._to_dict(log) for log in self.activity_repo.list_by_entity(entity_type, entity_id)]

    def list_user_activity(self, user_id: int) -> List[Dict[str, Any]]:
        """특정 사용자가 수행한 감사 기록을 최신순으로 조회합니다."""
        return [self._to_dict(log) for log in self.activity_repo.list_by_user(user_id)]

    def _to_dict(self, log: models.ActivityLog) -> Dict[str, Any]:
        return {
            "id": log.id,
            "performed_by": log.performed_by,
            "action": log.action,
            "entity_type": log.entity_type,
            "entity_id": log.entity_id,
            "details": log.details,
            "created_at": log.created_at.isoformat() if log.created_at else None,
        }
