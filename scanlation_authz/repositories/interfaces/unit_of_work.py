from abc import ABC, abstractmethod

class IUnitOfWork(ABC):
    """
    여러 엔티티를 건드리는 변경 작업을 하나의 트랜잭션으로 묶습니다.

    사용 예시:
        with uow:
            work_repo.create(work)
            activity_repo.add(log)
    블록이 정상 종료되면 커밋하고, 예외가 발생하면 롤백한 뒤 예외를 다시 던집니다.
    """

    @abstractmethod
    def __enter__(self):
        pass

    @abstractmethod
    def __exit__(self, exc_type, exc_val, exc_tb):
        pass
