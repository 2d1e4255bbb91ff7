# scanlation_authz/repositories/exceptions.py

class UniqueViolationError(Exception):
    """스토리지의 유일성 제약 조건을 위반했을 때 (예: 중복 slug, 중복 클레임)"""

    def __init__(self, message: str, constraint: str = None):
        super().__init__(message)
        self.constraint = constraint
