# scanlation_authz/services/exceptions.py

# --- Unauthenticated / Forbidden ---
class UnauthenticatedError(Exception):
    """요청에 인증된 사용자가 없을 때"""
    pass

class ForbiddenError(Exception):
    """인증은 되었지만 모든 인가 경로를 통과하지 못했을 때"""
    pass

# --- Not Found ---
class NotFoundError(Exception):
    """대상 엔티티를 찾을 수 없을 때"""
    pass

class UserNotFoundError(NotFoundError):
    """사용자를 찾을 수 없을 때"""
    pass

class RoleNotFoundError(NotFoundError):
    """역할을 찾을 수 없을 때"""
    pass

class GroupNotFoundError(NotFoundError):
    """그룹을 찾을 수 없을 때"""
    pass

class MemberNotFoundError(NotFoundError):
    """그룹 멤버십을 찾을 수 없을 때"""
    pass

class WorkNotFoundError(NotFoundError):
    """작품을 찾을 수 없을 때"""
    pass

class ChapterNotFoundError(NotFoundError):
    """챕터를 찾을 수 없을 때"""
    pass

class InviteNotFoundError(NotFoundError):
    """초대장을 찾을 수 없을 때"""
    pass

# --- Conflict ---
class ConflictError(Exception):
    """유일성 제약 조건과 충돌할 때"""
    pass

class WorkAlreadyExistsError(ConflictError):
    """같은 slug의 작품이 이미 존재할 때"""
    pass

class GroupAlreadyExistsError(ConflictError):
    """같은 slug의 그룹이 이미 존재할 때"""
    pass

class RoleAlreadyExistsError(ConflictError):
    """같은 이름의 역할이 이미 존재할 때"""
    pass

class ChapterAlreadyExistsError(ConflictError):
    """같은 작품/번호/그룹의 챕터가 이미 존재할 때"""
    pass

class SystemRoleError(ConflictError):
    """시스템 역할의 이름을 바꾸거나 삭제하려고 할 때"""
    pass

class LastLeaderError(ConflictError):
    """그룹의 마지막 LEADER를 제거하거나 강등하려고 할 때"""
    pass

# --- Validation ---
class InvalidInputError(ValueError):
    """입력 값이 올바르지 않을 때"""
    pass

class InviteExpiredError(InvalidInputError):
    """초대장이 만료되었거나 이미 사용되었을 때"""
    pass

# --- Internal ---
class SlugAllocationError(Exception):
    """정해진 시도 횟수 안에 유일한 slug를 만들지 못했을 때"""
    pass

class PermissionCatalogError(Exception):
    """DB에 시드된 권한 카탈로그가 Permission 열거형과 일치하지 않을 때"""
    pass
