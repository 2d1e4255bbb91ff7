from .user import User
from .role import Role, Permission, RolePermission
from .group import GroupRole, ScanlationGroup, GroupMember, GroupInvite
from .work import WorkKind, Work, WorkGroupClaim
from .chapter import Chapter
from .author import Author
from .activity_log import ActivityLog
