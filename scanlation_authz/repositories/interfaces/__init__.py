from .unit_of_work import IUnitOfWork
from .user import IUserRepository
from .role import IRoleRepository
from .permission import IPermissionRepository
from .group import IGroupRepository, IGroupMemberRepository, IGroupInviteRepository
from .work import IWorkRepository
from .chapter import IChapterRepository
from .author import IAuthorRepository
from .activity_log import IActivityLogRepository
