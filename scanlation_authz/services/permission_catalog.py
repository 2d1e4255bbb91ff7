# scanlation_authz/services/permission_catalog.py
import enum


class Permission(str, enum.Enum):
    """
    시스템 권한의 닫힌 열거형입니다. 값은 'category.action' 형식입니다.
    알 수 없는 이름은 Permission('...') 생성 시점에 ValueError로 거부됩니다.
    """
    # Webtoons / works
    WEBTOONS_VIEW = "webtoons.view"
    WEBTOONS_CREATE = "webtoons.create"
    WEBTOONS_EDIT = "webtoons.edit"
    WEBTOONS_DELETE = "webtoons.delete"
    WEBTOONS_PUBLISH = "webtoons.publish"
    WEBTOONS_MANAGE = "webtoons.manage"

    # Authors
    AUTHORS_VIEW = "authors.view"
    AUTHORS_CREATE = "authors.create"
    AUTHORS_EDIT = "authors.edit"
    AUTHORS_DELETE = "authors.delete"

    # Genres
    GENRES_VIEW = "genres.view"
    GENRES_CREATE = "genres.create"
    GENRES_EDIT = "genres.edit"
    GENRES_DELETE = "genres.delete"

    # Users
    USERS_VIEW = "users.view"
    USERS_CREATE = "users.create"
    USERS_EDIT = "users.edit"
    USERS_DELETE = "users.delete"
    USERS_SUSPEND = "users.suspend"
    USERS_MANAGE_ROLES = "users.manage_roles"
    USERS_SEND_MAGIC_LINK = "users.send_magic_link"

    # Roles & permissions
    ROLES_VIEW = "roles.view"
    ROLES_CREATE = "roles.create"
    ROLES_EDIT = "roles.edit"
    ROLES_DELETE = "roles.delete"
    PERMISSIONS_MANAGE = "permissions.manage"

    # Groups
    GROUPS_ASSIGN = "groups.assign"
    GROUPS_UPLOAD = "groups.upload"

    # Analytics
    ANALYTICS_VIEW = "analytics.view"
    ANALYTICS_EXPORT = "analytics.export"

    # System
    SYSTEM_SETTINGS = "system.settings"
    SYSTEM_LOGS = "system.logs"
    SETTINGS_MANAGE = "settings.manage"

    @property
    def category(self) -> str:
        return self.value.split(".", 1)[0]

    @property
    def description(self) -> str:
        return self.name.replace("_", " ").lower()


# 시드되는 기본 시스템 역할 (is_system=True)
DEFAULT_ROLES = {
    "admin": {
        "description": "Full system access",
        "permissions": list(Permission),
    },
    "moderator": {
        "description": "Can manage content and users",
        "permissions": [
            Permission.WEBTOONS_VIEW,
            Permission.WEBTOONS_EDIT,
            Permission.WEBTOONS_DELETE,
            Permission.AUTHORS_VIEW,
            Permission.AUTHORS_EDIT,
            Permission.GENRES_VIEW,
            Permission.GENRES_EDIT,
            Permission.USERS_VIEW,
            Permission.USERS_SUSPEND,
            Permission.ANALYTICS_VIEW,
            Permission.GROUPS_ASSIGN,
        ],
    },
    "author": {
        "description": "Can create and manage own webtoons",
        "permissions": [
            Permission.WEBTOONS_VIEW,
            Permission.WEBTOONS_CREATE,
            Permission.WEBTOONS_EDIT,
            Permission.AUTHORS_VIEW,
            Permission.GENRES_VIEW,
        ],
    },
    "reader": {
        "description": "Basic reading access",
        "permissions": [
            Permission.WEBTOONS_VIEW,
            Permission.AUTHORS_VIEW,
            Permission.GENRES_VIEW,
        ],
    },
}


def parse_permissions(names):
    """
    권한 이름 목록을 Permission 열거형으로 변환합니다.

    Raises:
        ValueError: 카탈로그에 없는 이름이 포함되어 있을 때.
    """
    return [Permission(name) for name in names]
