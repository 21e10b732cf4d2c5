"""
Closed set of permissions and roles. A role grants a fixed permission set;
the Role table mirrors ROLE_PERMISSIONS so admins can inspect it, but checks
always go through the Permission enum rather than raw strings.
"""
import enum


class Permission(str, enum.Enum):
    VIDEO_CREATE = "video:create"
    VIDEO_READ = "video:read"
    VIDEO_UPDATE = "video:update"
    VIDEO_DELETE = "video:delete"
    USER_READ = "user:read"
    USER_UPDATE = "user:update"
    USER_DELETE = "user:delete"
    ROLE_MANAGE = "role:manage"


class RoleName(str, enum.Enum):
    ADMIN = "admin"
    USER = "user"
    MODERATOR = "moderator"
    EDITOR = "editor"


ROLE_PERMISSIONS: dict[RoleName, frozenset[Permission]] = {
    RoleName.ADMIN: frozenset(Permission),
    RoleName.USER: frozenset({
        Permission.VIDEO_CREATE,
        Permission.VIDEO_READ,
        Permission.VIDEO_UPDATE,
        Permission.USER_READ,
    }),
    RoleName.MODERATOR: frozenset({
        Permission.VIDEO_CREATE,
        Permission.VIDEO_READ,
        Permission.VIDEO_UPDATE,
        Permission.VIDEO_DELETE,
        Permission.USER_READ,
    }),
    RoleName.EDITOR: frozenset({
        Permission.VIDEO_CREATE,
        Permission.VIDEO_READ,
        Permission.VIDEO_UPDATE,
        Permission.USER_READ,
    }),
}

ROLE_DESCRIPTIONS: dict[RoleName, str] = {
    RoleName.ADMIN: "Administrator with full access",
    RoleName.USER: "Default user role",
    RoleName.MODERATOR: "Content moderator",
    RoleName.EDITOR: "Content editor",
}

DEFAULT_ROLE = RoleName.USER

# Roles allowed to override a video's moderation verdict
MODERATION_ROLES = (RoleName.ADMIN, RoleName.MODERATOR)


def parse_permissions(values) -> frozenset[Permission]:
    """Convert stored permission strings to enum members, dropping unknown values."""
    known = {p.value for p in Permission}
    return frozenset(Permission(v) for v in (values or []) if v in known)


def sorted_permission_values(permissions) -> list[str]:
    """Stable list of permission strings, in declaration order."""
    wanted = set(permissions)
    return [p.value for p in Permission if p in wanted]
