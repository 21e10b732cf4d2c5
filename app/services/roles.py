"""Seed and look up the fixed role set (see app.permissions)."""
import logging
from sqlalchemy.orm import Session
from app.models.role import Role
from app.models.user import User
from app.permissions import DEFAULT_ROLE, ROLE_DESCRIPTIONS, ROLE_PERMISSIONS, RoleName, sorted_permission_values

logger = logging.getLogger(__name__)


def _apply_defaults(role: Role, name: RoleName) -> None:
    role.description = ROLE_DESCRIPTIONS[name]
    role.permissions = sorted_permission_values(ROLE_PERMISSIONS[name])


def ensure_default_roles(db: Session) -> list[Role]:
    """Create missing roles and restore the permission list of existing ones. Commits."""
    roles = []
    for name in RoleName:
        role = db.query(Role).filter(Role.name == name.value).first()
        if role is None:
            role = Role(name=name.value)
            db.add(role)
            logger.info("Seeding role %s", name.value)
        _apply_defaults(role, name)
        roles.append(role)
    db.commit()
    return roles


def reset_roles(db: Session) -> list[Role]:
    """Drop roles no user references, then re-seed the defaults. Commits."""
    referenced = {role_id for (role_id,) in db.query(User.role_id).distinct()}
    for role in db.query(Role).all():
        if role.id not in referenced:
            db.delete(role)
    db.flush()
    return ensure_default_roles(db)


def get_role(db: Session, name: RoleName) -> Role | None:
    return db.query(Role).filter(Role.name == name.value).first()


def get_or_create_default_role(db: Session) -> Role:
    """Role given to self-registered users; created on demand if never seeded. Caller commits."""
    role = get_role(db, DEFAULT_ROLE)
    if role is None:
        role = Role(name=DEFAULT_ROLE.value)
        _apply_defaults(role, DEFAULT_ROLE)
        db.add(role)
        db.flush()
    return role
