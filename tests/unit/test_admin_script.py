"""Tests for the bootstrap admin script."""
from app.models import Role
from app.permissions import RoleName
from app.scripts.create_admin import create_admin
from app.services.roles import reset_roles


def test_create_admin(db, roles):
    user = create_admin(db, " Admin@Example.com ", "admin123")

    assert user.email == "admin@example.com"
    assert user.role_name == RoleName.ADMIN.value
    assert user.is_email_verified is True


def test_create_admin_returns_existing(db, roles):
    first = create_admin(db, "admin@example.com", "admin123")
    second = create_admin(db, "admin@example.com", "other")
    assert first.id == second.id


def test_create_admin_needs_seeded_roles(db):
    assert create_admin(db, "admin@example.com", "admin123") is None


def test_reset_roles_keeps_referenced_roles(db, roles, make_user):
    user = make_user(RoleName.EDITOR)
    editor_id = user.role_id

    reset_roles(db)

    assert db.query(Role).count() == len(RoleName)
    assert db.query(Role).filter(Role.name == "editor").one().id == editor_id
