"""
Create the bootstrap admin account (ADMIN_EMAIL / ADMIN_PASSWORD settings).
Run seed_roles first. Usage: python -m app.scripts.create_admin
"""
import logging
import sys
from sqlalchemy.orm import Session
from app.auth import hash_password
from app.config import get_settings
from app.database import SessionLocal
from app.models.user import User
from app.permissions import RoleName
from app.services.roles import get_role

logger = logging.getLogger(__name__)


def create_admin(db: Session, email: str, password: str) -> User | None:
    """Create the admin user. Returns None if the admin role is missing; existing user is returned as is."""
    role = get_role(db, RoleName.ADMIN)
    if role is None:
        return None
    email = email.strip().lower()
    existing = db.query(User).filter(User.email == email).first()
    if existing:
        return existing
    user = User(
        first_name="Admin",
        last_name="User",
        email=email,
        password=hash_password(password),
        role_id=role.id,
        is_active=True,
        is_email_verified=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    settings = get_settings()
    db = SessionLocal()
    try:
        user = create_admin(db, settings.admin_email, settings.admin_password)
    finally:
        db.close()
    if user is None:
        logger.error("Admin role not found. Run `python -m app.scripts.seed_roles` first.")
        return 1
    logger.info("Admin user ready: %s", user.email)
    logger.warning("Change the admin password after first login.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
