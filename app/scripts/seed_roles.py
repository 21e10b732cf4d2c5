"""Reset roles to the defaults in app.permissions. Usage: python -m app.scripts.seed_roles"""
import logging
import sys
from sqlalchemy.exc import SQLAlchemyError
from app.database import SessionLocal
from app.services.roles import reset_roles

logger = logging.getLogger(__name__)


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    db = SessionLocal()
    try:
        for role in reset_roles(db):
            logger.info("- %s: %s", role.name, role.description)
            logger.info("  Permissions: %s", ", ".join(role.permissions))
    except SQLAlchemyError:
        logger.exception("Error seeding roles")
        return 1
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
