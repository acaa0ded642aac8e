"""
Database initialization helpers.

Models are imported so their tables get registered on Base.metadata.

Run from the project root to create the tables and seed the initial
administrator (ADMIN_NAME / ADMIN_EMAIL / ADMIN_PASSWORD):

    (.venv) python -m userbase.db.init_db
"""

from loguru import logger
from sqlalchemy.orm import Session

from userbase.core.config import settings
from userbase.db.session import SessionLocal, engine
from userbase.models.base import Base
from userbase.models import role, user  # noqa: F401
from userbase.models.role import ADMIN
from userbase.models.user import User


def init_db() -> None:
    """
    Create all tables based on SQLAlchemy models.
    """
    Base.metadata.create_all(bind=engine)


def seed_initial_data(db: Session) -> User | None:
    """
    Create the initial administrator if configured and not there yet.
    """
    from userbase.services.user_service import assign_role, create_user

    if not (settings.admin_name and settings.admin_email and settings.admin_password):
        logger.debug("Admin credentials not configured, skipping seed")
        return None

    existing = db.query(User).filter(User.email == settings.admin_email).first()
    if existing:
        if not existing.is_admin:
            assign_role(db, existing, ADMIN)
        return existing

    admin = create_user(
        db,
        {
            "name": settings.admin_name,
            "email": settings.admin_email,
            "password": settings.admin_password,
            "password_confirmation": settings.admin_password,
        },
    )
    assign_role(db, admin, ADMIN)
    logger.info(f"Seeded administrator {admin.email}")
    return admin


def main() -> None:
    init_db()
    db = SessionLocal()
    try:
        seed_initial_data(db)
    finally:
        db.close()


if __name__ == "__main__":
    main()
