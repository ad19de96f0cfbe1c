"""
Seed an admin account. Admins cannot register through the API.

    ADMIN_EMAIL=admin@example.com ADMIN_PASSWORD=... python -m jobboard.scripts.create_admin
"""
from __future__ import annotations

import os
import sys

from sqlalchemy.orm import Session

from .. import crud, models
from ..database import SessionLocal, init_db
from ..logging_config import get_logger

logger = get_logger(__name__)


def create_admin(db: Session, email: str, password: str, name: str = "Admin User") -> tuple[models.Account, bool]:
    """Return ``(account, created)``; an existing account with that email is left untouched."""
    existing = crud.get_account_by_email(db, email)
    if existing is not None:
        return existing, False
    account = crud.create_account(db, name=name, email=email, password=password, role=models.Role.ADMIN)
    return account, True


def main() -> int:
    email = os.getenv("ADMIN_EMAIL", "admin@example.com")
    password = os.getenv("ADMIN_PASSWORD")
    name = os.getenv("ADMIN_NAME", "Admin User")
    if not password or len(password) < 8:
        logger.error("ADMIN_PASSWORD must be set to at least 8 characters")
        return 1

    init_db()
    db = SessionLocal()
    try:
        account, created = create_admin(db, email, password, name)
    finally:
        db.close()

    if not created:
        if account.role != models.Role.ADMIN:
            logger.error("%s already exists with role %s", email, account.role.value)
            return 1
        logger.info("Admin %s already exists", email)
        return 0
    logger.info("Admin %s created (id=%s)", email, account.id)
    return 0


if __name__ == "__main__":
    sys.exit(main())
