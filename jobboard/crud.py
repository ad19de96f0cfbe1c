from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from . import models, security
from .errors import ValidationError
from .logging_config import get_logger
from .schemas import CompanyUpdate

logger = get_logger(__name__)

PLACEHOLDER = "Not specified"


def get_account_by_email(db: Session, email: str) -> models.Account | None:
    return db.execute(
        select(models.Account).where(func.lower(models.Account.email) == email.strip().lower())
    ).scalar_one_or_none()


def get_account_by_id(db: Session, account_id: int) -> models.Account | None:
    return db.get(models.Account, account_id)


def create_account(
    db: Session,
    name: str,
    email: str,
    password: str,
    role: models.Role,
    *,
    email_verified: bool = True,
    company_name: str | None = None,
) -> models.Account:
    account = models.Account(
        name=name,
        email=email.strip().lower(),
        hashed_password=security.hash_password(password),
        role=role,
        email_verified=email_verified,
    )
    db.add(account)
    db.flush()
    if account.role == models.Role.EMPLOYER:
        _attach_placeholder_company(db, account, company_name)
    db.commit()
    db.refresh(account)
    logger.info("Created %s account %s", account.role.value, account.id)
    return account


def _attach_placeholder_company(db: Session, employer: models.Account, name: str | None = None) -> models.Company:
    company = models.Company(
        name=(name or "").strip() or f"{employer.name}'s Company",
        description="Company description",
        city=PLACEHOLDER,
        state=PLACEHOLDER,
        country="USA",
        industry=PLACEHOLDER,
        website="https://example.com",
    )
    db.add(company)
    db.flush()
    employer.company_id = company.id
    return company


def get_company(db: Session, company_id: int | None) -> models.Company | None:
    if company_id is None:
        return None
    return db.get(models.Company, company_id)


def ensure_company(db: Session, employer: models.Account) -> models.Company:
    """Return the employer's company, creating a placeholder if it is missing or dangling."""
    company = get_company(db, employer.company_id)
    if company is not None:
        return company
    if employer.company_id is not None:
        logger.warning("Account %s referenced missing company %s", employer.id, employer.company_id)
    company = _attach_placeholder_company(db, employer)
    db.commit()
    db.refresh(company)
    logger.info("Provisioned placeholder company %s for account %s", company.id, employer.id)
    return company


def update_company(db: Session, company: models.Company, changes: CompanyUpdate) -> models.Company:
    data = changes.model_dump(exclude_unset=True)
    location = data.pop("location", None) or {}

    for key in ("city", "state"):
        if key in location and not (location[key] or "").strip():
            raise ValidationError(f"{key.capitalize()} is required")

    for key, value in data.items():
        if value is not None:
            setattr(company, key, value.strip() if isinstance(value, str) else value)
    for key, value in location.items():
        if value is not None:
            setattr(company, key, value.strip())

    db.commit()
    db.refresh(company)
    return company


def set_password(db: Session, account: models.Account, password: str) -> None:
    account.hashed_password = security.hash_password(password)
    db.commit()


def mark_email_verified(db: Session, account: models.Account) -> None:
    account.email_verified = True
    db.commit()
