from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models
from ..errors import NotAuthorizedError, NotFoundError, ValidationError
from ..logging_config import get_logger
from ..models import ApplicationStatus, JobStatus, as_utc, utcnow
from .lifecycle import get_job

logger = get_logger(__name__)


def _find(db: Session, job_id: int, applicant_id: int) -> models.Application | None:
    return db.execute(
        select(models.Application).where(
            models.Application.job_id == job_id,
            models.Application.applicant_id == applicant_id,
        )
    ).scalar_one_or_none()


def ensure_can_apply(
    db: Session, job_id: int, applicant: models.Account
) -> tuple[models.Job, models.Application | None]:
    """Raise unless ``applicant`` may apply to the job now; returns the job and any withdrawn row."""
    job = get_job(db, job_id)
    if job.status != JobStatus.APPROVED:
        raise ValidationError("This job is not accepting applications")

    existing = _find(db, job.id, applicant.id)
    if existing is not None and existing.status != ApplicationStatus.WITHDRAWN:
        raise ValidationError("You have already applied for this job")

    if utcnow() > as_utc(job.application_deadline):
        raise ValidationError("Application deadline has passed")
    return job, existing


def apply(
    db: Session,
    job_id: int,
    applicant: models.Account,
    resume: str | None,
    cover_letter: str | None = None,
) -> models.Application:
    """
    Record an application in one transaction.

    The job's applicant list and the account's applied jobs are both read
    from Application rows, so this single insert (or reactivation of a
    withdrawn row) is the whole write.
    """
    job, existing = ensure_can_apply(db, job_id, applicant)
    resume = resume or applicant.resume
    if not resume:
        raise ValidationError("Resume is required")

    if existing is not None:
        existing.status = ApplicationStatus.PENDING
        existing.resume = resume
        existing.cover_letter = cover_letter or ""
        existing.employer_notes = None
        application = existing
    else:
        application = models.Application(
            job_id=job.id,
            applicant_id=applicant.id,
            resume=resume,
            cover_letter=cover_letter or "",
            status=ApplicationStatus.PENDING,
        )
        db.add(application)

    try:
        db.commit()
    except IntegrityError:
        # A concurrent request inserted the same (job, applicant) pair first
        db.rollback()
        raise ValidationError("You have already applied for this job")

    db.refresh(application)
    logger.info("Account %s applied to job %s (application %s)", applicant.id, job.id, application.id)
    return application


def withdraw(db: Session, job_id: int, applicant: models.Account) -> models.Application:
    job = get_job(db, job_id)
    application = _find(db, job.id, applicant.id)
    if application is None or application.status == ApplicationStatus.WITHDRAWN:
        raise NotAuthorizedError("You have not applied for this job")
    if job.status == JobStatus.CLOSED:
        raise ValidationError("Cannot withdraw application for a closed job")
    if application.status != ApplicationStatus.PENDING:
        raise ValidationError("Application can no longer be withdrawn")

    application.status = ApplicationStatus.WITHDRAWN
    db.commit()
    db.refresh(application)
    logger.info("Account %s withdrew from job %s", applicant.id, job.id)
    return application


def update_status(
    db: Session,
    application_id: int,
    employer: models.Account,
    status: ApplicationStatus,
    employer_notes: str | None = None,
) -> models.Application:
    application = db.get(models.Application, application_id)
    if application is None:
        raise NotFoundError("Application not found")
    if employer.company_id is None or application.job.company_id != employer.company_id:
        raise NotAuthorizedError("Not authorized to update this application")

    application.status = status
    if employer_notes is not None:
        application.employer_notes = employer_notes
    db.commit()
    db.refresh(application)
    logger.info("Application %s set to %s by account %s", application.id, status.value, employer.id)
    return application


def list_for_applicant(db: Session, applicant: models.Account) -> list[models.Application]:
    return list(
        db.execute(
            select(models.Application)
            .where(
                models.Application.applicant_id == applicant.id,
                models.Application.status != ApplicationStatus.WITHDRAWN,
            )
            .order_by(models.Application.created_at.desc(), models.Application.id.desc())
        ).scalars()
    )


def get_for_applicant(db: Session, job_id: int, applicant: models.Account) -> models.Application:
    application = _find(db, job_id, applicant.id)
    if application is None or application.status == ApplicationStatus.WITHDRAWN:
        raise NotFoundError("Application not found")
    return application


def list_for_employer(db: Session, employer: models.Account) -> list[models.Application]:
    if employer.company_id is None:
        return []
    return list(
        db.execute(
            select(models.Application)
            .join(models.Job, models.Application.job_id == models.Job.id)
            .where(models.Job.company_id == employer.company_id)
            .order_by(models.Application.created_at.desc(), models.Application.id.desc())
        ).scalars()
    )
