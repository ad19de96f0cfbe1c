"""
Job postings: creation, admin review, listings and owner edits.

Every job starts PENDING. Admins move it through the review states:

    PENDING  -> APPROVED | REJECTED
    APPROVED -> REJECTED | CLOSED
    REJECTED -> APPROVED
    CLOSED   (terminal)

Asking for the status a job already has is a no-op apart from storing the
admin notes.
"""
from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from .. import crud, models, notifications
from ..config import settings
from ..errors import NotAuthorizedError, NotFoundError, ValidationError
from ..logging_config import get_logger
from ..models import JobStatus, Role, as_utc, utcnow
from ..schemas import JobCreate, JobUpdate
from .query import JobFilters, run_listing

logger = get_logger(__name__)

TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.PENDING: frozenset({JobStatus.APPROVED, JobStatus.REJECTED}),
    JobStatus.APPROVED: frozenset({JobStatus.REJECTED, JobStatus.CLOSED}),
    JobStatus.REJECTED: frozenset({JobStatus.APPROVED}),
    JobStatus.CLOSED: frozenset(),
}


def _check_salary(salary_min: float, salary_max: float) -> None:
    if salary_min > salary_max:
        raise ValidationError("Minimum salary cannot be greater than maximum salary")


def _check_deadline(deadline: datetime, now: datetime) -> None:
    if as_utc(deadline) <= now:
        raise ValidationError("Application deadline must be in the future")


def can_transition(current: JobStatus, target: JobStatus) -> bool:
    return current == target or target in TRANSITIONS[current]


def get_job(db: Session, job_id: int) -> models.Job:
    job = db.get(models.Job, job_id)
    if job is None:
        raise NotFoundError("Job not found")
    return job


def create_job(db: Session, employer: models.Account, data: JobCreate) -> models.Job:
    now = utcnow()
    deadline = data.application_deadline or now + timedelta(days=settings.DEFAULT_DEADLINE_DAYS)
    _check_salary(data.salary_range.min, data.salary_range.max)
    _check_deadline(deadline, now)

    company = crud.ensure_company(db, employer)
    job = models.Job(
        title=data.title.strip(),
        company_id=company.id,
        posted_by_id=employer.id,
        description=data.description,
        requirements=data.requirements,
        skills=data.skills,
        city=data.location.city.strip(),
        state=data.location.state,
        country=data.location.country,
        remote=data.location.remote,
        salary_min=data.salary_range.min,
        salary_max=data.salary_range.max,
        salary_currency=data.salary_range.currency.upper(),
        job_type=data.job_type,
        status=JobStatus.PENDING,
        application_deadline=as_utc(deadline),
        application_email=data.application_email,
    )
    db.add(job)
    db.commit()
    db.refresh(job)
    logger.info("Job %s created by account %s for company %s", job.id, employer.id, company.id)

    notifications.notify(
        notifications.send_job_post_notification, employer.email, employer.name, job.title, job.id
    )
    return job


def transition_status(
    db: Session, job_id: int, new_status: JobStatus, admin_notes: str | None = None
) -> models.Job:
    job = get_job(db, job_id)
    previous = job.status
    if not can_transition(previous, new_status):
        raise ValidationError(f"Cannot change job status from {previous.value} to {new_status.value}")

    job.status = new_status
    if admin_notes is not None:
        job.admin_notes = admin_notes
    db.commit()
    db.refresh(job)

    if previous == new_status:
        logger.info("Job %s already %s; notes updated", job.id, new_status.value)
        return job

    logger.info("Job %s moved %s -> %s", job.id, previous.value, new_status.value)
    if job.posted_by is not None:
        notifications.notify(
            notifications.send_job_status_notification,
            job.posted_by.email,
            job.posted_by.name,
            job.title,
            new_status.value,
            job.admin_notes,
        )
    return job


def list_for_employer(db: Session, employer: models.Account) -> tuple[list[models.Job], dict]:
    company = crud.ensure_company(db, employer)
    jobs = list(
        db.execute(
            select(models.Job)
            .where(models.Job.company_id == company.id)
            .order_by(models.Job.created_at.desc(), models.Job.id.desc())
        ).scalars()
    )

    by_status = {s.value: 0 for s in JobStatus}
    for job in jobs:
        by_status[job.status.value] += 1
    stats = {
        "totalJobs": len(jobs),
        "pendingJobs": by_status[JobStatus.PENDING.value],
        "activeJobs": by_status[JobStatus.APPROVED.value],
        "totalApplications": sum(len(job.applicant_ids) for job in jobs),
        "allStatuses": by_status,
    }
    return jobs, stats


def list_public(db: Session, filters: JobFilters) -> tuple[list[models.Job], int]:
    base = select(models.Job).where(models.Job.status == JobStatus.APPROVED)
    return run_listing(db, base, filters)


def list_for_admin(db: Session, filters: JobFilters) -> tuple[list[models.Job], int]:
    return run_listing(db, select(models.Job), filters)


def record_view(db: Session, job: models.Job) -> None:
    """Bump ``viewsCount``; a failed increment never fails the read."""
    try:
        db.execute(
            update(models.Job)
            .where(models.Job.id == job.id)
            .values(views_count=models.Job.views_count + 1)
        )
        db.commit()
        db.refresh(job)
    except Exception:
        db.rollback()
        logger.exception("Could not record view for job %s", job.id)


def track_application_click(db: Session, job_id: int) -> int:
    job = get_job(db, job_id)
    db.execute(
        update(models.Job)
        .where(models.Job.id == job.id)
        .values(application_click_count=models.Job.application_click_count + 1)
    )
    db.commit()
    db.refresh(job)
    return job.application_click_count


def _check_owner(db: Session, job: models.Job, principal, action: str) -> None:
    if principal.role == Role.ADMIN.value:
        return
    if principal.role == Role.EMPLOYER.value:
        account = crud.get_account_by_id(db, principal.user_id)
        if account is not None and (
            job.posted_by_id == account.id
            or (account.company_id is not None and job.company_id == account.company_id)
        ):
            return
    raise NotAuthorizedError(f"Not authorized to {action} this job")


def update_job(db: Session, job_id: int, principal, changes: JobUpdate) -> models.Job:
    job = get_job(db, job_id)
    _check_owner(db, job, principal, "update")
    data = changes.model_dump(exclude_unset=True, exclude={"salary_range", "location", "application_deadline"})

    salary = changes.salary_range
    if salary is not None:
        _check_salary(salary.min, salary.max)
        job.salary_min = salary.min
        job.salary_max = salary.max
        job.salary_currency = salary.currency.upper()

    if changes.application_deadline is not None:
        _check_deadline(changes.application_deadline, utcnow())
        job.application_deadline = as_utc(changes.application_deadline)

    location = changes.location
    if location is not None:
        job.city = location.city.strip()
        job.state = location.state
        job.country = location.country
        job.remote = location.remote

    for key, value in data.items():
        if value is None:
            continue
        setattr(job, key, value)

    db.commit()
    db.refresh(job)
    logger.info("Job %s updated by %s %s", job.id, principal.role, principal.user_id)
    return job


def delete_job(db: Session, job_id: int, principal) -> None:
    job = get_job(db, job_id)
    _check_owner(db, job, principal, "delete")
    db.delete(job)
    db.commit()
    logger.info("Job %s deleted by %s %s", job_id, principal.role, principal.user_id)

