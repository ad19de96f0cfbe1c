from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.orm import Session

from .. import models, uploads
from ..auth import Principal, require_account, require_roles
from ..database import get_db
from ..errors import AppError, ValidationError
from ..jobs import applications, lifecycle
from ..jobs.query import JobFilters, project_fields
from ..models import JobStatus, JobType, Role
from ..schemas import (
    ApplicantApplicationOut,
    ApplicationOut,
    ApplicationStatusUpdate,
    EmployerApplicationOut,
    JobCreate,
    JobOut,
    JobStatusUpdate,
    JobUpdate,
)

router = APIRouter(prefix="/api/jobs", tags=["jobs"])

employer_account = require_account(Role.EMPLOYER)
jobseeker_account = require_account(Role.JOBSEEKER)


def job_filters(
    q: Optional[str] = Query(None, description="Search title, description and skills"),
    job_type: Optional[JobType] = Query(None, alias="jobType"),
    location: Optional[str] = Query(None),
    remote: Optional[bool] = Query(None),
    min_salary: Optional[float] = Query(None, alias="minSalary", ge=0),
    max_salary: Optional[float] = Query(None, alias="maxSalary", ge=0),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort: Optional[str] = Query(None, description="e.g. -createdAt,title"),
    fields: Optional[str] = Query(None, description="e.g. title,company,salaryRange"),
) -> JobFilters:
    return JobFilters(
        q=q,
        job_type=job_type,
        location=location,
        remote=remote,
        min_salary=min_salary,
        max_salary=max_salary,
        page=page,
        limit=limit,
        sort=sort,
        fields=fields,
    )


def _job(job: models.Job) -> dict:
    return JobOut.model_validate(job).dump()


def _listing(jobs: list[models.Job], total: int, filters: JobFilters) -> dict:
    return {
        "status": "success",
        "results": len(jobs),
        "total": total,
        "page": filters.page,
        "data": {"jobs": [project_fields(_job(j), filters.fields) for j in jobs]},
    }


@router.get("")
def list_jobs(filters: JobFilters = Depends(job_filters), db: Session = Depends(get_db)):
    """Approved jobs only."""
    jobs, total = lifecycle.list_public(db, filters)
    return _listing(jobs, total, filters)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_job(
    payload: JobCreate,
    db: Session = Depends(get_db),
    employer: models.Account = Depends(employer_account),
):
    job = lifecycle.create_job(db, employer, payload)
    return {"status": "success", "data": {"job": _job(job)}}


# Admin
@router.get("/admin/jobs")
def admin_list_jobs(
    status_filter: Optional[str] = Query(None, alias="status"),
    filters: JobFilters = Depends(job_filters),
    db: Session = Depends(get_db),
    _: Principal = Depends(require_roles(Role.ADMIN)),
):
    if status_filter and status_filter.strip().lower() != "all":
        try:
            filters.status = JobStatus(status_filter.strip().upper())
        except ValueError:
            raise ValidationError(f"Invalid job status: {status_filter}")
    jobs, total = lifecycle.list_for_admin(db, filters)
    return _listing(jobs, total, filters)


@router.patch("/admin/jobs/{job_id}/status")
def admin_update_job_status(
    job_id: int,
    payload: JobStatusUpdate,
    db: Session = Depends(get_db),
    _: Principal = Depends(require_roles(Role.ADMIN)),
):
    job = lifecycle.transition_status(db, job_id, payload.status, payload.admin_notes)
    return {"status": "success", "data": {"job": _job(job)}}


# Employer
@router.get("/employer/dashboard")
def employer_dashboard(db: Session = Depends(get_db), employer: models.Account = Depends(employer_account)):
    jobs, stats = lifecycle.list_for_employer(db, employer)
    return {"status": "success", "data": {"jobs": [_job(j) for j in jobs], "stats": stats}}


@router.get("/employer/applications")
def employer_applications(db: Session = Depends(get_db), employer: models.Account = Depends(employer_account)):
    rows = applications.list_for_employer(db, employer)
    return {
        "status": "success",
        "results": len(rows),
        "data": {"applications": [EmployerApplicationOut.model_validate(a).dump() for a in rows]},
    }


@router.patch("/employer/applications/{application_id}/status")
def employer_update_application(
    application_id: int,
    payload: ApplicationStatusUpdate,
    db: Session = Depends(get_db),
    employer: models.Account = Depends(employer_account),
):
    application = applications.update_status(
        db, application_id, employer, payload.status, payload.employer_notes
    )
    return {"status": "success", "data": {"application": ApplicationOut.model_validate(application).dump()}}


# Jobseeker
@router.get("/user/applications")
def my_applications(db: Session = Depends(get_db), applicant: models.Account = Depends(jobseeker_account)):
    rows = applications.list_for_applicant(db, applicant)
    return {
        "status": "success",
        "results": len(rows),
        "data": {"applications": [ApplicantApplicationOut.model_validate(a).dump() for a in rows]},
    }


@router.get("/user/applications/{job_id}")
def my_application(
    job_id: int, db: Session = Depends(get_db), applicant: models.Account = Depends(jobseeker_account)
):
    application = applications.get_for_applicant(db, job_id, applicant)
    return {"status": "success", "data": {"application": ApplicantApplicationOut.model_validate(application).dump()}}


@router.delete("/user/applications/{job_id}")
def withdraw_application(
    job_id: int, db: Session = Depends(get_db), applicant: models.Account = Depends(jobseeker_account)
):
    applications.withdraw(db, job_id, applicant)
    return {"status": "success", "message": "Application withdrawn successfully"}


# Single job
@router.post("/{job_id}/apply", status_code=status.HTTP_201_CREATED)
def apply_for_job(
    job_id: int,
    resume: Optional[UploadFile] = File(None),
    cover_letter: Optional[str] = Form(None, alias="coverLetter"),
    db: Session = Depends(get_db),
    applicant: models.Account = Depends(jobseeker_account),
):
    # Reject before anything is written to disk
    applications.ensure_can_apply(db, job_id, applicant)
    resume_path = uploads.save_resume(resume) if resume is not None and resume.filename else None
    try:
        application = applications.apply(db, job_id, applicant, resume_path, cover_letter)
    except AppError:
        if resume_path is not None:
            uploads.discard_resume(resume_path)
        raise
    return {
        "status": "success",
        "message": "Application submitted successfully",
        "data": {"application": ApplicationOut.model_validate(application).dump()},
    }


@router.post("/{job_id}/track-click")
def track_click(job_id: int, db: Session = Depends(get_db)):
    clicks = lifecycle.track_application_click(db, job_id)
    return {"status": "success", "data": {"applicationClickCount": clicks}}


@router.get("/{job_id}")
def get_job(job_id: int, db: Session = Depends(get_db)):
    job = lifecycle.get_job(db, job_id)
    lifecycle.record_view(db, job)
    return {"status": "success", "data": {"job": _job(job)}}


@router.patch("/{job_id}")
def update_job(
    job_id: int,
    payload: JobUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_roles(Role.ADMIN, Role.EMPLOYER)),
):
    job = lifecycle.update_job(db, job_id, principal, payload)
    return {"status": "success", "data": {"job": _job(job)}}


@router.delete("/{job_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_job(
    job_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_roles(Role.ADMIN, Role.EMPLOYER)),
):
    lifecycle.delete_job(db, job_id, principal)
    return None
