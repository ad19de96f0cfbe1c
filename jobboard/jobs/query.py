"""
Search, filtering, sorting, pagination and field projection for job listings.

Listing endpoints share one set of query-string features:

- ``q`` matches title, description or skills (case-insensitive substring)
- ``jobType``, ``location``, ``remote``, ``minSalary``, ``maxSalary`` narrow the set
- ``sort`` is a comma list of camelCase fields, ``-`` prefix for descending
- ``page``/``limit`` paginate, ``fields`` trims each serialized job
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import Select, String, cast, func, or_, select

from .. import models
from ..errors import ValidationError

DEFAULT_SORT = "-createdAt"

SORTABLE = {
    "createdAt": models.Job.created_at,
    "updatedAt": models.Job.updated_at,
    "title": models.Job.title,
    "applicationDeadline": models.Job.application_deadline,
    "viewsCount": models.Job.views_count,
    "applicationClickCount": models.Job.application_click_count,
    "salaryRange.min": models.Job.salary_min,
    "salaryRange.max": models.Job.salary_max,
    "status": models.Job.status,
    "jobType": models.Job.job_type,
}


@dataclass
class JobFilters:
    q: Optional[str] = None
    job_type: Optional[models.JobType] = None
    location: Optional[str] = None
    remote: Optional[bool] = None
    min_salary: Optional[float] = None
    max_salary: Optional[float] = None
    status: Optional[models.JobStatus] = None
    page: int = 1
    limit: int = 10
    sort: Optional[str] = None
    fields: Optional[str] = None


def _like(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped.lower()}%"


def apply_filters(stmt: Select, filters: JobFilters) -> Select:
    Job = models.Job
    if filters.status is not None:
        stmt = stmt.where(Job.status == filters.status)
    if filters.q and filters.q.strip():
        pattern = _like(filters.q.strip())
        stmt = stmt.where(
            or_(
                func.lower(Job.title).like(pattern, escape="\\"),
                func.lower(Job.description).like(pattern, escape="\\"),
                func.lower(cast(Job.skills, String)).like(pattern, escape="\\"),
            )
        )
    if filters.job_type is not None:
        stmt = stmt.where(Job.job_type == filters.job_type)
    if filters.location and filters.location.strip():
        pattern = _like(filters.location.strip())
        stmt = stmt.where(
            or_(
                func.lower(Job.city).like(pattern, escape="\\"),
                func.lower(Job.state).like(pattern, escape="\\"),
                func.lower(Job.country).like(pattern, escape="\\"),
            )
        )
    if filters.remote is not None:
        stmt = stmt.where(Job.remote == filters.remote)
    # Salary bounds select ranges that overlap the requested window
    if filters.min_salary is not None:
        stmt = stmt.where(Job.salary_max >= filters.min_salary)
    if filters.max_salary is not None:
        stmt = stmt.where(Job.salary_min <= filters.max_salary)
    return stmt


def apply_sort(stmt: Select, sort: str | None) -> Select:
    order_by = []
    for raw in (sort or DEFAULT_SORT).split(","):
        key = raw.strip()
        if not key:
            continue
        descending = key.startswith("-")
        name = key.lstrip("-+")
        column = SORTABLE.get(name)
        if column is None:
            raise ValidationError(f"Cannot sort by '{name}'")
        order_by.append(column.desc() if descending else column.asc())
    # id keeps pages stable when sort keys tie
    order_by.append(models.Job.id.desc())
    return stmt.order_by(*order_by)


def paginate(stmt: Select, page: int, limit: int) -> Select:
    return stmt.offset((page - 1) * limit).limit(limit)


def count(db, stmt: Select) -> int:
    return db.execute(select(func.count()).select_from(stmt.order_by(None).subquery())).scalar_one()


def project_fields(item: dict, fields: str | None) -> dict:
    """Keep only the requested top-level keys (``id`` is always kept)."""
    if not fields:
        return item
    wanted = {f.strip() for f in fields.split(",") if f.strip()}
    if not wanted:
        return item
    wanted.add("id")
    return {k: v for k, v in item.items() if k in wanted}


def run_listing(db, base: Select, filters: JobFilters) -> tuple[list[models.Job], int]:
    """Apply every listing feature to ``base``; returns the page and the filtered total."""
    stmt = apply_filters(base, filters)
    total = count(db, stmt)
    stmt = paginate(apply_sort(stmt, filters.sort), filters.page, filters.limit)
    return list(db.execute(stmt).scalars().all()), total
