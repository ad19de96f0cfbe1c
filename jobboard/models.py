# jobboard/models.py
from __future__ import annotations
import enum
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; treat them (and naive input) as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class Role(str, enum.Enum):
    ADMIN = "admin"
    EMPLOYER = "employer"
    JOBSEEKER = "jobseeker"


class JobType(str, enum.Enum):
    FULL_TIME = "FULL_TIME"
    PART_TIME = "PART_TIME"
    VOLUNTEERING = "VOLUNTEERING"
    INTERNSHIP = "INTERNSHIP"
    TEMPORARY = "TEMPORARY"


class JobStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CLOSED = "CLOSED"


class ApplicationStatus(str, enum.Enum):
    PENDING = "PENDING"
    REVIEWING = "REVIEWING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    WITHDRAWN = "WITHDRAWN"


def _enum_column(enum_cls):
    # Stored as plain strings so SQLite and PostgreSQL agree on the values
    return Enum(
        enum_cls,
        native_enum=False,
        length=16,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


class Company(Base):
    __tablename__ = "companies"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    logo: Mapped[str] = mapped_column(String(512), nullable=False, default="default-company-logo.png")
    street: Mapped[str] = mapped_column(String(256), nullable=False, default="")
    city: Mapped[str] = mapped_column(String(128), nullable=False)
    state: Mapped[str] = mapped_column(String(128), nullable=False)
    country: Mapped[str] = mapped_column(String(128), nullable=False)
    industry: Mapped[str] = mapped_column(String(128), nullable=False)
    website: Mapped[str] = mapped_column(String(2048), nullable=False)
    verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    jobs: Mapped[list["Job"]] = relationship(back_populates="company", cascade="all, delete-orphan")

    @property
    def location(self) -> dict:
        return {"street": self.street, "city": self.city, "state": self.state, "country": self.country}


class Account(Base):
    """Every user, whatever the role; ``role`` is the discriminant."""

    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    # RFC 5321 cap is 320 chars; unique + indexed for login lookups
    email: Mapped[str] = mapped_column(String(320), unique=True, index=True, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[Role] = mapped_column(_enum_column(Role), index=True, nullable=False)
    email_verified: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    company_id: Mapped[int | None] = mapped_column(
        ForeignKey("companies.id", ondelete="SET NULL"), nullable=True
    )
    resume: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    company: Mapped[Company | None] = relationship()
    applications: Mapped[list["Application"]] = relationship(
        back_populates="applicant", cascade="all, delete-orphan"
    )

    @property
    def applied_job_ids(self) -> list[int]:
        return [
            a.job_id for a in self.applications if a.status != ApplicationStatus.WITHDRAWN
        ]


class Job(Base):
    __tablename__ = "jobs"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    company_id: Mapped[int] = mapped_column(
        ForeignKey("companies.id", ondelete="CASCADE"), index=True, nullable=False
    )
    posted_by_id: Mapped[int | None] = mapped_column(
        ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)
    requirements: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    skills: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    city: Mapped[str] = mapped_column(String(128), nullable=False)
    state: Mapped[str | None] = mapped_column(String(128), nullable=True)
    country: Mapped[str | None] = mapped_column(String(128), nullable=True)
    remote: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    salary_min: Mapped[float] = mapped_column(Float, nullable=False)
    salary_max: Mapped[float] = mapped_column(Float, nullable=False)
    salary_currency: Mapped[str] = mapped_column(String(8), default="USD", nullable=False)
    job_type: Mapped[JobType] = mapped_column(_enum_column(JobType), index=True, nullable=False)
    status: Mapped[JobStatus] = mapped_column(
        _enum_column(JobStatus), index=True, default=JobStatus.PENDING, nullable=False
    )
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    application_deadline: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True, nullable=False)
    application_email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    views_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    application_click_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    company: Mapped[Company] = relationship(back_populates="jobs")
    posted_by: Mapped[Account | None] = relationship()
    applications: Mapped[list["Application"]] = relationship(
        back_populates="job", cascade="all, delete-orphan"
    )

    @property
    def location(self) -> dict:
        return {"city": self.city, "state": self.state, "country": self.country, "remote": self.remote}

    @property
    def salary_range(self) -> dict:
        return {"min": self.salary_min, "max": self.salary_max, "currency": self.salary_currency}

    @property
    def applicant_ids(self) -> list[int]:
        return [
            a.applicant_id for a in self.applications if a.status != ApplicationStatus.WITHDRAWN
        ]


class Application(Base):
    __tablename__ = "applications"
    __table_args__ = (UniqueConstraint("job_id", "applicant_id", name="uq_applications_job_applicant"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    job_id: Mapped[int] = mapped_column(ForeignKey("jobs.id", ondelete="CASCADE"), index=True, nullable=False)
    applicant_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"), index=True, nullable=False
    )
    resume: Mapped[str] = mapped_column(String(1024), nullable=False)
    cover_letter: Mapped[str] = mapped_column(Text, default="", nullable=False)
    status: Mapped[ApplicationStatus] = mapped_column(
        _enum_column(ApplicationStatus), index=True, default=ApplicationStatus.PENDING, nullable=False
    )
    employer_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    job: Mapped[Job] = relationship(back_populates="applications")
    applicant: Mapped[Account] = relationship(back_populates="applications")


Index("ix_jobs_salary_range", Job.salary_min, Job.salary_max)
