from datetime import datetime
from typing import Annotated, Optional

from pydantic import (
    AliasGenerator,
    AfterValidator,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    computed_field,
    field_validator,
)
from pydantic.alias_generators import to_camel

from .models import ApplicationStatus, JobStatus, JobType, Role, as_utc

# SQLite drops tzinfo; responses always carry UTC offsets
UTCDateTime = Annotated[datetime, AfterValidator(as_utc)]

# Request bodies arrive camelCased from the SPA; snake_case is accepted too.
class RequestModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

# Responses are read from ORM attributes and dumped camelCased.
class ResponseModel(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=AliasGenerator(serialization_alias=to_camel),
    )

    def dump(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


def _strip_items(values: list[str]) -> list[str]:
    return [v.strip() for v in values if v and v.strip()]

# Auth
class RegisterRequest(RequestModel):
    name: str = Field(min_length=2, max_length=50)
    email: EmailStr
    password: str = Field(min_length=8)
    role: Role
    company_name: Optional[str] = Field(None, max_length=100)

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("role", mode="before")
    @classmethod
    def _public_roles_only(cls, v):
        value = v.strip().lower() if isinstance(v, str) else v
        if value not in (Role.EMPLOYER.value, Role.JOBSEEKER.value):
            raise ValueError("Invalid role")
        return value

class LoginRequest(RequestModel):
    email: EmailStr
    password: str = Field(min_length=1)
    role: Optional[Role] = None

    @field_validator("role", mode="before")
    @classmethod
    def _lower_role(cls, v):
        if isinstance(v, str):
            return v.strip().lower() or None
        return v

class RefreshTokenRequest(RequestModel):
    refresh_token: str = Field(min_length=1)

class LogoutRequest(RequestModel):
    refresh_token: Optional[str] = None

class ForgotPasswordRequest(RequestModel):
    email: EmailStr

class ResetPasswordRequest(RequestModel):
    token: str = Field(min_length=1)
    password: str = Field(min_length=8)

class VerifyEmailRequest(RequestModel):
    token: str = Field(min_length=1)

class AccountOut(ResponseModel):
    id: int
    name: str
    email: str
    role: Role
    email_verified: bool
    company: Optional[int] = Field(None, validation_alias="company_id")
    applied_jobs: list[int] = Field(default_factory=list, validation_alias="applied_job_ids")
    created_at: UTCDateTime

# Companies
class CompanyLocationOut(ResponseModel):
    street: str = ""
    city: str
    state: str
    country: str

class CompanyOut(ResponseModel):
    id: int
    name: str
    description: str
    logo: str
    location: CompanyLocationOut
    industry: str
    website: str
    verified: bool
    created_at: UTCDateTime
    updated_at: UTCDateTime

class CompanySummary(ResponseModel):
    id: int
    name: str
    logo: str
    industry: str
    website: str
    location: CompanyLocationOut

class CompanyLocationUpdate(RequestModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None

class CompanyUpdate(RequestModel):
    name: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=2000)
    industry: Optional[str] = None
    website: Optional[str] = None
    location: Optional[CompanyLocationUpdate] = None

# Jobs
class LocationIn(RequestModel):
    city: str = Field(min_length=1)
    state: Optional[str] = None
    country: Optional[str] = None
    remote: bool = False

class SalaryRangeIn(RequestModel):
    min: float = Field(ge=0)
    max: float = Field(ge=0)
    currency: str = Field("USD", min_length=3, max_length=8)

class JobCreate(RequestModel):
    # ``status`` and other unknown keys are ignored; new jobs always start PENDING
    title: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=5000)
    requirements: list[str] = Field(default_factory=list)
    location: LocationIn
    salary_range: SalaryRangeIn
    job_type: JobType
    application_deadline: Optional[datetime] = None
    application_email: Optional[EmailStr] = None
    skills: list[str] = Field(default_factory=list)

    @field_validator("location", mode="before")
    @classmethod
    def _location_from_string(cls, v):
        # The posting form used to send a bare city name
        if isinstance(v, str):
            return {"city": v}
        return v

    @field_validator("requirements", "skills")
    @classmethod
    def _trim(cls, v):
        return _strip_items(v)

class JobUpdate(RequestModel):
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=5000)
    requirements: Optional[list[str]] = None
    location: Optional[LocationIn] = None
    salary_range: Optional[SalaryRangeIn] = None
    job_type: Optional[JobType] = None
    application_deadline: Optional[datetime] = None
    application_email: Optional[EmailStr] = None
    skills: Optional[list[str]] = None

    @field_validator("location", mode="before")
    @classmethod
    def _location_from_string(cls, v):
        if isinstance(v, str):
            return {"city": v}
        return v

    @field_validator("requirements", "skills")
    @classmethod
    def _trim(cls, v):
        return _strip_items(v) if v is not None else v

class JobStatusUpdate(RequestModel):
    status: JobStatus
    admin_notes: Optional[str] = None

class LocationOut(ResponseModel):
    city: str
    state: Optional[str] = None
    country: Optional[str] = None
    remote: bool = False

class SalaryRangeOut(ResponseModel):
    min: float
    max: float
    currency: str

class JobOut(ResponseModel):
    id: int
    title: str
    company: CompanySummary
    posted_by: Optional[int] = Field(None, validation_alias="posted_by_id")
    description: str
    requirements: list[str]
    location: LocationOut
    salary_range: SalaryRangeOut
    job_type: JobType
    status: JobStatus
    admin_notes: Optional[str] = None
    application_deadline: UTCDateTime
    application_email: Optional[str] = None
    skills: list[str]
    views_count: int
    application_click_count: int
    applications: list[int] = Field(default_factory=list, validation_alias="applicant_ids")
    created_at: UTCDateTime
    updated_at: UTCDateTime

    @computed_field(alias="applicationCount")
    @property
    def application_count(self) -> int:
        return len(self.applications)

# Applications
class ApplicationStatusUpdate(RequestModel):
    status: ApplicationStatus
    employer_notes: Optional[str] = None

class ApplicationOut(ResponseModel):
    id: int
    job: int = Field(validation_alias="job_id")
    applicant: int = Field(validation_alias="applicant_id")
    resume: str
    cover_letter: str
    status: ApplicationStatus
    employer_notes: Optional[str] = None
    created_at: UTCDateTime
    updated_at: UTCDateTime

class ApplicantSummary(ResponseModel):
    id: int
    name: str
    email: str

class JobSummary(ResponseModel):
    id: int
    title: str
    status: JobStatus

class EmployerApplicationOut(ResponseModel):
    id: int
    job: JobSummary
    applicant: ApplicantSummary
    resume: str
    cover_letter: str
    status: ApplicationStatus
    employer_notes: Optional[str] = None
    created_at: UTCDateTime
    updated_at: UTCDateTime

class ApplicantApplicationOut(ResponseModel):
    id: int
    job: JobOut
    status: ApplicationStatus
    resume: str
    cover_letter: str
    created_at: UTCDateTime
    updated_at: UTCDateTime
