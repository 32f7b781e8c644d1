from datetime import date
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApplicationCreate(BaseModel):
    # Clients send camelCase (coverLetter, resumeId, ...); snake_case is accepted too.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    cover_letter: str | None = None
    resume_id: str | None = None
    portfolio_url: str | None = None
    expected_salary: float | None = Field(None, ge=0)
    availability_date: date | None = None


class ApplicationUpdate(ApplicationCreate):
    pass


class ApplicationStatusChange(BaseModel):
    status: Literal["reviewed", "shortlisted", "rejected", "accepted"]


class ApplicationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    job_id: str
    status: str
    cover_letter: str | None
    resume_id: str | None
    portfolio_url: str | None
    expected_salary: float | None
    availability_date: str | None
    applied_at: str
    updated_at: str


class AppliedJobSummary(BaseModel):
    id: str
    title: str
    location: str | None
    employment_type: str | None
    status: str
    company_name: str | None
    applications_count: int


class AppliedJobResponse(ApplicationResponse):
    job: AppliedJobSummary


class AppliedJobListResponse(BaseModel):
    applications: list[AppliedJobResponse]
    total: int
    page: int
    per_page: int


class JobseekerStats(BaseModel):
    total_applications: int = 0
    pending_applications: int = 0
    reviewed_applications: int = 0
    shortlisted_applications: int = 0
    rejected_applications: int = 0
    accepted_applications: int = 0
    withdrawn_applications: int = 0
    total_saved_jobs: int = 0
    applications_this_month: int = 0


class JobApplicantResponse(ApplicationResponse):
    applicant_name: str
    applicant_email: str


class JobApplicantListResponse(BaseModel):
    applications: list[JobApplicantResponse]
    total: int
    page: int
    per_page: int
