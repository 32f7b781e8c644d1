from typing import Literal

from pydantic import BaseModel, Field


class JobCreate(BaseModel):
    title: str = Field(min_length=1)
    description: str | None = None
    location: str | None = None
    employment_type: str | None = None
    skills_required: list[str] = []
    status: Literal["draft", "open"] = "open"


class JobUpdate(BaseModel):
    title: str | None = Field(None, min_length=1)
    description: str | None = None
    location: str | None = None
    employment_type: str | None = None
    skills_required: list[str] | None = None
    status: Literal["draft", "open", "closed", "filled"] | None = None


class JobResponse(BaseModel):
    id: str
    employer_id: str
    company_id: str | None
    company_name: str | None
    title: str
    description: str | None
    location: str | None
    employment_type: str | None
    skills_required: list[str]
    status: str
    applications_count: int
    created_at: str
    updated_at: str
    # Relative to the calling user.
    is_saved: bool = False
    has_applied: bool = False
    application_status: str | None = None


class BookmarkResponse(BaseModel):
    id: str
    job_id: str
    saved_at: str
    job: JobResponse


class BookmarkListResponse(BaseModel):
    bookmarks: list[BookmarkResponse]
    total: int
    page: int
    per_page: int


class JobListResponse(BaseModel):
    jobs: list[JobResponse]
    total: int
    page: int
    per_page: int
