"""Notification payloads.

The ``metadata`` column stores one of the payload variants below, selected by
its ``type`` field. Every variant carries ``job_id`` so clients can deep-link
without a second query.
"""
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from jobboard.schemas.common import Pagination


class ApplicationReceivedPayload(BaseModel):
    type: Literal["application_received"] = "application_received"
    job_id: str
    job_title: str
    application_id: str
    applicant_name: str
    action: Literal["new_application"] = "new_application"
    action_url: str | None = None


class ApplicationStatusPayload(BaseModel):
    type: Literal[
        "application_reviewed",
        "application_shortlisted",
        "application_rejected",
        "application_accepted",
    ]
    job_id: str
    job_title: str
    application_id: str
    status: str
    company_name: str | None = None
    action: Literal["status_change"] = "status_change"


class InterviewScheduledPayload(BaseModel):
    type: Literal["interview_scheduled"] = "interview_scheduled"
    job_id: str
    job_title: str
    application_id: str
    scheduled_at: str | None = None


class NewJobPayload(BaseModel):
    type: Literal["new_job"] = "new_job"
    job_id: str
    job_title: str
    company_name: str | None = None
    location: str | None = None
    employment_type: str | None = None


class SavedJobPayload(BaseModel):
    type: Literal["job_updated", "job_deleted", "job_closed", "job_filled"]
    job_id: str
    job_title: str
    action: Literal["updated", "deleted", "closed", "filled"]


NotificationPayload = Annotated[
    Union[
        ApplicationReceivedPayload,
        ApplicationStatusPayload,
        InterviewScheduledPayload,
        NewJobPayload,
        SavedJobPayload,
    ],
    Field(discriminator="type"),
]

payload_adapter: TypeAdapter[NotificationPayload] = TypeAdapter(NotificationPayload)


class NotificationResponse(BaseModel):
    id: str
    user_id: str
    type: str
    title: str
    message: str
    metadata: dict[str, Any]
    related_id: str | None
    read: bool
    created_at: str


class NotificationListData(BaseModel):
    notifications: list[NotificationResponse]
    pagination: Pagination


class UnreadCount(BaseModel):
    unread_count: int
