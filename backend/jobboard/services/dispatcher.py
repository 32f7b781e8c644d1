import logging
import uuid
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Callable

from pydantic import BaseModel
from sqlalchemy.orm import sessionmaker

from jobboard.config import settings
from jobboard.errors import (
    NotificationRoleError,
    RecipientNotFoundError,
    UnknownNotificationTypeError,
)
from jobboard.models.employer import Employer
from jobboard.models.notification import Notification
from jobboard.models.user import User
from jobboard.schemas.notification import (
    ApplicationReceivedPayload,
    ApplicationStatusPayload,
    NewJobPayload,
    SavedJobPayload,
    payload_adapter,
)
from jobboard.services.audience import AudienceResolver
from jobboard.services.notification_store import NotificationStore
from jobboard.services.notification_types import (
    RECIPIENT_ROLES,
    SAVED_JOB_NOTIFICATIONS,
    STATUS_NOTIFICATIONS,
    notification_title,
)
from jobboard.utils.timestamps import utc_now

logger = logging.getLogger(__name__)


@dataclass
class BroadcastReport:
    sent: int = 0
    failed: int = 0
    failures: dict[str, str] = field(default_factory=dict)

    def merge(self, other: "BroadcastReport") -> None:
        self.sent += other.sent
        self.failed += other.failed
        self.failures.update(other.failures)


def run_side_effect(func: Callable[..., Any], *args, **kwargs) -> None:
    """Run a best-effort side effect; failures are logged and never propagated."""
    try:
        func(*args, **kwargs)
    except Exception:
        logger.exception("Side effect %s failed", getattr(func, "__name__", func))


class NotificationDispatcher:
    """Validates recipients and writes notifications.

    Each write uses its own session from ``session_factory``, so a dispatch
    never joins the transaction of the operation that triggered it. Errors
    are raised to the caller; broadcast helpers collect them per recipient.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        audience: AudienceResolver,
        max_workers: int | None = None,
    ):
        self._session_factory = session_factory
        self.audience = audience
        self.max_workers = max_workers or settings.broadcast_max_workers

    def create_notification(
        self,
        user_id: str,
        notification_type: str,
        message: str,
        payload: BaseModel | dict,
    ) -> str:
        expected_role = RECIPIENT_ROLES.get(notification_type)
        if expected_role is None:
            raise UnknownNotificationTypeError(notification_type)

        data = payload.model_dump() if isinstance(payload, BaseModel) else dict(payload)
        data.setdefault("type", notification_type)
        if data["type"] != notification_type:
            raise ValueError(
                f"Payload type {data['type']!r} does not match notification type {notification_type!r}"
            )
        typed_payload = payload_adapter.validate_python(data)

        with self._session_factory() as db:
            user = db.query(User).filter(User.id == user_id).first()
            if not user:
                raise RecipientNotFoundError(user_id)
            if user.user_type != expected_role:
                raise NotificationRoleError(notification_type, expected_role, user.user_type)

            notification_id = str(uuid.uuid4())
            notification = Notification(
                id=notification_id,
                user_id=user_id,
                type=notification_type,
                title=notification_title(notification_type, message),
                message=message,
                metadata_json=typed_payload.model_dump_json(),
                related_id=typed_payload.job_id,
                read=False,
                created_at=utc_now(),
            )
            NotificationStore(db).add(notification)
            db.commit()

        logger.debug("Stored %s notification %s for user %s", notification_type, notification_id, user_id)
        return notification_id

    def notify_employer_about_application(
        self,
        employer_id: str,
        job_id: str,
        job_title: str,
        applicant_name: str,
        application_id: str,
    ) -> str:
        # jobs reference employers.id; the recipient is the employer's user account
        with self._session_factory() as db:
            employer_user_id = (
                db.query(Employer.user_id)
                .join(User, User.id == Employer.user_id)
                .filter(Employer.id == employer_id)
                .scalar()
            )
        if not employer_user_id:
            raise RecipientNotFoundError(f"employer:{employer_id}")

        payload = ApplicationReceivedPayload(
            job_id=job_id,
            job_title=job_title,
            application_id=application_id,
            applicant_name=applicant_name,
            action_url=f"/employer/applications?jobId={job_id}&applicationId={application_id}",
        )
        message = f'{applicant_name} has applied for "{job_title}". Review their application now!'
        return self.create_notification(employer_user_id, payload.type, message, payload)

    def notify_jobseeker_about_application_status(
        self,
        jobseeker_id: str,
        job_id: str,
        job_title: str,
        status: str,
        application_id: str,
        company_name: str | None = None,
    ) -> str:
        notification_type, template = STATUS_NOTIFICATIONS.get(
            status, ("application_reviewed", "Application status updated for {job_title}")
        )
        message = template.format(job_title=job_title, company=company_name or "the company")
        payload = ApplicationStatusPayload(
            type=notification_type,
            job_id=job_id,
            job_title=job_title,
            application_id=application_id,
            status=status,
            company_name=company_name,
        )
        return self.create_notification(jobseeker_id, notification_type, message, payload)

    def notify_jobseekers_about_new_job(
        self,
        job_id: str,
        job_title: str,
        company_name: str | None,
        skills: list[str],
        location: str | None,
        employment_type: str | None,
    ) -> BroadcastReport:
        payload = NewJobPayload(
            job_id=job_id,
            job_title=job_title,
            company_name=company_name,
            location=location,
            employment_type=employment_type,
        )
        message = f"New job opportunity: {job_title} at {company_name or 'a company'}"

        report = BroadcastReport()
        for batch in self.audience.new_job_batches(skills, location, employment_type):
            report.merge(self.dispatch_to_recipients(batch, payload.type, message, payload))
        logger.info(
            "New job %s broadcast: %d notified, %d failed", job_id, report.sent, report.failed
        )
        return report

    def notify_jobseekers_saved_job(
        self,
        job_id: str,
        job_title: str,
        update_type: str,
        recipients: list[str] | None = None,
    ) -> BroadcastReport:
        """Notify everyone who bookmarked the job.

        Pass ``recipients`` when the bookmarks will be gone by the time this
        runs (job deletion); otherwise the audience is resolved here.
        """
        if update_type not in SAVED_JOB_NOTIFICATIONS:
            raise ValueError(f"Unknown saved-job update: {update_type!r}")
        notification_type, template = SAVED_JOB_NOTIFICATIONS[update_type]
        payload = SavedJobPayload(
            type=notification_type, job_id=job_id, job_title=job_title, action=update_type
        )
        message = template.format(job_title=job_title)

        if recipients is not None:
            batches = [recipients[i:i + self.audience.batch_size]
                       for i in range(0, len(recipients), self.audience.batch_size)]
        else:
            batches = self.audience.saved_job_batches(job_id)

        report = BroadcastReport()
        for batch in batches:
            report.merge(self.dispatch_to_recipients(batch, notification_type, message, payload))
        logger.info(
            "Saved job %s %s broadcast: %d notified, %d failed",
            job_id, update_type, report.sent, report.failed,
        )
        return report

    def dispatch_to_recipients(
        self,
        recipient_ids: list[str],
        notification_type: str,
        message: str,
        payload: BaseModel | dict,
    ) -> BroadcastReport:
        """Write one notification per recipient concurrently; one failure never stops the rest."""
        report = BroadcastReport()
        if not recipient_ids:
            return report

        workers = min(self.max_workers, len(recipient_ids))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = {
                pool.submit(self.create_notification, user_id, notification_type, message, payload): user_id
                for user_id in recipient_ids
            }
            for future in as_completed(futures):
                user_id = futures[future]
                try:
                    future.result()
                except Exception as exc:
                    report.failed += 1
                    report.failures[user_id] = str(exc)
                    logger.warning("Failed to notify %s (%s): %s", user_id, notification_type, exc)
                else:
                    report.sent += 1
        return report
