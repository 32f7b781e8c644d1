"""Job application orchestrator.

Every mutation that moves ``jobs.applications_count`` does so in the same
transaction as the application row change, using a single atomic
``UPDATE ... SET applications_count = applications_count +/- 1``.
Notifications are scheduled only after commit and run in their own
sessions, so a dispatch failure can never undo a committed application.
"""
import logging
import uuid
from typing import Any, Callable

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from jobboard.config import settings
from jobboard.errors import CounterConsistencyError
from jobboard.models.application import JobApplication
from jobboard.models.bookmark import JobBookmark
from jobboard.models.employer import Company, Employer
from jobboard.models.job import ACCEPTING_STATUSES, Job
from jobboard.models.user import Resume, User, UserProfile
from jobboard.schemas.application import (
    ApplicationCreate,
    ApplicationResponse,
    ApplicationUpdate,
    AppliedJobResponse,
    AppliedJobSummary,
    JobApplicantListResponse,
    JobApplicantResponse,
    JobseekerStats,
)
from jobboard.services import application_states as states
from jobboard.services.dispatcher import NotificationDispatcher, run_side_effect
from jobboard.services.profile_completion import compute_profile_completion
from jobboard.services.results import CONFLICT, FORBIDDEN, INVALID, NOT_FOUND, ServiceResult
from jobboard.utils.timestamps import month_start, utc_now

logger = logging.getLogger(__name__)

Scheduler = Callable[..., Any]


def _run_now(func: Callable[..., Any], *args, **kwargs) -> None:
    func(*args, **kwargs)


class ApplicationService:
    def __init__(
        self,
        db: Session,
        dispatcher: NotificationDispatcher,
        schedule: Scheduler | None = None,
        min_completion: float | None = None,
    ):
        self.db = db
        self.dispatcher = dispatcher
        # Post-commit work goes through ``schedule`` (FastAPI BackgroundTasks.add_task in requests).
        self._schedule = schedule or _run_now
        self.min_completion = (
            settings.min_profile_completion if min_completion is None else min_completion
        )

    def _fail(self, reason: str, message: str) -> ServiceResult:
        self.db.rollback()
        return ServiceResult.fail(reason, message)

    # ------------------------------------------------------------------
    # Applicant operations
    # ------------------------------------------------------------------

    def apply(self, user_id: str, job_id: str, data: ApplicationCreate) -> ServiceResult:
        db = self.db
        try:
            job = (
                db.query(Job)
                .filter(Job.id == job_id, Job.status.in_(ACCEPTING_STATUSES))
                .first()
            )
            if not job:
                return self._fail(NOT_FOUND, "Job not found or not accepting applications")

            applicant = db.query(User).filter(User.id == user_id).first()
            profile = db.query(UserProfile).filter(UserProfile.user_id == user_id).first()
            if not applicant or not profile:
                return self._fail(NOT_FOUND, "Profile not found. Create your profile before applying")

            completion = compute_profile_completion(applicant, profile, self.min_completion)
            if not completion.meets_threshold:
                return self._fail(
                    INVALID,
                    f"Your profile is {completion.completion:g}% complete. "
                    f"At least {self.min_completion:g}% is required to apply. "
                    f"To continue: {'; '.join(completion.recommendations)}.",
                )

            existing = (
                db.query(JobApplication.id)
                .filter(
                    JobApplication.user_id == user_id,
                    JobApplication.job_id == job_id,
                    JobApplication.status.not_in(states.INACTIVE_STATUSES),
                )
                .first()
            )
            if existing:
                return self._fail(CONFLICT, "You have already applied to this job")

            # A withdrawn or cancelled attempt is replaced, not revived.
            db.query(JobApplication).filter(
                JobApplication.user_id == user_id,
                JobApplication.job_id == job_id,
                JobApplication.status.in_(states.INACTIVE_STATUSES),
            ).delete(synchronize_session=False)

            if data.resume_id and not self._resume_belongs_to(data.resume_id, user_id):
                return self._fail(INVALID, "Invalid resume ID")

            now = utc_now()
            application_id = str(uuid.uuid4())
            db.add(
                JobApplication(
                    id=application_id,
                    user_id=user_id,
                    job_id=job_id,
                    status=states.PENDING,
                    cover_letter=data.cover_letter,
                    resume_id=data.resume_id,
                    portfolio_url=data.portfolio_url,
                    expected_salary=data.expected_salary,
                    availability_date=data.availability_date.isoformat() if data.availability_date else None,
                    applied_at=now,
                    updated_at=now,
                )
            )
            db.flush()
            self._move_counter(job_id, +1)

            employer_id = job.employer_id
            job_title = job.title
            applicant_name = applicant.full_name
            db.commit()
        except IntegrityError:
            # Lost a race with a concurrent apply for the same pair (partial unique index).
            db.rollback()
            logger.info("Duplicate application by %s for job %s rejected by index", user_id, job_id)
            return ServiceResult.fail(CONFLICT, "You have already applied to this job")
        except Exception:
            db.rollback()
            raise

        application = db.query(JobApplication).filter(JobApplication.id == application_id).one()
        logger.info("User %s applied to job %s (application %s)", user_id, job_id, application_id)

        self._schedule(
            run_side_effect,
            self.dispatcher.notify_employer_about_application,
            employer_id,
            job_id,
            job_title,
            applicant_name,
            application_id,
        )
        return ServiceResult.ok(ApplicationResponse.model_validate(application))

    def withdraw(self, user_id: str, application_id: str) -> ServiceResult:
        application = (
            self.db.query(JobApplication)
            .filter(JobApplication.id == application_id, JobApplication.user_id == user_id)
            .first()
        )
        if not application:
            return self._fail(NOT_FOUND, "Application not found")
        return self._withdraw(application)

    def withdraw_by_job(self, user_id: str, job_id: str) -> ServiceResult:
        applications = (
            self.db.query(JobApplication)
            .filter(JobApplication.user_id == user_id, JobApplication.job_id == job_id)
            .order_by(JobApplication.applied_at.desc())
            .all()
        )
        if not applications:
            return self._fail(NOT_FOUND, "No application found for this job")
        active = next((a for a in applications if states.is_active(a.status)), None)
        return self._withdraw(active or applications[0])

    def _withdraw(self, application: JobApplication) -> ServiceResult:
        db = self.db
        blocker = states.withdraw_blocker(application.status)
        if blocker:
            return self._fail(CONFLICT, blocker)

        try:
            # Conditional on the status we validated, so two concurrent withdraws move the counter once.
            updated = (
                db.query(JobApplication)
                .filter(
                    JobApplication.id == application.id,
                    JobApplication.status == application.status,
                )
                .update(
                    {JobApplication.status: states.WITHDRAWN, JobApplication.updated_at: utc_now()},
                    synchronize_session=False,
                )
            )
            if updated == 0:
                return self._fail(CONFLICT, "Application already withdrawn")
            self._move_counter(application.job_id, -1)
            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(application)
        logger.info("Application %s withdrawn", application.id)
        return ServiceResult.ok(
            ApplicationResponse.model_validate(application),
            message="Application withdrawn successfully",
        )

    def update_application(
        self, user_id: str, application_id: str, data: ApplicationUpdate
    ) -> ServiceResult:
        db = self.db
        application = (
            db.query(JobApplication)
            .filter(JobApplication.id == application_id, JobApplication.user_id == user_id)
            .first()
        )
        if not application:
            return self._fail(NOT_FOUND, "Application not found")

        blocker = states.update_blocker(application.status)
        if blocker:
            return self._fail(CONFLICT, blocker)

        update_data = data.model_dump(exclude_unset=True)
        if not update_data:
            return self._fail(INVALID, "No valid fields to update")
        if update_data.get("resume_id") and not self._resume_belongs_to(update_data["resume_id"], user_id):
            return self._fail(INVALID, "Invalid resume ID")
        if update_data.get("availability_date") is not None:
            update_data["availability_date"] = update_data["availability_date"].isoformat()

        for key, value in update_data.items():
            setattr(application, key, value)
        application.updated_at = utc_now()
        db.commit()
        db.refresh(application)
        return ServiceResult.ok(ApplicationResponse.model_validate(application))

    def get_application_status(self, user_id: str, job_id: str) -> ApplicationResponse | None:
        application = (
            self.db.query(JobApplication)
            .filter(JobApplication.user_id == user_id, JobApplication.job_id == job_id)
            .order_by(JobApplication.applied_at.desc())
            .first()
        )
        return ApplicationResponse.model_validate(application) if application else None

    def get_applied_jobs(
        self, user_id: str, page: int = 1, limit: int = 10, status: str | None = None
    ) -> tuple[list[AppliedJobResponse], int]:
        query = (
            self.db.query(JobApplication, Job, Company.name.label("company_name"))
            .join(Job, Job.id == JobApplication.job_id)
            .outerjoin(Company, Company.id == Job.company_id)
            .filter(JobApplication.user_id == user_id)
        )
        if status:
            query = query.filter(JobApplication.status == status)

        total = query.count()
        rows = (
            query.order_by(JobApplication.applied_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        items = [
            AppliedJobResponse(
                **ApplicationResponse.model_validate(application).model_dump(),
                job=AppliedJobSummary(
                    id=job.id,
                    title=job.title,
                    location=job.location,
                    employment_type=job.employment_type,
                    status=job.status,
                    company_name=company_name,
                    applications_count=job.applications_count,
                ),
            )
            for application, job, company_name in rows
        ]
        return items, total

    def get_stats(self, user_id: str) -> JobseekerStats:
        by_status = dict(
            self.db.query(JobApplication.status, func.count(JobApplication.id))
            .filter(JobApplication.user_id == user_id)
            .group_by(JobApplication.status)
            .all()
        )
        saved = (
            self.db.query(func.count(JobBookmark.id)).filter(JobBookmark.user_id == user_id).scalar()
        )
        this_month = (
            self.db.query(func.count(JobApplication.id))
            .filter(JobApplication.user_id == user_id, JobApplication.applied_at >= month_start())
            .scalar()
        )
        return JobseekerStats(
            total_applications=sum(by_status.values()),
            pending_applications=by_status.get(states.PENDING, 0),
            reviewed_applications=by_status.get(states.REVIEWED, 0),
            shortlisted_applications=by_status.get(states.SHORTLISTED, 0),
            rejected_applications=by_status.get(states.REJECTED, 0),
            accepted_applications=by_status.get(states.ACCEPTED, 0),
            withdrawn_applications=by_status.get(states.WITHDRAWN, 0),
            total_saved_jobs=saved or 0,
            applications_this_month=this_month or 0,
        )

    # ------------------------------------------------------------------
    # Employer operations
    # ------------------------------------------------------------------

    def list_job_applications(
        self,
        employer_user_id: str,
        job_id: str,
        page: int = 1,
        limit: int = 10,
        status: str | None = None,
    ) -> ServiceResult:
        owner = (
            self.db.query(Employer.user_id)
            .join(Job, Job.employer_id == Employer.id)
            .filter(Job.id == job_id)
            .first()
        )
        if owner is None:
            return ServiceResult.fail(NOT_FOUND, "Job not found")
        if owner.user_id != employer_user_id:
            return ServiceResult.fail(FORBIDDEN, "You can only view applications for your own jobs")

        query = (
            self.db.query(JobApplication, User)
            .join(User, User.id == JobApplication.user_id)
            .filter(JobApplication.job_id == job_id)
        )
        if status:
            query = query.filter(JobApplication.status == status)

        total = query.count()
        rows = (
            query.order_by(JobApplication.applied_at.desc(), JobApplication.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        items = [
            JobApplicantResponse(
                **ApplicationResponse.model_validate(application).model_dump(),
                applicant_name=applicant.full_name,
                applicant_email=applicant.email,
            )
            for application, applicant in rows
        ]
        return ServiceResult.ok(
            JobApplicantListResponse(applications=items, total=total, page=page, per_page=limit)
        )

    def change_status(self, employer_user_id: str, application_id: str, new_status: str) -> ServiceResult:
        db = self.db
        row = (
            db.query(JobApplication, Job, Employer, Company.name.label("company_name"))
            .join(Job, Job.id == JobApplication.job_id)
            .join(Employer, Employer.id == Job.employer_id)
            .outerjoin(Company, Company.id == Job.company_id)
            .filter(JobApplication.id == application_id)
            .first()
        )
        if not row:
            return self._fail(NOT_FOUND, "Application not found")
        application, job, employer, company_name = row
        if employer.user_id != employer_user_id:
            return self._fail(FORBIDDEN, "You can only manage applications for your own jobs")

        if application.status == new_status:
            return ServiceResult.ok(ApplicationResponse.model_validate(application))
        blocker = states.status_change_blocker(application.status, new_status)
        if blocker:
            return self._fail(CONFLICT, blocker)

        # Accepted and rejected stay active, so the applications counter does not move here.
        updated = (
            db.query(JobApplication)
            .filter(JobApplication.id == application.id, JobApplication.status == application.status)
            .update(
                {JobApplication.status: new_status, JobApplication.updated_at: utc_now()},
                synchronize_session=False,
            )
        )
        if updated == 0:
            return self._fail(CONFLICT, "Application status changed concurrently; reload and retry")
        applicant_id = application.user_id
        job_id = job.id
        job_title = job.title
        db.commit()
        db.refresh(application)

        self._schedule(
            run_side_effect,
            self.dispatcher.notify_jobseeker_about_application_status,
            applicant_id,
            job_id,
            job_title,
            new_status,
            application_id,
            company_name,
        )
        return ServiceResult.ok(ApplicationResponse.model_validate(application))

    # ------------------------------------------------------------------

    def _resume_belongs_to(self, resume_id: str, user_id: str) -> bool:
        return (
            self.db.query(Resume.id)
            .filter(Resume.id == resume_id, Resume.user_id == user_id)
            .first()
            is not None
        )

    def _move_counter(self, job_id: str, delta: int) -> None:
        query = self.db.query(Job).filter(Job.id == job_id)
        if delta < 0:
            # Floored at zero: a decrement on an empty counter is a no-op.
            query = query.filter(Job.applications_count > 0)
        updated = query.update(
            {Job.applications_count: Job.applications_count + delta},
            synchronize_session=False,
        )
        if updated == 0 and delta > 0:
            raise CounterConsistencyError(f"Could not increment applications_count for job {job_id}")
        if updated == 0:
            logger.warning("applications_count for job %s already at zero on withdraw", job_id)
