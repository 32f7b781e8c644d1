import uuid
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from sqlalchemy import and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from jobboard.database import get_db
from jobboard.dependencies import (
    get_current_user,
    get_dispatcher,
    require_employer,
    require_jobseeker,
)
from jobboard.models.application import JobApplication
from jobboard.models.bookmark import JobBookmark
from jobboard.models.employer import Employer
from jobboard.models.job import Job
from jobboard.models.user import User
from jobboard.schemas.common import ApiResponse
from jobboard.schemas.job import (
    BookmarkListResponse,
    BookmarkResponse,
    JobCreate,
    JobListResponse,
    JobResponse,
    JobUpdate,
)
from jobboard.services.application_states import INACTIVE_STATUSES
from jobboard.services.dispatcher import NotificationDispatcher, run_side_effect
from jobboard.utils.jsonfields import dump_str_list, load_str_list
from jobboard.utils.timestamps import utc_now

router = APIRouter(prefix="/jobs", tags=["jobs"])

# Status a job moves into -> saved-job broadcast it triggers
_STATUS_UPDATES = {"closed": "closed", "filled": "filled"}


def _jobs_for_user(db: Session, user_id: str):
    """Jobs with the caller's bookmark id and active application status (one row per job)."""
    return (
        db.query(
            Job,
            JobBookmark.id.label("bookmark_id"),
            JobBookmark.saved_at.label("saved_at"),
            JobApplication.status.label("application_status"),
        )
        .outerjoin(JobBookmark, and_(JobBookmark.job_id == Job.id, JobBookmark.user_id == user_id))
        .outerjoin(
            JobApplication,
            and_(
                JobApplication.job_id == Job.id,
                JobApplication.user_id == user_id,
                JobApplication.status.not_in(INACTIVE_STATUSES),
            ),
        )
    )


def _row_to_response(row) -> JobResponse:
    return _job_to_response(row.Job, bookmark_id=row.bookmark_id, application_status=row.application_status)


def _job_to_response(
    job: Job, bookmark_id: str | None = None, application_status: str | None = None
) -> JobResponse:
    return JobResponse(
        id=job.id,
        employer_id=job.employer_id,
        company_id=job.company_id,
        company_name=job.company.name if job.company else None,
        title=job.title,
        description=job.description,
        location=job.location,
        employment_type=job.employment_type,
        skills_required=load_str_list(job.skills_required),
        status=job.status,
        applications_count=job.applications_count,
        created_at=job.created_at,
        updated_at=job.updated_at,
        is_saved=bookmark_id is not None,
        has_applied=application_status is not None,
        application_status=application_status,
    )


def _owned_job(db: Session, job_id: str, user: User) -> Job:
    job = (
        db.query(Job)
        .join(Employer, Employer.id == Job.employer_id)
        .filter(Job.id == job_id, Employer.user_id == user.id)
        .first()
    )
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return job


def _schedule_new_job_broadcast(background_tasks: BackgroundTasks, dispatcher: NotificationDispatcher, job: Job):
    background_tasks.add_task(
        run_side_effect,
        dispatcher.notify_jobseekers_about_new_job,
        job.id,
        job.title,
        job.company.name if job.company else None,
        load_str_list(job.skills_required),
        job.location,
        job.employment_type,
    )


@router.post("", response_model=ApiResponse[JobResponse], status_code=201)
async def create_job(
    req: JobCreate,
    background_tasks: BackgroundTasks,
    user: User = Depends(require_employer),
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    employer = db.query(Employer).filter(Employer.user_id == user.id).first()
    if not employer:
        raise HTTPException(status_code=400, detail="Complete your employer profile before posting jobs")

    now = utc_now()
    job = Job(
        id=str(uuid.uuid4()),
        employer_id=employer.id,
        company_id=employer.company_id,
        title=req.title,
        description=req.description,
        location=req.location,
        employment_type=req.employment_type,
        skills_required=dump_str_list(req.skills_required),
        status=req.status,
        applications_count=0,
        created_at=now,
        updated_at=now,
    )
    db.add(job)
    db.commit()
    db.refresh(job)

    if job.status == "open":
        _schedule_new_job_broadcast(background_tasks, dispatcher, job)
    return ApiResponse(data=_job_to_response(job), message="Job posted")


@router.get("", response_model=ApiResponse[JobListResponse])
async def list_jobs(
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    total = db.query(Job).filter(Job.status == "open").count()
    rows = (
        _jobs_for_user(db, user.id)
        .filter(Job.status == "open")
        .order_by(Job.created_at.desc(), Job.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )
    return ApiResponse(
        data=JobListResponse(
            jobs=[_row_to_response(r) for r in rows], total=total, page=page, per_page=per_page
        )
    )


@router.get("/saved", response_model=ApiResponse[BookmarkListResponse])
async def list_saved_jobs(
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    user: User = Depends(require_jobseeker),
    db: Session = Depends(get_db),
):
    query = _jobs_for_user(db, user.id).filter(JobBookmark.id.isnot(None))
    total = query.count()
    rows = (
        query.order_by(JobBookmark.saved_at.desc(), JobBookmark.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )
    return ApiResponse(
        data=BookmarkListResponse(
            bookmarks=[
                BookmarkResponse(id=r.bookmark_id, job_id=r.Job.id, saved_at=r.saved_at, job=_row_to_response(r))
                for r in rows
            ],
            total=total,
            page=page,
            per_page=per_page,
        )
    )


@router.get("/{job_id}", response_model=ApiResponse[JobResponse])
async def get_job(job_id: UUID, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    row = _jobs_for_user(db, user.id).filter(Job.id == str(job_id)).first()
    if not row:
        raise HTTPException(status_code=404, detail="Job not found")
    return ApiResponse(data=_row_to_response(row))


@router.put("/{job_id}", response_model=ApiResponse[JobResponse])
async def update_job(
    job_id: UUID,
    req: JobUpdate,
    background_tasks: BackgroundTasks,
    user: User = Depends(require_employer),
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    job = _owned_job(db, str(job_id), user)
    previous_status = job.status

    update_data = req.model_dump(exclude_unset=True)
    if "skills_required" in update_data:
        update_data["skills_required"] = dump_str_list(update_data["skills_required"])
    for key, value in update_data.items():
        setattr(job, key, value)
    job.updated_at = utc_now()
    db.commit()
    db.refresh(job)

    if previous_status == "draft" and job.status == "open":
        _schedule_new_job_broadcast(background_tasks, dispatcher, job)
    elif previous_status != "draft":
        update_type = _STATUS_UPDATES.get(job.status) if job.status != previous_status else None
        background_tasks.add_task(
            run_side_effect,
            dispatcher.notify_jobseekers_saved_job,
            job.id,
            job.title,
            update_type or "updated",
        )
    return ApiResponse(data=_job_to_response(job), message="Job updated")


@router.delete("/{job_id}", response_model=ApiResponse[None])
async def delete_job(
    job_id: UUID,
    background_tasks: BackgroundTasks,
    user: User = Depends(require_employer),
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    job = _owned_job(db, str(job_id), user)
    # Bookmarks cascade with the job, so the audience is captured first.
    recipients = dispatcher.audience.saved_job_audience(job.id)
    deleted_id, deleted_title = job.id, job.title
    db.delete(job)
    db.commit()

    background_tasks.add_task(
        run_side_effect,
        dispatcher.notify_jobseekers_saved_job,
        deleted_id,
        deleted_title,
        "deleted",
        recipients,
    )
    return ApiResponse(message="Job deleted")


@router.post("/{job_id}/save", response_model=ApiResponse[BookmarkResponse], status_code=201)
async def save_job(job_id: UUID, user: User = Depends(require_jobseeker), db: Session = Depends(get_db)):
    job = db.query(Job).filter(Job.id == str(job_id)).first()
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")

    existing = (
        db.query(JobBookmark)
        .filter(JobBookmark.user_id == user.id, JobBookmark.job_id == job.id)
        .first()
    )
    if existing:
        raise HTTPException(status_code=409, detail="Job already saved")

    bookmark = JobBookmark(id=str(uuid.uuid4()), user_id=user.id, job_id=job.id, saved_at=utc_now())
    db.add(bookmark)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Job already saved")
    row = _jobs_for_user(db, user.id).filter(Job.id == job.id).one()
    return ApiResponse(
        data=BookmarkResponse(
            id=row.bookmark_id, job_id=job.id, saved_at=row.saved_at, job=_row_to_response(row)
        ),
        message="Job saved",
    )


@router.delete("/{job_id}/save", response_model=ApiResponse[None])
async def unsave_job(job_id: UUID, user: User = Depends(require_jobseeker), db: Session = Depends(get_db)):
    deleted = (
        db.query(JobBookmark)
        .filter(JobBookmark.user_id == user.id, JobBookmark.job_id == str(job_id))
        .delete(synchronize_session=False)
    )
    db.commit()
    if not deleted:
        raise HTTPException(status_code=404, detail="Saved job not found")
    return ApiResponse(message="Job removed from saved jobs")
