from uuid import UUID

from fastapi import APIRouter, Depends, Query

from jobboard.dependencies import get_application_service, require_employer, require_jobseeker
from jobboard.models.user import User
from jobboard.schemas.application import (
    ApplicationCreate,
    ApplicationResponse,
    ApplicationStatusChange,
    ApplicationUpdate,
    AppliedJobListResponse,
    JobApplicantListResponse,
    JobseekerStats,
)
from jobboard.schemas.common import ApiResponse
from jobboard.services.application_service import ApplicationService
from jobboard.utils.http import raise_for_failure

router = APIRouter(tags=["applications"])


@router.post("/jobs/{job_id}/apply", response_model=ApiResponse[ApplicationResponse], status_code=201)
async def apply_to_job(
    job_id: UUID,
    req: ApplicationCreate,
    user: User = Depends(require_jobseeker),
    service: ApplicationService = Depends(get_application_service),
):
    result = service.apply(user.id, str(job_id), req)
    raise_for_failure(result)
    return ApiResponse(data=result.data, message="Application submitted successfully")


@router.delete("/jobs/{job_id}/withdraw", response_model=ApiResponse[ApplicationResponse])
async def withdraw_by_job(
    job_id: UUID,
    user: User = Depends(require_jobseeker),
    service: ApplicationService = Depends(get_application_service),
):
    result = service.withdraw_by_job(user.id, str(job_id))
    raise_for_failure(result)
    return ApiResponse(data=result.data, message=result.message)


@router.get("/jobs/{job_id}/application-status", response_model=ApiResponse[ApplicationResponse])
async def application_status(
    job_id: UUID,
    user: User = Depends(require_jobseeker),
    service: ApplicationService = Depends(get_application_service),
):
    application = service.get_application_status(user.id, str(job_id))
    if application is None:
        return ApiResponse(message="Not applied")
    return ApiResponse(data=application)


@router.get("/jobs/{job_id}/applications", response_model=ApiResponse[JobApplicantListResponse])
async def job_applications(
    job_id: UUID,
    status: str | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: User = Depends(require_employer),
    service: ApplicationService = Depends(get_application_service),
):
    result = service.list_job_applications(user.id, str(job_id), page=page, limit=limit, status=status)
    raise_for_failure(result)
    return ApiResponse(data=result.data)


@router.get("/applications", response_model=ApiResponse[AppliedJobListResponse])
async def applied_jobs(
    status: str | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: User = Depends(require_jobseeker),
    service: ApplicationService = Depends(get_application_service),
):
    items, total = service.get_applied_jobs(user.id, page=page, limit=limit, status=status)
    return ApiResponse(
        data=AppliedJobListResponse(applications=items, total=total, page=page, per_page=limit)
    )


@router.get("/applications/stats", response_model=ApiResponse[JobseekerStats])
async def jobseeker_stats(
    user: User = Depends(require_jobseeker),
    service: ApplicationService = Depends(get_application_service),
):
    return ApiResponse(data=service.get_stats(user.id))


@router.put("/applications/{application_id}", response_model=ApiResponse[ApplicationResponse])
async def update_application(
    application_id: UUID,
    req: ApplicationUpdate,
    user: User = Depends(require_jobseeker),
    service: ApplicationService = Depends(get_application_service),
):
    result = service.update_application(user.id, str(application_id), req)
    raise_for_failure(result)
    return ApiResponse(data=result.data, message="Application updated")


@router.delete("/applications/{application_id}", response_model=ApiResponse[ApplicationResponse])
async def withdraw_application(
    application_id: UUID,
    user: User = Depends(require_jobseeker),
    service: ApplicationService = Depends(get_application_service),
):
    result = service.withdraw(user.id, str(application_id))
    raise_for_failure(result)
    return ApiResponse(data=result.data, message=result.message)


@router.put("/applications/{application_id}/status", response_model=ApiResponse[ApplicationResponse])
async def change_application_status(
    application_id: UUID,
    req: ApplicationStatusChange,
    user: User = Depends(require_employer),
    service: ApplicationService = Depends(get_application_service),
):
    result = service.change_status(user.id, str(application_id), req.status)
    raise_for_failure(result)
    return ApiResponse(data=result.data, message=f"Application marked {req.status}")
