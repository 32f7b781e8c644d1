from fastapi import HTTPException

from jobboard.services.results import CONFLICT, FORBIDDEN, INVALID, NOT_FOUND, ServiceResult

STATUS_BY_REASON = {
    INVALID: 400,
    FORBIDDEN: 403,
    NOT_FOUND: 404,
    CONFLICT: 409,
}


def raise_for_failure(result: ServiceResult) -> None:
    if not result.success:
        raise HTTPException(
            status_code=STATUS_BY_REASON.get(result.reason, 400),
            detail=result.message or "Request failed",
        )
