from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from jobboard.database import get_db
from jobboard.dependencies import require_jobseeker
from jobboard.models.user import User, UserProfile
from jobboard.schemas.common import ApiResponse
from jobboard.schemas.profile import ProfileCompletion
from jobboard.services.profile_completion import compute_profile_completion

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("/completion", response_model=ApiResponse[ProfileCompletion])
async def profile_completion(user: User = Depends(require_jobseeker), db: Session = Depends(get_db)):
    profile = db.query(UserProfile).filter(UserProfile.user_id == user.id).first()
    return ApiResponse(data=compute_profile_completion(user, profile))
