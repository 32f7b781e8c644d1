from fastapi import BackgroundTasks, Depends, Header, HTTPException
from sqlalchemy.orm import Session, sessionmaker

from jobboard.database import get_db, get_session_factory
from jobboard.models.user import User
from jobboard.services.application_service import ApplicationService
from jobboard.services.audience import AudienceResolver
from jobboard.services.dispatcher import NotificationDispatcher
from jobboard.services.notification_store import NotificationStore
from jobboard.services.token_service import resolve_token


async def get_current_user(
    authorization: str | None = Header(None),
    db: Session = Depends(get_db),
) -> User:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing bearer token")
    user = resolve_token(db, authorization[7:])
    if not user:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    return user


async def require_jobseeker(user: User = Depends(get_current_user)) -> User:
    if user.user_type != "jobseeker":
        raise HTTPException(status_code=403, detail="Jobseeker access required")
    return user


async def require_employer(user: User = Depends(get_current_user)) -> User:
    if user.user_type != "employer":
        raise HTTPException(status_code=403, detail="Employer access required")
    return user


def get_audience(session_factory: sessionmaker = Depends(get_session_factory)) -> AudienceResolver:
    return AudienceResolver(session_factory)


def get_dispatcher(
    session_factory: sessionmaker = Depends(get_session_factory),
    audience: AudienceResolver = Depends(get_audience),
) -> NotificationDispatcher:
    return NotificationDispatcher(session_factory, audience)


def get_notification_store(db: Session = Depends(get_db)) -> NotificationStore:
    return NotificationStore(db)


def get_application_service(
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> ApplicationService:
    # Post-commit notifications run after the response is sent.
    return ApplicationService(db, dispatcher, schedule=background_tasks.add_task)
