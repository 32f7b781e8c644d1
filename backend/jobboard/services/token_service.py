import time

from sqlalchemy.orm import Session

from jobboard.config import settings
from jobboard.models.user import ApiToken, User
from jobboard.utils.security import generate_token, hash_token


def issue_token(db: Session, user_id: str, ttl_seconds: int | None = None) -> str:
    """Mint a bearer token for ``user_id``.

    Login flows live in the auth service; this exists for seeding and tests.
    """
    token = generate_token()
    ttl = settings.token_ttl_seconds if ttl_seconds is None else ttl_seconds
    db.add(ApiToken(token_hash=hash_token(token), user_id=user_id, expires_at=time.time() + ttl))
    db.commit()
    return token


def resolve_token(db: Session, token: str) -> User | None:
    return (
        db.query(User)
        .join(ApiToken, ApiToken.user_id == User.id)
        .filter(
            ApiToken.token_hash == hash_token(token),
            ApiToken.expires_at > time.time(),
            User.is_active.is_(True),
            User.deleted_at.is_(None),
        )
        .first()
    )
