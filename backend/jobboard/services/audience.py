"""Recipient sets for broadcast notifications.

Audiences are paged by user id (keyset pagination) so a broadcast never
loads the full users table and always terminates: paging stops at the first
batch shorter than the batch size.
"""
import json
import logging
from collections.abc import Iterator

from sqlalchemy import text
from sqlalchemy.orm import sessionmaker

from jobboard.config import settings

logger = logging.getLogger(__name__)

NEW_JOB_AUDIENCE_SQL = text(
    """
    SELECT u.id
    FROM users u
    JOIN user_profiles up ON up.user_id = u.id
    WHERE u.user_type = 'jobseeker'
      AND u.deleted_at IS NULL
      AND u.is_active = 1
      AND u.id > :after_id
      AND (
          EXISTS (
              SELECT 1
              FROM json_each(CASE WHEN json_valid(up.skills) THEN up.skills ELSE '[]' END) s
              JOIN json_each(:skills) js ON lower(s.value) = lower(js.value)
          )
          OR (:location != '' AND up.preferred_location LIKE :location_pattern ESCAPE '\\')
          OR (:employment_type != '' AND EXISTS (
              SELECT 1
              FROM json_each(CASE WHEN json_valid(up.preferred_job_types)
                                  THEN up.preferred_job_types ELSE '[]' END) t
              WHERE lower(t.value) = lower(:employment_type)
          ))
      )
    ORDER BY u.id
    LIMIT :limit
    """
)

SAVED_JOB_AUDIENCE_SQL = text(
    """
    SELECT DISTINCT u.id
    FROM job_bookmarks jb
    JOIN users u ON u.id = jb.user_id
    WHERE jb.job_id = :job_id
      AND u.user_type = 'jobseeker'
      AND u.deleted_at IS NULL
      AND u.id > :after_id
    ORDER BY u.id
    LIMIT :limit
    """
)


def _like_pattern(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class AudienceResolver:
    def __init__(self, session_factory: sessionmaker, batch_size: int | None = None):
        self._session_factory = session_factory
        self.batch_size = batch_size or settings.broadcast_batch_size

    def new_job_batches(
        self,
        skills: list[str] | None,
        location: str | None,
        employment_type: str | None,
    ) -> Iterator[list[str]]:
        """Jobseekers matching any of: a shared skill, the job location, the employment type."""
        location = (location or "").strip()
        params = {
            "skills": json.dumps([s for s in skills or [] if s]),
            "location": location,
            "location_pattern": _like_pattern(location),
            "employment_type": (employment_type or "").strip(),
        }
        yield from self._paginate(NEW_JOB_AUDIENCE_SQL, params)

    def saved_job_batches(self, job_id: str) -> Iterator[list[str]]:
        """Jobseekers who bookmarked ``job_id``."""
        yield from self._paginate(SAVED_JOB_AUDIENCE_SQL, {"job_id": job_id})

    def saved_job_audience(self, job_id: str) -> list[str]:
        return [user_id for batch in self.saved_job_batches(job_id) for user_id in batch]

    def _paginate(self, statement, params: dict) -> Iterator[list[str]]:
        after_id = ""
        while True:
            # Short-lived session per page: nothing is held open while a batch is dispatched.
            with self._session_factory() as db:
                batch = list(
                    db.execute(
                        statement, {**params, "after_id": after_id, "limit": self.batch_size}
                    ).scalars()
                )
            if batch:
                logger.debug("Audience page after %r: %d recipients", after_id, len(batch))
                yield batch
            if len(batch) < self.batch_size:
                return
            after_id = batch[-1]
