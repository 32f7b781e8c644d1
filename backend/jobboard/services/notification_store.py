import json
import math

from sqlalchemy import func
from sqlalchemy.orm import Session

from jobboard.models.notification import Notification
from jobboard.schemas.common import Pagination
from jobboard.schemas.notification import NotificationListData, NotificationResponse
from jobboard.services.notification_types import allowed_types_for_role


def notification_to_response(n: Notification) -> NotificationResponse:
    try:
        metadata = json.loads(n.metadata_json or "{}")
    except ValueError:
        metadata = {}
    return NotificationResponse(
        id=n.id,
        user_id=n.user_id,
        type=n.type,
        title=n.title,
        message=n.message,
        metadata=metadata,
        related_id=n.related_id,
        read=bool(n.read),
        created_at=n.created_at,
    )


class NotificationStore:
    """Persistence for notification rows and their read state.

    Every query is scoped by owner. Reads additionally filter on the role's
    type allow-list, so a row written for the wrong audience never surfaces.
    """

    def __init__(self, db: Session):
        self.db = db

    def add(self, notification: Notification) -> Notification:
        self.db.add(notification)
        return notification

    def get_notifications(
        self,
        user_id: str,
        role: str,
        page: int = 1,
        limit: int = 10,
        read: bool | None = None,
    ) -> NotificationListData:
        allowed = allowed_types_for_role(role)
        total_count = func.count().over().label("total_count")

        query = self.db.query(Notification, total_count).filter(
            Notification.user_id == user_id,
            Notification.type.in_(allowed),
        )
        if read is not None:
            query = query.filter(Notification.read == read)

        rows = (
            query.order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        if rows:
            total = rows[0].total_count
        elif page > 1:
            # Past the last page the window count has no row to ride on.
            total = self._count(user_id, allowed, read)
        else:
            total = 0

        return NotificationListData(
            notifications=[notification_to_response(r.Notification) for r in rows],
            pagination=Pagination(
                current_page=page,
                total_pages=math.ceil(total / limit) if limit else 0,
                total_count=total,
                limit=limit,
            ),
        )

    def unread_count(self, user_id: str, role: str) -> int:
        return self._count(user_id, allowed_types_for_role(role), read=False)

    def mark_read(self, notification_id: str, user_id: str) -> bool:
        updated = (
            self.db.query(Notification)
            .filter(Notification.id == notification_id, Notification.user_id == user_id)
            .update({Notification.read: True}, synchronize_session=False)
        )
        self.db.commit()
        return updated > 0

    def mark_all_read(self, user_id: str) -> int:
        updated = (
            self.db.query(Notification)
            .filter(Notification.user_id == user_id, Notification.read.is_(False))
            .update({Notification.read: True}, synchronize_session=False)
        )
        self.db.commit()
        return updated

    def delete(self, notification_id: str, user_id: str) -> bool:
        deleted = (
            self.db.query(Notification)
            .filter(Notification.id == notification_id, Notification.user_id == user_id)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted > 0

    def _count(self, user_id: str, allowed: list[str], read: bool | None) -> int:
        query = self.db.query(func.count(Notification.id)).filter(
            Notification.user_id == user_id,
            Notification.type.in_(allowed),
        )
        if read is not None:
            query = query.filter(Notification.read == read)
        return query.scalar() or 0
