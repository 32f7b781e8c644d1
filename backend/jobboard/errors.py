class NotificationError(Exception):
    """Base class for dispatcher failures surfaced to callers."""


class RecipientNotFoundError(NotificationError):
    def __init__(self, user_id: str):
        super().__init__(f"Notification recipient {user_id} not found")
        self.user_id = user_id


class UnknownNotificationTypeError(NotificationError):
    def __init__(self, notification_type: str):
        super().__init__(f"Unknown notification type: {notification_type!r}")
        self.notification_type = notification_type


class NotificationRoleError(NotificationError):
    """A notification type was addressed to a user of the wrong role (caller bug)."""

    def __init__(self, notification_type: str, expected_role: str, actual_role: str):
        super().__init__(
            f"Notification type {notification_type!r} is for {expected_role} users, "
            f"recipient is {actual_role}"
        )
        self.notification_type = notification_type
        self.expected_role = expected_role
        self.actual_role = actual_role


class CounterConsistencyError(RuntimeError):
    """The applications counter could not be moved together with the application row."""
