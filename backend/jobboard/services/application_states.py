PENDING = "pending"
REVIEWED = "reviewed"
SHORTLISTED = "shortlisted"
REJECTED = "rejected"
ACCEPTED = "accepted"
WITHDRAWN = "withdrawn"
CANCELLED = "cancelled"

APPLICATION_STATUSES = (PENDING, REVIEWED, SHORTLISTED, REJECTED, ACCEPTED, WITHDRAWN, CANCELLED)

# Rows in these states do not count as an application for the (user, job) pair.
INACTIVE_STATUSES = (WITHDRAWN, CANCELLED)
# Employer decisions that foreclose applicant-initiated transitions.
TERMINAL_STATUSES = (ACCEPTED, REJECTED)
EMPLOYER_DECISIONS = (REVIEWED, SHORTLISTED, REJECTED, ACCEPTED)


def is_active(status: str) -> bool:
    return status not in INACTIVE_STATUSES


def update_blocker(status: str) -> str | None:
    """Reason an applicant may not edit an application in ``status``, or None."""
    if status == PENDING:
        return None
    if status == WITHDRAWN:
        return "Cannot update a withdrawn application"
    return f"Cannot update an application that is {status}; only pending applications can be edited"


def withdraw_blocker(status: str) -> str | None:
    if status == WITHDRAWN:
        return "Application already withdrawn"
    if status == CANCELLED:
        return "Application was cancelled and cannot be withdrawn"
    if status in TERMINAL_STATUSES:
        return f"Cannot withdraw an application that has been {status}"
    return None


def status_change_blocker(current: str, target: str) -> str | None:
    if target not in EMPLOYER_DECISIONS:
        return f"Invalid status: {target}"
    if current in INACTIVE_STATUSES:
        return f"Cannot change the status of a {current} application"
    if current in TERMINAL_STATUSES and current != target:
        return f"Application has already been {current}"
    return None
