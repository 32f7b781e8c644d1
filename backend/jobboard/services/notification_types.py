JOBSEEKER = "jobseeker"
EMPLOYER = "employer"

# Each notification type has exactly one recipient role.
RECIPIENT_ROLES: dict[str, str] = {
    "application_received": EMPLOYER,
    "application_reviewed": JOBSEEKER,
    "application_shortlisted": JOBSEEKER,
    "application_rejected": JOBSEEKER,
    "application_accepted": JOBSEEKER,
    "interview_scheduled": JOBSEEKER,
    "new_job": JOBSEEKER,
    "job_updated": JOBSEEKER,
    "job_deleted": JOBSEEKER,
    "job_closed": JOBSEEKER,
    "job_filled": JOBSEEKER,
}

NOTIFICATION_TITLES: dict[str, str] = {
    "new_job": "New Job Posted",
    "job_updated": "Job Updated",
    "job_deleted": "Job Removed",
    "job_closed": "Job Closed",
    "job_filled": "Job Filled",
    "application_received": "New Application",
    "application_reviewed": "Application Reviewed",
    "application_shortlisted": "You're Shortlisted!",
    "application_rejected": "Application Update",
    "application_accepted": "Application Accepted!",
    "interview_scheduled": "Interview Scheduled",
}

# status -> (notification type, message template)
STATUS_NOTIFICATIONS: dict[str, tuple[str, str]] = {
    "reviewed": (
        "application_reviewed",
        "Your application for {job_title} at {company} is being reviewed",
    ),
    "shortlisted": (
        "application_shortlisted",
        "Congratulations! You've been shortlisted for {job_title} at {company}",
    ),
    "rejected": (
        "application_rejected",
        "Your application for {job_title} at {company} was not successful",
    ),
    "accepted": (
        "application_accepted",
        "Great news! Your application for {job_title} at {company} has been accepted",
    ),
}

# saved-job update -> (notification type, message template)
SAVED_JOB_NOTIFICATIONS: dict[str, tuple[str, str]] = {
    "updated": ("job_updated", '"{job_title}" has been updated'),
    "deleted": ("job_deleted", '"{job_title}" has been removed'),
    "closed": ("job_closed", '"{job_title}" is no longer accepting applications'),
    "filled": ("job_filled", '"{job_title}" position has been filled'),
}


def notification_title(notification_type: str, message: str) -> str:
    # The dispatcher rejects unknown types first; the fallback only serves direct callers.
    title = NOTIFICATION_TITLES.get(notification_type)
    if title:
        return title
    return message.split(".")[0][:255] or "Job Update"


def allowed_types_for_role(role: str) -> list[str]:
    return sorted(t for t, r in RECIPIENT_ROLES.items() if r == role)
