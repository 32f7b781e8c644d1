from jobboard.models.user import User, ApiToken, UserProfile, Resume
from jobboard.models.employer import Company, Employer
from jobboard.models.job import Job
from jobboard.models.application import JobApplication
from jobboard.models.bookmark import JobBookmark
from jobboard.models.notification import Notification

__all__ = [
    "User", "ApiToken", "UserProfile", "Resume", "Company", "Employer",
    "Job", "JobApplication", "JobBookmark", "Notification",
]
