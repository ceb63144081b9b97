"""Model registry: importing this package registers every table on Base.metadata."""

from database.models.profiles import Profile, ProfileRole
from database.models.jobs import Job, JobStatus, EmploymentType
from database.models.candidates import Candidate, CandidateHistory, CandidateStage
from database.models.interviews import Interview, InterviewStatus, InterviewType
from database.models.notifications import Notification, NotificationType
from database.models.audit import AuditLog

__all__ = [
    "Profile",
    "ProfileRole",
    "Job",
    "JobStatus",
    "EmploymentType",
    "Candidate",
    "CandidateHistory",
    "CandidateStage",
    "Interview",
    "InterviewStatus",
    "InterviewType",
    "Notification",
    "NotificationType",
    "AuditLog",
]
