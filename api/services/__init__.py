"""
API Services Layer.

Database operations behind the API endpoints. Every function takes the
session first and, for tenant data, the acting profile second.
"""

from api.services.jobs import (
    list_jobs,
    get_job,
    create_job,
    update_job,
    delete_job,
)

from api.services.candidates import (
    list_candidates,
    create_candidate,
    get_candidate_detail,
    update_candidate,
    delete_candidate,
    change_stage,
    get_history,
    get_board,
    move_card,
    upload_resume,
)

from api.services.interviews import (
    get_available_slots,
    list_schedulable_candidates,
    schedule_interview,
    list_interviews,
    get_interview,
    update_interview,
    delete_interview,
)

from api.services.notifications import (
    create_notification,
    get_notifications,
    get_unread_count,
    mark_as_read,
    mark_all_as_read,
    delete_notification,
)

from api.services.search import (
    quick_search,
    search_candidates,
    get_suggestions,
    advanced_search,
)

from api.services.users import (
    list_users,
    get_platform_stats,
    create_user,
    delete_user,
    update_role,
    list_audit_logs,
)

from api.services.dashboard import get_dashboard

__all__ = [
    # Jobs
    "list_jobs",
    "get_job",
    "create_job",
    "update_job",
    "delete_job",
    # Candidates
    "list_candidates",
    "create_candidate",
    "get_candidate_detail",
    "update_candidate",
    "delete_candidate",
    "change_stage",
    "get_history",
    "get_board",
    "move_card",
    "upload_resume",
    # Interviews
    "get_available_slots",
    "list_schedulable_candidates",
    "schedule_interview",
    "list_interviews",
    "get_interview",
    "update_interview",
    "delete_interview",
    # Notifications
    "create_notification",
    "get_notifications",
    "get_unread_count",
    "mark_as_read",
    "mark_all_as_read",
    "delete_notification",
    # Search
    "quick_search",
    "search_candidates",
    "get_suggestions",
    "advanced_search",
    # Admin
    "list_users",
    "get_platform_stats",
    "create_user",
    "delete_user",
    "update_role",
    "list_audit_logs",
    # Dashboard
    "get_dashboard",
]
