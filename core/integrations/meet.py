"""Video meeting links and Google Calendar (Meet) events."""

import logging
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

import httpx

logger = logging.getLogger(__name__)

CALENDAR_EVENTS_URL = "https://www.googleapis.com/calendar/v3/calendars/primary/events"

GOOGLE_OAUTH_SCOPES = [
    "https://www.googleapis.com/auth/calendar",
    "https://www.googleapis.com/auth/calendar.events",
]

MEET_URL_PATTERN = re.compile(r"^https://meet\.google\.com/[a-z]{3}-[a-z]{3}-[a-z]{3}$")

MeetingProvider = Literal["meet", "zoom", "teams"]


@dataclass
class MeetEvent:
    """Calendar event to create with an attached Meet conference."""
    summary: str
    start_time: datetime
    end_time: datetime
    description: str = ""
    attendees: List[str] = field(default_factory=list)
    time_zone: str = "UTC"

    def to_calendar_body(self) -> Dict[str, Any]:
        return {
            "summary": self.summary,
            "description": self.description,
            "start": {"dateTime": self.start_time.isoformat(), "timeZone": self.time_zone},
            "end": {"dateTime": self.end_time.isoformat(), "timeZone": self.time_zone},
            "attendees": [{"email": email} for email in self.attendees],
            "conferenceData": {
                "createRequest": {
                    "requestId": str(uuid.uuid4()),
                    "conferenceSolutionKey": {"type": "hangoutsMeet"},
                }
            },
        }


def generate_meeting_link(provider: MeetingProvider, meeting_id: Optional[str] = None) -> str:
    """
    Build a join link for a provider.

    Without ``meeting_id`` a random 10-character id is used. Meet links
    are split 3-3-4 from the first ten characters of the id.
    """
    meeting_id = meeting_id or uuid.uuid4().hex[:10]

    if provider == "meet":
        return f"https://meet.google.com/{meeting_id[0:3]}-{meeting_id[3:6]}-{meeting_id[6:10]}"
    if provider == "zoom":
        return f"https://zoom.us/j/{meeting_id}"
    if provider == "teams":
        return f"https://teams.microsoft.com/l/meetup-join/{meeting_id}"
    return ""


def is_valid_meet_url(url: str) -> bool:
    return bool(MEET_URL_PATTERN.match(url or ""))


async def create_google_meet_event(
    event: MeetEvent,
    access_token: str,
    timeout: float = 10.0,
) -> Dict[str, Any]:
    """
    Create a Google Calendar event with a Meet conference.

    Returns ``{"success": True, "meeting_link": ...}`` or
    ``{"success": False, "error": ...}``; errors are never raised.
    """
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.post(
                CALENDAR_EVENTS_URL,
                params={"conferenceDataVersion": 1},
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Content-Type": "application/json",
                },
                json=event.to_calendar_body(),
            )
            data = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Failed to create Google Meet event: {e}")
        return {"success": False, "error": str(e)}

    entry_points = (data.get("conferenceData") or {}).get("entryPoints") or []
    if entry_points:
        link = next(
            (ep.get("uri") for ep in entry_points if ep.get("entryPointType") == "video"),
            None,
        )
        return {"success": True, "meeting_link": link}

    error = (data.get("error") or {}).get("message") if isinstance(data.get("error"), dict) else None
    logger.warning(f"Google Calendar returned no conference data: {error or response.status_code}")
    return {"success": False, "error": error or "Failed to create Google Meet link"}
