"""Tests for meeting link generation and Google Meet events."""

import json
from datetime import datetime, timezone
from unittest.mock import patch

import httpx
import pytest

from core.integrations.meet import (
    CALENDAR_EVENTS_URL,
    MeetEvent,
    create_google_meet_event,
    generate_meeting_link,
    is_valid_meet_url,
)

_AsyncClient = httpx.AsyncClient


def _mock_client(handler):
    """AsyncClient factory routed through ``handler``."""
    def factory(**kwargs):
        return _AsyncClient(transport=httpx.MockTransport(handler), **kwargs)
    return factory


@pytest.fixture
def event():
    return MeetEvent(
        summary="Interview: Ada Lovelace",
        start_time=datetime(2025, 3, 11, 10, 0, tzinfo=timezone.utc),
        end_time=datetime(2025, 3, 11, 11, 0, tzinfo=timezone.utc),
        description="Backend Engineer",
        attendees=["ada@example.com", "hr@acme.com"],
    )


class TestMeetingLinks:
    def test_meet_link_split(self):
        assert generate_meeting_link("meet", "abcdefghij") == "https://meet.google.com/abc-def-ghij"

    def test_meet_link_random_id(self):
        link = generate_meeting_link("meet")

        prefix, code = link.rsplit("/", 1)
        assert prefix == "https://meet.google.com"
        assert [len(part) for part in code.split("-")] == [3, 3, 4]

    def test_zoom(self):
        assert generate_meeting_link("zoom", "123456") == "https://zoom.us/j/123456"

    def test_teams(self):
        assert generate_meeting_link("teams", "abc") == "https://teams.microsoft.com/l/meetup-join/abc"

    def test_unknown_provider(self):
        assert generate_meeting_link("webex", "abc") == ""

    @pytest.mark.parametrize("url,valid", [
        ("https://meet.google.com/abc-def-ghi", True),
        ("https://meet.google.com/abc-def-ghij", False),
        ("https://meet.google.com/ABC-DEF-GHI", False),
        ("http://meet.google.com/abc-def-ghi", False),
        ("", False),
        (None, False),
    ])
    def test_is_valid_meet_url(self, url, valid):
        assert is_valid_meet_url(url) is valid


class TestMeetEvent:
    def test_calendar_body(self, event):
        body = event.to_calendar_body()

        assert body["summary"] == "Interview: Ada Lovelace"
        assert body["start"] == {"dateTime": "2025-03-11T10:00:00+00:00", "timeZone": "UTC"}
        assert body["attendees"] == [{"email": "ada@example.com"}, {"email": "hr@acme.com"}]
        create_request = body["conferenceData"]["createRequest"]
        assert create_request["conferenceSolutionKey"] == {"type": "hangoutsMeet"}

    def test_request_ids_unique(self, event):
        first = event.to_calendar_body()["conferenceData"]["createRequest"]["requestId"]
        second = event.to_calendar_body()["conferenceData"]["createRequest"]["requestId"]
        assert first != second


class TestCreateGoogleMeetEvent:
    @pytest.mark.asyncio
    async def test_success(self, event):
        seen = {}

        def handler(request):
            seen["request"] = request
            return httpx.Response(200, json={
                "conferenceData": {"entryPoints": [
                    {"entryPointType": "phone", "uri": "tel:+1-555"},
                    {"entryPointType": "video", "uri": "https://meet.google.com/xyz-abcd-efg"},
                ]}
            })

        with patch("core.integrations.meet.httpx.AsyncClient", _mock_client(handler)):
            result = await create_google_meet_event(event, "google-token")

        assert result == {"success": True, "meeting_link": "https://meet.google.com/xyz-abcd-efg"}
        request = seen["request"]
        assert str(request.url).startswith(CALENDAR_EVENTS_URL)
        assert request.url.params["conferenceDataVersion"] == "1"
        assert request.headers["authorization"] == "Bearer google-token"
        assert json.loads(request.content)["summary"] == "Interview: Ada Lovelace"

    @pytest.mark.asyncio
    async def test_api_error(self, event):
        def handler(request):
            return httpx.Response(401, json={"error": {"code": 401, "message": "Invalid Credentials"}})

        with patch("core.integrations.meet.httpx.AsyncClient", _mock_client(handler)):
            result = await create_google_meet_event(event, "expired")

        assert result == {"success": False, "error": "Invalid Credentials"}

    @pytest.mark.asyncio
    async def test_no_conference_data(self, event):
        def handler(request):
            return httpx.Response(200, json={"id": "evt-1"})

        with patch("core.integrations.meet.httpx.AsyncClient", _mock_client(handler)):
            result = await create_google_meet_event(event, "token")

        assert result == {"success": False, "error": "Failed to create Google Meet link"}

    @pytest.mark.asyncio
    async def test_network_error(self, event):
        def handler(request):
            raise httpx.ConnectError("connection refused")

        with patch("core.integrations.meet.httpx.AsyncClient", _mock_client(handler)):
            result = await create_google_meet_event(event, "token")

        assert result["success"] is False
        assert "connection refused" in result["error"]

    @pytest.mark.asyncio
    async def test_non_json_response(self, event):
        def handler(request):
            return httpx.Response(502, text="Bad Gateway")

        with patch("core.integrations.meet.httpx.AsyncClient", _mock_client(handler)):
            result = await create_google_meet_event(event, "token")

        assert result["success"] is False
