"""HTTP client for the Google Calendar events API."""

from typing import Any

import httpx
from loguru import logger

from calendar_sync.core.config import Settings, get_settings
from calendar_sync.core.errors import CalendarServiceError
from calendar_sync.ports import CalendarService


class GoogleCalendarClient(CalendarService):
    """
    Writes mirrored events through the Calendar v3 REST API.

    Usage:
        async with GoogleCalendarClient() as calendar:
            await calendar.put_event(event_id, token, body)
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.settings = settings or get_settings()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self.settings.http_timeout_seconds)

    def event_url(self, event_id: str) -> str:
        base = self.settings.google_api_base_url.rstrip("/")
        calendar_id = self.settings.google_calendar_id
        return f"{base}/calendars/{calendar_id}/events/{event_id}"

    async def put_event(self, event_id: str, access_token: str, body: dict[str, Any]) -> None:
        try:
            response = await self._client.put(
                self.event_url(event_id),
                json=body,
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Content-Type": "application/json",
                },
            )
        except httpx.HTTPError as e:
            raise CalendarServiceError(event_id, str(e)) from e

        if response.is_error:
            raise CalendarServiceError(
                event_id,
                response.text[:200] or response.reason_phrase,
                status_code=response.status_code,
            )

        logger.debug(f"Updated remote event {event_id}")

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "GoogleCalendarClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
