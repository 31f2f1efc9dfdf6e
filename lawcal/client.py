"""HTTP client for the calendar API."""

from __future__ import annotations

from typing import Any

import httpx

from lawcal.config import DEMO_LAWYER_EMAIL


class ApiError(Exception):
    """Non-2xx response from the API."""

    def __init__(self, status: int, payload: Any, url: str | None = None) -> None:
        self.status = status
        self.payload = payload
        self.url = url
        data = payload if isinstance(payload, dict) else {}
        error = data.get("error")
        self.error: str | None = error.strip() if isinstance(error, str) and error.strip() else None
        self.kind: str | None = data.get("kind")
        super().__init__(f"{status} {self.error or 'request failed'}")


class CalendarClient:
    """Thin wrapper over ``httpx.Client``; one method per API operation."""

    def __init__(
        self,
        base_url: str = "http://localhost:3000",
        *,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> CalendarClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        response = self._client.request(method, path, **kwargs)
        if response.is_error:
            try:
                payload = response.json()
            except ValueError:
                payload = response.text
            raise ApiError(response.status_code, payload, url=str(response.url))
        return response.json()

    def health(self) -> dict:
        return self._request("GET", "/health")

    def bootstrap(self) -> dict:
        return self._request("POST", "/api/bootstrap")

    def list_lawyers(self) -> list[dict]:
        return self._request("GET", "/api/lawyers")["items"]

    def register_lawyer(self, email: str, full_name: str) -> dict:
        return self._request(
            "POST", "/api/lawyers", json={"email": email, "fullName": full_name}
        )

    def list_appointments(self, lawyer_email: str = DEMO_LAWYER_EMAIL) -> list[dict]:
        return self._request(
            "GET", "/api/appointments", params={"lawyerEmail": lawyer_email}
        )["items"]

    def create_appointment(
        self,
        subject: str,
        starts_at_local: str,
        *,
        duration_minutes: int = 30,
        scheduled_time_zone: str = "UTC",
        mode: str = "VIDEO_CALL",
        lawyer_email: str = DEMO_LAWYER_EMAIL,
    ) -> dict:
        body = {
            "subject": subject,
            "mode": mode,
            "startsAtLocal": starts_at_local,
            "durationMinutes": duration_minutes,
            "scheduledTimeZone": scheduled_time_zone,
            "lawyerEmail": lawyer_email,
        }
        return self._request("POST", "/api/appointments", json=body)["appointment"]

    def preview_appointment(
        self,
        starts_at_local: str,
        *,
        subject: str = "preview",
        duration_minutes: int = 30,
        scheduled_time_zone: str = "UTC",
        lawyer_email: str = DEMO_LAWYER_EMAIL,
    ) -> dict:
        body = {
            "subject": subject,
            "startsAtLocal": starts_at_local,
            "durationMinutes": duration_minutes,
            "scheduledTimeZone": scheduled_time_zone,
            "lawyerEmail": lawyer_email,
        }
        return self._request("POST", "/api/appointments/preview", json=body)
