"""
RestStore - the hosted backend, reached over its PostgREST endpoint.

Tables used: personal_tasks, bookings (joined with tasks).
Uses httpx for HTTP calls. Row-level security is enforced server-side; this
client only forwards the API key.

Failures never leak httpx types: reads raise FetchError, writes raise
CommitError, both carrying the HTTP status when there was one.
"""

import logging
from datetime import date
from typing import Any

import httpx

from agenda import config
from agenda.errors import CommitError, FetchError, StoreError

logger = logging.getLogger(__name__)

BOOKING_SELECT = (
    "id,task_id,worker_id,start_date,end_date,is_active,"
    "tasks!inner(title,description,department,priority,status)"
)


def _day(value: date) -> str:
    return value.isoformat()


class RestStore:
    """Request/response access to agenda tables."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
    ):
        """
        Initialize RestStore.

        Args:
            base_url: Backend URL. If None, uses AGENDA_REST_URL.
            api_key: API key. If None, uses AGENDA_REST_KEY.
            timeout: Request timeout in seconds. If None, uses AGENDA_HTTP_TIMEOUT.
        """
        self.base_url = (base_url or config.REST_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else config.REST_KEY
        if not self.api_key:
            raise ValueError("No API key provided. Set AGENDA_REST_KEY env var or pass api_key.")
        self.timeout = timeout or config.HTTP_TIMEOUT

    def _headers(self, write: bool) -> dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }
        if write:
            headers["Content-Type"] = "application/json"
            headers["Prefer"] = "return=representation"
        return headers

    def _request(
        self,
        method: str,
        table: str,
        params: dict | None = None,
        json_data: Any = None,
    ) -> Any:
        """
        Make an authenticated request against /rest/v1/{table}.

        Returns decoded JSON (or None for empty bodies).
        """
        write = method != "GET"
        error_cls: type[StoreError] = CommitError if write else FetchError
        url = f"{self.base_url}/rest/v1/{table}"

        try:
            response = httpx.request(
                method,
                url,
                headers=self._headers(write),
                params=params,
                json=json_data,
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            logger.error("%s %s failed: %s", method, table, e, extra={"table": table})
            raise error_cls(f"{method} {table} failed: {e}", table=table) from e

        if response.status_code >= 400:
            error_msg = f"{method} {table} returned {response.status_code}"
            try:
                body = response.json()
                if isinstance(body, dict) and body.get("message"):
                    error_msg += f": {body['message']}"
            except ValueError:
                error_msg += f": {response.text[:200]}"
            logger.error(error_msg, extra={"table": table, "http_status": response.status_code})
            raise error_cls(error_msg, status_code=response.status_code, table=table)

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise error_cls(f"{method} {table} returned invalid JSON", status_code=response.status_code, table=table) from e

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def fetch_personal_tasks(self, user_id: str, start: date, end: date) -> list[dict]:
        """Personal tasks overlapping [start, end], plus every recurring one."""
        return self._request(
            "GET",
            "personal_tasks",
            params={
                "select": "*",
                "user_id": f"eq.{user_id}",
                "or": f"(and(start_date.lte.{_day(end)},end_date.gte.{_day(start)}),is_recurring.eq.true)",
            },
        ) or []

    def fetch_personal_task(self, task_id: str) -> dict | None:
        rows = self._request("GET", "personal_tasks", params={"select": "*", "id": f"eq.{task_id}"}) or []
        return rows[0] if rows else None

    def fetch_bookings(self, worker_id: str, start: date, end: date) -> list[dict]:
        """Bookings overlapping [start, end], joined with their task."""
        return self._request(
            "GET",
            "bookings",
            params={
                "select": BOOKING_SELECT,
                "worker_id": f"eq.{worker_id}",
                "start_date": f"lte.{_day(end)}",
                "end_date": f"gte.{_day(start)}",
            },
        ) or []

    def fetch_active_bookings(self, worker_id: str) -> list[dict]:
        return self._request(
            "GET",
            "bookings",
            params={
                "select": BOOKING_SELECT,
                "worker_id": f"eq.{worker_id}",
                "is_active": "eq.true",
            },
        ) or []

    def fetch_support_profile(self, worker_id: str) -> dict[str, list[dict]]:
        """Everything the eligibility check needs for one worker."""
        personal = self._request(
            "GET",
            "personal_tasks",
            params={
                "select": "id,user_id,title,can_support,is_recurring,recurring_days,start_date,end_date,is_full_day",
                "user_id": f"eq.{worker_id}",
            },
        ) or []
        return {"personal_tasks": personal, "bookings": self.fetch_active_bookings(worker_id)}

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def insert_personal_task(self, record: dict) -> dict:
        rows = self._request("POST", "personal_tasks", json_data=record) or []
        return rows[0] if rows else dict(record)

    def update_personal_task(self, task_id: str, fields: dict) -> dict:
        rows = self._request("PATCH", "personal_tasks", params={"id": f"eq.{task_id}"}, json_data=fields)
        if not rows:
            raise CommitError(f"Personal task {task_id} not found", status_code=404, table="personal_tasks")
        return rows[0]

    def delete_personal_task(self, task_id: str) -> None:
        self._request("DELETE", "personal_tasks", params={"id": f"eq.{task_id}"})

    def delete_task_bookings(self, task_id: str) -> None:
        self._request("DELETE", "bookings", params={"task_id": f"eq.{task_id}"})

    def insert_bookings(self, rows: list[dict]) -> list[dict]:
        if not rows:
            return []
        return self._request("POST", "bookings", json_data=rows) or []
