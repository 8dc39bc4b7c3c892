"""
Persistence collaborator contract.

The agenda core never talks to a database directly. Anything implementing
AgendaStore can back it; RestStore is the hosted-backend implementation.
"""

from datetime import date
from typing import Protocol

from .rest_store import RestStore


class AgendaStore(Protocol):
    def fetch_personal_tasks(self, user_id: str, start: date, end: date) -> list[dict]: ...

    def fetch_personal_task(self, task_id: str) -> dict | None: ...

    def fetch_bookings(self, worker_id: str, start: date, end: date) -> list[dict]: ...

    def fetch_active_bookings(self, worker_id: str) -> list[dict]: ...

    def fetch_support_profile(self, worker_id: str) -> dict[str, list[dict]]: ...

    def insert_personal_task(self, record: dict) -> dict: ...

    def update_personal_task(self, task_id: str, fields: dict) -> dict: ...

    def delete_personal_task(self, task_id: str) -> None: ...

    def delete_task_bookings(self, task_id: str) -> None: ...

    def insert_bookings(self, rows: list[dict]) -> list[dict]: ...


__all__ = ["AgendaStore", "RestStore"]
