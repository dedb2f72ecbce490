"""Blueberry API integration — notification settings and family records.

Read-only access to the per-family listing endpoints plus the
notification-settings resource. Authentication follows the native shell:
the user and family IDs travel as X-User-Id / X-Family-Id headers.

Settings reads degrade gracefully to the default table; record listings
raise BlueberryAPIError so callers can skip a pass instead of scheduling
from partial data.
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from blueberry.data.models import (
    DEFAULT_NOTIFICATION_SETTINGS,
    ChoreRecord,
    MedicationRecord,
    NotificationSettings,
    ReminderRecord,
)

logger = logging.getLogger(__name__)

_SETTINGS_PATH = "/notification-settings"
_SERVER_MANAGED_FIELDS = {"id", "createdAt", "updatedAt", "userId", "familyId"}

RecordT = TypeVar("RecordT", bound=BaseModel)


class BlueberryAPIError(Exception):
    """Raised when a Blueberry API request fails or returns bad data."""


class BlueberryClient:
    """Async client for the Blueberry Planner REST API."""

    def __init__(
        self,
        base_url: str,
        family_id: str,
        user_id: str | None = None,
        timeout: float = 10,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._family_id = family_id
        self._user_id = user_id
        self._timeout = timeout

    @classmethod
    def from_settings(cls) -> BlueberryClient:
        from blueberry.config import settings

        return cls(
            base_url=settings.BLUEBERRY_API_URL,
            family_id=settings.BLUEBERRY_FAMILY_ID,
            user_id=settings.BLUEBERRY_USER_ID or None,
            timeout=settings.API_TIMEOUT_SECONDS,
        )

    @property
    def family_id(self) -> str:
        return self._family_id

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json", "X-Family-Id": self._family_id}
        if self._user_id:
            headers["X-User-Id"] = self._user_id
        return headers

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self._base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.request(method, url, headers=self._headers(), **kwargs)
                resp.raise_for_status()
                return resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise BlueberryAPIError(f"{method} {path} failed: {exc}") from exc

    # ------------------------------------------------------------------
    # Notification settings
    # ------------------------------------------------------------------

    async def fetch_notification_settings(self) -> NotificationSettings:
        """Fetch the member's settings, raising BlueberryAPIError on any failure.

        Write paths use this so a failed read never turns into saved defaults.
        """
        data = await self._request("GET", _SETTINGS_PATH)
        if not isinstance(data, dict):
            raise BlueberryAPIError(f"Unexpected settings payload: {type(data).__name__}")
        try:
            return NotificationSettings.resolve(data)
        except ValidationError as exc:
            raise BlueberryAPIError(f"Invalid settings payload: {exc}") from exc

    async def get_notification_settings(self) -> NotificationSettings:
        """Fetch the member's settings; any failure yields the defaults."""
        try:
            return await self.fetch_notification_settings()
        except BlueberryAPIError as exc:
            logger.warning("Using default notification settings: %s", exc)
            return DEFAULT_NOTIFICATION_SETTINGS

    async def save_notification_settings(
        self, notification_settings: NotificationSettings,
    ) -> NotificationSettings:
        body = {
            k: v
            for k, v in notification_settings.model_dump(by_alias=True).items()
            if k not in _SERVER_MANAGED_FIELDS
        }
        data = await self._request("POST", _SETTINGS_PATH, json=body)
        if not isinstance(data, dict):
            raise BlueberryAPIError("Unexpected settings payload after save")
        logger.info("Notification settings saved for family %s", self._family_id)
        return NotificationSettings.resolve(data)

    # ------------------------------------------------------------------
    # Family records
    # ------------------------------------------------------------------

    async def _list(self, resource: str, model: type[RecordT]) -> list[RecordT]:
        data = await self._request("GET", f"/families/{self._family_id}/{resource}")
        if not isinstance(data, list):
            raise BlueberryAPIError(f"Expected a list of {resource}, got {type(data).__name__}")

        records: list[RecordT] = []
        for item in data:
            try:
                records.append(model.model_validate(item))
            except ValidationError as exc:
                logger.warning("Skipping malformed %s entry: %s", resource, exc)
        return records

    async def list_medications(self) -> list[MedicationRecord]:
        return await self._list("medicines", MedicationRecord)

    async def list_chores(self) -> list[ChoreRecord]:
        return await self._list("chores", ChoreRecord)

    async def list_reminders(self) -> list[ReminderRecord]:
        return await self._list("reminders", ReminderRecord)
