"""Telegram notification adapters — implement NotificationSink.

TelegramSink is the scheduling sink: every trigger becomes a one-shot job
on the python-telegram-bot JobQueue, which plays the role of the device's
pending-notification store. When a job fires, the trigger is sent to the
configured chat.

TelegramDirectSink can only deliver immediately (the analogue of a
browser Notification): nothing is stored, so nothing can be scheduled.
"""

from __future__ import annotations

import logging
from typing import Sequence

from telegram import Bot
from telegram.error import BadRequest, Forbidden, TelegramError
from telegram.ext import ContextTypes, JobQueue

from blueberry.core.notification_scheduler import route_for_extra
from blueberry.data.models import TriggerDescriptor
from blueberry.ports.notification_port import NotificationSinkError, PermissionState

logger = logging.getLogger(__name__)

_JOB_PREFIX = "trigger:"


def _job_name(trigger_id: int) -> str:
    return f"{_JOB_PREFIX}{trigger_id}"


def format_trigger_message(trigger: TriggerDescriptor, app_base_url: str = "") -> str:
    """Render a fired trigger as chat text, with a deep link when possible."""
    text = f"{trigger.title}\n{trigger.body}"
    route = route_for_extra(trigger.extra)
    if app_base_url and route:
        text += f"\n{app_base_url.rstrip('/')}{route}"
    return text


class _TelegramChat:
    """Permission and immediate delivery shared by both Telegram sinks.

    The chat counts as "permitted" once the bot has confirmed it can see it.
    """

    def __init__(self, bot: Bot, chat_id: int | None) -> None:
        self._bot = bot
        self._chat_id = chat_id
        self._confirmed: bool | None = None

    async def check_permission(self) -> PermissionState:
        if self._chat_id is None or self._confirmed is False:
            return PermissionState.DENIED
        if self._confirmed is None:
            return PermissionState.DEFAULT
        return PermissionState.GRANTED

    async def request_permission(self) -> bool:
        if self._chat_id is None:
            logger.warning("No NOTIFY_CHAT_ID configured, notifications disabled")
            return False
        try:
            await self._bot.get_chat(self._chat_id)
            self._confirmed = True
        except (BadRequest, Forbidden) as exc:
            logger.error("Chat %d is not reachable: %s", self._chat_id, exc)
            self._confirmed = False
        except TelegramError as exc:
            # Transient (network, timeout): stays DEFAULT and is retried later.
            logger.warning("Could not confirm chat %d: %s", self._chat_id, exc)
        return self._confirmed is True

    async def show(self, title: str, body: str) -> None:
        if self._chat_id is None:
            raise NotificationSinkError("No chat configured")
        try:
            await self._bot.send_message(chat_id=self._chat_id, text=f"{title}\n{body}")
        except TelegramError as exc:
            logger.error("Telegram send failed: %s", exc)
            raise NotificationSinkError(f"Failed to show notification: {exc}") from exc


class TelegramSink(_TelegramChat):
    """JobQueue-backed implementation of NotificationSink."""

    supports_scheduling = True

    def __init__(
        self,
        bot: Bot,
        job_queue: JobQueue,
        chat_id: int | None,
        app_base_url: str = "",
    ) -> None:
        super().__init__(bot, chat_id)
        self._job_queue = job_queue
        self._app_base_url = app_base_url

    async def schedule(self, triggers: Sequence[TriggerDescriptor]) -> None:
        if self._chat_id is None:
            raise NotificationSinkError("No chat configured")
        try:
            for trigger in triggers:
                self._remove_jobs(trigger.id)
                self._job_queue.run_once(
                    self._fire,
                    when=trigger.fire_at,
                    data=trigger,
                    name=_job_name(trigger.id),
                    chat_id=self._chat_id,
                )
        except Exception as exc:
            logger.error("JobQueue scheduling error: %s", exc)
            raise NotificationSinkError(f"Failed to schedule triggers: {exc}") from exc
        logger.debug("Scheduled %d triggers for chat %d", len(triggers), self._chat_id)

    async def cancel(self, trigger_ids: Sequence[int]) -> None:
        try:
            for tid in trigger_ids:
                self._remove_jobs(tid)
        except Exception as exc:
            logger.error("JobQueue cancellation error: %s", exc)
            raise NotificationSinkError(f"Failed to cancel triggers: {exc}") from exc

    async def get_pending(self) -> list[TriggerDescriptor]:
        try:
            jobs = self._job_queue.jobs()
        except Exception as exc:
            raise NotificationSinkError(f"Failed to list pending triggers: {exc}") from exc
        return [
            job.data for job in jobs
            if job.name and job.name.startswith(_JOB_PREFIX) and not job.removed
        ]

    def _remove_jobs(self, trigger_id: int) -> None:
        for job in self._job_queue.get_jobs_by_name(_job_name(trigger_id)):
            job.schedule_removal()

    async def _fire(self, context: ContextTypes.DEFAULT_TYPE) -> None:
        trigger: TriggerDescriptor = context.job.data
        try:
            await context.bot.send_message(
                chat_id=context.job.chat_id,
                text=format_trigger_message(trigger, self._app_base_url),
            )
            logger.info("Notification %d delivered (%s)", trigger.id, trigger.action_type)
        except TelegramError as exc:
            logger.error("Failed to deliver notification %d: %s", trigger.id, exc)


class TelegramDirectSink(_TelegramChat):
    """Immediate-only Telegram delivery; scheduling calls are inert."""

    supports_scheduling = False

    async def schedule(self, triggers: Sequence[TriggerDescriptor]) -> None:
        return None

    async def cancel(self, trigger_ids: Sequence[int]) -> None:
        return None

    async def get_pending(self) -> list[TriggerDescriptor]:
        return []
