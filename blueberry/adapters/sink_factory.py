"""Notification sink factory — creates the right adapter based on config."""

from __future__ import annotations

from typing import TYPE_CHECKING

from blueberry.config import settings

if TYPE_CHECKING:
    from telegram.ext import Application

    from blueberry.ports.notification_port import NotificationSink


def create_notification_sink(application: Application | None = None) -> NotificationSink:
    """Return the sink matching the NOTIFICATION_SINK setting.

    Args:
        application: Running Telegram application. Required by the
            telegram sinks, which use its bot (and job queue).
    """
    kind = settings.NOTIFICATION_SINK.lower()

    if kind == "telegram":
        from blueberry.adapters.telegram_sink import TelegramSink

        if application is None or application.job_queue is None:
            raise ValueError("The telegram sink needs an Application with a JobQueue")
        return TelegramSink(
            bot=application.bot,
            job_queue=application.job_queue,
            chat_id=settings.NOTIFY_CHAT_ID,
            app_base_url=settings.APP_BASE_URL,
        )

    if kind == "direct":
        from blueberry.adapters.telegram_sink import TelegramDirectSink

        if application is None:
            raise ValueError("The direct sink needs a Telegram Application")
        return TelegramDirectSink(bot=application.bot, chat_id=settings.NOTIFY_CHAT_ID)

    if kind == "memory":
        from blueberry.adapters.memory_sink import InMemorySink

        return InMemorySink()

    if kind == "none":
        from blueberry.adapters.memory_sink import NullSink

        return NullSink()

    raise ValueError(f"Unknown NOTIFICATION_SINK: {kind!r}")
