"""
Blueberry Planner Notifier — Telegram Bot.

Telegram is both the delivery channel for scheduled notifications and
the control surface: family members can check status, force a
reschedule, tune their notification settings and send a test message.

A repeating job refreshes the schedule every REFRESH_INTERVAL_MINUTES,
which keeps the rolling two-day medication window populated.

Security-first: unauthorized users are silently ignored.
"""

from __future__ import annotations

import logging
from functools import wraps
from typing import TYPE_CHECKING, Any, Callable, Coroutine

from telegram import Update
from telegram.ext import Application, ApplicationBuilder, CommandHandler, ContextTypes

from blueberry.config import settings
from blueberry.core.notification_scheduler import (
    cancel_category,
    get_pending_notification_count,
    send_test_notification,
)
from blueberry.data.models import Category
from blueberry.integrations.blueberry_api import BlueberryAPIError
from blueberry.ports.notification_port import PermissionState

if TYPE_CHECKING:
    from blueberry.core.rescheduler import NotificationRescheduler
    from blueberry.integrations.blueberry_api import BlueberryClient
    from blueberry.ports.notification_port import NotificationSink

logger = logging.getLogger(__name__)

_CATEGORY_ALIASES = {
    "medications": Category.MEDICATION,
    "meds": Category.MEDICATION,
    "chores": Category.CHORE,
    "reminders": Category.REMINDER,
}


# ---------------------------------------------------------------------------
# Security: silent-ignore decorator
# ---------------------------------------------------------------------------


def authorized_only(
    func: Callable[..., Coroutine[Any, Any, None]],
) -> Callable[..., Coroutine[Any, Any, None]]:
    """Decorator that silently ignores messages from unauthorized users."""

    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        user = update.effective_user
        if user is None or user.id not in settings.ALLOWED_USER_IDS:
            uid = user.id if user else "unknown"
            logger.warning("Unauthorized access attempt from user_id=%s", uid)
            return  # Silent ignore
        return await func(update, context)

    return wrapper


def _parse_category(raw: str) -> Category | None:
    return _CATEGORY_ALIASES.get(raw.strip().lower())


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


@authorized_only
async def cmd_help(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start and /help — list available commands."""
    await update.message.reply_text(
        "*Blueberry Planner reminders*\n"
        "/status — Permission and pending notifications\n"
        "/reschedule — Rebuild all reminders now\n"
        "/settings — Show notification settings\n"
        "/toggle <medications|chores|reminders> — Turn a category on/off\n"
        "/lead <medications|chores|reminders> <minutes> — Set lead time\n"
        "/test — Send a test notification\n"
        "/help — Show this message",
        parse_mode="Markdown",
    )


@authorized_only
async def cmd_status(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /status — permission state and pending count."""
    sink: NotificationSink = context.bot_data["sink"]
    permission = await sink.check_permission()
    pending = await get_pending_notification_count(sink)
    await update.message.reply_text(
        f"Permission: {permission.value}\nPending notifications: {pending}"
    )


@authorized_only
async def cmd_reschedule(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /reschedule — rebuild every category, bypassing the throttle."""
    rescheduler: NotificationRescheduler = context.bot_data["rescheduler"]

    lines = []
    for category in Category:
        outcome = await rescheduler.reschedule_category(category)
        if outcome is None:
            lines.append(f"{category.plural}: unavailable")
        else:
            lines.append(f"{category.plural}: {outcome.scheduled} ({outcome.status.value})")
    await update.message.reply_text("\n".join(lines))


@authorized_only
async def cmd_settings(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /settings — show enable flags and lead times."""
    client: BlueberryClient = context.bot_data["client"]
    current = await client.get_notification_settings()

    lines = ["*Notification settings:*"]
    for category in Category:
        state = "on" if current.is_enabled(category) else "off"
        lines.append(
            f"{category.plural}: {state}, {current.lead_minutes(category)} min before"
        )
    await update.message.reply_text("\n".join(lines), parse_mode="Markdown")


@authorized_only
async def cmd_toggle(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /toggle <category> — flip a category's enabled flag."""
    category = _parse_category(context.args[0]) if context.args else None
    if category is None:
        await update.message.reply_text("Usage: /toggle <medications|chores|reminders>")
        return

    enabled = await _update_settings(update, context, category, toggle=True)
    if enabled is not None:
        await update.message.reply_text(
            f"{category.plural} notifications {'on' if enabled else 'off'}."
        )


@authorized_only
async def cmd_lead(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /lead <category> <minutes> — set a category's lead time."""
    args = context.args or []
    category = _parse_category(args[0]) if args else None
    try:
        minutes = int(args[1]) if len(args) > 1 else -1
    except ValueError:
        minutes = -1

    if category is None or not 0 <= minutes <= 24 * 60:
        await update.message.reply_text(
            "Usage: /lead <medications|chores|reminders> <minutes>"
        )
        return

    if await _update_settings(update, context, category, minutes=minutes) is not None:
        await update.message.reply_text(
            f"{category.plural} notifications now {minutes} min before."
        )


async def _update_settings(
    update: Update,
    context: ContextTypes.DEFAULT_TYPE,
    category: Category,
    toggle: bool = False,
    minutes: int | None = None,
) -> bool | None:
    """Persist a settings change and reschedule the category.

    Returns the category's enabled flag, or None if loading or saving failed.
    """
    client: BlueberryClient = context.bot_data["client"]
    rescheduler: NotificationRescheduler = context.bot_data["rescheduler"]

    try:
        current = await client.fetch_notification_settings()
    except BlueberryAPIError as exc:
        logger.error("Loading notification settings failed: %s", exc)
        await update.message.reply_text("Couldn't load settings. Please try again.")
        return None

    changes: dict[str, Any] = {}
    if toggle:
        changes[f"{category.plural}_enabled"] = not current.is_enabled(category)
    if minutes is not None:
        changes[f"{category.plural}_minutes"] = minutes

    try:
        saved = await client.save_notification_settings(current.model_copy(update=changes))
    except BlueberryAPIError as exc:
        logger.error("Saving notification settings failed: %s", exc)
        await update.message.reply_text("Couldn't save settings. Please try again.")
        return None

    if saved.is_enabled(category):
        await rescheduler.reschedule_category(category)
    else:
        # Disabled categories are skipped by the scheduler, so clear them here.
        try:
            await cancel_category(context.bot_data["sink"], category)
        except Exception as exc:
            logger.error("Clearing %s notifications failed: %s", category.plural, exc)
    return saved.is_enabled(category)


@authorized_only
async def cmd_test(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /test — send a test notification."""
    sink: NotificationSink = context.bot_data["sink"]
    if await send_test_notification(sink):
        await update.message.reply_text("Test notification on its way.")
    else:
        await update.message.reply_text("Notifications are not available.")


# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------


async def _refresh_job_callback(context: ContextTypes.DEFAULT_TYPE) -> None:
    sink: NotificationSink = context.bot_data["sink"]
    rescheduler: NotificationRescheduler = context.bot_data["rescheduler"]
    if await sink.check_permission() is PermissionState.DEFAULT:
        await sink.request_permission()
    await rescheduler.reschedule_all()


async def _post_init(app: Application) -> None:
    """Confirm the notification chat once the bot is connected."""
    sink: NotificationSink = app.bot_data["sink"]
    granted = await sink.request_permission()
    logger.info("Notification permission %s", "granted" if granted else "not granted")


def build_app(
    sink: NotificationSink | None = None,
    client: BlueberryClient | None = None,
) -> Application:
    """Build and configure the Telegram Application with all handlers.

    Args:
        sink: Notification sink. Defaults to the one selected by
              NOTIFICATION_SINK (created from the app after it is built).
        client: Blueberry API client. Defaults to one built from settings.
    """
    from blueberry.config import local_timezone
    from blueberry.core.rescheduler import NotificationRescheduler

    app = ApplicationBuilder().token(settings.TELEGRAM_BOT_TOKEN).post_init(_post_init).build()

    if sink is None:
        from blueberry.adapters.sink_factory import create_notification_sink
        sink = create_notification_sink(app)

    if client is None:
        from blueberry.integrations.blueberry_api import BlueberryClient
        client = BlueberryClient.from_settings()

    rescheduler = NotificationRescheduler(
        client,
        sink,
        min_interval=settings.RESCHEDULE_MIN_INTERVAL_SECONDS,
        tz=local_timezone(),
    )

    app.bot_data["sink"] = sink
    app.bot_data["client"] = client
    app.bot_data["rescheduler"] = rescheduler

    app.add_handler(CommandHandler(["start", "help"], cmd_help))
    app.add_handler(CommandHandler("status", cmd_status))
    app.add_handler(CommandHandler("reschedule", cmd_reschedule))
    app.add_handler(CommandHandler("settings", cmd_settings))
    app.add_handler(CommandHandler("toggle", cmd_toggle))
    app.add_handler(CommandHandler("lead", cmd_lead))
    app.add_handler(CommandHandler("test", cmd_test))

    app.job_queue.run_repeating(
        _refresh_job_callback,
        interval=settings.REFRESH_INTERVAL_MINUTES * 60,
        first=1,
        name="notification_refresh",
    )
    logger.info(
        "Notification refresh every %d min via %s sink",
        settings.REFRESH_INTERVAL_MINUTES, settings.NOTIFICATION_SINK,
    )
    return app


def main() -> None:
    """Entry point: build the app and start polling."""
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logging.getLogger().setLevel(settings.LOG_LEVEL.upper())
    logging.getLogger("httpx").setLevel(logging.WARNING)

    if not settings.TELEGRAM_BOT_TOKEN:
        logger.error("TELEGRAM_BOT_TOKEN is missing or not set in .env")
        raise SystemExit(1)

    logger.info("Starting Blueberry Planner notifier...")
    app = build_app()
    app.run_polling()


if __name__ == "__main__":
    main()
