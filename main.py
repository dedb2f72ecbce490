"""
Blueberry Planner Notifier — Entry Point.

Single entry point: `python main.py` starts the Telegram bot, which keeps
the family's medication, chore and reminder notifications scheduled.
"""

import logging

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

from blueberry.bot.telegram_bot import main

if __name__ == "__main__":
    main()
