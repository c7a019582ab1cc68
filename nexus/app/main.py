"""
nexus/app/main.py

Entry point of the slot watcher.

- Settings, logging, centers, messages
- AppContext: cache, work queue, worker, scheduler (built before anything
  runs, no module-level mutable state)
- Telegram long polling and the scheduler share the main event loop;
  the worker runs on its own thread.
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path

import redis
from aiogram import Bot, Dispatcher

from nexus.app.config import Settings, get_settings
from nexus.app.centers import CenterRegistry
from nexus.app.collector import (
    EligibilityWindow,
    Scheduler,
    SlotSource,
    TelegramNotifier,
    WorkQueue,
    Worker,
)
from nexus.app.handlers import commands
from nexus.app.i18n.loader import load_messages
from nexus.app.tracking import SubscriberCache, SubscriberStore

APP_DIR = Path(__file__).resolve().parent

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Context
# ------------------------------------------------------------------

@dataclass
class AppContext:
    settings: Settings
    centers: CenterRegistry
    cache: SubscriberCache
    queue: WorkQueue
    worker: Worker
    scheduler: Scheduler


def build_context(settings: Settings) -> AppContext:
    centers = CenterRegistry.from_file(settings.CENTERS_FILE)

    logger.info("Configuring Tracking Manager")
    redis_client = redis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
        socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
    )
    cache = SubscriberCache(SubscriberStore(redis_client), strict_manifest=settings.STRICT_MANIFEST)
    cache.warm_up()
    logger.info("Finished Configuring Tracking Manager")

    queue = WorkQueue()
    worker = Worker(
        queue=queue,
        cache=cache,
        centers=centers,
        slot_source=SlotSource(
            settings.SLOTS_API_URL,
            limit=settings.SLOT_LIMIT,
            timeout=settings.HTTP_TIMEOUT,
        ),
        notifier=TelegramNotifier(settings.TG_BOT_TOKEN),
        window=EligibilityWindow(settings.WINDOW_START, settings.WINDOW_END),
        schedule_url=settings.SCHEDULE_URL,
    )
    scheduler = Scheduler(
        cache,
        queue,
        interval=settings.POLL_INTERVAL,
        retry_interval=settings.LOCK_RETRY_INTERVAL,
    )

    return AppContext(
        settings=settings,
        centers=centers,
        cache=cache,
        queue=queue,
        worker=worker,
        scheduler=scheduler,
    )


# ------------------------------------------------------------------
# Run
# ------------------------------------------------------------------

async def run(ctx: AppContext) -> None:
    bot = Bot(token=ctx.settings.TG_BOT_TOKEN)
    dp = Dispatcher()
    dp.include_router(commands.setup(ctx.cache, ctx.centers))

    ctx.worker.start()
    scheduler_task = asyncio.create_task(ctx.scheduler.run(), name="scheduler")

    logger.info("Starting Async Jobs")
    try:
        await dp.start_polling(bot)
    finally:
        # Cancelling the scheduler sends Shutdown to the worker
        scheduler_task.cancel()
        try:
            await scheduler_task
        except asyncio.CancelledError:
            pass
        await bot.session.close()


def main() -> None:
    settings = get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL)
    logger.info("Starting Nexus Pls")

    load_messages(APP_DIR / "i18n" / "messages.txt")
    ctx = build_context(settings)

    asyncio.run(run(ctx))
    logger.info("Exiting, Goodbye!")


if __name__ == "__main__":
    main()
