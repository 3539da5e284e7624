"""
Standalone reminder worker.

Purpose:
- Run the subscription scheduler without the HTTP API
- Stop cleanly on SIGINT/SIGTERM: disarm the timer, wait for in-flight
  ticks, then release the DB pool

Usage:
- python -m workers.reminder_worker

Production notes:
- Run exactly one scheduler (worker or API) per database; two would send
  every reminder twice
"""
import asyncio
import logging
import signal

from config.settings import settings
from core.container import build_container
from core.logging import configure_logging
from services.parameter_service import ParameterStore, hydrate_settings

logger = logging.getLogger(__name__)


async def main():
    """Entry point for running the worker."""
    if settings.USE_SSM:
        hydrate_settings(settings, ParameterStore(settings.AWS_REGION))
    container = build_container(settings)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows event loops have no signal handlers; Ctrl+C still raises
            pass

    await container.startup()
    # startup() respects SCHEDULER_ENABLED; the worker always schedules
    container.scheduler.start()
    logger.info("Reminder worker running. Press Ctrl+C to exit.")
    try:
        await stop_event.wait()
    finally:
        await container.shutdown()
        logger.info("Reminder worker stopped. Ticks started: %s", container.scheduler.ticks_started)


if __name__ == "__main__":
    configure_logging(settings.LOG_LEVEL)
    asyncio.run(main())
