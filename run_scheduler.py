#!/usr/bin/env python3
"""
FeedPress Scheduler Runner
==========================

Main entry point for running the feed sweep and daily reset triggers as a
long-lived service. Handles initialization, startup, and graceful shutdown.
"""

import sys
import asyncio
import argparse
import signal
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from feedpress.app import FeedPressApp
from feedpress.config.settings import get_settings
from feedpress.utils.logging import configure_application_logging, get_logger_for_component


async def run_service(app: FeedPressApp) -> None:
    """Run the scheduler until SIGINT/SIGTERM."""
    logger = get_logger_for_component("scheduler_service")
    stop_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows event loops do not support signal handlers
            pass

    await app.start()
    logger.info("Scheduler service running", extra={"jobs": app.scheduler.get_job_status()})
    try:
        await stop_event.wait()
    finally:
        logger.info("Shutting down scheduler service")
        await app.shutdown()


async def main():
    """Main entry point for the scheduler service."""
    parser = argparse.ArgumentParser(description='FeedPress Scheduler')
    parser.add_argument('--once', action='store_true',
                        help='Run a single sweep and exit')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')

    args = parser.parse_args()

    settings = get_settings()
    configure_application_logging(
        log_level="DEBUG" if args.debug else settings.get_effective_log_level(),
        log_file=settings.logging.file_path,
        enable_console=settings.logging.console_logging,
        structured_logging=settings.logging.structured_logging,
        max_file_size=settings.logging.max_file_size_mb * 1024 * 1024,
        backup_count=settings.logging.backup_count,
    )
    logger = get_logger_for_component("scheduler_runner")
    logger.info("Starting FeedPress scheduler...")

    app = FeedPressApp(settings=settings)
    app.initialize_database()

    if args.once:
        try:
            summary = await app.scheduler.run_sweep()
            await app.indexing_queue.wait_idle()
        finally:
            await app.shutdown()
        print(f"🔄 Sweep finished: {summary['processed']} created, {summary['published']} published, "
              f"{summary['failedFeeds']} feeds failed")
        return

    print("🕐 FeedPress scheduler starting...")
    print(f"📅 Sweeping every {settings.scheduler.sweep_interval_minutes} minutes, "
          f"daily reset at {settings.scheduler.daily_reset_hour:02d}:00 UTC")
    print("Press Ctrl+C to stop.")
    await run_service(app)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\n👋 Scheduler stopped by user")
    except Exception as e:
        print(f"❌ Failed to start scheduler: {e}")
        sys.exit(1)
