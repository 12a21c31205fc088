#stash_watch/main.py

"""
stash-watch - trigger Stash library scans when watched directories change
"""
import sys
import signal
import asyncio
import logging
from typing import Optional, Sequence

from stash_watch.core.scheduler import ScheduledTrigger
from stash_watch.core.stash_client import StashClient
from stash_watch.utils.config import load_config
from stash_watch.utils.errors import ConfigError, StashWatchError
from stash_watch.utils.logger import VERBOSE, setup_logging
from stash_watch.watchdog.monitor import FileMonitor

logger = logging.getLogger(__name__)


def _install_signal_handlers(loop: asyncio.AbstractEventLoop, stop_event: asyncio.Event):
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except (NotImplementedError, RuntimeError):
            # Windows: KeyboardInterrupt still reaches asyncio.run
            pass


async def run(config) -> int:
    """Run the watcher until interrupted; returns the exit code"""
    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()
    fatal = []

    def on_fatal(error: BaseException):
        # Called from observer and enumeration threads
        fatal.append(error)
        loop.call_soon_threadsafe(stop_event.set)

    _install_signal_handlers(loop, stop_event)

    client = StashClient(config.stash)
    monitor = FileMonitor(config, client.trigger_scan, on_fatal=on_fatal)
    trigger = ScheduledTrigger(client.trigger_scan, config.schedule.interval_minutes)

    try:
        monitor.start()
        trigger.start()

        await stop_event.wait()

    except StashWatchError as e:
        logger.error(f"Error: {e}")
        return 1

    finally:
        logger.log(VERBOSE, "Leaving")
        monitor.stop()
        await trigger.stop()
        client.close()

    if fatal:
        logger.error(f"Error: {fatal[0]}")
        return 1
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point"""
    try:
        config = load_config(argv)
    except ConfigError as e:
        setup_logging()
        logger.error(f"Error: {e}")
        return 1

    setup_logging(config.log_level, config.log_file, config.log_format)
    logger.debug(f"Effective configuration:\n{config.to_json()}")

    try:
        return asyncio.run(run(config))
    except KeyboardInterrupt:
        logger.log(VERBOSE, "Leaving")
        return 0


if __name__ == "__main__":
    sys.exit(main())
