"""
HR console service entry point
"""

import asyncio
import locale
import logging
import signal
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from aiohttp import web

from app import create_app
from config import ConsoleConfig
from exceptions import ConfigurationException


def setup_logging(config: ConsoleConfig):
    log_level = getattr(logging, config.get('logging.level', 'INFO').upper(), logging.INFO)

    handlers = [logging.StreamHandler(sys.stdout)]
    log_file = config.get('logging.file')
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(RotatingFileHandler(
            log_file,
            maxBytes=config.get('logging.max_size', 10485760),
            backupCount=config.get('logging.backup_count', 5)
        ))

    logging.basicConfig(
        level=log_level,
        format=config.get('logging.format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s'),
        handlers=handlers
    )

    logging.getLogger('aiohttp').setLevel(logging.WARNING)
    logging.getLogger('asyncio').setLevel(logging.WARNING)


def setup_locale(logger: logging.Logger):
    """Collate list sorting with the host locale instead of the C default."""
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as e:
        logger.warning(f"Host locale unavailable, keeping the C collation: {e}")
        return
    logger.info(f"Collation locale: {locale.setlocale(locale.LC_COLLATE)}")


async def main():
    environment = sys.argv[1] if len(sys.argv) > 1 else "development"
    config_file = sys.argv[2] if len(sys.argv) > 2 else None
    config = ConsoleConfig(config_file=config_file, environment=environment)

    setup_logging(config)
    logger = logging.getLogger(__name__)
    setup_locale(logger)

    logger.info(f"Starting HR console in {environment} environment")

    try:
        config.ensure_valid()
    except ConfigurationException as e:
        logger.error(f"Configuration validation failed: {e.message}")
        sys.exit(1)

    app = await create_app(config)

    runner = web.AppRunner(app)
    await runner.setup()

    host = config.service.host
    port = config.service.port

    site = web.TCPSite(runner, host, port)
    await site.start()

    logger.info(f"HR console started on http://{host}:{port}")
    logger.info(f"Health check: http://{host}:{port}/health")

    stop_event = asyncio.Event()

    def signal_handler():
        logger.info("Received shutdown signal")
        stop_event.set()

    if sys.platform != 'win32':
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, signal_handler)

    try:
        await stop_event.wait()
    finally:
        logger.info("Shutting down HR console...")
        await runner.cleanup()
        logger.info("HR console shutdown complete")


def run():
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nShutdown requested by user")


if __name__ == '__main__':
    run()
