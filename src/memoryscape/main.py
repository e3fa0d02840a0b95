"""Main entry point for the Memoryscape server."""

import asyncio
import logging
import sys

import aiohttp
from pydantic import ValidationError

from memoryscape.adapters.config import AppConfig
from memoryscape.adapters.web import MemoryscapeWebAdapter

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stderr,
)

logger = logging.getLogger(__name__)


async def main() -> None:
    """Main application entry point."""
    try:
        config = AppConfig()
    except ValidationError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    logging.getLogger().setLevel(config.log_level.upper())
    if config.jwt_secret == "change-me":
        logger.warning("JWT_SECRET is not set; using the insecure default secret")

    # Create aiohttp session for media uploads
    async with aiohttp.ClientSession() as session:
        web_adapter = MemoryscapeWebAdapter(config, session=session)
        try:
            await web_adapter.start()
        except KeyboardInterrupt:
            logger.info("Shutting down...")
            await web_adapter.stop()


def run() -> None:
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
