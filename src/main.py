"""Finance mentor entry point."""

import asyncio
import logging

from src.api.server import ApiServer
from src.config import settings
from src.store import DocumentStore

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, settings.log_level),
)
logger = logging.getLogger(__name__)


async def serve() -> None:
    server = ApiServer(DocumentStore())
    await server.start()
    try:
        await asyncio.Event().wait()
    finally:
        await server.stop()


def main() -> None:
    """Start the HTTP API."""
    if not settings.anthropic_api_key:
        logger.warning("ANTHROPIC_API_KEY is empty; chat requests will fail")
    logger.info("Starting finance mentor with model %s...", settings.chat_model)
    asyncio.run(serve())


if __name__ == "__main__":
    main()
