"""Virtual pet entry point — loads configuration and runs the FastAPI server.

Can be run directly via `python -m virtualpet.main` or the `virtualpet`
console script. Set ENV_FILE to load a .env file other than ./.env.
"""

from __future__ import annotations

import asyncio
import os
import signal
import sys
from typing import Optional

import structlog
import uvicorn

from virtualpet.ai.llm_client import LLMClient
from virtualpet.api.app import create_app
from virtualpet.config import ConfigurationError, Settings, load_settings
from virtualpet.core.pet import Pet


def configure_logging(level: str = "info") -> None:
    """Configure structured logging."""
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(min_level=level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


logger = structlog.get_logger()


class PetServer:
    """Manages the server lifecycle and graceful shutdown."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.llm_client: Optional[LLMClient] = None
        self.uvicorn_server: Optional[uvicorn.Server] = None
        self.shutdown_event = asyncio.Event()

    async def run(self) -> None:
        """Create the pet, serve the API until a shutdown signal, then clean up."""
        settings = self.settings

        self.llm_client = LLMClient(settings=settings)
        logger.info("llm_client_initialized", model=settings.gemini_model_name)

        pet = Pet.create(settings.pet_name, self.llm_client)

        app = create_app(pet=pet, settings=settings)
        logger.info("fastapi_app_created")

        config = uvicorn.Config(
            app,
            host=settings.host,
            port=settings.port,
            log_level=settings.log_level,
            access_log=False,  # requests are logged by the app middleware
        )
        self.uvicorn_server = uvicorn.Server(config)

        def handle_shutdown(sig: int) -> None:
            logger.info("shutdown_signal_received", signal=sig)
            self.shutdown_event.set()

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, lambda s=sig: handle_shutdown(s))

        server_task = asyncio.create_task(self.uvicorn_server.serve())
        shutdown_task = asyncio.create_task(self.shutdown_event.wait())

        logger.info(
            "server_started",
            pet=pet.name,
            api_server=f"http://{settings.host}:{settings.port}",
        )

        try:
            # uvicorn may consume the signal itself and return first
            await asyncio.wait(
                {server_task, shutdown_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            for sig in (signal.SIGTERM, signal.SIGINT):
                loop.remove_signal_handler(sig)
            await self.stop(server_task, shutdown_task)

    async def stop(self, server_task: asyncio.Task, shutdown_task: asyncio.Task) -> None:
        """Stop uvicorn and release the LLM client."""
        logger.info("initiating_graceful_shutdown")

        if self.uvicorn_server:
            self.uvicorn_server.should_exit = True

        try:
            await asyncio.wait_for(server_task, timeout=5.0)
        except asyncio.TimeoutError:
            logger.warning("shutdown_timeout")
            server_task.cancel()
        finally:
            shutdown_task.cancel()
            if self.llm_client:
                await self.llm_client.close()

        logger.info("server_stopped")


async def main(settings: Settings) -> None:
    """Main entry point."""
    runner = PetServer(settings)
    try:
        await runner.run()
    except Exception as exc:
        logger.error("fatal_error", error=str(exc), error_type=type(exc).__name__)
        raise


def run() -> None:
    """Console script entry: load .env, exit on missing configuration."""
    configure_logging()

    try:
        settings = load_settings(os.environ.get("ENV_FILE", ".env"))
    except ConfigurationError as exc:
        logger.error("fatal_error", error=str(exc), error_type=type(exc).__name__)
        sys.exit(1)

    configure_logging(settings.log_level)
    asyncio.run(main(settings))


if __name__ == "__main__":
    run()
