"""
Pixel Board API entrypoint (FastAPI).

This module wires together:
- App startup/shutdown (lifespan): liveness monitor + rate limit cleanup background tasks
- Global middleware: request logging + CORS
- Router registration: board WebSocket, health probes, public read-only endpoints
"""

# -------------------- Standard library imports --------------------
import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from time import time

# -------------------- Third-party imports --------------------
import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# -------------------- Local application imports --------------------
from pixelboard.api.health import router as health_router
from pixelboard.api.live import router as live_router
from pixelboard.api.public import router as public_router
from pixelboard.config import Settings, get_settings
from pixelboard.core.board import Board
from pixelboard.core.liveness import LivenessMonitor

__version__ = "1.0.0"

# -------------------- Environment configuration --------------------
# Load `.env` before settings are read (port, grid size, liveness tuning).
load_dotenv()

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    # Log to stdout, plus a file when LOG_FILE is set.
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if settings.log_file:
        handlers.append(logging.FileHandler(settings.log_file))
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    board = Board(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Handle startup and shutdown events for the FastAPI application."""

        # -------------------- Startup --------------------
        logger.info(
            "Pixel Board starting up: %sx%s grid (%s cells)",
            settings.grid_cols,
            settings.grid_rows,
            board.grid.size,
        )
        monitor = LivenessMonitor(
            board,
            interval=settings.liveness_interval_sec,
            timeout=settings.session_timeout_sec,
        )
        monitor.start()

        async def _rate_limit_cleanup_loop():
            """Periodic cleanup of old rate limiting data to prevent memory leak."""
            while True:
                try:
                    await asyncio.sleep(max(settings.rate_limit_cleanup_interval_min, 1) * 60)
                    board.rate_limiter.cleanup_old_data()
                    logger.debug("Rate limit data cleanup completed")
                except asyncio.CancelledError:
                    break
                except Exception as exc:
                    logger.warning("Rate limit cleanup failed: %s", exc)

        rate_limit_cleanup_task = None
        if settings.rate_limit_cleanup_interval_min > 0:
            rate_limit_cleanup_task = asyncio.create_task(_rate_limit_cleanup_loop())

        yield

        # -------------------- Shutdown --------------------
        logger.info("Pixel Board shutting down...")
        await monitor.stop()

        if rate_limit_cleanup_task:
            rate_limit_cleanup_task.cancel()
            try:
                await rate_limit_cleanup_task
            except asyncio.CancelledError:
                pass

    app = FastAPI(title="Pixel Board WebSocket Server", version=__version__, lifespan=lifespan)
    app.state.board = board
    app.state.settings = settings

    # -------------------- CORS --------------------
    origins = settings.origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request, call_next):
        # Lightweight access log with timing; errors include stack traces for debugging.
        start_time = time()
        try:
            response = await call_next(request)
            logger.info(
                "%s %s - Status: %s - Duration: %.3fs",
                request.method,
                request.url.path,
                response.status_code,
                time() - start_time,
            )
            return response
        except Exception as exc:
            logger.error(
                "%s %s - Error: %s - Duration: %.3fs",
                request.method,
                request.url.path,
                str(exc),
                time() - start_time,
                exc_info=True,
            )
            raise

    @app.get("/")
    async def index():
        return {
            "message": "Pixel Board WebSocket Server",
            "version": __version__,
            "endpoints": {
                "websocket": f"ws://localhost:{settings.port}/ws",
                "health": "/api/health",
                "stats": "/api/stats",
                "grid": "/api/grid",
            },
        }

    # -------------------- Router registration --------------------
    app.include_router(live_router)
    app.include_router(health_router, prefix="/api")
    app.include_router(public_router, prefix="/api")
    return app


settings = get_settings()
configure_logging(settings)
app = create_app(settings)


def run() -> None:
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
