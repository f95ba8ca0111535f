"""FastAPI application entry point."""
import os

# Force UTC before any module caches timezone information
os.environ['TZ'] = 'UTC'

import asyncio
import time

if hasattr(time, "tzset"):
    time.tzset()

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import logging
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path
from contextlib import asynccontextmanager

from wordrace.config import Settings, get_settings
from wordrace.version import APP_VERSION
from wordrace.routers import categories, health, rooms
from wordrace.tasks.room_maintenance import schedule_periodic_maintenance

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Clients poll room state about once a second
POLL_PATH = re.compile(r"^/rooms/[^/]+/state$")


class SQLTransactionFilter(logging.Filter):
    """Drop transaction chatter and fold statements onto one line."""

    def filter(self, record):
        if record.levelno != logging.INFO:
            return True
        message = record.getMessage()
        if any(keyword in message for keyword in ('ROLLBACK', 'BEGIN', 'COMMIT', 'generated in')):
            return False
        if any(keyword in message for keyword in ('SELECT', 'DELETE', 'INSERT', 'UPDATE')):
            record.msg = ' '.join(message.split())
            record.args = ()
        return True


def _rotating_handler(path: Path, max_megabytes: int, backups: int, fmt: str = LOG_FORMAT) -> RotatingFileHandler:
    handler = RotatingFileHandler(path, maxBytes=max_megabytes * 1024 * 1024, backupCount=backups, encoding='utf-8')
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def configure_logging(app_settings: Settings) -> None:
    """Console plus rotating files: general, API requests and SQL each get their own."""
    logs_dir = Path(app_settings.log_dir)
    logs_dir.mkdir(parents=True, exist_ok=True)

    general_handler = _rotating_handler(logs_dir / "wordrace.log", 1, 5)

    # Force=True overrides any existing configuration (e.g., from uvicorn)
    logging.basicConfig(
        level=app_settings.log_level.upper(),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(), general_handler],
        force=True,
    )

    api_logger = logging.getLogger("wordrace.api")
    api_logger.handlers.clear()
    api_logger.addHandler(
        _rotating_handler(logs_dir / "wordrace_api.log", 2, 15, '%(asctime)s - %(levelname)s - %(message)s')
    )
    api_logger.setLevel(logging.DEBUG if app_settings.environment == "development" else logging.INFO)
    api_logger.propagate = False

    uvicorn_access_logger = logging.getLogger("uvicorn.access")
    if general_handler not in uvicorn_access_logger.handlers:
        uvicorn_access_logger.addHandler(general_handler)

    sqlalchemy_logger = logging.getLogger("sqlalchemy.engine.Engine")
    sqlalchemy_logger.handlers.clear()
    sqlalchemy_logger.addHandler(_rotating_handler(logs_dir / "wordrace_sql.log", 1, 5))
    sqlalchemy_logger.setLevel(logging.INFO)
    sqlalchemy_logger.propagate = False
    sqlalchemy_logger.addFilter(SQLTransactionFilter())


settings = get_settings()
configure_logging(settings)
logger = logging.getLogger(__name__)
api_logger = logging.getLogger("wordrace.api")


async def initialize_word_validation():
    """Check the configured word validator before accepting traffic."""
    if not settings.use_word_validator_api:
        logger.info("Using local structural word validator")
        return

    from wordrace.services.word_validation_client import get_word_validation_client
    if await get_word_validation_client().health_check():
        logger.info(f"Word validation API health check passed at {settings.word_validator_url}")
    else:
        logger.error(
            f"Word validation API health check failed at {settings.word_validator_url}; "
            "category checks will reject words until it recovers"
        )


async def stop_maintenance(task: asyncio.Task) -> None:
    task.cancel()
    try:
        await asyncio.wait_for(task, timeout=2.0)
    except asyncio.CancelledError:
        logger.info("Room maintenance task cancelled")
    except asyncio.TimeoutError:
        logger.warning("Room maintenance task did not stop within 2s")


@asynccontextmanager
async def lifespan(app_instance: FastAPI):
    """Start the room sweeper and validator; tear both down on shutdown."""
    database_label = settings.database_url.split('@')[-1] if '@' in settings.database_url else 'SQLite'
    logger.info(
        f"WordRace API {APP_VERSION} starting (environment={settings.environment}, "
        f"database={database_label}, redis={'enabled' if settings.redis_url else 'in-memory'})"
    )

    await initialize_word_validation()

    maintenance_task = asyncio.create_task(
        schedule_periodic_maintenance(settings.maintenance_interval_seconds)
    )
    logger.info(f"Room maintenance scheduled every {settings.maintenance_interval_seconds}s")

    try:
        yield
    finally:
        await stop_maintenance(maintenance_task)

        if settings.use_word_validator_api:
            from wordrace.services.word_validation_client import get_word_validation_client
            try:
                await get_word_validation_client().close()
            except Exception as e:
                logger.error(f"Error closing word validation client: {e}")

        logger.info("WordRace API stopped")


app = FastAPI(
    title="WordRace API",
    description="Multiplayer word race game backend",
    version=APP_VERSION,
    lifespan=lifespan,
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Flatten pydantic errors to ``{field, message, type}`` entries."""
    logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")

    errors = []
    for error in exc.errors():
        loc = error.get("loc", [])
        errors.append({
            "field": " -> ".join(str(part) for part in loc[1:]) if len(loc) > 1 else "unknown field",
            "message": error.get("msg", "Validation error"),
            "type": error.get("type", "unknown"),
        })

    return JSONResponse(
        status_code=422,
        content={"detail": "Request validation failed", "errors": errors},
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """One API log line per request; state polls only show up at DEBUG unless they fail."""
    start_time = time.perf_counter()
    method = request.method
    path = request.url.path
    player_id = request.headers.get("x-player-id", "-")
    client_ip = request.client.host if request.client else "unknown"

    try:
        response = await call_next(request)
    except Exception as e:
        api_logger.error(
            f"{method} {path} | player: {player_id} | EXCEPTION {str(e)[:100]} | "
            f"{time.perf_counter() - start_time:.3f}s | IP: {client_ip}"
        )
        raise

    level = logging.INFO
    if response.status_code >= 500:
        level = logging.ERROR
    elif response.status_code >= 400:
        level = logging.WARNING
    elif method == "GET" and POLL_PATH.match(path):
        level = logging.DEBUG

    api_logger.log(
        level,
        f"{method} {path} | player: {player_id} | {response.status_code} | "
        f"{time.perf_counter() - start_time:.3f}s | IP: {client_ip}",
    )
    return response


def _allowed_origins(app_settings: Settings) -> list[str]:
    configured = [origin.strip() for origin in app_settings.allowed_origins.split(",") if origin.strip()]
    return configured or [
        app_settings.frontend_url,
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:3000",
    ]


app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins(settings),
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(rooms.router, prefix="/rooms", tags=["rooms"])
app.include_router(categories.router, tags=["categories"])
app.include_router(health.router, tags=["health"])


@app.get("/")
async def root():
    return {
        "message": "WordRace API",
        "version": APP_VERSION,
        "environment": settings.environment,
        "docs": "/docs",
    }
