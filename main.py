"""Main FastAPI application"""
import logging
import logging.config
from typing import Optional
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from config import Settings, settings as default_settings
from routes import router as api_router, enforce_rate_limit, ALLOWED_METHODS, EXPENSES_PATH
from services.expense_store import ExpenseStore, InMemoryExpenseStore
from utils.id_generator import TimestampIdGenerator

from limits import parse_many
from slowapi import Limiter
from slowapi.util import get_remote_address

API_PREFIX = "/api"


def build_logging_config(level: str) -> dict:
    """dictConfig sending app and uvicorn logs through RichHandler."""
    level = level.upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(name)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "default": {
                "class": "rich.logging.RichHandler",
                "formatter": "default",
                "level": "DEBUG",
                "rich_tracebacks": True,
                "show_time": True,
                "show_path": False,
                "log_time_format": "%Y-%m-%d %H:%M:%S",
                "markup": False,
            },
        },
        "loggers": {
            "uvicorn": {"handlers": ["default"], "level": "INFO", "propagate": False},
            "uvicorn.error": {"handlers": ["default"], "level": "INFO", "propagate": False},
            "uvicorn.access": {"handlers": ["default"], "level": "INFO", "propagate": False},
            "": { # Root logger for our application
                "handlers": ["default"],
                "level": level,
                "propagate": False,
            },
        },
    }


logging.config.dictConfig(build_logging_config(default_settings.log_level))
logger = logging.getLogger(__name__)


# --- Middleware for Body Size Limit ---
class LimitBodySizeMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, max_body_size: int, path: str):
        super().__init__(app)
        self.max_body_size = max_body_size
        self.path = path

    async def dispatch(self, request: Request, call_next):
        if request.method == "POST" and request.url.path == self.path:
            content_length_header = request.headers.get("content-length")
            if content_length_header:
                try:
                    content_length = int(content_length_header)
                except ValueError:
                    logger.warning("Request rejected: Invalid Content-Length header.")
                    return JSONResponse({"success": False, "error": "Invalid Content-Length header."}, status_code=400)
                if content_length > self.max_body_size:
                    logger.warning(f"Request rejected: Body size {content_length} exceeds limit {self.max_body_size}.")
                    return JSONResponse(
                        {"success": False, "error": f"Request body exceeds the {self.max_body_size} byte limit."},
                        status_code=413,
                    )
            # Chunked bodies carry no Content-Length and are not checked up front

        return await call_next(request)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Renders every HTTP error as {"success": false, "error": ...}, keeping headers such as Allow."""
    detail = str(exc.detail)
    headers = getattr(exc, "headers", None)
    # The router's own 405 for unlisted verbs advertises only the first matching route
    if exc.status_code == 405 and request.url.path == API_PREFIX + EXPENSES_PATH:
        detail = f"Method {request.method} Not Allowed"
        headers = {**(headers or {}), "Allow": ", ".join(ALLOWED_METHODS)}
    return JSONResponse(
        {"success": False, "error": detail},
        status_code=exc.status_code,
        headers=headers,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    store = app.state.expense_store
    logger.info(f"Expense API starting with {type(store).__name__}. Records are kept in memory only.")
    yield
    store = app.state.expense_store
    if store is not None:
        logger.warning(f"Shutting down. Discarding {store.count()} in-memory expenses.")


def create_app(settings: Optional[Settings] = None, store: Optional[ExpenseStore] = None) -> FastAPI:
    """
    Builds the application. Each call gets its own store and id generator
    unless a store is passed in.
    """
    settings = settings or default_settings

    app = FastAPI(
        title="Expense Tracker API",
        description="API for recording and listing expenses held in memory.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.expense_store = store if store is not None else InMemoryExpenseStore()
    app.state.id_generator = TimestampIdGenerator()

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    # --- Rate Limiter Setup ---
    # Enforced by the enforce_rate_limit router dependency, not SlowAPIMiddleware,
    # whose route lookup misses routes mounted through include_router on newer FastAPI
    app.state.rate_limits = parse_many(settings.rate_limit) if settings.rate_limit else []
    app.state.limiter = Limiter(key_func=get_remote_address, enabled=bool(app.state.rate_limits))
    if app.state.rate_limits:
        logger.info(f"Rate limiting enabled: {settings.rate_limit}")

    # --- Add Middleware (Order Matters, last added runs first) ---
    app.add_middleware(
        LimitBodySizeMiddleware,
        max_body_size=settings.max_body_size,
        path=API_PREFIX + EXPENSES_PATH,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(
        api_router,
        prefix=API_PREFIX,
        tags=["api"],
        dependencies=[Depends(enforce_rate_limit)],
    )
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=default_settings.host,
        port=default_settings.port,
        reload=default_settings.reload,
    )
