# forgeblock/main.py
# Start backend using: uvicorn forgeblock.main:app --host 0.0.0.0 --port 3000
# Set DATABASE_URL and JWT_SECRET_KEY in .env for a durable deployment; without DATABASE_URL
# the server runs on the in-memory store.
import logging
import logging.config
import logging.handlers
import json
import pathlib
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute

from forgeblock.api import auth as auth_router
from forgeblock.api import game as game_router
from forgeblock.api import status as status_router
from forgeblock.core.config import Settings, get_settings, resolve_signing_key
from forgeblock.core.errors import AuthError, ServiceError
from forgeblock.core.security import TokenSigner
from forgeblock.crud.base import CredentialStore
from forgeblock.crud.stores import build_store
from forgeblock.models.common import ErrorResponse
from forgeblock.services.game_gateway import GameGateway
from forgeblock.services.session_authority import SessionAuthority

_queue_handler_instance: Optional[logging.handlers.QueueHandler] = None  # Module-level variable


def configure_logging_from_file():
    """Loads logging configuration from the JSON file and identifies the QueueHandler."""
    global _queue_handler_instance
    config_file = pathlib.Path(__file__).parent / "logging_config.json"
    try:
        with open(config_file) as f_in:
            config = json.load(f_in)

        log_dir = pathlib.Path("logs")
        log_dir.mkdir(exist_ok=True)

        logging.config.dictConfig(config)

        # Find the QueueHandler instance to start/stop its listener in the lifespan
        for handler in logging.getLogger().handlers:
            if isinstance(handler, logging.handlers.QueueHandler):
                _queue_handler_instance = handler
                break

        if not _queue_handler_instance:
            logging.getLogger("forgeblock.main.logging_setup_check").error(
                "QueueHandler not found in root logger. Off-thread logging will not work as intended."
            )
    except FileNotFoundError:
        print(f"ERROR: Logging configuration file not found at {config_file}. Falling back to basic stdout logging.")
        logging.basicConfig(level=logging.INFO, format='%(levelname)-8s [%(name)s] %(message)s')
    except (json.JSONDecodeError, ValueError, TypeError) as e:
        # dictConfig raises ValueError for handler setups this Python version cannot build
        print(f"ERROR: Failed to configure logging from {config_file}: {e}. Falling back to basic stdout logging.")
        logging.basicConfig(level=logging.INFO, format='%(levelname)-8s [%(name)s] %(message)s')
        logging.getLogger("forgeblock.main.logging_setup_fallback").error("Logging configuration failed.", exc_info=True)


# Configure logging when the module is loaded. Listener is started/stopped by lifespan.
configure_logging_from_file()
logger = logging.getLogger("forgeblock.main")  # Logger for this module


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application startup sequence initiated...")
    listener = getattr(_queue_handler_instance, "listener", None)
    if listener is not None:
        listener.start()
        logger.info("Logging QueueListener started.")
    else:
        logger.warning("QueueHandler listener not found during startup; off-thread logging might not be active.")

    yield  # This is where the application will run

    logger.info("Application shutdown sequence initiated...")
    if listener is not None:
        listener.stop()


async def service_error_handler(request: Request, exc: ServiceError):
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
    body = ErrorResponse(message=exc.message, error_code=exc.error_code)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(by_alias=True), headers=headers)


async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    logger.info(f"Rejected malformed request to {request.url.path}: {exc.errors()}")
    body = ErrorResponse(message="Invalid request payload", error_code="validation_error")
    return JSONResponse(status_code=400, content=body.model_dump(by_alias=True))


async def unhandled_error_handler(request: Request, exc: Exception):
    # Full detail to the log, nothing internal to the client
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}: {exc}")
    body = ErrorResponse(message="Internal server error", error_code="server_error")
    return JSONResponse(status_code=500, content=body.model_dump(by_alias=True))


def create_app(settings: Optional[Settings] = None, store: Optional[CredentialStore] = None) -> FastAPI:
    """
    Builds the application with its collaborators wired once: settings, the
    signing key, and the credential store. Tests pass their own settings and a
    fresh store.
    """
    settings = settings or get_settings()
    signer = TokenSigner.from_settings(settings, resolve_signing_key(settings))
    if store is None:
        store = build_store(settings)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.session_authority = SessionAuthority(store, signer, settings)
    app.state.game_gateway = GameGateway(app.state.session_authority, store)

    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Include Routers
    app.include_router(auth_router.router, prefix=settings.API_PREFIX, tags=["Auth"])
    app.include_router(game_router.router, prefix=settings.API_PREFIX, tags=["Game Server"])
    app.include_router(status_router.router, prefix=settings.API_PREFIX, tags=["Status"])

    @app.get(settings.API_PREFIX + "/health", tags=["Health Check"])
    async def health_check():
        return {"status": "healthy", "project": settings.PROJECT_NAME}

    logger.debug("--- FastAPI Registered Routes ---")
    for route in app.routes:
        if isinstance(route, APIRoute):
            logger.debug(f"Path: {route.path}, Methods: {route.methods}, Name: {route.name}")

    logger.info(f"{settings.PROJECT_NAME} v{settings.VERSION} ready "
                f"(database: {'configured' if settings.is_durable else 'memory mode'})")
    return app


app = create_app()
