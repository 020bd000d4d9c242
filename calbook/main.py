from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from calbook.config import get_settings
from calbook.dependencies.services import get_backend_client_cached

from calbook.health import router as health_router
from calbook.mcp_server import mcp
from calbook.mock_data_view import router as mock_data_router
from calbook.tools.booking import router as booking_router


def configure_logging(level: str = "INFO") -> None:
    """Install the default log format, or just adjust the level if handlers exist."""
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        )
    else:
        root_logger.setLevel(level)


configure_logging(get_settings().log_level)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()

    settings_snapshot = settings.model_dump(exclude={"backend_token"})
    logger.info("Application settings on startup: %s", settings_snapshot)

    client = get_backend_client_cached()
    logger.info(
        "Using %s appointment store.",
        "in-memory" if client.use_mock_data else "remote",
    )

    try:
        yield
    finally:
        logger.info("Closing booking backend client.")
        await client.close()
        logger.info("Application shutdown complete.")


settings = get_settings()
app = FastAPI(
    title=settings.app_name,
    lifespan=lifespan,
    redirect_slashes=False
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[str(origin).rstrip("/") for origin in settings.cors_origins],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(booking_router, prefix="/tools/booking")
app.include_router(health_router)
app.include_router(mock_data_router)

# MCP Streamable HTTP server
app.mount("/mcp", mcp.streamable_http_app())
