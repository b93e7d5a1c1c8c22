"""
FastAPI main application for the listing search service.
"""

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
import logging

from listing_search import __version__
from listing_search.config import Settings, get_settings
from listing_search.connections import close_connections, open_connections
from listing_search.consumers import ListingChangeConsumer
from listing_search.errors import ConsumerShutdownError
from listing_search.routers import health, search

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
    "Access-Control-Max-Age": "3600",
}


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    settings: Settings = app.state.settings

    logger.info("Starting Listing Search API...")
    connections = await open_connections(settings)
    app.state.search_service = connections.search_service

    consumer = None
    if settings.consumer.enabled:
        consumer = ListingChangeConsumer(
            connections.search_service,
            settings.consumer.amqp_url,
            queue_name=settings.consumer.queue_name,
            message_timeout=settings.consumer.message_timeout_seconds,
            drain_timeout=settings.consumer.drain_timeout_seconds,
            retry_config=settings.retry,
        )
        try:
            await consumer.start()
        except Exception as e:
            logger.error(f"Failed to start RabbitMQ consumer: {e}")
            await close_connections(connections)
            raise
        logger.info("RabbitMQ consumer started")

    yield

    logger.info("Shutting down Listing Search API...")
    if consumer is not None:
        try:
            await consumer.close()
        except ConsumerShutdownError as e:
            logger.error(f"Error closing RabbitMQ consumer: {e}")
    await close_connections(connections)
    logger.info("Listing Search API shut down complete")


def create_app(settings: Settings = None) -> FastAPI:
    """Build the application; handles are attached by the lifespan."""
    app = FastAPI(
        title="Listing Search API",
        description="Paginated, filtered listing search backed by Solr with a two-tier cache",
        version=__version__,
        lifespan=lifespan
    )
    app.state.settings = settings or get_settings()

    @app.middleware("http")
    async def cors_middleware(request: Request, call_next):
        # Preflight requests are answered here without reaching the routes
        if request.method == "OPTIONS":
            return Response(status_code=204, headers=CORS_HEADERS)
        response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail), "code": exc.status_code},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request parameters", "code": 400},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc!r}")
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "code": 500},
        )

    app.include_router(health.router, tags=["health"])
    app.include_router(search.router, tags=["search"])

    return app


app = create_app()


def run() -> None:
    """Run the API with uvicorn"""
    import uvicorn

    settings: Settings = app.state.settings
    configure_logging(settings.log_level)
    uvicorn.run(app, host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    run()
