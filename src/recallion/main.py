"""Recallion FastAPI application.

The lifespan builds the store, the model gateway and the services, and
publishes them to ``recallion.api.dependencies`` for the routers.
"""

import time
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import AsyncExitStack, asynccontextmanager
from uuid import uuid4

import logfire
import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from recallion.api import dependencies
from recallion.api import router as api_router
from recallion.api.endpoints import core
from recallion.core.config import settings
from recallion.core.handlers import register_error_handlers
from recallion.core.logging import clear_log_context, get_logger, log_context, setup_logging
from recallion.infrastructure.blobs import LocalBlobStore
from recallion.infrastructure.gateway import HttpModelGateway
from recallion.infrastructure.memory import InMemoryMemoryStore
from recallion.infrastructure.neo4j.driver import create_neo4j_driver, ensure_vector_index
from recallion.infrastructure.neo4j.store import Neo4jMemoryStore
from recallion.services import MemoryStore
from recallion.services.chat_service import ChatService
from recallion.services.enrichment import EnrichmentPipeline
from recallion.services.memory_service import MemoryService
from recallion.services.retrieval import RetrievalEngine
from recallion.services.review import ReviewPipeline
from recallion.services.tasks import EnrichmentTaskQueue

logfire.configure(service_name="recallion", send_to_logfire="if-token-present")
setup_logging(level=settings.log_level, json_logs=settings.log_json)
logger = get_logger(__name__)


async def open_store(stack: AsyncExitStack) -> MemoryStore:
    """Build the configured store; the Neo4j driver is closed when ``stack`` unwinds."""
    if settings.store_backend == "memory":
        logger.warning("Using the in-memory store; data is lost on restart")
        return InMemoryMemoryStore()

    driver_lifecycle = create_neo4j_driver()
    driver = await anext(driver_lifecycle)
    stack.push_async_callback(driver_lifecycle.aclose)
    await ensure_vector_index(driver, dimensions=settings.embedding_dimensions)
    return Neo4jMemoryStore(driver)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None]:
    """Application lifecycle: wire services on startup, drain and close on shutdown."""
    logger.info("Starting Recallion", store_backend=settings.store_backend, chat_model=settings.chat_model)

    async with AsyncExitStack() as stack:
        store = await open_store(stack)

        gateway = HttpModelGateway()
        stack.push_async_callback(gateway.aclose)

        pipeline = EnrichmentPipeline(store, gateway)
        queue = EnrichmentTaskQueue(pipeline)
        stack.push_async_callback(queue.aclose)

        dependencies.memory_service = MemoryService(store, queue, blobs=LocalBlobStore(settings.blob_root))
        dependencies.chat_service = ChatService(RetrievalEngine(store, gateway), gateway)
        dependencies.review_pipeline = ReviewPipeline(store, gateway)
        logger.info("Services initialized and ready")

        try:
            yield
        finally:
            logger.info("Shutting down Recallion", pending_enrichments=queue.in_flight)
            dependencies.memory_service = None
            dependencies.chat_service = None
            dependencies.review_pipeline = None

    logger.info("Recallion shutdown complete")


async def request_context(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    """Bind a request id for every log line emitted while handling the request."""
    request_id = request.headers.get("x-request-id") or str(uuid4())
    started = time.perf_counter()
    clear_log_context()
    with log_context(request_id=request_id, path=request.url.path):
        response = await call_next(request)
        logger.debug(
            "Request handled",
            method=request.method,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
    response.headers["X-Request-ID"] = request_id
    return response


def create_app() -> FastAPI:
    app = FastAPI(
        title="Recallion API",
        description="Personal memory store with AI enrichment and grounded chat",
        version=core.VERSION,
        lifespan=lifespan,
        debug=settings.debug,
    )

    # Enable FastAPI instrumentation for request tracing
    logfire.instrument_fastapi(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(request_context)

    register_error_handlers(app)

    app.include_router(api_router, prefix="/api/v1")
    app.include_router(core.router)
    return app


app = create_app()


def run() -> None:
    """Development server entry point."""
    uvicorn.run("recallion.main:app", host="0.0.0.0", port=8000, reload=settings.debug, log_level="info")


if __name__ == "__main__":
    run()
