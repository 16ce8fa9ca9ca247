from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import structlog

from conference_agent.application.websocket.connection_manager import ConnectionManager
from conference_agent.application.websocket.ws_server import router as realtime_router
from conference_agent.domain.context.context_manager import ConversationContextManager
from conference_agent.domain.orchestration.dispatcher import FunctionCallDispatcher
from conference_agent.domain.tool.function_executor import FunctionExecutor
from conference_agent.domain.tool.function_registry import FunctionRegistry
from conference_agent.domain.tool.session_repository import (
    InMemorySessionRepository,
    SessionRepository,
)
from conference_agent.infrastructure.config.settings import Settings, get_settings
from conference_agent.infrastructure.observability.logging import setup_logging, MetricsCollector
from .route.conference import router as conference_router

logger = structlog.get_logger(__name__)


def build_repository(settings: Settings) -> SessionRepository:
    if settings.sessions_file:
        return InMemorySessionRepository.from_json_file(settings.sessions_file)
    logger.warning("No sessions file configured, serving an empty schedule")
    return InMemorySessionRepository()


def create_app(
    settings: Optional[Settings] = None,
    repository: Optional[SessionRepository] = None,
) -> FastAPI:
    """Build the voice agent application; the context store lives for the app's lifespan"""

    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.log_level, settings.log_format, settings.service_name)

        app.state.settings = settings
        app.state.repository = repository or build_repository(settings)
        app.state.metrics = MetricsCollector()
        app.state.connection_manager = ConnectionManager()
        app.state.context_manager = ConversationContextManager(settings)
        app.state.executor = FunctionExecutor(
            app.state.repository,
            FunctionRegistry(),
            upcoming_limit=settings.upcoming_limit,
        )
        app.state.dispatcher = FunctionCallDispatcher(
            app.state.context_manager,
            app.state.executor,
            app.state.metrics,
        )

        await app.state.context_manager.start()
        logger.info("Conference voice agent started", port=settings.port)
        try:
            yield
        finally:
            for call_id in list(app.state.connection_manager.active_connections):
                await app.state.connection_manager.disconnect(call_id)
            await app.state.context_manager.shutdown()
            logger.info("Conference voice agent shutdown")

    app = FastAPI(title="Conference Voice Agent", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.error("Unhandled error", path=request.url.path, error=str(exc))
        return JSONResponse(status_code=500, content={"success": False, "error": str(exc)})

    app.include_router(conference_router)
    app.include_router(realtime_router)
    return app


def main():
    import uvicorn

    settings = get_settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
