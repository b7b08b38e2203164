from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from typing import Optional
from uuid import uuid4
from app.core.config import Settings, settings as default_settings
from app.core.db.base import Database
from app.core.errors import PipelineError
from app.core.logging import get_logger, request_id_var, setup_logging, user_id_var
from app.modules.generation.client import GenerationClient
from app.apis.auth.main import router as auth_router
from app.apis.quiz.main import router as quiz_router
from app.apis.exams.main import router as exams_router
from app.apis.flashcards.main import router as flashcards_router
from app.apis.study_kits.main import router as study_kits_router
from app.apis.summary.main import router as summary_router
from app.apis.conversations.main import router as conversations_router

import uvicorn
from fastapi.middleware.cors import CORSMiddleware


logger = get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    *,
    database: Optional[Database] = None,
    generation_client: Optional[GenerationClient] = None,
) -> FastAPI:
    """Build the API.

    ``database`` and ``generation_client`` are created from settings when not
    given; both live on ``app.state`` for the life of the process.
    """
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.database.auto_create:
            await app.state.database.create_schema()
        try:
            yield
        finally:
            await app.state.generation_client.aclose()
            await app.state.database.dispose()

    app = FastAPI(
        title=settings.app.name, version=settings.app.version, lifespan=lifespan
    )
    app.state.database = database or Database(
        str(settings.database.connection_string), echo=settings.database.echo
    )
    app.state.generation_client = generation_client or GenerationClient(
        settings.generation
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.app.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid4().hex[:12]
        rid_token = request_id_var.set(request_id)
        uid_token = user_id_var.set("-")
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(rid_token)
            user_id_var.reset(uid_token)
        response.headers["X-Request-ID"] = request_id
        return response

    @app.exception_handler(PipelineError)
    async def pipeline_error_handler(request: Request, exc: PipelineError):
        if exc.status_code >= 500:
            logger.error(
                "%s %s failed: %s: %s",
                request.method,
                request.url.path,
                type(exc).__name__,
                exc,
                exc_info=exc,
            )
        else:
            logger.info(
                "%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc
            )
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"detail": jsonable_encoder(exc.errors())},
        )

    app.include_router(auth_router)
    app.include_router(quiz_router)
    app.include_router(exams_router)
    app.include_router(flashcards_router)
    app.include_router(study_kits_router)
    app.include_router(summary_router)
    app.include_router(conversations_router)

    @app.get("/")
    async def root():
        return {
            "status": "ok",
            "app": settings.app.name,
            "version": settings.app.version,
        }

    return app


app = create_app()


if __name__ == "__main__":
    setup_logging()
    try:
        uvicorn.run(
            "main:app",
            host="0.0.0.0",
            port=default_settings.app.port,
            reload=not default_settings.app.is_production,
        )
    except Exception as e:
        logger.error(f"An error occurred when starting the server: {e}.")
