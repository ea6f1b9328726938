"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import Settings, load_settings
from app.routers import auth, candidates, elections, feedback, results, votes
from app.services.vote_observers import VoteObserver, default_observers
from app.utils.errors import AppError, BadRequestError
from supabase import Client

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _validation_message(exc: RequestValidationError) -> str:
    detail = exc.errors()
    if not detail:
        return "Invalid request"
    first = detail[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part not in {"body", "query"})
    message = str(first.get("msg", "Invalid request"))
    return f"{field}: {message}" if field else message


def create_app(
    settings: Settings | None = None,
    client: Client | None = None,
    observers: list[VoteObserver] | None = None,
) -> FastAPI:
    """Build the API with explicitly supplied settings and collaborators.

    ``client`` defaults to a lazily created service-role Supabase client and
    ``observers`` to the audit log and console observers.
    """
    settings = settings or load_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        description="Digital voting backend API",
        version=settings.app_version,
    )
    app.state.settings = settings
    app.state.db_client = client
    app.state.vote_observers = (
        observers if observers is not None else default_observers(settings)
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_logging_middleware(request: Request, call_next):
        """Log every request with its processing time."""
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        response.headers["X-Process-Time-Ms"] = f"{elapsed_ms:.1f}"

        logger.info(
            "%s %s %s %.1fms",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )
        threshold_ms = settings.slow_request_log_threshold_ms
        if threshold_ms > 0 and elapsed_ms >= threshold_ms:
            logger.warning(
                "Slow request %s %s %.1fms",
                request.method,
                request.url.path,
                elapsed_ms,
            )

        return response

    @app.exception_handler(AppError)
    async def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
        """Convert domain exceptions into structured API responses."""
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(
        _: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Normalize FastAPI validation responses into 400s."""
        api_error = BadRequestError(_validation_message(exc))
        return JSONResponse(status_code=api_error.status_code, content=api_error.to_dict())

    @app.exception_handler(Exception)
    async def unhandled_error_handler(_: Request, exc: Exception) -> JSONResponse:
        """Catch unexpected errors without leaking internals."""
        logger.exception("Unhandled exception", exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "code": "INTERNAL_ERROR"},
        )

    prefix = settings.api_prefix.rstrip("/")
    app.include_router(auth.router, prefix=f"{prefix}/auth", tags=["auth"])
    app.include_router(candidates.router, prefix=f"{prefix}/candidate", tags=["candidates"])
    app.include_router(elections.router, prefix=f"{prefix}/election", tags=["elections"])
    app.include_router(votes.router, prefix=f"{prefix}/vote", tags=["votes"])
    app.include_router(results.router, prefix=f"{prefix}/result", tags=["results"])
    app.include_router(feedback.router, prefix=f"{prefix}/feedback", tags=["feedback"])

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Health check endpoint for deploys and uptime probes."""
        return {
            "status": "ok",
            "version": settings.app_version,
            "environment": settings.environment,
        }

    return app
