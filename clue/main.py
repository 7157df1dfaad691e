"""
clue/main.py

FastAPI application entrypoint.

Startup sequence (via lifespan):
  1. Logging is configured (JSON in prod, coloured console in dev).
  2. A missing LLM key is reported as a warning. The app still starts; the
     first Help request will fail with a readable error instead.

Environment variables are loaded by Pydantic Settings from ``.env`` — there
is no ``load_dotenv()`` call here. Do not add one.
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates

from clue.core.config import get_settings
from clue.core.logging import get_logger, setup_logging

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Configure logging and report configuration problems at startup."""
    settings = get_settings()

    setup_logging(environment=settings.environment, log_level=settings.log_level)
    logger = get_logger(__name__)

    logger.info(
        "app_startup",
        version=settings.app_version,
        environment=settings.environment,
    )
    if not settings.has_llm_key:
        logger.warning(
            "llm_key_missing",
            message="No OPENAI_API_KEY or GEMINI_API_KEY set; Help requests will fail.",
        )

    yield

    logger.info("app_stopped")


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Malformed bodies share the generic failure envelope; no per-field errors.
    get_logger(__name__).warning(
        "help_invalid_body",
        path=request.url.path,
        error_count=len(exc.errors()),
    )
    return JSONResponse(
        content={"error": "Invalid request body"},
        status_code=500,
    )


def create_app() -> FastAPI:
    """Application factory.

    Returns a configured FastAPI instance, importable without side effects.
    """
    settings = get_settings()

    app = FastAPI(
        title="Clue.ai",
        description=(
            "Coaching assistant that helps students troubleshoot code and coding labs "
            "with hints and questions instead of solutions."
        ),
        version=settings.app_version,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        lifespan=lifespan,
    )

    # ── CORS ──────────────────────────────────────────────────────────────────
    origins = ["*"] if not settings.is_production else []
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    # ── Routers ───────────────────────────────────────────────────────────────
    from clue.api import help as help_api  # noqa: PLC0415

    app.include_router(help_api.router, prefix="/api", tags=["Help"])

    templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

    @app.get("/", response_class=HTMLResponse, include_in_schema=False)
    async def index(request: Request) -> HTMLResponse:
        return templates.TemplateResponse(
            request,
            "index.html",
            {"version": settings.app_version},
        )

    return app


# Module-level app instance — used by uvicorn: ``uvicorn clue.main:app``
app = create_app()
