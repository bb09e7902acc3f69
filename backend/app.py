import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException

from backend.core import settings
from backend.core.uploads import ensure_uploads_root
from backend.core.validation import ProcurementError
from backend.routes import activity, executions, processing, upload
from backend.workers.processing import get_processing_worker

logger = logging.getLogger(__name__)


def _error_response(status_code: int, message: str, error: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, "error": error or message},
    )


def _describe_validation_error(exc: RequestValidationError) -> str:
    parts = []
    for item in exc.errors():
        location = ".".join(str(part) for part in item.get("loc", ()) if part != "body")
        parts.append(f"{location}: {item.get('msg')}" if location else str(item.get("msg")))
    return "; ".join(parts)


@asynccontextmanager
async def lifespan(app: FastAPI):
    ensure_uploads_root()
    logger.info("Procurement Tracker API ready")
    yield
    await get_processing_worker().shutdown()


def create_app() -> FastAPI:
    logging.basicConfig(
        level=getattr(logging, settings.log_level(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = FastAPI(title="Procurement Tracker API", version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def catch_unhandled_errors(request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            return _error_response(500, "Something went wrong!", str(exc))

    @app.exception_handler(ProcurementError)
    async def handle_procurement_error(request: Request, exc: ProcurementError) -> JSONResponse:
        return _error_response(exc.status_code, exc.message, exc.error)

    @app.exception_handler(HTTPException)
    async def handle_http_error(request: Request, exc: HTTPException) -> JSONResponse:
        return _error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error_response(400, "Invalid request", _describe_validation_error(exc))

    app.include_router(executions.router, prefix="/api")
    app.include_router(processing.router, prefix="/api")
    app.include_router(activity.router, prefix="/api")
    app.include_router(upload.router, prefix="/api")

    app.mount("/uploads", StaticFiles(directory=ensure_uploads_root()), name="uploads")

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Provide a lightweight landing page for container checks."""
        return JSONResponse(
            {
                "message": "Procurement Tracker API",
                "docs": "/docs",
                "health": "/api/executions",
            }
        )

    return app


app = create_app()
