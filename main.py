import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import structlog
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Settings, settings as default_settings
from database import create_db_engine, create_session_factory, init_db
from exceptions import FinanceTrackerError, field_error
from logging_config import configure_logging
from routers import auth, categories, transactions
from schemas import MessageResponse, StatusResponse

logger = structlog.get_logger(__name__)


def _validation_errors(exc: RequestValidationError):
    errors = []
    for error in exc.errors():
        location, *path = error.get("loc") or ("body",)
        errors.append(field_error(
            path=".".join(str(part) for part in path),
            msg=error.get("msg", "Invalid value"),
            location=str(location),
            error_type=error.get("type", "value_error"),
        ))
    return errors


def register_exception_handlers(app: FastAPI) -> None:
    """Translate every failure into a JSON body at the HTTP boundary."""

    @app.exception_handler(FinanceTrackerError)
    async def finance_tracker_error_handler(request: Request, exc: FinanceTrackerError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=jsonable_encoder({"errors": _validation_errors(exc)}),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("unhandled_error", method=request.method, path=request.url.path)
        message = str(exc) if app.state.settings.is_development else "Something went wrong!"
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": message},
        )


def create_app(app_settings: Settings = default_settings) -> FastAPI:
    """Build the API around its own engine; the engine is disposed on shutdown."""
    configure_logging(app_settings.LOG_LEVEL)
    engine = create_db_engine(app_settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_db(engine, seed_defaults=app_settings.SEED_DEFAULT_CATEGORIES)
        logger.info("startup", environment=app_settings.ENVIRONMENT)
        yield
        engine.dispose()
        logger.info("shutdown")

    app = FastAPI(title="Finance Tracker API", lifespan=lifespan)
    app.state.settings = app_settings
    app.state.engine = engine
    app.state.SessionLocal = create_session_factory(engine)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.ALLOWED_ORIGINS,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            logger.info(
                "request",
                method=request.method,
                path=request.url.path,
                status=status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )

    register_exception_handlers(app)

    @app.get("/", response_model=MessageResponse)
    def root():
        return {"message": "Finance Tracker API is running"}

    @app.get("/api/status", response_model=StatusResponse)
    def api_status():
        return {"status": "OK", "timestamp": datetime.now(timezone.utc)}

    app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
    app.include_router(categories.router, prefix="/api/categories", tags=["categories"])
    app.include_router(transactions.router, prefix="/api/transactions", tags=["transactions"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=5000)
