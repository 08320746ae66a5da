"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from quiz_builder.config import settings
from quiz_builder.core.errors import QuizBuilderError
from quiz_builder.schemas.common import ErrorResponse
from quiz_builder.api import (
    health_router,
    auth_router,
    quiz_router,
    host_router,
    take_router,
    ai_router,
)

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s  %(name)-25s  %(levelname)-8s  %(message)s",
)
logger = logging.getLogger(__name__)

_HTTP_ERROR_CODES = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
    429: "rate_limited",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Quiz builder backend starting…")
    yield
    logger.info("✅ Quiz builder backend shut down")


app = FastAPI(
    title="AI Quiz Builder API",
    description="Author, host and take quizzes; AI-assisted question generation",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Middleware ─────────────────────────────────────────────────────────────────

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS)

# ── Error envelope ────────────────────────────────────────────────────────────


def _envelope(status_code: int, error_code: str, message: str, details=None, headers=None) -> JSONResponse:
    body = ErrorResponse(error_code=error_code, message=message, details=details)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers,
    )


@app.exception_handler(QuizBuilderError)
async def domain_error_handler(request: Request, exc: QuizBuilderError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return _envelope(exc.status_code, exc.error_code, exc.message, exc.details)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
        for e in exc.errors()
    ]
    return _envelope(
        status.HTTP_400_BAD_REQUEST,
        "validation_error",
        "Request validation failed",
        {"errors": errors},
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return _envelope(
        exc.status_code,
        _HTTP_ERROR_CODES.get(exc.status_code, "http_error"),
        str(exc.detail),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _envelope(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "internal_error",
        "Internal server error",
    )


# ── Routers ───────────────────────────────────────────────────────────────────

app.include_router(health_router, tags=["Health"])
app.include_router(auth_router, prefix="/auth", tags=["Auth"])
app.include_router(quiz_router, prefix="/quiz", tags=["Quiz"])
app.include_router(host_router, prefix="/host", tags=["Hosting"])
app.include_router(take_router, prefix="/takequiz", tags=["Taking"])
app.include_router(ai_router, prefix="/api", tags=["AI"])


@app.get("/")
async def root():
    return {
        "name": "AI Quiz Builder API",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/health",
    }
