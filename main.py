from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.requests import Request
from onboarding.api.user_routes import router as user_router
from onboarding.api.client_routes import router as client_router
from onboarding.api.document_routes import router as document_router
from onboarding.api.application_routes import router as application_router
from contextlib import asynccontextmanager
from onboarding.database.connection import init_db
from onboarding.core.config import settings
from onboarding.core.exceptions import AppError, ConflictError, ValidationError
from onboarding.helpers.response_builder import error_response, success_response
from onboarding.services.document_service import document_service
from onboarding.services.user_service import user_service
from fastapi.exceptions import RequestValidationError
from fastapi import HTTPException
from fastapi.responses import JSONResponse
import logging

logging.basicConfig(
    level=getattr(logging, str(settings.LOG_LEVEL).upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Adds security headers to every non-OPTIONS response.

    OPTIONS requests are left to CORSMiddleware, which is registered last so
    it runs first and can answer preflights with the Access-Control headers.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        if request.method != "OPTIONS":
            response.headers["X-Content-Type-Options"] = "nosniff"
            response.headers["X-Frame-Options"] = "DENY"
            response.headers["X-XSS-Protection"] = "1; mode=block"
            response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
            response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"

        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    await document_service.seed_document_types()
    try:
        await user_service.ensure_superuser()
    except (ConflictError, ValidationError) as e:
        logging.getLogger(__name__).warning("Superuser bootstrap skipped: %s", e.message)
    yield

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Digital onboarding: clients, income, KYC documents and product applications",
    version=settings.VERSION,
    lifespan=lifespan
)


# Global exception handlers render the response envelope and log tracebacks
logger = logging.getLogger("server_exception_handler")

HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    413: "PAYLOAD_TOO_LARGE",
    415: "UNSUPPORTED_MEDIA_TYPE",
    422: "VALIDATION_ERROR",
}


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("AppError on %s %s: %s", request.method, request.url.path, exc.message)
    else:
        logger.warning("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(exc.message, **exc.to_error()),
        headers=headers,
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    logger.warning(f"HTTPException handled: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(str(exc.detail), HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path", "form"))
        details.append({"field": loc or None, "message": err.get("msg")})
    logger.warning(f"Validation error on {request.url.path}: {details}")
    return JSONResponse(status_code=422, content=error_response("Invalid input data", "VALIDATION_ERROR", details))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    # The exception text stays in the logs, never in the response body
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content=error_response("An unexpected error occurred", "INTERNAL_ERROR"))


# Support comma-separated CLIENT_URL values (e.g. "http://localhost:3000,http://localhost:3001")
raw_origins = settings.CLIENT_URL or ""
allowed_origins = [o.strip() for o in raw_origins.split(",") if o.strip()]

# Middleware runs LIFO: security headers first, CORS last so it executes first
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "Accept",
        "Origin",
        "Accept-Language",
        "Content-Language",
        "X-Requested-With",
        "Cache-Control",
        "Pragma",
    ],
    expose_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

# Include routers
app.include_router(user_router)
app.include_router(client_router)
app.include_router(document_router)
app.include_router(application_router)


@app.get("/health")
async def health_check():
    return success_response("API is running", {"status": "healthy", "version": settings.VERSION})


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
