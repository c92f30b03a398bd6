"""Error handling and middleware for API request/response processing."""

from typing import Callable, Optional, Sequence

from fastapi import FastAPI, Request, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import HTTPException, RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from ..utils.logging_config import get_logger, log_exception

logger = get_logger("api")

PROBLEM_MEDIA_TYPE = "application/problem+json"

DEFAULT_TITLES = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    409: "Conflict",
    413: "Payload Too Large",
    422: "Unprocessable Entity",
    500: "Internal Server Error",
    503: "Service Unavailable",
}


class ProblemDetailsException(HTTPException):
    """HTTPException carrying RFC 9457 Problem Details."""

    def __init__(
        self,
        status_code: int,
        title: str,
        detail: Optional[str] = None,
        type_uri: Optional[str] = None,
        instance: Optional[str] = None,
        **extra_fields,
    ):
        super().__init__(status_code=status_code, detail=detail)
        self.title = title
        self.type_uri = type_uri or f"https://httpstatuses.com/{status_code}"
        self.instance = instance
        self.extra_fields = extra_fields


def not_found(entity: str, entity_id=None) -> ProblemDetailsException:
    detail = f"{entity} {entity_id} does not exist" if entity_id else f"{entity} does not exist"
    return ProblemDetailsException(
        status_code=status.HTTP_404_NOT_FOUND, title=f"{entity} Not Found", detail=detail
    )


def forbidden(detail: str) -> ProblemDetailsException:
    return ProblemDetailsException(
        status_code=status.HTTP_403_FORBIDDEN, title="Forbidden", detail=detail
    )


def bad_request(detail: str) -> ProblemDetailsException:
    return ProblemDetailsException(
        status_code=status.HTTP_400_BAD_REQUEST, title="Bad Request", detail=detail
    )


def conflict(detail: str) -> ProblemDetailsException:
    return ProblemDetailsException(
        status_code=status.HTTP_409_CONFLICT, title="Conflict", detail=detail
    )


def problem_response(
    status_code: int,
    title: str,
    detail: Optional[str] = None,
    type_uri: Optional[str] = None,
    instance: Optional[str] = None,
    headers: Optional[dict] = None,
    **extra_fields,
) -> JSONResponse:
    """Create a JSON response in RFC 9457 Problem Details format."""
    problem = {
        "type": type_uri or f"https://httpstatuses.com/{status_code}",
        "title": title,
        "status": status_code,
    }
    if detail:
        problem["detail"] = detail
    if instance:
        problem["instance"] = instance
    problem.update(extra_fields)

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(problem),
        media_type=PROBLEM_MEDIA_TYPE,
        headers=headers,
    )


async def _problem_details_handler(request: Request, exc: ProblemDetailsException):
    return problem_response(
        status_code=exc.status_code,
        title=exc.title,
        detail=exc.detail,
        type_uri=exc.type_uri,
        instance=exc.instance or str(request.url.path),
        headers=getattr(exc, "headers", None),
        **exc.extra_fields,
    )


async def _http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail if isinstance(exc.detail, str) else None
    return problem_response(
        status_code=exc.status_code,
        title=DEFAULT_TITLES.get(exc.status_code, "HTTP Error"),
        detail=detail,
        instance=str(request.url.path),
        headers=getattr(exc, "headers", None),
    )


async def _validation_exception_handler(request: Request, exc: RequestValidationError):
    return problem_response(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        title="Validation Error",
        detail="Request validation failed",
        instance=str(request.url.path),
        errors=exc.errors(),
    )


async def _unhandled_exception_handler(request: Request, exc: Exception):
    log_exception("api", exc, {"method": request.method, "path": request.url.path})
    return problem_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        title="Internal Server Error",
        detail="An unexpected error occurred",
        instance=str(request.url.path),
    )


def install_exception_handlers(app: FastAPI) -> None:
    """Render every error the app raises as application/problem+json."""
    app.add_exception_handler(ProblemDetailsException, _problem_details_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Middleware to enforce request size limits."""

    def __init__(
        self,
        app: ASGIApp,
        default_limit: int = 64 * 1024,  # 64KB
        import_limit: int = 2 * 1024 * 1024,  # 2MB
        import_suffixes: Sequence[str] = ("/import", "/import/preview"),
    ):
        super().__init__(app)
        self.default_limit = default_limit
        self.import_limit = import_limit
        self.import_suffixes = tuple(import_suffixes)

    def _limit_for(self, path: str) -> int:
        if path.rstrip("/").endswith(self.import_suffixes):
            return self.import_limit
        return self.default_limit

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        content_length = request.headers.get("content-length")
        if content_length:
            try:
                length = int(content_length)
            except ValueError:
                return problem_response(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    title="Bad Request",
                    detail="Invalid Content-Length header",
                )

            limit = self._limit_for(request.url.path)
            if length > limit:
                logger.warning(
                    f"Rejected {request.method} {request.url.path}: {length} bytes > {limit}"
                )
                return problem_response(
                    status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                    title="Request Entity Too Large",
                    detail=f"Request size {length} bytes exceeds limit of {limit} bytes",
                    type_uri="https://datatracker.ietf.org/doc/html/rfc9110#section-15.5.14",
                )

        return await call_next(request)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers to all responses."""

    def __init__(self, app: ASGIApp, include_hsts: bool = False):
        super().__init__(app)
        self.include_hsts = include_hsts

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Permitted-Cross-Domain-Policies"] = "none"
        response.headers["Content-Security-Policy"] = (
            "default-src 'self'; "
            "img-src 'self' data:; "
            "object-src 'none'; "
            "base-uri 'self'; "
            "frame-ancestors 'none'"
        )
        if self.include_hsts and request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"

        return response
