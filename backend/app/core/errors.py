"""Action errors and the JSON error envelope."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

INTERNAL_ERROR = "Internal server error"


class ActionError(Exception):
    """A failed action with a user-facing message."""

    def __init__(self, message: str, status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def error_body(message: str) -> dict:
    return {"success": False, "error": message}


def format_validation_error(exc: RequestValidationError) -> str:
    """Render the first validation issue as 'Validation error: <path> - <message>'."""
    errors = exc.errors()
    if not errors:
        return "Validation error"
    first = errors[0]
    message = first.get("msg", "invalid value")
    # Drop the "body"/"query" prefix FastAPI adds to locations
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path", "form")]
    if not loc:
        return f"Validation error: {message}"
    return f"Validation error: {'.'.join(loc)} - {message}"


def register_exception_handlers(app: FastAPI) -> None:
    """Render every failure as {"success": false, "error": ...}."""

    # Starlette's class also covers unknown routes and 405s
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(ActionError)
    async def action_error_handler(request: Request, exc: ActionError):
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=error_body(format_validation_error(exc)),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body(INTERNAL_ERROR),
        )
