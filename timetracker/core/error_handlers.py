from typing import Iterable

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from timetracker.errors import ConstraintViolation, EntryNotFound, EntryValidationError, FieldError
from timetracker.services.validation import field_errors_from_pydantic

VALIDATION_ERROR = "Validation error"


def validation_error_response(errors: Iterable[FieldError]) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={
            "error": VALIDATION_ERROR,
            "details": [e.as_dict() for e in errors],
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(EntryValidationError)
    async def handle_entry_validation_error(request: Request, exc: EntryValidationError):
        return validation_error_response(exc.errors)

    @app.exception_handler(ConstraintViolation)
    async def handle_constraint_violation(request: Request, exc: ConstraintViolation):
        # Same shape as the upstream validation layer.
        return validation_error_response([FieldError(exc.field or "body", exc.message)])

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        return validation_error_response(field_errors_from_pydantic(exc.errors()))

    @app.exception_handler(EntryNotFound)
    async def handle_entry_not_found(request: Request, exc: EntryNotFound):
        return JSONResponse(
            status_code=404,
            content={"error": "Entry not found", "id": exc.entry_id},
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code in (404, 405):
            return JSONResponse(
                status_code=404,
                content={
                    "error": "Route not found",
                    "path": request.url.path,
                    "method": request.method,
                },
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )
