"""
Error taxonomy and the handlers that turn it into JSON responses.

Services raise these; only the request boundary decides what the client sees.
"""

import logging
from typing import Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Server error"


class AppError(Exception):
    status_code = 500
    message = GENERIC_ERROR_MESSAGE

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"message": self.message}


class ValidationError(AppError):
    """Missing or malformed input; carries every violated constraint."""

    status_code = 400
    message = "Invalid request"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(message)
        self.errors = errors or []

    def to_dict(self) -> dict:
        body = super().to_dict()
        if self.errors:
            body["errors"] = self.errors
        return body


class EmptyContent(ValidationError):
    message = "Content is required"


class Unauthenticated(AppError):
    status_code = 401
    message = "Token is not valid"


class InvalidCredentials(Unauthenticated):
    message = "Invalid credentials"


class NotFound(AppError):
    status_code = 404
    message = "Not found"


class Conflict(AppError):
    status_code = 400
    message = "Conflict"


class DuplicateEmail(Conflict):
    message = "Email already registered"


class AlreadyApplied(Conflict):
    message = "Already applied to this job"


class ConcurrentUpdate(Conflict):
    status_code = 409
    message = "The record was modified concurrently, please retry"


def field_errors(exc: PydanticValidationError) -> List[Dict[str, str]]:
    """Flatten pydantic errors into {field, message} pairs."""
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body",)]
        errors.append({"field": ".".join(loc) or "__root__", "message": err.get("msg", "Invalid value")})
    return errors


async def handle_app_error(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def handle_request_validation(request: Request, exc: RequestValidationError):
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append({"field": ".".join(loc) or "body", "message": err.get("msg", "Invalid value")})
    return JSONResponse(status_code=400, content={"message": "Invalid request", "errors": errors})


async def handle_store_error(request: Request, exc: PyMongoError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": GENERIC_ERROR_MESSAGE})


async def handle_unexpected(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": GENERIC_ERROR_MESSAGE})


def register_error_handlers(app: FastAPI):
    app.add_exception_handler(AppError, handle_app_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(PyMongoError, handle_store_error)
    app.add_exception_handler(Exception, handle_unexpected)
