"""Error types raised by the catalog and their JSON rendering."""
from functools import wraps

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from .utils import logger


class CatalogError(Exception):
    status_code = 500

    def __init__(self, message, status_code=None, error=None):
        super().__init__(message)
        self.message = message
        self.error = error
        if status_code is not None:
            self.status_code = status_code


class ValidationError(CatalogError):
    status_code = 400


class NotFoundError(CatalogError):
    status_code = 404


class AuthError(CatalogError):
    status_code = 401


def guarded(message):
    """Turn unexpected exceptions raised by a route into a 500 `CatalogError`.

    `CatalogError`s pass through unchanged so their status codes survive.
    """
    def deco(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            except CatalogError:
                raise
            except PydanticValidationError as e:
                raise ValidationError(describe(e.errors())) from e
            except Exception as e:
                logger.exception("%s: %s", message, e)
                raise CatalogError(message, error=str(e)) from e
        return wrapper
    return deco


def _field_name(loc):
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header")]
    return ".".join(parts) or "request"


def describe(errors):
    """First validation problem as a sentence."""
    if not errors:
        return "Invalid request"
    err = errors[0]
    field = _field_name(err.get("loc", ()))
    if err.get("type") == "missing":
        return f"{field} is required"
    return f"{field}: {err.get('msg')}"


def catalog_error_handler(request: Request, exc: CatalogError):
    body = {"success": False, "message": exc.message}
    if exc.error is not None:
        body["error"] = exc.error
    return JSONResponse(status_code=exc.status_code, content=body)


def request_validation_handler(request: Request, exc):
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": describe(exc.errors())},
    )


def install(app):
    app.add_exception_handler(CatalogError, catalog_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(PydanticValidationError, request_validation_handler)
