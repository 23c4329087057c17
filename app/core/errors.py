from __future__ import annotations

import logging
import re
from typing import Any, Mapping

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError, IntegrityError

_LOG = logging.getLogger("app.errors")

UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"

_PG_KEY_DETAIL_RE = re.compile(r"Key \((?P<field>[^)]+)\)=\((?P<value>.*?)\)")
_SQLITE_UNIQUE_RE = re.compile(r"UNIQUE constraint failed: (?P<columns>[\w., ]+)")


class AppError(Exception):
    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def payload(self) -> dict[str, Any]:
        return {"error": self.code, "details": self.details if self.details is not None else self.message}


class BadRequest(AppError):
    code = "BAD_REQUEST"
    status_code = 400


class ValidationFailed(AppError):
    code = "VALIDATION_ERROR"
    status_code = 400


class Unauthorized(AppError):
    code = "UNAUTHORIZED"
    status_code = 401


class NotFound(AppError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, entity: str, id: Any):
        self.entity = entity
        self.id = str(id)
        super().__init__(f"{entity} with ID '{self.id}' not found")


class AlreadyExists(AppError):
    code = "ALREADY_EXISTS"
    status_code = 409

    def __init__(self, entity: str, field: str, value: Any):
        self.entity = entity
        self.field = field
        self.value = "" if value is None else str(value)
        super().__init__(f"{entity} with {field} '{self.value}' already exists")


class BusinessRule(AppError):
    code = "BUSINESS_RULE_VIOLATION"
    status_code = 400


class DatabaseError(AppError):
    code = "DATABASE_ERROR"
    status_code = 500

    def payload(self) -> dict[str, Any]:
        # Driver text stays in the log.
        return {"error": self.code, "details": "A database error occurred. Please try again later."}


class SerializationError(AppError):
    code = "SERIALIZATION_ERROR"
    status_code = 500

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause

    def payload(self) -> dict[str, Any]:
        return {"error": self.code, "details": "Failed to decode stored data."}


def _sqlstate(exc: DBAPIError) -> str | None:
    orig = getattr(exc, "orig", None)
    # psycopg2 exposes pgcode, psycopg 3 exposes sqlstate.
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def _is_unique_violation(exc: DBAPIError) -> bool:
    if _sqlstate(exc) == UNIQUE_VIOLATION:
        return True
    text = str(getattr(exc, "orig", exc))
    return "UNIQUE constraint failed" in text or "duplicate key value violates unique constraint" in text


def _is_foreign_key_violation(exc: DBAPIError) -> bool:
    if _sqlstate(exc) == FOREIGN_KEY_VIOLATION:
        return True
    text = str(getattr(exc, "orig", exc))
    return "FOREIGN KEY constraint failed" in text or "violates foreign key constraint" in text


def _unique_field_and_value(exc: DBAPIError, payload: Mapping[str, Any]) -> tuple[str, Any]:
    text = str(getattr(exc, "orig", exc))
    match = _PG_KEY_DETAIL_RE.search(text)
    if match:
        field = match.group("field").strip()
        return field, payload.get(field, match.group("value"))
    match = _SQLITE_UNIQUE_RE.search(text)
    if match:
        fields = [part.strip().rsplit(".", 1)[-1] for part in match.group("columns").split(",")]
        field = ", ".join(fields)
        if len(fields) == 1:
            return field, payload.get(fields[0])
        return field, ", ".join(str(payload.get(name)) for name in fields)
    return "unknown", None


def translate_integrity_error(exc: DBAPIError, entity: str, payload: Mapping[str, Any] | None = None) -> AppError:
    payload = payload or {}
    if isinstance(exc, IntegrityError) and _is_unique_violation(exc):
        field, value = _unique_field_and_value(exc, payload)
        return AlreadyExists(entity, field, value)
    if isinstance(exc, IntegrityError) and _is_foreign_key_violation(exc):
        return BusinessRule(f"Invalid reference for {entity}: a related record does not exist or is still referenced")
    return DatabaseError(str(getattr(exc, "orig", exc)))


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def _app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            _LOG.error(
                "%s %s %s: %s request_id=%s",
                request.method,
                request.url.path,
                exc.code,
                exc.message,
                _request_id(request),
                exc_info=getattr(exc, "cause", None) or exc.__cause__,
            )
        else:
            _LOG.warning("%s %s %s: %s", request.method, request.url.path, exc.code, exc.message)
        body = exc.payload()
        request_id = _request_id(request)
        if request_id:
            body["request_id"] = request_id
        return JSONResponse(status_code=exc.status_code, content=body)

    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ()) if part not in {"body", "query", "path"}),
                "message": err.get("msg", "Invalid value"),
            }
            for err in exc.errors()
        ]
        _LOG.warning("%s %s validation failed: %s", request.method, request.url.path, errors)
        body: dict[str, Any] = ValidationFailed("Validation failed", details=errors).payload()
        request_id = _request_id(request)
        if request_id:
            body["request_id"] = request_id
        return JSONResponse(status_code=ValidationFailed.status_code, content=body)
