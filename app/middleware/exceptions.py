from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from app.schemas.response import ErrorResponse
import logging
import uuid

logger = logging.getLogger(__name__)

STATUS_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
    500: "INTERNAL_SERVER_ERROR",
}

def _error_code(exc: HTTPException) -> str:
    # Domain rejections carry their own code; plain HTTP errors fall back to the status name.
    code = getattr(exc, "code", None)
    if code is not None:
        return code.value
    return STATUS_CODES.get(exc.status_code, f"HTTP_{exc.status_code}")

def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or str(uuid.uuid4())

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    request_id = _request_id(request)
    errors = jsonable_encoder(exc.errors())
    body = ErrorResponse.build(
        code="VALIDATION_ERROR",
        message="Request validation failed",
        path=str(request.url),
        request_id=request_id,
        details={"validation_errors": errors},
    )
    logger.warning(f"[{request_id}] Validation error on {request.url.path}: {errors}")
    return JSONResponse(status_code=422, content=body.model_dump())

async def http_exception_handler(request: Request, exc: HTTPException):
    request_id = _request_id(request)
    code = _error_code(exc)
    body = ErrorResponse.build(
        code=code,
        message=exc.detail if isinstance(exc.detail, str) else str(exc.detail),
        path=str(request.url),
        request_id=request_id,
    )
    logger.warning(f"[{request_id}] {code} ({exc.status_code}) on {request.url.path}: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(), headers=exc.headers)

async def global_exception_handler(request: Request, exc: Exception):
    if isinstance(exc, HTTPException):
        return await http_exception_handler(request, exc)

    request_id = _request_id(request)
    body = ErrorResponse.build(
        code="INTERNAL_SERVER_ERROR",
        message="An unexpected error occurred",
        path=str(request.url),
        request_id=request_id,
        details={"error_type": type(exc).__name__},
    )
    logger.error(f"[{request_id}] Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content=body.model_dump())
