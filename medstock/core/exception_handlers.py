import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from medstock.core.constants import MSG_SERVER_ERROR
from medstock.core.exceptions import StockError
from medstock.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)


def error_response(message: str, status_code: int = status.HTTP_400_BAD_REQUEST) -> JSONResponse:
    payload = ErrorResponse(message=message)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(payload))


def describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Missing params"
    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    if not loc:
        return "Missing params"
    field = ".".join(loc)
    if first.get("type") == "missing":
        return f"{field} is required"
    return "{}: {}".format(field, first.get("msg", "invalid value"))


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StockError)
    async def stock_error_handler(_request: Request, exc: StockError) -> JSONResponse:
        return error_response(exc.message, exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return error_response(message, exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return error_response(describe_validation_error(exc), status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return error_response(MSG_SERVER_ERROR, status.HTTP_500_INTERNAL_SERVER_ERROR)


__all__ = ["describe_validation_error", "error_response", "register_exception_handlers"]
