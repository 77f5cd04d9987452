import logging
import time

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from sketchpad.core.errors import DrawingValidationError

DRAWINGS_PATH_PREFIX = "/api/drawings"
logger = logging.getLogger("sketchpad.middleware")


def _invalid_drawing_response(errors) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"detail": "Invalid drawing data", "errors": jsonable_encoder(errors)},
    )


class DrawingsRequestMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, path_prefix: str = DRAWINGS_PATH_PREFIX):
        super().__init__(app)
        self.path_prefix = path_prefix

    async def dispatch(self, request: Request, call_next):
        if not request.url.path.startswith(self.path_prefix):
            return await call_next(request)

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "Unhandled drawings exception",
                extra={"path": request.url.path, "method": request.method},
            )
            response = JSONResponse(status_code=500, content={"detail": "Internal server error"})

        duration_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Request-Duration-ms"] = f"{duration_ms:.2f}"
        logger.info(
            "Drawings request completed",
            extra={
                "path": request.url.path,
                "method": request.method,
                "duration_ms": duration_ms,
                "status_code": response.status_code,
            },
        )
        return response


def register_drawing_error_handlers(app: FastAPI, path_prefix: str = DRAWINGS_PATH_PREFIX) -> None:
    app.add_middleware(DrawingsRequestMiddleware, path_prefix=path_prefix)

    @app.exception_handler(RequestValidationError)
    async def drawing_validation_handler(request: Request, exc: RequestValidationError):
        if not request.url.path.startswith(path_prefix):
            return await request_validation_exception_handler(request, exc)

        logger.warning(
            "Drawing validation error",
            extra={"path": request.url.path, "method": request.method, "errors": exc.errors()},
        )
        return _invalid_drawing_response(exc.errors())

    @app.exception_handler(DrawingValidationError)
    async def drawing_store_validation_handler(request: Request, exc: DrawingValidationError):
        logger.warning(
            "Drawing rejected by store",
            extra={"path": request.url.path, "method": request.method, "errors": exc.errors},
        )
        return _invalid_drawing_response(exc.errors)
