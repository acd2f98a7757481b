# middleware/error_handler.py
import logging
from typing import Callable

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


def _error_response(request: Request, status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "message": message, "path": request.url.path},
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Maps errors escaping operator endpoints to JSON responses.

    Bad operator input surfaces as ValueError, an unusable data directory as
    OSError; anything else is a bug and is logged with its traceback.
    """

    async def dispatch(self, request: Request, call_next: Callable):
        try:
            return await call_next(request)
        except HTTPException:
            raise
        except ValueError as e:
            logger.warning(f"Rejected {request.method} {request.url.path}: {e}")
            return _error_response(request, 400, "Bad Request", str(e))
        except OSError as e:
            logger.error(f"Station storage error on {request.method} {request.url.path}: {e}")
            return _error_response(request, 503, "Service Unavailable", "Station storage error")
        except Exception:
            logger.exception(f"Unhandled error on {request.method} {request.url.path}")
            return _error_response(request, 500, "Internal Server Error", "An unexpected error occurred")
