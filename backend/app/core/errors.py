"""Domain errors and the handlers that render them as ``{status, message, timestamp}``."""
from datetime import datetime
import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class DomainError(Exception):
    """Validation or forbidden-action failure raised by the service layer (HTTP 400)."""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(DomainError):
    """Unknown video or user. Still reported as 400 to clients."""


class ForbiddenError(DomainError):
    """Caller acts on a resource owned by someone else."""
    status_code = 403


def error_body(status: int, message: str) -> dict:
    return {"status": status, "message": message, "timestamp": datetime.now().isoformat(timespec="seconds")}


async def _domain_error_handler(request: Request, exc: DomainError):
    logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.status_code, exc.message))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, _domain_error_handler)
