"""Custom exception classes and handlers."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class BusinessLogicError(Exception):
    """Raised for domain-specific validation errors."""

    def __init__(self, detail: str, status_code: int = status.HTTP_422_UNPROCESSABLE_ENTITY):
        self.detail = detail
        self.status_code = status_code
        super().__init__(detail)


class BookingValidationError(BusinessLogicError):
    """A required booking field is missing or inconsistent."""

    def __init__(self, detail: str = "All required fields must be filled"):
        super().__init__(detail, status.HTTP_422_UNPROCESSABLE_ENTITY)


class DuplicateSlotError(BusinessLogicError):
    def __init__(self, detail: str = "An appointment already exists for this time slot"):
        super().__init__(detail, status.HTTP_409_CONFLICT)


class AppointmentNotFoundError(BusinessLogicError):
    def __init__(self, detail: str = "Appointment not found"):
        super().__init__(detail, status.HTTP_404_NOT_FOUND)


class InvalidTransitionError(BusinessLogicError):
    """The requested status change is not allowed from the current status."""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move appointment from {current} to {target}", status.HTTP_409_CONFLICT)


class StoreError(BusinessLogicError):
    """The appointment store failed to answer."""

    def __init__(self, detail: str = "Appointment store unavailable"):
        super().__init__(detail, status.HTTP_503_SERVICE_UNAVAILABLE)


def register_exception_handlers(app: FastAPI) -> None:
    """Attach shared exception handlers to the FastAPI app."""

    @app.exception_handler(BusinessLogicError)
    async def _business_error_handler(request: Request, exc: BusinessLogicError):
        if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
        return JSONResponse(
            {"success": False, "message": exc.detail},
            status_code=exc.status_code,
        )
