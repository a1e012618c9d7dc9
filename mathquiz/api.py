"""
Central API router and utilities for the MathQuiz service.

This module provides:
- A central router that includes the game and progress routers
- The standard response envelope
- Exception handlers for request validation and service errors
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from mathquiz.common.error_handling import ErrorCode, ErrorSeverity, MathQuizError
from mathquiz.common.logger import app_logger
from mathquiz.game.router import router as game_router
from mathquiz.progress.router import router as progress_router

# Configure logging
logger = app_logger.getChild("api")

# Create main API router
main_router = APIRouter()
main_router.include_router(game_router, prefix="/game", tags=["game"])
main_router.include_router(progress_router, prefix="/progress", tags=["progress"])

# Messages shown to players instead of internal error text
PUBLIC_MESSAGES: Dict[ErrorCode, str] = {
    ErrorCode.QUESTION_GENERATION_ERROR: "Error generating question. Please try again.",
    ErrorCode.DATABASE_ERROR: "Server error",
    ErrorCode.UNKNOWN_ERROR: "Server error",
}


# Standard API response model
class APIResponse:
    """Standard API response structure"""

    @staticmethod
    def success(data: Any = None, message: str = "Success") -> Dict[str, Any]:
        return {
            "status": "success",
            "message": message,
            "data": data
        }

    @staticmethod
    def error(message: str, details: Optional[Any] = None,
              code: Optional[str] = None) -> Dict[str, Any]:
        """
        Create an error response.

        Args:
            message: Error message
            details: Optional error details
            code: Optional error code

        Returns:
            Response dictionary
        """
        response = {
            "status": "error",
            "message": message
        }

        if details:
            response["details"] = details

        if code:
            response["code"] = code

        return response


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle request validation errors and return a standardized response.

    Args:
        request: The incoming request
        exc: The validation exception

    Returns:
        A JSON response with error details
    """
    error_details = []
    for error in exc.errors():
        error_details.append({
            "location": list(error.get("loc", [])),
            "message": error.get("msg", "Unknown validation error"),
            "type": error.get("type", "")
        })

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=APIResponse.error(
            "Validation error",
            details=error_details,
            code=ErrorCode.VALIDATION_ERROR.value
        )
    )


async def service_exception_handler(request: Request, exc: MathQuizError) -> JSONResponse:
    """
    Turn a service error into a JSON error response.

    Internal failures are logged with their cause and reported to the client
    with a generic message only.
    """
    public_message = PUBLIC_MESSAGES.get(exc.code)

    if exc.severity in (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL):
        logger.error(
            f"{request.method} {request.url.path} failed: {exc}",
            exc_info=exc.cause,
            extra={"context": {"error": exc.to_dict()}}
        )
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc}")

    details = None if public_message else exc.details
    return JSONResponse(
        status_code=exc.http_status,
        content=APIResponse.error(
            public_message or exc.message,
            details=details,
            code=exc.code.value
        )
    )
