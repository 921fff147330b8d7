import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class GraphflixError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error = "InternalError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UserNotFoundError(GraphflixError):
    status_code = status.HTTP_404_NOT_FOUND
    error = "UserNotFound"

    def __init__(self, email: str):
        super().__init__(f"User not found with email: {email}")


class MovieNotFoundError(GraphflixError):
    status_code = status.HTTP_404_NOT_FOUND
    error = "MovieNotFound"

    def __init__(self, movie_id: str):
        super().__init__(f"Movie not found with id: {movie_id}")


class RatingNotFoundError(GraphflixError):
    status_code = status.HTTP_404_NOT_FOUND
    error = "RatingNotFound"

    def __init__(self, rating_id: int):
        super().__init__(f"Rating not found with id: {rating_id}")


class ValidationFailureError(GraphflixError):
    status_code = status.HTTP_400_BAD_REQUEST
    error = "ValidationFailure"


class EventPublishingError(GraphflixError):
    """The mutation is committed; only the notification failed."""

    error = "EventPublishingFailure"


class GraphWriteError(GraphflixError):
    status_code = status.HTTP_502_BAD_GATEWAY
    error = "GraphWriteFailure"


def error_body(status_code: int, error: str, message: str) -> dict:
    return {"status": status_code, "error": error, "message": message}


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(GraphflixError)
    async def handle_graphflix_error(request: Request, exc: GraphflixError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        else:
            logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.status_code, exc.error, exc.message),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.exception("%s %s failed unexpectedly", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                GraphflixError.error,
                f"An unexpected error occurred: {exc}",
            ),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        messages = []
        for err in exc.errors():
            field = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
            messages.append(f"{field}: {err.get('msg')}" if field else err.get("msg", ""))
        message = "; ".join(messages) or "Invalid request"
        logger.warning("%s %s rejected: %s", request.method, request.url.path, message)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body(status.HTTP_400_BAD_REQUEST, ValidationFailureError.error, message),
        )
