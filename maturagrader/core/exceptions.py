# maturagrader/core/exceptions.py
from fastapi import Request, status
from fastapi.responses import JSONResponse
from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)


class GraderException(Exception):
    """Base exception for grading session errors"""
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class EmptyDocumentError(GraderException):
    """Submit attempted with blank or whitespace-only text"""
    status_code = 422


class AlreadyGradingError(GraderException):
    """Submit attempted while a grading request is outstanding"""
    status_code = status.HTTP_409_CONFLICT


class DocumentFrozenError(GraderException):
    """Document edit attempted while a grading request is outstanding"""
    status_code = status.HTTP_409_CONFLICT


class IntakeError(GraderException):
    """Uploaded file was rejected before reaching the document"""
    status_code = 422


class IntakeDecodeError(IntakeError):
    """Uploaded file could not be decoded as text"""


class UnsupportedFileTypeError(IntakeError):
    """Uploaded file is neither plain text nor Markdown"""
    status_code = status.HTTP_415_UNSUPPORTED_MEDIA_TYPE


class ScoringServiceError(GraderException):
    """Scorer failed: network, timeout, empty or malformed answer"""
    status_code = status.HTTP_502_BAD_GATEWAY


class LLMConnectionError(ScoringServiceError):
    """LLM connection, rate-limit or timeout errors; safe to retry"""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class RubricValidationError(ScoringServiceError):
    """Scorer returned an internally inconsistent rubric result"""


class FeatureUnavailableError(GraderException):
    """Requested feature is not offered"""
    status_code = status.HTTP_501_NOT_IMPLEMENTED


# Exception handlers
async def grader_exception_handler(request: Request, exc: GraderException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"Grading error: {exc.message}", extra={"details": exc.details})
    else:
        logger.info(f"Rejected request: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.message,
            "type": exc.__class__.__name__,
            "details": exc.details,
        },
    )
