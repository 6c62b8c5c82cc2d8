"""
Analysis error handling utilities.

Provides a decorator for consistent translation of domain exceptions into
HTTP responses across the analysis endpoints.
"""

import functools
import logging
from typing import Any, Callable, TypeVar

from fastapi import HTTPException, status

from cvtailor.core.exceptions import (
    CVTailorException,
    InvalidSubmissionError,
    JobNotFoundError,
    JobPersistenceError,
)
from cvtailor.observability.log_utils import log_with_context

logger = logging.getLogger(__name__)

# Type for the decorated function
F = TypeVar("F", bound=Callable[..., Any])


def handle_analysis_errors(func: F) -> F:
    """
    Decorator to transform analysis errors into HTTPExceptions.

    This centralizes:
    - Logging of errors with context (job_id, field)
    - Mapping domain exceptions to HTTP status codes
    - Uniform error response bodies
    """

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)

        except HTTPException:
            raise

        except InvalidSubmissionError as e:
            log_with_context(
                logger,
                logging.WARNING,
                "Invalid analysis submission",
                field=e.field,
                error=e.message,
            )
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

        except JobNotFoundError as e:
            log_with_context(logger, logging.WARNING, "Analysis job not found", job_id=e.job_id)
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)

        except JobPersistenceError as e:
            logger.error("Job store unavailable", extra={"error": str(e)})
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Analysis service temporarily unavailable, please retry",
            )

        except CVTailorException as e:
            logger.error("Analysis operation failed", extra={"error": str(e)})
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=e.message,
            )

        except Exception as e:
            logger.exception(
                "Unexpected failure in analysis operation",
                extra={"error": str(e)},
            )
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="An internal error occurred during the analysis operation",
            )

    return wrapper  # type: ignore
