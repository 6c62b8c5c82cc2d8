"""
Analysis API endpoints.

Routes: POST /analyses, GET /analyses/{job_id}

Dependencies: cvtailor.application.services, cvtailor.models
System role: Job submission and polling HTTP API
"""

from fastapi import APIRouter, Depends, Response, status

from cvtailor.api.deps import get_status_service, get_submission_service
from cvtailor.api.routers.error_handling import handle_analysis_errors
from cvtailor.application.services.status_service import JobStatusService
from cvtailor.application.services.submission_service import AnalysisSubmissionService
from cvtailor.models.analysis import AnalysisRequest, JobStatusResponse, SubmissionResponse

router = APIRouter(prefix="/analyses", tags=["analyses"])


@router.post(
    "",
    response_model=SubmissionResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_202_ACCEPTED,
)
@handle_analysis_errors
async def submit_analysis(
    request: AnalysisRequest,
    response: Response,
    submission_service: AnalysisSubmissionService = Depends(get_submission_service),
) -> SubmissionResponse:
    """
    Submit a CV for tailoring against a job description.

    Returns immediately. A new or in-flight job answers 202 with its id;
    the client polls GET /analyses/{jobId}. An identical submission that
    completed within the dedup window answers 200 with the result.

    Args:
        request: CV text, job description text and language
        response: Outgoing response (status code adjusted for completed duplicates)
        submission_service: Injected AnalysisSubmissionService

    Returns:
        SubmissionResponse

    Raises:
        HTTPException(400): Invalid input
        HTTPException(503): Job store unavailable

    Example Response (202):
        {
            "jobId": "123e4567-e89b-12d3-a456-426614174000",
            "status": "pending",
            "message": "Analysis started. Poll the status endpoint for the result."
        }
    """
    result = await submission_service.submit(request)
    if result.status == "completed":
        response.status_code = status.HTTP_200_OK
    return result


@router.get(
    "/{job_id}",
    response_model=JobStatusResponse,
    response_model_exclude_none=True,
)
@handle_analysis_errors
async def get_analysis_status(
    job_id: str,
    status_service: JobStatusService = Depends(get_status_service),
) -> JobStatusResponse:
    """
    Get analysis job status for client polling.

    Clients should poll every 2-3 seconds while the status is pending or
    processing.

    Args:
        job_id: Job id returned by POST /analyses
        status_service: Injected JobStatusService

    Returns:
        JobStatusResponse: status plus, depending on it, elapsedSeconds and
        estimatedTotalSeconds (processing), result and processingTimeMs
        (completed) or errorMessage (failed)

    Raises:
        HTTPException(404): Unknown job id
    """
    return await status_service.get_status(job_id)
