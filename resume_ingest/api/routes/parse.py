import logging
from functools import lru_cache
from typing import List, Optional

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import JSONResponse

from resume_ingest.core.errors import (
    DocumentTooLarge,
    EmptyDocument,
    ExtractionFailed,
    InvalidInput,
    LowConfidenceText,
    PipelineTimeout,
    ResumeIngestError,
    UnsupportedFormat,
)
from resume_ingest.core.pipeline import ResumeIngestPipeline
from resume_ingest.core.schemas import ErrorResponse, ExtractionAttempt, NormalizeRequest, ParseResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["parse"])


@lru_cache()
def get_pipeline() -> ResumeIngestPipeline:
    return ResumeIngestPipeline()


def _error(status_code: int, exc: ResumeIngestError, message: Optional[str] = None, attempts: Optional[List[ExtractionAttempt]] = None) -> JSONResponse:
    body = ErrorResponse(
        error=exc.code,
        message=message or exc.user_message,
        attempts=attempts or [],
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def error_response(exc: ResumeIngestError) -> JSONResponse:
    """Map the pipeline's error taxonomy onto HTTP status codes."""
    if isinstance(exc, EmptyDocument):
        return _error(400, exc, attempts=exc.attempts)
    if isinstance(exc, DocumentTooLarge):
        return _error(413, exc)
    if isinstance(exc, UnsupportedFormat):
        return _error(415, exc)
    if isinstance(exc, InvalidInput):
        return _error(400, exc)
    if isinstance(exc, ExtractionFailed):
        status = 503 if exc.service_exhausted else 422
        return _error(status, exc, attempts=exc.attempts)
    if isinstance(exc, PipelineTimeout):
        return _error(504, exc, attempts=exc.attempts)
    if isinstance(exc, LowConfidenceText):
        return _error(422, exc, message=f"{exc.user_message} ({exc.reason})")
    return _error(500, exc)


_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Empty or unreadable upload"},
    413: {"model": ErrorResponse, "description": "File exceeds the upload limit"},
    415: {"model": ErrorResponse, "description": "Not a PDF, Word document or image"},
    422: {"model": ErrorResponse, "description": "No strategy produced readable text; the attempt trail is included"},
    503: {"model": ErrorResponse, "description": "OCR / vision services unavailable"},
    504: {"model": ErrorResponse, "description": "Processing exceeded the time budget"},
}


@router.post(
    "/parse",
    response_model=ParseResponse,
    summary="Parse Resume",
    description=(
        "Extract a normalized resume from a PDF, Word document or image. Text is read from the "
        "embedded layer when it is readable, otherwise by OCR, otherwise by vision-assisted synthesis."
    ),
    responses=_ERROR_RESPONSES,
)
async def parse_resume(
    file: UploadFile = File(..., description="Resume file (PDF, DOCX, PNG/JPEG/GIF/WEBP)"),
    pipeline: ResumeIngestPipeline = Depends(get_pipeline),
):
    """
    **Returns:**
    - **resume**: name, contact details, links, summary, experience, education, skills, certifications, projects
    - **formatted_text**: the resume rendered as Markdown
    - **provenance**: which extraction strategy produced the text
    - **attempts**: every strategy tried, with failure reasons
    - **confidence_scores** / **parse_quality**: per-field confidence scaled by the strategy's weight
    - **warnings**: sections or fields that could not be found
    """
    raw = await file.read()
    logger.info(f"Received {file.filename!r} ({len(raw)} bytes, declared {file.content_type})")
    try:
        return await pipeline.aparse(raw, declared_type=file.content_type)
    except ResumeIngestError as e:
        logger.warning(f"Parse failed for {file.filename!r}: {e.code}")
        return error_response(e)


@router.post(
    "/normalize",
    response_model=ParseResponse,
    summary="Normalize Resume Text",
    description="Structure resume text that was already extracted elsewhere.",
    responses={422: {"model": ErrorResponse, "description": "Text rejected by the quality gate"}},
)
def normalize_resume(
    request: NormalizeRequest,
    pipeline: ResumeIngestPipeline = Depends(get_pipeline),
):
    try:
        return pipeline.parse_text(request.text)
    except ResumeIngestError as e:
        logger.warning(f"Normalize failed: {e.code}")
        return error_response(e)
