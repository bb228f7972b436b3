"""
Error taxonomy for the ingestion pipeline.

Only InvalidInput, ExtractionFailed and PipelineTimeout escape the pipeline.
LowConfidenceText and ExternalServiceError are raised inside strategies and
recorded on the attempt trail by the cascade.
"""

from typing import List, Optional

from resume_ingest.core.schemas import ExtractionAttempt


class ResumeIngestError(Exception):
    code = "resume_ingest_error"
    user_message = "The resume could not be processed."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.user_message)


class InvalidInput(ResumeIngestError):
    code = "invalid_input"
    user_message = "This file could not be read at all."


class DocumentTooLarge(InvalidInput):
    code = "document_too_large"

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(f"File is {size} bytes, the limit is {limit} bytes.")

    @property
    def user_message(self) -> str:  # type: ignore[override]
        return f"The uploaded file is too large (limit {self.limit // (1024 * 1024)} MB)."


class UnsupportedFormat(InvalidInput):
    code = "unsupported_format"
    user_message = "This file could not be read at all: upload a PDF, Word document or image."


class LowConfidenceText(ResumeIngestError):
    code = "low_confidence_text"
    user_message = "The extracted text looks corrupted or too short to be a resume."

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class ExternalServiceError(ResumeIngestError):
    code = "external_service"
    user_message = "A text recognition service is temporarily unavailable. Please try again shortly."
    retryable = False

    def __init__(self, message: str, service: str = "unknown"):
        self.service = service
        super().__init__(message)


class ServiceTimeout(ExternalServiceError):
    code = "service_timeout"
    retryable = True


class ServiceUnavailable(ExternalServiceError):
    code = "service_unavailable"
    retryable = True


class ServiceQuotaExceeded(ExternalServiceError):
    code = "service_quota_exceeded"


class ServiceSafetyBlock(ExternalServiceError):
    code = "service_safety_block"


SCANNED_PDF_MESSAGE = (
    "This looks like a scanned or image-based PDF and no readable text could be "
    "recovered from it. Try a text-based PDF or a clearer scan."
)
UNREADABLE_MESSAGE = "This file could not be read at all."
SERVICE_UNAVAILABLE_MESSAGE = ExternalServiceError.user_message


class ExtractionFailed(ResumeIngestError):
    """Every cascade strategy was exhausted. Carries the full attempt trail."""
    code = "extraction_failed"

    def __init__(self, attempts: List[ExtractionAttempt]):
        self.attempts = list(attempts)
        summary = "; ".join(f"{a.strategy_name}: {a.reason}" for a in self.attempts)
        super().__init__(f"All extraction strategies failed ({summary})")

    @property
    def service_exhausted(self) -> bool:
        """True when every strategy that actually ran failed on an external service."""
        ran = [a for a in self.attempts if a.error_code != "not_applicable"]
        return bool(ran) and all(a.error_code == "external_service" for a in ran)

    @property
    def user_message(self) -> str:  # type: ignore[override]
        if self.service_exhausted:
            return SERVICE_UNAVAILABLE_MESSAGE
        for a in self.attempts:
            if a.strategy_name == "embedded_text" and a.error_code == "low_confidence_text":
                return SCANNED_PDF_MESSAGE
        return UNREADABLE_MESSAGE


class EmptyDocument(InvalidInput, ExtractionFailed):
    """Zero-byte upload. Fatal like any invalid input, but still reports the attempts made."""
    code = "empty_document"
    user_message = "The uploaded file is empty."


class PipelineTimeout(ResumeIngestError):
    code = "pipeline_timeout"
    user_message = "Processing took too long and was stopped. Please try a smaller or simpler file."

    def __init__(self, budget_s: float, attempts: Optional[List[ExtractionAttempt]] = None):
        self.budget_s = budget_s
        self.attempts = list(attempts or [])
        super().__init__(f"Pipeline exceeded its {budget_s:g}s budget")
