"""
Gemini text/vision generation collaborator.

Prompt, optional system instruction, generation parameters and inline
attachments go in; generated text comes out or a typed ExternalServiceError
is raised.
"""

import logging
from typing import Optional, Sequence, Tuple

from google import genai
from google.genai import errors as genai_errors

from resume_ingest.core.errors import (
    ExternalServiceError,
    ServiceQuotaExceeded,
    ServiceSafetyBlock,
    ServiceTimeout,
    ServiceUnavailable,
)

logger = logging.getLogger(__name__)

Attachment = Tuple[bytes, str]  # (data, mime_type)


def classify_service_error(exc: Exception, service: str = "gemini") -> ExternalServiceError:
    """Map an SDK/transport exception to the pipeline's service error types."""
    msg = str(exc)
    lowered = msg.lower()
    code = getattr(exc, "code", None)

    if code == 429 or "quota" in lowered or "resource_exhausted" in lowered:
        return ServiceQuotaExceeded(f"AI service quota exceeded: {msg}", service=service)
    if "safety" in lowered or "blocked" in lowered:
        return ServiceSafetyBlock(f"Content was blocked by safety filters: {msg}", service=service)
    if code in (408, 504) or "timeout" in lowered or "timed out" in lowered or "deadline" in lowered:
        return ServiceTimeout(f"AI service timeout: {msg}", service=service)
    if code in (500, 502, 503) or "unavailable" in lowered or "overloaded" in lowered:
        return ServiceUnavailable(f"AI model unavailable: {msg}", service=service)
    if "api key" in lowered or "api_key_invalid" in lowered or code in (401, 403):
        return ExternalServiceError(f"AI service configuration error: {msg}", service=service)
    return ExternalServiceError(f"AI generation failed: {msg}", service=service)


class GeminiClient:
    service = "gemini"

    def __init__(self, api_key: str, model: str = "gemini-2.0-flash", timeout_s: float = 30.0):
        if not api_key:
            raise ValueError("Gemini API key is not configured")
        self.model = model
        self._client = genai.Client(
            api_key=api_key,
            http_options=genai.types.HttpOptions(timeout=int(timeout_s * 1000)),
        )

    def generate(
        self,
        prompt: str,
        *,
        system_instruction: Optional[str] = None,
        temperature: float = 0.7,
        max_output_tokens: int = 2000,
        attachments: Sequence[Attachment] = (),
    ) -> str:
        contents = [prompt]
        for data, mime_type in attachments:
            contents.append(genai.types.Part.from_bytes(data=data, mime_type=mime_type))

        try:
            response = self._client.models.generate_content(
                model=self.model,
                contents=contents,
                config=genai.types.GenerateContentConfig(
                    system_instruction=system_instruction,
                    temperature=temperature,
                    max_output_tokens=max_output_tokens,
                ),
            )
        except genai_errors.APIError as e:
            raise classify_service_error(e, self.service) from e
        except Exception as e:  # transport errors (httpx timeouts, connection resets)
            raise classify_service_error(e, self.service) from e

        feedback = getattr(response, "prompt_feedback", None)
        if feedback is not None and getattr(feedback, "block_reason", None):
            raise ServiceSafetyBlock(f"Prompt blocked: {feedback.block_reason}", service=self.service)

        text = (response.text or "").strip()
        if not text:
            raise ExternalServiceError("Empty response from AI model", service=self.service)
        logger.info(f"Gemini returned {len(text)} chars ({len(attachments)} attachment(s))")
        return text
