"""
Text extraction cascade.

Strategies are tried strictly in order of decreasing reliability:

  embedded_text  read the PDF text layer / Word paragraphs directly
  ocr            rasterize pages and OCR each one
  vision         send page images plus any recovered text layers to a
                 multimodal model and validate the JSON it returns

Each strategy catches its own failures and reports them as an
ExtractionAttempt. The first attempt whose text passes the quality gate wins;
if none does, ExtractionFailed carries every attempt.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from PIL import Image

from resume_ingest.core.ai_client import GeminiClient
from resume_ingest.core.config import Settings, get_settings
from resume_ingest.core.docx_extractor import extract_docx_text
from resume_ingest.core.errors import (
    EmptyDocument,
    ExternalServiceError,
    ExtractionFailed,
    LowConfidenceText,
    PipelineTimeout,
)
from resume_ingest.core.formatter import format_resume
from resume_ingest.core.ocr import PageRasterizer, TesseractOcrEngine, image_to_png_bytes
from resume_ingest.core.pdf_extractor import extract_pdf_text
from resume_ingest.core.quality_gate import GateThresholds, assess
from resume_ingest.core.retry import call_with_retry
from resume_ingest.core.format_sniffer import image_mime_type
from resume_ingest.core.schemas import (
    ExtractionAttempt,
    ExtractionResult,
    FormatTag,
    NormalizedResume,
    RawDocument,
)
from resume_ingest.core.text_sanitizer import sanitize_text
from resume_ingest.core import vision

logger = logging.getLogger(__name__)

OCR_PAGE_MARKER = "--- Page {n} (OCR) ---"


class NotApplicable(Exception):
    """Strategy does not handle this document format or is not configured."""


@dataclass
class StrategyOutput:
    text: str
    page_count: int
    structured: Optional[NormalizedResume] = None
    warnings: List[str] = field(default_factory=list)


@dataclass
class CascadeContext:
    """Per-request scratch space shared by the strategies of one cascade run."""
    settings: Settings
    thresholds: GateThresholds
    deadline: Optional[float] = None
    text_layers: Dict[str, str] = field(default_factory=dict)
    page_images: Optional[List[Image.Image]] = None

    def retry(self, fn):
        s = self.settings
        return call_with_retry(
            fn,
            attempts=s.retry_attempts,
            initial_delay=s.retry_initial_delay_s,
            max_delay=s.retry_max_delay_s,
            deadline=self.deadline,
        )

    def check_deadline(self) -> None:
        if self.deadline is not None and time.monotonic() >= self.deadline:
            raise PipelineTimeout(self.settings.pipeline_timeout_s)


class ExtractionStrategy:
    name = "strategy"
    confidence_weight = 1.0

    def extract(self, doc: RawDocument, ctx: CascadeContext) -> StrategyOutput:
        raise NotImplementedError

    def run(self, doc: RawDocument, ctx: CascadeContext) -> Tuple[ExtractionAttempt, Optional[StrategyOutput]]:
        """Run and gate this strategy. Every failure becomes an Err attempt."""
        started = time.monotonic()

        def attempt(ok: bool, *, text=None, page_count=0, reason=None, error_code=None) -> ExtractionAttempt:
            return ExtractionAttempt(
                strategy_name=self.name,
                confidence_weight=self.confidence_weight,
                ok=ok,
                text=text,
                page_count=page_count,
                reason=reason,
                error_code=error_code,
                elapsed_ms=int((time.monotonic() - started) * 1000),
            )

        if doc.size == 0:
            return attempt(False, reason="document is empty", error_code="extraction_error"), None

        try:
            output = self.extract(doc, ctx)
            verdict = assess(output.text, ctx.thresholds)
            if not verdict.accept:
                raise LowConfidenceText(verdict.reason or "rejected by quality gate")
        except PipelineTimeout:
            raise
        except NotApplicable as e:
            logger.debug(f"{self.name}: not applicable ({e})")
            return attempt(False, reason=str(e), error_code="not_applicable"), None
        except LowConfidenceText as e:
            logger.warning(f"{self.name}: text rejected by quality gate: {e.reason}")
            return attempt(False, reason=e.reason, error_code="low_confidence_text"), None
        except ExternalServiceError as e:
            logger.warning(f"{self.name}: external service failure ({e.code}): {e}")
            return attempt(False, reason=str(e), error_code="external_service"), None
        except Exception as e:
            logger.warning(f"{self.name}: extraction error: {e}")
            return attempt(False, reason=f"{type(e).__name__}: {e}", error_code="extraction_error"), None

        logger.info(f"{self.name}: accepted {len(output.text)} chars from {output.page_count} page(s)")
        return attempt(True, text=output.text, page_count=output.page_count), output


class EmbeddedTextStrategy(ExtractionStrategy):
    """Reads the PDF text layer or Word paragraphs without rendering."""
    name = "embedded_text"
    confidence_weight = 1.0

    def extract(self, doc: RawDocument, ctx: CascadeContext) -> StrategyOutput:
        if doc.format == FormatTag.PDF:
            raw, page_count = extract_pdf_text(doc.data, max_pages=ctx.settings.max_pages)
        elif doc.format == FormatTag.OFFICE:
            raw, page_count = extract_docx_text(doc.data), 1
        else:
            raise NotApplicable(f"no embedded text layer for {doc.format.value} documents")

        text = sanitize_text(raw)
        ctx.text_layers[self.name] = text
        return StrategyOutput(text=text, page_count=page_count)


def _page_images(doc: RawDocument, ctx: CascadeContext, rasterizer: PageRasterizer) -> List[Image.Image]:
    if ctx.page_images is None:
        if doc.format == FormatTag.PDF:
            ctx.page_images = rasterizer.rasterize_pdf(
                doc.data, scale=ctx.settings.raster_scale, max_pages=ctx.settings.max_pages
            )
        else:
            ctx.page_images = rasterizer.load_image(doc.data)
    return ctx.page_images


class OcrStrategy(ExtractionStrategy):
    """Rasterizes each page (bounded) and runs OCR page by page."""
    name = "ocr"
    confidence_weight = 0.7

    def __init__(self, rasterizer: Optional[PageRasterizer] = None, engine_factory: Optional[Callable[[], TesseractOcrEngine]] = None):
        self.rasterizer = rasterizer or PageRasterizer()
        self.engine_factory = engine_factory

    def _engine(self, settings: Settings):
        if self.engine_factory is not None:
            return self.engine_factory()
        return TesseractOcrEngine(
            lang=settings.ocr_language,
            tesseract_cmd=settings.tesseract_cmd,
            timeout_s=settings.ocr_timeout_s,
        )

    def extract(self, doc: RawDocument, ctx: CascadeContext) -> StrategyOutput:
        if doc.format not in (FormatTag.PDF, FormatTag.IMAGE):
            raise NotApplicable(f"OCR does not apply to {doc.format.value} documents")

        images = _page_images(doc, ctx, self.rasterizer)
        if not images:
            raise ValueError("document rendered no pages")

        chunks: List[str] = []
        confidences: List[float] = []
        with self._engine(ctx.settings) as engine:
            for n, image in enumerate(images, start=1):
                ctx.check_deadline()
                page = ctx.retry(lambda: engine.recognize(image))
                confidences.append(page.confidence)
                chunks.append(OCR_PAGE_MARKER.format(n=n))
                chunks.append(page.text)

        text = sanitize_text("\n".join(chunks))
        ctx.text_layers[self.name] = text
        mean_conf = sum(confidences) / len(confidences) if confidences else 0.0
        logger.debug(f"OCR mean confidence {mean_conf:.2f} over {len(images)} page(s)")
        warnings = []
        if mean_conf < 0.6:
            warnings.append(f"OCR confidence is low ({mean_conf:.0%}); review extracted fields")
        return StrategyOutput(text=text, page_count=len(images), warnings=warnings)


class VisionStrategy(ExtractionStrategy):
    """Multimodal synthesis over page images, raw text and OCR text."""
    name = "vision"
    confidence_weight = 0.8

    def __init__(self, client: Optional[GeminiClient], rasterizer: Optional[PageRasterizer] = None):
        self.client = client
        self.rasterizer = rasterizer or PageRasterizer()

    def extract(self, doc: RawDocument, ctx: CascadeContext) -> StrategyOutput:
        if doc.format not in (FormatTag.PDF, FormatTag.IMAGE):
            raise NotApplicable(f"vision synthesis does not apply to {doc.format.value} documents")
        if self.client is None:
            raise NotApplicable("vision model is not configured")

        images = _page_images(doc, ctx, self.rasterizer)
        attachments = [(image_to_png_bytes(img), "image/png") for img in images]
        if doc.format == FormatTag.PDF:
            attachments.append((doc.data, "application/pdf"))
        elif not attachments:
            attachments.append((doc.data, image_mime_type(doc.data)))

        raw_text = ctx.text_layers.get(EmbeddedTextStrategy.name, "")
        ocr_text = ctx.text_layers.get(OcrStrategy.name, "")
        prompt = vision.build_user_prompt(raw_text, ocr_text)

        ctx.check_deadline()
        reply = ctx.retry(lambda: self.client.generate(
            prompt,
            system_instruction=vision.SYSTEM_INSTRUCTION,
            temperature=ctx.settings.vision_temperature,
            max_output_tokens=ctx.settings.vision_max_output_tokens,
            attachments=attachments,
        ))

        resume = vision.coerce_payload(vision.parse_json_payload(reply))
        resume, warnings = vision.ground_contact_fields(resume, [raw_text, ocr_text])
        return StrategyOutput(
            text=format_resume(resume),
            page_count=len(images),
            structured=resume,
            warnings=warnings,
        )


class TextExtractionCascade:
    def __init__(self, strategies: Sequence[ExtractionStrategy], settings: Optional[Settings] = None, thresholds: Optional[GateThresholds] = None):
        self.strategies = list(strategies)
        self.settings = settings or get_settings()
        self.thresholds = thresholds or GateThresholds.from_settings(self.settings)

    def extract(self, doc: RawDocument, deadline: Optional[float] = None) -> ExtractionResult:
        """
        Try each strategy in order and return the first gated success.
        Raises ExtractionFailed (EmptyDocument for a zero-byte buffer) with the
        full attempt trail, or PipelineTimeout when the deadline passes.
        """
        ctx = CascadeContext(settings=self.settings, thresholds=self.thresholds, deadline=deadline)
        attempts: List[ExtractionAttempt] = []

        for strategy in self.strategies:
            try:
                ctx.check_deadline()
                attempt, output = strategy.run(doc, ctx)
            except PipelineTimeout as e:
                logger.warning(f"Cascade stopped before {strategy.name}: deadline exceeded")
                raise PipelineTimeout(e.budget_s, attempts) from e
            attempts.append(attempt)
            if attempt.ok and output is not None:
                return ExtractionResult(
                    text=output.text,
                    page_count=output.page_count,
                    provenance=strategy.name,
                    confidence_weight=strategy.confidence_weight,
                    attempts=attempts,
                    structured=output.structured,
                    warnings=output.warnings,
                )

        logger.warning(f"All {len(attempts)} extraction strategies failed for {doc.format.value} document")
        if doc.size == 0:
            raise EmptyDocument(attempts)
        raise ExtractionFailed(attempts)


def build_default_cascade(settings: Optional[Settings] = None) -> TextExtractionCascade:
    settings = settings or get_settings()
    rasterizer = PageRasterizer()
    client = None
    if settings.vision_enabled:
        client = GeminiClient(settings.gemini_api_key, model=settings.gemini_model, timeout_s=settings.ai_timeout_s)
    return TextExtractionCascade(
        [
            EmbeddedTextStrategy(),
            OcrStrategy(rasterizer=rasterizer),
            VisionStrategy(client=client, rasterizer=rasterizer),
        ],
        settings=settings,
    )
