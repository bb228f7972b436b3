"""
End-to-end ingestion: bytes in, NormalizedResume plus formatted text out.

    sniff -> cascade (embedded text, OCR, vision) -> repair -> segment
          -> contact fields -> structured builder -> formatter

The pipeline is framework-free; the HTTP layer only maps its exceptions to
status codes. Each call owns its data, so one pipeline instance can serve
concurrent requests.
"""

import asyncio
import logging
import time
from dataclasses import asdict
from typing import List, Optional, Tuple

from resume_ingest.core.cache import ExtractionCache, fingerprint
from resume_ingest.core.confidence_calculator import score_resume
from resume_ingest.core.config import Settings, get_settings
from resume_ingest.core.errors import DocumentTooLarge, LowConfidenceText, PipelineTimeout, UnsupportedFormat
from resume_ingest.core.extraction import TextExtractionCascade, build_default_cascade
from resume_ingest.core.field_extractor import FieldExtractor
from resume_ingest.core.format_sniffer import sniff_format
from resume_ingest.core.formatter import format_resume
from resume_ingest.core.lexicon import Lexicon, default_lexicon
from resume_ingest.core.quality_gate import assess
from resume_ingest.core.resume_builder import StructuredResumeBuilder
from resume_ingest.core.schemas import (
    ExtractionResult,
    FormatTag,
    NormalizedResume,
    ParseResponse,
    RawDocument,
    SectionKind,
)
from resume_ingest.core.section_segmenter import SectionSegmenter
from resume_ingest.core.text_repair import TextRepairer
from resume_ingest.core.text_sanitizer import sanitize_text

logger = logging.getLogger(__name__)


class ResumeIngestPipeline:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        cascade: Optional[TextExtractionCascade] = None,
        cache: Optional[ExtractionCache] = None,
        lexicon: Optional[Lexicon] = None,
    ):
        self.settings = settings or get_settings()
        self.cascade = cascade or build_default_cascade(self.settings)
        self.cache = cache if cache is not None else ExtractionCache(
            ttl_s=self.settings.cache_ttl_s, max_entries=self.settings.cache_max_entries
        )
        self.lexicon = lexicon or default_lexicon()
        self.repairer = TextRepairer(self.lexicon)
        self.segmenter = SectionSegmenter(self.lexicon)
        self.field_extractor = FieldExtractor(self.lexicon)
        self.builder = StructuredResumeBuilder(self.lexicon)

    def _cache_params(self) -> dict:
        s = self.settings
        return {
            "thresholds": asdict(self.cascade.thresholds),
            "strategies": [st.name for st in self.cascade.strategies],
            "max_pages": s.max_pages,
            "raster_scale": s.raster_scale,
            "ocr_language": s.ocr_language,
            "vision_model": s.gemini_model if s.vision_enabled else None,
        }

    def structure_text(self, text: str) -> Tuple[NormalizedResume, List[str]]:
        """Heuristic structuring of already-gated text."""
        repaired = self.repairer.repair(text)
        section_map = self.segmenter.segment(repaired)
        contact = self.field_extractor.extract(repaired, header_lines=section_map.lines(SectionKind.OTHER))
        return self.builder.build(section_map, contact)

    def _respond(self, result: ExtractionResult, from_cache: bool = False) -> ParseResponse:
        warnings = list(result.warnings)
        if result.structured is not None:
            resume = result.structured
        else:
            resume, built_warnings = self.structure_text(result.text)
            warnings.extend(built_warnings)

        scores, quality = score_resume(resume, result.text, result.confidence_weight)
        return ParseResponse(
            resume=resume,
            formatted_text=format_resume(resume),
            provenance=result.provenance,
            page_count=result.page_count,
            attempts=result.attempts,
            confidence_scores=scores,
            parse_quality=quality,
            warnings=warnings,
            from_cache=from_cache,
        )

    def _cached(self, key: str) -> Optional[ExtractionResult]:
        hit = self.cache.get(key)
        if hit is None:
            return None
        verdict = assess(hit.text, self.cascade.thresholds)
        if not verdict.accept:
            logger.warning(f"Cached extraction rejected by quality gate ({verdict.reason}); evicting")
            self.cache.evict(key)
            return None
        return hit

    def extract(self, data: bytes, declared_type: Optional[str] = None, deadline: Optional[float] = None) -> Tuple[ExtractionResult, bool]:
        """
        Validate the buffer and run the cascade (or serve a re-gated cache hit).
        Returns (result, from_cache).
        """
        size = len(data)
        if size > self.settings.max_upload_bytes:
            raise DocumentTooLarge(size, self.settings.max_upload_bytes)

        fmt = sniff_format(data)
        if fmt == FormatTag.UNKNOWN and size > 0:
            raise UnsupportedFormat(f"Unrecognized file signature (declared type {declared_type!r})")
        doc = RawDocument(data=data, format=fmt, declared_type=declared_type)

        key = fingerprint(data, self._cache_params()) if size else None
        if key:
            hit = self._cached(key)
            if hit is not None:
                logger.info(f"Serving cached {hit.provenance} extraction for {fmt.value} document")
                return hit, True

        if deadline is None:
            deadline = time.monotonic() + self.settings.pipeline_timeout_s
        result = self.cascade.extract(doc, deadline=deadline)
        if key:
            self.cache.put(key, result)
        return result, False

    def parse(self, data: bytes, declared_type: Optional[str] = None) -> ParseResponse:
        started = time.monotonic()
        result, from_cache = self.extract(data, declared_type)
        response = self._respond(result, from_cache=from_cache)
        logger.info(
            f"Parsed {len(data)} bytes via {response.provenance} in "
            f"{int((time.monotonic() - started) * 1000)}ms (quality={response.parse_quality})"
        )
        return response

    def parse_text(self, text: str) -> ParseResponse:
        """Structure text a caller already extracted. Rejected text raises LowConfidenceText."""
        cleaned = sanitize_text(text or "")
        verdict = assess(cleaned, self.cascade.thresholds)
        if not verdict.accept:
            raise LowConfidenceText(verdict.reason or "rejected by quality gate")
        result = ExtractionResult(text=cleaned, page_count=0, provenance="text", confidence_weight=1.0)
        return self._respond(result)

    async def aparse(self, data: bytes, declared_type: Optional[str] = None) -> ParseResponse:
        """parse() on a worker thread, bounded by the pipeline's wall-clock budget."""
        budget = self.settings.pipeline_timeout_s
        try:
            return await asyncio.wait_for(asyncio.to_thread(self.parse, data, declared_type), timeout=budget)
        except asyncio.TimeoutError as e:
            logger.warning(f"Pipeline exceeded {budget:g}s budget")
            raise PipelineTimeout(budget) from e
