from typing import Callable, List, Optional

import pytest

from resume_ingest.core.cache import ExtractionCache
from resume_ingest.core.config import Settings
from resume_ingest.core.extraction import (
    EmbeddedTextStrategy,
    OcrStrategy,
    TextExtractionCascade,
    VisionStrategy,
)
from resume_ingest.core.ocr import OcrPage
from resume_ingest.core.pipeline import ResumeIngestPipeline

from resume_fixtures import (
    SAMPLE_RESUME_LINES,
    FakeGeminiClient,
    FakeOcrEngine,
    FakeRasterizer,
    build_docx,
    build_pdf,
)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        gemini_api_key="",
        retry_attempts=3,
        retry_initial_delay_s=0.0,
        retry_max_delay_s=0.0,
        pipeline_timeout_s=25.0,
    )


@pytest.fixture
def make_cascade(settings) -> Callable[..., TextExtractionCascade]:
    """
    Factory for the three-strategy cascade wired to fake collaborators.
    The fakes are exposed on the cascade as `ocr_log`, `rasterizer` and
    `vision_client`.
    """
    def factory(ocr_script: Optional[List] = None, vision_client: Optional[FakeGeminiClient] = None, pages: int = 1):
        log: List[str] = []
        rasterizer = FakeRasterizer(pages=pages)
        script = ocr_script or [OcrPage(text="", confidence=0.0)]
        cascade = TextExtractionCascade(
            [
                EmbeddedTextStrategy(),
                OcrStrategy(rasterizer=rasterizer, engine_factory=lambda: FakeOcrEngine(script, log)),
                VisionStrategy(client=vision_client, rasterizer=rasterizer),
            ],
            settings=settings,
        )
        cascade.ocr_log = log
        cascade.rasterizer = rasterizer
        cascade.vision_client = vision_client
        return cascade

    return factory


@pytest.fixture
def make_pipeline(settings, make_cascade) -> Callable[..., ResumeIngestPipeline]:
    def factory(**cascade_kwargs):
        cascade = make_cascade(**cascade_kwargs)
        return ResumeIngestPipeline(settings=settings, cascade=cascade, cache=ExtractionCache(ttl_s=60, max_entries=10))

    return factory


@pytest.fixture
def sample_pdf() -> bytes:
    return build_pdf(SAMPLE_RESUME_LINES)


@pytest.fixture
def sample_docx() -> bytes:
    return build_docx(SAMPLE_RESUME_LINES)
