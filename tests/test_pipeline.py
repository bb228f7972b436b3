"""
End-to-end pipeline: extraction, structuring, confidence and the result cache.
"""

from io import BytesIO

import pytest
from docx import Document

from resume_ingest.core.cache import fingerprint
from resume_ingest.core.errors import (
    DocumentTooLarge,
    EmptyDocument,
    LowConfidenceText,
    PipelineTimeout,
    UnsupportedFormat,
)
from resume_ingest.core.ocr import OcrPage
from resume_ingest.core.schemas import ExtractionResult

from resume_fixtures import SAMPLE_RESUME_TEXT, build_pdf


def test_text_pdf_end_to_end(make_pipeline, sample_pdf):
    response = make_pipeline().parse(sample_pdf, declared_type="application/pdf")

    assert response.provenance == "embedded_text"
    assert response.from_cache is False
    resume = response.resume
    assert resume.name == "Vamshi Banoth"
    assert resume.email == "vamshi.banoth@example.com"
    assert resume.phone == "+91 63020 61843"
    assert resume.location == "Hyderabad, India"
    assert resume.links.linkedin == "https://linkedin.com/in/vamshi-banoth"
    assert [e.title for e in resume.experience] == ["Technical Lead", "Technical Trainer"]
    assert resume.experience[0].company == "Highbrow Technology Inc"
    assert resume.education[0].degree == "Full Stack Developer"
    assert resume.skills == ["Python", "JavaScript", "C++", "React", "FastAPI"]
    assert response.formatted_text.startswith("# Vamshi Banoth\n")
    assert response.parse_quality == "high"
    assert response.warnings == []


def test_declared_type_is_ignored(make_pipeline, sample_pdf):
    response = make_pipeline().parse(sample_pdf, declared_type="text/plain")
    assert response.provenance == "embedded_text"


def test_ocr_result_scores_are_scaled(make_pipeline):
    pipeline = make_pipeline(ocr_script=[OcrPage(text=SAMPLE_RESUME_TEXT, confidence=0.9)])
    response = pipeline.parse(build_pdf([]))

    assert response.provenance == "ocr"
    assert response.resume.name == "Vamshi Banoth"
    assert response.confidence_scores["email"].confidence == 0.7
    assert "--- Page" not in response.resume.unclassified_content
    assert [a.strategy_name for a in response.attempts] == ["embedded_text", "ocr"]


def test_second_parse_is_served_from_cache(make_pipeline, sample_pdf):
    pipeline = make_pipeline()
    first = pipeline.parse(sample_pdf)
    second = pipeline.parse(sample_pdf)
    assert not first.from_cache
    assert second.from_cache
    assert second.resume == first.resume


def test_corrupted_cache_entry_is_evicted_and_recomputed(make_pipeline, sample_pdf):
    pipeline = make_pipeline()
    key = fingerprint(sample_pdf, pipeline._cache_params())
    pipeline.cache.put(key, ExtractionResult(
        text="\n".join(["xxxxxxxxxxxxxxxxxxxx"] * 10),
        page_count=1,
        provenance="embedded_text",
        confidence_weight=1.0,
    ))

    response = pipeline.parse(sample_pdf)
    assert not response.from_cache
    assert response.resume.name == "Vamshi Banoth"
    assert "Vamshi Banoth" in pipeline.cache.get(key).text


def test_invalid_inputs(make_pipeline, settings):
    pipeline = make_pipeline()
    with pytest.raises(UnsupportedFormat):
        pipeline.parse(b"just some text, not a document")
    with pytest.raises(EmptyDocument) as excinfo:
        pipeline.parse(b"")
    assert len(excinfo.value.attempts) == 3
    with pytest.raises(DocumentTooLarge):
        pipeline.parse(b"%PDF" + b"\x00" * settings.max_upload_bytes)


def test_parse_text(make_pipeline):
    response = make_pipeline().parse_text(SAMPLE_RESUME_TEXT)
    assert response.provenance == "text"
    assert response.resume.certifications == [
        "AWS Certified Cloud Practitioner",
        "Google Data Analytics Certificate",
    ]
    assert response.attempts == []


def test_parse_text_rejects_gibberish(make_pipeline):
    with pytest.raises(LowConfidenceText):
        make_pipeline().parse_text("\n".join(["@@@@ aaaaaaaaaaaaaa"] * 12))


def test_async_parse_times_out(make_pipeline, settings, sample_pdf):
    import asyncio
    import time

    pipeline = make_pipeline()
    pipeline.settings = settings.model_copy(update={"pipeline_timeout_s": 0.05})

    def slow_parse(data, declared_type=None):
        time.sleep(0.5)

    pipeline.parse = slow_parse
    with pytest.raises(PipelineTimeout):
        asyncio.run(pipeline.aparse(sample_pdf))


def test_docx_header_table_feeds_contact_fields(make_pipeline):
    doc = Document()
    header = doc.add_table(rows=1, cols=2)
    header.rows[0].cells[0].text = "Jane Doe"
    header.rows[0].cells[1].text = "jane@example.com +1 415 555 0100"
    for line in [
        "SUMMARY",
        "Backend engineer focused on payment systems and reliability.",
        "EXPERIENCE",
        "Software Engineer at Acme Corp",
        "January 2021 - Present",
        "- Built payment APIs serving two million users",
        "SKILLS",
        "Python, SQL, Kubernetes",
    ]:
        doc.add_paragraph(line)
    buf = BytesIO()
    doc.save(buf)

    resume = make_pipeline().parse(buf.getvalue()).resume
    assert resume.name == "Jane Doe"
    assert resume.email == "jane@example.com"
    assert resume.phone == "+1 415 555 0100"
    assert resume.skills == ["Python", "SQL", "Kubernetes"]
    assert resume.experience[0].title == "Software Engineer"
    assert resume.experience[0].company == "Acme Corp"
    assert resume.unclassified_content == ""


def test_undated_experience_is_kept(make_pipeline):
    text = "\n".join([
        "Jane Doe",
        "jane@example.com | +1 415 555 0100",
        "SUMMARY",
        "Backend engineer focused on payment systems and reliability.",
        "EXPERIENCE",
        "Software Engineer at Acme Corp",
        "- Built payment APIs serving two million users",
        "- Led migration to Kubernetes for all services",
        "SKILLS",
        "Python, SQL",
    ])
    response = make_pipeline().parse_text(text)

    assert response.resume.experience == []
    assert "Software Engineer at Acme Corp" in response.resume.unclassified_content
    assert "Kubernetes for all services" in response.formatted_text
    assert "Experience section present but no dated entries were recognized" in response.warnings
