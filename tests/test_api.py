import pytest
from fastapi.testclient import TestClient

from resume_ingest.api.routes.parse import get_pipeline
from resume_ingest.core.errors import ServiceQuotaExceeded, ServiceUnavailable
from resume_ingest.main import app

from resume_fixtures import SAMPLE_RESUME_TEXT, FakeGeminiClient, build_pdf, build_png

client = TestClient(app)

DOCX_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


@pytest.fixture
def use_pipeline():
    """Install a pipeline built by `make_pipeline` for the duration of one test."""
    def install(pipeline):
        app.dependency_overrides[get_pipeline] = lambda: pipeline
        return pipeline

    yield install
    app.dependency_overrides.clear()


def test_health():
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_parse_docx_extracts_contact_fields(use_pipeline, make_pipeline, sample_docx):
    use_pipeline(make_pipeline())
    r = client.post("/parse", files={"file": ("resume.docx", sample_docx, DOCX_TYPE)})
    assert r.status_code == 200
    data = r.json()

    assert data["provenance"] == "embedded_text"
    assert data["resume"]["email"] == "vamshi.banoth@example.com"
    assert data["resume"]["experience"][0]["company"] == "Highbrow Technology Inc"
    assert data["confidence_scores"]["email"]["confidence"] == 1.0
    assert data["attempts"][0]["strategy_name"] == "embedded_text"
    assert "text" not in data["attempts"][0]


def test_parse_pdf(use_pipeline, make_pipeline, sample_pdf):
    use_pipeline(make_pipeline())
    r = client.post("/parse", files={"file": ("resume.pdf", sample_pdf, "application/pdf")})
    assert r.status_code == 200
    assert r.json()["formatted_text"].startswith("# Vamshi Banoth")


def test_empty_upload_is_400(use_pipeline, make_pipeline):
    use_pipeline(make_pipeline())
    r = client.post("/parse", files={"file": ("resume.pdf", b"", "application/pdf")})
    assert r.status_code == 400
    body = r.json()
    assert body["error"] == "empty_document"
    assert len(body["attempts"]) == 3


def test_unknown_format_is_415(use_pipeline, make_pipeline):
    use_pipeline(make_pipeline())
    r = client.post("/parse", files={"file": ("resume.txt", SAMPLE_RESUME_TEXT.encode(), "text/plain")})
    assert r.status_code == 415
    assert r.json()["error"] == "unsupported_format"


def test_oversized_upload_is_413(use_pipeline, make_pipeline, settings):
    pipeline = use_pipeline(make_pipeline())
    pipeline.settings = settings.model_copy(update={"max_upload_bytes": 1024})
    r = client.post("/parse", files={"file": ("resume.pdf", b"%PDF" + b"0" * 2048, "application/pdf")})
    assert r.status_code == 413
    assert r.json()["error"] == "document_too_large"


def test_unreadable_scan_is_422_with_attempts(use_pipeline, make_pipeline):
    use_pipeline(make_pipeline())
    r = client.post("/parse", files={"file": ("scan.pdf", build_pdf([]), "application/pdf")})
    assert r.status_code == 422
    body = r.json()
    assert body["error"] == "extraction_failed"
    assert "scanned" in body["message"]
    assert [a["strategy_name"] for a in body["attempts"]] == ["embedded_text", "ocr", "vision"]


def test_service_exhaustion_is_503(use_pipeline, make_pipeline):
    use_pipeline(make_pipeline(
        ocr_script=[ServiceUnavailable("down", service="tesseract")],
        vision_client=FakeGeminiClient(error=ServiceQuotaExceeded("quota", service="gemini")),
    ))
    r = client.post("/parse", files={"file": ("photo.png", build_png(), "image/png")})
    assert r.status_code == 503
    assert r.json()["error"] == "extraction_failed"


def test_normalize_text(use_pipeline, make_pipeline):
    use_pipeline(make_pipeline())
    r = client.post("/normalize", json={"text": SAMPLE_RESUME_TEXT})
    assert r.status_code == 200
    data = r.json()
    assert data["provenance"] == "text"
    assert data["resume"]["name"] == "Vamshi Banoth"
    assert data["resume"]["skills"] == ["Python", "JavaScript", "C++", "React", "FastAPI"]


def test_normalize_rejects_short_text(use_pipeline, make_pipeline):
    use_pipeline(make_pipeline())
    r = client.post("/normalize", json={"text": "Jane Doe"})
    assert r.status_code == 422
    assert r.json()["error"] == "low_confidence_text"
