import pytest

from resume_ingest.core.ai_client import classify_service_error
from resume_ingest.core.errors import (
    ExternalServiceError,
    ServiceQuotaExceeded,
    ServiceSafetyBlock,
    ServiceTimeout,
    ServiceUnavailable,
)
from resume_ingest.core.schemas import NormalizedResume
from resume_ingest.core.vision import (
    build_user_prompt,
    coerce_payload,
    ground_contact_fields,
    parse_json_payload,
)


class TestPayload:
    def test_fenced_json(self):
        assert parse_json_payload('```json\n{"name": "Jane Doe"}\n```') == {"name": "Jane Doe"}

    def test_prose_around_json(self):
        assert parse_json_payload('Here you go: {"name": "Jane"} Hope it helps') == {"name": "Jane"}

    def test_no_json(self):
        with pytest.raises(ValueError):
            parse_json_payload("Sorry, I cannot read this resume.")


class TestCoercion:
    def test_empty_strings_become_none(self):
        resume = coerce_payload({"name": "Jane Doe", "email": "", "links": {"linkedin": ""}})
        assert resume.name == "Jane Doe"
        assert resume.email is None
        assert resume.links.linkedin is None

    def test_links_as_list(self):
        resume = coerce_payload({"links": ["https://janedoe.dev", "https://www.linkedin.com/in/jane"]})
        assert resume.links.linkedin == "https://www.linkedin.com/in/jane"
        assert resume.links.website == "https://janedoe.dev"

    def test_skills_deduplicated(self):
        resume = coerce_payload({"skills": ["Python", "python", {"category": "Data", "items": ["SQL"]}]})
        assert resume.skills == ["Python", "SQL"]

    def test_description_string_becomes_list(self):
        resume = coerce_payload({"experience": [{"title": "Engineer", "description": "Built APIs"}]})
        assert resume.experience[0].description == ["Built APIs"]

    def test_malformed_entries_skipped(self):
        resume = coerce_payload({"experience": ["not an object"], "education": [None]})
        assert resume.experience == []
        assert resume.education == []


class TestGrounding:
    def test_no_layers_means_no_check(self):
        resume = NormalizedResume(email="jane@example.com", phone="555-123-4567")
        grounded, warnings = ground_contact_fields(resume, ["", ""])
        assert grounded == resume
        assert warnings == []

    def test_phone_matched_by_digits(self):
        resume = NormalizedResume(email="jane@example.com", phone="(555) 123-4567")
        grounded, warnings = ground_contact_fields(resume, ["JANE@EXAMPLE.COM 555.123.4567"])
        assert grounded.phone == "(555) 123-4567"
        assert grounded.email == "jane@example.com"
        assert warnings == []

    def test_ungrounded_email_dropped(self):
        resume = NormalizedResume(email="made.up@example.com")
        grounded, warnings = ground_contact_fields(resume, ["Jane Doe jane@example.com"])
        assert grounded.email is None
        assert len(warnings) == 1


def test_prompt_carries_both_layers():
    prompt = build_user_prompt("raw layer", "")
    assert "raw layer" in prompt
    assert "(none)" in prompt


@pytest.mark.parametrize(
    "message, expected",
    [
        ("429 RESOURCE_EXHAUSTED: quota exceeded", ServiceQuotaExceeded),
        ("response blocked by SAFETY settings", ServiceSafetyBlock),
        ("Read timed out", ServiceTimeout),
        ("503 UNAVAILABLE: model overloaded", ServiceUnavailable),
        ("API key not valid", ExternalServiceError),
    ],
)
def test_service_error_classification(message, expected):
    err = classify_service_error(RuntimeError(message))
    assert type(err) is expected
    assert err.service == "gemini"


def test_retryable_flags():
    assert ServiceTimeout("t").retryable
    assert ServiceUnavailable("u").retryable
    assert not ServiceQuotaExceeded("q").retryable
    assert not ServiceSafetyBlock("s").retryable
