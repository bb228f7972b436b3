"""
Confidence scoring for resume extraction fields.

Per-field confidence lets downstream consumers decide whether to ask the
candidate to confirm a value.

Confidence Scale:
  1.0   = Exact match (regex, known value)
  0.9   = Very high confidence (minor normalization needed)
  0.8   = High confidence (inferred but validated)
  0.7   = Medium-high confidence (heuristic with good signals)
  0.6   = Medium confidence (multiple signals, some uncertainty)
  0.5   = Low-medium confidence (ambiguous but extractable)
  <0.5  = Low confidence (should prompt for clarification)

Every score is finally multiplied by the confidence weight of the extraction
strategy that produced the text (embedded text 1.0, vision 0.8, OCR 0.7).
"""

from typing import Dict, Tuple
import re

from resume_ingest.core.field_extractor import EMAIL_RE, phone_digits
from resume_ingest.core.schemas import FieldConfidence, NormalizedResume, ParseQuality


class ConfidenceCalculator:
    """Central place for all extraction confidence logic."""

    @staticmethod
    def email(email_value: str, evidence_count: int = 1) -> Tuple[float, str]:
        """
        Email is high confidence when it is well-formed and appears once.
        Several distinct addresses make the pick ambiguous.
        """
        if not email_value:
            return 0.0, "no_email_found"

        email_pattern = r"^[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}$"
        if not re.match(email_pattern, email_value, re.IGNORECASE):
            return 0.4, "invalid_email_format"

        if evidence_count <= 1:
            return 1.0, "regex_exact_single"
        elif evidence_count <= 3:
            return 0.85, "regex_exact_multiple_occurrences"
        else:
            return 0.6, "too_many_email_candidates"

    @staticmethod
    def phone(phone_value: str, evidence_count: int = 1) -> Tuple[float, str]:
        if not phone_value:
            return 0.0, "no_phone_found"

        digits_only = phone_digits(phone_value)
        if len(digits_only) < 10:
            return 0.3, "too_few_digits"

        if evidence_count <= 1:
            return 1.0, "regex_exact_single"
        elif evidence_count <= 2:
            return 0.85, "regex_exact_multiple"
        else:
            return 0.6, "ambiguous_multiple_phones"

    @staticmethod
    def full_name(
        name_value: str,
        near_email: bool = False,
        is_top_of_resume: bool = False,
    ) -> Tuple[float, str]:
        """
        Factors:
          + Found near email (strong signal)
          + At top of resume (strong signal)
          - Contains digits (likely bad parse)
          - Single word (could be a company or header)
        """
        if not name_value:
            return 0.0, "no_name_found"

        if len(name_value) > 60:
            return 0.2, "name_too_long"
        if any(c.isdigit() for c in name_value):
            return 0.3, "name_contains_digits"
        if " " not in name_value.strip():
            return 0.4, "no_space_in_name"

        confidence = 0.5
        if near_email:
            confidence += 0.25
        if is_top_of_resume:
            confidence += 0.25

        method = "heuristic_window"
        if near_email and is_top_of_resume:
            method = "heuristic_multivariate"
        return max(0.0, min(1.0, confidence)), method

    @staticmethod
    def location(location_value: str) -> Tuple[float, str]:
        """'City, Region' reads as a deliberate location field; a bare place name less so."""
        if not location_value:
            return 0.0, "no_location_found"
        if "," in location_value:
            return 0.9, "place_with_region"
        return 0.75, "known_place_name"

    @staticmethod
    def url(url_value: str, url_type: str = "generic") -> Tuple[float, str]:
        """Types: linkedin, github, generic."""
        if not url_value:
            return 0.0, "no_url_found"

        if url_type == "linkedin":
            if "linkedin.com/in/" in url_value:
                return 0.95, "linkedin_exact"
            return 0.5, "linkedin_invalid"
        elif url_type == "github":
            if "github.com" in url_value:
                return 0.95, "github_exact"
            return 0.5, "github_invalid"
        else:
            if url_value.startswith(("http://", "https://", "www.")):
                return 0.9, "generic_url_valid"
            return 0.6, "generic_url_bare_domain"

    @staticmethod
    def calculate_overall_parse_quality(field_confidences: Dict[str, float]) -> ParseQuality:
        """
        Quality tiers:
          "high"   : Core fields (name, email, phone) average >= 0.85
          "medium" : Core fields average >= 0.65
          "low"    : Otherwise
        """
        core_fields = ["name", "email", "phone"]
        core_confidences = [field_confidences.get(f, 0.0) for f in core_fields]
        avg_core = sum(core_confidences) / len(core_confidences)

        if avg_core >= 0.85:
            return "high"
        elif avg_core >= 0.65:
            return "medium"
        else:
            return "low"


def score_resume(resume: NormalizedResume, text: str, strategy_weight: float = 1.0) -> Tuple[Dict[str, FieldConfidence], ParseQuality]:
    """Per-field FieldConfidence map plus the overall parse quality tier."""
    calc = ConfidenceCalculator
    head = (text or "")[:1000]
    emails = {m.group(0).lower() for m in EMAIL_RE.finditer(text or "")}
    phone_count = 1
    if resume.phone:
        target = phone_digits(resume.phone)
        phone_count = max(1, re.sub(r"\D", "", text or "").count(target))

    raw: Dict[str, Tuple[float, str, bool]] = {
        "name": (*calc.full_name(
            resume.name or "",
            near_email=bool(resume.email and resume.name and resume.email in head),
            is_top_of_resume=bool(resume.name and resume.name in head[:200]),
        ), True),
        "email": (*calc.email(resume.email or "", evidence_count=len(emails)), True),
        "phone": (*calc.phone(resume.phone or "", evidence_count=phone_count), True),
        "location": (*calc.location(resume.location or ""), False),
        "linkedin": (*calc.url(resume.links.linkedin or "", "linkedin"), False),
        "github": (*calc.url(resume.links.github or "", "github"), False),
        "website": (*calc.url(resume.links.website or "", "generic"), False),
    }

    scores: Dict[str, FieldConfidence] = {}
    for name, (confidence, method, required) in raw.items():
        weighted = round(confidence * strategy_weight, 4)
        reasons = [method]
        if strategy_weight < 1.0 and confidence > 0:
            reasons.append(f"scaled_by_strategy_weight_{strategy_weight:g}")
        scores[name] = FieldConfidence(
            field_name=name,
            confidence=weighted,
            extraction_method=method,
            reasons=reasons,
            required=required,
        )

    quality = calc.calculate_overall_parse_quality({k: v.confidence for k, v in scores.items()})
    return scores, quality
