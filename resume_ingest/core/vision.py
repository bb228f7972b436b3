"""
Prompt construction and response validation for vision-assisted synthesis.

The model sees page images plus whatever text layers were recovered and is
asked for JSON in the NormalizedResume shape. Its reply is coerced and
validated with the same pydantic model the text pipeline produces; contact
scalars that cannot be found in any text layer are dropped.
"""

import json
import logging
import re
from typing import Any, Dict, List, Mapping, Tuple

from pydantic import ValidationError

from resume_ingest.core.schemas import NormalizedResume

logger = logging.getLogger(__name__)

MAX_LAYER_CHARS = 20000

SYSTEM_INSTRUCTION = """You are an expert ATS resume parser with vision capabilities.
Extract structured JSON from a resume.

You have up to three sources:
1. VISUAL page images (layout, headers, structure).
2. RAW TEXT read from the file's text layer (precise characters, may be garbled).
3. OCR TEXT recognized from the page images.

Rules:
- Cross-reference every available source.
- Never invent data. Leave a field empty ("" or []) when it is not in the document.
- Copy names, emails, phone numbers and URLs exactly as written.
- A paragraph at the top without an Experience header is the professional summary.
- If the raw text is garbled, trust the images and OCR. If the images are blurry, trust the raw text.
- Keep every bullet of each job in its description list. Do not summarize.

Return ONLY valid JSON with this shape:
{
  "name": "", "email": "", "phone": "", "location": "",
  "links": {"linkedin": "", "github": "", "website": ""},
  "professional_summary": "",
  "experience": [{"title": "", "company": "", "location": "", "duration": "", "description": [""]}],
  "education": [{"institution": "", "degree": "", "field": "", "graduation_date": "", "gpa": "", "details": [""]}],
  "skills": [""],
  "certifications": [""],
  "projects": [{"name": "", "description": "", "technologies": [""]}]
}"""

FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


def build_user_prompt(raw_text: str, ocr_text: str) -> str:
    return (
        "Here is the RAW TEXT:\n"
        f"{(raw_text or '(none)')[:MAX_LAYER_CHARS]}\n\n"
        "Here is the OCR TEXT:\n"
        f"{(ocr_text or '(none)')[:MAX_LAYER_CHARS]}\n\n"
        "Process the attached page images and the texts above and return the JSON."
    )


def parse_json_payload(text: str) -> Dict[str, Any]:
    """Strip Markdown fences and parse the outermost JSON object."""
    cleaned = FENCE_RE.sub("", text or "").strip()
    start, end = cleaned.find("{"), cleaned.rfind("}")
    if start == -1 or end <= start:
        raise ValueError("model reply contains no JSON object")
    data = json.loads(cleaned[start:end + 1])
    if not isinstance(data, dict):
        raise ValueError("model reply is not a JSON object")
    return data


def _as_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(_as_str(v) for v in value if v)
    return str(value).strip()


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    return [_as_str(v) for v in value if _as_str(v)]


def _coerce_skills(value: Any) -> List[str]:
    """Accept ["a", "b"] or [{"category": ..., "items": [...]}]."""
    out: List[str] = []
    for item in value or []:
        if isinstance(item, Mapping):
            out.extend(_as_str_list(item.get("items") or item.get("skills")))
        else:
            s = _as_str(item)
            if s:
                out.append(s)
    return out


def _coerce_certifications(value: Any) -> List[str]:
    out: List[str] = []
    for item in value or []:
        if isinstance(item, Mapping):
            name = _as_str(item.get("name") or item.get("title"))
            if not name:
                continue
            issuer = _as_str(item.get("issuer"))
            date = _as_str(item.get("date") or item.get("year"))
            s = f"{name}, {issuer}" if issuer else name
            out.append(f"{s} ({date})" if date else s)
        else:
            s = _as_str(item)
            if s:
                out.append(s)
    return out


def _coerce_links(value: Any) -> Dict[str, str]:
    if isinstance(value, Mapping):
        return {k: _as_str(value.get(k)) for k in ("linkedin", "github", "website")}
    links = {"linkedin": "", "github": "", "website": ""}
    for url in _as_str_list(value):
        lowered = url.lower()
        if "linkedin.com" in lowered and not links["linkedin"]:
            links["linkedin"] = url
        elif "github.com" in lowered and not links["github"]:
            links["github"] = url
        elif not links["website"]:
            links["website"] = url
    return links


def _none_if_empty(value: Any):
    s = _as_str(value)
    return s or None


def coerce_payload(data: Mapping[str, Any]) -> NormalizedResume:
    """Coerce a loosely-shaped model reply into a validated NormalizedResume."""
    experience = []
    for e in data.get("experience") or []:
        if not isinstance(e, Mapping):
            continue
        experience.append({
            "title": _as_str(e.get("title")),
            "company": _as_str(e.get("company")),
            "location": _none_if_empty(e.get("location")),
            "duration": _as_str(e.get("duration")),
            "description": _as_str_list(e.get("description")),
        })

    education = []
    for e in data.get("education") or []:
        if not isinstance(e, Mapping):
            continue
        education.append({
            "institution": _as_str(e.get("institution")),
            "degree": _as_str(e.get("degree")),
            "field": _none_if_empty(e.get("field")),
            "graduation_date": _none_if_empty(e.get("graduation_date")),
            "gpa": _none_if_empty(e.get("gpa")),
            "details": _as_str_list(e.get("details")),
        })

    projects = []
    for p in data.get("projects") or []:
        if not isinstance(p, Mapping):
            continue
        projects.append({
            "name": _as_str(p.get("name")),
            "description": _as_str(p.get("description")),
            "technologies": _as_str_list(p.get("technologies")),
        })

    links = {k: v or None for k, v in _coerce_links(data.get("links")).items()}

    seen = set()
    skills = []
    for s in _coerce_skills(data.get("skills")):
        if s.lower() not in seen:
            seen.add(s.lower())
            skills.append(s)

    try:
        return NormalizedResume(
            name=_none_if_empty(data.get("name")),
            email=_none_if_empty(data.get("email")),
            phone=_none_if_empty(data.get("phone")),
            location=_none_if_empty(data.get("location")),
            links=links,
            professional_summary=_none_if_empty(data.get("professional_summary")),
            experience=experience,
            education=education,
            skills=skills,
            certifications=_coerce_certifications(data.get("certifications")),
            projects=projects,
        )
    except ValidationError as e:
        raise ValueError(f"model reply failed schema validation: {e.error_count()} error(s)") from e


def _digits(s: str) -> str:
    return re.sub(r"\D", "", s or "")


def ground_contact_fields(resume: NormalizedResume, layers: List[str]) -> Tuple[NormalizedResume, List[str]]:
    """
    Drop email/phone values that do not occur in any recovered text layer.
    With no text layers there is nothing to check against and the resume is returned as-is.
    """
    corpus = "\n".join(t for t in layers if t)
    if not corpus.strip():
        return resume, []

    warnings: List[str] = []
    updates: Dict[str, Any] = {}
    if resume.email and resume.email.lower() not in corpus.lower():
        updates["email"] = None
        warnings.append("Dropped email suggested by the vision model: not present in the document text")
    if resume.phone:
        digits = _digits(resume.phone)
        if not digits or digits not in _digits(corpus):
            updates["phone"] = None
            warnings.append("Dropped phone suggested by the vision model: not present in the document text")

    if updates:
        logger.warning(f"Vision output ungrounded fields removed: {sorted(updates)}")
        resume = resume.model_copy(update=updates)
    return resume, warnings
