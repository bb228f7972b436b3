from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


ParseQuality = Literal["high", "medium", "low"]
ConfidenceScore = float  # 0.0 to 1.0


class FormatTag(str, Enum):
    PDF = "pdf"
    OFFICE = "office"
    IMAGE = "image"
    UNKNOWN = "unknown"


class SectionKind(str, Enum):
    OTHER = "other"
    SUMMARY = "summary"
    EXPERIENCE = "experience"
    EDUCATION = "education"
    SKILLS = "skills"
    CERTIFICATIONS = "certifications"
    PROJECTS = "projects"


class RawDocument(BaseModel):
    """Uploaded bytes plus the format derived from their content."""
    model_config = ConfigDict(frozen=True)

    data: bytes = Field(repr=False)
    format: FormatTag
    declared_type: Optional[str] = Field(default=None, description="Client-supplied content type, never trusted")

    @property
    def size(self) -> int:
        return len(self.data)


class ExtractionAttempt(BaseModel):
    """Outcome of one cascade strategy. Either ok with text or failed with a reason."""
    strategy_name: str
    confidence_weight: float = Field(..., ge=0.0, le=1.0)
    ok: bool
    text: Optional[str] = Field(default=None, exclude=True, repr=False)
    page_count: int = 0
    reason: Optional[str] = None
    error_code: Optional[str] = Field(
        default=None,
        description="Failure class: not_applicable, low_confidence_text, external_service, extraction_error",
    )
    elapsed_ms: int = 0


class FieldConfidence(BaseModel):
    """Per-field confidence metadata. Tracks why confidence is what it is."""
    field_name: str
    confidence: float = Field(..., ge=0.0, le=1.0, description="0.0 (no confidence) to 1.0 (absolute certainty)")
    extraction_method: str = Field(..., description="How it was extracted (e.g., 'regex_exact', 'heuristic', 'vision_model')")
    reasons: List[str] = Field(default_factory=list, description="Why confidence is this value")
    required: bool = Field(default=False, description="Is this field required for 'high' parse quality?")


class Links(BaseModel):
    linkedin: Optional[str] = None
    github: Optional[str] = None
    website: Optional[str] = None


class ExperienceEntry(BaseModel):
    title: str = ""
    company: str = ""
    location: Optional[str] = None
    duration: str = ""
    description: List[str] = Field(default_factory=list)


class EducationEntry(BaseModel):
    """Education entry in the normalized resume."""
    institution: str = ""  # University, School, Institute name
    degree: str = ""  # Bachelor of Science, M.S., etc.
    field: Optional[str] = None  # Computer Science, Engineering, etc.
    graduation_date: Optional[str] = None  # YYYY
    gpa: Optional[str] = None
    details: List[str] = Field(default_factory=list)  # Honors, coursework, unmatched lines


class ProjectEntry(BaseModel):
    name: str = ""
    description: str = ""
    technologies: List[str] = Field(default_factory=list)


class NormalizedResume(BaseModel):
    """
    Canonical structured resume. Every scalar is empty or taken verbatim from
    the extracted text. Built once per request and never mutated afterwards.
    """
    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    links: Links = Field(default_factory=Links)
    professional_summary: Optional[str] = None
    experience: List[ExperienceEntry] = Field(default_factory=list)
    education: List[EducationEntry] = Field(default_factory=list)
    skills: List[str] = Field(default_factory=list, description="Unordered, deduplicated case-insensitively")
    certifications: List[str] = Field(default_factory=list)
    projects: List[ProjectEntry] = Field(default_factory=list)
    unclassified_content: str = ""


class ExtractionResult(BaseModel):
    """Text of the first accepted attempt, with the trail of every attempt made."""
    text: str = Field(repr=False)
    page_count: int
    provenance: str
    confidence_weight: float
    attempts: List[ExtractionAttempt] = Field(default_factory=list)
    structured: Optional[NormalizedResume] = Field(
        default=None,
        description="Set when the producing strategy emitted a structured resume directly (vision synthesis)",
    )
    warnings: List[str] = Field(default_factory=list)


class SectionMap(BaseModel):
    """
    Lines grouped by resume section, in document order. Header lines and blank
    lines are counted so that every input line is accounted for.
    """
    sections: Dict[SectionKind, List[str]] = Field(
        default_factory=lambda: {kind: [] for kind in SectionKind}
    )
    header_lines: List[str] = Field(default_factory=list)
    blank_lines: int = 0

    def lines(self, kind: SectionKind) -> List[str]:
        return self.sections.get(kind, [])

    def has(self, kind: SectionKind) -> bool:
        return bool(self.sections.get(kind))

    def total_lines(self) -> int:
        return sum(len(v) for v in self.sections.values()) + len(self.header_lines) + self.blank_lines


class ParseResponse(BaseModel):
    resume: NormalizedResume
    formatted_text: str
    provenance: str
    page_count: int = 0
    attempts: List[ExtractionAttempt] = Field(default_factory=list)
    confidence_scores: Dict[str, FieldConfidence] = Field(
        default_factory=dict,
        description="Confidence metadata for each field"
    )
    parse_quality: ParseQuality
    warnings: List[str] = Field(default_factory=list)
    from_cache: bool = False


class NormalizeRequest(BaseModel):
    text: str = Field(..., description="Already-extracted resume text")


class ErrorResponse(BaseModel):
    error: str
    message: str
    attempts: List[ExtractionAttempt] = Field(default_factory=list)
