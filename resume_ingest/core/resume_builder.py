"""
Assemble a NormalizedResume from a SectionMap and the contact fields.

Each section has its own sub-parser. Experience, education and projects are
explicit state machines folded over the section's lines; entries are only
appended, never revised once the next entry starts.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from resume_ingest.core.field_extractor import PAGE_MARKER_RE, ContactFields
from resume_ingest.core.lexicon import Lexicon, default_lexicon
from resume_ingest.core.schemas import (
    EducationEntry,
    ExperienceEntry,
    NormalizedResume,
    ProjectEntry,
    SectionKind,
    SectionMap,
)

logger = logging.getLogger(__name__)

_MONTH = (
    r"(?:Jan(?:uary)?|Feb(?:ruary)?|Mar(?:ch)?|Apr(?:il)?|May|June?|July?|Aug(?:ust)?"
    r"|Sep(?:t(?:ember)?)?|Oct(?:ober)?|Nov(?:ember)?|Dec(?:ember)?)\.?"
)
_DATE_TOKEN = rf"(?<![A-Za-z0-9])(?:{_MONTH}\s*'?\d{{2,4}}|\d{{1,2}}\s*/\s*\d{{4}}|(?:19|20)\d{{2}})"
_END_TOKEN = rf"(?:{_DATE_TOKEN}|Present|Current|Now|Till\s+Date|Ongoing)"
DATE_RANGE_RE = re.compile(rf"{_DATE_TOKEN}\s*(?:-|–|—|to|until)\s*{_END_TOKEN}", re.IGNORECASE)

BULLET_RE = re.compile(r"^[\s•●▪◦‣\-*>+]+")
TITLE_COMPANY_SPLIT_RE = re.compile(r"\s+\|\s+|\s+[-–—]\s+|\s+at\s+|\s*,\s+|\s*@\s+")
YEAR_RE = re.compile(r"(?<!\d)(?:19|20)\d{2}(?!\d)")
GPA_RE = re.compile(
    r"\b(?:c?gpa|cgpa|grade)\s*[:\-]?\s*(\d{1,2}(?:\.\d{1,2})?(?:\s*/\s*\d{1,2}(?:\.\d{1,2})?)?)"
    r"|(?<![\d.])(\d\.\d{1,2}\s*/\s*(?:4|5|10)(?:\.0{1,2})?)(?![\d.])",
    re.IGNORECASE,
)
FIELD_RE = re.compile(r"\bin\s+(?P<field>[A-Z][A-Za-z&.,' ]{2,60}?)\s*(?:$|[,|(]|\d)")
EDU_SPLIT_RE = re.compile(r"\s+\|\s+|\s+/\s+|\s+[-–—]\s+|\s*,\s+")
TECH_LINE_RE = re.compile(
    r"^\s*(?:tech(?:nologies|nology)?(?:\s+used)?|tech\s*stack|stack|tools(?:\s+used)?|built\s+with)\s*[:\-]\s*(?P<items>.+)$",
    re.IGNORECASE,
)
SKILL_SPLIT_RE = re.compile(r"[,;|•·●▪]|\s{2,}")
SKILL_LABEL_RE = re.compile(r"^[^:,;|]{1,40}:\s*")
PURE_LABEL_RE = re.compile(r"^[^:]{1,60}:$")
WORK_MODE_RE = re.compile(r"^(?:remote|hybrid|on[\s-]?site)$", re.IGNORECASE)

MAX_TITLE_CHARS = 80
MIN_SKILL_CHARS, MAX_SKILL_CHARS = 2, 40


def strip_bullet(line: str) -> str:
    return BULLET_RE.sub("", line).strip()


def is_bullet(line: str) -> bool:
    s = line.lstrip()
    return bool(s) and s[0] in "•●▪◦‣-*>+" and (len(s) == 1 or not s[1].isdigit())


def _norm_key(s: str) -> str:
    return re.sub(r"[^a-z0-9]", "", (s or "").lower())


def _append_description(items: List[str], line: str) -> None:
    """Bullet lines start a new item; a lowercase continuation joins the previous one."""
    text = strip_bullet(line)
    if not text:
        return
    if items and not is_bullet(line) and text[0].islower():
        items[-1] = f"{items[-1]} {text}"
    else:
        items.append(text)


def _is_title_like(line: str) -> bool:
    s = line.strip()
    return (
        bool(s)
        and not is_bullet(s)
        and len(s) <= MAX_TITLE_CHARS
        and not s.endswith(".")
        and not s[0].islower()
    )


# ===== EXPERIENCE =====

class ExperienceState(Enum):
    OUTSIDE = "outside"
    IN_ENTRY = "in_entry"


@dataclass
class _ExperienceDraft:
    title: str = ""
    company: str = ""
    location: Optional[str] = None
    duration: str = ""
    description: List[str] = field(default_factory=list)
    lines_since_date: int = 0

    def freeze(self) -> ExperienceEntry:
        return ExperienceEntry(
            title=self.title,
            company=self.company,
            location=self.location,
            duration=self.duration,
            description=list(self.description),
        )


def split_title_company(text: str) -> Tuple[str, str]:
    parts = [p.strip() for p in TITLE_COMPANY_SPLIT_RE.split(text, maxsplit=1) if p.strip()]
    if len(parts) == 2:
        return parts[0], parts[1]
    return text.strip(), ""


def _date_line_parts(line: str) -> Tuple[str, str]:
    """(text outside the date range, the date range) for a line containing one."""
    m = DATE_RANGE_RE.search(line)
    duration = m.group(0).strip()
    rest = (line[: m.start()] + " " + line[m.end():]).strip()
    rest = re.sub(r"[\s|,()\-–—]+$", "", re.sub(r"^[\s|,()\-–—]+", "", rest))
    return rest, duration


def _split_header(text: str, lex: Lexicon) -> Tuple[str, str]:
    title, company = split_title_company(text)
    if not company and not lex.job_title_re.search(title):
        # a lone name without a job-title word is the employer
        return "", title
    return title, company


def _is_place(text: str, lex: Lexicon) -> bool:
    parts = [p.strip() for p in text.split(",")]
    return all(
        p and (lex.place_re.fullmatch(p) or p in lex.state_codes or WORK_MODE_RE.match(p))
        for p in parts
    )


def collect_experience(lines: List[str], lexicon: Optional[Lexicon] = None) -> Tuple[List[ExperienceEntry], List[str]]:
    """
    A date-range line opens an entry. Title/company come from the same line,
    else from the pending line(s) just before it, else from the line after it.

    Returns (entries, unclaimed): lines before the first date range belong to
    no entry and are handed back so the caller can keep them.
    """
    lex = lexicon or default_lexicon()
    entries: List[ExperienceEntry] = []
    unclaimed: List[str] = []
    seen = set()
    state = ExperienceState.OUTSIDE
    draft: Optional[_ExperienceDraft] = None
    pending: List[str] = []

    def close(d: Optional[_ExperienceDraft]) -> None:
        if d is None:
            return
        key = (_norm_key(d.title), _norm_key(d.company), _norm_key(d.duration))
        if key in seen:
            logger.debug(f"Dropping duplicate experience entry {d.title!r} @ {d.company!r}")
            return
        seen.add(key)
        entries.append(d.freeze())

    def release(extra: List[str]) -> None:
        # Header candidates that turned out not to head the next entry
        for ln in extra:
            if draft is not None:
                _append_description(draft.description, ln)
            else:
                unclaimed.append(ln)

    def is_date_line(s: str) -> bool:
        return bool(DATE_RANGE_RE.search(s)) and not is_bullet(s)

    def ahead(j: int) -> str:
        return lines[j].strip() if j < len(lines) else ""

    for i, raw in enumerate(lines):
        line = raw.strip()
        if not line or PAGE_MARKER_RE.match(line):
            continue

        if is_date_line(line):
            rest, duration = _date_line_parts(line)
            if rest and len(pending) == 2 and not _is_place(rest, lex):
                # "Company + dates" is preceded by the title alone
                release(pending[:1])
                pending = pending[1:]
            close(draft)
            draft = _ExperienceDraft(duration=duration)
            if len(pending) == 2:
                draft.title, draft.company = pending
                draft.location = rest or None
            elif pending and rest:
                draft.title, draft.company = pending[0], rest
            elif pending:
                draft.title, draft.company = _split_header(pending[0], lex)
            elif rest:
                draft.title, draft.company = _split_header(rest, lex)
            if draft.company and not draft.location and "," in draft.company:
                # "Acme Corp, Hyderabad" keeps the place as the entry location
                head, _, tail = draft.company.rpartition(",")
                if lex.place_re.search(tail):
                    draft.company, draft.location = head.strip(), tail.strip()
            pending = []
            state = ExperienceState.IN_ENTRY
            logger.debug(f"Experience entry: title={draft.title!r} company={draft.company!r} duration={draft.duration!r}")
            continue

        # Header lines of the next entry: "Title" + dates, or "Title" + "Company" + dates
        header_ahead = is_date_line(ahead(i + 1)) or (
            _is_title_like(ahead(i + 1)) and is_date_line(ahead(i + 2))
        )
        if header_ahead and _is_title_like(line):
            pending.append(line)
            if len(pending) > 2:
                release(pending[:-2])
                pending = pending[-2:]
            continue

        if state is ExperienceState.OUTSIDE:
            unclaimed.append(line)
            continue

        draft.lines_since_date += 1
        if draft.lines_since_date == 1 and _is_title_like(line) and (not draft.title or not draft.company):
            # "Company | Jan 2020 - Present" followed by the title on its own line
            if not draft.title:
                draft.title = line
            else:
                draft.company = line
            continue
        _append_description(draft.description, line)

    release(pending)
    close(draft)
    return entries, unclaimed


def parse_experience(lines: List[str], lexicon: Optional[Lexicon] = None) -> List[ExperienceEntry]:
    return collect_experience(lines, lexicon)[0]


# ===== EDUCATION =====

class EducationState(Enum):
    OUTSIDE = "outside"
    IN_ENTRY = "in_entry"


@dataclass
class _EducationDraft:
    institution: str = ""
    degree: str = ""
    study_field: Optional[str] = None
    graduation_date: Optional[str] = None
    gpa: Optional[str] = None
    details: List[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return bool(self.degree and self.institution)

    def freeze(self) -> EducationEntry:
        return EducationEntry(
            institution=self.institution,
            degree=self.degree,
            field=self.study_field,
            graduation_date=self.graduation_date,
            gpa=self.gpa,
            details=list(self.details),
        )


def _strip_years(text: str) -> str:
    s = DATE_RANGE_RE.sub("", text)
    s = YEAR_RE.sub("", s)
    return re.sub(r"[\s|,()\-–—]+$", "", re.sub(r"^[\s|,()\-–—]+", "", s)).strip()


def parse_education(lines: List[str], lexicon: Optional[Lexicon] = None) -> List[EducationEntry]:
    """
    Degree-keyword and institution-keyword lines drive the state machine.
    Years become graduation_date (last one wins), GPA-shaped tokens become gpa,
    everything else becomes details. Keyword-free header lines pair up as
    degree then institution.
    """
    lex = lexicon or default_lexicon()
    entries: List[EducationEntry] = []
    state = EducationState.OUTSIDE
    draft: Optional[_EducationDraft] = None

    def start() -> _EducationDraft:
        nonlocal draft, state
        if draft is not None:
            entries.append(draft.freeze())
        draft = _EducationDraft()
        state = EducationState.IN_ENTRY
        return draft

    for raw in lines:
        line = raw.strip()
        if not line or PAGE_MARKER_RE.match(line):
            continue
        text = strip_bullet(line)

        gpa_m = GPA_RE.search(text)
        years = YEAR_RE.findall(text)
        body = GPA_RE.sub("", text) if gpa_m else text

        parts = [p for p in (_strip_years(x) for x in EDU_SPLIT_RE.split(body)) if p]
        degree_part = next((p for p in parts if lex.degree_re.search(p)), None)
        inst_part = next((p for p in parts if lex.institution_re.search(p) and p != degree_part), None)

        if degree_part or inst_part:
            d = draft
            if (
                state is EducationState.OUTSIDE
                or (degree_part and d.degree)
                or (inst_part and not degree_part and d.institution)
            ):
                d = start()
            if degree_part:
                d.degree = degree_part
                fm = FIELD_RE.search(degree_part)
                if fm:
                    d.study_field = fm.group("field").strip(" ,.")
            if inst_part:
                d.institution = inst_part
            leftovers = [p for p in parts if p not in (degree_part, inst_part)]
            if leftovers and not is_bullet(line) and len(parts) <= 3:
                if not d.institution and not inst_part and degree_part:
                    d.institution = leftovers[0]
                elif not d.degree and not degree_part and inst_part:
                    d.degree = leftovers[0]
        elif not is_bullet(line) and _is_title_like(text) and parts and not gpa_m and ":" not in text:
            d = draft
            if state is EducationState.OUTSIDE or d.complete:
                d = start()
                d.degree = parts[0]
                if len(parts) >= 2:
                    d.institution = parts[1]
            elif not d.degree:
                d.degree = parts[0]
            elif not d.institution:
                d.institution = parts[0]
            else:
                d.details.append(text)
        else:
            d = draft if draft is not None else start()
            # bare years and GPA values are captured below, not kept as details
            if _strip_years(GPA_RE.sub("", text)):
                d.details.append(text)

        if gpa_m and draft is not None:
            draft.gpa = (gpa_m.group(1) or gpa_m.group(2)).strip()
        if years and draft is not None:
            draft.graduation_date = years[-1]

    if draft is not None:
        entries.append(draft.freeze())
    return [e for e in entries if e.degree or e.institution or e.details or e.graduation_date or e.gpa]


# ===== SKILLS =====

def collect_skills(lines: List[str]) -> Tuple[List[str], List[str]]:
    """
    Tokenize on commas, semicolons, pipes, bullets and double spaces. Pure
    category labels ("Technical Development:") are dropped; "Label: a, b"
    prefixes are stripped. Lines that yield no plausible skill (prose,
    over-long phrases) are returned as unclaimed.
    """
    skills: List[str] = []
    unclaimed: List[str] = []
    seen = set()
    for raw in lines:
        line = strip_bullet(raw)
        if not line or PURE_LABEL_RE.match(line) or PAGE_MARKER_RE.match(line):
            continue
        kept = 0
        for token in SKILL_SPLIT_RE.split(SKILL_LABEL_RE.sub("", line)):
            t = strip_bullet(token).strip(" .:")
            if not (MIN_SKILL_CHARS <= len(t) <= MAX_SKILL_CHARS):
                continue
            kept += 1
            if t.lower() in seen:
                continue
            seen.add(t.lower())
            skills.append(t)
        if not kept:
            unclaimed.append(raw.strip())
    return skills, unclaimed


def parse_skills(lines: List[str]) -> List[str]:
    return collect_skills(lines)[0]


# ===== PROJECTS =====

class ProjectState(Enum):
    OUTSIDE = "outside"
    IN_PROJECT = "in_project"


def _split_items(text: str) -> List[str]:
    return [t.strip(" .") for t in re.split(r"[,;|/]", text) if t.strip(" .")]


def parse_projects(lines: List[str]) -> List[ProjectEntry]:
    """
    A short non-bullet line names a new project; a technologies/stack line
    fills the technology list; everything else accumulates as description.
    """
    projects: List[ProjectEntry] = []
    state = ProjectState.OUTSIDE
    name, description, technologies = "", [], []

    def close() -> None:
        if name or description:
            projects.append(ProjectEntry(name=name, description=" ".join(description), technologies=list(technologies)))

    for raw in lines:
        line = raw.strip()
        if not line or PAGE_MARKER_RE.match(line):
            continue
        tech = TECH_LINE_RE.match(strip_bullet(line))
        if tech:
            if state is ProjectState.OUTSIDE:
                state = ProjectState.IN_PROJECT
            technologies.extend(_split_items(tech.group("items")))
            continue
        if not is_bullet(line) and len(line) <= 60 and not line.endswith(".") and not line[0].islower():
            close()
            state = ProjectState.IN_PROJECT
            name, description, technologies = line, [], []
            # "Name | React, Node" and "Name (React, Node)" carry their stack inline
            m = re.match(r"^(?P<name>[^|(]+?)\s*(?:\|\s*(?P<a>.+)|\((?P<b>[^)]+)\))\s*$", line)
            if m and (m.group("a") or m.group("b")):
                name = m.group("name").strip()
                technologies.extend(_split_items(m.group("a") or m.group("b")))
            continue
        if state is ProjectState.OUTSIDE:
            state = ProjectState.IN_PROJECT
        description.append(strip_bullet(line))

    close()
    return projects


# ===== ASSEMBLY =====

def parse_certifications(lines: List[str]) -> List[str]:
    out: List[str] = []
    for raw in lines:
        text = strip_bullet(raw)
        if not text or PAGE_MARKER_RE.match(text):
            continue
        if out and text[0].islower():
            out[-1] = f"{out[-1]} {text}"
        else:
            out.append(text)
    return out


def parse_summary(lines: List[str]) -> Optional[str]:
    text = " ".join(strip_bullet(ln) for ln in lines if ln.strip() and not PAGE_MARKER_RE.match(ln.strip()))
    return text.strip() or None


REQUIRED_SECTION_WARNINGS: Dict[SectionKind, str] = {
    SectionKind.EXPERIENCE: "No experience section detected",
    SectionKind.EDUCATION: "No education section detected",
    SectionKind.SKILLS: "No skills section detected",
}


class StructuredResumeBuilder:
    def __init__(self, lexicon: Optional[Lexicon] = None):
        self.lexicon = lexicon or default_lexicon()

    def build(self, section_map: SectionMap, contact: ContactFields) -> Tuple[NormalizedResume, List[str]]:
        """Returns the resume and PartialExtraction warnings for missing sections/fields."""
        warnings: List[str] = []

        experience, undated_experience = collect_experience(section_map.lines(SectionKind.EXPERIENCE), self.lexicon)
        education = parse_education(section_map.lines(SectionKind.EDUCATION), self.lexicon)
        skills, unparsed_skills = collect_skills(section_map.lines(SectionKind.SKILLS))
        projects = parse_projects(section_map.lines(SectionKind.PROJECTS))

        consumed = set(contact.consumed_lines)
        leftover = [
            ln for ln in section_map.lines(SectionKind.OTHER)
            if ln not in consumed and not PAGE_MARKER_RE.match(ln)
        ]
        # Section lines no entry claimed stay as unclassified content
        leftover.extend(undated_experience)
        leftover.extend(unparsed_skills)
        if undated_experience:
            logger.debug(f"{len(undated_experience)} experience line(s) precede any date range; kept as unclassified")

        for kind, message in REQUIRED_SECTION_WARNINGS.items():
            if not section_map.has(kind):
                warnings.append(message)
        if section_map.has(SectionKind.EXPERIENCE) and not experience:
            warnings.append("Experience section present but no dated entries were recognized")
        if section_map.has(SectionKind.EDUCATION) and not education:
            warnings.append("Education section present but no entries were recognized")
        for name in ("name", "email", "phone"):
            if not getattr(contact, name):
                warnings.append(f"No {name} detected")

        resume = NormalizedResume(
            name=contact.name,
            email=contact.email,
            phone=contact.phone,
            location=contact.location,
            links=contact.links,
            professional_summary=parse_summary(section_map.lines(SectionKind.SUMMARY)),
            experience=experience,
            education=education,
            skills=skills,
            certifications=parse_certifications(section_map.lines(SectionKind.CERTIFICATIONS)),
            projects=projects,
            unclassified_content="\n".join(leftover),
        )
        logger.debug(
            f"Built resume: {len(experience)} experience, {len(education)} education, "
            f"{len(skills)} skills, {len(projects)} projects"
        )
        return resume, warnings
