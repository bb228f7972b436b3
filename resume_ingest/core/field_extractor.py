"""
Typed contact fields pulled out of repaired resume text.

Every value returned is a substring of the input (LinkedIn handles are
canonicalized into a URL but the handle itself is verbatim). All functions are
pure and deterministic: ties are broken by document order.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from resume_ingest.core.lexicon import Lexicon, default_lexicon
from resume_ingest.core.schemas import Links

logger = logging.getLogger(__name__)

HEADER_WINDOW_CHARS = 1000
NAME_WINDOW_LINES = 10
MAX_LOCATION_CHARS = 60

EMAIL_RE = re.compile(r"\b[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}\b", re.IGNORECASE)

_EXT = r"(?:\s*(?:ext\.?|x|extension)\s*\d{1,6})?"
PHONE_PATTERNS = (
    # International: +91 63020 61843, +1 (555) 123-4567, +44 20 7946 0958
    re.compile(r"\+\s?\d{1,3}[\s.-]?\(?\d{1,4}\)?(?:[\s.-]?\d{2,5}){1,4}" + _EXT, re.IGNORECASE),
    # North American: (555) 123-4567, 555.123.4567
    re.compile(r"(?<!\d)\(?\d{3}\)?[\s.-]?\d{3}[\s.-]?\d{4}(?!\d)" + _EXT, re.IGNORECASE),
    # Bare digit run
    re.compile(r"(?<!\d)\d{10,15}(?!\d)"),
)
EXTENSION_RE = re.compile(r"\s*(?:ext\.?|x|extension)\s*\d{1,6}$", re.IGNORECASE)
MIN_PHONE_DIGITS = 10
MAX_PHONE_DIGITS = 15

LINKEDIN_URL_RE = re.compile(
    r"https?://(?:[a-z]{2,3}\.)?linkedin\.com/in/([A-Za-z0-9_%-]{2,100})/?", re.IGNORECASE
)
LINKEDIN_LOOSE_RE = re.compile(
    r"(?:(?<![A-Za-z0-9/])(?:www\.)?linkedin\.com/in/|(?<![A-Za-z0-9/.])in/)([A-Za-z0-9_%-]{2,100})",
    re.IGNORECASE,
)
LINKEDIN_LABEL_RE = re.compile(r"\blinked\s?in\s*[:\-]\s*@?([A-Za-z0-9_%-]{2,100})\b", re.IGNORECASE)
GITHUB_URL_RE = re.compile(r"https?://(?:www\.)?github\.com/([A-Za-z0-9_-]{1,39})(?![A-Za-z0-9_-])", re.IGNORECASE)
URL_RE = re.compile(
    r"(?:https?://|www\.)[A-Za-z0-9.-]+\.[A-Za-z]{2,}(?:/[^\s|,;)]*)?"
    r"|(?<![@\w.])[A-Za-z0-9-]{2,}(?:\.[A-Za-z0-9-]+)*\.(?:com|io|dev|me|net|org|ai|app|co|in|tech|site|xyz)(?:/[^\s|,;)]*)?(?![\w@])",
    re.IGNORECASE,
)

LOCATION_SPLIT_RE = re.compile(r"\n|\||•|·|●|▪")
NAME_SEGMENT_SPLIT_RE = re.compile(r"\s*[|•·●▪]\s*")
PAGE_MARKER_RE = re.compile(r"^-{3}\s*Page\s+\d+.*-{3}$", re.IGNORECASE)
NAME_RE = re.compile(r"^[A-Z][A-Za-z'.-]*(?:\s+[A-Z][A-Za-z'.-]*){0,3}$")


def extract_email(text: str) -> Optional[str]:
    m = EMAIL_RE.search(text or "")
    return m.group(0) if m else None


def phone_digits(value: str) -> str:
    return re.sub(r"\D", "", EXTENSION_RE.sub("", value or ""))


def _phone_candidates(text: str) -> List[Tuple[int, str]]:
    out = []
    for pattern in PHONE_PATTERNS:
        for m in pattern.finditer(text):
            value = m.group(0).strip()
            if MIN_PHONE_DIGITS <= len(phone_digits(value)) <= MAX_PHONE_DIGITS:
                out.append((m.start(), value))
    return out


def extract_phone(text: str) -> Optional[str]:
    """Earliest phone-shaped match with 10-15 digits (extension excluded from the count)."""
    text = text or ""
    # Emails and URLs can hold long digit runs; blank them without shifting offsets
    masked = EMAIL_RE.sub(lambda m: " " * len(m.group(0)), text)
    masked = URL_RE.sub(lambda m: " " * len(m.group(0)), masked)
    candidates = _phone_candidates(masked)
    if not candidates:
        return None
    start, value = min(candidates, key=lambda c: (c[0], -len(c[1])))
    return text[start:start + len(value)]


def _canonical_linkedin(handle: str) -> str:
    return f"https://linkedin.com/in/{handle.strip('/')}"


def extract_linkedin(text: str) -> Optional[str]:
    """Canonical URL, then scheme-less/`in/handle` forms, then a "LinkedIn: handle" label near the top."""
    text = text or ""
    m = LINKEDIN_URL_RE.search(text)
    if m:
        return _canonical_linkedin(m.group(1))
    m = LINKEDIN_LOOSE_RE.search(text)
    if m:
        return _canonical_linkedin(m.group(1))
    m = LINKEDIN_LABEL_RE.search(text[:HEADER_WINDOW_CHARS])
    if m:
        return _canonical_linkedin(m.group(1))
    return None


def extract_github(text: str) -> Optional[str]:
    m = GITHUB_URL_RE.search(text or "")
    return m.group(0) if m else None


def _url_host(url: str) -> str:
    host = re.sub(r"^https?://", "", url, flags=re.IGNORECASE)
    return host.split("/", 1)[0]


def extract_website(text: str, lexicon: Optional[Lexicon] = None) -> Optional[str]:
    lex = lexicon or default_lexicon()
    masked = EMAIL_RE.sub(lambda m: " " * len(m.group(0)), text or "")
    for m in URL_RE.finditer(masked):
        url = m.group(0).rstrip(".")
        if lex.is_excluded_domain(_url_host(url)):
            continue
        return url
    return None


def extract_links(text: str, lexicon: Optional[Lexicon] = None) -> Links:
    return Links(
        linkedin=extract_linkedin(text),
        github=extract_github(text),
        website=extract_website(text, lexicon),
    )


def _strip_contact_shapes(segment: str) -> str:
    s = EMAIL_RE.sub(" ", segment)
    s = URL_RE.sub(" ", s)
    s = LINKEDIN_LOOSE_RE.sub(" ", s)
    for pattern in PHONE_PATTERNS:
        s = pattern.sub(" ", s)
    return s


def extract_location(text: str, lexicon: Optional[Lexicon] = None) -> Optional[str]:
    """
    First delimiter-separated segment in the header window that names a known
    place and contains no month, language or job-title word.
    """
    lex = lexicon or default_lexicon()
    window = (text or "")[:HEADER_WINDOW_CHARS]
    for segment in LOCATION_SPLIT_RE.split(window):
        candidate = re.sub(r"\s{2,}", " ", _strip_contact_shapes(segment)).strip(" ,;:-\t")
        if not candidate or len(candidate) > MAX_LOCATION_CHARS:
            continue
        if not (lex.place_re.search(candidate) or lex.city_state_code_re.search(candidate)):
            continue
        if lex.location_blacklist_re.search(candidate):
            continue
        return candidate
    return None


def _is_contact_line(line: str) -> bool:
    return bool(EMAIL_RE.search(line) or extract_phone(line) or "linkedin" in line.lower() or "http" in line.lower())


def extract_name(lines: List[str], lexicon: Optional[Lexicon] = None) -> Optional[str]:
    """
    First name-shaped line (1-4 capitalized words) in the opening lines,
    else the first short plausible line. Header words, contact lines and
    lines outside 2-80 characters are skipped; a contact line shared with
    the name ("Jane Doe | jane@example.com") offers its name-shaped segment.
    """
    lex = lexicon or default_lexicon()
    candidates: List[Tuple[str, bool]] = []  # (text, whole line)
    for raw in lines[:NAME_WINDOW_LINES]:
        line = raw.strip()
        if not (2 <= len(line) <= 80):
            continue
        if PAGE_MARKER_RE.match(line):
            continue
        if line.lower().rstrip(":") in lex.name_stop_words_set:
            continue
        if _is_contact_line(line):
            for segment in NAME_SEGMENT_SPLIT_RE.split(line):
                s = segment.strip()
                if s and not _is_contact_line(s) and not lex.place_re.search(s):
                    candidates.append((s, False))
            continue
        if not any(c.isalpha() for c in line):
            continue
        candidates.append((line, True))

    for text, _ in candidates:
        if NAME_RE.match(text):
            return text
    for text, whole in candidates:
        if whole and len(text.split()) <= 5 and not text.endswith("."):
            return text
    return None


@dataclass
class ContactFields:
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    links: Links = field(default_factory=Links)
    consumed_lines: List[str] = field(default_factory=list)


class FieldExtractor:
    def __init__(self, lexicon: Optional[Lexicon] = None):
        self.lexicon = lexicon or default_lexicon()

    def extract(self, text: str, header_lines: Optional[List[str]] = None) -> ContactFields:
        """
        Email, phone and links come from the whole text; name and location from
        the header (the lines before the first section header, or the top of
        the text when there are none).
        """
        lines = [ln for ln in (header_lines if header_lines else text.split("\n")) if ln.strip()]
        header_text = "\n".join(lines) if header_lines else text
        fields = ContactFields(
            name=extract_name(lines, self.lexicon),
            email=extract_email(text),
            phone=extract_phone(text),
            location=extract_location(header_text, self.lexicon),
            links=extract_links(text, self.lexicon),
        )
        for ln in lines[:NAME_WINDOW_LINES]:
            s = ln.strip()
            if s == fields.name or _is_contact_line(s) or (fields.location and s == fields.location):
                fields.consumed_lines.append(s)
        logger.debug(
            f"Contact fields: name={'yes' if fields.name else 'no'} email={'yes' if fields.email else 'no'} "
            f"phone={'yes' if fields.phone else 'no'} location={'yes' if fields.location else 'no'}"
        )
        return fields
