"""
Split repaired text into resume sections.

A single state variable (the current section, starting at OTHER) is folded
over the lines. Header lines switch the state and are recorded but not
emitted; every other non-empty line goes to the current section's bucket.
"""

import logging
import re
from typing import List, Optional, Tuple

from resume_ingest.core.lexicon import Lexicon, default_lexicon
from resume_ingest.core.rules import Rule, first_match
from resume_ingest.core.schemas import SectionKind, SectionMap

logger = logging.getLogger(__name__)

# "E X P E R I E N C E", "W O R K  E X P E R I E N C E"
SPACED_CHARS_RE = re.compile(r"^(?:[A-Za-z0-9@.()&\-\+]\s+){2,}[A-Za-z0-9@.()&\-\+]+:?$")
DECORATION_RE = re.compile(r"^[\s#=*_~|•●▪\-]+|[\s#=*_~|•●▪\-]+$")
LIST_SEPARATOR_RE = re.compile(r"[,;|•·●▪/]")
PROSE_MIN_WORDS = 4


def despace_header(text: str) -> str:
    """
    Collapse a line of single characters separated by spaces.
    Two or more spaces are kept as a word boundary.

      'E X P E R I E N C E'      -> 'EXPERIENCE'
      'W O R K   H I S T O R Y'  -> 'WORK HISTORY'
    """
    t = text.strip()
    if not t:
        return t
    if SPACED_CHARS_RE.match(t):
        parts = re.split(r"\s{2,}", t)
        parts = ["".join(p.split()) for p in parts]
        return " ".join(p for p in parts if p)
    return t


def reads_as_prose(text: str) -> bool:
    """
    A sentence rather than a list: some run between separators reaches
    several words, and the text is mostly lower-case words or is a
    sentence closing with a full stop. "Python, node.js, docker" stays a list.
    """
    t = text.strip()
    words = t.split()
    longest_item = max(len(item.split()) for item in LIST_SEPARATOR_RE.split(t))
    if longest_item < PROSE_MIN_WORDS:
        return False
    lower = sum(1 for w in words if w[0].islower())
    return lower * 2 > len(words) or (t.endswith(".") and lower > 0)


HeaderHit = Tuple[SectionKind, Optional[str]]  # (section, inline remainder)


class SectionSegmenter:
    def __init__(self, lexicon: Optional[Lexicon] = None):
        self.lexicon = lexicon or default_lexicon()
        self.rules: List[Rule[str, HeaderHit]] = []
        for kind, whole, inline in self.lexicon.header_patterns:
            self.rules.append(Rule(
                f"{kind.value}_header",
                lambda s, p=whole: bool(p.match(s)),
                lambda s, k=kind: (k, None),
            ))
        # Inline forms ("Skills: Python, SQL") are tried only after every whole-line form.
        for kind, whole, inline in self.lexicon.header_patterns:
            self.rules.append(Rule(
                f"{kind.value}_inline_header",
                lambda s, p=inline: bool(p.match(s)),
                lambda s, k=kind, p=inline: (k, p.match(s).group("rest").strip()),
            ))

    def classify_header(self, line: str) -> Optional[HeaderHit]:
        """Return (section, inline remainder) when the line is a section header."""
        candidate = DECORATION_RE.sub("", despace_header(line))
        if not candidate:
            return None
        hit = first_match(self.rules, candidate)
        if hit is None:
            return None
        rule, (kind, rest) = hit
        # Whole-line headers are short; inline headers may carry a long remainder.
        if rest is None and len(candidate) > self.lexicon.max_header_length:
            return None
        if rest is not None:
            label = candidate[: len(candidate) - len(rest)]
            if len(label.strip()) > self.lexicon.max_header_length:
                return None
            if kind is not SectionKind.SUMMARY and reads_as_prose(rest):
                # "Experience: 8 years building payment APIs" is a sentence, not a header
                return None
        return kind, rest

    def segment(self, text: str) -> SectionMap:
        return self.segment_lines(text.split("\n"))

    def segment_lines(self, lines: List[str]) -> SectionMap:
        section_map = SectionMap()
        current = SectionKind.OTHER

        for line in lines:
            if not line.strip():
                section_map.blank_lines += 1
                continue
            hit = self.classify_header(line)
            if hit is None:
                section_map.sections[current].append(line.strip())
                continue
            kind, rest = hit
            logger.debug(f"Section header {line.strip()!r} -> {kind.value}")
            current = kind
            if rest:
                # Inline header: the line is content of the new section
                section_map.sections[current].append(rest)
            else:
                section_map.header_lines.append(line.strip())

        return section_map


def segment_text(text: str, lexicon: Optional[Lexicon] = None) -> SectionMap:
    return SectionSegmenter(lexicon).segment(text)
