"""
Repair character-spacing corruption line by line.

Some text layers emit every character separated by a space ("S U M M A R Y",
"I n d i a"). The repairs here are conservative: a line is only collapsed when
the collapse is unambiguous, otherwise it is left for the segmenter and field
extractor to cope with. Line count is always preserved.
"""

import logging
import re
from typing import List, Optional

from resume_ingest.core.lexicon import Lexicon, default_lexicon
from resume_ingest.core.rules import Rule, apply_chain

logger = logging.getLogger(__name__)

PHONE_PREFIX_RE = re.compile(r"\+\s*\d")
INTERNAL_DOUBLE_SPACE_RE = re.compile(r"\S\s{2,}\S")
SEPARATOR = "  "  # double space doubles as a word boundary for the collapse rule

FRAGMENT_TOKEN_MAX = 2
FRAGMENTED_RATIO = 0.5


def short_token_ratio(line: str) -> float:
    tokens = line.split()
    if not tokens:
        return 0.0
    return sum(1 for t in tokens if len(t) <= FRAGMENT_TOKEN_MAX) / len(tokens)


def single_char_ratio(line: str) -> float:
    tokens = line.split()
    if not tokens:
        return 0.0
    return sum(1 for t in tokens if len(t) == 1) / len(tokens)


def is_fragmented(line: str) -> bool:
    return short_token_ratio(line) > FRAGMENTED_RATIO


def is_contact_carrier(line: str) -> bool:
    return "@" in line or bool(PHONE_PREFIX_RE.search(line))


def collapse_on_double_space(line: str) -> str:
    """Treat runs of 2+ spaces as word boundaries and drop every single space."""
    parts = re.split(r"\s{2,}", line.strip())
    return " ".join("".join(p.split()) for p in parts if p.strip())


def collapse_all_spaces(line: str) -> str:
    return "".join(line.split())


def is_uppercase_header(line: str) -> bool:
    letters = [c for c in line if c.isalpha()]
    return bool(letters) and all(c.isupper() for c in letters)


def _regroup(matched: str, canonical: str) -> str:
    """Re-space the matched letters using the canonical name's word lengths."""
    letters = [c for c in matched if not c.isspace()]
    out: List[str] = []
    i = 0
    for word in canonical.split():
        out.append("".join(letters[i:i + len(word)]))
        i += len(word)
    return " ".join(out)


class TextRepairer:
    """Applies the ordered repair rules to each line of a text."""

    def __init__(self, lexicon: Optional[Lexicon] = None):
        self.lexicon = lexicon or default_lexicon()
        self.rules: List[Rule[str, str]] = [
            Rule("isolate_spaced_locations", is_contact_carrier, self.isolate_spaced_locations),
            Rule(
                "collapse_on_double_space",
                lambda ln: is_fragmented(ln) and bool(INTERNAL_DOUBLE_SPACE_RE.search(ln)),
                collapse_on_double_space,
            ),
            Rule(
                "collapse_uppercase_header",
                lambda ln: (
                    is_fragmented(ln)
                    and not INTERNAL_DOUBLE_SPACE_RE.search(ln)
                    and is_uppercase_header(ln)
                    and single_char_ratio(ln) > FRAGMENTED_RATIO
                ),
                collapse_all_spaces,
            ),
        ]

    def isolate_spaced_locations(self, line: str) -> str:
        """
        Fence spaced-out place names ("I n d i a") with separators so a later
        collapse cannot fuse them with neighbouring spaced tokens.
        Only matches that contain a 1-2 character token are touched.
        """
        for canonical, pattern in self.lexicon.spaced_place_patterns:
            def fence(m: re.Match) -> str:
                matched = m.group(0)
                if not any(len(t) <= FRAGMENT_TOKEN_MAX for t in matched.split()):
                    return matched
                return f"{SEPARATOR}{_regroup(matched, canonical)}{SEPARATOR}"
            line = pattern.sub(fence, line)
        return line

    def repair_line(self, line: str) -> str:
        if not line.strip():
            return line
        repaired, fired = apply_chain(self.rules, line)
        if fired:
            logger.debug(f"Repaired line via {', '.join(fired)}: {len(line)} -> {len(repaired)} chars")
        return repaired

    def repair(self, text: str) -> str:
        return "\n".join(self.repair_line(ln) for ln in text.split("\n"))


def repair_text(text: str, lexicon: Optional[Lexicon] = None) -> str:
    return TextRepairer(lexicon).repair(text)
