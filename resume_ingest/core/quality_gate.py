"""
Gibberish detection for extracted text.

Two independent checks, either of which rejects:
  1. Line repetition: a line is corrupted when one alphanumeric character makes
     up more than `line_repetition_threshold` of its alphanumerics. The document
     is rejected when more than `corrupted_line_fraction` of scored lines are
     corrupted. Lines with fewer than `min_scored_line_chars` alphanumerics are
     not scored.
  2. Token fragmentation: single-character tokens exceed `single_char_token_ratio`
     of all tokens AND number more than `single_char_token_floor`.
A minimum text length applies first.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Optional

from resume_ingest.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GateThresholds:
    min_text_chars: int = 100
    line_repetition_threshold: float = 0.7
    corrupted_line_fraction: float = 0.3
    single_char_token_ratio: float = 0.55
    single_char_token_floor: int = 200
    min_scored_line_chars: int = 4

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "GateThresholds":
        s = settings or get_settings()
        return cls(
            min_text_chars=s.min_text_chars,
            line_repetition_threshold=s.line_repetition_threshold,
            corrupted_line_fraction=s.corrupted_line_fraction,
            single_char_token_ratio=s.single_char_token_ratio,
            single_char_token_floor=s.single_char_token_floor,
            min_scored_line_chars=s.min_scored_line_chars,
        )


@dataclass(frozen=True)
class QualityAssessment:
    accept: bool
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.accept


def dominant_char_share(line: str) -> Optional[float]:
    """Share of the most frequent alphanumeric character, or None when the line has none."""
    chars = [c.lower() for c in line if c.isalnum()]
    if not chars:
        return None
    return Counter(chars).most_common(1)[0][1] / len(chars)


def is_corrupted_line(line: str, thresholds: GateThresholds) -> bool:
    alnum = sum(1 for c in line if c.isalnum())
    if alnum < thresholds.min_scored_line_chars:
        return False
    share = dominant_char_share(line)
    return share is not None and share > thresholds.line_repetition_threshold


def corrupted_line_ratio(text: str, thresholds: GateThresholds) -> float:
    scored = [
        ln for ln in text.splitlines()
        if sum(1 for c in ln if c.isalnum()) >= thresholds.min_scored_line_chars
    ]
    if not scored:
        return 0.0
    bad = sum(1 for ln in scored if is_corrupted_line(ln, thresholds))
    return bad / len(scored)


def assess(text: str, thresholds: Optional[GateThresholds] = None) -> QualityAssessment:
    """Accept or reject a block of extracted text. Pure function of its inputs."""
    t = thresholds or GateThresholds()
    stripped = (text or "").strip()

    if len(stripped) < t.min_text_chars:
        return QualityAssessment(False, f"text too short ({len(stripped)} < {t.min_text_chars} chars)")

    ratio = corrupted_line_ratio(stripped, t)
    if ratio > t.corrupted_line_fraction:
        return QualityAssessment(
            False,
            f"repeated-character corruption on {ratio:.0%} of lines",
        )

    tokens = stripped.split()
    singles = sum(1 for tok in tokens if len(tok) == 1)
    single_ratio = singles / len(tokens) if tokens else 0.0
    if single_ratio > t.single_char_token_ratio and singles > t.single_char_token_floor:
        return QualityAssessment(
            False,
            f"fragmented text ({singles} single-character tokens, {single_ratio:.0%} of tokens)",
        )

    logger.debug(f"Quality gate accepted {len(stripped)} chars (corrupted lines {ratio:.0%})")
    return QualityAssessment(True)
