"""
Quality gate: length floor, repeated-character corruption and token
fragmentation.
"""

from resume_ingest.core.quality_gate import (
    GateThresholds,
    assess,
    corrupted_line_ratio,
    dominant_char_share,
    is_corrupted_line,
)

from resume_fixtures import SAMPLE_RESUME_TEXT

T = GateThresholds()


def test_sample_resume_is_accepted():
    verdict = assess(SAMPLE_RESUME_TEXT, T)
    assert verdict.accept
    assert verdict.reason is None
    assert bool(verdict) is True


def test_short_text_rejected():
    verdict = assess("Jane Doe\njane@example.com", T)
    assert not verdict.accept
    assert "too short" in verdict.reason


def test_repeated_character_lines_rejected():
    text = "\n".join(["aaaaaaaaaaaaaaaaaaaa"] * 10)
    verdict = assess(text, T)
    assert not verdict.accept
    assert "repeated-character" in verdict.reason


def test_fragmented_text_rejected():
    text = " ".join("abcdefghij" * 30)
    verdict = assess(text, T)
    assert not verdict.accept
    assert "fragmented" in verdict.reason


def test_few_single_char_tokens_are_tolerated():
    """The fragmentation check needs both the ratio and the absolute floor."""
    text = " ".join("abcdefghij" * 15)  # 150 singles, under the floor of 200
    assert assess(text, T).accept


def test_short_lines_are_not_scored():
    lines = SAMPLE_RESUME_TEXT.split("\n") + ["- C", "• A", "ooo"] * 10
    assert corrupted_line_ratio("\n".join(lines), T) == 0.0
    assert assess("\n".join(lines), T).accept


def test_dominant_char_share():
    assert dominant_char_share("----") is None
    assert dominant_char_share("aaab") == 0.75
    assert is_corrupted_line("xxxxxxxxxy", T)
    assert not is_corrupted_line("Python Developer", T)


def test_adding_corruption_never_flips_to_accept():
    """Once rejected for corruption, more corrupted lines keep it rejected."""
    base = SAMPLE_RESUME_TEXT.split("\n")
    bad = "zzzzzzzzzzzzzzzzzzzz"
    lines = list(base)
    was_rejected = False
    for _ in range(40):
        lines.append(bad)
        accepted = assess("\n".join(lines), T).accept
        if was_rejected:
            assert not accepted
        was_rejected = was_rejected or not accepted
    assert was_rejected


def test_thresholds_follow_settings(settings):
    t = GateThresholds.from_settings(settings.model_copy(update={"min_text_chars": 10}))
    assert t.min_text_chars == 10
    assert assess("Jane Doe, Python developer", t).accept
