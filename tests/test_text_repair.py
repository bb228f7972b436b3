from resume_ingest.core.text_repair import (
    TextRepairer,
    collapse_on_double_space,
    is_fragmented,
    repair_text,
)
from resume_ingest.core.text_sanitizer import sanitize_text

from resume_fixtures import SAMPLE_RESUME_TEXT

repairer = TextRepairer()


class TestCollapse:
    def test_spaced_uppercase_header(self):
        assert repairer.repair_line("S U M M A R Y") == "SUMMARY"

    def test_double_space_is_word_boundary(self):
        assert repairer.repair_line("W O R K  E X P E R I E N C E") == "WORK EXPERIENCE"

    def test_collapse_on_double_space_helper(self):
        assert collapse_on_double_space("J a n e  D o e") == "Jane Doe"

    def test_mixed_case_fragments_without_separator_are_left_alone(self):
        """Ambiguous word boundaries: no collapse."""
        line = "I a m a d e v e l o p e r"
        assert repairer.repair_line(line) == line

    def test_normal_lines_unchanged(self):
        for line in SAMPLE_RESUME_TEXT.split("\n"):
            assert repairer.repair_line(line) == line

    def test_fragmentation_measure(self):
        assert is_fragmented("S U M M A R Y")
        assert not is_fragmented("Senior Software Engineer")


class TestSpacedLocations:
    def test_spaced_place_names_are_isolated(self):
        out = repairer.repair_line("+91 63020 61843 H y d e r a b a d I n d i a")
        words = out.split()
        assert "Hyderabad" in words
        assert "India" in words
        assert "+91" in words

    def test_unspaced_place_names_untouched(self):
        line = "jane@example.com | Hyderabad, India"
        assert repairer.repair_line(line) == line


def test_repair_preserves_line_count():
    text = "S U M M A R Y\n\nBuilt things\nE X P E R I E N C E"
    repaired = repair_text(text)
    assert len(repaired.split("\n")) == len(text.split("\n"))
    assert repaired.split("\n")[0] == "SUMMARY"
    assert repaired.split("\n")[1] == ""


class TestSanitizer:
    def test_ligatures_and_cid_artifacts(self):
        assert sanitize_text("Proﬁcient(cid:12) in ofﬁce tools") == "Proficient in office tools"

    def test_crlf_and_trailing_whitespace(self):
        assert sanitize_text("Jane Doe   \r\nEngineer\r\n") == "Jane Doe\nEngineer"

    def test_blank_runs_collapse(self):
        assert sanitize_text("a\n\n\n\n\n\nb") == "a\n\n\nb"

    def test_garbage_lines_dropped(self):
        assert sanitize_text("Jane Doe\n.............\nEngineer") == "Jane Doe\nEngineer"

    def test_leading_spacing_kept(self):
        assert sanitize_text("  S U M M A R Y") == "  S U M M A R Y"
