from resume_ingest.core.pdf_extractor import extract_pdf_text, group_lines, join_line
from resume_ingest.core.text_repair import TextRepairer

from resume_fixtures import build_pdf


def _word(text, x0, x1, top, size=10.0):
    return {"text": text, "x0": x0, "x1": x1, "top": top, "bottom": top + size}


class TestLineAssembly:
    def test_words_grouped_by_top_and_ordered_left_to_right(self):
        words = [
            _word("Doe", 40, 60, 101),
            _word("Engineer", 10, 50, 120),
            _word("Jane", 10, 35, 100),
        ]
        lines = group_lines(words)
        assert [[w["text"] for w in line] for line in lines] == [["Jane", "Doe"], ["Engineer"]]

    def test_wide_gap_becomes_double_space(self):
        line = [_word("W", 10, 17, 100), _word("O", 19, 27, 100), _word("H", 40, 47, 100)]
        assert join_line(line) == "W O  H"

    def test_empty_line(self):
        assert join_line([]) == ""


class TestPdfTextLayer:
    def test_lines_come_back_in_order(self):
        text, pages = extract_pdf_text(build_pdf(["Jane Doe", "jane@example.com | +1 415 555 0100"]))
        assert pages == 1
        assert text.split("\n") == ["Jane Doe", "jane@example.com | +1 415 555 0100"]

    def test_spaced_heading_keeps_its_word_boundary(self):
        text, _ = extract_pdf_text(build_pdf(["W O R K   H I S T O R Y", "S U M M A R Y"]))
        lines = text.split("\n")
        assert lines == ["W O R K  H I S T O R Y", "S U M M A R Y"]

        repairer = TextRepairer()
        assert [repairer.repair_line(ln) for ln in lines] == ["WORK HISTORY", "SUMMARY"]

    def test_max_pages_still_reports_total(self):
        text, pages = extract_pdf_text(build_pdf(["Only page"]), max_pages=0)
        assert text == ""
        assert pages == 1
