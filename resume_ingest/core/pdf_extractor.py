from io import BytesIO
import logging
from typing import Any, Dict, List, Optional, Tuple

import pdfplumber

logger = logging.getLogger(__name__)

# Characters closer than this (in points) with no space glyph between them form one word
WORD_X_TOLERANCE = 1.5
# Words whose tops differ by at most this many points sit on the same line
LINE_TOP_TOLERANCE = 3.0
# A gap wider than this share of the font height is a wide break: emitted as two spaces
WIDE_GAP_RATIO = 0.5
WIDE_GAP = "  "

Word = Dict[str, Any]


def group_lines(words: List[Word], top_tolerance: float = LINE_TOP_TOLERANCE) -> List[List[Word]]:
    """
    Cluster words into visual lines by their top coordinate, then order each
    line left to right. A line's anchor is its first word, so a slow drift in
    baseline cannot chain two lines together.
    """
    lines: List[List[Word]] = []
    for w in sorted(words, key=lambda w: (w["top"], w["x0"])):
        if lines and abs(w["top"] - lines[-1][0]["top"]) <= top_tolerance:
            lines[-1].append(w)
        else:
            lines.append([w])
    return [sorted(line, key=lambda w: w["x0"]) for line in lines]


def join_line(words: List[Word], wide_gap_ratio: float = WIDE_GAP_RATIO) -> str:
    """
    Join one line's words. A normal inter-word gap becomes one space; a gap
    wider than `wide_gap_ratio` of the font height becomes two, keeping the
    word boundary that spaced-out headings ("W O R K   H I S T O R Y") and
    column breaks carry.
    """
    if not words:
        return ""
    parts = [words[0]["text"]]
    for prev, word in zip(words, words[1:]):
        gap = word["x0"] - prev["x1"]
        height = max(prev["bottom"] - prev["top"], word["bottom"] - word["top"], 1.0)
        parts.append(WIDE_GAP if gap > wide_gap_ratio * height else " ")
        parts.append(word["text"])
    return "".join(parts)


def page_text(page: Any) -> str:
    words = page.extract_words(
        x_tolerance=WORD_X_TOLERANCE,
        y_tolerance=LINE_TOP_TOLERANCE,
        keep_blank_chars=False,
        use_text_flow=False,
    )
    return "\n".join(join_line(line) for line in group_lines(words))


def extract_pdf_text(pdf_bytes: bytes, max_pages: Optional[int] = None) -> Tuple[str, int]:
    """
    Read the embedded text layer of a PDF without rendering it.

    Returns (text, page_count) where page_count is the document's total page
    count. Pages beyond `max_pages` are not read. Pages are separated by a
    blank line.
    """
    page_texts: List[str] = []

    with pdfplumber.open(BytesIO(pdf_bytes)) as pdf:
        page_count = len(pdf.pages)
        pages = pdf.pages if max_pages is None else pdf.pages[:max_pages]
        for page_i, page in enumerate(pages, start=1):
            text = page_text(page)
            logger.debug(f"PDF page {page_i}: {len(text)} chars")
            page_texts.append(text)

    return "\n\n".join(t for t in page_texts if t.strip()), page_count
