import re

LIGATURES = {
    "ﬀ": "ff",
    "ﬁ": "fi",
    "ﬂ": "fl",
    "ﬃ": "ffi",
    "ﬄ": "ffl",
    "‘": "'",
    "’": "'",
    "“": '"',
    "”": '"',
    "–": "-",
    "—": "-",
    "…": "...",
    " ": " ",
}

CID_RE = re.compile(r"\(cid:\d+\)")
CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
BLANK_RUN_RE = re.compile(r"\n{4,}")


def normalize_ligatures(text: str) -> str:
    for src, dst in LIGATURES.items():
        text = text.replace(src, dst)
    return text


def _is_garbage_line(line: str) -> bool:
    """Long lines that are mostly punctuation (rules, leaders, OCR noise)."""
    t = line.strip()
    if len(t) <= 5:
        return False
    alnum = sum(1 for c in t if c.isalnum())
    return alnum / len(t) < 0.3


def sanitize_text(text: str) -> str:
    """
    Clean raw extractor output before it is gated.

    Leading and internal spacing is preserved: the repair stage relies on
    double-space runs as word boundaries.
    """
    if not text:
        return ""
    t = text.replace("\r\n", "\n").replace("\r", "\n")
    t = normalize_ligatures(t)
    t = CID_RE.sub("", t)
    t = CONTROL_RE.sub("", t)
    lines = [ln.rstrip() for ln in t.split("\n")]
    lines = [ln for ln in lines if not _is_garbage_line(ln)]
    t = "\n".join(lines)
    t = BLANK_RUN_RE.sub("\n\n\n", t)
    return t.strip("\n")
