from io import BytesIO
from typing import List

from docx import Document
from docx.table import Table


def _table_rows(table: Table) -> List[str]:
    rows: List[str] = []
    for row in table.rows:
        cells: List[str] = []
        for cell in row.cells:
            t = (cell.text or "").strip()
            # Merged cells repeat the same object across the row
            if t and t not in cells:
                cells.append(t)
        if cells:
            rows.append(" | ".join(cells))
    return rows


def extract_docx_lines(docx_bytes: bytes) -> List[str]:
    """
    Deterministically extract paragraphs and table rows from a DOCX, in the
    order they appear in the document body. Blank paragraphs are kept as
    empty strings so that section spacing survives.
    """
    doc = Document(BytesIO(docx_bytes))
    out: List[str] = []
    for block in doc.iter_inner_content():
        if isinstance(block, Table):
            out.extend(_table_rows(block))
        else:
            out.append((block.text or "").rstrip())
    return out


def extract_docx_text(docx_bytes: bytes) -> str:
    return "\n".join(extract_docx_lines(docx_bytes)).strip("\n")
