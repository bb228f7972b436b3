import zipfile
from io import BytesIO

from resume_ingest.core.format_sniffer import image_mime_type, sniff_format
from resume_ingest.core.schemas import FormatTag

from resume_fixtures import build_docx, build_pdf, build_png


def _zip(names):
    buf = BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name in names:
            zf.writestr(name, "x")
    return buf.getvalue()


def test_pdf_magic():
    assert sniff_format(build_pdf(["hello"])) == FormatTag.PDF


def test_docx_is_office():
    assert sniff_format(build_docx(["hello"])) == FormatTag.OFFICE


def test_plain_zip_is_unknown():
    """A ZIP without the Office manifest is not an office document."""
    assert sniff_format(_zip(["notes.txt"])) == FormatTag.UNKNOWN


def test_zip_with_manifest_is_office():
    assert sniff_format(_zip(["[Content_Types].xml", "word/document.xml"])) == FormatTag.OFFICE


def test_image_signatures():
    assert sniff_format(build_png()) == FormatTag.IMAGE
    assert sniff_format(b"\xff\xd8\xff\xe0" + b"\x00" * 20) == FormatTag.IMAGE
    assert sniff_format(b"GIF89a" + b"\x00" * 10) == FormatTag.IMAGE
    assert sniff_format(b"RIFF\x00\x00\x00\x00WEBPVP8 ") == FormatTag.IMAGE


def test_unknown_and_empty():
    assert sniff_format(b"") == FormatTag.UNKNOWN
    assert sniff_format(b"Jane Doe\njane@example.com") == FormatTag.UNKNOWN
    # corrupted zip header
    assert sniff_format(b"PK\x03\x04garbage") == FormatTag.UNKNOWN


def test_image_mime_types():
    assert image_mime_type(build_png()) == "image/png"
    assert image_mime_type(b"\xff\xd8\xff\xe0") == "image/jpeg"
    assert image_mime_type(b"GIF87a") == "image/gif"
