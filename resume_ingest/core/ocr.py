"""
Page rasterization and OCR collaborators.

PageRasterizer renders PDF pages with pdfplumber; TesseractOcrEngine runs
pytesseract over one page image at a time and reports mean word confidence.
"""

import logging
import re
from dataclasses import dataclass
from io import BytesIO
from typing import Dict, List, Optional, Tuple

import pdfplumber
import pytesseract
from PIL import Image, UnidentifiedImageError

from resume_ingest.core.errors import ExternalServiceError, ServiceTimeout

logger = logging.getLogger(__name__)

PDF_POINTS_PER_INCH = 72
BORDER_PIPES_RE = re.compile(r"^\s*\|+\s*|\s*\|+\s*$")


@dataclass(frozen=True)
class OcrPage:
    text: str
    confidence: float  # mean word confidence, 0.0 - 1.0


class PageRasterizer:
    """Renders document pages to PIL images, bounded by a maximum page count."""

    def rasterize_pdf(self, pdf_bytes: bytes, scale: float = 2.0, max_pages: int = 10) -> List[Image.Image]:
        images: List[Image.Image] = []
        with pdfplumber.open(BytesIO(pdf_bytes)) as pdf:
            for page in pdf.pages[:max_pages]:
                rendered = page.to_image(resolution=int(PDF_POINTS_PER_INCH * scale))
                images.append(rendered.original.convert("RGB"))
        logger.debug(f"Rasterized {len(images)} PDF page(s) at scale {scale}")
        return images

    def load_image(self, image_bytes: bytes) -> List[Image.Image]:
        try:
            img = Image.open(BytesIO(image_bytes))
            img.load()
        except (UnidentifiedImageError, OSError) as e:
            raise ValueError(f"unreadable image: {e}") from e
        return [img.convert("RGB")]


def image_to_png_bytes(image: Image.Image) -> bytes:
    buf = BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()


def _clean_ocr_line(line: str) -> str:
    return BORDER_PIPES_RE.sub("", line).strip()


class TesseractOcrEngine:
    """
    pytesseract wrapper. Use as a context manager so engine configuration is
    scoped to one extraction call:

        with TesseractOcrEngine(lang="eng") as engine:
            page = engine.recognize(image)
    """

    service = "tesseract"

    def __init__(self, lang: str = "eng", tesseract_cmd: Optional[str] = None, timeout_s: float = 30.0):
        self.lang = lang
        self.tesseract_cmd = tesseract_cmd
        self.timeout_s = timeout_s
        self._previous_cmd: Optional[str] = None
        self._active = False

    def __enter__(self) -> "TesseractOcrEngine":
        if self.tesseract_cmd:
            self._previous_cmd = pytesseract.pytesseract.tesseract_cmd
            pytesseract.pytesseract.tesseract_cmd = self.tesseract_cmd
        self._active = True
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._previous_cmd is not None:
            pytesseract.pytesseract.tesseract_cmd = self._previous_cmd
            self._previous_cmd = None
        self._active = False

    def recognize(self, image: Image.Image) -> OcrPage:
        if not self._active:
            raise RuntimeError("TesseractOcrEngine.recognize called outside its context")
        prepared = image.convert("L")
        try:
            data = pytesseract.image_to_data(
                prepared,
                lang=self.lang,
                config="--oem 3 --psm 6",
                output_type=pytesseract.Output.DICT,
                timeout=self.timeout_s,
            )
        except pytesseract.TesseractNotFoundError as e:
            raise ExternalServiceError(f"tesseract binary not available: {e}", service=self.service) from e
        except pytesseract.TesseractError as e:
            raise ExternalServiceError(f"tesseract failed: {e}", service=self.service) from e
        except RuntimeError as e:
            # pytesseract signals its subprocess timeout as a bare RuntimeError
            if "timeout" in str(e).lower():
                raise ServiceTimeout(f"tesseract timed out after {self.timeout_s:g}s", service=self.service) from e
            raise
        return self._assemble(data)

    @staticmethod
    def _assemble(data: Dict[str, list]) -> OcrPage:
        lines: Dict[Tuple[int, int, int], List[str]] = {}
        confidences: List[float] = []
        keys = zip(data.get("block_num", []), data.get("par_num", []), data.get("line_num", []))
        for key, text, conf in zip(keys, data.get("text", []), data.get("conf", [])):
            token = str(text or "").strip()
            if not token:
                continue
            lines.setdefault(key, []).append(token)
            try:
                conf_value = float(conf)
                if conf_value >= 0:
                    confidences.append(conf_value / 100.0)
            except (TypeError, ValueError):
                continue

        text_lines = [_clean_ocr_line(" ".join(words)) for _, words in sorted(lines.items())]
        text = "\n".join(ln for ln in text_lines if ln)
        avg = sum(confidences) / len(confidences) if confidences else 0.0
        return OcrPage(text=text, confidence=round(avg, 4))
