"""Per-file conversion: one upload in, one ConversionOutcome out."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict

from ..models import ConversionOutcome, UploadFile
from .extract_service import extract_text
from .layout import PageGeometry, layout_text
from .native_service import convert_with_libreoffice
from .pdf_service import font_width_fn, render_pdf
from .sanitizer import sanitize

logger = logging.getLogger(__name__)

WORD_EXT_RE = re.compile(r"\.docx?$", re.IGNORECASE)


def is_word_file(filename: str) -> bool:
    return bool(WORD_EXT_RE.search(filename or ""))


@dataclass
class PipelineSettings:
    backend: str = "text"
    font_name: str = "Helvetica"
    font_size: float = 11
    margin: float = 50
    soffice_binary: str = "soffice"
    timeout: int = 300

    @classmethod
    def from_config(cls, cfg) -> "PipelineSettings":
        return cls(
            backend=(cfg.get("CONVERTER_BACKEND") or "text").lower(),
            font_name=cfg.get("PDF_FONT_NAME", "Helvetica"),
            font_size=float(cfg.get("PDF_FONT_SIZE", 11)),
            margin=float(cfg.get("PDF_MARGIN", 50)),
            soffice_binary=cfg.get("SOFFICE_BINARY", "soffice"),
            timeout=int(cfg.get("CONVERSION_TIMEOUT", 300)),
        )

    @property
    def geometry(self) -> PageGeometry:
        return PageGeometry(margin=self.margin)


def text_to_pdf(filename: str, data: bytes, settings: PipelineSettings) -> bytes:
    """Extract, sanitize, lay out and serialize."""
    text = sanitize(extract_text(filename, data))
    width_fn = font_width_fn(settings.font_name)
    pages = layout_text(text, width_fn, settings.font_size, settings.geometry)
    logger.debug("%s: %d characters on %d page(s)", filename, len(text), len(pages))
    return render_pdf(
        pages,
        font_name=settings.font_name,
        font_size=settings.font_size,
        geometry=settings.geometry,
        title=WORD_EXT_RE.sub("", filename),
    )


def native_to_pdf(filename: str, data: bytes, settings: PipelineSettings) -> bytes:
    return convert_with_libreoffice(filename, data, binary=settings.soffice_binary, timeout=settings.timeout)


CONVERTERS: Dict[str, Callable[[str, bytes, PipelineSettings], bytes]] = {
    "text": text_to_pdf,
    "libreoffice": native_to_pdf,
}


def convert_file(upload: UploadFile, settings: PipelineSettings = None) -> ConversionOutcome:
    """Convert one upload; never raises.

    Any failure is returned as a failure outcome so the rest of the batch
    keeps going.
    """
    settings = settings or PipelineSettings()
    name = upload.name
    try:
        if not is_word_file(name):
            return ConversionOutcome.failure(name, "Unsupported file type")
        converter = CONVERTERS.get(settings.backend)
        if converter is None:
            return ConversionOutcome.failure(name, f"Unknown converter backend: {settings.backend}")
        pdf = converter(name, upload.data, settings)
    except Exception as e:
        logger.exception("Error processing file %s", name)
        return ConversionOutcome.failure(name, str(e) or type(e).__name__)
    return ConversionOutcome.success(name, pdf)
