"""Tesseract OCR collaborator for identity document images.

Recognition is blocking and can take seconds per page, so the async
``recognize`` entry point runs it in a worker thread.
"""

import asyncio
import io
from enum import StrEnum
from pathlib import Path
from typing import Protocol

import numpy as np
import pytesseract
from PIL import Image

from idextract.utils.config import IDENTIFIER_WHITELIST, OCRConfig
from idextract.utils.logger import get_logger

from .pdf_handler import PDFHandler, is_pdf

logger = get_logger(__name__)


class RecognitionMode(StrEnum):
    """OCR configuration used for a recognition pass."""

    WHITELIST = "whitelist"
    UNRESTRICTED = "unrestricted"


class OCRRecognizer(Protocol):
    """Anything that can turn a document file into raw text."""

    async def recognize(self, source: Path | bytes, mode: RecognitionMode) -> str:
        ...


class TesseractEngine:
    """Wrapper around Tesseract for identifier-oriented recognition.

    Args:
        tesseract_cmd: Path to the Tesseract executable.
            If ``None``, uses the system default.
        default_lang: OCR language code.
        psm: Tesseract page segmentation mode.
        char_whitelist: Characters allowed in ``WHITELIST`` mode.
        pdf_handler: Rasterizer for PDF uploads.
    """

    def __init__(
        self,
        tesseract_cmd: str | None = None,
        default_lang: str = "eng",
        psm: int = 3,
        char_whitelist: str = IDENTIFIER_WHITELIST,
        pdf_handler: PDFHandler | None = None,
    ) -> None:
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self.default_lang = default_lang
        self.psm = psm
        self.char_whitelist = char_whitelist
        self.pdf_handler = pdf_handler or PDFHandler()

    @classmethod
    def from_config(cls, config: OCRConfig) -> "TesseractEngine":
        """Build an engine from the ``ocr`` configuration section."""
        return cls(
            tesseract_cmd=config.tesseract_cmd,
            default_lang=config.default_lang,
            psm=config.psm,
            char_whitelist=config.char_whitelist,
            pdf_handler=PDFHandler(dpi=config.pdf_dpi, max_pages=config.max_pdf_pages),
        )

    def build_config(self, mode: RecognitionMode) -> str:
        """Build the Tesseract command-line config for a recognition mode."""
        config = f"--psm {self.psm}"
        if mode == RecognitionMode.WHITELIST and self.char_whitelist:
            config += f" -c tessedit_char_whitelist={self.char_whitelist}"
        return config

    async def recognize(self, source: Path | bytes, mode: RecognitionMode) -> str:
        """Recognize text without blocking the event loop.

        Args:
            source: Path to the document, or its raw bytes.
            mode: Recognition configuration to use.

        Returns:
            Raw recognized text of all rendered pages.
        """
        return await asyncio.to_thread(self.recognize_sync, source, mode)

    def recognize_sync(self, source: Path | bytes, mode: RecognitionMode) -> str:
        """Recognize text from an image or PDF, one page after another.

        Args:
            source: Path to the document, or its raw bytes.
            mode: Recognition configuration to use.

        Returns:
            Raw recognized text, pages separated by newlines.
        """
        config = self.build_config(mode)
        pages = [
            pytesseract.image_to_string(
                Image.fromarray(image), lang=self.default_lang, config=config
            )
            for image in self._load_images(source)
        ]
        text = "\n".join(pages)
        logger.info(
            "OCR (%s) recognized %d characters from %d page(s)",
            mode,
            len(text),
            len(pages),
        )
        return text

    def _load_images(self, source: Path | bytes) -> list[np.ndarray]:
        """Load document images from a file path or bytes."""
        if is_pdf(source):
            return self.pdf_handler.pdf_to_images(source)
        if isinstance(source, bytes):
            img = Image.open(io.BytesIO(source))
        else:
            img = Image.open(source)
        return [np.array(img.convert("RGB"))]
