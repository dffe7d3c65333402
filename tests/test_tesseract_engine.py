"""Tests for the Tesseract OCR collaborator."""

import asyncio
import io
from pathlib import Path
from unittest.mock import MagicMock, patch

import numpy as np
import pytest
from PIL import Image

from idextract.ocr.pdf_handler import PDFHandler
from idextract.ocr.tesseract_engine import RecognitionMode, TesseractEngine
from idextract.utils.config import IDENTIFIER_WHITELIST, OCRConfig


def _png_bytes() -> bytes:
    """Create a minimal PNG image as bytes."""
    img = Image.fromarray(np.zeros((40, 120, 3), dtype=np.uint8))
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


class TestBuildConfig:
    """Tests for Tesseract command-line configuration."""

    def test_whitelist_mode(self) -> None:
        engine = TesseractEngine()
        config = engine.build_config(RecognitionMode.WHITELIST)
        assert config == f"--psm 3 -c tessedit_char_whitelist={IDENTIFIER_WHITELIST}"

    def test_unrestricted_mode(self) -> None:
        engine = TesseractEngine(psm=6)
        assert engine.build_config(RecognitionMode.UNRESTRICTED) == "--psm 6"

    def test_empty_whitelist(self) -> None:
        engine = TesseractEngine(char_whitelist="")
        assert engine.build_config(RecognitionMode.WHITELIST) == "--psm 3"

    def test_whitelist_has_identifier_alphabet(self) -> None:
        assert set("KL07AB1234-/") <= set(IDENTIFIER_WHITELIST)
        assert " " not in IDENTIFIER_WHITELIST


class TestTesseractEngine:
    """Tests for recognition with a mocked pytesseract."""

    def test_from_config(self) -> None:
        engine = TesseractEngine.from_config(
            OCRConfig(default_lang="eng+hin", psm=6, pdf_dpi=200, max_pdf_pages=1)
        )
        assert engine.default_lang == "eng+hin"
        assert engine.psm == 6
        assert engine.pdf_handler.dpi == 200
        assert engine.pdf_handler.max_pages == 1

    @patch("idextract.ocr.tesseract_engine.pytesseract")
    def test_recognize_image_bytes(self, mock_tess: MagicMock) -> None:
        mock_tess.image_to_string.return_value = "DL NO MH14 2011 0012345"
        engine = TesseractEngine()

        text = engine.recognize_sync(_png_bytes(), RecognitionMode.WHITELIST)

        assert text == "DL NO MH14 2011 0012345"
        kwargs = mock_tess.image_to_string.call_args.kwargs
        assert kwargs["lang"] == "eng"
        assert "tessedit_char_whitelist" in kwargs["config"]

    @patch("idextract.ocr.tesseract_engine.pytesseract")
    def test_recognize_image_path(self, mock_tess: MagicMock, tmp_path: Path) -> None:
        mock_tess.image_to_string.return_value = "REG NO KL07AB1234"
        image_path = tmp_path / "rc.png"
        image_path.write_bytes(_png_bytes())
        engine = TesseractEngine()

        text = engine.recognize_sync(image_path, RecognitionMode.UNRESTRICTED)

        assert text == "REG NO KL07AB1234"
        assert mock_tess.image_to_string.call_args.kwargs["config"] == "--psm 3"

    @patch("idextract.ocr.tesseract_engine.pytesseract")
    def test_recognize_pdf_joins_pages(self, mock_tess: MagicMock) -> None:
        mock_tess.image_to_string.side_effect = ["PAGE ONE", "PAGE TWO"]
        handler = MagicMock(spec=PDFHandler)
        handler.pdf_to_images.return_value = [
            np.zeros((10, 10, 3), dtype=np.uint8),
            np.zeros((10, 10, 3), dtype=np.uint8),
        ]
        engine = TesseractEngine(pdf_handler=handler)

        text = engine.recognize_sync(b"%PDF-1.4 fake", RecognitionMode.WHITELIST)

        assert text == "PAGE ONE\nPAGE TWO"
        handler.pdf_to_images.assert_called_once_with(b"%PDF-1.4 fake")

    @patch("idextract.ocr.tesseract_engine.pytesseract")
    def test_recognize_async(self, mock_tess: MagicMock) -> None:
        mock_tess.image_to_string.return_value = "REG NO KL07AB1234"
        engine = TesseractEngine()

        text = asyncio.run(engine.recognize(_png_bytes(), RecognitionMode.WHITELIST))

        assert text == "REG NO KL07AB1234"

    @patch("idextract.ocr.tesseract_engine.pytesseract")
    def test_recognition_error_propagates(self, mock_tess: MagicMock) -> None:
        mock_tess.image_to_string.side_effect = RuntimeError("tesseract not installed")
        engine = TesseractEngine()

        with pytest.raises(RuntimeError, match="tesseract not installed"):
            engine.recognize_sync(_png_bytes(), RecognitionMode.WHITELIST)
