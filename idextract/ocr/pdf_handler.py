"""PDF rasterization for scanned license and RC book uploads.

Identity documents are one or two pages, so only the leading pages of a
PDF are rendered for OCR.
"""

from pathlib import Path

import numpy as np
from pdf2image import convert_from_bytes, convert_from_path

from idextract.utils.logger import get_logger

logger = get_logger(__name__)


def is_pdf(source: Path | bytes) -> bool:
    """Tell whether a path or byte payload holds a PDF document."""
    if isinstance(source, bytes):
        return source[:4] == b"%PDF"
    return Path(source).suffix.lower() == ".pdf"


class PDFHandler:
    """Converts the leading pages of a PDF to images.

    Args:
        dpi: Resolution for PDF rendering.
        max_pages: Number of leading pages to render.
    """

    def __init__(self, dpi: int = 300, max_pages: int = 2) -> None:
        self.dpi = dpi
        self.max_pages = max_pages

    def pdf_to_images(self, pdf_source: Path | bytes) -> list[np.ndarray]:
        """Render the leading pages of a PDF.

        Args:
            pdf_source: Path to a PDF file or raw PDF bytes.

        Returns:
            Page images as numpy arrays (RGB format).

        Raises:
            FileNotFoundError: If a path is given and the file does not exist.
            RuntimeError: If PDF conversion fails.
        """
        page_range = {"first_page": 1, "last_page": self.max_pages}
        try:
            if isinstance(pdf_source, str | Path):
                path = Path(pdf_source)
                if not path.exists():
                    raise FileNotFoundError(f"PDF file not found: {path}")
                pil_images = convert_from_path(str(path), dpi=self.dpi, **page_range)
            else:
                pil_images = convert_from_bytes(pdf_source, dpi=self.dpi, **page_range)
        except FileNotFoundError:
            raise
        except Exception as exc:
            raise RuntimeError(f"PDF conversion failed: {exc}") from exc

        images = [np.array(img) for img in pil_images]
        logger.info("Rendered %d PDF page(s) at %d DPI", len(images), self.dpi)
        return images
