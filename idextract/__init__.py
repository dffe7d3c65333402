"""Document identifier extraction.

Recovers driving license and vehicle registration (RC book) numbers from
noisy OCR text using confusion correction, keyword-anchored search and
tiered pattern fallback over a two-pass Tesseract recognition.
"""

__version__ = "1.0.0"
