"""OCR services package."""

from budget.services.ocr.interface import OCRError, TextExtractor, TextRecognitionError
from budget.services.ocr.tesseract_service import ReceiptScanner, TesseractTextExtractor

__all__ = [
    "OCRError",
    "ReceiptScanner",
    "TesseractTextExtractor",
    "TextExtractor",
    "TextRecognitionError",
]
