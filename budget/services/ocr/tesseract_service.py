"""
OCR Service using Tesseract

DESIGN DECISION: Receipts are read locally with Tesseract because:
1. No image ever leaves the user's machine
2. No API key or quota
3. The only thing needed downstream is raw text; the amount and date
   heuristics run on whatever comes back

This service handles:
1. Decoding the uploaded image with Pillow
2. Running Tesseract off the event loop, bounded by a timeout
3. Substituting the placeholder text when anything goes wrong

CRITICAL: A failed scan is never an error for the user. They get a
zero amount, today's date, and a prompt to type the amount in.
"""

import asyncio
import io
from datetime import date
from typing import Optional

import pytesseract
from PIL import Image, UnidentifiedImageError

from budget.activity import ActivityLogger
from budget.config import OCRSettings, get_settings
from budget.engine.receipt import UNAVAILABLE_TEXT, extract_receipt_fields
from budget.models.reports import ReceiptScan
from budget.services.ocr.interface import (
    OCRError,
    TextExtractor,
    TextRecognitionError,
)


class TesseractTextExtractor(TextExtractor):
    """
    Text extractor backed by the Tesseract binary through pytesseract.

    The binary is looked up on PATH unless OCR_TESSERACT_CMD is set.
    """

    def __init__(self, settings: Optional[OCRSettings] = None):
        self._settings = settings or get_settings().ocr
        if self._settings.tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = self._settings.tesseract_cmd

    def _load_image(self, image_bytes: bytes) -> Image.Image:
        try:
            image = Image.open(io.BytesIO(image_bytes))
            image.load()
            return image.convert("RGB")
        except Image.DecompressionBombError as e:
            raise TextRecognitionError(f"Image too large: {e}")
        except (UnidentifiedImageError, OSError) as e:
            raise TextRecognitionError(f"Cannot read image: {e}")

    def _recognize_sync(self, image_bytes: bytes) -> str:
        image = self._load_image(image_bytes)
        try:
            return pytesseract.image_to_string(
                image,
                lang=self._settings.languages,
                timeout=self._settings.timeout_seconds,
            )
        except pytesseract.TesseractNotFoundError as e:
            raise TextRecognitionError(f"Tesseract is not installed: {e}")
        except RuntimeError as e:
            # pytesseract raises RuntimeError on timeout; TesseractError subclasses it
            raise TextRecognitionError(f"Text recognition failed: {e}")
        except Exception as e:
            raise TextRecognitionError(f"Unexpected OCR failure: {e}")

    async def recognize(self, image_bytes: bytes) -> str:
        """Recognize text in an image without blocking the event loop."""
        if not image_bytes:
            raise TextRecognitionError("Empty image")

        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._recognize_sync, image_bytes)


class ReceiptScanner:
    """
    Image in, proposed amount and date out.

    Wraps a text extractor and the receipt field heuristics. Never
    raises: any extractor failure, or an extractor that runs past the
    OCR timeout, yields the unavailable placeholder.
    """

    def __init__(
        self,
        extractor: Optional[TextExtractor] = None,
        activity_logger: Optional[ActivityLogger] = None,
        settings: Optional[OCRSettings] = None,
    ):
        self._settings = settings or get_settings().ocr
        self._extractor = extractor or TesseractTextExtractor(self._settings)
        self._activity = activity_logger or ActivityLogger()

    async def read_text(self, image_bytes: bytes) -> str:
        """Recognized text, or the unavailable placeholder on failure."""
        try:
            return await asyncio.wait_for(
                self._extractor.recognize(image_bytes),
                timeout=self._settings.timeout_seconds,
            )
        except asyncio.TimeoutError:
            self._activity.log_ocr_failed(
                f"Text recognition timed out after {self._settings.timeout_seconds}s"
            )
        except OCRError as e:
            self._activity.log_ocr_failed(str(e))
        except Exception as e:
            self._activity.log_ocr_failed(f"Unexpected OCR failure: {e!r}")
        return UNAVAILABLE_TEXT

    async def scan(self, image_bytes: bytes, today: Optional[date] = None) -> ReceiptScan:
        text = await self.read_text(image_bytes)
        scan = extract_receipt_fields(text, today=today)
        self._activity.log_receipt_scanned(scan.recognized, scan.amount_text)
        return scan
