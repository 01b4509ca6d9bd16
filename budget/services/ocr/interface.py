"""
Text extraction interface.

A text extractor turns image bytes into raw text and nothing more.
Interpreting that text (amount, date) is the receipt field
extractor's job, in budget.engine.receipt.
"""

from abc import ABC, abstractmethod


class OCRError(Exception):
    """Base exception for OCR errors."""
    pass


class TextRecognitionError(OCRError):
    """The image could not be read or recognition failed or timed out."""
    pass


class TextExtractor(ABC):
    """Abstract interface for text recognition backends."""

    @abstractmethod
    async def recognize(self, image_bytes: bytes) -> str:
        """
        Recognize the text in an image.

        Raises:
            TextRecognitionError: If recognition fails for any reason
        """
        pass
