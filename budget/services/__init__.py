"""Services package."""

from budget.services.ocr import (
    OCRError,
    ReceiptScanner,
    TesseractTextExtractor,
    TextExtractor,
    TextRecognitionError,
)
from budget.services.rates import (
    ExchangeRateApiProvider,
    RateProviderUnavailable,
    RateService,
    default_rate_table,
)
from budget.services.storage import (
    ConnectionError,
    FallbackStore,
    GoogleSheetsClient,
    GoogleSheetsStore,
    InMemoryStore,
    JsonFileStore,
    LedgerRepository,
    NotFoundError,
    RecordStore,
    StorageError,
)

__all__ = [
    # OCR services
    "OCRError",
    "ReceiptScanner",
    "TesseractTextExtractor",
    "TextExtractor",
    "TextRecognitionError",
    # Rate services
    "ExchangeRateApiProvider",
    "RateProviderUnavailable",
    "RateService",
    "default_rate_table",
    # Storage services
    "ConnectionError",
    "FallbackStore",
    "GoogleSheetsClient",
    "GoogleSheetsStore",
    "InMemoryStore",
    "JsonFileStore",
    "LedgerRepository",
    "NotFoundError",
    "RecordStore",
    "StorageError",
]
