"""
Tests for the exchange rate and OCR services.

HTTP goes through httpx.MockTransport and Tesseract is patched out,
so these tests run offline and without the tesseract binary.
"""

import asyncio
import io
import pytest
from datetime import date
from decimal import Decimal
from unittest.mock import patch

import httpx
import pytesseract
from PIL import Image

from budget.config import OCRSettings, RateSettings
from budget.engine import UNAVAILABLE_TEXT
from budget.models import RateTable
from budget.services.ocr import (
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

from conftest import TODAY, FakeRateProvider, FakeTextExtractor


def png_bytes() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (20, 10), "white").save(buffer, format="PNG")
    return buffer.getvalue()


class CrashingExtractor(TextExtractor):
    async def recognize(self, image_bytes: bytes) -> str:
        raise RuntimeError("engine crashed")


class SlowExtractor(TextExtractor):
    async def recognize(self, image_bytes: bytes) -> str:
        await asyncio.sleep(5)
        return "TOTAL 1.00"


def provider_for(handler) -> ExchangeRateApiProvider:
    return ExchangeRateApiProvider(
        settings=RateSettings(retry_attempts=1, timeout_seconds=1),
        transport=httpx.MockTransport(handler),
    )


class TestExchangeRateApiProvider:
    """Tests for the exchangerate-api.com client."""

    async def test_fetch_rates(self):
        """Test parsing a v4 'latest' response."""
        requested = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            return httpx.Response(200, json={
                "base": "EUR",
                "rates": {"EUR": 1, "USD": 1.1, "MUR": 50.25, "BAD": "x", "ZERO": 0},
            })

        rates = await provider_for(handler).fetch_rates("EUR")

        assert requested == ["https://api.exchangerate-api.com/v4/latest/EUR"]
        assert rates == {
            "EUR": Decimal("1"),
            "USD": Decimal("1.1"),
            "MUR": Decimal("50.25"),
        }

    async def test_http_error(self):
        """Test that a 5xx response is reported as unavailable."""
        provider = provider_for(lambda request: httpx.Response(503))

        with pytest.raises(RateProviderUnavailable):
            await provider.fetch_rates("EUR")

    async def test_network_error(self):
        """Test that a connection failure is reported as unavailable."""
        def handler(request):
            raise httpx.ConnectError("no route to host")

        with pytest.raises(RateProviderUnavailable):
            await provider_for(handler).fetch_rates("EUR")

    async def test_payload_without_rates(self):
        """Test that a JSON body without 'rates' is rejected."""
        provider = provider_for(lambda request: httpx.Response(200, json={"result": "error"}))

        with pytest.raises(RateProviderUnavailable):
            await provider.fetch_rates("EUR")


class TestRateService:
    """Tests for the session-scoped RateService."""

    def test_starts_with_defaults(self, app_settings):
        """Test the static default table."""
        service = RateService(provider=FakeRateProvider(), app_settings=app_settings)

        assert service.table == default_rate_table(app_settings)
        assert service.table.rates == {
            "EUR": Decimal("1"),
            "USD": Decimal("1.08"),
            "MUR": Decimal("48.5"),
        }
        assert service.table.source == "default"

    async def test_refresh_keeps_supported_and_fills_missing(self, app_settings):
        """Test that unsupported codes are dropped and missing ones defaulted."""
        provider = FakeRateProvider(rates={"USD": Decimal("1.1"), "GBP": Decimal("0.85")})
        service = RateService(provider=provider, app_settings=app_settings)

        table = await service.refresh()

        assert table.rates == {
            "EUR": Decimal("1"),
            "USD": Decimal("1.1"),
            "MUR": Decimal("48.5"),
        }
        assert table.source == "exchangerate-api"
        assert table.fetched_at is not None

    async def test_refresh_runs_once_per_session(self, app_settings):
        """Test that a second refresh doesn't hit the provider."""
        provider = FakeRateProvider(rates={"USD": Decimal("1.1")})
        service = RateService(provider=provider, app_settings=app_settings)

        first = await service.refresh()
        second = await service.refresh()

        assert provider.calls == 1
        assert second is first

    async def test_failure_keeps_current_table(self, app_settings):
        """Test that an unreachable provider leaves the defaults in place."""
        service = RateService(provider=FakeRateProvider(fail=True), app_settings=app_settings)

        table = await service.refresh()

        assert table.source == "default"
        assert table.rates["USD"] == Decimal("1.08")
        assert service.refreshed is True

    async def test_restore_before_refresh(self, app_settings):
        """Test that a saved table is adopted until a refresh succeeds."""
        saved = RateTable(rates={"USD": Decimal("1.2")}, source="exchangerate-api")
        service = RateService(provider=FakeRateProvider(fail=True), app_settings=app_settings)

        service.restore(saved)
        await service.refresh()

        assert service.table.rates["USD"] == Decimal("1.2")


class TestTesseractTextExtractor:
    """Tests for TesseractTextExtractor with pytesseract patched."""

    async def test_recognize(self):
        """Test that the image is decoded and passed to Tesseract."""
        extractor = TesseractTextExtractor(OCRSettings())

        with patch("pytesseract.image_to_string", return_value="TOTAL 12,50") as ocr:
            text = await extractor.recognize(png_bytes())

        assert text == "TOTAL 12,50"
        assert ocr.call_args.kwargs["lang"] == "fra+eng"

    async def test_empty_image(self):
        """Test that no bytes is a recognition error."""
        with pytest.raises(TextRecognitionError):
            await TesseractTextExtractor(OCRSettings()).recognize(b"")

    async def test_not_an_image(self):
        """Test that undecodable bytes are a recognition error."""
        with pytest.raises(TextRecognitionError):
            await TesseractTextExtractor(OCRSettings()).recognize(b"definitely not a png")

    @pytest.mark.parametrize("error", [
        pytesseract.TesseractNotFoundError(),
        RuntimeError("Tesseract process timeout"),
    ])
    async def test_tesseract_failures(self, error):
        """Test that a missing binary and a timeout are recognition errors."""
        extractor = TesseractTextExtractor(OCRSettings())

        with patch("pytesseract.image_to_string", side_effect=error):
            with pytest.raises(TextRecognitionError):
                await extractor.recognize(png_bytes())

    async def test_oversized_image(self, monkeypatch):
        """Test that a decompression bomb is a recognition error."""
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 10)

        with pytest.raises(TextRecognitionError):
            await TesseractTextExtractor(OCRSettings()).recognize(png_bytes())

    async def test_unexpected_failure(self):
        """Test that any other Tesseract error is a recognition error."""
        extractor = TesseractTextExtractor(OCRSettings())

        with patch("pytesseract.image_to_string", side_effect=ValueError("bad lang")):
            with pytest.raises(TextRecognitionError):
                await extractor.recognize(png_bytes())


class TestReceiptScanner:
    """Tests for ReceiptScanner."""

    async def test_scan(self):
        """Test that recognized text becomes a proposed amount and date."""
        scanner = ReceiptScanner(FakeTextExtractor("TOTAL 12,50 MERCI 05/03/2024"))

        scan = await scanner.scan(b"image", today=TODAY)

        assert scan.amount_text == "12.50"
        assert scan.date == date(2024, 3, 5)
        assert scan.recognized is True

    async def test_failure_gives_placeholder(self):
        """Test the manual-entry fallback when OCR is unavailable."""
        scanner = ReceiptScanner(FakeTextExtractor(fail=True))

        scan = await scanner.scan(b"image", today=TODAY)

        assert scan.raw_text == UNAVAILABLE_TEXT
        assert scan.amount == Decimal("0")
        assert scan.date == TODAY
        assert scan.recognized is False

    async def test_crashing_extractor_gives_placeholder(self):
        """Test that an error outside the OCR hierarchy is not raised."""
        scanner = ReceiptScanner(CrashingExtractor(), settings=OCRSettings())

        scan = await scanner.scan(b"image", today=TODAY)

        assert scan.raw_text == UNAVAILABLE_TEXT
        assert scan.recognized is False

    async def test_slow_extractor_times_out(self):
        """Test that an extractor running past the OCR timeout is abandoned."""
        scanner = ReceiptScanner(SlowExtractor(), settings=OCRSettings(timeout_seconds=0.05))

        scan = await scanner.scan(b"image", today=TODAY)

        assert scan.raw_text == UNAVAILABLE_TEXT
        assert scan.date == TODAY

    async def test_oversized_image_gives_placeholder(self, monkeypatch):
        """Test that a decompression bomb ends in manual entry."""
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 10)
        scanner = ReceiptScanner(TesseractTextExtractor(OCRSettings()), settings=OCRSettings())

        scan = await scanner.scan(png_bytes(), today=TODAY)

        assert scan.raw_text == UNAVAILABLE_TEXT
        assert scan.amount == Decimal("0")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
