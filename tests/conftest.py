"""
Shared fixtures.

No test talks to the network, Tesseract or Google: rate providers,
text extractors and failing stores are small fakes defined here.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

import pytest

from budget.activity import ActivityLogger
from budget.config import AppSettings
from budget.models import Account, Currency, Transaction, TransactionType
from budget.orchestrator import Ledger
from budget.services.ocr import TextExtractor, TextRecognitionError
from budget.services.rates import RateProviderUnavailable, RateService
from budget.services.storage import InMemoryStore, LedgerRepository, RecordStore, StorageError


TODAY = date(2024, 3, 15)


class FakeRateProvider:
    """Rate provider that returns a fixed mapping, or raises."""

    def __init__(self, rates: Optional[dict] = None, fail: bool = False):
        self.rates = rates or {}
        self.fail = fail
        self.calls = 0

    async def fetch_rates(self, reference_currency: str) -> dict[str, Decimal]:
        self.calls += 1
        if self.fail:
            raise RateProviderUnavailable("provider down")
        return dict(self.rates)


class FakeTextExtractor(TextExtractor):
    """Text extractor that returns fixed text, or fails."""

    def __init__(self, text: str = "", fail: bool = False):
        self.text = text
        self.fail = fail

    async def recognize(self, image_bytes: bytes) -> str:
        if self.fail:
            raise TextRecognitionError("no tesseract here")
        return self.text


class FailingStore(RecordStore):
    """Record store whose every call fails."""

    def __init__(self):
        self.calls = 0

    async def _fail(self):
        self.calls += 1
        raise StorageError("backend unreachable")

    async def load_all(self, collection: str) -> list[dict]:
        await self._fail()

    async def put(self, collection: str, record: dict) -> None:
        await self._fail()

    async def delete(self, collection: str, key: str) -> bool:
        await self._fail()

    async def clear(self, collection: str) -> None:
        await self._fail()


class BreakableStore(InMemoryStore):
    """In-memory store that fails every call once `broken` is set."""

    def __init__(self):
        super().__init__()
        self.broken = False

    def _check(self):
        if self.broken:
            raise StorageError("quota exceeded")

    async def load_all(self, collection: str) -> list[dict]:
        self._check()
        return await super().load_all(collection)

    async def put(self, collection: str, record: dict) -> None:
        self._check()
        await super().put(collection, record)

    async def delete(self, collection: str, key: str) -> bool:
        self._check()
        return await super().delete(collection, key)

    async def clear(self, collection: str) -> None:
        self._check()
        await super().clear(collection)


def make_account(**overrides) -> Account:
    fields = {"name": "Main", "currency": Currency.EUR, "initial_balance": Decimal("0")}
    fields.update(overrides)
    return Account(**fields)


def make_transaction(**overrides) -> Transaction:
    fields = {
        "type": TransactionType.EXPENSE,
        "amount": Decimal("10"),
        "category": "food",
        "date": TODAY,
    }
    fields.update(overrides)
    return Transaction(**fields)


@pytest.fixture
def app_settings() -> AppSettings:
    return AppSettings(
        reference_currency="EUR",
        default_rates={
            "EUR": Decimal("1"),
            "USD": Decimal("1.08"),
            "MUR": Decimal("48.5"),
        },
    )


@pytest.fixture
def activity_logger() -> ActivityLogger:
    return ActivityLogger(session_id="test-session")


@pytest.fixture
def memory_store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def repository(memory_store, activity_logger) -> LedgerRepository:
    return LedgerRepository(memory_store, activity_logger)


@pytest.fixture
def rate_provider() -> FakeRateProvider:
    return FakeRateProvider(rates={"USD": Decimal("1.1"), "MUR": Decimal("50")})


@pytest.fixture
def rate_service(rate_provider, app_settings, activity_logger) -> RateService:
    return RateService(
        provider=rate_provider,
        app_settings=app_settings,
        activity_logger=activity_logger,
    )


@pytest.fixture
def ledger(repository, rate_service, activity_logger, app_settings) -> Ledger:
    return Ledger(
        repository=repository,
        rate_service=rate_service,
        activity_logger=activity_logger,
        app_settings=app_settings,
    )
