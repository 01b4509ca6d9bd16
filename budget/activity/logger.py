"""
Activity Logger

DESIGN DECISION: Every state change and every degraded path (rate
fallback, storage fallback, OCR failure) is written to a structured
local log. Nothing is persisted: the log is for debugging, not a
user-facing history.

The activity logger:
- Is synchronous and cheap, so the engine's callers can log inline
- Never raises into the caller
- Binds a session id so one run's events can be grepped together
"""

import logging
from enum import Enum
from typing import Optional
from uuid import uuid4

import structlog


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class ActivityEventType(str, Enum):
    """Events the ledger reports."""
    # Ledger lifecycle
    LEDGER_LOADED = "ledger_loaded"
    LEDGER_RESET = "ledger_reset"
    OCCURRENCES_GENERATED = "occurrences_generated"

    # Accounts and transactions
    ACCOUNT_SAVED = "account_saved"
    ACCOUNT_DELETED = "account_deleted"
    TRANSACTION_SAVED = "transaction_saved"
    TRANSACTION_DELETED = "transaction_deleted"
    INPUT_REJECTED = "input_rejected"

    # Degraded paths
    STORAGE_FALLBACK = "storage_fallback"
    STORAGE_FAILED = "storage_failed"
    RECORD_SKIPPED = "record_skipped"
    RATES_REFRESHED = "rates_refreshed"
    RATES_UNAVAILABLE = "rates_unavailable"
    RECEIPT_SCANNED = "receipt_scanned"
    OCR_FAILED = "ocr_failed"


class ActivityLogger:
    """
    Central activity logging service.

    Thin, typed wrapper over a structlog logger. Each helper maps to one
    ActivityEventType so event names stay consistent across modules.
    """

    def __init__(
        self,
        logger: Optional[structlog.stdlib.BoundLogger] = None,
        session_id: Optional[str] = None,
    ):
        """
        Initialize activity logger.

        Args:
            logger: structlog logger to write to. Defaults to the
                    "budget" logger.
            session_id: Bound to every event. Generated if omitted.
        """
        self.session_id = session_id or uuid4().hex
        self._logger = (logger or structlog.get_logger("budget")).bind(
            session_id=self.session_id
        )

    def log(
        self,
        event_type: ActivityEventType,
        level: int = logging.INFO,
        **details,
    ) -> None:
        """Log an event at the given stdlib level."""
        event = ActivityEventType(event_type).value
        if level >= logging.ERROR:
            self._logger.error(event, **details)
        elif level >= logging.WARNING:
            self._logger.warning(event, **details)
        elif level >= logging.INFO:
            self._logger.info(event, **details)
        else:
            self._logger.debug(event, **details)

    def log_loaded(self, accounts: int, transactions: int, backend: str) -> None:
        self.log(
            ActivityEventType.LEDGER_LOADED,
            accounts=accounts,
            transactions=transactions,
            backend=backend,
        )

    def log_reset(self) -> None:
        self.log(ActivityEventType.LEDGER_RESET, level=logging.WARNING)

    def log_occurrences_generated(self, count: int) -> None:
        """Log recurring occurrences materialized at load."""
        self.log(ActivityEventType.OCCURRENCES_GENERATED, count=count)

    def log_account_saved(self, account_id: str, name: str, currency: str) -> None:
        self.log(
            ActivityEventType.ACCOUNT_SAVED,
            account_id=account_id,
            name=name,
            currency=currency,
        )

    def log_account_deleted(self, account_id: str, cascaded: int) -> None:
        """Log account deletion along with the transactions removed with it."""
        self.log(
            ActivityEventType.ACCOUNT_DELETED,
            account_id=account_id,
            cascaded_transactions=cascaded,
        )

    def log_transaction_saved(
        self,
        transaction_id: str,
        transaction_type: str,
        amount: str,
        recurring: str,
    ) -> None:
        self.log(
            ActivityEventType.TRANSACTION_SAVED,
            transaction_id=transaction_id,
            transaction_type=transaction_type,
            amount=amount,
            recurring=recurring,
        )

    def log_transaction_deleted(self, transaction_id: str) -> None:
        self.log(ActivityEventType.TRANSACTION_DELETED, transaction_id=transaction_id)

    def log_input_rejected(self, form: str, issues: list[dict]) -> None:
        """Log a form rejected by the input validator."""
        self.log(
            ActivityEventType.INPUT_REJECTED,
            level=logging.WARNING,
            form=form,
            issues=issues,
        )

    def log_storage_fallback(self, operation: str, error_message: str) -> None:
        """Log the switch from the primary storage tier to the fallback."""
        self.log(
            ActivityEventType.STORAGE_FALLBACK,
            level=logging.WARNING,
            operation=operation,
            error_message=error_message,
        )

    def log_storage_failed(self, operation: str, error_message: str) -> None:
        """Log a storage call that failed with no tier left to fall back to."""
        self.log(
            ActivityEventType.STORAGE_FAILED,
            level=logging.ERROR,
            operation=operation,
            error_message=error_message,
        )

    def log_record_skipped(self, collection: str, key: Optional[str], reason: str) -> None:
        """Log a stored record that could not be parsed."""
        self.log(
            ActivityEventType.RECORD_SKIPPED,
            level=logging.WARNING,
            collection=collection,
            key=key,
            reason=reason,
        )

    def log_rates_refreshed(self, source: str, currencies: list[str]) -> None:
        self.log(ActivityEventType.RATES_REFRESHED, source=source, currencies=currencies)

    def log_rates_unavailable(self, error_message: str) -> None:
        self.log(
            ActivityEventType.RATES_UNAVAILABLE,
            level=logging.WARNING,
            error_message=error_message,
        )

    def log_receipt_scanned(self, recognized: bool, amount: str) -> None:
        self.log(ActivityEventType.RECEIPT_SCANNED, recognized=recognized, amount=amount)

    def log_ocr_failed(self, error_message: str) -> None:
        self.log(
            ActivityEventType.OCR_FAILED,
            level=logging.WARNING,
            error_message=error_message,
        )
