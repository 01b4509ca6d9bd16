"""
Main Orchestrator for Budget Tracker

This module ties the engine, the storage tiers, the rate service and
the receipt scanner together behind a single object, the Ledger.

DESIGN DECISION: The Ledger owns the only mutable state (AppState) and
is the only thing that changes it. Every mutation follows the same path:
1. Validate the form (nothing changes if it is rejected)
2. Update AppState in memory, before anything is awaited
3. Persist; a storage failure is logged, never raised

Read-side views (balances, breakdowns, series) are plain synchronous
calls into the engine over the current AppState.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Awaitable, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from budget.activity import ActivityLogger
from budget.config import AppSettings, get_settings
from budget.engine import (
    Period,
    account_balance,
    balance_series,
    category_breakdown,
    daily_series,
    expand_recurring,
    period_totals,
    portfolio_total,
    recent_transactions,
)
from budget.models.ledger import Account, RateTable, Transaction
from budget.models.reports import (
    BalancePoint,
    CategoryTotal,
    DailyPoint,
    PeriodTotals,
    ReceiptScan,
)
from budget.services.ocr import ReceiptScanner
from budget.services.rates import RateService
from budget.services.storage import (
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
from budget.validation import InputValidator, InvalidInputError


class AppState(BaseModel):
    """Everything the views are computed from."""

    accounts: list[Account] = Field(default_factory=list)
    transactions: list[Transaction] = Field(default_factory=list)
    rates: RateTable = Field(default_factory=RateTable)
    loaded: bool = False

    def find_account(self, account_id: str) -> Optional[Account]:
        for account in self.accounts:
            if account.id == account_id:
                return account
        return None


class Ledger:
    """
    Application state plus its single update path.

    Mutations are async because they end with a storage call; the
    in-memory state is already updated when the coroutine first yields.
    """

    def __init__(
        self,
        repository: LedgerRepository,
        rate_service: Optional[RateService] = None,
        scanner: Optional[ReceiptScanner] = None,
        validator: Optional[InputValidator] = None,
        activity_logger: Optional[ActivityLogger] = None,
        app_settings: Optional[AppSettings] = None,
    ):
        self._activity = activity_logger or ActivityLogger()
        self._app = app_settings or get_settings().app
        self._repository = repository
        self._rates = rate_service or RateService(
            app_settings=self._app,
            activity_logger=self._activity,
        )
        self._scanner = scanner
        self._validator = validator or InputValidator(self._app)
        self.state = AppState(rates=self._rates.table)
        self._repository.track(self._snapshot)

    @property
    def repository(self) -> LedgerRepository:
        return self._repository

    def _snapshot(self) -> dict[str, list[dict]]:
        """Current state as storage records, used to seed a fallback tier."""
        return LedgerRepository.to_snapshot(
            self.state.accounts,
            self.state.transactions,
            self.state.rates,
        )

    async def _persist(self, operation: str, call: Awaitable) -> bool:
        """Await a storage call; log and swallow a StorageError."""
        try:
            await call
            return True
        except StorageError as e:
            self._activity.log_storage_failed(operation, str(e))
            return False

    def _reject(self, error: InvalidInputError) -> None:
        self._activity.log_input_rejected(
            error.result.form,
            [
                {"field": issue.field, "type": issue.issue_type}
                for issue in error.result.issues
                if issue.severity == "error"
            ],
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def load(self, now: Union[datetime, date, None] = None) -> AppState:
        """
        Load accounts and transactions, then materialize due occurrences.

        New occurrences are appended to the state and persisted in one
        batch. A store that can't be read leaves the state empty.
        """
        try:
            accounts = await self._repository.load_accounts()
            transactions = await self._repository.load_transactions()
            saved_rates = await self._repository.load_rate_table()
        except StorageError as e:
            self._activity.log_storage_failed("load", str(e))
            accounts, transactions, saved_rates = [], [], None

        if saved_rates is not None:
            self._rates.restore(saved_rates)

        self.state.accounts = accounts
        self.state.transactions = transactions
        self.state.rates = self._rates.table

        created = expand_recurring(transactions, now or datetime.now())
        if created:
            self.state.transactions.extend(created)
            self._activity.log_occurrences_generated(len(created))
            await self._persist(
                "save_occurrences",
                self._repository.save_transactions(created),
            )

        self.state.loaded = True
        self._activity.log_loaded(
            len(self.state.accounts),
            len(self.state.transactions),
            type(self._repository.store).__name__,
        )
        return self.state

    async def reset(self) -> None:
        """Erase all accounts, transactions and saved settings."""
        self.state.accounts = []
        self.state.transactions = []
        self._activity.log_reset()
        await self._persist("reset", self._repository.reset())

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    async def save_account(self, form: dict, account_id: Optional[str] = None) -> Account:
        """
        Create an account, or edit the one with `account_id`.

        Raises:
            InvalidInputError: If the form is rejected
            NotFoundError: If account_id names no known account
        """
        existing = None
        if account_id is not None:
            existing = self.state.find_account(account_id)
            if existing is None:
                raise NotFoundError(f"Account not found: {account_id}")

        try:
            account = self._validator.build_account(form, existing=existing)
        except InvalidInputError as e:
            self._reject(e)
            raise

        if existing is None:
            self.state.accounts.append(account)
        else:
            self.state.accounts = [
                account if a.id == account.id else a for a in self.state.accounts
            ]

        self._activity.log_account_saved(account.id, account.name, account.currency.value)
        await self._persist("save_account", self._repository.save_account(account))
        return account

    async def delete_account(self, account_id: str) -> int:
        """
        Delete an account and every transaction that references it.

        Returns:
            Number of transactions removed with the account
        """
        kept = [tx for tx in self.state.transactions if tx.account_id != account_id]
        cascaded = len(self.state.transactions) - len(kept)
        self.state.transactions = kept
        self.state.accounts = [a for a in self.state.accounts if a.id != account_id]

        self._activity.log_account_deleted(account_id, cascaded)
        await self._persist("delete_account", self._repository.delete_account(account_id))
        return cascaded

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    async def add_transaction(
        self,
        form: dict,
        now: Union[datetime, date, None] = None,
    ) -> Transaction:
        """
        Record a transaction.

        A recurring transaction dated in the past has its due
        occurrences materialized right away, as a load would.

        Raises:
            InvalidInputError: If the form is rejected
        """
        now = now or datetime.now()
        today = now.date() if isinstance(now, datetime) else now

        try:
            transaction = self._validator.build_transaction(
                form,
                accounts=self.state.accounts,
                today=today,
            )
        except InvalidInputError as e:
            self._reject(e)
            raise

        new = [transaction]
        if transaction.is_template:
            new.extend(expand_recurring([transaction], now))
        self.state.transactions.extend(new)

        self._activity.log_transaction_saved(
            transaction.id,
            transaction.type.value,
            str(transaction.amount),
            transaction.recurring.value,
        )
        if len(new) > 1:
            self._activity.log_occurrences_generated(len(new) - 1)
        await self._persist("save_transaction", self._repository.save_transactions(new))
        return transaction

    async def delete_transaction(self, transaction_id: str) -> bool:
        """Delete one transaction. Occurrences of a deleted template are kept."""
        before = len(self.state.transactions)
        self.state.transactions = [
            tx for tx in self.state.transactions if tx.id != transaction_id
        ]
        removed = len(self.state.transactions) < before
        if removed:
            self._activity.log_transaction_deleted(transaction_id)
            await self._persist(
                "delete_transaction",
                self._repository.delete_transaction(transaction_id),
            )
        return removed

    # -------------------------------------------------------------------------
    # Rates and receipts
    # -------------------------------------------------------------------------

    async def refresh_rates(self) -> RateTable:
        """Refresh the rate table (at most once per session) and save it."""
        previous = self.state.rates
        table = await self._rates.refresh()
        self.state.rates = table
        if table is not previous and table.source != "default":
            await self._persist("save_rates", self._repository.save_rate_table(table))
        return table

    async def scan_receipt(self, image_bytes: bytes, today: Optional[date] = None) -> ReceiptScan:
        """Propose an amount and date from a receipt photo. Never raises."""
        if self._scanner is None:
            self._scanner = ReceiptScanner(activity_logger=self._activity)
        return await self._scanner.scan(image_bytes, today=today)

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    def account_balance(self, account_id: str) -> Decimal:
        """
        Raises:
            NotFoundError: If no account has this ID
        """
        account = self.state.find_account(account_id)
        if account is None:
            raise NotFoundError(f"Account not found: {account_id}")
        return account_balance(account, self.state.transactions)

    def balances(self) -> dict[str, Decimal]:
        """Balance of every account, in its own currency."""
        return {
            account.id: account_balance(account, self.state.transactions)
            for account in self.state.accounts
        }

    def portfolio_total(self) -> Decimal:
        return portfolio_total(self.state.accounts, self.state.transactions, self.state.rates)

    def category_breakdown(
        self,
        period: Union[Period, str] = Period.MONTH,
        now: Union[datetime, date, None] = None,
    ) -> list[CategoryTotal]:
        return category_breakdown(self.state.transactions, period, now)

    def daily_series(
        self,
        period: Union[Period, str] = Period.MONTH,
        now: Union[datetime, date, None] = None,
    ) -> list[DailyPoint]:
        return daily_series(self.state.transactions, period, now)

    def period_totals(
        self,
        period: Union[Period, str] = Period.MONTH,
        now: Union[datetime, date, None] = None,
    ) -> PeriodTotals:
        return period_totals(self.state.transactions, period, now)

    def balance_series(self) -> list[BalancePoint]:
        return balance_series(
            self.state.accounts,
            self.state.transactions,
            self.state.rates,
            limit=self._app.balance_series_points,
        )

    def recent_transactions(self, limit: Optional[int] = None) -> list[Transaction]:
        return recent_transactions(
            self.state.transactions,
            limit=limit or self._app.recent_transactions_limit,
        )


def create_store(
    use_storage: bool = True,
    activity_logger: Optional[ActivityLogger] = None,
) -> RecordStore:
    """
    Build the storage tiers from settings.

    Local JSON files back onto memory; Google Sheets, when enabled and
    configured, sits in front of both.
    """
    if not use_storage:
        return InMemoryStore()

    activity_logger = activity_logger or ActivityLogger()
    storage_settings = get_settings().storage
    store: RecordStore = FallbackStore(
        JsonFileStore(storage_settings.data_dir),
        InMemoryStore(),
        activity_logger,
    )

    if storage_settings.use_google_sheets:
        try:
            sheets_store = GoogleSheetsStore(GoogleSheetsClient())
        except ValidationError as e:
            # Google Sheets settings missing - continue with local storage
            activity_logger.log_storage_fallback("configure", str(e))
        else:
            store = FallbackStore(sheets_store, store, activity_logger)

    return store


def create_app_components(use_storage: bool = True) -> Ledger:
    """
    Factory function to create the application's Ledger.

    Args:
        use_storage: Whether to persist at all. Set to False for
                    testing without touching the filesystem.
    """
    activity_logger = ActivityLogger()
    store = create_store(use_storage, activity_logger)
    return Ledger(
        repository=LedgerRepository(store, activity_logger),
        activity_logger=activity_logger,
    )
