"""
Ledger Repository

Typed access to accounts, transactions and settings over any
RecordStore. This is where stored dicts become models and back, and
where referential rules that span collections are enforced:

- Deleting an account deletes every transaction that references it.
- A stored record that no longer validates is skipped (and logged),
  never allowed to break a load.
"""

from typing import Any, Optional

from pydantic import ValidationError

from budget.activity import ActivityLogger
from budget.models.ledger import Account, RateTable, Transaction
from budget.services.storage.interface import (
    ACCOUNTS,
    COLLECTIONS,
    SETTINGS,
    TRANSACTIONS,
    RecordStore,
    Snapshot,
)


RATES_SETTING_KEY = "rates"


class LedgerRepository:
    """Typed repository for the ledger's collections."""

    def __init__(
        self,
        store: RecordStore,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        self._store = store
        self._activity = activity_logger or ActivityLogger()

    @property
    def store(self) -> RecordStore:
        return self._store

    def track(self, snapshot: Snapshot) -> None:
        """Let a tiered store seed its fallback from the app's current records."""
        self._store.set_snapshot(snapshot)

    @staticmethod
    def to_snapshot(
        accounts: list[Account],
        transactions: list[Transaction],
        rates: Optional[RateTable] = None,
    ) -> dict[str, list[dict]]:
        """Storage records for in-memory state, per collection."""
        records = {
            ACCOUNTS: [account.to_record() for account in accounts],
            TRANSACTIONS: [tx.to_record() for tx in transactions],
        }
        if rates is not None and rates.source != "default":
            records[SETTINGS] = [
                {"key": RATES_SETTING_KEY, "value": rates.model_dump(mode="json")}
            ]
        return records

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    async def _load(self, collection: str, model: type) -> list:
        items = []
        for record in await self._store.load_all(collection):
            try:
                items.append(model.model_validate(record))
            except ValidationError as e:
                self._activity.log_record_skipped(
                    collection,
                    record.get("id"),
                    f"{e.error_count()} validation error(s)",
                )
        return items

    async def load_accounts(self) -> list[Account]:
        return await self._load(ACCOUNTS, Account)

    async def load_transactions(self) -> list[Transaction]:
        return await self._load(TRANSACTIONS, Transaction)

    # -------------------------------------------------------------------------
    # Writing
    # -------------------------------------------------------------------------

    async def save_account(self, account: Account) -> None:
        await self._store.put(ACCOUNTS, account.to_record())

    async def save_transaction(self, transaction: Transaction) -> None:
        await self._store.put(TRANSACTIONS, transaction.to_record())

    async def save_transactions(self, transactions: list[Transaction]) -> None:
        """Insert or replace several transactions in one store call."""
        if not transactions:
            return
        await self._store.put_many(
            TRANSACTIONS,
            [tx.to_record() for tx in transactions],
        )

    async def delete_transaction(self, transaction_id: str) -> bool:
        return await self._store.delete(TRANSACTIONS, transaction_id)

    async def delete_account(self, account_id: str) -> list[str]:
        """
        Delete an account and every transaction referencing it.

        Transactions are removed before the account itself.

        Returns:
            IDs of the transactions removed with the account
        """
        removed = []
        for record in await self._store.load_all(TRANSACTIONS):
            if record.get("accountId") == account_id and record.get("id"):
                await self._store.delete(TRANSACTIONS, record["id"])
                removed.append(str(record["id"]))
        await self._store.delete(ACCOUNTS, account_id)
        return removed

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------

    async def get_setting(self, key: str, default: Any = None) -> Any:
        for record in await self._store.load_all(SETTINGS):
            if record.get("key") == key:
                return record.get("value", default)
        return default

    async def set_setting(self, key: str, value: Any) -> None:
        await self._store.put(SETTINGS, {"key": key, "value": value})

    async def load_rate_table(self) -> Optional[RateTable]:
        """Last rate table saved by a successful refresh, if any."""
        data = await self.get_setting(RATES_SETTING_KEY)
        if not data:
            return None
        try:
            return RateTable.model_validate(data)
        except ValidationError as e:
            self._activity.log_record_skipped(
                SETTINGS,
                RATES_SETTING_KEY,
                f"{e.error_count()} validation error(s)",
            )
            return None

    async def save_rate_table(self, rates: RateTable) -> None:
        await self.set_setting(RATES_SETTING_KEY, rates.model_dump(mode="json"))

    async def reset(self) -> None:
        """Erase every collection."""
        for collection in COLLECTIONS:
            await self._store.clear(collection)
