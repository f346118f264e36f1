"""Local record store.

Each user gets one JSON document under the data directory holding the
``transactions`` and ``budgets`` lists. Read and write failures are logged
and never raised: a broken or missing file reads as empty collections and
malformed records are skipped.
"""
import json
import logging
from dataclasses import replace
from pathlib import Path
from urllib.parse import quote
from uuid import uuid4

from budget import config
from budget.domain import Budget, Session, Transaction
from budget.transforms import (
    add_record,
    budget_from_dict,
    remove_record,
    replace_budget,
    replace_record,
    to_dict,
    transaction_from_dict,
    upsert_budget,
)

logger = logging.getLogger(__name__)

TRANSACTIONS_KEY = "transactions"
BUDGETS_KEY = "budgets"


def _safe_name(user_id: str) -> str:
    # reversible, distinct ids map to distinct files
    return quote(user_id, safe="")


class JsonRecordStore:

    def __init__(self, session: Session, data_dir: Path | None = None):
        self.session = session
        self.data_dir = Path(data_dir or config.DATA_DIR)
        self.path = self.data_dir / f"{_safe_name(session.user_id)}.json"

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (json.JSONDecodeError, OSError) as e:
            logger.error("Error reading records from %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.error("Unexpected record file layout in %s", self.path)
            return {}
        return data

    def _write(self, key: str, records) -> None:
        data = self._read()
        data[key] = [to_dict(r) for r in records]
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("w", encoding="utf-8") as handle:
                json.dump(data, handle, indent=2)
        except OSError as e:
            logger.error("Error saving %s to %s: %s", key, self.path, e)

    def _load(self, key: str, parse) -> tuple:
        raw = self._read().get(key) or []
        if not isinstance(raw, list):
            logger.error("Malformed %s in %s: expected a list", key, self.path)
            return ()
        records = []
        for i, r in enumerate(raw):
            try:
                records.append(parse(r))
            except (KeyError, TypeError, ValueError) as e:
                logger.error("Skipping malformed %s record %d in %s: %s", key, i, self.path, e)
        return tuple(records)

    def list_transactions(self) -> tuple[Transaction, ...]:
        return self._load(TRANSACTIONS_KEY, transaction_from_dict)

    def list_budgets(self) -> tuple[Budget, ...]:
        return self._load(BUDGETS_KEY, budget_from_dict)

    def save_transactions(self, transactions) -> None:
        self._write(TRANSACTIONS_KEY, transactions)

    def save_budgets(self, budgets) -> None:
        self._write(BUDGETS_KEY, [replace(b, spent=0.0) for b in budgets])

    def add_transaction(self, t: Transaction) -> tuple[Transaction, ...]:
        current = self.list_transactions()
        if not t.id or any(old.id == t.id for old in current):
            t = replace(t, id=str(uuid4()))
        transactions = add_record(current, t)
        self.save_transactions(transactions)
        logger.info("Added transaction %s for %s", t.id, self.session.user_id)
        return transactions

    def update_transaction(self, t: Transaction) -> tuple[Transaction, ...]:
        current = self.list_transactions()
        if not any(old.id == t.id for old in current):
            logger.warning("Transaction %s not found, nothing updated", t.id)
            return current
        transactions = replace_record(current, t)
        self.save_transactions(transactions)
        return transactions

    def delete_transaction(self, tid: str) -> tuple[Transaction, ...]:
        transactions = remove_record(self.list_transactions(), tid)
        self.save_transactions(transactions)
        return transactions

    def add_budget(self, b: Budget) -> tuple[Budget, ...]:
        current = self.list_budgets()
        # an id already held by another (category, month) budget gets replaced
        if not b.id or any(
            old.id == b.id and (old.category, old.month) != (b.category, b.month)
            for old in current
        ):
            b = replace(b, id=str(uuid4()))
        budgets = upsert_budget(current, b)
        self.save_budgets(budgets)
        logger.info("Set %s budget for %s to %s", b.category, b.month, b.amount)
        return budgets

    def update_budget(self, b: Budget) -> tuple[Budget, ...]:
        current = self.list_budgets()
        if not any(old.id == b.id for old in current):
            logger.warning("Budget %s not found, nothing updated", b.id)
            return current
        budgets = replace_budget(current, b)
        if len(budgets) < len(current):
            logger.info("Budget %s replaced another %s budget for %s", b.id, b.category, b.month)
        self.save_budgets(budgets)
        return budgets

    def delete_budget(self, bid: str) -> tuple[Budget, ...]:
        budgets = remove_record(self.list_budgets(), bid)
        self.save_budgets(budgets)
        return budgets

    def import_records(self, transactions, budgets) -> None:
        """Overwrite both collections, e.g. with demo data from ``load_seed``."""
        self.save_transactions(transactions)
        self.save_budgets(budgets)
