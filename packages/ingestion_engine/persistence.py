"""
Persistence gateways: idempotent bulk upsert keyed by (owner, fingerprint).

Every gateway guarantees that a fingerprint is stored at most once per owner,
whether it is resubmitted within one batch, across batches, or by concurrent
calls. Resubmissions are counted as ``duplicates_ignored``, never raised.
"""

import logging
import threading
from typing import Dict, List, Protocol, Sequence, Set

from .errors import PersistenceError
from .models import PersistenceResult, StampedRecord

logger = logging.getLogger(__name__)

DEFAULT_EXPENSES_TABLE = "shared_expenses"


class ExpenseGateway(Protocol):
    def persist(
        self, owner_id: str, records: Sequence[StampedRecord]
    ) -> PersistenceResult: ...


def to_row(owner_id: str, record: StampedRecord) -> dict:
    """Map a stamped record onto a ``shared_expenses`` row."""
    return {
        "user_id": owner_id,
        "expense_date": record.date,
        "category_main": record.category,
        "content": record.content,
        "amount": float(record.amount),
        "memo": record.memo,
        "payment_method": record.payment_method,
        "unique_hash": record.fingerprint,
    }


class SupabaseExpenseGateway:
    """Upserts into a Supabase table with a unique (user_id, unique_hash) constraint.

    The whole batch goes out as one PostgREST request, which Postgres runs as
    a single ``INSERT ... ON CONFLICT DO NOTHING`` statement: either every new
    row lands or none does. Only inserted rows come back, so their count is
    the number of new records.
    """

    def __init__(self, client, table: str = DEFAULT_EXPENSES_TABLE):
        self.client = client
        self.table = table

    def persist(
        self, owner_id: str, records: Sequence[StampedRecord]
    ) -> PersistenceResult:
        if not records:
            return PersistenceResult()

        rows = [to_row(owner_id, record) for record in records]
        try:
            response = (
                self.client.table(self.table)
                .upsert(rows, on_conflict="user_id,unique_hash", ignore_duplicates=True)
                .execute()
            )
        except Exception as e:
            logger.error("Upsert into %s failed: %s", self.table, e)
            raise PersistenceError(f"데이터베이스 저장 실패: {e}") from e

        inserted = len(response.data or [])
        return PersistenceResult(
            total_submitted=len(rows),
            new_records=inserted,
            duplicates_ignored=len(rows) - inserted,
        )


class InMemoryExpenseGateway:
    """Process-local gateway with the same uniqueness semantics as the table.

    Used for dry runs and tests.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._fingerprints: Dict[str, Set[str]] = {}
        self._rows: Dict[str, List[dict]] = {}

    def persist(
        self, owner_id: str, records: Sequence[StampedRecord]
    ) -> PersistenceResult:
        if not records:
            return PersistenceResult()

        inserted = 0
        with self._lock:
            seen = self._fingerprints.setdefault(owner_id, set())
            stored = self._rows.setdefault(owner_id, [])
            for record in records:
                if record.fingerprint in seen:
                    continue
                seen.add(record.fingerprint)
                stored.append(to_row(owner_id, record))
                inserted += 1

        return PersistenceResult(
            total_submitted=len(records),
            new_records=inserted,
            duplicates_ignored=len(records) - inserted,
        )

    def rows(self, owner_id: str) -> List[dict]:
        with self._lock:
            return list(self._rows.get(owner_id, []))
