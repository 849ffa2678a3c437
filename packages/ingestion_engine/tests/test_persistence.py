import threading
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from packages.ingestion_engine.errors import PersistenceError
from packages.ingestion_engine.fingerprint import stamp_records
from packages.ingestion_engine.models import ExpenseRecord, PersistenceResult
from packages.ingestion_engine.persistence import (
    InMemoryExpenseGateway,
    SupabaseExpenseGateway,
    to_row,
)


def _records(n, day="2025-01-15"):
    return stamp_records(
        ExpenseRecord(
            date=day,
            category="식비",
            content=f"지출 {i}",
            payment_method="카드",
            amount=Decimal(-1000 * (i + 1)),
            memo="",
            source_row=i + 2,
        )
        for i in range(n)
    )


class TestInMemoryGateway:
    def test_resubmission_is_counted_as_duplicates(self):
        gateway = InMemoryExpenseGateway()
        batch = _records(5)

        first = gateway.persist("user-1", batch)
        second = gateway.persist("user-1", batch)

        assert first == PersistenceResult(total_submitted=5, new_records=5, duplicates_ignored=0)
        assert second == PersistenceResult(total_submitted=5, new_records=0, duplicates_ignored=5)
        assert len(gateway.rows("user-1")) == 5

    def test_owners_are_independent(self):
        gateway = InMemoryExpenseGateway()
        batch = _records(3)

        assert gateway.persist("user-1", batch).new_records == 3
        assert gateway.persist("user-2", batch).new_records == 3

    def test_duplicates_within_one_batch(self):
        gateway = InMemoryExpenseGateway()
        (record,) = _records(1)

        result = gateway.persist("user-1", [record, record, record])

        assert result.new_records == 1
        assert result.duplicates_ignored == 2
        assert result.total_submitted == 3

    def test_empty_batch(self):
        assert InMemoryExpenseGateway().persist("user-1", []) == PersistenceResult()

    def test_concurrent_overlapping_submissions_insert_once(self):
        gateway = InMemoryExpenseGateway()
        batch = _records(50)
        results = []

        def submit():
            results.append(gateway.persist("user-1", batch))

        threads = [threading.Thread(target=submit) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sum(r.new_records for r in results) == 50
        assert sum(r.duplicates_ignored for r in results) == 50 * 7
        assert len(gateway.rows("user-1")) == 50


class TestSupabaseGateway:
    @pytest.fixture
    def client(self):
        return MagicMock()

    def test_upserts_with_conflict_target(self, client):
        batch = _records(3)
        client.table.return_value.upsert.return_value.execute.return_value = MagicMock(
            data=[{"id": 1}, {"id": 2}]
        )

        result = SupabaseExpenseGateway(client).persist("user-1", batch)

        client.table.assert_called_once_with("shared_expenses")
        rows = client.table.return_value.upsert.call_args.args[0]
        kwargs = client.table.return_value.upsert.call_args.kwargs
        assert kwargs == {"on_conflict": "user_id,unique_hash", "ignore_duplicates": True}
        assert [row["unique_hash"] for row in rows] == [r.fingerprint for r in batch]
        assert all(row["user_id"] == "user-1" for row in rows)
        assert result == PersistenceResult(total_submitted=3, new_records=2, duplicates_ignored=1)

    def test_empty_batch_does_not_contact_store(self, client):
        result = SupabaseExpenseGateway(client).persist("user-1", [])

        assert result == PersistenceResult()
        client.table.assert_not_called()

    def test_store_failure_is_wrapped(self, client):
        client.table.return_value.upsert.return_value.execute.side_effect = RuntimeError(
            "connection reset"
        )

        with pytest.raises(PersistenceError, match="connection reset") as exc_info:
            SupabaseExpenseGateway(client, table="expenses").persist("user-1", _records(1))

        assert isinstance(exc_info.value.__cause__, RuntimeError)
        client.table.assert_called_once_with("expenses")


def test_to_row_maps_table_columns():
    (record,) = _records(1)

    assert to_row("user-1", record) == {
        "user_id": "user-1",
        "expense_date": "2025-01-15",
        "category_main": "식비",
        "content": "지출 0",
        "amount": -1000.0,
        "memo": "",
        "payment_method": "카드",
        "unique_hash": record.fingerprint,
    }


def test_persistence_result_enforces_totals():
    with pytest.raises(ValueError):
        PersistenceResult(total_submitted=3, new_records=1, duplicates_ignored=1)
