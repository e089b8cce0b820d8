"""Integration tests for writing and reading audit entries against SQLite.

These tests verify:
- Entries persisted by the writer are read back newest first
- Object, date, transaction and discriminator filters
- Pagination and counts
"""

from datetime import datetime, timedelta

import pytest

from audit_trail.core.audit.transaction import Transaction
from audit_trail.core.errors import InvalidArgumentError, NotAuditableError
from audit_trail.core.permissions import Identity
from audit_trail.provider import AuditProvider
from audit_trail.reader import AuditFilter
from tests.models import Animal, Cat, Customer, Dog, Invoice


pytestmark = pytest.mark.integration


START = datetime(2024, 1, 1, 9, 0, 0)
ALICE = Identity(id="1", username="alice", firewall="main")


@pytest.fixture
def synced(provider: AuditProvider) -> AuditProvider:
    """Provider whose audit tables exist."""
    assert provider.schema_manager.apply() == []
    return provider


@pytest.fixture
def transaction(synced: AuditProvider) -> Transaction:
    """Persist a transaction touching invoices, a customer and animals."""
    transaction = synced.new_transaction()
    for minute, (object_id, type_) in enumerate(
        [(42, "insert"), (42, "update"), (7, "insert"), (42, "update")]
    ):
        transaction.add(
            Invoice,
            type_,
            object_id,
            diffs={"number": {"old": None, "new": f"INV-{minute}"}},
            blame=ALICE,
            ip="10.0.0.1",
            created_at=START + timedelta(minutes=minute),
        )
    transaction.add(Customer, "insert", 1, created_at=START)
    transaction.add(Dog, "insert", 3, created_at=START)
    transaction.add(Cat, "insert", 4, created_at=START)

    assert synced.persist(transaction) == 7
    return transaction


class TestWriteAndRead:
    """Round trips through the writer and the reader."""

    def test_newest_first(self, synced: AuditProvider, transaction: Transaction) -> None:
        entries = synced.reader.list_audits(Invoice)

        assert [entry.created_at for entry in entries] == sorted(
            (entry.created_at for entry in entries), reverse=True
        )
        assert len(entries) == 4

    def test_entry_fields(self, synced: AuditProvider, transaction: Transaction) -> None:
        entry = synced.reader.list_audits(Invoice)[0]

        assert entry.type == "update"
        assert entry.object_id == "42"
        assert entry.transaction_hash == transaction.transaction_hash
        assert entry.blame_user == "alice"
        assert entry.blame_user_firewall == "main"
        assert entry.ip == "10.0.0.1"
        assert entry.get_diffs() == {"number": {"old": None, "new": "INV-3"}}
        assert entry.discriminator is None

    def test_object_filter(self, synced: AuditProvider, transaction: Transaction) -> None:
        entries = synced.reader.list_audits(Invoice, AuditFilter(object_id=42))

        assert len(entries) == 3
        assert {entry.object_id for entry in entries} == {"42"}

    def test_get_one(self, synced: AuditProvider, transaction: Transaction) -> None:
        synced.reader.set_type_filter("update")

        entries = synced.reader.get_one(Invoice, 42)

        assert len(entries) == 2
        assert {entry.type for entry in entries} == {"update"}

    def test_date_range(self, synced: AuditProvider, transaction: Transaction) -> None:
        """Both bounds are inclusive."""
        filters = AuditFilter(
            start_date=START + timedelta(minutes=1),
            end_date=START + timedelta(minutes=2),
        )

        entries = synced.reader.list_audits(Invoice, filters)

        assert [entry.created_at for entry in entries] == [
            START + timedelta(minutes=2),
            START + timedelta(minutes=1),
        ]

    def test_strict_discriminator(self, synced: AuditProvider, transaction: Transaction) -> None:
        """Subclasses sharing a table only see their own entries."""
        dogs = synced.reader.list_audits(Dog)
        all_animals = synced.reader.list_audits(Dog, AuditFilter(strict=False))

        assert [entry.discriminator for entry in dogs] == ["Dog"]
        assert {entry.discriminator for entry in all_animals} == {"Dog", "Cat"}
        assert synced.reader.list_audits(Animal) == []

    def test_by_transaction(self, synced: AuditProvider, transaction: Transaction) -> None:
        results = synced.reader.list_by_transaction(transaction.transaction_hash)

        assert set(results) == {"Cat", "Customer", "Dog", "Invoice"}
        assert len(results["Invoice"]) == 4
        assert results.denied == []

    def test_unknown_transaction(self, synced: AuditProvider, transaction: Transaction) -> None:
        assert synced.reader.list_by_transaction("0" * 40) == {}


class TestPaginationAndCount:
    """Pagination and counting over persisted entries."""

    def test_count(self, synced: AuditProvider, transaction: Transaction) -> None:
        assert synced.reader.count(Invoice) == 4
        assert synced.reader.count(Invoice, AuditFilter(object_id=7)) == 1

    def test_count_empty_table(self, synced: AuditProvider) -> None:
        assert synced.reader.count(Customer) == 0

    def test_paginate(self, synced: AuditProvider, transaction: Transaction) -> None:
        first = synced.reader.paginate(Invoice, page=1, page_size=3)
        second = synced.reader.paginate(Invoice, page=2, page_size=3)

        assert len(first.results) == 3
        assert first.has_next_page
        assert first.num_pages == 2
        assert len(second.results) == 1
        assert not second.has_next_page
        assert second.previous_page == 1
        assert {e.id for e in first.results}.isdisjoint({e.id for e in second.results})

    def test_page_past_the_end(self, synced: AuditProvider, transaction: Transaction) -> None:
        page = synced.reader.paginate(Invoice, page=5, page_size=3)

        assert page.results == []
        assert page.total == 4


class TestWriterErrors:
    """Tests for writer validation."""

    def test_not_auditable(self, synced: AuditProvider) -> None:
        transaction = synced.new_transaction()
        transaction.add("Note", "insert", 1)

        with pytest.raises(NotAuditableError):
            synced.persist(transaction)

    def test_persist_twice(self, synced: AuditProvider) -> None:
        transaction = synced.new_transaction()
        transaction.add(Invoice, "insert", 1)
        synced.persist(transaction)

        with pytest.raises(InvalidArgumentError):
            synced.persist(transaction)

    def test_disabled(self, synced: AuditProvider) -> None:
        """Nothing is written while auditing is globally disabled."""
        synced.configuration.enabled = False
        transaction = synced.new_transaction()
        transaction.add(Invoice, "insert", 1)

        assert synced.persist(transaction) == 0
        assert synced.reader.count(Invoice) == 0
