"""Persisted counter that hands out order transaction ids (``TXN-00000001``)."""

import threading

from protean import UnitOfWork
from protean.fields import Integer, String
from protean.utils.globals import current_domain

from bookstore.domain import bookstore

ORDER_TRANSACTIONS = "order-transactions"

# Serialises read-increment-write of the counter within this process
_sequence_lock = threading.Lock()


@bookstore.aggregate
class TransactionSequence:
    name = String(required=True, max_length=50, unique=True)
    value = Integer(default=0, min_value=0)

    def advance(self) -> int:
        self.value = (self.value or 0) + 1
        return self.value


@bookstore.repository(part_of=TransactionSequence)
class TransactionSequenceRepository:
    def find_by_name(self, name) -> TransactionSequence | None:
        return self._dao.query.filter(name=name).all().first


def format_transaction_id(value: int) -> str:
    return f"TXN-{value:08d}"


def next_transaction_id(name: str = ORDER_TRANSACTIONS) -> str:
    """Advance the named sequence and return the formatted id.

    The counter commits in its own unit of work while the lock is held, so two
    checkouts never read the same value. A checkout that later fails leaves a
    gap in the sequence; ids stay unique and increasing.
    """
    with _sequence_lock, UnitOfWork():
        repo = current_domain.repository_for(TransactionSequence)
        sequence = repo.find_by_name(name)
        if sequence is None:
            sequence = TransactionSequence(name=name, value=0)
        value = sequence.advance()
        repo.add(sequence)
    return format_transaction_id(value)
