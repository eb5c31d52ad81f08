import logging
from typing import Iterable, Optional

from .models import (
    Event,
    PointEntry,
    Transaction,
    SpendResponse,
)

logger = logging.getLogger("payer_points.service")


class PointsServiceError(Exception):
    pass


class InsolvencyError(PointsServiceError):
    def __init__(self, requested: int, shortfall: int, payer: Optional[str] = None):
        self.requested = requested
        self.shortfall = shortfall
        self.payer = payer
        if payer is None:
            message = (
                f"Cannot deduct {requested} points: {shortfall} more than the available balance"
            )
        else:
            message = (
                f"Cannot deduct {requested} points from {payer}: "
                f"balance would go negative by {shortfall}"
            )
        super().__init__(message)


class InvalidSpendError(PointsServiceError):
    pass


class TransactionParseError(PointsServiceError):
    pass


class PointQueue:
    """Point entries in chronological order, with a head past the spent ones.

    Entries are held by reference, so two queues built over the same entries
    observe each other's deductions.
    """

    def __init__(self, entries: Optional[Iterable[PointEntry]] = None):
        self.entries: list[PointEntry] = list(entries or [])
        self.head = 0

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def append(self, entry: PointEntry) -> None:
        self.entries.append(entry)

    def outstanding(self) -> list[PointEntry]:
        return self.entries[self.head:]


def deduct_points(queue: PointQueue, amount: int, payer: Optional[str] = None) -> int:
    """Remove `amount` points from the front of `queue`, oldest entry first.

    Each entry is drained before the next one is touched; the last entry
    touched may be left partially consumed. Entries already at zero are
    stepped over wherever they sit. Returns the new head position.

    Raises InsolvencyError when the queue runs out before `amount` is covered.
    """
    if amount < 0:
        raise ValueError(f"Deduction amount must be non-negative, got {amount}")

    remaining = amount
    head = queue.head
    entries = queue.entries
    while remaining > 0 and head < len(entries):
        entry = entries[head]
        if remaining <= entry.points:
            entry.points -= remaining
            remaining = 0
        else:
            remaining -= entry.points
            entry.points = 0

        if entry.points == 0:
            head += 1

    queue.head = head
    if remaining != 0:
        raise InsolvencyError(amount, remaining, payer)

    logger.debug("Deducted %d points%s, head now at %d",
                 amount, f" from {payer}" if payer else "", head)
    return head


def order_events(transactions: Iterable[Transaction]) -> list[Event]:
    events = [Event.from_transaction(t, i) for i, t in enumerate(transactions)]
    events.sort(key=lambda e: e.sort_key)
    return events


class BalanceLedger:
    """Per-payer grant queues, with clawbacks resolved as they arrive."""

    def __init__(self):
        self.payer_queues: dict[str, PointQueue] = {}
        self.global_queue = PointQueue()

    def record(self, event: Event) -> None:
        queue = self.payer_queues.setdefault(event.payer, PointQueue())
        if event.points > 0:
            entry = PointEntry(payer=event.payer, points=event.points, timestamp=event.timestamp)
            queue.append(entry)
            self.global_queue.append(entry)
        else:
            deduct_points(queue, -event.points, payer=event.payer)

    def record_all(self, events: Iterable[Event]) -> "BalanceLedger":
        for event in events:
            self.record(event)
        return self

    def balances(self) -> dict[str, int]:
        return {
            payer: sum(e.points for e in queue)
            for payer, queue in self.payer_queues.items()
        }


class SpendAllocator:
    """Spends points across every payer's grants, oldest grant first."""

    def __init__(self, ledger: BalanceLedger):
        self.ledger = ledger
        self._before: Optional[dict[str, int]] = None

    def spend(self, amount: int) -> None:
        # Fresh cursor: clawback-zeroed entries are skipped by the deduction itself.
        queue = PointQueue(self.ledger.global_queue)
        self._before = self.ledger.balances()
        deduct_points(queue, amount)

    def balances(self) -> dict[str, int]:
        return self.ledger.balances()

    def allocation(self) -> dict[str, int]:
        if self._before is None:
            return {}
        after = self.balances()
        return {
            payer: self._before[payer] - after[payer]
            for payer in self._before
            if self._before[payer] != after[payer]
        }


class PointsService:
    def process(self, transactions: Iterable[Transaction], points_to_spend: int) -> SpendResponse:
        if points_to_spend < 0:
            raise InvalidSpendError(f"Points to spend must be non-negative, got {points_to_spend}")

        events = order_events(transactions)
        ledger = BalanceLedger().record_all(events)
        allocator = SpendAllocator(ledger)
        allocator.spend(points_to_spend)

        balances = allocator.balances()
        logger.info("Spent %d points across %d payers from %d transactions",
                    points_to_spend, len(balances), len(events))
        return SpendResponse(
            balances=balances,
            spent=allocator.allocation(),
            total_points=sum(balances.values()),
            message=f"Spent {points_to_spend} points successfully",
        )

    def get_balances(self, transactions: Iterable[Transaction]) -> dict[str, int]:
        return BalanceLedger().record_all(order_events(transactions)).balances()
