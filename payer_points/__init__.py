"""
Payer Points Ledger

This module provides:
- Chronological ordering of payer point transactions
- Per-payer clawback resolution, oldest grant first
- Spend allocation across all payers, oldest grant first
- Insolvency detection: no payer balance may go negative
"""

from .models import (
    Transaction,
    Event,
    PointEntry,
    SpendResponse,
)
from .service import (
    PointsService,
    BalanceLedger,
    SpendAllocator,
    PointQueue,
    deduct_points,
    InsolvencyError,
)

__all__ = [
    "Transaction",
    "Event",
    "PointEntry",
    "SpendResponse",
    "PointsService",
    "BalanceLedger",
    "SpendAllocator",
    "PointQueue",
    "deduct_points",
    "InsolvencyError",
]
