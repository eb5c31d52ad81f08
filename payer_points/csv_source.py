"""
CSV transaction source and JSON balance sink.

The transaction file has a header row followed by `payer,points,timestamp`
records. Records that cannot be turned into a valid Transaction are rejected:
skipped with a warning, or raised as TransactionParseError in strict mode.
"""

import csv
import io
import json
import logging
from pathlib import Path
from typing import Optional, TextIO, Union

from pydantic import ValidationError

from .models import CsvTransaction, Transaction
from .service import TransactionParseError
from .settings import strict_csv

logger = logging.getLogger("payer_points.csv_source")

FIELDS = ("payer", "points", "timestamp")


def read_transactions(stream: TextIO, strict: Optional[bool] = None) -> list[Transaction]:
    if strict is None:
        strict = strict_csv()

    reader = csv.reader(stream)
    transactions = []
    try:
        # First line holds the column headers.
        if next(reader, None) is None:
            return transactions

        for record in reader:
            line = reader.line_num
            if len(record) != len(FIELDS):
                _reject(line, f"expected {len(FIELDS)} fields, got {len(record)}", strict)
                continue
            try:
                transactions.append(CsvTransaction(**dict(zip(FIELDS, record))))
            except ValidationError as e:
                problems = "; ".join(
                    f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
                )
                _reject(line, problems, strict)
    except csv.Error as e:
        raise TransactionParseError(f"Malformed CSV at line {reader.line_num}: {e}") from e

    logger.info("Read %d transactions", len(transactions))
    return transactions


def load_transactions(path: Union[str, Path], strict: Optional[bool] = None) -> list[Transaction]:
    with open(path, newline="", encoding="utf-8") as f:
        return read_transactions(f, strict=strict)


def parse_transactions(text: str, strict: Optional[bool] = None) -> list[Transaction]:
    return read_transactions(io.StringIO(text, newline=""), strict=strict)


def dump_balances(balances: dict[str, int]) -> str:
    return json.dumps(balances, indent="\t", sort_keys=True)


def _reject(line: int, reason: str, strict: bool) -> None:
    if strict:
        raise TransactionParseError(f"Invalid transaction record on line {line}: {reason}")
    logger.warning("Skipping invalid transaction record on line %d: %s", line, reason)
