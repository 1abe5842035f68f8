import csv
from contextlib import contextmanager
from typing import Dict, Iterator, Optional, TextIO, Union

from models import Transaction, MalformedTransaction

REQUIRED_COLUMNS = ("type", "client", "tx")

Record = Union[Transaction, MalformedTransaction]


def _is_decodable(text: str) -> bool:
    # Bytes that were not valid UTF-8 come through as lone surrogates.
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def parse_row(row: Dict[Optional[str], Optional[str]]) -> Transaction:
    """Parse CSV row into Transaction."""
    # Short rows leave trailing columns as None; overlong rows collect extras under a None key.
    normalized = {k.strip(): (v or "").strip() for k, v in row.items() if k is not None}

    if not all(_is_decodable(k) and _is_decodable(v) for k, v in normalized.items()):
        raise MalformedTransaction(f"row {row} is not valid UTF-8")

    missing = [column for column in REQUIRED_COLUMNS if not normalized.get(column)]
    if missing:
        raise MalformedTransaction(f"row {row} is missing {', '.join(missing)}")

    return Transaction.from_record(
        normalized["type"],
        normalized["client"],
        normalized["tx"],
        normalized.get("amount") or None,
    )


def read_transactions(stream: TextIO) -> Iterator[Record]:
    """
    Lazily read CSV rows from stream.
    Yields a Transaction per well-formed row and the MalformedTransaction
    error itself for every row that could not be read or parsed.
    """
    reader = csv.DictReader(stream)
    while True:
        try:
            row = next(reader)
        except StopIteration:
            return
        except csv.Error as e:
            yield MalformedTransaction(f"line {reader.reader.line_num}: {e}")
            continue

        try:
            yield parse_row(row)
        except MalformedTransaction as e:
            yield e


@contextmanager
def open_transactions(filepath: str) -> Iterator[Iterator[Record]]:
    """Open a CSV file and yield its record iterator. OSError propagates."""
    with open(filepath, "r", encoding="utf-8", errors="surrogateescape", newline="") as f:
        yield read_transactions(f)
