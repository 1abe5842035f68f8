import sys
import os
import csv
import io
from decimal import Decimal

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models import Transaction, TransactionType, MalformedTransaction
from reader import parse_row, read_transactions, open_transactions


class TestParseRow:
    def test_whitespace_around_keys_and_values(self):
        row = {"type": " deposit", " client": " 1", " tx": " 2", " amount": " 1.5 "}
        assert parse_row(row) == Transaction(TransactionType.DEPOSIT, 1, 2, Decimal("1.5"))

    def test_short_row_for_dispute(self):
        row = {"type": "dispute", "client": "1", "tx": "2", "amount": None}
        assert parse_row(row) == Transaction(TransactionType.DISPUTE, 1, 2)

    def test_missing_column(self):
        with pytest.raises(MalformedTransaction, match="missing client, tx"):
            parse_row({"type": "deposit", "client": None, "tx": ""})

    def test_extra_columns_ignored(self):
        row = {"type": "deposit", "client": "1", "tx": "2", "amount": "3", None: ["junk"]}
        assert parse_row(row).amount == Decimal("3")


class TestReadTransactions:
    def test_yields_transactions_and_errors_in_order(self):
        stream = io.StringIO("\n".join([
            "type, client, tx, amount",
            "deposit, 1, 1, 1.0",
            "deposit, 1, 2,",
            "withdrawal, 1, 3, abc",
            "dispute, 1, 1,",
            "bacon, 1, 4, 1.0",
            "resolve, 1, 1",
        ]))

        records = list(read_transactions(stream))

        assert len(records) == 6
        assert records[0] == Transaction(TransactionType.DEPOSIT, 1, 1, Decimal("1.0"))
        assert isinstance(records[1], MalformedTransaction)
        assert "missing amount" in str(records[1])
        assert isinstance(records[2], MalformedTransaction)
        assert "invalid amount" in str(records[2])
        assert records[3] == Transaction(TransactionType.DISPUTE, 1, 1)
        assert isinstance(records[4], MalformedTransaction)
        assert records[5] == Transaction(TransactionType.RESOLVE, 1, 1)

    def test_is_lazy(self):
        lines = iter(["type,client,tx,amount\n", "deposit,1,1,1\n", "deposit,1,2,2\n"])
        records = read_transactions(lines)

        assert next(records).transaction_id == 1
        assert next(lines) == "deposit,1,2,2\n"
        assert list(records) == []

    def test_header_only(self):
        assert list(read_transactions(io.StringIO("type,client,tx,amount\n"))) == []


class TestOpenTransactions:
    def test_reads_file(self, tmp_path):
        csv_file = tmp_path / "test.csv"
        csv_file.write_text("type,client,tx,amount\ndeposit,3,4,5\n")

        with open_transactions(str(csv_file)) as records:
            assert list(records) == [Transaction(TransactionType.DEPOSIT, 3, 4, Decimal("5"))]

    def test_missing_file_is_fatal(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            with open_transactions(str(tmp_path / "nope.csv")):
                pass

    def test_undecodable_bytes_skip_only_that_row(self, tmp_path):
        csv_file = tmp_path / "test.csv"
        csv_file.write_bytes(b"type,client,tx,amount\ndeposit,1,1,5\ndeposit,2,2,\xff\xfe\ndeposit,3,3,7\n")

        with open_transactions(str(csv_file)) as records:
            records = list(records)

        assert records[0] == Transaction(TransactionType.DEPOSIT, 1, 1, Decimal("5"))
        assert isinstance(records[1], MalformedTransaction)
        assert "not valid UTF-8" in str(records[1])
        assert records[2] == Transaction(TransactionType.DEPOSIT, 3, 3, Decimal("7"))


class TestUnreadableRows:
    def test_oversized_field_is_malformed(self):
        stream = io.StringIO("type,client,tx,amount\ndeposit,1,1,5\ndeposit,2,2,12345678901234567890\ndeposit,3,3,7\n")

        old_limit = csv.field_size_limit(10)
        try:
            records = list(read_transactions(stream))
        finally:
            csv.field_size_limit(old_limit)

        assert len(records) == 3
        assert records[0].client_id == 1
        assert isinstance(records[1], MalformedTransaction)
        assert "line 3" in str(records[1])
        assert records[2].client_id == 3
