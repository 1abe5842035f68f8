import logging
from typing import Dict, Iterable

from models import ClientAccount, MalformedTransaction, ProcessingStats
from processor import TransactionProcessor
from reader import Record, open_transactions
from state import LedgerState

logger = logging.getLogger(__name__)


class PaymentsEngine:
    """
    Replays a transaction stream, in input order, into per-client accounts.
    Records are consumed one at a time so memory only grows with the number
    of clients and recorded deposits/withdrawals.
    """

    def __init__(self, strict_disputes: bool = False, reject_locked: bool = False):
        self._state = LedgerState()
        self._processor = TransactionProcessor(
            self._state,
            strict_disputes=strict_disputes,
            reject_locked=reject_locked,
        )
        self._stats = ProcessingStats()

    @property
    def state(self) -> LedgerState:
        return self._state

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def replay(self, records: Iterable[Record]) -> Dict[int, ClientAccount]:
        """Apply every well-formed record and return final account states."""
        for record in records:
            if isinstance(record, MalformedTransaction):
                self._stats.record_malformed()
                logger.warning(f"Skipping malformed record: {record}")
                continue

            result = self._processor.process_transaction(record)
            self._stats.record(result)

        return self._state.get_all_accounts()

    def process_file(self, filepath: str) -> Dict[int, ClientAccount]:
        """Process CSV file and return final account states."""
        logger.info(f"Processing {filepath}")

        with open_transactions(filepath) as records:
            accounts = self.replay(records)

        logger.info(f"Processing complete. {self._stats}")
        return accounts
