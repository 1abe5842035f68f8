import logging
from decimal import Decimal
from typing import Optional

from models import EXACT, Transaction, TransactionType, ClientAccount, ProcessingResult, DisputeState
from state import LedgerState

logger = logging.getLogger(__name__)

# Dispute states each follow-up transaction may start from under strict_disputes.
ALLOWED_FROM = {
    TransactionType.DISPUTE: (DisputeState.NORMAL, DisputeState.RESOLVED),
    TransactionType.RESOLVE: (DisputeState.DISPUTED,),
    TransactionType.CHARGEBACK: (DisputeState.DISPUTED,),
}


class TransactionProcessor:
    """
    Applies transactions to ledger state one at a time.
    Returns ProcessingResult to indicate whether the transaction changed state.

    By default the processor is permissive: locked accounts keep accepting
    transactions and a recorded transaction can be disputed, resolved or
    charged back any number of times, in any order. ``strict_disputes`` and
    ``reject_locked`` turn on the stricter policies.
    """

    def __init__(self, state: LedgerState, strict_disputes: bool = False, reject_locked: bool = False):
        self._state = state
        self._strict_disputes = strict_disputes
        self._reject_locked = reject_locked

    def process_transaction(self, transaction: Transaction) -> ProcessingResult:
        """
        Process a single transaction.

        Returns:
            APPLIED: account and ledger state updated
            IGNORED: dropped without any balance change (a warning is logged)
        """
        account = self._state.get_or_create_account(transaction.client_id)

        if self._reject_locked and account.locked:
            logger.warning(f"{transaction}: account {account.client_id} is locked")
            return ProcessingResult.IGNORED

        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                return self._handle_deposit(account, transaction)
            case TransactionType.WITHDRAWAL:
                return self._handle_withdrawal(account, transaction)
            case TransactionType.DISPUTE:
                return self._handle_dispute(account, transaction)
            case TransactionType.RESOLVE:
                return self._handle_resolve(account, transaction)
            case TransactionType.CHARGEBACK:
                return self._handle_chargeback(account, transaction)
            case _:
                return ProcessingResult.IGNORED

    def _handle_deposit(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        account.credit(transaction.amount)
        self._state.record_amount(transaction.transaction_id, account.client_id, transaction.amount)
        return ProcessingResult.APPLIED

    def _handle_withdrawal(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        if account.available < transaction.amount:
            logger.warning(
                f"Withdrawal tx {transaction.transaction_id}: insufficient available funds "
                f"(available {account.available}, requested {transaction.amount})"
            )
            return ProcessingResult.IGNORED

        account.debit(transaction.amount)
        self._state.record_amount(transaction.transaction_id, account.client_id, EXACT.minus(transaction.amount))
        return ProcessingResult.APPLIED

    def _handle_dispute(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        amount = self._lookup(transaction)
        if amount is None:
            return ProcessingResult.IGNORED

        account.hold(amount)
        self._state.set_dispute_state(transaction.transaction_id, DisputeState.DISPUTED)
        return ProcessingResult.APPLIED

    def _handle_resolve(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        amount = self._lookup(transaction)
        if amount is None:
            return ProcessingResult.IGNORED

        account.release_hold(amount)
        self._state.set_dispute_state(transaction.transaction_id, DisputeState.RESOLVED)
        return ProcessingResult.APPLIED

    def _handle_chargeback(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        amount = self._lookup(transaction)
        if amount is None:
            return ProcessingResult.IGNORED

        account.charge_back(amount)
        self._state.set_dispute_state(transaction.transaction_id, DisputeState.CHARGED_BACK)
        return ProcessingResult.APPLIED

    def _lookup(self, transaction: Transaction) -> Optional[Decimal]:
        """
        Find the signed amount a dispute, resolve or chargeback refers to.
        Returns None (after logging why) when the transaction must be ignored.
        """
        kind = transaction.transaction_type.value.capitalize()
        transaction_id = transaction.transaction_id

        amount = self._state.get_resolved_amount(transaction_id)
        if amount is None:
            logger.warning(f"{kind} for tx {transaction_id}: unknown transaction, ignoring")
            return None

        if not self._strict_disputes:
            return amount

        owner = self._state.get_transaction_client(transaction_id)
        if owner != transaction.client_id:
            logger.warning(
                f"{kind} for tx {transaction_id}: client mismatch "
                f"(expected {owner}, got {transaction.client_id}), ignoring"
            )
            return None

        current = self._state.get_dispute_state(transaction_id)
        if current not in ALLOWED_FROM[transaction.transaction_type]:
            logger.warning(f"{kind} for tx {transaction_id}: transaction is {current.value}, ignoring")
            return None

        return amount
