from decimal import Decimal
from typing import Dict, Optional

from models import ClientAccount, DisputeState


class LedgerState:
    """
    Mutable replay state owned by a single engine run.
    Stores client accounts and the signed amount of every applied
    deposit/withdrawal for later dispute lookups.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}
        self._resolved_amounts: Dict[int, Decimal] = {}
        self._transaction_clients: Dict[int, int] = {}
        self._dispute_states: Dict[int, DisputeState] = {}

    @property
    def resolved_amounts(self) -> Dict[int, Decimal]:
        return self._resolved_amounts

    def get_or_create_account(self, client_id: int) -> ClientAccount:
        """Get existing account or create new one."""
        if client_id not in self._accounts:
            self._accounts[client_id] = ClientAccount(client_id=client_id)
        return self._accounts[client_id]

    def get_account(self, client_id: int) -> Optional[ClientAccount]:
        return self._accounts.get(client_id)

    def record_amount(self, transaction_id: int, client_id: int, signed_amount: Decimal) -> None:
        """Store the net effect of a deposit (positive) or withdrawal (negative)."""
        self._resolved_amounts[transaction_id] = signed_amount
        self._transaction_clients[transaction_id] = client_id
        self._dispute_states[transaction_id] = DisputeState.NORMAL

    def get_resolved_amount(self, transaction_id: int) -> Optional[Decimal]:
        return self._resolved_amounts.get(transaction_id)

    def get_transaction_client(self, transaction_id: int) -> Optional[int]:
        return self._transaction_clients.get(transaction_id)

    def get_dispute_state(self, transaction_id: int) -> Optional[DisputeState]:
        return self._dispute_states.get(transaction_id)

    def set_dispute_state(self, transaction_id: int, dispute_state: DisputeState) -> None:
        self._dispute_states[transaction_id] = dispute_state

    def get_all_accounts(self) -> Dict[int, ClientAccount]:
        """Return all accounts (for final output)."""
        return dict(self._accounts)
