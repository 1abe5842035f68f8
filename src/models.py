from dataclasses import dataclass
from decimal import (
    Context, Decimal, DivisionByZero, Inexact, InvalidOperation, Overflow,
    MAX_EMAX, MAX_PREC, MIN_EMIN, ROUND_HALF_EVEN,
)
from enum import Enum
from typing import Optional, Union

Amount = Decimal

# Balance arithmetic never rounds: anything inexact raises instead.
EXACT = Context(
    prec=MAX_PREC,
    Emax=MAX_EMAX,
    Emin=MIN_EMIN,
    traps=[InvalidOperation, DivisionByZero, Overflow, Inexact],
)

# Output rounding to four places, wide enough for any balance.
OUTPUT = Context(prec=MAX_PREC, Emax=MAX_EMAX, Emin=MIN_EMIN, rounding=ROUND_HALF_EVEN)

MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1

FOUR_PLACES = Decimal("0.0001")


class MalformedTransaction(ValueError):
    """Raised when a raw record cannot be turned into a Transaction."""

    def __init__(self, message: str, transaction_id: Optional[int] = None):
        super().__init__(message)
        self.transaction_id = transaction_id


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"

    @property
    def carries_amount(self) -> bool:
        return self in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL)


class ProcessingResult(Enum):
    APPLIED = "applied"
    IGNORED = "ignored"


class DisputeState(Enum):
    NORMAL = "normal"
    DISPUTED = "disputed"
    RESOLVED = "resolved"
    CHARGED_BACK = "charged_back"


def parse_amount(text: str) -> Amount:
    """Parse an exact decimal amount, rejecting NaN, infinities and digit separators."""
    text = text.strip()
    if not text.isascii() or "_" in text:
        raise MalformedTransaction(f"invalid amount {text!r}")
    try:
        amount = Decimal(text)
    except InvalidOperation:
        raise MalformedTransaction(f"invalid amount {text!r}")
    if not amount.is_finite():
        raise MalformedTransaction(f"invalid amount {text!r}")
    return amount


def format_amount(value: Amount) -> str:
    """Format decimal with exactly 4 decimal places."""
    return f"{value.quantize(FOUR_PLACES, context=OUTPUT):f}"


def _parse_id(value: Union[int, str], name: str, upper: int) -> int:
    if isinstance(value, str):
        # Plain ASCII digits only: no sign, no underscores.
        digits = value.strip()
        if not (digits.isascii() and digits.isdigit()):
            raise MalformedTransaction(f"invalid {name} {value!r}")
        value = digits
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise MalformedTransaction(f"invalid {name} {value!r}")
    if not 0 <= parsed <= upper:
        raise MalformedTransaction(f"{name} {parsed} out of range")
    return parsed


@dataclass(frozen=True)
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Amount] = None

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"

    @classmethod
    def from_record(
        cls,
        type_tag: Union[TransactionType, str],
        client_id: Union[int, str],
        transaction_id: Union[int, str],
        amount: Optional[Union[Amount, str]] = None,
    ) -> "Transaction":
        """
        Build a Transaction from raw record fields.

        Deposits and withdrawals need a parseable amount. Disputes, resolves
        and chargebacks ignore whatever amount the record carries.

        Raises:
            MalformedTransaction: unknown type, bad ids, missing or invalid amount
        """
        if isinstance(type_tag, TransactionType):
            transaction_type = type_tag
        else:
            try:
                transaction_type = TransactionType(str(type_tag).strip().lower())
            except ValueError:
                raise MalformedTransaction(f"unknown transaction type {type_tag!r}")

        transaction_id = _parse_id(transaction_id, "transaction id", MAX_TRANSACTION_ID)
        client_id = _parse_id(client_id, "client id", MAX_CLIENT_ID)

        if not transaction_type.carries_amount:
            return cls(transaction_type, client_id, transaction_id)

        if amount is None or (isinstance(amount, str) and not amount.strip()):
            raise MalformedTransaction(
                f"{transaction_type.value} tx {transaction_id}: missing amount",
                transaction_id,
            )
        if not isinstance(amount, Decimal):
            try:
                amount = parse_amount(str(amount))
            except MalformedTransaction as e:
                raise MalformedTransaction(
                    f"{transaction_type.value} tx {transaction_id}: {e}",
                    transaction_id,
                ) from e
        elif not amount.is_finite():
            raise MalformedTransaction(
                f"{transaction_type.value} tx {transaction_id}: invalid amount {amount}",
                transaction_id,
            )

        return cls(transaction_type, client_id, transaction_id, amount)


@dataclass
class ClientAccount:
    client_id: int
    available: Amount = Decimal("0")
    held: Amount = Decimal("0")
    total: Amount = Decimal("0")
    locked: bool = False

    @property
    def is_balanced(self) -> bool:
        return self.total == EXACT.add(self.available, self.held)

    def credit(self, amount: Amount) -> None:
        self.available = EXACT.add(self.available, amount)
        self.total = EXACT.add(self.total, amount)

    def debit(self, amount: Amount) -> None:
        self.available = EXACT.subtract(self.available, amount)
        self.total = EXACT.subtract(self.total, amount)

    def hold(self, amount: Amount) -> None:
        self.available = EXACT.subtract(self.available, amount)
        self.held = EXACT.add(self.held, amount)

    def release_hold(self, amount: Amount) -> None:
        self.held = EXACT.subtract(self.held, amount)
        self.available = EXACT.add(self.available, amount)

    def charge_back(self, amount: Amount) -> None:
        self.held = EXACT.subtract(self.held, amount)
        self.total = EXACT.subtract(self.total, amount)
        self.locked = True


class ProcessingStats:
    """Counters for tracking processing statistics."""

    def __init__(self):
        self.applied = 0
        self.ignored = 0
        self.malformed = 0

    def record(self, result: ProcessingResult) -> None:
        if result == ProcessingResult.APPLIED:
            self.applied += 1
        else:
            self.ignored += 1

    def record_malformed(self) -> None:
        self.malformed += 1

    def __repr__(self) -> str:
        return f"Applied: {self.applied}, Ignored: {self.ignored}, Malformed: {self.malformed}"
