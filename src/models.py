from collections import Counter
from dataclasses import dataclass, field
from decimal import Context, Decimal, DivisionByZero, Inexact, InvalidOperation, Overflow, ROUND_HALF_EVEN
from enum import Enum
from typing import Dict, Optional, Set

CURRENCY_PRECISION = 4
CLIENT_ID_MAX = 2**16 - 1
TRANSACTION_ID_MAX = 2**32 - 1

_QUANTUM = Decimal(1).scaleb(-CURRENCY_PRECISION)

# Accepted amounts stay below 10**24: at most 24 integer digits at 4 places.
AMOUNT_LIMIT = Decimal(10) ** 24
AMOUNT_MAX = AMOUNT_LIMIT - _QUANTUM

# Balance arithmetic is exact: any rounding raises decimal.Inexact instead of drifting.
LEDGER_CONTEXT = Context(prec=64, rounding=ROUND_HALF_EVEN, traps=[InvalidOperation, DivisionByZero, Overflow, Inexact])
_ROUNDING_CONTEXT = Context(prec=64, rounding=ROUND_HALF_EVEN, traps=[InvalidOperation, DivisionByZero, Overflow])


def round_amount(amount: Decimal) -> Decimal:
    """Round to the canonical 4 fractional digits (banker's rounding)."""
    return amount.quantize(_QUANTUM, context=_ROUNDING_CONTEXT)


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
    ACCOUNT_LOCKED = "account_locked"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    UNKNOWN_TRANSACTION = "unknown_transaction"
    ALREADY_DISPUTED = "already_disputed"
    NOT_DISPUTED = "not_disputed"

    @property
    def applied(self) -> bool:
        return self is ProcessingResult.APPLIED


@dataclass(frozen=True)
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None

    def __post_init__(self) -> None:
        # Only deposits and withdrawals carry money; the others look it up.
        if not self.transaction_type.carries_amount:
            object.__setattr__(self, "amount", None)
        elif self.amount is not None:
            object.__setattr__(self, "amount", round_amount(self.amount))

    @classmethod
    def deposit(cls, client_id: int, transaction_id: int, amount: Decimal) -> "Transaction":
        return cls(TransactionType.DEPOSIT, client_id, transaction_id, amount)

    @classmethod
    def withdrawal(cls, client_id: int, transaction_id: int, amount: Decimal) -> "Transaction":
        return cls(TransactionType.WITHDRAWAL, client_id, transaction_id, amount)

    @classmethod
    def dispute(cls, client_id: int, transaction_id: int) -> "Transaction":
        return cls(TransactionType.DISPUTE, client_id, transaction_id)

    @classmethod
    def resolve(cls, client_id: int, transaction_id: int) -> "Transaction":
        return cls(TransactionType.RESOLVE, client_id, transaction_id)

    @classmethod
    def chargeback(cls, client_id: int, transaction_id: int) -> "Transaction":
        return cls(TransactionType.CHARGEBACK, client_id, transaction_id)

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass(frozen=True)
class Balance:
    available: Decimal
    held: Decimal
    total: Decimal

    @classmethod
    def zero(cls) -> "Balance":
        return cls(Decimal("0"), Decimal("0"), Decimal("0"))


@dataclass
class ClientAccount:
    """
    Balances for one client plus the bookkeeping disputes need.

    `transactions` is the append-only log of deposits and withdrawals keyed by
    transaction id. It is never pruned: resolve and chargeback re-read the
    original amount after a dispute has been opened.
    """

    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    locked: bool = False
    disputes: Set[int] = field(default_factory=set)
    transactions: Dict[int, Transaction] = field(default_factory=dict)

    @property
    def total(self) -> Decimal:
        return LEDGER_CONTEXT.add(self.available, self.held)

    def credit(self, amount: Decimal) -> None:
        self.available = LEDGER_CONTEXT.add(self.available, amount)

    def debit(self, amount: Decimal) -> None:
        self.available = LEDGER_CONTEXT.subtract(self.available, amount)

    def hold(self, amount: Decimal) -> None:
        self.debit(amount)
        self.held = LEDGER_CONTEXT.add(self.held, amount)

    def release_hold(self, amount: Decimal) -> None:
        self.remove_held(amount)
        self.credit(amount)

    def remove_held(self, amount: Decimal) -> None:
        self.held = LEDGER_CONTEXT.subtract(self.held, amount)

    def lock(self) -> None:
        self.locked = True

    def log_transaction(self, transaction: Transaction) -> None:
        # First entry wins so a disputed amount can never change underneath a hold.
        self.transactions.setdefault(transaction.transaction_id, transaction)

    def get_logged_transaction(self, transaction_id: int) -> Optional[Transaction]:
        return self.transactions.get(transaction_id)

    def snapshot(self) -> Balance:
        return Balance(available=self.available, held=self.held, total=self.total)


class ProcessingStats:
    """Counters for a single processing run."""

    def __init__(self):
        self.applied = 0
        self.ignored = 0
        self.skipped_malformed = 0
        self.results: Counter = Counter()

    def record_result(self, result: ProcessingResult) -> None:
        self.results[result] += 1
        if result.applied:
            self.applied += 1
        else:
            self.ignored += 1

    def record_malformed(self) -> None:
        self.skipped_malformed += 1

    def ignored_breakdown(self) -> str:
        """Ignored results by reason, e.g. `insufficient_funds=2, not_disputed=1`."""
        reasons = sorted(
            (result.value, count) for result, count in self.results.items() if not result.applied
        )
        return ", ".join(f"{reason}={count}" for reason, count in reasons)

    def summary(self) -> str:
        ignored = f"{self.ignored}"
        if self.ignored:
            ignored += f" ({self.ignored_breakdown()})"
        return f"Applied: {self.applied}, Ignored: {ignored}, Skipped malformed: {self.skipped_malformed}"
