import sys
import os
from decimal import Decimal

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from account_store import AccountStore
from ledger import LedgerEngine
from models import Balance, ProcessingResult, Transaction


class TestLedgerEngine:
    def setup_method(self):
        self.store = AccountStore()
        self.ledger = LedgerEngine(self.store)

    def balance(self, client_id=1):
        return self.ledger.get_balance(client_id)

    def test_deposit(self):
        result = self.ledger.execute(Transaction.deposit(1, 1, Decimal("3.14")))

        assert result == ProcessingResult.APPLIED
        assert self.balance() == Balance(Decimal("3.14"), Decimal("0"), Decimal("3.14"))

    def test_deposits_accumulate(self):
        self.ledger.execute(Transaction.deposit(1, 1, Decimal("10")))
        self.ledger.execute(Transaction.deposit(1, 2, Decimal("2")))

        assert self.balance() == Balance(Decimal("12"), Decimal("0"), Decimal("12"))

    def test_deposit_withdraw(self):
        self.ledger.execute(Transaction.deposit(1, 1, Decimal("42.0")))
        result = self.ledger.execute(Transaction.withdrawal(1, 2, Decimal("42.0")))

        assert result == ProcessingResult.APPLIED
        assert self.balance().available == Decimal("0")
        assert 2 in self.store.get_account(1).transactions

    def test_withdraw_exceeds_available(self):
        self.ledger.execute(Transaction.deposit(1, 1, Decimal("42")))
        self.ledger.execute(Transaction.withdrawal(1, 2, Decimal("0.0001")))
        assert self.balance().available == Decimal("41.9999")

        result = self.ledger.execute(Transaction.withdrawal(1, 3, Decimal("42")))

        assert result == ProcessingResult.INSUFFICIENT_FUNDS
        assert self.balance().available == Decimal("41.9999")
        assert self.balance().total == Decimal("41.9999")
        # ignored withdrawals are not logged, so they cannot be disputed later
        assert 3 not in self.store.get_account(1).transactions

    def test_withdraw_empty_account(self):
        result = self.ledger.execute(Transaction.withdrawal(5, 1, Decimal("1")))

        assert result == ProcessingResult.INSUFFICIENT_FUNDS
        assert 5 in self.store
        assert self.balance(5) == Balance.zero()

    def test_dispute(self):
        self.ledger.execute(Transaction.deposit(1, 1, Decimal("10.0")))
        self.ledger.execute(Transaction.deposit(1, 2, Decimal("2.0")))

        result = self.ledger.execute(Transaction.dispute(1, 1))

        assert result == ProcessingResult.APPLIED
        balance = self.balance()
        assert balance.available == Decimal("2.0")
        assert balance.held == Decimal("10.0")
        assert balance.total == Decimal("12.0")

    def test_dispute_twice_is_idempotent(self):
        self.ledger.execute(Transaction.deposit(1, 1, Decimal("10")))
        self.ledger.execute(Transaction.dispute(1, 1))
        once = self.balance()

        result = self.ledger.execute(Transaction.dispute(1, 1))

        assert result == ProcessingResult.ALREADY_DISPUTED
        assert self.balance() == once
        assert self.store.get_account(1).disputes == {1}

    def test_dispute_invalid_transaction(self):
        self.ledger.execute(Transaction.deposit(1, 1, Decimal("10.0")))

        result = self.ledger.execute(Transaction.dispute(1, 50))

        assert result == ProcessingResult.UNKNOWN_TRANSACTION
        assert self.balance().available == Decimal("10.0")

    def test_dispute_other_clients_transaction(self):
        self.ledger.execute(Transaction.deposit(1, 1, Decimal("100")))

        result = self.ledger.execute(Transaction.dispute(2, 1))

        assert result == ProcessingResult.UNKNOWN_TRANSACTION
        assert self.balance(1).held == Decimal("0")
        assert self.balance(2) == Balance.zero()

    def test_dispute_resolve(self):
        self.ledger.execute(Transaction.deposit(1, 10, Decimal("10.0")))
        self.ledger.execute(Transaction.dispute(1, 10))
        assert self.balance() == Balance(Decimal("0"), Decimal("10"), Decimal("10"))

        result = self.ledger.execute(Transaction.resolve(1, 10))

        assert result == ProcessingResult.APPLIED
        assert self.balance() == Balance(Decimal("10"), Decimal("0"), Decimal("10"))
        assert self.store.get_account(1).disputes == set()
        # the log keeps the entry so the transaction can be disputed again
        assert 10 in self.store.get_account(1).transactions

    def test_resolve_not_disputed(self):
        self.ledger.execute(Transaction.deposit(1, 1, Decimal("100")))

        result = self.ledger.execute(Transaction.resolve(1, 1))

        assert result == ProcessingResult.NOT_DISPUTED
        assert self.balance() == Balance(Decimal("100"), Decimal("0"), Decimal("100"))
        assert self.ledger.is_locked(1) is False

    def test_chargeback(self):
        self.ledger.execute(Transaction.deposit(1, 1, Decimal("10")))
        self.ledger.execute(Transaction.deposit(1, 2, Decimal("2")))
        self.ledger.execute(Transaction.dispute(1, 2))
        assert self.balance() == Balance(Decimal("10"), Decimal("2"), Decimal("12"))

        result = self.ledger.execute(Transaction.chargeback(1, 2))

        assert result == ProcessingResult.APPLIED
        assert self.ledger.is_locked(1) is True
        assert self.balance() == Balance(Decimal("10"), Decimal("0"), Decimal("10"))
        assert self.store.get_account(1).disputes == set()

    def test_chargeback_undisputed(self):
        self.ledger.execute(Transaction.deposit(1, 1, Decimal("10")))

        result = self.ledger.execute(Transaction.chargeback(1, 1))

        assert result == ProcessingResult.NOT_DISPUTED
        assert self.balance().total == Decimal("10")
        assert self.ledger.is_locked(1) is False

    def test_locked(self):
        self.ledger.execute(Transaction.deposit(1, 1, Decimal("10")))
        self.ledger.execute(Transaction.deposit(1, 2, Decimal("5")))
        self.ledger.execute(Transaction.dispute(1, 2))

        self.ledger.lock(1)
        assert self.ledger.is_locked(1) is True
        before = self.balance()

        for transaction in [
            Transaction.deposit(1, 3, Decimal("2.0")),
            Transaction.withdrawal(1, 4, Decimal("1.0")),
            Transaction.dispute(1, 1),
            Transaction.resolve(1, 2),
            Transaction.chargeback(1, 2),
        ]:
            assert self.ledger.execute(transaction) == ProcessingResult.ACCOUNT_LOCKED

        assert self.balance() == before
        assert self.store.get_account(1).disputes == {2}

    def test_is_locked_unknown_client(self):
        assert self.ledger.is_locked(99) is False
        assert 99 not in self.store

    def test_get_balance_unknown_client(self):
        assert self.ledger.get_balance(99) == Balance.zero()
        assert 99 not in self.store

    def test_disputed_transaction_missing_from_log_is_ignored(self):
        self.ledger.execute(Transaction.deposit(1, 1, Decimal("10")))
        account = self.store.get_account(1)
        account.disputes.add(7)

        assert self.ledger.execute(Transaction.resolve(1, 7)) == ProcessingResult.UNKNOWN_TRANSACTION
        assert self.ledger.execute(Transaction.chargeback(1, 7)) == ProcessingResult.UNKNOWN_TRANSACTION
        assert self.balance() == Balance(Decimal("10"), Decimal("0"), Decimal("10"))
        assert self.ledger.is_locked(1) is False

    def test_invariants_hold_through_mixed_stream(self):
        stream = [
            Transaction.deposit(1, 1, Decimal("5.5")),
            Transaction.deposit(2, 2, Decimal("7")),
            Transaction.withdrawal(1, 3, Decimal("2.25")),
            Transaction.dispute(1, 1),
            Transaction.dispute(1, 3),
            Transaction.withdrawal(1, 4, Decimal("1")),
            Transaction.resolve(1, 3),
            Transaction.dispute(2, 2),
            Transaction.chargeback(2, 2),
            Transaction.deposit(2, 5, Decimal("100")),
            Transaction.chargeback(1, 1),
        ]

        for transaction in stream:
            self.ledger.execute(transaction)
            for account in self.store:
                assert account.total == account.available + account.held
                assert account.held >= 0

        # deposit 1 was partly withdrawn before being charged back
        assert self.balance(1) == Balance(Decimal("-2.25"), Decimal("0"), Decimal("-2.25"))
        assert self.balance(2) == Balance(Decimal("0"), Decimal("0"), Decimal("0"))
        assert self.ledger.is_locked(1) is True
        assert self.ledger.is_locked(2) is True
