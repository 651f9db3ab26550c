import logging
from decimal import Decimal
from typing import Optional

from account_store import AccountStore
from models import Balance, ClientAccount, ProcessingResult, Transaction, TransactionType

logger = logging.getLogger(__name__)


class LedgerEngine:
    """
    Applies transactions to the accounts in an AccountStore, one at a time.

    Anything the ledger cannot apply (insufficient funds, unknown or
    undisputed transaction ids, locked accounts) is ignored and reported
    through the returned ProcessingResult only; it never raises.
    """

    def __init__(self, store: AccountStore):
        self._store = store

    @property
    def store(self) -> AccountStore:
        return self._store

    def execute(self, transaction: Transaction) -> ProcessingResult:
        """
        Apply a single transaction.

        Returns:
            APPLIED: Balances and/or dispute state changed
            anything else: Ignored, the account is unchanged
        """
        if self.is_locked(transaction.client_id):
            return ProcessingResult.ACCOUNT_LOCKED

        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                return self.deposit(transaction)
            case TransactionType.WITHDRAWAL:
                return self.withdraw(transaction)
            case TransactionType.DISPUTE:
                return self.dispute(transaction.client_id, transaction.transaction_id)
            case TransactionType.RESOLVE:
                return self.resolve(transaction.client_id, transaction.transaction_id)
            case TransactionType.CHARGEBACK:
                return self.chargeback(transaction.client_id, transaction.transaction_id)

    def deposit(self, transaction: Transaction) -> ProcessingResult:
        account = self._store.get_or_create_account(transaction.client_id)
        account.credit(transaction.amount)
        account.log_transaction(transaction)
        return ProcessingResult.APPLIED

    def withdraw(self, transaction: Transaction) -> ProcessingResult:
        account = self._store.get_or_create_account(transaction.client_id)
        if account.available < transaction.amount:
            return ProcessingResult.INSUFFICIENT_FUNDS

        account.debit(transaction.amount)
        account.log_transaction(transaction)
        return ProcessingResult.APPLIED

    def dispute(self, client_id: int, transaction_id: int) -> ProcessingResult:
        account = self._store.get_or_create_account(client_id)
        original = account.get_logged_transaction(transaction_id)

        # Lookups are per account, so another client's transaction is unknown here.
        if original is None:
            return ProcessingResult.UNKNOWN_TRANSACTION

        if transaction_id in account.disputes:
            return ProcessingResult.ALREADY_DISPUTED

        account.disputes.add(transaction_id)
        account.hold(original.amount)
        return ProcessingResult.APPLIED

    def resolve(self, client_id: int, transaction_id: int) -> ProcessingResult:
        account = self._store.get_or_create_account(client_id)
        if transaction_id not in account.disputes:
            return ProcessingResult.NOT_DISPUTED

        amount = self._disputed_amount(account, transaction_id)
        if amount is None:
            return ProcessingResult.UNKNOWN_TRANSACTION

        account.disputes.discard(transaction_id)
        account.release_hold(amount)
        return ProcessingResult.APPLIED

    def chargeback(self, client_id: int, transaction_id: int) -> ProcessingResult:
        account = self._store.get_or_create_account(client_id)
        if transaction_id not in account.disputes:
            return ProcessingResult.NOT_DISPUTED

        amount = self._disputed_amount(account, transaction_id)
        if amount is None:
            return ProcessingResult.UNKNOWN_TRANSACTION

        account.disputes.discard(transaction_id)
        account.remove_held(amount)
        account.lock()
        return ProcessingResult.APPLIED

    def lock(self, client_id: int) -> None:
        self._store.get_or_create_account(client_id).lock()

    def is_locked(self, client_id: int) -> bool:
        account = self._store.get_account(client_id)
        return account is not None and account.locked

    def get_balance(self, client_id: int) -> Balance:
        account = self._store.get_account(client_id)
        if account is None:
            return Balance.zero()
        return account.snapshot()

    def _disputed_amount(self, account: ClientAccount, transaction_id: int) -> Optional[Decimal]:
        # A disputed id always has a log entry because the log is never pruned.
        original = account.get_logged_transaction(transaction_id)
        if original is None:
            logger.error(
                f"Client {account.client_id}: tx {transaction_id} is disputed but missing from the log, ignoring"
            )
            return None
        return original.amount
