"""Turns raw CSV rows into validated transactions."""

import re
from decimal import Decimal
from typing import Optional, Sequence

from exceptions import MalformedRecordError
from models import AMOUNT_LIMIT, AMOUNT_MAX, CLIENT_ID_MAX, TRANSACTION_ID_MAX, Transaction, TransactionType, round_amount

TYPE_FIELD_IDX = 0
CLIENT_FIELD_IDX = 1
TX_FIELD_IDX = 2
AMOUNT_FIELD_IDX = 3

# Plain positional notation only: no exponents, NaN or Infinity.
_DECIMAL_RE = re.compile(r"[+-]?(\d+(\.\d*)?|\.\d+)", re.ASCII)


def normalize_record(record: Sequence[str]) -> Transaction:
    """
    Parse one positional record `type, client, tx[, amount]` into a Transaction.

    Every field is stripped of surrounding whitespace first. Any problem with
    any field rejects the whole record with MalformedRecordError.
    """
    if len(record) not in (3, 4):
        raise MalformedRecordError("record", f"expected 3 or 4 fields, got {len(record)}")

    fields = [value.strip() for value in record]

    transaction_type = _parse_type(fields[TYPE_FIELD_IDX])
    client_id = _parse_id("client", fields[CLIENT_FIELD_IDX], CLIENT_ID_MAX)
    transaction_id = _parse_id("tx", fields[TX_FIELD_IDX], TRANSACTION_ID_MAX)

    amount_str = fields[AMOUNT_FIELD_IDX] if len(fields) > AMOUNT_FIELD_IDX else ""
    amount = _parse_decimal(amount_str)
    if transaction_type.carries_amount:
        amount = _check_amount(amount, amount_str)

    # Transaction drops the amount for dispute, resolve and chargeback.
    return Transaction(
        transaction_type=transaction_type,
        client_id=client_id,
        transaction_id=transaction_id,
        amount=amount,
    )


def _parse_type(value: str) -> TransactionType:
    try:
        return TransactionType(value.lower())
    except ValueError:
        raise MalformedRecordError("type", f"unknown transaction type {value!r}", value=value) from None


def _parse_id(field: str, value: str, maximum: int) -> int:
    if not (value.isascii() and value.isdigit()):
        raise MalformedRecordError(field, f"not an unsigned integer: {value!r}", value=value)
    parsed = int(value)
    if parsed > maximum:
        raise MalformedRecordError(field, f"{parsed} out of range 0..{maximum}", value=value)
    return parsed


def _parse_decimal(value: str) -> Optional[Decimal]:
    if not value:
        return None
    if not _DECIMAL_RE.fullmatch(value):
        raise MalformedRecordError("amount", f"not a decimal number: {value!r}", value=value)
    return Decimal(value)


def _check_amount(amount: Optional[Decimal], value: str) -> Decimal:
    if amount is None:
        raise MalformedRecordError("amount", "required for deposits and withdrawals", value=value)
    if amount < 0:
        raise MalformedRecordError("amount", f"must not be negative: {value!r}", value=value)

    # Bound before rounding so quantize never sees more digits than it can hold.
    if amount >= AMOUNT_LIMIT or round_amount(amount) >= AMOUNT_LIMIT:
        raise MalformedRecordError("amount", f"too large: {value!r} exceeds {AMOUNT_MAX}", value=value)
    return round_amount(amount)
