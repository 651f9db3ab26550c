"""Exception hierarchy for the payments ledger."""

from typing import Optional


class PaymentsError(Exception):
    """Base exception for all payments ledger errors."""


class InputSourceError(PaymentsError):
    """Raised when the transaction input cannot be opened or read."""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"Error reading file {path}: {reason}")


class MalformedRecordError(PaymentsError):
    """Raised when a row cannot be turned into a valid transaction."""

    def __init__(self, field: str, reason: str, value: Optional[str] = None, line_number: Optional[int] = None):
        self.field = field
        self.reason = reason
        self.value = value
        self.line_number = line_number
        super().__init__(self._format())

    def _format(self) -> str:
        location = f" at line {self.line_number}" if self.line_number is not None else ""
        return f"Malformed record{location}: {self.field}: {self.reason}"

    def at_line(self, line_number: int) -> "MalformedRecordError":
        """Return a copy of this error tagged with the input line it came from."""
        return MalformedRecordError(self.field, self.reason, value=self.value, line_number=line_number)


class ConfigurationError(PaymentsError):
    """Raised when configuration is invalid."""
