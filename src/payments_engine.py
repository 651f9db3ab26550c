import csv
import logging
from typing import Dict, Iterable, Iterator, Optional, Sequence, Tuple

from account_store import AccountStore
from config import EngineConfig
from exceptions import InputSourceError, MalformedRecordError
from ledger import LedgerEngine
from models import ClientAccount, ProcessingStats
from normalizer import normalize_record

logger = logging.getLogger(__name__)


class PaymentsEngine:
    """
    Streams a transaction CSV through the ledger in input order.
    Each row is fully applied (or ignored) before the next one is read.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self._config = config or EngineConfig()
        self._store = AccountStore()
        self._ledger = LedgerEngine(self._store)
        self._stats = ProcessingStats()

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def process_file(self, filepath: str) -> Dict[int, ClientAccount]:
        """Process CSV file and return final account states."""
        try:
            f = open(filepath, "r", newline="")
        except OSError as e:
            raise InputSourceError(filepath, e.strerror or str(e)) from e

        with f:
            reader = csv.reader(f)
            try:
                next(reader, None)  # header
                accounts = self._process_numbered(_physical_lines(reader))
            except (csv.Error, UnicodeDecodeError) as e:
                raise InputSourceError(filepath, str(e)) from e

        return accounts

    def process_records(self, records: Iterable[Sequence[str]], first_line: int = 1) -> Dict[int, ClientAccount]:
        """Apply already-split records (no header) and return final account states."""
        return self._process_numbered(enumerate(records, start=first_line))

    def _process_numbered(self, numbered: Iterable[Tuple[int, Sequence[str]]]) -> Dict[int, ClientAccount]:
        logger.info("Starting processing")

        for line_number, record in numbered:
            if not record or all(not value.strip() for value in record):
                continue

            try:
                transaction = normalize_record(record)
            except MalformedRecordError as e:
                error = e.at_line(line_number)
                if not self._config.skip_malformed:
                    raise error from e
                logger.warning(f"Skipping {error}")
                self._stats.record_malformed()
                continue

            result = self._ledger.execute(transaction)
            self._stats.record_result(result)
            if not result.applied:
                logger.debug(f"Ignored {transaction}: {result.value}")

        logger.info(f"Processing complete. {self._stats.summary()}")
        return self._store.get_all_accounts()


def _physical_lines(reader) -> Iterator[Tuple[int, Sequence[str]]]:
    """Pair each record with the file line it starts on; quoted fields may span lines."""
    start = reader.line_num + 1
    for record in reader:
        yield start, record
        start = reader.line_num + 1
