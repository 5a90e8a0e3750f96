import os
import sqlite3
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import orjson

from switchrun.core.entry import Entry, parse_kind
from switchrun.core.errors import StoreUnavailable

DB_FILENAME = "history.db"
BUSY_TIMEOUT_SECONDS = 5.0


@dataclass
class HistoryRecord:
    """
    Persisted usage of one entry, stored under its name.

    Attributes:
        name (str): The store key.
        kind (Dict[str, Any]): Tagged kind payload, as produced by Entry.kind_to_dict.
        use_count (int): Number of recorded uses.
        last_use_time (float): POSIX timestamp of the most recent use.
    """

    name: str
    kind: Dict[str, Any] = field(default_factory=lambda: {"Command": {"command_text": ""}})
    use_count: int = 1
    last_use_time: float = 0.0

    @classmethod
    def from_entry(cls, entry: Entry) -> "HistoryRecord":
        return cls(
            name=entry.name,
            kind=entry.kind_to_dict(),
            use_count=entry.use_count,
            last_use_time=entry.last_use_time,
        )

    def to_entry(self) -> Entry:
        return Entry(
            name=self.name,
            kind=parse_kind(self.kind),
            use_count=self.use_count,
            last_use_time=self.last_use_time,
        )


def merge_records(
    prior: Optional[HistoryRecord], operand: HistoryRecord
) -> HistoryRecord:
    """
    The store's merge operator as a pure function.

    The first write for a key is stored verbatim. Every later write counts as
    exactly one use: the operand's use_count only marks presence. The prior
    kind payload is kept and the timestamps reconcile to the newest one, so
    folding any set of writes gives the same result in any order.
    """
    if prior is None:
        return operand
    return HistoryRecord(
        name=prior.name,
        kind=prior.kind,
        use_count=prior.use_count + 1,
        last_use_time=max(prior.last_use_time, operand.last_use_time),
    )


class FrecencyStore:
    """
    SQLite-backed usage table shared by every running instance.

    All writes go through merge(), which SQLite applies as a single upsert,
    so concurrent processes never lose an increment and need no locking of
    their own.
    """

    def __init__(self, directory: str, logger: Any, time_handler: Any = time):
        """
        Opens (creating if missing) the store under the given directory.

        Args:
            directory (str): Directory holding the database file.
            logger (Any): Structured logger.
            time_handler (Any): An object or module providing a time() method.

        Raises:
            StoreUnavailable: If the directory or database cannot be opened.
        """
        self.directory = directory
        self.db_path = os.path.join(directory, DB_FILENAME)
        self.logger = logger
        self.time = time_handler
        self.conn: Optional[sqlite3.Connection] = None
        try:
            os.makedirs(directory, exist_ok=True)
            self.conn = sqlite3.connect(
                self.db_path, timeout=BUSY_TIMEOUT_SECONDS, isolation_level=None
            )
            self.initialize_schema()
        except (OSError, sqlite3.Error) as e:
            if self.conn is not None:
                self.conn.close()
                self.conn = None
            raise StoreUnavailable(self.db_path, str(e)) from e
        self.logger.debug(f"History store opened at {self.db_path}")

    def initialize_schema(self) -> None:
        self.conn.execute("PRAGMA journal_mode=WAL")
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS history (
                name TEXT PRIMARY KEY,
                record BLOB NOT NULL,
                use_count INTEGER NOT NULL,
                last_use_time REAL NOT NULL
            )
        """)

    def merge(self, name: str, record: HistoryRecord) -> None:
        """
        Applies one use event for `name`, see merge_records for the semantics.

        Args:
            name (str): The entry name used as key.
            record (HistoryRecord): The caller's record, stamped with the use time.
        """
        self.conn.execute(
            """
            INSERT INTO history (name, record, use_count, last_use_time)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(name) DO UPDATE SET
                use_count = history.use_count + 1,
                last_use_time = MAX(history.last_use_time, excluded.last_use_time)
            """,
            (name, orjson.dumps(record.kind), record.use_count, record.last_use_time),
        )

    def record_use(self, entry: Entry) -> None:
        """Merges a single use of `entry`, stamped with the current time."""
        record = HistoryRecord.from_entry(entry.with_usage(1, self.time.time()))
        self.merge(entry.name, record)

    def delete(self, name: str) -> None:
        self.conn.execute("DELETE FROM history WHERE name = ?", (name,))

    def get(self, name: str) -> Optional[HistoryRecord]:
        row = self.conn.execute(
            "SELECT name, record, use_count, last_use_time FROM history WHERE name = ?",
            (name,),
        ).fetchone()
        if row is None:
            return None
        return self._decode_row(row)

    def iterate(self) -> List[HistoryRecord]:
        """
        Returns every stored record, least recently used first.

        Rows whose payload cannot be decoded are logged and left out.
        """
        rows = self.conn.execute(
            """
            SELECT name, record, use_count, last_use_time FROM history
            ORDER BY last_use_time ASC, rowid ASC
            """
        ).fetchall()
        records = []
        for row in rows:
            try:
                records.append(self._decode_row(row))
            except (orjson.JSONDecodeError, ValueError) as e:
                self.logger.warning(f"Skipping unreadable history record {row[0]!r}: {e}")
        return records

    def _decode_row(self, row) -> HistoryRecord:
        name, blob, use_count, last_use_time = row
        kind = orjson.loads(blob)
        parse_kind(kind)
        return HistoryRecord(
            name=name, kind=kind, use_count=use_count, last_use_time=last_use_time
        )

    def __len__(self) -> int:
        return self.conn.execute("SELECT COUNT(*) FROM history").fetchone()[0]

    def close(self) -> None:
        """
        Closes the active SQLite database connection.
        """
        if self.conn is not None:
            self.conn.close()
            self.conn = None

    def __enter__(self) -> "FrecencyStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
