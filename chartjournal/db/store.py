"""SQLite-backed journal store for ChartJournal.

Entries and the user record are kept as JSON documents under two
well-known keys of a single key/value table.
"""

import json
import random
import sqlite3
import string
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional

from chartjournal.models import (
    DEFAULT_USER,
    AIAnalysis,
    JournalStats,
    TechnicalIndicator,
    TradeEntry,
    User,
)


ENTRIES_KEY = "trading-journal-entries"
USER_KEY = "trading-journal-user"

# Seconds a connection waits for another writer to release the lock
BUSY_TIMEOUT = 30.0

ID_ALPHABET = string.ascii_lowercase + string.digits
ID_LENGTH = 7


def generate_entry_id(existing: Optional[set[str]] = None) -> str:
    """Generate a short base-36 entry id not present in ``existing``."""
    existing = existing or set()
    while True:
        entry_id = "".join(random.choices(ID_ALPHABET, k=ID_LENGTH))
        if entry_id not in existing:
            return entry_id


def _demo_entries() -> list[TradeEntry]:
    """Build the demo journal used to seed an empty store."""
    return [
        TradeEntry(
            id="1",
            timestamp=int(time.time() * 1000) - 86400000 * 2,
            symbol="BTC/USDT",
            chart_image_url="https://images.unsplash.com/photo-1461749280684-dccba630e2f6",
            entry_price=43250,
            exit_price=45100,
            position="long",
            sentiment="bullish",
            ai_analysis=AIAnalysis(
                pattern="Double Bottom",
                support=[41200, 42800],
                resistance=[45000, 47500],
                trend="Upward reversal (bullish)",
                risk_reward_ratio=2.8,
                technical_indicators=[
                    TechnicalIndicator(name="RSI", value="38", interpretation="Approaching oversold"),
                    TechnicalIndicator(name="MACD", value="Crossing", interpretation="Bullish signal"),
                ],
                recommendation="Strong entry point with clear support level",
            ),
            notes="Followed plan, entered at support",
            profit=1850,
            profit_percentage=4.28,
        )
    ]


class JournalStore:
    """SQLite key/value store holding the trade journal."""

    REQUIRED_TABLES = ["local_storage"]

    def __init__(self, db_path: Path, seed_demo: bool = False):
        """Initialize the journal store.

        Args:
            db_path: Path to the SQLite database file.
            seed_demo: Seed an empty journal with a demo entry.
        """
        self.db_path = db_path
        self._ensure_db_dir()
        self._init_schema()

        if seed_demo and not self.get_entries():
            self._seed_demo_data()

    def _ensure_db_dir(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection in autocommit mode."""
        conn = sqlite3.connect(self.db_path, timeout=BUSY_TIMEOUT, isolation_level=None)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        """Initialize database schema on first run."""
        conn = self._get_connection()
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS local_storage (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)
        finally:
            conn.close()

    def get_tables(self) -> list[str]:
        """Get list of all tables in the database."""
        conn = self._get_connection()
        try:
            cursor = conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"
            )
            return [row["name"] for row in cursor.fetchall()]
        finally:
            conn.close()

    # ==================== Raw key/value ====================

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Hold the write lock for a read-modify-write cycle."""
        conn = self._get_connection()
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
        finally:
            conn.close()

    @staticmethod
    def _read(conn: sqlite3.Connection, key: str) -> Optional[Any]:
        row = conn.execute("SELECT value FROM local_storage WHERE key = ?", (key,)).fetchone()
        return json.loads(row["value"]) if row else None

    @staticmethod
    def _write(conn: sqlite3.Connection, key: str, value: Any) -> None:
        conn.execute(
            "INSERT OR REPLACE INTO local_storage (key, value) VALUES (?, ?)",
            (key, json.dumps(value)),
        )

    def get_item(self, key: str) -> Optional[Any]:
        """Get a decoded JSON value by key."""
        conn = self._get_connection()
        try:
            return self._read(conn, key)
        finally:
            conn.close()

    def _seed_demo_data(self) -> None:
        with self._transaction() as conn:
            self._write(conn, ENTRIES_KEY, [_dump_entry(e) for e in _demo_entries()])
            self._write(conn, USER_KEY, _dump_user(DEFAULT_USER))

    # ==================== Entries ====================

    def get_entries(self) -> list[TradeEntry]:
        """Get all journal entries in insertion order."""
        raw = self.get_item(ENTRIES_KEY) or []
        return [TradeEntry.model_validate(item) for item in raw]

    def get_entry(self, entry_id: str) -> Optional[TradeEntry]:
        """Get a single entry by id, or None."""
        for entry in self.get_entries():
            if entry.id == entry_id:
                return entry
        return None

    def search_entries(self, term: str) -> list[TradeEntry]:
        """Get entries whose symbol contains ``term`` (case-insensitive)."""
        needle = term.lower()
        return [e for e in self.get_entries() if needle in e.symbol.lower()]

    def add_entry(self, entry: TradeEntry) -> TradeEntry:
        """Add an entry, assigning it a fresh id.

        Args:
            entry: Entry to add. Any id it carries is replaced.

        Returns:
            The stored entry.
        """
        with self._transaction() as conn:
            raw = self._read(conn, ENTRIES_KEY) or []
            existing = {item.get("id") for item in raw}
            new_entry = entry.model_copy(update={"id": generate_entry_id(existing)})
            raw.append(_dump_entry(new_entry))
            self._write(conn, ENTRIES_KEY, raw)
        return new_entry

    def update_entry(self, entry_id: str, updates: dict[str, Any]) -> Optional[TradeEntry]:
        """Merge ``updates`` into an entry.

        Args:
            entry_id: Id of the entry to update.
            updates: Field values keyed by field name. The id is not
                changeable.

        Returns:
            The updated entry, or None if no entry has that id.
        """
        with self._transaction() as conn:
            raw = self._read(conn, ENTRIES_KEY) or []
            for index, item in enumerate(raw):
                if item.get("id") != entry_id:
                    continue
                current = TradeEntry.model_validate(item).model_dump()
                merged = {**current, **updates, "id": entry_id}
                updated = TradeEntry.model_validate(merged)
                raw[index] = _dump_entry(updated)
                self._write(conn, ENTRIES_KEY, raw)
                return updated
        return None

    def delete_entry(self, entry_id: str) -> bool:
        """Delete an entry.

        Returns:
            True if an entry was removed.
        """
        with self._transaction() as conn:
            raw = self._read(conn, ENTRIES_KEY) or []
            remaining = [item for item in raw if item.get("id") != entry_id]
            if len(remaining) == len(raw):
                return False
            self._write(conn, ENTRIES_KEY, remaining)
        return True

    # ==================== User ====================

    def get_user(self) -> User:
        """Get the stored user, or the default user."""
        raw = self.get_item(USER_KEY)
        return User.model_validate(raw) if raw else DEFAULT_USER

    def update_user(self, updates: dict[str, Any]) -> User:
        """Merge ``updates`` into the user record and persist it."""
        with self._transaction() as conn:
            raw = self._read(conn, USER_KEY)
            current = User.model_validate(raw) if raw else DEFAULT_USER
            updated = User.model_validate({**current.model_dump(), **updates})
            self._write(conn, USER_KEY, _dump_user(updated))
        return updated

    # ==================== Stats ====================

    def get_stats(self) -> JournalStats:
        """Get aggregate statistics over completed trades."""
        return calculate_journal_stats(self.get_entries())


def _dump_entry(entry: TradeEntry) -> dict[str, Any]:
    return entry.model_dump(mode="json", by_alias=True, exclude_none=True)


def _dump_user(user: User) -> dict[str, Any]:
    return user.model_dump(mode="json", by_alias=True, exclude_none=True)


def is_winning_trade(entry: TradeEntry) -> bool:
    """Check whether a completed entry closed in profit for its side."""
    if entry.position == "long":
        return entry.exit_price > entry.entry_price
    if entry.position == "short":
        return entry.exit_price < entry.entry_price
    return False


def calculate_journal_stats(entries: list[TradeEntry]) -> JournalStats:
    """Calculate win rate, average profit and profit factor.

    Only entries with both an entry and an exit price count as trades.
    Profit factor is the winning profit over the absolute losing profit,
    or the winning profit alone when nothing was lost.

    Args:
        entries: Journal entries.

    Returns:
        JournalStats rounded to two decimals.
    """
    completed = [e for e in entries if e.is_completed]

    if not completed:
        return JournalStats(total_trades=0, win_rate=0.0, average_profit=0.0, profit_factor=0.0)

    winners = [e for e in completed if is_winning_trade(e)]
    losers = [e for e in completed if not is_winning_trade(e)]

    total_profit = sum(e.profit or 0.0 for e in completed)
    winning_sum = sum(e.profit or 0.0 for e in winners)
    losing_sum = sum(abs(e.profit or 0.0) for e in losers)

    profit_factor = winning_sum if losing_sum == 0 else winning_sum / losing_sum

    return JournalStats(
        total_trades=len(completed),
        win_rate=round(len(winners) / len(completed) * 100, 2),
        average_profit=round(total_profit / len(completed), 2),
        profit_factor=round(max(profit_factor, 0.0), 2),
    )
