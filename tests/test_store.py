"""Property-based tests for the journal store.

**Feature: chart-journal**
"""

import json
import sqlite3
import tempfile
import threading
from pathlib import Path

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from chartjournal.db.store import (
    ENTRIES_KEY,
    ID_LENGTH,
    USER_KEY,
    JournalStore,
    calculate_journal_stats,
    generate_entry_id,
)
from chartjournal.entries import build_entry
from chartjournal.models import DEFAULT_USER, AIAnalysis, TechnicalIndicator, TradeEntry


@pytest.fixture
def temp_store():
    """Create a temporary journal store for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield JournalStore(Path(tmpdir) / "journal.db")


def _entry(symbol="BTC/USD", position=None, entry_price=None, exit_price=None, **kwargs):
    return build_entry(
        symbol,
        "data:image/png;base64,iVBORw0KGgo=",
        position=position,
        entry_price=entry_price,
        exit_price=exit_price,
        timestamp=1_700_000_000_000,
        **kwargs,
    )


finite_floats = st.floats(min_value=-1e9, max_value=1e9, allow_nan=False, allow_infinity=False)
positive_prices = st.floats(min_value=0.01, max_value=1e6, allow_nan=False, allow_infinity=False)

analyses = st.builds(
    AIAnalysis,
    pattern=st.none() | st.text(max_size=20),
    support=st.lists(finite_floats, max_size=4),
    resistance=st.lists(finite_floats, max_size=4),
    trend=st.none() | st.text(max_size=20),
    risk_reward_ratio=st.none() | finite_floats,
    technical_indicators=st.lists(
        st.builds(
            TechnicalIndicator,
            name=st.text(min_size=1, max_size=10),
            value=st.text(max_size=10),
            interpretation=st.text(max_size=20),
        ),
        max_size=3,
    ),
    recommendation=st.none() | st.text(max_size=40),
)

entries = st.builds(
    TradeEntry,
    timestamp=st.integers(min_value=0, max_value=2**41),
    symbol=st.text(min_size=1, max_size=15),
    chart_image_url=st.text(min_size=1, max_size=40),
    entry_price=st.none() | positive_prices,
    exit_price=st.none() | positive_prices,
    position=st.none() | st.sampled_from(["long", "short"]),
    sentiment=st.none() | st.sampled_from(["bullish", "bearish"]),
    ai_analysis=analyses,
    notes=st.none() | st.text(max_size=40),
    profit=st.none() | finite_floats,
    profit_percentage=st.none() | finite_floats,
)


class TestStoreSchema:
    """
    **Feature: chart-journal, Property: Store Schema**

    *For any* fresh database, the key/value table exists.
    """

    def test_schema_completeness(self, temp_store: JournalStore):
        tables = temp_store.get_tables()

        for table in JournalStore.REQUIRED_TABLES:
            assert table in tables, f"Required table '{table}' is missing"

    def test_fresh_store_is_empty(self, temp_store: JournalStore):
        assert temp_store.get_entries() == []
        assert temp_store.get_user() == DEFAULT_USER

    def test_seed_demo_only_when_empty(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            db_path = Path(tmpdir) / "journal.db"
            store = JournalStore(db_path, seed_demo=True)
            entries = store.get_entries()

            assert len(entries) == 1
            assert entries[0].symbol == "BTC/USDT"
            assert entries[0].ai_analysis.pattern == "Double Bottom"

            store.delete_entry(entries[0].id)
            store.add_entry(_entry("ETH/USD"))
            reopened = JournalStore(db_path, seed_demo=True)
            assert [e.symbol for e in reopened.get_entries()] == ["ETH/USD"]


class TestEntryRoundTrip:
    """
    **Feature: chart-journal, Property: Entry Persistence Round Trip**

    *For any* valid entry, storing it and reading it back yields an equal
    entry with a freshly assigned id.
    """

    @given(entry=entries)
    @settings(max_examples=50, deadline=None)
    def test_add_then_get(self, entry: TradeEntry):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = JournalStore(Path(tmpdir) / "journal.db")
            saved = store.add_entry(entry)

            assert len(saved.id) == ID_LENGTH
            assert store.get_entry(saved.id) == saved
            assert saved.model_copy(update={"id": entry.id}) == entry

    def test_stored_document_uses_camel_case(self, temp_store: JournalStore):
        temp_store.add_entry(_entry(position="long", entry_price=100, exit_price=110))

        raw = temp_store.get_item(ENTRIES_KEY)
        assert isinstance(raw, list)
        document = raw[0]
        assert document["chartImageUrl"].startswith("data:image/png")
        assert document["entryPrice"] == 100
        assert document["profitPercentage"] == pytest.approx(10.0)
        assert "aiAnalysis" in document

    def test_reads_documents_written_elsewhere(self, temp_store: JournalStore):
        document = {
            "id": "abc1234",
            "timestamp": 1_700_000_000_000,
            "symbol": "SOL/USDT",
            "chartImageUrl": "https://example.com/sol.png",
            "aiAnalysis": {"riskRewardRatio": 2.1, "technicalIndicators": []},
        }
        conn = sqlite3.connect(temp_store.db_path)
        with conn:
            conn.execute(
                "INSERT INTO local_storage (key, value) VALUES (?, ?)",
                (ENTRIES_KEY, json.dumps([document])),
            )
        conn.close()

        entry = temp_store.get_entry("abc1234")
        assert entry.symbol == "SOL/USDT"
        assert entry.ai_analysis.risk_reward_ratio == 2.1


class TestEntryOperations:
    """CRUD behaviour of journal entries."""

    def test_ids_are_unique(self, temp_store: JournalStore):
        ids = {temp_store.add_entry(_entry()).id for _ in range(20)}
        assert len(ids) == 20

    def test_insertion_order(self, temp_store: JournalStore):
        for symbol in ("BTC/USD", "ETH/USD", "SOL/USD"):
            temp_store.add_entry(_entry(symbol))

        assert [e.symbol for e in temp_store.get_entries()] == ["BTC/USD", "ETH/USD", "SOL/USD"]

    def test_update_merges_fields(self, temp_store: JournalStore):
        saved = temp_store.add_entry(_entry(position="long", entry_price=100))

        updated = temp_store.update_entry(saved.id, {"exit_price": 105.0, "notes": "Trailed stop"})

        assert updated.id == saved.id
        assert updated.exit_price == 105.0
        assert updated.entry_price == 100
        assert updated.notes == "Trailed stop"
        assert temp_store.get_entry(saved.id) == updated

    def test_update_cannot_change_id(self, temp_store: JournalStore):
        saved = temp_store.add_entry(_entry())

        updated = temp_store.update_entry(saved.id, {"id": "other"})

        assert updated.id == saved.id

    def test_update_stores_analysis(self, temp_store: JournalStore):
        saved = temp_store.add_entry(_entry())
        analysis = AIAnalysis(pattern="Head and Shoulders", trend="Bearish", support=[90.0])

        temp_store.update_entry(saved.id, {"ai_analysis": analysis})

        assert temp_store.get_entry(saved.id).ai_analysis == analysis

    def test_update_missing_entry(self, temp_store: JournalStore):
        assert temp_store.update_entry("missing", {"notes": "x"}) is None

    def test_update_clears_fields(self, temp_store: JournalStore):
        saved = temp_store.add_entry(_entry(position="long", entry_price=100, exit_price=110, notes="Done"))

        updated = temp_store.update_entry(saved.id, {"exit_price": None, "notes": None})

        assert updated.exit_price is None
        assert updated.notes is None
        assert updated.entry_price == 100

    def test_concurrent_writers_keep_every_entry(self):
        errors = []

        with tempfile.TemporaryDirectory() as tmpdir:
            db_path = Path(tmpdir) / "journal.db"

            def writer(n):
                try:
                    store = JournalStore(db_path)
                    for i in range(10):
                        store.add_entry(_entry(f"W{n}/{i}"))
                except Exception as e:
                    errors.append(e)

            threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()

            entries = JournalStore(db_path).get_entries()

        assert errors == []
        assert len(entries) == 80
        assert len({e.id for e in entries}) == 80
        assert {e.symbol for e in entries} == {f"W{n}/{i}" for n in range(8) for i in range(10)}

    def test_delete(self, temp_store: JournalStore):
        keep = temp_store.add_entry(_entry("ETH/USD"))
        drop = temp_store.add_entry(_entry("BTC/USD"))

        assert temp_store.delete_entry(drop.id)
        assert not temp_store.delete_entry(drop.id)
        assert temp_store.get_entry(drop.id) is None
        assert temp_store.get_entries() == [keep]

    def test_search_is_case_insensitive(self, temp_store: JournalStore):
        temp_store.add_entry(_entry("BTC/USD"))
        temp_store.add_entry(_entry("BINANCE:BTCUSDT"))
        temp_store.add_entry(_entry("ETH/USD"))

        assert len(temp_store.search_entries("btc")) == 2
        assert temp_store.search_entries("doge") == []

    def test_generate_entry_id_avoids_existing(self):
        entry_id = generate_entry_id({"aaaaaaa"})

        assert len(entry_id) == ID_LENGTH
        assert entry_id != "aaaaaaa"
        assert entry_id.isalnum() and entry_id == entry_id.lower()


class TestUserRecord:
    def test_update_persists(self, temp_store: JournalStore):
        updated = temp_store.update_user({"name": "Ada", "gemini_api_key": "secret-key"})

        assert updated.name == "Ada"
        assert updated.email == DEFAULT_USER.email
        assert temp_store.get_user() == updated
        assert temp_store.get_item(USER_KEY)["geminiApiKey"] == "secret-key"


class TestJournalStats:
    """
    **Feature: chart-journal, Property: Journal Stats Bounds**

    *For any* set of entries, only completed trades are counted and the
    win rate stays between 0 and 100.
    """

    @given(
        trades=st.lists(
            st.tuples(
                st.none() | st.sampled_from(["long", "short"]),
                st.none() | positive_prices,
                st.none() | positive_prices,
            ),
            max_size=20,
        )
    )
    @settings(max_examples=100)
    def test_stats_bounds(self, trades):
        journal = [_entry(position=p, entry_price=e, exit_price=x) for p, e, x in trades]
        completed = [t for t in trades if t[1] is not None and t[2] is not None]

        stats = calculate_journal_stats(journal)

        assert stats.total_trades == len(completed)
        assert 0 <= stats.win_rate <= 100
        assert stats.profit_factor >= 0

    def test_empty_journal(self):
        stats = calculate_journal_stats([])

        assert stats.total_trades == 0
        assert stats.win_rate == 0
        assert stats.average_profit == 0
        assert stats.profit_factor == 0

    def test_mixed_results(self, temp_store: JournalStore):
        temp_store.add_entry(_entry(position="long", entry_price=100, exit_price=110))
        temp_store.add_entry(_entry(position="short", entry_price=100, exit_price=105))
        temp_store.add_entry(_entry(position="long", entry_price=100))

        stats = temp_store.get_stats()

        assert stats.total_trades == 2
        assert stats.win_rate == 50.0
        assert stats.average_profit == 2.5
        assert stats.profit_factor == 2.0

    def test_no_losses_profit_factor_is_winning_sum(self):
        journal = [
            _entry(position="long", entry_price=100, exit_price=104),
            _entry(position="short", entry_price=50, exit_price=49),
        ]

        assert calculate_journal_stats(journal).profit_factor == 5.0
