"""Tests for the TradeStore."""

import json
import logging

import pytest

from tradejournal.core.errors import ErrorCodes, NotFoundError
from tradejournal.journal.locator import GlobLocator, IndexedLocator
from tradejournal.journal.models import Trade, TradeSummary
from tradejournal.journal.trade_store import TradeStore


def _trade_files(layout):
    return sorted(p.relative_to(layout.trades_dir).as_posix() for p in layout.trades_dir.rglob("*.json"))


class TestSaveAndLoad:
    """Tests for save and load."""

    def test_save_returns_id_and_writes_partitioned_file(self, trade_store, layout, make_trade):
        data = make_trade(id="trade-1", ticker="BRK.B")
        response = trade_store.save(data)

        assert response.success
        assert response.data == "trade-1"
        assert _trade_files(layout) == ["2024/BRK.B_20240115_trade-1.json"]

    def test_file_is_pretty_printed_camel_case(self, trade_store, layout, make_trade):
        trade_store.save(make_trade(id="trade-1"))
        path = layout.trades_dir / "2024" / "AAPL_20240115_trade-1.json"
        text = path.read_text(encoding="utf-8")

        assert text.startswith('{\n  "id": "trade-1"')
        document = json.loads(text)
        assert "preTradeNotes" in document
        assert "exitDate" not in document

    def test_load_returns_saved_trade(self, trade_store, make_trade):
        original = Trade.model_validate(make_trade(id="trade-1"))
        trade_store.save(original)

        loaded = trade_store.load("trade-1").unwrap()
        assert loaded.model_dump(exclude={"updated_at"}) == original.model_dump(exclude={"updated_at"})
        assert loaded.updated_at >= original.updated_at

    def test_save_invalid_trade_fails_without_writing(self, trade_store, layout, make_trade):
        response = trade_store.save(make_trade(exitPrice=120.0))

        assert not response.success
        assert response.code == str(ErrorCodes.VALIDATION_INVALID_ENTITY)
        assert "exitDate" in response.error
        assert _trade_files(layout) == []

    def test_update_rewrites_in_place(self, trade_store, layout, make_trade):
        data = make_trade(id="trade-1")
        trade_store.save(data)
        data["status"] = "monitoring"
        data["ticker"] = "AAPL"
        trade_store.save(data)

        assert _trade_files(layout) == ["2024/AAPL_20240115_trade-1.json"]
        assert trade_store.load("trade-1").data.status.value == "monitoring"

    def test_partition_fixed_at_creation(self, trade_store, layout, make_trade):
        data = make_trade(id="trade-1")
        trade_store.save(data)
        data["entryDate"] = "2023-12-29T10:00:00Z"
        data["createdAt"] = "2023-12-29T10:00:00Z"
        trade_store.save(data)

        assert _trade_files(layout) == ["2024/AAPL_20240115_trade-1.json"]
        assert trade_store.load("trade-1").data.entry_date.year == 2023

    def test_repartition_moves_file(self, trade_store, layout, make_trade):
        data = make_trade(id="trade-1")
        trade_store.save(data)
        data["entryDate"] = "2023-12-29T10:00:00Z"
        trade_store.save(data)

        response = trade_store.repartition("trade-1")
        assert response.data == "trades/2023/AAPL_20240115_trade-1.json"
        assert _trade_files(layout) == ["2023/AAPL_20240115_trade-1.json"]
        assert trade_store.load("trade-1").success

    def test_repartition_noop_when_in_place(self, trade_store, make_trade):
        trade_store.save(make_trade(id="trade-1"))
        assert trade_store.repartition("trade-1").data == "trades/2024/AAPL_20240115_trade-1.json"


class TestLoadErrors:
    """Tests for distinct load failure kinds."""

    def test_missing_id_is_not_found(self, trade_store):
        response = trade_store.load("nope")
        assert not response.success
        assert response.code == str(ErrorCodes.DATA_NOT_FOUND)
        assert response.http_status == 404
        with pytest.raises(NotFoundError):
            response.unwrap()

    def test_corrupt_file(self, trade_store, layout):
        path = layout.trades_dir / "2024" / "AAPL_20240115_bad.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("{not json", encoding="utf-8")

        assert trade_store.load("bad").code == str(ErrorCodes.DATA_CORRUPT)

    def test_invalid_file(self, trade_store, layout):
        path = layout.trades_dir / "2024" / "AAPL_20240115_bad.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps({"id": "bad", "ticker": "AAPL"}), encoding="utf-8")

        assert trade_store.load("bad").code == str(ErrorCodes.VALIDATION_INVALID_ENTITY)

    def test_unreadable_file(self, trade_store, layout):
        # A directory named like an entity file cannot be read as one
        path = layout.trades_dir / "2024" / "AAPL_20240115_dir.json"
        path.mkdir(parents=True)
        locator = GlobLocator(layout.trades_dir, recursive=True)
        locator._glob = lambda pattern: iter([path])
        store = TradeStore(layout, locator)

        assert store.load("dir").code == str(ErrorCodes.DATA_UNREADABLE)

    def test_unsafe_id_is_rejected(self, trade_store):
        response = trade_store.load("../../etc/passwd")
        assert not response.success
        assert response.code == str(ErrorCodes.VALIDATION_INVALID_ARGUMENT)


class TestList:
    """Tests for list and all."""

    def test_empty(self, trade_store):
        assert trade_store.list().data == []

    def test_sorted_by_created_at_descending(self, trade_store, make_trade):
        trade_store.save(make_trade(id="old", createdAt="2024-01-01T00:00:00Z"))
        trade_store.save(make_trade(id="new", createdAt="2024-03-01T00:00:00Z", entryDate="2024-03-01T00:00:00Z"))
        trade_store.save(make_trade(id="mid", createdAt="2024-02-01T00:00:00Z", entryDate="2023-06-01T00:00:00Z"))

        summaries = trade_store.list().data
        assert [s.id for s in summaries] == ["new", "mid", "old"]
        assert all(isinstance(s, TradeSummary) for s in summaries)

    def test_skips_malformed_files(self, trade_store, layout, make_trade, caplog):
        for index in range(3):
            trade_store.save(make_trade(id=f"good-{index}"))
        bad = layout.trades_dir / "2024" / "AAPL_20240115_broken.json"
        bad.write_text("{oops", encoding="utf-8")

        with caplog.at_level(logging.WARNING):
            response = trade_store.list()

        assert response.success
        assert len(response.data) == 3
        assert any("broken" in record.getMessage() for record in caplog.records)

    def test_all_returns_full_documents(self, trade_store, make_trade):
        trade_store.save(make_trade(id="t1"))
        trades = trade_store.all().data
        assert isinstance(trades[0], Trade)
        assert trades[0].pre_trade_notes is not None

    def test_verify_reports_bad_files(self, trade_store, layout, make_trade):
        trade_store.save(make_trade(id="good"))
        (layout.trades_dir / "2024" / "X_20240101_corrupt.json").write_text("{", encoding="utf-8")
        (layout.trades_dir / "2024" / "X_20240101_invalid.json").write_text("{}", encoding="utf-8")

        problems = trade_store.verify().data
        assert {p["path"] for p in problems} == {
            "trades/2024/X_20240101_corrupt.json",
            "trades/2024/X_20240101_invalid.json",
        }
        codes = {p["path"].split("_")[-1]: p["code"] for p in problems}
        assert codes["corrupt.json"] == str(ErrorCodes.DATA_CORRUPT)
        assert codes["invalid.json"] == str(ErrorCodes.VALIDATION_INVALID_ENTITY)


class TestDelete:
    """Tests for delete."""

    def test_delete_then_load_is_not_found(self, trade_store, make_trade):
        trade_store.save(make_trade(id="trade-1"))
        assert trade_store.delete("trade-1").success
        assert trade_store.load("trade-1").code == str(ErrorCodes.DATA_NOT_FOUND)

    def test_delete_missing_is_an_error(self, trade_store):
        response = trade_store.delete("nope")
        assert not response.success
        assert response.code == str(ErrorCodes.DATA_NOT_FOUND)


class TestIndexedStore:
    """The store behaves the same behind an indexed locator."""

    def test_crud_with_index(self, layout, make_trade):
        store = TradeStore(layout, IndexedLocator(GlobLocator(layout.trades_dir, recursive=True)))
        store.save(make_trade(id="trade-1"))

        assert store.load("trade-1").success
        assert store.delete("trade-1").success
        assert not store.load("trade-1").success

    def test_empty_index_is_kept(self, layout, make_trade):
        locator = IndexedLocator(GlobLocator(layout.trades_dir, recursive=True))
        assert len(locator) == 0

        store = TradeStore(layout, locator)
        assert store.locator is locator

        store.save(make_trade(id="trade-1"))
        assert store.load("trade-1").success
        assert len(locator) == 1
