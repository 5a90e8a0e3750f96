"""Tests for the history store and its merge operator."""

from __future__ import annotations

import itertools
import threading
from pathlib import Path

import pytest

from switchrun.core.entry import Command, Entry, Exe
from switchrun.core.errors import StoreUnavailable
from switchrun.core.frecency_store import FrecencyStore, HistoryRecord, merge_records


def _record(name: str, when: float, use_count: int = 1, path: str = "x.exe") -> HistoryRecord:
    return HistoryRecord(
        name=name, kind={"Exe": {"path": path, "params": ""}}, use_count=use_count, last_use_time=when
    )


@pytest.fixture
def store(tmp_path: Path, logger, clock):
    with FrecencyStore(str(tmp_path / "history"), logger, time_handler=clock) as opened:
        yield opened


def test_first_merge_stores_record_verbatim(store: FrecencyStore) -> None:
    store.merge("notepad", _record("notepad", 5.0, use_count=1))
    assert store.get("notepad") == _record("notepad", 5.0, use_count=1)


def test_each_merge_counts_one_use_whatever_the_operand_says(store: FrecencyStore) -> None:
    store.merge("notepad", _record("notepad", 5.0))
    store.merge("notepad", _record("notepad", 6.0, use_count=7))
    store.merge("notepad", _record("notepad", 7.0, use_count=0))
    assert store.get("notepad").use_count == 3


def test_merge_keeps_prior_kind_and_newest_time(store: FrecencyStore) -> None:
    store.merge("notepad", _record("notepad", 50.0, path="first.exe"))
    store.merge("notepad", _record("notepad", 20.0, path="second.exe"))
    record = store.get("notepad")
    assert record.kind == {"Exe": {"path": "first.exe", "params": ""}}
    assert record.last_use_time == 50.0
    store.merge("notepad", _record("notepad", 80.0))
    assert store.get("notepad").last_use_time == 80.0


def test_merge_records_is_order_independent() -> None:
    writes = [_record("k", 3.0), _record("k", 1.0), _record("k", 2.0)]
    results = set()
    for order in itertools.permutations(writes):
        folded = None
        for operand in order:
            folded = merge_records(folded, operand)
        results.add((folded.use_count, folded.last_use_time))
    assert results == {(3, 3.0)}


def test_two_writer_fold_has_same_count_in_either_order() -> None:
    r1, r2 = _record("k", 1.0), _record("k", 2.0)
    assert (
        merge_records(merge_records(None, r1), r2).use_count
        == merge_records(merge_records(None, r2), r1).use_count
        == 2
    )


def test_record_use_stamps_current_time(store: FrecencyStore, clock) -> None:
    store.record_use(Entry(name="ls -la", kind=Command("ls -la"), use_count=12))
    record = store.get("ls -la")
    assert record.use_count == 1
    assert record.last_use_time == clock.now
    assert record.to_entry() == Entry(
        name="ls -la", kind=Command("ls -la"), use_count=1, last_use_time=clock.now
    )


def test_delete_removes_key_and_ignores_missing(store: FrecencyStore) -> None:
    store.merge("notepad", _record("notepad", 1.0))
    store.delete("notepad")
    store.delete("never-stored")
    assert store.get("notepad") is None
    assert len(store) == 0


def test_iterate_orders_least_recent_first(store: FrecencyStore) -> None:
    store.merge("b", _record("b", 20.0))
    store.merge("a", _record("a", 10.0))
    store.merge("c", _record("c", 30.0))
    store.merge("a", _record("a", 40.0))
    assert [r.name for r in store.iterate()] == ["b", "c", "a"]


def test_iterate_skips_unreadable_rows(store: FrecencyStore) -> None:
    store.merge("good", _record("good", 1.0))
    store.conn.execute(
        "INSERT INTO history (name, record, use_count, last_use_time) VALUES (?, ?, ?, ?)",
        ("bad", b"\xff not json", 1, 2.0),
    )
    store.conn.execute(
        "INSERT INTO history (name, record, use_count, last_use_time) VALUES (?, ?, ?, ?)",
        ("unknown", b'{"Rocket": {}}', 1, 3.0),
    )
    assert [r.name for r in store.iterate()] == ["good"]


def test_history_survives_reopening(tmp_path: Path, logger) -> None:
    directory = str(tmp_path / "history")
    with FrecencyStore(directory, logger) as first:
        first.merge("notepad", _record("notepad", 1.0))
    with FrecencyStore(directory, logger) as second:
        second.merge("notepad", _record("notepad", 2.0))
        assert second.get("notepad").use_count == 2


def test_concurrent_writers_lose_no_increment(tmp_path: Path, logger) -> None:
    directory = str(tmp_path / "history")
    FrecencyStore(directory, logger).close()
    writers, merges_each = 4, 25
    errors: list[BaseException] = []

    def write(worker: int) -> None:
        try:
            with FrecencyStore(directory, logger) as own:
                for i in range(merges_each):
                    own.merge("shared", _record("shared", float(worker * 1000 + i)))
        except BaseException as e:
            errors.append(e)

    threads = [threading.Thread(target=write, args=(w,)) for w in range(writers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    with FrecencyStore(directory, logger) as check:
        assert check.get("shared").use_count == writers * merges_each


def test_unopenable_directory_raises_store_unavailable(tmp_path: Path, logger) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    with pytest.raises(StoreUnavailable):
        FrecencyStore(str(blocker / "history"), logger)


def test_corrupt_database_raises_store_unavailable(tmp_path: Path, logger) -> None:
    directory = tmp_path / "history"
    directory.mkdir()
    (directory / "history.db").write_bytes(b"this is not a sqlite database" * 100)
    with pytest.raises(StoreUnavailable):
        FrecencyStore(str(directory), logger)


def test_history_record_round_trips_entry() -> None:
    entry = Entry(name="notepad", kind=Exe(path="notepad.exe"), use_count=2, last_use_time=3.0)
    assert HistoryRecord.from_entry(entry).to_entry() == entry
