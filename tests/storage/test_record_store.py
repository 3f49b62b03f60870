"""Tests for the directory-backed translation record store.

Covers: save/list round-trip, ordering, idempotent delete, clear_all reuse,
per-entry recovery from missing or corrupt files, index rebuild, failure
surfacing on mutating operations, compaction, and concurrent writers.
"""

import json
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from uuid import uuid4

import pytest

from src.models.translation import TranslationRecord
from src.storage.errors import StoreError, StoreErrorKind
from src.storage.record_store import (
    INDEX_FILENAME,
    RECORD_FILENAME,
    RECORDS_DIRNAME,
    FileRecordStore,
    RecordStore,
)


@pytest.fixture
def store(tmp_path: Path) -> FileRecordStore:
    return FileRecordStore(tmp_path / "store")


def _index(store: FileRecordStore) -> dict:
    return json.loads((store.root / INDEX_FILENAME).read_text(encoding="utf-8"))


def _record_file(store: FileRecordStore, record: TranslationRecord) -> Path:
    return store.root / RECORDS_DIRNAME / str(record.id) / RECORD_FILENAME


# ===================================================================
# Save / list round-trip
# ===================================================================


class TestSaveAndList:
    """Saved records come back equal in every field."""

    def test_is_a_record_store(self, store: FileRecordStore) -> None:
        assert isinstance(store, RecordStore)

    def test_list_empty_before_first_save(self, store: FileRecordStore) -> None:
        assert store.list() == []
        assert not store.root.exists()

    def test_round_trip(self, store: FileRecordStore, make_record) -> None:
        record = make_record()
        store.save(record)

        [loaded] = store.list()
        assert loaded == record
        assert loaded.created_at == record.created_at
        assert loaded.menu_items == record.menu_items
        assert loaded.image_set[0].additional_asset_names == ["additional_0_1.jpg"]

    def test_get_by_id(self, store: FileRecordStore, make_record) -> None:
        record = make_record()
        store.save(record)
        assert store.get(record.id) == record
        assert store.get(str(record.id)) == record

    def test_get_unknown_returns_none(self, store: FileRecordStore) -> None:
        assert store.get(uuid4()) is None
        assert store.get("not-a-uuid") is None

    def test_optional_price_round_trips(self, store: FileRecordStore, make_record) -> None:
        record = make_record()
        store.save(record)
        prices = [item.price for item in store.get(record.id).menu_items]
        assert prices == [28, None]

    def test_record_without_images(self, store: FileRecordStore, make_record) -> None:
        record = make_record(assets=())
        store.save(record)
        assert store.get(record.id).image_set == []

    def test_index_maps_id_to_timestamp(self, store: FileRecordStore, make_record) -> None:
        record = make_record()
        store.save(record)
        index = _index(store)
        assert list(index) == [str(record.id)]
        assert index[str(record.id)].startswith("2026-10-01T12:00:00.123456")

    def test_list_most_recent_first(self, store: FileRecordStore, make_record) -> None:
        older = make_record(title="older", offset_minutes=0)
        newest = make_record(title="newest", offset_minutes=30)
        middle = make_record(title="middle", offset_minutes=10)
        for record in (older, newest, middle):
            store.save(record)

        assert [r.title for r in store.list()] == ["newest", "middle", "older"]

    def test_resave_same_record_is_single_entry(
        self, store: FileRecordStore, make_record,
    ) -> None:
        record = make_record()
        store.save(record)
        store.save(record)
        assert len(store.list()) == 1

    def test_survives_new_handle(self, tmp_path: Path, make_record) -> None:
        record = make_record()
        FileRecordStore(tmp_path).save(record)
        assert FileRecordStore(tmp_path).list() == [record]

    def test_no_temp_files_left(self, store: FileRecordStore, make_record) -> None:
        store.save(make_record())
        leftovers = [p for p in store.root.rglob("*.tmp")]
        assert leftovers == []


# ===================================================================
# Delete
# ===================================================================


class TestDelete:
    def test_deleted_record_not_listed(self, store: FileRecordStore, make_record) -> None:
        keep = make_record(title="keep")
        drop = make_record(title="drop", offset_minutes=5)
        store.save(keep)
        store.save(drop)

        store.delete(drop.id)

        assert [r.id for r in store.list()] == [keep.id]
        assert str(drop.id) not in _index(store)
        assert not (store.root / RECORDS_DIRNAME / str(drop.id)).exists()

    def test_delete_unknown_id_succeeds(self, store: FileRecordStore, make_record) -> None:
        store.save(make_record())
        store.delete(uuid4())
        assert len(store.list()) == 1

    def test_delete_on_empty_store_succeeds(self, store: FileRecordStore) -> None:
        store.delete(uuid4())
        assert store.list() == []

    def test_delete_twice(self, store: FileRecordStore, make_record) -> None:
        record = make_record()
        store.save(record)
        store.delete(record.id)
        store.delete(record.id)
        assert store.list() == []

    def test_malformed_id_cannot_escape_root(
        self, tmp_path: Path, make_record,
    ) -> None:
        victim = tmp_path / "victim"
        victim.mkdir()
        store = FileRecordStore(tmp_path / "store")
        store.save(make_record())

        store.delete("../../victim")

        assert victim.exists()
        assert len(store.list()) == 1


# ===================================================================
# Clear all
# ===================================================================


class TestClearAll:
    def test_clear_then_list_empty(self, store: FileRecordStore, make_record) -> None:
        for minutes in range(3):
            store.save(make_record(offset_minutes=minutes))
        store.clear_all()
        assert store.list() == []
        assert _index(store) == {}

    def test_store_reusable_after_clear(self, store: FileRecordStore, make_record) -> None:
        store.save(make_record())
        store.clear_all()
        record = make_record(title="after")
        store.save(record)
        assert store.list() == [record]

    def test_clear_on_fresh_store(self, store: FileRecordStore) -> None:
        store.clear_all()
        assert store.list() == []
        assert (store.root / RECORDS_DIRNAME).is_dir()


# ===================================================================
# Read-side recovery
# ===================================================================


class TestListRecovery:
    """Unreadable files are skipped, never fatal for list()."""

    def test_missing_record_file_skipped(self, store: FileRecordStore, make_record) -> None:
        gone = make_record(title="gone")
        kept = make_record(title="kept", offset_minutes=1)
        store.save(gone)
        store.save(kept)
        _record_file(store, gone).unlink()

        assert [r.title for r in store.list()] == ["kept"]

    def test_corrupt_record_file_skipped(self, store: FileRecordStore, make_record) -> None:
        bad = make_record(title="bad")
        good = make_record(title="good", offset_minutes=1)
        store.save(bad)
        store.save(good)
        _record_file(store, bad).write_text("{not json", encoding="utf-8")

        assert [r.title for r in store.list()] == ["good"]
        assert store.get(bad.id) is None

    def test_record_with_mismatched_id_skipped(
        self, store: FileRecordStore, make_record,
    ) -> None:
        first = make_record(title="first")
        second = make_record(title="second", offset_minutes=1)
        store.save(first)
        store.save(second)
        _record_file(store, first).write_bytes(_record_file(store, second).read_bytes())

        assert [r.title for r in store.list()] == ["second"]

    def test_corrupt_index_reads_as_empty(self, store: FileRecordStore, make_record) -> None:
        store.save(make_record())
        (store.root / INDEX_FILENAME).write_text("garbage", encoding="utf-8")
        assert store.list() == []

    def test_naive_index_timestamp_reads_as_empty(
        self, store: FileRecordStore, make_record,
    ) -> None:
        a = make_record(title="a")
        b = make_record(title="b", offset_minutes=1)
        store.save(a)
        store.save(b)
        index = _index(store)
        index[str(a.id)] = "2024-01-01T00:00:00"
        (store.root / INDEX_FILENAME).write_text(json.dumps(index), encoding="utf-8")

        assert store.list() == []
        assert store.get(b.id) is None

    def test_naive_index_timestamp_rebuilt_on_save(
        self, store: FileRecordStore, make_record,
    ) -> None:
        a = make_record(title="a")
        store.save(a)
        index = _index(store)
        index[str(a.id)] = "2024-01-01T00:00:00"
        (store.root / INDEX_FILENAME).write_text(json.dumps(index), encoding="utf-8")

        store.save(make_record(title="b", offset_minutes=1))

        assert [r.title for r in store.list()] == ["b", "a"]

    def test_malformed_index_key_skipped(self, store: FileRecordStore, make_record) -> None:
        record = make_record()
        store.save(record)
        index = _index(store)
        index["../escape"] = index[str(record.id)]
        (store.root / INDEX_FILENAME).write_text(json.dumps(index), encoding="utf-8")

        assert store.list() == [record]


class TestIndexRebuild:
    def test_save_after_corrupt_index_keeps_history(
        self, store: FileRecordStore, make_record,
    ) -> None:
        first = make_record(title="first")
        store.save(first)
        (store.root / INDEX_FILENAME).write_text("[1, 2", encoding="utf-8")

        second = make_record(title="second", offset_minutes=1)
        store.save(second)

        assert [r.title for r in store.list()] == ["second", "first"]

    def test_rebuild_promotes_readable_orphan(
        self, store: FileRecordStore, make_record,
    ) -> None:
        first = make_record(title="first")
        store.save(first)
        orphan = make_record(title="orphan", offset_minutes=1)
        _record_file(store, orphan).parent.mkdir()
        _record_file(store, orphan).write_text(orphan.model_dump_json(), encoding="utf-8")
        assert [r.title for r in store.list()] == ["first"]

        (store.root / INDEX_FILENAME).write_text("{broken", encoding="utf-8")
        store.save(make_record(title="second", offset_minutes=2))

        assert [r.title for r in store.list()] == ["second", "orphan", "first"]


# ===================================================================
# Mutating failures are surfaced
# ===================================================================


class TestFailureSurfacing:
    def test_index_write_failure_raises_and_rolls_back(
        self, store: FileRecordStore, make_record, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        record = make_record()

        def _fail(*args, **kwargs):
            raise OSError("disk full")

        monkeypatch.setattr(store, "_write_index", _fail)

        with pytest.raises(StoreError) as exc_info:
            store.save(record)

        assert exc_info.value.kind == StoreErrorKind.IO
        assert "disk full" in str(exc_info.value)
        assert not (store.root / RECORDS_DIRNAME / str(record.id)).exists()

    def test_failed_resave_keeps_committed_record(
        self, store: FileRecordStore, make_record, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        record = make_record()
        store.save(record)

        def _fail(*args, **kwargs):
            raise OSError("disk full")

        monkeypatch.setattr(store, "_write_index", _fail)
        with pytest.raises(StoreError):
            store.save(record)

        assert _record_file(store, record).exists()
        assert store.list() == [record]

    def test_store_usable_after_failed_save(
        self, store: FileRecordStore, make_record, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        def _fail(*args, **kwargs):
            raise OSError("disk full")

        monkeypatch.setattr(store, "_write_index", _fail)
        with pytest.raises(StoreError):
            store.save(make_record())
        monkeypatch.undo()

        record = make_record(title="retry")
        store.save(record)
        assert store.list() == [record]

    def test_record_write_failure_raises(
        self, tmp_path: Path, make_record,
    ) -> None:
        blocker = tmp_path / "blocked"
        blocker.write_text("a file, not a directory", encoding="utf-8")
        store = FileRecordStore(blocker)

        with pytest.raises(StoreError) as exc_info:
            store.save(make_record())
        assert exc_info.value.kind == StoreErrorKind.IO

    def test_clear_failure_raises(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocked"
        blocker.write_text("a file, not a directory", encoding="utf-8")
        with pytest.raises(StoreError):
            FileRecordStore(blocker).clear_all()


# ===================================================================
# Compaction
# ===================================================================


class TestCompact:
    def test_removes_unindexed_directories(
        self, store: FileRecordStore, make_record,
    ) -> None:
        committed = make_record(title="committed")
        store.save(committed)
        orphan_dir = store.root / RECORDS_DIRNAME / str(uuid4())
        orphan_dir.mkdir()
        (orphan_dir / RECORD_FILENAME).write_text("{}", encoding="utf-8")

        report = store.compact()

        assert report.removed_orphans == [orphan_dir.name]
        assert not orphan_dir.exists()
        assert store.list() == [committed]

    def test_prunes_entries_without_records(
        self, store: FileRecordStore, make_record,
    ) -> None:
        gone = make_record(title="gone")
        store.save(gone)
        _record_file(store, gone).unlink()

        report = store.compact()

        assert report.pruned_entries == [str(gone.id)]
        assert _index(store) == {}

    def test_noop_on_consistent_store(self, store: FileRecordStore, make_record) -> None:
        store.save(make_record())
        report = store.compact()
        assert report.removed_orphans == []
        assert report.pruned_entries == []

    def test_skipped_when_index_corrupt(self, store: FileRecordStore, make_record) -> None:
        record = make_record()
        store.save(record)
        (store.root / INDEX_FILENAME).write_text("garbage", encoding="utf-8")

        report = store.compact()

        assert report.removed_orphans == []
        assert _record_file(store, record).exists()


# ===================================================================
# Concurrency
# ===================================================================


class TestConcurrentAccess:
    """Serialized writers never lose an index update."""

    def test_concurrent_saves_all_indexed(
        self, store: FileRecordStore, make_record,
    ) -> None:
        records = [make_record(title=f"r{i}", offset_minutes=i) for i in range(32)]

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(store.save, records))

        listed = store.list()
        assert {r.id for r in listed} == {r.id for r in records}
        assert len(_index(store)) == len(records)

    def test_two_concurrent_saves(self, store: FileRecordStore, make_record) -> None:
        a = make_record(title="A")
        b = make_record(title="B", offset_minutes=1)

        with ThreadPoolExecutor(max_workers=2) as pool:
            futures = [pool.submit(store.save, a), pool.submit(store.save, b)]
            for future in futures:
                future.result()

        assert {r.title for r in store.list()} == {"A", "B"}

    def test_interleaved_save_delete_and_list(
        self, store: FileRecordStore, make_record,
    ) -> None:
        keep = [make_record(title=f"keep{i}", offset_minutes=i) for i in range(10)]
        drop = [make_record(title=f"drop{i}", offset_minutes=100 + i) for i in range(10)]
        for record in drop:
            store.save(record)

        def _work(i: int) -> None:
            store.save(keep[i])
            store.delete(drop[i].id)
            store.list()

        with ThreadPoolExecutor(max_workers=6) as pool:
            list(pool.map(_work, range(10)))

        assert {r.title for r in store.list()} == {r.title for r in keep}
        assert set(_index(store)) == {str(r.id) for r in keep}
