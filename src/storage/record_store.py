"""Translation record store.

Durable, directory-based history of translation sessions::

    <root>/
        translations/<record-id>/record.json
        translations_index.json          {"<record-id>": "<created-at>", ...}

The index lets ``list`` enumerate records without scanning the directory
tree. It must stay consistent with the per-record files, so every operation
on a store runs under one lock (single writer) and every document is written
atomically. A reader never sees a half-written index or record.

Read failures during ``list`` are recovered per entry (the record is treated
as deleted). Failures of ``save``/``delete``/``clear_all`` are raised as
StoreError and never swallowed.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from uuid import UUID

from pydantic import ValidationError

from src.models.translation import RecordIndex, TranslationRecord
from src.storage._files import atomic_write_bytes, remove_tree
from src.storage.errors import StoreError, StoreErrorKind

logger = logging.getLogger(__name__)

RECORDS_DIRNAME = "translations"
INDEX_FILENAME = "translations_index.json"
RECORD_FILENAME = "record.json"


# ---------------------------------------------------------------------------
# Store contract
# ---------------------------------------------------------------------------


@dataclass
class CompactionReport:
    """What a compaction pass cleaned up."""

    removed_orphans: list[str] = field(default_factory=list)
    pruned_entries: list[str] = field(default_factory=list)


class RecordStore(ABC):
    """ABC for translation record persistence."""

    @abstractmethod
    def save(self, record: TranslationRecord) -> None: ...

    @abstractmethod
    def get(self, record_id: UUID | str) -> TranslationRecord | None: ...

    @abstractmethod
    def list(self) -> list[TranslationRecord]: ...

    @abstractmethod
    def delete(self, record_id: UUID | str) -> None: ...

    @abstractmethod
    def clear_all(self) -> None: ...

    @abstractmethod
    def compact(self) -> CompactionReport: ...


# ---------------------------------------------------------------------------
# Filesystem implementation
# ---------------------------------------------------------------------------


def _normalize_id(record_id: UUID | str) -> str | None:
    """Canonical string form of a record id, or None if it is not a UUID.

    Only canonical UUIDs ever name a record directory, which keeps arbitrary
    input from escaping the store root.
    """
    if isinstance(record_id, UUID):
        return str(record_id)
    try:
        return str(UUID(str(record_id)))
    except ValueError:
        return None


class FileRecordStore(RecordStore):
    """Directory-backed record store.

    Create one instance per storage root at process start and pass it to
    callers. Directories are created lazily on the first mutating call.
    """

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)
        self._records_dir = self._root / RECORDS_DIRNAME
        self._index_path = self._root / INDEX_FILENAME
        self._lock = threading.Lock()

    @property
    def root(self) -> Path:
        return self._root

    # ----- Public operations -----

    def save(self, record: TranslationRecord) -> None:
        """Persist ``record`` and add it to the index.

        The record is committed only once the index includes it. If the
        index update fails a newly created record directory is rolled back
        where possible and StoreError is raised so the caller can retry. An
        already committed record keeps its directory.
        """
        record_id = str(record.id)
        record_dir = self._records_dir / record_id
        with self._lock:
            # Only a directory created by this call is rolled back.
            is_new = not record_dir.exists()
            try:
                record_dir.mkdir(parents=True, exist_ok=True)
                atomic_write_bytes(
                    record_dir / RECORD_FILENAME,
                    record.model_dump_json(indent=2).encode("utf-8"),
                )
            except OSError as exc:
                msg = f"Failed to write record {record_id}: {exc}"
                raise StoreError(StoreErrorKind.IO, msg) from exc

            try:
                index = self._index_for_update()
                self._write_index(index.with_entry(record_id, record.created_at))
            except OSError as exc:
                if is_new:
                    self._rollback_record(record_dir)
                msg = f"Record {record_id} was written but the index update failed: {exc}"
                raise StoreError(StoreErrorKind.IO, msg) from exc

        logger.info("Saved translation record %s (%d items)", record_id, len(record.menu_items))

    def get(self, record_id: UUID | str) -> TranslationRecord | None:
        """Load one committed record, or None if unknown or unreadable."""
        key = _normalize_id(record_id)
        if key is None:
            return None
        with self._lock:
            if key not in self._read_index():
                return None
            return self._load_record(key)

    def list(self) -> list[TranslationRecord]:
        """All readable committed records, most recent first.

        A missing or corrupt index means no history yet. Entries whose record
        file is missing or corrupt are skipped.
        """
        with self._lock:
            index = self._read_index()
            records = []
            for entry in index.entries():
                record = self._load_record(entry.record_id)
                if record is not None:
                    records.append(record)
        return sorted(records, key=lambda r: r.created_at, reverse=True)

    def delete(self, record_id: UUID | str) -> None:
        """Remove a record. Unknown ids are a no-op."""
        key = _normalize_id(record_id)
        if key is None:
            logger.debug("Ignoring delete of malformed record id %r", record_id)
            return
        with self._lock:
            try:
                removed = remove_tree(self._records_dir / key)
            except OSError as exc:
                msg = f"Failed to remove record {key}: {exc}"
                raise StoreError(StoreErrorKind.IO, msg) from exc

            try:
                index = self._index_for_update()
                if key in index:
                    self._write_index(index.without(key))
            except OSError as exc:
                msg = f"Record {key} was removed but the index update failed: {exc}"
                raise StoreError(StoreErrorKind.IO, msg) from exc

        if removed:
            logger.info("Deleted translation record %s", key)

    def clear_all(self) -> None:
        """Remove every record and reset the index to empty."""
        with self._lock:
            try:
                remove_tree(self._records_dir)
                self._records_dir.mkdir(parents=True, exist_ok=True)
                self._write_index(RecordIndex())
            except OSError as exc:
                msg = f"Failed to clear translation history: {exc}"
                raise StoreError(StoreErrorKind.IO, msg) from exc
        logger.info("Cleared all translation records under %s", self._root)

    def compact(self) -> CompactionReport:
        """Reconcile the directory tree with the index.

        Removes record directories that never made it into the index and
        drops index entries whose record is missing or unreadable. Skipped
        entirely when the index itself cannot be read, since orphans cannot
        be told apart from committed records then.
        """
        report = CompactionReport()
        with self._lock:
            try:
                index = self._load_index()
            except FileNotFoundError:
                index = RecordIndex()
            except (OSError, ValidationError) as exc:
                logger.warning("Skipping compaction, index unreadable: %s", exc)
                return report

            try:
                for record_dir in self._record_dirs():
                    if record_dir.name not in index:
                        remove_tree(record_dir)
                        report.removed_orphans.append(record_dir.name)

                for entry in index.entries():
                    if self._load_record(entry.record_id) is None:
                        index = index.without(entry.record_id)
                        report.pruned_entries.append(entry.record_id)
                if report.pruned_entries:
                    self._write_index(index)
            except OSError as exc:
                msg = f"Compaction failed: {exc}"
                raise StoreError(StoreErrorKind.IO, msg) from exc

        if report.removed_orphans or report.pruned_entries:
            logger.info(
                "Compacted record store: %d orphan(s) removed, %d entry(ies) pruned",
                len(report.removed_orphans),
                len(report.pruned_entries),
            )
        return report

    # ----- Index handling (callers hold the lock) -----

    def _load_index(self) -> RecordIndex:
        return RecordIndex.model_validate_json(self._index_path.read_bytes())

    def _read_index(self) -> RecordIndex:
        """Index for read paths; any failure reads as empty history."""
        try:
            return self._load_index()
        except FileNotFoundError:
            return RecordIndex()
        except (OSError, ValidationError) as exc:
            logger.warning("Translation index unreadable, treating as empty: %s", exc)
            return RecordIndex()

    def _index_for_update(self) -> RecordIndex:
        """Index for mutating paths.

        A corrupt index is rebuilt from the record files rather than replaced
        by an empty one, so one bad write cannot drop the whole history. Every
        readable record directory is indexed again, including orphans a
        failed rollback left behind: a record file that passed validation is
        kept rather than guessed to be a leak.
        """
        try:
            return self._load_index()
        except FileNotFoundError:
            return RecordIndex()
        except ValidationError as exc:
            logger.warning("Translation index corrupt, rebuilding from records: %s", exc)
            return self._rebuild_index()

    def _rebuild_index(self) -> RecordIndex:
        index = RecordIndex()
        for record_dir in self._record_dirs():
            record = self._load_record(record_dir.name)
            if record is not None:
                index = index.with_entry(record_dir.name, record.created_at)
        return index

    def _write_index(self, index: RecordIndex) -> None:
        atomic_write_bytes(
            self._index_path,
            index.model_dump_json(indent=2).encode("utf-8"),
        )

    # ----- Record files (callers hold the lock) -----

    def _record_dirs(self) -> list[Path]:
        if not self._records_dir.is_dir():
            return []
        return [p for p in self._records_dir.iterdir() if p.is_dir()]

    def _load_record(self, record_id: str) -> TranslationRecord | None:
        if _normalize_id(record_id) != record_id:
            logger.warning("Skipping index entry with malformed id %r", record_id)
            return None
        path = self._records_dir / record_id / RECORD_FILENAME
        try:
            record = TranslationRecord.model_validate_json(path.read_bytes())
        except FileNotFoundError:
            logger.warning("Record file missing for %s, skipping", record_id)
            return None
        except (OSError, ValidationError) as exc:
            logger.warning("Record file for %s unreadable, skipping: %s", record_id, exc)
            return None
        if str(record.id) != record_id:
            logger.warning(
                "Record file for %s holds record %s, skipping", record_id, record.id,
            )
            return None
        return record

    def _rollback_record(self, record_dir: Path) -> None:
        try:
            remove_tree(record_dir)
        except OSError as exc:
            # Left for compact() to collect.
            logger.error("Could not roll back unindexed record %s: %s", record_dir.name, exc)
