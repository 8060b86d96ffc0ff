import json
import logging
import os
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from peewee import PeeweeException, SqliteDatabase, chunked, fn

from .models import ALL_MODELS, DataRow, FileRecord, db_proxy
from ..errors import StorageError
from ..indexer.sanitizer import build_search_text, find_suspicious_fields
from ..models import RowData
from ..utils import utc_now

logger = logging.getLogger("sheetdex.db")

# (sheet_name, [(row_number, row), ...]) as produced by the reader.
SheetRows = Tuple[str, Sequence[Tuple[int, RowData]]]


def _is_memory_path(db_path: str) -> bool:
    if not db_path or db_path == ":memory:":
        return True
    return db_path.startswith("file::memory:") or "mode=memory" in db_path


class SheetStore:
    """
    SQLite store holding imported files and their data rows.

    Connection state is thread-local (peewee default), so each worker thread
    wraps its work in ``session()`` and gets a private connection. Writes take
    the database lock up front (``BEGIN IMMEDIATE``) and wait on the busy
    timeout instead of failing halfway through a file.

    The models are bound through the module-level ``db_proxy``: each new
    store takes over the models from any store opened before it, so keep one
    open store per process. In-memory databases are rejected because every
    thread would see its own empty copy.
    """

    def __init__(self,
                 db_path: str,
                 logger_obj: Optional[logging.Logger] = None,
                 **kwargs):
        self.db_path = db_path
        self.logger = logger_obj or logger
        if _is_memory_path(db_path):
            raise StorageError("in-memory databases are not supported; use a file path", path=db_path)
        Path(db_path).expanduser().parent.mkdir(parents=True, exist_ok=True)
        try:
            self.db = SqliteDatabase(db_path, pragmas={
                'journal_mode': kwargs.get('journal_mode', 'wal'),
                'cache_size': -10000,
                'foreign_keys': 1,
                'synchronous': 1,
                'busy_timeout': kwargs.get('busy_timeout', 15000),
            })
            db_proxy.initialize(self.db)
            self.db.connect(reuse_if_open=True)
            self.db.create_tables(ALL_MODELS, safe=True)
        except PeeweeException as e:
            self.logger.error("Failed to initialize database: %s", e, exc_info=True)
            raise StorageError(f"cannot open store: {e}", path=db_path) from e

    @contextmanager
    def session(self):
        """Open a connection for the current thread unless one is already open."""
        if not self.db.is_closed():
            yield self.db
            return
        with self.db.connection_context():
            yield self.db

    @contextmanager
    def _reading(self, operation: str, path: Optional[str] = None):
        try:
            yield
        except PeeweeException as e:
            raise StorageError(f"{operation} failed: {e}", path=path) from e

    def close(self) -> None:
        if not self.db.is_closed():
            self.db.close()

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    def get_file(self, file_path: str) -> Optional[FileRecord]:
        with self._reading("file lookup", file_path):
            return FileRecord.get_or_none(FileRecord.file_path == file_path)

    def get_fingerprint(self, file_path: str) -> Optional[str]:
        with self._reading("fingerprint lookup", file_path):
            record = (FileRecord
                      .select(FileRecord.file_hash)
                      .where(FileRecord.file_path == file_path)
                      .first())
        return record.file_hash if record else None

    def delete_file(self, file_path: str) -> bool:
        """Remove a file and, through the cascade, all of its rows."""
        try:
            with self.db.atomic(lock_type="IMMEDIATE"):
                deleted = FileRecord.delete().where(FileRecord.file_path == file_path).execute()
        except PeeweeException as e:
            raise StorageError(f"failed to delete file: {e}", path=file_path) from e
        return deleted > 0

    def prune_missing(self, root: str, seen_paths: Iterable[str]) -> int:
        """Delete files stored under ``root`` that are not in ``seen_paths``."""
        prefix = root.rstrip(os.sep) + os.sep
        seen: Set[str] = set(seen_paths)
        with self._reading("prune scan", root):
            stale = [r.id for r in FileRecord.select(FileRecord.id, FileRecord.file_path)
                     if r.file_path.startswith(prefix) and r.file_path not in seen]
        if not stale:
            return 0
        try:
            with self.db.atomic(lock_type="IMMEDIATE"):
                for batch in chunked(stale, 500):
                    FileRecord.delete().where(FileRecord.id.in_(batch)).execute()
        except PeeweeException as e:
            raise StorageError(f"failed to prune missing files: {e}", path=root) from e
        self.logger.info("Pruned %d missing file(s) under %s", len(stale), root)
        return len(stale)

    # ------------------------------------------------------------------
    # Import write path
    # ------------------------------------------------------------------

    def replace_file_rows(self,
                          file_path: str,
                          file_name: str,
                          file_size: int,
                          file_hash: str,
                          field_order: List[str],
                          sheets: Iterable[SheetRows]) -> Tuple[int, int]:
        """
        Upsert the file record and swap its rows for ``sheets`` in one transaction.

        Returns ``(file_id, inserted_rows)``. On any failure nothing is kept:
        the old rows and the old fingerprint survive untouched.
        """
        now = utc_now()
        inserted = 0
        try:
            with self.db.atomic(lock_type="IMMEDIATE"):
                record = FileRecord.get_or_none(FileRecord.file_path == file_path)
                if record is None:
                    record = FileRecord.create(
                        file_path=file_path,
                        file_name=file_name,
                        file_size=file_size,
                        file_hash=file_hash,
                        field_order=json.dumps(field_order, ensure_ascii=False),
                        created_at=now,
                        updated_at=now,
                    )
                else:
                    record.file_name = file_name
                    record.file_size = file_size
                    record.file_hash = file_hash
                    record.field_order = json.dumps(field_order, ensure_ascii=False)
                    record.updated_at = now
                    record.save()

                DataRow.delete().where(DataRow.file == record.id).execute()

                for sheet_name, rows in sheets:
                    for row_number, data in rows:
                        try:
                            data_json = json.dumps(data, ensure_ascii=False)
                            DataRow.insert(
                                file=record.id,
                                sheet_name=sheet_name,
                                row_number=row_number,
                                data_json=data_json,
                                search_text=build_search_text(data.values()),
                                import_time=now,
                            ).execute()
                        except (PeeweeException, TypeError, ValueError) as e:
                            self._log_failed_row(file_path, sheet_name, row_number, data, e)
                            raise
                        inserted += 1
                file_id = record.id
        except (PeeweeException, TypeError, ValueError) as e:
            raise StorageError(f"failed to write rows: {e}", path=file_path) from e
        return file_id, inserted

    def _log_failed_row(self, file_path: str, sheet_name: str, row_number: int,
                        data: RowData, error: Exception) -> None:
        self.logger.error("Row insert failed in %s [%s] row %d: %s",
                          file_path, sheet_name, row_number, error)
        for key, value in find_suspicious_fields(data):
            self.logger.error("  suspicious field %r: %r", key, value)
        self.logger.error("  raw row: %s", json.dumps(data, ensure_ascii=False, default=str))

    # ------------------------------------------------------------------
    # Query path
    # ------------------------------------------------------------------

    def rows_matching_all(self, keywords: Sequence[str]) -> List[DataRow]:
        """Rows whose search text contains every keyword (case-sensitive)."""
        query = (DataRow
                 .select(DataRow, FileRecord)
                 .join(FileRecord))
        for kw in keywords:
            query = query.where(fn.instr(DataRow.search_text, kw) > 0)
        with self._reading("search query"):
            return list(query)

    def count_rows(self) -> int:
        with self._reading("row count"):
            return DataRow.select().count()

    def count_files(self) -> int:
        with self._reading("file count"):
            return FileRecord.select().count()

    def count_rows_for_file(self, file_path: str) -> int:
        with self._reading("row count", file_path):
            return (DataRow
                    .select()
                    .join(FileRecord)
                    .where(FileRecord.file_path == file_path)
                    .count())

    def latest_import_time(self) -> Optional[datetime]:
        with self._reading("latest import lookup"):
            row = (DataRow
                   .select(DataRow.import_time)
                   .order_by(DataRow.import_time.desc())
                   .first())
        return row.import_time if row else None
