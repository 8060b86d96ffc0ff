import asyncio
import logging
import time
from pathlib import Path
from typing import List, Optional

from .change_detector import ChangeDetector
from .importer import FileImporter
from .reader import WorkbookReader
from .scanner import Scanner
from ..errors import SheetdexError
from ..models import ImportStats
from ..scheduler.coordinator import BatchCoordinator
from ..settings import settings as global_settings
from ..utils.logging import get_logger

events = get_logger("sheetdex.indexer")


class Indexer:
    """Imports a folder of spreadsheets into a SheetStore."""

    def __init__(self, store, settings=None, reader: Optional[WorkbookReader] = None,
                 logger: Optional[logging.Logger] = None):
        self.store = store
        self.settings = settings or global_settings
        self.logger = logger or logging.getLogger("sheetdex.indexer")
        self.scanner = Scanner(self.settings.EXTENSIONS)
        self.detector = ChangeDetector(store)
        self.importer = FileImporter(store, reader)

    async def import_folder(self,
                            path,
                            force_reimport: Optional[bool] = None,
                            max_concurrent_files: Optional[int] = None,
                            prune_missing: Optional[bool] = None) -> ImportStats:
        """
        Import every changed spreadsheet under ``path``.

        ``total`` counts the files that needed importing, ``skipped`` the
        unchanged ones. Raises InputError when ``path`` is not a directory.
        """
        if force_reimport is None:
            force_reimport = self.settings.FORCE_REIMPORT
        if max_concurrent_files is None:
            max_concurrent_files = self.settings.MAX_CONCURRENT_FILES
        if prune_missing is None:
            prune_missing = self.settings.PRUNE_MISSING

        root = Path(path).expanduser().resolve()
        started = time.monotonic()
        events.info("import_started", root=str(root), force_reimport=force_reimport,
                    max_concurrent_files=max_concurrent_files)

        files = await asyncio.to_thread(self.scanner.scan, root)
        if force_reimport:
            pending = list(files)
        else:
            pending = await asyncio.to_thread(self._select_changed, files)

        stats = ImportStats(total=len(pending), skipped=len(files) - len(pending))
        coordinator = BatchCoordinator(max_concurrent_files, logger=self.logger)
        outcome = await coordinator.run(pending, self._import_one)
        stats.success = outcome.success
        stats.failed = outcome.failed

        if prune_missing:
            await asyncio.to_thread(self._prune, root, files)

        events.info("import_finished", root=str(root), elapsed=round(time.monotonic() - started, 3),
                    **stats.to_dict())
        return stats

    def _select_changed(self, files: List[Path]) -> List[Path]:
        with self.store.session():
            return [p for p in files if self.detector.needs_import(p)]

    def _prune(self, root: Path, files: List[Path]) -> int:
        with self.store.session():
            return self.store.prune_missing(str(root), (str(p) for p in files))

    async def _import_one(self, path: Path) -> bool:
        try:
            await asyncio.to_thread(self.importer.import_file, path)
        except SheetdexError as e:
            self.logger.warning("Import failed: %s", e)
            return False
        return True
