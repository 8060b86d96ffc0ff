import logging
from pathlib import Path
from typing import List, Optional

from .change_detector import compute_fingerprint
from .reader import WorkbookContent, WorkbookReader
from .sanitizer import clean_text, sanitize_row
from ..errors import FileAccessError
from ..logging_utils import LogContext
from ..models import ImportResult

logger = logging.getLogger("sheetdex.importer")


def _clean_field_order(field_order: List[str]) -> List[str]:
    seen = set()
    cleaned = []
    for name in field_order:
        name = clean_text(name)
        if name and name not in seen:
            seen.add(name)
            cleaned.append(name)
    return cleaned


class FileImporter:
    """stat, fingerprint, read and sanitize one file, then replace its rows in one transaction."""

    def __init__(self, store, reader: Optional[WorkbookReader] = None):
        self.store = store
        self.reader = reader or WorkbookReader()

    def import_file(self, path) -> ImportResult:
        path = Path(path)
        with LogContext(logger, "importing file", log_start=False, path=path):
            try:
                size = path.stat().st_size
            except OSError as e:
                raise FileAccessError(f"cannot stat file: {e}", path=str(path)) from e

            fingerprint = compute_fingerprint(path)
            content: WorkbookContent = self.reader.read(path)

            sheets = [
                (sheet.name, [(num, sanitize_row(data)) for num, data in sheet.rows])
                for sheet in content.sheets
            ]
            with self.store.session():
                file_id, rows = self.store.replace_file_rows(
                    file_path=str(path),
                    file_name=path.name,
                    file_size=size,
                    file_hash=fingerprint,
                    field_order=_clean_field_order(content.field_order),
                    sheets=sheets,
                )

        logger.debug("Imported %s: %d sheet(s), %d row(s)", path, len(sheets), rows)
        return ImportResult(
            path=str(path),
            file_id=file_id,
            sheets=len(sheets),
            rows=rows,
            fingerprint=fingerprint,
        )
