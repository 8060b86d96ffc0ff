import io
import logging
from collections import OrderedDict
from typing import Dict, Iterable, List, Optional, Set

from openpyxl import Workbook
from openpyxl.styles import Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from .constants import (
    HEADER_FILL_COLOR,
    HEADER_FONT_COLOR,
    IMPORT_TIME_COLUMN,
    IMPORT_TIME_FORMAT,
    ROW_NUMBER_COLUMN,
    SHEET_NAME_ELLIPSIS,
    SHEET_NAME_FALLBACK,
    SHEET_NAME_FORBIDDEN,
    SHEET_NAME_MAX_LEN,
    SHEET_NAME_TRUNCATE_LEN,
)
from .errors import EmptyResultError, ValidationError
from .indexer.sanitizer import value_to_text
from .models import RowHit
from .settings import settings as global_settings

logger = logging.getLogger("sheetdex.exporter")

_THIN = Side(style="thin")
_BORDER = Border(left=_THIN, right=_THIN, top=_THIN, bottom=_THIN)
_HEADER_FONT = Font(bold=True, color=HEADER_FONT_COLOR)
_HEADER_FILL = PatternFill(start_color=HEADER_FILL_COLOR, end_color=HEADER_FILL_COLOR, fill_type="solid")


def sanitize_sheet_name(name: str) -> str:
    cleaned = "".join(ch for ch in (name or "") if ch not in SHEET_NAME_FORBIDDEN).strip()
    if len(cleaned) > SHEET_NAME_MAX_LEN:
        cleaned = cleaned[:SHEET_NAME_TRUNCATE_LEN] + SHEET_NAME_ELLIPSIS
    return cleaned or SHEET_NAME_FALLBACK


def unique_sheet_name(name: str, taken: Set[str]) -> str:
    """Append " (n)" while the name clashes (case-insensitively, like Excel)."""
    lowered = {t.lower() for t in taken}
    if name.lower() not in lowered:
        return name
    n = 2
    while True:
        suffix = f" ({n})"
        candidate = name[:SHEET_NAME_MAX_LEN - len(suffix)] + suffix
        if candidate.lower() not in lowered:
            return candidate
        n += 1


def column_order(field_order: Optional[List[str]], rows: Iterable[Dict]) -> List[str]:
    present: "OrderedDict[str, None]" = OrderedDict()
    for data in rows:
        for key in data:
            present.setdefault(key, None)
    ordered = [k for k in (field_order or []) if k in present]
    ordered += [k for k in present if k not in set(ordered)]
    return ordered


class SearchExporter:
    """Writes the full ranked match set of a query to an .xlsx workbook."""

    def __init__(self, engine, settings=None):
        self.engine = engine
        self.settings = settings or global_settings

    def export(self, query: str) -> bytes:
        if not (query or "").strip():
            raise ValidationError("export query is empty")
        hits = self.engine.match(query)
        if not hits:
            raise EmptyResultError(f"no rows match {query!r}")

        groups: "OrderedDict[int, List[RowHit]]" = OrderedDict()
        for hit in hits:
            groups.setdefault(hit.file_id, []).append(hit)

        wb = Workbook()
        wb.remove(wb.active)
        taken: Set[str] = set()
        for file_hits in groups.values():
            title = unique_sheet_name(sanitize_sheet_name(file_hits[0].file_name or ""), taken)
            taken.add(title)
            self._write_sheet(wb.create_sheet(title=title), file_hits)

        buf = io.BytesIO()
        wb.save(buf)
        logger.info("Exported %d row(s) in %d sheet(s) for %r", len(hits), len(groups), query)
        return buf.getvalue()

    def _write_sheet(self, ws, hits: List[RowHit]) -> None:
        datas = [hit.data for hit in hits]
        fields = column_order(hits[0].field_order, datas)
        headers = [ROW_NUMBER_COLUMN, IMPORT_TIME_COLUMN] + fields

        ws.append(headers)
        for cell in ws[1]:
            cell.font = _HEADER_FONT
            cell.fill = _HEADER_FILL
            cell.border = _BORDER

        for hit, data in zip(hits, datas):
            ws.append(
                [str(hit.row_number), hit.import_time.strftime(IMPORT_TIME_FORMAT)]
                + [value_to_text(data.get(key)) for key in fields]
            )
            for cell in ws[ws.max_row]:
                cell.border = _BORDER

        width = self.settings.EXPORT_COLUMN_WIDTH
        for idx in range(1, len(headers) + 1):
            ws.column_dimensions[get_column_letter(idx)].width = width
