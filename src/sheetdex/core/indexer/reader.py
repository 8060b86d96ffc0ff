import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from pathlib import Path
from typing import Any, Iterable, Iterator, List, Optional, Sequence, Tuple

import openpyxl
import xlrd

from ..constants import EMPTY_HEADER_LABEL, MAX_NUMERIC_TEXT_LEN
from ..errors import FileAccessError, FormatError
from ..models import CellValue, RowData
from .sanitizer import plain_float_text

logger = logging.getLogger("sheetdex.reader")

_NUMERIC_CHARS = frozenset("0123456789+-.")


@dataclass
class SheetData:
    name: str
    rows: List[Tuple[int, RowData]] = field(default_factory=list)


@dataclass
class WorkbookContent:
    sheets: List[SheetData] = field(default_factory=list)
    field_order: List[str] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return sum(len(s.rows) for s in self.sheets)


def cell_to_text(raw: Any) -> Optional[str]:
    """Render a raw cell as text; ``None`` for an empty cell."""
    if raw is None:
        return None
    if isinstance(raw, bool):
        return "true" if raw else "false"
    if isinstance(raw, int):
        return str(raw)
    if isinstance(raw, float):
        if raw.is_integer():
            return str(int(raw))
        return plain_float_text(raw)
    if isinstance(raw, (datetime, date, time)):
        return raw.isoformat()
    if isinstance(raw, timedelta):
        return str(raw)
    return str(raw)


def _parse_number(text: str) -> Optional[CellValue]:
    if len(text) > MAX_NUMERIC_TEXT_LEN:
        return None
    if len(text) > 1 and text.startswith("0") and "." not in text:
        return None
    try:
        number = float(text) if "." in text else int(text)
    except ValueError:
        return None
    # "1.0" renders back as "1", so it stays text
    return number if cell_to_text(number) == text else None


def coerce_cell(raw: Any) -> CellValue:
    """
    Turn a raw cell into the typed value stored for it.

    Booleans stay booleans. Everything else goes through its text form, so a
    number only survives as a number when its text round-trips exactly:
    ``"0012345"`` and 16-digit IDs stay strings, ``"123.45"`` becomes 123.45.
    """
    if isinstance(raw, bool):
        return raw
    text = cell_to_text(raw)
    if not text:
        return None
    if all(ch in _NUMERIC_CHARS for ch in text):
        number = _parse_number(text)
        if number is not None:
            return number
    return text


def _header_names(cells: Sequence[Any]) -> List[str]:
    names = []
    for cell in cells:
        text = cell_to_text(cell)
        names.append(text if text and text.strip() else EMPTY_HEADER_LABEL)
    return names


def build_sheet(name: str, rows: Iterable[Sequence[Any]]) -> SheetData:
    """Header from the first row, one dict per non-blank row after it."""
    sheet = SheetData(name=name)
    it = iter(rows)
    header_cells = next(it, None)
    if header_cells is None:
        return sheet
    headers = _header_names(header_cells)

    for position, cells in enumerate(it, start=1):
        data: RowData = {}
        for idx, header in enumerate(headers):
            raw = cells[idx] if idx < len(cells) else None
            data[header] = coerce_cell(raw)
        if all(v is None for v in data.values()):
            continue
        sheet.rows.append((position, data))
    return sheet


class WorkbookReader:
    """Reads .xlsx/.xlsm through openpyxl and legacy .xls through xlrd."""

    def read(self, path: Path) -> WorkbookContent:
        path = Path(path)
        suffix = path.suffix.lower()
        if suffix == ".xls":
            sheets = self._read_xls(path)
        else:
            sheets = self._read_xlsx(path)

        content = WorkbookContent()
        seen = set()
        for sheet in sheets:
            if not sheet.rows:
                logger.info("Skipping sheet without data rows: %s [%s]", path, sheet.name)
                continue
            content.sheets.append(sheet)
            for _, data in sheet.rows[:1]:
                for key in data:
                    if key not in seen:
                        seen.add(key)
                        content.field_order.append(key)
        return content

    def _read_xlsx(self, path: Path) -> List[SheetData]:
        try:
            wb = openpyxl.load_workbook(str(path), read_only=True, data_only=True)
        except OSError as e:
            raise FileAccessError(f"cannot read workbook: {e}", path=str(path)) from e
        except Exception as e:
            raise FormatError(f"cannot open workbook: {e}", path=str(path)) from e

        sheets = []
        try:
            for ws in wb.worksheets:
                try:
                    sheets.append(build_sheet(ws.title, ws.iter_rows(values_only=True)))
                except Exception as e:
                    logger.warning("Failed to read sheet %s [%s]: %s", path, ws.title, e)
        finally:
            wb.close()
        return sheets

    def _read_xls(self, path: Path) -> List[SheetData]:
        try:
            book = xlrd.open_workbook(str(path), on_demand=True)
        except OSError as e:
            raise FileAccessError(f"cannot read workbook: {e}", path=str(path)) from e
        except Exception as e:
            raise FormatError(f"cannot open workbook: {e}", path=str(path)) from e

        sheets = []
        try:
            for idx in range(book.nsheets):
                name = book.sheet_names()[idx]
                try:
                    sh = book.sheet_by_index(idx)
                    sheets.append(build_sheet(name, self._xls_rows(book, sh)))
                except Exception as e:
                    logger.warning("Failed to read sheet %s [%s]: %s", path, name, e)
        finally:
            book.release_resources()
        return sheets

    @staticmethod
    def _xls_rows(book, sh) -> Iterator[List[Any]]:
        for row_idx in range(sh.nrows):
            values = []
            for cell in sh.row(row_idx):
                if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
                    values.append(None)
                elif cell.ctype == xlrd.XL_CELL_BOOLEAN:
                    values.append(bool(cell.value))
                elif cell.ctype == xlrd.XL_CELL_DATE:
                    values.append(xlrd.xldate.xldate_as_datetime(cell.value, book.datemode))
                elif cell.ctype == xlrd.XL_CELL_ERROR:
                    values.append(xlrd.error_text_from_code.get(cell.value, "#ERR"))
                else:
                    values.append(cell.value)
            yield values
