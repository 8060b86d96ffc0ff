import os
from pathlib import Path

import openpyxl
import pytest


@pytest.fixture(autouse=True)
def sheetdex_env(monkeypatch, tmp_path):
    monkeypatch.setenv("SHEETDEX_DB_PATH", str(tmp_path / "env.db"))
    monkeypatch.setenv("SHEETDEX_LOG_LEVEL", "WARNING")


@pytest.fixture
def store(tmp_path):
    from sheetdex.core.db.main import SheetStore
    db_file = tmp_path / f"sheetdex_test_{os.getpid()}.db"
    db_inst = SheetStore(str(db_file), journal_mode="wal")
    yield db_inst
    db_inst.close()


def write_workbook(path, sheets):
    """
    Write an .xlsx file. ``sheets`` is either a list of rows (single sheet
    named "Sheet1") or a mapping of sheet name to rows.
    """
    if not isinstance(sheets, dict):
        sheets = {"Sheet1": sheets}
    wb = openpyxl.Workbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(title=name)
        for row in rows:
            ws.append(list(row))
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(str(path))
    return path


@pytest.fixture
def make_workbook():
    return write_workbook


@pytest.fixture
def people_folder(tmp_path):
    """Folder holding the two-row Name/ID workbook."""
    folder = tmp_path / "excel_files"
    write_workbook(folder / "people.xlsx", [
        ["Name", "ID"],
        ["Alice", "0012345"],
        ["Bob", 67],
    ])
    return folder
