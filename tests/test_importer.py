import json

import pytest

from sheetdex.core.db.models import DataRow, FileRecord
from sheetdex.core.errors import FileAccessError, FormatError, StorageError
from sheetdex.core.indexer.change_detector import compute_fingerprint
from sheetdex.core.indexer.importer import FileImporter


def _rows(store, path):
    record = store.get_file(str(path))
    return list(DataRow.select().where(DataRow.file == record.id).order_by(DataRow.row_number))


def test_import_file_writes_record_and_rows(store, people_folder):
    path = people_folder / "people.xlsx"
    result = FileImporter(store).import_file(path)

    assert result.rows == 2
    assert result.sheets == 1
    record = store.get_file(str(path))
    assert record.id == result.file_id
    assert record.file_name == "people.xlsx"
    assert record.file_size == path.stat().st_size
    assert record.file_hash == compute_fingerprint(path)
    assert record.field_order_list == ["Name", "ID"]

    rows = _rows(store, path)
    assert [json.loads(r.data_json) for r in rows] == [
        {"Name": "Alice", "ID": "0012345"},
        {"Name": "Bob", "ID": 67},
    ]
    assert [r.search_text for r in rows] == ["Alice 0012345", "Bob 67"]
    assert [r.row_number for r in rows] == [1, 2]
    assert {r.sheet_name for r in rows} == {"Sheet1"}


def test_reimport_replaces_all_rows(store, people_folder, make_workbook):
    path = people_folder / "people.xlsx"
    importer = FileImporter(store)
    first = importer.import_file(path)
    old_payloads = {r.data_json for r in _rows(store, path)}
    assert len(old_payloads) == 2

    make_workbook(path, [["Name", "City"], ["Carol", "Oslo"]])
    second = importer.import_file(path)

    assert second.file_id == first.file_id
    rows = _rows(store, path)
    assert len(rows) == 1
    assert json.loads(rows[0].data_json) == {"Name": "Carol", "City": "Oslo"}
    assert not old_payloads & {r.data_json for r in rows}
    assert DataRow.select().count() == 1
    assert store.get_file(str(path)).field_order_list == ["Name", "City"]
    assert FileRecord.select().count() == 1


def test_failed_insert_rolls_back_everything(store, people_folder, make_workbook, monkeypatch, caplog):
    path = people_folder / "people.xlsx"
    importer = FileImporter(store)
    importer.import_file(path)
    old_hash = store.get_fingerprint(str(path))
    old_rows = [(r.id, r.data_json) for r in _rows(store, path)]

    make_workbook(path, [["Name", "Note"], ["Dave", "fine"], ["Eve", "BOOM \\u0000"]])

    import sheetdex.core.db.main as store_module
    real_build = store_module.build_search_text

    def failing_build(values):
        values = list(values)
        if any(isinstance(v, str) and "BOOM" in v for v in values):
            raise ValueError("cannot index row")
        return real_build(values)

    monkeypatch.setattr(store_module, "build_search_text", failing_build)

    with caplog.at_level("ERROR", logger="sheetdex.db"):
        with pytest.raises(StorageError) as exc:
            importer.import_file(path)

    assert exc.value.path == str(path)
    assert store.get_fingerprint(str(path)) == old_hash
    assert [(r.id, r.data_json) for r in _rows(store, path)] == old_rows
    assert "suspicious field 'Note'" in caplog.text


def test_unreadable_workbook_leaves_store_untouched(store, tmp_path):
    path = tmp_path / "bad.xlsx"
    path.write_bytes(b"garbage")
    with pytest.raises(FormatError):
        FileImporter(store).import_file(path)
    assert store.get_file(str(path)) is None


def test_missing_file(store, tmp_path):
    with pytest.raises(FileAccessError):
        FileImporter(store).import_file(tmp_path / "gone.xlsx")


def test_sanitized_keys_shape_field_order(store, tmp_path, make_workbook):
    path = make_workbook(tmp_path / "dirty.xlsx", [
        [" Name\u200b", "\u200b", "ID"],
        ["  Ann ", "lost", 5],
    ])
    FileImporter(store).import_file(path)
    rows = _rows(store, path)
    assert json.loads(rows[0].data_json) == {"Name": "Ann", "ID": 5}
    assert store.get_file(str(path)).field_order_list == ["Name", "ID"]
