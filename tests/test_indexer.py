import pytest

from sheetdex.core.errors import InputError, StorageError
from sheetdex.core.indexer.main import Indexer
from sheetdex.core.search_engine import SearchEngine


@pytest.fixture
def mixed_folder(tmp_path, make_workbook):
    folder = tmp_path / "excel_files"
    make_workbook(folder / "people.xlsx", [["Name", "ID"], ["Alice", "0012345"], ["Bob", 67]])
    make_workbook(folder / "sub" / "cities.xlsx", [["City"], ["Oslo"], ["Lima"]])
    (folder / "broken.xlsx").write_bytes(b"not a workbook")
    (folder / "readme.txt").write_text("ignored")
    return folder


@pytest.mark.asyncio
async def test_first_import_counts(store, mixed_folder):
    stats = await Indexer(store).import_folder(mixed_folder, max_concurrent_files=2)

    assert stats.to_dict() == {"success": 2, "failed": 1, "skipped": 0, "total": 3}
    assert store.count_files() == 2
    assert store.count_rows() == 4


@pytest.mark.asyncio
async def test_unchanged_files_are_skipped(store, mixed_folder):
    indexer = Indexer(store)
    await indexer.import_folder(mixed_folder)
    before = {r.id for r in store.rows_matching_all(["Alice"])}

    stats = await indexer.import_folder(mixed_folder)

    # the broken file has no record, so it is retried every run
    assert stats.to_dict() == {"success": 0, "failed": 1, "skipped": 2, "total": 1}
    assert {r.id for r in store.rows_matching_all(["Alice"])} == before


@pytest.mark.asyncio
async def test_changed_file_is_fully_replaced(store, mixed_folder, make_workbook):
    indexer = Indexer(store)
    await indexer.import_folder(mixed_folder)

    make_workbook(mixed_folder / "people.xlsx", [["Name", "ID"], ["Zoe", 1]])
    stats = await indexer.import_folder(mixed_folder)

    assert stats.success == 1
    assert stats.skipped == 1
    assert store.rows_matching_all(["Alice"]) == []
    assert len(store.rows_matching_all(["Zoe"])) == 1
    assert store.count_rows() == 3


@pytest.mark.asyncio
async def test_force_reimport_ignores_fingerprints(store, mixed_folder):
    indexer = Indexer(store)
    await indexer.import_folder(mixed_folder)
    stats = await indexer.import_folder(mixed_folder, force_reimport=True)
    assert stats.to_dict() == {"success": 2, "failed": 1, "skipped": 0, "total": 3}
    assert store.count_rows() == 4


@pytest.mark.asyncio
async def test_prune_missing_removes_deleted_files(store, mixed_folder):
    indexer = Indexer(store)
    await indexer.import_folder(mixed_folder)
    (mixed_folder / "sub" / "cities.xlsx").unlink()

    await indexer.import_folder(mixed_folder)
    assert store.count_files() == 2

    await indexer.import_folder(mixed_folder, prune_missing=True)
    assert store.count_files() == 1
    assert store.count_rows() == 2
    assert store.rows_matching_all(["Oslo"]) == []


@pytest.mark.asyncio
async def test_missing_folder_raises(store, tmp_path):
    with pytest.raises(InputError):
        await Indexer(store).import_folder(tmp_path / "nowhere")


@pytest.mark.asyncio
async def test_two_row_scenario(store, people_folder):
    await Indexer(store).import_folder(people_folder)
    engine = SearchEngine(store)

    alice = engine.search("Alice")
    assert alice.total == 1
    hit = alice.results[0]
    assert hit.row_number == 1
    assert hit.score >= 1
    assert hit.data == {"Name": "Alice", "ID": "0012345"}

    assert engine.search("Alice Bob").total == 0


@pytest.mark.asyncio
async def test_store_failure_during_change_detection_is_wrapped(store, people_folder):
    store.db.execute_sql("DROP TABLE data_rows")
    store.db.execute_sql("DROP TABLE files")
    with pytest.raises(StorageError):
        await Indexer(store).import_folder(people_folder)
