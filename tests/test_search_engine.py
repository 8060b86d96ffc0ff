import pytest

from sheetdex.core.indexer.importer import FileImporter
from sheetdex.core.scoring import ScoringPolicy, tokenize
from sheetdex.core.search_engine import SearchEngine, clamp_limit, clamp_offset


def test_tokenize_distinct_in_first_seen_order():
    assert tokenize("  red apple red  pie ") == ["red", "apple", "pie"]
    assert tokenize("") == []
    assert tokenize("   ") == []


def test_score_counts_keywords_and_phrase_bonus():
    policy = ScoringPolicy()
    assert policy.score("red apple pie", ["red", "apple"], "red apple") == 4
    assert policy.score("apple red pie", ["red", "apple"], "red apple") == 2
    assert policy.score("red", ["red", "apple"], "red apple") == 1
    assert policy.score("Red", ["red"], "red") == 0


def test_clamps():
    assert clamp_limit(None, 20, 100) == 20
    assert clamp_limit(0, 20, 100) == 1
    assert clamp_limit(-3, 20, 100) == 1
    assert clamp_limit(500, 20, 100) == 100
    assert clamp_limit(7, 20, 100) == 7
    assert clamp_offset(-5) == 0
    assert clamp_offset(None) == 0
    assert clamp_offset(3) == 3


@pytest.fixture
def fruit_store(store, tmp_path, make_workbook):
    importer = FileImporter(store)
    older = make_workbook(tmp_path / "older.xlsx", [
        ["Text"],
        ["apple red"],
        ["red apple"],
        ["green pear"],
    ])
    importer.import_file(older)
    newer = make_workbook(tmp_path / "newer.xlsx", [
        ["Text"],
        ["apple red"],
        ["red apple juice"],
    ])
    importer.import_file(newer)
    return store


def test_ranking_order(fruit_store):
    hits = SearchEngine(fruit_store).match("red apple")

    assert [(h.file_name, h.data["Text"], h.score) for h in hits] == [
        ("newer.xlsx", "red apple juice", 4),
        ("older.xlsx", "red apple", 4),
        ("newer.xlsx", "apple red", 2),
        ("older.xlsx", "apple red", 2),
    ]
    scores = [h.score for h in hits]
    assert scores == sorted(scores, reverse=True)


def test_ties_fall_back_to_row_id(store, tmp_path, make_workbook):
    path = make_workbook(tmp_path / "same.xlsx", [["K"], ["x 1"], ["x 2"], ["x 3"]])
    FileImporter(store).import_file(path)
    hits = SearchEngine(store).match("x")
    assert [h.id for h in hits] == sorted(h.id for h in hits)
    assert [h.row_number for h in hits] == [1, 2, 3]


def test_all_keywords_must_match_case_sensitively(fruit_store):
    engine = SearchEngine(fruit_store)
    assert engine.search("pear apple").total == 0
    assert engine.search("Apple").total == 0
    assert engine.search("pear").total == 1


def test_duplicate_keywords_do_not_inflate_score(fruit_store):
    hits = SearchEngine(fruit_store).match("pear pear")
    assert [h.score for h in hits] == [1]


def test_empty_query_returns_nothing(fruit_store):
    response = SearchEngine(fruit_store).search("   ")
    assert response.total == 0
    assert response.results == []
    assert response.limit == 20
    assert response.offset == 0


def test_pagination_covers_full_match_set(store, tmp_path, make_workbook):
    rows = [["Item"]] + [[f"item {i}"] for i in range(25)]
    FileImporter(store).import_file(make_workbook(tmp_path / "items.xlsx", rows))
    engine = SearchEngine(store)
    everything = [h.id for h in engine.match("item")]

    paged = []
    for offset in (0, 10, 20):
        page = engine.search("item", limit=10, offset=offset)
        assert page.total == 25
        paged.extend(h.id for h in page.results)

    assert paged == everything
    assert len(engine.search("item").results) == 20
    assert engine.search("item", offset=30).results == []


def test_result_payload(store, people_folder):
    FileImporter(store).import_file(people_folder / "people.xlsx")
    response = SearchEngine(store).search("67")
    assert response.total == 1
    hit = response.to_dict()["results"][0]
    assert hit["file_name"] == "people.xlsx"
    assert hit["sheet_name"] == "Sheet1"
    assert hit["row_number"] == 2
    assert hit["search_text"] == "Bob 67"
    assert hit["field_order"] == ["Name", "ID"]
    assert hit["data_json"] == '{"Name": "Bob", "ID": 67}'
    assert {"id", "file_id", "import_time", "score"} <= set(hit)
