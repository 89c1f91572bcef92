from __future__ import annotations

import json

import pytest

from persistence.favorites import DiskFavoritesRepository

TERIYAKI = {"idMeal": "52772", "strMeal": "Teriyaki Chicken Casserole", "strCategory": "Chicken"}
ARRABIATA = {"idMeal": "52771", "strMeal": "Spicy Arrabiata Penne", "strCategory": "Vegetarian"}


def test_add_is_idempotent(favorites_path):
    repo = DiskFavoritesRepository(favorites_path, id_field="id")

    assert repo.add({"id": "52772", "name": "Teriyaki Chicken"}) is True
    assert repo.add({"id": "52772", "name": "Teriyaki Chicken"}) is False
    assert len(repo.list_favorites()) == 1
    assert repo.contains("52772") is True


def test_list_preserves_insertion_order(favorites_path):
    repo = DiskFavoritesRepository(favorites_path)
    repo.add(TERIYAKI)
    repo.add(ARRABIATA)

    assert [r["idMeal"] for r in repo.list_favorites()] == ["52772", "52771"]
    # A fresh list on every call.
    first = repo.list_favorites()
    first.clear()
    assert len(repo.list_favorites()) == 2


def test_remove_absent_is_noop(favorites_path):
    repo = DiskFavoritesRepository(favorites_path)
    repo.add(TERIYAKI)
    before = favorites_path.read_text(encoding="utf-8")

    assert repo.remove("99999") is False
    assert favorites_path.read_text(encoding="utf-8") == before


def test_remove_present(favorites_path):
    repo = DiskFavoritesRepository(favorites_path)
    repo.add(TERIYAKI)
    repo.add(ARRABIATA)

    assert repo.remove("52772") is True
    assert repo.contains("52772") is False
    assert [r["idMeal"] for r in repo.list_favorites()] == ["52771"]
    assert repo.remove("52772") is False


def test_find_by_id(favorites_path):
    repo = DiskFavoritesRepository(favorites_path)
    repo.add(TERIYAKI)

    assert repo.find_by_id("52772") == TERIYAKI
    assert repo.find_by_id("1") is None


def test_ids_compare_as_strings(favorites_path):
    repo = DiskFavoritesRepository(favorites_path)
    repo.add({"idMeal": 52772, "strMeal": "Teriyaki"})

    assert repo.contains("52772") is True
    assert repo.add({"idMeal": "52772"}) is False


def test_add_requires_identifier(favorites_path):
    repo = DiskFavoritesRepository(favorites_path)
    with pytest.raises(ValueError):
        repo.add({"strMeal": "No id"})
    with pytest.raises(ValueError):
        repo.add({"idMeal": "  "})
    assert not favorites_path.exists()


def test_add_remove_cycle_reports_each_change_once(favorites_path):
    repo = DiskFavoritesRepository(favorites_path)

    assert repo.add(TERIYAKI) is True
    assert repo.remove("52772") is True
    assert repo.remove("52772") is False
    assert repo.add(TERIYAKI) is True
    assert repo.add(TERIYAKI) is False
    assert repo.list_favorites() == [TERIYAKI]


def test_on_disk_format_and_initialize(favorites_path):
    repo = DiskFavoritesRepository(favorites_path)
    assert repo.initialize() is True
    assert json.loads(favorites_path.read_text(encoding="utf-8")) == []

    repo.add(TERIYAKI)
    assert json.loads(favorites_path.read_text(encoding="utf-8")) == [TERIYAKI]


def test_invalid_and_duplicate_records_on_disk_are_skipped(favorites_path):
    favorites_path.parent.mkdir(parents=True)
    favorites_path.write_text(
        json.dumps([TERIYAKI, "junk", {"strMeal": "no id"}, dict(TERIYAKI, strMeal="dupe"), ARRABIATA]),
        encoding="utf-8",
    )
    repo = DiskFavoritesRepository(favorites_path)

    assert [r["strMeal"] for r in repo.list_favorites()] == [TERIYAKI["strMeal"], ARRABIATA["strMeal"]]


def test_corrupt_favorites_file_reads_as_empty(favorites_path):
    favorites_path.parent.mkdir(parents=True)
    favorites_path.write_text("[{", encoding="utf-8")
    repo = DiskFavoritesRepository(favorites_path)

    assert repo.list_favorites() == []
    assert repo.add(TERIYAKI) is True
    assert repo.list_favorites() == [TERIYAKI]


def test_add_reports_failed_write(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    repo = DiskFavoritesRepository(blocker / "favorites.json")

    assert repo.add(TERIYAKI) is False
    assert repo.contains("52772") is False
