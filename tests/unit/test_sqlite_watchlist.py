from pathlib import Path

import pytest

from gitvision.adapters.store.sqlite_watchlist import SQLiteWatchList
from gitvision.domain import PersistenceError


def test_add_list_and_dedupe(tmp_path: Path):
    repo = tmp_path / "repo"
    repo.mkdir()
    with SQLiteWatchList(tmp_path / "w.db") as wl:
        assert wl.add(repo, ["3) C2", "2) C3"]) == 2
        # already watched -> ignored
        assert wl.add(repo, ["3) C2"]) == 0
        assert wl.labels(repo) == ["3) C2", "2) C3"]


def test_labels_are_scoped_per_repository(tmp_path: Path):
    one, two = tmp_path / "one", tmp_path / "two"
    one.mkdir()
    two.mkdir()
    with SQLiteWatchList(tmp_path / "w.db") as wl:
        wl.add(one, ["2) A"])
        wl.add(two, ["2) B"])
        assert wl.labels(one) == ["2) A"]
        assert wl.labels(str(two)) == ["2) B"]


def test_remove_and_clear(tmp_path: Path):
    repo = tmp_path
    with SQLiteWatchList(tmp_path / "w.db") as wl:
        wl.add(repo, ["2) A", "3) B", "4) C"])
        assert wl.remove(repo, ["3) B", "9) missing"]) == 1
        assert wl.labels(repo) == ["2) A", "4) C"]
        assert wl.clear(repo) == 2
        assert wl.labels(repo) == []


def test_watch_list_survives_reopen(tmp_path: Path):
    db = tmp_path / "w.db"
    with SQLiteWatchList(db) as wl:
        wl.add(tmp_path, ["1) Uncommitted changes"])
    with SQLiteWatchList(db) as wl:
        assert wl.labels(tmp_path) == ["1) Uncommitted changes"]


def test_close_is_idempotent(tmp_path: Path):
    wl = SQLiteWatchList(tmp_path / "w.db")
    wl.close()
    wl.close()


def test_unopenable_database_raises(tmp_path: Path):
    # a directory cannot be opened as a database file
    with pytest.raises(PersistenceError):
        SQLiteWatchList(tmp_path)
