"""
Tests for the bear seeding script.

Run with: python -m pytest tests/test_seed_bears.py
"""

import json

import pytest

from database import Bear
from scripts import seed_bears


@pytest.fixture
def seeded_db(session_factory, monkeypatch):
    monkeypatch.setattr(seed_bears, "SessionLocal", session_factory)
    monkeypatch.setattr(seed_bears, "init_db", lambda: None)
    return session_factory


def write_bears(tmp_path, bears):
    path = tmp_path / "bears.json"
    path.write_text(json.dumps(bears), encoding="utf-8")
    return str(path)


def test_seed_creates_bears_and_skips_duplicates(tmp_path, seeded_db):
    path = write_bears(tmp_path, [
        {
            "id": "finlay-1",
            "name": "Finlay",
            "initial_latitude": 51.5074,
            "initial_longitude": -0.1278,
            "city": "London",
            "country": "United Kingdom",
        },
        {"id": "finlay-2", "name": "No origin"},
    ])

    assert seed_bears.seed_bears(path) == 1
    assert seed_bears.seed_bears(path) == 0

    db = seeded_db()
    try:
        assert [b.id for b in db.query(Bear).all()] == ["finlay-1"]
    finally:
        db.close()


def test_seed_rejects_non_list(tmp_path, seeded_db):
    path = tmp_path / "bears.json"
    path.write_text('{"id": "finlay-1"}', encoding="utf-8")

    with pytest.raises(SystemExit):
        seed_bears.seed_bears(str(path))


def test_seed_skips_bad_entries_and_keeps_good_ones(tmp_path, seeded_db, capsys):
    good = {
        "id": "finlay-1",
        "name": "Finlay",
        "initial_latitude": "51.5074",
        "initial_longitude": -0.1278,
        "city": "London",
        "country": "United Kingdom",
    }
    path = write_bears(tmp_path, [
        good,
        dict(good, name="Finlay again"),
        dict(good, id="finlay-2", initial_latitude="north"),
        dict(good, id="finlay-3", initial_longitude=200),
        "finlay-4",
        dict(good, id="finlay-5", city="Paris", country="France"),
    ])

    assert seed_bears.seed_bears(path) == 2

    db = seeded_db()
    try:
        bears = {b.id: b for b in db.query(Bear).all()}
    finally:
        db.close()
    assert sorted(bears) == ["finlay-1", "finlay-5"]
    assert bears["finlay-1"].name == "Finlay"
    assert bears["finlay-1"].initial_latitude == 51.5074

    output = capsys.readouterr().out
    assert "more than once" in output
    assert "invalid initial_latitude" in output
    assert "invalid initial_longitude" in output
