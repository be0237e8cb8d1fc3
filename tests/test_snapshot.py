import json
import os

import pytest

from item import Item
from library import CatalogStore
from snapshot import SCHEMA_VERSION, Snapshot, SnapshotError, decode_snapshot, load_snapshot, save_snapshot
from user import User


@pytest.fixture
def populated(lib):
    lib.register_user(User("U001", "Alice Johnson"))
    lib.register_user(User("U002", "Bob Williams"))
    lib.add_item(Item.book("B001", "Java Programming", "eden gugsa", 2020))
    lib.add_item(Item.dvd("D001", "The Matrix", "Lana Wachowski", 136))
    lib.add_item(Item.dvd("D002", "Inception", "Christopher Nolan", 148))
    lib.borrow_item("U001", "D002")
    lib.borrow_item("U001", "B001")
    return lib


def test_save_and_reload_round_trip(populated, data_file):
    assert populated.save() is True
    assert populated.save_error is None

    fresh = CatalogStore(data_file=data_file)
    assert fresh.load_error is None
    assert {i.id: i for i in fresh.list_items()} == {i.id: i for i in populated.list_items()}
    assert {u.id: u for u in fresh.list_users()} == {u.id: u for u in populated.list_users()}
    assert dict(fresh.borrow_records) == dict(populated.borrow_records)
    assert fresh.get_user("U001").borrowed_item_ids == ["D002", "B001"]

    # The reloaded store keeps enforcing the rules.
    fresh.return_item("D002")
    fresh.borrow_item("U002", "D002")
    assert fresh.borrower_of("D002") == "U002"


def test_snapshot_document_layout(populated, data_file):
    populated.save()
    with open(data_file, encoding="utf-8") as f:
        document = json.load(f)

    assert document["version"] == SCHEMA_VERSION
    assert list(document)[1:] == ["items", "users", "borrow_records"]
    assert document["items"]["B001"] == {
        "kind": "book",
        "id": "B001",
        "title": "Java Programming",
        "available": False,
        "author": "eden gugsa",
        "publication_year": 2020,
    }
    assert document["items"]["D001"]["kind"] == "dvd"
    assert document["items"]["D001"]["duration_minutes"] == 136
    assert document["users"]["U001"]["borrowed_item_ids"] == ["D002", "B001"]
    assert document["borrow_records"] == {"D002": "U001", "B001": "U001"}


def test_missing_file_starts_empty(data_file):
    assert not os.path.exists(data_file)
    lib = CatalogStore(data_file=data_file)
    assert lib.load_error is None
    assert lib.is_empty()
    assert load_snapshot(data_file) == Snapshot()


@pytest.mark.parametrize("content", [
    "this is not json",
    "[1, 2, 3]",
    json.dumps({"version": 1, "items": {"B001": {"kind": "vinyl", "id": "B001", "title": "x"}}}),
    json.dumps({"version": 1, "items": {"B001": {"kind": "book", "id": "B001", "title": "x",
                                                   "author": "a", "publication_year": "soon"}}}),
])
def test_corrupt_snapshot_falls_back_to_empty(data_file, content):
    with open(data_file, "w", encoding="utf-8") as f:
        f.write(content)

    lib = CatalogStore(data_file=data_file)
    assert lib.load_error
    assert lib.is_empty()
    # The broken file is left for inspection.
    with open(data_file, encoding="utf-8") as f:
        assert f.read() == content


def test_binary_garbage_falls_back_to_empty(data_file):
    with open(data_file, "wb") as f:
        f.write(b"\xac\xed\x00\x05sr\x00\x11java.util.HashMap")
    lib = CatalogStore(data_file=data_file)
    assert lib.load_error
    assert lib.is_empty()


def test_newer_version_is_rejected(data_file):
    with open(data_file, "w", encoding="utf-8") as f:
        json.dump({"version": SCHEMA_VERSION + 1, "items": {}, "users": {}, "borrow_records": {}}, f)

    with pytest.raises(SnapshotError, match="unsupported snapshot version"):
        load_snapshot(data_file)
    assert CatalogStore(data_file=data_file).load_error


@pytest.mark.parametrize("version", [None, 0, -1])
def test_missing_or_non_positive_version_is_rejected(version):
    document = {"items": {}, "users": {}, "borrow_records": {}}
    if version is not None:
        document["version"] = version
    with pytest.raises(SnapshotError, match="version"):
        decode_snapshot(json.dumps(document))


def _document(**overrides):
    document = {
        "version": 1,
        "items": {"B001": {"kind": "book", "id": "B001", "title": "T", "available": False,
                           "author": "A", "publication_year": 2000}},
        "users": {"U001": {"id": "U001", "name": "N", "borrowed_item_ids": ["B001"]}},
        "borrow_records": {"B001": "U001"},
    }
    document.update(overrides)
    return json.dumps(document)


def test_consistent_document_decodes():
    snapshot = decode_snapshot(_document())
    assert snapshot.items["B001"].available is False
    assert snapshot.users["U001"].borrowed_item_ids == ["B001"]
    assert snapshot.borrow_records == {"B001": "U001"}


@pytest.mark.parametrize("overrides, message", [
    ({"borrow_records": {}}, "availability"),
    ({"borrow_records": {"B001": "U999"}}, "unknown user"),
    ({"users": {"U001": {"id": "U001", "name": "N", "borrowed_item_ids": []}}}, "missing from user"),
    ({"users": {"U001": {"id": "U002", "name": "N", "borrowed_item_ids": ["B001"]}}}, "stored under"),
    ({"users": {"U001": {"id": "U001", "name": "N", "borrowed_item_ids": ["B001", "B001"]}}}, "twice"),
])
def test_inconsistent_document_is_rejected(overrides, message):
    with pytest.raises(SnapshotError, match=message):
        decode_snapshot(_document(**overrides))


def test_over_limit_user_is_rejected():
    items = {f"B{n}": {"kind": "book", "id": f"B{n}", "title": "T", "available": False,
                       "author": "A", "publication_year": 2000} for n in range(6)}
    users = {"U001": {"id": "U001", "name": "N", "borrowed_item_ids": list(items)}}
    records = {item_id: "U001" for item_id in items}
    with pytest.raises(SnapshotError, match="borrowing limit"):
        decode_snapshot(_document(items=items, users=users, borrow_records=records))


def test_save_without_data_file_reports_failure():
    lib = CatalogStore()
    lib.add_item(Item.book("B001", "Title", "Author", 2000))
    assert lib.save() is False
    assert lib.save_error
    assert len(list(lib.list_items())) == 1


def test_failed_save_keeps_previous_snapshot_and_memory(populated, data_file, monkeypatch):
    populated.save()
    with open(data_file, encoding="utf-8") as f:
        original = f.read()

    populated.add_item(Item.book("B002", "Python Basics", "Jane Smith", 2019))

    def broken_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr("snapshot.os.replace", broken_replace)
    assert populated.save() is False
    assert "disk full" in populated.save_error
    assert populated.get_item("B002") is not None

    with open(data_file, encoding="utf-8") as f:
        assert f.read() == original
    leftovers = [name for name in os.listdir(os.path.dirname(data_file)) if name.endswith(".tmp")]
    assert leftovers == []


def test_store_that_failed_to_load_does_not_overwrite_the_file(populated, data_file):
    populated.save()
    with open(data_file, encoding="utf-8") as f:
        document = json.load(f)
    document["borrow_records"] = {}
    with open(data_file, "w", encoding="utf-8") as f:
        json.dump(document, f)
    with open(data_file, encoding="utf-8") as f:
        corrupted = f.read()

    fallback = CatalogStore(data_file=data_file)
    assert fallback.load_error
    fallback.add_item(Item.book("X1", "Dune", "Frank Herbert", 1965))

    assert fallback.save() is False
    assert "could not be loaded" in fallback.save_error
    with open(data_file, encoding="utf-8") as f:
        assert f.read() == corrupted

    os.remove(data_file)
    assert fallback.save() is True
    assert CatalogStore(data_file=data_file).get_item("X1") is not None


def test_save_snapshot_creates_parent_directory(tmp_path):
    path = str(tmp_path / "nested" / "dir" / "catalog.json")
    save_snapshot(path, Snapshot())
    assert load_snapshot(path) == Snapshot()
