"""Snapshot persistence for the catalog.

The three collections (items, users, borrow records) are written together as
one versioned JSON document and read back through pydantic models, so the
on-disk layout stays independent of the in-memory classes.
"""
from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass, field
from typing import Annotated, Dict, List, Literal, Union

from pydantic import BaseModel, Field, ValidationError, model_validator

from item import BookDetails, DVDDetails, Item
from user import MAX_BORROWED_ITEMS, User

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


class SnapshotError(Exception):
    """Raised when a snapshot cannot be written or read back."""


@dataclass
class Snapshot:
    items: Dict[str, Item] = field(default_factory=dict)
    users: Dict[str, User] = field(default_factory=dict)
    borrow_records: Dict[str, str] = field(default_factory=dict)


# --- On-disk schema ---
class BookRecord(BaseModel):
    kind: Literal["book"] = "book"
    id: str
    title: str
    available: bool = True
    author: str
    publication_year: int


class DVDRecord(BaseModel):
    kind: Literal["dvd"] = "dvd"
    id: str
    title: str
    available: bool = True
    director: str
    duration_minutes: int


ItemRecord = Annotated[Union[BookRecord, DVDRecord], Field(discriminator="kind")]


class UserRecord(BaseModel):
    id: str
    name: str
    borrowed_item_ids: List[str] = Field(default_factory=list)


class SnapshotDocument(BaseModel):
    version: int = Field(ge=1)
    items: Dict[str, ItemRecord] = Field(default_factory=dict)
    users: Dict[str, UserRecord] = Field(default_factory=dict)
    borrow_records: Dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_consistency(self) -> "SnapshotDocument":
        if self.version > SCHEMA_VERSION:
            raise ValueError(f"unsupported snapshot version {self.version} (newest known: {SCHEMA_VERSION})")

        for key, record in self.items.items():
            if key != record.id:
                raise ValueError(f"item stored under '{key}' has id '{record.id}'")
            if record.available == (key in self.borrow_records):
                raise ValueError(f"availability of item '{key}' disagrees with borrow records")

        for item_id, user_id in self.borrow_records.items():
            if item_id not in self.items:
                raise ValueError(f"borrow record for unknown item '{item_id}'")
            user = self.users.get(user_id)
            if user is None:
                raise ValueError(f"borrow record for '{item_id}' points at unknown user '{user_id}'")
            if item_id not in user.borrowed_item_ids:
                raise ValueError(f"borrow record for '{item_id}' missing from user '{user_id}'")

        for key, record in self.users.items():
            if key != record.id:
                raise ValueError(f"user stored under '{key}' has id '{record.id}'")
            if len(set(record.borrowed_item_ids)) != len(record.borrowed_item_ids):
                raise ValueError(f"user '{key}' holds the same item twice")
            if len(record.borrowed_item_ids) > MAX_BORROWED_ITEMS:
                raise ValueError(f"user '{key}' exceeds the borrowing limit")
            for item_id in record.borrowed_item_ids:
                if self.borrow_records.get(item_id) != key:
                    raise ValueError(f"user '{key}' holds '{item_id}' without a matching borrow record")
        return self


def _item_to_record(item: Item) -> Union[BookRecord, DVDRecord]:
    details = item.details
    if isinstance(details, BookDetails):
        return BookRecord(id=item.id, title=item.title, available=item.available,
                          author=details.author, publication_year=details.publication_year)
    return DVDRecord(id=item.id, title=item.title, available=item.available,
                     director=details.director, duration_minutes=details.duration_minutes)


def _record_to_item(record: Union[BookRecord, DVDRecord]) -> Item:
    if isinstance(record, BookRecord):
        details = BookDetails(author=record.author, publication_year=record.publication_year)
    else:
        details = DVDDetails(director=record.director, duration_minutes=record.duration_minutes)
    return Item(id=record.id, title=record.title, details=details, available=record.available)


def encode_snapshot(snapshot: Snapshot) -> str:
    document = SnapshotDocument(
        version=SCHEMA_VERSION,
        items={item_id: _item_to_record(item) for item_id, item in snapshot.items.items()},
        users={
            user_id: UserRecord(id=user.id, name=user.name, borrowed_item_ids=list(user.borrowed_item_ids))
            for user_id, user in snapshot.users.items()
        },
        borrow_records=dict(snapshot.borrow_records),
    )
    return document.model_dump_json(indent=2)


def decode_snapshot(raw: str) -> Snapshot:
    try:
        document = SnapshotDocument.model_validate_json(raw)
    except ValidationError as exc:
        raise SnapshotError(f"Invalid snapshot: {exc}") from exc

    return Snapshot(
        items={item_id: _record_to_item(record) for item_id, record in document.items.items()},
        users={
            user_id: User(id=record.id, name=record.name, borrowed_item_ids=list(record.borrowed_item_ids))
            for user_id, record in document.users.items()
        },
        borrow_records=dict(document.borrow_records),
    )


def save_snapshot(path: str, snapshot: Snapshot) -> None:
    """Write the snapshot next to ``path`` and move it into place.

    The previous file is only replaced once the new one is fully written.
    """
    payload = encode_snapshot(snapshot)
    directory = os.path.dirname(os.path.abspath(path))
    tmp_path = None
    try:
        os.makedirs(directory, exist_ok=True)
        with tempfile.NamedTemporaryFile("w", encoding="utf-8", dir=directory,
                                         prefix=".snapshot-", suffix=".tmp", delete=False) as tmp:
            tmp_path = tmp.name
            tmp.write(payload)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_path, path)
        tmp_path = None
    except OSError as exc:
        raise SnapshotError(f"Could not write snapshot to {path}: {exc}") from exc
    finally:
        if tmp_path and os.path.exists(tmp_path):
            os.remove(tmp_path)

    logger.info(f"Snapshot saved: {path} ({len(snapshot.items)} items, {len(snapshot.users)} users, "
                f"{len(snapshot.borrow_records)} borrow records)")


def load_snapshot(path: str) -> Snapshot:
    """Read a snapshot from ``path``; a missing file yields an empty snapshot."""
    if not os.path.exists(path):
        logger.info(f"No snapshot at {path}, starting empty")
        return Snapshot()

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = f.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise SnapshotError(f"Could not read snapshot {path}: {exc}") from exc

    snapshot = decode_snapshot(raw)
    logger.info(f"Snapshot loaded: {path} ({len(snapshot.items)} items, {len(snapshot.users)} users)")
    return snapshot
