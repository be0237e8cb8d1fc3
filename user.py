from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

# Most items a single user may hold at once.
MAX_BORROWED_ITEMS = 5


@dataclass
class User:
    """A registered borrower and the ids of the items they currently hold."""

    id: str
    name: str
    borrowed_item_ids: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.id = self.id.strip()
        self.name = self.name.strip()

    @property
    def borrowed_count(self) -> int:
        return len(self.borrowed_item_ids)

    def add_borrowed(self, item_id: str) -> None:
        if item_id in self.borrowed_item_ids:
            raise ValueError(f"Item {item_id} is already held by user {self.id}.")
        self.borrowed_item_ids.append(item_id)

    def remove_borrowed(self, item_id: str) -> bool:
        if item_id not in self.borrowed_item_ids:
            return False
        self.borrowed_item_ids.remove(item_id)
        return True

    def describe(self) -> str:
        return "\n".join([
            f"User ID: {self.id}",
            f"Name: {self.name}",
            f"Borrowed Items: {self.borrowed_count}",
        ])

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.name} ({self.id})"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "borrowed_item_ids": list(self.borrowed_item_ids),
        }
