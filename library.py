import logging
import os
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, ValuesView

from item import BookDetails, DVDDetails, Item
from snapshot import Snapshot, SnapshotError, load_snapshot, save_snapshot
from user import MAX_BORROWED_ITEMS, User

logger = logging.getLogger(__name__)


class CatalogStore:
    """Manages the items, users and borrow records of the library and keeps them consistent.

    Every mutating operation validates first and mutates last, so a failed
    operation leaves all three collections untouched.
    """

    def __init__(self, data_file: Optional[str] = None) -> None:
        self.data_file = data_file
        self.load_error: Optional[str] = None
        self.save_error: Optional[str] = None

        self._items: Dict[str, Item] = {}
        self._users: Dict[str, User] = {}
        self._borrow_records: Dict[str, str] = {}  # item id -> user id

        if data_file:
            self._load_from_file(data_file)

    # ------------------------- Core operations ------------------------- #
    def add_item(self, item: Item) -> None:
        """Add a book or DVD. An existing item with the same id is replaced without warning.

        Availability always follows the borrow records, so replacing an item
        that is out on loan keeps the loan attached to the new entry.
        """
        if item.id in self._items:
            logger.debug(f"Overwriting item {item.id}")
        item.available = item.id not in self._borrow_records
        self._items[item.id] = item

    def register_user(self, user: User) -> None:
        if user.id in self._users:
            raise DuplicateUserError(user.id)
        self._users[user.id] = user
        logger.debug(f"Registered user {user.id}")

    def borrow_item(self, user_id: str, item_id: str) -> None:
        user = self._users.get(user_id)
        if user is None:
            raise UserNotFoundError(user_id)

        item = self._items.get(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)

        if not item.available:
            raise ItemUnavailableError(item_id, self._borrow_records.get(item_id))

        if user.borrowed_count >= MAX_BORROWED_ITEMS:
            raise BorrowLimitExceededError(user_id, MAX_BORROWED_ITEMS)

        item.available = False
        user.add_borrowed(item_id)
        self._borrow_records[item_id] = user_id
        logger.info(f"Item {item_id} borrowed by {user_id}")

    def return_item(self, item_id: str) -> str:
        """Return a borrowed item and give back the id of the user who held it."""
        item = self._items.get(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)

        user_id = self._borrow_records.get(item_id)
        if user_id is None:
            raise NotBorrowedError(item_id)

        item.available = True
        self._users[user_id].remove_borrowed(item_id)
        del self._borrow_records[item_id]
        logger.info(f"Item {item_id} returned by {user_id}")
        return user_id

    def list_items(self) -> ValuesView[Item]:
        return self._items.values()

    def list_users(self) -> ValuesView[User]:
        return self._users.values()

    def find_items_by_title(self, query: str) -> List[Item]:
        """Case-insensitive substring search over item titles."""
        needle = query.lower()
        return [item for item in self._items.values() if needle in item.title.lower()]

    # ------------------------- Lookups ------------------------- #
    def get_item(self, item_id: str) -> Optional[Item]:
        return self._items.get(item_id)

    def get_user(self, user_id: str) -> Optional[User]:
        return self._users.get(user_id)

    def borrower_of(self, item_id: str) -> Optional[str]:
        return self._borrow_records.get(item_id)

    @property
    def borrow_records(self) -> Mapping[str, str]:
        return MappingProxyType(self._borrow_records)

    def get_statistics(self) -> Dict[str, Any]:
        """Get library statistics."""
        books = sum(1 for item in self._items.values() if isinstance(item.details, BookDetails))
        dvds = sum(1 for item in self._items.values() if isinstance(item.details, DVDDetails))
        borrowed = len(self._borrow_records)
        return {
            "total_items": len(self._items),
            "books": books,
            "dvds": dvds,
            "borrowed_items": borrowed,
            "available_items": len(self._items) - borrowed,
            "users": len(self._users),
        }

    # ------------------------- Persistence ------------------------- #
    def snapshot(self) -> Snapshot:
        return Snapshot(items=self._items, users=self._users, borrow_records=self._borrow_records)

    def save(self) -> bool:
        """Write the current state to the data file. Returns False (and logs) on failure."""
        if not self.data_file:
            self.save_error = "No data file configured."
            logger.error(f"Error saving data: {self.save_error}")
            return False
        if self.load_error and os.path.exists(self.data_file):
            # The unreadable snapshot is never overwritten by a store that started empty.
            self.save_error = (f"{self.data_file} could not be loaded ({self.load_error}); "
                               f"move or repair it before saving.")
            logger.error(f"Error saving data: {self.save_error}")
            return False
        try:
            save_snapshot(self.data_file, self.snapshot())
        except SnapshotError as e:
            self.save_error = str(e)
            logger.error(f"Error saving data: {e}")
            return False
        self.save_error = None
        return True

    def _load_from_file(self, data_file: str) -> None:
        try:
            snapshot = load_snapshot(data_file)
        except SnapshotError as e:
            # Keep running with an empty catalog; the bad file stays on disk untouched.
            self.load_error = str(e)
            logger.warning(f"Error loading data, starting with an empty catalog: {e}")
            return
        self._items = snapshot.items
        self._users = snapshot.users
        self._borrow_records = snapshot.borrow_records

    def is_empty(self) -> bool:
        return not self._items and not self._users


# ------------------------- Errors ------------------------- #
class LibraryError(Exception):
    """Base class for expected catalog failures; none of them changes the catalog."""


class DuplicateUserError(LibraryError):
    def __init__(self, user_id: str) -> None:
        super().__init__(f"User ID already exists: {user_id}")
        self.user_id = user_id


class UserNotFoundError(LibraryError):
    def __init__(self, user_id: str) -> None:
        super().__init__(f"User not found: {user_id}")
        self.user_id = user_id


class ItemNotFoundError(LibraryError):
    def __init__(self, item_id: str) -> None:
        super().__init__(f"Item not found: {item_id}")
        self.item_id = item_id


class ItemUnavailableError(LibraryError):
    def __init__(self, item_id: str, borrower_id: Optional[str] = None) -> None:
        super().__init__(f"Item is already borrowed: {item_id}")
        self.item_id = item_id
        self.borrower_id = borrower_id


class BorrowLimitExceededError(LibraryError):
    def __init__(self, user_id: str, limit: int = MAX_BORROWED_ITEMS) -> None:
        super().__init__(f"User has reached maximum borrowing limit ({limit}): {user_id}")
        self.user_id = user_id
        self.limit = limit


class NotBorrowedError(LibraryError):
    def __init__(self, item_id: str) -> None:
        super().__init__(f"Item was not borrowed: {item_id}")
        self.item_id = item_id
