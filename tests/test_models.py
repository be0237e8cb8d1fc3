import pytest

from item import BookDetails, DVDDetails, Item
from user import User
from validators import NumberValidator, TextValidator


def test_book_fields_and_description():
    book = Item.book(" B001 ", " Java Programming ", "eden gugsa", 2020)
    assert book.id == "B001"
    assert book.title == "Java Programming"
    assert book.kind == "book"
    assert book.available is True
    assert isinstance(book.details, BookDetails)
    assert book.describe() == (
        "Book ID: B001\n"
        "Title: Java Programming\n"
        "Author: eden gugsa\n"
        "Publication Year: 2020\n"
        "Status: Available"
    )


def test_dvd_description_shows_borrowed_status():
    dvd = Item.dvd("D001", "The Matrix", "Lana Wachowski", 136)
    dvd.available = False
    assert dvd.kind == "dvd"
    assert isinstance(dvd.details, DVDDetails)
    assert "Duration: 136 minutes" in dvd.describe()
    assert dvd.describe().endswith("Status: Borrowed")
    assert dvd.summary() == "Lana Wachowski (136 min)"


def test_unknown_details_are_rejected():
    item = Item("X1", "Mystery", details=object())
    with pytest.raises(TypeError, match="Unknown item details"):
        item.summary()
    with pytest.raises(TypeError, match="Unknown item details"):
        item.describe()


def test_item_to_dict_carries_kind_specific_fields():
    assert Item.book("B1", "T", "A", 1999).to_dict() == {
        "kind": "book", "id": "B1", "title": "T", "available": True,
        "author": "A", "publication_year": 1999,
    }
    assert Item.dvd("D1", "T", "D", 90).to_dict()["director"] == "D"


def test_user_borrowed_list():
    user = User("U001", "Alice Johnson")
    user.add_borrowed("B001")
    user.add_borrowed("D001")
    assert user.borrowed_item_ids == ["B001", "D001"]
    with pytest.raises(ValueError):
        user.add_borrowed("B001")
    assert user.remove_borrowed("B001") is True
    assert user.remove_borrowed("B001") is False
    assert user.describe() == "User ID: U001\nName: Alice Johnson\nBorrowed Items: 1"


def test_users_compare_by_value():
    assert User("U1", "Ann") == User("U1", "Ann")
    assert User("U1", "Ann", ["B1"]) != User("U1", "Ann")


@pytest.mark.parametrize("raw", [None, "", "   ", "B 001"])
def test_clean_identifier_rejects(raw):
    with pytest.raises(ValueError):
        TextValidator.clean_identifier(raw)


def test_clean_text():
    assert TextValidator.clean_text("  The Matrix ", "Title") == "The Matrix"
    with pytest.raises(ValueError, match="Title cannot be empty"):
        TextValidator.clean_text(" ", "Title")


def test_number_parsing():
    assert NumberValidator.parse_year("2020") == 2020
    assert NumberValidator.parse_year(1999) == 1999
    assert NumberValidator.parse_duration(" 136 ") == 136


@pytest.mark.parametrize("raw", ["abc", "12.5", "", "0", "-3", None, True])
def test_number_parsing_rejects(raw):
    with pytest.raises(ValueError):
        NumberValidator.parse_duration(raw)


def test_year_upper_bound():
    with pytest.raises(ValueError, match="four digits"):
        NumberValidator.parse_year(20200)
