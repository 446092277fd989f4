# tests/test_storage.py
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from campusbooks.api.deps import get_storage
from campusbooks.errors import StorageError
from campusbooks.storage import SqlStorage
from conftest import book_data


def test_create_assigns_id_secret_and_zero_reports(storage):
    a = storage.create_book(book_data())
    b = storage.create_book(book_data(title="Linear Algebra"))
    assert a.id != b.id
    assert a.secret_id and b.secret_id
    assert a.secret_id != b.secret_id
    assert a.report_count == 0 and b.report_count == 0
    assert a.sold is False
    assert a.created_at is not None


def test_create_keeps_supplied_secret_id(storage):
    book = storage.create_book(book_data(secret_id="given-secret"))
    assert book.secret_id == "given-secret"
    assert storage.get_book_by_secret_id("given-secret").id == book.id


def test_get_by_id_and_secret(storage):
    book = storage.create_book(book_data())
    assert storage.get_book_by_id(book.id).title == "Introduction to Algorithms"
    assert storage.get_book_by_secret_id(book.secret_id).id == book.id
    assert storage.get_book_by_id(9999) is None
    assert storage.get_book_by_secret_id("nope") is None


def test_update_merges_fields(storage):
    book = storage.create_book(book_data())
    updated = storage.update_book_by_secret_id(book.secret_id, {"price": 100, "title": "CLRS"})
    assert updated.price == 100
    assert updated.title == "CLRS"
    assert updated.author == "Cormen"


def test_update_ignores_protected_fields(storage):
    book = storage.create_book(book_data())
    secret = book.secret_id
    updated = storage.update_book(book.id, {"secret_id": "hijack", "report_count": 42, "id": 77})
    assert updated.secret_id == secret
    assert updated.report_count == 0
    assert updated.id == book.id


def test_update_unknown_returns_none(storage):
    storage.create_book(book_data())
    assert storage.update_book_by_secret_id("missing", {"price": 1}) is None
    assert storage.update_book(9999, {"price": 1}) is None


def test_delete_then_lookup_is_not_found(storage):
    book = storage.create_book(book_data())
    assert storage.delete_book_by_secret_id(book.secret_id) is True
    assert storage.get_book_by_secret_id(book.secret_id) is None
    assert storage.delete_book_by_secret_id(book.secret_id) is False


def test_report_twice_adds_two(storage):
    book = storage.create_book(book_data())
    before = storage.get_book_by_id(book.id).report_count
    storage.report_book(book.id)
    after = storage.report_book(book.id)
    assert after.report_count == before + 2
    assert storage.report_book(9999) is None


def test_search_is_case_insensitive_on_title_or_author(storage):
    storage.create_book(book_data(title="Organic Chemistry", author="Clayden", subject="Chemistry"))
    storage.create_book(book_data(title="Calculus", author="Spivak", subject="Mathematics"))
    assert [b.title for b in storage.search_books("organic")] == ["Organic Chemistry"]
    assert [b.title for b in storage.search_books("SPIV")] == ["Calculus"]
    assert storage.search_books("nothing-like-this") == []


def test_search_treats_wildcards_literally(storage):
    storage.create_book(book_data(title="Calculus"))
    assert storage.search_books("%") == []


def test_empty_search_returns_everything(storage):
    storage.create_book(book_data())
    storage.create_book(book_data(title="Calculus"))
    ids = {b.id for b in storage.get_all_books()}
    assert {b.id for b in storage.search_books("")} == ids
    assert {b.id for b in storage.search_books(None)} == ids


def test_filter_with_sentinels_matches_get_all(storage):
    storage.create_book(book_data())
    storage.create_book(book_data(title="Calculus", subject="Mathematics", condition="New", price="0"))
    ids = {b.id for b in storage.get_all_books()}
    assert {b.id for b in storage.filter_books("All Subjects", "All", False)} == ids
    assert {b.id for b in storage.filter_books()} == ids


def test_filter_is_conjunctive(storage):
    storage.create_book(book_data(title="Calculus", subject="Mathematics", condition="New"))
    storage.create_book(book_data(title="Topology", subject="Mathematics", condition="Used"))
    storage.create_book(book_data(title="Optics", subject="Physics", condition="New"))
    result = storage.filter_books(subject="Mathematics", condition="New")
    assert [b.title for b in result] == ["Calculus"]


def test_free_only_filter(storage):
    free = storage.create_book(book_data(title="Free Notes", price="0"))
    paid = storage.create_book(book_data(title="Paid Book", price="50"))
    ids = {b.id for b in storage.filter_books(free_only=True)}
    assert free.id in ids
    assert paid.id not in ids


def test_users(storage):
    user = storage.create_user("alice", "hash")
    assert storage.get_user(user.id).username == "alice"
    assert storage.get_user_by_username("alice").id == user.id
    assert storage.get_user_by_username("bob") is None


class BrokenSession:
    """Session stand-in whose queries fail like a dropped connection."""

    def __init__(self):
        self.rolled_back = 0

    def query(self, *args, **kwargs):
        raise OperationalError("SELECT books", {}, Exception("connection lost"))

    def rollback(self):
        self.rolled_back += 1


def test_sql_failure_rolls_back_and_raises_storage_error():
    session = BrokenSession()
    storage = SqlStorage(session)
    with pytest.raises(StorageError, match="Failed to fetch books") as info:
        storage.get_all_books()
    assert isinstance(info.value.__cause__, OperationalError)
    assert session.rolled_back == 1
    with pytest.raises(StorageError, match="Failed to search books"):
        storage.search_books("calc")
    assert session.rolled_back == 2


def test_storage_failure_is_500_json(app):
    app.dependency_overrides[get_storage] = lambda: SqlStorage(BrokenSession())
    with TestClient(app) as client:
        res = client.get("/api/books")
    assert res.status_code == 500
    assert res.json() == {"message": "Failed to fetch books"}
