"""
Tests for the book ownership check and the store helpers around it.
"""

import asyncio

import pytest

from bookshelf import crud
from bookshelf.crud import Ownership
from bookshelf.errors import AuthorizationError, NotFoundError
from bookshelf.schemas import BookCreate

pytestmark = pytest.mark.asyncio


@pytest.fixture
def book_payload(sample_book_data) -> BookCreate:
    return BookCreate(**sample_book_data)


async def _user(db, username):
    return await crud.create_user(db, username, "not-a-real-hash", username.title())


async def test_owner_is_authorized(db_session, book_payload):
    alice = await _user(db_session, "alice")
    book = await crud.create_book(db_session, book_payload, alice.id)

    assert await crud.check_ownership(db_session, book.id, alice.id) is Ownership.AUTHORIZED
    await crud.enforce_ownership(db_session, book.id, alice.id)


async def test_other_user_is_forbidden(db_session, book_payload):
    alice = await _user(db_session, "alice")
    bob = await _user(db_session, "bob")
    book = await crud.create_book(db_session, book_payload, alice.id)

    assert await crud.check_ownership(db_session, book.id, bob.id) is Ownership.FORBIDDEN
    with pytest.raises(AuthorizationError) as exc_info:
        await crud.enforce_ownership(db_session, book.id, bob.id, action="delete")

    assert exc_info.value.status_code == 403
    assert "delete" in exc_info.value.message


async def test_missing_book_is_not_found(db_session):
    alice = await _user(db_session, "alice")

    assert await crud.check_ownership(db_session, 999, alice.id) is Ownership.NOT_FOUND
    with pytest.raises(NotFoundError):
        await crud.enforce_ownership(db_session, 999, alice.id)


async def test_update_and_delete_report_affected_rows(db_session, book_payload):
    alice = await _user(db_session, "alice")
    book = await crud.create_book(db_session, book_payload, alice.id)
    changed = book_payload.model_copy(update={"title": "Homo Deus", "genre": "Non-Fiction"})

    assert await crud.update_book(db_session, book.id, changed) == 1
    assert await crud.update_book(db_session, 999, changed) == 0

    stored = await crud.get_book_by_id(db_session, book.id)
    await db_session.refresh(stored)
    assert stored.title == "Homo Deus"
    assert stored.genre.value == "Non-Fiction"
    assert stored.owner_id == alice.id

    assert await crud.delete_book(db_session, book.id) == 1
    assert await crud.delete_book(db_session, book.id) == 0
    assert await crud.get_book_by_id(db_session, book.id) is None


async def test_store_calls_are_time_bounded(db_session):
    db_session.info["timeout"] = 0.01

    with pytest.raises(asyncio.TimeoutError):
        await crud._bounded(db_session, asyncio.sleep(1))
