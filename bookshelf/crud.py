# bookshelf/crud.py
import asyncio
import enum
from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from . import models
from .errors import AuthorizationError, NotFoundError
from .schemas import BookCreate, BookUpdate

# anything a store call can fail with; handlers map these to InternalError
STORE_ERRORS = (SQLAlchemyError, asyncio.TimeoutError)


async def _bounded(db: AsyncSession, awaitable):
    return await asyncio.wait_for(awaitable, timeout=db.info.get("timeout"))


async def _execute(db: AsyncSession, statement):
    return await _bounded(db, db.execute(statement))


async def _commit(db: AsyncSession) -> None:
    await _bounded(db, db.commit())


async def get_user_by_username(db: AsyncSession, username: str) -> Optional[models.User]:
    result = await _execute(db, select(models.User).where(models.User.username == username))
    return result.scalar_one_or_none()


async def create_user(db: AsyncSession, username: str, password_hash: str, full_name: str) -> models.User:
    now = models.utcnow()
    db_user = models.User(
        username=username,
        password_hash=password_hash,
        full_name=full_name,
        created_at=now,
        updated_at=now,
        last_logged_in=now,
    )
    db.add(db_user)
    await _commit(db)
    return db_user


async def touch_last_login(db: AsyncSession, user: models.User, when: datetime = None) -> None:
    user.last_logged_in = when or models.utcnow()
    await _commit(db)


async def create_book(db: AsyncSession, book: BookCreate, owner_id: int) -> models.Book:
    now = models.utcnow()
    db_book = models.Book(
        owner_id=owner_id,
        title=book.title,
        author=book.author,
        publication_year=book.publication_year,
        genre=models.Genre(book.genre),
        language=models.Language(book.language),
        created_at=now,
        updated_at=now,
    )
    db.add(db_book)
    await _commit(db)
    return db_book


async def get_books(db: AsyncSession) -> List[models.Book]:
    result = await _execute(db, select(models.Book).order_by(models.Book.id))
    return list(result.scalars().all())


async def get_book_by_id(db: AsyncSession, book_id: int) -> Optional[models.Book]:
    result = await _execute(db, select(models.Book).where(models.Book.id == book_id))
    return result.scalar_one_or_none()


async def get_book_owner_id(db: AsyncSession, book_id: int) -> Optional[int]:
    result = await _execute(db, select(models.Book.owner_id).where(models.Book.id == book_id))
    return result.scalar_one_or_none()


async def update_book(db: AsyncSession, book_id: int, book_update: BookUpdate) -> int:
    """Overwrite every editable field of a book. Returns the number of rows changed."""
    result = await _execute(
        db,
        update(models.Book)
        .where(models.Book.id == book_id)
        .values(
            title=book_update.title,
            author=book_update.author,
            publication_year=book_update.publication_year,
            genre=models.Genre(book_update.genre),
            language=models.Language(book_update.language),
            updated_at=models.utcnow(),
        )
        .execution_options(synchronize_session=False),
    )
    await _commit(db)
    return result.rowcount


async def delete_book(db: AsyncSession, book_id: int) -> int:
    result = await _execute(
        db,
        delete(models.Book)
        .where(models.Book.id == book_id)
        .execution_options(synchronize_session=False),
    )
    await _commit(db)
    return result.rowcount


class Ownership(enum.Enum):
    AUTHORIZED = "authorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"


async def check_ownership(db: AsyncSession, book_id: int, caller_id: int) -> Ownership:
    owner_id = await get_book_owner_id(db, book_id)
    if owner_id is None:
        return Ownership.NOT_FOUND
    if owner_id != caller_id:
        return Ownership.FORBIDDEN
    return Ownership.AUTHORIZED


async def enforce_ownership(db: AsyncSession, book_id: int, caller_id: int, action: str = "update") -> None:
    """Raise unless ``caller_id`` owns the book."""
    ownership = await check_ownership(db, book_id, caller_id)
    if ownership is Ownership.NOT_FOUND:
        raise NotFoundError(f"Book not found (book id: {book_id})")
    if ownership is Ownership.FORBIDDEN:
        raise AuthorizationError(f"You do not have permission to {action} this book")
