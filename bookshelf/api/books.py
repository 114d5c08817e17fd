# bookshelf/api/books.py
from fastapi import APIRouter, Depends
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from .. import crud, database, schemas
from ..auth import current_user_id
from ..errors import AuthorizationError, InternalError, NotFoundError

router = APIRouter(prefix="/books", tags=["Books"])


def _store_failure(action: str, exc: Exception) -> InternalError:
    logger.error(f"Store failure while trying to {action}: {type(exc).__name__}: {exc}")
    return InternalError(f"Server could not {action} because database connection issue")


@router.post(
    "",
    response_model=schemas.MessageResponse,
    summary="Add a new book",
    description="""
    Adds a book to the collection. The caller becomes its owner.

    **Required fields:** `title`, `author`, `publication_year`,
    `genre` (one of the supported genres) and `language` (English or Thai).

    **Access:** authenticated users only.
    """,
    responses={400: {"description": "Invalid book data"}, 401: {"description": "Missing or invalid token"}},
)
async def create_book(
    book: schemas.BookCreate,
    db: AsyncSession = Depends(database.get_db),
    user_id: int = Depends(current_user_id),
):
    try:
        db_book = await crud.create_book(db, book, user_id)
    except crud.STORE_ERRORS as exc:
        raise _store_failure("create book", exc)
    logger.info(f"User {user_id} created book {db_book.id}")
    return {"message": "Created book successfully"}


@router.get(
    "",
    response_model=schemas.BookListResponse,
    summary="List all books",
    description="Returns every book in the collection, whoever owns it.",
)
async def read_books(db: AsyncSession = Depends(database.get_db)):
    try:
        books = await crud.get_books(db)
    except crud.STORE_ERRORS as exc:
        raise _store_failure("find books", exc)
    return {"data": books}


@router.get(
    "/{book_id}",
    response_model=schemas.BookDetailResponse,
    summary="Get a book by id",
    responses={404: {"description": "Book not found"}},
)
async def read_book(book_id: int, db: AsyncSession = Depends(database.get_db)):
    try:
        book = await crud.get_book_by_id(db, book_id)
    except crud.STORE_ERRORS as exc:
        raise _store_failure("find books", exc)
    if book is None:
        raise NotFoundError(f"Server could not find a requested book (book id: {book_id})")
    return {"data": book}


@router.put(
    "/{book_id}",
    response_model=schemas.MessageResponse,
    summary="Update a book",
    description="""
    Replaces the title, author, publication year, genre and language of a book.

    **Access:** only the book's owner.
    """,
    responses={
        400: {"description": "Invalid book data"},
        401: {"description": "Missing or invalid token"},
        403: {"description": "Caller does not own the book"},
        404: {"description": "Book not found"},
    },
)
async def update_book(
    book_id: int,
    book_update: schemas.BookUpdate,
    db: AsyncSession = Depends(database.get_db),
    user_id: int = Depends(current_user_id),
):
    try:
        await crud.enforce_ownership(db, book_id, user_id, action="update")
        updated = await crud.update_book(db, book_id, book_update)
    except AuthorizationError:
        logger.warning(f"User {user_id} tried to update book {book_id} they do not own")
        raise
    except crud.STORE_ERRORS as exc:
        raise _store_failure("update book details", exc)
    if not updated:
        raise NotFoundError(f"Could not update book (book id: {book_id})")
    return {"message": "Updated book details successfully"}


@router.delete(
    "/{book_id}",
    response_model=schemas.MessageResponse,
    summary="Delete a book",
    description="""
    Removes a book from the collection.

    **Access:** only the book's owner.
    """,
    responses={
        401: {"description": "Missing or invalid token"},
        403: {"description": "Caller does not own the book"},
        404: {"description": "Book not found"},
    },
)
async def delete_book(
    book_id: int,
    db: AsyncSession = Depends(database.get_db),
    user_id: int = Depends(current_user_id),
):
    try:
        await crud.enforce_ownership(db, book_id, user_id, action="delete")
        deleted = await crud.delete_book(db, book_id)
    except AuthorizationError:
        logger.warning(f"User {user_id} tried to delete book {book_id} they do not own")
        raise
    except crud.STORE_ERRORS as exc:
        raise _store_failure("delete book", exc)
    if not deleted:
        raise NotFoundError(f"Could not delete book (book id: {book_id})")
    return {"message": "Deleted book successfully"}
