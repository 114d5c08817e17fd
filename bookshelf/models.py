# bookshelf/models.py
import enum
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String

from .database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Genre(str, enum.Enum):
    FICTION = "Fiction"
    NON_FICTION = "Non-Fiction"
    FANTASY = "Fantasy"
    MYSTERY = "Mystery"
    ROMANCE = "Romance"
    SCIENCE_FICTION = "Science Fiction"
    BIOGRAPHY = "Biography"
    HISTORY = "History"
    THRILLER = "Thriller"
    HORROR = "Horror"


class Language(str, enum.Enum):
    ENGLISH = "English"
    THAI = "Thai"


def _enum_column(enum_cls, name: str) -> Enum:
    # stored as VARCHAR + CHECK so the table itself rejects unknown values
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        create_constraint=True,
        length=32,
        values_callable=lambda members: [m.value for m in members],
    )


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(50), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    last_logged_in = Column(DateTime(timezone=True), nullable=True)


class Book(Base):
    __tablename__ = "books"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    author = Column(String(100), nullable=False)
    publication_year = Column(Integer, nullable=False)
    genre = Column(_enum_column(Genre, "book_genre"), nullable=False)
    language = Column(_enum_column(Language, "book_language"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
