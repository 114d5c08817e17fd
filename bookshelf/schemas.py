# bookshelf/schemas.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, model_validator

from .models import Genre, Language

GENRES = [genre.value for genre in Genre]
LANGUAGES = [language.value for language in Language]


class BookCreate(BaseModel):
    title: Optional[str] = Field(None, max_length=200)
    author: Optional[str] = Field(None, max_length=100)
    publication_year: Optional[StrictInt] = Field(None, ge=1, le=9999)
    genre: Optional[str] = None
    language: Optional[str] = None

    @model_validator(mode="after")
    def check_required(self):
        # checked in this order so the client always hears about the first gap
        if not self.title or not self.title.strip():
            raise ValueError("Please include the title of your book.")
        if not self.author or not self.author.strip():
            raise ValueError("Please include the author of your book.")
        if not self.publication_year:
            raise ValueError("Please include the publication year of your book.")
        if self.language not in LANGUAGES:
            raise ValueError(f"Please include the language of your book such as {', '.join(LANGUAGES)}")
        if self.genre not in GENRES:
            raise ValueError(f"Please include the genre of your book such as {', '.join(GENRES)}")
        return self


class BookUpdate(BookCreate):
    """Full replacement of a book's editable fields; validated like a new book."""


class BookResponse(BaseModel):
    id: int
    owner_id: int
    title: str
    author: str
    publication_year: int
    genre: Genre
    language: Language
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BookListResponse(BaseModel):
    data: List[BookResponse]


class BookDetailResponse(BaseModel):
    data: BookResponse


class UserCreate(BaseModel):
    username: Optional[str] = Field(None, max_length=50)
    password: Optional[str] = None
    full_name: Optional[str] = Field(None, max_length=100)


class UserLogin(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class MessageResponse(BaseModel):
    message: str


class LoginResponse(MessageResponse):
    token: str
