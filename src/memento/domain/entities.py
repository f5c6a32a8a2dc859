"""Persisted entities."""

from datetime import date
from typing import List, Optional
import uuid

from sqlalchemy import Date, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..backends.sqlalchemy import Base, EntityMixin

NAME_MAX_LENGTH = 200


class Author(EntityMixin, Base):
    __tablename__ = "authors"
    __table_args__ = (UniqueConstraint("name", "birth_date", name="uq_authors_name_birth_date"),)

    name: Mapped[Optional[str]] = mapped_column(String(NAME_MAX_LENGTH), nullable=False)
    birth_date: Mapped[Optional[date]] = mapped_column(Date, nullable=False)

    books: Mapped[List["Book"]] = relationship(
        back_populates="author", passive_deletes="all", order_by="Book.name"
    )


class Genre(EntityMixin, Base):
    __tablename__ = "genres"

    name: Mapped[Optional[str]] = mapped_column(String(NAME_MAX_LENGTH), nullable=False, unique=True)

    books: Mapped[List["Book"]] = relationship(
        back_populates="genre", passive_deletes="all", order_by="Book.name"
    )


class Book(EntityMixin, Base):
    __tablename__ = "books"
    __table_args__ = (UniqueConstraint("name", "release_date", name="uq_books_name_release_date"),)

    name: Mapped[Optional[str]] = mapped_column(String(NAME_MAX_LENGTH), nullable=False)
    release_date: Mapped[Optional[date]] = mapped_column(Date, nullable=False)
    author_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("authors.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    genre_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("genres.id", ondelete="RESTRICT"), nullable=False, index=True
    )

    author: Mapped[Optional[Author]] = relationship(back_populates="books")
    genre: Mapped[Optional[Genre]] = relationship(back_populates="books")
