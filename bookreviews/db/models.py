"""
SQLAlchemy Models for the book catalog
"""

from datetime import datetime
from typing import List, Optional
from sqlalchemy import ForeignKey, Integer, String, Text, Index, CheckConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func


NOT_AVAILABLE = "n.A"


class Base(DeclarativeBase):
    pass


class Book(Base):
    __tablename__ = "books"

    # Primary key, assigned by the store on insert
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Natural key
    isbn: Mapped[str] = mapped_column(String(13), nullable=False)

    # Metadata from Open Library
    title: Mapped[str] = mapped_column(Text, nullable=False, default="")
    author: Mapped[str] = mapped_column(Text, nullable=False, default="")
    description: Mapped[str] = mapped_column(Text, nullable=False, default=NOT_AVAILABLE)
    genre: Mapped[str] = mapped_column(Text, nullable=False, default=NOT_AVAILABLE)
    pages: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    publisher: Mapped[str] = mapped_column(Text, nullable=False, default=NOT_AVAILABLE)
    thumbnail_url: Mapped[str] = mapped_column(Text, nullable=False, default="")

    reviews: Mapped[List["Review"]] = relationship(back_populates="book", cascade="all, delete-orphan")

    __table_args__ = (
        Index('idx_books_isbn', 'isbn', unique=True),
    )

    def __repr__(self):
        return f"<Book(id={self.id}, isbn='{self.isbn}', title='{self.title}')>"

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses. The store id is not exposed."""
        return {
            'isbn': self.isbn,
            'title': self.title,
            'author': self.author,
            'description': self.description,
            'genre': self.genre,
            'pages': self.pages,
            'publisher': self.publisher,
            'thumbnail_url': self.thumbnail_url,
        }


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    email: Mapped[Optional[str]] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())

    __mapper_args__ = {"eager_defaults": True}

    def __repr__(self):
        return f"<User(id={self.id}, name='{self.name}')>"


class Review(Base):
    __tablename__ = "reviews"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    book_id: Mapped[int] = mapped_column(ForeignKey("books.id"), nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)

    book: Mapped[Book] = relationship(back_populates="reviews")
    user: Mapped[User] = relationship()

    __mapper_args__ = {"eager_defaults": True}

    __table_args__ = (
        CheckConstraint('rating BETWEEN 1 AND 5', name='ck_reviews_rating_range'),
    )

    def __repr__(self):
        return f"<Review(id={self.id}, book_id={self.book_id}, rating={self.rating})>"
