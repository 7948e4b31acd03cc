import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from sqlalchemy import create_engine, func, select, delete
from sqlalchemy.engine import make_url
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, sessionmaker

from bookreviews.config import build_database_url
from bookreviews.db.models import Base, Book, Review, User
from bookreviews.errors import DuplicateBookError


logger = logging.getLogger(__name__)


class DatabaseManager:
    """Owns the engine and hands out short-lived sessions."""

    def __init__(self, url: Optional[str] = None, use_sqlite: bool = False, echo: bool = False):
        self.url = url or build_database_url(use_sqlite)
        parsed = make_url(self.url)
        connect_args = {}
        if parsed.get_backend_name() == "sqlite":
            # Repositories are called from worker threads
            connect_args["check_same_thread"] = False
            if parsed.database:
                Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)
        self.engine = create_engine(self.url, echo=echo, connect_args=connect_args)
        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)

    def create_schema(self) -> None:
        Base.metadata.create_all(self.engine)
        logger.info("Schema ready at %s", self.engine.url.render_as_string(hide_password=True))

    @contextmanager
    def get_session(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def close(self) -> None:
        self.engine.dispose()


class BookRepository:
    """Catalog store keyed by ISBN. Every call runs in its own session."""

    def __init__(self, db: DatabaseManager):
        self.db = db

    def find_by_isbn(self, isbn: str) -> Optional[Book]:
        with self.db.get_session() as session:
            return session.execute(
                select(Book).where(Book.isbn == isbn)
            ).scalar_one_or_none()

    def find_all(self) -> List[Book]:
        with self.db.get_session() as session:
            return list(session.execute(select(Book).order_by(Book.id)).scalars().all())

    def save(self, book: Book) -> Book:
        try:
            with self.db.get_session() as session:
                session.add(book)
                session.flush()
        except IntegrityError as exc:
            # The unique ISBN index is the backstop for concurrent inserts
            raise DuplicateBookError(book.isbn) from exc
        return book


class UserRepository:
    def __init__(self, db: DatabaseManager):
        self.db = db

    def find_by_name(self, name: str) -> Optional[User]:
        with self.db.get_session() as session:
            return session.execute(select(User).where(User.name == name)).scalar_one_or_none()

    def get_or_create(self, name: str, email: Optional[str]) -> User:
        existing = self.find_by_name(name)
        if existing:
            return existing
        try:
            with self.db.get_session() as session:
                user = User(name=name, email=email)
                session.add(user)
                session.flush()
                return user
        except IntegrityError:
            # Another request created the same user in the meantime
            user = self.find_by_name(name)
            if user is None:
                raise
            return user


class ReviewRepository:
    def __init__(self, db: DatabaseManager):
        self.db = db

    def save(self, review: Review) -> Review:
        with self.db.get_session() as session:
            session.add(review)
            session.flush()
        return review

    def count(self) -> int:
        with self.db.get_session() as session:
            return session.execute(select(func.count(Review.id))).scalar_one()

    def _load(self, stmt) -> List[Review]:
        stmt = stmt.options(joinedload(Review.book), joinedload(Review.user))
        with self.db.get_session() as session:
            return list(session.execute(stmt).scalars().all())

    def find_page(self, size: int) -> List[Review]:
        return self._load(select(Review).order_by(Review.id).limit(size))

    def find_top_rated(self, size: int) -> List[Review]:
        return self._load(
            select(Review)
            .order_by(Review.rating.desc(), Review.created_at.desc(), Review.id.desc())
            .limit(size)
        )

    def delete_by_id_and_isbn(self, review_id: int, isbn: str) -> int:
        with self.db.get_session() as session:
            book_ids = select(Book.id).where(Book.isbn == isbn).scalar_subquery()
            result = session.execute(
                delete(Review)
                .where(Review.id == review_id, Review.book_id == book_ids)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount

    def get_review_statistics(self) -> List[Dict]:
        with self.db.get_session() as session:
            rows = session.execute(
                select(
                    Book.id,
                    Book.isbn,
                    func.avg(Review.rating).label("avg"),
                    func.count(Review.id).label("ratings"),
                )
                .join(Review, Review.book_id == Book.id)
                .group_by(Book.id, Book.isbn)
                .order_by(Book.id)
            ).all()
        return [
            {
                "bookId": row.id,
                "isbn": row.isbn,
                "avg": round(float(row.avg), 2),
                "ratings": int(row.ratings),
            }
            for row in rows
        ]
