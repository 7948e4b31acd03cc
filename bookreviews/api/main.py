from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, Header, HTTPException, Query, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from bookreviews.books.service import BookManagementService
from bookreviews.config import Settings, configure_logging
from bookreviews.db.database import BookRepository, DatabaseManager, ReviewRepository, UserRepository
from bookreviews.errors import BadReviewRequestError, BookNotFoundError
from bookreviews.reviews.service import BookReviewRequest, ReviewService


database: DatabaseManager | None = None
book_service: BookManagementService | None = None
review_service: ReviewService | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    global database, book_service, review_service
    settings = Settings.from_env()
    configure_logging(settings.log_level)

    database = DatabaseManager(settings.database_url)
    database.create_schema()
    books = BookRepository(database)
    book_service = BookManagementService(books)
    review_service = ReviewService(books, ReviewRepository(database), UserRepository(database))
    yield
    database.close()


app = FastAPI(title="Book Reviews API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class BookResponse(BaseModel):
    isbn: str
    title: str
    author: str
    description: str
    genre: str
    pages: int
    publisher: str
    thumbnail_url: str


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


@app.exception_handler(BookNotFoundError)
async def book_not_found_handler(request: Request, exc: BookNotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(BadReviewRequestError)
async def bad_review_handler(request: Request, exc: BadReviewRequestError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


def _accepts_json(accept: Optional[str]) -> bool:
    if not accept:
        return True
    for part in accept.split(","):
        media_type = part.split(";")[0].strip().lower()
        if media_type in ("*/*", "application/*", "application/json"):
            return True
    return False


def _reviews() -> ReviewService:
    if review_service is None:
        raise HTTPException(status_code=500, detail="Review service not initialized")
    return review_service


@app.get("/")
def root():
    return {"message": "Book Reviews API"}


@app.get("/api/books", response_model=List[BookResponse])
def get_all_books(accept: Optional[str] = Header(None)):
    if not _accepts_json(accept):
        raise HTTPException(status_code=406, detail="Only application/json is supported")
    if book_service is None:
        raise HTTPException(status_code=500, detail="Book service not initialized")
    return [book.to_dict() for book in book_service.get_all_books()]


@app.get("/api/books/reviews")
def get_all_reviews(
    size: int = Query(20, ge=1, le=100),
    order_by: str = Query("none", alias="orderBy"),
):
    return _reviews().get_all_reviews(size, order_by)


@app.get("/api/books/reviews/statistics")
def get_review_statistics():
    return _reviews().get_review_statistics()


@app.post("/api/books/{isbn}/reviews", status_code=201)
def create_book_review(
    isbn: str,
    review: BookReviewRequest,
    user_name: str = Header(..., alias="X-User-Name", min_length=1),
    email: Optional[str] = Header(None, alias="X-User-Email"),
):
    review_id = _reviews().create_book_review(isbn, review, user_name, email)
    return Response(status_code=201, headers={"Location": f"/api/books/{isbn}/reviews/{review_id}"})


@app.delete("/api/books/{isbn}/reviews/{review_id}")
def delete_book_review(isbn: str, review_id: int):
    _reviews().delete_review(isbn, review_id)
    return Response(status_code=200)


@app.get("/health")
def health():
    return {"status": "healthy"}
