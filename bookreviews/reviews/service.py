import logging
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from bookreviews.db.database import BookRepository, ReviewRepository, UserRepository
from bookreviews.db.models import Review
from bookreviews.errors import BadReviewRequestError, BookNotFoundError
from bookreviews.reviews.verifier import ReviewVerifier


logger = logging.getLogger(__name__)


class BookReviewRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    review_title: str = Field(alias="reviewTitle", min_length=1)
    review_content: str = Field(alias="reviewContent", min_length=1)
    rating: int = Field(ge=1, le=5)


def _review_to_dict(review: Review) -> Dict:
    return {
        "reviewId": review.id,
        "reviewTitle": review.title,
        "reviewContent": review.content,
        "rating": review.rating,
        "bookIsbn": review.book.isbn,
        "bookTitle": review.book.title,
        "bookThumbnailUrl": review.book.thumbnail_url,
        "submittedBy": review.user.name,
        "submittedAt": review.created_at.isoformat() if review.created_at else None,
    }


class ReviewService:
    def __init__(
        self,
        book_repository: BookRepository,
        review_repository: ReviewRepository,
        user_repository: UserRepository,
        review_verifier: Optional[ReviewVerifier] = None,
    ):
        self.book_repository = book_repository
        self.review_repository = review_repository
        self.user_repository = user_repository
        self.review_verifier = review_verifier or ReviewVerifier()

    def get_all_reviews(self, size: int, order_by: str) -> List[Dict]:
        if order_by == "rating":
            reviews = self.review_repository.find_top_rated(size)
        else:
            reviews = self.review_repository.find_page(size)
        return [_review_to_dict(review) for review in reviews]

    def get_review_statistics(self) -> List[Dict]:
        return self.review_repository.get_review_statistics()

    def create_book_review(
        self,
        isbn: str,
        request: BookReviewRequest,
        user_name: str,
        email: Optional[str],
    ) -> int:
        book = self.book_repository.find_by_isbn(isbn)
        if book is None:
            raise BookNotFoundError(isbn)

        if not self.review_verifier.does_meet_quality_standards(request.review_content):
            logger.info("Rejected review for isbn=%s by %s: quality check failed", isbn, user_name)
            raise BadReviewRequestError("Review does not meet the quality standards")

        user = self.user_repository.get_or_create(user_name, email)
        review = self.review_repository.save(
            Review(
                title=request.review_title,
                content=request.review_content,
                rating=request.rating,
                book_id=book.id,
                user_id=user.id,
            )
        )
        logger.info("Stored review id=%s for isbn=%s by %s", review.id, isbn, user_name)
        return review.id

    def delete_review(self, isbn: str, review_id: int) -> None:
        deleted = self.review_repository.delete_by_id_and_isbn(review_id, isbn)
        logger.info("Deleted %s review(s) id=%s isbn=%s", deleted, review_id, isbn)
