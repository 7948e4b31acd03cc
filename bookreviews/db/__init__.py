from bookreviews.db.database import BookRepository, DatabaseManager, ReviewRepository, UserRepository

__all__ = ["BookRepository", "DatabaseManager", "ReviewRepository", "UserRepository"]
