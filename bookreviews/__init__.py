"""Book catalog and review service with Open Library metadata synchronization."""

__version__ = "1.0.0"
