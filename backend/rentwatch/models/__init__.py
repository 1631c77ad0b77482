"""SQLAlchemy models for RentWatch."""

from rentwatch.models.base import Base, TimestampMixin
from rentwatch.models.property import PropertyListing

__all__ = [
    "Base",
    "TimestampMixin",
    "PropertyListing",
]
