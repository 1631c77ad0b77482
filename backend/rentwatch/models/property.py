"""Persisted rental listings."""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, DateTime, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from rentwatch.models.base import Base, TimestampMixin
from rentwatch.scrapers.base import BUILDING_TYPE_APARTMENT, PropertyRecord


class PropertyListing(TimestampMixin, Base):
    """One listing ever seen by the watcher, keyed by its content hash."""

    __tablename__ = "properties"

    id: Mapped[str] = mapped_column(
        String(16),
        primary_key=True,
        comment="First 16 hex chars of sha256(address|area|price)",
    )
    url: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False, default="")
    price: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    address: Mapped[str] = mapped_column(Text, nullable=False, default="")
    layout: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    area: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    building_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=BUILDING_TYPE_APARTMENT
    )
    access: Mapped[List[str]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        default=list,
    )
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    first_seen_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    @classmethod
    def from_record(cls, record: PropertyRecord) -> "PropertyListing":
        timestamps = {
            name: value
            for name, value in (
                ("created_at", record.created_at),
                ("first_seen_at", record.first_seen_at),
            )
            if value is not None
        }
        return cls(
            id=record.id,
            url=record.url,
            title=record.title,
            price=record.price,
            address=record.address,
            layout=record.layout,
            area=record.area,
            building_type=record.building_type,
            access=list(record.access),
            image_url=record.image_url,
            **timestamps,
        )

    def to_record(self) -> PropertyRecord:
        return PropertyRecord(
            id=self.id,
            url=self.url,
            title=self.title,
            price=self.price,
            address=self.address,
            layout=self.layout,
            area=self.area,
            building_type=self.building_type,
            access=list(self.access or []),
            image_url=self.image_url,
            created_at=self.created_at,
            first_seen_at=self.first_seen_at,
        )

    def __repr__(self) -> str:
        return f"<PropertyListing(id={self.id}, title={self.title!r})>"
