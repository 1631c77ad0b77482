"""Property service: the persistence gateway for seen listings.

Decides which scraped records are new, stores them with first-seen
timestamps, and supports the bulk clear used by ``--clear``. Lookups and
saves degrade to empty results on database errors so a run can still
finish; clearing propagates its errors.
"""

from datetime import datetime, timezone
from typing import Iterable, List, Set

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from rentwatch.core.exceptions import PersistenceError
from rentwatch.models import Base, PropertyListing
from rentwatch.scrapers.base import PropertyRecord
from rentwatch.scrapers.utils.identity import deduplicate_properties

logger = structlog.get_logger(__name__)


class PropertyService:
    """Service for reading and writing the ``properties`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        """Initialize property service.

        Args:
            session_factory: Async session factory bound to the engine
        """
        self.session_factory = session_factory
        self.logger = logger.bind(service="property_service")

    async def initialize(self, engine: AsyncEngine) -> None:
        """Create the ``properties`` table if it does not exist."""
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        self.logger.info("database_initialized")

    async def get_existing_ids(self) -> Set[str]:
        """Ids of every stored listing; empty on database errors."""
        try:
            async with self.session_factory() as session:
                result = await session.execute(select(PropertyListing.id))
                return set(result.scalars().all())
        except SQLAlchemyError as e:
            self.logger.error("existing_ids_fetch_failed", error=str(e), exc_info=True)
            return set()

    async def find_new_properties(self, records: Iterable[PropertyRecord]) -> List[PropertyRecord]:
        """Records whose id is not stored yet, in input order."""
        existing_ids = await self.get_existing_ids()
        new_records = [record for record in records if record.id not in existing_ids]
        self.logger.info("new_properties_found", count=len(new_records), known=len(existing_ids))
        return new_records

    async def save_new_properties(self, records: Iterable[PropertyRecord]) -> List[PropertyRecord]:
        """Upsert records by id, stamping ``created_at`` and ``first_seen_at``.

        Duplicate ids within the batch are collapsed to their first
        occurrence before writing.

        Returns:
            The stored records, or an empty list if the write failed
        """
        unique = deduplicate_properties(records)
        if not unique:
            return []

        now = datetime.now(timezone.utc)
        try:
            async with self.session_factory() as session:
                listings = []
                for record in unique:
                    listing = PropertyListing.from_record(record)
                    listing.created_at = now
                    listing.first_seen_at = now
                    listings.append(await session.merge(listing))
                await session.commit()
                saved = [listing.to_record() for listing in listings]
        except SQLAlchemyError as e:
            self.logger.error(
                "properties_save_failed", count=len(unique), error=str(e), exc_info=True
            )
            return []

        self.logger.info(
            "properties_saved",
            count=len(saved),
            with_images=sum(1 for record in saved if record.image_url),
        )
        return saved

    async def delete_all_properties(self) -> int:
        """Remove every stored listing.

        Returns:
            Number of deleted rows

        Raises:
            PersistenceError: If the delete fails
        """
        try:
            async with self.session_factory() as session:
                result = await session.execute(delete(PropertyListing))
                await session.commit()
        except SQLAlchemyError as e:
            self.logger.error("properties_delete_failed", error=str(e), exc_info=True)
            raise PersistenceError(f"Failed to delete properties: {e}") from e

        self.logger.info("properties_deleted", count=result.rowcount)
        return result.rowcount
