"""
Contact repositories - LinkedIn contacts, email contacts, webinar attendees.

LinkedIn contacts are keyed on their profile URL and written with the
dialect's INSERT ... ON CONFLICT so concurrent deliveries for the same
profile resolve atomically in the database.
"""
from typing import Optional, List, Dict, Any
from datetime import datetime

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import case, func, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from rap_dashboard.models.contact import (
    LinkedInContact, EmailContact, WebinarAttendee, ContactStatus, PLACEHOLDERS
)
from rap_dashboard.models.types import utcnow
from rap_dashboard.repositories.base import BaseRepository

DIALECT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}

# Columns an upsert never overwrites on an existing row. The first dataset
# keeps ownership and the first send date stays the row's trend bucket.
KEEP_ON_CONFLICT = ("id", "created_at", "dataset_id", "date_sent")

# Rows per INSERT statement; asyncpg caps a statement at 32767 bind params
UPSERT_CHUNK_SIZE = 1000


class TransitionOutcome:
    APPLIED = "applied"        # pending -> target
    CREATED = "created"        # unknown profile, inserted directly in target state
    UNCHANGED = "unchanged"    # already in target state
    CONFLICT = "conflict"      # already in the other terminal state


class LinkedInContactRepository(BaseRepository[LinkedInContact]):
    """Repository for LinkedIn contact operations."""

    def __init__(self, session: AsyncSession, timeout: Optional[float] = None):
        super().__init__(LinkedInContact, session, timeout)

    def _dialect_insert(self):
        dialect = self.session.get_bind().dialect.name
        try:
            return DIALECT_INSERTS[dialect]
        except KeyError:
            raise NotImplementedError(f"Upsert is not supported on dialect '{dialect}'")

    async def get_by_linkedin_url(self, linkedin_url: str) -> Optional[LinkedInContact]:
        """Get contact by profile URL, bypassing stale identity-map state."""
        async def _get():
            query = (
                select(LinkedInContact)
                .where(LinkedInContact.linkedin_url == linkedin_url)
                .execution_options(populate_existing=True)
            )
            result = await self.session.exec(query)
            return result.first()

        return await self._run(f"Read from {self.table}", _get())

    async def bulk_upsert(
        self,
        records: List[Dict[str, Any]],
        conflict_key: str = "linkedin_url"
    ) -> List[Any]:
        """
        Insert contacts, merging into existing rows that share the conflict key.

        The batch commits in one transaction, split into statements of
        UPSERT_CHUNK_SIZE rows. Rows whose key is NULL never conflict and are
        plain inserts. Within the batch the last row for a key wins.

        On conflict an incoming NULL or placeholder value never replaces a
        stored one, dataset_id and date_sent keep their first value, and
        status only moves forward from pending, so a late "sent" or a
        re-import never downgrades an accepted or declined contact.

        Returns:
            Ids of the inserted or updated rows.
        """
        if not records:
            return []

        deduped: Dict[Any, dict] = {}
        for i, record in enumerate(records):
            key = record.get(conflict_key)
            deduped[key if key is not None else ("__row__", i)] = record

        rows = [LinkedInContact(**record).model_dump() for record in deduped.values()]
        supplied = set().union(*(record.keys() for record in deduped.values()))
        merged = [
            column for column in supplied
            if column not in KEEP_ON_CONFLICT and column != conflict_key
        ]

        async def _bulk_upsert():
            insert = self._dialect_insert()
            ids = []
            for start in range(0, len(rows), UPSERT_CHUNK_SIZE):
                stmt = insert(LinkedInContact).values(rows[start:start + UPSERT_CHUNK_SIZE])
                set_ = {column: self._merge(column, stmt.excluded[column]) for column in merged}
                set_["updated_at"] = utcnow()
                stmt = stmt.on_conflict_do_update(
                    index_elements=[conflict_key], set_=set_
                ).returning(LinkedInContact.id)
                result = await self.session.execute(stmt)
                ids.extend(result.scalars().all())
            await self.session.commit()
            return ids

        return await self._run(f"Upsert into {self.table}", _bulk_upsert())

    @staticmethod
    def _merge(column: str, incoming):
        current = getattr(LinkedInContact, column)
        if column == "status":
            return case((current == ContactStatus.PENDING, incoming), else_=current)
        value = func.coalesce(incoming, current)
        placeholders = PLACEHOLDERS.get(column)
        if placeholders:
            return case((incoming.in_(placeholders), current), else_=value)
        return value

    async def upsert(self, record: Dict[str, Any]) -> LinkedInContact:
        """Insert or update a single contact by profile URL and return the stored row."""
        await self.bulk_upsert([record])
        return await self.get_by_linkedin_url(record["linkedin_url"])

    async def transition(
        self,
        linkedin_url: str,
        status: str,
        at: datetime,
        stub: Dict[str, Any]
    ) -> str:
        """
        Move a contact from pending to accepted/declined.

        Args:
            linkedin_url: Profile URL identifying the contact
            status: Target status (accepted or declined)
            at: Transition timestamp
            stub: Fields used to create the contact if the profile is unknown

        Returns:
            A TransitionOutcome value
        """
        timestamp_field = "accepted_at" if status == ContactStatus.ACCEPTED else "declined_at"

        async def _apply_update() -> int:
            stmt = (
                update(LinkedInContact)
                .where(
                    LinkedInContact.linkedin_url == linkedin_url,
                    LinkedInContact.status == ContactStatus.PENDING,
                )
                .values(status=status, updated_at=utcnow(), **{timestamp_field: at})
            )
            result = await self.session.execute(stmt)
            return result.rowcount or 0

        async def _transition():
            # Two passes: a concurrent insert can win between the update and the stub insert
            for _ in range(2):
                if await _apply_update():
                    await self.session.commit()
                    return TransitionOutcome.APPLIED

                result = await self.session.exec(
                    select(LinkedInContact.status).where(LinkedInContact.linkedin_url == linkedin_url)
                )
                current = result.first()
                if current is not None:
                    await self.session.commit()
                    return TransitionOutcome.UNCHANGED if current == status else TransitionOutcome.CONFLICT

                row = LinkedInContact(
                    **{**stub, "linkedin_url": linkedin_url, "status": status, timestamp_field: at}
                ).model_dump()
                insert = self._dialect_insert()
                stmt = insert(LinkedInContact).values(**row).on_conflict_do_nothing(
                    index_elements=["linkedin_url"]
                )
                result = await self.session.execute(stmt)
                if result.rowcount:
                    await self.session.commit()
                    return TransitionOutcome.CREATED
            await self.session.commit()
            return TransitionOutcome.UNCHANGED

        return await self._run(f"Update {self.table}", _transition())

    async def list_for_trends(self, start: datetime) -> List[LinkedInContact]:
        """Contacts sent or created on/after start, for day bucketing."""
        async def _list():
            query = select(LinkedInContact).where(
                (LinkedInContact.date_sent >= start.date()) | (LinkedInContact.created_at >= start)
            )
            result = await self.session.exec(query)
            return result.all()

        return await self._run(f"Read from {self.table}", _list())


class EmailContactRepository(BaseRepository[EmailContact]):
    """Repository for EmailContact operations. Append-only."""

    def __init__(self, session: AsyncSession, timeout: Optional[float] = None):
        super().__init__(EmailContact, session, timeout)


class WebinarAttendeeRepository(BaseRepository[WebinarAttendee]):
    """Repository for WebinarAttendee operations. Append-only."""

    def __init__(self, session: AsyncSession, timeout: Optional[float] = None):
        super().__init__(WebinarAttendee, session, timeout)
