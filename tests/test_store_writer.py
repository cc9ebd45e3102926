import asyncio
import uuid
from datetime import date, datetime, timezone

import pytest
from sqlmodel import select

from rap_dashboard.core.exceptions import StoreError, StoreTimeoutError, UnsupportedTypeError
from rap_dashboard.models.contact import LinkedInContact, EmailContact, WebinarAttendee
from rap_dashboard.models.dataset import Dataset
from rap_dashboard.models.linkedin import LinkedInMessage
from rap_dashboard.models.types import utcnow
from rap_dashboard.repositories.base import BaseRepository
from rap_dashboard.repositories.contact_repo import TransitionOutcome
from rap_dashboard.services.store_writer import StoreWriter

URL = "https://linkedin.com/in/jane"


def contact(**overrides):
    record = {
        "name": "Jane",
        "company": "Acme",
        "title": "CTO",
        "linkedin_url": URL,
        "status": "pending",
        "date_sent": date(2024, 5, 1),
        "campaign_id": "c-1",
        "dataset_id": "webhook-data",
    }
    record.update(overrides)
    return record


async def all_contacts(session):
    result = await session.exec(select(LinkedInContact).execution_options(populate_existing=True))
    return result.all()


@pytest.mark.asyncio
async def test_upsert_same_url_keeps_one_row(session):
    writer = StoreWriter(session)
    await writer.upsert("linkedin", contact(), conflict_key="linkedin_url")
    stored = await writer.upsert("linkedin", contact(status="accepted", title="CEO"), conflict_key="linkedin_url")

    rows = await all_contacts(session)
    assert len(rows) == 1
    assert stored.status == "accepted"
    assert stored.title == "CEO"


@pytest.mark.asyncio
async def test_upsert_never_downgrades_status(session):
    writer = StoreWriter(session)
    await writer.upsert("linkedin", contact(status="accepted"), conflict_key="linkedin_url")
    stored = await writer.upsert("linkedin", contact(status="pending", company="Acme Corp"), conflict_key="linkedin_url")

    assert stored.status == "accepted"
    assert stored.company == "Acme Corp"


@pytest.mark.asyncio
async def test_bulk_upsert_rows_without_url_are_inserted(session):
    writer = StoreWriter(session)
    ids = await writer.bulk_insert("linkedin", [
        contact(linkedin_url=None, name="A"),
        contact(linkedin_url=None, name="B"),
        contact(),
        contact(title="VP"),
    ], conflict_key="linkedin_url")

    rows = await all_contacts(session)
    assert len(rows) == 3
    assert len(ids) == 3
    assert [r.title for r in rows if r.linkedin_url == URL] == ["VP"]


@pytest.mark.asyncio
async def test_upsert_merge_keeps_stored_values(session):
    writer = StoreWriter(session)
    await writer.upsert("linkedin", contact(message_text="Hi Jane"), conflict_key="linkedin_url")

    stored = await writer.upsert("linkedin", contact(
        name="Unknown",
        title=None,
        message_text=None,
        campaign_id="imported-campaign",
        date_sent=date(2024, 6, 1),
        dataset_id="other-dataset",
        company="Acme Corp",
    ), conflict_key="linkedin_url")

    assert stored.name == "Jane"
    assert stored.title == "CTO"
    assert stored.message_text == "Hi Jane"
    assert stored.campaign_id == "c-1"
    assert stored.date_sent == date(2024, 5, 1)
    assert stored.dataset_id == "webhook-data"
    assert stored.company == "Acme Corp"


@pytest.mark.asyncio
async def test_upsert_replaces_placeholders(session):
    writer = StoreWriter(session)
    await writer.upsert("linkedin", contact(name="Unknown", campaign_id="webhook-campaign"), conflict_key="linkedin_url")

    stored = await writer.upsert("linkedin", contact(name="Jane Doe", campaign_id="spring"), conflict_key="linkedin_url")

    assert stored.name == "Jane Doe"
    assert stored.campaign_id == "spring"


@pytest.mark.asyncio
async def test_bulk_upsert_splits_large_batches(session, monkeypatch):
    monkeypatch.setattr("rap_dashboard.repositories.contact_repo.UPSERT_CHUNK_SIZE", 2)
    writer = StoreWriter(session)
    await writer.upsert("linkedin", contact(linkedin_url="https://linkedin.com/in/p0"), conflict_key="linkedin_url")

    ids = await writer.bulk_insert("linkedin", [
        contact(linkedin_url=f"https://linkedin.com/in/p{i}", name=f"P{i}") for i in range(5)
    ], conflict_key="linkedin_url")

    rows = await all_contacts(session)
    assert len(ids) == 5
    assert len(rows) == 5
    assert {r.id for r in rows} == set(ids)


@pytest.mark.asyncio
async def test_bulk_insert_is_all_or_nothing(session):
    writer = StoreWriter(session)
    rows = [
        {"name": "A", "email": "a@x.io", "dataset_id": "d"},
        {"name": None, "email": "b@x.io", "dataset_id": "d"},  # violates NOT NULL
    ]
    with pytest.raises(StoreError):
        await writer.bulk_insert("email", rows)

    result = await session.exec(select(EmailContact))
    assert result.all() == []


@pytest.mark.asyncio
async def test_unknown_channel(session):
    with pytest.raises(UnsupportedTypeError):
        await StoreWriter(session).bulk_insert("fax", [{"name": "A"}])


@pytest.mark.asyncio
async def test_conflict_key_only_for_linkedin(session):
    with pytest.raises(UnsupportedTypeError):
        await StoreWriter(session).upsert("email", {"name": "A"}, conflict_key="email")


class TestTransition:
    @pytest.mark.asyncio
    async def test_pending_to_accepted(self, session):
        writer = StoreWriter(session)
        await writer.upsert("linkedin", contact(), conflict_key="linkedin_url")
        at = datetime(2024, 5, 2, 10, 0)

        outcome = await writer.transition(URL, "accepted", at, contact())

        assert outcome == TransitionOutcome.APPLIED
        row = (await all_contacts(session))[0]
        assert row.status == "accepted"
        assert row.accepted_at == at

    @pytest.mark.asyncio
    async def test_repeat_is_noop(self, session):
        writer = StoreWriter(session)
        await writer.upsert("linkedin", contact(), conflict_key="linkedin_url")
        first = datetime(2024, 5, 2, 10, 0)
        await writer.transition(URL, "accepted", first, contact())

        outcome = await writer.transition(URL, "accepted", datetime(2024, 5, 3), contact())

        assert outcome == TransitionOutcome.UNCHANGED
        assert (await all_contacts(session))[0].accepted_at == first

    @pytest.mark.asyncio
    async def test_other_final_state_is_conflict(self, session):
        writer = StoreWriter(session)
        await writer.upsert("linkedin", contact(), conflict_key="linkedin_url")
        await writer.transition(URL, "declined", datetime(2024, 5, 2), contact())

        outcome = await writer.transition(URL, "accepted", datetime(2024, 5, 3), contact())

        assert outcome == TransitionOutcome.CONFLICT
        row = (await all_contacts(session))[0]
        assert row.status == "declined"
        assert row.accepted_at is None

    @pytest.mark.asyncio
    async def test_unknown_url_creates_contact(self, session):
        writer = StoreWriter(session)
        at = datetime(2024, 5, 2, 10, 0)

        outcome = await writer.transition(URL, "accepted", at, contact(status="pending"))

        assert outcome == TransitionOutcome.CREATED
        rows = await all_contacts(session)
        assert len(rows) == 1
        assert rows[0].status == "accepted"
        assert rows[0].accepted_at == at


@pytest.mark.asyncio
async def test_append_and_cascade_delete(session):
    writer = StoreWriter(session)
    await writer.append(LinkedInMessage, {"recipient_url": URL, "message_text": "Thanks!"})

    dataset = await BaseRepository(Dataset, session).create({
        "name": "upload.csv", "type": "email", "row_count": 2, "file_path": "processed/upload.csv",
    })
    other = await BaseRepository(Dataset, session).create({
        "name": "other.csv", "type": "webinar", "row_count": 1, "file_path": "processed/other.csv",
    })
    await writer.bulk_insert("email", [
        {"name": "A", "email": "a@x.io", "dataset_id": str(dataset.id)},
        {"name": "B", "email": "b@x.io", "dataset_id": str(dataset.id)},
    ])
    await writer.bulk_insert("webinar", [{"name": "C", "email": "c@x.io", "dataset_id": str(other.id)}])

    deleted = await writer.delete_by_key(dataset.id)

    assert deleted["email_contacts"] == 2
    assert (await session.exec(select(EmailContact))).all() == []
    assert len((await session.exec(select(WebinarAttendee))).all()) == 1
    assert await writer.delete_by_key(uuid.uuid4()) is None


@pytest.mark.asyncio
async def test_store_timeout(session):
    repo = BaseRepository(Dataset, session, timeout=0.01)

    async def slow():
        await asyncio.sleep(1)

    with pytest.raises(StoreTimeoutError) as exc:
        await repo._run("Read from datasets", slow())
    assert exc.value.status_code == 504


def test_utcnow_matches_timestamp_columns():
    now = utcnow()
    assert now.tzinfo is None
    assert abs((datetime.now(timezone.utc).replace(tzinfo=None) - now).total_seconds()) < 5
