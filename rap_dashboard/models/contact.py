"""
Canonical contact models - normalized rows for the three campaign channels.
"""
import uuid
from datetime import datetime, date
from typing import Optional

from sqlmodel import SQLModel, Field

from rap_dashboard.models.types import utcnow

UNKNOWN = "Unknown"
IMPORTED_CAMPAIGN = "imported-campaign"
WEBHOOK_CAMPAIGN = "webhook-campaign"
AUTOMATION_CAMPAIGN = "n8n-campaign"

# Values written when a producer leaves a field out. A LinkedIn upsert never
# lets one of these replace a stored value.
PLACEHOLDERS = {
    "name": (UNKNOWN,),
    "company": (UNKNOWN,),
    "title": (UNKNOWN,),
    "campaign_id": (IMPORTED_CAMPAIGN, WEBHOOK_CAMPAIGN, AUTOMATION_CAMPAIGN),
}


class LinkedInContact(SQLModel, table=True):
    """
    LinkedIn connection request, identified by its profile URL.
    Status moves pending -> accepted or pending -> declined, never back.
    """
    __tablename__ = "linkedin_contacts"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    name: str = Field(index=True)
    company: Optional[str] = None
    title: Optional[str] = None

    # Natural identity; NULL for imported rows that carry no URL
    linkedin_url: Optional[str] = Field(default=None, unique=True, index=True)

    campaign_id: str = Field(default=IMPORTED_CAMPAIGN, index=True)
    message_text: Optional[str] = None

    status: str = Field(default="pending", index=True)  # pending, accepted, declined
    date_sent: date = Field(default_factory=date.today, index=True)
    accepted_at: Optional[datetime] = None
    declined_at: Optional[datetime] = None

    # Dataset UUID for batch imports, or a source label (webhook-data, n8n-import)
    dataset_id: str = Field(index=True)

    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow)


class EmailContact(SQLModel, table=True):
    """
    Email send record. No natural key: duplicates are tolerated.
    """
    __tablename__ = "email_contacts"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    name: str
    email: str = Field(index=True)
    company: Optional[str] = None
    campaign_name: str = Field(default="Imported Campaign", index=True)

    date_sent: date = Field(default_factory=date.today, index=True)
    opened: bool = Field(default=False)
    replied: bool = Field(default=False)

    dataset_id: str = Field(index=True)
    created_at: datetime = Field(default_factory=utcnow, index=True)


class WebinarAttendee(SQLModel, table=True):
    """
    Webinar invitation and RSVP state.
    """
    __tablename__ = "webinar_attendees"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    name: str
    email: str = Field(index=True)
    company: Optional[str] = None
    industry: str = Field(default="Other")

    invited_date: date = Field(default_factory=date.today)
    rsvp_status: str = Field(default="pending", index=True)  # pending, confirmed, declined
    webinar_id: str = Field(default="imported-webinar", index=True)

    dataset_id: str = Field(index=True)
    created_at: datetime = Field(default_factory=utcnow, index=True)


class ContactStatus:
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class RsvpStatus:
    PENDING = "pending"
    CONFIRMED = "confirmed"
    DECLINED = "declined"
