"""
LinkedIn activity models.
Append-only logs fed by the LinkedIn webhook, plus follow-up tasks
created when a connection request is accepted.
"""
import uuid
from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field

from rap_dashboard.models.types import utcnow


class LinkedInMessage(SQLModel, table=True):
    """Message sent to a LinkedIn connection."""
    __tablename__ = "linkedin_messages"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    recipient_name: Optional[str] = None
    recipient_url: Optional[str] = Field(default=None, index=True)
    message_text: Optional[str] = None
    conversation_id: Optional[str] = Field(default=None, index=True)

    sent_at: datetime = Field(default_factory=utcnow)


class LinkedInProfileView(SQLModel, table=True):
    """Profile view reported by the LinkedIn automation."""
    __tablename__ = "linkedin_profile_views"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    viewed_profile_name: Optional[str] = None
    viewed_profile_url: Optional[str] = Field(default=None, index=True)

    viewed_at: datetime = Field(default_factory=utcnow)


class FollowUpTask(SQLModel, table=True):
    """
    Pending action for a contact, e.g. a thank-you message after
    a connection request was accepted.
    """
    __tablename__ = "follow_up_tasks"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    contact_name: Optional[str] = None
    contact_url: str = Field(index=True)
    task_type: str = Field(default="send_thank_you_message")
    scheduled_for: datetime
    status: str = Field(default="pending", index=True)  # pending, done, cancelled

    created_at: datetime = Field(default_factory=utcnow)
