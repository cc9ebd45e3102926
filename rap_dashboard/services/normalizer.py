"""
Normalizer - maps inbound rows with inconsistent key naming onto the
canonical record shape of a channel.

Field resolution is driven by FIELD_SPECS: for every canonical field an
ordered tuple of accepted source keys. Keys are compared after folding
case and dropping separators, so `date_sent`, `dateSent`, `DateSent` and
`Date Sent` are the same key. The first alias with a non-empty value wins,
otherwise the field default applies, and a required field with neither
raises ValidationError.
"""
import re
from datetime import date, datetime
from typing import Any, Dict, Iterable, NamedTuple, Optional, Tuple

from rap_dashboard.core.exceptions import ValidationError, UnsupportedTypeError
from rap_dashboard.models.contact import IMPORTED_CAMPAIGN

CHANNELS = ("linkedin", "email", "webinar")

LINKEDIN_STATUSES = ("pending", "accepted", "declined")
RSVP_STATUSES = ("pending", "confirmed", "declined")

FALSE_STRINGS = {"", "false", "0", "no", "n", "off", "none", "null"}

DATE_FORMATS = ("%m/%d/%Y", "%Y/%m/%d", "%d.%m.%Y")


class FieldSpec(NamedTuple):
    aliases: Tuple[str, ...]
    kind: str = "text"  # text, enum, bool, date
    required: bool = False
    default: Any = None  # value or zero-arg callable
    allowed: Tuple[str, ...] = ()


FIELD_SPECS: Dict[str, Dict[str, FieldSpec]] = {
    "linkedin": {
        "name": FieldSpec(("name", "full_name"), required=True),
        "company": FieldSpec(("company", "company_name", "organization")),
        "title": FieldSpec(("title", "job_title", "position", "headline")),
        "linkedin_url": FieldSpec(
            ("linkedin_url", "linkedin", "profile_url", "linkedin_profile", "url")
        ),
        "campaign_id": FieldSpec(("campaign_id", "campaign"), default=IMPORTED_CAMPAIGN),
        "message_text": FieldSpec(("message_text", "message")),
        "status": FieldSpec(
            ("status", "connection_status"), kind="enum",
            default="pending", allowed=LINKEDIN_STATUSES,
        ),
        "date_sent": FieldSpec(("date_sent", "sent_date", "sent_at", "date"), kind="date"),
    },
    "email": {
        "name": FieldSpec(("name", "full_name"), required=True),
        "email": FieldSpec(("email", "email_address", "e_mail"), required=True),
        "company": FieldSpec(("company", "company_name", "organization")),
        "campaign_name": FieldSpec(("campaign_name", "campaign"), default="Imported Campaign"),
        "date_sent": FieldSpec(("date_sent", "sent_date", "sent_at", "date"), kind="date"),
        "opened": FieldSpec(("opened", "was_opened", "is_opened"), kind="bool", default=False),
        "replied": FieldSpec(("replied", "has_replied", "is_replied"), kind="bool", default=False),
    },
    "webinar": {
        "name": FieldSpec(("name", "full_name"), required=True),
        "email": FieldSpec(("email", "email_address", "e_mail"), required=True),
        "company": FieldSpec(("company", "company_name", "organization")),
        "industry": FieldSpec(("industry", "sector"), default="Other"),
        "invited_date": FieldSpec(("invited_date", "invite_date", "date_invited", "date"), kind="date"),
        "rsvp_status": FieldSpec(
            ("rsvp_status", "rsvp", "status"), kind="enum",
            default="pending", allowed=RSVP_STATUSES,
        ),
        "webinar_id": FieldSpec(("webinar_id", "webinar"), default="imported-webinar"),
    },
}


def compact_key(key: str) -> str:
    """Fold case and drop separators: 'Date Sent' -> 'datesent'."""
    return re.sub(r"[^a-z0-9]", "", str(key).lower())


def is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def index_record(record: Dict[str, Any]) -> Dict[str, list]:
    """Group a record's non-empty values by compacted key, keeping source order."""
    index: Dict[str, list] = {}
    for key, value in record.items():
        if not is_empty(value):
            index.setdefault(compact_key(key), []).append(value)
    return index


def resolve_field(
    record: Dict[str, Any],
    aliases: Iterable[str],
    index: Optional[Dict[str, list]] = None
) -> Any:
    """Return the first non-empty value among the aliases, or None."""
    if index is None:
        index = index_record(record)
    for alias in aliases:
        values = index.get(compact_key(alias))
        if values:
            return values[0]
    return None


def coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in FALSE_STRINGS
    return bool(value)


def parse_date(value: Any, field: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValidationError(f"unrecognized date '{text}'", field=field)


def normalize_enum(value: Any, field: str, allowed: Tuple[str, ...], policy: str) -> str:
    normalized = str(value).strip().lower()
    if policy == "strict" and normalized not in allowed:
        raise ValidationError(
            f"'{normalized}' is not one of {', '.join(allowed)}", field=field
        )
    return normalized


def _default(spec: FieldSpec, today: date) -> Any:
    if spec.kind == "date":
        return today
    if callable(spec.default):
        return spec.default()
    return spec.default


def normalize(
    channel: str,
    record: Dict[str, Any],
    defaults: Optional[Dict[str, Any]] = None,
    enum_policy: str = "permissive",
    today: Optional[date] = None
) -> Dict[str, Any]:
    """
    Normalize one inbound row into the canonical field set of a channel.

    Args:
        channel: linkedin, email or webinar
        record: Inbound row with arbitrary key naming
        defaults: Per-call overrides for field defaults (adapter specific)
        enum_policy: "permissive" keeps unknown enum values lower-cased,
            "strict" rejects them
        today: Date used for missing date fields (defaults to date.today())

    Returns:
        Dict holding exactly the channel's canonical fields.

    Raises:
        UnsupportedTypeError: unknown channel
        ValidationError: record is not an object, a required field is
            missing, or a value cannot be coerced
    """
    specs = FIELD_SPECS.get(channel)
    if specs is None:
        raise UnsupportedTypeError("campaign type", channel, CHANNELS)
    if not isinstance(record, dict):
        raise ValidationError("record must be an object")

    today = today or date.today()
    defaults = defaults or {}
    index = index_record(record)
    normalized: Dict[str, Any] = {}

    for field, spec in specs.items():
        value = resolve_field(record, spec.aliases, index)

        if value is None:
            if not is_empty(defaults.get(field)):
                value = defaults[field]
            elif spec.required:
                raise ValidationError(
                    f"none of {', '.join(spec.aliases)} present", field=field
                )
            else:
                normalized[field] = _default(spec, today)
                continue

        if spec.kind == "bool":
            normalized[field] = coerce_bool(value)
        elif spec.kind == "date":
            normalized[field] = parse_date(value, field)
        elif spec.kind == "enum":
            normalized[field] = normalize_enum(value, field, spec.allowed, enum_policy)
        else:
            normalized[field] = value.strip() if isinstance(value, str) else str(value)

    return normalized


def normalize_many(
    channel: str,
    records: Iterable[Dict[str, Any]],
    **kwargs
) -> list:
    """Normalize a batch; the first bad row fails the batch with its position."""
    normalized = []
    for position, record in enumerate(records, start=1):
        try:
            normalized.append(normalize(channel, record, **kwargs))
        except ValidationError as e:
            raise ValidationError(f"row {position}: {e.message}") from e
    return normalized
