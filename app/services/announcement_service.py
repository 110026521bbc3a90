"""Announcement bar decoding, serialization and status evaluation.

The stored collection is treated as soft state: decoding never raises.
Malformed entries fall back to per-field defaults and a payload that is
not a JSON array decodes to an empty collection.
"""
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

from app.schemas import (
    AnnouncementBar,
    AnnouncementBarResponse,
    BarStatus,
    DEFAULT_BACKGROUND_COLOR,
    DEFAULT_TEXT_COLOR,
)

LOG = logging.getLogger(__name__)

IdFactory = Callable[[], str]

STATUS_MESSAGE_DISABLED = "Announcement is disabled"
STATUS_MESSAGE_MISSING_DATES = "Please select start and end dates to make this bar active"


def new_bar_id() -> str:
    return str(uuid.uuid4())


def _string_or(value: Any, default):
    return value if isinstance(value, str) else default


def _bool_or(value: Any, default: bool) -> bool:
    return value if isinstance(value, bool) else default


def decode_bar(raw: Any, id_factory: IdFactory = new_bar_id) -> AnnouncementBar:
    """Decode one stored entry, defaulting every wrong-typed field.

    Text is kept as-is (even blank); the collection decoder filters blanks.
    """
    data = raw if isinstance(raw, dict) else {}

    bar_id = data.get("id")
    if not isinstance(bar_id, str):
        bar_id = id_factory()

    return AnnouncementBar(
        id=bar_id,
        text=_string_or(data.get("text"), ""),
        background_color=_string_or(data.get("backgroundColor"), DEFAULT_BACKGROUND_COLOR),
        text_color=_string_or(data.get("textColor"), DEFAULT_TEXT_COLOR),
        start_date=_string_or(data.get("startDate"), None),
        end_date=_string_or(data.get("endDate"), None),
        enabled=_bool_or(data.get("enabled"), True),
        dismissible=_bool_or(data.get("dismissible"), True),
        # Legacy payloads have no updatedAt; it stays None rather than being invented.
        updated_at=_string_or(data.get("updatedAt"), None),
    )


def decode_bars(raw: Optional[str], id_factory: IdFactory = new_bar_id) -> List[AnnouncementBar]:
    """Decode the stored JSON blob into the ordered list of valid bars."""
    if not raw:
        return []

    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError, RecursionError) as e:
        LOG.warning("Stored announcement bars are not valid JSON: %s", e)
        return []

    if not isinstance(parsed, list):
        LOG.warning("Stored announcement bars are not a JSON array (got %s)", type(parsed).__name__)
        return []

    bars = [decode_bar(item, id_factory) for item in parsed]
    return [bar for bar in bars if bar.text.strip()]


def duplicate_ids(bars: List[AnnouncementBar]) -> List[str]:
    """Ids that appear more than once, in first-seen order."""
    seen = set()
    duplicates = []
    for bar in bars:
        if bar.id in seen and bar.id not in duplicates:
            duplicates.append(bar.id)
        seen.add(bar.id)
    return duplicates


def serialize_bars(bars: List[AnnouncementBar]) -> str:
    """Encode the collection, in order, as the stored JSON array."""
    return json.dumps([bar.to_json() for bar in bars])


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 instant. Naive values are taken as UTC.

    Returns None for missing or unparseable input.
    """
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _aware(now: datetime) -> datetime:
    return now if now.tzinfo is not None else now.replace(tzinfo=timezone.utc)


def evaluate_status(bar: AnnouncementBar, now: datetime) -> BarStatus:
    """Derive the display status of a bar at instant ``now``."""
    if not bar.enabled:
        return BarStatus.DISABLED

    # An unparseable date counts as missing, so the bar never shows as Active.
    start = parse_timestamp(bar.start_date)
    end = parse_timestamp(bar.end_date)
    if start is None or end is None:
        return BarStatus.DISABLED

    now = _aware(now)
    if now < start:
        return BarStatus.SCHEDULED
    if now > end:
        return BarStatus.EXPIRED
    return BarStatus.ACTIVE


def evaluate_status_message(bar: AnnouncementBar) -> Optional[str]:
    """User-facing hint explaining why a bar cannot be shown, if any."""
    if not bar.enabled:
        return STATUS_MESSAGE_DISABLED
    if parse_timestamp(bar.start_date) is None or parse_timestamp(bar.end_date) is None:
        return STATUS_MESSAGE_MISSING_DATES
    return None


def with_status(bars: List[AnnouncementBar], now: datetime) -> List[AnnouncementBarResponse]:
    return [
        AnnouncementBarResponse(
            **bar.model_dump(),
            status=evaluate_status(bar, now),
            status_message=evaluate_status_message(bar),
        )
        for bar in bars
    ]
