"""Editing sessions over a shop's ordered collection of announcement bars.

The list operations are pure: they return a new list and never mutate
their input. ``EditorSession`` layers the baseline snapshot and the dirty
flag on top of them.
"""
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from app.schemas import AnnouncementBar, MoveDirection
from app.services.announcement_service import (
    IdFactory,
    decode_bars,
    new_bar_id,
    serialize_bars,
)

LOG = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class DraftRejected(ValueError):
    """A draft failed validation; the collection was left untouched."""


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """ISO 8601 in UTC with millisecond precision and a ``Z`` suffix."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def create_draft(id_factory: IdFactory = new_bar_id, clock: Clock = utc_now) -> AnnouncementBar:
    """A fresh bar with defaults. Not part of any collection until upserted."""
    return AnnouncementBar(id=id_factory(), text="", updated_at=format_timestamp(clock()))


def upsert_bar(bars: List[AnnouncementBar], draft: AnnouncementBar, now: datetime) -> List[AnnouncementBar]:
    """Replace the bar with the draft's id in place, or append the draft.

    Raises DraftRejected when the draft text is blank.
    """
    if not draft.text.strip():
        raise DraftRejected("Announcement text cannot be empty")

    stamped = draft.model_copy(update={"updated_at": format_timestamp(now)})

    updated = list(bars)
    for index, bar in enumerate(updated):
        if bar.id == stamped.id:
            updated[index] = stamped
            return updated
    updated.append(stamped)
    return updated


def remove_bar(bars: List[AnnouncementBar], bar_id: str) -> List[AnnouncementBar]:
    return [bar for bar in bars if bar.id != bar_id]


def can_move(bars: List[AnnouncementBar], index: int, direction: MoveDirection) -> bool:
    target = index - 1 if direction == MoveDirection.UP else index + 1
    return 0 <= index < len(bars) and 0 <= target < len(bars)


def move_bar(bars: List[AnnouncementBar], index: int, direction: MoveDirection) -> List[AnnouncementBar]:
    """Swap a bar with its neighbour. Moves past either end are no-ops."""
    updated = list(bars)
    if not can_move(bars, index, direction):
        return updated
    target = index - 1 if direction == MoveDirection.UP else index + 1
    updated[index], updated[target] = updated[target], updated[index]
    return updated


class EditorSession:
    """In-memory edit session for one shop.

    ``store`` is anything with ``load()`` and ``save(value, compare_digest)``,
    normally a ``ShopifyMetafieldStore``.
    """

    def __init__(
        self,
        shop: str,
        bars: Optional[List[AnnouncementBar]] = None,
        digest: Optional[str] = None,
        id_factory: IdFactory = new_bar_id,
        clock: Clock = utc_now,
    ):
        self.shop = shop
        self.bars: List[AnnouncementBar] = list(bars or [])
        self.baseline: List[AnnouncementBar] = list(self.bars)
        self.digest = digest
        self.dirty = False
        self.id_factory = id_factory
        self.clock = clock

    @classmethod
    def load(cls, shop: str, store, id_factory: IdFactory = new_bar_id, clock: Clock = utc_now) -> "EditorSession":
        stored = store.load()
        bars = decode_bars(stored.value, id_factory)
        LOG.info("Opened editor for %s with %d bar(s)", shop, len(bars))
        return cls(shop, bars, stored.digest, id_factory=id_factory, clock=clock)

    def create_draft(self) -> AnnouncementBar:
        return create_draft(self.id_factory, self.clock)

    def find(self, bar_id: str) -> Optional[AnnouncementBar]:
        return next((bar for bar in self.bars if bar.id == bar_id), None)

    def upsert(self, draft: AnnouncementBar) -> AnnouncementBar:
        self.bars = upsert_bar(self.bars, draft, self.clock())
        self.dirty = True
        return self.find(draft.id)

    def remove(self, bar_id: str) -> None:
        self.bars = remove_bar(self.bars, bar_id)
        self.dirty = True

    def move(self, index: int, direction: MoveDirection) -> bool:
        if not can_move(self.bars, index, direction):
            return False
        self.bars = move_bar(self.bars, index, direction)
        self.dirty = True
        return True

    def is_dirty(self) -> bool:
        return self.dirty

    def save(self, store) -> None:
        """Write the collection; on success reset the baseline and clear dirty."""
        stored = store.save(serialize_bars(self.bars), compare_digest=self.digest)
        self.baseline = list(self.bars)
        self.digest = stored.digest
        self.dirty = False
        LOG.info("Saved %d bar(s) for %s", len(self.bars), self.shop)


class EditorRegistry:
    """Open editor sessions keyed by shop."""

    def __init__(self):
        self._sessions: Dict[str, EditorSession] = {}

    def open(self, shop: str, store, **kwargs) -> EditorSession:
        session = EditorSession.load(shop, store, **kwargs)
        self._sessions[shop] = session
        return session

    def get(self, shop: str) -> Optional[EditorSession]:
        return self._sessions.get(shop)

    def discard(self, shop: str) -> Optional[EditorSession]:
        return self._sessions.pop(shop, None)


# Singleton instance
editor_registry = EditorRegistry()
