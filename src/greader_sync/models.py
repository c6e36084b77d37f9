"""Data models for the Google Reader synchronization core."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from .tree import TreeNode

T = TypeVar("T")


class FeedStatus(str, Enum):
    """Outcome of one fetch or edit operation, as reported to the caller."""

    NORMAL = "normal"
    AUTH_ERROR = "auth_error"
    NETWORK_ERROR = "network_error"
    OTHER_ERROR = "other_error"


@dataclass
class Result(Generic[T]):
    """Value returned across the orchestrator boundary instead of raising."""

    value: T | None = None
    status: FeedStatus = FeedStatus.NORMAL

    @property
    def ok(self) -> bool:
        return self.status is FeedStatus.NORMAL


@dataclass
class MessageStateSets:
    """Locally known long-form message ids for one scope (feed or account)."""

    read: set[str] = field(default_factory=set)
    unread: set[str] = field(default_factory=set)
    starred: set[str] = field(default_factory=set)

    @classmethod
    def from_lists(
        cls,
        read: list[str] | None = None,
        unread: list[str] | None = None,
        starred: list[str] | None = None,
    ) -> MessageStateSets:
        return cls(set(read or ()), set(unread or ()), set(starred or ()))

    @classmethod
    def merge(cls, states: list[MessageStateSets]) -> MessageStateSets:
        """Union several per-feed snapshots into one account-wide snapshot."""
        merged = cls()
        for state in states:
            merged.read |= state.read
            merged.unread |= state.unread
            merged.starred |= state.starred
        return merged


@dataclass
class RemoteIdSnapshot:
    """Ids reported by the server for one stream.

    ``all_ids`` is ``None`` when only unread messages are synchronized.
    """

    unread_ids: set[str]
    all_ids: set[str] | None = None

    @property
    def read_ids(self) -> set[str]:
        if self.all_ids is None:
            return set()
        return self.all_ids - self.unread_ids


@dataclass
class Enclosure:
    """Media attached to a message."""

    url: str
    mime_type: str = ""

    def to_dict(self) -> dict:
        return {"url": self.url, "mime_type": self.mime_type}


@dataclass
class Message:
    """A decoded remote item, ready to be handed to storage."""

    custom_id: str
    feed_id: str
    title: str = ""
    author: str = ""
    url: str = ""
    contents: str = ""
    created: datetime | None = None
    created_from_feed: bool = True
    is_read: bool = False
    is_important: bool = False
    enclosures: list[Enclosure] = field(default_factory=list)
    assigned_labels: list[TreeNode] = field(default_factory=list)
    raw_contents: str = ""

    def to_dict(self) -> dict:
        return {
            "custom_id": self.custom_id,
            "feed_id": self.feed_id,
            "title": self.title,
            "author": self.author,
            "url": self.url,
            "created": int(self.created.timestamp()) if self.created else 0,
            "is_read": self.is_read,
            "is_important": self.is_important,
            "enclosures": [e.to_dict() for e in self.enclosures],
            "labels": [label.custom_id for label in self.assigned_labels],
        }
