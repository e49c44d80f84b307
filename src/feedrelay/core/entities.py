from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass(frozen=True)
class Feed:
    """
    A named feed. The name is the feed's identity and namespaces its store keys.
    """
    name: str
    url: str


@dataclass(frozen=True)
class Item:
    """
    One feed item, taken verbatim from the fetched document.
    """
    title: str
    description: str
    link: str
    pub_date: datetime
    raw_pub_date: str = ""


@dataclass(frozen=True)
class Channel:
    """
    Result of a single fetch. Items keep the order the feed lists them in.
    """
    build_date: datetime
    items: List[Item] = field(default_factory=list)


class SyncOutcome(enum.Enum):
    """How a single feed sync ended."""
    skipped_locked = "skipped_locked"
    unchanged = "unchanged"
    published = "published"
    failed = "failed"


@dataclass
class SyncResult:
    """Per-feed summary collected by the runner."""
    feed_name: str
    outcome: SyncOutcome
    published: int = 0
    error: Optional[str] = None
