"""
Typed keys for the key/value store.

Every persisted record belongs to one feed and has one kind; the string form
is `<prefix>.<camelCaseFeedName>.<kind>`.
"""
import enum
import re
from dataclasses import dataclass
from typing import List

_WORD_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|\d+")


class KeyKind(enum.Enum):
    last_build_date = "last_build_date"
    lock = "lock"


def split_words(text: str) -> List[str]:
    return _WORD_RE.findall(text)


def camel_case(text: str) -> str:
    """
    "World News" -> "worldNews", "US Business" -> "usBusiness".
    """
    words = split_words(text)
    if not words:
        return ""
    head, tail = words[0].lower(), words[1:]
    return head + "".join(w[:1].upper() + w[1:].lower() for w in tail)


@dataclass(frozen=True)
class StoreKey:
    prefix: str
    feed_name: str
    kind: KeyKind

    def __post_init__(self) -> None:
        if not camel_case(self.feed_name):
            raise ValueError(f"Feed name has no usable characters: {self.feed_name!r}")

    def __str__(self) -> str:
        return f"{self.prefix}.{camel_case(self.feed_name)}.{self.kind.value}"

    @classmethod
    def watermark(cls, prefix: str, feed_name: str) -> "StoreKey":
        return cls(prefix, feed_name, KeyKind.last_build_date)

    @classmethod
    def lock(cls, prefix: str, feed_name: str) -> "StoreKey":
        return cls(prefix, feed_name, KeyKind.lock)
