"""
Module to contain base class for Publishers
"""
from abc import ABC, abstractmethod
from typing import Sequence

from feedrelay.core.entities import Item


def format_status(feed_name: str, item: Item, suffix: str = "") -> str:
    """
    Render one item as a status:

        [Feed] Title
        Description #Suffix
        https://link
        (Mon, 01 Jan 2024 12:00:00 GMT)
    """
    description = f"{item.description} {suffix}" if suffix else item.description
    return (
        f"[{feed_name}] {item.title}\n"
        f"{description}\n"
        f"{item.link}\n"
        f"({item.raw_pub_date})"
    ).strip()


class Publisher(ABC):
    """
    Base interface for all publishing channels.
    """

    name: str

    @abstractmethod
    async def publish(self, feed_name: str, items: Sequence[Item]) -> None:
        """
        Send items in the given order. An empty sequence sends nothing.
        Must raise PublishError on failure (handled upstream); items sent
        before the failure stay sent.
        """
        raise NotImplementedError
