"""
Base classes for Ingestion
"""
from abc import ABC, abstractmethod

from feedrelay.core.entities import Channel


class FeedFetcher(ABC):
    """
    Base interface for feed retrieval.
    """

    @abstractmethod
    async def fetch(self, url: str) -> Channel:
        """
        Retrieve and parse the feed at `url`.
        Must raise FetchError or ParseError on failure (handled upstream).
        """
        raise NotImplementedError
