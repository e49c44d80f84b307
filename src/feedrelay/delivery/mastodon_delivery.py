import logging
import os
from typing import Optional, Sequence, Tuple

import httpx

from feedrelay.core.entities import Item
from feedrelay.core.errors import PublishError
from feedrelay.delivery.base import Publisher, format_status

logger = logging.getLogger(__name__)


class MastodonPublisher(Publisher):
    name = "mastodon"

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        api_uri: Optional[str] = None,
        access_token: Optional[str] = None,
        status_suffix: str = "",
        visibility: str = "public",
    ):
        self.client = client
        self.api_uri = api_uri
        self.access_token = access_token
        self.status_suffix = status_suffix
        self.visibility = visibility

    def _credentials(self) -> Tuple[str, str]:
        # Resolved per call so a rotated token in the environment is picked up
        api_uri = self.api_uri or os.getenv("MSTD_API_URI")
        token = self.access_token or os.getenv("MSTD_ACCESS_TOKEN")
        if not api_uri or not token:
            raise PublishError("MSTD_API_URI and MSTD_ACCESS_TOKEN must be set to publish")
        return api_uri.rstrip("/"), token

    async def publish(self, feed_name: str, items: Sequence[Item]) -> None:
        if not items:
            logger.info(f"{feed_name} - Nothing to publish", extra={"feed": feed_name})
            return

        api_uri, token = self._credentials()
        endpoint = f"{api_uri}/api/v1/statuses"
        headers = {"Authorization": f"Bearer {token}"}

        for item in items:
            status = format_status(feed_name, item, self.status_suffix)
            try:
                resp = await self.client.post(
                    endpoint,
                    headers=headers,
                    data={"status": status, "visibility": self.visibility},
                )
            except httpx.HTTPError as e:
                raise PublishError(f"Posting {item.title!r} failed: {e}") from e

            if resp.status_code != 200:
                raise PublishError(
                    f"Posting {item.title!r} returned {resp.status_code}: {resp.text[:200]}"
                )

            logger.info(f"Published: {item.title}", extra={"feed": feed_name})
