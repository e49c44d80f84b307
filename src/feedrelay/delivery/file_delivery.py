"""
File publishing channel, used for dry runs
"""
import json
import logging
from pathlib import Path
from typing import Sequence

from feedrelay.core.entities import Item
from feedrelay.core.keys import camel_case
from feedrelay.delivery.base import Publisher, format_status

logger = logging.getLogger(__name__)


class FilePublisher(Publisher):
    name = "file"

    def __init__(self, output_dir: str = "output", status_suffix: str = ""):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.status_suffix = status_suffix

    def path_for(self, feed_name: str) -> Path:
        return self.output_dir / f"{camel_case(feed_name)}.jsonl"

    async def publish(self, feed_name: str, items: Sequence[Item]) -> None:
        if not items:
            logger.info(f"{feed_name} - Nothing to publish", extra={"feed": feed_name})
            return

        path = self.path_for(feed_name)
        with path.open("a", encoding="utf-8") as fh:
            for item in items:
                record = {
                    "feed": feed_name,
                    "link": item.link,
                    "pub_date": item.pub_date.isoformat(),
                    "status": format_status(feed_name, item, self.status_suffix),
                }
                fh.write(json.dumps(record) + "\n")

        logger.info(f"Wrote {len(items)} statuses to {path}", extra={"feed": feed_name})
