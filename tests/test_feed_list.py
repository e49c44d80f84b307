"""Tests for feedrelay.ingestion.feed_list."""
from __future__ import annotations

import asyncio
import os
import tempfile
import unittest

import httpx

from feedrelay.core.entities import Feed
from feedrelay.core.errors import FetchError, ParseError
from feedrelay.ingestion.feed_list import feeds_from_entries, load_feed_list, parse_feed_list
from feedrelay.services.config import FeedConfig


DOCUMENT = """
[
  {"name": "World News", "url": "https://feeds.example.com/world.xml"},
  {"name": "Markets", "url": "https://feeds.example.com/markets.xml"}
]
"""


class TestParseFeedList(unittest.TestCase):
    def test_json_array(self):
        self.assertEqual(
            parse_feed_list(DOCUMENT),
            [
                Feed("World News", "https://feeds.example.com/world.xml"),
                Feed("Markets", "https://feeds.example.com/markets.xml"),
            ],
        )

    def test_yaml_array(self):
        document = "- name: Markets\n  url: https://feeds.example.com/markets.xml\n"
        self.assertEqual(parse_feed_list(document), [Feed("Markets", "https://feeds.example.com/markets.xml")])

    def test_entries_missing_a_field_are_skipped(self):
        document = """
        [
          {"name": "No URL"},
          {"url": "https://feeds.example.com/anon.xml"},
          {"name": "", "url": "https://feeds.example.com/blank.xml"},
          "just a string",
          {"name": "Markets", "url": "https://feeds.example.com/markets.xml"}
        ]
        """
        self.assertEqual(
            [f.name for f in parse_feed_list(document)],
            ["Markets"],
        )

    def test_duplicate_names_keep_first(self):
        document = """
        [
          {"name": "Markets", "url": "https://a.example.com/1.xml"},
          {"name": "Markets", "url": "https://a.example.com/2.xml"}
        ]
        """
        self.assertEqual(parse_feed_list(document), [Feed("Markets", "https://a.example.com/1.xml")])

    def test_names_sharing_a_store_key_keep_first(self):
        document = """
        [
          {"name": "World News", "url": "https://a.example.com/1.xml"},
          {"name": "world-news", "url": "https://a.example.com/2.xml"}
        ]
        """
        self.assertEqual([f.url for f in parse_feed_list(document)], ["https://a.example.com/1.xml"])

    def test_name_without_word_characters_is_skipped(self):
        document = '[{"name": "***", "url": "https://a.example.com/1.xml"}]'
        self.assertEqual(parse_feed_list(document), [])

    def test_non_array_document_yields_no_feeds(self):
        self.assertEqual(parse_feed_list('{"name": "Markets"}'), [])

    def test_unparseable_document_raises(self):
        with self.assertRaises(ParseError):
            parse_feed_list("[{unclosed")

    def test_inline_config_entries(self):
        feeds = feeds_from_entries([FeedConfig(name="Markets", url="https://x.example/m.xml")])
        self.assertEqual(feeds, [Feed("Markets", "https://x.example/m.xml")])


class TestLoadFeedList(unittest.TestCase):
    def test_loads_from_url(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text=DOCUMENT)

        async def run():
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                return await load_feed_list(client, "https://config.example.com/feeds.json")

        self.assertEqual(len(asyncio.run(run())), 2)

    def test_http_error_raises_fetch_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404)

        async def run():
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                return await load_feed_list(client, "https://config.example.com/feeds.json")

        with self.assertRaises(FetchError):
            asyncio.run(run())

    def test_loads_from_local_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "feeds.json")
            with open(path, "w", encoding="utf-8") as fh:
                fh.write(DOCUMENT)

            async def run():
                async with httpx.AsyncClient() as client:
                    return await load_feed_list(client, path)

            feeds = asyncio.run(run())

        self.assertEqual([f.name for f in feeds], ["World News", "Markets"])

    def test_missing_local_file_raises_fetch_error(self):
        async def run():
            async with httpx.AsyncClient() as client:
                return await load_feed_list(client, "/nonexistent/feeds.json")

        with self.assertRaises(FetchError):
            asyncio.run(run())


if __name__ == "__main__":
    unittest.main()
