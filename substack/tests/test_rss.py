# substack/tests/test_rss.py
import unittest
from datetime import datetime, timezone
from unittest.mock import MagicMock

import requests

from substack.core.errors import FeedFetchError, FeedParseError
from substack.core.rss import HttpFeedFetcher, parse_date, parse_feed

ATOM = b"""<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Google AI</title>
  <entry>
    <title>Gemini API update</title>
    <link rel="replies" href="https://ai.example.com/1#comments"/>
    <link rel="alternate" href="https://ai.example.com/1"/>
    <content type="html">&lt;p&gt;Full text&lt;/p&gt;</content>
    <updated>2024-04-30T08:00:00+09:00</updated>
  </entry>
  <entry>
    <title>Second</title>
    <link href="https://ai.example.com/2"/>
    <summary>Short</summary>
    <published>2024-04-29T00:00:00Z</published>
  </entry>
</feed>
"""

RSS = b"""<?xml version="1.0"?>
<rss version="2.0" xmlns:dc="http://purl.org/dc/elements/1.1/"
     xmlns:content="http://purl.org/rss/1.0/modules/content/">
  <channel>
    <item>
      <title>First</title>
      <link>https://blog.example.com/1</link>
      <content:encoded><![CDATA[<b>Body</b>]]></content:encoded>
      <dc:date>2024-05-01T09:30:00Z</dc:date>
    </item>
  </channel>
</rss>
"""

RDF = b"""<?xml version="1.0"?>
<rdf:RDF xmlns:rdf="http://www.w3.org/1999/02/22-rdf-syntax-ns#" xmlns="http://purl.org/rss/1.0/">
  <channel><title>RDF feed</title></channel>
  <item>
    <title>RDF item</title>
    <link>https://rdf.example.com/1</link>
    <description>rdf text</description>
  </item>
</rdf:RDF>
"""


class TestParseFeed(unittest.TestCase):
    def test_atom(self):
        items = parse_feed(ATOM)
        self.assertEqual(len(items), 2)
        first, second = items
        self.assertEqual(first.title, "Gemini API update")
        self.assertEqual(first.link, "https://ai.example.com/1")
        self.assertEqual(first.description, "<p>Full text</p>")
        self.assertEqual(first.published, datetime(2024, 4, 29, 23, 0, tzinfo=timezone.utc))
        self.assertEqual(second.link, "https://ai.example.com/2")
        self.assertEqual(second.description, "Short")

    def test_rss_with_namespaced_fallbacks(self):
        items = parse_feed(RSS)
        self.assertEqual(len(items), 1)
        self.assertEqual(items[0].description, "<b>Body</b>")
        self.assertEqual(items[0].published, datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc))

    def test_rdf(self):
        items = parse_feed(RDF)
        self.assertEqual([i.link for i in items], ["https://rdf.example.com/1"])
        self.assertIsNone(items[0].published)

    def test_malformed_xml(self):
        with self.assertRaises(FeedParseError):
            parse_feed(b"<rss><channel><item></rss>")

    def test_unknown_root(self):
        with self.assertRaises(FeedParseError):
            parse_feed(b"<html><body>not a feed</body></html>")


class TestParseDate(unittest.TestCase):
    def test_rfc822(self):
        self.assertEqual(parse_date("Wed, 01 May 2024 10:00:00 +0200"),
                         datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc))

    def test_iso_without_zone_is_utc(self):
        self.assertEqual(parse_date("2024-05-01T10:00:00"), datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc))

    def test_garbage(self):
        self.assertIsNone(parse_date("yesterday-ish"))
        self.assertIsNone(parse_date(""))
        self.assertIsNone(parse_date(None))


class TestHttpFeedFetcher(unittest.TestCase):
    def setUp(self):
        self.session = MagicMock(spec=requests.Session)
        self.fetcher = HttpFeedFetcher(session=self.session, timeout=5)

    def test_fetch_returns_content(self):
        response = MagicMock()
        response.content = RSS
        self.session.get.return_value = response

        self.assertEqual(self.fetcher.fetch("https://blog.example.com/rss"), RSS)
        args, kwargs = self.session.get.call_args
        self.assertEqual(args[0], "https://blog.example.com/rss")
        self.assertEqual(kwargs["timeout"], 5)
        self.assertIn("User-Agent", kwargs["headers"])
        response.raise_for_status.assert_called_once()

    def test_http_error_becomes_fetch_error(self):
        response = MagicMock()
        response.raise_for_status.side_effect = requests.exceptions.HTTPError("404 Not Found")
        self.session.get.return_value = response

        with self.assertRaises(FeedFetchError) as ctx:
            self.fetcher.fetch("https://blog.example.com/missing")
        self.assertEqual(ctx.exception.url, "https://blog.example.com/missing")
        self.assertIn("404", ctx.exception.reason)

    def test_connection_error_becomes_fetch_error(self):
        self.session.get.side_effect = requests.exceptions.ConnectionError("refused")
        with self.assertRaises(FeedFetchError):
            self.fetcher.fetch("https://down.example.com/rss")


if __name__ == "__main__":
    unittest.main()
