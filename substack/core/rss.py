# substack/core/rss.py
"""
Syndication feed fetching and parsing.

`parse_feed` understands RSS 2.0 (`channel/item`), RSS 1.0 / RDF and Atom
(`feed/entry`) and returns the raw fields of every item; normalization into
ServiceUpdate records happens in `feeds`.
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import List, Optional

import requests
from dateutil import parser as date_parser

from substack.config import FEED_FETCH_TIMEOUT
from substack.core.errors import FeedFetchError, FeedParseError
from substack.core.gateways import FeedSourceFetcher
from substack.utils.logger import get_logger

logger = get_logger(__name__)

ATOM_NS = "{http://www.w3.org/2005/Atom}"
RSS1_NS = "{http://purl.org/rss/1.0/}"
CONTENT_NS = "{http://purl.org/rss/1.0/modules/content/}"
DC_NS = "{http://purl.org/dc/elements/1.1/}"

USER_AGENT = "substack-feed/0.1"


@dataclass
class RawFeedItem:
    title: str
    link: str
    description: str
    published: Optional[datetime]


class HttpFeedFetcher(FeedSourceFetcher):
    """Downloads feeds with `requests`; every failure becomes a FeedFetchError."""

    def __init__(self, session: Optional[requests.Session] = None, timeout: float = FEED_FETCH_TIMEOUT):
        self.session = session or requests.Session()
        self.timeout = timeout

    def fetch(self, url: str) -> bytes:
        try:
            response = self.session.get(url, timeout=self.timeout, headers={"User-Agent": USER_AGENT})
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise FeedFetchError(url, str(e)) from e
        return response.content


def parse_date(value: Optional[str]) -> Optional[datetime]:
    """RFC 822 (RSS) or ISO 8601 (Atom) -> UTC datetime. None when unparseable."""
    if not value:
        return None
    value = value.strip()
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        parsed = None
    if parsed is None:
        try:
            parsed = date_parser.isoparse(value)
        except ValueError:
            logger.debug(f"Unparseable feed date: {value!r}")
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _text(element: Optional[ET.Element]) -> str:
    if element is None:
        return ""
    return "".join(element.itertext()).strip()


def _parse_rss_item(item: ET.Element, ns: str = "") -> RawFeedItem:
    description = _text(item.find(f"{ns}description")) or _text(item.find(f"{CONTENT_NS}encoded"))
    published = item.find("pubDate")
    if published is None:
        published = item.find(f"{DC_NS}date")
    return RawFeedItem(
        title=_text(item.find(f"{ns}title")),
        link=_text(item.find(f"{ns}link")),
        description=description,
        published=parse_date(_text(published)),
    )


def _atom_link(entry: ET.Element) -> str:
    links = entry.findall(f"{ATOM_NS}link")
    for link in links:
        if link.get("rel", "alternate") == "alternate" and link.get("href"):
            return link.get("href")
    for link in links:
        if link.get("href"):
            return link.get("href")
    return ""


def _parse_atom_entry(entry: ET.Element) -> RawFeedItem:
    summary = _text(entry.find(f"{ATOM_NS}summary")) or _text(entry.find(f"{ATOM_NS}content"))
    published = _text(entry.find(f"{ATOM_NS}published")) or _text(entry.find(f"{ATOM_NS}updated"))
    return RawFeedItem(
        title=_text(entry.find(f"{ATOM_NS}title")),
        link=_atom_link(entry),
        description=summary,
        published=parse_date(published),
    )


def parse_feed(content: bytes) -> List[RawFeedItem]:
    """
    Parses an RSS or Atom document.

    Raises:
        FeedParseError: if the body is not XML or not a known feed format.
    """
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        raise FeedParseError(f"malformed feed XML: {e}") from e

    if root.tag == f"{ATOM_NS}feed":
        return [_parse_atom_entry(e) for e in root.findall(f"{ATOM_NS}entry")]
    if root.tag == "rss":
        return [_parse_rss_item(i) for i in root.findall("./channel/item")]
    if root.tag.endswith("RDF"):
        return [_parse_rss_item(i, RSS1_NS) for i in root.findall(f"{RSS1_NS}item")]
    raise FeedParseError(f"unknown feed root element: {root.tag}")
