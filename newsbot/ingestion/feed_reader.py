"""
Feed Reader

Fetches RSS/Atom syndication feeds and parses them with BeautifulSoup4
into plain item dictionaries.
"""

import logging
import re
from typing import Dict, List, Optional, Tuple
from urllib.parse import urlparse

import requests
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)


class SourceUnavailableError(Exception):
    """Raised when a single feed source cannot be fetched or parsed."""
    pass


def clean_text(text: Optional[str]) -> str:
    """
    Strip markup and normalize whitespace.

    Args:
        text: Raw text, possibly containing HTML

    Returns:
        Cleaned text
    """
    if not text:
        return ""

    # Remove tags and HTML entities
    text = BeautifulSoup(text, 'html.parser').get_text(' ')

    return re.sub(r'\s+', ' ', text).strip()


class FeedReader:
    """Reads syndication feeds over HTTP."""

    def __init__(self, timeout: int = 10, user_agent: Optional[str] = None):
        """
        Initialize the feed reader.

        Args:
            timeout: Request timeout in seconds
            user_agent: Custom user agent string for requests
        """
        self.timeout = timeout
        self.user_agent = user_agent or 'Mozilla/5.0 (compatible; NewsBot/1.0)'
        self.headers = {'User-Agent': self.user_agent}

    def fetch_feed(self, url: str) -> str:
        """
        Fetch raw feed XML.

        Raises:
            SourceUnavailableError: If the request fails
        """
        try:
            response = requests.get(url, headers=self.headers, timeout=self.timeout)
            response.raise_for_status()
            return response.text
        except requests.exceptions.RequestException as e:
            raise SourceUnavailableError(f"Error fetching {url}: {str(e)}")

    @staticmethod
    def _text(node, *names: str) -> Optional[str]:
        for name in names:
            tag = node.find(name)
            if tag is not None and tag.get_text(strip=True):
                return tag.get_text()
        return None

    @staticmethod
    def _link(item) -> Optional[str]:
        link = item.find('link')
        if link is None:
            return None
        # Atom links carry the URL in href
        return link.get('href') or link.get_text(strip=True) or None

    def parse_feed(self, xml: str, url: str = '') -> Tuple[str, List[Dict[str, Optional[str]]]]:
        """
        Parse feed XML into its title and a list of raw items.

        Args:
            xml: Feed document
            url: Feed URL, used for the fallback source name

        Returns:
            Tuple of (feed title, items); each item has title, link, pub_date,
            content_snippet, content and summary keys

        Raises:
            SourceUnavailableError: If the document is not an RSS or Atom feed
        """
        soup = BeautifulSoup(xml, 'xml')
        channel = soup.find('channel') or soup.find('feed')
        if channel is None:
            raise SourceUnavailableError(f"Not an RSS or Atom feed: {url}")

        # Only the channel's own title, not the first item's
        title_tag = channel.find('title', recursive=False)
        feed_title = (title_tag.get_text() if title_tag is not None else '') or urlparse(url).netloc

        items = []
        for item in channel.find_all(['item', 'entry']):
            description = self._text(item, 'description')
            encoded = self._text(item, 'encoded', 'content')
            items.append({
                'title': clean_text(self._text(item, 'title')),
                'link': self._link(item),
                'pub_date': self._text(item, 'pubDate', 'published', 'updated', 'date'),
                'content_snippet': clean_text(description or encoded),
                'content': clean_text(encoded),
                'summary': clean_text(self._text(item, 'summary')),
            })

        return feed_title.strip(), items

    def read_feed(self, url: str) -> Tuple[str, List[Dict[str, Optional[str]]]]:
        """Fetch and parse one feed."""
        return self.parse_feed(self.fetch_feed(url), url)
