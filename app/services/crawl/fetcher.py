from __future__ import annotations

import logging
import urllib.parse
from typing import Dict, Optional

import httpx
from selectolax.parser import HTMLParser, Node


logger = logging.getLogger(__name__)


def node_text(node: Optional[Node]) -> str:
    """Visible text of a node with whitespace collapsed."""
    if node is None:
        return ""
    return " ".join((node.text(separator=" ") or "").split())


class Document:
    """A parsed page together with the URL it was fetched from."""

    def __init__(self, html: str, url: str) -> None:
        self.url = url
        self.tree = HTMLParser(html)

    def css(self, selector: str):
        return self.tree.css(selector) or []

    def abs_url(self, node: Node, attr: str = "href") -> str:
        href = (node.attributes.get(attr) or "").strip()
        if not href:
            return ""
        return urllib.parse.urljoin(self.url, href)


class DocumentFetcher:
    """Single-shot page retrieval; any failure yields None."""

    def __init__(
        self,
        *,
        timeout: float = 15.0,
        headers: Optional[Dict[str, str]] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.timeout = float(timeout)
        self.headers = headers or {"User-Agent": "EduCatalog-Crawler/0.1"}
        self._client = client

    def fetch(self, url: str) -> Optional[Document]:
        try:
            html = self._get(url)
            return Document(html, url)
        except Exception as exc:
            logger.warning("Failed to load page %s: %s", url, exc)
            return None

    def _get(self, url: str) -> str:
        if self._client is not None:
            r = self._client.get(url)
            r.raise_for_status()
            return r.text
        with httpx.Client(timeout=self.timeout, headers=self.headers, follow_redirects=True) as client:
            r = client.get(url)
            r.raise_for_status()
            return r.text
