"""Link and field extraction for the edu.tatar.ru page hierarchy.

All functions are pure over a fetched ``Document``:

- district index page -> district links
- district page -> category (education type) link
- category page -> institution listing links
- institution page -> raw detail texts
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Set

from .base import TARGET_DISTRICTS, UNKNOWN_INSTITUTION
from .fetcher import Document, node_text


SHORT_NAME_LABEL = "Короткое название:"
ENROLLMENT_LABEL = "У нас учатся"

_NUMBER_LABEL = re.compile(r"\d{1,3}")


@dataclass
class InstitutionDetail:
    short_name_text: str
    enrollment_text: str


def extract_district_links(doc: Document, districts: Optional[Set[str]] = None) -> Dict[str, str]:
    wanted = districts if districts is not None else TARGET_DISTRICTS
    links: Dict[str, str] = {}
    for a in doc.css("a"):
        text = node_text(a)
        if text in wanted:
            links[text] = doc.abs_url(a)
    return links


def extract_category_link(doc: Document, label: str) -> Optional[str]:
    for a in doc.css("a"):
        for child in a.css("*"):
            if node_text(child) == label:
                url = doc.abs_url(a)
                return url or None
    return None


def extract_listing_links(doc: Document, keyword: str) -> List[str]:
    kw = keyword.lower()
    seen: Set[str] = set()
    out: List[str] = []
    for a in doc.css("a"):
        text = node_text(a)
        if kw not in text.lower() and not _NUMBER_LABEL.search(text):
            continue
        url = doc.abs_url(a)
        if not url or url in seen:
            continue
        seen.add(url)
        out.append(url)
    return out


def _first_div_containing(doc: Document, label: str) -> Optional[str]:
    for div in doc.css("div"):
        text = node_text(div)
        if label in text:
            return text
    return None


def extract_detail(doc: Document) -> InstitutionDetail:
    short_name = _first_div_containing(doc, SHORT_NAME_LABEL)
    enrollment = _first_div_containing(doc, ENROLLMENT_LABEL)
    return InstitutionDetail(
        short_name_text=short_name if short_name is not None else UNKNOWN_INSTITUTION,
        enrollment_text=enrollment or "",
    )
