from __future__ import annotations

import re

from bs4 import BeautifulSoup

from app.models.pipeline import PageContent, SearchHit

STRIPPED_TAGS = ("script", "style", "head", "nav", "footer", "iframe", "img")

_WHITESPACE_RE = re.compile(r"\s+")


def _normalize_text(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text.replace("\xa0", " ")).strip()


def extract_main_content(raw_html: str) -> str:
    """Return the visible body text of an HTML document as a single line.

    Boilerplate nodes (scripts, styles, head, navigation, footers, iframes and
    images) are dropped before the text is collected. Empty or unparseable
    input produces an empty string.
    """
    if not raw_html or not raw_html.strip():
        return ""

    soup = BeautifulSoup(raw_html, "html.parser")
    for node in soup.find_all(STRIPPED_TAGS):
        node.decompose()

    root = soup.body or soup
    return _normalize_text(root.get_text(" "))


def extract_page(hit: SearchHit, raw_html: str) -> PageContent:
    return PageContent(
        url=hit.url,
        title=hit.title,
        cleaned_text=extract_main_content(raw_html),
    )
