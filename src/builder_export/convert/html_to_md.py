from __future__ import annotations

from bs4 import BeautifulSoup
from markdownify import markdownify as md

_NON_CONTENT_TAGS = ["script", "style", "noscript", "template"]


def _clean_soup_inplace(soup: BeautifulSoup) -> None:
    for tag_name in _NON_CONTENT_TAGS:
        for t in soup.find_all(tag_name):
            t.decompose()


def _pick_main_content(soup: BeautifulSoup):
    for selector in [
        "main",
        "article",
        "div[role='main']",
        ".entry-content",
        ".site-content",
        "#content",
    ]:
        node = soup.select_one(selector)
        if node and node.get_text(strip=True):
            return node
    return soup.body or soup


def extract_title(html: str) -> str:
    soup = BeautifulSoup(html, "html.parser")
    h1 = soup.find("h1")
    if h1 and h1.get_text(strip=True):
        return h1.get_text(" ", strip=True)
    if soup.title and soup.title.get_text(strip=True):
        return soup.title.get_text(" ", strip=True)
    return "Untitled"


def html_to_markdown(html: str, *, builder_id: str, title: str | None = None) -> str:
    """Render a readable preview of the exported page for the archive."""

    soup = BeautifulSoup(html, "html.parser")
    _clean_soup_inplace(soup)
    main = _pick_main_content(soup)
    markdown = md(str(main), heading_style="ATX").strip()
    heading = title or extract_title(html)
    header = f"# Preview: {heading}\n\nTarget builder: {builder_id}\n\n---\n\n"
    return header + (markdown or "_No text content._") + "\n"
