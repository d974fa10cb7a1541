"""Helpers for analysing HTML body parts."""

from __future__ import annotations

import re
from dataclasses import dataclass

from bs4 import BeautifulSoup

LINK_ATTRIBUTES: tuple[tuple[str, str], ...] = (
    ("a", "href"),
    ("area", "href"),
    ("form", "action"),
)
COLOR_ATTRIBUTES = ("color", "bgcolor", "text", "link", "vlink", "alink")
STYLE_COLOR_RE = re.compile(r"(?:^|[;\s])(?:background-)?color\s*:\s*([^;]+)", re.IGNORECASE)


@dataclass(frozen=True)
class HtmlAnalysis:
    """Visible text plus the structural values found in the markup."""

    text_content: str
    link_urls: list[str]
    colors: list[str]
    languages: list[str]


def analyse_html(html: str) -> HtmlAnalysis:
    """Return entity-decoded text content and markup metadata for an HTML fragment."""

    soup = BeautifulSoup(html, "lxml")

    link_urls = _extract_links(soup)
    colors = _extract_colors(soup)
    languages = _extract_languages(soup)
    for hidden in soup.find_all(["script", "style"]):
        hidden.decompose()
    text_content = soup.get_text(" ", strip=True)

    return HtmlAnalysis(
        text_content=text_content,
        link_urls=link_urls,
        colors=colors,
        languages=languages,
    )


def _extract_links(soup: BeautifulSoup) -> list[str]:
    urls: list[str] = []
    for tag_name, attribute in LINK_ATTRIBUTES:
        for tag in soup.find_all(tag_name):
            value = tag.get(attribute)
            if isinstance(value, str):
                normalized = value.strip()
                if normalized:
                    urls.append(normalized)
    return urls


def _extract_colors(soup: BeautifulSoup) -> list[str]:
    colors: list[str] = []
    for tag in soup.find_all(True):
        for attribute in COLOR_ATTRIBUTES:
            value = tag.get(attribute)
            if isinstance(value, str) and value.strip():
                colors.append(value.strip().lower())
        style = tag.get("style")
        if isinstance(style, str):
            for match in STYLE_COLOR_RE.finditer(style):
                colors.append(match.group(1).strip().lower().replace(" ", ""))
    return colors


def _extract_languages(soup: BeautifulSoup) -> list[str]:
    languages: list[str] = []
    for tag in soup.find_all(True):
        for attribute in ("lang", "xml:lang"):
            value = tag.get(attribute)
            if isinstance(value, str) and value.strip():
                languages.append(value.strip().lower())
    return languages


__all__ = ["HtmlAnalysis", "analyse_html"]
