"""Heading anchors and the table of contents built from them."""

from __future__ import annotations

from dataclasses import dataclass

from bs4 import BeautifulSoup
from markupsafe import Markup

from export_service.slugs import slugify

HEADING_TAGS = ("h1", "h2", "h3")


@dataclass(frozen=True)
class TocEntry:
    anchor: str
    text: str
    level: int


def heading_anchor(text: str, index: int) -> str:
    return f"{slugify(text) or 'heading'}-{index}"


def inject_heading_anchors(soup: BeautifulSoup) -> list[TocEntry]:
    """
    Give every h1-h3 a positional anchor id, replacing any id it already had.

    The index suffix keeps anchors unique when heading texts repeat.
    """
    entries: list[TocEntry] = []
    for index, heading in enumerate(soup.find_all(HEADING_TAGS)):
        text = " ".join(heading.get_text().split())
        anchor = heading_anchor(text or f"section-{index + 1}", index)
        heading.attrs = {"id": anchor, **{k: v for k, v in heading.attrs.items() if k != "id"}}
        entries.append(TocEntry(anchor=anchor, text=text, level=int(heading.name[1])))
    return entries


def build_toc_html(entries: list[TocEntry], *, title: str = "Table of Contents") -> Markup:
    if not entries:
        return Markup("")
    items = Markup("").join(
        Markup('<li class="level-{level}"><a href="#{anchor}">{text}</a></li>').format(
            level=e.level, anchor=e.anchor, text=e.text
        )
        for e in entries
    )
    return Markup(
        '<aside class="toc-sidebar"><div class="toc-title">{title}</div><nav><ul>{items}</ul></nav></aside>'
    ).format(title=title, items=items)
