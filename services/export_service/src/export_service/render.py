from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping, Protocol

import structlog
from bs4 import BeautifulSoup
from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from folio_core.errors import InvalidArgument
from folio_core.settings import settings

from export_service.assets import AssetSource, LocalAssetStore, embed_local_images
from export_service.headings import build_toc_html, inject_heading_anchors
from export_service.presets import ReaderPreferences, resolve_preferences
from export_service.slugs import slugify
from export_service.theme import derive_theme

logger = structlog.get_logger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"
DEFAULT_TITLE = "Untitled"
DEFAULT_AUTHOR = "Unknown"
DEFAULT_FILENAME_STEM = "article"


class ExportableArticle(Protocol):
    title: Any
    content: Any
    author_name: str | None
    created_at: datetime | None


@dataclass(frozen=True)
class ExportDocument:
    filename: str
    document: str


@lru_cache(maxsize=1)
def template_env() -> Environment:
    # Only the HTML page is escaped; the stylesheet and script are trusted templates.
    return Environment(
        loader=FileSystemLoader(TEMPLATES_DIR),
        autoescape=select_autoescape(enabled_extensions=("html.j2",), default=False),
    )


def render_article(
    article: ExportableArticle,
    author_name: str | None = None,
    preferences: ReaderPreferences | Mapping[str, Any] | None = None,
    *,
    assets: AssetSource | None = None,
    url_prefix: str | None = None,
) -> ExportDocument:
    """
    Render `article` as one self-contained HTML document.

    Title, author and date are escaped. The article body is trusted markup and
    is inserted as-is, apart from heading anchors and embedded local images.
    The stored article is never modified, and identical inputs produce
    byte-identical output.
    """
    title, content = article.title, article.content
    if title is not None and not isinstance(title, str):
        raise InvalidArgument("Article title must be a string")
    if not isinstance(content, str):
        raise InvalidArgument("Article content must be a string")

    title = title.strip() if title and title.strip() else DEFAULT_TITLE
    author = author_name or getattr(article, "author_name", None) or DEFAULT_AUTHOR
    created_at = getattr(article, "created_at", None)
    created_on = created_at.date().isoformat() if created_at else ""

    theme = derive_theme(resolve_preferences(preferences))

    soup = BeautifulSoup(content, "lxml")
    toc_entries = inject_heading_anchors(soup)
    embedded = embed_local_images(
        soup,
        assets if assets is not None else LocalAssetStore(settings.uploads_dir),
        url_prefix or settings.uploads_url_prefix,
    )
    body = soup.body.decode_contents() if soup.body is not None else ""

    env = template_env()
    styles = env.get_template("export.css.j2").render(theme=theme)
    script = env.get_template("export.js").render()
    document = env.get_template("article.html.j2").render(
        title=title,
        author_name=author,
        created_on=created_on,
        toc=build_toc_html(toc_entries),
        body=Markup(body),
        styles=Markup(" ".join(styles.splitlines())),
        script=Markup(script),
    )

    filename = f"{slugify(title) or DEFAULT_FILENAME_STEM}.html"
    logger.info("export.rendered", filename=filename, headings=len(toc_entries), images_embedded=embedded)
    return ExportDocument(filename=filename, document=document)
