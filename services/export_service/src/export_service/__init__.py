"""
Export service

Renders a stored article into a single self-contained HTML document: themed to
the reader's preferences, with heading anchors and a table of contents, and
with local uploads embedded so the file opens offline.
"""

__version__ = "0.1.0"

from export_service.presets import ReaderPreferences, resolve_preferences
from export_service.render import ExportDocument, render_article

__all__ = ["ExportDocument", "ReaderPreferences", "render_article", "resolve_preferences"]
