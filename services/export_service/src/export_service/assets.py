from __future__ import annotations

import base64
from pathlib import Path
from typing import Protocol

import structlog
from bs4 import BeautifulSoup

logger = structlog.get_logger(__name__)

MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
}
DEFAULT_MIME_TYPE = "image/jpeg"


class AssetSource(Protocol):
    def read(self, name: str) -> bytes | None: ...


class LocalAssetStore:
    """Read-only view of the uploads directory."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    def path_for(self, name: str) -> Path | None:
        root = self.root.resolve()
        candidate = (root / name).resolve()
        if candidate == root or not candidate.is_relative_to(root):
            return None
        return candidate

    def read(self, name: str) -> bytes | None:
        path = self.path_for(name)
        if path is None:
            logger.warning("export.asset_outside_root", asset=name, root=str(self.root))
            return None
        try:
            return path.read_bytes()
        except FileNotFoundError:
            logger.warning("export.asset_missing", asset=name, path=str(path))
        except OSError as exc:
            logger.warning("export.asset_unreadable", asset=name, path=str(path), error=str(exc))
        return None


def mime_type_for(name: str) -> str:
    return MIME_TYPES.get(Path(name).suffix.lower(), DEFAULT_MIME_TYPE)


def data_uri(name: str, payload: bytes) -> str:
    return f"data:{mime_type_for(name)};base64,{base64.b64encode(payload).decode('ascii')}"


def embed_local_images(soup: BeautifulSoup, assets: AssetSource, url_prefix: str = "/uploads/") -> int:
    """
    Inline every `<img>` pointing under `url_prefix` as a base64 `data:` URI.

    Images that cannot be read keep their original `src`. Returns how many
    images were embedded.
    """
    embedded = 0
    for img in soup.find_all("img", src=True):
        src = img["src"]
        if not src.startswith(url_prefix):
            continue
        name = src[len(url_prefix) :]
        payload = assets.read(name)
        if payload is None:
            continue
        img["src"] = data_uri(name, payload)
        embedded += 1
    return embedded
