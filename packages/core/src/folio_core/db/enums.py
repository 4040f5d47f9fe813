from __future__ import annotations

import enum


class ArticleState(str, enum.Enum):
    draft = "draft"
    published = "published"
    deleted = "deleted"
