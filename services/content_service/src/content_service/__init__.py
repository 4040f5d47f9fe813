"""
Content service

Topic and article stores with hierarchy maintenance, revision history and the
draft/publish/delete lifecycle, plus the settings store that gates guest reads.
"""

__version__ = "0.1.0"

from content_service.articles import ArticleStore
from content_service.schemas import (
    ArticleFilter,
    ArticlePatch,
    DeletedArticleNode,
    MergeReport,
    TopicPatch,
    TopicSummary,
    TopicWithChildren,
)
from content_service.settings_store import SettingsKey, SettingsStore
from content_service.topics import TopicStore

__all__ = [
    "ArticleFilter",
    "ArticlePatch",
    "ArticleStore",
    "DeletedArticleNode",
    "MergeReport",
    "SettingsKey",
    "SettingsStore",
    "TopicPatch",
    "TopicStore",
    "TopicSummary",
    "TopicWithChildren",
]
