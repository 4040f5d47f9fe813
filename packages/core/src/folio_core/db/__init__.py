from folio_core.db.base import Base
from folio_core.db.models import Article, ArticleRevision, Setting, Topic

__all__ = ["Base", "Article", "ArticleRevision", "Setting", "Topic"]
