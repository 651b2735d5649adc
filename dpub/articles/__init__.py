from dpub.articles.service import ArticleService

__all__ = ["ArticleService"]
