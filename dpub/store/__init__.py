"""Document storage layer.

Collection names are part of the storage contract shared with the UI and
reporting jobs.
"""

from dpub.store.document_store import DocumentStore

ARTICLES = "articles"
REVIEWS = "reviews"
FLAGS = "flags"
ADMIN_LOGS = "adminActivityLogs"
USERS = "users"
ID_TOKENS = "idTokens"

__all__ = [
    "DocumentStore",
    "ARTICLES",
    "REVIEWS",
    "FLAGS",
    "ADMIN_LOGS",
    "USERS",
    "ID_TOKENS",
]
