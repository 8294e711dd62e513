"""Persistence for suggestions and the posts created from them."""

from neuroblog.storage.base import SuggestionStore
from neuroblog.storage.memory import MemorySuggestionStore
from neuroblog.storage.sqlite import SQLiteSuggestionStore

__all__ = ["SuggestionStore", "MemorySuggestionStore", "SQLiteSuggestionStore"]
