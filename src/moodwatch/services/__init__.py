"""Services for moodwatch."""

from .message_store import (
    MessageStore,
    MessageStoreError,
    MessageStoreFactory,
    InMemoryMessageStore,
    JsonFileMessageStore,
    HttpMessageStore,
)
from .pipeline import SentimentEngine

__all__ = [
    "MessageStore",
    "MessageStoreError",
    "MessageStoreFactory",
    "InMemoryMessageStore",
    "JsonFileMessageStore",
    "HttpMessageStore",
    "SentimentEngine",
]
