"""moodwatch - team sentiment analytics and burnout detection."""

__version__ = "1.0.0"
__author__ = "moodwatch Team"

from .core.models import *
from .core.config import settings, Settings
from .services.message_store import MessageStoreFactory
from .services.pipeline import SentimentEngine

__all__ = [
    "settings",
    "Settings",
    "MessageStoreFactory",
    "SentimentEngine",
]
