"""Message store port and its backends."""

import json
import logging
import os
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

import pandas as pd
import requests
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..core.config import Settings
from ..core.models import Channel, Message, channel_from_record, message_from_record

logger = logging.getLogger(__name__)


class MessageStoreError(Exception):
    """Raised when a message store cannot supply a snapshot."""


def _parse_records(records: Iterable[Dict[str, Any]]) -> List[Message]:
    """Convert raw records, skipping malformed ones."""
    messages = []
    skipped = 0
    for record in records:
        if not isinstance(record, dict):
            skipped += 1
            logger.warning(f"Skipping malformed message record: expected an object, got {type(record).__name__}")
            continue
        try:
            messages.append(message_from_record(record))
        except (KeyError, TypeError, ValueError) as e:
            skipped += 1
            logger.warning(f"Skipping malformed message record: {e}")
    if skipped:
        logger.warning(f"Skipped {skipped} malformed message record(s)")
    return messages


def _parse_channels(records: Iterable[Dict[str, Any]]) -> List[Channel]:
    """Convert raw channel records, skipping malformed ones."""
    channels = []
    for record in records:
        if not isinstance(record, dict):
            logger.warning(f"Skipping malformed channel record: expected an object, got {type(record).__name__}")
            continue
        try:
            channels.append(channel_from_record(record))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed channel record: {e}")
    return channels


def _select(messages: Iterable[Message], channel_id: Optional[str], since: Optional[datetime]) -> List[Message]:
    return [
        m for m in messages
        if (channel_id is None or m.channel_id == channel_id) and (since is None or m.timestamp >= since)
    ]


class MessageStore(ABC):
    """Read-only source of scored messages and channel labels."""

    @abstractmethod
    def fetch_messages(self, channel_id: Optional[str] = None, since: Optional[datetime] = None) -> List[Message]:
        """Messages, optionally for one channel and not older than since."""

    @abstractmethod
    def fetch_channels(self) -> List[Channel]:
        """Known channels for label resolution."""


class InMemoryMessageStore(MessageStore):
    """Store over an in-memory snapshot."""

    def __init__(self, messages: Sequence[Message] = (), channels: Sequence[Channel] = ()):
        self._messages = tuple(messages)
        self._channels = tuple(channels)

    def fetch_messages(self, channel_id=None, since=None):
        return _select(self._messages, channel_id, since)

    def fetch_channels(self):
        return list(self._channels)


class JsonFileMessageStore(MessageStore):
    """
    Store over a snapshot file.

    JSON files hold {"channels": [...], "messages": [...]} (a bare list is
    read as messages). CSV files hold one message per row and no channels.
    The file is read once, on first access.
    """

    def __init__(self, path: str):
        self.path = path
        self._messages: Optional[List[Message]] = None
        self._channels: List[Channel] = []

    def _load(self) -> None:
        if self._messages is not None:
            return
        if not os.path.exists(self.path):
            raise MessageStoreError(f"Message snapshot {self.path} not found")

        try:
            if self.path.lower().endswith(".csv"):
                frame = pd.read_csv(self.path)
                records = frame.where(pd.notnull(frame), None).to_dict(orient="records")
                channels = []
            else:
                with open(self.path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                if isinstance(data, list):
                    records, channels = data, []
                elif isinstance(data, dict):
                    records, channels = data.get("messages") or [], data.get("channels") or []
                else:
                    raise MessageStoreError(f"Unexpected snapshot layout in {self.path}")
        except (OSError, ValueError, pd.errors.ParserError) as e:
            raise MessageStoreError(f"Failed to read {self.path}: {e}") from e

        self._messages = _parse_records(records)
        self._channels = _parse_channels(channels)
        logger.info(f"Loaded {len(self._messages)} messages and {len(self._channels)} channels from {self.path}")

    def fetch_messages(self, channel_id=None, since=None):
        self._load()
        return _select(self._messages, channel_id, since)

    def fetch_channels(self):
        self._load()
        return list(self._channels)


class HttpMessageStore(MessageStore):
    """Store backed by a JSON HTTP API exposing /messages and /channels."""

    def __init__(self, base_url: str, timeout: float = 30.0, max_retries: int = 3,
                 retry_delay: float = 1.0, retry_backoff: float = 2.0, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self._retrying = Retrying(
            stop=stop_after_attempt(max_retries),
            wait=wait_exponential(multiplier=retry_delay, max=retry_backoff * 10),
            retry=retry_if_exception_type(requests.RequestException),
            reraise=True,
        )

    def _get_once(self, path: str, params: Dict[str, Any]) -> Any:
        response = self.session.get(f"{self.base_url}{path}", params=params, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        try:
            return self._retrying(self._get_once, path, params or {})
        except requests.RequestException as e:
            logger.error(f"Message store request {path} failed: {e}")
            raise MessageStoreError(f"Request to {self.base_url}{path} failed: {e}") from e

    def fetch_messages(self, channel_id=None, since=None):
        params: Dict[str, Any] = {}
        if channel_id:
            params["channel_id"] = channel_id
        if since is not None:
            params["since"] = since.isoformat()
        data = self._get("/messages", params)
        records = data.get("messages", []) if isinstance(data, dict) else data
        # the server may ignore filters it does not support
        return _select(_parse_records(records), channel_id, since)

    def fetch_channels(self):
        data = self._get("/channels")
        records = data.get("channels", []) if isinstance(data, dict) else data
        return _parse_channels(records)


class MessageStoreFactory:
    """Factory for creating message stores."""

    @staticmethod
    def create(config: Settings) -> MessageStore:
        """Create the store named by configuration."""
        backend = (config.message_store_backend or "memory").lower()
        if backend == "file":
            return JsonFileMessageStore(config.message_store_path)
        if backend == "http":
            if not config.message_store_url:
                raise MessageStoreError("http backend requires message_store_url")
            return HttpMessageStore(
                config.message_store_url,
                timeout=config.request_timeout,
                max_retries=config.max_retries,
                retry_delay=config.retry_delay,
                retry_backoff=config.retry_backoff,
            )
        if backend == "memory":
            logger.info("Using empty in-memory message store")
            return InMemoryMessageStore()
        raise MessageStoreError(f"Unknown message store backend: {backend}")
