"""Tests for message store backends."""

import json
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
import requests

from moodwatch.core.config import Settings
from moodwatch.core.models import Channel
from moodwatch.services.message_store import (
    HttpMessageStore, InMemoryMessageStore, JsonFileMessageStore, MessageStoreError, MessageStoreFactory,
)
from conftest import make_message

SINCE = datetime(2024, 6, 10, tzinfo=timezone.utc)

RECORDS = [
    {"channel_id": "C1", "user_id": "U1", "text": "hi", "timestamp": "2024-06-14T10:00:00Z", "sentiment_score": 6},
    {"channel_id": "C2", "user_id": "U2", "text": "ugh", "timestamp": "1718100000.000100", "sentiment_score": 3},
    {"channel_id": "C1", "user_id": "U3", "text": "old", "timestamp": "2024-06-01T10:00:00Z", "sentiment_score": 5},
    {"channel_id": "C1", "user_id": "U4", "text": "no time", "sentiment_score": 5},
]


def test_in_memory_filters():
    store = InMemoryMessageStore(
        [make_message(channel_id="C1"), make_message(channel_id="C2"), make_message(channel_id="C1", days_ago=10)],
        [Channel("C1", "eng")],
    )
    assert len(store.fetch_messages()) == 3
    assert len(store.fetch_messages(channel_id="C1")) == 2
    assert len(store.fetch_messages(channel_id="C1", since=SINCE)) == 1
    assert store.fetch_channels() == [Channel("C1", "eng")]


class TestJsonFileMessageStore:
    """File snapshots in JSON and CSV."""

    def test_json_snapshot(self, tmp_path):
        path = tmp_path / "snapshot.json"
        path.write_text(json.dumps({"messages": RECORDS, "channels": [{"id": "C1", "name": "eng"}]}))
        store = JsonFileMessageStore(str(path))

        messages = store.fetch_messages()
        assert len(messages) == 3  # record without timestamp skipped
        assert messages[1].timestamp.tzinfo is not None
        assert [m.user_id for m in store.fetch_messages(since=SINCE)] == ["U1", "U2"]
        assert store.fetch_channels()[0].name == "eng"

    def test_bare_list(self, tmp_path):
        path = tmp_path / "snapshot.json"
        path.write_text(json.dumps(RECORDS[:2]))
        assert len(JsonFileMessageStore(str(path)).fetch_messages(channel_id="C2")) == 1

    def test_csv_snapshot(self, tmp_path):
        path = tmp_path / "snapshot.csv"
        path.write_text(
            "channel_id,user_id,text,timestamp,sentiment_score\n"
            "C1,U1,hello,2024-06-14T10:00:00Z,7\n"
            "C1,U2,meh,2024-06-14T11:00:00Z,\n"
        )
        store = JsonFileMessageStore(str(path))
        messages = store.fetch_messages()

        assert len(messages) == 2
        assert messages[0].sentiment_score == 7
        assert messages[1].sentiment_score != messages[1].sentiment_score  # NaN
        assert store.fetch_channels() == []

    def test_missing_file(self, tmp_path):
        with pytest.raises(MessageStoreError):
            JsonFileMessageStore(str(tmp_path / "absent.json")).fetch_messages()

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(MessageStoreError):
            JsonFileMessageStore(str(path)).fetch_channels()

    def test_non_object_records_are_skipped(self, tmp_path):
        """Strings and numbers in the records list are skipped as malformed."""
        path = tmp_path / "snapshot.json"
        path.write_text(json.dumps({"messages": ["oops", 7, RECORDS[0]], "channels": ["eng", {"id": "C1"}]}))
        store = JsonFileMessageStore(str(path))

        assert [m.user_id for m in store.fetch_messages()] == ["U1"]
        assert store.fetch_channels() == [Channel("C1", "C1")]

    def test_scalar_snapshot(self, tmp_path):
        path = tmp_path / "snapshot.json"
        path.write_text("42")
        with pytest.raises(MessageStoreError):
            JsonFileMessageStore(str(path)).fetch_messages()


class TestHttpMessageStore:
    """HTTP backend with retries."""

    def setup_method(self):
        self.session = MagicMock()

    def _response(self, payload):
        response = MagicMock()
        response.json.return_value = payload
        response.raise_for_status.return_value = None
        return response

    def test_fetch_messages(self):
        self.session.get.return_value = self._response({"messages": RECORDS[:2]})
        store = HttpMessageStore("http://store.local/", retry_delay=0, session=self.session)

        messages = store.fetch_messages(channel_id="C1", since=SINCE)

        assert [m.user_id for m in messages] == ["U1"]
        args, kwargs = self.session.get.call_args
        assert args[0] == "http://store.local/messages"
        assert kwargs["params"] == {"channel_id": "C1", "since": SINCE.isoformat()}
        assert kwargs["timeout"] == 30.0

    def test_fetch_channels_list_payload(self):
        self.session.get.return_value = self._response([{"id": "C1", "name": "eng"}])
        store = HttpMessageStore("http://store.local", retry_delay=0, session=self.session)
        assert store.fetch_channels() == [Channel("C1", "eng")]

    def test_non_object_payload_records_are_skipped(self):
        self.session.get.return_value = self._response(["not", "records", RECORDS[0]])
        store = HttpMessageStore("http://store.local", retry_delay=0, session=self.session)
        assert [m.user_id for m in store.fetch_messages()] == ["U1"]

    def test_retries_then_succeeds(self):
        self.session.get.side_effect = [requests.ConnectionError("down"), self._response([])]
        store = HttpMessageStore("http://store.local", retry_delay=0, session=self.session)

        assert store.fetch_messages() == []
        assert self.session.get.call_count == 2

    def test_gives_up_after_max_retries(self):
        self.session.get.side_effect = requests.ConnectionError("down")
        store = HttpMessageStore("http://store.local", max_retries=2, retry_delay=0, session=self.session)

        with pytest.raises(MessageStoreError):
            store.fetch_messages()
        assert self.session.get.call_count == 2


class TestMessageStoreFactory:
    """Backend selection from settings."""

    def test_backends(self, tmp_path):
        assert isinstance(MessageStoreFactory.create(Settings(message_store_backend="memory")), InMemoryMessageStore)
        store = MessageStoreFactory.create(
            Settings(message_store_backend="file", message_store_path=str(tmp_path / "x.json"))
        )
        assert isinstance(store, JsonFileMessageStore)
        store = MessageStoreFactory.create(
            Settings(message_store_backend="http", message_store_url="http://store.local")
        )
        assert isinstance(store, HttpMessageStore)

    def test_http_requires_url(self):
        with pytest.raises(MessageStoreError):
            MessageStoreFactory.create(Settings(message_store_backend="http", message_store_url=""))

    def test_unknown_backend(self):
        with pytest.raises(MessageStoreError):
            MessageStoreFactory.create(Settings(message_store_backend="kafka"))
