"""Unit tests for CounterKey."""

import pytest
from pydantic import ValidationError

from imguru.domain.error import MalformedBufferKeyError
from imguru.domain.value import CounterKey


class TestCounterKey:
    """Tests for key formatting and parsing."""

    def test_buffer_key_joins_kind_and_id(self):
        key = CounterKey(entity_kind="post", entity_id=42, metric="views")

        assert key.buffer_key == "post::42"
        assert str(key) == "post::42::views"

    def test_from_buffer_key_parses_kind_and_id(self):
        key = CounterKey.from_buffer_key("post::42", "views")

        assert key.entity_kind == "post"
        assert key.entity_id == 42
        assert key.metric == "views"

    def test_from_buffer_key_inverts_buffer_key(self):
        key = CounterKey(entity_kind="comment", entity_id=7, metric="views")

        assert CounterKey.from_buffer_key(key.buffer_key, "views") == key

    @pytest.mark.parametrize(
        "raw",
        [
            "garbage",
            "post::",
            "::42",
            "post::abc",
            "post::42::extra",
            "post::-1",
            "post::4 2",
            "",
        ],
    )
    def test_from_buffer_key_rejects_malformed_keys(self, raw):
        with pytest.raises(MalformedBufferKeyError) as exc_info:
            CounterKey.from_buffer_key(raw, "views")

        assert exc_info.value.key == raw

    def test_entity_kind_cannot_contain_separator(self):
        with pytest.raises(ValidationError):
            CounterKey(entity_kind="po::st", entity_id=1, metric="views")

    def test_metric_cannot_be_empty(self):
        with pytest.raises(ValidationError):
            CounterKey(entity_kind="post", entity_id=1, metric="")
