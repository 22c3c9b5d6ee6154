"""Counter key value object.

A counter key names one buffered accumulator: the outer buffer key is
``<entity_kind>::<entity_id>`` and the metric is a field inside it.
"""

from pydantic import Field, field_validator

from imguru.domain.error import MalformedBufferKeyError
from imguru.domain.value.common import ValueObject

KEY_SEPARATOR = "::"


class CounterKey(ValueObject):
    """Identifies one counter slot: (entity kind, entity id, metric)."""

    entity_kind: str = Field(min_length=1)
    entity_id: int
    metric: str = Field(min_length=1)

    @field_validator("entity_kind")
    @classmethod
    def validate_entity_kind(cls, v: str) -> str:
        """Entity kind must not contain the key separator."""
        if KEY_SEPARATOR in v:
            raise ValueError(f"Entity kind must not contain {KEY_SEPARATOR!r}")
        return v

    @property
    def buffer_key(self) -> str:
        """Outer key in the buffer store."""
        return f"{self.entity_kind}{KEY_SEPARATOR}{self.entity_id}"

    @classmethod
    def from_buffer_key(cls, key: str, metric: str) -> "CounterKey":
        """Parse an outer buffer key back into a counter key.

        Args:
            key: Outer buffer key, e.g. ``post::42``
            metric: Metric field the key is paired with

        Returns:
            Parsed counter key

        Raises:
            MalformedBufferKeyError: If the key is not ``<kind>::<integer id>``
        """
        parts = key.split(KEY_SEPARATOR)
        if len(parts) != 2 or not parts[0]:
            raise MalformedBufferKeyError(key)

        entity_kind, raw_id = parts
        if not (raw_id.isascii() and raw_id.isdigit()):
            raise MalformedBufferKeyError(key)

        return cls(entity_kind=entity_kind, entity_id=int(raw_id), metric=metric)

    def __str__(self) -> str:
        return f"{self.buffer_key}{KEY_SEPARATOR}{self.metric}"
