"""Domain layer errors."""


class DomainError(Exception):
    """Base domain error."""

    pass


class NotFoundError(DomainError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found: {identifier}")


class CounterError(DomainError):
    """Base error for buffered counters."""

    pass


class BufferUnavailableError(CounterError):
    """The counter buffer store cannot be reached."""

    pass


class DurableReadError(CounterError):
    """The durable counter store failed to return a count."""

    pass


class DurableWriteError(CounterError):
    """The durable counter store rejected or failed a write."""

    def __init__(self, entity_kind: str, entity_id: int, metric: str, reason: str):
        self.entity_kind = entity_kind
        self.entity_id = entity_id
        self.metric = metric
        super().__init__(
            f"Failed to persist {metric} for {entity_kind} {entity_id}: {reason}"
        )


class MalformedBufferKeyError(CounterError):
    """A buffer key does not parse into an entity kind and id."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Malformed counter buffer key: {key!r}")
