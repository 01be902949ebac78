"""Writer guard enforcing a well-formed serialization session."""

from enum import StrEnum, auto

from .writer import HierarchicalStreamWriter, StreamError, WriterWrapper


class WriterState(StrEnum):
    """States of a serialization session."""

    OPEN = auto()  # Nothing written yet
    NODE_START = auto()  # A node was started, attributes may follow
    VALUE = auto()  # The current node received its text
    NODE_END = auto()  # A node was closed
    CLOSED = auto()


class StatefulWriter(WriterWrapper):
    """Validates every call against the session state before delegating.

    Rules:
        - No call except close() after close().
        - No child node after the current node received text.
        - Attributes only directly after start_node(), each name once per node.
        - Text only directly after start_node().
        - No more end_node() calls than start_node() calls.

    close() never raises, even with nodes still open, so it stays safe in
    cleanup paths. A single instance is not meant for concurrent use.
    """

    def __init__(self, wrapped: HierarchicalStreamWriter) -> None:
        super().__init__(wrapped)
        self._state = WriterState.OPEN
        self._balance = 0
        self._attributes: list[set[str]] = []

    @property
    def state(self) -> WriterState:
        return self._state

    @property
    def depth(self) -> int:
        """Number of nodes started but not yet ended."""
        return self._balance

    def start_node(self, name: str) -> None:
        self._check_closed()
        if self._state == WriterState.VALUE:
            raise StreamError(f"Opening node '{name}' after writing text")
        self._state = WriterState.NODE_START
        self._balance += 1
        self._attributes.append(set())
        super().start_node(name)

    def add_attribute(self, name: str, value: str) -> None:
        self._check_closed()
        if self._state != WriterState.NODE_START:
            raise StreamError(f"Writing attribute '{name}' without an opened node")
        current = self._attributes[-1]
        if name in current:
            raise StreamError(f"Writing attribute '{name}' twice")
        current.add(name)
        super().add_attribute(name, value)

    def set_value(self, text: str) -> None:
        self._check_closed()
        if self._state != WriterState.NODE_START:
            raise StreamError("Writing text without an opened node")
        self._state = WriterState.VALUE
        super().set_value(text)

    def end_node(self) -> None:
        self._check_closed()
        if self._balance == 0:
            raise StreamError("Unbalanced node")
        self._balance -= 1
        self._attributes.pop()
        self._state = WriterState.NODE_END
        super().end_node()

    def flush(self) -> None:
        self._check_closed()
        super().flush()

    def close(self) -> None:
        # Closing with open nodes is allowed
        self._state = WriterState.CLOSED
        super().close()

    def _check_closed(self) -> None:
        if self._state == WriterState.CLOSED:
            raise StreamError("Writing on a closed stream")
