"""Hierarchical writer capability and its forwarding base."""

from abc import ABC, abstractmethod


class StreamError(RuntimeError):
    """Raised when a writer is used in a way that would emit invalid output."""


class HierarchicalStreamWriter(ABC):
    """Emits a tree of named nodes with attributes and text values."""

    @abstractmethod
    def start_node(self, name: str) -> None: ...

    @abstractmethod
    def add_attribute(self, name: str, value: str) -> None: ...

    @abstractmethod
    def set_value(self, text: str) -> None: ...

    @abstractmethod
    def end_node(self) -> None: ...

    @abstractmethod
    def flush(self) -> None: ...

    @abstractmethod
    def close(self) -> None: ...

    def underlying_writer(self) -> "HierarchicalStreamWriter":
        """Return the innermost writer when writers are wrapped."""
        return self


class WriterWrapper(HierarchicalStreamWriter):
    """Writer that forwards every call to a wrapped writer."""

    def __init__(self, wrapped: HierarchicalStreamWriter) -> None:
        self._wrapped = wrapped

    def start_node(self, name: str) -> None:
        self._wrapped.start_node(name)

    def add_attribute(self, name: str, value: str) -> None:
        self._wrapped.add_attribute(name, value)

    def set_value(self, text: str) -> None:
        self._wrapped.set_value(text)

    def end_node(self) -> None:
        self._wrapped.end_node()

    def flush(self) -> None:
        self._wrapped.flush()

    def close(self) -> None:
        self._wrapped.close()

    def underlying_writer(self) -> HierarchicalStreamWriter:
        return self._wrapped.underlying_writer()
