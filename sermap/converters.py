"""Converter protocols and the prioritized converter registry."""

import threading
from abc import ABC, abstractmethod
from typing import Any

from .io.writer import HierarchicalStreamWriter

PRIORITY_VERY_HIGH = 10000
PRIORITY_NORMAL = 0
PRIORITY_LOW = -10
PRIORITY_VERY_LOW = -20


class ConversionError(RuntimeError):
    """Raised when no converter handles a type or a value cannot be converted."""


class ConverterMatcher(ABC):
    """Anything that can tell whether it handles a type."""

    @abstractmethod
    def can_convert(self, type_: type) -> bool: ...


class Converter(ConverterMatcher):
    """Strategy writing one value shape through a hierarchical writer."""

    @abstractmethod
    def marshal(self, source: Any, writer: HierarchicalStreamWriter) -> None: ...


class SingleValueConverter(ConverterMatcher):
    """Strategy converting one value shape to and from a single string."""

    def to_string(self, obj: Any) -> str | None:
        return None if obj is None else str(obj)

    @abstractmethod
    def from_string(self, text: str) -> Any: ...


class SingleValueConverterWrapper(Converter):
    """Adapts a SingleValueConverter to the Converter protocol."""

    def __init__(self, wrapped: SingleValueConverter) -> None:
        self.wrapped = wrapped

    def can_convert(self, type_: type) -> bool:
        return self.wrapped.can_convert(type_)

    def marshal(self, source: Any, writer: HierarchicalStreamWriter) -> None:
        text = self.wrapped.to_string(source)
        if text is not None:
            writer.set_value(text)

    def from_string(self, text: str) -> Any:
        return self.wrapped.from_string(text)

    def __repr__(self) -> str:
        return f"SingleValueConverterWrapper({self.wrapped!r})"


class ConverterRegistry(ABC):
    """Accepts converters at a priority."""

    @abstractmethod
    def register_converter(self, converter: Converter, priority: int = PRIORITY_NORMAL) -> None: ...


class ConverterLookup(ABC):
    """Finds the converter responsible for a type."""

    @abstractmethod
    def lookup_converter_for_type(self, type_: type) -> Converter: ...


class DefaultConverterLookup(ConverterRegistry, ConverterLookup):
    """Registry that answers lookups by descending priority.

    Among converters of equal priority the most recently registered one is
    asked first. Lookup results are cached per type until the next
    registration.
    """

    def __init__(self) -> None:
        self._converters: list[tuple[int, int, Converter]] = []
        self._serial = 0
        self._type_cache: dict[type, Converter] = {}
        self._lock = threading.Lock()

    def register_converter(self, converter: Converter | SingleValueConverter, priority: int = PRIORITY_NORMAL) -> None:
        if isinstance(converter, SingleValueConverter) and not isinstance(converter, Converter):
            converter = SingleValueConverterWrapper(converter)
        with self._lock:
            self._serial += 1
            self._converters.append((priority, self._serial, converter))
            self._converters.sort(key=lambda entry: (-entry[0], -entry[1]))
            self._type_cache.clear()

    def lookup_converter_for_type(self, type_: type) -> Converter:
        with self._lock:
            cached = self._type_cache.get(type_)
            if cached is not None:
                return cached
            candidates = list(self._converters)
        for _, _, converter in candidates:
            if converter.can_convert(type_):
                with self._lock:
                    self._type_cache.setdefault(type_, converter)
                return converter
        raise ConversionError(f"No converter available for type {type_.__qualname__}")

    @property
    def converters(self) -> list[tuple[Converter, int]]:
        """Registered converters with their priority, in lookup order."""
        with self._lock:
            return [(converter, priority) for priority, _, converter in self._converters]
