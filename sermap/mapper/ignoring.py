"""Stage suppressing unknown elements and omitted fields."""

import re
import threading

from .base import Mapper, MapperWrapper


class ElementIgnoringMapper(MapperWrapper):
    """Ignores input elements matching a pattern and never writes omitted fields.

    Element suppression is the logical OR over the chain: a name is ignored
    when any pattern here fully matches it or when an inner stage ignores it.
    """

    def __init__(self, wrapped: Mapper) -> None:
        super().__init__(wrapped)
        self._patterns: dict[re.Pattern[str], None] = {}
        self._omitted: set[tuple[type, str]] = set()
        self._lock = threading.Lock()

    def add_elements_to_ignore(self, pattern: str | re.Pattern[str]) -> None:
        if isinstance(pattern, str):
            pattern = re.compile(pattern)
        with self._lock:
            self._patterns[pattern] = None

    def omit_field(self, defined_in: type, field_name: str) -> None:
        with self._lock:
            self._omitted.add((defined_in, field_name))

    @property
    def patterns(self) -> list[re.Pattern[str]]:
        with self._lock:
            return list(self._patterns)

    def is_ignored_element(self, name: str) -> bool:
        if any(pattern.fullmatch(name) for pattern in self.patterns):
            return True
        return super().is_ignored_element(name)

    def should_serialize_member(self, defined_in: type, field_name: str) -> bool:
        with self._lock:
            if any((klass, field_name) in self._omitted for klass in defined_in.__mro__):
                return False
        return super().should_serialize_member(defined_in, field_name)
