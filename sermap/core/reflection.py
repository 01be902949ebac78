"""Minimal reflection provider for mapped classes."""

from typing import Any

from .typeinfo import FieldInfo, declared_fields


class ReflectionProvider:
    """Enumerates fields and creates instances without running `__init__`."""

    def declared_fields(self, cls: type) -> list[FieldInfo]:
        return declared_fields(cls)

    def field_for(self, cls: type, name: str) -> FieldInfo | None:
        """Find a field by name on the class or the nearest base declaring it."""
        for klass in cls.__mro__:
            for info in declared_fields(klass):
                if info.name == name:
                    return info
        return None

    def new_instance(self, cls: type) -> Any:
        return cls.__new__(cls)
