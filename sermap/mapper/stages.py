"""Collaborator stages holding the registration tables filled by discovery.

Each stage owns its tables and a lock for them. Registrations are
permanent for the lifetime of the stage.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from .base import ImplicitCollectionMapping, InitializationError, Mapper, MapperWrapper

if TYPE_CHECKING:
    from ..converters import Converter


class ClassAliasingMapper(MapperWrapper):
    """Short names for classes.

    A class alias applies to exactly one class; a type alias also applies to
    its subclasses unless they have an alias of their own.
    """

    def __init__(self, wrapped: Mapper) -> None:
        super().__init__(wrapped)
        self._class_to_name: dict[type, str] = {}
        self._type_to_name: dict[type, str] = {}
        self._name_to_type: dict[str, type] = {}
        self._lock = threading.Lock()

    def add_class_alias(self, name: str, type_: type) -> None:
        with self._lock:
            self._name_to_type[name] = type_
            self._class_to_name[type_] = name

    def add_type_alias(self, name: str, type_: type) -> None:
        with self._lock:
            self._name_to_type[name] = type_
            self._type_to_name[type_] = name

    def alias_for(self, type_: type) -> str | None:
        with self._lock:
            alias = self._class_to_name.get(type_)
            if alias is not None:
                return alias
            for klass in type_.__mro__:
                alias = self._type_to_name.get(klass)
                if alias is not None:
                    return alias
        return None

    @property
    def aliases(self) -> dict[str, type]:
        with self._lock:
            return dict(self._name_to_type)

    def serialized_class(self, type_: type) -> str:
        alias = self.alias_for(type_)
        return alias if alias is not None else super().serialized_class(type_)

    def real_class(self, element_name: str) -> type:
        with self._lock:
            type_ = self._name_to_type.get(element_name)
        return type_ if type_ is not None else super().real_class(element_name)


class DefaultImplementationsMapper(MapperWrapper):
    """Concrete classes used for declared abstract or interface types.

    A registered implementation serializes under the declared type's name,
    so the concrete class never shows up in the output.
    """

    def __init__(self, wrapped: Mapper) -> None:
        super().__init__(wrapped)
        self._type_to_impl: dict[type, type] = {}
        self._impl_to_type: dict[type, type] = {}
        self._lock = threading.Lock()

    def add_default_implementation(self, default_implementation: type, of_type: type) -> None:
        # Protocol implementations need not subclass the protocol
        is_protocol = getattr(of_type, "_is_protocol", False)
        if not is_protocol and not issubclass(default_implementation, of_type):
            raise InitializationError(
                f"Default implementation {default_implementation.__qualname__} is not a {of_type.__qualname__}"
            )
        with self._lock:
            self._type_to_impl[of_type] = default_implementation
            self._impl_to_type[default_implementation] = of_type

    def serialized_class(self, type_: type) -> str:
        with self._lock:
            base_type = self._impl_to_type.get(type_)
        return super().serialized_class(base_type if base_type is not None else type_)

    def default_implementation_of(self, type_: type) -> type:
        with self._lock:
            impl = self._type_to_impl.get(type_)
        return impl if impl is not None else super().default_implementation_of(type_)


class ImplicitCollectionMapper(MapperWrapper):
    """Collection fields written as bare child elements."""

    def __init__(self, wrapped: Mapper) -> None:
        super().__init__(wrapped)
        self._mappings: dict[tuple[type, str], ImplicitCollectionMapping] = {}
        self._lock = threading.Lock()

    def add(
        self,
        defined_in: type,
        field_name: str,
        item_field_name: str | None = None,
        item_type: type | None = None,
        key_field_name: str | None = None,
    ) -> ImplicitCollectionMapping:
        mapping = ImplicitCollectionMapping(defined_in, field_name, item_field_name, item_type, key_field_name)
        with self._lock:
            self._mappings[(defined_in, field_name)] = mapping
        return mapping

    def implicit_collection_for(self, defined_in: type, field_name: str) -> ImplicitCollectionMapping | None:
        with self._lock:
            for klass in defined_in.__mro__:
                mapping = self._mappings.get((klass, field_name))
                if mapping is not None:
                    return mapping
        return super().implicit_collection_for(defined_in, field_name)

    def field_name_for_item(self, defined_in: type, item_type: type | None, item_field_name: str | None) -> str | None:
        with self._lock:
            mappings = [m for m in self._mappings.values() if issubclass(defined_in, m.defined_in)]
        for mapping in mappings:
            if item_field_name is not None and mapping.item_field_name == item_field_name:
                return mapping.field_name
        for mapping in mappings:
            if mapping.item_field_name is None and item_type is not None and mapping.item_type is not None:
                if issubclass(item_type, mapping.item_type):
                    return mapping.field_name
        return super().field_name_for_item(defined_in, item_type, item_field_name)


class FieldAliasingMapper(MapperWrapper):
    """Serialized names for fields, inherited by subclasses."""

    def __init__(self, wrapped: Mapper) -> None:
        super().__init__(wrapped)
        self._field_to_alias: dict[tuple[type, str], str] = {}
        self._alias_to_field: dict[tuple[type, str], str] = {}
        self._lock = threading.Lock()

    def add_field_alias(self, alias: str, defined_in: type, field_name: str) -> None:
        with self._lock:
            self._field_to_alias[(defined_in, field_name)] = alias
            self._alias_to_field[(defined_in, alias)] = field_name

    def serialized_member(self, type_: type, member_name: str) -> str:
        alias = self._find(self._field_to_alias, type_, member_name)
        return alias if alias is not None else super().serialized_member(type_, member_name)

    def real_member(self, type_: type, serialized: str) -> str:
        name = self._find(self._alias_to_field, type_, serialized)
        return name if name is not None else super().real_member(type_, serialized)

    def _find(self, table: dict[tuple[type, str], str], type_: type, name: str) -> str | None:
        with self._lock:
            for klass in type_.__mro__:
                found = table.get((klass, name))
                if found is not None:
                    return found
        return None


class AttributeMapper(MapperWrapper):
    """Fields written as attributes instead of child elements."""

    def __init__(self, wrapped: Mapper) -> None:
        super().__init__(wrapped)
        self._fields: set[tuple[type, str]] = set()
        self._lock = threading.Lock()

    def add_attribute_for(self, defined_in: type, field_name: str) -> None:
        with self._lock:
            self._fields.add((defined_in, field_name))

    def use_attribute_for(self, defined_in: type, field_name: str) -> bool:
        with self._lock:
            if any((klass, field_name) in self._fields for klass in defined_in.__mro__):
                return True
        return super().use_attribute_for(defined_in, field_name)


class LocalConversionMapper(MapperWrapper):
    """Converters bound to a single field."""

    def __init__(self, wrapped: Mapper) -> None:
        super().__init__(wrapped)
        self._converters: dict[tuple[type, str], Converter] = {}
        self._lock = threading.Lock()

    def register_local_converter(self, defined_in: type, field_name: str, converter: Converter) -> None:
        with self._lock:
            self._converters[(defined_in, field_name)] = converter

    def get_local_converter(self, defined_in: type, field_name: str) -> Converter | None:
        with self._lock:
            for klass in defined_in.__mro__:
                converter = self._converters.get((klass, field_name))
                if converter is not None:
                    return converter
        return super().get_local_converter(defined_in, field_name)
