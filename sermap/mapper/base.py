"""Mapper chain: the capability interface, its forwarding stage and the terminal stage."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

from ..core.resolver import TypeResolver
from ..core.typeinfo import qualified_name
from ..metadata.types import InitializationError as InitializationError

if TYPE_CHECKING:
    from ..converters import Converter

M = TypeVar("M", bound="Mapper")


@dataclass(frozen=True)
class ImplicitCollectionMapping:
    """How a collection field is written without a wrapping element."""

    defined_in: type
    field_name: str
    item_field_name: str | None = None
    item_type: type | None = None
    key_field_name: str | None = None


class Mapper(ABC):
    """Translates between classes and fields and their serialized form.

    Every method but `real_class` answers with the default behavior; stages
    override what they change. Resolving element names needs a resolver,
    so concrete mappers must provide it.
    """

    def serialized_class(self, type_: type) -> str:
        return qualified_name(type_)

    @abstractmethod
    def real_class(self, element_name: str) -> type:
        """Return the class written under an element name."""

    def serialized_member(self, type_: type, member_name: str) -> str:
        return member_name

    def real_member(self, type_: type, serialized: str) -> str:
        return serialized

    def default_implementation_of(self, type_: type) -> type:
        return type_

    def get_local_converter(self, defined_in: type, field_name: str) -> Converter | None:
        return None

    def is_ignored_element(self, name: str) -> bool:
        return False

    def should_serialize_member(self, defined_in: type, field_name: str) -> bool:
        return True

    def use_attribute_for(self, defined_in: type, field_name: str) -> bool:
        return False

    def implicit_collection_for(self, defined_in: type, field_name: str) -> ImplicitCollectionMapping | None:
        return None

    def field_name_for_item(self, defined_in: type, item_type: type | None, item_field_name: str | None) -> str | None:
        return None

    def lookup_mapper_of_type(self, mapper_type: type[M]) -> M | None:
        """Find the stage of a given class in the chain."""
        return self if isinstance(self, mapper_type) else None


class DefaultMapper(Mapper):
    """Terminal stage: classes serialize as their dotted name."""

    def __init__(self, resolver: TypeResolver | None = None) -> None:
        self.resolver = resolver or TypeResolver()

    def real_class(self, element_name: str) -> type:
        return self.resolver.resolve(element_name)


class MapperWrapper(Mapper):
    """Stage holding one inner mapper and forwarding everything to it."""

    def __init__(self, wrapped: Mapper) -> None:
        self.wrapped = wrapped

    def serialized_class(self, type_: type) -> str:
        return self.wrapped.serialized_class(type_)

    def real_class(self, element_name: str) -> type:
        return self.wrapped.real_class(element_name)

    def serialized_member(self, type_: type, member_name: str) -> str:
        return self.wrapped.serialized_member(type_, member_name)

    def real_member(self, type_: type, serialized: str) -> str:
        return self.wrapped.real_member(type_, serialized)

    def default_implementation_of(self, type_: type) -> type:
        return self.wrapped.default_implementation_of(type_)

    def get_local_converter(self, defined_in: type, field_name: str) -> Converter | None:
        return self.wrapped.get_local_converter(defined_in, field_name)

    def is_ignored_element(self, name: str) -> bool:
        return self.wrapped.is_ignored_element(name)

    def should_serialize_member(self, defined_in: type, field_name: str) -> bool:
        return self.wrapped.should_serialize_member(defined_in, field_name)

    def use_attribute_for(self, defined_in: type, field_name: str) -> bool:
        return self.wrapped.use_attribute_for(defined_in, field_name)

    def implicit_collection_for(self, defined_in: type, field_name: str) -> ImplicitCollectionMapping | None:
        return self.wrapped.implicit_collection_for(defined_in, field_name)

    def field_name_for_item(self, defined_in: type, item_type: type | None, item_field_name: str | None) -> str | None:
        return self.wrapped.field_name_for_item(defined_in, item_type, item_field_name)

    def lookup_mapper_of_type(self, mapper_type: type[M]) -> M | None:
        if isinstance(self, mapper_type):
            return self
        return self.wrapped.lookup_mapper_of_type(mapper_type)
