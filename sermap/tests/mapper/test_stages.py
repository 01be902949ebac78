"""Tests for the registration stages of the mapper chain."""

# pylint: disable=redefined-outer-name,unused-variable,expression-not-assigned,singleton-comparison

import abc
from typing import Protocol

import pytest

from sermap.converters import SingleValueConverter, SingleValueConverterWrapper
from sermap.core import CannotResolveClassError
from sermap.mapper import (
    AttributeMapper,
    ClassAliasingMapper,
    DefaultImplementationsMapper,
    DefaultMapper,
    ElementIgnoringMapper,
    FieldAliasingMapper,
    ImplicitCollectionMapper,
    InitializationError,
    LocalConversionMapper,
    Mapper,
    build_mapper,
)


class Shape(abc.ABC):
    @abc.abstractmethod
    def area(self): ...


class Square(Shape):
    def area(self):
        return 1


class Circle(Shape):
    def area(self):
        return 3


class Drawable(Protocol):
    def draw(self) -> None: ...


class Canvas:
    def draw(self) -> None:
        pass


class Item:
    pass


class Order:
    pass


class BigOrder(Order):
    pass


class UpperConverter(SingleValueConverter):
    def can_convert(self, type_):
        return type_ is str

    def from_string(self, text):
        return text.upper()


class NamelessMapper(Mapper):
    pass


class FixedMapper(Mapper):
    def real_class(self, element_name):
        return Item


def describe_mapper():
    def cannot_be_built_without_name_resolution(expect):
        for mapper_class in (Mapper, NamelessMapper):
            with pytest.raises(TypeError):
                mapper_class()

    def keeps_defaults_for_everything_else(expect):
        mapper = FixedMapper()

        expect(mapper.real_class("anything")) == Item
        expect(mapper.serialized_class(Item)) == f"{__name__}.Item"
        expect(mapper.real_member(Item, "x")) == "x"


def describe_default_mapper():
    def uses_dotted_names(expect):
        mapper = DefaultMapper()
        expect(mapper.serialized_class(Item)) == f"{__name__}.Item"
        expect(mapper.serialized_class(int)) == "int"

    def resolves_dotted_names(expect):
        mapper = DefaultMapper()
        expect(mapper.real_class(f"{__name__}.Item")) == Item
        expect(mapper.real_class("str")) == str

    def rejects_unknown_names(expect):
        with pytest.raises(CannotResolveClassError):
            DefaultMapper().real_class("no.such.module.Thing")

    def answers_with_defaults(expect):
        mapper = DefaultMapper()
        expect(mapper.serialized_member(Item, "x")) == "x"
        expect(mapper.default_implementation_of(Item)) == Item
        expect(mapper.get_local_converter(Item, "x")) == None
        expect(mapper.is_ignored_element("x")) == False
        expect(mapper.should_serialize_member(Item, "x")) == True
        expect(mapper.use_attribute_for(Item, "x")) == False
        expect(mapper.implicit_collection_for(Item, "x")) == None


def describe_lookup_mapper_of_type():
    def finds_stages_by_class(expect):
        mapper = build_mapper()
        expect(isinstance(mapper.lookup_mapper_of_type(ClassAliasingMapper), ClassAliasingMapper)) == True
        expect(isinstance(mapper.lookup_mapper_of_type(ElementIgnoringMapper), ElementIgnoringMapper)) == True
        expect(isinstance(mapper.lookup_mapper_of_type(DefaultMapper), DefaultMapper)) == True

    def returns_none_for_missing_stages(expect):
        mapper = AttributeMapper(DefaultMapper())
        expect(mapper.lookup_mapper_of_type(ClassAliasingMapper)) == None


def describe_class_aliasing():
    def aliases_one_class(expect):
        mapper = ClassAliasingMapper(DefaultMapper())
        mapper.add_class_alias("order", Order)

        expect(mapper.serialized_class(Order)) == "order"
        expect(mapper.serialized_class(BigOrder)) == f"{__name__}.BigOrder"
        expect(mapper.real_class("order")) == Order

    def aliases_subclasses_with_type_alias(expect):
        mapper = ClassAliasingMapper(DefaultMapper())
        mapper.add_type_alias("order", Order)

        expect(mapper.serialized_class(BigOrder)) == "order"

    def prefers_class_alias_over_type_alias(expect):
        mapper = ClassAliasingMapper(DefaultMapper())
        mapper.add_type_alias("order", Order)
        mapper.add_class_alias("big", BigOrder)

        expect(mapper.serialized_class(BigOrder)) == "big"
        expect(mapper.aliases) == {"order": Order, "big": BigOrder}


def describe_default_implementations():
    def binds_implementation(expect):
        mapper = DefaultImplementationsMapper(ClassAliasingMapper(DefaultMapper()))
        mapper.add_default_implementation(Square, Shape)

        expect(mapper.default_implementation_of(Shape)) == Square
        expect(mapper.default_implementation_of(Circle)) == Circle

    def writes_implementation_as_declared_type(expect):
        mapper = DefaultImplementationsMapper(DefaultMapper())
        mapper.add_default_implementation(Square, Shape)

        expect(mapper.serialized_class(Square)) == f"{__name__}.Shape"

    def rejects_unrelated_implementation(expect):
        mapper = DefaultImplementationsMapper(DefaultMapper())
        with pytest.raises(InitializationError) as exinfo:
            mapper.add_default_implementation(Item, Shape)

        expect(str(exinfo.value)).includes("is not a Shape")

    def accepts_structural_protocol_implementation(expect):
        mapper = DefaultImplementationsMapper(DefaultMapper())
        mapper.add_default_implementation(Canvas, Drawable)

        expect(mapper.default_implementation_of(Drawable)) == Canvas


def describe_implicit_collections():
    def registers_and_inherits_mapping(expect):
        mapper = ImplicitCollectionMapper(DefaultMapper())
        mapping = mapper.add(Order, "lines", "line", Item)

        expect(mapper.implicit_collection_for(Order, "lines")) == mapping
        expect(mapper.implicit_collection_for(BigOrder, "lines")) == mapping
        expect(mapper.implicit_collection_for(Order, "other")) == None

    def finds_field_by_item_name(expect):
        mapper = ImplicitCollectionMapper(DefaultMapper())
        mapper.add(Order, "lines", "line", Item)

        expect(mapper.field_name_for_item(Order, None, "line")) == "lines"
        expect(mapper.field_name_for_item(Order, None, "nope")) == None

    def finds_field_by_item_type(expect):
        mapper = ImplicitCollectionMapper(DefaultMapper())
        mapper.add(Order, "shapes", None, Shape)

        expect(mapper.field_name_for_item(BigOrder, Square, None)) == "shapes"
        expect(mapper.field_name_for_item(BigOrder, Item, None)) == None


def describe_field_aliasing():
    def translates_both_ways(expect):
        mapper = FieldAliasingMapper(DefaultMapper())
        mapper.add_field_alias("qty", Order, "quantity")

        expect(mapper.serialized_member(Order, "quantity")) == "qty"
        expect(mapper.real_member(Order, "qty")) == "quantity"
        expect(mapper.serialized_member(BigOrder, "quantity")) == "qty"
        expect(mapper.serialized_member(Item, "quantity")) == "quantity"


def describe_attributes():
    def marks_fields(expect):
        mapper = AttributeMapper(DefaultMapper())
        mapper.add_attribute_for(Order, "id")

        expect(mapper.use_attribute_for(Order, "id")) == True
        expect(mapper.use_attribute_for(BigOrder, "id")) == True
        expect(mapper.use_attribute_for(Order, "name")) == False


def describe_local_conversion():
    def binds_converter_to_field(expect):
        mapper = LocalConversionMapper(DefaultMapper())
        converter = SingleValueConverterWrapper(UpperConverter())
        mapper.register_local_converter(Order, "code", converter)

        expect(mapper.get_local_converter(Order, "code")) == converter
        expect(mapper.get_local_converter(BigOrder, "code")) == converter
        expect(mapper.get_local_converter(Order, "other")) == None
