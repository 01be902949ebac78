"""Tests for metadata declared on classes and fields."""

# pylint: disable=redefined-outer-name,unused-variable,expression-not-assigned,singleton-comparison

from dataclasses import dataclass
from typing import Annotated

import pytest

from sermap.core import ReflectionProvider, TypedNull
from sermap.metadata import (
    Alias,
    AnnotatedMetadataReader,
    AsAttribute,
    Converters,
    ConverterSpec,
    Implicit,
    Include,
    InitializationError,
    OmitField,
    alias,
    alias_type,
    converter,
    declare,
    include,
    sermap_field,
)


class First:
    pass


class Second:
    pass


class Extra:
    pass


@alias("tagged")
@alias_type("tag-like")
@converter(First, priority=5)
@converter(Second)
@include(Extra)
class Tagged:
    pass


class Untagged(Tagged):
    pass


@declare(OmitField())
class Declared:
    pass


@dataclass
class Record:
    plain: str = ""
    short: Annotated[str, Alias("s")] = ""
    both: Annotated[str, Alias("from-annotated"), AsAttribute()] = sermap_field(alias="from-field", default="")
    items: list[int] = sermap_field(implicit=Implicit("item"), default_factory=list)
    flagged: list[int] = sermap_field(implicit=True, omit=True, default_factory=list)
    converted: str = sermap_field(converter=ConverterSpec(First), default="")


def _field(name):
    return ReflectionProvider().field_for(Record, name)


def describe_class_metadata():
    def reads_decorators(expect):
        reader = AnnotatedMetadataReader()

        expect(reader.get(Tagged, Alias)) == Alias("tagged")
        expect(reader.get(Tagged, Include)) == Include((Extra,))
        expect(reader.get(Tagged, OmitField)) == None
        expect(reader.get(Declared, OmitField)) == OmitField()

    def keeps_converters_in_source_order(expect):
        converters = AnnotatedMetadataReader().get(Tagged, Converters)

        expect([spec.value for spec in converters.specs]) == [First, Second]
        expect([spec.priority for spec in converters.specs]) == [5, 0]

    def does_not_inherit_class_metadata(expect):
        reader = AnnotatedMetadataReader()

        expect(reader.get(Untagged, Alias)) == None
        expect(reader.get(Untagged, Converters)) == None


def describe_field_metadata():
    def reads_annotated_extras(expect):
        expect(AnnotatedMetadataReader().get(_field("short"), Alias)) == Alias("s")

    def reads_field_metadata(expect):
        reader = AnnotatedMetadataReader()

        expect(reader.get(_field("items"), Implicit)) == Implicit("item")
        expect(reader.get(_field("flagged"), Implicit)) == Implicit()
        expect(reader.get(_field("flagged"), OmitField)) == OmitField()
        expect(reader.get(_field("converted"), ConverterSpec)) == ConverterSpec(First)

    def prefers_field_metadata_over_extras(expect):
        reader = AnnotatedMetadataReader()

        expect(reader.get(_field("both"), Alias)) == Alias("from-field")
        expect(reader.get(_field("both"), AsAttribute)) == AsAttribute()

    def answers_none_without_metadata(expect):
        expect(AnnotatedMetadataReader().get(_field("plain"), Alias)) == None

    def keeps_defaults(expect):
        record = Record()

        expect(record.both) == ""
        expect(record.items) == []


def describe_converter_spec():
    def orders_literal_arguments(expect):
        spec = ConverterSpec(First, strings=["a"], ints=(1, 2), booleans=(True,), nulls=(str,))

        expect(spec.strings) == ("a",)
        expect(spec.literal_arguments()) == [
            ("booleans", True),
            ("ints", 1),
            ("ints", 2),
            ("strings", "a"),
            ("nulls", TypedNull(str)),
        ]

    def checks_integer_ranges(expect):
        ConverterSpec(First, bytes=(127, -128), shorts=(32767,))
        with pytest.raises(InitializationError):
            ConverterSpec(First, bytes=(128,))
        with pytest.raises(InitializationError):
            ConverterSpec(First, ints=(2**31,))

    def checks_literal_kinds(expect):
        for options in ({"chars": ("ab",)}, {"ints": (True,)}, {"types": ("str",)}, {"booleans": (1,)}):
            with pytest.raises(InitializationError):
                ConverterSpec(First, **options)

    def requires_a_class(expect):
        with pytest.raises(InitializationError) as exinfo:
            ConverterSpec("First")

        expect(str(exinfo.value)).includes("must be a class")
