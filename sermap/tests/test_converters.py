"""Tests for the converter registry."""

# pylint: disable=redefined-outer-name,unused-variable,expression-not-assigned,singleton-comparison

import pytest

from sermap.converters import (
    PRIORITY_LOW,
    PRIORITY_VERY_HIGH,
    ConversionError,
    Converter,
    DefaultConverterLookup,
    SingleValueConverter,
    SingleValueConverterWrapper,
)
from sermap.io import HierarchicalStreamWriter


class Recorder(HierarchicalStreamWriter):
    def __init__(self):
        self.values = []

    def start_node(self, name):
        pass

    def add_attribute(self, name, value):
        pass

    def set_value(self, text):
        self.values.append(text)

    def end_node(self):
        pass

    def flush(self):
        pass

    def close(self):
        pass


class Handles(Converter):
    def __init__(self, *types, name=""):
        self.types = types
        self.name = name

    def can_convert(self, type_):
        return type_ in self.types

    def marshal(self, source, writer):
        writer.set_value(self.name)


class IntText(SingleValueConverter):
    def can_convert(self, type_):
        return type_ is int

    def from_string(self, text):
        return int(text)


def describe_default_converter_lookup():
    def prefers_higher_priority(expect):
        lookup = DefaultConverterLookup()
        low = Handles(int, name="low")
        high = Handles(int, name="high")
        lookup.register_converter(low, PRIORITY_LOW)
        lookup.register_converter(high, PRIORITY_VERY_HIGH)

        expect(lookup.lookup_converter_for_type(int) is high) == True

    def prefers_latest_registration_at_equal_priority(expect):
        lookup = DefaultConverterLookup()
        first = Handles(int)
        second = Handles(int)
        lookup.register_converter(first)
        lookup.register_converter(second)

        expect(lookup.lookup_converter_for_type(int) is second) == True
        expect([c for c, _ in lookup.converters]) == [second, first]

    def skips_converters_that_cannot_handle_the_type(expect):
        lookup = DefaultConverterLookup()
        text = Handles(str)
        lookup.register_converter(text)
        lookup.register_converter(Handles(int), PRIORITY_LOW)

        expect(lookup.lookup_converter_for_type(str) is text) == True

    def invalidates_cached_lookups_on_registration(expect):
        lookup = DefaultConverterLookup()
        lookup.register_converter(Handles(int))
        lookup.lookup_converter_for_type(int)
        newer = Handles(int)
        lookup.register_converter(newer)

        expect(lookup.lookup_converter_for_type(int) is newer) == True

    def wraps_single_value_converters(expect):
        lookup = DefaultConverterLookup()
        lookup.register_converter(IntText())

        found = lookup.lookup_converter_for_type(int)
        expect(isinstance(found, SingleValueConverterWrapper)) == True
        expect(found.from_string("12")) == 12

    def reports_unhandled_types(expect):
        with pytest.raises(ConversionError) as exinfo:
            DefaultConverterLookup().lookup_converter_for_type(float)

        expect(str(exinfo.value)).includes("No converter available for type float")


def describe_single_value_converter_wrapper():
    def writes_text_values(expect):
        writer = Recorder()
        wrapper = SingleValueConverterWrapper(IntText())
        wrapper.marshal(42, writer)
        wrapper.marshal(None, writer)

        expect(writer.values) == ["42"]
