"""Shared fixtures for sermap tests."""

import pytest

from sermap.converters import DefaultConverterLookup
from sermap.mapper import build_mapper


def pytest_configure(config):
    """Keep file paths out of the progress output."""
    terminal = config.pluginmanager.getplugin("terminal")
    if terminal:
        terminal.TerminalReporter.showfspath = False


@pytest.fixture
def lookup():
    return DefaultConverterLookup()


@pytest.fixture
def mapper(lookup):
    return build_mapper(converter_lookup=lookup)
