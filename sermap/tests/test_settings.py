"""Tests for settings and logging setup."""

# pylint: disable=redefined-outer-name,unused-variable,expression-not-assigned,singleton-comparison

import logging

import pytest
from rich.logging import RichHandler

from sermap.log import configure_logging, parse_log_level, resolve_env_log_level
from sermap.mapper import build_mapper
from sermap.settings import DEFAULT_EXCLUDED_MODULES, MapperSettings, load_settings


def describe_settings():
    def has_defaults(expect):
        settings = MapperSettings()

        expect(settings.auto_discovery) == True
        expect(settings.excluded_modules) == list(DEFAULT_EXCLUDED_MODULES)
        expect(settings.ignored_elements) == []

    def loads_partial_json(expect, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text('{"auto_discovery": false, "ignored_elements": ["x-.*"]}', encoding="utf-8")

        settings = load_settings(str(path))
        expect(settings.auto_discovery) == False
        expect(settings.ignored_elements) == ["x-.*"]
        expect(settings.excluded_modules) == list(DEFAULT_EXCLUDED_MODULES)

    def configures_the_chain(expect):
        mapper = build_mapper(MapperSettings(auto_discovery=False, ignored_elements=["x-.*"]))

        expect(mapper.auto_discovery) == False
        expect(mapper.is_ignored_element("x-debug")) == True
        expect(mapper.is_ignored_element("debug")) == False


def describe_logging():
    def parses_names_and_numbers(expect):
        expect(parse_log_level("debug")) == logging.DEBUG
        expect(parse_log_level(" INFO ")) == logging.INFO
        expect(parse_log_level("15")) == 15

    def rejects_unknown_levels(expect):
        with pytest.raises(ValueError):
            parse_log_level("chatty")

    def reads_the_environment(expect, monkeypatch):
        monkeypatch.delenv("SERMAP_LOG_LEVEL", raising=False)
        expect(resolve_env_log_level()) == None

        monkeypatch.setenv("SERMAP_LOG_LEVEL", "error")
        expect(resolve_env_log_level()) == logging.ERROR

    def installs_a_single_rich_handler(expect):
        logger = logging.getLogger("sermap")
        configure_logging(logging.DEBUG)
        configure_logging(logging.INFO)

        handlers = [h for h in logger.handlers if isinstance(h, RichHandler)]
        expect(len(handlers)) == 1
        expect(logger.level) == logging.INFO
