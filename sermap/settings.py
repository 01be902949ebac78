"""Mapper configuration."""

from dataclasses import dataclass, field

from dataclasses_json import DataClassJsonMixin

# Modules whose classes never carry mapping metadata
DEFAULT_EXCLUDED_MODULES: tuple[str, ...] = (
    "builtins",
    "typing",
    "typing_extensions",
    "collections",
    "abc",
    "enum",
    "dataclasses",
    "datetime",
    "decimal",
    "fractions",
    "numbers",
    "uuid",
    "pathlib",
    "types",
    "re",
    "ipaddress",
)


@dataclass
class MapperSettings(DataClassJsonMixin):
    """Settings for building a mapper chain.

    `excluded_modules` are matched as module prefixes: "collections" also
    excludes "collections.abc". `ignored_elements` are regular expressions
    that must match a whole element name.
    """

    auto_discovery: bool = True
    excluded_modules: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDED_MODULES))
    ignored_elements: list[str] = field(default_factory=list)


def load_settings(path: str) -> MapperSettings:
    """Load settings from a JSON file; missing keys keep their defaults."""
    with open(path, encoding="utf-8") as f:
        return MapperSettings.from_json(f.read())
