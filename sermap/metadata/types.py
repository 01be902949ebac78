"""Metadata kinds understood by mapping discovery.

A metadata reader returns at most one instance of each kind for a class or
a field. How the instances are declared is up to the reader.
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar

from ..converters import PRIORITY_NORMAL
from ..core.injection import TypedNull


class InitializationError(RuntimeError):
    """Raised when mapping configuration is invalid or incomplete."""


@dataclass(frozen=True)
class Alias:
    """Short serialized name of a class or field.

    On a class, `impl` binds a default implementation for the class.
    """

    value: str
    impl: type | None = None


@dataclass(frozen=True)
class AliasType:
    """Serialized name shared by a class and all of its subclasses."""

    value: str


@dataclass(frozen=True)
class AsAttribute:
    """Serialize a field as an attribute of its owner's node."""


@dataclass(frozen=True)
class OmitField:
    """Never serialize a field."""


@dataclass(frozen=True)
class Implicit:
    """Serialize a collection field as bare child elements.

    For mapping fields `key_field_name` names the member of the values that
    holds the key.
    """

    item_field_name: str | None = None
    key_field_name: str | None = None


@dataclass(frozen=True)
class Include:
    """Classes discovered whenever the carrying class is discovered."""

    types: tuple[type, ...]


_INT_RANGES = {
    "bytes": (-(2**7), 2**7 - 1),
    "shorts": (-(2**15), 2**15 - 1),
    "ints": (-(2**31), 2**31 - 1),
    "longs": (-(2**63), 2**63 - 1),
}


def _check_literal(category: str, value: Any) -> bool:
    if category == "booleans":
        return isinstance(value, bool)
    if category in _INT_RANGES:
        low, high = _INT_RANGES[category]
        return isinstance(value, int) and not isinstance(value, bool) and low <= value <= high
    if category == "chars":
        return isinstance(value, str) and len(value) == 1
    if category in ("doubles", "floats"):
        return isinstance(value, int | float) and not isinstance(value, bool)
    if category == "strings":
        return isinstance(value, str)
    # types, nulls
    return isinstance(value, type)


@dataclass(frozen=True)
class ConverterSpec:
    """Declares a converter, either for a class or locally for one field.

    The literal arguments are offered to the converter's constructor in the
    order of `LITERAL_ORDER`, followed by one `TypedNull` per entry of
    `nulls`. With `use_implicit_type` the annotated type is offered first.
    """

    LITERAL_ORDER: ClassVar[tuple[str, ...]] = (
        "booleans",
        "bytes",
        "chars",
        "doubles",
        "floats",
        "ints",
        "longs",
        "shorts",
        "strings",
        "types",
    )

    value: type
    priority: int = PRIORITY_NORMAL
    use_implicit_type: bool = True
    booleans: tuple[bool, ...] = ()
    bytes: tuple[int, ...] = ()
    chars: tuple[str, ...] = ()
    doubles: tuple[float, ...] = ()
    floats: tuple[float, ...] = ()
    ints: tuple[int, ...] = ()
    longs: tuple[int, ...] = ()
    shorts: tuple[int, ...] = ()
    strings: tuple[str, ...] = ()
    types: tuple[type, ...] = ()
    nulls: tuple[type, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.value, type):
            raise InitializationError(f"Converter kind must be a class, got {self.value!r}")
        for category in (*self.LITERAL_ORDER, "nulls"):
            values = getattr(self, category)
            if isinstance(values, list):
                values = tuple(values)
                object.__setattr__(self, category, values)
            if not isinstance(values, tuple):
                raise InitializationError(
                    f"Converter {self.value.__qualname__}: {category} must be a sequence, got {values!r}"
                )
            for v in values:
                if not _check_literal(category, v):
                    raise InitializationError(
                        f"Converter {self.value.__qualname__}: invalid value {v!r} in {category}"
                    )

    def literal_arguments(self) -> list[tuple[str, Any]]:
        """Return the literal arguments tagged with their category, in order."""
        result: list[tuple[str, Any]] = []
        for category in self.LITERAL_ORDER:
            result.extend((category, v) for v in getattr(self, category))
        result.extend(("nulls", TypedNull(t)) for t in self.nulls)
        return result


@dataclass(frozen=True)
class Converters:
    """Converters a class declares for the shared converter registry."""

    specs: tuple[ConverterSpec, ...] = field(default_factory=tuple)


METADATA_KINDS: tuple[type, ...] = (
    Alias,
    AliasType,
    AsAttribute,
    ConverterSpec,
    Converters,
    Implicit,
    Include,
    OmitField,
)
