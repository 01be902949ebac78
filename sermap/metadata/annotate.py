"""Python-native declaration of mapping metadata.

Class metadata is attached with decorators, field metadata with
`sermap_field()` on dataclasses or with `typing.Annotated` extras.

Example:
    @alias("person")
    @converter(TimestampConverter, strings=("%Y",))
    @dataclass
    class Person:
        name: str = sermap_field(attribute=True)
        nick: Annotated[str, Alias("n")] = ""
        phones: list[Phone] = sermap_field(implicit=Implicit("phone"), default_factory=list)
"""

from collections.abc import Callable
from dataclasses import field
from typing import Any, TypeVar

from ..core.typeinfo import TRANSIENT_KEY
from .types import Alias, AliasType, AsAttribute, Converters, ConverterSpec, Implicit, Include, OmitField

# Class attribute holding the metadata declared directly on a class
METADATA_ATTR = "__sermap_metadata__"

# Key in dataclass field metadata holding the field's metadata instances
FIELD_METADATA_KEY = "sermap"

C = TypeVar("C", bound=type)

# Sentinel for missing default
_MISSING: Any = object()


def _own_metadata(cls: type) -> dict[type, Any]:
    metadata = cls.__dict__.get(METADATA_ATTR)
    if metadata is None:
        metadata = {}
        setattr(cls, METADATA_ATTR, metadata)
    return metadata


def declare(*instances: Any) -> Callable[[C], C]:
    """Attach metadata instances to a class."""

    def decorator(cls: C) -> C:
        metadata = _own_metadata(cls)
        for instance in instances:
            if isinstance(instance, ConverterSpec):
                existing = metadata.get(Converters, Converters())
                metadata[Converters] = Converters((instance, *existing.specs))
            else:
                metadata[type(instance)] = instance
        return cls

    return decorator


def alias(value: str, *, impl: type | None = None) -> Callable[[C], C]:
    """Serialize a class under a short name, optionally with a default implementation."""
    return declare(Alias(value, impl))


def alias_type(value: str) -> Callable[[C], C]:
    """Serialize a class and its subclasses under a short name."""
    return declare(AliasType(value))


def converter(kind: type, **options: Any) -> Callable[[C], C]:
    """Register a converter for a class when the class is discovered.

    Decorators apply bottom-up; converters keep their source order.
    """
    return declare(ConverterSpec(kind, **options))


def include(*types: type) -> Callable[[C], C]:
    """Discover further classes together with the decorated one."""
    return declare(Include(tuple(types)))


def sermap_field(
    *,
    alias: str | None = None,
    attribute: bool = False,
    implicit: Implicit | bool = False,
    omit: bool = False,
    converter: ConverterSpec | None = None,
    transient: bool = False,
    default: Any = _MISSING,
    default_factory: Any = _MISSING,
) -> Any:
    """Define a dataclass field with mapping metadata.

    Args:
        alias: Serialized name of the field.
        attribute: Serialize as an attribute of the owner.
        implicit: Serialize as bare child elements; `True` or an `Implicit`.
        omit: Never serialize the field.
        converter: Converter used for this field only.
        transient: Exclude the field from discovery entirely.
        default: Default value for the field.
        default_factory: Factory function for the default value.

    Returns:
        A dataclass field with the metadata attached.
    """
    instances: list[Any] = []
    if alias is not None:
        instances.append(Alias(alias))
    if attribute:
        instances.append(AsAttribute())
    if implicit:
        instances.append(implicit if isinstance(implicit, Implicit) else Implicit())
    if omit:
        instances.append(OmitField())
    if converter is not None:
        instances.append(converter)

    metadata: dict[str, Any] = {FIELD_METADATA_KEY: tuple(instances)}
    if transient:
        metadata[TRANSIENT_KEY] = True

    if default is not _MISSING:
        return field(default=default, metadata=metadata)
    if default_factory is not _MISSING:
        return field(default_factory=default_factory, metadata=metadata)
    return field(metadata=metadata)
