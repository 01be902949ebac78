"""Type-graph introspection for mapped Python classes.

These helpers describe the structure that discovery walks: the declared
fields of a class, its generic bases and type parameters, and the classes
reachable from an arbitrary annotation.
"""

import dataclasses
import inspect
import sys
import types
import typing
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Any, ClassVar, TypeVar, Union, get_args, get_origin

# Key in dataclass field metadata marking a field as not serialized
TRANSIENT_KEY = "sermap_transient"

PRIMITIVE_TYPES: frozenset[type] = frozenset([bool, int, float, complex, str, bytes, type(None)])


def is_primitive(t: type) -> bool:
    """Check if a class is a primitive value type."""
    return t in PRIMITIVE_TYPES


def is_interface(t: type) -> bool:
    """Check if a class only describes behavior (a Protocol or an abstract class)."""
    return bool(getattr(t, "_is_protocol", False)) or inspect.isabstract(t)


def is_mapping(t: type | None) -> bool:
    return isinstance(t, type) and issubclass(t, Mapping)


def qualified_name(t: type) -> str:
    """Return the dotted `module.qualname` of a class."""
    if t.__module__ == "builtins":
        return t.__qualname__
    return f"{t.__module__}.{t.__qualname__}"


def strip_annotated(annotation: Any) -> Any:
    """Remove an `Annotated[...]` wrapper, keeping the annotated type."""
    while get_origin(annotation) is Annotated:
        annotation = get_args(annotation)[0]
    return annotation


def annotated_extras(annotation: Any) -> tuple[Any, ...]:
    """Return the metadata attached with `Annotated[T, ...]`."""
    if get_origin(annotation) is Annotated:
        return tuple(annotation.__metadata__)
    return ()


def strip_optional(annotation: Any) -> Any:
    """Remove `Annotated` and a `None` alternative, so `Optional[list[T]]` becomes `list[T]`.

    Unions of more than one real alternative are returned unchanged.
    """
    annotation = strip_annotated(annotation)
    if get_origin(annotation) in (Union, types.UnionType):
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return strip_annotated(args[0])
    return annotation


def raw_class(annotation: Any) -> type | None:
    """Return the class behind an annotation, or None if there is none."""
    annotation = strip_optional(annotation)
    origin = get_origin(annotation)
    if origin in (Union, types.UnionType):
        return None
    if isinstance(origin, type):
        return origin
    if isinstance(annotation, type):
        return annotation
    return None


@dataclass(frozen=True)
class FieldInfo:
    """Describes one annotation declared directly on a class."""

    declaring_class: type
    name: str
    annotation: Any
    is_static: bool = False
    is_transient: bool = False
    is_synthetic: bool = False
    is_enum_constant: bool = False
    dataclass_field: dataclasses.Field | None = field(default=None, compare=False, repr=False)

    @property
    def generic_type(self) -> Any:
        """The annotation without `Annotated` extras."""
        return strip_annotated(self.annotation)

    @property
    def type(self) -> type | None:
        """The raw class of the field, e.g. `list` for `list[int]`."""
        return raw_class(self.annotation)

    @property
    def extras(self) -> tuple[Any, ...]:
        return annotated_extras(self.annotation)

    @property
    def metadata(self) -> Mapping[str, Any]:
        if self.dataclass_field is None:
            return {}
        return self.dataclass_field.metadata

    @property
    def is_excluded(self) -> bool:
        """Excluded fields never carry mapping effects."""
        return self.is_enum_constant or self.is_static or self.is_transient or self.is_synthetic


def _is_class_var(annotation: Any) -> bool:
    annotation = strip_annotated(annotation)
    if annotation is ClassVar or get_origin(annotation) is ClassVar:
        return True
    # Unresolvable string annotations
    return isinstance(annotation, str) and annotation.startswith(("ClassVar", "typing.ClassVar"))


def _own_hints(cls: type, own: Mapping[str, Any]) -> dict[str, Any]:
    """Resolve the annotations a class declares itself.

    When the class as a whole cannot be resolved, each annotation is
    evaluated on its own; one that still fails stays a string.
    """
    try:
        return typing.get_type_hints(cls, include_extras=True)
    except (NameError, TypeError, AttributeError):
        pass

    module = sys.modules.get(cls.__module__)
    globalns = dict(vars(module)) if module is not None else {}
    localns = dict(vars(cls))
    hints = {}
    for name, raw in own.items():
        if not isinstance(raw, str):
            hints[name] = raw
            continue
        try:
            hints[name] = eval(raw, globalns, localns)  # pylint: disable=eval-used
        except (NameError, AttributeError, TypeError, SyntaxError):
            hints[name] = raw
    return hints


def declared_fields(cls: type) -> list[FieldInfo]:
    """Return the fields a class declares itself, in declaration order.

    Inherited annotations are not included; they belong to the base that
    declares them.
    """
    own = inspect.get_annotations(cls)
    if not own:
        return []

    hints = _own_hints(cls, own)

    dc_fields: dict[str, dataclasses.Field] = {}
    if dataclasses.is_dataclass(cls):
        dc_fields = {f.name: f for f in dataclasses.fields(cls)}

    members: Mapping[str, Any] = {}
    if isinstance(cls, type) and issubclass(cls, Enum):
        members = cls.__members__

    result = []
    for name, raw in own.items():
        annotation = hints.get(name, raw)
        dc_field = dc_fields.get(name)
        transient = isinstance(strip_annotated(annotation), dataclasses.InitVar)
        if dc_field is not None and dc_field.metadata.get(TRANSIENT_KEY):
            transient = True
        result.append(
            FieldInfo(
                declaring_class=cls,
                name=name,
                annotation=annotation,
                is_static=_is_class_var(annotation),
                is_transient=transient,
                is_synthetic=name.startswith("__") and name.endswith("__"),
                is_enum_constant=name in members,
                dataclass_field=dc_field,
            )
        )
    return result


def generic_bases(cls: type) -> tuple[Any, ...]:
    """Return the bases of a class as written, including generic parameters."""
    return cls.__dict__.get("__orig_bases__", cls.__bases__)


def walk_reachable(root: Any, add: Callable[[type], Any]) -> None:
    """Feed every class structurally reachable from an annotation into `add`.

    Classes found below the root (bases, bounds, generic arguments) are
    handed to `add` but not walked further; the caller decides whether to
    visit them. The walk itself keeps a visited set so cyclic bounds such as
    `T = TypeVar("T", bound="Node[T]")` terminate.
    """
    visited: set[Any] = set()
    pending: list[Any] = [root]
    first = True

    while pending:
        current = pending.pop(0)
        if current is None or current is Ellipsis or isinstance(current, str):
            continue
        try:
            if current in visited:
                continue
            visited.add(current)
        except TypeError:
            # unhashable Annotated metadata
            pass

        if isinstance(current, type) and get_origin(current) is None:
            add(current)
            if first and not is_primitive(current):
                pending.extend(getattr(current, "__parameters__", ()))
                pending.extend(generic_bases(current))
        elif isinstance(current, TypeVar):
            if current.__bound__ is not None:
                pending.append(current.__bound__)
            pending.extend(current.__constraints__)
        elif isinstance(current, typing.ForwardRef):
            pass
        else:
            origin = get_origin(current)
            if origin is Annotated:
                pending.append(get_args(current)[0])
            elif origin is not None:
                if isinstance(origin, type):
                    pending.append(origin)
                pending.extend(get_args(current))
            elif isinstance(current, dataclasses.InitVar):
                pending.append(current.type)
        first = False
