"""Dependency injection for converter construction.

A converter class may be built through `__init__` or through any
classmethod decorated with `@constructor`. Every shape is matched against
the offered arguments by parameter annotation and the shape that consumes
the most arguments is used.
"""

import inspect
import types
import typing
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar, Union, get_args, get_origin

T = TypeVar("T")

_CONSTRUCTOR_MARK = "__sermap_constructor__"


class ConstructionError(RuntimeError):
    """Raised when no constructor shape of a class fits the offered arguments."""


@dataclass(frozen=True)
class TypedNull:
    """A `None` argument that only fits parameters accepting values of `type`."""

    type: type


def constructor(func: Callable[..., T]) -> Callable[..., T]:
    """Mark a classmethod as an alternative constructor shape.

    Example:
        class PatternConverter(SingleValueConverter):
            @classmethod
            @constructor
            def from_flags(cls, pattern: str, flags: int) -> "PatternConverter":
                ...
    """
    setattr(func, _CONSTRUCTOR_MARK, True)
    return func


@dataclass(frozen=True)
class _Shape:
    factory: Callable[..., Any]
    parameters: tuple[inspect.Parameter, ...]
    hints: dict[str, Any]


def _shapes(cls: type) -> list[_Shape]:
    shapes = []
    candidates: list[tuple[Callable[..., Any], Callable[..., Any]]] = [(cls, cls.__init__)]
    for name, attr in inspect.getmembers(cls):
        func = getattr(attr, "__func__", None)
        if func is not None and getattr(func, _CONSTRUCTOR_MARK, False):
            candidates.append((getattr(cls, name), func))

    for factory, func in candidates:
        try:
            signature = inspect.signature(func)
        except (TypeError, ValueError):
            continue
        try:
            hints = typing.get_type_hints(func)
        except (NameError, TypeError):
            hints = {}
        params = tuple(signature.parameters.values())[1:]  # self / cls
        params = tuple(
            p for p in params if p.kind not in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
        )
        shapes.append(_Shape(factory, params, hints))
    return shapes


def _accepted_types(annotation: Any) -> tuple[type, ...] | None:
    """Return the classes a parameter accepts, or None for anything."""
    if annotation is inspect.Parameter.empty or annotation is Any:
        return None
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        accepted: list[type] = []
        for arg in get_args(annotation):
            sub = _accepted_types(arg)
            if sub is None:
                return None
            accepted.extend(sub)
        return tuple(accepted)
    if origin is typing.Annotated:
        return _accepted_types(get_args(annotation)[0])
    if isinstance(origin, type):
        return (origin,)
    if isinstance(annotation, type):
        return (annotation,)
    return None


def _matches(accepted: tuple[type, ...] | None, value: Any, exact: bool) -> bool:
    if isinstance(value, TypedNull):
        if accepted is None:
            return not exact
        return any(_is_subclass(value.type, a) for a in accepted)
    if accepted is None:
        return not exact
    if exact:
        return type(value) in accepted
    for a in accepted:
        try:
            if isinstance(value, a):
                return True
        except TypeError:
            # non runtime-checkable protocols
            continue
    return False


def _is_subclass(cls: type, parent: type) -> bool:
    try:
        return issubclass(cls, parent)
    except TypeError:
        return False


@dataclass
class _Binding:
    positional: list[Any]
    keywords: dict[str, Any]
    used: int

    @property
    def size(self) -> int:
        return len(self.positional) + len(self.keywords)


def _bind(shape: _Shape, args: Sequence[Any]) -> _Binding | None:
    used = [False] * len(args)
    binding = _Binding([], {}, 0)
    skipped = False
    for param in shape.parameters:
        accepted = _accepted_types(shape.hints.get(param.name, param.annotation))
        index = None
        for exact in (True, False):
            index = next(
                (i for i, arg in enumerate(args) if not used[i] and _matches(accepted, arg, exact)),
                None,
            )
            if index is not None:
                break
        if index is None:
            if param.default is inspect.Parameter.empty:
                return None
            skipped = True
            continue
        used[index] = True
        value = None if isinstance(args[index], TypedNull) else args[index]
        if param.kind is inspect.Parameter.POSITIONAL_ONLY:
            if skipped:
                # cannot pass a later positional-only parameter past a default
                used[index] = False
                continue
            binding.positional.append(value)
        else:
            binding.keywords[param.name] = value
    binding.used = sum(used)
    return binding


def new_instance(cls: type[T], args: Sequence[Any] = ()) -> T:
    """Instantiate a class, injecting arguments by parameter annotation.

    Args:
        cls: The class to construct.
        args: Candidate arguments, earlier entries preferred.

    Returns:
        The new instance.

    Raises:
        ConstructionError: If no constructor shape can be satisfied, or the
            chosen one raises.
    """
    best: tuple[_Shape, _Binding] | None = None
    for shape in _shapes(cls):
        binding = _bind(shape, args)
        if binding is None:
            continue
        if best is None or (binding.used, binding.size) > (best[1].used, best[1].size):
            best = (shape, binding)

    if best is None:
        names = ", ".join(type(a).__name__ for a in args)
        raise ConstructionError(f"No constructor of {cls.__qualname__} accepts arguments ({names})")

    shape, binding = best
    try:
        return shape.factory(*binding.positional, **binding.keywords)
    except Exception as e:
        raise ConstructionError(f"Constructing {cls.__qualname__} failed: {e}") from e
