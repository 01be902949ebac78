"""Declaration tables: mapping metadata kept outside the mapped classes.

A table is parsed with Lark into plain declaration records; the
`DeclarationTableReader` turns them into metadata on demand, resolving the
dotted names it contains.
"""

import ast
import os
import threading
from dataclasses import dataclass, field
from typing import Any, TypeVar

from dataclasses_json import DataClassJsonMixin
from lark import Lark
from lark.exceptions import LarkError
from lark.visitors import Transformer

from ..core.resolver import CannotResolveClassError, TypeResolver
from ..core.typeinfo import FieldInfo, qualified_name
from .reader import MetadataReader
from .types import (
    Alias,
    AliasType,
    AsAttribute,
    Converters,
    ConverterSpec,
    Implicit,
    Include,
    InitializationError,
    OmitField,
)

_g_parser: Lark | None = None

K = TypeVar("K")


class ValidationError(InitializationError):
    """Raised when a declaration table is malformed."""


@dataclass
class ConverterDeclaration(DataClassJsonMixin):
    """A converter named in a declaration table."""

    kind: str
    arguments: dict[str, list[Any]] = field(default_factory=dict)
    priority: int | None = None
    use_implicit_type: bool | None = None


@dataclass
class FieldDeclaration(DataClassJsonMixin):
    """Effects declared for one field."""

    name: str
    alias: str | None = None
    attribute: bool = False
    implicit: bool = False
    item_field_name: str | None = None
    key_field_name: str | None = None
    omit: bool = False
    converter: ConverterDeclaration | None = None


@dataclass
class TypeDeclaration(DataClassJsonMixin):
    """Effects declared for one class, identified by its dotted name."""

    name: str
    alias: str | None = None
    impl: str | None = None
    alias_type: str | None = None
    converters: list[ConverterDeclaration] = field(default_factory=list)
    includes: list[str] = field(default_factory=list)
    fields: list[FieldDeclaration] = field(default_factory=list)


@dataclass
class _Name:
    value: str


@dataclass
class _Impl:
    value: str


@dataclass
class _TypeAlias:
    value: str
    impl: str | None


@dataclass
class _AliasType:
    value: str


@dataclass
class _Includes:
    names: list[str]


@dataclass
class _Arguments:
    values: dict[str, list[Any]]


@dataclass
class _Option:
    name: str
    value: Any


@dataclass
class _Effect:
    name: str
    value: Any = None


class TreeTransformer(Transformer):
    """Transform parse tree into declaration records."""

    def start(self, args: list[Any]) -> list[TypeDeclaration]:
        return list(args)

    def type_decl(self, args: list[Any]) -> TypeDeclaration:
        name = args[0].value
        decl = TypeDeclaration(name=name)
        for item in args[1:]:
            if isinstance(item, _TypeAlias):
                decl.alias = item.value
                decl.impl = item.impl
            elif isinstance(item, _AliasType):
                decl.alias_type = item.value
            elif isinstance(item, _Includes):
                decl.includes.extend(item.names)
            elif isinstance(item, ConverterDeclaration):
                decl.converters.append(item)
            elif isinstance(item, FieldDeclaration):
                decl.fields.append(item)
        return decl

    def type_alias(self, args: list[Any]) -> _TypeAlias:
        impl = args[1].value if len(args) > 1 and args[1] is not None else None
        return _TypeAlias(value=_string(args[0]), impl=impl)

    def impl(self, args: list[Any]) -> _Impl:
        return _Impl(value=args[0].value)

    def alias_type(self, args: list[Any]) -> _AliasType:
        return _AliasType(value=_string(args[0]))

    def include_decl(self, args: list[Any]) -> _Includes:
        return _Includes(names=[a.value for a in args])

    def converter_decl(self, args: list[Any]) -> ConverterDeclaration:
        return args[0]

    def converter_ref(self, args: list[Any]) -> ConverterDeclaration:
        decl = ConverterDeclaration(kind=args[0].value)
        for item in args[1:]:
            if isinstance(item, _Arguments):
                decl.arguments = item.values
            elif isinstance(item, _Option):
                setattr(decl, item.name, item.value)
        return decl

    def converter_args(self, args: list[Any]) -> _Arguments:
        values: dict[str, list[Any]] = {}
        for name, literals in (a for a in args if a is not None):
            if name in values:
                raise ValidationError(f"Converter argument {name} given twice")
            values[name] = literals
        return _Arguments(values)

    def converter_arg(self, args: list[Any]) -> tuple[str, list[Any]]:
        return (str(args[0]), [a for a in args[1:] if a is not None])

    def priority(self, args: list[Any]) -> _Option:
        return _Option("priority", int(args[0]))

    def implicit_type(self, args: list[Any]) -> _Option:
        return _Option("use_implicit_type", args[0])

    def field_decl(self, args: list[Any]) -> FieldDeclaration:
        decl = FieldDeclaration(name=str(args[0]))
        for effect in args[1:]:
            if effect.name == "implicit":
                decl.implicit = True
                for key, value in effect.value:
                    setattr(decl, key, value)
            else:
                setattr(decl, effect.name, effect.value)
        return decl

    def field_alias(self, args: list[Any]) -> _Effect:
        return _Effect("alias", _string(args[0]))

    def field_attribute(self, args: list[Any]) -> _Effect:
        return _Effect("attribute", True)

    def field_implicit(self, args: list[Any]) -> _Effect:
        return _Effect("implicit", list(args))

    def field_omit(self, args: list[Any]) -> _Effect:
        return _Effect("omit", True)

    def field_converter(self, args: list[Any]) -> _Effect:
        return _Effect("converter", args[0])

    def implicit_item(self, args: list[Any]) -> tuple[str, str]:
        return ("item_field_name", _string(args[0]))

    def implicit_key(self, args: list[Any]) -> tuple[str, str]:
        return ("key_field_name", _string(args[0]))

    def string_literal(self, args: list[Any]) -> str:
        return _string(args[0])

    def number_literal(self, args: list[Any]) -> int | float:
        text = str(args[0])
        if any(c in text for c in ".eE"):
            return float(text)
        return int(text)

    def bool_literal(self, args: list[Any]) -> bool:
        return args[0]

    def name_literal(self, args: list[Any]) -> _Name:
        return args[0]

    def boolean(self, args: list[Any]) -> bool:
        return str(args[0]) == "true"

    def dotted_name(self, args: list[Any]) -> _Name:
        return _Name(".".join(str(a) for a in args))


def _string(token: Any) -> str:
    return ast.literal_eval(str(token))


def validate(declarations: list[TypeDeclaration]) -> None:
    """Validate parsed declarations."""
    seen: set[str] = set()
    for decl in declarations:
        if decl.name in seen:
            raise ValidationError(f"{decl.name} declared more than once")
        seen.add(decl.name)

        field_names: set[str] = set()
        for field_decl in decl.fields:
            if field_decl.name in field_names:
                raise ValidationError(f"Field {decl.name}.{field_decl.name} declared more than once")
            field_names.add(field_decl.name)

        for conv in decl.converters + [f.converter for f in decl.fields if f.converter]:
            unknown = set(conv.arguments) - set(ConverterSpec.LITERAL_ORDER) - {"nulls"}
            if unknown:
                raise ValidationError(
                    f"Converter {conv.kind} in {decl.name} has unknown arguments: {', '.join(sorted(unknown))}"
                )


def parse_declarations(text: str) -> list[TypeDeclaration]:
    """Parse a declaration table."""
    global _g_parser

    if not _g_parser:
        with open(f"{os.path.dirname(__file__)}/declarations.lark", encoding="utf-8") as f:
            grammar = f.read()
        _g_parser = Lark(grammar, parser="lalr")

    try:
        tree = _g_parser.parse(text)
        declarations = TreeTransformer().transform(tree)
    except ValidationError:
        raise
    except LarkError as e:
        if isinstance(getattr(e, "orig_exc", None), ValidationError):
            raise e.orig_exc from None
        raise ValidationError(f"Invalid declaration table: {e}") from e

    validate(declarations)
    return declarations


class DeclarationTableReader(MetadataReader):
    """Serves metadata from parsed declaration tables.

    Classes are matched by their dotted `module.qualname`. Dotted names
    inside the table are resolved when the metadata is first requested.
    """

    def __init__(self, declarations: list[TypeDeclaration], resolver: TypeResolver | None = None) -> None:
        validate(declarations)
        self.resolver = resolver or TypeResolver()
        self._types = {decl.name: decl for decl in declarations}
        self._cache: dict[tuple[str, str | None, type], Any] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_text(cls, text: str, resolver: TypeResolver | None = None) -> "DeclarationTableReader":
        return cls(parse_declarations(text), resolver)

    @classmethod
    def from_file(cls, path: str, resolver: TypeResolver | None = None) -> "DeclarationTableReader":
        with open(path, encoding="utf-8") as f:
            return cls.from_text(f.read(), resolver)

    @property
    def declared_names(self) -> list[str]:
        return list(self._types)

    def get(self, target: type | FieldInfo, kind: type[K]) -> K | None:
        if isinstance(target, FieldInfo):
            key = (qualified_name(target.declaring_class), target.name, kind)
        else:
            key = (qualified_name(target), None, kind)

        with self._lock:
            if key in self._cache:
                return self._cache[key]

        decl = self._types.get(key[0])
        result = None
        if decl is not None:
            if key[1] is None:
                result = self._type_metadata(decl, kind)
            else:
                field_decl = next((f for f in decl.fields if f.name == key[1]), None)
                if field_decl is not None:
                    result = self._field_metadata(field_decl, kind)

        with self._lock:
            return self._cache.setdefault(key, result)

    def _type_metadata(self, decl: TypeDeclaration, kind: type) -> Any:
        if kind is Alias and decl.alias is not None:
            return Alias(decl.alias, self._resolve(decl.impl, decl.name) if decl.impl else None)
        if kind is AliasType and decl.alias_type is not None:
            return AliasType(decl.alias_type)
        if kind is Include and decl.includes:
            return Include(tuple(self._resolve(name, decl.name) for name in decl.includes))
        if kind is Converters and decl.converters:
            return Converters(tuple(self._converter_spec(c, decl.name) for c in decl.converters))
        return None

    def _field_metadata(self, decl: FieldDeclaration, kind: type) -> Any:
        if kind is Alias and decl.alias is not None:
            return Alias(decl.alias)
        if kind is AsAttribute and decl.attribute:
            return AsAttribute()
        if kind is Implicit and decl.implicit:
            return Implicit(decl.item_field_name, decl.key_field_name)
        if kind is OmitField and decl.omit:
            return OmitField()
        if kind is ConverterSpec and decl.converter is not None:
            return self._converter_spec(decl.converter, decl.name)
        return None

    def _converter_spec(self, decl: ConverterDeclaration, context: str) -> ConverterSpec:
        options: dict[str, Any] = {}
        for category, values in decl.arguments.items():
            if category in ("types", "nulls"):
                options[category] = tuple(self._resolve(_name_of(v, decl.kind), context) for v in values)
            else:
                for v in values:
                    if isinstance(v, _Name):
                        raise ValidationError(f"Converter {decl.kind}: {category} cannot hold the name {v.value}")
                options[category] = tuple(values)
        if decl.priority is not None:
            options["priority"] = decl.priority
        if decl.use_implicit_type is not None:
            options["use_implicit_type"] = decl.use_implicit_type
        return ConverterSpec(self._resolve(decl.kind, context), **options)

    def _resolve(self, name: str, context: str) -> type:
        try:
            return self.resolver.resolve(name)
        except CannotResolveClassError as e:
            raise InitializationError(f"Declarations for {context}: {e}") from e


def _name_of(value: Any, kind: str) -> str:
    if not isinstance(value, _Name):
        raise ValidationError(f"Converter {kind}: expected a class name, got {value!r}")
    return value.value
