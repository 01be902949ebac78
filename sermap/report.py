"""Summaries of the mapping a chain applies to a set of classes."""

from dataclasses import dataclass, field

from dataclasses_json import DataClassJsonMixin

from .core.typeinfo import qualified_name
from .mapper.annotations import AnnotationMapper
from .mapper.base import Mapper
from .mapper.ignoring import ElementIgnoringMapper


@dataclass
class FieldReport(DataClassJsonMixin):
    """How one field is written."""

    name: str
    serialized_name: str
    role: str  # element, attribute, implicit, omitted
    item_name: str | None = None
    key_field: str | None = None
    converter: str | None = None


@dataclass
class TypeReport(DataClassJsonMixin):
    """How one class is written."""

    name: str
    serialized_name: str
    default_implementation: str | None = None
    fields: list[FieldReport] = field(default_factory=list)


@dataclass
class MappingReport(DataClassJsonMixin):
    """Mapping of every discovered class."""

    types: list[TypeReport]
    ignored_patterns: list[str] = field(default_factory=list)


def _field_report(mapper: Mapper, owner: type, name: str) -> FieldReport:
    report = FieldReport(name=name, serialized_name=mapper.serialized_member(owner, name), role="element")
    implicit = mapper.implicit_collection_for(owner, name)
    if not mapper.should_serialize_member(owner, name):
        report.role = "omitted"
    elif mapper.use_attribute_for(owner, name):
        report.role = "attribute"
    elif implicit is not None:
        report.role = "implicit"
        report.item_name = implicit.item_field_name
        report.key_field = implicit.key_field_name
    converter = mapper.get_local_converter(owner, name)
    if converter is not None:
        report.converter = type(converter).__qualname__
    return report


def build_report(mapper: AnnotationMapper, types: list[type]) -> MappingReport:
    """Run discovery for the classes and describe the resulting mapping.

    Every class reached by discovery is reported, not only the given ones.
    Classes are sorted by dotted name.
    """
    mapper.process_types(*types)

    reports = []
    for type_ in sorted(mapper.processed_types, key=qualified_name):
        if type_ is object or mapper.is_excluded(type_):
            continue
        default_impl = mapper.default_implementation_of(type_)
        report = TypeReport(
            name=qualified_name(type_),
            serialized_name=mapper.serialized_class(type_),
            default_implementation=qualified_name(default_impl) if default_impl is not type_ else None,
        )
        for info in mapper.reflection_provider.declared_fields(type_):
            if info.is_excluded:
                continue
            report.fields.append(_field_report(mapper, type_, info.name))
        reports.append(report)

    ignoring = mapper.lookup_mapper_of_type(ElementIgnoringMapper)
    patterns = [p.pattern for p in ignoring.patterns] if ignoring is not None else []
    return MappingReport(types=reports, ignored_patterns=patterns)
