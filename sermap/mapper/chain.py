"""Assembly of the default mapper chain."""

from ..converters import DefaultConverterLookup
from ..core.reflection import ReflectionProvider
from ..core.resolver import TypeResolver
from ..metadata.reader import MetadataReader
from ..settings import MapperSettings
from .annotations import AnnotationMapper
from .base import DefaultMapper, Mapper
from .ignoring import ElementIgnoringMapper
from .stages import (
    AttributeMapper,
    ClassAliasingMapper,
    DefaultImplementationsMapper,
    FieldAliasingMapper,
    ImplicitCollectionMapper,
    LocalConversionMapper,
)


def build_mapper(
    settings: MapperSettings | None = None,
    converter_lookup: DefaultConverterLookup | None = None,
    metadata_reader: MetadataReader | None = None,
    resolver: TypeResolver | None = None,
) -> AnnotationMapper:
    """Build the default chain, innermost first.

    DefaultMapper <- ClassAliasingMapper <- DefaultImplementationsMapper
    <- ImplicitCollectionMapper <- FieldAliasingMapper <- ElementIgnoringMapper
    <- AttributeMapper <- LocalConversionMapper <- AnnotationMapper
    """
    settings = settings or MapperSettings()
    resolver = resolver or TypeResolver()
    converter_lookup = converter_lookup or DefaultConverterLookup()

    mapper: Mapper = DefaultMapper(resolver)
    mapper = ClassAliasingMapper(mapper)
    mapper = DefaultImplementationsMapper(mapper)
    mapper = ImplicitCollectionMapper(mapper)
    mapper = FieldAliasingMapper(mapper)
    ignoring = ElementIgnoringMapper(mapper)
    for pattern in settings.ignored_elements:
        ignoring.add_elements_to_ignore(pattern)
    mapper = AttributeMapper(ignoring)
    mapper = LocalConversionMapper(mapper)

    return AnnotationMapper.from_settings(
        mapper,
        converter_lookup,
        converter_lookup,
        settings,
        resolver=resolver,
        reflection_provider=ReflectionProvider(),
        metadata_reader=metadata_reader,
    )
