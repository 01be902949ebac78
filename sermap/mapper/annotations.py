"""Metadata-driven discovery of mapping effects.

The `AnnotationMapper` sits at the outside of the chain. Before answering a
query about a class it makes sure the class, and every class reachable from
it, has had its declared metadata applied to the inner stages. Each class is
processed exactly once per mapper.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from typing import Any, TypeVar, get_args

from ..converters import (
    Converter,
    ConverterLookup,
    ConverterRegistry,
    SingleValueConverter,
    SingleValueConverterWrapper,
)
from ..core.injection import ConstructionError, new_instance
from ..core.reflection import ReflectionProvider
from ..core.resolver import TypeResolver
from ..core.runtime import RuntimeInfo
from ..core.typeinfo import (
    FieldInfo,
    is_interface,
    is_mapping,
    is_primitive,
    qualified_name,
    raw_class,
    strip_optional,
    walk_reachable,
)
from ..metadata.reader import AnnotatedMetadataReader, MetadataReader
from ..metadata.types import (
    Alias,
    AliasType,
    AsAttribute,
    Converters,
    ConverterSpec,
    Implicit,
    Include,
    OmitField,
)
from ..settings import DEFAULT_EXCLUDED_MODULES, MapperSettings
from .base import ImplicitCollectionMapping, InitializationError, Mapper, MapperWrapper
from .ignoring import ElementIgnoringMapper
from .stages import (
    AttributeMapper,
    ClassAliasingMapper,
    DefaultImplementationsMapper,
    FieldAliasingMapper,
    ImplicitCollectionMapper,
    LocalConversionMapper,
)

logger = logging.getLogger(__name__)

S = TypeVar("S", bound=Mapper)


class _UnprocessedTypes:
    """Ordered worklist of classes still waiting for discovery.

    Rejects classes that are already processed or live in an excluded
    module, and pulls in the classes named by `Include` metadata.
    """

    def __init__(self, mapper: AnnotationMapper) -> None:
        self._mapper = mapper
        self._pending: dict[type, None] = {}

    def add(self, type_: Any) -> bool:
        if not isinstance(type_, type):
            return False
        if self._mapper.is_excluded(type_) or self._mapper.is_processed(type_):
            return False
        if type_ in self._pending:
            return False
        self._pending[type_] = None
        include = self._mapper.metadata_reader.get(type_, Include)
        if include is not None:
            for included in include.types:
                self.add(included)
        return True

    def pop(self) -> type:
        type_ = next(iter(self._pending))
        del self._pending[type_]
        return type_

    def __bool__(self) -> bool:
        return bool(self._pending)


class AnnotationMapper(MapperWrapper):
    """Applies declared mapping metadata to the stages it wraps.

    Discovery runs implicitly before metadata-backed queries while auto
    discovery is enabled. With auto discovery off, classes must be
    registered up front with `process_types()`.

    Converters are built once per converter class and literal arguments and
    shared between all classes declaring them. Their constructors may ask
    for any of: this mapper, the type resolver, the reflection provider, the
    converter lookup or the runtime info.
    """

    def __init__(
        self,
        wrapped: Mapper,
        converter_registry: ConverterRegistry,
        converter_lookup: ConverterLookup,
        resolver: TypeResolver | None = None,
        reflection_provider: ReflectionProvider | None = None,
        metadata_reader: MetadataReader | None = None,
        *,
        auto_discovery: bool = True,
        excluded_modules: Iterable[str] = DEFAULT_EXCLUDED_MODULES,
    ) -> None:
        super().__init__(wrapped)
        self.converter_registry = converter_registry
        self.metadata_reader = metadata_reader or AnnotatedMetadataReader()
        self.resolver = resolver or TypeResolver()
        self.reflection_provider = reflection_provider or ReflectionProvider()
        self.excluded_modules = tuple(excluded_modules)
        self._auto_discovery = auto_discovery
        self._arguments: tuple[Any, ...] = (
            self,
            self.resolver,
            self.reflection_provider,
            converter_lookup,
            RuntimeInfo(),
        )

        self._processed: set[type] = {object}
        self._processed_lock = threading.Lock()
        self._type_locks: dict[type, threading.RLock] = {}
        self._type_locks_lock = threading.Lock()
        self._converter_cache: dict[tuple[type, tuple[tuple[str, Any], ...]], Converter] = {}
        self._converter_cache_lock = threading.Lock()

    @classmethod
    def from_settings(
        cls,
        wrapped: Mapper,
        converter_registry: ConverterRegistry,
        converter_lookup: ConverterLookup,
        settings: MapperSettings,
        **kwargs: Any,
    ) -> AnnotationMapper:
        return cls(
            wrapped,
            converter_registry,
            converter_lookup,
            auto_discovery=settings.auto_discovery,
            excluded_modules=settings.excluded_modules,
            **kwargs,
        )

    # Mode and state

    @property
    def auto_discovery(self) -> bool:
        return self._auto_discovery

    def set_auto_discovery(self, enabled: bool) -> None:
        self._auto_discovery = enabled

    def is_processed(self, type_: type) -> bool:
        return type_ in self._processed

    @property
    def processed_types(self) -> frozenset[type]:
        with self._processed_lock:
            return frozenset(self._processed)

    def is_excluded(self, type_: type) -> bool:
        module = getattr(type_, "__module__", None) or ""
        return any(module == prefix or module.startswith(prefix + ".") for prefix in self.excluded_modules)

    # Queries triggering discovery

    def serialized_class(self, type_: type) -> str:
        self._discover(type_)
        return super().serialized_class(type_)

    def serialized_member(self, type_: type, member_name: str) -> str:
        self._discover(type_)
        return super().serialized_member(type_, member_name)

    def real_member(self, type_: type, serialized: str) -> str:
        self._discover(type_)
        return super().real_member(type_, serialized)

    def default_implementation_of(self, type_: type) -> type:
        self._discover(type_)
        implementation = super().default_implementation_of(type_)
        self._discover(implementation)
        return implementation

    def get_local_converter(self, defined_in: type, field_name: str) -> Converter | None:
        self._discover(defined_in)
        return super().get_local_converter(defined_in, field_name)

    def should_serialize_member(self, defined_in: type, field_name: str) -> bool:
        self._discover(defined_in)
        return super().should_serialize_member(defined_in, field_name)

    def use_attribute_for(self, defined_in: type, field_name: str) -> bool:
        self._discover(defined_in)
        return super().use_attribute_for(defined_in, field_name)

    def implicit_collection_for(self, defined_in: type, field_name: str) -> ImplicitCollectionMapping | None:
        self._discover(defined_in)
        return super().implicit_collection_for(defined_in, field_name)

    # Discovery

    def process_types(self, *types: type) -> None:
        """Apply the metadata of the given classes and everything reachable from them.

        Registering classes explicitly switches auto discovery off; use
        `set_auto_discovery(True)` to turn it back on.
        """
        if types:
            self._auto_discovery = False
        self._process_batch(types)

    def _discover(self, type_: type | None) -> None:
        if type_ is None or not self._auto_discovery or type_ in self._processed:
            return
        self._process_batch((type_,))

    def _process_batch(self, types: Iterable[type]) -> None:
        pending = _UnprocessedTypes(self)
        for type_ in types:
            pending.add(type_)
        self._process(pending)

    def _lock_for(self, type_: type) -> threading.RLock:
        with self._type_locks_lock:
            lock = self._type_locks.get(type_)
            if lock is None:
                lock = self._type_locks[type_] = threading.RLock()
            return lock

    def _process(self, pending: _UnprocessedTypes) -> None:
        while pending:
            type_ = pending.pop()
            if type_ in self._processed:
                continue
            with self._lock_for(type_):
                if type_ in self._processed:
                    continue
                try:
                    if is_primitive(type_):
                        continue
                    logger.debug("Discovering mapping metadata of %s", qualified_name(type_))
                    walk_reachable(type_, pending.add)
                    self._process_type_metadata(type_, pending)
                    if is_interface(type_):
                        continue
                    for info in self.reflection_provider.declared_fields(type_):
                        if info.is_enum_constant or info.is_static or info.is_transient:
                            continue
                        walk_reachable(info.generic_type, pending.add)
                        if info.is_synthetic:
                            continue
                        self._process_field_metadata(info)
                finally:
                    with self._processed_lock:
                        self._processed.add(type_)

    def _process_type_metadata(self, type_: type, pending: _UnprocessedTypes) -> None:
        alias = self.metadata_reader.get(type_, Alias)
        if alias is not None:
            self._require(ClassAliasingMapper).add_class_alias(alias.value, type_)
            if alias.impl is not None:
                self._require(DefaultImplementationsMapper).add_default_implementation(alias.impl, type_)
                if is_interface(type_):
                    pending.add(alias.impl)

        alias_type = self.metadata_reader.get(type_, AliasType)
        if alias_type is not None:
            self._require(ClassAliasingMapper).add_type_alias(alias_type.value, type_)

        converters = self.metadata_reader.get(type_, Converters)
        if converters is not None:
            accepted = []
            for spec in converters.specs:
                converter = self._cache_converter(spec, type_)
                if not converter.can_convert(type_):
                    raise InitializationError(
                        f"Converter {qualified_name(spec.value)} cannot handle annotated class {qualified_name(type_)}"
                    )
                accepted.append((converter, spec.priority))
            for converter, priority in accepted:
                self.converter_registry.register_converter(converter, priority)
                logger.debug("Registered %r for %s at priority %d", converter, qualified_name(type_), priority)

    def _process_field_metadata(self, info: FieldInfo) -> None:
        owner = info.declaring_class

        alias = self.metadata_reader.get(info, Alias)
        if alias is not None:
            self._require(FieldAliasingMapper).add_field_alias(alias.value, owner, info.name)

        if self.metadata_reader.get(info, AsAttribute) is not None:
            self._require(AttributeMapper).add_attribute_for(owner, info.name)

        implicit = self.metadata_reader.get(info, Implicit)
        if implicit is not None:
            self._add_implicit_collection(info, implicit)

        if self.metadata_reader.get(info, OmitField) is not None:
            self._require(ElementIgnoringMapper).omit_field(owner, info.name)

        spec = self.metadata_reader.get(info, ConverterSpec)
        if spec is not None:
            local_conversion = self._require(LocalConversionMapper)
            converter = self._cache_converter(spec, info.type)
            local_conversion.register_local_converter(owner, info.name, converter)

    def _add_implicit_collection(self, info: FieldInfo, implicit: Implicit) -> None:
        implicit_collections = self._require(ImplicitCollectionMapper)
        is_map = is_mapping(info.type)
        item_type = None
        args = get_args(strip_optional(info.generic_type))
        index = 1 if is_map else 0
        if len(args) > index:
            item_type = raw_class(args[index])
        implicit_collections.add(
            info.declaring_class,
            info.name,
            implicit.item_field_name or None,
            item_type,
            (implicit.key_field_name or None) if is_map else None,
        )

    def _require(self, stage: type[S]) -> S:
        found = self.lookup_mapper_of_type(stage)
        if found is None:
            raise InitializationError(f"No {stage.__qualname__} available")
        return found

    def _cache_converter(self, spec: ConverterSpec, target_type: type | None) -> Converter:
        literals = spec.literal_arguments()
        if target_type is not None and spec.use_implicit_type:
            literals.insert(0, ("implicit_type", target_type))
        key = (spec.value, tuple(literals))

        with self._converter_cache_lock:
            cached = self._converter_cache.get(key)
        if cached is not None:
            return cached

        logger.debug("Instantiating converter %s", qualified_name(spec.value))
        args = [value for _, value in literals] + list(self._arguments)
        try:
            instance = new_instance(spec.value, args)
        except ConstructionError as e:
            target = f" for type {qualified_name(target_type)}" if target_type is not None else ""
            raise InitializationError(f"Cannot instantiate converter {qualified_name(spec.value)}{target}") from e

        if isinstance(instance, SingleValueConverter) and not isinstance(instance, Converter):
            instance = SingleValueConverterWrapper(instance)
        if not isinstance(instance, Converter):
            raise InitializationError(f"{qualified_name(spec.value)} is not a converter")

        with self._converter_cache_lock:
            return self._converter_cache.setdefault(key, instance)
