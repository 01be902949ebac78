"""Metadata readers consumed by mapping discovery."""

from abc import ABC, abstractmethod
from typing import Any, TypeVar

from ..core.typeinfo import FieldInfo
from .annotate import FIELD_METADATA_KEY, METADATA_ATTR

K = TypeVar("K")


class MetadataReader(ABC):
    """Answers which metadata of a kind a class or field carries."""

    @abstractmethod
    def get(self, target: type | FieldInfo, kind: type[K]) -> K | None:
        """Return the metadata of `kind` on `target`, or None."""


class AnnotatedMetadataReader(MetadataReader):
    """Reads metadata declared with `sermap.metadata.annotate`.

    Class metadata is only read from the class itself, never inherited.
    Field metadata comes from `sermap_field()` or `Annotated` extras; the
    dataclass field wins when both declare the same kind.
    """

    def get(self, target: type | FieldInfo, kind: type[K]) -> K | None:
        if isinstance(target, FieldInfo):
            return self._field_metadata(target, kind)
        metadata = target.__dict__.get(METADATA_ATTR, {})
        return metadata.get(kind)

    def _field_metadata(self, info: FieldInfo, kind: type[K]) -> K | None:
        for instance in info.metadata.get(FIELD_METADATA_KEY, ()):
            if type(instance) is kind:
                return instance
        for instance in info.extras:
            if type(instance) is kind:
                return instance
        return None


class ChainedMetadataReader(MetadataReader):
    """Asks several readers in turn; the first answer wins."""

    def __init__(self, *readers: MetadataReader) -> None:
        self.readers = readers

    def get(self, target: type | FieldInfo, kind: type[K]) -> K | None:
        for reader in self.readers:
            result: Any = reader.get(target, kind)
            if result is not None:
                return result
        return None
