"""Mapper chain stages and metadata-driven discovery."""

from .annotations import AnnotationMapper as AnnotationMapper
from .base import DefaultMapper as DefaultMapper
from .base import ImplicitCollectionMapping as ImplicitCollectionMapping
from .base import InitializationError as InitializationError
from .base import Mapper as Mapper
from .base import MapperWrapper as MapperWrapper
from .chain import build_mapper as build_mapper
from .ignoring import ElementIgnoringMapper as ElementIgnoringMapper
from .stages import *
