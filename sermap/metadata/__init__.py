"""Mapping metadata: kinds, declaration helpers and readers."""

from .annotate import alias as alias
from .annotate import alias_type as alias_type
from .annotate import converter as converter
from .annotate import declare as declare
from .annotate import include as include
from .annotate import sermap_field as sermap_field
from .declarations import DeclarationTableReader as DeclarationTableReader
from .declarations import ValidationError as ValidationError
from .declarations import parse_declarations as parse_declarations
from .reader import AnnotatedMetadataReader as AnnotatedMetadataReader
from .reader import ChainedMetadataReader as ChainedMetadataReader
from .reader import MetadataReader as MetadataReader
from .types import *
