"""Type introspection, resolution and dependency injection support."""

from .injection import ConstructionError as ConstructionError
from .injection import TypedNull as TypedNull
from .injection import constructor as constructor
from .injection import new_instance as new_instance
from .reflection import ReflectionProvider as ReflectionProvider
from .resolver import CannotResolveClassError as CannotResolveClassError
from .resolver import TypeResolver as TypeResolver
from .runtime import RuntimeInfo as RuntimeInfo
from .typeinfo import FieldInfo as FieldInfo
