"""Resolution of dotted type names to classes."""

import builtins
import importlib
import threading

from .typeinfo import qualified_name


class CannotResolveClassError(RuntimeError):
    """Raised when a dotted name does not name an importable class."""


class TypeResolver:
    """Module handle that turns dotted names into classes and back.

    Names are `module.qualname`; builtins may be given unqualified. Results
    are cached, negative results are not.
    """

    def __init__(self) -> None:
        self._cache: dict[str, type] = {}
        self._lock = threading.Lock()

    def name_of(self, t: type) -> str:
        return qualified_name(t)

    def resolve(self, name: str) -> type:
        """Resolve a dotted name to a class.

        Raises:
            CannotResolveClassError: If no module prefix of the name imports
                or the remaining attributes do not lead to a class.
        """
        with self._lock:
            cached = self._cache.get(name)
        if cached is not None:
            return cached

        result = self._lookup(name)
        with self._lock:
            self._cache.setdefault(name, result)
        return result

    def _lookup(self, name: str) -> type:
        parts = name.split(".")
        if len(parts) == 1:
            candidate = getattr(builtins, name, None)
            if isinstance(candidate, type):
                return candidate
            raise CannotResolveClassError(f"Cannot resolve class {name}")

        for split in range(len(parts) - 1, 0, -1):
            module_name = ".".join(parts[:split])
            try:
                obj = importlib.import_module(module_name)
            except ModuleNotFoundError as e:
                if e.name is not None and module_name.startswith(e.name):
                    continue
                raise CannotResolveClassError(f"Cannot resolve class {name}: {e}") from e

            for attr in parts[split:]:
                obj = getattr(obj, attr, None)
                if obj is None:
                    break
            if isinstance(obj, type):
                return obj
            raise CannotResolveClassError(f"{name} does not name a class")

        raise CannotResolveClassError(f"Cannot resolve class {name}")
