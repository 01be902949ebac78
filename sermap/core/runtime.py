"""Facts about the running interpreter, offered to converters on construction."""

import platform
import sys
import sysconfig
from dataclasses import dataclass, field


@dataclass(frozen=True)
class RuntimeInfo:
    """Describes the interpreter a mapper runs on."""

    implementation: str = field(default_factory=platform.python_implementation)
    version: tuple[int, int] = field(default_factory=lambda: (sys.version_info.major, sys.version_info.minor))

    @property
    def is_free_threaded(self) -> bool:
        """True on builds without the global interpreter lock."""
        return bool(sysconfig.get_config_var("Py_GIL_DISABLED"))

    def is_at_least(self, major: int, minor: int) -> bool:
        return self.version >= (major, minor)
