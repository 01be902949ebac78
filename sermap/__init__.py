"""Sermap - mapping configuration core for object serialization."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("sermap")
except PackageNotFoundError:
    __version__ = "(local)"
