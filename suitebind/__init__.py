"""suitebind - Binding generator for native function-table suites."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("suitebind")
except PackageNotFoundError:
    __version__ = "(local)"
