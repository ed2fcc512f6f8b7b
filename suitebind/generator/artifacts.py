"""Files shared by every generated suite: index, dispatcher, build list, errors."""

from collections.abc import Iterable

from jinja2 import Environment, PackageLoader

from .config import DialectConfig
from .types import GeneratedFile

env = Environment(
    loader=PackageLoader("suitebind.generator", "templates"),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
    line_comment_prefix="%%",
    line_statement_prefix="%",
)

INDEX_FILENAME = "index.ts"
DISPATCHER_FILENAME = "CentralDispatcher.h"
CMAKE_FILENAME = "generated_sources.cmake"


def render_index(modules: Iterable[str]) -> GeneratedFile:
    """Re-export every client module; `modules` are names without extension."""
    names = sorted({m for m in modules if m != "index"})
    content = env.get_template("index.ts.j2").render(modules=names)
    return GeneratedFile(INDEX_FILENAME, content)


def render_dispatcher(suite_names: Iterable[str], dialect: DialectConfig) -> GeneratedFile:
    suites = sorted(set(suite_names))
    headers = [f"{dialect.namespace}{name}Wrapper.h" for name in suites]
    content = env.get_template("dispatcher.h.j2").render(
        suites=suites, headers=headers, dialect=dialect
    )
    return GeneratedFile(DISPATCHER_FILENAME, content)


def render_cmake(sources: Iterable[str], headers: Iterable[str]) -> GeneratedFile:
    """List generated sources and headers for inclusion in a CMake build."""
    content = env.get_template("sources.cmake.j2").render(
        sources=sorted(set(sources)), headers=sorted(set(headers))
    )
    return GeneratedFile(CMAKE_FILENAME, content)


def render_errors(dialect: DialectConfig) -> GeneratedFile:
    content = env.get_template("errors.hpp.j2").render(dialect=dialect)
    return GeneratedFile(dialect.errors_include, content)
