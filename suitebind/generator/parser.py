"""Suite declaration extractor using Lark.

Headers are parsed into a structural tree of balanced groups, then three
queries run over it:

1. ``typedef struct [Tag] { ... } Alias;`` -- an aggregate with a typedef alias
2. ``struct Name { ... }`` -- an aggregate with an inline name
3. ``ReturnType (*Name)(params);`` -- a function pointer slot inside a body

Parameters are rebuilt from their token sequence: the last identifier is the
name, the ``*``/``&`` run before it is the declarator, everything before that
is the type. This is exact for simple declarators only; array, function
pointer and defaulted parameters are flagged through ``ParameterShape``.
"""

import logging
import os
import re
from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from lark import Lark, Token
from lark.exceptions import LarkError
from lark.visitors import Transformer

from .config import DialectConfig
from .types import FunctionDescriptor, ParameterDescriptor, ParameterShape, SuiteDescriptor

if TYPE_CHECKING:
    from .classifier import TypeClassifier

logger = logging.getLogger(__name__)

_g_parser: Lark | None = None

# Words that can end a type but never name a parameter
_TYPE_KEYWORDS = frozenset(
    ["void", "char", "short", "int", "long", "float", "double", "bool", "signed", "unsigned"]
)


class ExtractionError(RuntimeError):
    """Raised when a declaration file cannot be read."""


@dataclass
class _Group:
    kind: str
    children: list[Any]


class TreeTransformer(Transformer):
    """Transform the parse tree into nested lists of tokens and groups."""

    def start(self, args: list[Any]) -> list[Any]:
        return list(args)

    def brace(self, args: list[Any]) -> _Group:
        return _Group(kind="{", children=list(args))

    def paren(self, args: list[Any]) -> _Group:
        return _Group(kind="(", children=list(args))

    def bracket(self, args: list[Any]) -> _Group:
        return _Group(kind="[", children=list(args))


def _is(node: Any, type_: str, value: str | None = None) -> bool:
    if not isinstance(node, Token) or node.type != type_:
        return False
    return value is None or _token_text(node) == value


def _is_group(node: Any, kind: str) -> bool:
    return isinstance(node, _Group) and node.kind == kind


def _token_text(token: Token) -> str:
    # Qualified names may be written with spaces around "::"
    return re.sub(r"\s*::\s*", "::", str(token))


def _join(nodes: list[Any]) -> str:
    """Render a token sequence as type text: "const char *" -> "const char*"."""
    parts = []
    for node in nodes:
        if isinstance(node, _Group):
            inner = _join(node.children)
            parts.append({"{": f"{{{inner}}}", "(": f"({inner})", "[": f"[{inner}]"}[node.kind])
        else:
            parts.append(_token_text(node))
    text = " ".join(parts)
    return re.sub(r"\s+([*&])", r"\1", text)


def _split(nodes: list[Any], separator: str) -> list[list[Any]]:
    result: list[list[Any]] = [[]]
    for node in nodes:
        if _is(node, separator):
            result.append([])
        else:
            result[-1].append(node)
    return [part for part in result if part]


def preprocess(text: str, dialect: DialectConfig) -> str:
    """Strip preprocessor directives and macros that break structural parsing."""
    text = re.sub(r"\\\r?\n", " ", text)
    text = re.sub(r"^[ \t]*#.*$", "", text, flags=re.MULTILINE)
    for macro in dialect.strip_macros:
        text = re.sub(rf"\b{re.escape(macro)}\b", "", text)
    return text


def find_aggregates(nodes: list[Any]) -> Iterator[tuple[str, _Group]]:
    """Yield (name, body) for every struct definition, searched recursively."""
    for i, node in enumerate(nodes):
        if isinstance(node, _Group):
            yield from find_aggregates(node.children)
            continue
        if not _is(node, "NAME", "struct"):
            continue

        j = i + 1
        tag = None
        if j < len(nodes) and _is(nodes[j], "NAME"):
            tag = _token_text(nodes[j])
            j += 1
        if j >= len(nodes) or not _is_group(nodes[j], "{"):
            continue
        body = nodes[j]

        if i > 0 and _is(nodes[i - 1], "NAME", "typedef"):
            # The alias is the public name, the tag is ignored
            if j + 2 < len(nodes) and _is(nodes[j + 1], "NAME") and _is(nodes[j + 2], "SEMI"):
                yield _token_text(nodes[j + 1]), body
        elif tag:
            yield tag, body


def find_function_slots(body: _Group) -> Iterator[tuple[list[Any], str, _Group]]:
    """Yield (return type nodes, name, parameter group) for function pointer fields."""
    for field in _split(body.children, "SEMI"):
        if len(field) < 3:
            continue
        declarator, params = field[-2], field[-1]
        if not (_is_group(declarator, "(") and _is_group(params, "(")):
            continue
        inner = declarator.children
        if len(inner) != 2 or not _is(inner[0], "PUNCT", "*") or not _is(inner[1], "NAME"):
            continue
        return_type = field[:-2]
        if any(isinstance(n, _Group) for n in return_type):
            continue
        yield return_type, _token_text(inner[1]), params


def _param_shape(nodes: list[Any]) -> ParameterShape:
    if any(_is_group(n, "[") for n in nodes):
        return ParameterShape.ARRAY
    if any(_is_group(n, "(") for n in nodes):
        return ParameterShape.FUNCTION_POINTER
    if any(_is(n, "PUNCT", "=") for n in nodes):
        return ParameterShape.DEFAULT_VALUE
    return ParameterShape.SIMPLE


def build_parameter(nodes: list[Any], index: int) -> ParameterDescriptor:
    """Rebuild a parameter from its token sequence."""
    shape = _param_shape(nodes)
    tokens = [n for n in nodes if isinstance(n, Token)]
    stars = sum(1 for t in tokens if _is(t, "PUNCT", "*"))
    flags = {
        "is_pointer": stars > 0,
        "pointer_depth": stars,
        "is_const": any(_is(t, "NAME", "const") for t in tokens),
        "is_reference": any(_is(t, "PUNCT", "&") for t in tokens),
    }

    if shape != ParameterShape.SIMPLE:
        names = [_token_text(t) for t in tokens if _is(t, "NAME")]
        name = names[-1] if names else f"param{index}"
        return ParameterDescriptor(name=name, type=_join(nodes), shape=shape, **flags)

    last = nodes[-1]
    if len(nodes) > 1 and _is(last, "NAME") and _token_text(last) not in _TYPE_KEYWORDS:
        name = _token_text(last)
        rest = nodes[:-1]
    else:
        name = f"param{index}"
        rest = nodes

    # Declarator sigils directly before the name are not part of the type
    end = len(rest)
    while end > 0 and (_is(rest[end - 1], "PUNCT", "*") or _is(rest[end - 1], "PUNCT", "&")):
        end -= 1

    return ParameterDescriptor(name=name, type=_join(rest[:end]), **flags)


def build_parameters(group: _Group) -> tuple[ParameterDescriptor, ...]:
    parts = _split(group.children, "COMMA")
    # C-style "(void)" declares no parameters
    if len(parts) == 1 and len(parts[0]) == 1 and _is(parts[0][0], "NAME", "void"):
        return ()
    return tuple(build_parameter(nodes, i) for i, nodes in enumerate(parts))


def _extract_functions(
    body: _Group,
    suite_name: str,
    dialect: DialectConfig,
    classifier: "TypeClassifier | None",
) -> list[FunctionDescriptor]:
    functions = []
    for return_nodes, name, params_group in find_function_slots(body):
        if dialect.reserved_prefix and name.startswith(dialect.reserved_prefix):
            logger.debug("Skipping reserved slot %s.%s", suite_name, name)
            continue

        params = build_parameters(params_group)
        if classifier is not None:
            params = tuple(classifier.classify_parameter(p) for p in params)

        functions.append(
            FunctionDescriptor(
                name=name,
                return_type=_join(return_nodes) or dialect.error_type,
                suite_name=suite_name,
                params=params,
            )
        )
    return functions


def parse(
    text: str,
    classifier: "TypeClassifier | None" = None,
    dialect: DialectConfig | None = None,
) -> list[SuiteDescriptor]:
    """Extract suite descriptors from declaration source text.

    Aggregates that are not suites, and headers that do not parse, yield
    nothing rather than an error.
    """
    global _g_parser

    if dialect is None:
        dialect = classifier.config.dialect if classifier is not None else DialectConfig()

    if not _g_parser:
        with open(f"{os.path.dirname(__file__)}/declarations.lark", encoding="utf-8") as f:
            grammar = f.read()
        _g_parser = Lark(grammar, parser="lalr")

    try:
        tree = _g_parser.parse(preprocess(text, dialect))
    except LarkError as e:
        logger.warning("Declarations could not be parsed: %s", e)
        return []

    nodes = TreeTransformer().transform(tree)

    suites: list[SuiteDescriptor] = []
    seen: set[str] = set()
    for name, body in find_aggregates(nodes):
        if not name.endswith(dialect.suite_suffix) or name in seen:
            continue
        seen.add(name)

        functions = _extract_functions(body, name, dialect, classifier)
        if not functions:
            logger.debug("Dropping %s: no function slots", name)
            continue
        suites.append(SuiteDescriptor(name=name, functions=tuple(functions)))

    return suites


def parse_file(
    path: str,
    classifier: "TypeClassifier | None" = None,
    dialect: DialectConfig | None = None,
) -> list[SuiteDescriptor]:
    """Read a header file and extract its suites."""
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            text = f.read()
    except OSError as e:
        raise ExtractionError(f"Cannot read {path}: {e.strerror}") from e

    return parse(text, classifier, dialect)
