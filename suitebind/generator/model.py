"""Marshaling model shared by the native and client generators.

Both generators render from the same `SuiteModel`, so the decisions made
here (which functions are generated, which parameters are outputs, what the
result looks like on the wire) cannot drift apart between them.
"""

import logging
from dataclasses import dataclass, field
from enum import StrEnum, auto

from .classifier import TypeClassifier
from .config import TypeMapConfig
from .types import (
    FunctionDescriptor,
    ParameterDescriptor,
    ParameterShape,
    StringKind,
    SuiteDescriptor,
    TypeCategory,
    TypeClassification,
)

logger = logging.getLogger(__name__)

# Return categories that carry data directly instead of an error code
DIRECT_CATEGORIES = frozenset(
    [
        TypeCategory.HANDLE,
        TypeCategory.MANAGED_HANDLE,
        TypeCategory.PRIMITIVE,
        TypeCategory.STRING,
        TypeCategory.ENUM,
    ]
)


class ReturnConvention(StrEnum):
    """How a native function hands back its data."""

    ERROR = auto()  # Error code return, data through output parameters
    VOID = auto()  # No return value, data through output parameters
    DIRECT = auto()  # Data returned as the function's value


class ResultShape(StrEnum):
    """Shape of the response record as seen by the client."""

    NONE = auto()  # Nothing is returned
    SINGLE = auto()  # The one output parameter, unwrapped
    DIRECT = auto()  # The direct return value, unwrapped from "result"
    RECORD = auto()  # A record with one field per value


@dataclass(frozen=True)
class ResultField:
    """A named value in the response record."""

    name: str
    classification: TypeClassification | None


@dataclass(frozen=True)
class FunctionModel:
    """A function accepted for generation."""

    function: FunctionDescriptor
    symbol: str
    returns: TypeClassification
    convention: ReturnConvention

    @property
    def name(self) -> str:
        return self.function.name

    @property
    def params(self) -> tuple[ParameterDescriptor, ...]:
        return self.function.params

    @property
    def inputs(self) -> tuple[ParameterDescriptor, ...]:
        return self.function.inputs

    @property
    def outputs(self) -> tuple[ParameterDescriptor, ...]:
        return self.function.outputs

    @property
    def shape(self) -> ResultShape:
        outputs = self.outputs
        if self.convention == ReturnConvention.DIRECT:
            return ResultShape.RECORD if outputs else ResultShape.DIRECT
        if not outputs:
            return ResultShape.NONE
        return ResultShape.SINGLE if len(outputs) == 1 else ResultShape.RECORD

    @property
    def result_fields(self) -> list[ResultField]:
        """Fields of the response record, in order."""
        fields = []
        if self.convention == ReturnConvention.DIRECT:
            fields.append(ResultField("result", self.returns))
        fields.extend(ResultField(p.name, p.classification) for p in self.outputs)
        return fields


@dataclass(frozen=True)
class SkippedFunction:
    """A function excluded from generation, with the reason."""

    name: str
    reason: str


@dataclass(frozen=True)
class SuiteModel:
    """Everything the generators need to render one suite."""

    name: str
    short_name: str
    functions: tuple[FunctionModel, ...]
    skipped: tuple[SkippedFunction, ...]
    config: TypeMapConfig = field(compare=False, repr=False)

    @property
    def referenced_structs(self) -> list[str]:
        """Struct base types used by any generated function, sorted."""
        names = set()
        for func in self.functions:
            for param in func.params:
                if param.category == TypeCategory.STRUCT:
                    names.add(param.classification.base_type)
        return sorted(names)


def symbol_name(name: str, config: TypeMapConfig) -> str:
    """Name of the generated wrapper, prefixed when it collides with a macro."""
    dialect = config.dialect
    if name in dialect.reserved_function_names:
        return f"{dialect.reserved_name_prefix}{name}"
    return name


def return_convention(returns: TypeClassification) -> ReturnConvention | None:
    """Classify a return type into a convention, None if unsupported."""
    if returns.category == TypeCategory.ERROR and not returns.is_pointer:
        return ReturnConvention.ERROR
    if returns.category == TypeCategory.VOID and not returns.is_pointer:
        return ReturnConvention.VOID
    if returns.category in DIRECT_CATEGORIES:
        # Only strings are returned through a pointer (const char*)
        if not returns.is_pointer or returns.category == TypeCategory.STRING:
            return ReturnConvention.DIRECT
    return None


def unsupported_reason(param: ParameterDescriptor, config: TypeMapConfig) -> str | None:
    """Why a parameter cannot be marshaled, None when it can."""
    if param.shape != ParameterShape.SIMPLE:
        return f"parameter '{param.name}' has an unsupported {param.shape} declarator"

    classification = param.classification
    if classification is None:
        return None
    base = classification.base_type

    if base in config.ignored_types:
        return f"parameter '{param.name}' uses ignored type {base}"
    if any(base.endswith(marker) for marker in config.dialect.callback_markers):
        return f"parameter '{param.name}' is a callback ({base})"
    if classification.category == TypeCategory.VOID:
        return f"parameter '{param.name}' is an opaque void pointer"

    max_depth = 1
    if (
        classification.category == TypeCategory.STRING
        and classification.string_kind == StringKind.C_STRING
        and param.is_output
    ):
        max_depth = 2
    if param.pointer_depth > max_depth:
        return f"parameter '{param.name}' has pointer depth {param.pointer_depth}"
    return None


def _is_blocked(function: FunctionDescriptor, config: TypeMapConfig) -> bool:
    blocked = config.blocked_functions
    return function.name in blocked or f"{function.suite_name}.{function.name}" in blocked


def build_function_model(
    function: FunctionDescriptor, classifier: TypeClassifier
) -> FunctionModel | SkippedFunction:
    """Accept a classified function for generation, or say why not."""
    config = classifier.config

    if _is_blocked(function, config):
        return SkippedFunction(function.name, "blocked by configuration")

    returns = classifier.classify(function.return_type, "result")
    convention = return_convention(returns)
    if convention is None:
        return SkippedFunction(
            function.name, f"unsupported return type {function.return_type} ({returns.category})"
        )

    for param in function.params:
        reason = unsupported_reason(param, config)
        if reason:
            return SkippedFunction(function.name, reason)
        if param.category == TypeCategory.UNKNOWN:
            logger.warning(
                "%s.%s: parameter '%s' has unknown type %s",
                function.suite_name,
                function.name,
                param.name,
                param.type,
            )

    return FunctionModel(
        function=function,
        symbol=symbol_name(function.name, config),
        returns=returns,
        convention=convention,
    )


def classify_function(function: FunctionDescriptor, classifier: TypeClassifier) -> FunctionDescriptor:
    params = tuple(classifier.classify_parameter(p) for p in function.params)
    return FunctionDescriptor(
        name=function.name,
        return_type=function.return_type,
        suite_name=function.suite_name,
        params=params,
    )


def build_suite_model(suite: SuiteDescriptor, classifier: TypeClassifier) -> SuiteModel:
    """Classify a suite and partition its functions into generated and skipped."""
    functions = []
    skipped = []
    for function in suite.functions:
        result = build_function_model(classify_function(function, classifier), classifier)
        if isinstance(result, SkippedFunction):
            logger.info("Skipping %s.%s: %s", suite.name, result.name, result.reason)
            skipped.append(result)
        else:
            functions.append(result)

    return SuiteModel(
        name=suite.name,
        short_name=classifier.config.dialect.short_name(suite.name),
        functions=tuple(functions),
        skipped=tuple(skipped),
        config=classifier.config,
    )
