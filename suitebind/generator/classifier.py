"""Classification of native types into marshaling categories."""

import logging
import re
from dataclasses import replace

from .config import TypeMapConfig
from .types import (
    Optionality,
    ParameterDescriptor,
    StringKind,
    TypeCategory,
    TypeClassification,
)

logger = logging.getLogger(__name__)

# Base type given to bare char/char* strings
C_STRING_BASE = "char*"


def strip_type(raw: str) -> str:
    """Remove const/volatile qualifiers and pointer/reference sigils."""
    base = re.sub(r"\b(const|volatile)\b", " ", raw)
    base = re.sub(r"[*&]", " ", base)
    base = re.sub(r"\s*::\s*", "::", base)
    return " ".join(base.split())


class TypeClassifier:
    """Classify raw native types against a type map.

    `classify` is total: every input yields exactly one category, types that
    no table lists are `Unknown`.
    """

    def __init__(self, config: TypeMapConfig) -> None:
        self.config = config
        for name, categories in config.conflicts().items():
            logger.warning(
                "%s is listed as %s; classified as %s",
                name,
                " and ".join(categories),
                categories[0],
            )

    def is_boolean(self, base: str) -> bool:
        return base in self.config.boolean_types or self.config.primitives.get(base) == "bool"

    def classify(self, raw_type: str, param_name: str = "") -> TypeClassification:
        """Classify `raw_type`; `param_name` is only used for diagnostics.

        Rules, first match wins: void, the error-code types, configured string
        types, bare char, then the configured tables in TABLE_PRIORITY order.
        """
        raw = raw_type.strip()
        base = strip_type(raw)
        flags = {
            "raw": raw,
            "base_type": base,
            "is_pointer": "*" in raw,
            "is_const": re.search(r"\bconst\b", raw) is not None,
            "is_reference": "&" in raw,
        }

        if base == "void":
            return TypeClassification(category=TypeCategory.VOID, wire_kind="void", **flags)

        if base in self.config.dialect.error_types:
            return TypeClassification(category=TypeCategory.ERROR, wire_kind="int32_t", **flags)

        tables = self.config.tables_for(base)
        if tables and tables[0] == TypeCategory.STRING:
            return TypeClassification(
                category=TypeCategory.STRING,
                wire_kind="std::string",
                string_kind=StringKind.OWNED,
                **flags,
            )

        if base == "char":
            # Input string or output buffer; the model decides from is_output
            flags["base_type"] = C_STRING_BASE
            return TypeClassification(
                category=TypeCategory.STRING,
                wire_kind="std::string",
                string_kind=StringKind.C_STRING,
                **flags,
            )

        if not tables:
            logger.debug("No type map entry for %s (%s)", base, param_name or "?")
            return TypeClassification(category=TypeCategory.UNKNOWN, **flags)

        category = tables[0]
        if category == TypeCategory.MANAGED_HANDLE:
            return TypeClassification(
                category=category,
                registry_key=self.config.managed_handles[base],
                wire_kind="int32_t",
                **flags,
            )
        if category == TypeCategory.HANDLE:
            return TypeClassification(
                category=category,
                registry_key=self.config.handles[base],
                wire_kind="int32_t",
                **flags,
            )
        if category == TypeCategory.PRIMITIVE:
            wire_kind = "bool" if self.is_boolean(base) else self.config.primitives[base]
            return TypeClassification(category=category, wire_kind=wire_kind, **flags)
        if category == TypeCategory.STRUCT:
            return TypeClassification(category=category, wire_kind="object", **flags)
        return TypeClassification(category=TypeCategory.ENUM, wire_kind="int32_t", **flags)

    def optionality(self, param: ParameterDescriptor, category: TypeCategory) -> Optionality:
        """Apply the optional-handle allow-list to a parameter name."""
        if category != TypeCategory.HANDLE:
            return Optionality.UNKNOWN
        if param.name in self.config.optional_handle_names:
            return Optionality.OPTIONAL
        return Optionality.REQUIRED

    def classify_parameter(self, param: ParameterDescriptor) -> ParameterDescriptor:
        """Return a copy of `param` carrying its classification and optionality."""
        classification = param.classification or self.classify(param.spelled_type, param.name)
        return replace(
            param,
            classification=classification,
            optionality=self.optionality(param, classification.category),
        )
