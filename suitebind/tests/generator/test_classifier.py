"""Tests for type classification."""

import logging

from suitebind.generator.classifier import TypeClassifier, strip_type
from suitebind.generator.config import TypeMapConfig
from suitebind.generator.types import (
    Optionality,
    ParameterDescriptor,
    StringKind,
    TypeCategory,
)


def _classifier(**tables):
    return TypeClassifier(TypeMapConfig(**tables))


def describe_strip_type():
    def removes_qualifiers_and_sigils(expect):
        expect(strip_type("const AIRealRect*")) == "AIRealRect"
        expect(strip_type("volatile ai::int32 &")) == "ai::int32"
        expect(strip_type("char**")) == "char"

    def normalises_scope_operator(expect):
        expect(strip_type("const ai :: UnicodeString&")) == "ai::UnicodeString"


def describe_classify():
    def classifies_void(expect):
        c = _classifier().classify("void")
        expect(c.category) == TypeCategory.VOID

    def classifies_error_types(expect):
        classifier = _classifier()
        expect(classifier.classify("AIErr").category) == TypeCategory.ERROR
        expect(classifier.classify("ASErr").category) == TypeCategory.ERROR
        expect(classifier.classify("AIErr").wire_kind) == "int32_t"

    def classifies_handles_with_registry_key(expect):
        c = _classifier(handles={"AIArtHandle": "art"}).classify("AIArtHandle*")
        expect(c.category) == TypeCategory.HANDLE
        expect(c.registry_key) == "art"
        expect(c.base_type) == "AIArtHandle"
        expect(c.is_pointer) == True
        expect(c.is_handle) == True

    def classifies_managed_handles(expect):
        c = _classifier(managed_handles={"ai::ArtboardList": "artboardLists"}).classify(
            "ai::ArtboardList&"
        )
        expect(c.category) == TypeCategory.MANAGED_HANDLE
        expect(c.registry_key) == "artboardLists"
        expect(c.is_reference) == True

    def classifies_primitives_with_wire_kind(expect):
        c = _classifier(primitives={"AIReal": "double"}).classify("const AIReal*")
        expect(c.category) == TypeCategory.PRIMITIVE
        expect(c.wire_kind) == "double"
        expect(c.is_const) == True

    def overrides_boolean_types(expect):
        classifier = _classifier(primitives={"AIBoolean": "uint8_t"})
        c = classifier.classify("AIBoolean")
        expect(c.wire_kind) == "bool"
        expect(c.is_boolean) == True

    def classifies_owned_strings(expect):
        c = _classifier(string_types=["ai::UnicodeString"]).classify("const ai::UnicodeString&")
        expect(c.category) == TypeCategory.STRING
        expect(c.string_kind) == StringKind.OWNED
        expect(c.base_type) == "ai::UnicodeString"

    def classifies_char_as_c_string(expect):
        classifier = _classifier()
        for raw in ("char", "char*", "const char*", "char**"):
            c = classifier.classify(raw)
            expect(c.category) == TypeCategory.STRING
            expect(c.string_kind) == StringKind.C_STRING
            expect(c.base_type) == "char*"

    def classifies_structs_and_enums(expect):
        classifier = _classifier(structs={"AIRealRect": "object"}, enums=["AILayerColor"])
        expect(classifier.classify("AIRealRect*").category) == TypeCategory.STRUCT
        expect(classifier.classify("AILayerColor").category) == TypeCategory.ENUM
        expect(classifier.classify("AILayerColor").wire_kind) == "int32_t"

    def falls_back_to_unknown(expect):
        classifier = _classifier(handles={"AIArtHandle": "art"})
        for raw in ("AIColor*", "SomethingElse", "const Foo&", ""):
            expect(classifier.classify(raw).category) == TypeCategory.UNKNOWN

    def is_deterministic(expect):
        classifier = _classifier(handles={"AIArtHandle": "art"}, primitives={"AIReal": "double"})
        expect(classifier.classify("AIReal*")) == classifier.classify("AIReal*")


def describe_classify_priority():
    def prefers_strings_over_other_tables(expect):
        classifier = _classifier(string_types=["Name"], handles={"Name": "names"})
        expect(classifier.classify("Name").category) == TypeCategory.STRING

    def prefers_managed_handles_over_handles(expect):
        classifier = _classifier(handles={"Board": "a"}, managed_handles={"Board": "b"})
        c = classifier.classify("Board")
        expect(c.category) == TypeCategory.MANAGED_HANDLE
        expect(c.registry_key) == "b"

    def prefers_handles_over_primitives(expect):
        classifier = _classifier(handles={"AIRef": "refs"}, primitives={"AIRef": "int32_t"})
        expect(classifier.classify("AIRef").category) == TypeCategory.HANDLE

    def prefers_primitives_over_structs_and_enums(expect):
        classifier = _classifier(
            primitives={"AIUnit": "int32_t"}, structs={"AIUnit": "object"}, enums=["AIUnit"]
        )
        expect(classifier.classify("AIUnit").category) == TypeCategory.PRIMITIVE

    def error_types_win_over_tables(expect):
        classifier = _classifier(primitives={"AIErr": "int32_t"})
        expect(classifier.classify("AIErr").category) == TypeCategory.ERROR

    def logs_conflicts_on_creation(expect, caplog):
        with caplog.at_level(logging.WARNING, logger="suitebind"):
            _classifier(handles={"AIRef": "refs"}, primitives={"AIRef": "int32_t"})
        expect("AIRef" in caplog.text) == True


def describe_classify_parameter():
    def attaches_classification(expect):
        classifier = _classifier(primitives={"ai::int32": "int32_t"})
        param = ParameterDescriptor(name="count", type="ai::int32", is_pointer=True, pointer_depth=1)
        result = classifier.classify_parameter(param)
        expect(result.category) == TypeCategory.PRIMITIVE
        expect(result.classification.raw) == "ai::int32*"
        expect(param.classification) == None

    def marks_allow_listed_handles_optional(expect):
        classifier = _classifier(handles={"AIArtHandle": "art"})
        for name in ("prep", "paintOrder", "newParent", "prepArt"):
            param = ParameterDescriptor(name=name, type="AIArtHandle")
            expect(classifier.classify_parameter(param).optionality) == Optionality.OPTIONAL

    def marks_other_handles_required(expect):
        classifier = _classifier(handles={"AIArtHandle": "art"})
        for name in ("art", "preparedArt", "Prep"):
            param = ParameterDescriptor(name=name, type="AIArtHandle")
            expect(classifier.classify_parameter(param).optionality) == Optionality.REQUIRED

    def leaves_non_handles_unknown(expect):
        classifier = _classifier(primitives={"ai::int16": "int16_t"})
        param = ParameterDescriptor(name="paintOrder", type="ai::int16")
        expect(classifier.classify_parameter(param).optionality) == Optionality.UNKNOWN

    def uses_configured_allow_list(expect):
        classifier = TypeClassifier(
            TypeMapConfig(handles={"AIArtHandle": "art"}, optional_handle_names=["target"])
        )
        prep = ParameterDescriptor(name="prep", type="AIArtHandle")
        target = ParameterDescriptor(name="target", type="AIArtHandle")
        expect(classifier.classify_parameter(prep).is_optional) == False
        expect(classifier.classify_parameter(target).is_optional) == True
