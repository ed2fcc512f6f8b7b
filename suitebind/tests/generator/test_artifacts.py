"""Tests for the shared generated files."""

from suitebind.generator import artifacts
from suitebind.generator.config import DialectConfig


def describe_render_index():
    def reexports_sorted_modules(expect):
        index = artifacts.render_index(["AIWidgetSuite", "AIArtSuite", "index"])
        expect(index.filename) == "index.ts"
        lines = [line for line in index.content.splitlines() if line.startswith("export")]
        expect(lines) == [
            "export * from './AIArtSuite';",
            "export * from './AIWidgetSuite';",
        ]


def describe_render_dispatcher():
    def routes_suites_in_sorted_order(expect):
        dispatcher = artifacts.render_dispatcher(["AIWidgetSuite", "AIArtSuite"], DialectConfig())
        content = dispatcher.content
        expect(dispatcher.filename) == "CentralDispatcher.h"
        expect('#include "FloraAIArtSuiteWrapper.h"' in content) == True
        expect('    if (suite == "AIArtSuite") {' in content) == True
        expect('    } else if (suite == "AIWidgetSuite") {' in content) == True
        expect("return Flora::AIWidgetSuite::Dispatch(method, params);" in content) == True
        expect(content.index("AIArtSuite::Dispatch") < content.index("AIWidgetSuite::Dispatch")) == True

    def reports_unknown_suites(expect):
        content = artifacts.render_dispatcher([], DialectConfig()).content
        expect('throw std::runtime_error("Unknown suite: " + suite);' in content) == True
        expect("else if" in content) == False

    def uses_configured_namespace(expect):
        content = artifacts.render_dispatcher(["AIArtSuite"], DialectConfig(namespace="Bridge")).content
        expect('#include "BridgeAIArtSuiteWrapper.h"' in content) == True
        expect("namespace Bridge {" in content) == True


def describe_render_cmake():
    def lists_sources_and_headers(expect):
        cmake = artifacts.render_cmake(
            ["FloraAIWidgetSuiteWrapper.cpp"],
            ["SuiteError.hpp", "FloraAIWidgetSuiteWrapper.h", "CentralDispatcher.h"],
        )
        content = cmake.content
        expect(cmake.filename) == "generated_sources.cmake"
        expect("set(GENERATED_SOURCES\n    ${CMAKE_CURRENT_LIST_DIR}/FloraAIWidgetSuiteWrapper.cpp\n)" in content) == True
        headers = content[content.index("set(GENERATED_HEADERS") :]
        expect(headers.index("CentralDispatcher.h") < headers.index("SuiteError.hpp")) == True


def describe_render_errors():
    def defines_suite_error_with_code(expect):
        errors = artifacts.render_errors(DialectConfig())
        expect(errors.filename) == "SuiteError.hpp"
        expect("namespace Flora {" in errors.content) == True
        expect("class SuiteError : public std::runtime_error {" in errors.content) == True
        expect("int32_t code() const noexcept { return code_; }" in errors.content) == True
        expect("class MethodNotFound : public std::runtime_error {" in errors.content) == True

    def follows_configured_include_name(expect):
        errors = artifacts.render_errors(DialectConfig(errors_include="BridgeErrors.hpp"))
        expect(errors.filename) == "BridgeErrors.hpp"
