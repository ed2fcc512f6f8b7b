"""Generation run over a set of declaration headers."""

import glob
import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass, field

from . import artifacts, cpp, typescript
from .classifier import TypeClassifier
from .model import SkippedFunction, SuiteModel, build_suite_model
from .parser import ExtractionError, parse_file
from .types import GeneratedFile

logger = logging.getLogger(__name__)

HEADER_PATTERN = "AI*.h"
HEADER_SUBDIRS = ("", "actions")


class GenerationError(RuntimeError):
    """Raised when generated output cannot be written."""


@dataclass
class SuiteResult:
    name: str
    header: str
    functions: int
    skipped: list[SkippedFunction] = field(default_factory=list)
    files: list[str] = field(default_factory=list)


@dataclass
class SuiteFailure:
    name: str
    header: str
    error: str


@dataclass
class RunReport:
    """Outcome of a run; failures are per suite and never abort the run."""

    headers: int = 0
    suites: list[SuiteResult] = field(default_factory=list)
    failures: list[SuiteFailure] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    files: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def function_count(self) -> int:
        return sum(s.functions for s in self.suites)

    @property
    def skipped_count(self) -> int:
        return sum(len(s.skipped) for s in self.suites)


def find_headers(sdk: str, pattern: str = HEADER_PATTERN) -> list[str]:
    """Find suite headers in an SDK directory and its actions subdirectory."""
    headers = []
    for subdir in HEADER_SUBDIRS:
        headers.extend(glob.glob(os.path.join(sdk, subdir, pattern)))
    return sorted(set(headers))


def write_file(directory: str, generated: GeneratedFile) -> str:
    path = os.path.join(directory, generated.filename)
    try:
        os.makedirs(directory, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(generated.content)
    except OSError as e:
        raise GenerationError(f"Cannot write {path}: {e.strerror}") from e
    logger.debug("Wrote %s", path)
    return path


def _render_suite(
    model: SuiteModel, cpp_enabled: bool, ts_enabled: bool
) -> tuple[list[GeneratedFile], list[GeneratedFile]]:
    cpp_files = cpp.render(model) if cpp_enabled else []
    ts_files = [typescript.render(model)] if ts_enabled else []
    return cpp_files, ts_files


def run(
    headers: Iterable[str],
    output: str,
    classifier: TypeClassifier,
    suites: Iterable[str] | None = None,
    cpp_enabled: bool = True,
    ts_enabled: bool = True,
) -> RunReport:
    """Generate wrappers and clients for every suite found in `headers`.

    Output goes to `output/cpp` and `output/typescript`. When `suites` is
    given only those suites are generated.
    """
    cpp_dir = os.path.join(output, "cpp")
    ts_dir = os.path.join(output, "typescript")
    dialect = classifier.config.dialect
    wanted = set(suites) if suites else None

    report = RunReport()
    seen: set[str] = set()
    cpp_sources: list[str] = []
    cpp_headers: list[str] = []
    ts_modules: list[str] = []

    for header in sorted(headers):
        report.headers += 1
        try:
            descriptors = parse_file(header, classifier)
        except ExtractionError as e:
            logger.error("%s", e)
            report.failures.append(SuiteFailure(os.path.basename(header), header, str(e)))
            continue

        for suite in descriptors:
            if wanted is not None and suite.name not in wanted:
                continue
            if suite.name in seen:
                logger.warning("%s is declared again in %s, keeping the first", suite.name, header)
                continue
            seen.add(suite.name)

            try:
                model = build_suite_model(suite, classifier)
                cpp_files, ts_files = _render_suite(model, cpp_enabled, ts_enabled)
            except Exception as e:
                logger.error("Failed to generate %s: %s", suite.name, e)
                report.failures.append(SuiteFailure(suite.name, header, str(e)))
                continue

            result = SuiteResult(
                name=suite.name,
                header=header,
                functions=len(model.functions),
                skipped=list(model.skipped),
            )
            for generated in cpp_files:
                result.files.append(write_file(cpp_dir, generated))
                if generated.filename.endswith(".cpp"):
                    cpp_sources.append(generated.filename)
                else:
                    cpp_headers.append(generated.filename)
            for generated in ts_files:
                result.files.append(write_file(ts_dir, generated))
                ts_modules.append(os.path.splitext(generated.filename)[0])

            logger.info(
                "Generated %s: %d functions, %d skipped",
                suite.name,
                result.functions,
                len(result.skipped),
            )
            report.suites.append(result)
            report.files.extend(result.files)

    if wanted is not None:
        report.missing = sorted(wanted - seen)
        for name in report.missing:
            logger.warning("Suite %s was not found in any header", name)

    suite_names = [s.name for s in report.suites]
    if cpp_enabled and suite_names:
        errors = artifacts.render_errors(dialect)
        dispatcher = artifacts.render_dispatcher(suite_names, dialect)
        report.files.append(write_file(cpp_dir, errors))
        report.files.append(write_file(cpp_dir, dispatcher))
        cmake = artifacts.render_cmake(
            cpp_sources, cpp_headers + [errors.filename, dispatcher.filename]
        )
        report.files.append(write_file(cpp_dir, cmake))
    if ts_enabled and ts_modules:
        report.files.append(write_file(ts_dir, artifacts.render_index(ts_modules)))

    return report
