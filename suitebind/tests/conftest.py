"""Shared fixtures for the generator tests."""

import os

import pytest

from suitebind.generator.classifier import TypeClassifier
from suitebind.generator.config import load_type_map
from suitebind.generator.model import build_suite_model
from suitebind.generator.parser import parse_file

FIXTURE_DIR = os.path.join(os.path.dirname(os.path.realpath(__file__)), "generator")
SDK_DIR = os.path.join(FIXTURE_DIR, "sdk")
WIDGET_HEADER = os.path.join(SDK_DIR, "AIWidgetSuite.h")
WIDGET_MAP = os.path.join(FIXTURE_DIR, "widget-map.json")


def pytest_configure(config):
    """Keep the progress output short."""
    terminal = config.pluginmanager.getplugin("terminal")
    if terminal:
        terminal.TerminalReporter.showfspath = False


@pytest.fixture
def widget_config():
    return load_type_map(WIDGET_MAP)


@pytest.fixture
def classifier(widget_config):
    return TypeClassifier(widget_config)


@pytest.fixture
def widget_suite(classifier):
    (suite,) = parse_file(WIDGET_HEADER, classifier)
    return suite


@pytest.fixture
def widget_model(widget_suite, classifier):
    return build_suite_model(widget_suite, classifier)


@pytest.fixture
def widget_function(widget_model):
    """Look up a generated function of the widget suite by name."""

    def lookup(name):
        return next(f for f in widget_model.functions if f.name == name)

    return lookup
