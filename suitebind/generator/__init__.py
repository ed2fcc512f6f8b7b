"""Suite binding code generator."""

from .classifier import TypeClassifier as TypeClassifier
from .config import ConfigError as ConfigError
from .config import TypeMapConfig as TypeMapConfig
from .config import load_type_map as load_type_map
from .model import SuiteModel as SuiteModel
from .model import build_suite_model as build_suite_model
from .parser import ExtractionError as ExtractionError
from .parser import parse as parse
from .parser import parse_file as parse_file
from .pipeline import GenerationError as GenerationError
from .types import *
