from .config import load_definition, parse_definition
from .domain import ActionDefinition, RunReport, StepResult
from .kernel import Engine, resolve

__all__ = ["ActionDefinition", "Engine", "RunReport", "StepResult", "load_definition", "parse_definition", "resolve"]
__version__ = "0.1.0"
