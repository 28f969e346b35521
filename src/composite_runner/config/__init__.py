from .loader import build_definition, load_definition, load_yaml, parse_definition
from .settings import LoggingSettings, RunnerSettings, RuntimeInstallSettings, load_settings

__all__ = [
    "LoggingSettings",
    "RunnerSettings",
    "RuntimeInstallSettings",
    "build_definition",
    "load_definition",
    "load_settings",
    "load_yaml",
    "parse_definition",
]
