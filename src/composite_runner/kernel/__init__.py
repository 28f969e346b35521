from .cancellation import CancellationToken
from .context import ContextFactory, ExecutionContext
from .engine import Engine
from .inputs import resolve
from .template import expand, expand_mapping

# Kernel exports are minimal and runtime-focused.
__all__ = [
    "CancellationToken",
    "ContextFactory",
    "Engine",
    "ExecutionContext",
    "expand",
    "expand_mapping",
    "resolve",
]
