from .actions import (
    ActionRegistry,
    HostPassthroughInvoker,
    PinnedActionInvoker,
    SetupRuntimeAction,
    build_invoker,
    require_pinned,
)
from .log_sinks import JsonlLogSink, MemoryLogSink, NullLogSink, StdoutLogSink, build_log_sink
from .report import render_text, report_to_dict, write_json_report
from .shell import SubprocessShellExecutor

__all__ = [
    "ActionRegistry",
    "HostPassthroughInvoker",
    "JsonlLogSink",
    "MemoryLogSink",
    "NullLogSink",
    "PinnedActionInvoker",
    "SetupRuntimeAction",
    "StdoutLogSink",
    "SubprocessShellExecutor",
    "build_invoker",
    "build_log_sink",
    "render_text",
    "report_to_dict",
    "require_pinned",
    "write_json_report",
]
