from .action_invoker import ActionInvoker, InvocationContext
from .log_sink import LogSink
from .shell import CommandOutcome, ShellExecutor

__all__ = ["ActionInvoker", "CommandOutcome", "InvocationContext", "LogSink", "ShellExecutor"]
