"""Core execution primitives."""

from .context import (
    ExecutionConfiguration,
    ExecutionContext,
    ExecutionOption,
    with_cancel_event,
    with_context,
    with_timeout,
)

__all__ = [
    "ExecutionConfiguration",
    "ExecutionContext",
    "ExecutionOption",
    "with_cancel_event",
    "with_context",
    "with_timeout",
]
