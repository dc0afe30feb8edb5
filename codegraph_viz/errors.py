"""Exception types raised by the engine and its CLI."""

from __future__ import annotations


class CodegraphVizError(Exception):
    """Base error for codegraph-viz."""


class LayoutConflictError(CodegraphVizError):
    """A layout is already active on the same node set."""

    def __init__(self, token: str) -> None:
        super().__init__(
            f"Layout {token} still owns this node set; cancel it before starting another."
        )
        self.token = token


class UnknownLayoutModeError(CodegraphVizError):
    """Requested layout mode is not registered."""


class GraphFileError(CodegraphVizError):
    """Graph payload could not be read or decoded."""
