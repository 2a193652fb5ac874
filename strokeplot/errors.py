from __future__ import annotations


class PlotError(Exception):
    """Base class for strokeplot errors."""


class PlotDataError(PlotError, ValueError):
    pass


class RenderSessionError(PlotError, RuntimeError):
    """Raised when a renderer's begin/end protocol is violated."""


class PlotExportError(PlotError):
    pass
