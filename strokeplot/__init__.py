from strokeplot.api import figure
from strokeplot.config import DEFAULT_SETTINGS, StrokeSettings, load_settings
from strokeplot.errors import PlotDataError, PlotError, PlotExportError, RenderSessionError
from strokeplot.figure import Axes, Bar2D, Figure, FunctionArtist, Line2D, Polygon2D, Scatter2D
from strokeplot.geom import Affine, Path, Point, Rect, Verb
from strokeplot.markers import MarkerType, marker_path
from strokeplot.paint import Color, LineCap, LineJoin, Paint
from strokeplot.raster import RasterRenderer
from strokeplot.render import NullRenderer, RecordingRenderer, Renderer
from strokeplot.stroke import stroke_to_path

__all__ = [
    "Affine",
    "Axes",
    "Bar2D",
    "Color",
    "DEFAULT_SETTINGS",
    "Figure",
    "FunctionArtist",
    "Line2D",
    "LineCap",
    "LineJoin",
    "MarkerType",
    "NullRenderer",
    "Paint",
    "Path",
    "PlotDataError",
    "PlotError",
    "PlotExportError",
    "Point",
    "Polygon2D",
    "RasterRenderer",
    "RecordingRenderer",
    "Rect",
    "RenderSessionError",
    "Renderer",
    "Scatter2D",
    "StrokeSettings",
    "Verb",
    "figure",
    "load_settings",
    "marker_path",
    "stroke_to_path",
]
