from .assemble import stroke_bounds, stroke_subpath, stroke_to_path
from .dash import apply_dashes, is_valid_dash_array
from .flatten import evaluate_cubic, evaluate_quad, flatten_cubic, flatten_quad
from .joins import compute_cap, compute_join, intersect_lines, segment_normal
from .segments import Segment, is_closed, path_to_segments, split_subpaths

__all__ = [
    "Segment",
    "apply_dashes",
    "compute_cap",
    "compute_join",
    "evaluate_cubic",
    "evaluate_quad",
    "flatten_cubic",
    "flatten_quad",
    "intersect_lines",
    "is_closed",
    "is_valid_dash_array",
    "path_to_segments",
    "segment_normal",
    "split_subpaths",
    "stroke_bounds",
    "stroke_subpath",
    "stroke_to_path",
]
