from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
import math
from pathlib import Path
import tomllib
from typing import Any


DEFAULT_FLATTEN_TOLERANCE = 0.5
DEFAULT_MIN_PARAM_SPAN = 0.01
DEFAULT_PARALLEL_DOT_THRESHOLD = 0.999
DEFAULT_ROUND_JOIN_MIN_ANGLE = 0.01
DEFAULT_ROUND_CAP_MIN_SEGMENTS = 8
DEFAULT_ROUND_CAP_MAX_SEGMENTS = 32
DEFAULT_INTERSECT_EPSILON = 1e-10
DEFAULT_DASH_EPSILON = 1e-10
DEFAULT_FILL_FLATTEN_TOLERANCE = 0.25
DEFAULT_MITER_LIMIT = 10.0


@dataclass(frozen=True)
class StrokeSettings:
    flatten_tolerance: float = DEFAULT_FLATTEN_TOLERANCE
    min_param_span: float = DEFAULT_MIN_PARAM_SPAN
    parallel_dot_threshold: float = DEFAULT_PARALLEL_DOT_THRESHOLD
    round_join_min_angle: float = DEFAULT_ROUND_JOIN_MIN_ANGLE
    round_cap_min_segments: int = DEFAULT_ROUND_CAP_MIN_SEGMENTS
    round_cap_max_segments: int = DEFAULT_ROUND_CAP_MAX_SEGMENTS
    intersect_epsilon: float = DEFAULT_INTERSECT_EPSILON
    dash_epsilon: float = DEFAULT_DASH_EPSILON
    fill_flatten_tolerance: float = DEFAULT_FILL_FLATTEN_TOLERANCE

    def __post_init__(self) -> None:
        for name in (
            "flatten_tolerance",
            "min_param_span",
            "intersect_epsilon",
            "dash_epsilon",
            "fill_flatten_tolerance",
        ):
            value = getattr(self, name)
            if not math.isfinite(value) or value <= 0:
                raise ValueError(f"{name} must be > 0")
        if self.min_param_span > 1.0:
            raise ValueError("min_param_span must be <= 1")
        if not 0.0 < self.parallel_dot_threshold < 1.0:
            raise ValueError("parallel_dot_threshold must be in (0, 1)")
        if not math.isfinite(self.round_join_min_angle) or self.round_join_min_angle < 0:
            raise ValueError("round_join_min_angle must be >= 0")
        if self.round_cap_min_segments < 2:
            raise ValueError("round_cap_min_segments must be >= 2")
        if self.round_cap_max_segments < self.round_cap_min_segments:
            raise ValueError("round_cap_max_segments must be >= round_cap_min_segments")

    def replace(self, **overrides: Any) -> "StrokeSettings":
        return replace(self, **overrides)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


DEFAULT_SETTINGS = StrokeSettings()


def load_settings(path: str | Path) -> StrokeSettings:
    with Path(path).open("rb") as f:
        raw = tomllib.load(f)
    table = raw.get("stroke", {})
    if not isinstance(table, dict):
        raise ValueError("[stroke] must be a table")
    return settings_from_mapping(table)


def settings_from_mapping(table: dict[str, Any]) -> StrokeSettings:
    known = {f.name: f for f in fields(StrokeSettings)}
    unknown = sorted(set(table) - set(known))
    if unknown:
        raise ValueError(f"unknown stroke settings: {', '.join(unknown)}")
    kwargs: dict[str, Any] = {}
    for key, value in table.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"{key} must be a number")
        if known[key].type == "int":
            if isinstance(value, float) and not value.is_integer():
                raise ValueError(f"{key} must be an integer")
            kwargs[key] = int(value)
        else:
            kwargs[key] = float(value)
    return StrokeSettings(**kwargs)
