# src/ta_trend/config.py
"""
Central configuration loader for ta_trend.

- Reads configs/default.yaml (or any YAML path)
- Normalizes relative paths to project root
- Converts nested mappings into typed dataclasses
- Supports safe forward-compatibility (unknown keys ignored)
- Applies environment overrides (DATA_CSV, OUT_DIR, TREND_*)
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from .features.segments import SegmentationConfig


# -----------------------------
# Small, typed sub-configs
# -----------------------------
@dataclass
class SegmentationSettings:
    """Thresholds for the trend-segment builder."""
    min_segment_length: int = 5
    preferred_segment_length: int = 10
    min_r_squared: float = 0.6
    min_slope: float = 0.01
    max_segments: int | None = None

    def to_config(self) -> SegmentationConfig:
        """Validated engine config (raises InvalidArgumentError on bad values)."""
        return SegmentationConfig(
            min_segment_length=int(self.min_segment_length),
            preferred_segment_length=int(self.preferred_segment_length),
            min_r_squared=float(self.min_r_squared),
            min_slope=float(self.min_slope),
            max_segments=None if self.max_segments is None else int(self.max_segments),
        )


@dataclass
class DataSettings:
    """Which CSV columns hold the price and the timestamp."""
    price_col: str = "close"
    timestamp_col: str | None = "date"


@dataclass
class PlotSettings:
    """Renderer options."""
    headless: bool = True
    show_channel: bool = True
    figsize: list[float] = field(default_factory=lambda: [12.0, 6.0])


# -----------------------------
# Top-level Settings
# -----------------------------
@dataclass
class Settings:
    """
    Root configuration object for ta_trend.
    This dataclass holds everything parsed from YAML.
    """

    data_csv: str | None = None
    out_dir: str = "artifacts"

    data: DataSettings = field(default_factory=DataSettings)
    segmentation: SegmentationSettings = field(default_factory=SegmentationSettings)
    plot: PlotSettings = field(default_factory=PlotSettings)


# env var -> (SegmentationSettings field, caster)
_SEGMENTATION_ENV = {
    "TREND_MIN_SEGMENT_LENGTH": ("min_segment_length", int),
    "TREND_PREFERRED_SEGMENT_LENGTH": ("preferred_segment_length", int),
    "TREND_MIN_R_SQUARED": ("min_r_squared", float),
    "TREND_MIN_SLOPE": ("min_slope", float),
    "TREND_MAX_SEGMENTS": ("max_segments", int),
}


# -----------------------------
# Helpers
# -----------------------------
def project_root(start: str | Path | None = None) -> Path:
    """
    Walk upward from 'start' (or this file) until a folder containing pyproject.toml is found.
    """
    cur = Path(start or __file__).resolve()
    for p in [cur, *cur.parents]:
        if (p / "pyproject.toml").exists():
            return p
    return Path(__file__).resolve().parent


def _as(obj: Any, cls: Any):
    """
    Minimal 'constructor' to turn a mapping into a dataclass instance.
    Ignores unknown keys so YAML can be slightly ahead of code.
    """
    if obj is None:
        return cls()
    if isinstance(obj, cls):
        return obj
    if isinstance(obj, dict):
        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in obj.items() if k in names})
    raise ValueError(f"Expected a mapping for {cls.__name__}, got {type(obj).__name__}")


def _resolve_yaml_path(yaml_path: str | Path, root: Path) -> Path:
    yml = Path(yaml_path)
    p = (root / yml).resolve() if not yml.is_absolute() else yml
    if p.exists():
        return p

    # Try swapping 'configs' <-> 'config'
    parts = list(yml.parts)
    if "configs" in parts:
        parts[parts.index("configs")] = "config"
    elif "config" in parts:
        parts[parts.index("config")] = "configs"
    alt = (root / Path(*parts)).resolve()
    if alt.exists():
        return alt
    raise FileNotFoundError(f"Configuration file not found: {p}")


def apply_env_overrides(settings: Settings) -> Settings:
    """Overlay DATA_CSV / OUT_DIR / TREND_* environment variables onto settings."""
    if os.getenv("DATA_CSV"):
        settings.data_csv = os.getenv("DATA_CSV")
    if os.getenv("OUT_DIR"):
        settings.out_dir = os.getenv("OUT_DIR")

    for env_name, (attr, caster) in _SEGMENTATION_ENV.items():
        raw = os.getenv(env_name)
        if raw:
            try:
                setattr(settings.segmentation, attr, caster(raw))
            except ValueError as exc:
                raise ValueError(f"{env_name}={raw!r} is not a valid {caster.__name__}") from exc
    return settings


def load_settings(yaml_path: str | Path | None = "configs/default.yaml") -> Settings:
    """
    Load YAML into Settings, normalize paths to project root,
    and coerce nested mappings into typed dataclasses.
    Also merges environment overrides if set.

    Passing yaml_path=None skips the file and starts from defaults.
    Gracefully accepts either 'config/default.yaml' or 'configs/default.yaml'.
    """
    root = project_root()

    data: dict[str, Any] = {}
    if yaml_path is not None:
        p = _resolve_yaml_path(yaml_path, root)
        data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}

    settings = Settings(
        data_csv=data.get("data_csv"),
        out_dir=str(data.get("out_dir", "artifacts")),
        data=_as(data.get("data"), DataSettings),
        segmentation=_as(data.get("segmentation"), SegmentationSettings),
        plot=_as(data.get("plot"), PlotSettings),
    )
    apply_env_overrides(settings)

    # --- Normalize paths ---
    if settings.data_csv:
        dc = Path(settings.data_csv)
        settings.data_csv = str((root / dc).resolve()) if not dc.is_absolute() else str(dc)
    od = Path(settings.out_dir)
    settings.out_dir = str((root / od).resolve()) if not od.is_absolute() else str(od)
    return settings


def settings_to_dict(settings: Settings) -> dict[str, Any]:
    """Plain-dict view of settings (for printing / JSON)."""
    return asdict(settings)


__all__ = [
    "Settings",
    "DataSettings",
    "SegmentationSettings",
    "PlotSettings",
    "project_root",
    "apply_env_overrides",
    "load_settings",
    "settings_to_dict",
]
