from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

import numpy as np
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure

from ..features.regression import predict_values
from ..features.segments import Segment
from ..features.trend import Trend

logger = logging.getLogger(__name__)


_TREND_COLORS = {
    Trend.INCREASING: "green",
    Trend.DECREASING: "red",
    Trend.FLAT: "blue",
    Trend.UNKNOWN: "grey",
}


@dataclass(frozen=True)
class PlotConfig:
    """
    Renderer options.

    headless=True draws on an Agg canvas owned by the figure, so nothing
    touches pyplot's global state or needs a display.
    """
    headless: bool = True
    figsize: tuple[float, float] = (12.0, 6.0)
    title: Optional[str] = None
    show_channel: bool = True


def segment_color(trend: Trend) -> str:
    """Display color for a trend label."""
    return _TREND_COLORS.get(Trend(trend), "grey")


def _new_figure(config: PlotConfig):
    if config.headless:
        fig = Figure(figsize=config.figsize)
        FigureCanvasAgg(fig)
        ax = fig.add_subplot(111)
    else:
        import matplotlib.pyplot as plt

        fig, ax = plt.subplots(figsize=config.figsize)
    return fig, ax


# --- Price + fitted trend line per segment (+ optional channel envelope) ---
def plot_segments(
    data: Sequence[float] | np.ndarray,
    segments: Sequence[Segment],
    path: str | Path | None = None,
    config: Optional[PlotConfig] = None,
) -> Figure:
    cfg = config or PlotConfig()
    values = np.asarray(data, dtype=np.float64)
    x = np.arange(values.size)

    fig, ax = _new_figure(cfg)
    ax.plot(x, values, c="black", lw=1.0, label="price")

    labelled: set[Trend] = set()
    for seg in segments:
        seg_x = x[seg.start_idx:seg.end_idx + 1]
        fitted = predict_values(seg_x, seg.intercept, seg.slope)
        color = segment_color(seg.trend)

        # unknown segments carry no fitted line
        if seg.trend is not Trend.UNKNOWN:
            ax.plot(
                seg_x,
                fitted,
                c=color,
                lw=2.0,
                label=(seg.trend.value if seg.trend not in labelled else None),
            )
            labelled.add(seg.trend)
            if cfg.show_channel and seg.channel_width > 0:
                ax.fill_between(
                    seg_x,
                    fitted - seg.channel_width,
                    fitted + seg.channel_width,
                    color=color,
                    alpha=0.15,
                )
        else:
            ax.axvspan(seg.start_idx, seg.end_idx, color=color, alpha=0.1)

    ax.set_title(cfg.title or f"Trend segments ({len(segments)})")
    ax.set_xlabel("bars")
    ax.legend(loc="upper left")
    fig.tight_layout()

    if path is not None:
        out = Path(path)
        out.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(out)
        logger.info(f"Saved segment plot to {out}")
    return fig


__all__ = ["PlotConfig", "segment_color", "plot_segments"]
