from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict, replace
from pathlib import Path
from typing import Optional

import numpy as np

from ta_trend.config import Settings, load_settings, settings_to_dict
from ta_trend.exceptions import InvalidArgumentError
from ta_trend.features.regression import calculate_stats
from ta_trend.features.segments import run_segmentation, segments_to_frame
from ta_trend.io import load_price_csv

logger = logging.getLogger("ta_trend.cli")


def setup_logging(args: argparse.Namespace) -> None:
    """Console logging on stderr; stdout stays free for CSV / JSON output."""
    level = logging.WARNING if args.quiet else getattr(logging, args.log_level)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


# ----------------------------
# Helpers
# ----------------------------
def _load_settings(args: argparse.Namespace) -> Settings:
    """YAML settings when --config is given, otherwise defaults (+ env overrides)."""
    return load_settings(getattr(args, "config", None))


def _csv_path(args: argparse.Namespace, settings: Settings) -> str:
    path = getattr(args, "csv", None) or settings.data_csv
    if not path:
        raise InvalidArgumentError("No input CSV: pass --csv or set data_csv in the config")
    return str(path)


def _apply_threshold_flags(args: argparse.Namespace, settings: Settings) -> Settings:
    seg = settings.segmentation
    for name in (
        "min_segment_length",
        "preferred_segment_length",
        "min_r_squared",
        "min_slope",
        "max_segments",
    ):
        value = getattr(args, name, None)
        if value is not None:
            seg = replace(seg, **{name: value})
    settings.segmentation = seg
    return settings


# ----------------------------
# Commands
# ----------------------------
def cmd_segment(args: argparse.Namespace) -> int:
    """Segment one price column of a CSV and print / write the segment table."""
    try:
        settings = _apply_threshold_flags(args, _load_settings(args))
        price_col = args.price_col or settings.data.price_col
        time_col = args.time_col or settings.data.timestamp_col
        csv_path = _csv_path(args, settings)
        df = load_price_csv(csv_path, price_col=price_col, timestamp_col=time_col)
        config = settings.segmentation.to_config()
    except (ValueError, KeyError, FileNotFoundError) as exc:
        logger.error(f"[ta-trend segment] {exc}")
        return 2

    values = df[price_col].to_numpy(dtype=np.float64)
    result = run_segmentation(values, config)
    if not result.success:
        logger.error(f"[ta-trend segment] {result.error}")
        return 2

    index = df[time_col] if time_col and time_col in df.columns else None
    table = segments_to_frame(result.segments, index=index)

    if args.out:
        out = Path(args.out)
        out.parent.mkdir(parents=True, exist_ok=True)
        table.to_csv(out, index=False)
        logger.info(f"Wrote {len(table)} segments to {out}")
    elif args.json:
        print(table.to_json(orient="records", date_format="iso", indent=2))
    else:
        print(table.to_string(index=False))

    if args.plot:
        from ta_trend.viz.segments_plot import PlotConfig, plot_segments

        plot_cfg = PlotConfig(
            headless=settings.plot.headless,
            figsize=tuple(settings.plot.figsize),
            show_channel=settings.plot.show_channel,
            title=f"{Path(csv_path).stem} {price_col}",
        )
        plot_segments(values, result.segments, path=args.plot, config=plot_cfg)
    return 0


def cmd_stats(args: argparse.Namespace) -> int:
    """Print OLS stats for an index window [start, end] of a price column."""
    try:
        settings = _load_settings(args)
        price_col = args.price_col or settings.data.price_col
        df = load_price_csv(_csv_path(args, settings), price_col=price_col, timestamp_col=settings.data.timestamp_col)
        values = df[price_col].to_numpy(dtype=np.float64)

        start = args.start if args.start is not None else 0
        end = args.end if args.end is not None else len(values) - 1
        if not 0 <= start <= end < len(values):
            raise InvalidArgumentError(f"window [{start}, {end}] is outside 0..{len(values) - 1}")

        x = np.arange(start, end + 1, dtype=np.float64)
        stats = calculate_stats(x, values[start:end + 1])
    except (ValueError, KeyError, FileNotFoundError) as exc:
        logger.error(f"[ta-trend stats] {exc}")
        return 2

    payload = {"start_idx": start, "end_idx": end, **asdict(stats)}
    print(json.dumps(payload, indent=2))
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    """Print the resolved settings as JSON."""
    try:
        settings = _load_settings(args)
    except (ValueError, FileNotFoundError) as exc:
        logger.error(f"[ta-trend config] {exc}")
        return 2
    print(json.dumps(settings_to_dict(settings), indent=2, default=str))
    return 0


# ----------------------------
# Parser
# ----------------------------
def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="ta-trend",
        description="Trend segmentation of price series (linear-fit segments, channel widths).",
    )
    sub = ap.add_subparsers(dest="cmd")

    def _common(sp: argparse.ArgumentParser) -> None:
        sp.add_argument("--config", "-c", default=None, help="YAML settings file (default: built-in defaults)")
        sp.add_argument(
            "--log-level",
            default="INFO",
            choices=["DEBUG", "INFO", "WARNING", "ERROR"],
            help="Set log level (default: INFO)",
        )
        sp.add_argument("--quiet", action="store_true", help="Only show warnings and errors")

    # segment
    p_seg = sub.add_parser("segment", help="Split a price column into trend segments")
    _common(p_seg)
    p_seg.add_argument("--csv", default=None, help="Input CSV (overrides data_csv from config)")
    p_seg.add_argument("--price-col", dest="price_col", default=None, help="Price column (default from config: close)")
    p_seg.add_argument("--time-col", dest="time_col", default=None, help="Timestamp column (default from config: date)")
    p_seg.add_argument("--min-segment-length", dest="min_segment_length", type=int, default=None)
    p_seg.add_argument("--preferred-segment-length", dest="preferred_segment_length", type=int, default=None)
    p_seg.add_argument("--min-r-squared", dest="min_r_squared", type=float, default=None)
    p_seg.add_argument("--min-slope", dest="min_slope", type=float, default=None)
    p_seg.add_argument("--max-segments", dest="max_segments", type=int, default=None, help="Cap on emitted segments")
    p_seg.add_argument("--out", default=None, help="Write the segment table to this CSV instead of stdout")
    p_seg.add_argument("--json", action="store_true", help="Print segments as JSON records")
    p_seg.add_argument("--plot", default=None, help="Also render a PNG chart to this path")
    p_seg.set_defaults(func=cmd_segment)

    # stats
    p_stats = sub.add_parser("stats", help="Regression stats for an index window of a price column")
    _common(p_stats)
    p_stats.add_argument("--csv", default=None, help="Input CSV (overrides data_csv from config)")
    p_stats.add_argument("--price-col", dest="price_col", default=None)
    p_stats.add_argument("--start", type=int, default=None, help="First index (default: 0)")
    p_stats.add_argument("--end", type=int, default=None, help="Last index, inclusive (default: last row)")
    p_stats.set_defaults(func=cmd_stats)

    # config
    p_cfg = sub.add_parser("config", help="Show resolved settings")
    _common(p_cfg)
    p_cfg.set_defaults(func=cmd_config)

    return ap


def main(argv: Optional[list[str]] = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)

    if not hasattr(args, "func") or not callable(args.func):
        ap.print_help(sys.stderr)
        return 2

    setup_logging(args)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
