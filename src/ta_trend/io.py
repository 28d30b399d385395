from __future__ import annotations

import logging
import re
from pathlib import Path

import pandas as pd

logger = logging.getLogger(__name__)


def _clean_headers(cols):
    return [re.sub(r"\s+", " ", str(c).strip().lower()).replace(" ", "_") for c in cols]


def _to_num(s):
    return pd.to_numeric(
        pd.Series(s).astype(str).str.replace(",", "", regex=False).replace({"-": None, "": None}),
        errors="coerce",
    )


def load_price_csv(
    csv_path: str | Path,
    price_col: str = "close",
    timestamp_col: str | None = "date",
) -> pd.DataFrame:
    """
    Read a daily price CSV into a clean, time-ordered frame.

    Headers are normalized ("Adj Close" -> "adj_close"), the price column is
    coerced to float (thousands separators allowed) and rows without a usable
    price are dropped. If `timestamp_col` exists it is parsed and used to sort;
    otherwise file order is kept.
    """
    df = pd.read_csv(csv_path)
    df.columns = _clean_headers(df.columns)

    if price_col not in df.columns:
        raise KeyError(f"Price column '{price_col}' not found in {csv_path}; columns: {list(df.columns)}")

    df[price_col] = _to_num(df[price_col]).to_numpy()
    n_raw = len(df)
    df = df.dropna(subset=[price_col])
    if len(df) < n_raw:
        logger.warning(f"Dropped {n_raw - len(df)} rows with a missing '{price_col}' value")

    if timestamp_col and timestamp_col in df.columns:
        df[timestamp_col] = pd.to_datetime(df[timestamp_col], errors="coerce", utc=True)
        n_priced = len(df)
        df = df.dropna(subset=[timestamp_col]).sort_values(timestamp_col, kind="stable")
        if len(df) < n_priced:
            logger.warning(f"Dropped {n_priced - len(df)} rows with an unparseable '{timestamp_col}' value")

    df = df.reset_index(drop=True)
    logger.info(f"Loaded {len(df)} rows from {csv_path}")
    return df


__all__ = ["load_price_csv"]
