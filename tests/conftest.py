from pathlib import Path
import pandas as pd
import pytest


# rising 0..4, flat 5..9, falling 10..14
THREE_TREND_SERIES = [
    1.0, 2.0, 3.0, 4.0, 5.0,
    5.0, 5.0, 5.0, 5.0, 5.0,
    5.0, 4.0, 3.0, 2.0, 1.0,
]


@pytest.fixture
def three_trend_series() -> list[float]:
    return list(THREE_TREND_SERIES)


@pytest.fixture
def prices_csv(tmp_path: Path) -> Path:
    df = pd.DataFrame({
        "Date": pd.date_range("2024-01-01", periods=len(THREE_TREND_SERIES), freq="D").strftime("%Y-%m-%d"),
        "Open": THREE_TREND_SERIES,
        "Close": THREE_TREND_SERIES,
        "Volume": [1000] * len(THREE_TREND_SERIES),
    })
    p = tmp_path / "prices.csv"
    df.to_csv(p, index=False)
    return p


@pytest.fixture
def clean_env(monkeypatch):
    """Remove environment overrides that would leak into settings."""
    for name in (
        "DATA_CSV",
        "OUT_DIR",
        "TREND_MIN_SEGMENT_LENGTH",
        "TREND_PREFERRED_SEGMENT_LENGTH",
        "TREND_MIN_R_SQUARED",
        "TREND_MIN_SLOPE",
        "TREND_MAX_SEGMENTS",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch

