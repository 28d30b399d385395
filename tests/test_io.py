# tests/test_io.py
import logging

import pandas as pd
import pytest

from ta_trend.io import load_price_csv


def test_headers_normalized_and_sorted(tmp_path):
    p = tmp_path / "raw.csv"
    p.write_text(
        "Date,Adj Close\n"
        "2024-01-03,\"1,250.5\"\n"
        "2024-01-01,1000\n"
        "2024-01-02,-\n",
        encoding="utf-8",
    )
    df = load_price_csv(p, price_col="adj_close")

    assert list(df.columns) == ["date", "adj_close"]
    assert df["adj_close"].tolist() == [1000.0, 1250.5]
    assert df["date"].iloc[0] == pd.Timestamp("2024-01-01", tz="UTC")


def test_missing_timestamp_keeps_file_order(tmp_path):
    p = tmp_path / "no_dates.csv"
    p.write_text("close\n3\n1\n2\n", encoding="utf-8")
    df = load_price_csv(p)
    assert df["close"].tolist() == [3.0, 1.0, 2.0]


def test_missing_price_column(prices_csv):
    with pytest.raises(KeyError, match="adj_close"):
        load_price_csv(prices_csv, price_col="adj_close")


def test_unparseable_timestamps_dropped_with_warning(tmp_path, caplog):
    p = tmp_path / "bad_dates.csv"
    p.write_text("date,close\n2024-01-01,1\nnot-a-date,2\n2024-01-02,3\n", encoding="utf-8")
    with caplog.at_level(logging.WARNING, logger="ta_trend.io"):
        df = load_price_csv(p)

    assert df["close"].tolist() == [1.0, 3.0]
    assert "Dropped 1 rows with an unparseable 'date' value" in caplog.text
