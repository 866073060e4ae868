"""Tests for price ingestion and artifact loading."""

import numpy as np
import pandas as pd
import pytest

from conftest import make_prices

from btc_benchmark.data.ingestion import DataIngestion, YahooFinanceClient, clean_price_series
from btc_benchmark.data.loader import DataLoader
from btc_benchmark.exceptions import DataValidationError
from btc_benchmark.models.base import ForecastSeries


class StaticClient:
    """Stands in for Yahoo Finance with a fixed table."""

    def __init__(self, table):
        self.table = table
        self.calls = []

    def get_daily_history(self, symbol, start, end=None):
        self.calls.append((symbol, start, end))
        return self.table.copy()


def _yahoo_frame(n_rows=5):
    prices = make_prices(n_rows)
    index = pd.DatetimeIndex(prices["date"], name="Date").tz_localize("UTC")
    fields = ["Adj Close", "Close", "High", "Low", "Open", "Volume"]
    values = prices[["adjusted", "close", "high", "low", "open", "volume"]].to_numpy()
    columns = pd.MultiIndex.from_product([fields, ["BTC-USD"]], names=["Price", "Ticker"])
    return pd.DataFrame(values, index=index, columns=columns)


class TestYahooFinanceClient:

    def test_normalize_multiindex_download(self):
        df = YahooFinanceClient()._normalize(_yahoo_frame())

        assert list(df.columns) == ["date", "open", "high", "low", "close", "volume", "adjusted"]
        assert df["date"].dt.tz is None
        assert len(df) == 5

    def test_retries_then_gives_up(self, monkeypatch):
        client = YahooFinanceClient(max_retries=3)
        attempts = []
        monkeypatch.setattr(client, "_download", lambda *a: attempts.append(a) or pd.DataFrame())
        monkeypatch.setattr("btc_benchmark.data.ingestion.time.sleep", lambda s: None)

        with pytest.raises(ConnectionError):
            client.get_daily_history("BTC-USD", "2021-01-01")

        assert len(attempts) == 3

    def test_recovers_after_transient_error(self, monkeypatch):
        client = YahooFinanceClient(max_retries=3)
        responses = [RuntimeError("rate limited"), _yahoo_frame()]

        def download(*args):
            response = responses.pop(0)
            if isinstance(response, Exception):
                raise response
            return response

        monkeypatch.setattr(client, "_download", download)
        monkeypatch.setattr("btc_benchmark.data.ingestion.time.sleep", lambda s: None)

        assert len(client.get_daily_history("BTC-USD", "2021-01-01")) == 5


class TestDataIngestion:

    def test_incomplete_rows_dropped(self, config):
        table = make_prices(150)
        table.loc[[3, 40], "volume"] = np.nan
        ingestion = DataIngestion(config, client=StaticClient(table))

        df = ingestion.fetch_historical_data()

        assert len(df) == 148
        assert not df.isnull().any().any()
        assert ingestion.client.calls == [("BTC-USD", "2021-01-01", None)]

    def test_unordered_rows_sorted(self):
        table = make_prices(10).iloc[::-1]

        assert clean_price_series(table)["date"].is_monotonic_increasing

    def test_too_few_rows(self, config):
        ingestion = DataIngestion(config, client=StaticClient(make_prices(50)))

        with pytest.raises(DataValidationError):
            ingestion.fetch_historical_data()

    def test_duplicate_dates_rejected(self, config):
        table = make_prices(150)
        table = pd.concat([table, table.iloc[[10]]], ignore_index=True)

        with pytest.raises(DataValidationError):
            DataIngestion(config, client=StaticClient(table)).fetch_historical_data()

    def test_run_writes_raw_csv(self, config):
        path = DataIngestion(config, client=StaticClient(make_prices(150))).run()

        assert path.name == "btc_raw.csv"
        assert len(pd.read_csv(path)) == 150


class TestDataLoader:

    def test_processed_round_trip(self, config, feature_table):
        loader = DataLoader(config)
        loader.save_processed_data(feature_table)

        loaded = loader.load_processed_data()

        assert pd.api.types.is_datetime64_any_dtype(loaded["date"])
        np.testing.assert_allclose(loaded["close"], feature_table["close"])

    def test_missing_raw_file(self, config):
        with pytest.raises(FileNotFoundError):
            DataLoader(config).load_raw_data()

    def test_forecast_artifacts(self, config):
        loader = DataLoader(config)
        dates = pd.date_range("2023-01-01", periods=4)
        loader.save_forecast(ForecastSeries("arimax", [1.0, 2.0, 3.0, 4.0], dates=dates))

        forecasts = loader.load_forecasts(["arimax", "prophet"])

        assert list(forecasts) == ["arimax"]
        assert forecasts["arimax"].dates.equals(dates)

        loader.discard_forecast("arimax")
        assert loader.load_forecast("arimax") is None

    def test_failures_round_trip(self, config):
        loader = DataLoader(config)
        assert loader.load_failures() == {}

        loader.save_failures({"prophet": "prophet: timed out"})

        assert loader.load_failures() == {"prophet": "prophet: timed out"}
