"""
Data ingestion module for fetching daily market data.

Provides a Yahoo Finance client with:
- Automatic retry with exponential backoff
- Column normalization to the PriceSeries schema
- Raw data persistence
"""

import time
import logging
from pathlib import Path
from typing import Optional

import pandas as pd
import yfinance as yf

from ..exceptions import DataValidationError
from .validator import DataValidator

logger = logging.getLogger(__name__)

PRICE_COLUMNS = ['date', 'open', 'high', 'low', 'close', 'volume', 'adjusted']


class YahooFinanceClient:
    """
    Yahoo Finance client with retry logic.

    yfinance returns an empty frame rather than raising on most transport
    failures, so an empty result is treated as a failed attempt.
    """

    COLUMN_MAP = {
        'Open': 'open',
        'High': 'high',
        'Low': 'low',
        'Close': 'close',
        'Adj Close': 'adjusted',
        'Volume': 'volume'
    }

    def __init__(
        self,
        max_retries: int = 3,
        backoff_factor: float = 2.0
    ):
        """
        Initialize Yahoo Finance client.

        Args:
            max_retries: Maximum retry attempts
            backoff_factor: Exponential backoff multiplier
        """
        self.max_retries = max_retries
        self.backoff_factor = backoff_factor

    def _download(
        self,
        symbol: str,
        start: str,
        end: Optional[str]
    ) -> pd.DataFrame:
        return yf.download(
            symbol,
            start=start,
            end=end,
            interval='1d',
            auto_adjust=False,
            progress=False
        )

    def get_daily_history(
        self,
        symbol: str,
        start: str,
        end: Optional[str] = None
    ) -> pd.DataFrame:
        """
        Fetch daily OHLCV history for a symbol.

        Args:
            symbol: Ticker symbol (e.g., 'BTC-USD')
            start: First date (inclusive), ISO format
            end: Last date (exclusive), ISO format or None for today

        Returns:
            DataFrame with columns date, open, high, low, close, volume, adjusted
        """
        for attempt in range(self.max_retries):
            logger.debug(f"Yahoo request: {symbol} (attempt {attempt + 1})")

            try:
                raw = self._download(symbol, start, end)
            except Exception as e:
                logger.warning(f"Download failed (attempt {attempt + 1}): {e}")
                raw = pd.DataFrame()

            if not raw.empty:
                return self._normalize(raw)

            # Exponential backoff
            if attempt < self.max_retries - 1:
                wait_time = self.backoff_factor ** attempt
                logger.info(f"Retrying in {wait_time:.1f}s...")
                time.sleep(wait_time)

        raise ConnectionError(
            f"No data returned for {symbol} after {self.max_retries} attempts"
        )

    def _normalize(self, raw: pd.DataFrame) -> pd.DataFrame:
        """Flatten yfinance output into the PriceSeries column layout."""
        df = raw.copy()

        # Single-ticker downloads come back with a (field, ticker) column index
        if isinstance(df.columns, pd.MultiIndex):
            df.columns = df.columns.get_level_values(0)

        df = df.rename(columns=self.COLUMN_MAP)
        if 'adjusted' not in df.columns:
            df['adjusted'] = df['close']

        df.index = pd.to_datetime(df.index)
        if df.index.tz is not None:
            df.index = df.index.tz_localize(None)

        df = df.reset_index()
        df = df.rename(columns={df.columns[0]: 'date'})
        df['date'] = df['date'].dt.normalize()

        return df[PRICE_COLUMNS]


class DataIngestion:
    """
    High-level data ingestion manager.

    Handles fetching, cleaning, validating and storing the raw price table.
    """

    def __init__(self, config, client: Optional[YahooFinanceClient] = None):
        """
        Initialize data ingestion.

        Args:
            config: Configuration object
            client: Market data client (defaults to Yahoo Finance)
        """
        self.config = config
        self.client = client or YahooFinanceClient()
        self.validator = DataValidator()

    def fetch_historical_data(self, symbol: Optional[str] = None) -> pd.DataFrame:
        """
        Fetch and clean the daily price history.

        Args:
            symbol: Ticker symbol (default from config)

        Returns:
            PriceSeries DataFrame
        """
        data_config = self.config.data_config
        symbol = symbol or data_config.symbol

        logger.info(f"Fetching daily data for {symbol} from {data_config.start_date}...")

        df = self.client.get_daily_history(
            symbol,
            start=data_config.start_date,
            end=data_config.end_date
        )

        df = clean_price_series(df)

        if len(df) < data_config.min_data_points:
            raise DataValidationError(
                f"Only {len(df)} rows for {symbol}, need {data_config.min_data_points}"
            )

        self.validator.validate(df, data_type='raw', raise_on_failure=True)

        logger.info(f"✓ Fetched {len(df)} data points for {symbol}")
        logger.info(f"  Range: {df['date'].iloc[0].date()} → {df['date'].iloc[-1].date()}")

        return df

    def run(self, symbol: Optional[str] = None) -> Path:
        """Fetch the raw table and persist it."""
        df = self.fetch_historical_data(symbol)
        return self.save_raw_data(df)

    def save_raw_data(self, df: pd.DataFrame) -> Path:
        """
        Save raw data to CSV file.

        Args:
            df: DataFrame to save

        Returns:
            Path to saved file
        """
        self.config.raw_data_path.mkdir(parents=True, exist_ok=True)
        filepath = self.config.raw_data_path / self.config.raw_filename

        df.to_csv(filepath, index=False)
        logger.info(f"Raw data saved to {filepath}")

        return filepath


def clean_price_series(df: pd.DataFrame) -> pd.DataFrame:
    """
    Drop incomplete rows and order the table by date.

    Duplicated dates are left in place so that validation rejects them.
    """
    initial_rows = len(df)
    df = df.dropna(subset=PRICE_COLUMNS)
    df = df.sort_values('date', kind='mergesort').reset_index(drop=True)

    removed = initial_rows - len(df)
    if removed > 0:
        logger.info(f"Removed {removed} incomplete rows")

    return df
